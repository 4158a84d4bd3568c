"""Conversion API routes."""

from __future__ import annotations

from fastapi import APIRouter, Body, Depends
from fastapi.responses import FileResponse

from fileforge.models.job import JobOperation
from fileforge.models.options import ProcessingOptions
from fileforge.runtime import Runtime
from routes._deps import runtime
from routes.schemas import ConversionRequest, ConversionResponse, ConversionResult

router = APIRouter(prefix="/conversion", tags=["conversion"])


@router.post("/{artifact_id}", response_model=ConversionResponse, response_model_by_alias=True)
async def convert(
    artifact_id: str,
    payload: ConversionRequest | None = Body(None),
    rt: Runtime = Depends(runtime),
) -> ConversionResponse:
    payload = payload or ConversionRequest()
    options = ProcessingOptions.parse(format=payload.target_format())
    outcome = await rt.pipeline.run(artifact_id, JobOperation.CONVERT, options)
    return ConversionResponse(
        data=ConversionResult(
            id=outcome.result.id,
            original_size=outcome.source.size_bytes,
            converted_size=outcome.result.size_bytes,
            original_format=outcome.source.extension,
            new_format=outcome.strategy.target_format,
            job_id=outcome.job.id,
        )
    )


@router.get("/download/{artifact_id}")
async def download_converted(artifact_id: str, rt: Runtime = Depends(runtime)) -> FileResponse:
    artifact = await rt.store.get(artifact_id)
    return FileResponse(artifact.path, media_type=artifact.media_type, filename=artifact.id)
