"""Compression API routes."""

from __future__ import annotations

from fastapi import APIRouter, Body, Depends
from fastapi.responses import FileResponse

from fileforge.models.job import JobOperation
from fileforge.models.options import ProcessingOptions
from fileforge.runtime import Runtime
from routes._deps import runtime
from routes.schemas import CompressionRequest, CompressionResponse, CompressionResult

router = APIRouter(prefix="/compression", tags=["compression"])


@router.post("/{artifact_id}", response_model=CompressionResponse, response_model_by_alias=True)
async def compress(
    artifact_id: str,
    payload: CompressionRequest | None = Body(None),
    rt: Runtime = Depends(runtime),
) -> CompressionResponse:
    payload = payload or CompressionRequest()
    options = ProcessingOptions.parse(
        quality=payload.quality,
        format=payload.format,
        max_size_mb=payload.max_size,
    )
    outcome = await rt.pipeline.run(artifact_id, JobOperation.COMPRESS, options)
    job = outcome.job
    return CompressionResponse(
        data=CompressionResult(
            id=outcome.result.id,
            original_size=outcome.source.size_bytes,
            compressed_size=outcome.result.size_bytes,
            compression_ratio=job.ratio,
            saved_space=job.saved_bytes or 0,
            job_id=job.id,
        )
    )


@router.get("/download/{artifact_id}")
async def download_compressed(artifact_id: str, rt: Runtime = Depends(runtime)) -> FileResponse:
    artifact = await rt.store.get(artifact_id)
    return FileResponse(artifact.path, media_type=artifact.media_type, filename=artifact.id)
