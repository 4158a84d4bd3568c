"""Uploads API routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, File, UploadFile

from fileforge.runtime import Runtime
from routes._deps import runtime
from routes.schemas import MessageResponse, UploadedFile, UploadResponse
from services.upload_service import UploadService

router = APIRouter(tags=["uploads"])


def _upload_service(rt: Runtime = Depends(runtime)) -> UploadService:
    return UploadService(rt.store, rt.jobs, max_files=rt.settings.storage.max_files_per_upload)


@router.post("/upload", response_model=UploadResponse, response_model_by_alias=True)
async def upload_files(
    files: list[UploadFile] | None = File(None),
    service: UploadService = Depends(_upload_service),
) -> UploadResponse:
    try:
        stored = await service.accept(list(files or []))
    finally:
        for upload in files or []:
            await upload.close()
    return UploadResponse(
        count=len(stored),
        data=[
            UploadedFile(
                id=item.artifact.id,
                original_name=item.original_name,
                filename=item.artifact.id,
                size=item.artifact.size_bytes,
                mimetype=item.artifact.media_type,
            )
            for item in stored
        ],
    )


@router.delete("/upload/{artifact_id}", response_model=MessageResponse, response_model_by_alias=True)
async def delete_upload(artifact_id: str, service: UploadService = Depends(_upload_service)) -> MessageResponse:
    await service.delete(artifact_id)
    return MessageResponse(message="File deleted successfully")
