"""Multipart upload intake backed by the artifact store."""

from __future__ import annotations

import logging
import mimetypes
from collections.abc import AsyncIterator, Sequence
from dataclasses import dataclass
from pathlib import Path

from fastapi import UploadFile

from fileforge.exceptions import FileForgeError, InvalidRequestError, UnsupportedMediaError
from fileforge.models.artifact import Artifact
from fileforge.pipeline.classifier import ALLOWED_UPLOAD_MIME_TYPES
from fileforge.pipeline.jobs import JobTracker
from fileforge.storage import LocalArtifactStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StoredUpload:
    artifact: Artifact
    original_name: str


def _sanitize_filename(filename: str | None) -> str:
    raw = str(filename or "").strip()
    base = Path(raw).name
    base = base.replace("\x00", "")
    if not base:
        return "upload.bin"
    return base[:255]


def _detect_content_type(filename: str, provided: str | None) -> str:
    candidate = str(provided or "").split(";", 1)[0].strip().lower()
    if candidate and candidate != "application/octet-stream":
        return candidate
    guessed, _ = mimetypes.guess_type(filename)
    return str(guessed or "application/octet-stream")


async def _iter_upload(upload: UploadFile, chunk_size: int = 1024 * 1024) -> AsyncIterator[bytes]:
    while True:
        chunk = await upload.read(chunk_size)
        if not chunk:
            break
        yield chunk


class UploadService:
    def __init__(self, store: LocalArtifactStore, jobs: JobTracker, *, max_files: int):
        self.store = store
        self.jobs = jobs
        self.max_files = max_files

    async def accept(self, uploads: Sequence[UploadFile]) -> list[StoredUpload]:
        """Validate every part, then store them all or none."""
        if not uploads:
            raise InvalidRequestError("No files were uploaded")
        if len(uploads) > self.max_files:
            raise InvalidRequestError(f"Too many files; at most {self.max_files} per upload")

        prepared: list[tuple[UploadFile, str, str]] = []
        for upload in uploads:
            safe_name = _sanitize_filename(upload.filename)
            content_type = _detect_content_type(safe_name, upload.content_type)
            if content_type not in ALLOWED_UPLOAD_MIME_TYPES:
                raise UnsupportedMediaError(f"Unsupported file type: {content_type}")
            prepared.append((upload, safe_name, content_type))

        stored: list[StoredUpload] = []
        try:
            for upload, safe_name, content_type in prepared:
                artifact = await self.store.put_stream(_iter_upload(upload), safe_name, content_type)
                stored.append(StoredUpload(artifact=artifact, original_name=safe_name))
        except FileForgeError:
            for item in stored:
                await self.store.delete(item.artifact.id)
            raise

        logger.info("upload accepted count=%d ids=%s", len(stored), [s.artifact.id for s in stored])
        return stored

    async def delete(self, artifact_id: str) -> None:
        await self.store.delete(artifact_id)
        self.jobs.forget_artifacts([artifact_id])
