"""Artifact store interface and local filesystem implementation.

All artifacts live flat in one root directory and are named by their id.
Ids are generated here (`<32 hex>.<ext>`) or derived from one by the engine
invoker (`compressed-<stem>.<ext>`), so client-supplied names never reach
the filesystem.
"""

from __future__ import annotations

import asyncio
import logging
import re
import shutil
import time
from abc import ABC, abstractmethod
from collections.abc import AsyncIterable
from dataclasses import dataclass, field
from pathlib import Path
from uuid import uuid4

from fileforge.exceptions import ArtifactNotFoundError, ArtifactTooLargeError, StorageError
from fileforge.models.artifact import Artifact
from fileforge.pipeline.classifier import (
    EXTENSION_MIME_TYPES,
    MIME_EXTENSIONS,
    media_type_for,
    normalize_extension,
)

logger = logging.getLogger(__name__)

ARTIFACT_ID_RE = re.compile(r"^(?:[a-z]+-)*[0-9a-f]{32}\.[a-z0-9]{2,5}$")
WORK_DIR_NAME = ".work"


def is_valid_artifact_id(artifact_id: str) -> bool:
    return bool(ARTIFACT_ID_RE.match(str(artifact_id or "")))


def new_artifact_id(declared_name: str | None, media_type: str | None = None) -> str:
    ext = normalize_extension(declared_name or "")
    if ext not in EXTENSION_MIME_TYPES:
        mime = str(media_type or "").split(";", 1)[0].strip().lower()
        ext = MIME_EXTENSIONS.get(mime, "bin")
    return f"{uuid4().hex}.{ext}"


@dataclass
class SweepReport:
    scanned: int = 0
    deleted: list[str] = field(default_factory=list)
    failed: list[str] = field(default_factory=list)


class ArtifactStore(ABC):
    @abstractmethod
    async def put(self, data: bytes, declared_name: str, media_type: str | None = None) -> Artifact:
        """Store bytes under a fresh id."""

    @abstractmethod
    async def put_stream(
        self,
        chunks: AsyncIterable[bytes],
        declared_name: str,
        media_type: str | None = None,
    ) -> Artifact:
        """Store a chunked upload under a fresh id, enforcing the size ceiling."""

    @abstractmethod
    async def register(self, artifact_id: str) -> Artifact:
        """Register a file an engine wrote at `path_for(artifact_id)`."""

    @abstractmethod
    async def get(self, artifact_id: str) -> Artifact:
        """Return a live artifact or raise ArtifactNotFoundError."""

    @abstractmethod
    async def delete(self, artifact_id: str) -> None:
        """Delete an artifact or raise ArtifactNotFoundError."""

    @abstractmethod
    async def list_ids(self) -> list[str]:
        """List stored artifact ids."""

    @abstractmethod
    async def sweep(self, *, now: float | None = None, max_age_s: float | None = None) -> SweepReport:
        """Delete artifacts older than `max_age_s`."""

    async def read_bytes(self, artifact_id: str) -> bytes:
        artifact = await self.get(artifact_id)
        try:
            return artifact.path.read_bytes()
        except FileNotFoundError as exc:
            raise ArtifactNotFoundError(artifact_id) from exc
        except OSError as exc:
            raise StorageError(f"failed to read artifact {artifact_id}") from exc


class LocalArtifactStore(ArtifactStore):
    """Flat local directory store with a retention window."""

    def __init__(self, root: str | Path, *, max_bytes: int, max_age_s: float) -> None:
        self.root = Path(root).resolve()
        self.max_bytes = int(max_bytes)
        self.max_age_s = float(max_age_s)
        self.root.mkdir(parents=True, exist_ok=True)

    @property
    def work_dir(self) -> Path:
        """Scratch space for engines (pass logs, profiles); swept like artifacts."""
        path = self.root / WORK_DIR_NAME
        path.mkdir(parents=True, exist_ok=True)
        return path

    def path_for(self, artifact_id: str) -> Path:
        if not is_valid_artifact_id(artifact_id):
            raise ArtifactNotFoundError(artifact_id)
        return self.ensure_within_root(self.root / artifact_id)

    def ensure_within_root(self, path: str | Path) -> Path:
        resolved = Path(path).resolve()
        if resolved != self.root and self.root not in resolved.parents:
            raise StorageError(f"path escapes the artifact root: {path}")
        return resolved

    def _is_expired(self, mtime: float, now: float | None = None) -> bool:
        now = time.time() if now is None else now
        return now - mtime > self.max_age_s

    def _artifact(self, path: Path) -> Artifact:
        return Artifact.from_path(path, media_type_for(path.suffix))

    async def put(self, data: bytes, declared_name: str, media_type: str | None = None) -> Artifact:
        if len(data) > self.max_bytes:
            raise ArtifactTooLargeError(self.max_bytes)
        artifact_id = new_artifact_id(declared_name, media_type)
        path = self.path_for(artifact_id)
        try:
            await asyncio.to_thread(path.write_bytes, data)
        except OSError as exc:
            path.unlink(missing_ok=True)
            raise StorageError(f"failed to write artifact {artifact_id}") from exc
        logger.info("stored artifact id=%s size=%d", artifact_id, len(data))
        return self._artifact(path)

    async def put_stream(
        self,
        chunks: AsyncIterable[bytes],
        declared_name: str,
        media_type: str | None = None,
    ) -> Artifact:
        artifact_id = new_artifact_id(declared_name, media_type)
        path = self.path_for(artifact_id)
        written = 0
        try:
            with path.open("wb") as f:
                async for chunk in chunks:
                    written += len(chunk)
                    if written > self.max_bytes:
                        raise ArtifactTooLargeError(self.max_bytes)
                    await asyncio.to_thread(f.write, chunk)
        except ArtifactTooLargeError:
            path.unlink(missing_ok=True)
            raise
        except OSError as exc:
            path.unlink(missing_ok=True)
            raise StorageError(f"failed to write artifact {artifact_id}") from exc
        logger.info("stored artifact id=%s size=%d", artifact_id, written)
        return self._artifact(path)

    async def register(self, artifact_id: str) -> Artifact:
        path = self.path_for(artifact_id)
        try:
            return self._artifact(path)
        except FileNotFoundError as exc:
            raise ArtifactNotFoundError(artifact_id) from exc
        except OSError as exc:
            raise StorageError(f"failed to stat artifact {artifact_id}") from exc

    async def get(self, artifact_id: str) -> Artifact:
        path = self.path_for(artifact_id)
        try:
            artifact = self._artifact(path)
        except FileNotFoundError as exc:
            raise ArtifactNotFoundError(artifact_id) from exc
        except OSError as exc:
            raise StorageError(f"failed to stat artifact {artifact_id}") from exc
        if not path.is_file() or self._is_expired(artifact.created_at.timestamp()):
            raise ArtifactNotFoundError(artifact_id)
        return artifact

    async def delete(self, artifact_id: str) -> None:
        path = self.path_for(artifact_id)
        try:
            path.unlink()
        except FileNotFoundError as exc:
            raise ArtifactNotFoundError(artifact_id) from exc
        except OSError as exc:
            raise StorageError(f"failed to delete artifact {artifact_id}") from exc
        logger.info("deleted artifact id=%s", artifact_id)

    async def list_ids(self) -> list[str]:
        def _list() -> list[str]:
            return sorted(
                p.name for p in self.root.iterdir() if p.is_file() and is_valid_artifact_id(p.name)
            )

        return await asyncio.to_thread(_list)

    async def sweep(self, *, now: float | None = None, max_age_s: float | None = None) -> SweepReport:
        now = time.time() if now is None else float(now)
        max_age = self.max_age_s if max_age_s is None else float(max_age_s)
        return await asyncio.to_thread(self._sweep_sync, now, max_age)

    def _sweep_sync(self, now: float, max_age_s: float) -> SweepReport:
        report = SweepReport()
        try:
            entries = list(self.root.iterdir())
        except OSError:
            logger.exception("sweep: cannot list %s", self.root)
            return report

        work_dir = self.root / WORK_DIR_NAME
        if work_dir.is_dir():
            entries.extend(work_dir.iterdir())

        for entry in entries:
            if entry == work_dir:
                continue
            report.scanned += 1
            try:
                if now - entry.stat().st_mtime <= max_age_s:
                    continue
                if entry.is_dir():
                    shutil.rmtree(entry)
                else:
                    entry.unlink()
            except FileNotFoundError:
                continue
            except OSError:
                logger.exception("sweep: failed to delete %s", entry.name)
                report.failed.append(entry.name)
                continue
            if entry.parent == self.root:
                report.deleted.append(entry.name)
            logger.info("sweep: deleted expired %s", entry.name)
        return report
