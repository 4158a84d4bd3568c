"""Artifact storage backends."""

from fileforge.config import Settings
from fileforge.storage.artifact_store import (
    ArtifactStore,
    LocalArtifactStore,
    SweepReport,
    is_valid_artifact_id,
)


def get_artifact_store(settings: Settings) -> LocalArtifactStore:
    return LocalArtifactStore(
        settings.storage.temp_dir,
        max_bytes=settings.storage.max_upload_bytes,
        max_age_s=settings.storage.retention_max_age_s,
    )


__all__ = [
    "ArtifactStore",
    "LocalArtifactStore",
    "SweepReport",
    "get_artifact_store",
    "is_valid_artifact_id",
]
