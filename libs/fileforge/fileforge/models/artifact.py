"""Artifact model."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any


@dataclass(frozen=True)
class Artifact:
    id: str
    path: Path  # never exposed to clients
    size_bytes: int
    media_type: str
    created_at: datetime

    @property
    def extension(self) -> str:
        return self.path.suffix.lstrip(".").lower()

    @property
    def stem(self) -> str:
        return self.path.stem

    @classmethod
    def from_path(cls, path: Path, media_type: str) -> "Artifact":
        st = path.stat()
        return cls(
            id=path.name,
            path=path,
            size_bytes=int(st.st_size),
            media_type=media_type,
            created_at=datetime.fromtimestamp(st.st_mtime, tz=timezone.utc),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "size_bytes": self.size_bytes,
            "media_type": self.media_type,
            "created_at": self.created_at.isoformat(),
        }
