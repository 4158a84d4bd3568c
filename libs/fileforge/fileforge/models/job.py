"""Job model (one transform request against one source artifact)."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any
from uuid import uuid4

from fileforge.error_codes import ErrorCode
from fileforge.exceptions import InvalidJobTransitionError
from fileforge.models.options import ProcessingOptions


class JobStatus(str, Enum):
    PENDING = "pending"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.SUCCEEDED, JobStatus.FAILED)


class JobOperation(str, Enum):
    COMPRESS = "compress"
    CONVERT = "convert"


def _utcnow() -> datetime:
    return datetime.now(tz=timezone.utc)


def _dt_to_iso(dt: datetime | None) -> str | None:
    return dt.isoformat() if dt is not None else None


@dataclass
class Job:
    source_artifact_id: str
    operation: JobOperation
    options: ProcessingOptions = field(default_factory=ProcessingOptions)
    id: str = field(default_factory=lambda: uuid4().hex)
    status: JobStatus = JobStatus.PENDING
    strategy: str | None = None
    result_artifact_id: str | None = None
    original_size: int | None = None
    result_size: int | None = None
    ratio: float | None = None
    error_kind: ErrorCode | None = None
    error_message: str | None = None
    created_at: datetime = field(default_factory=_utcnow)
    started_at: datetime | None = None
    completed_at: datetime | None = None

    def _require(self, *allowed: JobStatus) -> None:
        if self.status not in allowed:
            raise InvalidJobTransitionError(
                f"job {self.id} is {self.status.value}; expected one of "
                + ", ".join(s.value for s in allowed)
            )

    def start(self, strategy: str | None = None) -> None:
        self._require(JobStatus.PENDING)
        self.status = JobStatus.RUNNING
        self.strategy = strategy
        self.started_at = _utcnow()

    def succeed(self, *, result_artifact_id: str, original_size: int, result_size: int) -> None:
        self._require(JobStatus.RUNNING)
        self.status = JobStatus.SUCCEEDED
        self.result_artifact_id = result_artifact_id
        self.original_size = int(original_size)
        self.result_size = int(result_size)
        self.ratio = round(result_size / original_size, 2) if original_size > 0 else None
        self.completed_at = _utcnow()

    def fail(self, error_kind: ErrorCode | str, message: str) -> None:
        """Record a failure. Validation failures may fail a job that never started."""
        self._require(JobStatus.PENDING, JobStatus.RUNNING)
        self.status = JobStatus.FAILED
        self.error_kind = ErrorCode(error_kind)
        self.error_message = message
        self.completed_at = _utcnow()

    @property
    def saved_bytes(self) -> int | None:
        if self.original_size is None or self.result_size is None:
            return None
        return self.original_size - self.result_size

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "source_artifact_id": self.source_artifact_id,
            "operation": self.operation.value,
            "options": self.options.to_dict(),
            "status": self.status.value,
            "strategy": self.strategy,
            "result_artifact_id": self.result_artifact_id,
            "original_size": self.original_size,
            "result_size": self.result_size,
            "ratio": self.ratio,
            "error_kind": self.error_kind.value if self.error_kind is not None else None,
            "error_message": self.error_message,
            "created_at": _dt_to_iso(self.created_at),
            "started_at": _dt_to_iso(self.started_at),
            "completed_at": _dt_to_iso(self.completed_at),
        }
