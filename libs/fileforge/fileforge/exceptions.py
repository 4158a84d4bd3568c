"""FileForge exception hierarchy."""

from __future__ import annotations

from fileforge.error_codes import ErrorCode


class FileForgeError(Exception):
    """Base error for FileForge."""

    error_code: ErrorCode = ErrorCode.UNKNOWN
    status_code: int = 500

    def __init__(self, message: str = "") -> None:
        super().__init__(message)
        self.message = message


class ConfigurationError(FileForgeError):
    """Raised when configuration or startup requirements are invalid."""


class ValidationError(FileForgeError):
    """Raised when a request is rejected before any work is done."""

    error_code = ErrorCode.VALIDATION_ERROR
    status_code = 400


class UnsupportedMediaError(ValidationError):
    """Raised when a name or MIME type maps to no known category."""


class InvalidRequestError(ValidationError):
    """Raised for (category, operation, target) triples outside the legality matrix."""


class ArtifactNotFoundError(FileForgeError):
    """Raised when an artifact id is unknown, malformed or expired."""

    error_code = ErrorCode.NOT_FOUND
    status_code = 404

    def __init__(self, artifact_id: str) -> None:
        super().__init__("File not found")
        self.artifact_id = artifact_id


class StorageError(FileForgeError):
    """Raised when the artifact store cannot read or write."""

    error_code = ErrorCode.STORAGE_ERROR


class ArtifactTooLargeError(StorageError):
    """Raised when an upload exceeds the configured ceiling."""

    error_code = ErrorCode.FILE_TOO_LARGE
    status_code = 413

    def __init__(self, max_bytes: int) -> None:
        super().__init__(f"File too large (limit {max_bytes} bytes)")
        self.max_bytes = max_bytes


class EngineError(FileForgeError):
    """Raised when an external engine invocation fails.

    `message` is safe to show to clients; `detail` holds diagnostics
    (command, exit code, captured output) and is only ever logged.
    """

    error_code = ErrorCode.ENGINE_ERROR

    def __init__(
        self,
        engine: str,
        message: str,
        *,
        detail: str | None = None,
        error_code: ErrorCode | None = None,
    ) -> None:
        super().__init__(message)
        self.engine = engine
        self.detail = detail
        self.error_id: str | None = None
        if error_code is not None:
            self.error_code = error_code

    def __str__(self) -> str:
        return f"{self.engine}: {self.message}"


class EngineTimeoutError(EngineError):
    """Raised when an external process exceeds its time budget and was killed."""

    error_code = ErrorCode.ENGINE_TIMEOUT

    def __init__(self, engine: str, timeout_s: float, *, detail: str | None = None) -> None:
        super().__init__(engine, f"Processing timed out after {timeout_s:g}s", detail=detail)
        self.timeout_s = timeout_s


class EngineUnavailableError(EngineError):
    """Raised when an engine's binary cannot be resolved."""

    error_code = ErrorCode.ENGINE_UNAVAILABLE


class InvalidJobTransitionError(FileForgeError):
    """Raised when a job is moved out of a terminal state or skips a state."""


class JobNotFoundError(FileForgeError):
    """Raised when a job id is unknown or was evicted."""

    error_code = ErrorCode.NOT_FOUND
    status_code = 404

    def __init__(self, job_id: str) -> None:
        super().__init__("Job not found")
        self.job_id = job_id
