"""Request/response models for the HTTP contract (camelCase on the wire)."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class UploadedFile(_CamelModel):
    id: str
    original_name: str
    filename: str
    size: int
    mimetype: str


class UploadResponse(_CamelModel):
    success: bool = True
    count: int
    data: list[UploadedFile]


class MessageResponse(_CamelModel):
    success: bool = True
    message: str


class CompressionRequest(_CamelModel):
    quality: int | str | None = None
    format: str | None = None
    max_size: float | None = None


class CompressionResult(_CamelModel):
    id: str
    original_size: int
    compressed_size: int
    compression_ratio: float | None
    saved_space: int
    job_id: str


class CompressionResponse(_CamelModel):
    success: bool = True
    data: CompressionResult


class ConversionOptions(_CamelModel):
    format: str | None = None


class ConversionRequest(_CamelModel):
    format: str | None = None
    options: ConversionOptions | None = None

    def target_format(self) -> str | None:
        if self.options is not None and self.options.format:
            return self.options.format
        return self.format


class ConversionResult(_CamelModel):
    id: str
    original_size: int
    converted_size: int
    original_format: str
    new_format: str
    job_id: str


class ConversionResponse(_CamelModel):
    success: bool = True
    data: ConversionResult


class JobResponse(_CamelModel):
    id: str
    status: str
    operation: str
    source_artifact_id: str
    strategy: str | None = None
    result_artifact_id: str | None = None
    original_size: int | None = None
    result_size: int | None = None
    ratio: float | None = None
    error_kind: str | None = None
    error_message: str | None = None
    created_at: str
    started_at: str | None = None
    completed_at: str | None = None


class EngineHealth(_CamelModel):
    name: str
    available: bool
    kinds: list[str]
    binaries: dict[str, str | None]
    detail: str | None = None


class EngineHealthResponse(_CamelModel):
    status: str  # "healthy" | "degraded"
    engines: list[EngineHealth]
