"""Transform strategy selection.

`select()` maps (source category, operation, target format) to exactly one
`Strategy` or raises `InvalidRequestError`. It never touches the filesystem,
so illegal requests are rejected before any engine is started.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from fileforge.exceptions import InvalidRequestError, ValidationError
from fileforge.models.job import JobOperation
from fileforge.models.options import ProcessingOptions
from fileforge.pipeline.classifier import (
    IMAGE_FORMATS,
    VIDEO_FORMATS,
    MediaCategory,
    normalize_extension,
)


class StrategyKind(str, Enum):
    IMAGE_RECOMPRESS = "image-recompress"
    IMAGE_REFORMAT = "image-reformat"
    IMAGE_TO_PDF = "image-to-pdf"
    PDF_RECOMPRESS = "pdf-recompress"
    PDF_TO_IMAGE = "pdf-to-image"
    VIDEO_RECOMPRESS = "video-recompress"
    VIDEO_REFORMAT = "video-reformat"
    OFFICE_TO_PDF = "office-to-pdf"


@dataclass(frozen=True)
class PdfQuality:
    pdf_settings: str  # Ghostscript -dPDFSETTINGS preset name
    resolution_dpi: int


@dataclass(frozen=True)
class VideoQuality:
    crf: int
    preset: str


PDF_QUALITY_TIERS: dict[str, PdfQuality] = {
    "low": PdfQuality("screen", 72),
    "medium": PdfQuality("ebook", 150),
    "high": PdfQuality("printer", 300),
}
# Accepted for compatibility; resolves like the default tier.
PDF_TIER_ALIASES: dict[str, str] = {"prepress": "medium"}

VIDEO_QUALITY_TIERS: dict[str, VideoQuality] = {
    "low": VideoQuality(28, "fast"),
    "medium": VideoQuality(23, "medium"),
    "high": VideoQuality(18, "slow"),
}

DEFAULT_TIER = "medium"
DEFAULT_IMAGE_QUALITY = 80

# (category, operation) -> legal target formats. Compression targets of
# None mean "same as source".
LEGAL_TARGETS: dict[tuple[MediaCategory, JobOperation], frozenset[str]] = {
    (MediaCategory.IMAGE, JobOperation.COMPRESS): IMAGE_FORMATS,
    (MediaCategory.IMAGE, JobOperation.CONVERT): IMAGE_FORMATS | {"pdf"},
    (MediaCategory.PDF, JobOperation.COMPRESS): frozenset({"pdf"}),
    (MediaCategory.PDF, JobOperation.CONVERT): IMAGE_FORMATS,
    (MediaCategory.VIDEO, JobOperation.COMPRESS): VIDEO_FORMATS,
    (MediaCategory.VIDEO, JobOperation.CONVERT): VIDEO_FORMATS,
    (MediaCategory.OFFICE, JobOperation.COMPRESS): frozenset(),
    (MediaCategory.OFFICE, JobOperation.CONVERT): frozenset({"pdf"}),
}


@dataclass(frozen=True)
class Strategy:
    kind: StrategyKind
    source_category: MediaCategory
    source_format: str
    target_format: str
    image_quality: int | None = None
    pdf_quality: PdfQuality | None = None
    video_quality: VideoQuality | None = None
    max_size_mb: float | None = None

    @property
    def operation(self) -> JobOperation:
        if self.kind in (
            StrategyKind.IMAGE_RECOMPRESS,
            StrategyKind.PDF_RECOMPRESS,
            StrategyKind.VIDEO_RECOMPRESS,
        ):
            return JobOperation.COMPRESS
        return JobOperation.CONVERT


def legal_targets(category: MediaCategory, operation: JobOperation) -> frozenset[str]:
    return LEGAL_TARGETS[(MediaCategory(category), JobOperation(operation))]


def resolve_tier(quality: int | str | None) -> str:
    """Map a tier name onto low/medium/high.

    Numeric qualities (the image slider value) carry no tier and resolve to
    the default.
    """
    if quality is None or isinstance(quality, int):
        return DEFAULT_TIER
    name = str(quality).strip().lower()
    name = PDF_TIER_ALIASES.get(name, name)
    if name not in VIDEO_QUALITY_TIERS:
        raise ValidationError(f"Unknown quality tier: {quality!r} (expected low/medium/high)")
    return name


def pdf_quality_for(quality: int | str | None) -> PdfQuality:
    return PDF_QUALITY_TIERS[resolve_tier(quality)]


def video_quality_for(quality: int | str | None) -> VideoQuality:
    return VIDEO_QUALITY_TIERS[resolve_tier(quality)]


def _image_quality(quality: int | str | None, *, default: int | None) -> int | None:
    if quality is None:
        return default
    if not isinstance(quality, int):
        raise ValidationError("image quality must be an integer between 1 and 100")
    return quality


def select(
    category: MediaCategory,
    operation: JobOperation,
    target_format: str | None,
    *,
    source_format: str,
    options: ProcessingOptions | None = None,
) -> Strategy:
    """Pick the strategy for a request or raise InvalidRequestError."""
    category = MediaCategory(category)
    operation = JobOperation(operation)
    opts = options or ProcessingOptions()
    source = normalize_extension(source_format)
    target = normalize_extension(target_format) if target_format else None

    if operation is JobOperation.COMPRESS:
        return _select_compress(category, source, target, opts)
    return _select_convert(category, source, target, opts)


def _select_compress(
    category: MediaCategory, source: str, target: str | None, opts: ProcessingOptions
) -> Strategy:
    match category:
        case MediaCategory.IMAGE:
            target = target or source
            if target not in IMAGE_FORMATS:
                raise InvalidRequestError("Images can only be compressed to JPG, PNG, WebP or GIF")
            return Strategy(
                kind=StrategyKind.IMAGE_RECOMPRESS,
                source_category=category,
                source_format=source,
                target_format=target,
                image_quality=_image_quality(opts.quality, default=DEFAULT_IMAGE_QUALITY),
                max_size_mb=opts.max_size_mb,
            )
        case MediaCategory.PDF:
            if target not in (None, "pdf"):
                raise InvalidRequestError("PDFs can only be compressed to PDF")
            return Strategy(
                kind=StrategyKind.PDF_RECOMPRESS,
                source_category=category,
                source_format=source,
                target_format="pdf",
                pdf_quality=pdf_quality_for(opts.quality),
            )
        case MediaCategory.VIDEO:
            target = target or source
            if target not in VIDEO_FORMATS:
                raise InvalidRequestError("Videos can only be compressed to MP4, WebM, MOV or AVI")
            return Strategy(
                kind=StrategyKind.VIDEO_RECOMPRESS,
                source_category=category,
                source_format=source,
                target_format=target,
                video_quality=video_quality_for(opts.quality),
                max_size_mb=opts.max_size_mb,
            )
        case _:
            raise InvalidRequestError(
                "Office documents cannot be compressed; convert them to PDF instead"
            )


def _select_convert(
    category: MediaCategory, source: str, target: str | None, opts: ProcessingOptions
) -> Strategy:
    if target is None:
        if category is not MediaCategory.OFFICE:
            raise ValidationError("Format is required for conversion")
        target = "pdf"

    def _strategy(kind: StrategyKind, **extra) -> Strategy:  # noqa: ANN003
        return Strategy(
            kind=kind,
            source_category=category,
            source_format=source,
            target_format=target,
            **extra,
        )

    match category:
        case MediaCategory.OFFICE:
            if target != "pdf":
                raise InvalidRequestError("Office documents can only be converted to PDF")
            return _strategy(StrategyKind.OFFICE_TO_PDF)
        case MediaCategory.IMAGE:
            if target == "pdf":
                return _strategy(StrategyKind.IMAGE_TO_PDF)
            if target in IMAGE_FORMATS:
                return _strategy(
                    StrategyKind.IMAGE_REFORMAT,
                    image_quality=_image_quality(opts.quality, default=None),
                )
            raise InvalidRequestError("Images can only be converted to JPG, PNG, WebP, GIF or PDF")
        case MediaCategory.VIDEO:
            if target not in VIDEO_FORMATS:
                raise InvalidRequestError("Videos can only be converted to MP4, WebM, MOV or AVI")
            return _strategy(StrategyKind.VIDEO_REFORMAT)
        case _:
            if target not in IMAGE_FORMATS:
                raise InvalidRequestError(
                    "PDFs can only be converted to image formats (JPG, PNG, WebP, GIF)"
                )
            return _strategy(StrategyKind.PDF_TO_IMAGE)
