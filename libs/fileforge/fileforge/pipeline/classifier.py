"""Map file names / MIME types to a media category."""

from __future__ import annotations

from enum import Enum
from pathlib import PurePosixPath

from fileforge.exceptions import UnsupportedMediaError


class MediaCategory(str, Enum):
    IMAGE = "image"
    VIDEO = "video"
    PDF = "pdf"
    OFFICE = "office"


IMAGE_FORMATS: frozenset[str] = frozenset({"jpg", "jpeg", "png", "webp", "gif"})
VIDEO_FORMATS: frozenset[str] = frozenset({"mp4", "webm", "mov", "avi"})
OFFICE_FORMATS: frozenset[str] = frozenset({"doc", "docx", "xls", "xlsx", "ppt", "pptx"})

EXTENSION_CATEGORIES: dict[str, MediaCategory] = {
    **{ext: MediaCategory.IMAGE for ext in IMAGE_FORMATS},
    **{ext: MediaCategory.VIDEO for ext in VIDEO_FORMATS},
    **{ext: MediaCategory.OFFICE for ext in OFFICE_FORMATS},
    "pdf": MediaCategory.PDF,
}

# MIME type -> canonical extension (the extension the stored artifact gets).
MIME_EXTENSIONS: dict[str, str] = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/gif": "gif",
    "image/webp": "webp",
    "image/svg+xml": "svg",
    "video/mp4": "mp4",
    "video/webm": "webm",
    "video/quicktime": "mov",
    "video/x-msvideo": "avi",
    "application/pdf": "pdf",
    "application/msword": "doc",
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document": "docx",
    "application/vnd.ms-excel": "xls",
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet": "xlsx",
    "application/vnd.ms-powerpoint": "ppt",
    "application/vnd.openxmlformats-officedocument.presentationml.presentation": "pptx",
}

# Uploads accept everything in MIME_EXTENSIONS. SVG is storable but maps to no
# transform category.
ALLOWED_UPLOAD_MIME_TYPES: frozenset[str] = frozenset(MIME_EXTENSIONS)

EXTENSION_MIME_TYPES: dict[str, str] = {ext: mime for mime, ext in MIME_EXTENSIONS.items()}
EXTENSION_MIME_TYPES["jpeg"] = "image/jpeg"


def normalize_extension(value: str) -> str:
    """Lowercase extension of a file name, or the value itself if it has no dot."""
    raw = str(value or "").strip().lower()
    suffix = PurePosixPath(raw).suffix
    return (suffix or raw).lstrip(".")


def media_type_for(extension: str) -> str:
    return EXTENSION_MIME_TYPES.get(normalize_extension(extension), "application/octet-stream")


def classify(name_or_mime: str) -> MediaCategory:
    """Classify a file name, bare extension or MIME type.

    Raises UnsupportedMediaError for anything outside the accepted table.
    """
    raw = str(name_or_mime or "").strip().lower()
    if "/" in raw and raw.split(";", 1)[0].strip() in MIME_EXTENSIONS:
        ext = MIME_EXTENSIONS[raw.split(";", 1)[0].strip()]
    else:
        ext = normalize_extension(raw)
    category = EXTENSION_CATEGORIES.get(ext)
    if category is None:
        raise UnsupportedMediaError(f"Unsupported file type: {name_or_mime}")
    return category


def is_same_format(a: str, b: str) -> bool:
    alias = {"jpeg": "jpg"}
    a, b = normalize_extension(a), normalize_extension(b)
    return alias.get(a, a) == alias.get(b, b)
