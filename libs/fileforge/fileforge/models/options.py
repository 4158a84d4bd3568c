"""Request-scoped processing options."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from fileforge.exceptions import ValidationError

KEEP_ORIGINAL = "original"


@dataclass(frozen=True)
class ProcessingOptions:
    """Normalized options for one transform request.

    `quality` is either an integer in [1, 100] or a tier name (validated
    later by the strategy selector). `format` is a lowercase extension, or
    None for "keep original".
    """

    quality: int | str | None = None
    format: str | None = None
    max_size_mb: float | None = None

    @classmethod
    def parse(
        cls,
        *,
        quality: Any = None,
        format: Any = None,
        max_size_mb: Any = None,
    ) -> "ProcessingOptions":
        return cls(
            quality=_parse_quality(quality),
            format=_parse_format(format),
            max_size_mb=_parse_max_size(max_size_mb),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "quality": self.quality,
            "format": self.format or KEEP_ORIGINAL,
            "max_size_mb": self.max_size_mb,
        }


def _parse_quality(value: Any) -> int | str | None:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise ValidationError("quality must be an integer 1-100 or a tier name")
    if isinstance(value, (int, float)):
        q = int(value)
    else:
        raw = str(value).strip().lower()
        if not raw.lstrip("-").isdigit():
            return raw
        q = int(raw)
    if not 1 <= q <= 100:
        raise ValidationError("quality must be between 1 and 100")
    return q


def _parse_format(value: Any) -> str | None:
    raw = str(value or "").strip().lower().lstrip(".")
    if not raw or raw == KEEP_ORIGINAL:
        return None
    return raw


def _parse_max_size(value: Any) -> float | None:
    if value is None or value == "":
        return None
    try:
        size = float(value)
    except (TypeError, ValueError) as exc:
        raise ValidationError("maxSize must be a number of megabytes") from exc
    if size <= 0:
        raise ValidationError("maxSize must be positive")
    return size
