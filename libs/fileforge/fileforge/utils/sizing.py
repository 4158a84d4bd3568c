"""Size-budget math shared by the image and video strategies."""

from __future__ import annotations

import math

# 1 MB of budget is treated as one megapixel of image area.
PIXELS_PER_MB = 1_000_000
# The scale factor is rounded before flooring so 4000x3000 at 5 MB gives 2582x1936.
SCALE_DECIMALS = 4
_SCALE_UNIT = 10**SCALE_DECIMALS
AUDIO_BITRATE_KBPS = 128


def downscaled_dimensions(width: int, height: int, max_size_mb: float) -> tuple[int, int] | None:
    """Return floored (width, height) that fit the pixel ceiling, or None if already within it.

    Both sides are scaled by sqrt(ceiling / area), preserving aspect ratio.
    """
    if width <= 0 or height <= 0:
        raise ValueError("image dimensions must be positive")
    if max_size_mb <= 0:
        raise ValueError("max_size_mb must be positive")
    area = width * height
    ceiling = max_size_mb * PIXELS_PER_MB
    if area <= ceiling:
        return None
    scale_units = round(math.sqrt(ceiling / area) * _SCALE_UNIT)
    return max(1, width * scale_units // _SCALE_UNIT), max(1, height * scale_units // _SCALE_UNIT)


def target_bitrate_kbps(max_size_mb: float, duration_s: float) -> int:
    """Video bitrate (kbps, floored) that fits `max_size_mb` over `duration_s` seconds."""
    if duration_s <= 0:
        raise ValueError("duration must be positive")
    if max_size_mb <= 0:
        raise ValueError("max_size_mb must be positive")
    return int(math.floor((max_size_mb * 1024 * 8) / duration_s))
