"""External binary resolution helpers.

Prefer the configured path, then `PATH`; for ffmpeg fall back to the
`imageio-ffmpeg` bundled binary.
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

logger = logging.getLogger(__name__)


def resolve_binary(binary: str, *alternatives: str) -> str | None:
    """Return an executable path for `binary` (or the first alternative found)."""
    for candidate in (binary, *alternatives):
        candidate = (candidate or "").strip()
        if not candidate:
            continue
        p = Path(candidate)
        if p.is_absolute() or len(p.parts) > 1:
            if p.is_file():
                return str(p)
            continue
        found = shutil.which(candidate)
        if found:
            return found
    return None


def resolve_ffmpeg_bin(ffmpeg_bin: str = "ffmpeg") -> str | None:
    found = resolve_binary(ffmpeg_bin or "ffmpeg")
    if found:
        return found

    try:
        import imageio_ffmpeg

        return str(imageio_ffmpeg.get_ffmpeg_exe())
    except Exception as exc:
        logger.warning("failed to resolve bundled ffmpeg (%s)", exc)
        return None
