"""Raster image recompression and reformatting with Pillow (in-process)."""

from __future__ import annotations

import asyncio
import logging
import os
from pathlib import Path
from uuid import uuid4

from PIL import Image, UnidentifiedImageError

from fileforge.exceptions import EngineError, EngineTimeoutError
from fileforge.engines.base import Engine, EngineContext
from fileforge.pipeline.strategy import Strategy, StrategyKind
from fileforge.utils.sizing import downscaled_dimensions

logger = logging.getLogger(__name__)

PIL_FORMATS: dict[str, str] = {
    "jpg": "JPEG",
    "jpeg": "JPEG",
    "png": "PNG",
    "webp": "WEBP",
    "gif": "GIF",
}


def _flatten_alpha(img: Image.Image) -> Image.Image:
    if img.mode in ("RGB", "L"):
        return img
    if img.mode in ("RGBA", "LA") or (img.mode == "P" and "transparency" in img.info):
        rgba = img.convert("RGBA")
        background = Image.new("RGB", rgba.size, (255, 255, 255))
        background.paste(rgba, mask=rgba.getchannel("A"))
        return background
    return img.convert("RGB")


def encode_image(
    input_path: Path,
    output_path: Path,
    *,
    target_format: str,
    quality: int | None = None,
    max_size_mb: float | None = None,
) -> tuple[int, int]:
    """Re-encode one image; returns the written (width, height)."""
    pil_format = PIL_FORMATS[target_format]
    with Image.open(input_path) as src:
        img: Image.Image = src
        img.load()
        if max_size_mb:
            dims = downscaled_dimensions(img.width, img.height, max_size_mb)
            if dims is not None:
                img = img.resize(dims, Image.Resampling.LANCZOS)

        save_kwargs: dict[str, object] = {}
        if pil_format == "JPEG":
            img = _flatten_alpha(img)
            save_kwargs["optimize"] = True
            if quality is not None:
                save_kwargs["quality"] = int(quality)
        elif pil_format == "WEBP":
            if quality is not None:
                save_kwargs["quality"] = int(quality)
        elif pil_format == "PNG":
            save_kwargs["optimize"] = True

        img.save(output_path, format=pil_format, **save_kwargs)
        return img.width, img.height


class PillowEngine(Engine):
    name = "pillow"
    kinds = frozenset({StrategyKind.IMAGE_RECOMPRESS, StrategyKind.IMAGE_REFORMAT})

    async def run(
        self,
        strategy: Strategy,
        input_path: Path,
        output_path: Path,
        ctx: EngineContext,
    ) -> None:
        if strategy.target_format not in PIL_FORMATS:
            raise EngineError(self.name, "Unsupported image format", detail=strategy.target_format)

        # Encode into scratch space and move into place only if we did not time out;
        # a worker thread cannot be killed, so a late write must not land on the output.
        scratch = ctx.work_dir / f"{uuid4().hex}.{strategy.target_format}"
        try:
            width, height = await asyncio.wait_for(
                asyncio.to_thread(
                    encode_image,
                    input_path,
                    scratch,
                    target_format=strategy.target_format,
                    quality=strategy.image_quality,
                    max_size_mb=strategy.max_size_mb,
                ),
                timeout=max(0.0, ctx.remaining()),
            )
        except asyncio.TimeoutError as exc:
            raise EngineTimeoutError(self.name, ctx.timeout_s, detail=str(input_path.name)) from exc
        except (UnidentifiedImageError, OSError, ValueError) as exc:
            scratch.unlink(missing_ok=True)
            raise EngineError(
                self.name, "Image processing failed", detail=f"{input_path.name}: {exc}"
            ) from exc
        os.replace(scratch, output_path)
        logger.debug("pillow wrote %s (%dx%d)", output_path.name, width, height)
