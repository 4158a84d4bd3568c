"""Image <-> PDF rasterization with ImageMagick."""

from __future__ import annotations

from pathlib import Path

from fileforge.exceptions import EngineError
from fileforge.engines.base import EngineContext, ExternalEngine
from fileforge.pipeline.strategy import Strategy, StrategyKind
from fileforge.utils.binaries import resolve_binary

PDF_RASTER_DENSITY = 150


def build_image_to_pdf_args(magick_bin: str, input_path: Path, output_path: Path) -> list[str]:
    return [magick_bin, str(input_path), str(output_path)]


def build_pdf_to_image_args(magick_bin: str, input_path: Path, output_path: Path) -> list[str]:
    # "[0]" selects the first page only.
    return [
        magick_bin,
        "-density",
        str(PDF_RASTER_DENSITY),
        f"{input_path}[0]",
        "-background",
        "white",
        "-alpha",
        "remove",
        str(output_path),
    ]


class ImageMagickEngine(ExternalEngine):
    name = "imagemagick"
    kinds = frozenset({StrategyKind.IMAGE_TO_PDF, StrategyKind.PDF_TO_IMAGE})

    def __init__(self, magick_bin: str = "magick") -> None:
        # ImageMagick 6 ships `convert` only.
        self.magick_bin = resolve_binary(magick_bin, "magick", "convert")

    def required_binaries(self) -> dict[str, str | None]:
        return {"magick": self.magick_bin}

    async def run(
        self,
        strategy: Strategy,
        input_path: Path,
        output_path: Path,
        ctx: EngineContext,
    ) -> None:
        self.ensure_available()
        magick = str(self.magick_bin)
        match strategy.kind:
            case StrategyKind.IMAGE_TO_PDF:
                args = build_image_to_pdf_args(magick, input_path, output_path)
            case StrategyKind.PDF_TO_IMAGE:
                args = build_pdf_to_image_args(magick, input_path, output_path)
            case _:
                raise EngineError(self.name, "Unsupported conversion", detail=strategy.kind.value)
        await self._exec(args, ctx)
