"""PDF recompression with Ghostscript."""

from __future__ import annotations

from pathlib import Path

from fileforge.engines.base import EngineContext, ExternalEngine
from fileforge.pipeline.strategy import PdfQuality, Strategy, StrategyKind, pdf_quality_for
from fileforge.utils.binaries import resolve_binary


def build_pdf_compress_args(gs_bin: str, input_path: Path, output_path: Path, quality: PdfQuality) -> list[str]:
    return [
        gs_bin,
        "-sDEVICE=pdfwrite",
        "-dCompatibilityLevel=1.4",
        "-dNOPAUSE",
        "-dQUIET",
        "-dBATCH",
        "-dSAFER",
        f"-dPDFSETTINGS=/{quality.pdf_settings}",
        "-dColorImageDownsampleType=/Bicubic",
        f"-dColorImageResolution={quality.resolution_dpi}",
        f"-sOutputFile={output_path}",
        str(input_path),
    ]


class GhostscriptEngine(ExternalEngine):
    name = "ghostscript"
    kinds = frozenset({StrategyKind.PDF_RECOMPRESS})

    def __init__(self, gs_bin: str = "gs") -> None:
        self.gs_bin = resolve_binary(gs_bin, "gs", "gswin64c")

    def required_binaries(self) -> dict[str, str | None]:
        return {"gs": self.gs_bin}

    async def run(
        self,
        strategy: Strategy,
        input_path: Path,
        output_path: Path,
        ctx: EngineContext,
    ) -> None:
        self.ensure_available()
        quality = strategy.pdf_quality or pdf_quality_for(None)
        await self._exec(build_pdf_compress_args(str(self.gs_bin), input_path, output_path, quality), ctx)
