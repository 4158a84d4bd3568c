"""Office document to PDF conversion with headless LibreOffice."""

from __future__ import annotations

import os
import shutil
from pathlib import Path
from uuid import uuid4

from fileforge.exceptions import EngineError
from fileforge.engines.base import EngineContext, ExternalEngine
from fileforge.pipeline.strategy import Strategy, StrategyKind
from fileforge.utils.binaries import resolve_binary


def build_convert_args(soffice_bin: str, input_path: Path, out_dir: Path, profile_dir: Path) -> list[str]:
    return [
        soffice_bin,
        f"-env:UserInstallation={profile_dir.as_uri()}",
        "--headless",
        "--norestore",
        "--convert-to",
        "pdf",
        "--outdir",
        str(out_dir),
        str(input_path),
    ]


class LibreOfficeEngine(ExternalEngine):
    name = "libreoffice"
    kinds = frozenset({StrategyKind.OFFICE_TO_PDF})

    def __init__(self, soffice_bin: str = "soffice") -> None:
        self.soffice_bin = resolve_binary(soffice_bin, "soffice", "libreoffice")

    def required_binaries(self) -> dict[str, str | None]:
        return {"soffice": self.soffice_bin}

    async def run(
        self,
        strategy: Strategy,
        input_path: Path,
        output_path: Path,
        ctx: EngineContext,
    ) -> None:
        self.ensure_available()
        # Each run gets its own profile and output directory; LibreOffice
        # refuses to share a profile between concurrent processes.
        scratch = ctx.work_dir / f"lo-{uuid4().hex}"
        profile_dir = scratch / "profile"
        out_dir = scratch / "out"
        out_dir.mkdir(parents=True, exist_ok=True)
        try:
            result = await self._exec(
                build_convert_args(str(self.soffice_bin), input_path, out_dir, profile_dir),
                ctx,
                cwd=str(scratch),
            )
            produced = out_dir / f"{input_path.stem}.pdf"
            if not produced.is_file():
                raise EngineError(
                    self.name,
                    "Conversion produced no output",
                    detail=f"expected {produced.name}\n{result.output_tail()}",
                )
            os.replace(produced, output_path)
        finally:
            shutil.rmtree(scratch, ignore_errors=True)
