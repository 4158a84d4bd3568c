"""Engine registry: one engine per strategy kind."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from fileforge.config import Settings
from fileforge.exceptions import ConfigurationError
from fileforge.engines.base import Engine, EngineStatus
from fileforge.pipeline.strategy import StrategyKind

logger = logging.getLogger(__name__)


class EngineRegistry:
    def __init__(self, engines: Iterable[Engine]) -> None:
        self._engines: list[Engine] = list(engines)
        self._by_kind: dict[StrategyKind, Engine] = {}
        for engine in self._engines:
            for kind in engine.kinds:
                if kind in self._by_kind:
                    raise ConfigurationError(
                        f"strategy {kind.value} bound to both {self._by_kind[kind].name} and {engine.name}"
                    )
                self._by_kind[kind] = engine

    @property
    def engines(self) -> list[Engine]:
        return list(self._engines)

    def for_strategy(self, kind: StrategyKind) -> Engine:
        engine = self._by_kind.get(StrategyKind(kind))
        if engine is None:
            raise ConfigurationError(f"no engine registered for strategy {kind}")
        return engine

    def statuses(self) -> list[EngineStatus]:
        return [engine.status() for engine in self._engines]

    def check(self, *, strict: bool) -> list[EngineStatus]:
        """Startup doctor: log every engine's status; raise on missing binaries if strict."""
        statuses = self.statuses()
        unbound = [k.value for k in StrategyKind if k not in self._by_kind]
        if unbound:
            raise ConfigurationError(f"no engine registered for: {', '.join(unbound)}")
        missing = [s for s in statuses if not s.available]
        for status in statuses:
            if status.available:
                logger.info("engine ready name=%s binaries=%s", status.name, status.binaries)
            else:
                logger.error("engine unavailable name=%s (%s)", status.name, status.detail)
        if strict and missing:
            raise ConfigurationError(
                "missing external engines: "
                + "; ".join(f"{s.name} ({s.detail})" for s in missing)
                + ". Install them or set ENGINE_STRICT_STARTUP=false."
            )
        return statuses


def build_engine_registry(settings: Settings) -> EngineRegistry:
    from fileforge.engines.ffmpeg import FFmpegEngine
    from fileforge.engines.ghostscript import GhostscriptEngine
    from fileforge.engines.imagemagick import ImageMagickEngine
    from fileforge.engines.libreoffice import LibreOfficeEngine
    from fileforge.engines.pillow import PillowEngine

    cfg = settings.engine
    return EngineRegistry(
        [
            PillowEngine(),
            GhostscriptEngine(cfg.ghostscript_bin),
            FFmpegEngine(cfg.ffmpeg_bin, cfg.ffprobe_bin),
            LibreOfficeEngine(cfg.libreoffice_bin),
            ImageMagickEngine(cfg.imagemagick_bin),
        ]
    )
