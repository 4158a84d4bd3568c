"""External processing engines."""

from fileforge.engines.base import Engine, EngineContext, EngineStatus, ExternalEngine
from fileforge.engines.registry import EngineRegistry, build_engine_registry

__all__ = [
    "Engine",
    "EngineContext",
    "EngineRegistry",
    "EngineStatus",
    "ExternalEngine",
    "build_engine_registry",
]
