"""Engine abstractions.

An engine turns one input file into one output file for a fixed set of
strategy kinds. External engines run structured argument lists (never a
shell string) through `run_subprocess`.
"""

from __future__ import annotations

import subprocess
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path

from fileforge.exceptions import EngineError, EngineTimeoutError, EngineUnavailableError
from fileforge.pipeline.strategy import Strategy, StrategyKind
from fileforge.utils.subprocess import RunResult, run_subprocess


@dataclass(frozen=True)
class EngineContext:
    """Per-invocation limits and scratch space."""

    work_dir: Path
    timeout_s: float
    deadline: float  # time.monotonic() based

    @classmethod
    def start(cls, work_dir: Path, timeout_s: float) -> "EngineContext":
        return cls(work_dir=work_dir, timeout_s=float(timeout_s), deadline=time.monotonic() + float(timeout_s))

    def remaining(self) -> float:
        return self.deadline - time.monotonic()


@dataclass(frozen=True)
class EngineStatus:
    name: str
    available: bool
    kinds: list[str]
    binaries: dict[str, str | None] = field(default_factory=dict)
    detail: str | None = None

    def to_dict(self) -> dict[str, object]:
        return {
            "name": self.name,
            "available": self.available,
            "kinds": list(self.kinds),
            "binaries": dict(self.binaries),
            "detail": self.detail,
        }


class Engine(ABC):
    name: str = "engine"
    kinds: frozenset[StrategyKind] = frozenset()

    def required_binaries(self) -> dict[str, str | None]:
        """Logical binary name -> resolved path (None if missing)."""
        return {}

    def optional_binaries(self) -> dict[str, str | None]:
        return {}

    def status(self) -> EngineStatus:
        required = self.required_binaries()
        missing = [k for k, v in required.items() if not v]
        return EngineStatus(
            name=self.name,
            available=not missing,
            kinds=sorted(k.value for k in self.kinds),
            binaries={**required, **self.optional_binaries()},
            detail=f"missing: {', '.join(missing)}" if missing else None,
        )

    def ensure_available(self) -> None:
        status = self.status()
        if not status.available:
            raise EngineUnavailableError(
                self.name, "Processing engine is not available", detail=status.detail
            )

    @abstractmethod
    async def run(
        self,
        strategy: Strategy,
        input_path: Path,
        output_path: Path,
        ctx: EngineContext,
    ) -> None:
        """Write the transformed file to `output_path` or raise EngineError."""


class ExternalEngine(Engine):
    """Engine backed by command line tools."""

    async def _exec(
        self,
        args: list[str],
        ctx: EngineContext,
        *,
        cwd: str | None = None,
        env: dict[str, str] | None = None,
    ) -> RunResult:
        remaining = ctx.remaining()
        if remaining <= 0:
            raise EngineTimeoutError(self.name, ctx.timeout_s, detail=f"cmd: {args!r} (not started)")
        try:
            result = await run_subprocess(args, timeout_s=remaining, cwd=cwd, env=env)
        except subprocess.TimeoutExpired as exc:
            raise EngineTimeoutError(self.name, ctx.timeout_s, detail=f"cmd: {args!r}") from exc
        except FileNotFoundError as exc:
            raise EngineUnavailableError(
                self.name, "Processing engine is not available", detail=f"binary not found: {args[0]}"
            ) from exc
        except OSError as exc:
            raise EngineError(self.name, "Processing failed", detail=f"cmd: {args!r}\n{exc}") from exc
        if result.returncode != 0:
            raise EngineError(
                self.name,
                "Processing failed",
                detail=f"cmd: {args!r}\ncode: {result.returncode}\n{result.output_tail()}",
            )
        return result
