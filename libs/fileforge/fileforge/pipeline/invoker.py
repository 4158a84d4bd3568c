"""Engine invoker: runs the engine for a strategy under time and concurrency limits."""

from __future__ import annotations

import asyncio
import logging
import time
from pathlib import Path
from uuid import uuid4

from fileforge.engines.base import EngineContext
from fileforge.engines.registry import EngineRegistry
from fileforge.exceptions import EngineError
from fileforge.models.artifact import Artifact
from fileforge.models.job import JobOperation
from fileforge.pipeline.classifier import is_same_format
from fileforge.pipeline.strategy import Strategy
from fileforge.storage.artifact_store import LocalArtifactStore

logger = logging.getLogger(__name__)


def _output_prefix(strategy: Strategy) -> str:
    return "compressed" if strategy.operation is JobOperation.COMPRESS else "converted"


def output_artifact_candidates(strategy: Strategy, source_id: str) -> list[str]:
    """Preferred output ids, best first: `compressed-<stem>.<ext>` or `<stem>.<ext>`."""
    stem, _, source_ext = source_id.rpartition(".")
    ext = strategy.target_format
    if strategy.operation is JobOperation.COMPRESS:
        return [f"compressed-{stem}.{ext}"]
    if is_same_format(source_ext, ext):
        return [f"converted-{stem}.{ext}"]
    return [f"{stem}.{ext}", f"converted-{stem}.{ext}"]


def output_artifact_id(strategy: Strategy, source_id: str) -> str:
    return output_artifact_candidates(strategy, source_id)[0]


class EngineInvoker:
    def __init__(
        self,
        registry: EngineRegistry,
        store: LocalArtifactStore,
        *,
        timeout_s: float,
        max_concurrency: int = 4,
    ) -> None:
        self.registry = registry
        self.store = store
        self.timeout_s = float(timeout_s)
        self._slots = asyncio.Semaphore(max(1, int(max_concurrency)))
        self._claimed: set[str] = set()

    def _claim_output(self, strategy: Strategy, source: Artifact) -> Path:
        """Reserve an output path that is neither stored nor being written.

        Runs without awaiting, so the check and the reservation are atomic
        with respect to other invocations.
        """
        for candidate in output_artifact_candidates(strategy, source.id):
            path = self.store.path_for(candidate)
            if candidate not in self._claimed and not path.exists():
                self._claimed.add(candidate)
                return path
        candidate = f"{_output_prefix(strategy)}-{uuid4().hex}.{strategy.target_format}"
        self._claimed.add(candidate)
        return self.store.path_for(candidate)

    async def invoke(self, strategy: Strategy, source: Artifact) -> Path:
        """Run the strategy against `source` and return the verified output path.

        The output never replaces an existing artifact. Any failure removes
        the partial output before the error propagates.
        """
        engine = self.registry.for_strategy(strategy.kind)
        engine.ensure_available()

        input_path = self.store.ensure_within_root(source.path)
        work_dir = self.store.ensure_within_root(self.store.work_dir)
        output_path = self._claim_output(strategy, source)

        try:
            async with self._slots:
                ctx = EngineContext.start(work_dir, self.timeout_s)
                started = time.perf_counter()
                try:
                    await engine.run(strategy, input_path, output_path, ctx)
                    self._verify_output(engine.name, output_path)
                except EngineError as exc:
                    output_path.unlink(missing_ok=True)
                    self._log_failure(exc, strategy, source)
                    raise
                except Exception as exc:
                    output_path.unlink(missing_ok=True)
                    wrapped = EngineError(engine.name, "Processing failed", detail=repr(exc))
                    self._log_failure(wrapped, strategy, source)
                    raise wrapped from exc
        finally:
            self._claimed.discard(output_path.name)

        logger.info(
            "engine ok engine=%s strategy=%s source=%s output=%s elapsed_ms=%d",
            engine.name,
            strategy.kind.value,
            source.id,
            output_path.name,
            int((time.perf_counter() - started) * 1000),
        )
        return output_path

    @staticmethod
    def _verify_output(engine_name: str, output_path: Path) -> None:
        try:
            size = output_path.stat().st_size
        except FileNotFoundError:
            size = -1
        if size <= 0:
            raise EngineError(
                engine_name,
                "Processing produced no output",
                detail=f"missing or empty output {output_path.name}",
            )

    @staticmethod
    def _log_failure(exc: EngineError, strategy: Strategy, source: Artifact) -> None:
        exc.error_id = exc.error_id or uuid4().hex[:12]
        logger.error(
            "engine failed error_id=%s engine=%s code=%s strategy=%s source=%s\n%s",
            exc.error_id,
            exc.engine,
            exc.error_code.value,
            strategy.kind.value,
            source.id,
            exc.detail or "",
        )
