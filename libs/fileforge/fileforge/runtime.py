"""Wiring of store, engines, jobs and sweeper for one process."""

from __future__ import annotations

from dataclasses import dataclass

from fileforge.config import Settings
from fileforge.engines.registry import EngineRegistry, build_engine_registry
from fileforge.pipeline.invoker import EngineInvoker
from fileforge.pipeline.jobs import JobTracker
from fileforge.pipeline.orchestrator import TransformPipeline
from fileforge.services.rate_limit import SlidingWindowRateLimiter
from fileforge.services.retention import RetentionSweeper
from fileforge.storage import LocalArtifactStore, get_artifact_store


@dataclass
class Runtime:
    settings: Settings
    store: LocalArtifactStore
    registry: EngineRegistry
    invoker: EngineInvoker
    jobs: JobTracker
    pipeline: TransformPipeline
    sweeper: RetentionSweeper
    rate_limiter: SlidingWindowRateLimiter | None


def build_runtime(settings: Settings, *, registry: EngineRegistry | None = None) -> Runtime:
    store = get_artifact_store(settings)
    registry = registry or build_engine_registry(settings)
    invoker = EngineInvoker(
        registry,
        store,
        timeout_s=settings.engine.timeout_s,
        max_concurrency=settings.engine.max_concurrency,
    )
    jobs = JobTracker()
    sweeper = RetentionSweeper(
        store,
        interval_s=settings.storage.sweep_interval_s,
        max_age_s=settings.storage.retention_max_age_s,
        jobs=jobs,
    )
    limiter = None
    if settings.rate_limit.enabled:
        limiter = SlidingWindowRateLimiter(
            max_requests=settings.rate_limit.max_requests,
            window_s=settings.rate_limit.window_s,
        )
    return Runtime(
        settings=settings,
        store=store,
        registry=registry,
        invoker=invoker,
        jobs=jobs,
        pipeline=TransformPipeline(store, invoker, jobs),
        sweeper=sweeper,
        rate_limiter=limiter,
    )
