"""Background retention sweep with an explicit start/stop lifecycle."""

from __future__ import annotations

import asyncio
import logging
import time

from fileforge.pipeline.jobs import JobTracker
from fileforge.storage.artifact_store import ArtifactStore, SweepReport

logger = logging.getLogger(__name__)


class RetentionSweeper:
    """Deletes artifacts older than `max_age_s` every `interval_s` seconds.

    Goes through the store's public interface only and forgets jobs whose
    artifacts were removed.
    """

    def __init__(
        self,
        store: ArtifactStore,
        *,
        interval_s: float,
        max_age_s: float,
        jobs: JobTracker | None = None,
    ) -> None:
        self.store = store
        self.jobs = jobs
        self.interval_s = float(interval_s)
        self.max_age_s = float(max_age_s)
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def run_once(self, *, now: float | None = None) -> SweepReport:
        now = time.time() if now is None else now
        report = await self.store.sweep(now=now, max_age_s=self.max_age_s)
        forgotten = self.jobs.forget_artifacts(report.deleted) if self.jobs is not None else 0
        logger.info(
            "retention sweep scanned=%d deleted=%d failed=%d jobs_forgotten=%d",
            report.scanned,
            len(report.deleted),
            len(report.failed),
            forgotten,
        )
        return report

    async def _loop(self) -> None:
        while True:
            await asyncio.sleep(self.interval_s)
            try:
                await self.run_once()
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("retention sweep failed")

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self._loop(), name="fileforge-retention-sweep")
        logger.info(
            "retention sweeper started interval_s=%s max_age_s=%s", self.interval_s, self.max_age_s
        )

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        logger.info("retention sweeper stopped")
