"""In-memory job tracker with per-artifact exclusivity."""

from __future__ import annotations

import asyncio
from collections import OrderedDict
from collections.abc import AsyncIterator, Iterable
from contextlib import asynccontextmanager

from fileforge.models.job import Job, JobOperation
from fileforge.models.options import ProcessingOptions


class JobTracker:
    """Holds jobs for the lifetime of their artifacts.

    Jobs are not persisted; they disappear when their artifacts are swept or
    deleted, or when more than `max_jobs` are held (oldest first).
    """

    def __init__(self, *, max_jobs: int = 10_000) -> None:
        self.max_jobs = max(1, int(max_jobs))
        self._jobs: OrderedDict[str, Job] = OrderedDict()
        self._locks: dict[str, asyncio.Lock] = {}
        self._waiters: dict[str, int] = {}

    def create(
        self,
        source_artifact_id: str,
        operation: JobOperation,
        options: ProcessingOptions | None = None,
    ) -> Job:
        job = Job(
            source_artifact_id=source_artifact_id,
            operation=JobOperation(operation),
            options=options or ProcessingOptions(),
        )
        self._jobs[job.id] = job
        while len(self._jobs) > self.max_jobs:
            self._jobs.popitem(last=False)
        return job

    def get(self, job_id: str) -> Job | None:
        return self._jobs.get(str(job_id))

    def list_for_artifact(self, artifact_id: str) -> list[Job]:
        return [
            j
            for j in self._jobs.values()
            if artifact_id in (j.source_artifact_id, j.result_artifact_id)
        ]

    def forget_artifacts(self, artifact_ids: Iterable[str]) -> int:
        ids = set(artifact_ids)
        if not ids:
            return 0
        stale = [
            job_id
            for job_id, j in self._jobs.items()
            if j.source_artifact_id in ids or j.result_artifact_id in ids
        ]
        for job_id in stale:
            del self._jobs[job_id]
        return len(stale)

    def __len__(self) -> int:
        return len(self._jobs)

    @asynccontextmanager
    async def exclusive(self, artifact_id: str) -> AsyncIterator[None]:
        """Serialize transforms of the same source artifact."""
        lock = self._locks.setdefault(artifact_id, asyncio.Lock())
        self._waiters[artifact_id] = self._waiters.get(artifact_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._waiters[artifact_id] -= 1
            if self._waiters[artifact_id] == 0:
                del self._waiters[artifact_id]
                self._locks.pop(artifact_id, None)

    def is_busy(self, artifact_id: str) -> bool:
        lock = self._locks.get(artifact_id)
        return bool(lock and lock.locked())
