"""Transform pipeline: lookup -> classify -> select -> invoke -> register.

Each request is one job resolved within the request; concurrency comes from
serving requests concurrently, bounded by the invoker's engine slots and
serialized per source artifact.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from fileforge.error_codes import ErrorCode
from fileforge.exceptions import FileForgeError
from fileforge.models.artifact import Artifact
from fileforge.models.job import Job, JobOperation
from fileforge.models.options import ProcessingOptions
from fileforge.pipeline.classifier import classify
from fileforge.pipeline.invoker import EngineInvoker
from fileforge.pipeline.jobs import JobTracker
from fileforge.pipeline.strategy import Strategy, select
from fileforge.storage.artifact_store import LocalArtifactStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TransformResult:
    job: Job
    strategy: Strategy
    source: Artifact
    result: Artifact


class TransformPipeline:
    def __init__(self, store: LocalArtifactStore, invoker: EngineInvoker, jobs: JobTracker) -> None:
        self.store = store
        self.invoker = invoker
        self.jobs = jobs

    async def plan(
        self, source_id: str, operation: JobOperation, options: ProcessingOptions
    ) -> tuple[Artifact, Strategy]:
        """Resolve the source and strategy without starting any engine."""
        source = await self.store.get(source_id)
        category = classify(source.id)
        strategy = select(
            category,
            operation,
            options.format,
            source_format=source.extension,
            options=options,
        )
        return source, strategy

    async def run(
        self,
        source_id: str,
        operation: JobOperation,
        options: ProcessingOptions | None = None,
    ) -> TransformResult:
        options = options or ProcessingOptions()
        job = self.jobs.create(source_id, operation, options)
        logger.info(
            "job created job_id=%s source=%s operation=%s options=%s",
            job.id,
            source_id,
            job.operation.value,
            options.to_dict(),
        )
        try:
            # Fail fast on bad requests before waiting for the artifact lock.
            await self.plan(source_id, job.operation, options)
            async with self.jobs.exclusive(source_id):
                source, strategy = await self.plan(source_id, job.operation, options)
                job.start(strategy.kind.value)
                output_path = await self.invoker.invoke(strategy, source)
                try:
                    result = await self.store.register(output_path.name)
                except FileForgeError:
                    output_path.unlink(missing_ok=True)
                    raise
                job.succeed(
                    result_artifact_id=result.id,
                    original_size=source.size_bytes,
                    result_size=result.size_bytes,
                )
        except FileForgeError as exc:
            job.fail(exc.error_code, exc.message)
            logger.warning(
                "job failed job_id=%s source=%s code=%s message=%s",
                job.id,
                source_id,
                exc.error_code.value,
                exc.message,
            )
            raise
        except Exception:
            job.fail(ErrorCode.UNKNOWN, "Internal error")
            logger.exception("job crashed job_id=%s source=%s", job.id, source_id)
            raise

        logger.info(
            "job succeeded job_id=%s strategy=%s result=%s ratio=%s",
            job.id,
            strategy.kind.value,
            result.id,
            job.ratio,
        )
        return TransformResult(job=job, strategy=strategy, source=source, result=result)
