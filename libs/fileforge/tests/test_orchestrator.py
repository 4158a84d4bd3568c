from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from fileforge.engines.registry import EngineRegistry
from fileforge.error_codes import ErrorCode
from fileforge.exceptions import ArtifactNotFoundError, EngineError, EngineTimeoutError, InvalidRequestError
from fileforge.models.job import JobOperation, JobStatus
from fileforge.models.options import ProcessingOptions
from fileforge.pipeline.invoker import EngineInvoker
from fileforge.pipeline.jobs import JobTracker
from fileforge.pipeline.orchestrator import TransformPipeline
from fileforge.pipeline.strategy import StrategyKind


def _pipeline(store, *engines) -> TransformPipeline:
    invoker = EngineInvoker(EngineRegistry(engines), store, timeout_s=5)
    return TransformPipeline(store, invoker, JobTracker())


@pytest.mark.asyncio
async def test_successful_compression_registers_result(store, fake_engine_factory) -> None:
    engine = fake_engine_factory("fake", {StrategyKind.IMAGE_RECOMPRESS})
    pipeline = _pipeline(store, engine)
    source = await store.put(b"x" * 100, "a.jpg", "image/jpeg")

    outcome = await pipeline.run(source.id, JobOperation.COMPRESS, ProcessingOptions.parse(quality=50))

    job = outcome.job
    assert job.status is JobStatus.SUCCEEDED
    assert job.strategy == "image-recompress"
    assert job.result_artifact_id == outcome.result.id == f"compressed-{source.stem}.jpg"
    assert (job.original_size, job.result_size, job.ratio) == (100, 50, 0.5)
    assert pipeline.jobs.get(job.id) is job
    assert (await store.get(outcome.result.id)).size_bytes == 50


@pytest.mark.asyncio
async def test_illegal_request_fails_before_any_engine_runs(store, fake_engine_factory) -> None:
    engine = fake_engine_factory("lo", {StrategyKind.OFFICE_TO_PDF})
    pipeline = _pipeline(store, engine)
    source = await store.put(b"PK", "report.docx", "application/msword")

    with pytest.raises(InvalidRequestError, match="Office documents can only be converted to PDF"):
        await pipeline.run(source.id, JobOperation.CONVERT, ProcessingOptions.parse(format="png"))

    assert engine.calls == []
    (job,) = pipeline.jobs.list_for_artifact(source.id)
    assert job.status is JobStatus.FAILED
    assert job.error_kind is ErrorCode.VALIDATION_ERROR
    assert job.started_at is None


@pytest.mark.asyncio
async def test_missing_source_is_not_found(store, fake_engine_factory) -> None:
    pipeline = _pipeline(store, fake_engine_factory("fake", {StrategyKind.IMAGE_RECOMPRESS}))
    with pytest.raises(ArtifactNotFoundError):
        await pipeline.run("0" * 32 + ".jpg", JobOperation.COMPRESS)


@pytest.mark.asyncio
async def test_timeout_fails_job_without_registering_artifact(store, fake_engine_factory) -> None:
    async def _timeout(strategy, input_path, output_path: Path, ctx) -> None:  # noqa: ARG001
        output_path.write_bytes(b"half")
        raise EngineTimeoutError("fake", 0.1)

    pipeline = _pipeline(store, fake_engine_factory("fake", {StrategyKind.IMAGE_RECOMPRESS}, _timeout))
    source = await store.put(b"data", "a.png", "image/png")

    with pytest.raises(EngineTimeoutError):
        await pipeline.run(source.id, JobOperation.COMPRESS)

    (job,) = pipeline.jobs.list_for_artifact(source.id)
    assert job.status is JobStatus.FAILED
    assert job.error_kind is ErrorCode.ENGINE_TIMEOUT
    assert job.result_artifact_id is None
    assert await store.list_ids() == [source.id]


@pytest.mark.asyncio
async def test_same_source_transforms_are_serialized(store, fake_engine_factory) -> None:
    order: list[str] = []

    async def _slow(strategy, input_path, output_path: Path, ctx) -> None:  # noqa: ARG001
        order.append(f"start:{strategy.target_format}")
        await asyncio.sleep(0.05)
        output_path.write_bytes(b"done")
        order.append(f"end:{strategy.target_format}")

    pipeline = _pipeline(store, fake_engine_factory("fake", {StrategyKind.IMAGE_REFORMAT}, _slow))
    source = await store.put(b"data", "a.jpg", "image/jpeg")

    await asyncio.gather(
        pipeline.run(source.id, JobOperation.CONVERT, ProcessingOptions.parse(format="png")),
        pipeline.run(source.id, JobOperation.CONVERT, ProcessingOptions.parse(format="webp")),
    )

    assert order in (
        ["start:png", "end:png", "start:webp", "end:webp"],
        ["start:webp", "end:webp", "start:png", "end:png"],
    )
    assert not pipeline.jobs.is_busy(source.id)


@pytest.mark.asyncio
async def test_conversion_to_the_source_format_gets_a_distinct_id(store, fake_engine_factory) -> None:
    pipeline = _pipeline(store, fake_engine_factory("fake", {StrategyKind.IMAGE_REFORMAT}))
    source = await store.put(b"abcdef", "a.png", "image/png")

    outcome = await pipeline.run(source.id, JobOperation.CONVERT, ProcessingOptions.parse(format="png"))

    assert outcome.result.id == f"converted-{source.stem}.png"
    assert await store.read_bytes(source.id) == b"abcdef"


@pytest.mark.asyncio
async def test_round_trip_conversion_never_touches_the_original(store, fake_engine_factory) -> None:
    fail = False

    async def _reformat(strategy, input_path: Path, output_path: Path, ctx) -> None:  # noqa: ARG001
        output_path.write_bytes(b"partial")
        if fail:
            raise RuntimeError("encoder crashed")
        output_path.write_bytes(b"converted " + strategy.target_format.encode())

    pipeline = _pipeline(store, fake_engine_factory("fake", {StrategyKind.IMAGE_REFORMAT}, _reformat))
    original = await store.put(b"original png", "a.png", "image/png")

    as_jpg = await pipeline.run(original.id, JobOperation.CONVERT, ProcessingOptions.parse(format="jpg"))
    assert as_jpg.result.id == f"{original.stem}.jpg"

    fail = True
    with pytest.raises(EngineError):
        await pipeline.run(as_jpg.result.id, JobOperation.CONVERT, ProcessingOptions.parse(format="png"))
    assert original.path.exists()
    assert await store.read_bytes(original.id) == b"original png"

    fail = False
    back = await pipeline.run(as_jpg.result.id, JobOperation.CONVERT, ProcessingOptions.parse(format="png"))
    assert back.result.id == f"converted-{original.stem}.png"
    assert await store.read_bytes(original.id) == b"original png"
    assert await store.read_bytes(back.result.id) == b"converted png"
