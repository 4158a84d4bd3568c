from __future__ import annotations

import io
import random
from collections.abc import Awaitable, Callable
from pathlib import Path

import pytest
from PIL import Image

from fileforge.config import Settings, StorageConfig
from fileforge.engines.base import Engine, EngineContext
from fileforge.pipeline.strategy import Strategy, StrategyKind
from fileforge.storage import LocalArtifactStore

RunHook = Callable[[Strategy, Path, Path, EngineContext], Awaitable[None]]


@pytest.fixture()
def settings(tmp_path) -> Settings:
    return Settings(
        data_dir=str(tmp_path / "data"),
        log_dir=str(tmp_path / "logs"),
        storage=StorageConfig(temp_dir=str(tmp_path / "data" / "temp")),
    )


@pytest.fixture()
def store(tmp_path) -> LocalArtifactStore:
    return LocalArtifactStore(tmp_path / "temp", max_bytes=1024 * 1024, max_age_s=3600)


def make_noisy_jpeg(width: int = 320, height: int = 240, *, quality: int = 95, seed: int = 7) -> bytes:
    """Random-noise JPEG: recompressing it at a lower quality always shrinks it."""
    rng = random.Random(seed)
    img = Image.frombytes("RGB", (width, height), rng.randbytes(width * height * 3))
    buf = io.BytesIO()
    img.save(buf, format="JPEG", quality=quality)
    return buf.getvalue()


async def _copy_input(strategy: Strategy, input_path: Path, output_path: Path, ctx: EngineContext) -> None:  # noqa: ARG001
    output_path.write_bytes(input_path.read_bytes()[: max(1, input_path.stat().st_size // 2)])


class FakeEngine(Engine):
    """Engine whose behaviour is a coroutine supplied by the test."""

    def __init__(
        self,
        name: str,
        kinds: set[StrategyKind],
        run: RunHook | None = None,
        *,
        available: bool = True,
    ) -> None:
        self.name = name
        self.kinds = frozenset(kinds)
        self._run = run or _copy_input
        self._available = available
        self.calls: list[tuple[Strategy, Path, Path]] = []

    def required_binaries(self) -> dict[str, str | None]:
        return {self.name: f"/usr/bin/{self.name}" if self._available else None}

    async def run(self, strategy: Strategy, input_path: Path, output_path: Path, ctx: EngineContext) -> None:
        self.calls.append((strategy, input_path, output_path))
        await self._run(strategy, input_path, output_path, ctx)


@pytest.fixture()
def fake_engine_factory():
    return FakeEngine


@pytest.fixture()
def noisy_jpeg():
    return make_noisy_jpeg
