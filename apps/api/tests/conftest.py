from __future__ import annotations

import io
import random
import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from fileforge.config import RateLimitConfig, Settings, StorageConfig
from fileforge.engines.base import Engine, EngineContext
from fileforge.engines.pillow import PillowEngine
from fileforge.engines.registry import EngineRegistry
from fileforge.pipeline.strategy import Strategy, StrategyKind
from fileforge.runtime import build_runtime

_API_ROOT = Path(__file__).resolve().parents[1]
if str(_API_ROOT) not in sys.path:
    sys.path.insert(0, str(_API_ROOT))


class StubEngine(Engine):
    """Writes a fixed payload instead of shelling out."""

    def __init__(self, name: str, kinds: set[StrategyKind], payload: bytes = b"%PDF-1.4 stub") -> None:
        self.name = name
        self.kinds = frozenset(kinds)
        self.payload = payload
        self.calls = 0

    def required_binaries(self) -> dict[str, str | None]:
        return {self.name: f"/usr/bin/{self.name}"}

    async def run(self, strategy: Strategy, input_path: Path, output_path: Path, ctx: EngineContext) -> None:  # noqa: ARG002
        self.calls += 1
        output_path.write_bytes(self.payload)


def _registry() -> EngineRegistry:
    return EngineRegistry(
        [
            PillowEngine(),
            StubEngine("ghostscript", {StrategyKind.PDF_RECOMPRESS}),
            StubEngine("ffmpeg", {StrategyKind.VIDEO_RECOMPRESS, StrategyKind.VIDEO_REFORMAT}, b"video"),
            StubEngine("libreoffice", {StrategyKind.OFFICE_TO_PDF}),
            StubEngine("imagemagick", {StrategyKind.IMAGE_TO_PDF, StrategyKind.PDF_TO_IMAGE}, b"image"),
        ]
    )


def make_settings(tmp_path: Path, **rate_limit) -> Settings:
    return Settings(
        data_dir=str(tmp_path / "data"),
        log_dir=str(tmp_path / "logs"),
        storage=StorageConfig(temp_dir=str(tmp_path / "data" / "temp"), max_upload_bytes=2 * 1024 * 1024),
        rate_limit=RateLimitConfig(**({"enabled": False} | rate_limit)),
    )


def build_client(settings: Settings) -> TestClient:
    from app_factory import create_app

    runtime = build_runtime(settings, registry=_registry())
    return TestClient(create_app(settings, runtime=runtime))


@pytest.fixture()
def settings(tmp_path) -> Settings:
    return make_settings(tmp_path)


@pytest.fixture()
def client(settings):
    with build_client(settings) as c:
        yield c


@pytest.fixture()
def client_factory(tmp_path):
    def _make(**rate_limit) -> TestClient:
        return build_client(make_settings(tmp_path, **rate_limit))

    return _make


@pytest.fixture()
def jpeg_bytes() -> bytes:
    rng = random.Random(3)
    img = Image.frombytes("RGB", (400, 300), rng.randbytes(400 * 300 * 3))
    buf = io.BytesIO()
    img.save(buf, format="JPEG", quality=95)
    return buf.getvalue()


@pytest.fixture()
def upload(client):
    def _upload(name: str, data: bytes, content_type: str) -> dict:
        res = client.post("/upload", files=[("files", (name, data, content_type))])
        assert res.status_code == 200, res.text
        return res.json()["data"][0]

    return _upload
