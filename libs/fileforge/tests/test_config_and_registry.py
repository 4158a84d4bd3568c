from __future__ import annotations

from pathlib import Path

import pytest

from fileforge.config import EngineConfig, Settings, StorageConfig
from fileforge.engines.registry import EngineRegistry, build_engine_registry
from fileforge.exceptions import ConfigurationError
from fileforge.pipeline.strategy import StrategyKind
from fileforge.runtime import build_runtime


def test_settings_create_directories(tmp_path: Path) -> None:
    settings = Settings(
        data_dir=str(tmp_path / "d"),
        log_dir=str(tmp_path / "l"),
        storage=StorageConfig(temp_dir=str(tmp_path / "d" / "t")),
    )
    assert Path(settings.temp_dir).is_dir()
    assert Path(settings.log_dir).is_dir()
    assert settings.storage.max_upload_bytes == 50 * 1024 * 1024
    assert settings.storage.max_files_per_upload == 10


def test_env_overrides_nested_settings(monkeypatch) -> None:
    monkeypatch.setenv("ENGINE_TIMEOUT_S", "12")
    monkeypatch.setenv("STORAGE_MAX_UPLOAD_BYTES", "1024")
    assert EngineConfig().timeout_s == 12
    assert StorageConfig().max_upload_bytes == 1024


def test_empty_binary_is_a_configuration_error() -> None:
    with pytest.raises(ConfigurationError):
        EngineConfig(ghostscript_bin="  ")


def test_registry_binds_every_strategy_kind(settings) -> None:
    registry = build_engine_registry(settings)
    for kind in StrategyKind:
        assert registry.for_strategy(kind) is not None
    registry.check(strict=False)


def test_duplicate_bindings_are_rejected(fake_engine_factory) -> None:
    a = fake_engine_factory("a", {StrategyKind.IMAGE_RECOMPRESS})
    b = fake_engine_factory("b", {StrategyKind.IMAGE_RECOMPRESS})
    with pytest.raises(ConfigurationError):
        EngineRegistry([a, b])


def test_strict_check_fails_on_missing_engine(fake_engine_factory) -> None:
    engines = [
        fake_engine_factory("present", set(StrategyKind) - {StrategyKind.OFFICE_TO_PDF}),
        fake_engine_factory("absent", {StrategyKind.OFFICE_TO_PDF}, available=False),
    ]
    registry = EngineRegistry(engines)
    with pytest.raises(ConfigurationError, match="ENGINE_STRICT_STARTUP"):
        registry.check(strict=True)
    statuses = registry.check(strict=False)
    assert [s.available for s in statuses] == [True, False]


def test_unbound_kinds_fail_the_check(fake_engine_factory) -> None:
    registry = EngineRegistry([fake_engine_factory("only", {StrategyKind.IMAGE_RECOMPRESS})])
    with pytest.raises(ConfigurationError, match="no engine registered"):
        registry.check(strict=False)


def test_build_runtime_wires_components(settings, fake_engine_factory) -> None:
    registry = EngineRegistry([fake_engine_factory("all", set(StrategyKind))])
    rt = build_runtime(settings, registry=registry)
    assert rt.registry is registry
    assert rt.pipeline.store is rt.store
    assert str(rt.store.root) == str(Path(settings.temp_dir).resolve())
    assert rt.rate_limiter is not None
