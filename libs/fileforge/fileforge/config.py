"""Configuration management using pydantic-settings."""

from pathlib import Path
from typing import Any

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from fileforge.exceptions import ConfigurationError

_ENV_FILES = (".env", "../.env", "../../.env")

_REPO_ROOT = Path(__file__).resolve().parents[3]


def _resolve_repo_path(value: str) -> str:
    raw = str(value or "").strip()
    if not raw:
        return raw
    p = Path(raw)
    if p.is_absolute():
        return str(p)
    return str((_REPO_ROOT / p).resolve())


class StorageConfig(BaseSettings):
    """Artifact store configuration."""

    model_config = SettingsConfigDict(
        env_prefix="STORAGE_",
        env_file=_ENV_FILES,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    temp_dir: str = "./data/temp"
    max_upload_bytes: int = Field(default=50 * 1024 * 1024, ge=1)
    max_files_per_upload: int = Field(default=10, ge=1)
    retention_max_age_s: float = Field(default=3600.0, gt=0)
    sweep_interval_s: float = Field(default=3600.0, gt=0)
    sweep_enabled: bool = True

    @model_validator(mode="after")
    def _resolve_paths(self) -> "StorageConfig":
        self.temp_dir = _resolve_repo_path(self.temp_dir)
        return self


class EngineConfig(BaseSettings):
    """External engine binaries and invocation limits."""

    model_config = SettingsConfigDict(
        env_prefix="ENGINE_",
        env_file=_ENV_FILES,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    timeout_s: float = Field(default=300.0, gt=0)  # per job, all passes included
    max_concurrency: int = Field(default=4, ge=1)
    strict_startup: bool = True

    ffmpeg_bin: str = "ffmpeg"
    ffprobe_bin: str = "ffprobe"
    ghostscript_bin: str = "gs"
    libreoffice_bin: str = "soffice"
    imagemagick_bin: str = "magick"

    @model_validator(mode="after")
    def _validate_binaries(self) -> "EngineConfig":
        for name in ("ffmpeg_bin", "ffprobe_bin", "ghostscript_bin", "libreoffice_bin", "imagemagick_bin"):
            if not str(getattr(self, name) or "").strip():
                raise ConfigurationError(f"ENGINE_{name.upper()} must not be empty")
        return self


class RateLimitConfig(BaseSettings):
    """Per-client request cap for the `/api` namespace."""

    model_config = SettingsConfigDict(
        env_prefix="RATE_LIMIT_",
        env_file=_ENV_FILES,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    enabled: bool = True
    max_requests: int = Field(default=100, ge=1)
    window_s: float = Field(default=15 * 60.0, gt=0)
    path_prefix: str = "/api/"


class LoggingSettings(BaseSettings):
    """Logging configuration."""

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        env_file=_ENV_FILES,
        env_file_encoding="utf-8",
        extra="ignore",
    )

    level: str = "INFO"
    format: str = "%(asctime)s %(levelname)s %(name)s: %(message)s"
    datefmt: str = "%Y-%m-%d %H:%M:%S"
    console: bool = True
    access_log: bool = True  # one line per HTTP request on fileforge.api.access
    attach_uvicorn: bool = True  # also write uvicorn.error to the log file
    file: str | None = None
    max_bytes: int = Field(default=10 * 1024 * 1024, ge=0)
    backup_count: int = Field(default=5, ge=0)


class Settings(BaseSettings):
    """Application settings."""

    model_config = SettingsConfigDict(
        env_file=_ENV_FILES, env_file_encoding="utf-8", extra="ignore"
    )

    data_dir: str = "./data"
    log_dir: str = "./logs"
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])

    storage: StorageConfig = StorageConfig()
    engine: EngineConfig = EngineConfig()
    rate_limit: RateLimitConfig = RateLimitConfig()
    logging: LoggingSettings = LoggingSettings()

    @model_validator(mode="after")
    def _resolve_paths(self) -> "Settings":
        # Running apps with `uvicorn --app-dir apps/api` changes CWD; keep paths stable.
        self.data_dir = _resolve_repo_path(self.data_dir)
        self.log_dir = _resolve_repo_path(self.log_dir)
        return self

    def model_post_init(self, __context: Any) -> None:
        # No fallback: always resolve relative paths under repo root.
        for raw in (self.data_dir, self.log_dir, self.storage.temp_dir):
            Path(_resolve_repo_path(raw)).mkdir(parents=True, exist_ok=True)

    @property
    def temp_dir(self) -> str:
        return self.storage.temp_dir
