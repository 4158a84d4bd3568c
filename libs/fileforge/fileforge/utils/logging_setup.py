"""Logging initialization for the library and the HTTP gateway."""

from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from fileforge.config import LoggingSettings, Settings

ROOT_LOGGER = "fileforge"
ACCESS_LOGGER = "fileforge.api.access"
UVICORN_LOGGER = "uvicorn.error"

_CONFIGURED_FLAG = "_fileforge_configured"


def _build_handlers(cfg: LoggingSettings, log_dir: str, level: int) -> list[logging.Handler]:
    formatter = logging.Formatter(fmt=str(cfg.format), datefmt=str(cfg.datefmt))
    handlers: list[logging.Handler] = []
    if cfg.console:
        handlers.append(logging.StreamHandler())
    if cfg.file:
        file_path = Path(str(cfg.file))
        if not file_path.is_absolute():
            file_path = Path(log_dir) / file_path
        file_path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(
            RotatingFileHandler(
                file_path,
                maxBytes=int(cfg.max_bytes),
                backupCount=int(cfg.backup_count),
                encoding="utf-8",
            )
        )
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
    return handlers


def setup_logging(settings: Settings, *, force: bool = False) -> logging.Logger:
    """Configure the `fileforge` logger tree from Settings.

    The access logger only emits request lines when `LOG_ACCESS_LOG` is on;
    rate-limit warnings still pass. With `LOG_ATTACH_UVICORN`, server errors
    from uvicorn are also written to the log file. Other framework
    loggers are left alone. Calling again is a no-op unless `force` is set.
    """
    logger = logging.getLogger(ROOT_LOGGER)
    if getattr(logger, _CONFIGURED_FLAG, False) and not force:
        return logger

    cfg = settings.logging
    level_name = str(cfg.level or "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)
    handlers = _build_handlers(cfg, settings.log_dir, level)

    for old in logger.handlers:
        old.close()
    logger.setLevel(level)
    logger.handlers = handlers
    logger.propagate = False

    logging.getLogger(ACCESS_LOGGER).setLevel(logging.NOTSET if cfg.access_log else logging.WARNING)

    uvicorn_logger = logging.getLogger(UVICORN_LOGGER)
    for handler in list(uvicorn_logger.handlers):
        if getattr(handler, _CONFIGURED_FLAG, False):
            uvicorn_logger.removeHandler(handler)
    if cfg.attach_uvicorn:
        for handler in handlers:
            if isinstance(handler, RotatingFileHandler):
                setattr(handler, _CONFIGURED_FLAG, True)
                uvicorn_logger.addHandler(handler)

    setattr(logger, _CONFIGURED_FLAG, True)
    return logger
