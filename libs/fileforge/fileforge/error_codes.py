"""Canonical error codes surfaced to API clients."""

from __future__ import annotations

from enum import Enum


class ErrorCode(str, Enum):
    UNKNOWN = "UNKNOWN"

    VALIDATION_ERROR = "VALIDATION_ERROR"
    NOT_FOUND = "NOT_FOUND"
    FILE_TOO_LARGE = "FILE_TOO_LARGE"
    STORAGE_ERROR = "STORAGE_ERROR"

    ENGINE_ERROR = "ENGINE_ERROR"
    ENGINE_TIMEOUT = "ENGINE_TIMEOUT"
    ENGINE_UNAVAILABLE = "ENGINE_UNAVAILABLE"

    RATE_LIMITED = "RATE_LIMITED"
