"""HTTP middleware: access log and per-client rate limiting."""

from __future__ import annotations

import logging
import math
import time

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from fileforge.error_codes import ErrorCode
from fileforge.services.rate_limit import SlidingWindowRateLimiter
from routes.errors import error_body

access_logger = logging.getLogger("fileforge.api.access")

RATE_LIMIT_MESSAGE = "Too many requests from this IP, please try again later"


def _client_key(request: Request) -> str:
    client = request.client
    return client.host if client is not None else "unknown"


def install_middleware(app: FastAPI, *, rate_limiter: SlidingWindowRateLimiter | None, path_prefix: str) -> None:
    if rate_limiter is not None:

        @app.middleware("http")
        async def rate_limit(request: Request, call_next):
            if not request.url.path.startswith(path_prefix):
                return await call_next(request)
            decision = await rate_limiter.hit(_client_key(request))
            headers = {
                "X-RateLimit-Limit": str(decision.limit),
                "X-RateLimit-Remaining": str(decision.remaining),
            }
            if not decision.allowed:
                headers["Retry-After"] = str(max(1, math.ceil(decision.retry_after_s)))
                access_logger.warning(
                    "rate limited client=%s path=%s", _client_key(request), request.url.path
                )
                return JSONResponse(
                    status_code=429,
                    content=error_body(RATE_LIMIT_MESSAGE, ErrorCode.RATE_LIMITED),
                    headers=headers,
                )
            response = await call_next(request)
            response.headers.update(headers)
            return response

    # Registered last so it wraps the limiter and logs 429s too.
    @app.middleware("http")
    async def access_log(request: Request, call_next):
        started = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000
        access_logger.info(
            "%s %s %d %.1fms",
            request.method,
            request.url.path,
            response.status_code,
            elapsed_ms,
        )
        return response
