"""Exception -> HTTP response mapping."""

from __future__ import annotations

import logging
from uuid import uuid4

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from fileforge.error_codes import ErrorCode
from fileforge.exceptions import EngineError, FileForgeError

logger = logging.getLogger("fileforge.api.errors")


def error_body(message: str, code: ErrorCode | str, *, error_id: str | None = None) -> dict:
    body: dict[str, object] = {"success": False, "error": message, "code": str(ErrorCode(code).value)}
    if error_id:
        body["errorId"] = error_id
    return body


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(FileForgeError)
    async def _fileforge_error(request: Request, exc: FileForgeError) -> JSONResponse:
        if isinstance(exc, EngineError):
            # Engine diagnostics were logged by the invoker; only the generic message goes out.
            return JSONResponse(
                status_code=exc.status_code,
                content=error_body(exc.message, exc.error_code, error_id=exc.error_id),
            )
        if exc.status_code >= 500:
            error_id = uuid4().hex[:12]
            logger.error(
                "request failed error_id=%s path=%s code=%s",
                error_id,
                request.url.path,
                exc.error_code.value,
                exc_info=exc,
            )
            return JSONResponse(
                status_code=exc.status_code,
                content=error_body("Internal server error", exc.error_code, error_id=error_id),
            )
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(exc.message, exc.error_code),
        )

    @app.exception_handler(RequestValidationError)
    async def _request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
        first = (exc.errors() or [{}])[0]
        loc = ".".join(str(p) for p in first.get("loc", ()) if p != "body")
        message = f"Invalid request: {loc} {first.get('msg', '')}".strip()
        return JSONResponse(status_code=400, content=error_body(message, ErrorCode.VALIDATION_ERROR))
