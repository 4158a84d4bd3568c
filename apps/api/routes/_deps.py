from __future__ import annotations

from fastapi import HTTPException, Request

from fileforge.runtime import Runtime


def runtime(request: Request) -> Runtime:
    rt: Runtime | None = getattr(request.app.state, "runtime", None)
    if rt is None:
        raise HTTPException(status_code=500, detail="runtime not initialized")
    return rt
