"""Health check routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from fileforge.runtime import Runtime
from routes._deps import runtime
from routes.schemas import EngineHealth, EngineHealthResponse

router = APIRouter(tags=["health"])


@router.get("/health")
async def health() -> dict[str, str]:
    """Health check endpoint."""
    return {"status": "ok"}


@router.get("/health/engines", response_model=EngineHealthResponse)
async def engine_health(rt: Runtime = Depends(runtime)) -> EngineHealthResponse:
    statuses = rt.registry.statuses()
    engines = [EngineHealth.model_validate(s.to_dict()) for s in statuses]
    healthy = all(s.available for s in statuses)
    return EngineHealthResponse(status="healthy" if healthy else "degraded", engines=engines)
