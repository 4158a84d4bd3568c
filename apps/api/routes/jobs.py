"""Jobs API routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from fileforge.exceptions import JobNotFoundError
from fileforge.runtime import Runtime
from routes._deps import runtime
from routes.schemas import JobResponse

router = APIRouter(prefix="/jobs", tags=["jobs"])


@router.get("/{job_id}", response_model=JobResponse, response_model_by_alias=True)
async def get_job(job_id: str, rt: Runtime = Depends(runtime)) -> JobResponse:
    job = rt.jobs.get(job_id)
    if job is None:
        raise JobNotFoundError(job_id)
    return JobResponse.model_validate(job.to_dict())
