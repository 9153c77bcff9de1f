"""
Job status endpoint.
"""

from __future__ import annotations

from fastapi import APIRouter, HTTPException

from . import service

router = APIRouter()


@router.get("/api/jobs/{job_id}")
async def get_job_status(job_id: str) -> dict:
    job = service.get_job(job_id)
    if job is None:
        raise HTTPException(status_code=404, detail=f"Job with id {job_id} not found")
    return job.as_dict()
