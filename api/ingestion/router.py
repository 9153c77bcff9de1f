"""
FastAPI router for ingestion endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, BackgroundTasks

from jobs import service as jobs

from . import service

router = APIRouter()


async def _ingest() -> dict:
    result = await service.run_ingestion()
    return result.as_dict()


@router.post("/api/images/fetch", status_code=202)
async def fetch_images(background_tasks: BackgroundTasks) -> dict:
    """
    Enqueue one ingestion run and return immediately.

    Poll `GET /api/jobs/{job_id}` for the outcome.
    """
    job = jobs.create_job()
    # Runs after the HTTP response is sent.
    background_tasks.add_task(jobs.run_job, job.id, _ingest)
    return {"job_id": job.id, "status": job.status}
