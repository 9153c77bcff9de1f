"""
Background run bookkeeping.

Jobs live in process memory only: they are lost on restart and are not
shared between workers. This is enough to answer "did my run finish?"
for the process that accepted it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Awaitable, Callable
from uuid import uuid4

logger = logging.getLogger(__name__)

ENQUEUED = "enqueued"
PROCESSING = "processing"
SUCCEEDED = "succeeded"
FAILED = "failed"

MAX_TRACKED_JOBS = 500


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Job:
    id: str
    status: str = ENQUEUED
    created_at: datetime = field(default_factory=_utc_now)
    finished_at: datetime | None = None
    result: dict[str, Any] | None = None
    error: str | None = None

    def as_dict(self) -> dict[str, Any]:
        return {
            "job_id": self.id,
            "status": self.status,
            "created_at": self.created_at,
            "finished_at": self.finished_at,
            "result": self.result,
            "error": self.error,
        }


_jobs: dict[str, Job] = {}


def create_job() -> Job:
    # Oldest entries go first once the table is full (dicts keep insertion order).
    while len(_jobs) >= MAX_TRACKED_JOBS:
        _jobs.pop(next(iter(_jobs)))
    job = Job(id=uuid4().hex)
    _jobs[job.id] = job
    return job


def get_job(job_id: str) -> Job | None:
    return _jobs.get(job_id)


def reset() -> None:
    _jobs.clear()


async def run_job(job_id: str, work: Callable[[], Awaitable[dict[str, Any]]]) -> None:
    """
    BackgroundTasks entrypoint.

    This should never raise to the request path; failures are logged and
    recorded on the job.
    """
    job = _jobs.get(job_id)
    if job is None:
        logger.warning("job_missing job_id=%s", job_id)
        return

    job.status = PROCESSING
    try:
        job.result = await work()
        job.status = SUCCEEDED
        logger.info("job_succeeded job_id=%s", job_id)
    except Exception as exc:
        job.status = FAILED
        job.error = f"{type(exc).__name__}: {exc}"
        logger.exception("job_failed job_id=%s", job_id)
    finally:
        job.finished_at = _utc_now()
