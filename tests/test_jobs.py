import pytest

from jobs import service


@pytest.mark.anyio
async def test_successful_job_keeps_result():
    job = service.create_job()

    async def work():
        return {"records_added": 1}

    await service.run_job(job.id, work)

    assert job.status == service.SUCCEEDED
    assert job.result == {"records_added": 1}
    assert job.finished_at is not None


@pytest.mark.anyio
async def test_failing_job_does_not_raise():
    job = service.create_job()

    async def work():
        raise RuntimeError("db down")

    await service.run_job(job.id, work)

    assert job.status == service.FAILED
    assert job.error == "RuntimeError: db down"


def test_oldest_jobs_are_evicted(monkeypatch):
    monkeypatch.setattr(service, "MAX_TRACKED_JOBS", 2)
    first = service.create_job()
    service.create_job()
    service.create_job()

    assert service.get_job(first.id) is None
