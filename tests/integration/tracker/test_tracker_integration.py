"""End-to-end tests for tracking applications against a real database."""

from __future__ import annotations

import asyncio
from datetime import timedelta
from pathlib import Path

import pytest

from src.analytics.service import AnalyticsService
from src.tracker.errors import ConflictError, InvalidTransitionError
from src.tracker.models import ApplicationStatus, JobPosting, utc_now
from src.tracker.repository import ApplicationRepository, JobRepository
from src.tracker.service import ApplicationService

pytestmark = [pytest.mark.integration]


async def _open(db_path: Path) -> tuple[ApplicationRepository, JobRepository]:
    applications = ApplicationRepository(db_path)
    jobs = JobRepository(db_path)
    await applications.initialize()
    await jobs.initialize()
    return applications, jobs


async def _close(*repositories) -> None:
    for repository in repositories:
        await repository.close()


@pytest.mark.asyncio
async def test_application_lifecycle_end_to_end(tmp_path: Path) -> None:
    applications, jobs = await _open(tmp_path / "tracker.db")
    try:
        await jobs.insert_job(
            JobPosting(id="job-1", title="Backend Engineer", company="Acme Corp")
        )
        service = ApplicationService(applications, jobs)

        app = await service.create_application("user-1", "job-1")
        assert app.status == ApplicationStatus.APPLIED

        with pytest.raises(InvalidTransitionError):
            await service.update_application(app.id, "user-1", ApplicationStatus.SAVED)

        await service.update_application(app.id, "user-1", ApplicationStatus.IN_REVIEW)
        rejected = await service.update_application(
            app.id, "user-1", ApplicationStatus.REJECTED, notes="Position filled"
        )
        assert [entry.status for entry in rejected.status_history] == [
            ApplicationStatus.APPLIED,
            ApplicationStatus.IN_REVIEW,
            ApplicationStatus.REJECTED,
        ]

        with pytest.raises(InvalidTransitionError):
            await service.update_application(
                app.id, "user-1", ApplicationStatus.IN_REVIEW
            )

        timeline = await service.get_application_timeline(app.id, "user-1")
        assert timeline.current_status == ApplicationStatus.REJECTED
        assert timeline.timeline[-1].notes == "Position filled"
        assert timeline.next_steps[0] == "Request feedback if possible"

        metrics = await AnalyticsService(applications, jobs).get_application_metrics(
            "user-1"
        )
        assert metrics.total_applications == 1
        assert metrics.response_rate == 100
        assert metrics.interview_rate == 0
        assert metrics.by_company[0].company == "Acme Corp"
    finally:
        await _close(applications, jobs)


@pytest.mark.asyncio
async def test_applications_persist_across_sessions(tmp_path: Path) -> None:
    db_path = tmp_path / "tracker.db"
    applications, jobs = await _open(db_path)
    try:
        await jobs.insert_job(JobPosting(id="job-1", title="Engineer", company="Acme"))
        service = ApplicationService(applications, jobs)
        created = await service.create_application("user-1", "job-1", notes="First")
        await service.update_application(
            created.id, "user-1", "INTERVIEW_SCHEDULED",
        )
        await service.update_application(
            created.id,
            "user-1",
            interview_dates=[utc_now() + timedelta(days=3)],
        )
    finally:
        await _close(applications, jobs)

    applications, jobs = await _open(db_path)
    try:
        service = ApplicationService(applications, jobs)
        stored = await service.get_application(created.id, "user-1")
        assert stored.status == ApplicationStatus.INTERVIEW_SCHEDULED
        assert stored.notes == "First"
        assert len(stored.status_history) == 2

        interviews = await AnalyticsService(applications, jobs).get_upcoming_interviews(
            "user-1"
        )
        assert len(interviews) == 1
        assert interviews[0].days_until == 3

        with pytest.raises(ConflictError):
            await service.create_application("user-1", "job-1")
    finally:
        await _close(applications, jobs)


@pytest.mark.asyncio
async def test_concurrent_creates_yield_one_application(tmp_path: Path) -> None:
    applications, jobs = await _open(tmp_path / "tracker.db")
    try:
        await jobs.insert_job(JobPosting(id="job-1", title="Engineer", company="Acme"))
        service = ApplicationService(applications, jobs)

        results = await asyncio.gather(
            *(service.create_application("user-1", "job-1") for _ in range(5)),
            return_exceptions=True,
        )

        created = [result for result in results if not isinstance(result, Exception)]
        conflicts = [result for result in results if isinstance(result, ConflictError)]
        assert len(created) == 1
        assert len(conflicts) == 4
        assert len(await applications.list_all_by_owner("user-1")) == 1
    finally:
        await _close(applications, jobs)


@pytest.mark.asyncio
async def test_concurrent_status_changes_do_not_lose_history(tmp_path: Path) -> None:
    """Two racing changes from APPLIED: exactly one wins."""
    applications, jobs = await _open(tmp_path / "tracker.db")
    try:
        await jobs.insert_job(JobPosting(id="job-1", title="Engineer", company="Acme"))
        service = ApplicationService(applications, jobs)
        app = await service.create_application("user-1", "job-1")

        results = await asyncio.gather(
            service.update_application(app.id, "user-1", "IN_REVIEW"),
            service.update_application(app.id, "user-1", "IN_REVIEW"),
            return_exceptions=True,
        )

        assert sum(isinstance(result, InvalidTransitionError) for result in results) == 1
        stored = await service.get_application(app.id, "user-1")
        assert [entry.status for entry in stored.status_history] == [
            ApplicationStatus.APPLIED,
            ApplicationStatus.IN_REVIEW,
        ]
    finally:
        await _close(applications, jobs)
