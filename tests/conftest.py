"""Pytest configuration and shared fixtures."""

from datetime import UTC, datetime, timedelta

import pytest

from src.tracker.models import (
    Application,
    ApplicationStatus,
    JobPosting,
    StatusHistoryEntry,
)


@pytest.fixture(autouse=True)
def _reset_singletons():
    """Reset logging and settings singletons around every test."""
    from src.analytics.config import reset_analytics_config
    from src.config.settings import reset_settings
    from src.utils.logging import reset_logging

    reset_logging()
    reset_settings()
    reset_analytics_config()
    yield
    reset_logging()
    reset_settings()
    reset_analytics_config()


@pytest.fixture
def now() -> datetime:
    """A fixed reference time for deterministic tests."""
    return datetime(2026, 3, 2, 12, 0, tzinfo=UTC)


@pytest.fixture
def sample_job() -> JobPosting:
    """Sample job posting for testing."""
    return JobPosting(
        id="job-1",
        title="Software Engineer",
        company="ExampleCo",
        location="Remote",
        employment_type="FULL_TIME",
        salary_min=100000,
        salary_max=150000,
    )


@pytest.fixture
def make_application(now):
    """Factory building applications with a consistent history.

    ``history`` is a list of (status, days after ``now``) pairs; the last
    status becomes the current status.
    """
    counter = {"value": 0}

    def _make(
        *history: tuple[ApplicationStatus, float],
        user_id: str = "user-1",
        job_id: str | None = None,
        applied_offset: float | None = 0,
        interview_dates: list[datetime] | None = None,
        notes: str | None = None,
    ) -> Application:
        counter["value"] += 1
        if not history:
            history = ((ApplicationStatus.APPLIED, 0),)
        entries = [
            StatusHistoryEntry(status=status, date=now + timedelta(days=offset))
            for status, offset in history
        ]
        return Application(
            id=f"app-{counter['value']}",
            user_id=user_id,
            job_id=job_id or f"job-{counter['value']}",
            status=entries[-1].status,
            status_history=entries,
            created_at=entries[0].date,
            updated_at=entries[-1].date,
            applied_date=now + timedelta(days=applied_offset)
            if applied_offset is not None
            else None,
            interview_dates=list(interview_dates or []),
            notes=notes,
        )

    return _make
