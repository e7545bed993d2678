"""Upcoming interview lookup."""

from __future__ import annotations

import math
from collections.abc import Iterable, Mapping
from datetime import datetime, timedelta

from src.analytics.metrics import SECONDS_PER_DAY
from src.analytics.models import UpcomingInterview
from src.tracker.models import (
    ACTIVE_INTERVIEW_STATUSES,
    Application,
    JobPosting,
    ensure_utc,
)


def days_until(moment: datetime, now: datetime) -> int:
    """Whole days from ``now`` to ``moment``, rounded up."""
    return math.ceil((moment - now).total_seconds() / SECONDS_PER_DAY)


def find_upcoming_interviews(
    applications: Iterable[Application],
    jobs: Mapping[str, JobPosting],
    now: datetime,
    days: int = 30,
) -> list[UpcomingInterview]:
    """List interview occurrences between ``now`` and ``now + days``.

    An application with several interview dates in the window yields one
    record per date. Dates in the past or beyond the window are left out.

    Args:
        applications: The user's applications.
        jobs: Job postings keyed by id, for title/company/location.
        now: Start of the window.
        days: Length of the window in days.

    Returns:
        Upcoming interviews ordered by date, soonest first.
    """
    now = ensure_utc(now)
    window_end = now + timedelta(days=days)

    interviews: list[UpcomingInterview] = []
    for app in applications:
        if app.status not in ACTIVE_INTERVIEW_STATUSES:
            continue
        job = jobs.get(app.job_id)
        for interview_date in app.interview_dates:
            interview_date = ensure_utc(interview_date)
            if not now <= interview_date <= window_end:
                continue
            interviews.append(
                UpcomingInterview(
                    application_id=app.id,
                    job_id=app.job_id,
                    job_title=job.title if job else "",
                    company=job.company if job else "",
                    interview_date=interview_date,
                    days_until=days_until(interview_date, now),
                    status=app.status,
                    notes=app.notes,
                    location=job.location if job else None,
                )
            )

    interviews.sort(key=lambda item: item.interview_date)
    return interviews
