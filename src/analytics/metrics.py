"""Success metrics over a user's applications.

Everything here is a pure function of a snapshot of applications and the
job postings they refer to. Empty inputs never raise: each metric falls
back to zero.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Mapping
from datetime import datetime

from src.analytics.models import (
    ApplicationMetrics,
    CompanyStats,
    JobTypeStats,
    TimeToInterview,
)
from src.tracker.models import (
    ACTIVE_INTERVIEW_STATUSES,
    AWAITING_RESPONSE_STATUSES,
    INTERVIEW_STATUSES,
    OFFER_STATUSES,
    Application,
    ApplicationStatus,
    JobPosting,
)

SECONDS_PER_DAY = 24 * 60 * 60
UNKNOWN_JOB_TYPE = "Unknown"
DEFAULT_TOP_COMPANIES = 10


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves going up (2.5 -> 3, -2.5 -> -2)."""
    return math.floor(value + 0.5)


def percentage(part: int, whole: int) -> int:
    """Return ``part / whole`` as a whole percentage, 0 when ``whole`` is 0."""
    if whole <= 0:
        return 0
    return round_half_up(part / whole * 100)


def days_between(start: datetime, end: datetime) -> float:
    """Fractional days from ``start`` to ``end``."""
    return (end - start).total_seconds() / SECONDS_PER_DAY


def _is_response(application: Application) -> bool:
    # Rejections count as a response
    return application.status not in AWAITING_RESPONSE_STATUSES


def average_response_time(applications: Iterable[Application]) -> int:
    """Mean days between applying and the first status change after it."""
    delays = [
        days_between(app.response_anchor, app.status_history[1].date)
        for app in applications
        if _is_response(app) and len(app.status_history) > 1
    ]
    if not delays:
        return 0
    return round_half_up(sum(delays) / len(delays))


def time_to_interview(applications: Iterable[Application]) -> TimeToInterview:
    """Days from applying to the first interview-stage history entry.

    Only applications currently at the interview stage or beyond with more
    than one history entry are considered; non-positive delays are dropped.
    """
    delays: list[float] = []
    for app in applications:
        if app.status not in INTERVIEW_STATUSES or len(app.status_history) <= 1:
            continue
        entry = next(
            (
                item
                for item in app.status_history
                if item.status in ACTIVE_INTERVIEW_STATUSES
            ),
            None,
        )
        if entry is None:
            continue
        days = days_between(app.response_anchor, entry.date)
        if days > 0:
            delays.append(days)

    if not delays:
        return TimeToInterview()
    return TimeToInterview(
        average=round_half_up(sum(delays) / len(delays)),
        fastest=round_half_up(min(delays)),
        slowest=round_half_up(max(delays)),
    )


def company_breakdown(
    applications: Iterable[Application],
    jobs: Mapping[str, JobPosting],
    limit: int = DEFAULT_TOP_COMPANIES,
) -> list[CompanyStats]:
    """Per-company counts, most applied-to companies first.

    Applications whose job posting is unknown are skipped.
    """
    groups: dict[str, list[int]] = {}
    for app in applications:
        job = jobs.get(app.job_id)
        if job is None:
            continue
        counters = groups.setdefault(job.company, [0, 0, 0])
        counters[0] += 1
        if app.status in INTERVIEW_STATUSES:
            counters[1] += 1
        if app.status in OFFER_STATUSES:
            counters[2] += 1

    stats = [
        CompanyStats(
            company=company,
            applications=total,
            interviews=interviews,
            offers=offers,
            response_rate=percentage(interviews + offers, total),
        )
        for company, (total, interviews, offers) in groups.items()
    ]
    stats.sort(key=lambda item: item.applications, reverse=True)
    return stats[:limit]


def job_type_breakdown(
    applications: Iterable[Application],
    jobs: Mapping[str, JobPosting],
) -> list[JobTypeStats]:
    """Per-employment-type counts and offer success rate."""
    groups: dict[str, list[int]] = {}
    for app in applications:
        job = jobs.get(app.job_id)
        if job is None:
            continue
        job_type = job.employment_type or UNKNOWN_JOB_TYPE
        counters = groups.setdefault(job_type, [0, 0])
        counters[0] += 1
        if app.status in OFFER_STATUSES:
            counters[1] += 1

    stats = [
        JobTypeStats(
            job_type=job_type,
            applications=total,
            success_rate=percentage(offers, total),
        )
        for job_type, (total, offers) in groups.items()
    ]
    stats.sort(key=lambda item: item.applications, reverse=True)
    return stats


def compute_metrics(
    applications: Iterable[Application],
    jobs: Mapping[str, JobPosting] | None = None,
    *,
    top_companies: int = DEFAULT_TOP_COMPANIES,
) -> ApplicationMetrics:
    """Compute success metrics over one user's applications.

    SAVED applications are excluded from the denominator of every rate but
    still appear in the company and job-type breakdowns.

    Args:
        applications: All of the user's applications.
        jobs: Job postings keyed by id, used for the breakdowns.
        top_companies: Number of companies to keep in the company breakdown.

    Returns:
        The computed ApplicationMetrics.
    """
    apps = list(applications)
    jobs = jobs or {}

    total = sum(1 for app in apps if app.status != ApplicationStatus.SAVED)
    responses = sum(1 for app in apps if _is_response(app))
    interviews = sum(1 for app in apps if app.status in INTERVIEW_STATUSES)
    offers = sum(1 for app in apps if app.status in OFFER_STATUSES)

    return ApplicationMetrics(
        total_applications=total,
        response_rate=percentage(responses, total),
        average_response_time=average_response_time(apps),
        interview_rate=percentage(interviews, total),
        offer_rate=percentage(offers, total),
        by_company=company_breakdown(apps, jobs, limit=top_companies),
        by_job_type=job_type_breakdown(apps, jobs),
        time_to_interview=time_to_interview(apps),
    )
