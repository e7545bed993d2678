"""Result models for application analytics."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from src.tracker.models import ApplicationStatus


@dataclass(frozen=True)
class CompanyStats:
    """Application outcomes for one company."""

    company: str
    applications: int
    interviews: int
    offers: int
    response_rate: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "company": self.company,
            "applications": self.applications,
            "interviews": self.interviews,
            "offers": self.offers,
            "response_rate": self.response_rate,
        }


@dataclass(frozen=True)
class JobTypeStats:
    """Application outcomes for one employment type."""

    job_type: str
    applications: int
    success_rate: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "job_type": self.job_type,
            "applications": self.applications,
            "success_rate": self.success_rate,
        }


@dataclass(frozen=True)
class TimeToInterview:
    """Days from applying to the first interview-stage status."""

    average: int = 0
    fastest: int = 0
    slowest: int = 0

    def to_dict(self) -> dict[str, int]:
        return {
            "average": self.average,
            "fastest": self.fastest,
            "slowest": self.slowest,
        }


@dataclass(frozen=True)
class ApplicationMetrics:
    """Success metrics over all of a user's applications.

    Rates are whole percentages; durations are whole days.
    """

    total_applications: int = 0
    response_rate: int = 0
    average_response_time: int = 0
    interview_rate: int = 0
    offer_rate: int = 0
    by_company: list[CompanyStats] = field(default_factory=list)
    by_job_type: list[JobTypeStats] = field(default_factory=list)
    time_to_interview: TimeToInterview = field(default_factory=TimeToInterview)

    def to_dict(self) -> dict[str, Any]:
        return {
            "total_applications": self.total_applications,
            "response_rate": self.response_rate,
            "average_response_time": self.average_response_time,
            "interview_rate": self.interview_rate,
            "offer_rate": self.offer_rate,
            "by_company": [stats.to_dict() for stats in self.by_company],
            "by_job_type": [stats.to_dict() for stats in self.by_job_type],
            "time_to_interview": self.time_to_interview.to_dict(),
        }


@dataclass(frozen=True)
class UpcomingInterview:
    """One scheduled interview occurrence within the lookahead window."""

    application_id: str
    job_id: str
    job_title: str
    company: str
    interview_date: datetime
    days_until: int
    status: ApplicationStatus
    notes: str | None = None
    location: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "application_id": self.application_id,
            "job_id": self.job_id,
            "job_title": self.job_title,
            "company": self.company,
            "interview_date": self.interview_date.isoformat(),
            "days_until": self.days_until,
            "notes": self.notes,
            "location": self.location,
            "status": self.status.value,
        }


@dataclass(frozen=True)
class StatusCounts:
    """Number of applications in each status."""

    counts: dict[ApplicationStatus, int]

    @property
    def total(self) -> int:
        return sum(self.counts.values())

    def get(self, status: ApplicationStatus) -> int:
        return self.counts.get(status, 0)

    def to_dict(self) -> dict[str, int]:
        data = {status.value: self.get(status) for status in ApplicationStatus}
        data["total"] = self.total
        return data
