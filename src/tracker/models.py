"""Data models for the Application Tracker."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class ApplicationStatus(str, Enum):
    """Status of a job application."""

    SAVED = "SAVED"
    APPLIED = "APPLIED"
    IN_REVIEW = "IN_REVIEW"
    INTERVIEW_SCHEDULED = "INTERVIEW_SCHEDULED"
    INTERVIEWED = "INTERVIEWED"
    OFFER_RECEIVED = "OFFER_RECEIVED"
    ACCEPTED = "ACCEPTED"
    REJECTED = "REJECTED"
    WITHDRAWN = "WITHDRAWN"


# Statuses that have not (yet) received any reaction from the employer
AWAITING_RESPONSE_STATUSES = frozenset(
    {ApplicationStatus.SAVED, ApplicationStatus.APPLIED}
)

# Statuses at or beyond the interview stage
INTERVIEW_STATUSES = frozenset(
    {
        ApplicationStatus.INTERVIEW_SCHEDULED,
        ApplicationStatus.INTERVIEWED,
        ApplicationStatus.OFFER_RECEIVED,
        ApplicationStatus.ACCEPTED,
    }
)

OFFER_STATUSES = frozenset(
    {ApplicationStatus.OFFER_RECEIVED, ApplicationStatus.ACCEPTED}
)

# Statuses for which an interview is still pending or just happened
ACTIVE_INTERVIEW_STATUSES = frozenset(
    {ApplicationStatus.INTERVIEW_SCHEDULED, ApplicationStatus.INTERVIEWED}
)


def utc_now() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(UTC)


def ensure_utc(value: datetime) -> datetime:
    """Interpret naive datetimes as UTC and convert aware ones to UTC."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def parse_datetime(value: str | datetime | None) -> datetime | None:
    """Parse an ISO-8601 string (or pass through a datetime) as UTC."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return ensure_utc(value)
    return ensure_utc(datetime.fromisoformat(value))


def _isoformat(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


class OfferDetails(BaseModel):
    """Terms of a received offer."""

    salary: float | None = Field(default=None, ge=0, description="Offered salary")
    benefits: str | None = Field(default=None, description="Benefits summary")
    start_date: datetime | None = Field(default=None, description="Proposed start")
    location: str | None = Field(default=None, description="Work location")
    remote: bool | None = Field(default=None, description="Remote position")

    def to_dict(self) -> dict:
        """Serialize to a dictionary."""
        return self.model_dump(mode="json")

    @classmethod
    def from_dict(cls, data: dict) -> OfferDetails:
        """Deserialize from a dictionary."""
        return cls.model_validate(data)


class Contact(BaseModel):
    """A person associated with an application (recruiter, interviewer...)."""

    name: str = Field(..., description="Contact name")
    role: str = Field(..., description="Contact role at the company")
    email: str | None = Field(default=None, description="Email address")
    phone: str | None = Field(default=None, description="Phone number")
    notes: str | None = Field(default=None, description="Free-form notes")

    def to_dict(self) -> dict:
        """Serialize to a dictionary."""
        return self.model_dump(mode="json")

    @classmethod
    def from_dict(cls, data: dict) -> Contact:
        """Deserialize from a dictionary."""
        return cls.model_validate(data)


@dataclass
class StatusHistoryEntry:
    """One entry in an application's status history."""

    status: ApplicationStatus
    date: datetime
    notes: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "date": self.date.isoformat(),
            "notes": self.notes,
        }

    @classmethod
    def from_dict(cls, data: dict) -> StatusHistoryEntry:
        return cls(
            status=ApplicationStatus(data["status"]),
            date=parse_datetime(data["date"]),
            notes=data.get("notes"),
        )


@dataclass
class JobPosting:
    """A job posting an application refers to.

    Job postings are owned by the job catalog; the tracker only reads them
    to join display fields and to group metrics.
    """

    id: str
    title: str
    company: str
    location: str | None = None
    employment_type: str | None = None
    salary_min: float | None = None
    salary_max: float | None = None
    visa_sponsorship: bool = False
    created_at: datetime | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "company": self.company,
            "location": self.location,
            "employment_type": self.employment_type,
            "salary_min": self.salary_min,
            "salary_max": self.salary_max,
            "visa_sponsorship": self.visa_sponsorship,
            "created_at": _isoformat(self.created_at),
        }

    @classmethod
    def from_dict(cls, data: dict) -> JobPosting:
        return cls(
            id=data["id"],
            title=data["title"],
            company=data["company"],
            location=data.get("location"),
            employment_type=data.get("employment_type"),
            salary_min=data.get("salary_min"),
            salary_max=data.get("salary_max"),
            visa_sponsorship=bool(data.get("visa_sponsorship", False)),
            created_at=parse_datetime(data.get("created_at")),
        )


@dataclass
class Application:
    """A user's tracked pursuit of one job posting.

    Attributes:
        id: Opaque identifier of the application.
        user_id: Owner of the application.
        job_id: The job posting applied to.
        status: Current status.
        status_history: Chronological log of status changes. The last entry
            always carries the current status.
        created_at: When the record was stored.
        updated_at: When the record was last written.
        applied_date: First time the application entered APPLIED.
        interview_dates: Scheduled (past or future) interview times.
        notes: Free-form notes.
        reminder_date: When the user wants to be reminded.
        reminder_set: Whether a reminder date is present.
        follow_up_date: When the user plans to follow up.
        offer_details: Terms of an offer, once one exists.
        resume_id: Tailored resume used for this application.
        cover_letter_id: Cover letter used for this application.
        match_score: Fit score between 0 and 100.
        contacts: People involved in the process.
    """

    id: str
    user_id: str
    job_id: str
    status: ApplicationStatus
    status_history: list[StatusHistoryEntry]
    created_at: datetime
    updated_at: datetime
    applied_date: datetime | None = None
    interview_dates: list[datetime] = field(default_factory=list)
    notes: str | None = None
    reminder_date: datetime | None = None
    reminder_set: bool = False
    follow_up_date: datetime | None = None
    offer_details: OfferDetails | None = None
    resume_id: str | None = None
    cover_letter_id: str | None = None
    match_score: int | None = None
    contacts: list[Contact] = field(default_factory=list)

    @property
    def response_anchor(self) -> datetime:
        """Timestamp response and interview delays are measured from."""
        return self.applied_date or self.created_at

    def to_dict(self) -> dict[str, Any]:
        """Serialize the application to a dictionary.

        Returns:
            Dictionary representation of the application.
        """
        return {
            "id": self.id,
            "user_id": self.user_id,
            "job_id": self.job_id,
            "status": self.status.value,
            "status_history": [entry.to_dict() for entry in self.status_history],
            "created_at": _isoformat(self.created_at),
            "updated_at": _isoformat(self.updated_at),
            "applied_date": _isoformat(self.applied_date),
            "interview_dates": [value.isoformat() for value in self.interview_dates],
            "notes": self.notes,
            "reminder_date": _isoformat(self.reminder_date),
            "reminder_set": self.reminder_set,
            "follow_up_date": _isoformat(self.follow_up_date),
            "offer_details": self.offer_details.to_dict()
            if self.offer_details
            else None,
            "resume_id": self.resume_id,
            "cover_letter_id": self.cover_letter_id,
            "match_score": self.match_score,
            "contacts": [contact.to_dict() for contact in self.contacts],
        }

    @classmethod
    def from_dict(cls, data: dict) -> Application:
        """Deserialize an application from a dictionary.

        Args:
            data: Dictionary containing application data.

        Returns:
            Application instance.
        """
        offer = data.get("offer_details")
        return cls(
            id=data["id"],
            user_id=data["user_id"],
            job_id=data["job_id"],
            status=ApplicationStatus(data["status"]),
            status_history=[
                StatusHistoryEntry.from_dict(entry)
                for entry in data.get("status_history") or []
            ],
            created_at=parse_datetime(data["created_at"]),
            updated_at=parse_datetime(data["updated_at"]),
            applied_date=parse_datetime(data.get("applied_date")),
            interview_dates=[
                parse_datetime(value) for value in data.get("interview_dates") or []
            ],
            notes=data.get("notes"),
            reminder_date=parse_datetime(data.get("reminder_date")),
            reminder_set=bool(data.get("reminder_set", False)),
            follow_up_date=parse_datetime(data.get("follow_up_date")),
            offer_details=OfferDetails.from_dict(offer) if offer else None,
            resume_id=data.get("resume_id"),
            cover_letter_id=data.get("cover_letter_id"),
            match_score=data.get("match_score"),
            contacts=[Contact.from_dict(item) for item in data.get("contacts") or []],
        )
