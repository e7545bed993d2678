"""Business logic service for the Application Tracker.

This module provides the ApplicationService class which handles:
- Creating applications with duplicate protection
- Status changes validated against the transition table
- Timelines with suggested next steps
- Filtered, paginated listings
"""

from __future__ import annotations

import logging
import sqlite3
import uuid
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from src.tracker.errors import (
    ConflictError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)
from src.tracker.models import (
    Application,
    ApplicationStatus,
    Contact,
    JobPosting,
    OfferDetails,
    StatusHistoryEntry,
    ensure_utc,
    utc_now,
)
from src.tracker.query import (
    DEFAULT_PAGE_LIMIT,
    MAX_PAGE_LIMIT,
    ApplicationFilters,
    ApplicationPage,
    ApplicationView,
    Pagination,
    build_page_info,
    compute_skip,
    matches_search,
)
from src.tracker.repository import ApplicationStore, JobCatalog
from src.tracker.transitions import get_next_steps, validate_transition

logger = logging.getLogger(__name__)


@dataclass
class ApplicationTimeline:
    """An application with its ordered history and suggested next steps."""

    application: Application
    job: JobPosting | None
    timeline: list[StatusHistoryEntry]
    current_status: ApplicationStatus
    next_steps: list[str]

    def to_dict(self) -> dict[str, Any]:
        return {
            "application": self.application.to_dict(),
            "job": self.job.to_dict() if self.job else None,
            "timeline": [entry.to_dict() for entry in self.timeline],
            "current_status": self.current_status.value,
            "next_steps": list(self.next_steps),
        }


def _coerce_status(value: ApplicationStatus | str, operation: str) -> ApplicationStatus:
    try:
        return ApplicationStatus(value)
    except ValueError as exc:
        raise ValidationError(
            f"Unknown application status: {value}",
            operation=operation,
            context={"status": str(value)},
        ) from exc


def _validate_match_score(score: int | None, operation: str) -> None:
    if score is not None and not 0 <= score <= 100:
        raise ValidationError(
            "match_score must be between 0 and 100",
            operation=operation,
            context={"match_score": score},
        )


class ApplicationService:
    """Business logic service for tracking job applications.

    The service holds no state of its own: every operation reads from and
    writes to the injected store, and joins job data through the catalog.
    All operations are scoped by ``user_id``; an application that exists but
    belongs to someone else is reported exactly like a missing one.
    """

    def __init__(
        self,
        repository: ApplicationStore,
        job_catalog: JobCatalog,
        *,
        default_page_limit: int = DEFAULT_PAGE_LIMIT,
        max_page_limit: int = MAX_PAGE_LIMIT,
        clock: Callable[[], datetime] = utc_now,
    ):
        """Initialize the service.

        Args:
            repository: Store for application records.
            job_catalog: Lookup for job postings.
            default_page_limit: Page size when a listing does not specify one.
            max_page_limit: Upper bound on any requested page size.
            clock: Source of the current time.
        """
        self.repository = repository
        self.job_catalog = job_catalog
        self.default_page_limit = default_page_limit
        self.max_page_limit = max_page_limit
        self._clock = clock

    def _now(self) -> datetime:
        return ensure_utc(self._clock())

    async def create_application(
        self,
        user_id: str,
        job_id: str | None,
        status: ApplicationStatus | str | None = None,
        *,
        notes: str | None = None,
        resume_id: str | None = None,
        cover_letter_id: str | None = None,
        interview_dates: list[datetime] | None = None,
        reminder_date: datetime | None = None,
        match_score: int | None = None,
        contacts: list[Contact] | None = None,
    ) -> Application:
        """Create a new application for a job.

        Args:
            user_id: Owner of the new application.
            job_id: Job posting to apply to.
            status: Initial status; defaults to APPLIED.
            notes: Notes stored on the record and on the first history entry.
            resume_id: Tailored resume used.
            cover_letter_id: Cover letter used.
            interview_dates: Already scheduled interviews.
            reminder_date: Optional reminder.
            match_score: Optional fit score (0-100).
            contacts: People involved in the process.

        Returns:
            The stored application.

        Raises:
            ValidationError: If job_id is missing or an input is out of range.
            NotFoundError: If the job posting does not exist.
            ConflictError: If the user already has an application for the job.
        """
        operation = "create_application"
        context = {"user_id": user_id, "job_id": job_id}
        logger.info("Creating application for user %s, job %s", user_id, job_id)

        if not job_id:
            raise ValidationError("Job ID is required", operation=operation, context=context)
        _validate_match_score(match_score, operation)
        initial_status = (
            _coerce_status(status, operation) if status else ApplicationStatus.APPLIED
        )

        job = await self.job_catalog.get_by_id(job_id)
        if job is None:
            logger.warning("Job %s not found while creating application", job_id)
            raise NotFoundError("Job not found", operation=operation, context=context)

        existing = await self.repository.get_by_owner_and_job(user_id, job_id)
        if existing is not None:
            logger.warning(
                "Application %s already exists for user %s, job %s",
                existing.id,
                user_id,
                job_id,
            )
            raise ConflictError(
                "Application already exists for this job",
                operation=operation,
                context={**context, "application_id": existing.id},
            )

        now = self._now()
        application = Application(
            id=uuid.uuid4().hex,
            user_id=user_id,
            job_id=job_id,
            status=initial_status,
            status_history=[StatusHistoryEntry(initial_status, now, notes)],
            created_at=now,
            updated_at=now,
            applied_date=now if initial_status == ApplicationStatus.APPLIED else None,
            interview_dates=[ensure_utc(value) for value in interview_dates or []],
            notes=notes,
            reminder_date=ensure_utc(reminder_date) if reminder_date else None,
            reminder_set=reminder_date is not None,
            resume_id=resume_id,
            cover_letter_id=cover_letter_id,
            match_score=match_score,
            contacts=list(contacts or []),
        )

        try:
            await self.repository.insert(application)
        except sqlite3.IntegrityError as exc:
            # Lost a race with a concurrent create for the same job
            logger.warning(
                "Duplicate application rejected by store for user %s, job %s",
                user_id,
                job_id,
            )
            raise ConflictError(
                "Application already exists for this job",
                operation=operation,
                context=context,
            ) from exc

        logger.info("Application %s created with status %s", application.id, initial_status.value)
        return application

    async def update_application(
        self,
        application_id: str,
        user_id: str,
        status: ApplicationStatus | str | None = None,
        *,
        notes: str | None = None,
        interview_dates: list[datetime] | None = None,
        reminder_date: datetime | None = None,
        follow_up_date: datetime | None = None,
        offer_details: OfferDetails | None = None,
        contacts: list[Contact] | None = None,
    ) -> Application:
        """Change an application's status and/or update its fields.

        When ``status`` is given the change is validated against the
        transition table and recorded in the history; ``notes`` then goes on
        the new history entry instead of the record's notes field. Field-only
        updates never touch the history. The whole update is applied as one
        atomic store write.

        Returns:
            The updated application.

        Raises:
            NotFoundError: If the application is missing or not owned.
            InvalidTransitionError: If the status change is not allowed.
        """
        operation = "update_application"
        new_status = _coerce_status(status, operation) if status else None
        logger.info(
            "Updating application %s for user %s (status=%s)",
            application_id,
            user_id,
            new_status.value if new_status else None,
        )
        now = self._now()

        def mutate(application: Application) -> Application:
            if new_status is not None:
                validate_transition(application.status, new_status, operation=operation)
                application.status = new_status
                application.status_history.append(
                    StatusHistoryEntry(new_status, now, notes)
                )
                if new_status == ApplicationStatus.APPLIED and application.applied_date is None:
                    application.applied_date = now
            elif notes is not None:
                application.notes = notes

            if interview_dates is not None:
                application.interview_dates = [ensure_utc(value) for value in interview_dates]
            if reminder_date is not None:
                application.reminder_date = ensure_utc(reminder_date)
                application.reminder_set = True
            if follow_up_date is not None:
                application.follow_up_date = ensure_utc(follow_up_date)
            if offer_details is not None:
                application.offer_details = offer_details
            if contacts is not None:
                application.contacts = list(contacts)
            return application

        try:
            updated = await self.repository.update_by_owner_and_id(
                application_id, user_id, mutate
            )
        except InvalidTransitionError as exc:
            logger.warning("Rejected status change for %s: %s", application_id, exc)
            raise

        if updated is None:
            logger.warning("Application %s not found for user %s", application_id, user_id)
            raise NotFoundError(
                "Application not found or access denied",
                operation=operation,
                context={"application_id": application_id, "user_id": user_id},
            )

        logger.info("Application %s updated, status %s", application_id, updated.status.value)
        return updated

    async def get_application(self, application_id: str, user_id: str) -> Application:
        """Get one application owned by ``user_id``.

        Raises:
            NotFoundError: If the application is missing or not owned.
        """
        application = await self.repository.get_by_owner_and_id(application_id, user_id)
        if application is None:
            raise NotFoundError(
                "Application not found or access denied",
                operation="get_application",
                context={"application_id": application_id, "user_id": user_id},
            )
        return application

    async def get_application_timeline(
        self, application_id: str, user_id: str
    ) -> ApplicationTimeline:
        """Get an application's chronological history and next steps.

        Raises:
            NotFoundError: If the application is missing or not owned.
        """
        logger.info("Fetching timeline for application %s", application_id)
        application = await self.repository.get_by_owner_and_id(application_id, user_id)
        if application is None:
            raise NotFoundError(
                "Application not found or access denied",
                operation="get_application_timeline",
                context={"application_id": application_id, "user_id": user_id},
            )

        job = await self.job_catalog.get_by_id(application.job_id)
        timeline = sorted(application.status_history, key=lambda entry: entry.date)
        return ApplicationTimeline(
            application=application,
            job=job,
            timeline=timeline,
            current_status=application.status,
            next_steps=get_next_steps(application.status),
        )

    async def delete_application(self, application_id: str, user_id: str) -> None:
        """Delete an application owned by ``user_id``.

        Raises:
            NotFoundError: If the application is missing or not owned.
        """
        logger.info("Deleting application %s for user %s", application_id, user_id)
        deleted = await self.repository.delete_by_owner_and_id(application_id, user_id)
        if not deleted:
            raise NotFoundError(
                "Application not found or access denied",
                operation="delete_application",
                context={"application_id": application_id, "user_id": user_id},
            )
        logger.info("Application %s deleted", application_id)

    async def get_applications(
        self,
        user_id: str,
        filters: ApplicationFilters | dict[str, Any] | None = None,
        pagination: Pagination | dict[str, Any] | None = None,
    ) -> ApplicationPage:
        """List a user's applications, one page at a time.

        Status, job and date-range filters are applied by the store and
        determine the totals in the page info. The free-text ``search`` is
        matched against job title/company after the page is fetched, so a
        page can hold fewer than ``limit`` applications even when more
        matches exist on later pages.

        Raises:
            ValidationError: If filters or pagination are malformed.
        """
        if not isinstance(filters, ApplicationFilters):
            filters = ApplicationFilters.parse(filters)
        if not isinstance(pagination, Pagination):
            pagination = Pagination.parse(pagination)

        page = pagination.page
        limit = pagination.resolve_limit(self.default_page_limit, self.max_page_limit)
        logger.info(
            "Listing applications for user %s (page=%s, limit=%s)", user_id, page, limit
        )

        applications = await self.repository.list_by_owner(
            user_id,
            filters,
            sort_by=pagination.sort_by,
            sort_order=pagination.sort_order,
            skip=compute_skip(page, limit),
            limit=limit,
        )
        total = await self.repository.count_by_owner(user_id, filters)
        jobs = await self.job_catalog.get_many(app.job_id for app in applications)

        views = [
            ApplicationView(application=app, job=jobs.get(app.job_id))
            for app in applications
        ]
        if filters.search:
            views = [view for view in views if matches_search(view.job, filters.search)]

        logger.info("Found %s applications on page (total %s)", len(views), total)
        return ApplicationPage(
            applications=views,
            pagination=build_page_info(page, limit, total),
        )

    async def get_applications_by_job(self, user_id: str, job_id: str) -> list[Application]:
        """Get a user's applications for one job, newest applied first."""
        logger.info("Fetching applications for user %s, job %s", user_id, job_id)
        return await self.repository.list_by_owner_and_job(user_id, job_id)
