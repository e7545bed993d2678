"""Analytics service over a user's applications."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime, timedelta

from src.analytics.config import AnalyticsConfig, get_analytics_config
from src.analytics.interviews import find_upcoming_interviews
from src.analytics.metrics import compute_metrics
from src.analytics.models import ApplicationMetrics, StatusCounts, UpcomingInterview
from src.tracker.errors import ValidationError
from src.tracker.models import Application, ApplicationStatus, ensure_utc, utc_now
from src.tracker.query import ApplicationFilters
from src.tracker.repository import ApplicationStore, JobCatalog

logger = logging.getLogger(__name__)


class AnalyticsService:
    """Read-only reporting over a point-in-time snapshot of applications.

    Each call loads the user's applications once and reduces them in
    memory; nothing is cached between calls.
    """

    def __init__(
        self,
        repository: ApplicationStore,
        job_catalog: JobCatalog,
        config: AnalyticsConfig | None = None,
        *,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.repository = repository
        self.job_catalog = job_catalog
        self.config = config or get_analytics_config()
        self._clock = clock

    def _now(self) -> datetime:
        return ensure_utc(self._clock())

    async def get_application_metrics(self, user_id: str) -> ApplicationMetrics:
        """Compute rates, response times and breakdowns for a user."""
        logger.info("Calculating application metrics for user %s", user_id)
        applications = await self.repository.list_all_by_owner(user_id)
        jobs = await self.job_catalog.get_many(app.job_id for app in applications)

        metrics = compute_metrics(
            applications, jobs, top_companies=self.config.top_companies_limit
        )
        logger.info(
            "Metrics for user %s: %s applications, response rate %s%%",
            user_id,
            metrics.total_applications,
            metrics.response_rate,
        )
        return metrics

    async def get_upcoming_interviews(
        self, user_id: str, days: int | None = None
    ) -> list[UpcomingInterview]:
        """List a user's interviews in the next ``days`` days.

        Raises:
            ValidationError: If ``days`` is not positive.
        """
        window = self.config.upcoming_window_days if days is None else days
        if window <= 0:
            raise ValidationError(
                "days must be a positive number",
                operation="get_upcoming_interviews",
                context={"user_id": user_id, "days": days},
            )

        logger.info("Fetching upcoming interviews for user %s (%s days)", user_id, window)
        applications = [
            app
            for app in await self.repository.list_all_by_owner(user_id)
            if app.interview_dates
        ]
        jobs = await self.job_catalog.get_many(app.job_id for app in applications)

        interviews = find_upcoming_interviews(applications, jobs, self._now(), window)
        logger.info("Found %s upcoming interviews for user %s", len(interviews), user_id)
        return interviews

    async def get_status_counts(self, user_id: str) -> StatusCounts:
        """Count a user's applications per status."""
        counts = await self.repository.get_status_counts(user_id)
        return StatusCounts(
            counts={status: counts.get(status, 0) for status in ApplicationStatus}
        )

    async def get_follow_up_candidates(
        self, user_id: str, older_than_days: int | None = None
    ) -> list[Application]:
        """Applications still awaiting a response after ``older_than_days``.

        Returns APPLIED applications whose applied date is at least
        ``older_than_days`` days old, oldest first.

        Raises:
            ValidationError: If ``older_than_days`` is negative.
        """
        threshold = (
            self.config.follow_up_after_days
            if older_than_days is None
            else older_than_days
        )
        if threshold < 0:
            raise ValidationError(
                "older_than_days must not be negative",
                operation="get_follow_up_candidates",
                context={"user_id": user_id, "older_than_days": older_than_days},
            )

        cutoff = self._now() - timedelta(days=threshold)
        filters = ApplicationFilters(status=ApplicationStatus.APPLIED, end_date=cutoff)
        return await self.repository.list_by_owner(
            user_id, filters, sort_by="applied_date", sort_order="asc"
        )
