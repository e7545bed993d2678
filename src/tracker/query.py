"""Filtering and pagination helpers for application listings."""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Literal

import pydantic
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from src.tracker.errors import ValidationError
from src.tracker.models import Application, ApplicationStatus, JobPosting, ensure_utc

DEFAULT_PAGE_LIMIT = 20
MAX_PAGE_LIMIT = 100

SortField = Literal["applied_date", "created_at", "updated_at", "status"]
SortOrder = Literal["asc", "desc"]


def _format_validation_error(exc: pydantic.ValidationError) -> str:
    parts = []
    for error in exc.errors():
        location = ".".join(str(item) for item in error.get("loc", ())) or "value"
        parts.append(f"{location}: {error.get('msg')}")
    return "; ".join(parts)


class ApplicationFilters(BaseModel):
    """Recognized filters for listing a user's applications.

    ``status``, ``job_id`` and the date range are applied by the store.
    ``search`` is matched against the joined job's title and company after
    the page has been fetched.
    """

    model_config = ConfigDict(extra="forbid")

    status: ApplicationStatus | None = Field(default=None, description="Status")
    job_id: str | None = Field(default=None, description="Job posting id")
    search: str | None = Field(default=None, description="Title/company text")
    start_date: datetime | None = Field(
        default=None, description="Earliest applied date (inclusive)"
    )
    end_date: datetime | None = Field(
        default=None, description="Latest applied date (inclusive)"
    )

    @field_validator("status", mode="before")
    @classmethod
    def normalize_status(cls, v: object) -> object:
        """Accept status names in any case."""
        if isinstance(v, str):
            return v.strip().upper().replace("-", "_")
        return v

    @field_validator("search", "job_id", mode="before")
    @classmethod
    def blank_to_none(cls, v: object) -> object:
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @field_validator("start_date", "end_date", mode="after")
    @classmethod
    def to_utc(cls, v: datetime | None) -> datetime | None:
        return ensure_utc(v) if v is not None else None

    @model_validator(mode="after")
    def validate_range(self) -> ApplicationFilters:
        if self.start_date and self.end_date and self.start_date > self.end_date:
            raise ValueError("start_date must not be after end_date")
        return self

    @classmethod
    def parse(cls, data: dict[str, Any] | None) -> ApplicationFilters:
        """Build filters from loosely-typed input.

        Raises:
            ValidationError: On unknown keys or invalid values.
        """
        try:
            return cls.model_validate(data or {})
        except pydantic.ValidationError as exc:
            raise ValidationError(
                f"Invalid filters: {_format_validation_error(exc)}",
                operation="get_applications",
            ) from exc


class Pagination(BaseModel):
    """Page selection and ordering for application listings."""

    model_config = ConfigDict(extra="forbid")

    page: int = Field(default=1, ge=1, description="1-based page number")
    limit: int | None = Field(
        default=None, ge=1, description="Page size (capped by the service)"
    )
    sort_by: SortField = Field(default="applied_date", description="Sort field")
    sort_order: SortOrder = Field(default="desc", description="Sort direction")

    @field_validator("sort_order", mode="before")
    @classmethod
    def normalize_sort_order(cls, v: object) -> object:
        if isinstance(v, str):
            return v.strip().lower()
        return v

    def resolve_limit(
        self,
        default_limit: int = DEFAULT_PAGE_LIMIT,
        max_limit: int = MAX_PAGE_LIMIT,
    ) -> int:
        """Return the effective page size, falling back to the default and capped."""
        return min(self.limit or default_limit, max_limit)

    @classmethod
    def parse(cls, data: dict[str, Any] | None) -> Pagination:
        """Build pagination from loosely-typed input.

        Raises:
            ValidationError: On unknown keys or invalid values.
        """
        try:
            return cls.model_validate(data or {})
        except pydantic.ValidationError as exc:
            raise ValidationError(
                f"Invalid pagination: {_format_validation_error(exc)}",
                operation="get_applications",
            ) from exc


@dataclass(frozen=True)
class PageInfo:
    """Pagination metadata for a listing."""

    page: int
    limit: int
    total: int
    total_pages: int
    has_next: bool
    has_prev: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "page": self.page,
            "limit": self.limit,
            "total": self.total,
            "total_pages": self.total_pages,
            "has_next": self.has_next,
            "has_prev": self.has_prev,
        }


@dataclass
class ApplicationView:
    """An application joined with its job posting (None if the job is gone)."""

    application: Application
    job: JobPosting | None

    def to_dict(self) -> dict[str, Any]:
        data = self.application.to_dict()
        data["job"] = self.job.to_dict() if self.job else None
        return data


@dataclass
class ApplicationPage:
    """One page of a user's applications."""

    applications: list[ApplicationView]
    pagination: PageInfo

    def to_dict(self) -> dict[str, Any]:
        return {
            "applications": [view.to_dict() for view in self.applications],
            "pagination": self.pagination.to_dict(),
        }


def compute_skip(page: int, limit: int) -> int:
    """Return the number of rows to skip for a 1-based page."""
    return (page - 1) * limit


def build_page_info(page: int, limit: int, total: int) -> PageInfo:
    """Compute pagination metadata.

    Args:
        page: 1-based page number.
        limit: Page size.
        total: Number of rows matching the store-level filters.

    Returns:
        The PageInfo for the page.
    """
    return PageInfo(
        page=page,
        limit=limit,
        total=total,
        total_pages=math.ceil(total / limit) if limit else 0,
        has_next=page * limit < total,
        has_prev=page > 1,
    )


def matches_search(job: JobPosting | None, term: str | None) -> bool:
    """Return True if the job's title or company contains ``term``.

    An empty term matches everything; a missing job matches nothing.
    """
    if not term:
        return True
    if job is None:
        return False
    needle = term.lower()
    return needle in (job.title or "").lower() or needle in (job.company or "").lower()
