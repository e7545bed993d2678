"""Tests for listing filters and pagination helpers."""

from datetime import UTC, datetime

import pytest

from src.tracker.errors import ValidationError
from src.tracker.models import ApplicationStatus, JobPosting
from src.tracker.query import (
    ApplicationFilters,
    Pagination,
    build_page_info,
    compute_skip,
    matches_search,
)


class TestApplicationFilters:
    """Test ApplicationFilters parsing."""

    def test_defaults_are_empty(self):
        filters = ApplicationFilters.parse(None)

        assert filters.status is None
        assert filters.job_id is None
        assert filters.search is None
        assert filters.start_date is None
        assert filters.end_date is None

    def test_status_is_case_insensitive(self):
        filters = ApplicationFilters.parse({"status": "interview-scheduled"})
        assert filters.status == ApplicationStatus.INTERVIEW_SCHEDULED

    def test_unknown_status_raises_validation_error(self):
        with pytest.raises(ValidationError, match="status"):
            ApplicationFilters.parse({"status": "GHOSTED"})

    def test_unknown_key_raises_validation_error(self):
        with pytest.raises(ValidationError, match="company"):
            ApplicationFilters.parse({"company": "ExampleCo"})

    def test_blank_search_is_ignored(self):
        assert ApplicationFilters.parse({"search": "   "}).search is None

    def test_dates_are_normalized_to_utc(self):
        filters = ApplicationFilters.parse({"start_date": "2026-01-01T00:00:00"})
        assert filters.start_date == datetime(2026, 1, 1, tzinfo=UTC)

    def test_inverted_range_rejected(self):
        with pytest.raises(ValidationError, match="start_date"):
            ApplicationFilters.parse(
                {"start_date": "2026-02-01T00:00:00Z", "end_date": "2026-01-01T00:00:00Z"}
            )


class TestPagination:
    """Test Pagination parsing and limit resolution."""

    def test_defaults(self):
        pagination = Pagination.parse({})

        assert pagination.page == 1
        assert pagination.limit is None
        assert pagination.sort_by == "applied_date"
        assert pagination.sort_order == "desc"

    @pytest.mark.parametrize("data", [{"page": 0}, {"limit": 0}, {"page": -3}])
    def test_non_positive_values_rejected(self, data):
        with pytest.raises(ValidationError):
            Pagination.parse(data)

    def test_unsupported_sort_field_rejected(self):
        with pytest.raises(ValidationError, match="sort_by"):
            Pagination.parse({"sort_by": "company"})

    def test_sort_order_case_insensitive(self):
        assert Pagination.parse({"sort_order": "ASC"}).sort_order == "asc"

    def test_resolve_limit_uses_default(self):
        assert Pagination().resolve_limit(20, 100) == 20

    def test_resolve_limit_caps_at_maximum(self):
        assert Pagination(limit=500).resolve_limit(20, 100) == 100

    def test_resolve_limit_keeps_requested(self):
        assert Pagination(limit=5).resolve_limit(20, 100) == 5


class TestPageInfo:
    """Test pagination metadata."""

    def test_compute_skip(self):
        assert compute_skip(1, 20) == 0
        assert compute_skip(3, 10) == 20

    def test_middle_page(self):
        info = build_page_info(page=2, limit=10, total=25)

        assert info.total_pages == 3
        assert info.has_next is True
        assert info.has_prev is True

    def test_last_page(self):
        info = build_page_info(page=3, limit=10, total=25)

        assert info.has_next is False
        assert info.has_prev is True

    def test_exact_multiple(self):
        info = build_page_info(page=2, limit=10, total=20)

        assert info.total_pages == 2
        assert info.has_next is False

    def test_empty_result(self):
        info = build_page_info(page=1, limit=20, total=0)

        assert info.total_pages == 0
        assert info.has_next is False
        assert info.has_prev is False
        assert info.to_dict()["total"] == 0


class TestMatchesSearch:
    """Test free-text job matching."""

    @pytest.fixture
    def job(self):
        return JobPosting(id="job-1", title="Backend Engineer", company="Acme Corp")

    def test_matches_title_case_insensitively(self, job):
        assert matches_search(job, "backend")

    def test_matches_company(self, job):
        assert matches_search(job, "ACME")

    def test_no_match(self, job):
        assert not matches_search(job, "designer")

    def test_empty_term_matches_everything(self, job):
        assert matches_search(job, None)
        assert matches_search(None, "")

    def test_missing_job_never_matches(self):
        assert not matches_search(None, "acme")
