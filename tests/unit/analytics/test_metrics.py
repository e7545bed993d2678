"""Tests for application success metrics."""

import pytest

from src.analytics.metrics import (
    UNKNOWN_JOB_TYPE,
    company_breakdown,
    compute_metrics,
    job_type_breakdown,
    percentage,
    round_half_up,
    time_to_interview,
)
from src.tracker.models import ApplicationStatus as S
from src.tracker.models import JobPosting


class TestRounding:
    """Test whole-number rounding."""

    @pytest.mark.parametrize(
        ("value", "expected"),
        [(0.5, 1), (1.5, 2), (2.5, 3), (2.49, 2), (-2.5, -2), (7.0, 7)],
    )
    def test_round_half_up(self, value, expected):
        assert round_half_up(value) == expected

    def test_percentage(self):
        assert percentage(1, 3) == 33
        assert percentage(2, 3) == 67
        assert percentage(1, 8) == 13
        assert percentage(3, 5) == 60

    def test_percentage_of_nothing_is_zero(self):
        assert percentage(0, 0) == 0
        assert percentage(3, 0) == 0


class TestComputeMetrics:
    """Test the aggregate metrics."""

    @pytest.fixture
    def applications(self, make_application):
        return [
            make_application((S.APPLIED, 0), (S.INTERVIEW_SCHEDULED, 4)),
            make_application((S.APPLIED, 0), (S.IN_REVIEW, 2), (S.INTERVIEW_SCHEDULED, 10)),
            make_application((S.APPLIED, 0), (S.IN_REVIEW, 3), (S.OFFER_RECEIVED, 7)),
            make_application((S.APPLIED, 0)),
            make_application((S.APPLIED, 0)),
        ]

    def test_empty_input_is_all_zero(self):
        metrics = compute_metrics([])

        assert metrics.total_applications == 0
        assert metrics.response_rate == 0
        assert metrics.average_response_time == 0
        assert metrics.interview_rate == 0
        assert metrics.offer_rate == 0
        assert metrics.by_company == []
        assert metrics.by_job_type == []
        assert metrics.time_to_interview.to_dict() == {
            "average": 0,
            "fastest": 0,
            "slowest": 0,
        }

    def test_rates(self, applications):
        metrics = compute_metrics(applications)

        assert metrics.total_applications == 5
        assert metrics.response_rate == 60
        assert metrics.interview_rate == 60
        assert metrics.offer_rate == 20

    def test_saved_applications_are_not_counted(self, applications, make_application):
        applications.append(make_application((S.SAVED, 0), applied_offset=None))

        metrics = compute_metrics(applications)

        assert metrics.total_applications == 5
        assert metrics.response_rate == 60

    def test_only_saved_applications(self, make_application):
        metrics = compute_metrics([make_application((S.SAVED, 0), applied_offset=None)])

        assert metrics.total_applications == 0
        assert metrics.response_rate == 0

    def test_rejection_counts_as_response(self, make_application):
        metrics = compute_metrics(
            [
                make_application((S.APPLIED, 0), (S.REJECTED, 6)),
                make_application((S.APPLIED, 0)),
            ]
        )

        assert metrics.response_rate == 50
        assert metrics.interview_rate == 0
        assert metrics.average_response_time == 6

    def test_average_response_time(self, applications):
        """Measured from applying to the second history entry."""
        # Delays of 4, 2 and 3 days
        assert compute_metrics(applications).average_response_time == 3

    def test_response_time_falls_back_to_created_at(self, make_application):
        app = make_application((S.APPLIED, 0), (S.IN_REVIEW, 5), applied_offset=None)

        assert compute_metrics([app]).average_response_time == 5

    def test_to_dict(self, applications):
        data = compute_metrics(applications).to_dict()

        assert data["total_applications"] == 5
        assert data["time_to_interview"] == {"average": 7, "fastest": 4, "slowest": 10}


class TestTimeToInterview:
    """Test time to the first interview-stage status."""

    def test_uses_first_interview_entry(self, make_application):
        apps = [
            make_application((S.APPLIED, 0), (S.INTERVIEW_SCHEDULED, 4)),
            make_application(
                (S.APPLIED, 0),
                (S.IN_REVIEW, 2),
                (S.INTERVIEW_SCHEDULED, 10),
                (S.INTERVIEWED, 12),
            ),
        ]

        result = time_to_interview(apps)

        assert result.average == 7
        assert result.fastest == 4
        assert result.slowest == 10

    def test_offer_without_interview_entry_is_skipped(self, make_application):
        apps = [make_application((S.APPLIED, 0), (S.IN_REVIEW, 3), (S.OFFER_RECEIVED, 7))]

        assert time_to_interview(apps).to_dict() == {
            "average": 0,
            "fastest": 0,
            "slowest": 0,
        }

    def test_rejected_after_interview_is_skipped(self, make_application):
        apps = [
            make_application((S.APPLIED, 0), (S.INTERVIEW_SCHEDULED, 4), (S.REJECTED, 9))
        ]

        assert time_to_interview(apps).average == 0

    def test_single_entry_history_is_skipped(self, make_application):
        apps = [make_application((S.INTERVIEW_SCHEDULED, 0))]

        assert time_to_interview(apps).average == 0

    def test_non_positive_delay_is_dropped(self, make_application):
        # Applied after the interview was recorded
        apps = [
            make_application(
                (S.APPLIED, 0), (S.INTERVIEW_SCHEDULED, 1), applied_offset=2
            ),
            make_application((S.APPLIED, 0), (S.INTERVIEW_SCHEDULED, 6)),
        ]

        result = time_to_interview(apps)

        assert result.fastest == 6
        assert result.slowest == 6


class TestCompanyBreakdown:
    """Test per-company statistics."""

    def test_counts_and_response_rate(self, make_application):
        apps = [
            make_application((S.APPLIED, 0), (S.INTERVIEW_SCHEDULED, 3), job_id="a1"),
            make_application((S.APPLIED, 0), job_id="a2"),
            make_application((S.APPLIED, 0), (S.REJECTED, 2), job_id="b1"),
        ]
        jobs = {
            "a1": JobPosting(id="a1", title="Engineer", company="Acme"),
            "a2": JobPosting(id="a2", title="Senior Engineer", company="Acme"),
            "b1": JobPosting(id="b1", title="Analyst", company="Beta"),
        }

        stats = company_breakdown(apps, jobs)

        assert [item.company for item in stats] == ["Acme", "Beta"]
        acme = stats[0]
        assert acme.applications == 2
        assert acme.interviews == 1
        assert acme.offers == 0
        assert acme.response_rate == 50
        assert stats[1].response_rate == 0

    def test_keeps_top_companies(self, make_application):
        apps = []
        jobs = {}
        for index in range(12):
            for copy in range(index + 1):
                job_id = f"job-{index}-{copy}"
                jobs[job_id] = JobPosting(id=job_id, title="Role", company=f"Company {index}")
                apps.append(make_application(job_id=job_id))

        stats = company_breakdown(apps, jobs)

        assert len(stats) == 10
        assert stats[0].company == "Company 11"
        assert stats[0].applications == 12
        assert stats[-1].company == "Company 2"

    def test_missing_job_is_skipped(self, make_application):
        apps = [make_application(job_id="gone")]

        assert company_breakdown(apps, {}) == []

    def test_ties_keep_first_seen_order(self, make_application):
        apps = [make_application(job_id="z"), make_application(job_id="a")]
        jobs = {
            "z": JobPosting(id="z", title="Role", company="Zeta"),
            "a": JobPosting(id="a", title="Role", company="Alpha"),
        }

        assert [item.company for item in company_breakdown(apps, jobs)] == [
            "Zeta",
            "Alpha",
        ]


class TestJobTypeBreakdown:
    """Test per-employment-type statistics."""

    def test_groups_by_employment_type(self, make_application):
        apps = [
            make_application((S.APPLIED, 0), (S.IN_REVIEW, 1), (S.OFFER_RECEIVED, 5), job_id="f1"),
            make_application(job_id="f2"),
            make_application(job_id="c1"),
        ]
        jobs = {
            "f1": JobPosting(id="f1", title="A", company="X", employment_type="FULL_TIME"),
            "f2": JobPosting(id="f2", title="B", company="Y", employment_type="FULL_TIME"),
            "c1": JobPosting(id="c1", title="C", company="Z", employment_type="CONTRACT"),
        }

        stats = job_type_breakdown(apps, jobs)

        assert [(item.job_type, item.applications) for item in stats] == [
            ("FULL_TIME", 2),
            ("CONTRACT", 1),
        ]
        assert stats[0].success_rate == 50
        assert stats[1].success_rate == 0

    def test_missing_type_is_unknown(self, make_application):
        apps = [make_application(job_id="j")]
        jobs = {"j": JobPosting(id="j", title="Role", company="Co")}

        stats = job_type_breakdown(apps, jobs)

        assert stats[0].job_type == UNKNOWN_JOB_TYPE == "Unknown"
