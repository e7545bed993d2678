"""Main entry point for the Application Tracker."""

import argparse
import asyncio
import json
import sqlite3
import sys
from datetime import datetime
from pathlib import Path

from src import __version__
from src.config.settings import Settings
from src.tracker.errors import TrackerError
from src.tracker.models import ApplicationStatus, JobPosting, OfferDetails
from src.utils.logging import configure_logging

STATUS_CHOICES = [status.value for status in ApplicationStatus]


def _datetime_arg(value: str) -> datetime:
    try:
        return datetime.fromisoformat(value)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(
            f"Invalid date/time '{value}' (expected ISO-8601)"
        ) from exc


def _status_arg(value: str) -> str:
    status = value.strip().upper().replace("-", "_")
    if status not in STATUS_CHOICES:
        raise argparse.ArgumentTypeError(
            f"Invalid status '{value}' (choose from {', '.join(STATUS_CHOICES)})"
        )
    return status


def _match_score(value: str) -> int:
    score = int(value)
    if not (0 <= score <= 100):
        raise argparse.ArgumentTypeError("--match-score must be between 0 and 100")
    return score


def _print_json(payload: object) -> None:
    def _default(value: object):
        to_dict = getattr(value, "to_dict", None)
        if callable(to_dict):
            return to_dict()
        model_dump = getattr(value, "model_dump", None)
        if callable(model_dump):
            return model_dump(mode="json")
        return str(value)

    print(json.dumps(payload, indent=2, default=_default))


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the CLI."""
    parser = argparse.ArgumentParser(
        prog="app-tracker",
        description="Track job applications, their status history and outcomes",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python -m src job add --id J1 --title "Backend Engineer" --company Acme
  python -m src create --user u1 --job J1
  python -m src update <application-id> --user u1 --status IN_REVIEW
  python -m src metrics --user u1
        """,
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        default=None,
        help="Set the log level (overrides settings)",
    )

    db_parent = argparse.ArgumentParser(add_help=False)
    db_parent.add_argument(
        "--db",
        type=Path,
        default=None,
        help="Override tracker DB path (defaults to settings)",
    )

    user_parent = argparse.ArgumentParser(add_help=False, parents=[db_parent])
    user_parent.add_argument(
        "--user",
        type=str,
        required=True,
        help="Id of the user who owns the applications",
    )

    subparsers = parser.add_subparsers(
        dest="command",
        title="commands",
        description="Available commands",
    )

    # Job postings
    job_parser = subparsers.add_parser("job", help="Job posting utilities (add, show)")
    job_subparsers = job_parser.add_subparsers(
        dest="job_cmd",
        title="job",
        description="Job posting operations",
        required=True,
    )
    job_add = job_subparsers.add_parser(
        "add", help="Register a job posting", parents=[db_parent]
    )
    job_add.add_argument("--id", required=True, help="Job posting id")
    job_add.add_argument("--title", required=True, help="Job title")
    job_add.add_argument("--company", required=True, help="Company name")
    job_add.add_argument("--location", default=None, help="Job location")
    job_add.add_argument(
        "--employment-type",
        default=None,
        help="Employment type (e.g. FULL_TIME, CONTRACT)",
    )
    job_add.add_argument("--salary-min", type=float, default=None, help="Salary floor")
    job_add.add_argument("--salary-max", type=float, default=None, help="Salary cap")
    job_add.add_argument(
        "--visa-sponsorship",
        action="store_true",
        help="The posting offers visa sponsorship",
    )
    job_show = job_subparsers.add_parser(
        "show", help="Show a job posting", parents=[db_parent]
    )
    job_show.add_argument("job_id", help="Job posting id")

    # Applications
    create_parser_ = subparsers.add_parser(
        "create", help="Create an application", parents=[user_parent]
    )
    create_parser_.add_argument("--job", required=True, help="Job posting id")
    create_parser_.add_argument(
        "--status",
        type=_status_arg,
        default=None,
        help="Initial status (defaults to APPLIED)",
    )
    create_parser_.add_argument("--notes", default=None, help="Notes")
    create_parser_.add_argument("--resume-id", default=None, help="Resume used")
    create_parser_.add_argument(
        "--cover-letter-id", default=None, help="Cover letter used"
    )
    create_parser_.add_argument(
        "--interview-date",
        type=_datetime_arg,
        action="append",
        default=None,
        help="Scheduled interview (ISO-8601, repeatable)",
    )
    create_parser_.add_argument(
        "--reminder-date", type=_datetime_arg, default=None, help="Reminder date"
    )
    create_parser_.add_argument(
        "--match-score", type=_match_score, default=None, help="Fit score (0-100)"
    )

    update_parser = subparsers.add_parser(
        "update", help="Change status or update fields", parents=[user_parent]
    )
    update_parser.add_argument("application_id", help="Application id")
    update_parser.add_argument(
        "--status", type=_status_arg, default=None, help="New status"
    )
    update_parser.add_argument(
        "--notes",
        default=None,
        help="Notes (attached to the status change when --status is given)",
    )
    update_parser.add_argument(
        "--interview-date",
        type=_datetime_arg,
        action="append",
        default=None,
        help="Interview date (ISO-8601, repeatable; replaces existing dates)",
    )
    update_parser.add_argument(
        "--reminder-date", type=_datetime_arg, default=None, help="Reminder date"
    )
    update_parser.add_argument(
        "--follow-up-date", type=_datetime_arg, default=None, help="Follow-up date"
    )
    update_parser.add_argument(
        "--offer-salary", type=float, default=None, help="Offered salary"
    )
    update_parser.add_argument("--offer-benefits", default=None, help="Offer benefits")
    update_parser.add_argument(
        "--offer-start-date", type=_datetime_arg, default=None, help="Offer start date"
    )
    update_parser.add_argument("--offer-location", default=None, help="Offer location")
    update_parser.add_argument(
        "--offer-remote", action="store_true", help="The offer is remote"
    )

    show_parser = subparsers.add_parser(
        "show", help="Show an application timeline", parents=[user_parent]
    )
    show_parser.add_argument("application_id", help="Application id")

    delete_parser = subparsers.add_parser(
        "delete", help="Delete an application", parents=[user_parent]
    )
    delete_parser.add_argument("application_id", help="Application id")

    list_parser = subparsers.add_parser(
        "list", help="List applications", parents=[user_parent]
    )
    list_parser.add_argument(
        "--status", type=_status_arg, default=None, help="Status filter"
    )
    list_parser.add_argument("--job", default=None, help="Job posting filter")
    list_parser.add_argument(
        "--search", default=None, help="Text to match in job title or company"
    )
    list_parser.add_argument(
        "--start-date", type=_datetime_arg, default=None, help="Applied on or after"
    )
    list_parser.add_argument(
        "--end-date", type=_datetime_arg, default=None, help="Applied on or before"
    )
    list_parser.add_argument("--page", type=int, default=1, help="Page number")
    list_parser.add_argument("--limit", type=int, default=None, help="Page size")
    list_parser.add_argument(
        "--sort-by",
        choices=["applied_date", "created_at", "updated_at", "status"],
        default="applied_date",
        help="Sort field",
    )
    list_parser.add_argument(
        "--sort-order", choices=["asc", "desc"], default="desc", help="Sort order"
    )

    by_job_parser = subparsers.add_parser(
        "by-job", help="List applications for one job", parents=[user_parent]
    )
    by_job_parser.add_argument("--job", required=True, help="Job posting id")

    # Analytics
    interviews_parser = subparsers.add_parser(
        "interviews", help="List upcoming interviews", parents=[user_parent]
    )
    interviews_parser.add_argument(
        "--days",
        type=int,
        default=None,
        help="Days to look ahead (defaults to analytics settings)",
    )

    subparsers.add_parser(
        "metrics", help="Show application success metrics", parents=[user_parent]
    )
    subparsers.add_parser(
        "stats", help="Show application counts per status", parents=[user_parent]
    )

    follow_ups_parser = subparsers.add_parser(
        "follow-ups",
        help="List applications still awaiting a response",
        parents=[user_parent],
    )
    follow_ups_parser.add_argument(
        "--days",
        type=int,
        default=None,
        help="Minimum days since applying (defaults to analytics settings)",
    )

    return parser


async def _run_job_command(parsed: argparse.Namespace, db_path: Path) -> int:
    from src.tracker.repository import JobRepository

    jobs = JobRepository(db_path)
    await jobs.initialize()
    try:
        if parsed.job_cmd == "add":
            job = JobPosting(
                id=parsed.id,
                title=parsed.title,
                company=parsed.company,
                location=parsed.location,
                employment_type=parsed.employment_type,
                salary_min=parsed.salary_min,
                salary_max=parsed.salary_max,
                visa_sponsorship=parsed.visa_sponsorship,
            )
            try:
                await jobs.insert_job(job)
            except sqlite3.IntegrityError:
                print(f"Job {job.id} already exists", file=sys.stderr)
                return 1
            print("ok")
            return 0

        job = await jobs.get_by_id(parsed.job_id)
        if job is None:
            print("Not found")
            return 1
        _print_json(job)
        return 0
    finally:
        await jobs.close()


async def _run_tracker_command(
    parsed: argparse.Namespace, settings: Settings, db_path: Path
) -> int:
    from src.analytics.service import AnalyticsService
    from src.tracker.query import ApplicationFilters, Pagination
    from src.tracker.repository import ApplicationRepository, JobRepository
    from src.tracker.service import ApplicationService

    repo = ApplicationRepository(db_path)
    jobs = JobRepository(db_path)
    await repo.initialize()
    await jobs.initialize()

    try:
        service = ApplicationService(
            repo,
            jobs,
            default_page_limit=settings.default_page_limit,
            max_page_limit=settings.max_page_limit,
        )
        analytics = AnalyticsService(repo, jobs)
        user_id = parsed.user

        if parsed.command == "create":
            application = await service.create_application(
                user_id,
                parsed.job,
                parsed.status,
                notes=parsed.notes,
                resume_id=parsed.resume_id,
                cover_letter_id=parsed.cover_letter_id,
                interview_dates=parsed.interview_date,
                reminder_date=parsed.reminder_date,
                match_score=parsed.match_score,
            )
            _print_json(application)
            return 0

        if parsed.command == "update":
            offer = None
            if any(
                value is not None
                for value in (
                    parsed.offer_salary,
                    parsed.offer_benefits,
                    parsed.offer_start_date,
                    parsed.offer_location,
                )
            ) or parsed.offer_remote:
                offer = OfferDetails(
                    salary=parsed.offer_salary,
                    benefits=parsed.offer_benefits,
                    start_date=parsed.offer_start_date,
                    location=parsed.offer_location,
                    remote=True if parsed.offer_remote else None,
                )
            application = await service.update_application(
                parsed.application_id,
                user_id,
                parsed.status,
                notes=parsed.notes,
                interview_dates=parsed.interview_date,
                reminder_date=parsed.reminder_date,
                follow_up_date=parsed.follow_up_date,
                offer_details=offer,
            )
            _print_json(application)
            return 0

        if parsed.command == "show":
            _print_json(
                await service.get_application_timeline(parsed.application_id, user_id)
            )
            return 0

        if parsed.command == "delete":
            await service.delete_application(parsed.application_id, user_id)
            print("ok")
            return 0

        if parsed.command == "list":
            filters = ApplicationFilters.parse(
                {
                    "status": parsed.status,
                    "job_id": parsed.job,
                    "search": parsed.search,
                    "start_date": parsed.start_date,
                    "end_date": parsed.end_date,
                }
            )
            pagination = Pagination.parse(
                {
                    "page": parsed.page,
                    "limit": parsed.limit,
                    "sort_by": parsed.sort_by,
                    "sort_order": parsed.sort_order,
                }
            )
            _print_json(await service.get_applications(user_id, filters, pagination))
            return 0

        if parsed.command == "by-job":
            _print_json(await service.get_applications_by_job(user_id, parsed.job))
            return 0

        if parsed.command == "interviews":
            interviews = await analytics.get_upcoming_interviews(user_id, parsed.days)
            for interview in interviews:
                print(
                    f"{interview.interview_date.isoformat()} "
                    f"(in {interview.days_until}d) {interview.company} "
                    f"{interview.job_title} [{interview.status.value}] "
                    f"{interview.application_id}"
                )
            return 0

        if parsed.command == "metrics":
            _print_json(await analytics.get_application_metrics(user_id))
            return 0

        if parsed.command == "stats":
            counts = await analytics.get_status_counts(user_id)
            for status in ApplicationStatus:
                print(f"{status.value}: {counts.get(status)}")
            print(f"total: {counts.total}")
            return 0

        if parsed.command == "follow-ups":
            candidates = await analytics.get_follow_up_candidates(user_id, parsed.days)
            for app in candidates:
                print(f"{app.applied_date.isoformat()} {app.id} {app.job_id}")
            return 0

        print("Unknown command", file=sys.stderr)
        return 1
    finally:
        await repo.close()
        await jobs.close()


def main(args: list[str] | None = None) -> int:
    """Main entry point for the application.

    Args:
        args: Command line arguments (defaults to sys.argv[1:]).

    Returns:
        Exit code (0 for success, non-zero for errors).
    """
    parser = create_parser()
    parsed = parser.parse_args(args)

    # Load settings
    try:
        settings = Settings()
    except Exception as e:
        print(f"Error loading settings: {e}", file=sys.stderr)
        return 1

    log_level = parsed.log_level or settings.log_level
    logger = configure_logging(level=log_level)

    if parsed.command is None:
        parser.print_help()
        return 0

    logger.debug(f"Application Tracker v{__version__} running '{parsed.command}'")
    db_path = getattr(parsed, "db", None) or settings.tracker_db_path

    try:
        if parsed.command == "job":
            return asyncio.run(_run_job_command(parsed, db_path))
        return asyncio.run(_run_tracker_command(parsed, settings, db_path))
    except TrackerError as e:
        logger.error(f"{parsed.command} failed: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
