"""Database repositories for the Application Tracker.

This module provides async SQLite database operations for storing
and retrieving job applications and the job postings they refer to.
"""

from __future__ import annotations

import asyncio
import json
from collections.abc import AsyncGenerator, Callable, Iterable
from contextlib import asynccontextmanager
from datetime import datetime
from pathlib import Path
from typing import Any, Protocol

import aiosqlite

from src.tracker.models import (
    Application,
    ApplicationStatus,
    Contact,
    JobPosting,
    OfferDetails,
    StatusHistoryEntry,
    ensure_utc,
    parse_datetime,
    utc_now,
)
from src.tracker.query import ApplicationFilters

# SQL schema for the applications table
CREATE_APPLICATIONS_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS applications (
    id TEXT PRIMARY KEY,
    user_id TEXT NOT NULL,
    job_id TEXT NOT NULL,
    status TEXT NOT NULL,
    status_history TEXT NOT NULL,
    applied_date TEXT,
    interview_dates TEXT NOT NULL DEFAULT '[]',
    notes TEXT,
    reminder_date TEXT,
    reminder_set INTEGER DEFAULT 0,
    follow_up_date TEXT,
    offer_details TEXT,
    resume_id TEXT,
    cover_letter_id TEXT,
    match_score INTEGER,
    contacts TEXT NOT NULL DEFAULT '[]',
    created_at TEXT NOT NULL,
    updated_at TEXT NOT NULL,
    UNIQUE (user_id, job_id)
)
"""

CREATE_APPLICATIONS_INDEX_SQL = """
CREATE INDEX IF NOT EXISTS idx_applications_user_status ON applications(user_id, status);
CREATE INDEX IF NOT EXISTS idx_applications_user_created ON applications(user_id, created_at);
CREATE INDEX IF NOT EXISTS idx_applications_status_applied ON applications(status, applied_date);
"""

CREATE_JOBS_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS jobs (
    id TEXT PRIMARY KEY,
    title TEXT NOT NULL,
    company TEXT NOT NULL,
    location TEXT,
    employment_type TEXT,
    salary_min REAL,
    salary_max REAL,
    visa_sponsorship INTEGER DEFAULT 0,
    created_at TEXT NOT NULL
)
"""

APPLICATION_COLUMNS = (
    "id",
    "user_id",
    "job_id",
    "status",
    "status_history",
    "applied_date",
    "interview_dates",
    "notes",
    "reminder_date",
    "reminder_set",
    "follow_up_date",
    "offer_details",
    "resume_id",
    "cover_letter_id",
    "match_score",
    "contacts",
    "created_at",
    "updated_at",
)

SORT_COLUMNS = {
    "applied_date": "applied_date",
    "created_at": "created_at",
    "updated_at": "updated_at",
    "status": "status",
}

ApplicationMutator = Callable[[Application], Application]


class ApplicationStore(Protocol):
    """Storage capability the lifecycle and analytics services depend on."""

    async def insert(self, application: Application) -> None: ...

    async def get_by_id(self, application_id: str) -> Application | None: ...

    async def get_by_owner_and_id(
        self, application_id: str, user_id: str
    ) -> Application | None: ...

    async def get_by_owner_and_job(
        self, user_id: str, job_id: str
    ) -> Application | None: ...

    async def update_by_owner_and_id(
        self, application_id: str, user_id: str, mutate: ApplicationMutator
    ) -> Application | None: ...

    async def delete_by_owner_and_id(self, application_id: str, user_id: str) -> bool: ...

    async def list_by_owner(
        self,
        user_id: str,
        filters: ApplicationFilters | None = None,
        *,
        sort_by: str = "applied_date",
        sort_order: str = "desc",
        skip: int = 0,
        limit: int | None = None,
    ) -> list[Application]: ...

    async def count_by_owner(
        self, user_id: str, filters: ApplicationFilters | None = None
    ) -> int: ...

    async def list_all_by_owner(self, user_id: str) -> list[Application]: ...

    async def list_by_owner_and_job(
        self, user_id: str, job_id: str
    ) -> list[Application]: ...

    async def get_status_counts(self, user_id: str) -> dict[ApplicationStatus, int]: ...


class JobCatalog(Protocol):
    """Read access to job postings."""

    async def get_by_id(self, job_id: str) -> JobPosting | None: ...

    async def get_many(self, job_ids: Iterable[str]) -> dict[str, JobPosting]: ...


def _to_db_datetime(value: datetime | None) -> str | None:
    if value is None:
        return None
    return ensure_utc(value).isoformat(timespec="microseconds")


class _SQLiteRepository:
    """Shared connection handling for the tracker repositories."""

    schema_statements: tuple[str, ...] = ()

    def __init__(self, db_path: Path | str):
        """Initialize the repository.

        Args:
            db_path: Path to the SQLite database file.
        """
        self.db_path = Path(db_path)
        self._connection: aiosqlite.Connection | None = None
        # Serializes write transactions issued through this connection
        self._write_lock = asyncio.Lock()

    @asynccontextmanager
    async def _get_connection(self) -> AsyncGenerator[aiosqlite.Connection, None]:
        """Get a database connection.

        Yields:
            An aiosqlite connection.
        """
        if self._connection is None:
            self._connection = await aiosqlite.connect(self.db_path)
            self._connection.row_factory = aiosqlite.Row
        yield self._connection

    async def initialize(self) -> None:
        """Initialize the database, creating tables if needed."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        async with self._get_connection() as conn:
            for statement in self.schema_statements:
                await conn.executescript(statement)
            await conn.commit()

    async def close(self) -> None:
        """Close the database connection."""
        if self._connection is not None:
            await self._connection.close()
            self._connection = None


class ApplicationRepository(_SQLiteRepository):
    """Async SQLite repository for applications.

    Every read and write is scoped by owner where the caller supplies one.
    The (user_id, job_id) pair is unique at the table level, so a racing
    duplicate insert fails with ``sqlite3.IntegrityError``.
    """

    schema_statements = (CREATE_APPLICATIONS_TABLE_SQL, CREATE_APPLICATIONS_INDEX_SQL)

    async def insert(self, application: Application) -> None:
        """Insert a new application.

        Args:
            application: The application to insert.

        Raises:
            sqlite3.IntegrityError: If the id or the (user_id, job_id) pair exists.
        """
        row = self._application_to_row(application)
        placeholders = ", ".join("?" for _ in APPLICATION_COLUMNS)
        async with self._write_lock, self._get_connection() as conn:
            try:
                await conn.execute(
                    f"INSERT INTO applications ({', '.join(APPLICATION_COLUMNS)}) "
                    f"VALUES ({placeholders})",
                    tuple(row[column] for column in APPLICATION_COLUMNS),
                )
                await conn.commit()
            except Exception:
                await conn.rollback()
                raise

    async def get_by_id(self, application_id: str) -> Application | None:
        """Get an application by id, regardless of owner."""
        async with self._get_connection() as conn:
            cursor = await conn.execute(
                "SELECT * FROM applications WHERE id = ?",
                (application_id,),
            )
            row = await cursor.fetchone()

        return self._row_to_application(row) if row is not None else None

    async def get_by_owner_and_id(
        self, application_id: str, user_id: str
    ) -> Application | None:
        """Get an application by id if it belongs to ``user_id``."""
        async with self._get_connection() as conn:
            cursor = await conn.execute(
                "SELECT * FROM applications WHERE id = ? AND user_id = ?",
                (application_id, user_id),
            )
            row = await cursor.fetchone()

        return self._row_to_application(row) if row is not None else None

    async def get_by_owner_and_job(
        self, user_id: str, job_id: str
    ) -> Application | None:
        """Get the application ``user_id`` holds for ``job_id``, if any."""
        async with self._get_connection() as conn:
            cursor = await conn.execute(
                "SELECT * FROM applications WHERE user_id = ? AND job_id = ?",
                (user_id, job_id),
            )
            row = await cursor.fetchone()

        return self._row_to_application(row) if row is not None else None

    async def update_by_owner_and_id(
        self,
        application_id: str,
        user_id: str,
        mutate: ApplicationMutator,
    ) -> Application | None:
        """Atomically read, modify and write one application.

        The read and the write happen inside a single ``BEGIN IMMEDIATE``
        transaction, so concurrent updates to the same row are serialized
        and ``mutate`` always sees the latest committed state. If ``mutate``
        raises, the transaction is rolled back and the error propagates.

        Args:
            application_id: Id of the application.
            user_id: Owner the application must belong to.
            mutate: Callback receiving the current application and returning
                the application to store.

        Returns:
            The stored application, or None if not found for this owner.
        """
        async with self._write_lock, self._get_connection() as conn:
            await conn.execute("BEGIN IMMEDIATE")
            try:
                cursor = await conn.execute(
                    "SELECT * FROM applications WHERE id = ? AND user_id = ?",
                    (application_id, user_id),
                )
                row = await cursor.fetchone()
                if row is None:
                    await conn.rollback()
                    return None

                updated = mutate(self._row_to_application(row))
                updated.updated_at = utc_now()
                data = self._application_to_row(updated)
                assignments = ", ".join(
                    f"{column} = ?"
                    for column in APPLICATION_COLUMNS
                    if column not in ("id", "user_id", "job_id", "created_at")
                )
                values = [
                    data[column]
                    for column in APPLICATION_COLUMNS
                    if column not in ("id", "user_id", "job_id", "created_at")
                ]
                await conn.execute(
                    f"UPDATE applications SET {assignments} "
                    "WHERE id = ? AND user_id = ?",
                    (*values, application_id, user_id),
                )
                await conn.commit()
            except BaseException:
                await conn.rollback()
                raise

        return updated

    async def delete_by_owner_and_id(self, application_id: str, user_id: str) -> bool:
        """Delete an application owned by ``user_id``.

        Returns:
            True if a row was deleted, False if none matched.
        """
        async with self._write_lock, self._get_connection() as conn:
            cursor = await conn.execute(
                "DELETE FROM applications WHERE id = ? AND user_id = ?",
                (application_id, user_id),
            )
            await conn.commit()
            return cursor.rowcount > 0

    async def list_by_owner(
        self,
        user_id: str,
        filters: ApplicationFilters | None = None,
        *,
        sort_by: str = "applied_date",
        sort_order: str = "desc",
        skip: int = 0,
        limit: int | None = None,
    ) -> list[Application]:
        """List a user's applications matching the store-level filters.

        The ``search`` filter is not applied here; it spans the job table and
        is handled by the caller.

        Args:
            user_id: Owner of the applications.
            filters: Status, job and applied-date range filters.
            sort_by: One of applied_date, created_at, updated_at, status.
            sort_order: "asc" or "desc".
            skip: Number of rows to skip.
            limit: Maximum number of rows, or None for all.

        Returns:
            The matching applications in the requested order.
        """
        column = SORT_COLUMNS.get(sort_by)
        if column is None:
            raise ValueError(f"Unsupported sort field: {sort_by}")
        direction = "ASC" if sort_order == "asc" else "DESC"

        where, params = self._build_where(user_id, filters)
        sql = (
            f"SELECT * FROM applications WHERE {where} "
            f"ORDER BY {column} {direction}, created_at {direction}, id {direction}"
        )
        if limit is not None:
            sql += " LIMIT ? OFFSET ?"
            params.extend([limit, skip])
        elif skip:
            sql += " LIMIT -1 OFFSET ?"
            params.append(skip)

        async with self._get_connection() as conn:
            cursor = await conn.execute(sql, tuple(params))
            rows = await cursor.fetchall()

        return [self._row_to_application(row) for row in rows]

    async def count_by_owner(
        self, user_id: str, filters: ApplicationFilters | None = None
    ) -> int:
        """Count a user's applications matching the store-level filters."""
        where, params = self._build_where(user_id, filters)
        async with self._get_connection() as conn:
            cursor = await conn.execute(
                f"SELECT COUNT(*) AS count FROM applications WHERE {where}",
                tuple(params),
            )
            row = await cursor.fetchone()
        return int(row["count"]) if row is not None else 0

    async def list_all_by_owner(self, user_id: str) -> list[Application]:
        """Return every application of a user, oldest first."""
        return await self.list_by_owner(user_id, sort_by="created_at", sort_order="asc")

    async def list_by_owner_and_job(
        self, user_id: str, job_id: str
    ) -> list[Application]:
        """Return a user's applications for one job, newest applied first."""
        return await self.list_by_owner(
            user_id,
            ApplicationFilters(job_id=job_id),
            sort_by="applied_date",
            sort_order="desc",
        )

    async def get_status_counts(self, user_id: str) -> dict[ApplicationStatus, int]:
        """Return a user's application counts grouped by status."""
        async with self._get_connection() as conn:
            cursor = await conn.execute(
                "SELECT status, COUNT(*) AS count FROM applications "
                "WHERE user_id = ? GROUP BY status",
                (user_id,),
            )
            rows = await cursor.fetchall()

        counts: dict[ApplicationStatus, int] = {}
        for row in rows:
            counts[ApplicationStatus(row["status"])] = int(row["count"] or 0)
        return counts

    @staticmethod
    def _build_where(
        user_id: str, filters: ApplicationFilters | None
    ) -> tuple[str, list[Any]]:
        clauses = ["user_id = ?"]
        params: list[Any] = [user_id]
        if filters is not None:
            if filters.status is not None:
                clauses.append("status = ?")
                params.append(filters.status.value)
            if filters.job_id:
                clauses.append("job_id = ?")
                params.append(filters.job_id)
            if filters.start_date is not None:
                clauses.append("applied_date >= ?")
                params.append(_to_db_datetime(filters.start_date))
            if filters.end_date is not None:
                clauses.append("applied_date <= ?")
                params.append(_to_db_datetime(filters.end_date))
        return " AND ".join(clauses), params

    @staticmethod
    def _application_to_row(application: Application) -> dict[str, Any]:
        return {
            "id": application.id,
            "user_id": application.user_id,
            "job_id": application.job_id,
            "status": application.status.value,
            "status_history": json.dumps(
                [entry.to_dict() for entry in application.status_history]
            ),
            "applied_date": _to_db_datetime(application.applied_date),
            "interview_dates": json.dumps(
                [_to_db_datetime(value) for value in application.interview_dates]
            ),
            "notes": application.notes,
            "reminder_date": _to_db_datetime(application.reminder_date),
            "reminder_set": 1 if application.reminder_set else 0,
            "follow_up_date": _to_db_datetime(application.follow_up_date),
            "offer_details": json.dumps(application.offer_details.to_dict())
            if application.offer_details
            else None,
            "resume_id": application.resume_id,
            "cover_letter_id": application.cover_letter_id,
            "match_score": application.match_score,
            "contacts": json.dumps(
                [contact.to_dict() for contact in application.contacts]
            ),
            "created_at": _to_db_datetime(application.created_at),
            "updated_at": _to_db_datetime(application.updated_at),
        }

    def _row_to_application(self, row: aiosqlite.Row) -> Application:
        """Convert a database row to an Application.

        Args:
            row: The database row.

        Returns:
            An Application instance.
        """
        offer = row["offer_details"]
        return Application(
            id=row["id"],
            user_id=row["user_id"],
            job_id=row["job_id"],
            status=ApplicationStatus(row["status"]),
            status_history=[
                StatusHistoryEntry.from_dict(entry)
                for entry in json.loads(row["status_history"])
            ],
            created_at=parse_datetime(row["created_at"]),
            updated_at=parse_datetime(row["updated_at"]),
            applied_date=parse_datetime(row["applied_date"]),
            interview_dates=[
                parse_datetime(value)
                for value in json.loads(row["interview_dates"] or "[]")
            ],
            notes=row["notes"],
            reminder_date=parse_datetime(row["reminder_date"]),
            reminder_set=bool(row["reminder_set"]),
            follow_up_date=parse_datetime(row["follow_up_date"]),
            offer_details=OfferDetails.from_dict(json.loads(offer)) if offer else None,
            resume_id=row["resume_id"],
            cover_letter_id=row["cover_letter_id"],
            match_score=row["match_score"],
            contacts=[
                Contact.from_dict(item) for item in json.loads(row["contacts"] or "[]")
            ],
        )


class JobRepository(_SQLiteRepository):
    """Async SQLite repository for job postings.

    The tracker services only read postings; ``insert_job`` exists so
    postings can be seeded from the CLI and in tests.
    """

    schema_statements = (CREATE_JOBS_TABLE_SQL,)

    async def insert_job(self, job: JobPosting) -> None:
        """Insert a job posting.

        Raises:
            sqlite3.IntegrityError: If a posting with the same id exists.
        """
        created_at = job.created_at or utc_now()
        async with self._write_lock, self._get_connection() as conn:
            try:
                await conn.execute(
                    """
                    INSERT INTO jobs (
                        id, title, company, location, employment_type,
                        salary_min, salary_max, visa_sponsorship, created_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        job.id,
                        job.title,
                        job.company,
                        job.location,
                        job.employment_type,
                        job.salary_min,
                        job.salary_max,
                        1 if job.visa_sponsorship else 0,
                        _to_db_datetime(created_at),
                    ),
                )
                await conn.commit()
            except Exception:
                await conn.rollback()
                raise

    async def get_by_id(self, job_id: str) -> JobPosting | None:
        """Get a job posting by id."""
        async with self._get_connection() as conn:
            cursor = await conn.execute("SELECT * FROM jobs WHERE id = ?", (job_id,))
            row = await cursor.fetchone()

        return self._row_to_job(row) if row is not None else None

    async def get_many(self, job_ids: Iterable[str]) -> dict[str, JobPosting]:
        """Get several job postings keyed by id; unknown ids are omitted."""
        ids = sorted(set(job_ids))
        if not ids:
            return {}
        placeholders = ", ".join("?" for _ in ids)
        async with self._get_connection() as conn:
            cursor = await conn.execute(
                f"SELECT * FROM jobs WHERE id IN ({placeholders})",
                tuple(ids),
            )
            rows = await cursor.fetchall()

        return {row["id"]: self._row_to_job(row) for row in rows}

    @staticmethod
    def _row_to_job(row: aiosqlite.Row) -> JobPosting:
        return JobPosting(
            id=row["id"],
            title=row["title"],
            company=row["company"],
            location=row["location"],
            employment_type=row["employment_type"],
            salary_min=row["salary_min"],
            salary_max=row["salary_max"],
            visa_sponsorship=bool(row["visa_sponsorship"]),
            created_at=parse_datetime(row["created_at"]),
        )
