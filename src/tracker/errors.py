"""Exceptions raised by the Application Tracker.

All of these are deterministic business-rule outcomes: retrying the same
call with the same input yields the same error.
"""

from __future__ import annotations

from typing import Any


class TrackerError(Exception):
    """Base class for tracker failures.

    Attributes:
        operation: Name of the operation that failed (e.g. "create_application").
        context: Identifiers relevant to the failure, for logging.
        http_status: Suggested status code for an HTTP caller.
    """

    http_status = 500

    def __init__(
        self,
        message: str,
        *,
        operation: str | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.operation = operation
        self.context = dict(context or {})

    def to_dict(self) -> dict[str, Any]:
        return {
            "error": type(self).__name__,
            "message": self.message,
            "operation": self.operation,
            "context": self.context,
        }


class NotFoundError(TrackerError):
    """A job or application does not exist or is not owned by the caller."""

    http_status = 404


class ConflictError(TrackerError):
    """An application already exists for the same user and job."""

    http_status = 409


class InvalidTransitionError(TrackerError):
    """A status change is not permitted by the transition table."""

    http_status = 400

    def __init__(
        self,
        from_status: str,
        to_status: str,
        *,
        operation: str | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        self.from_status = from_status
        self.to_status = to_status
        merged = {"from_status": from_status, "to_status": to_status}
        merged.update(context or {})
        super().__init__(
            f"Invalid status transition from '{from_status}' to '{to_status}'",
            operation=operation,
            context=merged,
        )


class ValidationError(TrackerError):
    """Input is missing or malformed."""

    http_status = 400
