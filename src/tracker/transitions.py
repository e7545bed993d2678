"""Status state machine for job applications.

This module provides:
- The fixed table of allowed status transitions
- Validation of a proposed status change
- Suggested next steps for each status
"""

from src.tracker.errors import InvalidTransitionError
from src.tracker.models import ApplicationStatus

S = ApplicationStatus

VALID_TRANSITIONS: dict[ApplicationStatus, frozenset[ApplicationStatus]] = {
    S.SAVED: frozenset({S.APPLIED, S.REJECTED, S.WITHDRAWN}),
    S.APPLIED: frozenset({S.IN_REVIEW, S.INTERVIEW_SCHEDULED, S.REJECTED, S.WITHDRAWN}),
    S.IN_REVIEW: frozenset(
        {S.INTERVIEW_SCHEDULED, S.REJECTED, S.OFFER_RECEIVED, S.WITHDRAWN}
    ),
    S.INTERVIEW_SCHEDULED: frozenset(
        {S.INTERVIEWED, S.REJECTED, S.IN_REVIEW, S.WITHDRAWN}
    ),
    S.INTERVIEWED: frozenset({S.OFFER_RECEIVED, S.REJECTED, S.IN_REVIEW, S.WITHDRAWN}),
    S.OFFER_RECEIVED: frozenset({S.ACCEPTED, S.REJECTED, S.WITHDRAWN}),
    # An accepted offer can still be withdrawn
    S.ACCEPTED: frozenset({S.WITHDRAWN}),
    S.REJECTED: frozenset(),
    S.WITHDRAWN: frozenset(),
}

NEXT_STEPS: dict[ApplicationStatus, list[str]] = {
    S.SAVED: [
        "Review job requirements carefully",
        "Tailor your resume for this position",
        "Prepare a customized cover letter",
        "Submit your application",
    ],
    S.APPLIED: [
        "Follow up after 1 week if no response",
        "Prepare for potential phone screening",
        "Research the company culture",
        "Update application status when you hear back",
    ],
    S.IN_REVIEW: [
        "Prepare for technical interviews",
        "Review common interview questions",
        "Research the company and team",
        "Prepare questions to ask the interviewer",
    ],
    S.INTERVIEW_SCHEDULED: [
        "Confirm interview details (date, time, location)",
        "Prepare answers to behavioral questions",
        "Practice technical problems",
        "Research the interviewers on LinkedIn",
        "Plan your route if in-person",
    ],
    S.INTERVIEWED: [
        "Send thank-you email within 24 hours",
        "Follow up on timeline if not provided",
        "Reflect on interview performance",
        "Prepare for potential next rounds",
    ],
    S.OFFER_RECEIVED: [
        "Review offer details carefully",
        "Negotiate if appropriate",
        "Ask about visa sponsorship timeline",
        "Get everything in writing",
        "Respond by deadline",
    ],
    S.ACCEPTED: [
        "Complete onboarding paperwork",
        "Coordinate start date",
        "Begin visa sponsorship process if applicable",
        "Notify other companies",
    ],
    S.REJECTED: [
        "Request feedback if possible",
        "Update your materials based on feedback",
        "Stay connected with recruiters",
        "Apply to similar positions",
    ],
    S.WITHDRAWN: [
        "Consider applying again in the future",
        "Update your job search strategy",
        "Focus on other opportunities",
    ],
}

DEFAULT_NEXT_STEPS = ["Update application status as it progresses"]


def allowed_transitions(status: ApplicationStatus) -> frozenset[ApplicationStatus]:
    """Return the statuses reachable from ``status`` in one step."""
    return VALID_TRANSITIONS.get(status, frozenset())


def is_terminal(status: ApplicationStatus) -> bool:
    """Return True if no transition leaves ``status``."""
    return not allowed_transitions(status)


def is_valid_transition(
    current: ApplicationStatus, proposed: ApplicationStatus
) -> bool:
    """Return True if ``current -> proposed`` is in the transition table."""
    return proposed in allowed_transitions(current)


def validate_transition(
    current: ApplicationStatus,
    proposed: ApplicationStatus,
    *,
    operation: str | None = None,
) -> None:
    """Validate a proposed status change.

    Self-transitions are never allowed; updating fields without changing
    status must not go through this check.

    Args:
        current: The application's current status.
        proposed: The requested new status.
        operation: Name of the calling operation, recorded on the error.

    Raises:
        InvalidTransitionError: If the change is not in the table.
    """
    if not is_valid_transition(current, proposed):
        raise InvalidTransitionError(
            ApplicationStatus(current).value,
            ApplicationStatus(proposed).value,
            operation=operation,
        )


def get_next_steps(status: ApplicationStatus | str) -> list[str]:
    """Return suggested next steps for an application in ``status``."""
    try:
        key = ApplicationStatus(status)
    except ValueError:
        return list(DEFAULT_NEXT_STEPS)
    return list(NEXT_STEPS.get(key, DEFAULT_NEXT_STEPS))
