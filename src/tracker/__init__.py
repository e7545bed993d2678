"""Application lifecycle tracking.

This module provides the Application Tracker system for recording a job
seeker's applications and their status history.

Public API:
- ApplicationService: Create, update, list and delete applications
- ApplicationRepository: Database repository for applications
- JobRepository: Database repository for job postings
- Application: Data model for a tracked application
- ApplicationStatus: Enum for application status values
- validate_transition: Status state machine check
"""

from src.tracker.errors import (
    ConflictError,
    InvalidTransitionError,
    NotFoundError,
    TrackerError,
    ValidationError,
)
from src.tracker.models import Application, ApplicationStatus, JobPosting
from src.tracker.repository import ApplicationRepository, JobRepository
from src.tracker.service import ApplicationService
from src.tracker.transitions import validate_transition

__all__ = [
    "ApplicationService",
    "ApplicationRepository",
    "JobRepository",
    "Application",
    "ApplicationStatus",
    "JobPosting",
    "validate_transition",
    "TrackerError",
    "NotFoundError",
    "ConflictError",
    "InvalidTransitionError",
    "ValidationError",
]
