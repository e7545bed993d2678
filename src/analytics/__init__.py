"""Application analytics.

Public API:
- AnalyticsService: Metrics, upcoming interviews, status counts, follow-ups
- compute_metrics: Pure metrics reduction over a snapshot of applications
- find_upcoming_interviews: Pure interview windowing
- ApplicationMetrics, UpcomingInterview, StatusCounts: Result models
"""

from src.analytics.interviews import find_upcoming_interviews
from src.analytics.metrics import compute_metrics
from src.analytics.models import ApplicationMetrics, StatusCounts, UpcomingInterview
from src.analytics.service import AnalyticsService

__all__ = [
    "AnalyticsService",
    "compute_metrics",
    "find_upcoming_interviews",
    "ApplicationMetrics",
    "StatusCounts",
    "UpcomingInterview",
]
