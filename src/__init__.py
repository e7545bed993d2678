"""Application Tracker: job application lifecycle and analytics."""

__version__ = "0.1.0"
