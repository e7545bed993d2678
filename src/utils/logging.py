"""Logging configuration for the Application Tracker."""

import logging
import sys

# Logger name for the application
LOGGER_NAME = "app_tracker"

# Default log format
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Track if logging has been configured
_configured = False


def configure_logging(
    level: str | None = None,
    format_string: str = LOG_FORMAT,
    date_format: str = DATE_FORMAT,
) -> logging.Logger:
    """Configure and return the main application logger.

    The ``src.*`` module loggers are attached under the same handler so
    service-level messages end up on stderr alongside CLI messages.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
               Defaults to INFO if not specified.
        format_string: Format string for log messages.
        date_format: Format string for timestamps.

    Returns:
        The configured root application logger.
    """
    global _configured

    logger = logging.getLogger(LOGGER_NAME)
    module_logger = logging.getLogger("src")

    if level is None:
        level = "INFO"
    log_level = getattr(logging, level.upper(), logging.INFO)

    logger.setLevel(log_level)
    module_logger.setLevel(log_level)

    if not _configured:
        logger.handlers.clear()
        module_logger.handlers.clear()

        formatter = logging.Formatter(format_string, datefmt=date_format)

        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setLevel(log_level)
        console_handler.setFormatter(formatter)

        logger.addHandler(console_handler)
        module_logger.addHandler(console_handler)

        # Prevent propagation to root logger
        logger.propagate = False
        module_logger.propagate = False

        _configured = True
    else:
        # Update existing handler levels
        for handler in logger.handlers:
            handler.setLevel(log_level)

    return logger


def get_logger(name: str) -> logging.Logger:
    """Get a child logger for a specific component.

    Args:
        name: The component name (will be prefixed with 'app_tracker.').

    Returns:
        A child logger for the component.
    """
    return logging.getLogger(f"{LOGGER_NAME}.{name}")


def reset_logging() -> None:
    """Reset logging configuration (useful for testing)."""
    global _configured

    for name in (LOGGER_NAME, "src"):
        logger = logging.getLogger(name)
        logger.handlers.clear()
        logger.setLevel(logging.NOTSET)
        logger.propagate = True

    _configured = False
