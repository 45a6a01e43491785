"""
Logging Module - Structured logging setup with Rich console support.
====================================================================

Centralized logging configuration for the pipeline. Worker threads in the
batch orchestrator log through the same root handlers, so the thread name is
included in the plain-text format.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.logging import RichHandler

# Global state for logging configuration
_logging_configured = False
_console = Console(stderr=True)

DEFAULT_FORMAT = "%(asctime)s | %(levelname)-8s | %(threadName)s | %(name)s | %(message)s"

# Third-party loggers that are too chatty at INFO
_NOISY_LOGGERS = (
    "httpx",
    "httpcore",
    "urllib3",
    "requests",
    "google_genai",
    "google.auth",
)


def setup_logging(
    level: str = "INFO",
    use_rich: bool = True,
    log_file: Optional[str] = None,
    log_format: Optional[str] = None,
    force: bool = False,
) -> None:
    """
    Configure logging for the application.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        use_rich: Whether to use Rich console handler for pretty output
        log_file: Optional path to log file
        log_format: Optional custom log format string
        force: Reconfigure even if logging was already set up

    Note:
        Subsequent calls are ignored unless ``force`` is set, to prevent
        duplicate handlers.
    """
    global _logging_configured

    if _logging_configured and not force:
        return

    numeric_level = getattr(logging, level.upper(), logging.INFO)

    if log_format is None:
        log_format = DEFAULT_FORMAT

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    root_logger.handlers.clear()

    # Logs go to stderr so CLI JSON output on stdout stays clean
    if use_rich:
        rich_handler = RichHandler(
            console=_console,
            show_time=True,
            show_level=True,
            show_path=False,
            rich_tracebacks=True,
            tracebacks_show_locals=False,
            markup=False,
        )
        rich_handler.setLevel(numeric_level)
        rich_handler.setFormatter(logging.Formatter("%(message)s"))
        root_logger.addHandler(rich_handler)
    else:
        stream_handler = logging.StreamHandler(sys.stderr)
        stream_handler.setLevel(numeric_level)
        stream_handler.setFormatter(logging.Formatter(log_format))
        root_logger.addHandler(stream_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setLevel(numeric_level)
        file_handler.setFormatter(logging.Formatter(log_format))
        root_logger.addHandler(file_handler)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    _logging_configured = True

    logger = get_logger(__name__)
    logger.debug(f"Logging configured: level={level}, rich={use_rich}, file={log_file}")


def setup_logging_from_settings(level: Optional[str] = None) -> None:
    """Configure logging from the application settings, optionally overriding the level."""
    from scholarship_ingest.shared.config import get_settings

    settings = get_settings()
    setup_logging(
        level=level or settings.get_effective_log_level(),
        use_rich=settings.logging.rich_console,
        log_file=settings.logging.file or None,
        log_format=settings.logging.format,
        force=True,
    )


def get_logger(name: str) -> logging.Logger:
    """
    Get a named logger instance.

    Args:
        name: Logger name (typically __name__ of the calling module)

    Returns:
        Configured logger instance

    Example:
        >>> logger = get_logger(__name__)
        >>> logger.info("Normalization started")
    """
    if not _logging_configured:
        setup_logging()

    return logging.getLogger(name)


def get_console() -> Console:
    """
    Get the Rich console used for log output.

    Returns:
        Rich Console instance (bound to stderr)
    """
    return _console
