"""
colorscan Structured Logging
Centralized logging configuration using loguru.
"""
import sys
from typing import Dict, Any, Optional

from loguru import logger

from colorscan.config import config


LOG_FORMAT = "{time:YYYY-MM-DD HH:mm:ss} | {level} | {message} | {extra}"


def configure_logging(level: Optional[str] = None) -> int:
    """
    Replace loguru's default handler with a single structured stdout sink.

    Args:
        level: Minimum log level (default from config)

    Returns:
        Handler id of the installed sink
    """
    logger.remove()
    return logger.add(
        sys.stdout,
        format=LOG_FORMAT,
        level=(level or config.LOG_LEVEL).upper(),
        serialize=False,
        enqueue=True  # batch workers log from several threads
    )


class StructuredLogger:
    """Structured logger for the batch pipeline."""

    def __init__(self, level: Optional[str] = None):
        """Initialize structured logger."""
        self.handler_id = configure_logging(level)

    def info(self, message: str, extra: Optional[Dict[str, Any]] = None):
        """Log info message with optional extra data."""
        if extra:
            logger.bind(**extra).info(message)
        else:
            logger.info(message)

    def warning(self, message: str, extra: Optional[Dict[str, Any]] = None):
        """Log warning message with optional extra data."""
        if extra:
            logger.bind(**extra).warning(message)
        else:
            logger.warning(message)

    def error(self, message: str, extra: Optional[Dict[str, Any]] = None):
        """Log error message with optional extra data."""
        if extra:
            logger.bind(**extra).error(message)
        else:
            logger.error(message)

    def debug(self, message: str, extra: Optional[Dict[str, Any]] = None):
        if extra:
            logger.bind(**extra).debug(message)
        else:
            logger.debug(message)


# Global logger instance
_logger: Optional[StructuredLogger] = None


def get_logger(level: Optional[str] = None) -> StructuredLogger:
    """Get or create global logger instance."""
    global _logger
    if _logger is None:
        _logger = StructuredLogger(level)
    return _logger
