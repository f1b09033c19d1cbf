"""Structured logging configuration for the catalog service.

JSON-formatted logs in production, readable console logs in development,
with request and catalog context carried on each record.
"""
import logging
import json
import sys
import time
from datetime import datetime, timezone
from typing import Any, Dict, Optional
import traceback


# Record attributes promoted to top-level JSON keys when present
CONTEXT_FIELDS = (
    "request_id", "endpoint", "method", "path", "status_code", "duration_ms",
    "operation", "product_id", "currency", "error_type",
)


class JSONFormatter(logging.Formatter):
    """Render log records as single-line JSON documents.

    Includes timestamp, level, logger, message, source location, exception
    details and any known context attributes passed through ``extra``.
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format a log record as JSON.

        Args:
            record: Log record to format

        Returns:
            JSON-formatted log string
        """
        log_obj: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info:
            log_obj["exception"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]),
                "traceback": traceback.format_exception(*record.exc_info)
            }

        for attr in CONTEXT_FIELDS:
            if hasattr(record, attr):
                log_obj[attr] = getattr(record, attr)

        return json.dumps(log_obj, default=str)


class ContextLogger(logging.LoggerAdapter):
    """Logger adapter that stamps a fixed context onto every record.

    Example:
        >>> logger = ContextLogger(base_logger, {"operation": "reorder"})
        >>> logger.info("Batch applied")
    """

    def process(self, msg: str, kwargs: Dict[str, Any]) -> tuple:
        """Merge the adapter context with any per-call extra.

        Args:
            msg: Log message
            kwargs: Keyword arguments of the logging call

        Returns:
            Tuple of (message, kwargs) with the merged extra
        """
        extra = dict(self.extra)
        extra.update(kwargs.get('extra', {}))
        kwargs['extra'] = extra
        return msg, kwargs


def setup_logging(
    level: str = "INFO",
    json_format: bool = True,
) -> logging.Logger:
    """Configure application-wide logging.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_format: Whether to use JSON formatter (True for production)

    Returns:
        Configured root logger
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(getattr(logging, level.upper()))

    if json_format:
        formatter = JSONFormatter()
    else:
        formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')

    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    # The Mongo driver is chatty at DEBUG
    logging.getLogger("pymongo").setLevel(logging.WARNING)

    return root_logger


def get_logger(name: str, context: Optional[Dict[str, Any]] = None) -> logging.Logger:
    """Get a logger, wrapped in a ContextLogger when context is given.

    Example:
        >>> logger = get_logger(__name__, {"operation": "search"})
        >>> logger.info("Search served", extra={"duration_ms": 12})
    """
    logger = logging.getLogger(name)

    if context:
        return ContextLogger(logger, context)

    return logger


class LogTimer:
    """Context manager that logs how long a catalog operation took.

    Example:
        >>> with LogTimer(logger, "list_products"):
        ...     products = await catalog.list_products()
        # Logs: "list_products completed in 8.4ms"
    """

    def __init__(self, logger: logging.Logger, operation: str):
        """Initialize the timer.

        Args:
            logger: Logger to write the timing record to
            operation: Name of the operation being timed
        """
        self.logger = logger
        self.operation = operation
        self.start: Optional[float] = None

    def __enter__(self):
        self.start = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        if self.start is None:
            return
        duration = (time.perf_counter() - self.start) * 1000
        extra = {"operation": self.operation, "duration_ms": round(duration, 2)}

        if exc_type:
            # Expected client errors are logged by the exception handlers
            self.logger.warning(
                f"{self.operation} failed after {duration:.1f}ms: {exc_type.__name__}",
                extra=extra
            )
        else:
            self.logger.info(f"{self.operation} completed in {duration:.1f}ms", extra=extra)


# Initialize logging on module import (can be reconfigured later)
setup_logging(
    level="INFO",
    json_format=False  # Set to True for production JSON logs
)
