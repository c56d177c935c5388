"""Structured logging configuration for the Proposal Engine."""

import logging
import sys
from typing import Any


class StructuredFormatter(logging.Formatter):
    """Key=value structured log formatter.

    ``request_id`` ties together every line logged while serving one API
    call. Context fields passed as ``extra_data`` follow the message, with
    unset (None) values left out.
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as structured output."""
        log_data: dict[str, Any] = {
            "timestamp": self.formatTime(record, self.datefmt),
            "level": record.levelname,
        }

        request_id = getattr(record, "request_id", None)
        if request_id is not None:
            log_data["request_id"] = request_id

        log_data.update(
            module=record.module,
            function=record.funcName,
            message=record.getMessage(),
        )

        extra_data = getattr(record, "extra_data", None) or {}
        log_data.update({k: v for k, v in extra_data.items() if v is not None})

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return " ".join(f"{k}={v}" for k, v in log_data.items())


def get_logger(name: str) -> logging.Logger:
    """
    Get a configured logger instance.

    Args:
        name: Logger name (typically __name__)

    Returns:
        Logger writing structured lines to stdout, at DEBUG in the dev environment
    """
    logger = logging.getLogger(name)

    # Only configure if not already configured
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(StructuredFormatter())
        logger.addHandler(handler)

        try:
            from proposal_engine.core.config import get_settings

            dev = get_settings().PROPOSAL_ENGINE_ENV == "dev"
        except Exception:
            # Settings unavailable (e.g. invalid env); fall back to INFO
            dev = False
        logger.setLevel(logging.DEBUG if dev else logging.INFO)

    return logger


def log_with_context(
    logger: logging.Logger,
    level: int,
    msg: str,
    request_id: Any = None,
    **fields: Any,
) -> None:
    """
    Log a message tagged with the current request and extra context fields.

    Args:
        logger: Logger instance
        level: Log level (logging.INFO, etc.)
        msg: Log message
        request_id: Identifier of the API call being served, if any
        **fields: Additional context fields (e.g. error_kind, upstream_status)
    """
    extra: dict[str, Any] = {"extra_data": fields}
    if request_id is not None:
        extra["request_id"] = str(request_id)
    logger.log(level, msg, extra=extra)
