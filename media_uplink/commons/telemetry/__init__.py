"""Telemetry module - structured logging and timing."""

from media_uplink.commons.telemetry.decorators import LogContext, timed
from media_uplink.commons.telemetry.logger import (
    JsonFormatter,
    TextFormatter,
    configure_logging,
    get_correlation_id,
    get_log_context,
    get_logger,
)

__all__ = [
    # Decorators
    "timed",
    "LogContext",
    # Logger
    "get_logger",
    "configure_logging",
    "JsonFormatter",
    "TextFormatter",
    # Correlation ID
    "get_correlation_id",
    # Log Context
    "get_log_context",
]
