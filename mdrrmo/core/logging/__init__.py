"""Logging utilities for monitoring and debugging."""

from mdrrmo.core.logging.config import LogConfig
from mdrrmo.core.logging.logger import configure_logging, current_trace_id, log_context, logger

__all__ = [
    "LogConfig",
    "configure_logging",
    "current_trace_id",
    "log_context",
    "logger",
]
