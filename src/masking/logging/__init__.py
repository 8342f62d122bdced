"""Logging helpers for the masking engine."""

from .logging_config import add_context_to_logger, configure_logging, get_logger

__all__ = [
    "add_context_to_logger",
    "configure_logging",
    "get_logger"
]
