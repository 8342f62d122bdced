"""Logging configuration for the masking engine."""

import logging
import logging.handlers
import sys
from typing import Any, Dict, Optional

from ..config.config_manager import LoggingConfig

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DEFAULT_DATEFMT = "%Y-%m-%d %H:%M:%S"


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance.

    Args:
        name: Logger name

    Returns:
        logging.Logger: The logger instance
    """
    return logging.getLogger(name)


class ContextFilter(logging.Filter):
    """Copies a fixed context dictionary onto every record."""

    def __init__(self, context: Dict[str, Any]):
        super().__init__()
        self.context = dict(context)

    def filter(self, record: logging.LogRecord) -> bool:
        for key, value in self.context.items():
            setattr(record, key, value)
        return True


def add_context_to_logger(logger: logging.Logger, context: Dict[str, Any]) -> logging.Logger:
    """Add contextual information to a logger.

    Any previously attached context filter is replaced, so calling this twice
    leaves only the latest context on the records.

    Args:
        logger: The logger to add context to
        context: Dictionary of contextual information

    Returns:
        logging.Logger: The logger with added context
    """
    for filter_ in list(logger.filters):
        if isinstance(filter_, ContextFilter):
            logger.removeFilter(filter_)

    logger.addFilter(ContextFilter(context))
    return logger


def configure_logging(config: LoggingConfig) -> None:
    """Configure logging based on configuration.

    Args:
        config: Logging configuration
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(config.level)

    # Clear existing handlers
    root_logger.handlers.clear()

    handlers = config.handlers or [{"type": "console"}]
    for handler_config in handlers:
        handler = _create_handler(handler_config, config.format or DEFAULT_FORMAT)
        if handler:
            root_logger.addHandler(handler)


def _create_handler(
    config: Dict[str, Any],
    default_format: str = DEFAULT_FORMAT
) -> Optional[logging.Handler]:
    """Create a log handler from configuration.

    Args:
        config: Handler configuration
        default_format: Format used when the handler sets none

    Returns:
        Optional[logging.Handler]: The created handler
    """
    handler_type = config.get("type", "").lower()

    if handler_type == "console":
        handler = logging.StreamHandler(sys.stdout)
    elif handler_type == "file":
        handler = logging.handlers.RotatingFileHandler(
            filename=config["filename"],
            maxBytes=config.get("max_bytes", 10485760),  # 10MB default
            backupCount=config.get("backup_count", 5)
        )
    else:
        return None

    formatter = logging.Formatter(
        fmt=config.get("format", default_format),
        datefmt=config.get("datefmt", DEFAULT_DATEFMT)
    )
    handler.setFormatter(formatter)

    return handler
