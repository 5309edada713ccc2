"""
Logging configuration for docpager.

The library itself never configures logging; it only asks for loggers through
``get_logger``. Applications that want structured output call
``setup_logging`` once at startup.

Usage:
    from docpager.logging_config import setup_logging

    setup_logging(
        service_name="catalog-api",
        log_level="INFO",
        log_format="json"
    )
"""

import logging
import sys
from typing import Any

import structlog


def add_service_context(
    logger: structlog.types.WrappedLogger,
    method_name: str,
    event_dict: structlog.types.EventDict,
) -> structlog.types.EventDict:
    """Tag entries emitted by the engine's own modules."""
    logger_name = event_dict.get("logger", "")
    if logger_name.startswith("docpager."):
        # e.g. "docpager.pagination.filters" -> "pagination"
        event_dict.setdefault("component", logger_name.split(".")[1])
    return event_dict


class TextRenderer:
    """Compact single-line renderer for local development."""

    def __init__(self, service_name: str):
        self.service_name = service_name

    def __call__(
        self,
        logger: structlog.types.WrappedLogger,
        method_name: str,
        event_dict: structlog.types.EventDict,
    ) -> str:
        timestamp = event_dict.pop("timestamp", "")
        level = str(event_dict.pop("level", "info")).upper()
        logger_name = event_dict.pop("logger", "")
        message = event_dict.pop("event", "")

        parts = [
            timestamp,
            f"[{self.service_name}]",
            f"[{level}]",
            logger_name,
            f"- {message}",
        ]

        extra_context = []
        for key, value in event_dict.items():
            if isinstance(value, (str, int, float, bool)) or value is None:
                extra_context.append(f"{key}={value}")
            else:
                extra_context.append(f"{key}={str(value)[:150]}")

        if extra_context:
            parts.append(f"| {', '.join(extra_context)}")

        return " ".join(filter(None, parts))


def setup_logging(
    service_name: str = "docpager",
    log_level: str = "INFO",
    log_format: str = "json",
) -> None:
    """
    Set up structured logging.

    Args:
        service_name: Name shown by the text renderer
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        log_format: Format type ("json" or "text")
    """
    processors: list = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        add_service_context,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]

    if log_format == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(TextRenderer(service_name))

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(logging.Formatter("%(message)s"))

    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        handlers=[handler],
        force=True,
    )

    get_logger(__name__).info(
        "Logging configured", service=service_name, log_format=log_format
    )


def get_logger(name: str, **initial_values: Any) -> structlog.stdlib.BoundLogger:
    """
    Get a structured logger instance.

    Args:
        name: Logger name (usually __name__)
        **initial_values: Context bound to every entry of this logger

    Returns:
        Configured structlog logger
    """
    return structlog.get_logger(name, **initial_values)
