"""Structured logging configuration with request_id propagation"""

import contextvars
import logging
import sys
from typing import Any, Callable, Dict, Mapping, Optional
from uuid import uuid4

import structlog

# Context variable for request_id propagation
request_id_var: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    "request_id", default=None
)

# Fields attached to every log entry, matching the service's logging conventions
SERVICE_LOG_FIELDS: Dict[str, str] = {
    "service": "vice-file-transfers",
    "art-id": "vice-file-transfers",
    "group": "org.cyverse",
}


def add_request_id(
    logger: Any, method_name: str, event_dict: Dict[str, Any]
) -> Dict[str, Any]:
    """
    Add request_id to log entries from context variable

    Args:
        logger: The logger instance
        method_name: The logging method name
        event_dict: The event dictionary

    Returns:
        Updated event dictionary with request_id
    """
    request_id = request_id_var.get()
    if request_id:
        event_dict["request_id"] = request_id
    return event_dict


def static_fields_processor(
    fields: Mapping[str, Any],
) -> Callable[[Any, str, Dict[str, Any]], Dict[str, Any]]:
    """
    Build a processor that adds fixed fields to every log entry

    Fields already present in the event are left untouched.

    Args:
        fields: Field names and values to add

    Returns:
        structlog processor
    """
    frozen = dict(fields)

    def add_static_fields(
        logger: Any, method_name: str, event_dict: Dict[str, Any]
    ) -> Dict[str, Any]:
        for key, value in frozen.items():
            event_dict.setdefault(key, value)
        return event_dict

    return add_static_fields


def configure_logging(
    log_level: str = "INFO",
    log_format: str = "json",
    static_fields: Optional[Mapping[str, Any]] = None,
) -> None:
    """
    Configure structured logging with structlog

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Output format ("json" or "console")
        static_fields: Extra fields added to every entry (e.g. invocation_id)
    """
    numeric_level = getattr(logging, log_level.upper(), logging.INFO)

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=numeric_level,
    )

    fields = dict(SERVICE_LOG_FIELDS)
    if static_fields:
        fields.update(static_fields)

    shared_processors = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        add_request_id,
        static_fields_processor(fields),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]

    if log_format == "json":
        processors = shared_processors + [
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        # Console format for development
        processors = shared_processors + [
            structlog.processors.format_exc_info,
            structlog.dev.ConsoleRenderer(),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    """
    Get a configured logger instance

    Args:
        name: Logger name (typically __name__)

    Returns:
        Configured structlog logger
    """
    return structlog.get_logger(name)


def set_request_id(request_id: Optional[str] = None) -> str:
    """
    Set request_id in context variable

    Args:
        request_id: Optional request ID, generates UUID if not provided

    Returns:
        The request_id that was set
    """
    if request_id is None:
        request_id = f"req_{uuid4().hex[:12]}"
    request_id_var.set(request_id)
    return request_id


def get_request_id() -> Optional[str]:
    """
    Get current request_id from context variable

    Returns:
        Current request_id or None
    """
    return request_id_var.get()


def clear_request_id() -> None:
    """Clear request_id from context variable"""
    request_id_var.set(None)
