"""
structlog setup for reqmetrics

events that carry a `labels` mapping (meters, the registry) get it rendered
in prometheus selector form, e.g. labels='{method="GET"}'
"""

import logging
import sys
from collections.abc import Mapping
from typing import Any

import structlog
from structlog.types import EventDict, Processor

from ..config import settings


def add_service_name(_logger: Any, _method_name: str, event_dict: EventDict) -> EventDict:
    """tag every event with the configured service name"""
    event_dict.setdefault("service", settings.service_name)
    return event_dict


def format_labels(labels: Mapping[str, Any]) -> str:
    """render a label set the way prometheus selectors write it"""
    pairs = ",".join(f'{name}="{value}"' for name, value in sorted(labels.items()))
    return "{" + pairs + "}"


def render_labels(_logger: Any, _method_name: str, event_dict: EventDict) -> EventDict:
    labels = event_dict.get("labels")
    if isinstance(labels, Mapping):
        event_dict["labels"] = format_labels(labels)
    return event_dict


def configure_logging(log_level: str | None = None, log_format: str | None = None) -> None:
    """configure structlog with JSON or console output, defaults from settings"""
    level = (log_level or settings.log_level).upper()
    fmt = log_format or settings.log_format

    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        add_service_name,
        render_labels,
        structlog.processors.format_exc_info,
    ]
    if fmt == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer(colors=True))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(logging.getLevelName(level)),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str) -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)
