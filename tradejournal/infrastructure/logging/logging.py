"""Logging setup using structlog.

Analytics functions are pure; the only things worth logging are degraded
calculations (fallback paths, unknown commission symbols), cache activity and
report generation. Every event carries a `component` field.

Module-level loggers are lazy proxies, so `configure_logging` applies to them
even when it runs after import. Events go to stderr; stdout belongs to
command output.
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog


def configure_logging(log_level: str = "INFO", json_logs: bool = True) -> None:
    level = getattr(logging, log_level.upper(), logging.INFO)

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=level,
        force=True,
    )

    renderer = structlog.processors.JSONRenderer() if json_logs else structlog.dev.ConsoleRenderer()

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.stdlib.LoggerFactory(),
        # Reconfiguring must reach loggers that were already used.
        cache_logger_on_first_use=False,
    )


def get_logger(component: str, **kwargs: Any) -> Any:
    return structlog.get_logger(component=component, **kwargs)
