"""
structlog configuration for the server and scripts.
"""

from __future__ import annotations

import logging

import structlog


def configure_logging(
    level: str = "info",
    fmt: str = "json",
    *,
    service: str | None = None,
    environment: str | None = None,
) -> None:
    """Configure structlog with the specified level and format.

    ``service`` and ``environment`` are bound as context variables so every
    event carries them.
    """
    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
    ]
    if fmt == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(level.upper())
        ),
    )

    structlog.contextvars.clear_contextvars()
    tags = {k: v for k, v in {"service": service, "environment": environment}.items() if v}
    if tags:
        structlog.contextvars.bind_contextvars(**tags)
