"""Logging configuration for the vintage backend."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Iterator

import structlog


def configure_logging(level: str = "INFO") -> None:
    """Configure stdlib logging and route structlog through it as JSON."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(message)s",
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.JSONRenderer(),
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


@contextmanager
def operation_context(operation: str, **fields: Any) -> Iterator[None]:
    """Bind ``operation`` and ``fields`` to every log line emitted in the block."""
    with structlog.contextvars.bound_contextvars(operation=operation, **fields):
        yield
