"""Process entry point: logging, schema and service wiring."""

from __future__ import annotations

import structlog

from .config import AppConfig
from .db.db_init import init_db
from .dependencies import ServiceContainer, build_container
from .logging import configure_logging

logger = structlog.get_logger(__name__)


def bootstrap(config: AppConfig | None = None) -> ServiceContainer:
    """Build the service container with configured dependencies."""
    cfg = config or AppConfig()
    configure_logging(cfg.log_level)
    container = build_container(cfg)
    init_db(container.engine)
    logger.info("app.bootstrap.ready", database=container.engine.url.render_as_string(hide_password=True))
    return container
