"""Application configuration and engine construction.

Values come from ``VINTAGE_*`` environment variables, optionally loaded from a
``.env`` file. Timeouts default to 30 seconds per transaction and 3 seconds per
standalone query.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine

from .domain.deadlines import DEFAULT_QUERY_TIMEOUT, DEFAULT_TRANSACTION_TIMEOUT


class AppConfig(BaseSettings):
    """Pydantic settings container for the service layer."""

    model_config = SettingsConfigDict(env_prefix="VINTAGE_", env_file=".env", extra="ignore")

    database_url: str = Field(
        default="sqlite:///vintage.db",
        description="SQLAlchemy URL of the primary relational store.",
    )
    media_root: Path = Field(
        default=Path("./var/media"),
        description="Filesystem root used by the local blob storage.",
    )
    media_base_url: str = Field(
        default="http://localhost:8000/media",
        description="Public URL prefix under which stored blobs are served.",
    )
    transaction_timeout_seconds: float = Field(
        default=DEFAULT_TRANSACTION_TIMEOUT,
        gt=0,
        description="Upper bound for a single unit-of-work transaction.",
    )
    query_timeout_seconds: float = Field(
        default=DEFAULT_QUERY_TIMEOUT,
        gt=0,
        description="Upper bound for a standalone read outside a transaction.",
    )
    compensation_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Budget for best-effort blob deletes after a failure.",
    )
    log_level: str = Field(default="INFO", description="Root log level.")


def _enable_sqlite_foreign_keys(dbapi_connection: Any, _record: Any) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def build_engine(database_url: str, **kwargs: Any) -> Engine:
    """Create an engine; SQLite connections get foreign key enforcement."""

    engine = create_engine(database_url, future=True, **kwargs)
    if engine.dialect.name == "sqlite":
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    return engine


__all__ = ["AppConfig", "build_engine"]
