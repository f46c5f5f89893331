"""Database initialization helpers."""

from __future__ import annotations

from sqlalchemy import text
from sqlalchemy.engine import Engine

from ..domain.models import Role
from .db_models import Base

DEFAULT_ROLES = tuple(role.value for role in Role)


def init_db(engine: Engine) -> None:
    """Create tables and seed the role catalogue if it is missing."""
    Base.metadata.create_all(engine)

    with engine.begin() as conn:
        existing = {row[0] for row in conn.execute(text("SELECT name FROM roles"))}
        for name in DEFAULT_ROLES:
            if name not in existing:
                conn.execute(text("INSERT INTO roles (name) VALUES (:name)"), {"name": name})


__all__ = ["DEFAULT_ROLES", "init_db"]
