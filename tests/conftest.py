from __future__ import annotations

import os

import pytest
from sqlalchemy.engine import Engine

from src.vintage.config import build_engine
from src.vintage.db.db_init import init_db
from src.vintage.db.querier import PooledConnection

os.environ.setdefault("VINTAGE_DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("VINTAGE_MEDIA_BASE_URL", "https://media.test")
os.environ.setdefault("VINTAGE_LOG_LEVEL", "WARNING")


@pytest.fixture
def engine(tmp_path) -> Engine:
    engine = build_engine(f"sqlite:///{tmp_path / 'vintage.db'}")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def pooled(engine: Engine) -> PooledConnection:
    return PooledConnection(engine)


def row_count(engine: Engine, table: str) -> int:
    with engine.connect() as conn:
        return conn.exec_driver_sql(f"SELECT COUNT(*) FROM {table}").scalar_one()
