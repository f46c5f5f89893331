"""Smoke tests for the Alembic revisions against SQLite."""

from __future__ import annotations

from pathlib import Path

import pytest
from alembic import command
from alembic.config import Config
from sqlalchemy import inspect

from src.vintage.config import build_engine

PROJECT_ROOT = Path(__file__).resolve().parents[3]

pytestmark = pytest.mark.unit


@pytest.fixture
def database_url(tmp_path, monkeypatch: pytest.MonkeyPatch) -> str:
    url = f"sqlite:///{tmp_path / 'migrated.db'}"
    monkeypatch.setenv("VINTAGE_DATABASE_URL", url)
    return url


def _config() -> Config:
    config = Config()
    config.set_main_option("script_location", str(PROJECT_ROOT / "alembic"))
    return config


def test_upgrade_head_creates_schema_and_roles(database_url: str) -> None:
    command.upgrade(_config(), "head")

    engine = build_engine(database_url)
    try:
        inspector = inspect(engine)
        tables = set(inspector.get_table_names())
        assert {"accounts", "brands", "products", "product_images", "wishlist"} <= tables
        unique_names = {item["name"] for item in inspector.get_unique_constraints("wishlist")}
        assert "wishlist_account_id_product_id_key" in unique_names
        with engine.connect() as conn:
            roles = {row[0] for row in conn.exec_driver_sql("SELECT name FROM roles")}
        assert roles == {"customer", "seller", "admin"}
    finally:
        engine.dispose()


def test_downgrade_base_drops_everything(database_url: str) -> None:
    config = _config()
    command.upgrade(config, "head")
    command.downgrade(config, "base")

    engine = build_engine(database_url)
    try:
        assert set(inspect(engine).get_table_names()) <= {"alembic_version"}
    finally:
        engine.dispose()
