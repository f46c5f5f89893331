from __future__ import annotations

from pathlib import Path

import pytest

from src.vintage.config import AppConfig
from src.vintage.dependencies import build_container
from src.vintage.domain.models import Role
from src.vintage.infrastructure.blob_storage import LocalBlobStorage
from tests.mocks.blob_storage import RecordingBlobStorage

pytestmark = pytest.mark.unit


def test_build_container_wires_shared_collaborators(engine, tmp_path: Path) -> None:
    config = AppConfig(media_root=tmp_path / "media", transaction_timeout_seconds=5)

    container = build_container(config, engine=engine)

    assert container.engine is engine
    assert isinstance(container.storage, LocalBlobStorage)
    assert container.catalog_service.uploader is container.uploader
    assert container.account_service.store is container.account_store
    assert container.shop_service.store is container.shop_store


def test_container_services_share_one_database(engine, tmp_path: Path) -> None:
    storage = RecordingBlobStorage()
    container = build_container(AppConfig(media_root=tmp_path), engine=engine, storage=storage)

    account = container.account_service.register_customer(
        username="rina", email="rina@example.com", password="correct-horse"
    )
    container.shop_service.create_shop(account.id, name="Rina Vintage")

    assert Role.SELLER in container.account_store.list_roles(account.id)
    assert container.catalog_service.list_products_by_seller(account.id).total == 0
