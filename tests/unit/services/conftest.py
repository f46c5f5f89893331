from __future__ import annotations

from uuid import UUID

import pytest

from src.vintage.db.querier import PooledConnection
from src.vintage.infrastructure.unit_of_work import UnitOfWork
from src.vintage.repositories import AccountRepository, CatalogRepository, ShopRepository
from src.vintage.security.passwords import PasswordHasher
from src.vintage.services import AccountService, CatalogService, CompensatingUploader, ShopService
from src.vintage.stores import AccountStore, CatalogStore, ShopStore
from tests.mocks.blob_storage import RecordingBlobStorage


@pytest.fixture
def storage() -> RecordingBlobStorage:
    return RecordingBlobStorage()


@pytest.fixture
def uploader(storage: RecordingBlobStorage) -> CompensatingUploader:
    return CompensatingUploader(storage)


@pytest.fixture
def account_service(engine, pooled: PooledConnection, uploader: CompensatingUploader) -> AccountService:
    store = AccountStore(UnitOfWork.from_engine(AccountRepository(pooled), engine))
    return AccountService(store, uploader, PasswordHasher(iterations=1000))


@pytest.fixture
def shop_service(engine, pooled: PooledConnection, uploader: CompensatingUploader) -> ShopService:
    return ShopService(ShopStore(UnitOfWork.from_engine(ShopRepository(pooled), engine)), uploader)


@pytest.fixture
def catalog_service(engine, pooled: PooledConnection, uploader: CompensatingUploader) -> CatalogService:
    return CatalogService(CatalogStore(UnitOfWork.from_engine(CatalogRepository(pooled), engine)), uploader)


@pytest.fixture
def customer_id(account_service: AccountService) -> UUID:
    account = account_service.register_customer(
        username="rina", email="rina@example.com", password="correct-horse", full_name="Rina"
    )
    return account.id


@pytest.fixture
def seller_id(customer_id: UUID, shop_service: ShopService) -> UUID:
    shop_service.create_shop(customer_id, name="Rina Vintage")
    return customer_id
