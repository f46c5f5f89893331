"""Dependency wiring helpers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TypeVar

from sqlalchemy.engine import Engine

from .config import AppConfig, build_engine
from .db.querier import PooledConnection
from .infrastructure.blob_storage import BlobStorage, LocalBlobStorage
from .infrastructure.unit_of_work import UnitOfWork
from .repositories import AccountRepository, CatalogRepository, ShopRepository
from .security.passwords import PasswordHasher
from .services import AccountService, CatalogService, CompensatingUploader, ShopService
from .stores import AccountStore, CatalogStore, ShopStore

RepoT = TypeVar("RepoT", AccountRepository, CatalogRepository, ShopRepository)


@dataclass(slots=True)
class ServiceContainer:
    config: AppConfig
    engine: Engine
    storage: BlobStorage
    uploader: CompensatingUploader
    account_store: AccountStore
    catalog_store: CatalogStore
    shop_store: ShopStore
    account_service: AccountService
    catalog_service: CatalogService
    shop_service: ShopService


def build_container(
    config: AppConfig,
    *,
    engine: Engine | None = None,
    storage: BlobStorage | None = None,
) -> ServiceContainer:
    """Construct every collaborator once and pass references explicitly."""
    engine = engine or build_engine(config.database_url)
    storage = storage or LocalBlobStorage(root=config.media_root, public_base_url=config.media_base_url)
    pooled = PooledConnection(engine, timeout_seconds=config.query_timeout_seconds)
    uploader = CompensatingUploader(storage, cleanup_timeout_seconds=config.compensation_timeout_seconds)

    def unit_of_work(repository: RepoT) -> UnitOfWork[RepoT]:
        return UnitOfWork.from_engine(
            repository, engine, timeout_seconds=config.transaction_timeout_seconds
        )

    account_store = AccountStore(unit_of_work(AccountRepository(pooled)))
    catalog_store = CatalogStore(unit_of_work(CatalogRepository(pooled)))
    shop_store = ShopStore(unit_of_work(ShopRepository(pooled)))

    return ServiceContainer(
        config=config,
        engine=engine,
        storage=storage,
        uploader=uploader,
        account_store=account_store,
        catalog_store=catalog_store,
        shop_store=shop_store,
        account_service=AccountService(account_store, uploader, PasswordHasher()),
        catalog_service=CatalogService(catalog_store, uploader),
        shop_service=ShopService(shop_store, uploader),
    )
