"""Per-aggregate stores: read delegation plus transactional writes.

A store forwards only the read operations of its repository. Writes are
reachable solely through :meth:`execute_in_transaction`, so every
multi-statement change runs atomically.
"""

from __future__ import annotations

from typing import Callable, Generic, TypeVar
from uuid import UUID

from .domain.models import Account, Address, Brand, Category, Condition, Product, Role, Shop, Size, WishlistItem
from .infrastructure.unit_of_work import UnitOfWork
from .repositories import AccountRepository, CatalogRepository, ShopRepository

T = TypeVar("T")
RepoT = TypeVar("RepoT")


class _Store(Generic[RepoT]):
    def __init__(self, uow: UnitOfWork) -> None:
        self._uow = uow

    @property
    def _reader(self) -> RepoT:
        return self._uow.repository

    def execute_in_transaction(self, fn: Callable[[RepoT], T]) -> T:
        return self._uow.execute_in_transaction(fn)


class AccountStore(_Store[AccountRepository]):
    def find_account_by_id(self, account_id: UUID) -> Account:
        return self._reader.find_account_by_id(account_id)

    def find_account_by_username(self, username: str) -> Account | None:
        return self._reader.find_account_by_username(username)

    def find_account_by_email(self, email: str) -> Account | None:
        return self._reader.find_account_by_email(email)

    def list_roles(self, account_id: UUID) -> list[Role]:
        return self._reader.list_roles(account_id)

    def find_address(self, account_id: UUID, address_id: UUID) -> Address:
        return self._reader.find_address(account_id, address_id)

    def list_addresses(self, account_id: UUID) -> list[Address]:
        return self._reader.list_addresses(account_id)

    def list_wishlist(
        self, account_id: UUID, *, keyword: str | None, limit: int, offset: int
    ) -> list[WishlistItem]:
        return self._reader.list_wishlist(account_id, keyword=keyword, limit=limit, offset=offset)

    def count_wishlist(self, account_id: UUID, *, keyword: str | None) -> int:
        return self._reader.count_wishlist(account_id, keyword=keyword)


class CatalogStore(_Store[CatalogRepository]):
    def find_category(self, category_id: int) -> Category:
        return self._reader.find_category(category_id)

    def list_categories(self) -> list[Category]:
        return self._reader.list_categories()

    def find_brand(self, brand_id: int) -> Brand:
        return self._reader.find_brand(brand_id)

    def list_brands(self) -> list[Brand]:
        return self._reader.list_brands()

    def find_condition(self, condition_id: int) -> Condition:
        return self._reader.find_condition(condition_id)

    def list_conditions(self) -> list[Condition]:
        return self._reader.list_conditions()

    def list_sizes(self) -> list[Size]:
        return self._reader.list_sizes()

    def find_shop_by_account(self, account_id: UUID) -> Shop:
        return self._reader.find_shop_by_account(account_id)

    def find_product(self, product_id: UUID) -> Product:
        return self._reader.find_product(product_id)

    def list_products_by_shop(self, shop_id: UUID, *, limit: int, offset: int) -> list[Product]:
        return self._reader.list_products_by_shop(shop_id, limit=limit, offset=offset)

    def count_products_by_shop(self, shop_id: UUID) -> int:
        return self._reader.count_products_by_shop(shop_id)


class ShopStore(_Store[ShopRepository]):
    def find_shop_by_account(self, account_id: UUID) -> Shop:
        return self._reader.find_shop_by_account(account_id)


__all__ = ["AccountStore", "CatalogStore", "ShopStore"]
