"""SQL repositories bound to a querier."""

from .account_repository import AccountRepository
from .base import SqlRepository
from .catalog_repository import CatalogRepository
from .shop_repository import ShopRepository

__all__ = ["AccountRepository", "CatalogRepository", "ShopRepository", "SqlRepository"]
