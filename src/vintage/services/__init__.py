"""Application services."""

from .account_service import AccountService, NewAddress
from .catalog_service import CatalogService, NewProduct
from .shop_service import ShopService
from .uploads import CompensatingUploader, UploadedFile

__all__ = [
    "AccountService",
    "CatalogService",
    "CompensatingUploader",
    "NewAddress",
    "NewProduct",
    "ShopService",
    "UploadedFile",
]
