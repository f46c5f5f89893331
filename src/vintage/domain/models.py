"""Domain dataclasses shared by repositories and services."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Generic, Sequence, TypeVar
from uuid import UUID

T = TypeVar("T")


class Role(str, Enum):
    CUSTOMER = "customer"
    SELLER = "seller"
    ADMIN = "admin"


@dataclass(slots=True)
class Account:
    id: UUID
    username: str
    email: str
    password_hash: str
    full_name: str | None = None
    phone: str | None = None
    avatar_url: str | None = None
    is_active: bool = True
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass(slots=True)
class Principal:
    """Authenticated account identity handed to token issuance."""

    account_id: UUID
    username: str
    role: Role


@dataclass(slots=True)
class Address:
    id: UUID
    account_id: UUID
    label: str
    recipient_name: str
    phone: str
    street: str
    city: str
    postal_code: str
    is_primary: bool = False
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass(slots=True)
class Shop:
    id: UUID
    account_id: UUID
    name: str
    description: str | None = None
    logo_url: str | None = None
    created_at: datetime | None = None


@dataclass(slots=True)
class Category:
    id: int
    name: str
    created_at: datetime | None = None


@dataclass(slots=True)
class Brand:
    id: int
    name: str
    description: str | None = None
    logo_url: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass(slots=True)
class Condition:
    id: int
    name: str
    description: str | None = None


@dataclass(slots=True)
class Size:
    id: int
    value: str


@dataclass(slots=True)
class ProductImage:
    id: int
    product_id: UUID
    url: str
    position: int


@dataclass(slots=True)
class Product:
    id: UUID
    shop_id: UUID
    name: str
    description: str | None
    price: int
    stock: int
    category_id: int
    brand_id: int | None = None
    condition_id: int | None = None
    size_id: int | None = None
    thumbnail_url: str | None = None
    is_active: bool = True
    created_at: datetime | None = None
    updated_at: datetime | None = None
    images: list[ProductImage] = field(default_factory=list)


@dataclass(slots=True)
class WishlistItem:
    """A wishlisted product with the details shown in listings."""

    product_id: UUID
    product_name: str
    product_price: int
    product_image_url: str | None = None
    added_at: datetime | None = None


@dataclass(slots=True)
class Page(Generic[T]):
    """One page of a listing together with paging metadata."""

    items: Sequence[T]
    page: int
    limit: int
    total: int

    @property
    def total_pages(self) -> int:
        if self.limit <= 0:
            return 0
        return math.ceil(self.total / self.limit)
