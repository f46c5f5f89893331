"""Catalog management: reference data, brands with logos and seller products."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping, Sequence
from uuid import UUID, uuid4

import structlog

from ..domain.models import Brand, Category, Condition, Page, Product, Shop, Size
from ..exceptions import ConflictError, ForbiddenError, NotFoundError, ValidationError
from ..logging import operation_context
from ..repositories import CatalogRepository
from ..stores import CatalogStore
from .uploads import CompensatingUploader, UploadedFile

logger = structlog.get_logger(__name__)

BRAND_LOGO_FOLDER = "brands"
PRODUCT_MEDIA_FOLDER = "products"
MAX_PAGE_SIZE = 100

_PRODUCT_CHANGES = frozenset(
    {"name", "description", "price", "stock", "category_id", "brand_id", "condition_id", "size_id", "is_active"}
)


def _require_name(value: str | None, entity: str) -> str:
    name = (value or "").strip()
    if not name:
        raise ValidationError(f"{entity} name must not be empty")
    return name


@dataclass(slots=True)
class NewProduct:
    name: str
    price: int
    category_id: int
    stock: int = 1
    description: str | None = None
    brand_id: int | None = None
    condition_id: int | None = None
    size_id: int | None = None


@dataclass(slots=True)
class CatalogService:
    store: CatalogStore
    uploader: CompensatingUploader

    # categories

    def create_category(self, name: str) -> Category:
        name = _require_name(name, "category")
        return self.store.execute_in_transaction(lambda repo: repo.insert_category(name))

    def list_categories(self) -> list[Category]:
        return self.store.list_categories()

    def get_category(self, category_id: int) -> Category:
        return self.store.find_category(category_id)

    def update_category(self, category_id: int, name: str) -> Category:
        name = _require_name(name, "category")

        def _update(repo: CatalogRepository) -> Category:
            repo.find_category(category_id)
            return repo.update_category(category_id, name)

        return self.store.execute_in_transaction(_update)

    def delete_category(self, category_id: int) -> None:
        def _delete(repo: CatalogRepository) -> None:
            repo.find_category(category_id)
            if repo.count_products_using("category_id", category_id) > 0:
                raise ConflictError("cannot delete category that is still in use by products")
            repo.delete_category(category_id)

        self.store.execute_in_transaction(_delete)
        logger.info("catalog.category.deleted", category_id=category_id)

    # brands

    def list_brands(self) -> list[Brand]:
        return self.store.list_brands()

    def get_brand(self, brand_id: int) -> Brand:
        return self.store.find_brand(brand_id)

    def create_brand(
        self, name: str, *, description: str | None = None, logo: UploadedFile | None = None
    ) -> Brand:
        name = _require_name(name, "brand")

        def persist(references: list[str]) -> Brand:
            logo_url = references[0] if references else None
            return self.store.execute_in_transaction(
                lambda repo: repo.insert_brand(name=name, description=description, logo_url=logo_url)
            )

        with operation_context("create_brand", brand_name=name):
            brand = self.uploader.create_with_upload([logo] if logo else [], BRAND_LOGO_FOLDER, persist)
            logger.info("catalog.brand.created", brand_id=brand.id)
        return brand

    def update_brand(
        self,
        brand_id: int,
        *,
        name: str | None = None,
        description: str | None = None,
        logo: UploadedFile | None = None,
    ) -> Brand:
        current = self.store.find_brand(brand_id)
        new_name = _require_name(name, "brand") if name is not None else current.name
        new_description = description if description is not None else current.description

        def persist(new_logo: str | None) -> Brand:
            return self.store.execute_in_transaction(
                lambda repo: repo.update_brand(
                    brand_id,
                    name=new_name,
                    description=new_description,
                    logo_url=new_logo or current.logo_url,
                )
            )

        with operation_context("update_brand", brand_id=brand_id):
            return self.uploader.update_with_replacement(
                old_reference=current.logo_url,
                new_file=logo,
                destination_hint=BRAND_LOGO_FOLDER,
                persist=persist,
            )

    def delete_brand(self, brand_id: int) -> None:
        brand = self.store.find_brand(brand_id)

        def _delete(repo: CatalogRepository) -> None:
            if repo.count_products_using("brand_id", brand_id) > 0:
                raise ConflictError("cannot delete brand that is still in use by products")
            if repo.delete_brand(brand_id) == 0:
                raise NotFoundError(f"brand '{brand_id}' not found")

        with operation_context("delete_brand", brand_id=brand_id):
            self.uploader.delete_with_cleanup(
                reference=brand.logo_url,
                persist=lambda: self.store.execute_in_transaction(_delete),
            )

    # conditions

    def create_condition(self, name: str, description: str | None = None) -> Condition:
        name = _require_name(name, "condition")
        return self.store.execute_in_transaction(lambda repo: repo.insert_condition(name, description))

    def list_conditions(self) -> list[Condition]:
        return self.store.list_conditions()

    def get_condition(self, condition_id: int) -> Condition:
        return self.store.find_condition(condition_id)

    def update_condition(self, condition_id: int, name: str, description: str | None = None) -> Condition:
        name = _require_name(name, "condition")

        def _update(repo: CatalogRepository) -> Condition:
            repo.find_condition(condition_id)
            return repo.update_condition(condition_id, name, description)

        return self.store.execute_in_transaction(_update)

    def delete_condition(self, condition_id: int) -> None:
        def _delete(repo: CatalogRepository) -> None:
            repo.find_condition(condition_id)
            if repo.count_products_using("condition_id", condition_id) > 0:
                raise ConflictError("cannot delete condition that is still in use by products")
            repo.delete_condition(condition_id)

        self.store.execute_in_transaction(_delete)

    # sizes

    def create_size(self, value: str) -> Size:
        value = _require_name(value, "size")
        return self.store.execute_in_transaction(lambda repo: repo.insert_size(value))

    def list_sizes(self) -> list[Size]:
        return self.store.list_sizes()

    # products

    def _shop_for(self, account_id: UUID) -> Shop:
        try:
            return self.store.find_shop_by_account(account_id)
        except NotFoundError as exc:
            raise NotFoundError("shop not found") from exc

    def create_product(
        self,
        account_id: UUID,
        request: NewProduct,
        *,
        thumbnail: UploadedFile,
        images: Sequence[UploadedFile] = (),
    ) -> Product:
        """Upload the thumbnail and gallery, then insert the product with its images."""

        name = _require_name(request.name, "product")
        if request.price <= 0:
            raise ValidationError("price must be positive")
        if request.stock < 0:
            raise ValidationError("stock must not be negative")
        shop = self._shop_for(account_id)

        def persist(references: list[str]) -> Product:
            thumbnail_url, gallery = references[0], references[1:]

            def _insert(repo: CatalogRepository) -> Product:
                product = repo.insert_product(
                    product_id=uuid4(),
                    shop_id=shop.id,
                    name=name,
                    description=request.description,
                    price=request.price,
                    stock=request.stock,
                    category_id=request.category_id,
                    brand_id=request.brand_id,
                    condition_id=request.condition_id,
                    size_id=request.size_id,
                    thumbnail_url=thumbnail_url,
                )
                repo.insert_product_images(product.id, gallery)
                product.images = repo.list_product_images(product.id)
                return product

            return self.store.execute_in_transaction(_insert)

        with operation_context("create_product", shop_id=str(shop.id)):
            product = self.uploader.create_with_upload([thumbnail, *images], PRODUCT_MEDIA_FOLDER, persist)
            logger.info("catalog.product.created", product_id=str(product.id), images=len(product.images))
        return product

    def get_product(self, product_id: UUID) -> Product:
        return self.store.find_product(product_id)

    def update_product(self, account_id: UUID, product_id: UUID, changes: Mapping[str, Any]) -> Product:
        """Apply a partial update; ``None`` values leave a field untouched."""

        unknown = set(changes) - _PRODUCT_CHANGES
        if unknown:
            raise ValidationError(f"unsupported product fields: {', '.join(sorted(unknown))}")
        fields = {key: value for key, value in changes.items() if value is not None}
        if "name" in fields:
            fields["name"] = _require_name(fields["name"], "product")
        if "price" in fields and fields["price"] <= 0:
            raise ValidationError("price must be positive")
        shop = self._shop_for(account_id)

        def _update(repo: CatalogRepository) -> Product:
            product = repo.find_product(product_id)
            if product.shop_id != shop.id:
                raise ForbiddenError("product does not belong to your shop")
            updated = repo.update_product(product_id, fields)
            updated.images = repo.list_product_images(product_id)
            return updated

        return self.store.execute_in_transaction(_update)

    def list_products_by_seller(self, account_id: UUID, *, page: int = 1, limit: int = 10) -> Page[Product]:
        if page < 1:
            raise ValidationError("page must be at least 1")
        if not 1 <= limit <= MAX_PAGE_SIZE:
            raise ValidationError(f"limit must be between 1 and {MAX_PAGE_SIZE}")
        shop = self._shop_for(account_id)
        total = self.store.count_products_by_shop(shop.id)
        items = self.store.list_products_by_shop(shop.id, limit=limit, offset=(page - 1) * limit)
        return Page(items=items, page=page, limit=limit, total=total)


__all__ = ["CatalogService", "NewProduct"]
