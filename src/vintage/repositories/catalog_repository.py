"""Catalog data: categories, brands, conditions, sizes and products."""

from __future__ import annotations

from typing import Any, Mapping, Sequence
from uuid import UUID

from ..domain.models import Brand, Category, Condition, Product, ProductImage, Shop, Size
from ..exceptions import handle_sqlalchemy_errors
from .base import SqlRepository, as_datetime, as_uuid
from .shop_repository import ShopRepository

_PRODUCT_UPDATABLE = (
    "name",
    "description",
    "price",
    "stock",
    "category_id",
    "brand_id",
    "condition_id",
    "size_id",
    "is_active",
)

# Usage counts guarding deletes; keyed by the referencing column on products.
_USAGE_QUERIES = {
    "category_id": "SELECT COUNT(*) AS total FROM products WHERE category_id = :id",
    "brand_id": "SELECT COUNT(*) AS total FROM products WHERE brand_id = :id",
    "condition_id": "SELECT COUNT(*) AS total FROM products WHERE condition_id = :id",
}


class CatalogRepository(SqlRepository):
    """Provide access to catalog reference data and seller products."""

    # categories

    def insert_category(self, name: str) -> Category:
        with handle_sqlalchemy_errors(entity="category"):
            return self._querier.query_one(
                "INSERT INTO product_categories (name) VALUES (:name) RETURNING *",
                {"name": name},
                row_factory=self._to_category,
            )

    def find_category(self, category_id: int) -> Category:
        with handle_sqlalchemy_errors(entity="category"):
            return self._querier.query_one(
                "SELECT * FROM product_categories WHERE id = :id",
                {"id": category_id},
                row_factory=self._to_category,
            )

    def list_categories(self) -> list[Category]:
        with handle_sqlalchemy_errors(entity="category"):
            return self._querier.query_many(
                "SELECT * FROM product_categories ORDER BY name", row_factory=self._to_category
            )

    def update_category(self, category_id: int, name: str) -> Category:
        with handle_sqlalchemy_errors(entity="category"):
            return self._querier.query_one(
                "UPDATE product_categories SET name = :name WHERE id = :id RETURNING *",
                {"id": category_id, "name": name},
                row_factory=self._to_category,
            )

    def delete_category(self, category_id: int) -> int:
        with handle_sqlalchemy_errors(entity="category"):
            return self._querier.execute("DELETE FROM product_categories WHERE id = :id", {"id": category_id})

    def count_products_using(self, column: str, value: int) -> int:
        """Number of products referencing ``value`` through ``column``."""

        with handle_sqlalchemy_errors(entity="product"):
            return self._count(_USAGE_QUERIES[column], {"id": value})

    # brands

    def insert_brand(self, *, name: str, description: str | None, logo_url: str | None) -> Brand:
        with handle_sqlalchemy_errors(entity="brand"):
            return self._querier.query_one(
                """
                INSERT INTO brands (name, description, logo_url)
                VALUES (:name, :description, :logo_url)
                RETURNING *
                """,
                {"name": name, "description": description, "logo_url": logo_url},
                row_factory=self._to_brand,
            )

    def find_brand(self, brand_id: int) -> Brand:
        with handle_sqlalchemy_errors(entity="brand"):
            return self._querier.query_one(
                "SELECT * FROM brands WHERE id = :id", {"id": brand_id}, row_factory=self._to_brand
            )

    def list_brands(self) -> list[Brand]:
        with handle_sqlalchemy_errors(entity="brand"):
            return self._querier.query_many("SELECT * FROM brands ORDER BY name", row_factory=self._to_brand)

    def update_brand(
        self, brand_id: int, *, name: str, description: str | None, logo_url: str | None
    ) -> Brand:
        with handle_sqlalchemy_errors(entity="brand"):
            return self._querier.query_one(
                """
                UPDATE brands
                SET name = :name, description = :description, logo_url = :logo_url,
                    updated_at = CURRENT_TIMESTAMP
                WHERE id = :id
                RETURNING *
                """,
                {"id": brand_id, "name": name, "description": description, "logo_url": logo_url},
                row_factory=self._to_brand,
            )

    def delete_brand(self, brand_id: int) -> int:
        with handle_sqlalchemy_errors(entity="brand"):
            return self._querier.execute("DELETE FROM brands WHERE id = :id", {"id": brand_id})

    # conditions

    def insert_condition(self, name: str, description: str | None) -> Condition:
        with handle_sqlalchemy_errors(entity="condition"):
            return self._querier.query_one(
                "INSERT INTO product_conditions (name, description) VALUES (:name, :description) RETURNING *",
                {"name": name, "description": description},
                row_factory=self._to_condition,
            )

    def find_condition(self, condition_id: int) -> Condition:
        with handle_sqlalchemy_errors(entity="condition"):
            return self._querier.query_one(
                "SELECT * FROM product_conditions WHERE id = :id",
                {"id": condition_id},
                row_factory=self._to_condition,
            )

    def list_conditions(self) -> list[Condition]:
        with handle_sqlalchemy_errors(entity="condition"):
            return self._querier.query_many(
                "SELECT * FROM product_conditions ORDER BY id", row_factory=self._to_condition
            )

    def update_condition(self, condition_id: int, name: str, description: str | None) -> Condition:
        with handle_sqlalchemy_errors(entity="condition"):
            return self._querier.query_one(
                "UPDATE product_conditions SET name = :name, description = :description "
                "WHERE id = :id RETURNING *",
                {"id": condition_id, "name": name, "description": description},
                row_factory=self._to_condition,
            )

    def delete_condition(self, condition_id: int) -> int:
        with handle_sqlalchemy_errors(entity="condition"):
            return self._querier.execute("DELETE FROM product_conditions WHERE id = :id", {"id": condition_id})

    # sizes

    def insert_size(self, value: str) -> Size:
        with handle_sqlalchemy_errors(entity="size"):
            return self._querier.query_one(
                "INSERT INTO product_sizes (value) VALUES (:value) RETURNING *",
                {"value": value},
                row_factory=lambda row: Size(id=int(row["id"]), value=row["value"]),
            )

    def list_sizes(self) -> list[Size]:
        with handle_sqlalchemy_errors(entity="size"):
            return self._querier.query_many(
                "SELECT * FROM product_sizes ORDER BY id",
                row_factory=lambda row: Size(id=int(row["id"]), value=row["value"]),
            )

    # products

    def find_shop_by_account(self, account_id: UUID) -> Shop:
        with handle_sqlalchemy_errors(entity="shop"):
            return self._querier.query_one(
                "SELECT * FROM shops WHERE account_id = :account_id",
                {"account_id": account_id},
                row_factory=ShopRepository._to_shop,
            )

    def insert_product(
        self,
        *,
        product_id: UUID,
        shop_id: UUID,
        name: str,
        description: str | None,
        price: int,
        stock: int,
        category_id: int,
        brand_id: int | None,
        condition_id: int | None,
        size_id: int | None,
        thumbnail_url: str | None,
    ) -> Product:
        with handle_sqlalchemy_errors(entity="product"):
            return self._querier.query_one(
                """
                INSERT INTO products
                    (id, shop_id, name, description, price, stock, category_id,
                     brand_id, condition_id, size_id, thumbnail_url)
                VALUES
                    (:id, :shop_id, :name, :description, :price, :stock, :category_id,
                     :brand_id, :condition_id, :size_id, :thumbnail_url)
                RETURNING *
                """,
                {
                    "id": product_id,
                    "shop_id": shop_id,
                    "name": name,
                    "description": description,
                    "price": price,
                    "stock": stock,
                    "category_id": category_id,
                    "brand_id": brand_id,
                    "condition_id": condition_id,
                    "size_id": size_id,
                    "thumbnail_url": thumbnail_url,
                },
                row_factory=self._to_product,
            )

    def insert_product_images(self, product_id: UUID, urls: Sequence[str]) -> int:
        """Store ``urls`` as the product gallery, numbered from 1."""

        with handle_sqlalchemy_errors(entity="product image"):
            statement = self._querier.prepare_named(
                "INSERT INTO product_images (product_id, url, position) VALUES (:product_id, :url, :position)"
            )
            return statement.execute_many(
                [
                    {"product_id": str(product_id), "url": url, "position": index}
                    for index, url in enumerate(urls, start=1)
                ]
            )

    def list_product_images(self, product_id: UUID) -> list[ProductImage]:
        with handle_sqlalchemy_errors(entity="product image"):
            return self._querier.query_many(
                "SELECT * FROM product_images WHERE product_id = :product_id ORDER BY position",
                {"product_id": product_id},
                row_factory=self._to_image,
            )

    def find_product(self, product_id: UUID) -> Product:
        with handle_sqlalchemy_errors(entity="product"):
            product = self._querier.query_one(
                "SELECT * FROM products WHERE id = :id", {"id": product_id}, row_factory=self._to_product
            )
        product.images = self.list_product_images(product_id)
        return product

    def update_product(self, product_id: UUID, changes: Mapping[str, Any]) -> Product:
        fields = {key: value for key, value in changes.items() if key in _PRODUCT_UPDATABLE}
        if not fields:
            return self.find_product(product_id)
        assignments = ", ".join(f"{column} = :{column}" for column in fields)
        with handle_sqlalchemy_errors(entity="product"):
            return self._querier.query_one(
                f"UPDATE products SET {assignments}, updated_at = CURRENT_TIMESTAMP "
                "WHERE id = :id RETURNING *",
                {**fields, "id": product_id},
                row_factory=self._to_product,
            )

    def list_products_by_shop(self, shop_id: UUID, *, limit: int, offset: int) -> list[Product]:
        with handle_sqlalchemy_errors(entity="product"):
            return self._querier.query_many(
                """
                SELECT * FROM products
                WHERE shop_id = :shop_id
                ORDER BY created_at DESC, id
                LIMIT :limit OFFSET :offset
                """,
                {"shop_id": shop_id, "limit": limit, "offset": offset},
                row_factory=self._to_product,
            )

    def count_products_by_shop(self, shop_id: UUID) -> int:
        with handle_sqlalchemy_errors(entity="product"):
            return self._count(
                "SELECT COUNT(*) AS total FROM products WHERE shop_id = :shop_id", {"shop_id": shop_id}
            )

    @staticmethod
    def _to_category(row: Mapping[str, Any]) -> Category:
        return Category(id=int(row["id"]), name=row["name"], created_at=as_datetime(row["created_at"]))

    @staticmethod
    def _to_brand(row: Mapping[str, Any]) -> Brand:
        return Brand(
            id=int(row["id"]),
            name=row["name"],
            description=row["description"],
            logo_url=row["logo_url"],
            created_at=as_datetime(row["created_at"]),
            updated_at=as_datetime(row["updated_at"]),
        )

    @staticmethod
    def _to_condition(row: Mapping[str, Any]) -> Condition:
        return Condition(id=int(row["id"]), name=row["name"], description=row["description"])

    @staticmethod
    def _to_image(row: Mapping[str, Any]) -> ProductImage:
        return ProductImage(
            id=int(row["id"]),
            product_id=as_uuid(row["product_id"]),
            url=row["url"],
            position=int(row["position"]),
        )

    @staticmethod
    def _to_product(row: Mapping[str, Any]) -> Product:
        return Product(
            id=as_uuid(row["id"]),
            shop_id=as_uuid(row["shop_id"]),
            name=row["name"],
            description=row["description"],
            price=int(row["price"]),
            stock=int(row["stock"]),
            category_id=int(row["category_id"]),
            brand_id=row["brand_id"],
            condition_id=row["condition_id"],
            size_id=row["size_id"],
            thumbnail_url=row["thumbnail_url"],
            is_active=bool(row["is_active"]),
            created_at=as_datetime(row["created_at"]),
            updated_at=as_datetime(row["updated_at"]),
        )
