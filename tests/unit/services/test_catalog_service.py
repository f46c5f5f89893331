from __future__ import annotations

from uuid import UUID, uuid4

import pytest

from src.vintage.exceptions import ConflictError, ForbiddenError, NotFoundError, ValidationError
from src.vintage.services import CatalogService
from src.vintage.services.catalog_service import NewProduct
from tests.conftest import row_count
from tests.mocks.blob_storage import RecordingBlobStorage, image

pytestmark = pytest.mark.unit


def test_duplicate_brand_name_conflicts_and_removes_uploaded_logo(
    catalog_service: CatalogService, storage: RecordingBlobStorage, engine
) -> None:
    catalog_service.create_brand("Levi's", logo=image("first.png"))

    with pytest.raises(ConflictError, match="brand name already exists"):
        catalog_service.create_brand("Levi's", logo=image("second.png"))

    assert len(storage.uploads) == 2
    assert storage.deletes == [storage.uploads[1]]
    assert row_count(engine, "brands") == 1


def test_brand_logo_replacement_deletes_old_logo_once(
    catalog_service: CatalogService, storage: RecordingBlobStorage
) -> None:
    brand = catalog_service.create_brand("Wrangler", logo=image("old.png"))
    old_logo = brand.logo_url

    updated = catalog_service.update_brand(brand.id, logo=image("new.png"))

    assert updated.logo_url != old_logo
    assert updated.logo_url == storage.uploads[-1]
    assert storage.deletes == [old_logo]
    assert catalog_service.get_brand(brand.id).name == "Wrangler"


def test_brand_update_without_logo_keeps_reference(
    catalog_service: CatalogService, storage: RecordingBlobStorage
) -> None:
    brand = catalog_service.create_brand("Lee", logo=image())

    updated = catalog_service.update_brand(brand.id, description="Denim since 1889")

    assert updated.logo_url == brand.logo_url
    assert updated.description == "Denim since 1889"
    assert storage.deletes == []


def test_failed_brand_rename_keeps_old_logo_and_removes_new(
    catalog_service: CatalogService, storage: RecordingBlobStorage
) -> None:
    catalog_service.create_brand("Levi's")
    brand = catalog_service.create_brand("Lee", logo=image("lee.png"))

    with pytest.raises(ConflictError):
        catalog_service.update_brand(brand.id, name="Levi's", logo=image("lee-new.png"))

    assert storage.deletes == [storage.uploads[-1]]
    assert catalog_service.get_brand(brand.id).logo_url == brand.logo_url


def test_delete_brand_removes_row_then_logo(
    catalog_service: CatalogService, storage: RecordingBlobStorage, engine
) -> None:
    brand = catalog_service.create_brand("Carhartt", logo=image())

    catalog_service.delete_brand(brand.id)

    assert row_count(engine, "brands") == 0
    assert storage.deletes == [brand.logo_url]
    with pytest.raises(NotFoundError):
        catalog_service.get_brand(brand.id)


def test_category_in_use_cannot_be_deleted(
    catalog_service: CatalogService, seller_id: UUID, engine
) -> None:
    category = catalog_service.create_category("Outerwear")
    catalog_service.create_product(
        seller_id, NewProduct(name="Wool coat", price=120_000, category_id=category.id), thumbnail=image()
    )

    with pytest.raises(ConflictError, match="still in use"):
        catalog_service.delete_category(category.id)

    assert row_count(engine, "product_categories") == 1


def test_unused_category_is_deleted(catalog_service: CatalogService) -> None:
    category = catalog_service.create_category("Hats")

    catalog_service.delete_category(category.id)

    assert catalog_service.list_categories() == []
    with pytest.raises(NotFoundError):
        catalog_service.delete_category(category.id)


def test_blank_names_are_rejected(catalog_service: CatalogService) -> None:
    with pytest.raises(ValidationError):
        catalog_service.create_category("   ")
    with pytest.raises(ValidationError):
        catalog_service.create_size("")


def test_reference_data_round_trip(catalog_service: CatalogService) -> None:
    condition = catalog_service.create_condition("Like new", "Worn once")
    catalog_service.create_size("M")
    catalog_service.create_size("L")

    updated = catalog_service.update_condition(condition.id, "Excellent", None)

    assert updated.name == "Excellent"
    assert [size.value for size in catalog_service.list_sizes()] == ["M", "L"]
    with pytest.raises(ConflictError):
        catalog_service.create_size("M")


def test_create_product_stores_thumbnail_and_gallery(
    catalog_service: CatalogService, seller_id: UUID, storage: RecordingBlobStorage
) -> None:
    category = catalog_service.create_category("Shirts")

    product = catalog_service.create_product(
        seller_id,
        NewProduct(name="Flannel", price=45_000, category_id=category.id, stock=2),
        thumbnail=image("thumb.png"),
        images=[image("front.png"), image("back.png")],
    )

    assert product.thumbnail_url == storage.uploads[0]
    assert [img.url for img in product.images] == storage.uploads[1:]
    assert [img.position for img in product.images] == [1, 2]
    assert catalog_service.get_product(product.id).images == product.images
    assert storage.deletes == []


def test_failed_product_insert_deletes_every_upload(
    catalog_service: CatalogService, seller_id: UUID, storage: RecordingBlobStorage, engine
) -> None:
    with pytest.raises(ConflictError):
        catalog_service.create_product(
            seller_id,
            NewProduct(name="Ghost", price=10_000, category_id=999),
            thumbnail=image("thumb.png"),
            images=[image("one.png")],
        )

    assert len(storage.uploads) == 2
    assert sorted(storage.deletes) == sorted(storage.uploads)
    assert row_count(engine, "products") == 0
    assert row_count(engine, "product_images") == 0


def test_create_product_requires_a_shop(
    catalog_service: CatalogService, customer_id: UUID, storage: RecordingBlobStorage
) -> None:
    category = catalog_service.create_category("Shirts")

    with pytest.raises(NotFoundError, match="shop not found"):
        catalog_service.create_product(
            customer_id, NewProduct(name="Tee", price=1_000, category_id=category.id), thumbnail=image()
        )

    assert storage.uploads == []


def test_update_product_of_another_shop_is_forbidden(
    catalog_service: CatalogService, shop_service, account_service, seller_id: UUID
) -> None:
    category = catalog_service.create_category("Shoes")
    product = catalog_service.create_product(
        seller_id, NewProduct(name="Boots", price=80_000, category_id=category.id), thumbnail=image()
    )
    other = account_service.register_customer(
        username="budi", email="budi@example.com", password="another-pass"
    )
    shop_service.create_shop(other.id, name="Budi Thrift")

    with pytest.raises(ForbiddenError, match="does not belong"):
        catalog_service.update_product(other.id, product.id, {"price": 1})

    updated = catalog_service.update_product(seller_id, product.id, {"price": 75_000, "name": None})
    assert updated.price == 75_000
    assert updated.name == "Boots"


def test_update_product_rejects_unknown_fields(catalog_service: CatalogService, seller_id: UUID) -> None:
    with pytest.raises(ValidationError, match="shop_id"):
        catalog_service.update_product(seller_id, uuid4(), {"shop_id": uuid4()})


def test_seller_products_are_paginated(catalog_service: CatalogService, seller_id: UUID) -> None:
    category = catalog_service.create_category("Bags")
    for index in range(5):
        catalog_service.create_product(
            seller_id,
            NewProduct(name=f"Bag {index}", price=10_000 + index, category_id=category.id),
            thumbnail=image(),
        )

    page = catalog_service.list_products_by_seller(seller_id, page=3, limit=2)

    assert page.total == 5
    assert page.total_pages == 3
    assert len(page.items) == 1
    with pytest.raises(ValidationError):
        catalog_service.list_products_by_seller(seller_id, page=1, limit=101)
