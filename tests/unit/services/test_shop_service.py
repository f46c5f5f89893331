from __future__ import annotations

from uuid import UUID

import pytest

from src.vintage.domain.models import Role
from src.vintage.exceptions import ConflictError, NotFoundError, ValidationError
from src.vintage.services import AccountService, ShopService
from tests.conftest import row_count
from tests.mocks.blob_storage import RecordingBlobStorage, image

pytestmark = pytest.mark.unit


def test_create_shop_grants_seller_role(
    shop_service: ShopService, account_service: AccountService, customer_id: UUID, storage: RecordingBlobStorage
) -> None:
    shop = shop_service.create_shop(customer_id, name="Rina Vintage", logo=image("shop.png"))

    assert shop.logo_url == storage.uploads[0]
    assert shop_service.get_shop_by_account(customer_id).id == shop.id
    assert set(account_service.store.list_roles(customer_id)) == {Role.CUSTOMER, Role.SELLER}
    assert account_service.authenticate("rina", "correct-horse", Role.SELLER).role is Role.SELLER


def test_second_shop_conflicts_and_removes_uploaded_logo(
    shop_service: ShopService, seller_id: UUID, storage: RecordingBlobStorage, engine
) -> None:
    with pytest.raises(ConflictError, match="account already owns a shop"):
        shop_service.create_shop(seller_id, name="Another Shop", logo=image("second.png"))

    assert storage.deletes == storage.uploads
    assert len(storage.uploads) == 1
    assert row_count(engine, "shops") == 1


def test_shop_for_missing_account_conflicts_without_role_grant(
    shop_service: ShopService, engine
) -> None:
    with pytest.raises(ConflictError):
        shop_service.create_shop(UUID(int=7), name="Nobody's Shop")

    assert row_count(engine, "shops") == 0
    assert row_count(engine, "account_roles") == 0


def test_update_logo_replaces_previous_logo(
    shop_service: ShopService, customer_id: UUID, storage: RecordingBlobStorage
) -> None:
    shop_service.create_shop(customer_id, name="Rina Vintage", logo=image("old.png"))

    updated = shop_service.update_logo(customer_id, image("new.png"))

    assert updated.logo_url == storage.uploads[1]
    assert storage.deletes == [storage.uploads[0]]


def test_shop_requires_name_and_existing_shop(shop_service: ShopService, customer_id: UUID) -> None:
    with pytest.raises(ValidationError):
        shop_service.create_shop(customer_id, name="  ")
    with pytest.raises(NotFoundError):
        shop_service.get_shop_by_account(customer_id)
