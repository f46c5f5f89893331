"""Seller onboarding: opening a shop grants the seller role."""

from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID, uuid4

import structlog

from ..domain.models import Role, Shop
from ..exceptions import ValidationError
from ..logging import operation_context
from ..repositories import ShopRepository
from ..stores import ShopStore
from .uploads import CompensatingUploader, UploadedFile

logger = structlog.get_logger(__name__)

SHOP_LOGO_FOLDER = "shops"


@dataclass(slots=True)
class ShopService:
    store: ShopStore
    uploader: CompensatingUploader

    def create_shop(
        self,
        account_id: UUID,
        *,
        name: str,
        description: str | None = None,
        logo: UploadedFile | None = None,
    ) -> Shop:
        name = name.strip()
        if not name:
            raise ValidationError("shop name must not be empty")

        def persist(references: list[str]) -> Shop:
            def _create(repo: ShopRepository) -> Shop:
                shop = repo.insert_shop(
                    shop_id=uuid4(),
                    account_id=account_id,
                    name=name,
                    description=description,
                    logo_url=references[0] if references else None,
                )
                repo.grant_role(account_id, repo.get_role_id(Role.SELLER))
                return shop

            return self.store.execute_in_transaction(_create)

        with operation_context("create_shop", account_id=str(account_id)):
            shop = self.uploader.create_with_upload([logo] if logo else [], SHOP_LOGO_FOLDER, persist)
            logger.info("shop.created", shop_id=str(shop.id))
        return shop

    def get_shop_by_account(self, account_id: UUID) -> Shop:
        return self.store.find_shop_by_account(account_id)

    def update_logo(self, account_id: UUID, logo: UploadedFile) -> Shop:
        shop = self.store.find_shop_by_account(account_id)

        def persist(logo_url: str | None) -> Shop:
            if logo_url is None:
                return shop
            return self.store.execute_in_transaction(lambda repo: repo.update_logo(shop.id, logo_url))

        return self.uploader.update_with_replacement(
            old_reference=shop.logo_url,
            new_file=logo,
            destination_hint=SHOP_LOGO_FOLDER,
            persist=persist,
        )


__all__ = ["ShopService"]
