"""Seller shops."""

from __future__ import annotations

from typing import Any, Mapping
from uuid import UUID

from ..domain.models import Role, Shop
from ..exceptions import handle_sqlalchemy_errors
from .base import SqlRepository, as_datetime, as_uuid


class ShopRepository(SqlRepository):
    def insert_shop(
        self,
        *,
        shop_id: UUID,
        account_id: UUID,
        name: str,
        description: str | None,
        logo_url: str | None,
    ) -> Shop:
        with handle_sqlalchemy_errors(entity="shop"):
            return self._querier.query_one(
                """
                INSERT INTO shops (id, account_id, name, description, logo_url)
                VALUES (:id, :account_id, :name, :description, :logo_url)
                RETURNING *
                """,
                {
                    "id": shop_id,
                    "account_id": account_id,
                    "name": name,
                    "description": description,
                    "logo_url": logo_url,
                },
                row_factory=self._to_shop,
            )

    def find_shop_by_account(self, account_id: UUID) -> Shop:
        with handle_sqlalchemy_errors(entity="shop"):
            return self._querier.query_one(
                "SELECT * FROM shops WHERE account_id = :account_id",
                {"account_id": account_id},
                row_factory=self._to_shop,
            )

    def update_logo(self, shop_id: UUID, logo_url: str) -> Shop:
        with handle_sqlalchemy_errors(entity="shop"):
            return self._querier.query_one(
                "UPDATE shops SET logo_url = :logo_url WHERE id = :id RETURNING *",
                {"id": shop_id, "logo_url": logo_url},
                row_factory=self._to_shop,
            )

    def get_role_id(self, role: Role) -> int:
        with handle_sqlalchemy_errors(entity="role"):
            row = self._querier.query_one("SELECT id FROM roles WHERE name = :name", {"name": role.value})
        return int(row["id"])

    def grant_role(self, account_id: UUID, role_id: int) -> None:
        """Attach ``role_id`` to the account unless it already holds it."""

        with handle_sqlalchemy_errors(entity="account role"):
            held = self._exists(
                "SELECT 1 FROM account_roles WHERE account_id = :account_id AND role_id = :role_id",
                {"account_id": account_id, "role_id": role_id},
            )
            if not held:
                self._querier.execute(
                    "INSERT INTO account_roles (account_id, role_id) VALUES (:account_id, :role_id)",
                    {"account_id": account_id, "role_id": role_id},
                )

    @staticmethod
    def _to_shop(row: Mapping[str, Any]) -> Shop:
        return Shop(
            id=as_uuid(row["id"]),
            account_id=as_uuid(row["account_id"]),
            name=row["name"],
            description=row["description"],
            logo_url=row["logo_url"],
            created_at=as_datetime(row["created_at"]),
        )
