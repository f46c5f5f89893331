"""Accounts, roles and addresses."""

from __future__ import annotations

from typing import Any, Mapping
from uuid import UUID

from ..domain.models import Account, Address, Role, WishlistItem
from ..exceptions import handle_sqlalchemy_errors
from .base import SqlRepository, as_datetime, as_uuid

_ACCOUNT_UPDATABLE = ("full_name", "phone", "email")
_ADDRESS_UPDATABLE = ("label", "recipient_name", "phone", "street", "city", "postal_code")


class AccountRepository(SqlRepository):
    """Provide access to accounts, their roles and their addresses."""

    # accounts

    def find_account_by_id(self, account_id: UUID) -> Account:
        with handle_sqlalchemy_errors(entity="account"):
            return self._querier.query_one(
                "SELECT * FROM accounts WHERE id = :id",
                {"id": account_id},
                row_factory=self._to_account,
            )

    def find_account_by_username(self, username: str) -> Account | None:
        with handle_sqlalchemy_errors(entity="account"):
            return self._query_optional(
                "SELECT * FROM accounts WHERE username = :username",
                {"username": username},
                row_factory=self._to_account,
            )

    def find_account_by_email(self, email: str) -> Account | None:
        with handle_sqlalchemy_errors(entity="account"):
            return self._query_optional(
                "SELECT * FROM accounts WHERE LOWER(email) = LOWER(:email)",
                {"email": email},
                row_factory=self._to_account,
            )

    def username_exists(self, username: str) -> bool:
        with handle_sqlalchemy_errors(entity="account"):
            return self._exists("SELECT 1 FROM accounts WHERE username = :username", {"username": username})

    def email_exists(self, email: str) -> bool:
        with handle_sqlalchemy_errors(entity="account"):
            return self._exists(
                "SELECT 1 FROM accounts WHERE LOWER(email) = LOWER(:email)", {"email": email}
            )

    def insert_account(
        self,
        *,
        account_id: UUID,
        username: str,
        email: str,
        password_hash: str,
        full_name: str | None = None,
        phone: str | None = None,
    ) -> Account:
        with handle_sqlalchemy_errors(entity="account"):
            return self._querier.query_one(
                """
                INSERT INTO accounts (id, username, email, password_hash, full_name, phone)
                VALUES (:id, :username, :email, :password_hash, :full_name, :phone)
                RETURNING *
                """,
                {
                    "id": account_id,
                    "username": username,
                    "email": email,
                    "password_hash": password_hash,
                    "full_name": full_name,
                    "phone": phone,
                },
                row_factory=self._to_account,
            )

    def update_account(self, account_id: UUID, changes: Mapping[str, Any]) -> Account:
        """Apply a partial update; only profile columns are accepted."""

        fields = {key: value for key, value in changes.items() if key in _ACCOUNT_UPDATABLE}
        if not fields:
            return self.find_account_by_id(account_id)
        assignments = ", ".join(f"{column} = :{column}" for column in fields)
        with handle_sqlalchemy_errors(entity="account"):
            return self._querier.query_one(
                f"UPDATE accounts SET {assignments}, updated_at = CURRENT_TIMESTAMP "
                "WHERE id = :id RETURNING *",
                {**fields, "id": account_id},
                row_factory=self._to_account,
            )

    def update_avatar(self, account_id: UUID, avatar_url: str) -> Account:
        with handle_sqlalchemy_errors(entity="account"):
            return self._querier.query_one(
                "UPDATE accounts SET avatar_url = :avatar_url, updated_at = CURRENT_TIMESTAMP "
                "WHERE id = :id RETURNING *",
                {"id": account_id, "avatar_url": avatar_url},
                row_factory=self._to_account,
            )

    # roles

    def get_role_id(self, role: Role) -> int:
        with handle_sqlalchemy_errors(entity="role"):
            row = self._querier.query_one("SELECT id FROM roles WHERE name = :name", {"name": role.value})
        return int(row["id"])

    def insert_account_role(self, account_id: UUID, role_id: int) -> None:
        with handle_sqlalchemy_errors(entity="account role"):
            self._querier.execute(
                "INSERT INTO account_roles (account_id, role_id) VALUES (:account_id, :role_id)",
                {"account_id": account_id, "role_id": role_id},
            )

    def list_roles(self, account_id: UUID) -> list[Role]:
        with handle_sqlalchemy_errors(entity="account role"):
            rows = self._querier.query_many(
                """
                SELECT r.name FROM roles r
                JOIN account_roles ar ON ar.role_id = r.id
                WHERE ar.account_id = :account_id
                ORDER BY r.name
                """,
                {"account_id": account_id},
            )
        return [Role(row["name"]) for row in rows]

    # addresses

    def insert_address(
        self,
        *,
        address_id: UUID,
        account_id: UUID,
        label: str,
        recipient_name: str,
        phone: str,
        street: str,
        city: str,
        postal_code: str,
        is_primary: bool,
    ) -> Address:
        with handle_sqlalchemy_errors(entity="address"):
            return self._querier.query_one(
                """
                INSERT INTO addresses
                    (id, account_id, label, recipient_name, phone, street, city, postal_code, is_primary)
                VALUES
                    (:id, :account_id, :label, :recipient_name, :phone, :street, :city, :postal_code, :is_primary)
                RETURNING *
                """,
                {
                    "id": address_id,
                    "account_id": account_id,
                    "label": label,
                    "recipient_name": recipient_name,
                    "phone": phone,
                    "street": street,
                    "city": city,
                    "postal_code": postal_code,
                    "is_primary": is_primary,
                },
                row_factory=self._to_address,
            )

    def find_address(self, account_id: UUID, address_id: UUID) -> Address:
        with handle_sqlalchemy_errors(entity="address"):
            return self._querier.query_one(
                "SELECT * FROM addresses WHERE id = :id AND account_id = :account_id",
                {"id": address_id, "account_id": account_id},
                row_factory=self._to_address,
            )

    def list_addresses(self, account_id: UUID) -> list[Address]:
        with handle_sqlalchemy_errors(entity="address"):
            return self._querier.query_many(
                """
                SELECT * FROM addresses
                WHERE account_id = :account_id
                ORDER BY is_primary DESC, updated_at DESC, created_at DESC
                """,
                {"account_id": account_id},
                row_factory=self._to_address,
            )

    def count_addresses(self, account_id: UUID) -> int:
        with handle_sqlalchemy_errors(entity="address"):
            return self._count(
                "SELECT COUNT(*) AS total FROM addresses WHERE account_id = :account_id",
                {"account_id": account_id},
            )

    def find_primary_address(self, account_id: UUID) -> Address | None:
        with handle_sqlalchemy_errors(entity="address"):
            return self._query_optional(
                "SELECT * FROM addresses WHERE account_id = :account_id AND is_primary = :flag",
                {"account_id": account_id, "flag": True},
                row_factory=self._to_address,
            )

    def update_address(self, account_id: UUID, address_id: UUID, changes: Mapping[str, Any]) -> Address:
        fields = {key: value for key, value in changes.items() if key in _ADDRESS_UPDATABLE}
        if not fields:
            return self.find_address(account_id, address_id)
        assignments = ", ".join(f"{column} = :{column}" for column in fields)
        with handle_sqlalchemy_errors(entity="address"):
            return self._querier.query_one(
                f"UPDATE addresses SET {assignments}, updated_at = CURRENT_TIMESTAMP "
                "WHERE id = :id AND account_id = :account_id RETURNING *",
                {**fields, "id": address_id, "account_id": account_id},
                row_factory=self._to_address,
            )

    def set_address_primary(self, address_id: UUID, is_primary: bool) -> int:
        with handle_sqlalchemy_errors(entity="address"):
            return self._querier.execute(
                "UPDATE addresses SET is_primary = :flag, updated_at = CURRENT_TIMESTAMP WHERE id = :id",
                {"id": address_id, "flag": is_primary},
            )

    def delete_address(self, account_id: UUID, address_id: UUID) -> int:
        with handle_sqlalchemy_errors(entity="address"):
            return self._querier.execute(
                "DELETE FROM addresses WHERE id = :id AND account_id = :account_id",
                {"id": address_id, "account_id": account_id},
            )

    # wishlist

    def wishlist_item_exists(self, account_id: UUID, product_id: UUID) -> bool:
        with handle_sqlalchemy_errors(entity="wishlist item"):
            return self._exists(
                "SELECT 1 FROM wishlist WHERE account_id = :account_id AND product_id = :product_id",
                {"account_id": account_id, "product_id": product_id},
            )

    def insert_wishlist_item(self, account_id: UUID, product_id: UUID) -> None:
        with handle_sqlalchemy_errors(entity="wishlist item"):
            self._querier.execute(
                "INSERT INTO wishlist (account_id, product_id) VALUES (:account_id, :product_id)",
                {"account_id": account_id, "product_id": product_id},
            )

    def list_wishlist(
        self, account_id: UUID, *, keyword: str | None, limit: int, offset: int
    ) -> list[WishlistItem]:
        """Newest first, joined with the product name, price and thumbnail."""

        where, params = _wishlist_filter(account_id, keyword)
        with handle_sqlalchemy_errors(entity="wishlist item"):
            return self._querier.query_many(
                f"""
                SELECT w.product_id, p.name AS product_name, p.price AS product_price,
                       p.thumbnail_url AS product_image_url, w.created_at AS added_at
                FROM wishlist w
                JOIN products p ON p.id = w.product_id
                WHERE {where}
                ORDER BY w.created_at DESC, w.id DESC
                LIMIT :limit OFFSET :offset
                """,
                {**params, "limit": limit, "offset": offset},
                row_factory=self._to_wishlist_item,
            )

    def count_wishlist(self, account_id: UUID, *, keyword: str | None) -> int:
        where, params = _wishlist_filter(account_id, keyword)
        with handle_sqlalchemy_errors(entity="wishlist item"):
            return self._count(
                f"SELECT COUNT(*) AS total FROM wishlist w JOIN products p ON p.id = w.product_id WHERE {where}",
                params,
            )

    def delete_wishlist_item(self, account_id: UUID, product_id: UUID) -> int:
        with handle_sqlalchemy_errors(entity="wishlist item"):
            return self._querier.execute(
                "DELETE FROM wishlist WHERE account_id = :account_id AND product_id = :product_id",
                {"account_id": account_id, "product_id": product_id},
            )

    @staticmethod
    def _to_account(row: Mapping[str, Any]) -> Account:
        return Account(
            id=as_uuid(row["id"]),
            username=row["username"],
            email=row["email"],
            password_hash=row["password_hash"],
            full_name=row["full_name"],
            phone=row["phone"],
            avatar_url=row["avatar_url"],
            is_active=bool(row["is_active"]),
            created_at=as_datetime(row["created_at"]),
            updated_at=as_datetime(row["updated_at"]),
        )

    @staticmethod
    def _to_address(row: Mapping[str, Any]) -> Address:
        return Address(
            id=as_uuid(row["id"]),
            account_id=as_uuid(row["account_id"]),
            label=row["label"],
            recipient_name=row["recipient_name"],
            phone=row["phone"],
            street=row["street"],
            city=row["city"],
            postal_code=row["postal_code"],
            is_primary=bool(row["is_primary"]),
            created_at=as_datetime(row["created_at"]),
            updated_at=as_datetime(row["updated_at"]),
        )

    @staticmethod
    def _to_wishlist_item(row: Mapping[str, Any]) -> WishlistItem:
        return WishlistItem(
            product_id=as_uuid(row["product_id"]),
            product_name=row["product_name"],
            product_price=int(row["product_price"]),
            product_image_url=row["product_image_url"],
            added_at=as_datetime(row["added_at"]),
        )


def _wishlist_filter(account_id: UUID, keyword: str | None) -> tuple[str, dict[str, Any]]:
    params: dict[str, Any] = {"account_id": account_id}
    where = "w.account_id = :account_id"
    if keyword:
        where += " AND LOWER(p.name) LIKE :pattern"
        params["pattern"] = f"%{keyword.lower()}%"
    return where, params
