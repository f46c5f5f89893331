"""Customer accounts: registration, credentials, profile, avatar, addresses and wishlist."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Mapping
from uuid import UUID, uuid4

import structlog

from ..domain.models import Account, Address, Page, Principal, Role, WishlistItem
from ..exceptions import ConflictError, NotFoundError, UnauthorizedError, ValidationError
from ..logging import operation_context
from ..repositories import AccountRepository
from ..security.passwords import PasswordHasher
from ..stores import AccountStore
from .catalog_service import MAX_PAGE_SIZE
from .uploads import CompensatingUploader, UploadedFile

logger = structlog.get_logger(__name__)

AVATAR_FOLDER = "avatars"
MIN_PASSWORD_LENGTH = 8


@dataclass(slots=True)
class NewAddress:
    label: str
    recipient_name: str
    phone: str
    street: str
    city: str
    postal_code: str


@dataclass(slots=True)
class AccountService:
    store: AccountStore
    uploader: CompensatingUploader
    password_hasher: PasswordHasher

    def register_customer(
        self,
        *,
        username: str,
        email: str,
        password: str,
        full_name: str | None = None,
    ) -> Account:
        """Create the account and its customer role atomically."""

        username = username.strip()
        email = email.strip()
        if not username:
            raise ValidationError("username must not be empty")
        if "@" in username:
            raise ValidationError("username must not contain '@'")
        if "@" not in email:
            raise ValidationError("email is invalid")
        if len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(f"password must be at least {MIN_PASSWORD_LENGTH} characters")
        password_hash = self.password_hasher.hash(password)

        def _register(repo: AccountRepository) -> Account:
            if repo.username_exists(username):
                raise ConflictError("username already taken")
            if repo.email_exists(email):
                raise ConflictError("email already registered")
            account = repo.insert_account(
                account_id=uuid4(),
                username=username,
                email=email,
                password_hash=password_hash,
                full_name=full_name,
            )
            repo.insert_account_role(account.id, repo.get_role_id(Role.CUSTOMER))
            return account

        with operation_context("register_customer", username=username):
            account = self.store.execute_in_transaction(_register)
            logger.info("account.registered", account_id=str(account.id))
        return account

    def authenticate(self, identifier: str, password: str, role: Role) -> Principal:
        """Verify credentials for ``role``; an identifier with '@' is an email."""

        identifier = identifier.strip()
        if "@" in identifier:
            account = self.store.find_account_by_email(identifier)
        else:
            account = self.store.find_account_by_username(identifier)

        if account is None or not account.is_active:
            logger.warning("auth.login.failure", identifier=identifier, role=role.value, reason="unknown_account")
            raise UnauthorizedError("invalid credentials")
        if not self.password_hasher.verify(password, account.password_hash):
            logger.warning("auth.login.failure", identifier=identifier, role=role.value, reason="bad_password")
            raise UnauthorizedError("invalid credentials")
        if role not in self.store.list_roles(account.id):
            logger.warning("auth.login.failure", identifier=identifier, role=role.value, reason="missing_role")
            raise UnauthorizedError("invalid credentials")

        logger.info("auth.login.success", account_id=str(account.id), role=role.value)
        return Principal(account_id=account.id, username=account.username, role=role)

    def get_profile(self, account_id: UUID) -> Account:
        return self.store.find_account_by_id(account_id)

    def update_profile(self, account_id: UUID, changes: Mapping[str, Any]) -> Account:
        fields = {key: value for key, value in changes.items() if value is not None}
        if "email" in fields and "@" not in fields["email"]:
            raise ValidationError("email is invalid")

        def _update(repo: AccountRepository) -> Account:
            repo.find_account_by_id(account_id)
            if "email" in fields:
                owner = repo.find_account_by_email(fields["email"])
                if owner is not None and owner.id != account_id:
                    raise ConflictError("email already registered")
            return repo.update_account(account_id, fields)

        return self.store.execute_in_transaction(_update)

    def update_avatar(self, account_id: UUID, file: UploadedFile) -> Account:
        account = self.store.find_account_by_id(account_id)

        def persist(avatar_url: str | None) -> Account:
            if avatar_url is None:
                return account
            return self.store.execute_in_transaction(lambda repo: repo.update_avatar(account_id, avatar_url))

        with operation_context("update_avatar", account_id=str(account_id)):
            return self.uploader.update_with_replacement(
                old_reference=account.avatar_url,
                new_file=file,
                destination_hint=AVATAR_FOLDER,
                persist=persist,
            )

    # addresses

    def add_address(self, account_id: UUID, address: NewAddress) -> Address:
        """Store a new address; an account's first address becomes its primary one."""

        def _add(repo: AccountRepository) -> Address:
            repo.find_account_by_id(account_id)
            is_primary = repo.count_addresses(account_id) == 0
            return repo.insert_address(
                address_id=uuid4(), account_id=account_id, is_primary=is_primary, **asdict(address)
            )

        return self.store.execute_in_transaction(_add)

    def update_address(self, account_id: UUID, address_id: UUID, changes: Mapping[str, Any]) -> Address:
        fields = {key: value for key, value in changes.items() if value is not None}
        return self.store.execute_in_transaction(
            lambda repo: repo.update_address(account_id, address_id, fields)
        )

    def get_address(self, account_id: UUID, address_id: UUID) -> Address:
        return self.store.find_address(account_id, address_id)

    def list_addresses(self, account_id: UUID) -> list[Address]:
        return self.store.list_addresses(account_id)

    def delete_address(self, account_id: UUID, address_id: UUID) -> None:
        def _delete(repo: AccountRepository) -> None:
            repo.find_address(account_id, address_id)
            repo.delete_address(account_id, address_id)

        self.store.execute_in_transaction(_delete)

    def set_primary_address(self, account_id: UUID, address_id: UUID) -> Address:
        """Make ``address_id`` the account's only primary address.

        This reads the current primary and then flips flags, so two concurrent
        calls for the same account under READ COMMITTED can both succeed and
        leave two primaries behind.
        """

        def _set_primary(repo: AccountRepository) -> Address:
            target = repo.find_address(account_id, address_id)
            current = repo.find_primary_address(account_id)
            if current is not None and current.id != target.id:
                repo.set_address_primary(current.id, False)
            if not target.is_primary:
                repo.set_address_primary(target.id, True)
            return repo.find_address(account_id, address_id)

        return self.store.execute_in_transaction(_set_primary)

    # wishlist

    def add_to_wishlist(self, account_id: UUID, product_id: UUID) -> None:
        def _add(repo: AccountRepository) -> None:
            if repo.wishlist_item_exists(account_id, product_id):
                raise ConflictError("product already in wishlist")
            repo.insert_wishlist_item(account_id, product_id)

        self.store.execute_in_transaction(_add)
        logger.info("wishlist.item.added", account_id=str(account_id), product_id=str(product_id))

    def list_wishlist(
        self, account_id: UUID, *, page: int = 1, limit: int = 10, keyword: str | None = None
    ) -> Page[WishlistItem]:
        if page < 1:
            raise ValidationError("page must be at least 1")
        if not 1 <= limit <= MAX_PAGE_SIZE:
            raise ValidationError(f"limit must be between 1 and {MAX_PAGE_SIZE}")
        keyword = keyword.strip() if keyword else None
        total = self.store.count_wishlist(account_id, keyword=keyword)
        items = self.store.list_wishlist(account_id, keyword=keyword, limit=limit, offset=(page - 1) * limit)
        return Page(items=items, page=page, limit=limit, total=total)

    def remove_from_wishlist(self, account_id: UUID, product_id: UUID) -> None:
        def _remove(repo: AccountRepository) -> None:
            if repo.delete_wishlist_item(account_id, product_id) == 0:
                raise NotFoundError("wishlist item not found")

        self.store.execute_in_transaction(_remove)


__all__ = ["AccountService", "NewAddress"]
