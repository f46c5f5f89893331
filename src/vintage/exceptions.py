"""Application error taxonomy and SQLAlchemy error translation."""

from __future__ import annotations

import re
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum
from typing import Iterator, TypeVar

from sqlalchemy import exc as sa_exc

__all__ = [
    "ErrorKind",
    "AppError",
    "NotFoundError",
    "NoRowsError",
    "ConflictError",
    "BadRequestError",
    "ValidationError",
    "UnauthorizedError",
    "ForbiddenError",
    "InternalError",
    "DatabaseOperationError",
    "DeadlineExceededError",
    "BlobStorageError",
    "RollbackError",
    "NestedTransactionError",
    "TransactionClosedError",
    "CONSTRAINT_MESSAGES",
    "ensure_found",
    "handle_sqlalchemy_errors",
    "translate_database_error",
]

T = TypeVar("T")


class ErrorKind(str, Enum):
    """Transport-neutral classification of failures."""

    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    BAD_REQUEST = "bad_request"
    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    INTERNAL = "internal"


class AppError(Exception):
    """Base class for application specific errors."""

    kind: ErrorKind = ErrorKind.INTERNAL

    def __init__(self, message: str = "") -> None:
        super().__init__(message)
        self.message = message


class NotFoundError(AppError):
    """Raised when a record could not be located."""

    kind = ErrorKind.NOT_FOUND


class NoRowsError(NotFoundError):
    """Raised by a querier when a single-row query matched nothing."""


class ConflictError(AppError):
    """Raised when a write collides with existing state."""

    kind = ErrorKind.CONFLICT


class BadRequestError(AppError):
    kind = ErrorKind.BAD_REQUEST


class ValidationError(BadRequestError):
    """Raised when caller supplied values are unusable."""


class UnauthorizedError(AppError):
    kind = ErrorKind.UNAUTHORIZED


class ForbiddenError(AppError):
    kind = ErrorKind.FORBIDDEN


class InternalError(AppError):
    """Base class for failures the caller cannot act on."""


class DatabaseOperationError(InternalError):
    """Raised for unexpected database errors."""


class DeadlineExceededError(InternalError):
    """Raised when an operation outlives its deadline."""


class BlobStorageError(InternalError):
    """Raised when blob storage rejects an upload or delete."""


class NestedTransactionError(InternalError):
    """Raised when a transaction is requested from inside another one."""


class TransactionClosedError(InternalError):
    """Raised when a finished transaction is used again."""


class RollbackError(InternalError):
    """Raised when rolling back after a failure fails as well.

    Both the failure that triggered the rollback and the rollback failure
    itself are kept.
    """

    def __init__(self, original: BaseException, rollback_error: BaseException) -> None:
        super().__init__(f"transaction failed: {original}; rollback failed: {rollback_error}")
        self.original = original
        self.rollback_error = rollback_error


# Keys follow PostgreSQL constraint names. SQLite unique violations are
# normalised to the same ``<table>_<columns>_key`` form.
CONSTRAINT_MESSAGES: dict[str, str] = {
    "accounts_username_key": "username already taken",
    "accounts_email_key": "email already registered",
    "shops_account_id_key": "account already owns a shop",
    "shops_name_key": "shop name already taken",
    "brands_name_key": "brand name already exists",
    "product_categories_name_key": "category name already exists",
    "product_conditions_name_key": "condition name already exists",
    "product_sizes_value_key": "size already exists",
    "products_category_id_fkey": "category does not exist",
    "products_brand_id_fkey": "brand does not exist",
    "products_condition_id_fkey": "condition does not exist",
    "products_size_id_fkey": "size does not exist",
    "products_shop_id_fkey": "shop does not exist",
    "addresses_account_id_fkey": "account does not exist",
    "wishlist_account_id_product_id_key": "product already in wishlist",
    "wishlist_product_id_fkey": "product does not exist",
    "wishlist_account_id_fkey": "account does not exist",
}

_UNIQUE_SQLSTATE = "23505"
_FOREIGN_KEY_SQLSTATE = "23503"
_QUERY_CANCELED_SQLSTATE = "57014"
_SQLITE_UNIQUE = re.compile(r"UNIQUE constraint failed: (?P<columns>[\w.]+(?:, [\w.]+)*)")


@dataclass(slots=True)
class _EntityContext:
    """Internal helper describing the entity for error messages."""

    entity: str | None = None

    def format(self, message: str) -> str:
        if self.entity:
            return f"{self.entity}: {message}"
        return message


def ensure_found(record: T | None, *, entity: str, identifier: object) -> T:
    """Ensure a record exists, otherwise raise :class:`NotFoundError`."""

    if record is None:
        raise NotFoundError(f"{entity} '{identifier}' not found")
    return record


def _sqlstate(exc: sa_exc.DBAPIError) -> str | None:
    orig = exc.orig
    return getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)


def _constraint_name(exc: sa_exc.DBAPIError) -> str | None:
    diag = getattr(exc.orig, "diag", None)
    name = getattr(diag, "constraint_name", None)
    if name:
        return name
    match = _SQLITE_UNIQUE.search(str(exc.orig))
    if match:
        qualified = match.group("columns").split(", ")
        table = qualified[0].partition(".")[0]
        columns = "_".join(name.partition(".")[2] for name in qualified)
        return f"{table}_{columns}_key"
    return None


def _is_unique_violation(exc: sa_exc.DBAPIError) -> bool:
    return _sqlstate(exc) == _UNIQUE_SQLSTATE or "UNIQUE constraint failed" in str(exc.orig)


def _is_foreign_key_violation(exc: sa_exc.DBAPIError) -> bool:
    return _sqlstate(exc) == _FOREIGN_KEY_SQLSTATE or "FOREIGN KEY constraint failed" in str(exc.orig)


def translate_database_error(exc: Exception, *, entity: str | None = None) -> AppError:
    """Map a SQLAlchemy error onto the application taxonomy."""

    context = _EntityContext(entity)
    if isinstance(exc, sa_exc.IntegrityError):
        constraint = _constraint_name(exc)
        if constraint in CONSTRAINT_MESSAGES:
            return ConflictError(CONSTRAINT_MESSAGES[constraint])
        if _is_unique_violation(exc):
            return ConflictError(context.format("duplicate entry"))
        if _is_foreign_key_violation(exc):
            return ConflictError(context.format("referenced record is missing or still in use"))
        return ConflictError(context.format("integrity constraint violated"))
    if isinstance(exc, sa_exc.DBAPIError):
        if _sqlstate(exc) == _QUERY_CANCELED_SQLSTATE:
            return DeadlineExceededError(context.format("database operation timed out"))
        return DatabaseOperationError(context.format("database operation failed"))
    return InternalError(context.format(str(exc)))


@contextmanager
def handle_sqlalchemy_errors(*, entity: str | None = None) -> Iterator[None]:
    """Translate SQLAlchemy errors into domain specific ones."""

    try:
        yield
    except NoRowsError as exc:
        if entity:
            raise NotFoundError(f"{entity} not found") from exc
        raise
    except sa_exc.DBAPIError as exc:
        raise translate_database_error(exc, entity=entity) from exc
