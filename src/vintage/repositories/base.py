"""Repository base class with transaction binding."""

from __future__ import annotations

import copy
from datetime import datetime
from typing import Any, Callable, TypeVar
from uuid import UUID

from ..db.querier import Params, Querier
from ..exceptions import NoRowsError

RepoT = TypeVar("RepoT", bound="SqlRepository")
T = TypeVar("T")


class SqlRepository:
    """Entity data access over a :class:`Querier`.

    A repository never opens or closes transactions. Binding it to a
    transaction yields a new instance; the receiver keeps its own querier so
    that other callers can keep using it concurrently.
    """

    def __init__(self, querier: Querier) -> None:
        self._querier = querier

    @property
    def querier(self) -> Querier:
        return self._querier

    def with_transaction(self: RepoT, tx: Querier) -> RepoT:
        bound = copy.copy(self)
        bound._querier = tx
        return bound

    def _query_optional(self, query: str, params: Params = None, *, row_factory: Callable[[Any], T]) -> T | None:
        try:
            return self._querier.query_one(query, params, row_factory=row_factory)
        except NoRowsError:
            return None

    def _exists(self, query: str, params: Params = None) -> bool:
        return bool(self._querier.query_many(query, params))

    def _count(self, query: str, params: Params = None) -> int:
        row = self._querier.query_one(query, params)
        return int(next(iter(row.values())))


def as_uuid(value: Any) -> UUID:
    return value if isinstance(value, UUID) else UUID(str(value))


def as_optional_uuid(value: Any) -> UUID | None:
    return None if value is None else as_uuid(value)


def as_datetime(value: Any) -> datetime | None:
    """Accept driver datetimes as well as SQLite's ISO strings."""

    if value is None or isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value))


__all__ = ["SqlRepository", "as_datetime", "as_optional_uuid", "as_uuid"]
