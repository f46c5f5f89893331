"""One interface for running SQL on a pooled connection or an open transaction.

Repositories are written against :class:`Querier` and never know whether the
statements they issue autocommit through the pool or belong to a transaction
owned by a unit of work. Driver errors are raised unchanged unless the
current deadline has passed; translating them into application errors is
the repository's job.
"""

from __future__ import annotations

import re
from contextlib import contextmanager
from enum import Enum
from typing import Any, Callable, Iterator, Mapping, Protocol, Sequence, TypeVar
from uuid import UUID

from sqlalchemy import exc as sa_exc, text
from sqlalchemy.engine import Connection, Engine, RowMapping
from sqlalchemy.sql.elements import TextClause

from ..domain.deadlines import DEFAULT_QUERY_TIMEOUT, check_deadline, current_deadline, deadline_scope
from ..exceptions import DeadlineExceededError, NoRowsError, TransactionClosedError

T = TypeVar("T")
Params = Mapping[str, Any] | Sequence[Mapping[str, Any]] | None
RowFactory = Callable[[RowMapping], T]

_NAMED_PARAM = re.compile(r"(?<![:\w\\]):(\w+)(?!:)")


class Querier(Protocol):
    """Capability set shared by pooled connections and active transactions."""

    def execute(self, query: str | TextClause, params: Params = None) -> int:
        ...

    def query_one(
        self,
        query: str | TextClause,
        params: Params = None,
        *,
        row_factory: RowFactory[T] | None = None,
    ) -> Any:
        ...

    def query_many(
        self,
        query: str | TextClause,
        params: Params = None,
        *,
        row_factory: RowFactory[T] | None = None,
    ) -> list[Any]:
        ...

    def prepare_named(self, query: str) -> "PreparedStatement":
        ...


def _as_clause(query: str | TextClause) -> TextClause:
    return query if isinstance(query, TextClause) else text(query)


def _bind_value(value: Any) -> Any:
    return str(value) if isinstance(value, UUID) else value


def _normalize(params: Params) -> Any:
    if params is None:
        return None
    if isinstance(params, Mapping):
        return {key: _bind_value(value) for key, value in params.items()}
    return [{key: _bind_value(value) for key, value in row.items()} for row in params]


def _run(conn: Connection, query: str | TextClause, params: Params) -> Any:
    """Execute a statement; a driver error raised past the deadline is a timeout."""

    try:
        return conn.execute(_as_clause(query), _normalize(params))
    except sa_exc.DBAPIError as exc:
        deadline = current_deadline()
        if deadline is not None and deadline.expired:
            raise DeadlineExceededError("database operation exceeded its deadline") from exc
        raise


def _apply_statement_timeout(connection: Connection) -> None:
    """Mirror the active deadline into PostgreSQL's ``statement_timeout``."""

    deadline = current_deadline()
    if deadline is None or connection.dialect.name != "postgresql":
        return
    milliseconds = max(int(deadline.remaining() * 1000), 1)
    connection.exec_driver_sql(f"SET LOCAL statement_timeout = {milliseconds}")


class _ConnectionQuerier:
    """Statement helpers on top of a ``_connection_scope`` supplied by subclasses."""

    def _connection_scope(self) -> Any:  # pragma: no cover - overridden
        raise NotImplementedError

    def execute(self, query: str | TextClause, params: Params = None) -> int:
        with self._connection_scope() as conn:
            check_deadline("execute")
            result = _run(conn, query, params)
            return result.rowcount

    def query_one(
        self,
        query: str | TextClause,
        params: Params = None,
        *,
        row_factory: RowFactory[T] | None = None,
    ) -> Any:
        with self._connection_scope() as conn:
            check_deadline("query")
            row = _run(conn, query, params).mappings().first()
        if row is None:
            raise NoRowsError("query returned no rows")
        return row_factory(row) if row_factory else dict(row)

    def query_many(
        self,
        query: str | TextClause,
        params: Params = None,
        *,
        row_factory: RowFactory[T] | None = None,
    ) -> list[Any]:
        with self._connection_scope() as conn:
            check_deadline("query")
            rows = _run(conn, query, params).mappings().all()
        if row_factory is None:
            return [dict(row) for row in rows]
        return [row_factory(row) for row in rows]

    def prepare_named(self, query: str) -> "PreparedStatement":
        check_deadline("prepare")
        return PreparedStatement(self, query)


class PreparedStatement:
    """A named-parameter statement bound to the querier that prepared it."""

    def __init__(self, querier: Querier, query: str) -> None:
        self._querier = querier
        self.query = query
        self.parameter_names = frozenset(_NAMED_PARAM.findall(query))
        self._clause = text(query)

    def _check(self, params: Mapping[str, Any]) -> Mapping[str, Any]:
        missing = self.parameter_names - params.keys()
        if missing:
            raise ValueError(f"missing statement parameters: {', '.join(sorted(missing))}")
        unknown = params.keys() - self.parameter_names
        if unknown:
            raise ValueError(f"unknown statement parameters: {', '.join(sorted(unknown))}")
        return params

    def execute(self, params: Mapping[str, Any] | None = None) -> int:
        return self._querier.execute(self._clause, self._check(params or {}))

    def execute_many(self, rows: Sequence[Mapping[str, Any]]) -> int:
        if not rows:
            return 0
        return self._querier.execute(self._clause, [self._check(row) for row in rows])

    def one(self, params: Mapping[str, Any] | None = None, *, row_factory: RowFactory[T] | None = None) -> Any:
        return self._querier.query_one(self._clause, self._check(params or {}), row_factory=row_factory)

    def all(
        self, params: Mapping[str, Any] | None = None, *, row_factory: RowFactory[T] | None = None
    ) -> list[Any]:
        return self._querier.query_many(self._clause, self._check(params or {}), row_factory=row_factory)


class PooledConnection(_ConnectionQuerier):
    """Non-transactional querier; each statement autocommits on a pooled connection.

    Safe to share between threads. Standalone statements run under the query
    timeout unless an enclosing deadline is already shorter.
    """

    def __init__(self, engine: Engine, *, timeout_seconds: float | None = DEFAULT_QUERY_TIMEOUT) -> None:
        self._engine = engine
        self._timeout_seconds = timeout_seconds

    @property
    def engine(self) -> Engine:
        return self._engine

    @contextmanager
    def _connection_scope(self) -> Iterator[Connection]:
        with deadline_scope(self._timeout_seconds):
            with self._engine.begin() as conn:
                _apply_statement_timeout(conn)
                yield conn

    def begin(self) -> "ActiveTransaction":
        return ActiveTransaction.begin(self._engine)


class TransactionState(str, Enum):
    OPEN = "open"
    COMMITTED = "committed"
    ROLLED_BACK = "rolled_back"


class ActiveTransaction(_ConnectionQuerier):
    """Exclusive querier over one connection; finished by exactly one commit or rollback."""

    def __init__(self, connection: Connection) -> None:
        self._connection = connection
        self._transaction = connection.begin()
        self.state = TransactionState.OPEN
        _apply_statement_timeout(connection)

    @classmethod
    def begin(cls, engine: Engine) -> "ActiveTransaction":
        check_deadline("begin")
        connection = engine.connect()
        try:
            return cls(connection)
        except BaseException:
            connection.close()
            raise

    @contextmanager
    def _connection_scope(self) -> Iterator[Connection]:
        if self.state is not TransactionState.OPEN:
            raise TransactionClosedError(f"transaction already {self.state.value}")
        yield self._connection

    def _finish(self, operation: str, state: TransactionState) -> None:
        if self.state is not TransactionState.OPEN:
            raise TransactionClosedError(f"cannot {operation}: transaction already {self.state.value}")
        self.state = state

    def commit(self) -> None:
        self._finish("commit", TransactionState.COMMITTED)
        self._transaction.commit()

    def rollback(self) -> None:
        self._finish("rollback", TransactionState.ROLLED_BACK)
        self._transaction.rollback()

    def close(self) -> None:
        self._connection.close()


__all__ = [
    "ActiveTransaction",
    "Params",
    "PooledConnection",
    "PreparedStatement",
    "Querier",
    "TransactionState",
]
