"""Atomic execution of repository calls inside one database transaction."""

from __future__ import annotations

from contextvars import ContextVar
from typing import Callable, Generic, Protocol, TypeVar

import structlog
from sqlalchemy import exc as sa_exc
from sqlalchemy.engine import Engine

from ..db.querier import ActiveTransaction, Querier
from ..domain.deadlines import DEFAULT_TRANSACTION_TIMEOUT, check_deadline, deadline_scope
from ..exceptions import NestedTransactionError, RollbackError, translate_database_error

logger = structlog.get_logger(__name__)

T = TypeVar("T")
RepoT = TypeVar("RepoT", bound="TransactionBindable")

_in_transaction: ContextVar[bool] = ContextVar("vintage_in_transaction", default=False)


class TransactionBindable(Protocol):
    def with_transaction(self: RepoT, tx: Querier) -> RepoT:
        ...


class Transaction(Querier, Protocol):
    """What the unit of work needs from an open transaction."""

    def commit(self) -> None:
        ...

    def rollback(self) -> None:
        ...

    def close(self) -> None:
        ...


TransactionFactory = Callable[[], Transaction]


class UnitOfWork(Generic[RepoT]):
    """Run a callback against a repository bound to a fresh transaction.

    The callback's outcome alone decides the result: returning commits and
    raising rolls back. Each call owns exactly one transaction and finishes it
    with exactly one commit or rollback. Calls do not nest; a callback that
    needs several writes performs them all on the repository it receives.
    """

    def __init__(
        self,
        repository: RepoT,
        begin: TransactionFactory,
        *,
        timeout_seconds: float | None = DEFAULT_TRANSACTION_TIMEOUT,
    ) -> None:
        self._repository = repository
        self._begin = begin
        self._timeout_seconds = timeout_seconds

    @classmethod
    def from_engine(
        cls,
        repository: RepoT,
        engine: Engine,
        *,
        timeout_seconds: float | None = DEFAULT_TRANSACTION_TIMEOUT,
    ) -> "UnitOfWork[RepoT]":
        return cls(repository, lambda: ActiveTransaction.begin(engine), timeout_seconds=timeout_seconds)

    @property
    def repository(self) -> RepoT:
        """Non-transactional repository for reads."""
        return self._repository

    def execute_in_transaction(self, fn: Callable[[RepoT], T]) -> T:
        if _in_transaction.get():
            raise NestedTransactionError("nested transactions are not supported")

        flag = _in_transaction.set(True)
        try:
            with deadline_scope(self._timeout_seconds):
                return self._run(fn)
        finally:
            _in_transaction.reset(flag)

    def _run(self, fn: Callable[[RepoT], T]) -> T:
        try:
            tx = self._begin()
        except sa_exc.DBAPIError as exc:
            raise translate_database_error(exc) from exc
        logger.debug("uow.transaction.begin")

        try:
            try:
                result = fn(self._repository.with_transaction(tx))
                check_deadline("commit")
            except BaseException as exc:
                self._rollback(tx, exc)
                raise

            try:
                tx.commit()
            except sa_exc.DBAPIError as exc:
                logger.warning("uow.transaction.commit_failed", error=str(exc))
                raise translate_database_error(exc) from exc
            logger.debug("uow.transaction.commit")
            return result
        finally:
            tx.close()

    @staticmethod
    def _rollback(tx: Transaction, original: BaseException) -> None:
        try:
            tx.rollback()
        except Exception as rollback_exc:
            logger.error(
                "uow.transaction.rollback_failed",
                error=str(original),
                rollback_error=str(rollback_exc),
            )
            raise RollbackError(original, rollback_exc) from original
        logger.info("uow.transaction.rollback", error=str(original), error_type=type(original).__name__)


__all__ = ["Transaction", "TransactionBindable", "TransactionFactory", "UnitOfWork"]
