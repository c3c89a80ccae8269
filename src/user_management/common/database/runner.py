"""
Transactional query execution.

Every call acquires its own connection and releases it before returning,
whether the unit of work succeeds, fails, or the rollback itself fails.
Connections and transactions never leave this module.
"""
from typing import Any, Awaitable, Callable, Optional, TypeVar

from asyncpg import Connection, IntegrityConstraintViolationError
from loguru import logger

from .connection import DatabaseManager

T = TypeVar("T")

UnitOfWork = Callable[[Connection], Awaitable[T]]


class QueryRunner:
    """Runs units of work against the database with commit/rollback semantics."""

    def __init__(self, database: DatabaseManager):
        self.database = database

    async def run_in_transaction(
        self,
        unit_of_work: UnitOfWork,
        failure: Optional[Exception] = None,
        operation: str = "transaction"
    ) -> T:
        """
        Run ``unit_of_work`` inside a transaction.

        Commits on normal return. On any failure the transaction is rolled
        back, the failure is logged and re-raised. A rollback failure is
        logged but never replaces the original failure.

        Args:
            unit_of_work: Coroutine function receiving the open connection
            failure: Optional exception raised instead of the original one
            operation: Label used in log messages

        Returns:
            Whatever ``unit_of_work`` returns
        """
        try:
            async with self.database.acquire() as connection:
                transaction = connection.transaction()
                await transaction.start()
                try:
                    result = await unit_of_work(connection)
                except Exception:
                    await self._rollback(transaction, operation)
                    raise
                await transaction.commit()
                return result
        except Exception as error:
            _log_failure(error, "Error while handling transaction", operation)
            if failure is not None:
                raise failure from error
            raise

    async def run_read_only(
        self,
        unit_of_work: UnitOfWork,
        failure: Optional[Exception] = None,
        operation: str = "query"
    ) -> T:
        """
        Run ``unit_of_work`` on a connection without a transaction.

        Failures are logged and re-raised, or replaced by ``failure`` when
        one is supplied.
        """
        try:
            async with self.database.acquire() as connection:
                return await unit_of_work(connection)
        except Exception as error:
            _log_failure(error, "Error while executing query", operation)
            if failure is not None:
                raise failure from error
            raise

    async def execute(self, statement: str, *parameters: Any) -> str:
        """Run a parameterized statement inside its own transaction."""
        async def _execute(connection: Connection) -> str:
            return await connection.execute(statement, *parameters)

        return await self.run_in_transaction(_execute, operation="execute")

    @staticmethod
    async def _rollback(transaction, operation: str) -> None:
        try:
            await transaction.rollback()
        except Exception as rollback_error:
            logger.opt(exception=rollback_error).error(
                f"Error during transaction rollback: {operation}"
            )


def _log_failure(error: Exception, message: str, operation: str) -> None:
    # Constraint violations are translated by callers, no traceback.
    if isinstance(error, IntegrityConstraintViolationError):
        logger.warning(f"{message}: {operation} ({type(error).__name__}: {error})")
    else:
        logger.opt(exception=error).error(f"{message}: {operation}")
