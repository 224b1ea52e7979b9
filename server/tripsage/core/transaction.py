"""Atomic unit-of-work executor with isolation control and error classification."""

import time
from enum import Enum
from typing import Awaitable, Callable, Optional, TypeVar

from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from .database import Database
from .errors import SerializationConflict, classify_store_error, is_store_error
from .observability import get_logger, metrics_collector

T = TypeVar("T")

logger = get_logger(__name__)
tracer = trace.get_tracer(__name__)


class IsolationLevel(str, Enum):
    """Isolation levels a unit of work may request."""
    READ_COMMITTED = "READ COMMITTED"
    REPEATABLE_READ = "REPEATABLE READ"
    SERIALIZABLE = "SERIALIZABLE"


class TransactionExecutor:
    """
    Runs a unit of work inside BEGIN/COMMIT/ROLLBACK on one pooled connection.

    The work callable receives the transactional session and must do all of
    its store access through it. Raw SQLAlchemy/driver errors never escape:
    they are rewritten into the ``tripsage.core.errors`` taxonomy after the
    rollback has been issued. Exceptions that are not store errors (bugs,
    invariant breaches in application code) still roll back and propagate
    unchanged.
    """

    def __init__(self, database: Database):
        self.database = database

    async def run_in_transaction(
        self,
        work: Callable[[AsyncSession], Awaitable[T]],
        *,
        name: Optional[str] = None,
        isolation: IsolationLevel = IsolationLevel.READ_COMMITTED,
        max_attempts: int = 1,
    ) -> T:
        """
        Execute ``work`` atomically and return its result.

        Args:
            work: Coroutine function taking the transactional session
            name: Human-readable transaction name for logs, spans and metrics
            isolation: Requested isolation level (READ COMMITTED is not set explicitly)
            max_attempts: Total attempts when the unit hits a SerializationConflict

        Returns:
            Whatever ``work`` returned, after a successful commit

        Raises:
            TransactionError: classified failure of the final attempt
        """
        name = name or f"tx_{int(time.time() * 1000)}"
        attempt = 1
        while True:
            try:
                return await self._attempt(work, name, isolation, attempt)
            except SerializationConflict:
                if attempt >= max_attempts:
                    raise
                logger.warning(
                    "transaction_retrying",
                    transaction=name,
                    attempt=attempt,
                    max_attempts=max_attempts,
                )
                attempt += 1

    async def _attempt(
        self,
        work: Callable[[AsyncSession], Awaitable[T]],
        name: str,
        isolation: IsolationLevel,
        attempt: int,
    ) -> T:
        started = time.perf_counter()
        logger.info(
            "transaction_started",
            transaction=name,
            isolation=isolation.value,
            attempt=attempt,
        )

        with tracer.start_as_current_span(f"transaction {name}") as span:
            span.set_attribute("db.transaction.name", name)
            span.set_attribute("db.transaction.isolation", isolation.value)
            span.set_attribute("db.transaction.attempt", attempt)

            session = self.database.session_factory()
            try:
                if isolation is not IsolationLevel.READ_COMMITTED:
                    # Must be the first use of the connection in this transaction
                    await session.connection(execution_options={"isolation_level": isolation.value})
                result = await work(session)
                await session.commit()
            except BaseException as exc:
                await self._rollback(session, name)
                duration = time.perf_counter() - started
                error = classify_store_error(exc) if is_store_error(exc) else None
                category = error.category if error is not None else "application_error"

                logger.warning(
                    "transaction_rolled_back",
                    transaction=name,
                    attempt=attempt,
                    error_category=category,
                    error_type=type(exc).__name__,
                    duration_ms=round(duration * 1000, 2),
                )
                metrics_collector.record_transaction(name, category, duration)
                span.record_exception(exc)
                span.set_status(Status(StatusCode.ERROR, category))

                if error is None or error is exc:
                    raise
                raise error from exc
            finally:
                await session.close()

        duration = time.perf_counter() - started
        logger.info(
            "transaction_committed",
            transaction=name,
            attempt=attempt,
            duration_ms=round(duration * 1000, 2),
        )
        metrics_collector.record_transaction(name, "committed", duration)
        return result

    async def _rollback(self, session: AsyncSession, name: str) -> None:
        """Roll back, logging (not raising) a failed rollback so the original error wins."""
        try:
            await session.rollback()
        except SQLAlchemyError as rollback_error:
            logger.error(
                "transaction_rollback_failed",
                transaction=name,
                error_type=type(rollback_error).__name__,
            )
