"""Typed outcomes for units of work and classification of raw store errors."""

import re
from typing import Any, Optional

from sqlalchemy.exc import DBAPIError, IntegrityError, OperationalError, SQLAlchemyError
from sqlalchemy.exc import TimeoutError as PoolTimeoutError

# SQLSTATE classes and codes (PostgreSQL)
_INTEGRITY_CLASS = "23"
_SERIALIZATION_CODES = {"40001", "40P01"}

# "Key (email)=(a@b.c) already exists." / "Key (user_id)=(7) is not present in table ..."
_PG_KEY_DETAIL = re.compile(r"Key \((?P<key>[^)]+)\)=\((?P<value>.*?)\)")
# "UNIQUE constraint failed: users.email, users.username"
_SQLITE_CONSTRAINT = re.compile(r"(?P<kind>UNIQUE|NOT NULL|CHECK) constraint failed: (?P<key>.+)$")
_SQLITE_LOCK_MESSAGES = ("database is locked", "database table is locked")


class TransactionError(Exception):
    """Base class for every failure a unit of work can report to its caller."""

    category = "unknown"
    retryable = False

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ConstraintViolation(TransactionError):
    """
    A unique, foreign-key, not-null or check constraint rejected the write.

    The message is returned to API clients as the problem ``detail``. It names
    at most the offending key (``table.column`` or the constraint name) and
    never the value, the SQL or the driver's own text.
    """

    category = "constraint_violation"

    def __init__(self, key: Optional[str] = None, constraint: Optional[str] = None):
        self.key = key
        self.constraint = constraint
        message = "The request conflicts with existing data"
        if key:
            message += f" (key: {key})"
        super().__init__(message)


class SerializationConflict(TransactionError):
    """Concurrent transactions could not be serialized; the whole unit may be retried."""

    category = "serialization_conflict"
    retryable = True

    def __init__(self, message: str = "The operation conflicted with a concurrent update"):
        super().__init__(message)


class AlreadyDecided(TransactionError):
    """The booking approval has already left the PENDING state."""

    category = "already_decided"

    def __init__(self, approval_id: int, status: Any):
        self.approval_id = approval_id
        self.status = getattr(status, "value", status)
        super().__init__(f"Booking approval {approval_id} has already been decided ({self.status})")


class OpenApprovalExists(TransactionError):
    """A PENDING approval already exists for the booking."""

    category = "open_approval_exists"

    def __init__(self, booking_type: Any, booking_id: int, approval_id: int):
        self.booking_type = getattr(booking_type, "value", booking_type)
        self.booking_id = booking_id
        self.approval_id = approval_id
        super().__init__(
            f"{self.booking_type} booking {booking_id} already has an open approval ({approval_id})"
        )


class NotFound(TransactionError):
    """The target row of the unit of work does not exist."""

    category = "not_found"

    def __init__(self, entity: str, entity_id: Any):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id} not found")


class PoolExhausted(TransactionError):
    """No pooled connection became available within the acquisition timeout."""

    category = "pool_exhausted"
    retryable = True

    def __init__(self, message: str = "No database connection available"):
        super().__init__(message)


class UnknownStoreError(TransactionError):
    """A store error that matches no known category."""

    category = "unknown"

    def __init__(self, original: BaseException):
        self.original = original
        super().__init__(f"Unclassified store error: {type(original).__name__}")


def _driver_error(exc: DBAPIError) -> Any:
    """Return the innermost driver exception (asyncpg hides behind the DBAPI adapter)."""
    orig = exc.orig
    cause = getattr(orig, "__cause__", None)
    if cause is not None and getattr(cause, "sqlstate", None):
        return cause
    return orig


def _sqlstate(exc: DBAPIError) -> Optional[str]:
    driver = _driver_error(exc)
    for attr in ("sqlstate", "pgcode"):
        code = getattr(driver, attr, None) or getattr(exc.orig, attr, None)
        if code:
            return str(code)
    return None


def _constraint_violation(exc: DBAPIError) -> ConstraintViolation:
    """Build a ConstraintViolation, extracting the offending key where the driver exposes one."""
    driver = _driver_error(exc)
    constraint = getattr(driver, "constraint_name", None)

    detail = getattr(driver, "detail", None)
    if detail:
        match = _PG_KEY_DETAIL.search(str(detail))
        if match:
            return ConstraintViolation(key=match.group("key"), constraint=constraint)

    match = _SQLITE_CONSTRAINT.search(str(exc.orig))
    if match:
        return ConstraintViolation(key=match.group("key").strip(), constraint=constraint)

    return ConstraintViolation(constraint=constraint)


def classify_store_error(exc: BaseException) -> TransactionError:
    """
    Rewrite a raw store error into the typed taxonomy.

    Args:
        exc: Exception raised by SQLAlchemy or the driver

    Returns:
        TransactionError: the typed outcome (already-typed errors pass through)
    """
    if isinstance(exc, TransactionError):
        return exc

    if isinstance(exc, PoolTimeoutError):
        return PoolExhausted()

    if isinstance(exc, DBAPIError):
        code = _sqlstate(exc)
        if code:
            if code.startswith(_INTEGRITY_CLASS):
                return _constraint_violation(exc)
            if code in _SERIALIZATION_CODES:
                return SerializationConflict()

        if isinstance(exc, IntegrityError):
            return _constraint_violation(exc)

        if isinstance(exc, OperationalError):
            message = str(exc.orig).lower()
            if any(lock in message for lock in _SQLITE_LOCK_MESSAGES):
                return SerializationConflict()

    return UnknownStoreError(exc)


def is_store_error(exc: BaseException) -> bool:
    """True for errors the executor owns: typed outcomes and anything raised by SQLAlchemy."""
    return isinstance(exc, (TransactionError, SQLAlchemyError))
