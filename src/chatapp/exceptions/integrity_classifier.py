"""
Classify a SQLAlchemy IntegrityError into the constraint that failed.

The classes below are internal labels used by `mapper.py`; they are never
raised to callers. The store runs on PostgreSQL or MySQL in production and on
SQLite in tests, so each backend gets its own lookup before the message
heuristics kick in.
"""

import logging
from enum import Enum
from typing import Type
from sqlalchemy.exc import IntegrityError
from .base import RepositoryError

logger = logging.getLogger(__name__)


class ConstraintViolationError(RepositoryError):
    """Base for integrity/constraint violations."""
    pass


class UniqueConstraintError(ConstraintViolationError):
    """Unique constraint / duplicate value (e.g. a second membership row)."""
    pass


class NotNullConstraintError(ConstraintViolationError):
    """NOT NULL violation (missing required field)."""
    pass


class ForeignKeyConstraintError(ConstraintViolationError):
    """Foreign key constraint violated (unknown user or conversation)."""
    pass


class CheckConstraintError(ConstraintViolationError):
    pass


class UnknownIntegrityError(ConstraintViolationError):
    pass


# https://www.postgresql.org/docs/current/errcodes-appendix.html
class PostgresErrorCodes(str, Enum):
    UNIQUE_VIOLATION = "23505"
    NOT_NULL_VIOLATION = "23502"
    FOREIGN_KEY_VIOLATION = "23503"
    CHECK_VIOLATION = "23514"


PGCODE_EXCEPTION_MAP = {
    PostgresErrorCodes.UNIQUE_VIOLATION: UniqueConstraintError,
    PostgresErrorCodes.NOT_NULL_VIOLATION: NotNullConstraintError,
    PostgresErrorCodes.FOREIGN_KEY_VIOLATION: ForeignKeyConstraintError,
    PostgresErrorCodes.CHECK_VIOLATION: CheckConstraintError,
}

# MySQL server error numbers (ER_DUP_ENTRY, ER_BAD_NULL_ERROR, ER_NO_REFERENCED_ROW_2, ER_CHECK_CONSTRAINT_VIOLATED)
MYSQL_ERRNO_EXCEPTION_MAP = {
    1062: UniqueConstraintError,
    1048: NotNullConstraintError,
    1452: ForeignKeyConstraintError,
    3819: CheckConstraintError,
}


def _match_any(msg: str, keywords: list[str]) -> bool:
    return any(keyword in msg for keyword in keywords)


def _classify_from_postgres_diag(orig) -> tuple[Type[ConstraintViolationError] | None, str | None]:
    # psycopg 3 exposes `sqlstate`, psycopg2 exposes `pgcode`
    pgcode = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if not pgcode:
        return None, None

    diag = getattr(orig, "diag", None)
    constraint_name = getattr(diag, "constraint_name", None) if diag else None

    exception_class = PGCODE_EXCEPTION_MAP.get(pgcode)
    if exception_class:
        logger.debug("Postgres integrity diagnostic",
                     extra={"pgcode": pgcode, "constraint_name": constraint_name})
        return exception_class, constraint_name

    logger.warning(
        "Unknown Postgres integrity error code encountered",
        extra={"pgcode": pgcode, "constraint_name": constraint_name}
    )
    return UnknownIntegrityError, constraint_name


def _classify_from_mysql_errno(orig) -> Type[ConstraintViolationError] | None:
    args = getattr(orig, "args", None) or ()
    errno = args[0] if args and isinstance(args[0], int) else None
    if errno is None:
        return None
    return MYSQL_ERRNO_EXCEPTION_MAP.get(errno)


def _classify_from_generic_message(msg: str) -> Type[ConstraintViolationError]:
    """
    Fallback for SQLite (tests) and drivers that expose no error code.
    """
    normalized = msg.lower()

    if _match_any(normalized, ["unique constraint", "unique failed", "unique violation", "duplicate"]):
        return UniqueConstraintError

    if _match_any(normalized, ["not null constraint", "not null", "null value in column", "cannot be null"]):
        return NotNullConstraintError

    if _match_any(normalized, ["foreign key constraint", "foreign key", "is not present in table"]):
        return ForeignKeyConstraintError

    if _match_any(normalized, ["check constraint", "check failed"]):
        return CheckConstraintError

    logger.warning("Unknown integrity error message encountered", extra={"message_snippet": (msg or "")[:200]})
    return UnknownIntegrityError


def classify_integrity_error(exc: IntegrityError) -> tuple[Type[ConstraintViolationError], str | None]:
    """
    Heuristically classify a SQLAlchemy IntegrityError.

    Returns:
        A tuple of (ExceptionClass, constraint_name if available)
    """
    orig = exc.orig

    exception_class, constraint_name = _classify_from_postgres_diag(orig)
    if exception_class is not None:
        return exception_class, constraint_name

    exception_class = _classify_from_mysql_errno(orig)
    if exception_class is not None:
        return exception_class, None

    return _classify_from_generic_message(str(orig)), None
