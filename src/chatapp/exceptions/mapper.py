import re
import logging
from contextlib import asynccontextmanager

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from .integrity_classifier import (
    classify_integrity_error,
    UniqueConstraintError,
    NotNullConstraintError,
    ForeignKeyConstraintError,
    CheckConstraintError,
)
from .base import DuplicateError, RepositoryError

logger = logging.getLogger(__name__)

# -----------------------
# Column extraction helpers
# -----------------------

_COLUMN_PATTERNS = (
    # Postgres: 'null value in column "creator" violates not-null constraint'
    re.compile(r'null value in column "(?P<cols>[^"]+)"', re.IGNORECASE),
    # Postgres: 'DETAIL:  Key (user_id, conservation)=(...) already exists.'
    re.compile(r'key \((?P<cols>[^)]+)\)=', re.IGNORECASE),
    # SQLite: 'UNIQUE constraint failed: member.user_id, member.conservation'
    re.compile(r'(?:UNIQUE|NOT NULL) constraint failed: (?P<cols>.+)$', re.IGNORECASE),
    # MySQL: "Column 'creator' cannot be null"
    re.compile(r"Column '(?P<cols>[^']+)' cannot be null", re.IGNORECASE),
    # MySQL: "Duplicate entry 'x-y' for key 'member.uq_member_user_id'"
    re.compile(r"for key '(?P<cols>[^']+)'", re.IGNORECASE),
)


def extract_columns_from_integrity(exc: IntegrityError) -> list[str] | None:
    """
    Best-effort extraction of column names from the DB message (Postgres, SQLite, MySQL).
    Table prefixes such as `member.` are stripped.
    """
    orig = exc.orig
    msg = str(orig) if orig is not None else str(exc)

    for pattern in _COLUMN_PATTERNS:
        m = pattern.search(msg)
        if m:
            raw = re.split(r",\s*", m.group("cols").strip())
            return [c.split(".")[-1].strip().strip('"`') for c in raw if c.strip()]
    return None


# -----------------------
# Mapper
# -----------------------

def raise_mapped_integrity_error(exc: IntegrityError, model_name: str | None = None) -> None:
    """
    Map a SQLAlchemy IntegrityError to an app-level exception and raise it.
    Populates `.fields` and `.constraint` where possible.
    """
    exc_cls, constraint_name = classify_integrity_error(exc)
    columns = extract_columns_from_integrity(exc)
    model_part = model_name or "Record"

    if exc_cls is UniqueConstraintError:
        # Expected client-level scenario (e.g. joining twice), so INFO
        logger.info(
            "mapper.duplicate_detected",
            extra={"model": model_part, "fields": columns, "constraint": constraint_name},
        )
        if columns:
            raise DuplicateError(f"{model_part} already exists for field(s): {', '.join(columns)}",
                                 fields=columns, constraint=constraint_name) from exc
        raise DuplicateError(f"{model_part} already exists", constraint=constraint_name) from exc

    if exc_cls is NotNullConstraintError:
        logger.info(
            "mapper.not_null_violation",
            extra={"model": model_part, "fields": columns, "constraint": constraint_name},
        )
        if columns:
            raise RepositoryError(f"Missing required field(s): {', '.join(columns)} for {model_part}",
                                  fields=columns, constraint=constraint_name) from exc
        raise RepositoryError(f"Missing required field for {model_part}", constraint=constraint_name) from exc

    if exc_cls is ForeignKeyConstraintError:
        logger.info(
            "mapper.foreign_key_violation",
            extra={"model": model_part, "fields": columns, "constraint": constraint_name},
        )
        raise RepositoryError(f"{model_part} references a user or conversation that does not exist",
                              fields=columns, constraint=constraint_name) from exc

    if exc_cls is CheckConstraintError:
        # Raw DB text only at DEBUG
        logger.debug(
            "mapper.check_constraint_failure",
            extra={"model": model_part, "raw": str(exc.orig), "constraint": constraint_name},
        )
        raise RepositoryError(f"{model_part} business rule violated (check constraint).",
                              constraint=constraint_name) from exc

    logger.warning(
        "mapper.unknown_integrity_error",
        extra={"model": model_part, "constraint": constraint_name},
    )
    raise RepositoryError(f"{model_part} database integrity error.") from exc


# -----------------------
# Async context manager to DRY error handling in repositories
# -----------------------
@asynccontextmanager
async def db_error_handler(db: AsyncSession, model_name: str | None = None):
    """
    Usage:
        async with db_error_handler(self.db, self.model.__name__):
            ... DB writes that may raise IntegrityError ...

    Rolls the session back on error and raises a mapped app-level exception.
    App-level errors raised inside the block pass through untouched.
    """
    try:
        yield
    except RepositoryError:
        raise
    except IntegrityError as exc:
        try:
            await db.rollback()
        except Exception:
            logger.exception("Failed to rollback session after IntegrityError", extra={"model": model_name})
        raise_mapped_integrity_error(exc, model_name)
    except Exception as exc:
        try:
            await db.rollback()
        except Exception:
            logger.exception("Failed to rollback session after unexpected error", extra={"model": model_name})

        logger.exception("Unexpected DB error for %s", model_name, extra={"model": model_name})
        raise RepositoryError(f"Failed to operate on {model_name or 'database'}") from exc
