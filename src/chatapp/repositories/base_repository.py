"""
Base repository class providing common database operations.

Model-specific repositories inherit from `BaseRepository` to reuse the generic
create/read/count helpers and add their own queries on top.

Repositories never commit. They add, flush and query inside whatever
transaction the caller holds; the service layer decides when a unit of work
ends (see `database.session.unit_of_work`).
"""

import logging
import time
from typing import Any, Generic, Iterable, Type, TypeVar
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from chatapp.database.base import Base
from chatapp.exceptions.base import (
    DuplicateError,
    InvalidFieldError,
    NotFoundError,
    RepositoryError,
)
from chatapp.exceptions.mapper import db_error_handler
from chatapp.validators.exception_validators import (
    find_unique_conflicts,
    find_unknown_model_kwargs,
    get_required_columns,
)

ModelType = TypeVar("ModelType", bound=Base)

logger = logging.getLogger(__name__)


class BaseRepository(Generic[ModelType]):
    """
    Generic base repository providing common operations.

    Type Parameters:
        ModelType: The SQLAlchemy model class this repository manages.
    """

    def __init__(self, model: Type[ModelType], db: AsyncSession):
        """
        Args:
            model: The SQLAlchemy model class (not an instance), used to build queries.
            db: The async session, injected by the caller.
        """
        self.model = model
        self.db = db

    def _validate_payload(self, kwargs: dict[str, Any]) -> None:
        """Reject unknown attributes and missing required ones before touching the DB."""
        unknown = find_unknown_model_kwargs(self.model, kwargs)
        if unknown:
            logger.info(
                "repo.create.invalid_fields",
                extra={"model": self.model.__name__, "invalid_fields": sorted(unknown)},
            )
            raise InvalidFieldError(
                f"Unknown field(s) for {self.model.__name__}: {', '.join(unknown)}", fields=unknown
            )

        missing = [c for c in get_required_columns(self.model) if kwargs.get(c) is None]
        if missing:
            logger.info(
                "repo.create.missing_required",
                extra={"model": self.model.__name__, "missing_fields": sorted(missing)},
            )
            raise RepositoryError(
                f"Missing required field(s): {', '.join(missing)} for {self.model.__name__}", fields=missing
            )

    async def create(self, **kwargs) -> ModelType:
        """
        Create an entity with validation + DB write. Logging:
        - DEBUG: start event with model name and provided keys (not values).
        - INFO: expected domain errors (invalid fields, missing required, duplicate).
        - INFO: success event with created id and duration_ms.
        """
        logger.debug(
            "repo.create.start",
            extra={"model": self.model.__name__, "provided_keys": sorted(kwargs.keys())},
        )

        self._validate_payload(kwargs)

        conflicts = await find_unique_conflicts(self.db, self.model, kwargs)
        if conflicts:
            logger.info(
                "repo.create.duplicate_precheck",
                extra={"model": self.model.__name__, "conflict_fields": sorted(conflicts)},
            )
            raise DuplicateError(
                f"{self.model.__name__} already exists for field(s): {', '.join(sorted(conflicts))}",
                fields=sorted(conflicts),
            )

        start = time.perf_counter()

        async with db_error_handler(self.db, self.model.__name__):
            entity = self.model(**kwargs)
            self.db.add(entity)
            await self.db.flush()
            await self.db.refresh(entity)

        logger.info(
            "repo.create.success",
            extra={
                "model": self.model.__name__,
                "id": str(getattr(entity, "id", None)),
                "duration_ms": int((time.perf_counter() - start) * 1000),
            },
        )
        return entity

    async def create_many(self, rows: Iterable[dict[str, Any]]) -> list[ModelType]:
        """
        Insert several entities in one flush.

        Each row is validated like `create()`; uniqueness is left to the
        database, so a clash surfaces as `DuplicateError` from the mapper.
        """
        rows = list(rows)
        for row in rows:
            self._validate_payload(row)

        if not rows:
            return []

        async with db_error_handler(self.db, self.model.__name__):
            entities = [self.model(**row) for row in rows]
            self.db.add_all(entities)
            await self.db.flush()

        logger.info(
            "repo.create_many.success",
            extra={"model": self.model.__name__, "count": len(entities)},
        )
        return entities

    async def get_by_id(self, entity_id: UUID) -> ModelType | None:
        """
        Get an entity by its ID, or None.

        Raises:
            RepositoryError: If the query fails.
        """
        try:
            result = await self.db.execute(
                select(self.model).where(self.model.id == entity_id)
            )
            entity = result.scalar_one_or_none()
        except Exception as e:
            logger.exception(
                "repo.get_by_id.failed",
                extra={"model": self.model.__name__, "id": str(entity_id)},
            )
            raise RepositoryError(f"Failed to retrieve {self.model.__name__}") from e

        logger.debug(
            "repo.get_by_id",
            extra={"model": self.model.__name__, "id": str(entity_id), "found": entity is not None},
        )
        return entity

    async def get_by_id_or_raise(self, entity_id: UUID) -> ModelType:
        """
        Raises:
            NotFoundError: If the entity is not found in the database.
        """
        entity = await self.get_by_id(entity_id)
        if entity is None:
            raise NotFoundError(f"{self.model.__name__} with ID {entity_id} not found")
        return entity

    async def exists(self, entity_id: UUID) -> bool:
        try:
            result = await self.db.execute(
                select(self.model.id).where(self.model.id == entity_id)
            )
            return result.scalar() is not None
        except Exception as e:
            logger.exception("repo.exists.failed", extra={"model": self.model.__name__})
            raise RepositoryError(f"Failed to check {self.model.__name__} existence") from e

    async def count(self, **filters: Any) -> int:
        """
        Count entities with optional equality filters on mapped attributes,
        e.g. `count(conversation_id=cid)`. Filters set to None are ignored.
        """
        query = select(func.count()).select_from(self.model)
        for field, value in filters.items():
            if not hasattr(self.model, field):
                raise InvalidFieldError(f"{self.model.__name__} has no field '{field}'", fields=[field])
            if value is not None:
                query = query.where(getattr(self.model, field) == value)

        try:
            result = await self.db.execute(query)
        except Exception as e:
            logger.exception("repo.count.failed", extra={"model": self.model.__name__})
            raise RepositoryError(f"Failed to count {self.model.__name__} entities") from e

        return result.scalar() or 0

    async def save(self, entity: ModelType) -> ModelType:
        """Persist pending changes on an already loaded entity."""
        async with db_error_handler(self.db, self.model.__name__):
            self.db.add(entity)
            await self.db.flush()
            # server-side onupdate columns are expired by the flush
            await self.db.refresh(entity)
        logger.debug(
            "repo.save",
            extra={"model": self.model.__name__, "id": str(getattr(entity, "id", None))},
        )
        return entity
