"""
Pre-write validation helpers used by `BaseRepository.create()`.

Several models map an attribute to a differently named column (for example
`Member.conversation_id` is stored in the `conservation` column), so every
helper here speaks in mapped attribute keys, which is what callers pass as
kwargs, and never in raw column names.
"""

from sqlalchemy import and_, select, UniqueConstraint
from sqlalchemy import inspect as sa_inspect


def _column_to_key(model) -> dict:
    """Map each Column object of the model's table to its mapped attribute key."""
    mapper = sa_inspect(model)
    return {col: attr.key for attr in mapper.column_attrs for col in attr.columns}


def find_unknown_model_kwargs(model, kwargs: dict) -> list[str]:
    """
    Return list of unknown kwarg keys that are not part of the model's mapped attributes.
    """
    mapper = sa_inspect(model)
    allowed = {attr.key for attr in mapper.attrs}
    return [k for k in kwargs.keys() if k not in allowed]


def get_required_columns(model) -> list[str]:
    """
    Attribute keys whose column is NOT NULL and has neither a client nor a server default.
    """
    keys = _column_to_key(model)
    required = []
    for col in model.__table__.columns:
        has_default = col.default is not None or col.server_default is not None
        is_auto_pk = col.autoincrement is True and col.primary_key
        if not col.nullable and not has_default and not is_auto_pk:
            required.append(keys.get(col, col.name))
    return required


def get_unique_key_sets(model) -> list[list[str]]:
    """
    Return the attribute-key sets covered by a uniqueness rule:
    `unique=True` columns, UniqueConstraint objects and unique indexes.
    """
    keys = _column_to_key(model)
    table = model.__table__
    unique_sets: list[list[str]] = []

    for col in table.columns:
        if col.unique:
            unique_sets.append([keys.get(col, col.name)])

    for constraint in table.constraints:
        if isinstance(constraint, UniqueConstraint):
            unique_sets.append([keys.get(c, c.name) for c in constraint.columns])

    for idx in table.indexes:
        if idx.unique:
            unique_sets.append([keys.get(c, c.name) for c in idx.columns])

    return unique_sets


async def find_unique_conflicts(db, model, kwargs: dict) -> set[str]:
    """
    Run pre-insert queries to detect existing rows that would violate unique constraints.
    Returns the set of attribute keys that conflict (best-effort; the DB constraint
    remains the final word under concurrency).
    """
    conflicts: set[str] = set()

    for keys in get_unique_key_sets(model):
        if not all(k in kwargs for k in keys):
            continue

        conditions = [getattr(model, k) == kwargs[k] for k in keys]
        res = await db.execute(select(model).where(and_(*conditions)).limit(1))
        if res.scalars().first() is not None:
            conflicts.update(keys)

    return conflicts
