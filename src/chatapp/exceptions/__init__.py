# chatapp/
# │
# ├── exceptions/
# │   ├── __init__.py
# │   ├── base.py                    # Typed app-level errors (BadRequest, Conflict, Forbidden, ...)
# │   ├── integrity_classifier.py    # SQL-level / DB-specific constraint classification
# │   └── mapper.py                  # Map classified DB errors to app-level errors

from .base import (
    RepositoryError,
    BadRequestError,
    ForbiddenError,
    ConflictError,
    NotFoundError,
    DuplicateError,
    InvalidFieldError,
)

__all__ = [
    "RepositoryError",
    "BadRequestError",
    "ForbiddenError",
    "ConflictError",
    "NotFoundError",
    "DuplicateError",
    "InvalidFieldError",
]
