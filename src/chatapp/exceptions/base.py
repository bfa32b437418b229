"""
Typed errors raised by repositories and the conversation service.

Every error is a `RepositoryError`, so callers (FastAPI handlers, tests) can
catch one base class and still read a stable `error_code` and HTTP status.
"""

from typing import Iterable


class RepositoryError(Exception):
    """
    Base exception for repository/service errors.

    - message: human-friendly message (safe to show to clients)
    - fields: optional list of field names related to the error (e.g., ['members'])
    - constraint: optional DB constraint name or identifier (for logs only)
    - error_code: canonical short code (e.g., 'conflict', 'forbidden') used by clients
    """

    # Map canonical error_code -> default HTTP status.
    ERROR_CODE_TO_STATUS = {
        "bad_request": 400,
        "forbidden": 403,
        "not_found": 404,
        "conflict": 409,
        "duplicate": 409,
        "invalid_field": 422,
        # fallback: default to 400 for general repository errors
    }

    def __init__(self, message: str, *, fields: Iterable[str] | None = None,
                 constraint: str | None = None, error_code: str | None = None):
        super().__init__(message)
        self.message = message
        self.fields = list(fields) if fields else None
        self.constraint = constraint
        self.error_code = error_code

    def __str__(self) -> str:
        base = self.message
        parts = []
        if self.fields:
            parts.append(f"fields: {', '.join(self.fields)}")
        if self.constraint:
            parts.append(f"constraint: {self.constraint}")
        if self.error_code:
            parts.append(f"code: {self.error_code}")
        if parts:
            return f"{base} ({'; '.join(parts)})"
        return base

    def to_payload(self) -> dict:
        """
        Return a JSON-serializable dict suitable for HTTP responses.
        Standard shape:
            {
                "detail": "Conversation not found",
                "code": "bad_request",        # optional canonical code
                "fields": ["members"],        # optional list for client usage
            }
        The constraint name stays out of the payload.
        """
        payload = {"detail": self.message}
        if self.error_code:
            payload["code"] = self.error_code
        if self.fields:
            payload["fields"] = list(self.fields)
        return payload

    def http_status(self) -> int:
        if self.error_code:
            return self.ERROR_CODE_TO_STATUS.get(self.error_code, 400)
        return 400


class BadRequestError(RepositoryError):
    """Invalid or missing referenced entity, or an operation the conversation type forbids."""

    def __init__(self, message: str = "Bad request", *, fields: Iterable[str] | None = None):
        super().__init__(message, fields=fields, error_code="bad_request")


class ForbiddenError(RepositoryError):
    """The caller lacks the role (creator / non-creator) the action requires."""

    def __init__(self, message: str = "Forbidden", *, fields: Iterable[str] | None = None):
        super().__init__(message, fields=fields, error_code="forbidden")


class ConflictError(RepositoryError):
    """The action contradicts the current membership state."""

    def __init__(self, message: str = "Conflict", *, fields: Iterable[str] | None = None):
        super().__init__(message, fields=fields, error_code="conflict")


class NotFoundError(RepositoryError):
    def __init__(self, message: str = "Not found", *, fields: Iterable[str] | None = None):
        super().__init__(message, fields=fields, error_code="not_found")


class DuplicateError(RepositoryError):
    def __init__(self, message: str, *, fields: Iterable[str] | None = None, constraint: str | None = None):
        super().__init__(message, fields=fields, constraint=constraint, error_code="duplicate")


class InvalidFieldError(RepositoryError):
    """Raised when the caller passes unexpected/unknown fields to repository methods."""

    def __init__(self, message: str, *, fields: Iterable[str] | None = None):
        super().__init__(message, fields=fields, error_code="invalid_field")


__all__ = [
    "RepositoryError",
    "BadRequestError",
    "ForbiddenError",
    "ConflictError",
    "NotFoundError",
    "DuplicateError",
    "InvalidFieldError",
]
