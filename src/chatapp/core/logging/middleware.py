"""
Request correlation middleware for FastAPI / Starlette.

Binds the request id (incoming `X-Request-ID` or a fresh UUID4) and the
authenticated caller (`X-User-ID`, set by the upstream auth layer) to the
logging context for the duration of the request, and echoes the request id
on the response.
"""

import uuid

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from .filters import reset_actor_id, reset_request_id, set_actor_id, set_request_id

REQUEST_ID_HEADER = "X-Request-ID"
USER_ID_HEADER = "X-User-ID"
_MAX_HEADER_LEN = 128


def _clean(value: str | None) -> str | None:
    """Drop values that could break a log line (control chars, absurd length)."""
    if not value or len(value) > _MAX_HEADER_LEN or not value.isprintable():
        return None
    return value


class RequestIDMiddleware(BaseHTTPMiddleware):

    async def dispatch(self, request: Request, call_next):
        rid = _clean(request.headers.get(REQUEST_ID_HEADER)) or str(uuid.uuid4())
        actor = _clean(request.headers.get(USER_ID_HEADER))

        rid_token = set_request_id(rid)
        actor_token = set_actor_id(actor)
        try:
            response = await call_next(request)
            response.headers[REQUEST_ID_HEADER] = rid
            return response
        finally:
            reset_actor_id(actor_token)
            reset_request_id(rid_token)
