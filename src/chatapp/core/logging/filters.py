"""
Logging filters.

Two context variables carry per-request correlation data through async code:

  - request_id: set by `RequestIDMiddleware` from `X-Request-ID` (or generated)
  - actor_id:   the authenticated caller, taken from `X-User-ID`

`LogContextFilter` copies both onto every `LogRecord` so formatters can use
`%(request_id)s` and `%(actor_id)s` without a KeyError. Outside a request
(startup, scripts, tests) both fall back to the sentinel "-".
"""

import contextvars
import logging
from logging import LogRecord

_request_id_ctx: contextvars.ContextVar[str | None] = contextvars.ContextVar("request_id", default=None)
_actor_id_ctx: contextvars.ContextVar[str | None] = contextvars.ContextVar("actor_id", default=None)


def set_request_id(request_id: str | None) -> contextvars.Token:
    """Set the request id for the current context; keep the token to reset it."""
    return _request_id_ctx.set(request_id)


def reset_request_id(token: contextvars.Token) -> None:
    _request_id_ctx.reset(token)


def get_request_id() -> str | None:
    return _request_id_ctx.get()


def set_actor_id(actor_id: str | None) -> contextvars.Token:
    return _actor_id_ctx.set(actor_id)


def reset_actor_id(token: contextvars.Token) -> None:
    _actor_id_ctx.reset(token)


def get_actor_id() -> str | None:
    return _actor_id_ctx.get()


class LogContextFilter(logging.Filter):
    """
    Guarantee `request_id` and `actor_id` on every record.

    A value passed explicitly through `extra=` wins over the context variable.
    Always returns True: this filter annotates, it never drops.
    """

    def filter(self, record: LogRecord) -> bool:
        record.request_id = getattr(record, "request_id", None) or get_request_id() or "-"
        record.actor_id = getattr(record, "actor_id", None) or get_actor_id() or "-"
        return True


class RedactFilter(logging.Filter):
    """Mask record attributes whose name looks sensitive."""

    SENSITIVE = {"password", "secret", "token", "access_token", "refresh_token", "authorization", "cookie"}

    def filter(self, record: LogRecord) -> bool:
        for key in list(record.__dict__.keys()):
            if key.lower() in self.SENSITIVE:
                record.__dict__[key] = "***REDACTED***"
        return True
