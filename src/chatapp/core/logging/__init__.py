# src/chatapp/core/logging/
# ├─ __init__.py     # public API
# ├─ builder.py      # make_dict_config(settings) + setup_logging(settings)
# ├─ formatters.py   # JsonFormatter, ColorFormatter
# ├─ filters.py      # LogContextFilter, RedactFilter (+ contextvar helpers)
# ├─ handlers.py     # handler factories for dictConfig
# └─ middleware.py   # RequestIDMiddleware

from .builder import setup_logging, make_dict_config
from .filters import (
    set_request_id,
    get_request_id,
    set_actor_id,
    get_actor_id,
    LogContextFilter,
    RedactFilter,
)
from .middleware import RequestIDMiddleware

__all__ = [
    "setup_logging",
    "make_dict_config",
    "set_request_id",
    "get_request_id",
    "set_actor_id",
    "get_actor_id",
    "LogContextFilter",
    "RedactFilter",
    "RequestIDMiddleware",
]
