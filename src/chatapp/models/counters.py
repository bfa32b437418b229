"""
Denormalized counters on `Conversation`.

`call_count` and `message_count` are moved by mapper listeners that run on the
connection flushing the Call/Message row, so the counter UPDATE is part of the
same transaction as the INSERT/DELETE that triggered it. A rollback undoes both.

Each UPDATE is a single relative statement (`col = col + delta`), so concurrent
writers never lose increments.

Because the UPDATE bypasses the ORM, a `Conversation` already loaded in the
session keeps its old counter values until it is refreshed (or re-queried
with `populate_existing`).
"""

import logging

from sqlalchemy import event, update

from .call import Call
from .conversation import Conversation
from .message import Message

logger = logging.getLogger(__name__)


def apply_counter_delta(connection, conversation_id, column_name: str, delta: int) -> None:
    """Add `delta` to `column_name` of one conversation row, using the given connection."""
    if conversation_id is None:
        return

    table = Conversation.__table__
    column = table.c[column_name]
    connection.execute(
        update(table)
        .where(table.c.id == conversation_id)
        .values({column: column + delta})
    )
    logger.debug(
        "counter.applied",
        extra={"conversation_id": str(conversation_id), "counter": column_name, "delta": delta},
    )


def _make_listener(column_name: str, delta: int):
    def listener(mapper, connection, target):
        apply_counter_delta(connection, target.conversation_id, column_name, delta)
    listener.__name__ = f"{column_name}_{'inc' if delta > 0 else 'dec'}"
    return listener


_LISTENERS = (
    (Call, "call_count"),
    (Message, "message_count"),
)

for _model, _column in _LISTENERS:
    event.listen(_model, "after_insert", _make_listener(_column, +1))
    event.listen(_model, "after_delete", _make_listener(_column, -1))
