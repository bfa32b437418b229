# src/chatapp/tests/test_logging/test_formatters.py
import json
import logging
import sys
import uuid

from chatapp.core.logging.formatters import ColorFormatter, JsonFormatter


def make_record(msg="conversation.created", level=logging.INFO, exc_info=None):
    return logging.LogRecord("chatapp.services", level, __file__, 10, msg, None, exc_info)


def test_json_formatter_emits_standard_and_service_fields():
    rec = make_record()
    rec.request_id = "rid-1"
    rec.actor_id = "user-1"

    out = json.loads(JsonFormatter(env="testing", service="chatapp-conversations").format(rec))

    assert out["message"] == "conversation.created"
    assert out["level"] == "INFO"
    assert out["logger"] == "chatapp.services"
    assert out["request_id"] == "rid-1"
    assert out["actor_id"] == "user-1"
    assert out["env"] == "testing"
    assert out["service"] == "chatapp-conversations"
    assert "version" in out


def test_json_formatter_includes_extras_and_stringifies_unserializable():
    rec = make_record()
    conversation_id = uuid.uuid4()
    rec.conversation_id = conversation_id
    rec.member_count = 3

    out = json.loads(JsonFormatter().format(rec))

    assert out["conversation_id"] == str(conversation_id)
    assert out["member_count"] == 3
    assert "args" not in out
    assert out["request_id"] == "-"


def test_json_formatter_renders_exception():
    try:
        raise ValueError("boom")
    except ValueError:
        rec = make_record("failed", logging.ERROR, sys.exc_info())

    out = json.loads(JsonFormatter().format(rec))

    assert "ValueError: boom" in out["exc_info"]


def test_color_formatter_line_layout():
    rec = make_record("hello")
    rec.request_id = "rid-9"

    line = ColorFormatter().format(rec)

    assert "\033[32m" in line  # INFO is green
    assert "chatapp.services" in line
    assert "rid-9" in line
    assert line.endswith("hello")
