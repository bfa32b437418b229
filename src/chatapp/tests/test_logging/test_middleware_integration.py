# src/chatapp/tests/test_logging/test_middleware_integration.py
import json
import logging

from fastapi import FastAPI
from starlette.testclient import TestClient

from chatapp.config.settings import Settings
from chatapp.core.logging.builder import setup_logging
from chatapp.core.logging.filters import get_actor_id, get_request_id
from chatapp.core.logging.middleware import RequestIDMiddleware


def make_app() -> FastAPI:
    app = FastAPI()
    app.add_middleware(RequestIDMiddleware)

    @app.get("/whoami")
    async def whoami():
        logging.getLogger("chatapp").info("handling whoami")
        return {"request_id": get_request_id(), "actor_id": get_actor_id()}

    return app


def test_incoming_request_id_is_bound_and_echoed():
    client = TestClient(make_app())

    resp = client.get("/whoami", headers={"X-Request-ID": "req-1", "X-User-ID": "user-7"})

    assert resp.status_code == 200
    assert resp.headers["X-Request-ID"] == "req-1"
    assert resp.json() == {"request_id": "req-1", "actor_id": "user-7"}


def test_missing_or_garbage_request_id_is_replaced():
    client = TestClient(make_app())

    generated = client.get("/whoami")
    garbage = client.get("/whoami", headers={"X-Request-ID": "x" * 500})

    for resp in (generated, garbage):
        rid = resp.headers["X-Request-ID"]
        assert len(rid) == 36
        assert resp.json() == {"request_id": rid, "actor_id": None}


def test_context_is_cleared_after_request():
    client = TestClient(make_app())

    client.get("/whoami", headers={"X-Request-ID": "req-2", "X-User-ID": "user-8"})

    assert get_request_id() is None
    assert get_actor_id() is None


def test_request_id_in_json_logs_stdout(tmp_path, capsys, restore_logging):
    setup_logging(Settings(LOG_FORMAT="json", LOG_LEVEL="INFO", LOG_TO_STDOUT=True, LOG_DIR=tmp_path))
    client = TestClient(make_app())

    resp = client.get("/whoami", headers={"X-User-ID": "user-9"})
    rid = resp.headers["X-Request-ID"]

    # Each console line is a JSON object because LOG_FORMAT=json
    records = []
    for line in capsys.readouterr().out.splitlines():
        try:
            records.append(json.loads(line))
        except json.JSONDecodeError:
            continue

    matching = [r for r in records if r.get("message") == "handling whoami"]
    assert matching, "No JSON log line for the request on stdout"
    assert matching[0]["request_id"] == rid
    assert matching[0]["actor_id"] == "user-9"
