# tests/test_handlers.py

from __future__ import annotations

import base64
import json

import pytest

from taskhub import functions
from taskhub.functions import handlers

from .conftest import PASSWORD


@pytest.fixture(autouse=True)
def lambda_app(app):
    handlers.set_app(app)
    yield app
    handlers.set_app(None)


def _event(body=None, method="POST", query=None, headers=None, b64=False) -> dict:
    raw = body if isinstance(body, str) or body is None else json.dumps(body)
    if b64 and raw is not None:
        raw = base64.b64encode(raw.encode()).decode()
    return {
        "httpMethod": method,
        "body": raw,
        "isBase64Encoded": b64,
        "queryStringParameters": query,
        "headers": headers or {},
    }


def _body(resp) -> dict:
    return json.loads(resp["body"])


def test_preflight_short_circuits() -> None:
    resp = functions.register(_event(method="OPTIONS"), None)
    assert resp["statusCode"] == 200
    assert resp["headers"]["Access-Control-Allow-Origin"] == "*"


def test_invalid_json_is_400() -> None:
    resp = functions.login(_event("{not json"), None)
    assert resp["statusCode"] == 400
    assert _body(resp) == {"message": "Invalid JSON in request body", "success": False}


def test_register_and_duplicate(stores) -> None:
    payload = {"username": "alice", "email": "alice@acme.io", "password": PASSWORD}

    resp = functions.register(_event(payload), None)
    assert resp["statusCode"] == 201
    body = _body(resp)
    assert body["success"] and body["user"]["Email"] == "alice@acme.io"
    assert "Password" not in body["user"]

    again = functions.register(_event(payload, b64=True), None)
    assert again["statusCode"] == 400
    assert "already exists" in _body(again)["message"]
    assert len(stores.users.list_all()) == 1


def test_register_missing_fields() -> None:
    resp = functions.register(_event({"username": "a"}), None)
    assert resp["statusCode"] == 400
    assert _body(resp)["message"] == "Username, email, and password are required"


def test_login_flow_and_profile(users, stores) -> None:
    bad = functions.login(_event({"email": "u1@acme.io", "password": "nope-nope"}), None)
    assert bad["statusCode"] == 401
    assert stores.users.find_by_email("u1@acme.io").last_login is None

    ok = functions.login(_event({"email": "u1@acme.io", "password": PASSWORD}), None)
    assert ok["statusCode"] == 200
    body = _body(ok)
    assert body["token"] and body["user"]["UserID"] == users["U1"].user_id
    assert stores.users.find_by_email("u1@acme.io").last_login is not None

    me = functions.get_profile(_event(method="GET", headers={"Authorization": f"Bearer {body['token']}"}), None)
    assert me["statusCode"] == 200
    assert _body(me)["user"]["Username"] == "U1"

    anon = functions.get_profile(_event(method="GET"), None)
    assert anon["statusCode"] == 401


def test_login_requires_fields() -> None:
    resp = functions.login(_event({"email": "u1@acme.io"}), None)
    assert resp["statusCode"] == 400


def test_list_users_hides_passwords(users) -> None:
    resp = functions.list_users(_event(method="GET"), None)
    body = _body(resp)
    assert resp["statusCode"] == 200
    assert body["count"] == 4
    assert all("Password" not in u for u in body["users"])


def test_create_task_defaults_and_assignments(stores) -> None:
    resp = functions.create_task(_event({"assignedUsers": "u2, u3"}), None)

    assert resp["statusCode"] == 200
    task = _body(resp)["task"]
    assert (task["name"], task["createdBy"], task["assignedTo"]) == ("Untitled", "unknown", ["u2", "u3"])
    assert {a.user_id for a in stores.tasks.assignments} == {"u2", "u3"}


def test_presign_upload(s3) -> None:
    missing = functions.presign_upload(_event(method="GET", query={}), None)
    assert missing["statusCode"] == 400
    assert _body(missing) == {"error": "filename required"}

    resp = functions.presign_upload(_event(method="GET", query={"filename": "a b.png", "contentType": "image/png"}), None)
    body = _body(resp)
    assert resp["statusCode"] == 200
    assert body["key"].startswith("tasks/") and body["key"].endswith("_a_b.png")


def test_presign_download() -> None:
    assert functions.presign_download(_event(method="GET", query=None), None)["statusCode"] == 400
    resp = functions.presign_download(_event(method="GET", query={"key": "tasks/1_a"}), None)
    assert _body(resp) == {"url": "https://signed.test/tasks/1_a?op=get_object&ttl=60"}


def test_unexpected_error_is_500(monkeypatch, svc) -> None:
    def boom(*a, **kw):
        raise RuntimeError("table missing")

    monkeypatch.setattr(svc.stores.users, "list_all", boom)
    resp = functions.list_users(_event(method="GET"), None)
    assert resp["statusCode"] == 500
    assert _body(resp)["message"] == "Failed to get users"
