# tests/test_remote_api.py

from __future__ import annotations

from unittest.mock import MagicMock

import pytest
import requests

from taskhub.errors import RemoteAPIError
from taskhub.records import Task, User
from taskhub.services.remote_api import RemoteTaskAPI
from taskhub.services.task_service import TaskService


def _response(status: int, payload=None, text: str | None = None) -> MagicMock:
    r = MagicMock()
    r.status_code = status
    r.content = (text if text is not None else "x").encode()
    if payload is None:
        r.json.side_effect = ValueError("no json")
    else:
        r.json.return_value = payload
    return r


@pytest.fixture()
def http() -> MagicMock:
    return MagicMock(spec=requests.Session)


@pytest.fixture()
def api(http) -> RemoteTaskAPI:
    return RemoteTaskAPI("https://api.test/prod/", timeout=3, session=http)


def test_list_tasks_normalises_payload(api, http) -> None:
    http.request.return_value = _response(200, {"tasks": [
        {"TaskID": "t1", "Name": "One", "CreatedBy": "u1"},
        {"taskId": "t2", "name": "Two", "createdBy": "u2", "assignedTo": ["u1"]},
    ]})

    tasks = api.list_tasks("tok")

    assert [(t.task_id, t.created_by) for t in tasks] == [("t1", "u1"), ("t2", "u2")]
    args, kwargs = http.request.call_args
    assert args == ("GET", "https://api.test/prod/tasks")
    assert kwargs["headers"]["Authorization"] == "Bearer tok"
    assert kwargs["timeout"] == 3


def test_create_task_posts_payload(api, http) -> None:
    http.request.return_value = _response(200, {"success": True})
    api.create_task(Task(task_id="t1", name="One", created_by="u1"), "tok")
    args, kwargs = http.request.call_args
    assert args == ("POST", "https://api.test/prod/tasks")
    assert kwargs["json"]["id"] == "t1"


@pytest.mark.parametrize(
    "exc,kind",
    [
        (requests.Timeout("slow"), "timeout"),
        (requests.ConnectionError("refused"), "connection_refused"),
        (requests.RequestException("odd"), "http"),
    ],
)
def test_transport_errors_have_kinds(api, http, exc, kind) -> None:
    http.request.side_effect = exc
    with pytest.raises(RemoteAPIError) as info:
        api.list_tasks(None)
    assert info.value.kind == kind


def test_forbidden(api, http) -> None:
    http.request.return_value = _response(403, {"message": "nope"})
    with pytest.raises(RemoteAPIError) as info:
        api.list_users("tok")
    assert (info.value.kind, info.value.status) == ("forbidden", 403)


def test_http_error_carries_remote_message(api, http) -> None:
    http.request.return_value = _response(400, {"success": False, "message": "User with this email already exists"})
    with pytest.raises(RemoteAPIError) as info:
        api.register("a", "a@acme.io", "secret1")
    assert info.value.kind == "http"
    assert info.value.remote_message == "User with this email already exists"


def test_non_json_success_is_invalid_response(api, http) -> None:
    http.request.return_value = _response(200, None, text="<html>")
    with pytest.raises(RemoteAPIError) as info:
        api.login("a@acme.io", "pw")
    assert info.value.kind == "invalid_response"


def test_tasks_payload_must_be_a_list(api, http) -> None:
    http.request.return_value = _response(200, {"tasks": "oops"})
    with pytest.raises(RemoteAPIError, match="not a list"):
        api.list_tasks(None)


def test_search_users_sends_query(api, http) -> None:
    http.request.return_value = _response(200, {"users": [{"UserID": "u1", "Username": "al", "Email": "al@acme.io"}]})
    users = api.search_users("al", "tok")
    assert users[0].username == "al"
    assert http.request.call_args.kwargs["params"] == {"q": "al"}


@pytest.mark.parametrize("payload", [[{"UserID": "u1"}], ["not", "an", "object"], {"users": "oops"}])
def test_non_object_user_payloads_are_invalid_response(api, http, payload) -> None:
    http.request.return_value = _response(200, payload)
    for call in (lambda: api.list_users("tok"), lambda: api.search_users("al", "tok")):
        with pytest.raises(RemoteAPIError) as info:
            call()
        assert info.value.kind == "invalid_response"


def test_login_must_return_an_object(api, http) -> None:
    http.request.return_value = _response(200, ["ok"])
    with pytest.raises(RemoteAPIError) as info:
        api.login("a@acme.io", "pw")
    assert info.value.kind == "invalid_response"


def test_task_service_degrades_on_malformed_user_list(api, http, stores, attachments) -> None:
    stores.users.users.append(User(user_id="local", username="alice", email="alice@acme.io"))
    service = TaskService(stores.tasks, stores.comments, stores.users, attachments, api)
    http.request.return_value = _response(200, [{"UserID": "u1"}])

    assert [u.user_id for u in service.list_users("tok")] == ["local"]
    assert service.search_users("al", "tok") == []
