# taskhub/services/remote_api.py
"""
HTTP client for the separately deployed task backend (AWS_API_URL).

Every failure is raised as RemoteAPIError with a ``kind``; call sites log it
and fall back to local data. Nothing is retried.
"""
from __future__ import annotations

import logging
from typing import Any

import requests

from ..errors import RemoteAPIError
from ..records import Task, User

log = logging.getLogger(__name__)


class RemoteTaskAPI:
    def __init__(self, base_url: str, timeout: float = 10, session: requests.Session | None = None):
        self.base_url = (base_url or "").rstrip("/")
        self.timeout = timeout
        self.http = session or requests.Session()

    def _request(self, method: str, path: str, *, token: str | None = None, **kwargs) -> Any:
        headers = {"Accept": "application/json"}
        if token is not None:
            headers["Authorization"] = f"Bearer {token}"
        url = f"{self.base_url}{path}"
        try:
            r = self.http.request(method, url, headers=headers, timeout=self.timeout, **kwargs)
        except requests.Timeout as e:
            raise RemoteAPIError("timeout", f"{method} {path} timed out") from e
        except requests.ConnectionError as e:
            raise RemoteAPIError("connection_refused", f"cannot connect to {self.base_url}") from e
        except requests.RequestException as e:
            raise RemoteAPIError("http", str(e)) from e

        log.info("Remote API %s %s status=%s", method, path, r.status_code)
        try:
            data = r.json() if r.content else {}
        except ValueError:
            data = None

        if r.status_code == 403:
            raise RemoteAPIError("forbidden", f"{method} {path} forbidden", status=403, payload=data)
        if r.status_code >= 400:
            raise RemoteAPIError("http", f"{method} {path} failed", status=r.status_code, payload=data)
        if data is None:
            raise RemoteAPIError("invalid_response", f"{method} {path} returned non-JSON", status=r.status_code)
        return data

    def _object(self, method: str, path: str, **kwargs) -> dict:
        data = self._request(method, path, **kwargs)
        if not isinstance(data, dict):
            raise RemoteAPIError("invalid_response", f"{method} {path} did not return an object")
        return data

    def _users(self, method: str, path: str, **kwargs) -> list[User]:
        items = self._object(method, path, **kwargs).get("users") or []
        if not isinstance(items, list):
            raise RemoteAPIError("invalid_response", "users payload is not a list")
        return [User.from_remote(u) for u in items if isinstance(u, dict)]

    # -----------------
    # Auth
    # -----------------

    def register(self, username: str, email: str, password: str) -> dict:
        return self._object("POST", "/register", json={"username": username, "email": email, "password": password})

    def login(self, email: str, password: str) -> dict:
        return self._object("POST", "/login", json={"email": email, "password": password})

    # -----------------
    # Tasks
    # -----------------

    def list_tasks(self, token: str | None) -> list[Task]:
        data = self._request("GET", "/tasks", token=token)
        items = data.get("tasks", []) if isinstance(data, dict) else data
        if not isinstance(items, list):
            raise RemoteAPIError("invalid_response", "tasks payload is not a list")
        return [Task.from_remote(it) for it in items if isinstance(it, dict)]

    def create_task(self, task: Task, token: str | None) -> dict:
        return self._object("POST", "/tasks", token=token, json=task.to_payload())

    def update_task(self, task: Task, token: str | None) -> dict:
        return self._object("PUT", f"/tasks/{task.task_id}", token=token, json=task.to_payload())

    def delete_task(self, task_id: str, token: str | None) -> dict:
        return self._object("DELETE", f"/tasks/{task_id}", token=token)

    # -----------------
    # Users
    # -----------------

    def list_users(self, token: str | None) -> list[User]:
        return self._users("GET", "/users", token=token)

    def search_users(self, q: str, token: str | None) -> list[User]:
        return self._users("GET", "/users/search", token=token, params={"q": q})
