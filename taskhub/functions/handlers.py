# taskhub/functions/handlers.py
"""
Serverless entry points (API Gateway proxy events).

Each handler takes ``(event, context)`` and returns
``{"statusCode", "headers", "body"}`` with permissive CORS headers. They run
against the same stores and services as the web app, through one lazily
built application.
"""
from __future__ import annotations

import base64
import functools
import json
import logging
from typing import Any

from .. import create_app
from ..errors import ConflictError, InvalidCredentials, StorageError, ValidationError
from ..records import split_ids
from ..services import services

log = logging.getLogger(__name__)

CORS_HEADERS = {
    "Content-Type": "application/json",
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, PUT, DELETE, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization, X-Requested-With",
}

_app = None


def set_app(app) -> None:
    global _app
    _app = app


def _get_app():
    global _app
    if _app is None:
        _app = create_app()
    return _app


def _response(status_code: int, body: dict[str, Any] | None) -> dict[str, Any]:
    return {
        "statusCode": int(status_code),
        "headers": dict(CORS_HEADERS),
        "body": "" if body is None else json.dumps(body),
    }


def _fail(status_code: int, message: str) -> dict[str, Any]:
    return _response(status_code, {"message": message, "success": False})


def _parse_body(event: dict[str, Any]) -> tuple[dict[str, Any] | None, str | None]:
    raw = event.get("body")
    if raw is None:
        return {}, None
    if isinstance(raw, dict):
        return raw, None
    if event.get("isBase64Encoded"):
        try:
            raw = base64.b64decode(raw.encode("utf-8")).decode("utf-8")
        except Exception:
            return None, "Invalid JSON in request body"
    if not str(raw).strip():
        return {}, None
    try:
        parsed = json.loads(raw)
    except ValueError:
        return None, "Invalid JSON in request body"
    if not isinstance(parsed, dict):
        return None, "Invalid JSON in request body"
    return parsed, None


def _query_param(event: dict[str, Any], key: str) -> str:
    qs = event.get("queryStringParameters") or {}
    val = qs.get(key) if isinstance(qs, dict) else None
    return str(val).strip() if val is not None else ""


def _bearer(event: dict[str, Any]) -> str:
    headers = {str(k).lower(): v for k, v in (event.get("headers") or {}).items()}
    auth = str(headers.get("authorization") or "")
    return auth[7:].strip() if auth.lower().startswith("bearer ") else ""


def _preflight(event) -> bool:
    return str(event.get("httpMethod") or "").upper() == "OPTIONS"


def lambda_handler(error_message: str):
    """Shared plumbing: CORS preflight, body parsing, app context, last-resort 500."""
    def deco(fn):
        @functools.wraps(fn)
        def wrapper(event, context=None):
            event = event or {}
            if _preflight(event):
                return _response(200, None)
            body, err = _parse_body(event)
            if err:
                return _fail(400, err)
            with _get_app().app_context():
                try:
                    return fn(event, body, services())
                except Exception as e:
                    log.exception("%s failed: %s", fn.__name__, e)
                    return _response(500, {"message": error_message, "success": False, "error": str(e)})
        return wrapper
    return deco


# -----------------
# Auth
# -----------------

@lambda_handler("Server error during registration")
def register(event, body, svc):
    try:
        user = svc.auth.register(body.get("username"), body.get("email"), body.get("password"))
    except (ValidationError, ConflictError) as e:
        return _fail(400, e.message)
    return _response(201, {
        "message": "User registered successfully!",
        "success": True,
        "user": {"UserID": user.user_id, "Username": user.username, "Email": user.email, "Role": user.role},
    })


@lambda_handler("Server error during login")
def login(event, body, svc):
    try:
        user, token = svc.auth.login(body.get("email"), body.get("password"))
    except ValidationError as e:
        return _fail(400, e.message)
    except InvalidCredentials as e:
        return _fail(401, e.message)
    return _response(200, {
        "message": "Login successful!",
        "success": True,
        "token": token,
        "user": {"UserID": user.user_id, "Username": user.username, "Email": user.email, "Role": user.role},
    })


@lambda_handler("Internal server error")
def get_profile(event, body, svc):
    try:
        user = svc.auth.profile(_bearer(event))
    except InvalidCredentials as e:
        return _fail(401, e.message)
    return _response(200, {"success": True, "user": user.to_public()})


# -----------------
# Users
# -----------------

@lambda_handler("Failed to get users")
def list_users(event, body, svc):
    users = [u.to_public() for u in svc.stores.users.list_all()]
    log.info("Found users: %d", len(users))
    return _response(200, {
        "message": "Users retrieved successfully!",
        "success": True,
        "count": len(users),
        "users": users,
    })


# -----------------
# Tasks
# -----------------

@lambda_handler("Could not create task")
def create_task(event, body, svc):
    try:
        result = svc.tasks.create_task(
            name=body.get("taskName") or "Untitled",
            description=body.get("taskDescription") or "",
            created_by=body.get("createdBy") or "unknown",
            assigned_to=split_ids(body.get("assignedUsers")),
            file_key=body.get("fileKey") or None,
        )
    except ValidationError as e:
        return _fail(400, e.message)
    task = result.value
    return _response(200, {
        "success": True,
        "task": task.to_payload(),
        "warnings": [f"{s.name}: {s.reason}" for s in result.failures],
    })


# -----------------
# Presigned URLs
# -----------------

@lambda_handler("Could not create presigned URL")
def presign_upload(event, body, svc):
    filename = _query_param(event, "filename")
    content_type = _query_param(event, "contentType") or "application/octet-stream"
    if not filename:
        return _response(400, {"error": "filename required"})
    cfg = _get_app().config
    try:
        url, key = svc.attachments.signed_put_url(filename, content_type, cfg["UPLOAD_URL_TTL"], cfg["UPLOAD_KEY_PREFIX"])
    except (StorageError, ValueError) as e:
        log.error("presign_upload failed: %s", e)
        return _response(500, {"error": "Could not create presigned URL"})
    return _response(200, {"url": url, "key": key})


@lambda_handler("Could not create presigned download URL")
def presign_download(event, body, svc):
    key = _query_param(event, "key")
    if not key:
        return _response(400, {"error": "key required"})
    try:
        url = svc.attachments.signed_get_url(key, _get_app().config["LIST_URL_TTL"])
    except StorageError as e:
        log.error("presign_download failed: %s", e)
        return _response(500, {"error": "Could not create presigned download URL"})
    return _response(200, {"url": url})
