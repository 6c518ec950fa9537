# taskhub/errors.py
from __future__ import annotations


class TaskhubError(Exception):
    status_code = 500

    def __init__(self, message: str = "", status_code: int | None = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(TaskhubError):
    status_code = 400


class ConflictError(TaskhubError):
    # duplicate email / username; reported like a validation failure
    status_code = 400


class InvalidCredentials(TaskhubError):
    status_code = 401

    def __init__(self, message: str = "Invalid email or password"):
        super().__init__(message)


class AccessDenied(TaskhubError):
    status_code = 403


class NotFound(TaskhubError):
    status_code = 404


class StorageError(TaskhubError):
    status_code = 500


class RemoteAPIError(TaskhubError):
    """A call to the remote task API failed.

    ``kind`` is one of: connection_refused, timeout, forbidden, http,
    invalid_response.
    """
    status_code = 502

    def __init__(self, kind: str, message: str = "", status: int | None = None, payload: dict | None = None):
        super().__init__(message or kind)
        self.kind = kind
        self.status = status
        self.payload = payload or {}

    @property
    def remote_message(self) -> str | None:
        msg = self.payload.get("message") if isinstance(self.payload, dict) else None
        return msg or None
