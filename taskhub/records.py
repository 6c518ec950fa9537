# taskhub/records.py
"""
Canonical record types shared by every store backend, the services and the
web layer. Field-name reconciliation for remote payloads happens here, once.
"""
from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any


DEFAULT_ROLE = "User"


def utcnow_iso() -> str:
    # Millisecond precision, "Z" suffix: lexical order == chronological order
    now = datetime.now(timezone.utc)
    return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"


def new_id() -> str:
    return str(uuid.uuid4())


def norm_id(val: Any) -> str:
    return "" if val is None else str(val).strip()


def _first(data: dict, *names, default=None):
    for n in names:
        if n in data and data[n] is not None:
            return data[n]
    return default


def split_ids(raw) -> list[str]:
    """Accepts a CSV string or a list and returns clean, non-empty ids."""
    if raw is None:
        return []
    if isinstance(raw, str):
        raw = raw.split(",")
    return [norm_id(v) for v in raw if norm_id(v)]


@dataclass(slots=True)
class User:
    user_id: str
    username: str
    email: str
    password_hash: str | None = None
    role: str = DEFAULT_ROLE
    created_at: str = field(default_factory=utcnow_iso)
    last_login: str | None = None

    def to_public(self) -> dict:
        return {
            "UserID": self.user_id,
            "Username": self.username,
            "Email": self.email,
            "Role": self.role,
            "CreatedAt": self.created_at,
            "LastLogin": self.last_login,
        }

    @classmethod
    def from_remote(cls, data: dict) -> "User":
        return cls(
            user_id=norm_id(_first(data, "UserID", "userId", "id")),
            username=_first(data, "Username", "username", default="") or "",
            email=_first(data, "Email", "email", default="") or "",
            role=_first(data, "Role", "role", default=DEFAULT_ROLE),
            created_at=_first(data, "CreatedAt", "createdAt", default="") or "",
            last_login=_first(data, "LastLogin", "lastLogin"),
        )


@dataclass(slots=True)
class Task:
    task_id: str
    name: str
    description: str = ""
    created_by: str = ""
    assigned_to: list[str] = field(default_factory=list)
    file_key: str | None = None
    file_url: str | None = None
    created_at: str = field(default_factory=utcnow_iso)

    def is_visible_to(self, user_id) -> bool:
        uid = norm_id(user_id)
        if not uid:
            return False
        return uid == norm_id(self.created_by) or uid in {norm_id(a) for a in self.assigned_to}

    def to_payload(self) -> dict:
        return {
            "id": self.task_id,
            "name": self.name,
            "description": self.description,
            "createdBy": self.created_by,
            "assignedTo": list(self.assigned_to),
            "fileKey": self.file_key,
            "fileUrl": self.file_url,
            "createdAt": self.created_at,
        }

    @classmethod
    def from_remote(cls, data: dict) -> "Task":
        """Normalise a task payload whatever casing the remote backend used."""
        return cls(
            task_id=norm_id(_first(data, "TaskID", "taskId", "id")),
            name=_first(data, "Name", "name", "taskName", default="") or "",
            description=_first(data, "Description", "description", "taskDescription", default="") or "",
            created_by=norm_id(_first(data, "CreatedBy", "createdBy")),
            assigned_to=split_ids(_first(data, "AssignedTo", "assignedTo", "assignedUsers", default=[])),
            file_key=_first(data, "FileKey", "fileKey"),
            file_url=_first(data, "FileUrl", "fileUrl"),
            created_at=_first(data, "CreatedAt", "createdAt", default="") or "",
        )


@dataclass(slots=True)
class TaskAssignment:
    task_id: str
    user_id: str
    assignment_id: str = field(default_factory=new_id)
    assigned_at: str = field(default_factory=utcnow_iso)


@dataclass(slots=True)
class Comment:
    comment_id: str
    task_id: str
    user_id: str
    text: str = ""
    attachment_keys: list[str] = field(default_factory=list)
    attachment_names: list[str] = field(default_factory=list)
    created_at: str = field(default_factory=utcnow_iso)
    # legacy single-file comments kept their URL at write time
    legacy_file_url: str | None = None

    def attachments(self) -> list[tuple[str, str]]:
        out = []
        for i, key in enumerate(self.attachment_keys):
            name = self.attachment_names[i] if i < len(self.attachment_names) else None
            out.append((key, name or key.rsplit("/", 1)[-1]))
        return out


# ---- operation results ----

@dataclass(slots=True)
class StepResult:
    name: str
    ok: bool
    reason: str | None = None


@dataclass(slots=True)
class OperationResult:
    name: str
    value: Any = None
    steps: list[StepResult] = field(default_factory=list)

    def record(self, name: str, ok: bool = True, reason: str | None = None) -> StepResult:
        step = StepResult(name=name, ok=ok, reason=reason)
        self.steps.append(step)
        return step

    def extend(self, other: "OperationResult") -> None:
        self.steps.extend(other.steps)

    @property
    def ok(self) -> bool:
        return all(s.ok for s in self.steps)

    @property
    def failures(self) -> list[StepResult]:
        return [s for s in self.steps if not s.ok]
