# taskhub/stores/base.py
"""
Store interfaces. Services depend on these Protocols; the concrete backend
(dynamodb, sql, memory) is picked once when the app is built.

No store enforces uniqueness or access control: callers check-then-insert
and filter by ownership after retrieval.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from ..records import Comment, OperationResult, Task, User


class UserStore(Protocol):
    def find_by_email(self, email: str) -> User | None: ...

    def find_by_username(self, username: str) -> User | None: ...

    def get(self, user_id: str) -> User | None: ...

    def insert(self, user: User) -> User: ...

    def touch_last_login(self, user_id: str, timestamp: str) -> None: ...

    def list_all(self) -> list[User]: ...


class TaskStore(Protocol):
    def insert(self, task: Task) -> OperationResult:
        """Write the task, then one assignment row per assignee (best-effort)."""
        ...

    def list(self) -> list[Task]: ...

    def get(self, task_id: str) -> Task | None: ...

    def update(self, task: Task) -> Task: ...

    def delete(self, task_id: str) -> bool: ...


class CommentStore(Protocol):
    def insert(self, comment: Comment) -> None: ...

    def list_for_task(self, task_id: str) -> list[Comment]: ...

    def get(self, comment_id: str) -> Comment | None: ...

    def delete(self, comment_id: str) -> bool: ...


@dataclass(slots=True)
class Stores:
    users: UserStore
    tasks: TaskStore
    comments: CommentStore
