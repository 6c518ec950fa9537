# taskhub/stores/memory.py
"""
In-process stores for tests and local development.

State lives on the instance and is lost on restart. There is no locking:
concurrent requests appending to the same list can race, which is
acceptable for a dev adapter and the reason it is never picked implicitly.
"""
from __future__ import annotations

import logging
from dataclasses import replace

from ..records import Comment, OperationResult, Task, TaskAssignment, User, norm_id

log = logging.getLogger(__name__)


class MemoryUserStore:
    def __init__(self, users: list[User] | None = None):
        self.users: list[User] = list(users or [])

    def find_by_email(self, email):
        return next((u for u in self.users if u.email == email), None)

    def find_by_username(self, username):
        return next((u for u in self.users if u.username == username), None)

    def get(self, user_id):
        uid = norm_id(user_id)
        return next((u for u in self.users if u.user_id == uid), None)

    def insert(self, user: User) -> User:
        self.users.append(user)
        return user

    def touch_last_login(self, user_id, timestamp):
        u = self.get(user_id)
        if u is not None:
            u.last_login = timestamp

    def list_all(self):
        return list(self.users)


class MemoryTaskStore:
    def __init__(self):
        self.tasks: list[Task] = []
        self.assignments: list[TaskAssignment] = []
        # user ids whose assignment write should fail (tests)
        self.failing_assignees: set[str] = set()

    def insert(self, task: Task) -> OperationResult:
        self.tasks.append(task)
        result = OperationResult("insert_task", value=task)
        result.record("put_task")
        for user_id in task.assigned_to:
            step = f"assignment:{user_id}"
            if user_id in self.failing_assignees:
                log.warning("Failed to write task assignment for %s", user_id)
                result.record(step, ok=False, reason="assignment write rejected")
                continue
            self.assignments.append(TaskAssignment(task_id=task.task_id, user_id=user_id))
            result.record(step)
        return result

    def list(self):
        return list(self.tasks)

    def get(self, task_id):
        tid = norm_id(task_id)
        return next((t for t in self.tasks if t.task_id == tid), None)

    def update(self, task: Task) -> Task:
        for i, t in enumerate(self.tasks):
            if t.task_id == task.task_id:
                self.tasks[i] = replace(task)
                return task
        raise KeyError(task.task_id)

    def delete(self, task_id) -> bool:
        tid = norm_id(task_id)
        before = len(self.tasks)
        self.tasks = [t for t in self.tasks if t.task_id != tid]
        return len(self.tasks) != before


class MemoryCommentStore:
    def __init__(self):
        self.comments: list[Comment] = []

    def insert(self, comment: Comment) -> None:
        self.comments.append(comment)

    def list_for_task(self, task_id):
        tid = norm_id(task_id)
        return [c for c in self.comments if c.task_id == tid]

    def get(self, comment_id):
        cid = norm_id(comment_id)
        return next((c for c in self.comments if c.comment_id == cid), None)

    def delete(self, comment_id) -> bool:
        cid = norm_id(comment_id)
        before = len(self.comments)
        self.comments = [c for c in self.comments if c.comment_id != cid]
        return len(self.comments) != before
