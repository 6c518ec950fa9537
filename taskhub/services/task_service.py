# taskhub/services/task_service.py
"""
Task, comment and attachment flows used by the web layer.

Access control lives here and in the routes, never in the stores: a task is
visible to its creator and to its assignees only.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from itertools import zip_longest

from ..errors import AccessDenied, NotFound, RemoteAPIError, StorageError, ValidationError
from ..records import Comment, OperationResult, Task, User, new_id, norm_id, utcnow_iso

log = logging.getLogger(__name__)


@dataclass(slots=True)
class FileEntry:
    key: str
    name: str
    url: str | None
    uploaded_by: str
    uploaded_at: str
    source: str  # "task" | "comment"
    comment_id: str | None = None
    index: int = 0


def newest_first(tasks: list[Task]) -> list[Task]:
    return sorted(tasks, key=lambda t: t.created_at or "", reverse=True)


def user_names(users: list[User]) -> dict[str, str]:
    return {u.user_id: u.username for u in users if u.user_id}


class TaskService:
    def __init__(self, tasks, comments, users, attachments, remote=None, *,
                 list_ttl: int = 60, download_ttl: int = 3600,
                 task_prefix: str = "tasks", comment_prefix: str = "comments"):
        self.tasks = tasks
        self.comments = comments
        self.users = users
        self.attachments = attachments
        self.remote = remote
        self.list_ttl = list_ttl
        self.download_ttl = download_ttl
        self.task_prefix = task_prefix
        self.comment_prefix = comment_prefix

    def _remote_failed(self, action: str, e: RemoteAPIError):
        log.warning("Remote API %s failed (%s%s): %s", action, e.kind,
                    f" {e.status}" if e.status else "", e.message)

    # -----------------
    # Users
    # -----------------

    def list_users(self, token: str | None = None) -> list[User]:
        if self.remote:
            try:
                return self.remote.list_users(token)
            except RemoteAPIError as e:
                self._remote_failed("list users", e)
        return self.users.list_all()

    def search_users(self, q: str, token: str | None = None) -> list[User]:
        q = (q or "").strip().lower()
        if not q:
            return []
        if self.remote:
            try:
                return self.remote.search_users(q, token)
            except RemoteAPIError as e:
                self._remote_failed("user search", e)
                return []
        return [u for u in self.users.list_all() if q in (u.username + u.email).lower()]

    # -----------------
    # Tasks
    # -----------------

    def list_tasks(self, token: str | None = None) -> list[Task]:
        # A reachable remote backend is authoritative: its list replaces ours.
        if self.remote:
            try:
                return self.remote.list_tasks(token)
            except RemoteAPIError as e:
                self._remote_failed("list tasks", e)
        return self.tasks.list()

    def visible_tasks(self, user_id, token: str | None = None) -> list[Task]:
        return newest_first([t for t in self.list_tasks(token) if t.is_visible_to(user_id)])

    def find_task(self, task_id, token: str | None = None) -> Task | None:
        if self.remote:
            # same source as the list views: remote when reachable, else local
            tid = norm_id(task_id)
            return next((t for t in self.list_tasks(token) if t.task_id == tid), None)
        return self.tasks.get(task_id)

    def get_visible_task(self, task_id, user_id, token: str | None = None) -> Task:
        task = self.find_task(task_id, token)
        if task is None:
            raise NotFound("Task not found")
        if not task.is_visible_to(user_id):
            raise AccessDenied("You do not have access to this task")
        return task

    def create_task(self, *, name: str, description: str, created_by: str,
                    assigned_to: list[str], file_key: str | None = None,
                    token: str | None = None) -> OperationResult:
        name = (name or "").strip()
        if not name:
            raise ValidationError("Task name is required")

        task = Task(
            task_id=new_id(),
            name=name,
            description=(description or "").strip(),
            created_by=norm_id(created_by),
            assigned_to=list(dict.fromkeys(norm_id(a) for a in assigned_to if norm_id(a))),
            file_key=file_key or None,
            file_url=self.attachments.object_url(file_key) if file_key else None,
            created_at=utcnow_iso(),
        )
        result = self.tasks.insert(task)
        if self.remote:
            try:
                self.remote.create_task(task, token)
                result.record("notify_remote")
            except RemoteAPIError as e:
                self._remote_failed("create task", e)
                result.record("notify_remote", ok=False, reason=e.kind)
        return result

    def update_task(self, task_id, user_id, *, name: str, description: str,
                    assigned_to: list[str], token: str | None = None) -> Task:
        task = self.get_visible_task(task_id, user_id, token)
        name = (name or "").strip()
        if not name:
            raise ValidationError("Task name is required")

        # attachment, creator and creation time are preserved
        task.name = name
        task.description = (description or "").strip()
        task.assigned_to = list(dict.fromkeys(norm_id(a) for a in assigned_to if norm_id(a)))
        # tasks known only to the remote backend have no local row
        if self.tasks.get(task.task_id) is not None:
            self.tasks.update(task)

        if self.remote:
            try:
                self.remote.update_task(task, token)
            except RemoteAPIError as e:
                self._remote_failed("update task", e)
        return task

    def delete_task(self, task_id, user_id, token: str | None = None) -> OperationResult:
        """Non-transactional cascade. Only a missing task (or no access) is fatal."""
        task = self.get_visible_task(task_id, user_id, token)
        result = OperationResult("delete_task", value=task.task_id)

        try:
            comments = self.comments.list_for_task(task.task_id)
            result.record("list_comments")
        except Exception as e:
            log.warning("Could not list comments for task %s: %s", task.task_id, e)
            result.record("list_comments", ok=False, reason=str(e))
            comments = []

        keys = [task.file_key] if task.file_key else []
        for c in comments:
            keys.extend(c.attachment_keys)

        if keys:
            try:
                result.extend(self.attachments.batch_delete(keys))
            except Exception as e:
                log.warning("Attachment cleanup failed for task %s: %s", task.task_id, e)
                result.record("delete_objects", ok=False, reason=str(e))

        for c in comments:
            step = f"delete_comment:{c.comment_id}"
            try:
                self.comments.delete(c.comment_id)
                result.record(step)
            except Exception as e:
                log.warning("Failed to delete comment %s: %s", c.comment_id, e)
                result.record(step, ok=False, reason=str(e))

        self.tasks.delete(task.task_id)
        result.record("delete_task")

        if self.remote:
            try:
                self.remote.delete_task(task.task_id, token)
                result.record("notify_remote")
            except RemoteAPIError as e:
                self._remote_failed("delete task", e)
                result.record("notify_remote", ok=False, reason=e.kind)

        for f in result.failures:
            log.warning("delete_task %s: step %s failed: %s", task.task_id, f.name, f.reason)
        return result

    def download_urls(self, tasks: list[Task]) -> dict[str, str | None]:
        """task_id -> short-lived URL (or the stored URL if signing fails)."""
        with_files = [t for t in tasks if t.file_key]
        signed = self.attachments.sign_many(
            [t.file_key for t in with_files],
            ttl=self.list_ttl,
            fallbacks={t.file_key: t.file_url for t in with_files},
        )
        return {t.task_id: (signed.get(t.file_key) if t.file_key else t.file_url) for t in tasks}

    # -----------------
    # Comments
    # -----------------

    def add_comment(self, task_id, user_id, *, text: str, keys: list[str] | None = None,
                    names: list[str] | None = None, uploads=None,
                    token: str | None = None) -> OperationResult:
        """``uploads`` is an iterable of (filename, bytes, content_type) stored server-side."""
        task = self.get_visible_task(task_id, user_id, token)
        text = (text or "").strip()
        # pair before dropping blank keys so names stay on their own key
        pairs = [(k, n) for k, n in zip_longest(keys or [], names or []) if k]
        keys = [k for k, _ in pairs]
        names = [n or k.rsplit("/", 1)[-1] for k, n in pairs]
        uploads = list(uploads or [])

        if not text and not keys and not uploads:
            raise ValidationError("Comment cannot be empty")

        result = OperationResult("add_comment")
        for filename, data, content_type in uploads:
            step = f"upload:{filename}"
            try:
                key = self.attachments.make_key(filename, self.comment_prefix)
                self.attachments.put_object(key, data, content_type or "application/octet-stream")
            except (StorageError, ValueError) as e:
                log.warning("Comment upload %s failed: %s", filename, e)
                result.record(step, ok=False, reason=str(e))
                continue
            keys.append(key)
            names.append(filename)
            result.record(step)

        comment = Comment(
            comment_id=new_id(),
            task_id=task.task_id,
            user_id=norm_id(user_id),
            text=text,
            attachment_keys=keys,
            attachment_names=names,
            created_at=utcnow_iso(),
        )
        self.comments.insert(comment)
        result.record("insert_comment")
        result.value = comment
        return result

    def comment_thread(self, task_id) -> list[dict]:
        """Comments oldest first, each key resolved to a fresh URL (None if unsignable)."""
        comments = sorted(self.comments.list_for_task(task_id), key=lambda c: c.created_at or "")
        fallbacks = {}
        for c in comments:
            if c.legacy_file_url and c.attachment_keys:
                fallbacks[c.attachment_keys[0]] = c.legacy_file_url
        signed = self.attachments.sign_many(
            [k for c in comments for k in c.attachment_keys], ttl=self.list_ttl, fallbacks=fallbacks,
        )
        thread = []
        for c in comments:
            files = [{"key": k, "name": n, "url": signed.get(k)} for k, n in c.attachments()]
            thread.append({"comment": c, "files": files})
        return thread

    # -----------------
    # Files
    # -----------------

    def task_files(self, task: Task) -> list[FileEntry]:
        entries: list[FileEntry] = []
        fallbacks = {}
        if task.file_key:
            entries.append(FileEntry(
                key=task.file_key, name=task.file_key.rsplit("/", 1)[-1], url=None,
                uploaded_by=task.created_by, uploaded_at=task.created_at, source="task",
            ))
            fallbacks[task.file_key] = task.file_url

        for c in self.comments.list_for_task(task.task_id):
            if c.legacy_file_url and c.attachment_keys:
                fallbacks[c.attachment_keys[0]] = c.legacy_file_url
            for i, (key, name) in enumerate(c.attachments()):
                entries.append(FileEntry(
                    key=key, name=name, url=None, uploaded_by=c.user_id,
                    uploaded_at=c.created_at, source="comment", comment_id=c.comment_id, index=i,
                ))

        signed = self.attachments.sign_many([e.key for e in entries], ttl=self.list_ttl, fallbacks=fallbacks)
        for e in entries:
            e.url = signed.get(e.key)
        return sorted(entries, key=lambda e: e.uploaded_at or "", reverse=True)

    def resolve_file_key(self, task: Task, comment_id=None, file_index: int = 0) -> str:
        if not comment_id:
            if not task.file_key:
                raise NotFound("This task has no attachment")
            return task.file_key
        c = self.comments.get(comment_id)
        if c is None or c.task_id != task.task_id:
            raise NotFound("Comment not found")
        keys = c.attachment_keys
        if file_index < 0 or file_index >= len(keys):
            raise NotFound("Attachment not found")
        return keys[file_index]

    def task_for_key(self, key: str, user_id, token: str | None = None) -> Task:
        """The visible task that owns ``key`` (as its own file or via a comment)."""
        for t in self.visible_tasks(user_id, token):
            if t.file_key == key:
                return t
            if any(key in c.attachment_keys for c in self.comments.list_for_task(t.task_id)):
                return t
        raise NotFound("File not found")

    def stored_url(self, task: Task, key: str) -> str | None:
        """Non-expiring URL recorded at write time for ``key``, if any."""
        if key == task.file_key:
            return task.file_url
        for c in self.comments.list_for_task(task.task_id):
            if c.legacy_file_url and c.attachment_keys[:1] == [key]:
                return c.legacy_file_url
        return None

    def signed_download(self, key: str, fallback: str | None = None) -> str:
        try:
            return self.attachments.signed_get_url(key, self.download_ttl)
        except StorageError as e:
            if not fallback:
                raise
            log.warning("Signing %s failed, using stored URL: %s", key, e)
            return fallback
