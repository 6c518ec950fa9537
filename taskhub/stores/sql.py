# taskhub/stores/sql.py
"""Relational backend over Flask-SQLAlchemy. Requires an app context."""
from __future__ import annotations

import logging

from sqlalchemy.exc import SQLAlchemyError

from ..extensions import db
from ..models import AssignmentRow, CommentRow, TaskRow, UserRow
from ..records import Comment, OperationResult, Task, TaskAssignment, User, norm_id

log = logging.getLogger(__name__)


class SqlUserStore:
    def find_by_email(self, email):
        row = UserRow.query.filter_by(email=email).first()
        return row.to_record() if row else None

    def find_by_username(self, username):
        row = UserRow.query.filter_by(username=username).first()
        return row.to_record() if row else None

    def get(self, user_id):
        row = db.session.get(UserRow, norm_id(user_id))
        return row.to_record() if row else None

    def insert(self, user: User) -> User:
        db.session.add(UserRow.from_record(user))
        db.session.commit()
        return user

    def touch_last_login(self, user_id, timestamp):
        row = db.session.get(UserRow, norm_id(user_id))
        if row is None:
            return
        row.last_login = timestamp
        db.session.commit()

    def list_all(self):
        return [r.to_record() for r in UserRow.query.order_by(UserRow.created_at.asc()).all()]


class SqlTaskStore:
    def insert(self, task: Task) -> OperationResult:
        db.session.add(TaskRow(id=task.task_id).apply(task))
        db.session.commit()

        result = OperationResult("insert_task", value=task)
        result.record("put_task")

        # assignments are best-effort: one commit per row
        for user_id in task.assigned_to:
            a = TaskAssignment(task_id=task.task_id, user_id=user_id)
            step = f"assignment:{user_id}"
            try:
                db.session.add(AssignmentRow(
                    id=a.assignment_id, task_id=a.task_id,
                    user_id=a.user_id, assigned_at=a.assigned_at,
                ))
                db.session.commit()
                result.record(step)
            except SQLAlchemyError as e:
                db.session.rollback()
                log.warning("Failed to write task assignment for %s: %s", user_id, e)
                result.record(step, ok=False, reason=str(e))
        return result

    def list(self):
        return [r.to_record() for r in TaskRow.query.all()]

    def get(self, task_id):
        row = db.session.get(TaskRow, norm_id(task_id))
        return row.to_record() if row else None

    def update(self, task: Task) -> Task:
        row = db.session.get(TaskRow, task.task_id)
        if row is None:
            raise KeyError(task.task_id)
        row.apply(task)
        db.session.commit()
        return task

    def delete(self, task_id) -> bool:
        row = db.session.get(TaskRow, norm_id(task_id))
        if row is None:
            return False
        db.session.delete(row)
        db.session.commit()
        return True


class SqlCommentStore:
    def insert(self, comment: Comment) -> None:
        db.session.add(CommentRow.from_record(comment))
        db.session.commit()

    def list_for_task(self, task_id):
        rows = CommentRow.query.filter_by(task_id=norm_id(task_id)).all()
        return [r.to_record() for r in rows]

    def get(self, comment_id):
        row = db.session.get(CommentRow, norm_id(comment_id))
        return row.to_record() if row else None

    def delete(self, comment_id) -> bool:
        row = db.session.get(CommentRow, norm_id(comment_id))
        if row is None:
            return False
        db.session.delete(row)
        db.session.commit()
        return True
