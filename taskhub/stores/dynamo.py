# taskhub/stores/dynamo.py
"""
Document-store backend over DynamoDB tables.

Attribute names keep the wire shape the serverless functions have always
written (UserID, TaskID, CreatedAt, ...). Lookups other than by primary key
are filtered full scans, paginated with LastEvaluatedKey.
"""
from __future__ import annotations

import logging
from typing import Any

import boto3
from boto3.dynamodb.conditions import Attr
from botocore.config import Config as BotoConfig
from botocore.exceptions import BotoCoreError, ClientError

from ..records import Comment, OperationResult, Task, TaskAssignment, User, DEFAULT_ROLE, norm_id

log = logging.getLogger(__name__)

# fixed timeouts, no retries: failures are handled once by the caller
BOTO_CONFIG = BotoConfig(connect_timeout=5, read_timeout=10, retries={"total_max_attempts": 1})


def dynamo_resource(region: str | None = None) -> Any:
    return boto3.resource("dynamodb", region_name=region, config=BOTO_CONFIG)


def _scan(table, **kwargs) -> list[dict]:
    items: list[dict] = []
    start_key = None
    while True:
        if start_key:
            kwargs["ExclusiveStartKey"] = start_key
        page = table.scan(**kwargs)
        items.extend(page.get("Items", []) or [])
        start_key = page.get("LastEvaluatedKey")
        if not start_key:
            break
    return items


# ---- item <-> record ----

def user_from_item(it: dict) -> User:
    return User(
        user_id=norm_id(it.get("UserID")),
        username=it.get("Username") or "",
        email=it.get("Email") or "",
        password_hash=it.get("Password"),
        role=it.get("Role") or DEFAULT_ROLE,
        created_at=it.get("CreatedAt") or "",
        last_login=it.get("LastLogin"),
    )


def user_to_item(u: User) -> dict:
    return {
        "UserID": u.user_id,
        "Username": u.username,
        "Email": u.email,
        "Password": u.password_hash,
        "Role": u.role,
        "CreatedAt": u.created_at,
        "LastLogin": u.last_login,
    }


def task_from_item(it: dict) -> Task:
    return Task(
        task_id=norm_id(it.get("TaskID")),
        name=it.get("Name") or "",
        description=it.get("Description") or "",
        created_by=norm_id(it.get("CreatedBy")),
        assigned_to=[norm_id(a) for a in (it.get("AssignedTo") or [])],
        file_key=it.get("FileKey") or None,
        file_url=it.get("FileUrl") or None,
        created_at=it.get("CreatedAt") or "",
    )


def task_to_item(t: Task) -> dict:
    return {
        "TaskID": t.task_id,
        "Name": t.name,
        "Description": t.description,
        "CreatedBy": t.created_by,
        "AssignedTo": list(t.assigned_to),
        "FileKey": t.file_key,
        "FileUrl": t.file_url,
        "CreatedAt": t.created_at,
    }


def comment_from_item(it: dict) -> Comment:
    keys = list(it.get("FileKeys") or [])
    names = list(it.get("FileNames") or [])
    legacy_url = None
    # legacy rows: a single FileKey/FileUrl pair instead of the arrays
    if not keys and it.get("FileKey"):
        keys = [it["FileKey"]]
        names = [it.get("FileName") or it["FileKey"].rsplit("/", 1)[-1]]
        legacy_url = it.get("FileUrl")
    return Comment(
        comment_id=norm_id(it.get("CommentID")),
        task_id=norm_id(it.get("TaskID")),
        user_id=norm_id(it.get("UserID")),
        text=it.get("Text") or "",
        attachment_keys=keys,
        attachment_names=names,
        created_at=it.get("CreatedAt") or "",
        legacy_file_url=legacy_url,
    )


def comment_to_item(c: Comment) -> dict:
    return {
        "CommentID": c.comment_id,
        "TaskID": c.task_id,
        "UserID": c.user_id,
        "Text": c.text,
        "FileKeys": list(c.attachment_keys),
        "FileNames": list(c.attachment_names),
        "CreatedAt": c.created_at,
    }


# ---- stores ----

class DynamoUserStore:
    def __init__(self, table):
        self.table = table

    def _find(self, attr: str, value: str) -> User | None:
        items = _scan(self.table, FilterExpression=Attr(attr).eq(value))
        return user_from_item(items[0]) if items else None

    def find_by_email(self, email):
        return self._find("Email", email)

    def find_by_username(self, username):
        return self._find("Username", username)

    def get(self, user_id):
        resp = self.table.get_item(Key={"UserID": norm_id(user_id)})
        item = resp.get("Item")
        return user_from_item(item) if item else None

    def insert(self, user: User) -> User:
        self.table.put_item(Item=user_to_item(user))
        return user

    def touch_last_login(self, user_id, timestamp):
        self.table.update_item(
            Key={"UserID": norm_id(user_id)},
            UpdateExpression="set LastLogin = :lastLogin",
            ExpressionAttributeValues={":lastLogin": timestamp},
        )

    def list_all(self):
        return [user_from_item(it) for it in _scan(self.table)]


class DynamoTaskStore:
    def __init__(self, table, assignments_table):
        self.table = table
        self.assignments_table = assignments_table

    def insert(self, task: Task) -> OperationResult:
        self.table.put_item(Item=task_to_item(task))
        result = OperationResult("insert_task", value=task)
        result.record("put_task")

        for user_id in task.assigned_to:
            a = TaskAssignment(task_id=task.task_id, user_id=user_id)
            step = f"assignment:{user_id}"
            try:
                self.assignments_table.put_item(Item={
                    "AssignmentID": a.assignment_id,
                    "TaskID": a.task_id,
                    "UserID": a.user_id,
                    "AssignedAt": a.assigned_at,
                })
                result.record(step)
            except (ClientError, BotoCoreError) as e:
                log.warning("Failed to write task assignment for %s: %s", user_id, e)
                result.record(step, ok=False, reason=str(e))
        return result

    def list(self):
        return [task_from_item(it) for it in _scan(self.table)]

    def get(self, task_id):
        resp = self.table.get_item(Key={"TaskID": norm_id(task_id)})
        item = resp.get("Item")
        return task_from_item(item) if item else None

    def update(self, task: Task) -> Task:
        self.table.update_item(
            Key={"TaskID": task.task_id},
            UpdateExpression="set #n = :name, Description = :desc, AssignedTo = :assigned",
            ExpressionAttributeNames={"#n": "Name"},
            ExpressionAttributeValues={
                ":name": task.name,
                ":desc": task.description,
                ":assigned": list(task.assigned_to),
            },
        )
        return task

    def delete(self, task_id) -> bool:
        resp = self.table.delete_item(Key={"TaskID": norm_id(task_id)}, ReturnValues="ALL_OLD")
        return bool(resp.get("Attributes"))


class DynamoCommentStore:
    def __init__(self, table):
        self.table = table

    def insert(self, comment: Comment) -> None:
        self.table.put_item(Item=comment_to_item(comment))

    def list_for_task(self, task_id):
        items = _scan(self.table, FilterExpression=Attr("TaskID").eq(norm_id(task_id)))
        return [comment_from_item(it) for it in items]

    def get(self, comment_id):
        resp = self.table.get_item(Key={"CommentID": norm_id(comment_id)})
        item = resp.get("Item")
        return comment_from_item(item) if item else None

    def delete(self, comment_id) -> bool:
        self.table.delete_item(Key={"CommentID": norm_id(comment_id)})
        return True
