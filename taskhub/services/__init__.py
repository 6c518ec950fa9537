# taskhub/services/__init__.py
from __future__ import annotations

from dataclasses import dataclass

from flask import current_app

from ..stores import Stores
from .auth_service import AuthService, TokenSigner
from .remote_api import RemoteTaskAPI
from .storage_service import AttachmentService, s3_client
from .task_service import TaskService


@dataclass(slots=True)
class Services:
    stores: Stores
    auth: AuthService
    attachments: AttachmentService
    tasks: TaskService
    remote: RemoteTaskAPI | None = None


def build_services(config, stores: Stores, *, s3=None, remote=None) -> Services:
    bucket = config.get("S3_BUCKET")
    if s3 is None and bucket:
        s3 = s3_client(config.get("AWS_REGION"))
    attachments = AttachmentService(s3, bucket, config.get("AWS_REGION") or "us-east-1")

    if remote is None and config.get("AWS_API_URL"):
        remote = RemoteTaskAPI(config["AWS_API_URL"], timeout=config.get("REMOTE_API_TIMEOUT", 10))

    signer = TokenSigner(config.get("TOKEN_SECRET"), ttl=config.get("TOKEN_TTL_SECONDS", 24 * 60 * 60))
    auth = AuthService(stores.users, signer, hash_method=config.get("PASSWORD_HASH_METHOD", "scrypt:32768:8:1"))
    tasks = TaskService(
        stores.tasks, stores.comments, stores.users, attachments, remote,
        list_ttl=config.get("LIST_URL_TTL", 60),
        download_ttl=config.get("DOWNLOAD_URL_TTL", 3600),
        task_prefix=config.get("UPLOAD_KEY_PREFIX", "tasks"),
        comment_prefix=config.get("COMMENT_KEY_PREFIX", "comments"),
    )
    return Services(stores=stores, auth=auth, attachments=attachments, tasks=tasks, remote=remote)


def services() -> Services:
    return current_app.extensions["taskhub"]
