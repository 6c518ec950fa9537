# tests/conftest.py

from __future__ import annotations

from pathlib import Path

import pytest

from taskhub import create_app
from taskhub.config import Config
from taskhub.services import build_services
from taskhub.services.auth_service import AuthService, TokenSigner
from taskhub.services.storage_service import AttachmentService
from taskhub.services.task_service import TaskService
from taskhub.stores import Stores
from taskhub.stores.memory import MemoryCommentStore, MemoryTaskStore, MemoryUserStore

from .fakes import FakeS3Client

# cheap hashing keeps the suite fast; production uses scrypt
FAST_HASH = "pbkdf2:sha256:1000"
PASSWORD = "secret123"


class TaskhubTestConfig(Config):
    TESTING = True
    ENV = "testing"
    SECRET_KEY = "test-secret"
    WTF_CSRF_ENABLED = False
    STORE_BACKEND = "memory"
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    TOKEN_SECRET = "test-token-secret"
    PASSWORD_HASH_METHOD = FAST_HASH
    S3_BUCKET = "test-bucket"
    AWS_REGION = "us-east-1"
    AWS_API_URL = ""
    DEV_ALLOW_PRESIGN = False
    LOG_LEVEL = "WARNING"
    LOG_JSON = False
    SENTRY_DSN = ""


def config_values(cfg) -> dict:
    return {k: getattr(cfg, k) for k in dir(cfg) if k.isupper()}


@pytest.fixture()
def config(tmp_path: Path):
    return type("Cfg", (TaskhubTestConfig,), {"LOG_DIR": str(tmp_path / "logs")})


@pytest.fixture()
def stores() -> Stores:
    return Stores(users=MemoryUserStore(), tasks=MemoryTaskStore(), comments=MemoryCommentStore())


@pytest.fixture()
def s3() -> FakeS3Client:
    return FakeS3Client()


@pytest.fixture()
def remote():
    """Override in a test module to run the app against a FakeRemoteAPI."""
    return None


@pytest.fixture()
def app(config, stores, s3, remote):
    svc = build_services(config_values(config), stores, s3=s3, remote=remote)
    return create_app(config, services=svc)


@pytest.fixture()
def client(app):
    return app.test_client()


@pytest.fixture()
def svc(app):
    return app.extensions["taskhub"]


@pytest.fixture()
def auth(stores) -> AuthService:
    return AuthService(stores.users, TokenSigner("unit-secret"), hash_method=FAST_HASH)


@pytest.fixture()
def attachments(s3) -> AttachmentService:
    return AttachmentService(s3, "test-bucket", "us-east-1")


@pytest.fixture()
def task_service(stores, attachments) -> TaskService:
    return TaskService(stores.tasks, stores.comments, stores.users, attachments)


@pytest.fixture()
def users(stores, auth):
    """Four registered users, U1..U4, keyed by short name."""
    return {
        name: auth.register(name, f"{name.lower()}@acme.io", PASSWORD)
        for name in ("U1", "U2", "U3", "U4")
    }


def login(client, email: str, password: str = PASSWORD):
    return client.post("/auth/login", data={"email": email, "password": password})
