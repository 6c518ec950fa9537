# taskhub/config.py
import os
from datetime import timedelta
from dotenv import load_dotenv

load_dotenv()

def _as_bool(val: str | None, default=False) -> bool:
    if val is None:
        return default
    return str(val).strip().lower() in {"1", "true", "yes", "on"}

class Config:
    # --- Core ---
    ENV = os.getenv("ENV", os.getenv("NODE_ENV", "production"))
    SECRET_KEY = os.getenv("SESSION_SECRET") or os.getenv("SECRET_KEY", "dev-secret-change-me")

    # --- Sessions (24h absolute) ---
    PERMANENT_SESSION_LIFETIME = timedelta(hours=24)
    SESSION_COOKIE_SECURE = _as_bool(os.getenv("SESSION_COOKIE_SECURE", "0"))
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = os.getenv("SESSION_COOKIE_SAMESITE", "Lax")

    # CSRF
    WTF_CSRF_TIME_LIMIT = None

    # --- Tokens / passwords ---
    # Empty means "use the development default" (see auth_service)
    TOKEN_SECRET = os.getenv("JWT_SECRET", "")
    TOKEN_TTL_SECONDS = int(os.getenv("TOKEN_TTL_SECONDS", str(24 * 60 * 60)))
    PASSWORD_HASH_METHOD = os.getenv("PASSWORD_HASH_METHOD", "scrypt:32768:8:1")

    # --- Stores: dynamodb | sql | memory ---
    STORE_BACKEND = os.getenv("STORE_BACKEND", "sql").strip().lower()
    SQLALCHEMY_DATABASE_URI = os.getenv("SQLALCHEMY_DATABASE_URI") or os.getenv("DATABASE_URL")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    USERS_TABLE = os.getenv("USERS_TABLE", "UsersTable")
    TASKS_TABLE = os.getenv("TASKS_TABLE", "TasksTable")
    TASK_ASSIGNMENTS_TABLE = os.getenv("TASK_ASSIGNMENTS_TABLE", "TaskAssignmentsTable")
    COMMENTS_TABLE = os.getenv("COMMENTS_TABLE", "CommentsTable")

    # --- Object storage ---
    AWS_REGION = os.getenv("AWS_REGION", "us-east-1")
    S3_BUCKET = os.getenv("AWS_S3_BUCKET") or os.getenv("S3_BUCKET", "")
    UPLOAD_KEY_PREFIX = os.getenv("UPLOAD_KEY_PREFIX", "tasks")
    COMMENT_KEY_PREFIX = os.getenv("COMMENT_KEY_PREFIX", "comments")
    LIST_URL_TTL = int(os.getenv("LIST_URL_TTL", "60"))
    DOWNLOAD_URL_TTL = int(os.getenv("DOWNLOAD_URL_TTL", "3600"))
    UPLOAD_URL_TTL = int(os.getenv("UPLOAD_URL_TTL", "60"))
    DEV_ALLOW_PRESIGN = _as_bool(os.getenv("DEV_ALLOW_PRESIGN", "0"))

    # --- Uploads through the app (comment files) ---
    MAX_CONTENT_LENGTH = int(os.getenv("MAX_CONTENT_LENGTH", str(50 * 1024 * 1024)))  # 50MB

    # --- Remote task API ---
    AWS_API_URL = (os.getenv("AWS_API_URL") or "").rstrip("/")
    REMOTE_API_TIMEOUT = float(os.getenv("REMOTE_API_TIMEOUT", "10"))

    # --- Logging ---
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    LOG_DIR = os.getenv("LOG_DIR", "logs")
    LOG_FILENAME = os.getenv("LOG_FILENAME", "taskhub.log")
    LOG_JSON = _as_bool(os.getenv("LOG_JSON", "0"))

    # --- Sentry ---
    SENTRY_DSN = os.getenv("SENTRY_DSN", "")
    SENTRY_TRACES_SAMPLE_RATE = float(os.getenv("SENTRY_TRACES_SAMPLE_RATE", "0.0"))
