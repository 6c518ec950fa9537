import os
import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from flask import Flask, redirect, url_for
from .extensions import db, login_manager, csrf
from .config import Config
from .filters import register_filters
from .session import load_session_user, wants_json, json_error
from .stores import build_stores
from .services import build_services

# Blueprints
from .blueprints.errors import errors_bp
from .blueprints.pages import pages_bp
from .blueprints.auth import auth_bp
from .blueprints.tasks import tasks_bp


# Optional: Sentry
def _init_sentry(app):
    dsn = app.config.get("SENTRY_DSN")
    if not dsn:
        return
    try:
        import sentry_sdk
        from sentry_sdk.integrations.flask import FlaskIntegration

        sentry_sdk.init(
            dsn=dsn,
            integrations=[FlaskIntegration()],
            traces_sample_rate=app.config.get("SENTRY_TRACES_SAMPLE_RATE", 0.0),
            environment=app.config.get("ENV", "production"),
            release=os.getenv("GIT_COMMIT", None),
            send_default_pii=False,
        )
        app.logger.info("Sentry initialized.")
    except Exception as e:
        app.logger.warning(f"Sentry init failed: {e}")

def _init_logging(app):
    # Base level
    level_name = app.config.get("LOG_LEVEL", "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)
    app.logger.setLevel(level)

    # Ensure log dir exists
    log_dir = Path(app.config.get("LOG_DIR", "logs"))
    log_dir.mkdir(parents=True, exist_ok=True)
    log_path = log_dir / app.config.get("LOG_FILENAME", "taskhub.log")

    # Formatter: text or JSON
    if app.config.get("LOG_JSON", False):
        import json_log_formatter
        formatter = json_log_formatter.JSONFormatter()
    else:
        formatter = logging.Formatter("[%(asctime)s] %(levelname)s in %(module)s: %(message)s")

    # Rotating file handler (5MB x 5)
    file_handler = RotatingFileHandler(
        log_path, maxBytes=5_000_000, backupCount=5, encoding="utf-8"
    )
    file_handler.setLevel(level)
    file_handler.setFormatter(formatter)
    app.logger.addHandler(file_handler)

    # Stream to stdout as well (useful on dev/docker)
    stream_handler = logging.StreamHandler()
    stream_handler.setLevel(level)
    stream_handler.setFormatter(formatter)
    app.logger.addHandler(stream_handler)

    app.logger.info("Logging initialized.")

def create_app(config_object=None, services=None):
    """Application factory.

    ``services`` lets callers (tests, the serverless handlers) inject a
    prebuilt Services bundle instead of building one from config.
    """
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(config_object or Config)

    # --- base config defaults ---
    app.config.setdefault("SECRET_KEY", "change-me")
    Path(app.instance_path).mkdir(parents=True, exist_ok=True)
    if not app.config.get("SQLALCHEMY_DATABASE_URI"):
        app.config["SQLALCHEMY_DATABASE_URI"] = "sqlite:///" + os.path.join(app.instance_path, "taskhub.db")
    app.config.setdefault("SQLALCHEMY_TRACK_MODIFICATIONS", False)

    # Logging must come before blueprints so errors during register are captured
    _init_logging(app)
    _init_sentry(app)

    # Extensions
    db.init_app(app)
    login_manager.init_app(app)
    csrf.init_app(app)
    register_filters(app)

    login_manager.user_loader(load_session_user)
    login_manager.login_view = "pages.login"

    @login_manager.unauthorized_handler
    def _unauthorized():
        if wants_json():
            return json_error("Unauthorized", 401)
        return redirect(url_for("pages.login"))

    if services is None:
        backend = app.config.get("STORE_BACKEND", "sql")
        if backend == "sql":
            from . import models  # noqa: F401  (register tables)
            with app.app_context():
                db.create_all()
        services = build_services(app.config, build_stores(app.config))
    app.extensions["taskhub"] = services
    app.logger.info(
        "Stores: %s | bucket: %s | remote API: %s",
        app.config.get("STORE_BACKEND"),
        app.config.get("S3_BUCKET") or "not set",
        app.config.get("AWS_API_URL") or "not set",
    )

    # Blueprints
    app.register_blueprint(errors_bp)  # error handlers
    app.register_blueprint(pages_bp)
    app.register_blueprint(auth_bp, url_prefix="/auth")
    app.register_blueprint(tasks_bp)

    return app
