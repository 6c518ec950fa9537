from flask import render_template, request, current_app
from flask_login import current_user
from werkzeug.exceptions import HTTPException
from flask_wtf.csrf import CSRFError
from sqlalchemy.exc import SQLAlchemyError
from ...extensions import db
from ...errors import TaskhubError
from ...session import wants_json, json_error
from . import errors_bp

TITLES = {
    400: "Bad Request",
    401: "Unauthorized",
    403: "Forbidden",
    404: "Page Not Found",
    405: "Method Not Allowed",
    413: "File Too Large",
    500: "Server Error",
    502: "Service Unavailable",
}


def _render(code: int, message: str):
    if wants_json() or request.method == "DELETE":
        return json_error(message, code)
    return render_template(
        "errors/error.html",
        title=TITLES.get(code, "Error"),
        code=code,
        message=message,
        user=current_user if current_user.is_authenticated else None,
    ), code


def _rollback():
    # a failed SQL statement leaves the session unusable until rolled back
    try:
        db.session.rollback()
    except SQLAlchemyError:
        pass


# Domain errors raised by services
@errors_bp.app_errorhandler(TaskhubError)
def err_domain(e: TaskhubError):
    if e.status_code >= 500:
        current_app.logger.error("Service error on %s: %s", request.path, e.message)
        _rollback()
        return _render(e.status_code, "Something went wrong! Please try again later.")
    return _render(e.status_code, e.message)

# 404: not found
@errors_bp.app_errorhandler(404)
def err_404(e):
    return _render(404, "The page you are looking for does not exist.")

# 413: comment upload over MAX_CONTENT_LENGTH
@errors_bp.app_errorhandler(413)
def err_413(e):
    return _render(413, "The uploaded file is too large.")

# CSRF failures answer 400
@errors_bp.app_errorhandler(CSRFError)
def err_csrf(e):
    return _render(400, e.description)

# Fallback for uncaught HTTPException
@errors_bp.app_errorhandler(HTTPException)
def err_http(e: HTTPException):
    return _render(e.code or 500, e.description or TITLES.get(e.code, "Error"))

# Last-resort: any other Exception
@errors_bp.app_errorhandler(Exception)
def err_unexpected(e):
    current_app.logger.exception("Server Error: %s", e)
    _rollback()
    # generic message only, details stay in the log
    return _render(500, "Something went wrong! Please try again later.")
