# taskhub/blueprints/auth/routes.py
from flask import render_template, redirect, url_for, current_app
from flask_login import current_user

from ...errors import ConflictError, InvalidCredentials, RemoteAPIError, ValidationError
from ...services import services
from ...session import start_session
from . import auth_bp
from .forms import RegisterForm, LoginForm, first_error

REGISTERED = "Registration successful! Please login."
CANNOT_CONNECT = "Cannot connect to authentication service. Please try again later."

# -----------------
# Utilities
# -----------------

def _render_register(form, error, status=400):
    return render_template("auth/register.html", title="Register", form=form, error=error), status


def _render_login(form, error, status=400):
    return render_template("auth/login.html", title="Login", form=form, error=error, success=None), status


def _remote_error_message(e: RemoteAPIError, default: str) -> str:
    if e.remote_message:
        return e.remote_message
    if e.kind == "connection_refused":
        return CANNOT_CONNECT
    if e.status == 500:
        return "Server error. Please try again later."
    return default

# -----------------
# Register
# -----------------

@auth_bp.post("/register")
def register():
    if current_user.is_authenticated:
        return redirect(url_for("pages.dashboard"))

    form = RegisterForm()
    if not form.validate_on_submit():
        return _render_register(form, first_error(form) or "All fields are required")

    username = form.username.data.strip()
    email = form.email.data.strip().lower()
    password = form.password.data
    svc = services()

    if svc.remote:
        current_app.logger.info("Attempting remote registration for: %s", email)
        try:
            data = svc.remote.register(username, email, password)
        except RemoteAPIError as e:
            current_app.logger.error("Registration error (%s): %s", e.kind, e.message)
            return _render_register(form, _remote_error_message(e, "Registration failed. Please try again."))
        if not data.get("success"):
            return _render_register(form, data.get("message") or "Registration failed")
        return redirect(url_for("pages.login", success=REGISTERED))

    try:
        svc.auth.register(username, email, password)
    except (ValidationError, ConflictError) as e:
        return _render_register(form, e.message)
    return redirect(url_for("pages.login", success=REGISTERED))

# -----------------
# Login
# -----------------

@auth_bp.post("/login")
def login():
    if current_user.is_authenticated:
        return redirect(url_for("pages.dashboard"))

    form = LoginForm()
    if not form.validate_on_submit():
        return _render_login(form, first_error(form) or "Email and password are required")

    email = form.email.data.strip().lower()
    password = form.password.data
    svc = services()

    if svc.remote:
        try:
            data = svc.remote.login(email, password)
        except RemoteAPIError as e:
            current_app.logger.error("Login API error (%s, status=%s): %s", e.kind, e.status, e.message)
            status = 401 if e.status == 401 else 200
            return _render_login(form, _remote_error_message(e, "Login service unavailable. Please try again later."), status)
        if not data.get("success") or not isinstance(data.get("user"), dict):
            return _render_login(form, data.get("message") or "Login failed", 401)
        u = data["user"]
        start_session(
            user_id=u.get("UserID"),
            username=u.get("Username"),
            email=u.get("Email"),
            role=u.get("Role") or "User",
            token=data.get("token"),
        )
        return redirect(url_for("pages.dashboard"))

    try:
        user, token = svc.auth.login(email, password)
    except ValidationError as e:
        return _render_login(form, e.message)
    except InvalidCredentials:
        return _render_login(form, "Invalid credentials", 401)

    start_session(user_id=user.user_id, username=user.username, email=user.email, role=user.role, token=token)
    current_app.logger.info("Session created for %s", user.user_id)
    return redirect(url_for("pages.dashboard"))
