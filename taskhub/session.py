# taskhub/session.py
"""
Session identity: the bag {userId, username, email, role, token} kept in the
Flask session after login, surfaced to views as a Flask-Login user.
"""
from __future__ import annotations

from flask import session, request, jsonify
from flask_login import UserMixin, login_user, logout_user, current_user

SESSION_KEY = "user"


class SessionUser(UserMixin):
    def __init__(self, bag: dict):
        self.bag = dict(bag)
        self.id = str(bag.get("userId") or "")
        self.username = bag.get("username") or ""
        self.email = bag.get("email") or ""
        self.role = bag.get("role") or "User"
        self.token = bag.get("token")


def start_session(*, user_id, username, email, role, token) -> SessionUser:
    bag = {
        "userId": str(user_id),
        "username": username,
        "email": email,
        "role": role,
        "token": token,
    }
    session.clear()
    session.permanent = True  # PERMANENT_SESSION_LIFETIME, 24h
    session[SESSION_KEY] = bag
    user = SessionUser(bag)
    login_user(user)
    return user


def end_session():
    logout_user()
    session.clear()


def load_session_user(user_id: str):
    bag = session.get(SESSION_KEY)
    if not bag or str(bag.get("userId")) != str(user_id):
        return None
    return SessionUser(bag)


def session_token() -> str | None:
    return getattr(current_user, "token", None) if current_user.is_authenticated else None


def wants_json() -> bool:
    return request.is_json or request.accept_mimetypes.best == "application/json"


def json_error(message: str, status: int):
    return jsonify({"error": message}), status
