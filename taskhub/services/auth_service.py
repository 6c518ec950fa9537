# taskhub/services/auth_service.py
from __future__ import annotations

import logging
from typing import Optional

from itsdangerous import URLSafeTimedSerializer, BadSignature, SignatureExpired
from werkzeug.security import generate_password_hash, check_password_hash

from ..errors import ConflictError, InvalidCredentials, ValidationError
from ..records import DEFAULT_ROLE, User, new_id, utcnow_iso

log = logging.getLogger(__name__)

DEV_TOKEN_SECRET = "dev-secret-key"
DEFAULT_HASH_METHOD = "scrypt:32768:8:1"
TOKEN_SALT = "auth-token"
TOKEN_TTL = 24 * 60 * 60
MIN_PASSWORD_LENGTH = 6


# -----------------
# Passwords
# -----------------

def hash_password(plaintext: str, method: str = DEFAULT_HASH_METHOD) -> str:
    return generate_password_hash(plaintext, method=method)


def verify_password(plaintext: str, digest: str | None) -> bool:
    if not digest or plaintext is None:
        return False
    try:
        return check_password_hash(digest, plaintext)
    except ValueError:
        # unknown / malformed hash format
        return False


# -----------------
# Tokens
# -----------------

class TokenSigner:
    def __init__(self, secret: str | None, ttl: int = TOKEN_TTL):
        if not secret:
            log.warning("JWT_SECRET is not set; falling back to the insecure development secret.")
            secret = DEV_TOKEN_SECRET
        self.ttl = ttl
        self._ts = URLSafeTimedSerializer(secret_key=secret, salt=TOKEN_SALT)

    def issue(self, user_id: str, email: str, role: str) -> str:
        return self._ts.dumps({"userId": user_id, "email": email, "role": role})

    def verify(self, token: str) -> Optional[dict]:
        try:
            data = self._ts.loads(token, max_age=self.ttl)
        except (BadSignature, SignatureExpired, TypeError):
            return None
        return data if isinstance(data, dict) else None


# -----------------
# Register / Login
# -----------------

class AuthService:
    def __init__(self, users, signer: TokenSigner, hash_method: str = DEFAULT_HASH_METHOD):
        self.users = users
        self.signer = signer
        self.hash_method = hash_method

    def register(self, username: str, email: str, password: str) -> User:
        username = (username or "").strip()
        email = (email or "").strip().lower()
        if not username or not email or not password:
            raise ValidationError("Username, email, and password are required")
        if len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")

        # Check-then-insert: two concurrent registrations can both pass these checks.
        if self.users.find_by_email(email):
            raise ConflictError("User with this email already exists")
        if self.users.find_by_username(username):
            raise ConflictError("Username already taken")

        user = User(
            user_id=new_id(),
            username=username,
            email=email,
            password_hash=hash_password(password, self.hash_method),
            role=DEFAULT_ROLE,
            created_at=utcnow_iso(),
            last_login=None,
        )
        self.users.insert(user)
        log.info("User created: %s", user.user_id)
        return user

    def login(self, email: str, password: str) -> tuple[User, str]:
        email = (email or "").strip().lower()
        if not email or not password:
            raise ValidationError("Email and password are required")

        user = self.users.find_by_email(email)
        if not user or not verify_password(password, user.password_hash):
            raise InvalidCredentials()

        user.last_login = utcnow_iso()
        self.users.touch_last_login(user.user_id, user.last_login)
        token = self.signer.issue(user.user_id, user.email, user.role)
        return user, token

    def profile(self, token: str) -> User:
        claims = self.signer.verify(token or "")
        if not claims:
            raise InvalidCredentials("Invalid or expired token")
        user = self.users.get(claims.get("userId"))
        if user is None:
            raise InvalidCredentials("Invalid or expired token")
        return user
