# taskhub/models/user.py
from ..extensions import db
from ..records import DEFAULT_ROLE, User, utcnow_iso


class UserRow(db.Model):
    __tablename__ = "users"

    id = db.Column(db.String(36), primary_key=True)
    # uniqueness is checked by the caller before insert, not by the schema
    username = db.Column(db.String(120), nullable=False, index=True)
    email = db.Column(db.String(255), nullable=False, index=True)
    password_hash = db.Column(db.String(255))

    role = db.Column(db.String(20), nullable=False, default=DEFAULT_ROLE)

    # ISO-8601 strings, same format as the document store
    created_at = db.Column(db.String(32), default=utcnow_iso, index=True)
    last_login = db.Column(db.String(32))

    def to_record(self) -> User:
        return User(
            user_id=self.id,
            username=self.username,
            email=self.email,
            password_hash=self.password_hash,
            role=self.role or DEFAULT_ROLE,
            created_at=self.created_at,
            last_login=self.last_login,
        )

    @classmethod
    def from_record(cls, u: User) -> "UserRow":
        return cls(
            id=u.user_id,
            username=u.username,
            email=u.email,
            password_hash=u.password_hash,
            role=u.role,
            created_at=u.created_at,
            last_login=u.last_login,
        )
