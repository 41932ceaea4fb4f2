import uuid
from datetime import datetime, timezone

import bcrypt

from storefront.extensions import db


class User(db.Model):
    __tablename__ = "users"

    id = db.Column(db.String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    email = db.Column(db.String(255), unique=True, nullable=False)
    name = db.Column(db.String(100))
    image = db.Column(db.Text)
    password_hash = db.Column(db.Text, nullable=False)
    email_verified = db.Column(db.Boolean, nullable=False, default=False)
    role = db.Column(db.Enum("user", "admin", name="user_role"), nullable=False, default="user")
    banned = db.Column(db.Boolean, nullable=False, default=False)
    ban_reason = db.Column(db.Text)
    ban_expires = db.Column(db.DateTime(timezone=True))
    created_at = db.Column(db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))
    updated_at = db.Column(
        db.DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    orders = db.relationship("Order", backref="user", lazy=True)

    def set_password(self, password):
        self.password_hash = bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")

    def check_password(self, password):
        return bcrypt.checkpw(password.encode("utf-8"), self.password_hash.encode("utf-8"))

    @property
    def is_admin(self):
        return self.role == "admin"

    @property
    def ban_active(self):
        """Banned, with no expiry or one still in the future."""
        if not self.banned:
            return False
        if self.ban_expires is None:
            return True
        expires = self.ban_expires
        if expires.tzinfo is None:
            expires = expires.replace(tzinfo=timezone.utc)
        return expires > datetime.now(timezone.utc)

    def to_dict(self):
        return {
            "id": self.id,
            "email": self.email,
            "name": self.name,
            "image": self.image,
            "email_verified": self.email_verified,
            "role": self.role or "user",
            "banned": self.banned,
            "ban_reason": self.ban_reason,
            "ban_expires": self.ban_expires.isoformat() if self.ban_expires else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "updated_at": self.updated_at.isoformat() if self.updated_at else None,
        }
