from __future__ import annotations

from ..extensions import db
from storefront.time_utils import to_utc_z

USER_ROLES = ("customer", "employee", "staff", "admin")
USER_STATUSES = ("active", "inactive")


class User(db.Model):
    """
    Login identity. Role drives authorization through the policy table in
    storefront.permissions; profile data lives on Customer / Employee.
    """
    __tablename__ = "users"
    __table_args__ = (
        db.CheckConstraint("role IN ('customer', 'employee', 'staff', 'admin')", name="ck_users_role"),
        db.CheckConstraint("status IN ('active', 'inactive')", name="ck_users_status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    username = db.Column(db.String(64), nullable=False, unique=True, index=True)
    email = db.Column(db.String(255), nullable=False, unique=True, index=True)

    # Bcrypt hashed password
    password_hash = db.Column(db.String(255), nullable=False)

    role = db.Column(db.String(16), nullable=False, default="customer")
    status = db.Column(db.String(16), nullable=False, default="active")

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    customer = db.relationship("Customer", back_populates="user", uselist=False)
    employee = db.relationship("Employee", back_populates="user", uselist=False)

    @property
    def is_active(self) -> bool:
        return self.status == "active"

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"

    def to_dict(self, include_customer: bool = False) -> dict:
        data = {
            "id": self.id,
            "username": self.username,
            "email": self.email,
            "role": self.role,
            "status": self.status,
            "is_admin": self.is_admin,
            "created_at": to_utc_z(self.created_at),
        }
        if include_customer:
            data["customer"] = self.customer.to_dict() if self.customer else None
        return data


class PasswordResetToken(db.Model):
    """
    Single-use password reset token. Only the SHA-256 hash is stored;
    the plaintext goes out by email.
    """
    __tablename__ = "password_reset_tokens"
    __table_args__ = (
        db.Index("ix_password_reset_tokens_user", "user_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    token_hash = db.Column(db.String(64), nullable=False, unique=True)
    expires_at = db.Column(db.DateTime(timezone=True), nullable=False)
    used_at = db.Column(db.DateTime(timezone=True), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    user = db.relationship("User")
