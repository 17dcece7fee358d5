# Overview: Service-layer operations for auth; encapsulates business logic and database work.

"""
Registration, login, password changes and password reset.

SECURITY NOTES:
- Passwords hashed with bcrypt (cost from BCRYPT_ROUNDS, 12 by default)
- Minimum 6 characters
- Bearer tokens are issued by token_service
- Reset tokens are random, single-use, stored as SHA-256 hashes
"""

from __future__ import annotations

import hashlib
import secrets
from datetime import timedelta

import bcrypt
from flask import current_app

from ..extensions import db
from ..models import Customer, PasswordResetToken, User
from ..validation import ConflictError, ValidationError, is_valid_email, validate_password
from . import email_service
from .concurrency import atomic
from .email_service import EmailError
from storefront.time_utils import to_utc_naive, utcnow


class AuthenticationError(Exception):
    """Raised when credentials do not match an account."""
    pass


class AccountDisabledError(Exception):
    """Raised when the account exists but is inactive."""
    pass


def hash_password(password: str) -> str:
    """Hash password using bcrypt. Password length is validated first."""
    validate_password(password)
    salt = bcrypt.gensalt(rounds=current_app.config.get("BCRYPT_ROUNDS", 12))
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')


def verify_password(password: str, password_hash: str) -> bool:
    """bcrypt.checkpw is timing-safe. Malformed hashes never match."""
    if not password or not password_hash:
        return False
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False


def ensure_identity_available(username: str | None, email: str | None, exclude_user_id: int | None = None) -> None:
    """Raise ConflictError if another account already uses username or email."""
    checks = []
    if username:
        checks.append(("username", User.username == username))
    if email:
        checks.append(("email", db.func.lower(User.email) == email.lower()))

    for field_name, clause in checks:
        query = db.session.query(User.id).filter(clause)
        if exclude_user_id is not None:
            query = query.filter(User.id != exclude_user_id)
        if query.first():
            raise ConflictError(f"A user with this {field_name} already exists")


def normalize_identity(username, email) -> tuple[str, str]:
    username = username.strip() if isinstance(username, str) else ""
    email = email.strip().lower() if isinstance(email, str) else ""
    if not username:
        raise ValidationError("username is required")
    if len(username) > 64:
        raise ValidationError("username exceeds max length 64")
    if not is_valid_email(email):
        raise ValidationError("A valid email is required")
    return username, email


def create_user(*, username: str, email: str, password: str, role: str = "customer") -> User:
    """
    Add a user to the current transaction without committing.

    Callers pair it with the Customer or Employee row inside one atomic() block.
    """
    username, email = normalize_identity(username, email)
    ensure_identity_available(username, email)
    user = User(
        username=username,
        email=email,
        password_hash=hash_password(password),
        role=role,
        status="active",
    )
    db.session.add(user)
    db.session.flush()
    return user


def register_customer(*, email, username, password, name) -> User:
    """Create a customer account: user row and customer profile in one transaction."""
    name = name.strip() if isinstance(name, str) else ""
    if not name:
        raise ValidationError("name is required")
    if len(name) > 255:
        raise ValidationError("name exceeds max length 255")
    validate_password(password)

    with atomic():
        user = create_user(username=username, email=email, password=password, role="customer")
        db.session.add(Customer(user_id=user.id, name=name))

    current_app.logger.info("Registered customer user %s", user.id)
    return user


def authenticate(identifier: str, password: str) -> User:
    """
    Look the account up by email or username and check the password.

    Raises AuthenticationError on any mismatch (same message either way) and
    AccountDisabledError for inactive accounts with a correct password.
    """
    identifier = (identifier or "").strip()
    user = (
        db.session.query(User)
        .filter(db.or_(db.func.lower(User.email) == identifier.lower(), User.username == identifier))
        .first()
    )
    if not user or not verify_password(password, user.password_hash):
        raise AuthenticationError("Invalid credentials")
    if not user.is_active:
        raise AccountDisabledError("Account is inactive")
    return user


def change_password(user: User, current_password: str, new_password: str) -> None:
    if not verify_password(current_password, user.password_hash):
        raise AuthenticationError("Current password is incorrect")
    validate_password(new_password, "newPassword")
    user.password_hash = hash_password(new_password)
    db.session.commit()


def _hash_token(token: str) -> str:
    return hashlib.sha256(token.encode('utf-8')).hexdigest()


def request_password_reset(email: str) -> None:
    """
    Email a reset link when the address belongs to an active account.

    Silent for unknown addresses so the endpoint cannot be used to probe
    which emails are registered.
    """
    if not is_valid_email(email):
        raise ValidationError("A valid email is required")

    user = db.session.query(User).filter(db.func.lower(User.email) == email.strip().lower()).first()
    if not user or not user.is_active:
        return

    token = secrets.token_urlsafe(32)
    ttl = timedelta(minutes=current_app.config["PASSWORD_RESET_TTL_MINUTES"])
    db.session.add(PasswordResetToken(
        user_id=user.id,
        token_hash=_hash_token(token),
        expires_at=utcnow() + ttl,
    ))
    db.session.commit()

    try:
        email_service.send_password_reset(user.email, user.username, token)
    except EmailError as e:
        current_app.logger.warning("Password reset email to user %s failed: %s", user.id, e)


def reset_password(email: str, token: str, new_password: str) -> None:
    validate_password(new_password, "newPassword")
    if not token or not isinstance(email, str):
        raise ValidationError("Invalid or expired reset token")

    record = (
        db.session.query(PasswordResetToken)
        .join(User, PasswordResetToken.user_id == User.id)
        .filter(
            PasswordResetToken.token_hash == _hash_token(token),
            db.func.lower(User.email) == email.strip().lower(),
        )
        .first()
    )
    if not record or record.used_at is not None or to_utc_naive(record.expires_at) < utcnow():
        raise ValidationError("Invalid or expired reset token")

    with atomic():
        record.used_at = utcnow()
        record.user.password_hash = hash_password(new_password)
