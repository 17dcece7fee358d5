# Overview: Service-layer operations for bearer tokens; issues and verifies signed JWTs.

"""
Stateless bearer tokens.

Tokens are HS256 JWTs signed with JWT_SECRET and carry the user id (sub),
role and email. Expiry comes from JWT_EXPIRES_HOURS. Verification only
proves the token is authentic and unexpired; the decorator still loads the
user so deactivated accounts are refused immediately.
"""

from dataclasses import dataclass
from datetime import timedelta

import jwt
from flask import current_app

from ..models import User
from storefront.time_utils import utcnow


class TokenError(Exception):
    """Raised for malformed, tampered or expired tokens."""
    pass


@dataclass
class TokenClaims:
    user_id: int
    role: str
    email: str | None


def issue_token(user: User) -> str:
    now = utcnow()
    payload = {
        "sub": str(user.id),
        "role": user.role,
        "email": user.email,
        "iat": now,
        "exp": now + timedelta(hours=current_app.config["JWT_EXPIRES_HOURS"]),
    }
    return jwt.encode(
        payload,
        current_app.config["JWT_SECRET"],
        algorithm=current_app.config["JWT_ALGORITHM"],
    )


def decode_token(token: str) -> TokenClaims:
    try:
        payload = jwt.decode(
            token,
            current_app.config["JWT_SECRET"],
            algorithms=[current_app.config["JWT_ALGORITHM"]],
            options={"require": ["sub", "exp"]},
        )
    except jwt.ExpiredSignatureError:
        raise TokenError("Token expired")
    except jwt.InvalidTokenError as e:
        raise TokenError(str(e))

    try:
        user_id = int(payload["sub"])
    except (TypeError, ValueError):
        raise TokenError("Invalid subject")

    return TokenClaims(user_id=user_id, role=payload.get("role"), email=payload.get("email"))
