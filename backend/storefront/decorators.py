# Overview: Request and permission decorators for API routes.

from functools import wraps
from flask import request, jsonify, g

from .extensions import db
from .models import User
from .services import token_service, permission_service
from .services.permission_service import PermissionDeniedError
from .services.token_service import TokenError


def _is_authenticated() -> bool:
    return getattr(g, 'current_user', None) is not None


def require_auth(f):
    """
    Require a valid bearer token.

    Sets g.current_user to the authenticated User.

    Returns 401 when no bearer token is sent, 403 when the token is invalid,
    expired, or belongs to a missing or inactive account.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        g.current_user = None

        auth_header = request.headers.get("Authorization")
        if not auth_header or not auth_header.startswith("Bearer "):
            return jsonify({"error": "Authentication required"}), 401

        token = auth_header.split(" ", 1)[1].strip()
        if not token:
            return jsonify({"error": "Authentication required"}), 401

        try:
            claims = token_service.decode_token(token)
        except TokenError:
            return jsonify({"error": "Invalid or expired token"}), 403

        user = db.session.get(User, claims.user_id)
        if not user or not user.is_active:
            return jsonify({"error": "Invalid or expired token"}), 403

        g.current_user = user
        return f(*args, **kwargs)

    return decorated_function


def require_permission(permission_code: str):
    """Require the authenticated user's role to hold permission_code."""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            # Ensure @require_auth was called first
            if not _is_authenticated():
                return jsonify({"error": "Authentication required"}), 401

            try:
                permission_service.require_permission(g.current_user, permission_code, resource=request.path)
            except PermissionDeniedError as e:
                return jsonify({
                    "error": "Permission denied",
                    "required_permission": permission_code,
                    "message": str(e)
                }), 403

            return f(*args, **kwargs)

        return decorated_function
    return decorator
