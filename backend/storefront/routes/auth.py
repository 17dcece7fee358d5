# Overview: Flask API routes for auth operations; parses input and returns JSON responses.

# backend/storefront/routes/auth.py
"""
Authentication API routes

- Self-registration creates a customer account
- Login accepts email or username
- Bearer tokens are signed JWTs (see token_service)
"""

from flask import Blueprint, request, jsonify, current_app, g

from ..services import auth_service, permission_service, token_service
from ..services.auth_service import AccountDisabledError, AuthenticationError
from ..validation import ConflictError, ValidationError
from ..decorators import require_auth


auth_bp = Blueprint("auth", __name__, url_prefix="/api/auth")


def _session_payload(user):
    return {
        "token": token_service.issue_token(user),
        "user": user.to_dict(include_customer=True),
    }


@auth_bp.post("/register")
def register_route():
    """Create a customer account and return a token for it."""
    data = request.get_json(silent=True) or {}
    try:
        user = auth_service.register_customer(
            email=data.get("email"),
            username=data.get("username"),
            password=data.get("password"),
            name=data.get("name"),
        )
    except ValidationError as e:
        return jsonify(e.to_dict()), 400
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except Exception:
        current_app.logger.exception("Failed to register user")
        return jsonify({"error": "Registration failed"}), 500

    return jsonify({"message": "Registration successful", **_session_payload(user)}), 201


@auth_bp.post("/login")
def login_route():
    data = request.get_json(silent=True) or {}
    identifier = data.get("email") or data.get("username") or data.get("identifier")
    password = data.get("password")

    if not all([identifier, password]):
        return jsonify({"error": "email/username and password required"}), 400

    try:
        user = auth_service.authenticate(identifier, password)
    except AuthenticationError:
        return jsonify({"error": "Invalid credentials"}), 401
    except AccountDisabledError as e:
        return jsonify({"error": str(e)}), 403

    return jsonify({"message": "Login successful", **_session_payload(user)}), 200


@auth_bp.put("/change-password")
@require_auth
def change_password_route():
    data = request.get_json(silent=True) or {}
    try:
        auth_service.change_password(
            g.current_user,
            data.get("currentPassword") or data.get("current_password") or "",
            data.get("newPassword") or data.get("new_password"),
        )
    except AuthenticationError as e:
        return jsonify({"error": str(e)}), 401
    except ValidationError as e:
        return jsonify(e.to_dict()), 400

    return jsonify({"message": "Password changed successfully"}), 200


@auth_bp.post("/forgot-password")
def forgot_password_route():
    data = request.get_json(silent=True) or {}
    try:
        auth_service.request_password_reset(data.get("email"))
    except ValidationError as e:
        return jsonify(e.to_dict()), 400

    # Same answer whether or not the address is registered
    return jsonify({"message": "If that email is registered, a reset link has been sent"}), 200


@auth_bp.post("/reset-password")
def reset_password_route():
    data = request.get_json(silent=True) or {}
    try:
        auth_service.reset_password(
            data.get("email"),
            data.get("token"),
            data.get("newPassword") or data.get("new_password"),
        )
    except ValidationError as e:
        return jsonify(e.to_dict()), 400

    return jsonify({"message": "Password has been reset"}), 200


@auth_bp.get("/me")
@require_auth
def me_route():
    """Current user with customer profile and the permission codes its role holds."""
    user = g.current_user
    return jsonify({
        "user": user.to_dict(include_customer=True),
        "permissions": sorted(permission_service.get_role_permissions(user.role)),
    }), 200
