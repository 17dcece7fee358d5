# Overview: Flask API routes for the signed-in user's profile.

from flask import Blueprint, current_app, g, request

from ..decorators import require_auth, require_permission
from ..services import profile_service
from ..validation import ConflictError, ValidationError

profile_bp = Blueprint("profile", __name__, url_prefix="/api/profile")


@profile_bp.get("")
@require_auth
@require_permission("EDIT_PROFILE")
def get_profile_route():
    return {"user": profile_service.get_profile(g.current_user)}, 200


@profile_bp.put("")
@require_auth
@require_permission("EDIT_PROFILE")
def update_profile_route():
    payload = request.get_json(silent=True) or {}
    try:
        user = profile_service.update_profile(g.current_user, payload)
    except ValidationError as e:
        return e.to_dict(), 400
    except ConflictError as e:
        return {"error": str(e)}, 409
    except Exception:
        current_app.logger.exception("Failed to update profile")
        return {"error": "Failed to update profile"}, 500

    return {"message": "Profile updated", "user": profile_service.get_profile(user)}, 200
