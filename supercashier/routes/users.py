# Overview: Flask API routes for user administration (admin only).

from flask import Blueprint, request

from ..decorators import require_auth, require_permission
from ..responses import created, paginated, success
from ..services import user_service


users_bp = Blueprint("users", __name__, url_prefix="/api/users")


@users_bp.get("")
@require_auth
@require_permission("MANAGE_USERS")
def list_users():
    result = user_service.list_users(
        role=request.args.get("role"),
        role_id=request.args.get("role_id"),
        page=request.args.get("page", type=int),
        per_page=request.args.get("per_page", type=int),
    )
    return paginated(result, "Users retrieved")


@users_bp.get("/<int:user_id>")
@require_auth
@require_permission("MANAGE_USERS")
def get_user(user_id: int):
    return success(user_service.get_user(user_id).to_dict(), "User retrieved")


@users_bp.post("")
@require_auth
@require_permission("MANAGE_USERS")
def create_user():
    user = user_service.create_user(request.get_json(silent=True))
    return created(user.to_dict(), "User created")


@users_bp.put("/<int:user_id>")
@require_auth
@require_permission("MANAGE_USERS")
def update_user(user_id: int):
    user = user_service.update_user(user_id, request.get_json(silent=True))
    return success(user.to_dict(), "User updated")


@users_bp.delete("/<int:user_id>")
@require_auth
@require_permission("MANAGE_USERS")
def delete_user(user_id: int):
    """Deactivates the user and revokes their sessions."""
    user = user_service.deactivate_user(user_id)
    return success(user.to_dict(), "User deactivated")
