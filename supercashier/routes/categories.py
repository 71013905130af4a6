# Overview: Flask API routes for categories.

from flask import Blueprint, request

from ..decorators import require_auth, require_permission
from ..responses import created, paginated, success
from ..services import category_service


categories_bp = Blueprint("categories", __name__, url_prefix="/api/categories")


@categories_bp.get("")
@require_auth
@require_permission("VIEW_PRODUCTS")
def list_categories():
    result = category_service.list_categories(
        page=request.args.get("page", type=int),
        per_page=request.args.get("per_page", type=int),
    )
    return paginated(result, "Categories retrieved")


@categories_bp.get("/<int:category_id>")
@require_auth
@require_permission("VIEW_PRODUCTS")
def get_category(category_id: int):
    return success(category_service.get_category(category_id).to_dict(), "Category retrieved")


@categories_bp.post("")
@require_auth
@require_permission("MANAGE_CATEGORIES")
def create_category():
    category = category_service.create_category(request.get_json(silent=True))
    return created(category.to_dict(), "Category created")


@categories_bp.put("/<int:category_id>")
@require_auth
@require_permission("MANAGE_CATEGORIES")
def update_category(category_id: int):
    category = category_service.update_category(category_id, request.get_json(silent=True))
    return success(category.to_dict(), "Category updated")


@categories_bp.delete("/<int:category_id>")
@require_auth
@require_permission("MANAGE_CATEGORIES")
def delete_category(category_id: int):
    category_service.delete_category(category_id)
    return success(None, "Category deleted")
