# Overview: Flask API routes for category operations; parses input and returns JSON responses.

from flask import Blueprint

from ..decorators import audit_activity, require_auth, require_permission
from ..responses import json_body, ok, paginate, query_int
from ..services import category_service


categories_bp = Blueprint("categories", __name__, url_prefix="/api/categories")


@categories_bp.get("")
@require_auth
@require_permission("VIEW_CATALOG")
def list_categories_route():
    return ok(category_service.list_categories())


@categories_bp.get("/<int:category_id>")
@require_auth
@require_permission("VIEW_CATALOG")
def get_category_route(category_id: int):
    return ok(category_service.get_category(category_id).to_dict())


@categories_bp.get("/<int:category_id>/products")
@require_auth
@require_permission("VIEW_CATALOG")
def list_category_products_route(category_id: int):
    query = category_service.list_category_products_query(category_id)
    return ok(paginate(query, query_int("page"), query_int("per_page"), lambda p: p.to_dict()))


@categories_bp.post("")
@require_auth
@require_permission("MANAGE_CATEGORIES")
def create_category_route():
    category = category_service.create_category(json_body())
    audit_activity("CATEGORY_CREATED", f"category:{category.id}")
    return ok(category.to_dict(), message="Category created successfully", status=201)


@categories_bp.put("/<int:category_id>")
@require_auth
@require_permission("MANAGE_CATEGORIES")
def update_category_route(category_id: int):
    category = category_service.update_category(category_id, json_body())
    audit_activity("CATEGORY_UPDATED", f"category:{category_id}")
    return ok(category.to_dict(), message="Category updated successfully")


@categories_bp.delete("/<int:category_id>")
@require_auth
@require_permission("MANAGE_CATEGORIES")
def delete_category_route(category_id: int):
    category_service.delete_category(category_id)
    audit_activity("CATEGORY_DELETED", f"category:{category_id}")
    return ok(message="Category deleted successfully")
