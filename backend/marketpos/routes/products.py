# Overview: Flask API routes for products operations; parses input and returns JSON responses.

"""
Product management routes.

SECURITY: All routes require authentication.
- Read operations require VIEW_CATALOG permission
- Write operations require MANAGE_PRODUCTS permission

current_stock is read-only here; use /api/purchases, /api/sales or
/api/inventory/adjust to move stock.
"""
from flask import Blueprint, request

from ..decorators import audit_activity, require_any_permission, require_auth, require_permission
from ..responses import json_body, ok, paginate, query_bool, query_int
from ..services import products_service


products_bp = Blueprint("products", __name__, url_prefix="/api/products")


@products_bp.get("")
@require_auth
@require_permission("VIEW_CATALOG")
def list_products_route():
    """
    Query params:
    - q: search on name / barcode
    - category_id: int
    - low_stock: true to return only products at or below min_stock
    - page, per_page: pagination (default 20, max 100)
    """
    query = products_service.list_products_query(
        q=request.args.get("q") or None,
        category_id=query_int("category_id"),
        low_stock=query_bool("low_stock"),
    )
    return ok(paginate(query, query_int("page"), query_int("per_page"), lambda p: p.to_dict()))


@products_bp.get("/stats")
@require_auth
@require_any_permission("MANAGE_PRODUCTS", "VIEW_INVENTORY_STATS")
def product_stats_route():
    return ok(products_service.get_product_stats())


@products_bp.get("/barcode/<barcode>")
@require_auth
@require_permission("VIEW_CATALOG")
def get_product_by_barcode_route(barcode: str):
    return ok(products_service.get_product_by_barcode(barcode).to_dict())


@products_bp.get("/<int:product_id>")
@require_auth
@require_permission("VIEW_CATALOG")
def get_product_route(product_id: int):
    return ok(products_service.get_product(product_id).to_dict())


@products_bp.post("")
@require_auth
@require_permission("MANAGE_PRODUCTS")
def create_product_route():
    product = products_service.create_product(json_body())
    audit_activity("PRODUCT_CREATED", f"product:{product.id}")
    return ok(product.to_dict(), message="Product created successfully", status=201)


@products_bp.put("/<int:product_id>")
@require_auth
@require_permission("MANAGE_PRODUCTS")
def update_product_route(product_id: int):
    product = products_service.update_product(product_id, json_body())
    audit_activity("PRODUCT_UPDATED", f"product:{product_id}")
    return ok(product.to_dict(), message="Product updated successfully")


@products_bp.delete("/<int:product_id>")
@require_auth
@require_permission("MANAGE_PRODUCTS")
def delete_product_route(product_id: int):
    """Soft delete (is_active = False)."""
    products_service.delete_product(product_id)
    audit_activity("PRODUCT_DELETED", f"product:{product_id}")
    return ok(message="Product deleted successfully")
