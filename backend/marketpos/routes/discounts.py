# Overview: Flask API routes for discounts; parses input and returns JSON responses.

from flask import Blueprint

from ..decorators import audit_activity, require_auth, require_permission
from ..responses import json_body, ok, paginate, query_int
from ..services import discount_service
from marketpos.time_utils import today


discounts_bp = Blueprint("discounts", __name__, url_prefix="/api/discounts")


@discounts_bp.get("")
@require_auth
@require_permission("VIEW_DISCOUNTS")
def list_discounts_route():
    """All discounts with status_text (active / expired / upcoming) for today."""
    day = today()
    query = discount_service.list_discounts_query()
    return ok(paginate(query, query_int("page"), query_int("per_page"), lambda d: d.to_dict(day)))


@discounts_bp.get("/active")
@require_auth
@require_permission("VIEW_DISCOUNTS")
def list_active_discounts_route():
    day = today()
    return ok([d.to_dict(day) for d in discount_service.list_active_discounts(day)])


@discounts_bp.post("/calculate")
@require_auth
@require_permission("VIEW_DISCOUNTS")
def calculate_discount_route():
    """Body: {discount_id, total_amount} -> {discount_amount, ...}"""
    data = json_body()
    return ok(discount_service.calculate(data.get("discount_id"), data.get("total_amount")))


@discounts_bp.get("/<int:discount_id>")
@require_auth
@require_permission("VIEW_DISCOUNTS")
def get_discount_route(discount_id: int):
    return ok(discount_service.get_discount(discount_id).to_dict(today()))


@discounts_bp.post("")
@require_auth
@require_permission("MANAGE_DISCOUNTS")
def create_discount_route():
    discount = discount_service.create_discount(json_body())
    audit_activity("DISCOUNT_CREATED", f"discount:{discount.id}")
    return ok(discount.to_dict(today()), message="Discount created successfully", status=201)


@discounts_bp.put("/<int:discount_id>")
@require_auth
@require_permission("MANAGE_DISCOUNTS")
def update_discount_route(discount_id: int):
    discount = discount_service.update_discount(discount_id, json_body())
    audit_activity("DISCOUNT_UPDATED", f"discount:{discount_id}")
    return ok(discount.to_dict(today()), message="Discount updated successfully")


@discounts_bp.delete("/<int:discount_id>")
@require_auth
@require_permission("MANAGE_DISCOUNTS")
def delete_discount_route(discount_id: int):
    discount_service.delete_discount(discount_id)
    audit_activity("DISCOUNT_DELETED", f"discount:{discount_id}")
    return ok(message="Discount deleted successfully")
