# Overview: Flask API routes for purchase orders; parses input and returns JSON responses.

from flask import Blueprint, g, request

from ..decorators import audit_activity, require_auth, require_permission
from ..responses import json_body, ok, paginate, query_int
from ..services import purchase_service


purchases_bp = Blueprint("purchases", __name__, url_prefix="/api/purchases")


@purchases_bp.get("")
@require_auth
@require_permission("VIEW_PURCHASES")
def list_purchases_route():
    query = purchase_service.list_purchase_orders_query(
        status=request.args.get("status") or None,
        supplier_id=query_int("supplier_id"),
    )
    return ok(paginate(query, query_int("page"), query_int("per_page"), lambda o: o.to_dict()))


@purchases_bp.get("/<int:order_id>")
@require_auth
@require_permission("VIEW_PURCHASES")
def get_purchase_route(order_id: int):
    return ok(purchase_service.get_purchase_order(order_id).to_dict(include_items=True))


@purchases_bp.post("")
@require_auth
@require_permission("MANAGE_PURCHASES")
def create_purchase_route():
    """Body: {supplier_id, items: [{product_id, quantity, unit_price}], notes?}"""
    data = json_body()
    order = purchase_service.create_purchase_order(
        supplier_id=data.get("supplier_id"),
        items=data.get("items"),
        notes=data.get("notes"),
        user_id=g.current_user.id,
    )
    audit_activity("PURCHASE_CREATED", order.order_number)
    return ok(
        {
            "purchase_order_id": order.id,
            "order_number": order.order_number,
            "total_amount": order.total_amount,
            "status": order.status,
        },
        message="Purchase order created successfully",
        status=201,
    )


@purchases_bp.put("/<int:order_id>/status")
@require_auth
@require_permission("MANAGE_PURCHASES")
def update_purchase_status_route(order_id: int):
    order = purchase_service.update_status(order_id, json_body().get("status"))
    audit_activity("PURCHASE_STATUS_CHANGED", f"purchase:{order_id} -> {order.status}")
    return ok(order.to_dict(), message="Purchase order status updated successfully")


@purchases_bp.delete("/<int:order_id>")
@require_auth
@require_permission("MANAGE_PURCHASES")
def delete_purchase_route(order_id: int):
    """Pending orders only; received stock is taken back out."""
    purchase_service.delete_purchase_order(order_id, user_id=g.current_user.id)
    audit_activity("PURCHASE_DELETED", f"purchase:{order_id}")
    return ok(message="Purchase order deleted successfully")
