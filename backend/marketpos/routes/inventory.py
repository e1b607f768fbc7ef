# Overview: Flask API routes for inventory operations; parses input and returns JSON responses.

"""
Inventory ledger routes.

The ledger is append-only: there is no update or delete endpoint. Manual
corrections are new 'adjustment' entries.
"""

from flask import Blueprint, g, request

from ..decorators import audit_activity, require_auth, require_permission
from ..responses import json_body, ok, paginate, query_date, query_int
from ..services import inventory_service
from ..validation import require_int


inventory_bp = Blueprint("inventory", __name__, url_prefix="/api/inventory")


@inventory_bp.get("")
@require_auth
@require_permission("VIEW_INVENTORY")
def list_inventory_logs_route():
    """
    Query params: product_id, transaction_type (in|out|adjustment),
    start_date, end_date (YYYY-MM-DD, inclusive), page, per_page
    """
    query = inventory_service.list_logs_query(
        product_id=query_int("product_id"),
        transaction_type=request.args.get("transaction_type") or None,
        start_date=query_date("start_date"),
        end_date=query_date("end_date"),
    )
    return ok(paginate(query, query_int("page"), query_int("per_page"), lambda e: e.to_dict()))


@inventory_bp.post("/adjust")
@require_auth
@require_permission("ADJUST_INVENTORY")
def adjust_inventory_route():
    """Body: {product_id, quantity_change, notes?}"""
    data = json_body()
    result = inventory_service.adjust_stock(
        product_id=require_int(data, "product_id", minimum=1),
        quantity_change=require_int(data, "quantity_change"),
        notes=data.get("notes"),
        user_id=g.current_user.id,
    )
    audit_activity(
        "INVENTORY_ADJUSTED",
        f"product:{result['product_id']} {result['quantity_change']:+d}",
    )
    return ok(result, message="Inventory adjusted successfully")


@inventory_bp.get("/stats")
@require_auth
@require_permission("VIEW_INVENTORY_STATS")
def inventory_stats_route():
    return ok(inventory_service.get_stats(query_date("start_date"), query_date("end_date")))


@inventory_bp.get("/report")
@require_auth
@require_permission("VIEW_INVENTORY_STATS")
def inventory_report_route():
    """In/out totals per active product. start_date and end_date are required."""
    return ok(inventory_service.get_report(query_date("start_date"), query_date("end_date")))
