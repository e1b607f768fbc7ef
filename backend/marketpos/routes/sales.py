# Overview: Flask API routes for sales operations; parses input and returns JSON responses.

"""
Sales API routes

POST /api/sales runs the whole checkout in one transaction. The invoice
e-mail is attempted only after the commit, and its outcome is reported as
email_sent without ever failing the request.
"""

from flask import Blueprint, g

from ..decorators import require_auth, require_permission
from ..responses import json_body, ok, paginate, query_date, query_int
from ..services import email_service, sales_service


sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")


@sales_bp.post("")
@require_auth
@require_permission("CREATE_SALE")
def create_sale_route():
    """
    Body: {items: [{product_id, quantity}], discount_id?, payment_method,
    cash_received, customer_name?, customer_phone?, customer_email?}
    """
    request_data = sales_service.parse_checkout(json_body())
    sale = sales_service.checkout(request_data, user_id=g.current_user.id)

    email_sent = False
    if sale.customer_email:
        email_sent = email_service.send_invoice_email(sale)

    return ok(
        {
            "sale_id": sale.id,
            "invoice_number": sale.invoice_number,
            "subtotal": sale.subtotal,
            "discount_amount": sale.discount_amount,
            "total_amount": sale.total_amount,
            "change_amount": sale.change_amount,
            "email_sent": email_sent,
        },
        message="Sale created successfully",
        status=201,
    )


@sales_bp.get("")
@require_auth
@require_permission("VIEW_SALES")
def list_sales_route():
    query = sales_service.list_sales_query(
        start_date=query_date("start_date"),
        end_date=query_date("end_date"),
    )
    return ok(paginate(query, query_int("page"), query_int("per_page"), lambda s: s.to_dict()))


@sales_bp.get("/stats")
@require_auth
@require_permission("VIEW_SALES_STATS")
def sales_stats_route():
    return ok(sales_service.get_sales_stats(query_date("start_date"), query_date("end_date")))


@sales_bp.get("/barcode/<barcode>")
@require_auth
@require_permission("VIEW_CATALOG")
def pos_lookup_route(barcode: str):
    return ok(sales_service.lookup_for_pos(barcode))


@sales_bp.get("/<int:sale_id>")
@require_auth
@require_permission("VIEW_SALES")
def get_sale_route(sale_id: int):
    return ok(sales_service.get_sale(sale_id).to_dict(include_items=True))
