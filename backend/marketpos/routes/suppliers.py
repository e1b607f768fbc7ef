# Overview: Flask API routes for supplier operations; parses input and returns JSON responses.

from flask import Blueprint

from ..decorators import audit_activity, require_auth, require_permission
from ..responses import json_body, ok, paginate, query_bool, query_int
from ..services import supplier_service


suppliers_bp = Blueprint("suppliers", __name__, url_prefix="/api/suppliers")


@suppliers_bp.get("")
@require_auth
@require_permission("VIEW_CATALOG")
def list_suppliers_route():
    """Active suppliers, newest first. ?include_inactive=true lists all."""
    query = supplier_service.list_suppliers_query(include_inactive=query_bool("include_inactive"))
    return ok(paginate(query, query_int("page"), query_int("per_page"), lambda s: s.to_dict()))


@suppliers_bp.get("/<int:supplier_id>")
@require_auth
@require_permission("VIEW_CATALOG")
def get_supplier_route(supplier_id: int):
    return ok(supplier_service.get_supplier(supplier_id).to_dict())


@suppliers_bp.get("/<int:supplier_id>/purchase-orders")
@require_auth
@require_permission("VIEW_PURCHASES")
def list_supplier_orders_route(supplier_id: int):
    query = supplier_service.list_supplier_orders_query(supplier_id)
    return ok(paginate(query, query_int("page"), query_int("per_page"), lambda o: o.to_dict()))


@suppliers_bp.post("")
@require_auth
@require_permission("MANAGE_SUPPLIERS")
def create_supplier_route():
    supplier = supplier_service.create_supplier(json_body())
    audit_activity("SUPPLIER_CREATED", f"supplier:{supplier.id}")
    return ok(supplier.to_dict(), message="Supplier created successfully", status=201)


@suppliers_bp.put("/<int:supplier_id>")
@require_auth
@require_permission("MANAGE_SUPPLIERS")
def update_supplier_route(supplier_id: int):
    supplier = supplier_service.update_supplier(supplier_id, json_body())
    audit_activity("SUPPLIER_UPDATED", f"supplier:{supplier_id}")
    return ok(supplier.to_dict(), message="Supplier updated successfully")


@suppliers_bp.delete("/<int:supplier_id>")
@require_auth
@require_permission("MANAGE_SUPPLIERS")
def delete_supplier_route(supplier_id: int):
    supplier_service.delete_supplier(supplier_id)
    audit_activity("SUPPLIER_DELETED", f"supplier:{supplier_id}")
    return ok(message="Supplier deleted successfully")
