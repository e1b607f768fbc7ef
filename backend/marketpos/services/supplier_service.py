# Overview: Service-layer operations for suppliers; encapsulates business logic and database work.

"""
Supplier Service

Suppliers are referenced by every purchase order. Deletion is a soft delete
(is_active = False) and is refused while any purchase order references the
supplier, so order history always has a live header.
"""

from __future__ import annotations

from flask import current_app
from sqlalchemy import func

from ..errors import ConflictError, HasDependentsError, NotFoundError, ValidationError
from ..extensions import db
from ..models import PurchaseOrder, Supplier
from ..validation import ModelValidationPolicy, apply_patch, validate_payload
from .concurrency import unit_of_work


SUPPLIER_POLICY = ModelValidationPolicy(
    writable_fields={"name", "contact_person", "phone", "email", "address", "is_active"},
    required_on_create={"name"},
)


def get_supplier(supplier_id: int, *, active_only: bool = False) -> Supplier:
    supplier = db.session.get(Supplier, supplier_id)
    if supplier is None or (active_only and not supplier.is_active):
        raise NotFoundError("Supplier not found", details={"supplier_id": supplier_id})
    return supplier


def list_suppliers_query(*, include_inactive: bool = False):
    query = db.session.query(Supplier)
    if not include_inactive:
        query = query.filter(Supplier.is_active.is_(True))
    return query.order_by(Supplier.created_at.desc(), Supplier.id.desc())


def list_supplier_orders_query(supplier_id: int):
    get_supplier(supplier_id)
    return (
        db.session.query(PurchaseOrder)
        .filter(PurchaseOrder.supplier_id == supplier_id)
        .order_by(PurchaseOrder.created_at.desc(), PurchaseOrder.id.desc())
    )


def _ensure_unique_name(name: str, exclude_id: int | None = None) -> None:
    query = db.session.query(Supplier.id).filter(Supplier.name == name)
    if exclude_id is not None:
        query = query.filter(Supplier.id != exclude_id)
    if query.first() is not None:
        raise ConflictError("Supplier name already exists", details={"name": name})


def create_supplier(payload: dict) -> Supplier:
    patch = validate_payload(model=Supplier, payload=payload, policy=SUPPLIER_POLICY, partial=False)

    with unit_of_work():
        _ensure_unique_name(patch["name"])
        supplier = Supplier()
        apply_patch(supplier, patch)
        db.session.add(supplier)

    return supplier


def update_supplier(supplier_id: int, payload: dict) -> Supplier:
    patch = validate_payload(model=Supplier, payload=payload, policy=SUPPLIER_POLICY, partial=True)
    if not patch:
        raise ValidationError("No fields to update")

    with unit_of_work():
        supplier = get_supplier(supplier_id)
        if "name" in patch:
            _ensure_unique_name(patch["name"], exclude_id=supplier.id)
        apply_patch(supplier, patch)

    return supplier


def delete_supplier(supplier_id: int) -> None:
    with unit_of_work():
        supplier = get_supplier(supplier_id, active_only=True)
        order_count = (
            db.session.query(func.count(PurchaseOrder.id))
            .filter(PurchaseOrder.supplier_id == supplier.id)
            .scalar()
        )
        if order_count:
            raise HasDependentsError(
                "Cannot delete supplier with existing purchase orders",
                details={"supplier_id": supplier.id, "purchase_orders": int(order_count)},
            )
        supplier.is_active = False

    current_app.logger.info("Supplier deactivated: id=%s", supplier_id)
