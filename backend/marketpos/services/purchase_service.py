# Overview: Service-layer operations for purchase orders; encapsulates business logic and database work.

"""
Purchase Order Service

Stock is applied when an order is CREATED (one 'in' ledger entry per item).
Status changes afterwards are bookkeeping only. Deleting a pending order
reverses every item with a compensating 'adjustment' entry that references
the deleted order id, so the ledger still explains the stock history.
"""

from __future__ import annotations

from dataclasses import dataclass

from flask import current_app

from ..errors import InsufficientStockError, InvalidStateError, NotFoundError, ValidationError
from ..extensions import db
from ..models import Product, PurchaseOrder, PurchaseOrderItem
from ..models.inventory import TYPE_IN, TYPE_ADJUSTMENT, REF_PURCHASE
from ..models.purchasing import (
    PURCHASE_STATUSES,
    STATUS_CANCELLED,
    STATUS_COMPLETED,
    STATUS_PENDING,
)
from ..validation import MAX_MONEY, coerce_int
from .concurrency import lock_for_update, unit_of_work
from .document_service import DOC_PURCHASE_ORDER, next_document_number
from .inventory_service import apply_stock_change
from .supplier_service import get_supplier


ALLOWED_TRANSITIONS = {
    STATUS_PENDING: {STATUS_COMPLETED, STATUS_CANCELLED},
    STATUS_COMPLETED: set(),
    STATUS_CANCELLED: set(),
}


@dataclass(frozen=True)
class PurchaseLine:
    product_id: int
    quantity: int
    unit_price: int


def parse_purchase_lines(raw_items) -> list[PurchaseLine]:
    if not raw_items or not isinstance(raw_items, list):
        raise ValidationError("At least one item is required")

    lines = []
    for i, raw in enumerate(raw_items):
        if not isinstance(raw, dict):
            raise ValidationError(f"items[{i}] must be an object")
        if raw.get("product_id") is None:
            raise ValidationError(f"items[{i}].product_id is required")
        if raw.get("unit_price") is None:
            raise ValidationError(f"items[{i}].unit_price is required")
        quantity = coerce_int(raw.get("quantity", 0), f"items[{i}].quantity")
        if quantity < 1:
            raise ValidationError(f"items[{i}].quantity must be >= 1")
        unit_price = coerce_int(raw["unit_price"], f"items[{i}].unit_price")
        if unit_price < 0 or unit_price > MAX_MONEY:
            raise ValidationError(f"items[{i}].unit_price must be between 0 and {MAX_MONEY}")
        lines.append(PurchaseLine(
            product_id=coerce_int(raw["product_id"], f"items[{i}].product_id"),
            quantity=quantity,
            unit_price=unit_price,
        ))
    return lines


def _lock_products(product_ids, *, require_active: bool) -> dict[int, Product]:
    products: dict[int, Product] = {}
    for product_id in sorted(set(product_ids)):
        product = lock_for_update(db.session.query(Product).filter_by(id=product_id)).first()
        if product is None or (require_active and not product.is_active):
            raise NotFoundError(
                f"Product with ID {product_id} not found",
                details={"product_id": product_id},
            )
        products[product_id] = product
    return products


def create_purchase_order(
    *,
    supplier_id,
    items,
    user_id: int,
    notes: str | None = None,
) -> PurchaseOrder:
    """Create a pending order and receive its stock in one transaction."""
    if supplier_id is None:
        raise ValidationError("supplier_id is required")
    supplier_id = coerce_int(supplier_id, "supplier_id")
    lines = parse_purchase_lines(items)
    notes = (str(notes).strip() or None) if notes is not None else None

    with unit_of_work():
        get_supplier(supplier_id, active_only=True)
        products = _lock_products([line.product_id for line in lines], require_active=True)

        order = PurchaseOrder(
            order_number=next_document_number(document_type=DOC_PURCHASE_ORDER),
            supplier_id=supplier_id,
            user_id=user_id,
            total_amount=sum(line.quantity * line.unit_price for line in lines),
            status=STATUS_PENDING,
            notes=notes,
        )
        db.session.add(order)
        db.session.flush()

        for line in lines:
            order.items.append(PurchaseOrderItem(
                product_id=line.product_id,
                quantity=line.quantity,
                unit_price=line.unit_price,
                line_total=line.quantity * line.unit_price,
            ))
            apply_stock_change(
                product=products[line.product_id],
                quantity_change=line.quantity,
                transaction_type=TYPE_IN,
                user_id=user_id,
                reference_type=REF_PURCHASE,
                reference_id=order.id,
                notes=f"Purchase {order.order_number}",
            )

    current_app.logger.info(
        "Purchase order committed: %s total=%s items=%s by user=%s",
        order.order_number, order.total_amount, len(lines), user_id,
    )
    return order


def get_purchase_order(order_id: int) -> PurchaseOrder:
    order = db.session.get(PurchaseOrder, order_id)
    if order is None:
        raise NotFoundError("Purchase order not found", details={"purchase_order_id": order_id})
    return order


def list_purchase_orders_query(*, status: str | None = None, supplier_id: int | None = None):
    if status is not None and status not in PURCHASE_STATUSES:
        raise ValidationError(f"status must be one of: {', '.join(PURCHASE_STATUSES)}")
    query = db.session.query(PurchaseOrder)
    if status is not None:
        query = query.filter(PurchaseOrder.status == status)
    if supplier_id is not None:
        query = query.filter(PurchaseOrder.supplier_id == supplier_id)
    return query.order_by(PurchaseOrder.created_at.desc(), PurchaseOrder.id.desc())


def update_status(order_id: int, status) -> PurchaseOrder:
    """pending -> completed | cancelled. No stock effect."""
    status = (status or "").strip().lower() if isinstance(status, str) else status
    if status not in PURCHASE_STATUSES:
        raise ValidationError(f"status must be one of: {', '.join(PURCHASE_STATUSES)}")

    with unit_of_work():
        order = lock_for_update(db.session.query(PurchaseOrder).filter_by(id=order_id)).first()
        if order is None:
            raise NotFoundError("Purchase order not found", details={"purchase_order_id": order_id})
        if status not in ALLOWED_TRANSITIONS[order.status]:
            raise InvalidStateError(
                f"Cannot change status from {order.status} to {status}",
                details={"from": order.status, "to": status},
            )
        order.status = status

    current_app.logger.info("Purchase order %s -> %s", order_id, status)
    return order


def delete_purchase_order(order_id: int, *, user_id: int) -> None:
    """
    Delete a pending order and take its stock back out.

    Fails with InvalidStateError unless pending, and with
    InsufficientStockError if some of the received stock has already been
    sold. Either way nothing changes.
    """
    with unit_of_work():
        order = lock_for_update(db.session.query(PurchaseOrder).filter_by(id=order_id)).first()
        if order is None:
            raise NotFoundError("Purchase order not found", details={"purchase_order_id": order_id})
        if order.status != STATUS_PENDING:
            raise InvalidStateError(
                "Only pending purchase orders can be deleted",
                details={"status": order.status},
            )

        items = list(order.items)
        products = _lock_products([item.product_id for item in items], require_active=False)

        to_reverse: dict[int, int] = {}
        for item in items:
            to_reverse[item.product_id] = to_reverse.get(item.product_id, 0) + item.quantity
        short = [
            {
                "product_id": pid,
                "product_name": products[pid].name,
                "requested": qty,
                "available": products[pid].current_stock,
            }
            for pid, qty in to_reverse.items()
            if products[pid].current_stock < qty
        ]
        if short:
            raise InsufficientStockError(
                "Cannot reverse purchase order: stock already consumed",
                details={"items": short},
            )

        for item in items:
            apply_stock_change(
                product=products[item.product_id],
                quantity_change=-item.quantity,
                transaction_type=TYPE_ADJUSTMENT,
                user_id=user_id,
                reference_type=REF_PURCHASE,
                reference_id=order.id,
                notes=f"Purchase {order.order_number} deleted",
            )

        db.session.delete(order)

    current_app.logger.info("Purchase order deleted: id=%s by user=%s", order_id, user_id)
