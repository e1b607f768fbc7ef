# Overview: Service-layer operations for inventory; encapsulates business logic and database work.

from __future__ import annotations

from datetime import date, datetime, time, timedelta

from flask import current_app
from sqlalchemy import and_, case, func

from ..errors import InsufficientStockError, NotFoundError, ValidationError
from ..extensions import db
from ..models import InventoryLog, Product
from ..models.inventory import (
    TRANSACTION_TYPES,
    TYPE_ADJUSTMENT,
    REF_MANUAL,
)
from ..validation import coerce_int
from .concurrency import lock_for_update, unit_of_work

"""
Inventory Invariants (authoritative)

- Product.current_stock is the only stored on-hand quantity.
- Every change to current_stock goes through apply_stock_change(), which
  appends exactly one InventoryLog row in the same transaction.
- current_stock + quantity_change must stay >= 0; a change that would go
  negative raises InsufficientStockError before anything is written.
- Ledger rows chain: for consecutive entries of one product,
  next.previous_stock == prev.new_stock.
"""


def get_product_for_update(product_id: int, *, require_active: bool = True) -> Product:
    """Load a product with a row lock for the rest of the transaction."""
    product = lock_for_update(db.session.query(Product).filter_by(id=product_id)).first()
    if product is None or (require_active and not product.is_active):
        raise NotFoundError(f"Product {product_id} not found", details={"product_id": product_id})
    return product


def apply_stock_change(
    *,
    product: Product,
    quantity_change: int,
    transaction_type: str,
    user_id: int,
    reference_type: str,
    reference_id: int | None = None,
    notes: str | None = None,
) -> InventoryLog:
    """
    Change a locked product's stock and append the matching ledger entry.

    Caller owns the transaction (see unit_of_work). Does not commit.
    """
    if transaction_type not in TRANSACTION_TYPES:
        raise ValueError(f"unknown transaction_type {transaction_type!r}")

    previous_stock = product.current_stock
    new_stock = previous_stock + quantity_change
    if new_stock < 0:
        raise InsufficientStockError(
            f"Insufficient stock for {product.name}. Available: {previous_stock}",
            details={
                "product_id": product.id,
                "product_name": product.name,
                "requested": -quantity_change,
                "available": previous_stock,
            },
        )

    product.current_stock = new_stock

    entry = InventoryLog(
        product_id=product.id,
        user_id=user_id,
        transaction_type=transaction_type,
        quantity_change=quantity_change,
        previous_stock=previous_stock,
        new_stock=new_stock,
        reference_type=reference_type,
        reference_id=reference_id,
        notes=notes,
    )
    db.session.add(entry)
    return entry


def adjust_stock(
    *,
    product_id,
    quantity_change,
    user_id: int,
    notes: str | None = None,
) -> dict:
    """
    Manual stock correction (shrink, recount, damage...).

    quantity_change is a signed, non-zero integer. The product must be
    active and the result must not be negative.
    """
    product_id = coerce_int(product_id, "product_id")
    quantity_change = coerce_int(quantity_change, "quantity_change")
    if quantity_change == 0:
        raise ValidationError("quantity_change must be non-zero")
    if notes is not None:
        notes = str(notes).strip()[:255] or None

    with unit_of_work():
        product = get_product_for_update(product_id)
        entry = apply_stock_change(
            product=product,
            quantity_change=quantity_change,
            transaction_type=TYPE_ADJUSTMENT,
            user_id=user_id,
            reference_type=REF_MANUAL,
            notes=notes,
        )
        result = {
            "product_id": product.id,
            "product_name": product.name,
            "previous_stock": entry.previous_stock,
            "new_stock": entry.new_stock,
            "quantity_change": quantity_change,
        }

    current_app.logger.info(
        "Inventory adjusted: product=%s %+d (%s -> %s) by user=%s",
        product_id, quantity_change, result["previous_stock"], result["new_stock"], user_id,
    )
    return result


def _day_bounds(start_date: date | None, end_date: date | None) -> tuple[datetime | None, datetime | None]:
    """Inclusive calendar-day range as [start 00:00, day-after-end 00:00)."""
    start = datetime.combine(start_date, time.min) if start_date else None
    end = datetime.combine(end_date + timedelta(days=1), time.min) if end_date else None
    return start, end


def filter_created_between(query, column, start_date: date | None, end_date: date | None):
    start, end = _day_bounds(start_date, end_date)
    if start is not None:
        query = query.filter(column >= start)
    if end is not None:
        query = query.filter(column < end)
    return query


def list_logs_query(
    *,
    product_id: int | None = None,
    transaction_type: str | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
):
    """Ledger entries, newest first, with optional filters."""
    if transaction_type is not None and transaction_type not in TRANSACTION_TYPES:
        raise ValidationError(
            f"transaction_type must be one of: {', '.join(TRANSACTION_TYPES)}"
        )

    query = db.session.query(InventoryLog)
    if product_id is not None:
        query = query.filter(InventoryLog.product_id == product_id)
    if transaction_type is not None:
        query = query.filter(InventoryLog.transaction_type == transaction_type)
    query = filter_created_between(query, InventoryLog.created_at, start_date, end_date)
    return query.order_by(InventoryLog.created_at.desc(), InventoryLog.id.desc())


def get_product_history(product_id: int) -> list[InventoryLog]:
    """Ledger entries for one product in the order they were written."""
    return (
        db.session.query(InventoryLog)
        .filter(InventoryLog.product_id == product_id)
        .order_by(InventoryLog.id.asc())
        .all()
    )


def get_stats(start_date: date | None = None, end_date: date | None = None, *, limit: int = 10) -> dict:
    """Movement totals, top products by movement and low-stock products."""
    qty = InventoryLog.quantity_change
    ttype = InventoryLog.transaction_type

    overall_q = db.session.query(
        func.count(func.distinct(InventoryLog.product_id)),
        func.coalesce(func.sum(case((ttype == "in", qty), else_=0)), 0),
        func.coalesce(func.sum(case((ttype == "out", func.abs(qty)), else_=0)), 0),
        func.coalesce(func.sum(case((ttype == "adjustment", qty), else_=0)), 0),
    )
    overall_q = filter_created_between(overall_q, InventoryLog.created_at, start_date, end_date)
    total_products, total_in, total_out, total_adjustments = overall_q.one()

    movement = func.sum(func.abs(qty)).label("total_movement")
    top_q = (
        db.session.query(
            Product.id,
            Product.name,
            Product.barcode,
            movement,
            func.sum(case((ttype == "in", qty), else_=0)).label("total_in"),
            func.sum(case((ttype == "out", func.abs(qty)), else_=0)).label("total_out"),
        )
        .join(Product, Product.id == InventoryLog.product_id)
    )
    top_q = filter_created_between(top_q, InventoryLog.created_at, start_date, end_date)
    top_rows = (
        top_q.group_by(Product.id, Product.name, Product.barcode)
        .order_by(movement.desc(), Product.id.asc())
        .limit(limit)
        .all()
    )

    low_rows = (
        db.session.query(Product)
        .filter(Product.is_active.is_(True), Product.current_stock <= Product.min_stock)
        .order_by((Product.current_stock - Product.min_stock).asc(), Product.id.asc())
        .limit(limit)
        .all()
    )

    return {
        "overall": {
            "total_products": int(total_products or 0),
            "total_in": int(total_in or 0),
            "total_out": int(total_out or 0),
            "total_adjustments": int(total_adjustments or 0),
        },
        "top_products": [
            {
                "product_id": row.id,
                "product_name": row.name,
                "barcode": row.barcode,
                "total_movement": int(row.total_movement or 0),
                "total_in": int(row.total_in or 0),
                "total_out": int(row.total_out or 0),
            }
            for row in top_rows
        ],
        "low_stock_products": [
            {
                "product_id": p.id,
                "product_name": p.name,
                "barcode": p.barcode,
                "current_stock": p.current_stock,
                "min_stock": p.min_stock,
                "stock_difference": p.current_stock - p.min_stock,
            }
            for p in low_rows
        ],
    }


def get_report(start_date: date | None, end_date: date | None) -> list[dict]:
    """
    Stock-in / stock-out report over an inclusive date range.

    One row per active product, including products with no movement in the
    range, ordered by name.
    """
    if start_date is None or end_date is None:
        raise ValidationError("Start date and end date are required")
    if end_date < start_date:
        raise ValidationError("end_date must not be before start_date")

    start, end = _day_bounds(start_date, end_date)
    qty = InventoryLog.quantity_change
    ttype = InventoryLog.transaction_type

    rows = (
        db.session.query(
            Product.id,
            Product.name,
            Product.barcode,
            Product.current_stock,
            func.count(InventoryLog.id).label("total_transactions"),
            func.coalesce(func.sum(case((ttype == "in", qty), else_=0)), 0).label("total_in"),
            func.coalesce(func.sum(case((ttype == "out", func.abs(qty)), else_=0)), 0).label("total_out"),
            func.coalesce(func.sum(case((ttype == "adjustment", qty), else_=0)), 0).label("total_adjustments"),
        )
        .outerjoin(
            InventoryLog,
            and_(
                InventoryLog.product_id == Product.id,
                InventoryLog.created_at >= start,
                InventoryLog.created_at < end,
            ),
        )
        .filter(Product.is_active.is_(True))
        .group_by(Product.id, Product.name, Product.barcode, Product.current_stock)
        .order_by(Product.name.asc(), Product.id.asc())
        .all()
    )

    return [
        {
            "product_id": row.id,
            "product_name": row.name,
            "barcode": row.barcode,
            "current_stock": row.current_stock,
            "total_transactions": int(row.total_transactions or 0),
            "total_in": int(row.total_in or 0),
            "total_out": int(row.total_out or 0),
            "total_adjustments": int(row.total_adjustments or 0),
        }
        for row in rows
    ]
