"""
Sales Service - single-transaction checkout

WHY: A sale, its lines, the stock decrements and the ledger entries must be
recorded together or not at all. Every precondition (items present, products
active, stock sufficient, discount usable) is checked before the first write
so ordinary failures never depend on rollback.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from flask import current_app
from sqlalchemy import func

from ..errors import InsufficientStockError, NotFoundError, ValidationError
from ..extensions import db
from ..models import Product, Sale, SaleItem
from ..models.inventory import TYPE_OUT, REF_SALE
from ..models.sales import PAYMENT_METHODS
from ..validation import coerce_int
from .concurrency import lock_for_update, unit_of_work
from .discount_service import compute_discount_amount, resolve_active_discount
from .document_service import DOC_INVOICE, next_document_number
from .inventory_service import apply_stock_change, filter_created_between


@dataclass(frozen=True)
class CheckoutLine:
    product_id: int
    quantity: int


@dataclass(frozen=True)
class CheckoutRequest:
    lines: list[CheckoutLine]
    payment_method: str = "cash"
    cash_received: int = 0
    discount_id: int | None = None
    customer_name: str | None = None
    customer_phone: str | None = None
    customer_email: str | None = None


def _clean_text(value, max_len: int) -> str | None:
    if value is None:
        return None
    value = str(value).strip()
    return value[:max_len] or None


def parse_checkout(payload: dict) -> CheckoutRequest:
    """Turn a request body into a typed CheckoutRequest (no database access)."""
    if not isinstance(payload, dict):
        raise ValidationError("Invalid JSON payload")

    raw_items = payload.get("items")
    if not raw_items or not isinstance(raw_items, list):
        raise ValidationError("Sale must have at least one item")

    lines = []
    for i, raw in enumerate(raw_items):
        if not isinstance(raw, dict):
            raise ValidationError(f"items[{i}] must be an object")
        if raw.get("product_id") is None:
            raise ValidationError(f"items[{i}].product_id is required")
        product_id = coerce_int(raw.get("product_id"), f"items[{i}].product_id")
        quantity = coerce_int(raw.get("quantity", 0), f"items[{i}].quantity")
        if quantity < 1:
            raise ValidationError(f"items[{i}].quantity must be >= 1")
        lines.append(CheckoutLine(product_id=product_id, quantity=quantity))

    payment_method = payload.get("payment_method") or "cash"
    if not isinstance(payment_method, str):
        raise ValidationError("payment_method must be a string")
    payment_method = payment_method.strip().lower()
    if payment_method not in PAYMENT_METHODS:
        raise ValidationError(f"payment_method must be one of: {', '.join(PAYMENT_METHODS)}")

    cash_received = payload.get("cash_received")
    cash_received = 0 if cash_received is None else coerce_int(cash_received, "cash_received")
    if cash_received < 0:
        raise ValidationError("cash_received must be >= 0")

    discount_id = payload.get("discount_id")
    if discount_id in (None, "", 0):
        discount_id = None
    else:
        discount_id = coerce_int(discount_id, "discount_id")

    return CheckoutRequest(
        lines=lines,
        payment_method=payment_method,
        cash_received=cash_received,
        discount_id=discount_id,
        customer_name=_clean_text(payload.get("customer_name"), 100),
        customer_phone=_clean_text(payload.get("customer_phone"), 32),
        customer_email=_clean_text(payload.get("customer_email"), 255),
    )


def _lock_products(product_ids: list[int]) -> dict[int, Product]:
    """Lock every product in the cart, in id order so concurrent checkouts don't deadlock."""
    products: dict[int, Product] = {}
    for product_id in sorted(set(product_ids)):
        product = lock_for_update(db.session.query(Product).filter_by(id=product_id)).first()
        if product is None or not product.is_active:
            raise NotFoundError(
                f"Product with ID {product_id} not found",
                details={"product_id": product_id},
            )
        products[product_id] = product
    return products


def _validate_stock(lines: list[CheckoutLine], products: dict[int, Product]) -> None:
    requested: dict[int, int] = {}
    for line in lines:
        requested[line.product_id] = requested.get(line.product_id, 0) + line.quantity

    insufficient = []
    for product_id, qty in requested.items():
        product = products[product_id]
        if product.current_stock < qty:
            insufficient.append({
                "product_id": product_id,
                "product_name": product.name,
                "requested": qty,
                "available": product.current_stock,
            })

    if insufficient:
        first = insufficient[0]
        raise InsufficientStockError(
            f"Not enough stock for {first['product_name']}. Available: {first['available']}",
            details={"items": insufficient},
        )


def checkout(request: CheckoutRequest, *, user_id: int) -> Sale:
    """
    Record a complete sale.

    On success the sale, its items, the decremented stock and one 'out'
    ledger entry per item are committed together. On any failure nothing is
    written.
    """
    if not request.lines:
        raise ValidationError("Sale must have at least one item")

    with unit_of_work():
        products = _lock_products([line.product_id for line in request.lines])
        _validate_stock(request.lines, products)

        subtotal = sum(products[line.product_id].sale_price * line.quantity for line in request.lines)

        discount = None
        discount_amount = 0
        if request.discount_id is not None:
            discount = resolve_active_discount(request.discount_id)
            discount_amount = compute_discount_amount(
                discount.discount_type, discount.discount_value, subtotal
            )

        total_amount = subtotal - discount_amount

        sale = Sale(
            invoice_number=next_document_number(document_type=DOC_INVOICE),
            user_id=user_id,
            customer_name=request.customer_name,
            customer_phone=request.customer_phone,
            customer_email=request.customer_email,
            discount_id=discount.id if discount else None,
            subtotal=subtotal,
            discount_amount=discount_amount,
            total_amount=total_amount,
            cash_received=request.cash_received,
            change_amount=request.cash_received - total_amount,
            payment_method=request.payment_method,
        )
        db.session.add(sale)
        db.session.flush()  # sale.id for ledger references

        for line in request.lines:
            product = products[line.product_id]
            unit_price = product.sale_price
            sale.items.append(SaleItem(
                product_id=product.id,
                quantity=line.quantity,
                unit_price=unit_price,
                line_total=unit_price * line.quantity,
            ))
            apply_stock_change(
                product=product,
                quantity_change=-line.quantity,
                transaction_type=TYPE_OUT,
                user_id=user_id,
                reference_type=REF_SALE,
                reference_id=sale.id,
                notes=f"Sale {sale.invoice_number}",
            )

    current_app.logger.info(
        "Sale committed: %s total=%s items=%s by user=%s",
        sale.invoice_number, sale.total_amount, len(request.lines), user_id,
    )
    return sale


def get_sale(sale_id: int) -> Sale:
    sale = db.session.get(Sale, sale_id)
    if sale is None:
        raise NotFoundError("Sale not found", details={"sale_id": sale_id})
    return sale


def list_sales_query(*, start_date: date | None = None, end_date: date | None = None):
    query = db.session.query(Sale)
    query = filter_created_between(query, Sale.created_at, start_date, end_date)
    return query.order_by(Sale.created_at.desc(), Sale.id.desc())


def lookup_for_pos(barcode: str) -> dict:
    """Product card for the POS screen; out-of-stock products cannot be scanned in."""
    barcode = (barcode or "").strip()
    product = (
        db.session.query(Product)
        .filter(Product.barcode == barcode, Product.is_active.is_(True))
        .first()
    )
    if product is None:
        raise NotFoundError("Product not found", details={"barcode": barcode})
    if product.current_stock <= 0:
        raise InsufficientStockError(
            "Product is out of stock",
            details={"product_id": product.id, "available": product.current_stock},
        )
    return {
        "product_id": product.id,
        "product_name": product.name,
        "barcode": product.barcode,
        "category_name": product.category.name if product.category else None,
        "sale_price": product.sale_price,
        "unit": product.unit,
        "current_stock": product.current_stock,
        "image_url": product.image_url,
    }


def get_sales_stats(start_date: date | None = None, end_date: date | None = None) -> dict:
    query = db.session.query(
        func.count(Sale.id),
        func.coalesce(func.sum(Sale.total_amount), 0),
        func.avg(Sale.total_amount),
        func.coalesce(func.sum(Sale.discount_amount), 0),
        func.count(func.distinct(Sale.user_id)),
    )
    query = filter_created_between(query, Sale.created_at, start_date, end_date)
    total_sales, revenue, avg_amount, discounts, cashiers = query.one()
    return {
        "total_sales": int(total_sales or 0),
        "total_revenue": int(revenue or 0),
        "avg_sale_amount": round(float(avg_amount), 2) if avg_amount is not None else 0,
        "total_discounts": int(discounts or 0),
        "active_cashiers": int(cashiers or 0),
    }
