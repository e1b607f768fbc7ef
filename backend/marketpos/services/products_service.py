# backend/marketpos/services/products_service.py
"""
Products Service

- current_stock is never writable here; stock only enters through the
  inventory ledger (purchases, sales, adjustments)
- barcode is unique when present (self excluded on update)
- delete is a soft delete (is_active = False)
"""
from __future__ import annotations

from flask import current_app
from sqlalchemy import case, func, or_

from ..errors import ConflictError, NotFoundError, ValidationError
from ..extensions import db
from ..models import Category, Product
from ..validation import (
    ModelValidationPolicy,
    apply_patch,
    enforce_rules_product,
    validate_payload,
)
from .concurrency import unit_of_work


PRODUCT_POLICY = ModelValidationPolicy(
    writable_fields={
        "name",
        "barcode",
        "category_id",
        "purchase_price",
        "sale_price",
        "unit",
        "min_stock",
        "image_url",
        "is_active",
    },
    required_on_create={"name", "category_id", "sale_price"},
)


def get_product(product_id: int, *, active_only: bool = False) -> Product:
    product = db.session.get(Product, product_id)
    if product is None or (active_only and not product.is_active):
        raise NotFoundError("Product not found", details={"product_id": product_id})
    return product


def get_product_by_barcode(barcode: str) -> Product:
    barcode = (barcode or "").strip()
    product = (
        db.session.query(Product)
        .filter(Product.barcode == barcode, Product.is_active.is_(True))
        .first()
    )
    if product is None:
        raise NotFoundError("Product not found", details={"barcode": barcode})
    return product


def list_products_query(
    *,
    q: str | None = None,
    category_id: int | None = None,
    low_stock: bool = False,
):
    """Active products, newest first."""
    query = db.session.query(Product).filter(Product.is_active.is_(True))
    if q:
        like = f"%{q.strip()}%"
        query = query.filter(or_(Product.name.ilike(like), Product.barcode.ilike(like)))
    if category_id is not None:
        query = query.filter(Product.category_id == category_id)
    if low_stock:
        query = query.filter(Product.current_stock <= Product.min_stock)
    return query.order_by(Product.created_at.desc(), Product.id.desc())


def _ensure_category(category_id: int) -> None:
    if db.session.get(Category, category_id) is None:
        raise ValidationError("Category not found", details={"category_id": category_id})


def _ensure_unique_barcode(barcode: str | None, exclude_id: int | None = None) -> None:
    if not barcode:
        return
    query = db.session.query(Product.id).filter(Product.barcode == barcode)
    if exclude_id is not None:
        query = query.filter(Product.id != exclude_id)
    if query.first() is not None:
        raise ConflictError("Barcode already exists", details={"barcode": barcode})


def create_product(payload: dict) -> Product:
    """Create a product. Stock starts at 0."""
    patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=False)
    enforce_rules_product(patch)

    with unit_of_work():
        _ensure_category(patch["category_id"])
        _ensure_unique_barcode(patch.get("barcode"))

        product = Product(current_stock=0)
        apply_patch(product, patch)
        db.session.add(product)

    current_app.logger.info("Product created: id=%s name=%s", product.id, product.name)
    return product


def update_product(product_id: int, payload: dict) -> Product:
    """Typed partial update; only allowlisted fields are applied."""
    patch = validate_payload(model=Product, payload=payload, policy=PRODUCT_POLICY, partial=True)
    if not patch:
        raise ValidationError("No fields to update")
    enforce_rules_product(patch)

    with unit_of_work():
        product = get_product(product_id)
        if "category_id" in patch:
            _ensure_category(patch["category_id"])
        if "barcode" in patch:
            _ensure_unique_barcode(patch["barcode"], exclude_id=product.id)
        apply_patch(product, patch)

    return product


def delete_product(product_id: int) -> None:
    """Soft delete. History (sales, ledger) keeps pointing at the row."""
    with unit_of_work():
        product = get_product(product_id, active_only=True)
        product.is_active = False

    current_app.logger.info("Product deactivated: id=%s", product_id)


def get_product_stats() -> dict:
    row = db.session.query(
        func.count(Product.id),
        func.coalesce(func.sum(case((Product.is_active.is_(True), 1), else_=0)), 0),
        func.coalesce(func.sum(case((Product.current_stock <= Product.min_stock, 1), else_=0)), 0),
        func.coalesce(func.sum(case((Product.current_stock == 0, 1), else_=0)), 0),
        func.avg(Product.sale_price),
        func.coalesce(func.sum(Product.current_stock * Product.purchase_price), 0),
    ).one()

    total, active, low, out_of_stock, avg_price, inventory_value = row
    return {
        "total_products": int(total or 0),
        "active_products": int(active or 0),
        "low_stock_products": int(low or 0),
        "out_of_stock_products": int(out_of_stock or 0),
        "avg_price": round(float(avg_price), 2) if avg_price is not None else 0,
        "total_inventory_value": int(inventory_value or 0),
    }
