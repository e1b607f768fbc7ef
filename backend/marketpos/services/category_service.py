# Overview: Service-layer operations for categories; encapsulates business logic and database work.

from __future__ import annotations

from flask import current_app
from sqlalchemy import and_, func

from ..errors import ConflictError, HasDependentsError, NotFoundError, ValidationError
from ..extensions import db
from ..models import Category, Product
from ..validation import ModelValidationPolicy, apply_patch, validate_payload
from .concurrency import unit_of_work


CATEGORY_POLICY = ModelValidationPolicy(
    writable_fields={"name", "description"},
    required_on_create={"name"},
)


def get_category(category_id: int) -> Category:
    category = db.session.get(Category, category_id)
    if category is None:
        raise NotFoundError("Category not found", details={"category_id": category_id})
    return category


def list_categories() -> list[dict]:
    """All categories with their active product count."""
    product_count = func.count(Product.id).label("product_count")
    rows = (
        db.session.query(Category, product_count)
        .outerjoin(
            Product,
            and_(Product.category_id == Category.id, Product.is_active.is_(True)),
        )
        .group_by(Category.id)
        .order_by(Category.name.asc())
        .all()
    )
    return [dict(category.to_dict(), product_count=int(count)) for category, count in rows]


def list_category_products_query(category_id: int):
    get_category(category_id)
    return (
        db.session.query(Product)
        .filter(Product.category_id == category_id, Product.is_active.is_(True))
        .order_by(Product.name.asc(), Product.id.asc())
    )


def _ensure_unique_name(name: str, exclude_id: int | None = None) -> None:
    query = db.session.query(Category.id).filter(Category.name == name)
    if exclude_id is not None:
        query = query.filter(Category.id != exclude_id)
    if query.first() is not None:
        raise ConflictError("Category name already exists", details={"name": name})


def create_category(payload: dict) -> Category:
    patch = validate_payload(model=Category, payload=payload, policy=CATEGORY_POLICY, partial=False)

    with unit_of_work():
        _ensure_unique_name(patch["name"])
        category = Category()
        apply_patch(category, patch)
        db.session.add(category)

    return category


def update_category(category_id: int, payload: dict) -> Category:
    patch = validate_payload(model=Category, payload=payload, policy=CATEGORY_POLICY, partial=True)
    if not patch:
        raise ValidationError("No fields to update")

    with unit_of_work():
        category = get_category(category_id)
        if "name" in patch:
            _ensure_unique_name(patch["name"], exclude_id=category.id)
        apply_patch(category, patch)

    return category


def delete_category(category_id: int) -> None:
    """Hard delete, refused while active products still use the category."""
    with unit_of_work():
        category = get_category(category_id)
        in_use = (
            db.session.query(func.count(Product.id))
            .filter(Product.category_id == category.id, Product.is_active.is_(True))
            .scalar()
        )
        if in_use:
            raise HasDependentsError(
                "Cannot delete category with existing products",
                details={"category_id": category.id, "active_products": int(in_use)},
            )
        # category_id is NOT NULL, so deactivated products still pin the row
        has_any = (
            db.session.query(Product.id).filter(Product.category_id == category.id).first()
        )
        if has_any is not None:
            raise HasDependentsError(
                "Cannot delete category referenced by deactivated products",
                details={"category_id": category.id},
            )
        db.session.delete(category)

    current_app.logger.info("Category deleted: id=%s", category_id)
