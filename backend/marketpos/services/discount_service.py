# Overview: Service-layer operations for discounts; encapsulates business logic and database work.

"""
Discount Engine

compute_discount_amount() is pure: it never reads the database. Everything
that needs "is this discount usable today" goes through
resolve_active_discount(), which rejects inactive, expired and not yet
started discounts instead of silently ignoring them.
"""

from __future__ import annotations

from datetime import date

from flask import current_app

from ..errors import (
    ConflictError,
    DiscountUnavailableError,
    NotFoundError,
    ValidationError,
)
from ..extensions import db
from ..models import Discount, Sale
from ..models.promotions import DISCOUNT_AMOUNT, DISCOUNT_PERCENTAGE
from ..time_utils import today
from ..validation import (
    ModelValidationPolicy,
    apply_patch,
    coerce_int,
    enforce_rules_discount,
    validate_payload,
)
from .concurrency import unit_of_work


DISCOUNT_POLICY = ModelValidationPolicy(
    writable_fields={
        "name",
        "discount_type",
        "discount_value",
        "start_date",
        "end_date",
        "is_active",
    },
    required_on_create={
        "name",
        "discount_type",
        "discount_value",
        "start_date",
        "end_date",
    },
)


def compute_discount_amount(discount_type: str, discount_value: int, base: int) -> int:
    """
    Monetary reduction for a base amount, never more than the base.

    percentage: base * value / 100, rounded half-up to a whole unit
    amount:     min(value, base)
    """
    if base <= 0:
        return 0
    if discount_type == DISCOUNT_PERCENTAGE:
        amount = (base * discount_value + 50) // 100
    elif discount_type == DISCOUNT_AMOUNT:
        amount = discount_value
    else:
        raise ValidationError(f"Unknown discount type: {discount_type}")
    return max(0, min(amount, base))


def get_discount(discount_id: int) -> Discount:
    discount = db.session.get(Discount, discount_id)
    if discount is None:
        raise NotFoundError("Discount not found", details={"discount_id": discount_id})
    return discount


def resolve_active_discount(discount_id, day: date | None = None) -> Discount:
    """Load a discount and require it to be usable on `day` (default today)."""
    discount_id = coerce_int(discount_id, "discount_id")
    discount = get_discount(discount_id)
    day = day or today()

    if not discount.is_active:
        raise DiscountUnavailableError(
            f"Discount '{discount.name}' is not active",
            details={"discount_id": discount.id, "status": "inactive"},
        )
    status = discount.status_on(day)
    if status != "active":
        raise DiscountUnavailableError(
            f"Discount '{discount.name}' is {status}",
            details={"discount_id": discount.id, "status": status},
        )
    return discount


def calculate(discount_id, total_amount) -> dict:
    """Preview a discount against an amount without writing anything."""
    if discount_id is None:
        raise ValidationError("discount_id is required")
    if total_amount is None:
        raise ValidationError("total_amount is required")
    total_amount = coerce_int(total_amount, "total_amount")
    if total_amount < 0:
        raise ValidationError("total_amount must be >= 0")

    discount = resolve_active_discount(discount_id)
    return {
        "discount_id": discount.id,
        "discount_amount": compute_discount_amount(
            discount.discount_type, discount.discount_value, total_amount
        ),
        "discount_name": discount.name,
        "discount_type": discount.discount_type,
        "discount_value": discount.discount_value,
    }


def list_discounts_query():
    return db.session.query(Discount).order_by(Discount.created_at.desc(), Discount.id.desc())


def list_active_discounts(day: date | None = None) -> list[Discount]:
    day = day or today()
    return (
        db.session.query(Discount)
        .filter(
            Discount.is_active.is_(True),
            Discount.start_date <= day,
            Discount.end_date >= day,
        )
        .order_by(Discount.created_at.desc(), Discount.id.desc())
        .all()
    )


def _check_window_and_value(discount_type, discount_value, start_date, end_date) -> None:
    if start_date is not None and end_date is not None and end_date <= start_date:
        raise ValidationError("End date must be after start date")
    enforce_rules_discount({"discount_type": discount_type, "discount_value": discount_value})


def _ensure_unique_name(name: str, exclude_id: int | None = None) -> None:
    query = db.session.query(Discount.id).filter(Discount.name == name)
    if exclude_id is not None:
        query = query.filter(Discount.id != exclude_id)
    if query.first() is not None:
        raise ConflictError("Discount name already exists", details={"name": name})


def create_discount(payload: dict) -> Discount:
    patch = validate_payload(model=Discount, payload=payload, policy=DISCOUNT_POLICY, partial=False)
    _check_window_and_value(
        patch["discount_type"], patch["discount_value"], patch["start_date"], patch["end_date"]
    )

    with unit_of_work():
        _ensure_unique_name(patch["name"])
        discount = Discount()
        apply_patch(discount, patch)
        db.session.add(discount)

    current_app.logger.info("Discount created: id=%s name=%s", discount.id, discount.name)
    return discount


def update_discount(discount_id: int, payload: dict) -> Discount:
    patch = validate_payload(model=Discount, payload=payload, policy=DISCOUNT_POLICY, partial=True)

    with unit_of_work():
        discount = get_discount(discount_id)
        _check_window_and_value(
            patch.get("discount_type", discount.discount_type),
            patch.get("discount_value", discount.discount_value),
            patch.get("start_date", discount.start_date),
            patch.get("end_date", discount.end_date),
        )
        if "name" in patch:
            _ensure_unique_name(patch["name"], exclude_id=discount.id)
        apply_patch(discount, patch)

    return discount


def delete_discount(discount_id: int) -> None:
    """Hard delete; past sales keep their captured discount_amount."""
    with unit_of_work():
        discount = get_discount(discount_id)
        (
            db.session.query(Sale)
            .filter(Sale.discount_id == discount.id)
            .update({Sale.discount_id: None}, synchronize_session=False)
        )
        db.session.delete(discount)

    current_app.logger.info("Discount deleted: id=%s", discount_id)
