from __future__ import annotations

from ..extensions import db
from marketpos.time_utils import to_utc_z


DISCOUNT_PERCENTAGE = "percentage"
DISCOUNT_AMOUNT = "amount"
DISCOUNT_TYPES = (DISCOUNT_PERCENTAGE, DISCOUNT_AMOUNT)


class Discount(db.Model):
    """
    Checkout-level discount.

    discount_value is a whole percent (0-100) for percentage discounts and an
    amount in the smallest currency unit for amount discounts. The validity
    window [start_date, end_date] is inclusive on both ends.
    """
    __tablename__ = "discounts"
    __table_args__ = (
        db.CheckConstraint("discount_value >= 0", name="ck_discounts_value"),
        db.CheckConstraint(
            "discount_type IN ('percentage', 'amount')",
            name="ck_discounts_type",
        ),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(200), nullable=False, unique=True)

    discount_type = db.Column(db.String(16), nullable=False)
    discount_value = db.Column(db.Integer, nullable=False, default=0)

    start_date = db.Column(db.Date, nullable=False)
    end_date = db.Column(db.Date, nullable=False)

    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    def status_on(self, day) -> str:
        if day < self.start_date:
            return "upcoming"
        if day > self.end_date:
            return "expired"
        return "active"

    def to_dict(self, day=None) -> dict:
        data = {
            "id": self.id,
            "name": self.name,
            "discount_type": self.discount_type,
            "discount_value": self.discount_value,
            "start_date": self.start_date.isoformat() if self.start_date else None,
            "end_date": self.end_date.isoformat() if self.end_date else None,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
        }
        if day is not None:
            data["status_text"] = self.status_on(day)
        return data
