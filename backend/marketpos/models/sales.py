from __future__ import annotations

from ..extensions import db
from marketpos.time_utils import to_utc_z


PAYMENT_METHODS = ("cash", "card", "transfer")


class Sale(db.Model):
    """
    Checkout header.

    INVARIANTS (enforced by services/sales_service.py):
    - total_amount = subtotal - discount_amount
    - change_amount = cash_received - total_amount (may be negative)
    - subtotal = sum(item.line_total)

    Created in the same transaction as its items and their ledger entries.
    """
    __tablename__ = "sales"
    __table_args__ = (
        db.Index("ix_sales_created_at", "created_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    invoice_number = db.Column(db.String(32), nullable=False, unique=True)

    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    customer_name = db.Column(db.String(100), nullable=True)
    customer_phone = db.Column(db.String(32), nullable=True)
    customer_email = db.Column(db.String(255), nullable=True)

    discount_id = db.Column(
        db.Integer,
        db.ForeignKey("discounts.id", ondelete="SET NULL"),
        nullable=True,
    )

    subtotal = db.Column(db.Integer, nullable=False, default=0)
    discount_amount = db.Column(db.Integer, nullable=False, default=0)
    total_amount = db.Column(db.Integer, nullable=False, default=0)
    cash_received = db.Column(db.Integer, nullable=False, default=0)
    change_amount = db.Column(db.Integer, nullable=False, default=0)

    payment_method = db.Column(db.String(16), nullable=False, default="cash")

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())

    cashier = db.relationship("User")
    discount = db.relationship("Discount", passive_deletes=True)
    items = db.relationship(
        "SaleItem",
        back_populates="sale",
        order_by="SaleItem.id",
        cascade="all, delete-orphan",
    )

    def to_dict(self, include_items: bool = False) -> dict:
        data = {
            "id": self.id,
            "invoice_number": self.invoice_number,
            "user_id": self.user_id,
            "cashier_name": self.cashier.full_name if self.cashier else None,
            "customer_name": self.customer_name,
            "customer_phone": self.customer_phone,
            "customer_email": self.customer_email,
            "discount_id": self.discount_id,
            "subtotal": self.subtotal,
            "discount_amount": self.discount_amount,
            "total_amount": self.total_amount,
            "cash_received": self.cash_received,
            "change_amount": self.change_amount,
            "payment_method": self.payment_method,
            "created_at": to_utc_z(self.created_at),
        }
        if include_items:
            data["items"] = [item.to_dict() for item in self.items]
        return data


class SaleItem(db.Model):
    """Sale line. unit_price is a snapshot of the catalog price at checkout."""
    __tablename__ = "sale_items"
    __table_args__ = (
        db.CheckConstraint("quantity > 0", name="ck_sale_items_quantity"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    sale_id = db.Column(db.Integer, db.ForeignKey("sales.id", ondelete="CASCADE"), nullable=False, index=True)
    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)

    quantity = db.Column(db.Integer, nullable=False)
    unit_price = db.Column(db.Integer, nullable=False)
    line_total = db.Column(db.Integer, nullable=False)

    sale = db.relationship("Sale", back_populates="items")
    product = db.relationship("Product")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "sale_id": self.sale_id,
            "product_id": self.product_id,
            "product_name": self.product.name if self.product else None,
            "barcode": self.product.barcode if self.product else None,
            "unit": self.product.unit if self.product else None,
            "quantity": self.quantity,
            "unit_price": self.unit_price,
            "line_total": self.line_total,
        }
