from __future__ import annotations

from sqlalchemy import event
from sqlalchemy.orm import Session

from ..extensions import db
from marketpos.time_utils import to_utc_z


"""
Inventory Ledger Invariants (authoritative)

- Append-only: rows are inserted alongside the stock change they record and
  are never updated or deleted.
- new_stock == previous_stock + quantity_change (CHECK constraint).
- transaction_type 'in' has quantity_change > 0, 'out' has < 0,
  'adjustment' may carry either sign.
- reference_id/reference_type point at the originating sale or purchase
  order. reference_id is deliberately not a foreign key: a deleted pending
  purchase order keeps its reversal entries.
"""

TYPE_IN = "in"
TYPE_OUT = "out"
TYPE_ADJUSTMENT = "adjustment"
TRANSACTION_TYPES = (TYPE_IN, TYPE_OUT, TYPE_ADJUSTMENT)

REF_SALE = "sale"
REF_PURCHASE = "purchase"
REF_MANUAL = "manual"
REFERENCE_TYPES = (REF_SALE, REF_PURCHASE, REF_MANUAL)


class LedgerImmutableError(RuntimeError):
    """Raised when code tries to update or delete an inventory log row."""


class InventoryLog(db.Model):
    __tablename__ = "inventory_logs"
    __table_args__ = (
        db.CheckConstraint(
            "new_stock = previous_stock + quantity_change",
            name="ck_inventory_logs_reconciles",
        ),
        db.CheckConstraint(
            "transaction_type IN ('in', 'out', 'adjustment')",
            name="ck_inventory_logs_type",
        ),
        db.Index("ix_inventory_logs_product_created", "product_id", "created_at"),
        db.Index("ix_inventory_logs_reference", "reference_type", "reference_id"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    product_id = db.Column(db.Integer, db.ForeignKey("products.id"), nullable=False, index=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)

    transaction_type = db.Column(db.String(16), nullable=False, index=True)

    quantity_change = db.Column(db.Integer, nullable=False)
    previous_stock = db.Column(db.Integer, nullable=False)
    new_stock = db.Column(db.Integer, nullable=False)

    reference_id = db.Column(db.Integer, nullable=True)
    reference_type = db.Column(db.String(16), nullable=True)

    notes = db.Column(db.String(255), nullable=True)

    created_at = db.Column(
        db.DateTime(timezone=True),
        nullable=False,
        server_default=db.func.now(),
        index=True,
    )

    product = db.relationship("Product")
    user = db.relationship("User")

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "product_id": self.product_id,
            "product_name": self.product.name if self.product else None,
            "barcode": self.product.barcode if self.product else None,
            "user_id": self.user_id,
            "user_name": self.user.full_name if self.user else None,
            "transaction_type": self.transaction_type,
            "quantity_change": self.quantity_change,
            "previous_stock": self.previous_stock,
            "new_stock": self.new_stock,
            "reference_id": self.reference_id,
            "reference_type": self.reference_type,
            "notes": self.notes,
            "created_at": to_utc_z(self.created_at),
        }


@event.listens_for(Session, "before_flush")
def _reject_ledger_rewrites(session, flush_context, instances):
    for obj in session.deleted:
        if isinstance(obj, InventoryLog):
            raise LedgerImmutableError("Inventory log entries cannot be deleted")
    for obj in session.dirty:
        if isinstance(obj, InventoryLog) and session.is_modified(obj, include_collections=False):
            raise LedgerImmutableError("Inventory log entries cannot be modified")
