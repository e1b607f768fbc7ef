"""
Purchase order tests.

Verifies:
- Creating an order receives stock immediately with 'in' ledger entries
- Status changes are bookkeeping only
- Deleting a pending order reverses its stock with 'adjustment' entries,
  and is refused for non-pending orders or already-consumed stock
"""

import pytest

from marketpos.errors import (
    ConcurrentUpdateError,
    InsufficientStockError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from marketpos.models import InventoryLog, Product, PurchaseOrder, PurchaseOrderItem
from marketpos.services import purchase_service
from marketpos.services.sales_service import CheckoutLine, CheckoutRequest, checkout
from marketpos.time_utils import utcnow

from conftest import bump_product_version


def _create(supplier, user, *lines, notes=None):
    return purchase_service.create_purchase_order(
        supplier_id=supplier.id,
        items=[
            {"product_id": pid, "quantity": qty, "unit_price": price}
            for pid, qty, price in lines
        ],
        user_id=user.id,
        notes=notes,
    )


class TestCreatePurchaseOrder:

    def test_receives_stock(self, db_session, staff_user, supplier, make_product):
        product = make_product(stock=5)

        order = _create(supplier, staff_user, (product.id, 20, 6_000))

        assert order.status == "pending"
        assert order.order_number == f"PO-{utcnow().year}-000001"
        assert order.total_amount == 120_000
        assert db_session.get(Product, product.id).current_stock == 25

        log = db_session.query(InventoryLog).filter_by(product_id=product.id).one()
        assert log.transaction_type == "in"
        assert log.quantity_change == 20
        assert log.previous_stock == 5
        assert log.new_stock == 25
        assert log.reference_type == "purchase"
        assert log.reference_id == order.id

    def test_multiple_items(self, db_session, staff_user, supplier, make_product):
        a = make_product()
        b = make_product()

        order = _create(supplier, staff_user, (a.id, 2, 1_000), (b.id, 3, 500))

        assert order.total_amount == 3_500
        assert len(order.items) == 2
        assert db_session.query(InventoryLog).count() == 2

    def test_requires_items(self, db_session, staff_user, supplier):
        with pytest.raises(ValidationError):
            purchase_service.create_purchase_order(
                supplier_id=supplier.id, items=[], user_id=staff_user.id
            )

    def test_inactive_supplier(self, db_session, staff_user, supplier, make_product):
        product = make_product()
        supplier.is_active = False
        db_session.commit()

        with pytest.raises(NotFoundError):
            _create(supplier, staff_user, (product.id, 1, 1_000))
        assert db_session.query(PurchaseOrder).count() == 0

    def test_unknown_product_writes_nothing(self, db_session, staff_user, supplier, make_product):
        product = make_product(stock=1)

        with pytest.raises(NotFoundError):
            _create(supplier, staff_user, (product.id, 1, 1_000), (99999, 1, 1_000))

        assert db_session.get(Product, product.id).current_stock == 1
        assert db_session.query(PurchaseOrder).count() == 0
        assert db_session.query(InventoryLog).count() == 0


class TestStatusTransitions:

    def test_pending_to_completed(self, db_session, staff_user, supplier, make_product):
        product = make_product()
        order = _create(supplier, staff_user, (product.id, 4, 1_000))

        purchase_service.update_status(order.id, "completed")

        assert db_session.get(PurchaseOrder, order.id).status == "completed"
        # Status changes never touch stock
        assert db_session.get(Product, product.id).current_stock == 4
        assert db_session.query(InventoryLog).count() == 1

    def test_pending_to_cancelled(self, db_session, staff_user, supplier, make_product):
        product = make_product()
        order = _create(supplier, staff_user, (product.id, 4, 1_000))

        purchase_service.update_status(order.id, "cancelled")
        assert db_session.get(PurchaseOrder, order.id).status == "cancelled"

    def test_terminal_status_is_final(self, db_session, staff_user, supplier, make_product):
        product = make_product()
        order = _create(supplier, staff_user, (product.id, 4, 1_000))
        purchase_service.update_status(order.id, "completed")

        with pytest.raises(InvalidStateError):
            purchase_service.update_status(order.id, "pending")

    def test_unknown_status(self, db_session, staff_user, supplier, make_product):
        product = make_product()
        order = _create(supplier, staff_user, (product.id, 1, 1_000))

        with pytest.raises(ValidationError):
            purchase_service.update_status(order.id, "shipped")


class TestDeletePurchaseOrder:

    def test_reverses_stock(self, db_session, staff_user, supplier, make_product):
        product = make_product(stock=5)
        order = _create(supplier, staff_user, (product.id, 20, 6_000))
        assert db_session.get(Product, product.id).current_stock == 25
        order_id = order.id

        purchase_service.delete_purchase_order(order_id, user_id=staff_user.id)

        assert db_session.get(Product, product.id).current_stock == 5
        assert db_session.get(PurchaseOrder, order_id) is None
        assert db_session.query(PurchaseOrderItem).count() == 0

        reversal = (
            db_session.query(InventoryLog)
            .filter_by(product_id=product.id, transaction_type="adjustment")
            .one()
        )
        assert reversal.quantity_change == -20
        assert reversal.previous_stock == 25
        assert reversal.new_stock == 5
        assert reversal.reference_type == "purchase"
        assert reversal.reference_id == order_id

    def test_non_pending_cannot_be_deleted(self, db_session, staff_user, supplier, make_product):
        product = make_product()
        order = _create(supplier, staff_user, (product.id, 3, 1_000))
        purchase_service.update_status(order.id, "completed")

        with pytest.raises(InvalidStateError):
            purchase_service.delete_purchase_order(order.id, user_id=staff_user.id)

        assert db_session.get(PurchaseOrder, order.id) is not None
        assert db_session.get(Product, product.id).current_stock == 3

    def test_consumed_stock_blocks_delete(self, db_session, staff_user, cashier_user, supplier, make_product):
        product = make_product()
        order = _create(supplier, staff_user, (product.id, 10, 1_000))
        checkout(
            CheckoutRequest(lines=[CheckoutLine(product_id=product.id, quantity=8)]),
            user_id=cashier_user.id,
        )

        with pytest.raises(InsufficientStockError):
            purchase_service.delete_purchase_order(order.id, user_id=staff_user.id)

        assert db_session.get(PurchaseOrder, order.id) is not None
        assert db_session.get(Product, product.id).current_stock == 2
        assert db_session.query(InventoryLog).filter_by(transaction_type="adjustment").count() == 0

    def test_missing_order(self, db_session, staff_user):
        with pytest.raises(NotFoundError):
            purchase_service.delete_purchase_order(12345, user_id=staff_user.id)


class TestConcurrentUpdate:

    def test_stale_product_write_rolls_back(self, db_session, staff_user, supplier, make_product, monkeypatch):
        product = make_product(stock=5)
        original = purchase_service.apply_stock_change

        def _change_after_concurrent_write(**kwargs):
            bump_product_version(kwargs["product"].id)
            return original(**kwargs)

        monkeypatch.setattr(purchase_service, "apply_stock_change", _change_after_concurrent_write)

        with pytest.raises(ConcurrentUpdateError) as exc:
            _create(supplier, staff_user, (product.id, 20, 6_000))

        assert exc.value.status_code == 409
        assert db_session.get(Product, product.id).current_stock == 5
        assert db_session.query(PurchaseOrder).count() == 0
        assert db_session.query(InventoryLog).count() == 0
