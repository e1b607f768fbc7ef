"""
Inventory ledger tests.

Verifies:
- Manual adjustments never drive stock negative
- Ledger entries chain across purchases, sales and adjustments
- Ledger rows are append-only
"""

from datetime import timedelta

import pytest

from marketpos.errors import InsufficientStockError, NotFoundError, ValidationError
from marketpos.models import InventoryLog, Product
from marketpos.models.inventory import LedgerImmutableError
from marketpos.services import inventory_service, purchase_service
from marketpos.services.sales_service import CheckoutLine, CheckoutRequest, checkout
from marketpos.time_utils import today


class TestAdjustStock:

    def test_positive_and_negative(self, db_session, staff_user, make_product):
        product = make_product(stock=3)

        result = inventory_service.adjust_stock(
            product_id=product.id, quantity_change=4, user_id=staff_user.id, notes="recount"
        )
        assert result["previous_stock"] == 3
        assert result["new_stock"] == 7

        result = inventory_service.adjust_stock(
            product_id=product.id, quantity_change=-2, user_id=staff_user.id
        )
        assert result["new_stock"] == 5

        logs = inventory_service.get_product_history(product.id)
        assert [log.quantity_change for log in logs] == [4, -2]
        assert all(log.transaction_type == "adjustment" for log in logs)
        assert all(log.reference_type == "manual" for log in logs)
        assert logs[0].notes == "recount"

    def test_cannot_go_negative(self, db_session, staff_user, make_product):
        product = make_product(stock=3)

        with pytest.raises(InsufficientStockError) as exc:
            inventory_service.adjust_stock(
                product_id=product.id, quantity_change=-5, user_id=staff_user.id
            )

        assert exc.value.details["available"] == 3
        assert db_session.get(Product, product.id).current_stock == 3
        assert db_session.query(InventoryLog).count() == 0

    def test_to_exactly_zero(self, db_session, staff_user, make_product):
        product = make_product(stock=3)
        result = inventory_service.adjust_stock(
            product_id=product.id, quantity_change=-3, user_id=staff_user.id
        )
        assert result["new_stock"] == 0

    @pytest.mark.parametrize("bad_id", [True, [1], "abc", 2.5])
    def test_malformed_product_id_rejected(self, db_session, staff_user, make_product, bad_id):
        product = make_product(stock=5)

        with pytest.raises(ValidationError):
            inventory_service.adjust_stock(product_id=bad_id, quantity_change=1, user_id=staff_user.id)

        assert db_session.get(Product, product.id).current_stock == 5
        assert db_session.query(InventoryLog).count() == 0

    def test_zero_change_rejected(self, db_session, staff_user, make_product):
        product = make_product(stock=3)
        with pytest.raises(ValidationError):
            inventory_service.adjust_stock(
                product_id=product.id, quantity_change=0, user_id=staff_user.id
            )

    def test_inactive_product(self, db_session, staff_user, make_product):
        product = make_product(stock=3)
        product.is_active = False
        db_session.commit()

        with pytest.raises(NotFoundError):
            inventory_service.adjust_stock(
                product_id=product.id, quantity_change=1, user_id=staff_user.id
            )


class TestLedgerChain:

    def test_purchase_sale_adjustment_chain(self, db_session, staff_user, cashier_user, supplier, make_product):
        product = make_product(stock=0)

        purchase_service.create_purchase_order(
            supplier_id=supplier.id,
            items=[{"product_id": product.id, "quantity": 10, "unit_price": 5_000}],
            user_id=staff_user.id,
        )
        checkout(
            CheckoutRequest(lines=[CheckoutLine(product_id=product.id, quantity=4)]),
            user_id=cashier_user.id,
        )
        inventory_service.adjust_stock(
            product_id=product.id, quantity_change=-1, user_id=staff_user.id, notes="damaged"
        )

        logs = inventory_service.get_product_history(product.id)
        assert [(e.previous_stock, e.quantity_change, e.new_stock) for e in logs] == [
            (0, 10, 10),
            (10, -4, 6),
            (6, -1, 5),
        ]
        assert [e.transaction_type for e in logs] == ["in", "out", "adjustment"]

        for prev, nxt in zip(logs, logs[1:]):
            assert nxt.previous_stock == prev.new_stock
        assert logs[-1].new_stock == db_session.get(Product, product.id).current_stock

    def test_list_logs_newest_first(self, db_session, staff_user, make_product):
        product = make_product(stock=10)
        for delta in (1, 2, 3):
            inventory_service.adjust_stock(
                product_id=product.id, quantity_change=delta, user_id=staff_user.id
            )

        logs = inventory_service.list_logs_query(product_id=product.id).all()
        assert [log.quantity_change for log in logs] == [3, 2, 1]

    def test_list_logs_rejects_unknown_type(self, db_session):
        with pytest.raises(ValidationError):
            inventory_service.list_logs_query(transaction_type="gift")


class TestLedgerImmutability:

    def _entry(self, staff_user, make_product):
        product = make_product(stock=1)
        inventory_service.adjust_stock(
            product_id=product.id, quantity_change=1, user_id=staff_user.id
        )
        return inventory_service.get_product_history(product.id)[0]

    def test_update_rejected(self, db_session, staff_user, make_product):
        entry = self._entry(staff_user, make_product)
        entry.notes = "rewritten"
        with pytest.raises(LedgerImmutableError):
            db_session.flush()
        db_session.rollback()

    def test_delete_rejected(self, db_session, staff_user, make_product):
        entry = self._entry(staff_user, make_product)
        db_session.delete(entry)
        with pytest.raises(LedgerImmutableError):
            db_session.flush()
        db_session.rollback()
        assert db_session.query(InventoryLog).count() == 1


class TestInventoryStats:

    def test_totals_and_low_stock(self, db_session, staff_user, cashier_user, supplier, make_product):
        product = make_product(min_stock=5)
        purchase_service.create_purchase_order(
            supplier_id=supplier.id,
            items=[{"product_id": product.id, "quantity": 8, "unit_price": 1_000}],
            user_id=staff_user.id,
        )
        checkout(
            CheckoutRequest(lines=[CheckoutLine(product_id=product.id, quantity=5)]),
            user_id=cashier_user.id,
        )

        stats = inventory_service.get_stats()

        assert stats["overall"]["total_in"] == 8
        assert stats["overall"]["total_out"] == 5
        assert stats["overall"]["total_products"] == 1
        assert stats["top_products"][0]["product_id"] == product.id
        assert stats["top_products"][0]["total_movement"] == 13
        assert [p["product_id"] for p in stats["low_stock_products"]] == [product.id]


class TestInventoryReport:

    def test_in_out_per_product(self, db_session, staff_user, cashier_user, supplier, make_product):
        moved = make_product("Apples")
        idle = make_product("Bananas", stock=7)
        hidden = make_product("Cherries")
        hidden.is_active = False
        db_session.commit()

        purchase_service.create_purchase_order(
            supplier_id=supplier.id,
            items=[{"product_id": moved.id, "quantity": 8, "unit_price": 1_000}],
            user_id=staff_user.id,
        )
        checkout(
            CheckoutRequest(lines=[CheckoutLine(product_id=moved.id, quantity=5)]),
            user_id=cashier_user.id,
        )
        inventory_service.adjust_stock(product_id=moved.id, quantity_change=-1, user_id=staff_user.id)

        day = today()
        report = inventory_service.get_report(day, day)

        assert [row["product_id"] for row in report] == [moved.id, idle.id]
        apples, bananas = report
        assert apples["total_transactions"] == 3
        assert apples["total_in"] == 8
        assert apples["total_out"] == 5
        assert apples["total_adjustments"] == -1
        assert apples["current_stock"] == 2
        assert bananas["total_transactions"] == 0
        assert bananas["total_in"] == 0
        assert bananas["current_stock"] == 7

    def test_range_outside_movement_is_empty(self, db_session, staff_user, make_product):
        product = make_product()
        inventory_service.adjust_stock(product_id=product.id, quantity_change=3, user_id=staff_user.id)

        day = today()
        [row] = inventory_service.get_report(day - timedelta(days=10), day - timedelta(days=5))
        assert row["total_transactions"] == 0

    def test_dates_required(self, db_session):
        with pytest.raises(ValidationError):
            inventory_service.get_report(None, today())

    def test_end_before_start(self, db_session):
        day = today()
        with pytest.raises(ValidationError):
            inventory_service.get_report(day, day - timedelta(days=1))
