"""
Discount engine tests.

Verifies:
- Percentage and fixed-amount math, rounding and the cap at the base amount
- Inactive, expired and upcoming discounts are rejected, not ignored
- Calculation preview and CRUD rules (date window, unique name)
"""

from datetime import timedelta

import pytest

from marketpos.errors import ConflictError, DiscountUnavailableError, ValidationError
from marketpos.models import Discount, Sale
from marketpos.services import discount_service
from marketpos.services.discount_service import compute_discount_amount
from marketpos.time_utils import today


class TestComputeDiscountAmount:

    def test_percentage(self):
        assert compute_discount_amount("percentage", 10, 100_000) == 10_000

    def test_percentage_rounds_half_up(self):
        # 15% of 10 = 1.5 -> 2
        assert compute_discount_amount("percentage", 15, 10) == 2
        # 12% of 10 = 1.2 -> 1
        assert compute_discount_amount("percentage", 12, 10) == 1

    def test_amount_capped_at_base(self):
        assert compute_discount_amount("amount", 50_000, 30_000) == 30_000

    def test_amount_below_base(self):
        assert compute_discount_amount("amount", 5_000, 30_000) == 5_000

    def test_full_percentage_equals_base(self):
        assert compute_discount_amount("percentage", 100, 12_345) == 12_345

    def test_zero_base(self):
        assert compute_discount_amount("amount", 5_000, 0) == 0

    def test_unknown_type(self):
        with pytest.raises(ValidationError):
            compute_discount_amount("bogus", 5, 100)


class TestResolveActiveDiscount:

    def test_active_window_is_inclusive(self, db_session, make_discount):
        day = today()
        discount = make_discount(start_date=day, end_date=day + timedelta(days=1))
        assert discount_service.resolve_active_discount(discount.id).id == discount.id

        on_last_day = discount_service.resolve_active_discount(discount.id, day + timedelta(days=1))
        assert on_last_day.id == discount.id

    def test_expired(self, db_session, make_discount):
        day = today()
        discount = make_discount(start_date=day - timedelta(days=10), end_date=day - timedelta(days=1))
        with pytest.raises(DiscountUnavailableError) as exc:
            discount_service.resolve_active_discount(discount.id)
        assert exc.value.details["status"] == "expired"

    def test_upcoming(self, db_session, make_discount):
        day = today()
        discount = make_discount(start_date=day + timedelta(days=1), end_date=day + timedelta(days=5))
        with pytest.raises(DiscountUnavailableError) as exc:
            discount_service.resolve_active_discount(discount.id)
        assert exc.value.details["status"] == "upcoming"

    def test_inactive(self, db_session, make_discount):
        day = today()
        discount = make_discount(
            start_date=day - timedelta(days=1), end_date=day + timedelta(days=1), is_active=False
        )
        with pytest.raises(DiscountUnavailableError) as exc:
            discount_service.resolve_active_discount(discount.id)
        assert exc.value.details["status"] == "inactive"


class TestCalculate:

    def test_preview(self, db_session, make_discount):
        day = today()
        discount = make_discount(
            name="Ten off", start_date=day - timedelta(days=1), end_date=day + timedelta(days=1)
        )
        result = discount_service.calculate(discount.id, 100_000)
        assert result["discount_amount"] == 10_000
        assert result["discount_name"] == "Ten off"
        assert result["discount_type"] == "percentage"

    def test_requires_total(self, db_session, make_discount):
        with pytest.raises(ValidationError):
            discount_service.calculate(1, None)

    def test_calculate_endpoint(self, client, cashier_headers, make_discount):
        day = today()
        discount = make_discount(
            name="Fifteen", discount_value=15, start_date=day, end_date=day + timedelta(days=1)
        )

        resp = client.post(
            "/api/discounts/calculate",
            json={"discount_id": discount.id, "total_amount": 10},
            headers=cashier_headers,
        )

        assert resp.status_code == 200
        assert resp.json["success"] is True
        assert resp.json["data"]["discount_amount"] == 2
        assert resp.json["data"]["discount_name"] == "Fifteen"

    def test_calculate_endpoint_rejects_expired(self, client, cashier_headers, make_discount):
        day = today()
        discount = make_discount(start_date=day - timedelta(days=3), end_date=day - timedelta(days=1))

        resp = client.post(
            "/api/discounts/calculate",
            json={"discount_id": discount.id, "total_amount": 10_000},
            headers=cashier_headers,
        )

        assert resp.status_code == 400
        assert resp.json["success"] is False


class TestDiscountCrud:

    def _payload(self, **overrides):
        day = today()
        payload = {
            "name": "Weekend",
            "discount_type": "amount",
            "discount_value": 5_000,
            "start_date": day.isoformat(),
            "end_date": (day + timedelta(days=2)).isoformat(),
        }
        payload.update(overrides)
        return payload

    def test_create(self, db_session):
        discount = discount_service.create_discount(self._payload())
        assert discount.id is not None
        assert discount.is_active is True

    def test_end_must_follow_start(self, db_session):
        day = today().isoformat()
        with pytest.raises(ValidationError):
            discount_service.create_discount(self._payload(start_date=day, end_date=day))

    def test_percentage_over_100_rejected(self, db_session):
        with pytest.raises(ValidationError):
            discount_service.create_discount(
                self._payload(discount_type="percentage", discount_value=150)
            )

    def test_duplicate_name(self, db_session):
        discount_service.create_discount(self._payload())
        with pytest.raises(ConflictError):
            discount_service.create_discount(self._payload())

    def test_delete_keeps_sales(self, db_session, admin_user, make_discount):
        day = today()
        discount = make_discount(start_date=day, end_date=day + timedelta(days=1))
        sale = Sale(
            invoice_number="INV-TEST-000001",
            user_id=admin_user.id,
            discount_id=discount.id,
            subtotal=10_000,
            discount_amount=1_000,
            total_amount=9_000,
        )
        db_session.add(sale)
        db_session.commit()

        discount_service.delete_discount(discount.id)

        assert db_session.get(Discount, discount.id) is None
        sale = db_session.get(Sale, sale.id)
        assert sale.discount_id is None
        assert sale.discount_amount == 1_000
