"""
Catalog tests: products, categories, suppliers.

Verifies:
- Barcode / name uniqueness
- Soft delete hides products and suppliers from default listings
- Stock is never writable through the product API surface
- Deletes with dependents are refused
"""

import pytest

from marketpos.errors import ConflictError, HasDependentsError, NotFoundError, ValidationError
from marketpos.models import Category, Product, Supplier
from marketpos.services import (
    category_service,
    products_service,
    purchase_service,
    supplier_service,
)


class TestProducts:

    def test_create_starts_with_zero_stock(self, db_session, category):
        product = products_service.create_product({
            "name": "Cola 330ml",
            "barcode": "8930000000010",
            "category_id": category.id,
            "sale_price": 10_000,
            "purchase_price": 7_000,
        })
        assert product.current_stock == 0
        assert product.unit == "piece"

    def test_stock_not_writable_on_create(self, db_session, category):
        with pytest.raises(ValidationError):
            products_service.create_product({
                "name": "Cola 330ml",
                "category_id": category.id,
                "sale_price": 10_000,
                "current_stock": 500,
            })

    def test_required_fields(self, db_session, category):
        with pytest.raises(ValidationError):
            products_service.create_product({"name": "No price", "category_id": category.id})

    def test_negative_price_rejected(self, db_session, category):
        with pytest.raises(ValidationError):
            products_service.create_product({
                "name": "Bad", "category_id": category.id, "sale_price": -1,
            })

    def test_unknown_category(self, db_session):
        with pytest.raises(ValidationError):
            products_service.create_product({"name": "Orphan", "category_id": 999, "sale_price": 1})

    def test_duplicate_barcode(self, db_session, category, make_product):
        make_product(barcode="8930000000011")
        with pytest.raises(ConflictError):
            products_service.create_product({
                "name": "Other",
                "barcode": "8930000000011",
                "category_id": category.id,
                "sale_price": 1_000,
            })

    def test_products_without_barcode_do_not_collide(self, db_session, category):
        for name in ("Loose apples", "Loose pears"):
            products_service.create_product({"name": name, "category_id": category.id, "sale_price": 1})
        assert db_session.query(Product).filter(Product.barcode.is_(None)).count() == 2

    def test_update_keeps_own_barcode(self, db_session, make_product):
        product = make_product(barcode="8930000000012")
        updated = products_service.update_product(
            product.id, {"barcode": "8930000000012", "sale_price": 11_000}
        )
        assert updated.sale_price == 11_000

    def test_stock_not_writable_on_update(self, db_session, make_product):
        product = make_product(stock=4)
        with pytest.raises(ValidationError):
            products_service.update_product(product.id, {"current_stock": 100})
        assert db_session.get(Product, product.id).current_stock == 4

    def test_soft_delete(self, db_session, make_product):
        product = make_product()
        products_service.delete_product(product.id)

        assert db_session.get(Product, product.id).is_active is False
        assert products_service.list_products_query().count() == 0
        with pytest.raises(NotFoundError):
            products_service.delete_product(product.id)

    def test_low_stock_filter(self, db_session, make_product):
        low = make_product(stock=2, min_stock=5)
        make_product(stock=10, min_stock=5)
        ids = [p.id for p in products_service.list_products_query(low_stock=True)]
        assert ids == [low.id]

    def test_search(self, db_session, make_product):
        target = make_product("Green Tea", barcode="8930000000013")
        make_product("Coffee")
        ids = [p.id for p in products_service.list_products_query(q="tea")]
        assert ids == [target.id]


class TestCategories:

    def test_duplicate_name(self, db_session, category):
        with pytest.raises(ConflictError):
            category_service.create_category({"name": category.name})

    def test_list_counts_active_products(self, db_session, category, make_product):
        make_product()
        hidden = make_product()
        hidden.is_active = False
        db_session.commit()

        [row] = category_service.list_categories()
        assert row["product_count"] == 1

    def test_delete_blocked_by_products(self, db_session, category, make_product):
        make_product()
        with pytest.raises(HasDependentsError):
            category_service.delete_category(category.id)
        assert db_session.get(Category, category.id) is not None

    def test_delete_empty(self, db_session):
        category = category_service.create_category({"name": "Seasonal"})
        category_service.delete_category(category.id)
        assert db_session.get(Category, category.id) is None


class TestSuppliers:

    def test_soft_delete(self, db_session, supplier):
        supplier_service.delete_supplier(supplier.id)
        assert db_session.get(Supplier, supplier.id).is_active is False
        assert supplier_service.list_suppliers_query().count() == 0
        assert supplier_service.list_suppliers_query(include_inactive=True).count() == 1

    def test_delete_blocked_by_orders(self, db_session, supplier, staff_user, make_product):
        product = make_product()
        purchase_service.create_purchase_order(
            supplier_id=supplier.id,
            items=[{"product_id": product.id, "quantity": 1, "unit_price": 100}],
            user_id=staff_user.id,
        )
        with pytest.raises(HasDependentsError):
            supplier_service.delete_supplier(supplier.id)

    def test_duplicate_name(self, db_session, supplier):
        with pytest.raises(ConflictError):
            supplier_service.create_supplier({"name": supplier.name})
