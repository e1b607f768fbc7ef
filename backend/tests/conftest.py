"""
Pytest fixtures for marketpos backend tests.

Provides an in-memory application, a per-test clean database, one user per
role with ready-made Authorization headers, and small catalog factories.
"""

import pytest
from sqlalchemy import update

from marketpos import create_app
from marketpos.config import TestConfig
from marketpos.extensions import db
from marketpos.models import Category, Discount, Product, Supplier, User
from marketpos.services.auth_service import hash_password
from marketpos.services.session_service import create_session


TEST_PASSWORD = "secret123"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app(TestConfig)

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture(scope='session')
def password_hash():
    """bcrypt is slow on purpose; hash the shared test password once."""
    return hash_password(TEST_PASSWORD)


def _make_user(db_session, password_hash, username, role):
    user = User(
        username=username,
        full_name=username.title(),
        email=f"{username}@example.com",
        password_hash=password_hash,
        role=role,
    )
    db_session.add(user)
    db_session.commit()
    return user


@pytest.fixture(scope='function')
def admin_user(db_session, password_hash):
    return _make_user(db_session, password_hash, "admin", "admin")


@pytest.fixture(scope='function')
def staff_user(db_session, password_hash):
    return _make_user(db_session, password_hash, "staff", "staff")


@pytest.fixture(scope='function')
def cashier_user(db_session, password_hash):
    return _make_user(db_session, password_hash, "cashier", "cashier")


def bump_product_version(product_id: int) -> None:
    """Simulate another transaction committing a write to this product row."""
    db.session.execute(
        update(Product)
        .where(Product.id == product_id)
        .values(version_id=Product.version_id + 1)
        .execution_options(synchronize_session=False)
    )


def auth_headers(user) -> dict:
    """Helper to create Authorization headers for a user."""
    _, token = create_session(user_id=user.id)
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture(scope='function')
def admin_headers(admin_user):
    return auth_headers(admin_user)


@pytest.fixture(scope='function')
def staff_headers(staff_user):
    return auth_headers(staff_user)


@pytest.fixture(scope='function')
def cashier_headers(cashier_user):
    return auth_headers(cashier_user)


@pytest.fixture(scope='function')
def category(db_session):
    category = Category(name="Beverages", description="Drinks")
    db_session.add(category)
    db_session.commit()
    return category


@pytest.fixture(scope='function')
def supplier(db_session):
    supplier = Supplier(name="Acme Wholesale", phone="0900000000")
    db_session.add(supplier)
    db_session.commit()
    return supplier


@pytest.fixture(scope='function')
def make_product(db_session, category):
    """
    Factory for products. Stock is written directly here; tests that care
    about the ledger build stock through purchases or adjustments instead.
    """
    counter = {"n": 0}

    def _make(name=None, *, sale_price=10_000, purchase_price=6_000, stock=0, min_stock=0, barcode=None):
        counter["n"] += 1
        product = Product(
            name=name or f"Product {counter['n']}",
            barcode=barcode,
            category_id=category.id,
            sale_price=sale_price,
            purchase_price=purchase_price,
            current_stock=stock,
            min_stock=min_stock,
        )
        db_session.add(product)
        db_session.commit()
        return product

    return _make


@pytest.fixture(scope='function')
def make_discount(db_session):
    def _make(name="Promo", *, discount_type="percentage", discount_value=10,
              start_date, end_date, is_active=True):
        discount = Discount(
            name=name,
            discount_type=discount_type,
            discount_value=discount_value,
            start_date=start_date,
            end_date=end_date,
            is_active=is_active,
        )
        db_session.add(discount)
        db_session.commit()
        return discount

    return _make
