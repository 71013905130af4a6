"""
Pytest fixtures for SuperCashier tests.

Provides the test app (in-memory SQLite), per-test table wipe, role/user
fixtures, catalog fixtures and token helpers.
"""

from decimal import Decimal

import pytest

from supercashier import create_app
from supercashier.config import TestConfig
from supercashier.extensions import db
from supercashier.models import Category, Payment, Product, User
from supercashier.services import session_service
from supercashier.services.auth_service import create_default_roles, hash_password

PASSWORD = "Password123!"


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
    """Empty every table before the test."""
    db.session.rollback()
    for table in reversed(db.metadata.sorted_tables):
        db.session.execute(table.delete())
    db.session.commit()
    db.session.expunge_all()

    yield db.session

    db.session.rollback()


@pytest.fixture(scope='function')
def roles(db_session):
    """admin, cashier and warehouse roles keyed by name."""
    return {role.name: role for role in create_default_roles()}


def make_user(role, username, **overrides):
    user = User(
        name=overrides.pop("name", username.title()),
        username=username,
        email=overrides.pop("email", f"{username}@supercashier.test"),
        password_hash=hash_password(overrides.pop("password", PASSWORD)),
        role_id=role.id,
        is_active=overrides.pop("is_active", True),
        **overrides,
    )
    db.session.add(user)
    db.session.commit()
    return user


@pytest.fixture
def admin(roles):
    return make_user(roles["admin"], "admin")


@pytest.fixture
def cashier(roles):
    return make_user(roles["cashier"], "cashier")


@pytest.fixture
def warehouse(roles):
    return make_user(roles["warehouse"], "warehouse")


def auth_headers(user):
    """Bearer header for a fresh session of user."""
    _, token = session_service.create_session(user.id)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def admin_headers(admin):
    return auth_headers(admin)


@pytest.fixture
def cashier_headers(cashier):
    return auth_headers(cashier)


@pytest.fixture
def warehouse_headers(warehouse):
    return auth_headers(warehouse)


@pytest.fixture
def category(db_session):
    category = Category(name="Elektronik", description="Perangkat elektronik")
    db.session.add(category)
    db.session.commit()
    return category


def make_product(category, name="Laptop", selling="7000000.00", cost="6000000.00", stock=10, **extra):
    """Prices are given in major units as strings; stored as cents."""
    product = Product(
        category_id=category.id,
        name=name,
        selling_price_cents=int(Decimal(selling) * 100),
        cost_price_cents=int(Decimal(cost) * 100),
        stock=stock,
        is_active=extra.pop("is_active", True),
        **extra,
    )
    db.session.add(product)
    db.session.commit()
    return product


@pytest.fixture
def laptop(category):
    return make_product(category)


@pytest.fixture
def mouse(category):
    return make_product(category, name="Mouse", selling="150000.00", cost="90000.00", stock=50)


def make_payment(order_id="ORDER-TEST-1", amount_cents=0, status="settlement"):
    payment = Payment(
        order_id=order_id,
        payment_type="cash",
        gross_amount_cents=amount_cents,
        transaction_status=status,
    )
    db.session.add(payment)
    db.session.commit()
    return payment


def reload(model, pk):
    """Fetch fresh column values from the database."""
    db.session.expire_all()
    return db.session.get(model, pk)
