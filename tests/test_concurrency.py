"""
Concurrency tests with real threads.

Runs against a temporary SQLite file so every thread gets its own
connection. Each worker pushes its own app context and removes its session
when done.

Verifies:
- Concurrent add_item calls on separate drafts never oversell a product
- Reservations and stock additions racing on one product keep stock exact
"""

import threading

import pytest
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from supercashier import create_app
from supercashier.config import TestConfig
from supercashier.errors import InsufficientStockError
from supercashier.extensions import db
from supercashier.models import Category, Product, SaleItem, User
from supercashier.services import inventory_service, sales_service
from supercashier.services.auth_service import create_default_roles

# Failures a worker may legitimately see; anything else is a bug
EXPECTED_FAILURES = (InsufficientStockError, OperationalError, StaleDataError)


@pytest.fixture
def file_app(tmp_path):
    class FileConfig(TestConfig):
        SQLALCHEMY_DATABASE_URI = f"sqlite:///{tmp_path / 'concurrency.db'}"

    app = create_app(FileConfig)
    with app.app_context():
        db.create_all()

    yield app

    with app.app_context():
        db.session.remove()
        db.drop_all()
        db.engine.dispose()


@pytest.fixture
def seeded(file_app):
    """Cashier and a product with stock=5; returns (user_id, product_id)."""
    with file_app.app_context():
        roles = {role.name: role for role in create_default_roles()}
        user = User(
            name="Cashier",
            username="concurrent_cashier",
            email="concurrent@supercashier.test",
            password_hash="unused",
            role_id=roles["cashier"].id,
            is_active=True,
        )
        category = Category(name="Aksesoris")
        db.session.add_all([user, category])
        db.session.commit()

        product = Product(
            category_id=category.id,
            name="USB Cable",
            cost_price_cents=1_000_000,
            selling_price_cents=2_500_000,
            stock=5,
            is_active=True,
        )
        db.session.add(product)
        db.session.commit()
        ids = (user.id, product.id)
        db.session.remove()
    return ids


def run_workers(app, targets):
    """Start every target at once; return one result per target ("ok" or the exception)."""
    results = []
    lock = threading.Lock()
    barrier = threading.Barrier(len(targets))

    def worker(target):
        with app.app_context():
            try:
                barrier.wait()
                target()
                outcome = "ok"
            except Exception as exc:
                outcome = exc
            finally:
                db.session.remove()
        with lock:
            results.append((target, outcome))

    threads = [threading.Thread(target=worker, args=(t,)) for t in targets]
    for t in threads:
        t.start()
    for t in threads:
        t.join()
    return results


def current_stock(app, product_id):
    with app.app_context():
        stock = db.session.get(Product, product_id).stock
        db.session.remove()
    return stock


# =============================================================================
# RESERVATIONS
# =============================================================================


class TestConcurrentReservations:

    def test_ten_drafts_race_for_five_units(self, file_app, seeded):
        user_id, product_id = seeded

        with file_app.app_context():
            sale_ids = [sales_service.create_sale(user_id).id for _ in range(10)]
            db.session.remove()

        targets = [
            (lambda sale_id=sale_id: sales_service.add_item(sale_id, product_id, 1))
            for sale_id in sale_ids
        ]
        results = run_workers(file_app, targets)

        succeeded = sum(1 for _, outcome in results if outcome == "ok")
        failures = [outcome for _, outcome in results if outcome != "ok"]
        stock = current_stock(file_app, product_id)

        assert all(isinstance(f, EXPECTED_FAILURES) for f in failures), failures
        assert stock >= 0
        assert succeeded + stock == 5
        assert succeeded >= 1

        with file_app.app_context():
            reserved = sum(item.quantity for item in db.session.query(SaleItem).all())
            db.session.remove()
        assert reserved == succeeded

    def test_additions_and_reservations_interleave(self, file_app, seeded):
        user_id, product_id = seeded

        with file_app.app_context():
            sale_ids = [sales_service.create_sale(user_id).id for _ in range(5)]
            db.session.remove()

        reserve_targets = [
            (lambda sale_id=sale_id: sales_service.add_item(sale_id, product_id, 2))
            for sale_id in sale_ids
        ]
        add_targets = [
            (lambda: inventory_service.add_stock(product_id, 3, user_id=user_id))
            for _ in range(5)
        ]
        results = run_workers(file_app, reserve_targets + add_targets)

        reserved = sum(2 for t, outcome in results if t in reserve_targets and outcome == "ok")
        added = sum(3 for t, outcome in results if t in add_targets and outcome == "ok")
        failures = [outcome for _, outcome in results if outcome != "ok"]

        assert all(isinstance(f, EXPECTED_FAILURES) for f in failures), failures
        assert current_stock(file_app, product_id) == 5 + added - reserved
