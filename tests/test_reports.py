"""
Reporting tests.

Verifies:
- only paid sales count toward revenue
- date range validation (required, ordered)
- product, cashier, profit, slow-moving and period comparison shapes
"""

from datetime import timedelta

from conftest import make_payment
from supercashier.extensions import db
from supercashier.services import sales_service
from supercashier.time_utils import utcnow


def paid_sale(user, product, quantity, discount=None, order_id="ORDER-R1"):
    sale = sales_service.create_sale(user.id)
    sales_service.add_item(sale.id, product.id, quantity, discount)
    payment = make_payment(order_id=order_id)
    return sales_service.confirm_payment(sale.id, payment.id)


def draft_sale(user, product, quantity):
    sale = sales_service.create_sale(user.id)
    sales_service.add_item(sale.id, product.id, quantity)
    return sale


class TestSalesRange:

    def test_counts_paid_only(self, client, cashier, cashier_headers, laptop, mouse):
        paid_sale(cashier, laptop, 1, "200000")
        draft_sale(cashier, mouse, 3)
        today = utcnow().date().isoformat()

        resp = client.get(
            f"/api/reports/sales/range?start_date={today}&end_date={today}",
            headers=cashier_headers,
        )
        body = resp.get_json()

        assert resp.status_code == 200
        assert body["meta"]["message"] == "Sales report generated successfully"
        data = body["data"]
        assert data["total_sales"] == 1
        assert data["total_revenue"] == "6800000.00"
        assert data["total_items_sold"] == 1
        assert data["average_sale_value"] == "6800000.00"
        assert len(data["sales"]) == 1

    def test_dates_required(self, client, cashier_headers):
        resp = client.get("/api/reports/sales/range", headers=cashier_headers)
        assert resp.status_code == 422
        assert set(resp.get_json()["errors"]) == {"start_date", "end_date"}

    def test_end_before_start(self, client, cashier_headers):
        resp = client.get(
            "/api/reports/sales/range?start_date=2026-02-01&end_date=2026-01-01",
            headers=cashier_headers,
        )
        assert resp.status_code == 422
        assert "end_date" in resp.get_json()["errors"]

    def test_requires_auth(self, client, db_session):
        assert client.get("/api/reports/sales/daily").status_code == 401


class TestDailySales:

    def test_today(self, client, cashier, cashier_headers, mouse):
        paid_sale(cashier, mouse, 2)
        resp = client.get("/api/reports/sales/daily", headers=cashier_headers)
        data = resp.get_json()["data"]

        assert data["date"] == utcnow().date().isoformat()
        assert data["total_sales"] == 1
        assert data["total_revenue"] == "300000.00"

    def test_other_day_is_empty(self, client, cashier, cashier_headers, mouse):
        paid_sale(cashier, mouse, 2)
        resp = client.get("/api/reports/sales/daily?date=2020-01-01", headers=cashier_headers)
        assert resp.get_json()["data"]["total_sales"] == 0
        assert resp.get_json()["data"]["total_revenue"] == "0.00"


class TestProductAndProfit:

    def test_product_performance(self, client, cashier, cashier_headers, laptop, mouse):
        paid_sale(cashier, laptop, 2, "100000")
        resp = client.get("/api/reports/products/performance", headers=cashier_headers)
        rows = resp.get_json()["data"]

        assert [r["name"] for r in rows] == ["Laptop", "Mouse"]
        assert rows[0]["total_quantity_sold"] == 2
        assert rows[0]["total_revenue"] == "13900000.00"
        assert rows[0]["current_stock"] == 8
        assert rows[1]["times_sold"] == 0

    def test_profit_analysis(self, client, cashier, cashier_headers, laptop):
        paid_sale(cashier, laptop, 1)
        resp = client.get("/api/reports/profit/analysis", headers=cashier_headers)
        data = resp.get_json()["data"]

        assert data["total_revenue"] == "7000000.00"
        assert data["total_cost"] == "6000000.00"
        assert data["gross_profit"] == "1000000.00"
        assert data["profit_margin_percentage"] == 14.29

    def test_slow_moving(self, client, cashier, cashier_headers, laptop, mouse):
        paid_sale(cashier, mouse, 10)
        resp = client.get("/api/reports/products/slow-moving?days=7", headers=cashier_headers)
        data = resp.get_json()["data"]

        assert data["days"] == 7
        assert [p["name"] for p in data["products"]] == ["Laptop"]

    def test_slow_moving_bad_days(self, client, cashier_headers):
        resp = client.get("/api/reports/products/slow-moving?days=0", headers=cashier_headers)
        assert resp.status_code == 422


class TestCashierPerformance:

    def test_only_cashiers(self, client, admin, cashier, admin_headers, laptop):
        paid_sale(cashier, laptop, 1)
        paid_sale(admin, laptop, 1, order_id="ORDER-R2")

        resp = client.get("/api/reports/cashiers/performance", headers=admin_headers)
        rows = resp.get_json()["data"]

        assert [r["username"] for r in rows] == ["cashier"]
        assert rows[0]["total_sales"] == 1
        assert rows[0]["total_revenue"] == "7000000.00"


class TestComparePeriods:

    def test_growth(self, client, cashier, cashier_headers, mouse):
        old = paid_sale(cashier, mouse, 1)
        paid_sale(cashier, mouse, 2, order_id="ORDER-R2")

        last_week = utcnow() - timedelta(days=7)
        old.sale_date = last_week
        db.session.commit()

        today = utcnow().date().isoformat()
        week_ago = last_week.date().isoformat()
        resp = client.get(
            "/api/reports/sales/compare"
            f"?period1_start={week_ago}&period1_end={week_ago}"
            f"&period2_start={today}&period2_end={today}",
            headers=cashier_headers,
        )
        data = resp.get_json()["data"]

        assert data["period1"]["total_revenue"] == "150000.00"
        assert data["period2"]["total_revenue"] == "300000.00"
        assert data["comparison"]["revenue_difference"] == "150000.00"
        assert data["comparison"]["revenue_growth_percentage"] == 100.0
        assert data["comparison"]["sales_count_difference"] == 0

    def test_missing_dates(self, client, cashier_headers):
        resp = client.get("/api/reports/sales/compare", headers=cashier_headers)
        assert resp.status_code == 422
        assert len(resp.get_json()["errors"]) == 4
