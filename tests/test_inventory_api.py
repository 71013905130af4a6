"""
Stock receiving tests.

Verifies:
- POST /api/products/<id>/add_stock increments stock and records an addition
- POST /api/stock-additions reports unknown products on product_id (422)
- stock addition listing and lookup
"""

from conftest import make_product, reload
from supercashier.models import Product, StockAddition
from supercashier.extensions import db
from supercashier.services.inventory_service import MAX_STOCK


class TestProductAddStock:

    def test_add_stock(self, client, warehouse, warehouse_headers, laptop):
        resp = client.post(
            f"/api/products/{laptop.id}/add_stock",
            json={"quantity": 5, "notes": "Supplier delivery"},
            headers=warehouse_headers,
        )
        body = resp.get_json()

        assert resp.status_code == 200
        assert body["meta"]["message"] == "Stock added successfully"
        assert body["data"]["stock"] == 15

        addition = db.session.query(StockAddition).one()
        assert addition.quantity == 5
        assert addition.user_id == warehouse.id
        assert addition.notes == "Supplier delivery"

    def test_quantity_must_be_positive(self, client, warehouse_headers, laptop):
        resp = client.post(
            f"/api/products/{laptop.id}/add_stock",
            json={"quantity": 0},
            headers=warehouse_headers,
        )
        assert resp.status_code == 422
        assert reload(Product, laptop.id).stock == 10

    def test_unknown_product_is_404(self, client, warehouse_headers):
        resp = client.post("/api/products/999999/add_stock", json={"quantity": 1}, headers=warehouse_headers)
        assert resp.status_code == 404

    def test_cashier_forbidden(self, client, cashier_headers, laptop):
        resp = client.post(f"/api/products/{laptop.id}/add_stock", json={"quantity": 1}, headers=cashier_headers)
        assert resp.status_code == 403


class TestStockAdditions:

    def test_record(self, client, warehouse, warehouse_headers, mouse):
        resp = client.post(
            "/api/stock-additions",
            json={"product_id": mouse.id, "quantity": 20},
            headers=warehouse_headers,
        )
        body = resp.get_json()

        assert resp.status_code == 201
        assert body["meta"]["message"] == "Stock addition recorded"
        assert body["data"]["product"] == {"id": mouse.id, "name": "Mouse"}
        assert body["data"]["user"]["id"] == warehouse.id
        assert reload(Product, mouse.id).stock == 70

    def test_unknown_product_is_422(self, client, warehouse_headers):
        resp = client.post(
            "/api/stock-additions",
            json={"product_id": 999999, "quantity": 1},
            headers=warehouse_headers,
        )
        assert resp.status_code == 422
        assert "product_id" in resp.get_json()["errors"]

    def test_notes_must_be_text(self, client, warehouse_headers, mouse):
        resp = client.post(
            "/api/stock-additions",
            json={"product_id": mouse.id, "quantity": 1, "notes": ["x"]},
            headers=warehouse_headers,
        )
        assert resp.status_code == 422
        assert reload(Product, mouse.id).stock == 50

    def test_list_newest_first_and_get(self, client, warehouse_headers, laptop, mouse):
        client.post("/api/stock-additions", json={"product_id": laptop.id, "quantity": 1}, headers=warehouse_headers)
        client.post("/api/stock-additions", json={"product_id": mouse.id, "quantity": 2}, headers=warehouse_headers)

        resp = client.get("/api/stock-additions", headers=warehouse_headers)
        data = resp.get_json()["data"]
        assert [a["quantity"] for a in data] == [2, 1]

        resp = client.get(f"/api/stock-additions?product_id={laptop.id}", headers=warehouse_headers)
        assert [a["product_id"] for a in resp.get_json()["data"]] == [laptop.id]

        resp = client.get(f"/api/stock-additions/{data[0]['id']}", headers=warehouse_headers)
        assert resp.status_code == 200
        assert client.get("/api/stock-additions/999999", headers=warehouse_headers).status_code == 404

    def test_bad_date_filter(self, client, warehouse_headers):
        resp = client.get("/api/stock-additions?start_date=yesterday", headers=warehouse_headers)
        assert resp.status_code == 422


class TestStockBounds:

    def test_quantity_above_maximum(self, client, warehouse_headers, mouse):
        resp = client.post(
            "/api/stock-additions",
            json={"product_id": mouse.id, "quantity": 10**20},
            headers=warehouse_headers,
        )
        assert resp.status_code == 422
        assert "quantity" in resp.get_json()["errors"]
        assert reload(Product, mouse.id).stock == 50

    def test_stock_ceiling(self, client, warehouse_headers, category):
        product = make_product(category, name="Kertas A4", stock=MAX_STOCK - 1)

        resp = client.post(
            f"/api/products/{product.id}/add_stock",
            json={"quantity": 2},
            headers=warehouse_headers,
        )
        assert resp.status_code == 422
        assert "quantity" in resp.get_json()["errors"]
        assert reload(Product, product.id).stock == MAX_STOCK - 1
        assert db.session.query(StockAddition).count() == 0

        resp = client.post(
            f"/api/products/{product.id}/add_stock",
            json={"quantity": 1},
            headers=warehouse_headers,
        )
        assert resp.status_code == 200
        assert resp.get_json()["data"]["stock"] == MAX_STOCK
