"""
Catalog tests (categories and products).

Verifies:
- category CRUD and the in-use delete guard
- product create validation (money, category, barcode, stock, images)
- listing filters and soft delete
- role permissions on catalog writes
"""

import pytest

from conftest import make_product, reload
from supercashier.models import Product


# =============================================================================
# CATEGORIES
# =============================================================================


class TestCategories:

    def test_create_and_get(self, client, warehouse_headers):
        resp = client.post(
            "/api/categories",
            json={"name": "Minuman", "description": "Minuman kemasan"},
            headers=warehouse_headers,
        )
        body = resp.get_json()
        assert resp.status_code == 201
        assert body["meta"]["message"] == "Category created"

        resp = client.get(f"/api/categories/{body['data']['id']}", headers=warehouse_headers)
        assert resp.get_json()["data"]["name"] == "Minuman"

    def test_name_required(self, client, warehouse_headers):
        resp = client.post("/api/categories", json={"description": "x"}, headers=warehouse_headers)
        assert resp.status_code == 422
        assert resp.get_json()["errors"]["name"] == ["The name field is required."]

    def test_unknown_field_rejected(self, client, warehouse_headers):
        resp = client.post("/api/categories", json={"name": "ATK", "color": "red"}, headers=warehouse_headers)
        assert resp.status_code == 422
        assert "color" in resp.get_json()["errors"]

    def test_update(self, client, warehouse_headers, category):
        resp = client.put(
            f"/api/categories/{category.id}",
            json={"description": "Gadget"},
            headers=warehouse_headers,
        )
        assert resp.status_code == 200
        data = resp.get_json()["data"]
        assert (data["name"], data["description"]) == ("Elektronik", "Gadget")

    def test_delete_in_use_is_409(self, client, warehouse_headers, laptop):
        resp = client.delete(f"/api/categories/{laptop.category_id}", headers=warehouse_headers)
        assert resp.status_code == 409
        assert resp.get_json()["meta"]["message"] == "Category still has products"

    def test_delete_empty(self, client, warehouse_headers, category):
        resp = client.delete(f"/api/categories/{category.id}", headers=warehouse_headers)
        assert resp.status_code == 200
        assert client.get(f"/api/categories/{category.id}", headers=warehouse_headers).status_code == 404

    def test_cashier_cannot_write(self, client, cashier_headers):
        resp = client.post("/api/categories", json={"name": "ATK"}, headers=cashier_headers)
        assert resp.status_code == 403

    def test_cashier_can_list(self, client, cashier_headers, category):
        resp = client.get("/api/categories", headers=cashier_headers)
        assert resp.status_code == 200
        assert [c["name"] for c in resp.get_json()["data"]] == ["Elektronik"]


# =============================================================================
# PRODUCTS: CREATE / UPDATE
# =============================================================================


class TestCreateProduct:

    def _payload(self, category, **overrides):
        payload = {
            "category_id": category.id,
            "name": "Keyboard",
            "cost_price": "250000",
            "selling_price": 300000.5,
            "stock": 12,
            "barcode": "8991234567890",
            "product_images": ["https://cdn.example/keyboard.png"],
        }
        payload.update(overrides)
        return payload

    def test_create(self, client, warehouse_headers, category):
        resp = client.post("/api/products", json=self._payload(category), headers=warehouse_headers)
        body = resp.get_json()

        assert resp.status_code == 201
        assert body["meta"]["message"] == "Product created"
        data = body["data"]
        assert data["cost_price"] == "250000.00"
        assert data["selling_price"] == "300000.50"
        assert data["stock"] == 12
        assert data["category"] == {"id": category.id, "name": "Elektronik"}
        assert data["is_active"] is True

    def test_stock_defaults_to_zero(self, client, warehouse_headers, category):
        payload = self._payload(category)
        del payload["stock"]
        resp = client.post("/api/products", json=payload, headers=warehouse_headers)
        assert resp.get_json()["data"]["stock"] == 0

    def test_collects_every_field_error(self, client, warehouse_headers, category):
        resp = client.post(
            "/api/products",
            json={"category_id": 999999, "selling_price": "-5", "stock": -1},
            headers=warehouse_headers,
        )
        errors = resp.get_json()["errors"]
        assert resp.status_code == 422
        assert {"name", "cost_price", "selling_price"} <= set(errors)

    @pytest.mark.parametrize("field,value", [
        ("category_id", 999999),
        ("stock", -1),
        ("cost_price", "12.345"),
        ("product_images", "not-a-list"),
        ("stock", 10**20),
    ])
    def test_rejects(self, client, warehouse_headers, category, field, value):
        resp = client.post(
            "/api/products",
            json=self._payload(category, **{field: value}),
            headers=warehouse_headers,
        )
        assert resp.status_code == 422
        assert field in resp.get_json()["errors"]

    def test_duplicate_barcode(self, client, warehouse_headers, category):
        make_product(category, barcode="8991234567890")
        resp = client.post("/api/products", json=self._payload(category), headers=warehouse_headers)
        assert resp.status_code == 422
        assert "barcode" in resp.get_json()["errors"]

    def test_cashier_forbidden(self, client, cashier_headers, category):
        resp = client.post("/api/products", json=self._payload(category), headers=cashier_headers)
        assert resp.status_code == 403


class TestUpdateProduct:

    def test_partial_update(self, client, warehouse_headers, laptop):
        resp = client.put(
            f"/api/products/{laptop.id}",
            json={"selling_price": "7500000"},
            headers=warehouse_headers,
        )
        data = resp.get_json()["data"]
        assert resp.status_code == 200
        assert data["selling_price"] == "7500000.00"
        assert data["name"] == "Laptop"

    def test_stock_not_writable(self, client, warehouse_headers, laptop):
        resp = client.put(f"/api/products/{laptop.id}", json={"stock": 99}, headers=warehouse_headers)
        assert resp.status_code == 422
        assert "stock" in resp.get_json()["errors"]
        assert reload(Product, laptop.id).stock == 10


# =============================================================================
# PRODUCTS: LIST / DELETE
# =============================================================================


class TestListProducts:

    def test_filters(self, client, cashier_headers, laptop, mouse):
        def names(query):
            resp = client.get(f"/api/products{query}", headers=cashier_headers)
            assert resp.status_code == 200
            return [p["name"] for p in resp.get_json()["data"]]

        assert names("") == ["Laptop", "Mouse"]
        assert names("?search=mou") == ["Mouse"]
        assert names("?min_price=1000000") == ["Laptop"]
        assert names("?max_price=150000") == ["Mouse"]
        assert names("?min_stock=20") == ["Mouse"]
        assert names(f"?category_id={laptop.category_id}") == ["Laptop", "Mouse"]

    def test_bad_filter(self, client, cashier_headers):
        resp = client.get("/api/products?min_price=abc", headers=cashier_headers)
        assert resp.status_code == 422

    def test_requires_auth(self, client, db_session):
        assert client.get("/api/products").status_code == 401


class TestDeleteProduct:

    def test_soft_delete(self, client, warehouse_headers, laptop):
        resp = client.delete(f"/api/products/{laptop.id}", headers=warehouse_headers)
        assert resp.status_code == 200

        product = reload(Product, laptop.id)
        assert product is not None
        assert product.is_active is False
        assert product.stock == 10

        assert client.get(f"/api/products/{laptop.id}", headers=warehouse_headers).status_code == 404
        listing = client.get("/api/products", headers=warehouse_headers).get_json()["data"]
        assert listing == []

    def test_unknown(self, client, warehouse_headers):
        assert client.delete("/api/products/999999", headers=warehouse_headers).status_code == 404
