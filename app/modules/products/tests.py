"""
Tests for the product catalog
"""

import pytest
from uuid import uuid4


@pytest.fixture
def product_data():
    return {
        "name": "Açúcar Cristal 5kg",
        "sku": "ACU-005",
        "type": "PA",
        "unit": "UN",
        "cost_price": 14.2,
        "sale_price": 21.9,
        "min_stock": 10,
    }


class TestProducts:
    def test_create_product_starts_without_stock(self, client, product_data):
        response = client.post("/products/", json=product_data)

        assert response.status_code == 201
        data = response.json()
        assert data["sku"] == "ACU-005"
        assert data["stock_quantity"] == 0.0
        assert data["sale_price"] == 21.9

    def test_duplicate_sku(self, client, product_data):
        client.post("/products/", json=product_data)

        response = client.post("/products/", json=product_data)

        assert response.status_code == 400
        assert response.json()["field"] == "sku"

    def test_list_shows_ledger_balance(self, client, product, service_product):
        client.post(f"/products/{product.id}/adjustments", json={
            "type": "INVENTARIO", "quantity": 12, "reason": "Saldo inicial"
        })

        data = client.get("/products/", params={"type": "MP"}).json()

        assert data["total"] == 1
        assert data["data"][0]["stock_quantity"] == 12.0
        assert data["hasNext"] is False

    def test_search_by_sku(self, client, product, service_product):
        data = client.get("/products/", params={"search": "SRV"}).json()
        assert [p["name"] for p in data["data"]] == ["Frete"]

    def test_update_product(self, client, product):
        response = client.patch(f"/products/{product.id}", json={"min_stock": 2, "is_active": False})

        assert response.status_code == 200
        assert response.json()["min_stock"] == 2.0
        assert response.json()["is_active"] is False
        assert response.json()["cost_price"] == 4.5

    def test_unknown_product(self, client):
        assert client.get(f"/products/{uuid4()}").status_code == 404

    def test_sales_role_cannot_create(self, client, login_as, product_data):
        login_as("VENDAS")
        assert client.post("/products/", json=product_data).status_code == 403
