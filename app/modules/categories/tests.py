"""
Tests for financial categories and payment methods
"""

import pytest
from uuid import uuid4


class TestCategories:
    def test_create_and_filter(self, client, expense_category):
        response = client.post("/categories/", json={"name": "Vendas", "type": "INCOME"})

        assert response.status_code == 201
        income = client.get("/categories/", params={"type": "INCOME"}).json()
        assert income["total"] == 1
        assert income["categories"][0]["name"] == "Vendas"
        assert client.get("/categories/").json()["total"] == 2

    def test_duplicate_name(self, client, expense_category):
        response = client.post("/categories/", json={"name": "Fornecedores", "type": "EXPENSE"})
        assert response.status_code == 400
        assert response.json()["field"] == "name"

    def test_unknown_category(self, client):
        assert client.get(f"/categories/{uuid4()}").status_code == 404

    def test_only_finance_roles_create(self, client, login_as):
        login_as("COMPRAS")
        assert client.post("/categories/", json={"name": "Frete", "type": "EXPENSE"}).status_code == 403


class TestPaymentMethods:
    def test_create_and_list(self, client, payment_method):
        response = client.post("/payment-methods/", json={"name": "Boleto"})

        assert response.status_code == 201
        assert [m["name"] for m in client.get("/payment-methods/").json()] == ["Boleto", "PIX"]

    def test_inactive_methods_hidden(self, client, db_session, payment_method):
        payment_method.deactivate()
        db_session.commit()

        assert client.get("/payment-methods/").json() == []

    def test_duplicate_name(self, client, payment_method):
        assert client.post("/payment-methods/", json={"name": "PIX"}).status_code == 400
