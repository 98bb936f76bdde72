"""
Tests for purchase orders: creation with payable installments, receiving
into stock, extra payables and cancellation.
"""

import pytest
from decimal import Decimal
from uuid import uuid4

from app.modules.finance.models import AccountsPayable, PayableStatus
from app.modules.products.models import StockBalance, StockMovement, MovementType, MovementReference
from app.modules.purchases.models import PurchaseOrder, PurchaseReceipt


def create_order(client, supplier, product, quantity=20, unit_price=4, **extra):
    body = {
        "supplier_id": str(supplier.id),
        "issue_date": "2026-03-01",
        "items": [{"product_id": str(product.id), "quantity": quantity, "unit_price": unit_price}],
    }
    body.update(extra)
    return client.post("/purchases/", json=body)


class TestCreatePurchaseOrder:
    def test_create_computes_total(self, client, supplier, product):
        response = create_order(client, supplier, product, quantity=20, unit_price=4.25)

        assert response.status_code == 201
        data = response.json()
        assert data["status"] == "DRAFT"
        assert data["total"] == 85.0
        assert data["supplier_name"] == "Atacado Central"
        assert data["items"][0]["product_sku"] == "FAR-001"
        assert data["accounts_payable"] == []

    def test_create_with_installments(self, client, db_session, supplier, product, expense_category):
        response = create_order(client, supplier, product, installments=[
            {"due_date": "2026-04-01", "amount": 40},
            {"due_date": "2026-05-01", "amount": 40},
        ], category_id=str(expense_category.id))

        assert response.status_code == 201
        payables = response.json()["accounts_payable"]
        assert len(payables) == 2
        order_prefix = response.json()["id"][:8]
        descriptions = sorted(p["description"] for p in payables)
        assert descriptions == [
            f"Order #{order_prefix} - Installment 1/2",
            f"Order #{order_prefix} - Installment 2/2",
        ]
        assert all(p["status"] == "OPEN" and p["payment_method_id"] is None for p in payables)

    def test_installments_above_total_create_nothing(self, client, db_session, supplier, product):
        response = create_order(client, supplier, product, installments=[
            {"due_date": "2026-04-01", "amount": 50},
            {"due_date": "2026-05-01", "amount": 50},
        ])

        assert response.status_code == 400
        assert "100.00" in response.json()["detail"]
        assert "80.00" in response.json()["detail"]
        assert db_session.query(PurchaseOrder).count() == 0
        assert db_session.query(AccountsPayable).count() == 0

    def test_contact_must_be_supplier(self, client, customer, product):
        response = create_order(client, customer, product)
        assert response.status_code == 400
        assert response.json()["field"] == "supplier_id"

    def test_unknown_product(self, client, supplier, product):
        response = client.post("/purchases/", json={
            "supplier_id": str(supplier.id),
            "items": [{"product_id": str(uuid4()), "quantity": 1, "unit_price": 1}],
        })
        assert response.status_code == 404

    def test_role_required(self, client, login_as, supplier, product):
        login_as("VENDAS")
        assert create_order(client, supplier, product).status_code == 403


class TestReceivePurchaseOrder:
    def test_receive_moves_stock_and_cost(self, client, db_session, supplier, product):
        order = create_order(client, supplier, product, quantity=20, unit_price=4).json()

        response = client.post(f"/purchases/{order['id']}/receive", json={"invoice_number": "NF-1234"})

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "RECEIVED"
        assert data["receipts"][0]["invoice_number"] == "NF-1234"
        assert data["receipts"][0]["total"] == 80.0

        db_session.refresh(product)
        assert product.cost_price == Decimal("4.00")
        balance = db_session.query(StockBalance).filter(StockBalance.product_id == product.id).one()
        assert balance.quantity == Decimal("20")
        movement = db_session.query(StockMovement).one()
        assert movement.type == MovementType.IN
        assert movement.reference_type == MovementReference.PURCHASE
        assert movement.unit_cost == Decimal("4.00")

    def test_receive_without_body(self, client, supplier, product):
        order = create_order(client, supplier, product).json()

        response = client.post(f"/purchases/{order['id']}/receive")

        assert response.status_code == 200
        assert response.json()["status"] == "RECEIVED"

    def test_cannot_receive_twice(self, client, db_session, supplier, product):
        order = create_order(client, supplier, product).json()
        client.post(f"/purchases/{order['id']}/receive", json={})

        response = client.post(f"/purchases/{order['id']}/receive", json={})

        assert response.status_code == 400
        assert db_session.query(StockMovement).count() == 1
        assert db_session.query(PurchaseReceipt).count() == 1

    def test_canceled_order_cannot_be_received(self, client, supplier, product):
        order = create_order(client, supplier, product).json()
        client.post(f"/purchases/{order['id']}/cancel")

        response = client.post(f"/purchases/{order['id']}/receive", json={})

        assert response.status_code == 400

    def test_unknown_order(self, client):
        assert client.post(f"/purchases/{uuid4()}/receive", json={}).status_code == 404


class TestPurchasePayables:
    def test_add_payables_counts_existing_open_rows(self, client, supplier, product):
        order = create_order(client, supplier, product, installments=[
            {"due_date": "2026-04-01", "amount": 50},
        ]).json()

        response = client.post(f"/purchases/{order['id']}/accounts-payable", json={
            "installments": [{"due_date": "2026-05-01", "amount": 40}]
        })

        assert response.status_code == 400
        detail = response.json()["detail"]
        assert "90.00" in detail
        assert "Already committed: 50.00" in detail
        assert "Available: 30.00" in detail

        ok = client.post(f"/purchases/{order['id']}/accounts-payable", json={
            "installments": [{"due_date": "2026-05-01", "amount": 30, "description": "Saldo"}]
        })
        assert ok.status_code == 201
        assert ok.json()[0]["description"] == "Saldo"

    def test_unknown_category(self, client, supplier, product):
        order = create_order(client, supplier, product).json()

        response = client.post(f"/purchases/{order['id']}/accounts-payable", json={
            "installments": [{"due_date": "2026-05-01", "amount": 30}],
            "category_id": str(uuid4()),
        })

        assert response.status_code == 404


class TestCancelPurchaseOrder:
    def test_cancel_removes_open_payables(self, client, db_session, supplier, product):
        order = create_order(client, supplier, product, installments=[
            {"due_date": "2026-04-01", "amount": 80},
        ]).json()

        response = client.post(f"/purchases/{order['id']}/cancel")

        assert response.status_code == 200
        assert response.json()["status"] == "CANCELED"
        assert db_session.query(AccountsPayable).count() == 0

    def test_cancel_rejected_with_paid_payable(self, client, db_session, supplier, product, payment_method):
        order = create_order(client, supplier, product, installments=[
            {"due_date": "2026-04-01", "amount": 80},
        ]).json()
        account_id = order["accounts_payable"][0]["id"]
        client.post(f"/finance/ap/{account_id}/pay", json={"payment_method_id": str(payment_method.id)})

        response = client.post(f"/purchases/{order['id']}/cancel")

        assert response.status_code == 400
        assert db_session.query(AccountsPayable).one().status == PayableStatus.PAID

    def test_received_order_cannot_be_canceled(self, client, supplier, product):
        order = create_order(client, supplier, product).json()
        client.post(f"/purchases/{order['id']}/receive", json={})

        assert client.post(f"/purchases/{order['id']}/cancel").status_code == 400
