"""
Tests for sales orders: receivable installments, delivery through the
stock ledger, cancellation and returns.
"""

import pytest
from decimal import Decimal
from datetime import date, timedelta
from uuid import uuid4

from app.modules.finance.models import AccountsReceivable, ReceivableStatus
from app.modules.products.models import StockBalance, StockMovement, MovementType, MovementReference
from app.modules.sales.models import SalesOrder, SalesOrderStatus, SalesReturn, CustomerCredit


def add_stock(client, product, quantity):
    response = client.post(f"/products/{product.id}/adjustments", json={
        "type": "INVENTARIO", "quantity": quantity, "reason": "Saldo inicial"
    })
    assert response.status_code == 201, response.text


def create_order(client, customer, product, quantity=5, unit_price=8, **extra):
    body = {
        "customer_id": str(customer.id),
        "sale_date": "2026-03-10",
        "items": [{"product_id": str(product.id), "quantity": quantity, "unit_price": unit_price}],
    }
    body.update(extra)
    return client.post("/sales/", json=body)


class TestSalesInstallments:
    def test_three_equal_installments(self, client, db_session, customer, service_product, payment_method):
        response = create_order(client, customer, service_product, quantity=3, unit_price=100, installments=[
            {"due_date": "2026-04-09", "amount": 100, "payment_method_id": str(payment_method.id)},
            {"due_date": "2026-05-09", "amount": 100},
            {"due_date": "2026-06-08", "amount": 100},
        ])

        assert response.status_code == 201
        data = response.json()
        assert data["total"] == 300.0
        receivables = sorted(data["accounts_receivable"], key=lambda ar: ar["due_date"])
        assert [ar["amount"] for ar in receivables] == [100.0, 100.0, 100.0]
        assert [ar["payment_days"] for ar in receivables] == [30, 60, 90]
        assert receivables[0]["planned_payment_method_id"] == str(payment_method.id)
        assert receivables[0]["payment_method_id"] is None
        assert receivables[0]["description"].endswith("Installment 1/3")

    def test_installments_above_total_rejected(self, client, db_session, customer, service_product):
        response = create_order(client, customer, service_product, quantity=3, unit_price=100, installments=[
            {"due_date": "2026-04-09", "amount": 100},
            {"due_date": "2026-05-09", "amount": 250},
        ])

        assert response.status_code == 400
        detail = response.json()["detail"]
        assert "350.00" in detail
        assert "300.00" in detail
        assert db_session.query(SalesOrder).count() == 0
        assert db_session.query(AccountsReceivable).count() == 0

    def test_unknown_installment_payment_method(self, client, customer, service_product):
        response = create_order(client, customer, service_product, quantity=1, unit_price=50, installments=[
            {"due_date": "2026-04-09", "amount": 25},
            {"due_date": "2026-05-09", "amount": 25, "payment_method_id": str(uuid4())},
        ])

        assert response.status_code == 404
        assert "installment 2" in response.json()["detail"]


class TestCreateSalesOrder:
    def test_stock_checked_at_creation(self, client, db_session, customer, product):
        add_stock(client, product, 2)

        response = create_order(client, customer, product, quantity=5)

        assert response.status_code == 400
        assert "Insufficient stock for Farinha de Trigo 1kg" in response.json()["detail"]
        assert "Available: 2" in response.json()["detail"]
        assert db_session.query(SalesOrder).count() == 0

    def test_repeated_lines_are_checked_together(self, client, customer, product):
        add_stock(client, product, 6)

        response = client.post("/sales/", json={
            "customer_id": str(customer.id),
            "items": [
                {"product_id": str(product.id), "quantity": 4, "unit_price": 8},
                {"product_id": str(product.id), "quantity": 4, "unit_price": 8},
            ],
        })

        assert response.status_code == 400

    def test_services_skip_stock_check(self, client, customer, service_product):
        response = create_order(client, customer, service_product, quantity=10, unit_price=25)
        assert response.status_code == 201
        assert response.json()["status"] == "DRAFT"

    def test_contact_must_be_customer(self, client, supplier, service_product):
        response = create_order(client, supplier, service_product)
        assert response.status_code == 400
        assert response.json()["field"] == "customer_id"


class TestDeliverSalesOrder:
    def test_receive_deliver_reconcile(self, client, db_session, supplier, customer, product):
        purchase = client.post("/purchases/", json={
            "supplier_id": str(supplier.id),
            "items": [{"product_id": str(product.id), "quantity": 20, "unit_price": 4}],
        }).json()
        client.post(f"/purchases/{purchase['id']}/receive", json={})
        order = create_order(client, customer, product, quantity=5).json()

        response = client.post(f"/sales/{order['id']}/deliver")

        assert response.status_code == 200
        assert response.json()["status"] == "DELIVERED"
        reconciled = client.post(f"/products/{product.id}/reconcile").json()
        assert reconciled["quantity"] == 15.0
        assert reconciled["previous_quantity"] == 15.0

    def test_insufficient_stock_writes_nothing(self, client, db_session, customer, product):
        add_stock(client, product, 5)
        order = create_order(client, customer, product, quantity=5).json()
        add_stock(client, product, -3)

        response = client.post(f"/sales/{order['id']}/deliver")

        assert response.status_code == 400
        assert "Available: 2" in response.json()["detail"]
        assert db_session.query(StockMovement).filter(StockMovement.type == MovementType.OUT).count() == 0
        assert db_session.query(SalesOrder).one().status == SalesOrderStatus.DRAFT
        assert db_session.query(StockBalance).one().quantity == Decimal("2")

    def test_delivery_creates_receivable_when_missing(self, client, db_session, customer, product):
        add_stock(client, product, 5)
        order = create_order(client, customer, product, quantity=5, unit_price=8).json()

        client.post(f"/sales/{order['id']}/deliver")

        account = db_session.query(AccountsReceivable).one()
        assert account.amount == Decimal("40.00")
        assert account.payment_days == 30
        assert account.due_date == date(2026, 3, 10) + timedelta(days=30)
        assert account.status == ReceivableStatus.OPEN

    def test_delivery_keeps_existing_installments(self, client, db_session, customer, product):
        add_stock(client, product, 5)
        order = create_order(client, customer, product, quantity=5, unit_price=8, installments=[
            {"due_date": "2026-04-10", "amount": 40},
        ]).json()

        client.post(f"/sales/{order['id']}/deliver")

        assert db_session.query(AccountsReceivable).count() == 1

    def test_delivery_replaces_canceled_installments(self, client, db_session, customer, product):
        add_stock(client, product, 5)
        order = create_order(client, customer, product, quantity=5, unit_price=8, installments=[
            {"due_date": "2026-04-10", "amount": 40},
        ]).json()
        client.post(f"/finance/ar/{order['accounts_receivable'][0]['id']}/cancel")

        client.post(f"/sales/{order['id']}/deliver")

        accounts = db_session.query(AccountsReceivable).all()
        assert len(accounts) == 2
        fallback = [ar for ar in accounts if ar.status == ReceivableStatus.OPEN]
        assert len(fallback) == 1
        assert fallback[0].amount == Decimal("40.00")

    def test_one_movement_per_line(self, client, db_session, customer, product):
        add_stock(client, product, 6)
        order = client.post("/sales/", json={
            "customer_id": str(customer.id),
            "items": [
                {"product_id": str(product.id), "quantity": 2, "unit_price": 8},
                {"product_id": str(product.id), "quantity": 3, "unit_price": 7.5},
            ],
        }).json()

        client.post(f"/sales/{order['id']}/deliver")

        movements = db_session.query(StockMovement).filter(StockMovement.type == MovementType.OUT).all()
        assert sorted(m.quantity for m in movements) == [Decimal("2"), Decimal("3")]
        assert db_session.query(StockBalance).one().quantity == Decimal("1")

    def test_cannot_deliver_twice(self, client, db_session, customer, product):
        add_stock(client, product, 10)
        order = create_order(client, customer, product, quantity=5).json()
        client.post(f"/sales/{order['id']}/deliver")

        response = client.post(f"/sales/{order['id']}/deliver")

        assert response.status_code == 400
        assert db_session.query(StockMovement).filter(StockMovement.type == MovementType.OUT).count() == 1

    def test_services_do_not_move_stock(self, client, db_session, customer, service_product):
        order = create_order(client, customer, service_product, quantity=2, unit_price=25).json()

        response = client.post(f"/sales/{order['id']}/deliver")

        assert response.status_code == 200
        assert db_session.query(StockMovement).count() == 0


class TestCancelSalesOrder:
    def test_cancel_cancels_open_receivables(self, client, db_session, customer, service_product):
        order = create_order(client, customer, service_product, quantity=1, unit_price=90, installments=[
            {"due_date": "2026-04-10", "amount": 45},
            {"due_date": "2026-05-10", "amount": 45},
        ]).json()

        response = client.post(f"/sales/{order['id']}/cancel")

        assert response.status_code == 200
        assert response.json()["status"] == "CANCELED"
        assert {ar.status for ar in db_session.query(AccountsReceivable).all()} == {ReceivableStatus.CANCELED}

    def test_cancel_rejected_after_receipt(self, client, customer, service_product):
        order = create_order(client, customer, service_product, quantity=1, unit_price=90, installments=[
            {"due_date": "2026-04-10", "amount": 90},
        ]).json()
        account_id = order["accounts_receivable"][0]["id"]
        client.post(f"/finance/ar/{account_id}/receive", json={"received_amount": 30})

        response = client.post(f"/sales/{order['id']}/cancel")

        assert response.status_code == 400

    def test_delivered_order_cannot_be_canceled(self, client, customer, service_product):
        order = create_order(client, customer, service_product).json()
        client.post(f"/sales/{order['id']}/deliver")

        assert client.post(f"/sales/{order['id']}/cancel").status_code == 400


class TestSalesReturns:
    def deliver(self, client, customer, product, quantity=5, unit_price=8, **extra):
        add_stock(client, product, quantity)
        order = create_order(client, customer, product, quantity=quantity, unit_price=unit_price, **extra).json()
        response = client.post(f"/sales/{order['id']}/deliver")
        assert response.status_code == 200, response.text
        return response.json()

    def return_items(self, client, order, quantity, refund_type="CREDIT"):
        return client.post(f"/sales/{order['id']}/returns", json={
            "items": [{"sales_item_id": order["items"][0]["id"], "quantity": quantity}],
            "reason": "Embalagem danificada",
            "refund_type": refund_type,
        })

    def test_return_restocks_and_creates_credit(self, client, db_session, customer, product):
        order = self.deliver(client, customer, product)

        response = self.return_items(client, order, 2)

        assert response.status_code == 201
        data = response.json()
        assert data["total"] == 16.0
        assert data["status"] == "PROCESSED"
        assert data["items"][0]["product_name"] == "Farinha de Trigo 1kg"
        assert [c["amount"] for c in data["credits"]] == [16.0]
        movement = db_session.query(StockMovement).filter(
            StockMovement.reference_type == MovementReference.RETURN
        ).one()
        assert movement.type == MovementType.IN
        assert movement.quantity == Decimal("2")
        assert str(movement.reference_id) == data["id"]
        assert db_session.query(StockBalance).one().quantity == Decimal("2")
        assert db_session.query(AccountsReceivable).one().amount == Decimal("40.00")

    def test_return_deducted_from_receivable(self, client, db_session, customer, product):
        order = self.deliver(client, customer, product)

        response = self.return_items(client, order, 2, refund_type="ACCOUNT_RECEIVABLE")

        assert response.status_code == 201
        assert response.json()["credits"] == []
        account = db_session.query(AccountsReceivable).one()
        assert account.amount == Decimal("24.00")
        assert account.description.endswith("(deducted 16.00 by return)")
        assert db_session.query(CustomerCredit).count() == 0

    def test_excess_over_open_receivables_becomes_credit(self, client, db_session, customer, product):
        order = self.deliver(client, customer, product, installments=[
            {"due_date": "2026-04-10", "amount": 20},
            {"due_date": "2026-05-10", "amount": 20},
        ])
        first = sorted(order["accounts_receivable"], key=lambda ar: ar["due_date"])[0]
        client.post(f"/finance/ar/{first['id']}/receive", json={})

        response = self.return_items(client, order, 5, refund_type="ACCOUNT_RECEIVABLE")

        assert response.status_code == 201
        assert [c["amount"] for c in response.json()["credits"]] == [20.0]
        statuses = {ar.due_date: ar for ar in db_session.query(AccountsReceivable).all()}
        assert statuses[date(2026, 4, 10)].status == ReceivableStatus.RECEIVED
        assert statuses[date(2026, 5, 10)].status == ReceivableStatus.CANCELED
        assert statuses[date(2026, 5, 10)].amount == Decimal("0")

    def test_quantity_above_remaining(self, client, db_session, customer, product):
        order = self.deliver(client, customer, product)
        assert self.return_items(client, order, 3).status_code == 201

        response = self.return_items(client, order, 3)

        assert response.status_code == 400
        assert "Farinha de Trigo 1kg" in response.json()["detail"]
        assert "(2)" in response.json()["detail"]
        assert db_session.query(SalesReturn).count() == 1

    def test_only_delivered_orders(self, client, db_session, customer, service_product):
        order = create_order(client, customer, service_product, quantity=1, unit_price=25).json()

        response = self.return_items(client, order, 1)

        assert response.status_code == 400
        assert db_session.query(SalesReturn).count() == 0

    def test_unknown_sales_item(self, client, customer, product):
        order = self.deliver(client, customer, product)

        response = client.post(f"/sales/{order['id']}/returns", json={
            "items": [{"sales_item_id": str(uuid4()), "quantity": 1}],
            "reason": "Troca",
        })

        assert response.status_code == 404

    def test_services_are_not_restocked(self, client, db_session, customer, service_product):
        order = create_order(client, customer, service_product, quantity=2, unit_price=25).json()
        order = client.post(f"/sales/{order['id']}/deliver").json()

        response = self.return_items(client, order, 1)

        assert response.status_code == 201
        assert db_session.query(StockMovement).count() == 0

    def test_list_returns(self, client, customer, product):
        order = self.deliver(client, customer, product)
        self.return_items(client, order, 1)
        self.return_items(client, order, 1)

        response = client.get(f"/sales/{order['id']}/returns")

        assert response.status_code == 200
        assert response.json()["total"] == 2

    def test_finance_role_cannot_register_returns(self, client, login_as, customer, product):
        order = self.deliver(client, customer, product)
        login_as("FINANCEIRO")

        assert self.return_items(client, order, 1).status_code == 403
        assert client.get(f"/sales/{order['id']}/returns").status_code == 200
