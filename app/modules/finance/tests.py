"""
Tests for the finance module

Covers:
- Accounts payable: pay with a method or investor sources, reverse, bulk
  delivery-cost flag
- Accounts receivable: full and partial receipts, reversal with amount
  restoration, guarded update/delete/cancel
- Receivable headroom against the sales order total
- Cash journal, finance summary and the consistency report
"""

import pytest
from uuid import UUID, uuid4
from decimal import Decimal

from app.modules.finance.models import (
    AccountsPayable, AccountsReceivable, CashTransaction, PaymentSource,
    PayableStatus, ReceivableStatus, CashOrigin, CashTransactionType
)
from app.modules.finance.installments import installment_description, payment_days_between
from app.common.money import amounts_match, exceeds, format_money
from app.core.config import settings


# ===== HELPERS =====

def create_payable(client, amount=150, **extra):
    body = {"description": "Compra de embalagens", "due_date": "2099-01-10", "amount": amount}
    body.update(extra)
    response = client.post("/finance/ap", json=body)
    assert response.status_code == 201, response.text
    return response.json()


def create_receivable(client, customer, amount=100, **extra):
    body = {
        "customer_id": str(customer.id),
        "description": "Venda balcão",
        "due_date": "2099-02-10",
        "amount": amount,
    }
    body.update(extra)
    response = client.post("/finance/ar", json=body)
    assert response.status_code == 201, response.text
    return response.json()


def journal_entries(db_session, origin, origin_id):
    return db_session.query(CashTransaction).filter(
        CashTransaction.origin == origin,
        CashTransaction.origin_id == origin_id
    ).all()


# ===== MONEY HELPERS =====

class TestMoneyHelpers:
    def test_amounts_match_within_one_cent(self):
        assert amounts_match(Decimal("150.00"), Decimal("149.99"))
        assert amounts_match(Decimal("150.00"), Decimal("150.01"))
        assert not amounts_match(Decimal("150.00"), Decimal("149.98"))

    def test_exceeds_uses_tolerance(self):
        assert not exceeds(Decimal("300.01"), Decimal("300"))
        assert exceeds(Decimal("300.02"), Decimal("300"))

    def test_format_money(self):
        assert format_money(Decimal("350")) == "350.00"
        assert format_money(0.1 + 0.2) == "0.30"


# ===== ACCOUNTS PAYABLE =====

class TestPayAccountPayable:
    def test_pay_with_payment_method(self, client, db_session, payment_method):
        account = create_payable(client)

        response = client.post(
            f"/finance/ap/{account['id']}/pay",
            json={"payment_method_id": str(payment_method.id)}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "PAID"
        assert data["paid_at"] is not None
        assert data["payment_method_id"] == str(payment_method.id)
        assert data["payment_sources"] == []

        entries = journal_entries(db_session, CashOrigin.AP, db_session.query(AccountsPayable).one().id)
        assert len(entries) == 1
        assert entries[0].type == CashTransactionType.OUT
        assert entries[0].amount == Decimal("150.00")

    def test_pay_with_investor_sources(self, client, db_session, investors):
        ana, bruno = investors
        account = create_payable(client)

        response = client.post(f"/finance/ap/{account['id']}/pay", json={
            "payment_sources": [
                {"investor_id": str(ana.id), "amount": 100},
                {"investor_id": str(bruno.id), "amount": 50},
            ]
        })

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "PAID"
        assert data["payment_method_id"] is None
        assert [s["investor_name"] for s in data["payment_sources"]] == ["Ana Souza", "Bruno Lima"]
        assert [s["amount"] for s in data["payment_sources"]] == [100.0, 50.0]
        assert db_session.query(CashTransaction).count() == 1

    @pytest.mark.parametrize("second_share", [49, 51])
    def test_sources_must_match_amount(self, client, db_session, investors, second_share):
        ana, bruno = investors
        account = create_payable(client)

        response = client.post(f"/finance/ap/{account['id']}/pay", json={
            "payment_sources": [
                {"investor_id": str(ana.id), "amount": 100},
                {"investor_id": str(bruno.id), "amount": second_share},
            ]
        })

        assert response.status_code == 400
        body = response.json()
        assert body["code"] == "BAD_REQUEST"
        assert f"{100 + second_share}.00" in body["detail"]
        assert "150.00" in body["detail"]
        assert db_session.query(PaymentSource).count() == 0
        assert db_session.query(CashTransaction).count() == 0
        assert db_session.query(AccountsPayable).first().status == PayableStatus.OPEN

    def test_inactive_investor_rejected(self, client, db_session, investors):
        ana, _ = investors
        ana.is_active = False
        db_session.commit()
        account = create_payable(client, amount=80)

        response = client.post(f"/finance/ap/{account['id']}/pay", json={
            "payment_sources": [{"investor_id": str(ana.id), "amount": 80}]
        })

        assert response.status_code == 400
        assert db_session.query(CashTransaction).count() == 0

    def test_method_or_sources_required(self, client):
        account = create_payable(client)

        response = client.post(f"/finance/ap/{account['id']}/pay", json={})

        assert response.status_code == 422
        assert response.json()["code"] == "VALIDATION_ERROR"
        assert response.json()["field"] == "payment_method_id"

    def test_unknown_payment_method(self, client):
        account = create_payable(client)

        response = client.post(f"/finance/ap/{account['id']}/pay", json={"payment_method_id": str(uuid4())})

        assert response.status_code == 404

    def test_cannot_pay_twice(self, client, db_session, payment_method):
        account = create_payable(client)
        body = {"payment_method_id": str(payment_method.id)}
        assert client.post(f"/finance/ap/{account['id']}/pay", json=body).status_code == 200

        response = client.post(f"/finance/ap/{account['id']}/pay", json=body)

        assert response.status_code == 400
        assert "already paid" in response.json()["detail"]
        assert db_session.query(CashTransaction).count() == 1

    def test_unknown_account(self, client, payment_method):
        response = client.post(f"/finance/ap/{uuid4()}/pay", json={"payment_method_id": str(payment_method.id)})
        assert response.status_code == 404
        assert response.json()["code"] == "NOT_FOUND"

    def test_role_required(self, client, login_as, payment_method):
        account = create_payable(client)
        login_as("VENDAS")

        response = client.post(f"/finance/ap/{account['id']}/pay", json={"payment_method_id": str(payment_method.id)})

        assert response.status_code == 403
        assert response.json()["code"] == "FORBIDDEN"


class TestReverseAccountPayable:
    def test_pay_then_reverse_restores_open_state(self, client, db_session, investors):
        ana, bruno = investors
        account = create_payable(client)
        client.post(f"/finance/ap/{account['id']}/pay", json={
            "payment_sources": [
                {"investor_id": str(ana.id), "amount": 100},
                {"investor_id": str(bruno.id), "amount": 50},
            ]
        })
        client.post("/finance/ap/delivery-cost/bulk", json={"ids": [account["id"]], "is_delivery_cost": True})

        response = client.post(f"/finance/ap/{account['id']}/reverse")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "OPEN"
        assert data["paid_at"] is None
        assert data["payment_method_id"] is None
        assert data["is_delivery_cost"] is False
        assert data["payment_sources"] == []
        assert data["amount"] == account["amount"]
        assert db_session.query(PaymentSource).count() == 0
        assert db_session.query(CashTransaction).count() == 0

    def test_only_paid_accounts(self, client):
        account = create_payable(client)

        response = client.post(f"/finance/ap/{account['id']}/reverse")

        assert response.status_code == 400
        assert "Only paid accounts" in response.json()["detail"]


class TestDeliveryCostFlag:
    def test_flags_paid_accounts(self, client, payment_method):
        first = create_payable(client, amount=30)
        second = create_payable(client, amount=45)
        for account in (first, second):
            client.post(f"/finance/ap/{account['id']}/pay", json={"payment_method_id": str(payment_method.id)})

        response = client.post("/finance/ap/delivery-cost/bulk", json={
            "ids": [first["id"], second["id"]], "is_delivery_cost": True
        })

        assert response.status_code == 200
        assert response.json() == {"updated_count": 2, "is_delivery_cost": True}
        assert client.get(f"/finance/ap/{first['id']}").json()["is_delivery_cost"] is True

    def test_unpaid_account_rejects_whole_batch(self, client, payment_method):
        paid = create_payable(client, amount=30)
        client.post(f"/finance/ap/{paid['id']}/pay", json={"payment_method_id": str(payment_method.id)})
        open_account = create_payable(client, amount=45)

        response = client.post("/finance/ap/delivery-cost/bulk", json={
            "ids": [paid["id"], open_account["id"]], "is_delivery_cost": True
        })

        assert response.status_code == 400
        assert client.get(f"/finance/ap/{paid['id']}").json()["is_delivery_cost"] is False

    def test_missing_account(self, client, payment_method):
        paid = create_payable(client, amount=30)
        client.post(f"/finance/ap/{paid['id']}/pay", json={"payment_method_id": str(payment_method.id)})

        response = client.post("/finance/ap/delivery-cost/bulk", json={
            "ids": [paid["id"], str(uuid4())], "is_delivery_cost": True
        })

        assert response.status_code == 404


# ===== ACCOUNTS RECEIVABLE =====

class TestReceiveAccountReceivable:
    def test_full_receipt(self, client, db_session, customer, payment_method):
        account = create_receivable(client, customer)

        response = client.post(
            f"/finance/ar/{account['id']}/receive",
            json={"payment_method_id": str(payment_method.id)}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "RECEIVED"
        assert data["received_at"] is not None
        assert data["payment_method_id"] == str(payment_method.id)
        assert data["received_amount"] == 100.0
        assert data["is_partial"] is False
        entries = db_session.query(CashTransaction).all()
        assert len(entries) == 1
        assert entries[0].type == CashTransactionType.IN
        assert entries[0].origin == CashOrigin.AR

    def test_partial_receipt_keeps_account_open(self, client, db_session, customer, payment_method):
        account = create_receivable(client, customer)

        response = client.post(f"/finance/ar/{account['id']}/receive", json={
            "received_amount": 40, "payment_method_id": str(payment_method.id)
        })

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "OPEN"
        assert data["amount"] == 60.0
        assert data["remaining_amount"] == 60.0
        assert data["is_partial"] is True
        assert data["payment_method_id"] is None
        assert data["received_at"] is None
        entry = db_session.query(CashTransaction).one()
        assert entry.amount == Decimal("40.00")
        assert "Partial receipt" in entry.description

    def test_received_amount_above_outstanding(self, client, db_session, customer):
        account = create_receivable(client, customer)

        response = client.post(f"/finance/ar/{account['id']}/receive", json={"received_amount": 100.5})

        assert response.status_code == 400
        assert db_session.query(CashTransaction).count() == 0

    def test_received_amount_must_be_positive(self, client, customer):
        account = create_receivable(client, customer)

        response = client.post(f"/finance/ar/{account['id']}/receive", json={"received_amount": 0})

        assert response.status_code == 422
        assert response.json()["code"] == "VALIDATION_ERROR"

    def test_cannot_receive_twice(self, client, customer):
        account = create_receivable(client, customer)
        client.post(f"/finance/ar/{account['id']}/receive", json={})

        response = client.post(f"/finance/ar/{account['id']}/receive", json={})

        assert response.status_code == 400


class TestReverseAccountReceivable:
    def test_receive_then_reverse(self, client, db_session, customer, payment_method):
        account = create_receivable(client, customer)
        client.post(f"/finance/ar/{account['id']}/receive", json={"payment_method_id": str(payment_method.id)})

        response = client.post(f"/finance/ar/{account['id']}/reverse")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "OPEN"
        assert data["amount"] == 100.0
        assert data["restored_amount"] == 100.0
        assert data["transactions_removed"] == 1
        assert data["received_at"] is None
        assert data["payment_method_id"] is None
        assert db_session.query(CashTransaction).count() == 0

    def test_partial_then_full_then_reverse_restores_original_amount(self, client, db_session, customer):
        account = create_receivable(client, customer)
        client.post(f"/finance/ar/{account['id']}/receive", json={"received_amount": 40})
        final = client.post(f"/finance/ar/{account['id']}/receive", json={})
        assert final.json()["status"] == "RECEIVED"
        assert final.json()["received_amount"] == 60.0

        response = client.post(f"/finance/ar/{account['id']}/reverse")

        assert response.status_code == 200
        data = response.json()
        assert data["amount"] == 100.0
        assert data["restored_amount"] == 100.0
        assert data["transactions_removed"] == 2
        assert db_session.query(CashTransaction).count() == 0

    def test_only_received_accounts(self, client, customer):
        account = create_receivable(client, customer)

        response = client.post(f"/finance/ar/{account['id']}/reverse")

        assert response.status_code == 400


class TestAccountReceivableMaintenance:
    def test_update_open_account(self, client, customer):
        account = create_receivable(client, customer)

        response = client.put(f"/finance/ar/{account['id']}", json={"amount": 120, "description": "Venda ajustada"})

        assert response.status_code == 200
        assert response.json()["amount"] == 120.0
        assert response.json()["description"] == "Venda ajustada"

    def test_received_account_cannot_be_edited(self, client, customer):
        account = create_receivable(client, customer)
        client.post(f"/finance/ar/{account['id']}/receive", json={})

        response = client.put(f"/finance/ar/{account['id']}", json={"amount": 120})

        assert response.status_code == 400

    def test_amount_locked_after_partial_receipt(self, client, customer):
        account = create_receivable(client, customer)
        client.post(f"/finance/ar/{account['id']}/receive", json={"received_amount": 40})

        response = client.put(f"/finance/ar/{account['id']}", json={"amount": 80})

        assert response.status_code == 400

    def test_delete_open_account(self, client, db_session, customer):
        account = create_receivable(client, customer)

        response = client.delete(f"/finance/ar/{account['id']}")

        assert response.status_code == 204
        assert db_session.query(AccountsReceivable).count() == 0

    def test_delete_rejected_with_partial_receipts(self, client, customer):
        account = create_receivable(client, customer)
        client.post(f"/finance/ar/{account['id']}/receive", json={"received_amount": 10})

        response = client.delete(f"/finance/ar/{account['id']}")

        assert response.status_code == 400

    def test_cancel_is_terminal(self, client, customer):
        account = create_receivable(client, customer)

        response = client.post(f"/finance/ar/{account['id']}/cancel")
        assert response.status_code == 200
        assert response.json()["status"] == "CANCELED"

        assert client.post(f"/finance/ar/{account['id']}/receive", json={}).status_code == 400
        assert client.post(f"/finance/ar/{account['id']}/cancel").status_code == 400


class TestReceivableOrderHeadroom:
    @pytest.fixture
    def order(self, client, customer, service_product):
        response = client.post("/sales/", json={
            "customer_id": str(customer.id),
            "items": [{"product_id": str(service_product.id), "quantity": 3, "unit_price": 100}],
        })
        assert response.status_code == 201, response.text
        return response.json()

    def test_create_rejected_above_order_total(self, client, db_session, customer, order):
        create_receivable(client, customer, amount=200, sales_order_id=order["id"])

        response = client.post("/finance/ar", json={
            "customer_id": str(customer.id),
            "sales_order_id": order["id"],
            "description": "Segunda parcela",
            "due_date": "2099-03-10",
            "amount": 150,
        })

        assert response.status_code == 400
        assert "Available: 100.00" in response.json()["detail"]
        assert response.json()["field"] == "amount"
        assert db_session.query(AccountsReceivable).count() == 1

    def test_update_rejected_above_order_total(self, client, customer, order):
        create_receivable(client, customer, amount=200, sales_order_id=order["id"])
        second = create_receivable(client, customer, amount=100, sales_order_id=order["id"])

        response = client.put(f"/finance/ar/{second['id']}", json={"amount": 150})

        assert response.status_code == 400
        assert "Available: 100.00" in response.json()["detail"]

    def test_update_within_order_total(self, client, customer, order):
        first = create_receivable(client, customer, amount=200, sales_order_id=order["id"])
        create_receivable(client, customer, amount=50, sales_order_id=order["id"])

        response = client.put(f"/finance/ar/{first['id']}", json={"amount": 250})

        assert response.status_code == 200
        assert response.json()["amount"] == 250.0

    def test_partial_receipts_count_against_order_total(self, client, db_session, customer, order):
        first = create_receivable(client, customer, amount=300, sales_order_id=order["id"])
        client.post(f"/finance/ar/{first['id']}/receive", json={"received_amount": 100})

        response = client.post("/finance/ar", json={
            "customer_id": str(customer.id),
            "sales_order_id": order["id"],
            "description": "Nova parcela",
            "due_date": "2099-03-10",
            "amount": 100,
        })

        assert response.status_code == 400
        assert "Available: 0.00" in response.json()["detail"]

        client.post(f"/finance/ar/{first['id']}/receive", json={})
        reversed_ = client.post(f"/finance/ar/{first['id']}/reverse").json()
        assert reversed_["restored_amount"] == 300.0
        committed = db_session.query(AccountsReceivable).filter(
            AccountsReceivable.status.in_([ReceivableStatus.OPEN, ReceivableStatus.RECEIVED])
        ).all()
        assert sum(ar.amount for ar in committed) == Decimal("300.00")

    def test_update_counts_partial_receipts_of_other_accounts(self, client, customer, order):
        first = create_receivable(client, customer, amount=200, sales_order_id=order["id"])
        second = create_receivable(client, customer, amount=100, sales_order_id=order["id"])
        client.post(f"/finance/ar/{first['id']}/receive", json={"received_amount": 150})

        response = client.put(f"/finance/ar/{second['id']}", json={"amount": 200})

        assert response.status_code == 400
        assert "Available: 100.00" in response.json()["detail"]


# ===== CASH JOURNAL =====

class TestCashJournal:
    def test_cashflow_requires_period(self, client):
        response = client.get("/finance/cashflow")
        assert response.status_code == 400

    def test_cashflow_totals(self, client, payment_method, customer):
        payable = create_payable(client, amount=150)
        client.post(f"/finance/ap/{payable['id']}/pay", json={
            "payment_method_id": str(payment_method.id), "paid_at": "2026-03-05T10:00:00"
        })
        receivable = create_receivable(client, customer, amount=400)
        client.post(f"/finance/ar/{receivable['id']}/receive", json={"received_at": "2026-03-10T15:30:00"})
        client.post("/finance/cash-transactions", json={
            "type": "IN", "amount": 25.5, "date": "2026-04-01T09:00:00", "description": "Aporte"
        })

        response = client.get("/finance/cashflow", params={"start_date": "2026-03-01", "end_date": "2026-03-31"})

        assert response.status_code == 200
        data = response.json()
        assert len(data["transactions"]) == 2
        assert data["summary"] == {"total_in": 400.0, "total_out": 150.0, "balance": 250.0}

    def test_manual_entry(self, client):
        response = client.post("/finance/cash-transactions", json={
            "type": "OUT", "amount": 12.9, "description": "Material de limpeza"
        })

        assert response.status_code == 201
        data = response.json()
        assert data["origin"] == "MANUAL"
        assert data["origin_id"] is None
        assert data["amount"] == 12.9

        listing = client.get("/finance/cash-transactions", params={"origin": "MANUAL"}).json()
        assert listing["total"] == 1


class TestListPagination:
    def test_default_page_size(self, client, customer):
        create_receivable(client, customer)

        data = client.get("/finance/ar").json()

        assert data["limit"] == settings.DEFAULT_PAGE_SIZE
        assert data["total"] == 1

    def test_page_size_capped(self, client):
        response = client.get("/finance/cash-transactions", params={"limit": settings.MAX_PAGE_SIZE + 1})
        assert response.status_code == 422


class TestFinanceSummary:
    def test_summary_splits_overdue_and_upcoming(self, client, customer, payment_method):
        create_payable(client, amount=100, due_date="2020-01-10")
        create_payable(client, amount=50, due_date="2099-01-10")
        paid = create_payable(client, amount=70)
        client.post(f"/finance/ap/{paid['id']}/pay", json={"payment_method_id": str(payment_method.id)})
        create_receivable(client, customer, amount=30, due_date="2020-05-01")

        response = client.get("/finance/summary")

        assert response.status_code == 200
        data = response.json()
        assert data["accounts_payable"] == {
            "total_open": 150.0, "count_open": 2, "total_paid": 70.0, "overdue": 100.0, "upcoming": 50.0
        }
        assert data["accounts_receivable"]["overdue"] == 30.0
        assert data["cash"]["total_out"] == 70.0


# ===== VALIDATION =====

class TestFinanceValidation:
    def sale(self, client, customer, product, quantity=1, unit_price=90, deliver=True, **extra):
        body = {
            "customer_id": str(customer.id),
            "items": [{"product_id": str(product.id), "quantity": quantity, "unit_price": unit_price}],
        }
        body.update(extra)
        order = client.post("/sales/", json=body).json()
        if deliver:
            order = client.post(f"/sales/{order['id']}/deliver").json()
        return order

    def test_clean_ledger_is_consistent(self, client, customer, payment_method, service_product):
        payable = create_payable(client, amount=150)
        client.post(f"/finance/ap/{payable['id']}/pay", json={"payment_method_id": str(payment_method.id)})
        order = self.sale(client, customer, service_product)
        client.post(f"/finance/ar/{order['accounts_receivable'][0]['id']}/receive", json={"received_amount": 40})

        response = client.get("/finance/validate")

        assert response.status_code == 200
        data = response.json()
        assert data["is_consistent"] is True
        assert data["issue_count"] == 0
        assert data["cash"] == {"total_in": 40.0, "total_out": 150.0, "balance": -110.0, "transactions": 2}

    def test_payable_entries(self, client, db_session, payment_method):
        from datetime import datetime

        unpaid = create_payable(client, amount=80)
        paid = create_payable(client, amount=150)
        client.post(f"/finance/ap/{paid['id']}/pay", json={"payment_method_id": str(payment_method.id)})
        for origin_id in (uuid4(), unpaid["id"]):
            db_session.add(CashTransaction(
                type=CashTransactionType.OUT, origin=CashOrigin.AP, origin_id=UUID(str(origin_id)),
                amount=Decimal("80.00"), date=datetime(2026, 3, 1, 10, 0),
            ))
        db_session.query(AccountsPayable).filter(AccountsPayable.id == UUID(paid["id"])).one().amount = Decimal("175.00")
        db_session.commit()

        data = client.get("/finance/validate").json()

        kinds = sorted(issue["kind"] for issue in data["cash_issues"])
        assert kinds == ["AP_AMOUNT_MISMATCH", "AP_MISSING", "AP_NOT_PAID"]
        assert data["is_consistent"] is False
        assert data["issue_count"] == 3

    def test_receipts_on_canceled_receivables_and_orders(self, client, db_session, customer, service_product):
        standalone = create_receivable(client, customer)
        client.post(f"/finance/ar/{standalone['id']}/receive", json={})
        db_session.query(AccountsReceivable).filter(
            AccountsReceivable.id == UUID(standalone["id"])
        ).one().status = ReceivableStatus.CANCELED
        order = self.sale(client, customer, service_product, deliver=False, installments=[
            {"due_date": "2099-04-10", "amount": 90},
        ])
        client.post(f"/finance/ar/{order['accounts_receivable'][0]['id']}/receive", json={"received_amount": 30})
        from app.modules.sales.models import SalesOrder, SalesOrderStatus
        db_session.query(SalesOrder).one().status = SalesOrderStatus.CANCELED
        db_session.commit()

        data = client.get("/finance/validate").json()

        assert sorted(issue["kind"] for issue in data["cash_issues"]) == ["AR_CANCELED", "AR_CANCELED_ORDER"]
        assert [(r["order_status"], r["amount"]) for r in data["receivables_on_undelivered_orders"]] == [
            ("CANCELED", 60.0)
        ]

    def test_receivable_on_undelivered_order(self, client, customer, service_product):
        order = self.sale(client, customer, service_product, deliver=False, installments=[
            {"due_date": "2099-04-10", "amount": 90},
        ])

        data = client.get("/finance/validate").json()

        flagged = data["receivables_on_undelivered_orders"]
        assert [r["sales_order_id"] for r in flagged] == [order["id"]]
        assert flagged[0]["order_status"] == "DRAFT"

    def test_delivered_order_without_receivable(self, client, customer, service_product):
        order = self.sale(client, customer, service_product)
        client.post(f"/finance/ar/{order['accounts_receivable'][0]['id']}/cancel")

        data = client.get("/finance/validate").json()

        assert [o["sales_order_id"] for o in data["delivered_orders_without_receivable"]] == [order["id"]]
        assert data["delivered_orders_without_receivable"][0]["total"] == 90.0

    def test_duplicate_and_canceled_sale_movements(self, client, db_session, customer, product):
        from app.modules.inventory.service import StockLedgerService
        from app.modules.products.models import MovementType, MovementReference
        from app.modules.sales.models import SalesOrder, SalesOrderStatus

        client.post(f"/products/{product.id}/adjustments", json={
            "type": "INVENTARIO", "quantity": 10, "reason": "Saldo inicial"
        })
        order = self.sale(client, customer, product, quantity=5, unit_price=8)
        StockLedgerService(db_session).apply_movement(
            product.id, MovementType.OUT, Decimal("5"), MovementReference.SALE, reference_id=UUID(order["id"])
        )
        db_session.commit()

        data = client.get("/finance/validate").json()
        assert data["duplicate_sale_movements"] == [{
            "sales_order_id": order["id"], "product_id": str(product.id), "movements": 2, "expected": 1
        }]
        assert data["canceled_sale_movements"] == []

        db_session.query(SalesOrder).one().status = SalesOrderStatus.CANCELED
        db_session.commit()

        data = client.get("/finance/validate").json()
        assert len(data["canceled_sale_movements"]) == 2
        assert data["canceled_sale_movements"][0]["quantity"] == 5.0

    def test_admin_only(self, client, login_as):
        login_as("FINANCEIRO")
        assert client.get("/finance/validate").status_code == 403


# ===== INSTALLMENT HELPERS =====

class TestInstallmentHelpers:
    def test_description(self):
        order_id = uuid4()
        prefix = str(order_id)[:8]
        assert installment_description(order_id, 1, 1) == f"Order #{prefix}"
        assert installment_description(order_id, 2, 3) == f"Order #{prefix} - Installment 2/3"
        assert installment_description(order_id, 1, 3, "Entrada") == "Entrada"

    def test_payment_days(self):
        from datetime import date
        assert payment_days_between(date(2026, 1, 1), date(2026, 1, 31)) == 30
        assert payment_days_between(date(2026, 1, 1), date(2026, 1, 1)) is None
