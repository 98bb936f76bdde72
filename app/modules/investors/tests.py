"""
Tests for investors: CRUD, delete-or-deactivate and payment history.
"""

import pytest
from uuid import uuid4

from app.modules.investors.models import Investor


def fund_payable(client, amount, sources):
    account = client.post("/finance/ap", json={
        "description": "Matéria-prima", "due_date": "2099-01-10", "amount": amount
    }).json()
    response = client.post(f"/finance/ap/{account['id']}/pay", json={
        "payment_sources": [{"investor_id": str(i.id), "amount": a} for i, a in sources]
    })
    assert response.status_code == 200, response.text
    return account


class TestInvestorCrud:
    def test_create_and_list(self, client):
        response = client.post("/investors/", json={"name": "Carla Dias", "email": "carla@investe.com"})

        assert response.status_code == 201
        assert response.json()["is_active"] is True
        assert [i["name"] for i in client.get("/investors/").json()] == ["Carla Dias"]

    def test_update(self, client, investors):
        ana, _ = investors

        response = client.put(f"/investors/{ana.id}", json={"phone": "11 99999-0000"})

        assert response.status_code == 200
        assert response.json()["phone"] == "11 99999-0000"
        assert response.json()["name"] == "Ana Souza"

    def test_active_only_filter(self, client, db_session, investors):
        ana, _ = investors
        ana.is_active = False
        db_session.commit()

        names = [i["name"] for i in client.get("/investors/", params={"active_only": True}).json()]

        assert names == ["Bruno Lima"]

    def test_unknown_investor(self, client):
        response = client.get(f"/investors/{uuid4()}")
        assert response.status_code == 404
        assert response.json()["detail"] == "Investor not found"

    def test_writes_require_finance_role(self, client, login_as):
        login_as("ESTOQUE")
        assert client.post("/investors/", json={"name": "Sem Permissão"}).status_code == 403


class TestDeleteInvestor:
    def test_unreferenced_investor_is_deleted(self, client, db_session, investors):
        ana, _ = investors

        response = client.delete(f"/investors/{ana.id}")

        assert response.status_code == 200
        assert response.json()["deleted"] is True
        assert response.json()["deactivated"] is False
        assert db_session.query(Investor).count() == 1

    def test_referenced_investor_is_deactivated(self, client, db_session, investors):
        ana, _ = investors
        fund_payable(client, 60, [(ana, 60)])

        response = client.delete(f"/investors/{ana.id}")

        assert response.status_code == 200
        assert response.json()["deleted"] is False
        assert response.json()["deactivated"] is True
        db_session.refresh(ana)
        assert ana.is_active is False


class TestInvestorPayments:
    def test_payment_history(self, client, investors):
        ana, bruno = investors
        fund_payable(client, 150, [(ana, 100), (bruno, 50)])
        fund_payable(client, 40, [(ana, 40)])

        response = client.get(f"/investors/{ana.id}/payments")

        assert response.status_code == 200
        data = response.json()
        assert data["investor"]["name"] == "Ana Souza"
        assert len(data["payments"]) == 2
        assert data["summary"]["total_invested"] == 140.0
        assert data["summary"]["total_accounts"] == 2
        assert len(data["summary"]["by_month"]) == 1
        assert data["summary"]["by_month"][0]["count"] == 2
        assert sorted(p["account"]["total_amount"] for p in data["payments"]) == [40.0, 150.0]

    def test_history_after_reversal(self, client, investors):
        ana, _ = investors
        account = fund_payable(client, 60, [(ana, 60)])
        client.post(f"/finance/ap/{account['id']}/reverse")

        data = client.get(f"/investors/{ana.id}/payments").json()

        assert data["payments"] == []
        assert data["summary"]["total_invested"] == 0.0
