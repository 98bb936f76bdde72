"""
Tests for the stock ledger

Balances only move through movements: purchase receipts (IN), sales
deliveries (OUT) and manual adjustments (ADJUST). Reconciliation rebuilds
the cached balance from the movement history.
"""

import pytest
from uuid import uuid4, UUID
from decimal import Decimal

from app.modules.products.models import StockBalance, StockMovement, StockAdjustment, MovementType, MovementReference
from app.modules.inventory.service import StockLedgerService, movement_effect
from app.common.money import format_quantity


def adjust(client, product, quantity, type="INVENTARIO", **extra):
    body = {"type": type, "quantity": quantity, "reason": "Contagem física"}
    body.update(extra)
    return client.post(f"/products/{product.id}/adjustments", json=body)


def balance_of(db_session, product):
    balance = db_session.query(StockBalance).filter(StockBalance.product_id == product.id).first()
    return balance.quantity if balance else None


class TestMovementEffect:
    def test_signed_effects(self):
        assert movement_effect(StockMovement(type=MovementType.IN, quantity=Decimal("5"))) == Decimal("5")
        assert movement_effect(StockMovement(type=MovementType.OUT, quantity=Decimal("5"))) == Decimal("-5")
        assert movement_effect(StockMovement(type=MovementType.ADJUST, quantity=Decimal("-3"))) == Decimal("-3")

    def test_format_quantity(self):
        assert format_quantity(Decimal("10.000")) == "10"
        assert format_quantity(Decimal("2.500")) == "2.5"


class TestStockAdjustments:
    def test_inventory_adjustment_moves_balance(self, client, db_session, product):
        assert adjust(client, product, 10).status_code == 201

        response = adjust(client, product, -3)

        assert response.status_code == 201
        data = response.json()
        assert data["balance"] == 7.0
        assert data["quantity"] == -3.0
        assert data["has_photo"] is False
        assert balance_of(db_session, product) == Decimal("7")

        movement = db_session.query(StockMovement).filter(StockMovement.reference_id == UUID(data["id"])).one()
        assert movement.type == MovementType.ADJUST
        assert movement.quantity == Decimal("-3")

    def test_damage_requires_photo(self, client, db_session, product):
        response = adjust(client, product, -1, type="AVARIA")

        assert response.status_code == 422
        assert response.json()["field"] == "photo_base64"
        assert db_session.query(StockAdjustment).count() == 0
        assert db_session.query(StockMovement).count() == 0

    def test_damage_with_photo(self, client, product):
        adjust(client, product, 4)

        response = adjust(client, product, -1, type="AVARIA", photo_base64="iVBORw0KGgoAAAANSUhEUg==")

        assert response.status_code == 201
        assert response.json()["has_photo"] is True
        listing = client.get(f"/products/{product.id}/adjustments").json()
        assert len(listing) == 2
        assert all("photo_base64" not in item for item in listing)

    def test_zero_quantity_rejected(self, client, product):
        response = adjust(client, product, 0)
        assert response.status_code == 422
        assert response.json()["field"] == "quantity"

    def test_reason_required(self, client, product):
        response = adjust(client, product, 2, reason="   ")
        assert response.status_code == 422
        assert response.json()["field"] == "reason"

    def test_unknown_product(self, client):
        response = client.post(f"/products/{uuid4()}/adjustments", json={
            "type": "INVENTARIO", "quantity": 1, "reason": "Contagem"
        })
        assert response.status_code == 404

    def test_role_required(self, client, login_as, product):
        login_as("VENDAS")
        assert adjust(client, product, 1).status_code == 403


class TestReconcileBalance:
    def test_reconcile_rebuilds_from_movements(self, client, db_session, product):
        adjust(client, product, 12)
        adjust(client, product, -2)
        db_session.query(StockBalance).filter(StockBalance.product_id == product.id).update({"quantity": 99})
        db_session.commit()

        response = client.post(f"/products/{product.id}/reconcile")

        assert response.status_code == 200
        data = response.json()
        assert data["quantity"] == 10.0
        assert data["previous_quantity"] == 99.0
        assert data["unit"] == "KG"

    def test_reconcile_is_idempotent(self, client, product):
        adjust(client, product, 8)

        first = client.post(f"/products/{product.id}/reconcile").json()
        second = client.post(f"/products/{product.id}/reconcile").json()

        assert first["quantity"] == second["quantity"] == 8.0
        assert second["previous_quantity"] == 8.0

    def test_negative_history_clamped_to_zero(self, client, db_session, product):
        ledger = StockLedgerService(db_session)
        ledger.apply_movement(product.id, MovementType.OUT, Decimal("4"), MovementReference.SALE)
        db_session.commit()

        response = client.post(f"/products/{product.id}/reconcile")

        assert response.json()["quantity"] == 0.0
        assert response.json()["previous_quantity"] == -4.0

    def test_reconcile_without_history_creates_balance(self, client, db_session, product):
        response = client.post(f"/products/{product.id}/reconcile")

        assert response.status_code == 200
        assert response.json()["quantity"] == 0.0
        assert balance_of(db_session, product) == Decimal("0")


class TestStockReads:
    def test_balances_flag_low_stock(self, client, product, service_product):
        adjust(client, product, 3)

        data = client.get("/stock/balances").json()

        assert data["total"] == 1
        assert data["balances"][0]["product_sku"] == "FAR-001"
        assert data["balances"][0]["is_low_stock"] is True
        assert client.get("/stock/balances", params={"low_stock": True}).json()["total"] == 1

    def test_movements_filter_by_type(self, client, product):
        adjust(client, product, 3)

        data = client.get("/stock/movements", params={"product_id": str(product.id), "type": "ADJUST"}).json()

        assert data["total"] == 1
        assert data["movements"][0]["product_name"] == product.name
        assert client.get("/stock/movements", params={"type": "OUT"}).json()["total"] == 0
