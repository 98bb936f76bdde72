"""
Tests for the contacts module

Customers and suppliers share one entity; the type list decides where a
contact can be referenced.
"""

import pytest
from uuid import uuid4

from app.modules.contacts.models import Contact
from app.modules.contacts.service import ContactService
from app.common.exceptions import NotFoundError, BadRequestError


@pytest.fixture
def sample_contact_data():
    return {
        "name": "Distribuidora Norte",
        "type": ["client", "provider"],
        "email": "contato@distnorte.com",
        "phone": "11 3333-4444",
        "document": "12345678000190",
    }


class TestContactEndpoints:
    def test_create_contact(self, client, sample_contact_data):
        response = client.post("/contacts/", json=sample_contact_data)

        assert response.status_code == 201
        data = response.json()
        assert data["type"] == ["client", "provider"]
        assert data["is_active"] is True

    def test_duplicate_types_collapse(self, client, sample_contact_data):
        sample_contact_data["type"] = ["client", "client"]
        response = client.post("/contacts/", json=sample_contact_data)
        assert response.json()["type"] == ["client"]

    def test_duplicate_document_rejected(self, client, sample_contact_data):
        client.post("/contacts/", json=sample_contact_data)

        response = client.post("/contacts/", json={**sample_contact_data, "name": "Outra"})

        assert response.status_code == 400
        assert response.json()["field"] == "document"

    def test_type_required(self, client, sample_contact_data):
        sample_contact_data["type"] = []
        response = client.post("/contacts/", json=sample_contact_data)
        assert response.status_code == 422
        assert response.json()["code"] == "VALIDATION_ERROR"

    def test_filter_by_type(self, client, supplier, customer):
        providers = client.get("/contacts/", params={"type": "provider"}).json()
        assert [c["name"] for c in providers["contacts"]] == [supplier.name]

        clients = client.get("/contacts/", params={"type": "client", "search": "mercado"}).json()
        assert clients["total"] == 1

    def test_get_unknown_contact(self, client):
        assert client.get(f"/contacts/{uuid4()}").status_code == 404

    def test_stock_role_cannot_create(self, client, login_as, sample_contact_data):
        login_as("ESTOQUE")
        assert client.post("/contacts/", json=sample_contact_data).status_code == 403


class TestContactRequirements:
    def test_require_provider(self, db_session, supplier, customer):
        service = ContactService(db_session)

        assert service.require_provider(supplier.id).id == supplier.id
        with pytest.raises(BadRequestError):
            service.require_provider(customer.id)
        with pytest.raises(NotFoundError):
            service.require_provider(uuid4())

    def test_inactive_contact_not_usable(self, db_session, customer):
        customer.is_active = False
        db_session.commit()

        with pytest.raises(NotFoundError):
            ContactService(db_session).require_client(customer.id)
