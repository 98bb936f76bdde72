"""
Tests for login, bearer tokens and role checks.
"""

import pytest

from app.main import app
from app.modules.auth.dependencies import AuthDependencies
from app.modules.auth.models import UserRole
from app.modules.auth.utils import create_access_token, decode_token, hash_password, verify_password


def login(client, email="admin@ledger-erp.com", password="secret123"):
    return client.post("/auth/login", json={"email": email, "password": password})


class TestPasswordAndToken:
    def test_password_hashing(self):
        hashed = hash_password("secret123")
        assert hashed != "secret123"
        assert verify_password("secret123", hashed)
        assert not verify_password("wrong", hashed)

    def test_access_token_claims(self):
        token = create_access_token({"sub": "abc", "role": "ADMIN"})
        payload = decode_token(token)
        assert payload["sub"] == "abc"
        assert payload["type"] == "access"


class TestLogin:
    def test_login_returns_token(self, client, user):
        response = login(client)

        assert response.status_code == 200
        data = response.json()
        assert data["token_type"] == "bearer"
        assert data["user"]["role"] == "ADMIN"
        assert data["user"]["last_login"] is not None

    def test_wrong_password(self, client, user):
        response = login(client, password="nope")
        assert response.status_code == 401

    def test_inactive_user(self, client, db_session, user):
        user.is_active = False
        db_session.commit()

        assert login(client).status_code == 403

    def test_me_with_token(self, client, user):
        token = login(client).json()["access_token"]

        response = client.get("/auth/me", headers={"Authorization": f"Bearer {token}"})

        assert response.status_code == 200
        assert response.json()["email"] == user.email

    def test_invalid_token(self, client, user):
        response = client.get("/auth/me", headers={"Authorization": "Bearer not-a-token"})
        assert response.status_code == 401


class TestRoleFromDatabase:
    @pytest.fixture
    def real_auth(self, client):
        app.dependency_overrides.pop(AuthDependencies.get_auth_context, None)
        return client

    def test_role_read_from_database(self, real_auth, db_session, user):
        token = login(real_auth).json()["access_token"]
        headers = {"Authorization": f"Bearer {token}"}
        assert real_auth.post("/investors/", json={"name": "Carla"}, headers=headers).status_code == 201

        user.role = UserRole.VENDAS
        db_session.commit()

        response = real_auth.post("/investors/", json={"name": "Davi"}, headers=headers)
        assert response.status_code == 403
        assert response.json()["code"] == "FORBIDDEN"


class TestCreateUser:
    def test_create_user_hashes_password(self, db_session):
        from app.modules.auth.schemas import UserCreate
        from app.modules.auth.service import AuthService

        created = AuthService(db_session).create_user(UserCreate(
            email="estoque@ledger-erp.com", name="Estoque", password="secret123", role="ESTOQUE"
        ))

        assert created.role == UserRole.ESTOQUE
        assert verify_password("secret123", created.password)

    def test_duplicate_email(self, db_session, user):
        from app.common.exceptions import BadRequestError
        from app.modules.auth.schemas import UserCreate
        from app.modules.auth.service import AuthService

        with pytest.raises(BadRequestError):
            AuthService(db_session).create_user(UserCreate(
                email=user.email, name="Outro", password="secret123"
            ))
