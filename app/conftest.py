"""
Shared pytest fixtures

Tests run against an in-memory SQLite database. Every test gets fresh
tables, one session shared with the app through dependency overrides and
an authenticated user whose role can be switched with ``login_as``.
"""

import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["ENVIRONMENT"] = "test"

import pytest
from decimal import Decimal
from fastapi.testclient import TestClient

from app.main import app
from app.database.database import Base, engine, SessionLocal, get_db
from app.modules.auth.dependencies import AuthDependencies
from app.modules.auth.models import User, UserRole
from app.modules.auth.schemas import AuthContext
from app.modules.auth.utils import hash_password
from app.modules.contacts.models import Contact
from app.modules.categories.models import Category, CategoryType
from app.modules.finance.models import PaymentMethod
from app.modules.investors.models import Investor
from app.modules.products.models import Product, ProductType


@pytest.fixture
def db_session():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def user(db_session):
    user = User(
        email="admin@ledger-erp.com",
        name="Admin",
        password=hash_password("secret123"),
        role=UserRole.ADMIN,
        is_active=True,
    )
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def auth_state(user):
    return {"role": UserRole.ADMIN.value}


@pytest.fixture
def login_as(auth_state):
    """Switch the role of the authenticated user for the following requests."""
    def _login_as(role: str):
        auth_state["role"] = role
    return _login_as


@pytest.fixture
def client(db_session, user, auth_state):
    def override_get_db():
        yield db_session

    def override_auth_context():
        return AuthContext(user_id=user.id, user_role=auth_state["role"])

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[AuthDependencies.get_auth_context] = override_auth_context
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


# ===== DOMAIN FIXTURES =====

@pytest.fixture
def supplier(db_session):
    contact = Contact(name="Atacado Central", type=["provider"], document="11222333000181")
    db_session.add(contact)
    db_session.commit()
    db_session.refresh(contact)
    return contact


@pytest.fixture
def customer(db_session):
    contact = Contact(name="Mercado Bom Preço", type=["client"], document="44555666000199")
    db_session.add(contact)
    db_session.commit()
    db_session.refresh(contact)
    return contact


@pytest.fixture
def payment_method(db_session):
    method = PaymentMethod(name="PIX")
    db_session.add(method)
    db_session.commit()
    db_session.refresh(method)
    return method


@pytest.fixture
def expense_category(db_session):
    category = Category(name="Fornecedores", type=CategoryType.EXPENSE)
    db_session.add(category)
    db_session.commit()
    db_session.refresh(category)
    return category


@pytest.fixture
def investors(db_session):
    first = Investor(name="Ana Souza", document="12345678900")
    second = Investor(name="Bruno Lima", document="98765432100")
    db_session.add_all([first, second])
    db_session.commit()
    db_session.refresh(first)
    db_session.refresh(second)
    return first, second


@pytest.fixture
def product(db_session):
    product = Product(
        name="Farinha de Trigo 1kg",
        sku="FAR-001",
        type=ProductType.MP,
        unit="KG",
        cost_price=Decimal("4.50"),
        sale_price=Decimal("7.90"),
        min_stock=Decimal("5"),
    )
    db_session.add(product)
    db_session.commit()
    db_session.refresh(product)
    return product


@pytest.fixture
def service_product(db_session):
    product = Product(
        name="Frete",
        sku="SRV-001",
        type=ProductType.SERVICO,
        unit="UN",
        sale_price=Decimal("25.00"),
    )
    db_session.add(product)
    db_session.commit()
    db_session.refresh(product)
    return product
