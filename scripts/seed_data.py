"""
Seed script: populate a development database with the lookup data the
ledger needs before the first order.

What it creates:
- One active user per role (ADMIN, FINANCEIRO, COMPRAS, VENDAS, ESTOQUE).
- Payment methods: PIX, Dinheiro, Boleto, Cartão de Crédito.
- Income and expense categories.
- A supplier, a customer and a handful of products (MP, PA, SERVICO).

Stock is not seeded directly: receive a purchase order or post an
INVENTARIO adjustment to give products a balance.

Run inside the API container:
    docker compose exec api python scripts/seed_data.py --password Ledger!2026

Note: This is intended for development environments only.
"""

# Add project root to sys.path so `app.*` imports work even if CWD changes
import sys
from pathlib import Path
sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

import argparse
from decimal import Decimal

from app.database.database import SessionLocal, Base, engine
from app.modules.auth.models import User, UserRole
from app.modules.auth.utils import create_access_token
from app.modules.auth.schemas import UserCreate
from app.modules.auth.service import AuthService
from app.modules.categories.models import Category, CategoryType
from app.modules.contacts.models import Contact
from app.modules.finance.models import PaymentMethod
from app.modules.products.models import Product, ProductType

# Importing the remaining models registers their tables on Base.metadata
import app.modules.investors.models  # noqa: F401
import app.modules.purchases.models  # noqa: F401
import app.modules.sales.models  # noqa: F401


PAYMENT_METHODS = ["PIX", "Dinheiro", "Boleto", "Cartão de Crédito"]

CATEGORIES = [
    ("Vendas de Produtos", CategoryType.INCOME),
    ("Serviços Prestados", CategoryType.INCOME),
    ("Fornecedores", CategoryType.EXPENSE),
    ("Frete e Entregas", CategoryType.EXPENSE),
    ("Despesas Administrativas", CategoryType.EXPENSE),
]

PRODUCTS = [
    ("Farinha de Trigo 1kg", "FAR-001", ProductType.MP, "KG", "4.50", "0", "20"),
    ("Açúcar Refinado 1kg", "ACU-001", ProductType.MP, "KG", "3.80", "0", "20"),
    ("Pão de Forma 500g", "PAO-500", ProductType.PA, "UN", "5.20", "9.90", "10"),
    ("Bolo de Cenoura", "BOL-001", ProductType.PA, "UN", "12.00", "24.00", "5"),
    ("Entrega Local", "SRV-ENT", ProductType.SERVICO, "UN", "0", "15.00", "0"),
]


def get_or_create_user(db, role: UserRole, password: str) -> User:
    email = f"{role.value.lower()}@ledger-erp.com"
    user = db.query(User).filter(User.email == email).first()
    if user:
        return user
    return AuthService(db).create_user(UserCreate(
        email=email,
        name=role.value.title(),
        password=password,
        role=role.value,
    ))


def create_payment_methods(db):
    for name in PAYMENT_METHODS:
        if not db.query(PaymentMethod).filter(PaymentMethod.name == name).first():
            db.add(PaymentMethod(name=name))
    db.commit()


def create_categories(db):
    for name, category_type in CATEGORIES:
        if not db.query(Category).filter(Category.name == name).first():
            db.add(Category(name=name, type=category_type))
    db.commit()


def create_contacts(db):
    contacts = [
        Contact(name="Moinho São Jorge", type=["provider"], document="11222333000181"),
        Contact(name="Padaria Central", type=["client"], document="44555666000199"),
        Contact(name="Empório Vila Nova", type=["client", "provider"], document="77888999000155"),
    ]
    for contact in contacts:
        if not db.query(Contact).filter(Contact.document == contact.document).first():
            db.add(contact)
    db.commit()


def create_products(db):
    created = 0
    for name, sku, product_type, unit, cost, price, min_stock in PRODUCTS:
        if db.query(Product).filter(Product.sku == sku).first():
            continue
        db.add(Product(
            name=name,
            sku=sku,
            type=product_type,
            unit=unit,
            cost_price=Decimal(cost),
            sale_price=Decimal(price),
            min_stock=Decimal(min_stock),
        ))
        created += 1
    db.commit()
    return created


def main():
    parser = argparse.ArgumentParser(description="Seed ledger development data")
    parser.add_argument("--password", default="Ledger!2026", help="Password for every seeded user")
    parser.add_argument("--create-tables", action="store_true", help="Run create_all before seeding")
    args = parser.parse_args()

    if args.create_tables:
        Base.metadata.create_all(bind=engine)

    db = SessionLocal()
    try:
        users = [get_or_create_user(db, role, args.password) for role in UserRole]
        create_payment_methods(db)
        create_categories(db)
        create_contacts(db)
        created = create_products(db)
        print(f"Products created: {created}")

        print("\nSeed completed.")
        print(f"Password for every user: {args.password}")
        for user in users:
            token = create_access_token({"sub": str(user.id), "email": user.email, "role": user.role.value})
            print(f"  {user.role.value:<11} {user.email}")
            print(f"    Authorization: Bearer {token}")
    finally:
        db.close()


if __name__ == "__main__":
    main()
