from sqlalchemy.orm import Session, joinedload
from sqlalchemy import or_
from fastapi import HTTPException
from uuid import UUID
from typing import Optional
import logging

from app.modules.products.models import Product, ProductType
from app.modules.products.schemas import ProductCreate, ProductUpdate
from app.common.exceptions import BadRequestError, NotFoundError, InternalError
from app.common.money import to_decimal

logger = logging.getLogger(__name__)


def product_to_response(product: Product) -> dict:
    """Flatten a product and its cached balance into the response shape"""
    return {
        "id": product.id,
        "name": product.name,
        "sku": product.sku,
        "description": product.description,
        "type": product.type.value,
        "unit": product.unit,
        "cost_price": to_decimal(product.cost_price),
        "sale_price": to_decimal(product.sale_price),
        "min_stock": to_decimal(product.min_stock),
        "is_active": product.is_active,
        "stock_quantity": to_decimal(product.balance.quantity) if product.balance else to_decimal(0),
        "created_at": product.created_at,
    }


def create_product(db: Session, data: ProductCreate):
    """Create a product. Stock only enters through the stock ledger."""
    existing_product = db.query(Product).filter(Product.sku == data.sku).first()
    if existing_product:
        raise BadRequestError(f"A product with SKU '{data.sku}' already exists", field="sku")

    product = Product(
        name=data.name,
        sku=data.sku,
        description=data.description,
        type=ProductType(data.type.value),
        unit=data.unit,
        cost_price=data.cost_price,
        sale_price=data.sale_price,
        min_stock=data.min_stock,
    )
    db.add(product)

    try:
        db.commit()
        db.refresh(product)
        logger.info(f"Product {product.sku} created")
        return product_to_response(product)
    except Exception as e:
        db.rollback()
        if "uq_product_sku" in str(e):
            raise BadRequestError(f"A product with SKU '{data.sku}' already exists", field="sku")
        raise InternalError(f"Internal server error: {str(e)}")


def get_all_products(
    db: Session,
    page: int = 1,
    limit: int = 50,
    search: Optional[str] = None,
    type: Optional[str] = None,
    is_active: Optional[bool] = None
):
    query = db.query(Product).options(joinedload(Product.balance))

    if search:
        query = query.filter(or_(Product.name.ilike(f"%{search}%"), Product.sku.ilike(f"%{search}%")))
    if type:
        query = query.filter(Product.type == ProductType(type))
    if is_active is not None:
        query = query.filter(Product.is_active == is_active)

    total = query.count()
    offset = (page - 1) * limit
    products = query.order_by(Product.name).offset(offset).limit(limit).all()

    return {
        "data": [product_to_response(p) for p in products],
        "total": total,
        "page": page,
        "limit": limit,
        "hasNext": (offset + limit) < total,
        "hasPrev": page > 1,
    }


def get_product(db: Session, product_id: UUID) -> Product:
    product = db.query(Product).filter(Product.id == product_id).first()
    if not product:
        raise NotFoundError("Product not found")
    return product


def get_product_by_id(db: Session, product_id: UUID):
    return product_to_response(get_product(db, product_id))


def update_product(db: Session, product_id: UUID, data: ProductUpdate):
    """Update descriptive fields; cost price and stock are ledger-owned."""
    product = get_product(db, product_id)
    for key, value in data.model_dump(exclude_unset=True).items():
        setattr(product, key, value)

    try:
        db.commit()
        db.refresh(product)
        return product_to_response(product)
    except HTTPException:
        raise
    except Exception as e:
        db.rollback()
        raise InternalError(f"Internal server error: {str(e)}")
