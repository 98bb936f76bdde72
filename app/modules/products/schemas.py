from pydantic import BaseModel, Field
from uuid import UUID
from typing import Optional, List
from datetime import datetime
from decimal import Decimal
from enum import Enum

from app.common.money import Amount, Quantity


class ProductType(str, Enum):
    MP = "MP"
    PA = "PA"
    SERVICO = "SERVICO"


# Standard pagination envelope
class PaginatedResponse(BaseModel):
    """Standard paginated response"""
    total: int
    page: int
    limit: int
    hasNext: bool
    hasPrev: bool


class ProductCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=150)
    sku: str = Field(..., min_length=1, max_length=50)
    description: Optional[str] = Field(None, max_length=255)
    type: ProductType = ProductType.PA
    unit: str = Field("UN", min_length=1, max_length=10)
    cost_price: Decimal = Field(Decimal("0"), ge=0)
    sale_price: Decimal = Field(Decimal("0"), ge=0)
    min_stock: Decimal = Field(Decimal("0"), ge=0)


class ProductUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=150)
    description: Optional[str] = Field(None, max_length=255)
    unit: Optional[str] = Field(None, min_length=1, max_length=10)
    sale_price: Optional[Decimal] = Field(None, ge=0)
    min_stock: Optional[Decimal] = Field(None, ge=0)
    is_active: Optional[bool] = None


class ProductOut(BaseModel):
    id: UUID
    name: str
    sku: str
    description: Optional[str] = None
    type: ProductType
    unit: str
    cost_price: Amount
    sale_price: Amount
    min_stock: Quantity
    is_active: bool
    stock_quantity: Quantity = Decimal("0")
    created_at: datetime

    class Config:
        from_attributes = True


class PaginatedProductResponse(PaginatedResponse):
    data: List[ProductOut]
