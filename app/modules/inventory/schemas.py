from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from uuid import UUID
from datetime import datetime, date
from decimal import Decimal
from enum import Enum

from app.common.money import Amount, Quantity


class MovementType(str, Enum):
    IN = "IN"
    OUT = "OUT"
    ADJUST = "ADJUST"


class MovementReference(str, Enum):
    PURCHASE = "PURCHASE"
    SALE = "SALE"
    MANUAL = "MANUAL"
    RETURN = "RETURN"


class AdjustmentType(str, Enum):
    AVARIA = "AVARIA"
    INVENTARIO = "INVENTARIO"


# ===== BALANCES =====

class StockBalanceOut(BaseModel):
    product_id: UUID
    product_name: str
    product_sku: str
    product_type: str
    unit: str
    quantity: Quantity
    min_stock: Quantity
    is_low_stock: bool


class StockBalanceList(BaseModel):
    balances: List[StockBalanceOut]
    total: int


class ReconcileResult(BaseModel):
    product_id: UUID
    quantity: Quantity
    previous_quantity: Quantity
    unit: str


# ===== MOVEMENTS =====

class StockMovementOut(BaseModel):
    id: UUID
    product_id: UUID
    product_name: Optional[str] = None
    type: MovementType
    quantity: Quantity
    reference_type: MovementReference
    reference_id: Optional[UUID] = None
    unit_cost: Optional[Amount] = None
    note: Optional[str] = None
    created_by: Optional[UUID] = None
    created_at: datetime


class StockMovementList(BaseModel):
    movements: List[StockMovementOut]
    total: int
    limit: int
    offset: int


# ===== ADJUSTMENTS =====

class StockAdjustmentCreate(BaseModel):
    """
    Signed quantity: negative removes stock, positive adds it.
    AVARIA (damage) requires a photo.
    """
    type: AdjustmentType
    quantity: Decimal = Field(..., decimal_places=3)
    reason: str = ""
    photo_base64: Optional[str] = None

    @field_validator("reason", mode="before")
    @classmethod
    def strip_reason(cls, v):
        return v.strip() if isinstance(v, str) else v


class StockAdjustmentOut(BaseModel):
    id: UUID
    product_id: UUID
    type: AdjustmentType
    quantity: Quantity
    reason: str
    has_photo: bool
    created_by: Optional[UUID] = None
    created_at: datetime


class StockAdjustmentResult(StockAdjustmentOut):
    movement_id: UUID
    balance: Quantity


# ===== ORDER FLOWS =====

class PurchaseReceiveRequest(BaseModel):
    receipt_date: Optional[date] = None
    invoice_number: Optional[str] = Field(None, max_length=50)
