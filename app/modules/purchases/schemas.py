from pydantic import BaseModel, Field
from typing import Optional, List
from uuid import UUID
from datetime import datetime, date
from decimal import Decimal
from enum import Enum

from app.common.money import Amount, Quantity
from app.modules.finance.schemas import InstallmentIn, AccountPayableOut


class PurchaseOrderStatus(str, Enum):
    DRAFT = "DRAFT"
    SENT = "SENT"
    RECEIVED = "RECEIVED"
    CANCELED = "CANCELED"


class PurchaseOrderItemIn(BaseModel):
    product_id: UUID
    quantity: Decimal = Field(..., gt=0, decimal_places=3)
    unit_price: Decimal = Field(..., ge=0, decimal_places=2)


class PurchaseOrderCreate(BaseModel):
    supplier_id: UUID
    issue_date: Optional[date] = None
    items: List[PurchaseOrderItemIn] = Field(..., min_length=1)
    notes: Optional[str] = None
    installments: Optional[List[InstallmentIn]] = None
    category_id: Optional[UUID] = None


class PurchaseOrderItemOut(BaseModel):
    id: UUID
    product_id: UUID
    product_name: Optional[str] = None
    product_sku: Optional[str] = None
    quantity: Quantity
    unit_price: Amount
    total: Amount

    class Config:
        from_attributes = True


class PurchaseReceiptOut(BaseModel):
    id: UUID
    receipt_date: date
    invoice_number: Optional[str] = None
    total: Amount
    created_at: datetime

    class Config:
        from_attributes = True


class PurchaseOrderOut(BaseModel):
    id: UUID
    supplier_id: UUID
    supplier_name: Optional[str] = None
    issue_date: date
    status: PurchaseOrderStatus
    total: Amount
    notes: Optional[str] = None
    items: List[PurchaseOrderItemOut] = []
    receipts: List[PurchaseReceiptOut] = []
    accounts_payable: List[AccountPayableOut] = []
    created_at: datetime

    class Config:
        from_attributes = True


class PurchaseOrderSummary(BaseModel):
    id: UUID
    supplier_id: UUID
    supplier_name: Optional[str] = None
    issue_date: date
    status: PurchaseOrderStatus
    total: Amount
    items_count: int
    created_at: datetime


class PurchaseOrderList(BaseModel):
    orders: List[PurchaseOrderSummary]
    total: int
    limit: int
    offset: int
