from pydantic import BaseModel, Field
from typing import Optional, List
from uuid import UUID
from datetime import datetime, date
from decimal import Decimal
from enum import Enum

from app.common.money import Amount, Quantity
from app.modules.finance.schemas import InstallmentIn, AccountReceivableOut


class SalesOrderStatus(str, Enum):
    DRAFT = "DRAFT"
    CONFIRMED = "CONFIRMED"
    DELIVERED = "DELIVERED"
    CANCELED = "CANCELED"


class SalesOrderItemIn(BaseModel):
    product_id: UUID
    quantity: Decimal = Field(..., gt=0, decimal_places=3)
    unit_price: Decimal = Field(..., ge=0, decimal_places=2)


class SalesOrderCreate(BaseModel):
    customer_id: UUID
    sale_date: Optional[date] = None
    items: List[SalesOrderItemIn] = Field(..., min_length=1)
    notes: Optional[str] = None
    installments: Optional[List[InstallmentIn]] = None
    category_id: Optional[UUID] = None


class SalesOrderItemOut(BaseModel):
    id: UUID
    product_id: UUID
    product_name: Optional[str] = None
    product_sku: Optional[str] = None
    quantity: Quantity
    unit_price: Amount
    total: Amount

    class Config:
        from_attributes = True


class SalesOrderOut(BaseModel):
    id: UUID
    customer_id: UUID
    customer_name: Optional[str] = None
    sale_date: date
    status: SalesOrderStatus
    total: Amount
    notes: Optional[str] = None
    items: List[SalesOrderItemOut] = []
    accounts_receivable: List[AccountReceivableOut] = []
    created_at: datetime

    class Config:
        from_attributes = True


class SalesOrderSummary(BaseModel):
    id: UUID
    customer_id: UUID
    customer_name: Optional[str] = None
    sale_date: date
    status: SalesOrderStatus
    total: Amount
    items_count: int
    created_at: datetime


class SalesOrderList(BaseModel):
    orders: List[SalesOrderSummary]
    total: int
    limit: int
    offset: int


# ===== RETURNS =====

class RefundType(str, Enum):
    CREDIT = "CREDIT"
    ACCOUNT_RECEIVABLE = "ACCOUNT_RECEIVABLE"


class SalesReturnStatus(str, Enum):
    PROCESSED = "PROCESSED"


class CustomerCreditStatus(str, Enum):
    ACTIVE = "ACTIVE"
    USED = "USED"


class SalesReturnItemIn(BaseModel):
    sales_item_id: UUID
    quantity: Decimal = Field(..., gt=0, decimal_places=3)


class SalesReturnCreate(BaseModel):
    items: List[SalesReturnItemIn] = Field(..., min_length=1)
    reason: str = Field(..., min_length=1)
    refund_type: RefundType = RefundType.CREDIT
    return_date: Optional[date] = None


class SalesReturnItemOut(BaseModel):
    id: UUID
    sales_item_id: UUID
    product_id: UUID
    product_name: Optional[str] = None
    quantity: Quantity
    unit_price: Amount
    total: Amount

    class Config:
        from_attributes = True


class CustomerCreditOut(BaseModel):
    id: UUID
    customer_id: UUID
    amount: Amount
    used_amount: Amount
    description: Optional[str] = None
    status: CustomerCreditStatus

    class Config:
        from_attributes = True


class SalesReturnOut(BaseModel):
    id: UUID
    sales_order_id: UUID
    return_date: date
    reason: str
    total: Amount
    refund_type: RefundType
    status: SalesReturnStatus
    items: List[SalesReturnItemOut] = []
    credits: List[CustomerCreditOut] = []
    created_at: datetime

    class Config:
        from_attributes = True


class SalesReturnList(BaseModel):
    returns: List[SalesReturnOut]
    total: int
