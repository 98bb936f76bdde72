"""
Pydantic schemas for the finance module

Request bodies accept numbers for money; responses render every amount as
a plain JSON number (see app.common.money.Amount).
"""

from pydantic import BaseModel, Field
from typing import Optional, List, Literal, Union
from uuid import UUID
from datetime import datetime, date
from decimal import Decimal
from enum import Enum

from app.common.exceptions import InvalidInputError
from app.common.money import Amount, Quantity


# ===== ENUMS =====

class PayableStatus(str, Enum):
    OPEN = "OPEN"
    PAID = "PAID"


class ReceivableStatus(str, Enum):
    OPEN = "OPEN"
    RECEIVED = "RECEIVED"
    CANCELED = "CANCELED"


class CashTransactionType(str, Enum):
    IN = "IN"
    OUT = "OUT"


class CashOrigin(str, Enum):
    AP = "AP"
    AR = "AR"
    MANUAL = "MANUAL"


# ===== PAYMENT METHODS =====

class PaymentMethodCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)


class PaymentMethodOut(BaseModel):
    id: UUID
    name: str
    is_active: bool

    class Config:
        from_attributes = True


# ===== PAYMENT SPEC =====

class PaymentSourceIn(BaseModel):
    investor_id: UUID
    amount: Decimal = Field(..., gt=0, decimal_places=2)


class SingleMethod(BaseModel):
    """Whole payment through one payment method"""
    kind: Literal["single"] = "single"
    payment_method_id: UUID


class SplitSources(BaseModel):
    """Payment funded by one or more investors; the method is optional"""
    kind: Literal["split"] = "split"
    sources: List[PaymentSourceIn] = Field(..., min_length=1)
    payment_method_id: Optional[UUID] = None


class PayAccountRequest(BaseModel):
    paid_at: Optional[datetime] = None
    payment_method_id: Optional[UUID] = None
    payment_sources: Optional[List[PaymentSourceIn]] = None

    def to_payment_spec(self) -> Union[SingleMethod, SplitSources]:
        """Resolve the optional fields into exactly one payment variant."""
        if self.payment_sources:
            return SplitSources(sources=self.payment_sources, payment_method_id=self.payment_method_id)
        if self.payment_method_id:
            return SingleMethod(payment_method_id=self.payment_method_id)
        raise InvalidInputError(
            "Either payment_method_id or payment_sources is required",
            field="payment_method_id"
        )


# ===== ACCOUNTS PAYABLE =====

class AccountPayableCreate(BaseModel):
    supplier_id: Optional[UUID] = None
    description: str = Field(..., min_length=1, max_length=255)
    category_id: Optional[UUID] = None
    due_date: date
    amount: Decimal = Field(..., gt=0, decimal_places=2)


class PaymentSourceOut(BaseModel):
    id: UUID
    investor_id: UUID
    investor_name: Optional[str] = None
    amount: Amount

    class Config:
        from_attributes = True


class AccountPayableOut(BaseModel):
    id: UUID
    supplier_id: Optional[UUID] = None
    supplier_name: Optional[str] = None
    purchase_order_id: Optional[UUID] = None
    description: str
    category_id: Optional[UUID] = None
    due_date: date
    amount: Amount
    status: PayableStatus
    paid_at: Optional[datetime] = None
    payment_method_id: Optional[UUID] = None
    is_delivery_cost: bool
    payment_sources: List[PaymentSourceOut] = []
    created_at: datetime

    class Config:
        from_attributes = True


class AccountPayableList(BaseModel):
    accounts: List[AccountPayableOut]
    total: int
    limit: int
    offset: int


class DeliveryCostBulkRequest(BaseModel):
    ids: List[UUID] = Field(..., min_length=1)
    is_delivery_cost: bool


class DeliveryCostBulkResult(BaseModel):
    updated_count: int
    is_delivery_cost: bool


# ===== ACCOUNTS RECEIVABLE =====

class AccountReceivableCreate(BaseModel):
    customer_id: Optional[UUID] = None
    sales_order_id: Optional[UUID] = None
    description: str = Field(..., min_length=1, max_length=255)
    category_id: Optional[UUID] = None
    due_date: date
    amount: Decimal = Field(..., gt=0, decimal_places=2)
    payment_days: Optional[int] = Field(None, ge=0)


class AccountReceivableUpdate(BaseModel):
    description: Optional[str] = Field(None, min_length=1, max_length=255)
    category_id: Optional[UUID] = None
    due_date: Optional[date] = None
    amount: Optional[Decimal] = Field(None, gt=0, decimal_places=2)
    payment_days: Optional[int] = Field(None, ge=0)


class ReceiveAccountRequest(BaseModel):
    received_at: Optional[datetime] = None
    payment_method_id: Optional[UUID] = None
    received_amount: Optional[Decimal] = Field(None, gt=0, decimal_places=2)


class AccountReceivableOut(BaseModel):
    id: UUID
    customer_id: Optional[UUID] = None
    customer_name: Optional[str] = None
    sales_order_id: Optional[UUID] = None
    description: str
    category_id: Optional[UUID] = None
    due_date: date
    amount: Amount
    status: ReceivableStatus
    received_at: Optional[datetime] = None
    payment_method_id: Optional[UUID] = None
    planned_payment_method_id: Optional[UUID] = None
    payment_days: Optional[int] = None
    created_at: datetime

    class Config:
        from_attributes = True


class AccountReceivableReceiptOut(AccountReceivableOut):
    received_amount: Amount
    remaining_amount: Amount
    is_partial: bool


class AccountReceivableReversalOut(AccountReceivableOut):
    restored_amount: Amount
    transactions_removed: int


class AccountReceivableList(BaseModel):
    accounts: List[AccountReceivableOut]
    total: int
    limit: int
    offset: int


# ===== INSTALLMENTS =====

class InstallmentIn(BaseModel):
    due_date: date
    amount: Decimal = Field(..., gt=0, decimal_places=2)
    description: Optional[str] = Field(None, max_length=255)
    payment_method_id: Optional[UUID] = None


class InstallmentsRequest(BaseModel):
    installments: List[InstallmentIn] = Field(..., min_length=1)
    category_id: Optional[UUID] = None


# ===== CASH JOURNAL =====

class CashTransactionCreate(BaseModel):
    type: CashTransactionType
    amount: Decimal = Field(..., gt=0, decimal_places=2)
    date: Optional[datetime] = None
    description: str = Field(..., min_length=1)
    category_id: Optional[UUID] = None


class CashTransactionOut(BaseModel):
    id: UUID
    type: CashTransactionType
    origin: CashOrigin
    origin_id: Optional[UUID] = None
    date: datetime
    amount: Amount
    description: Optional[str] = None
    category_id: Optional[UUID] = None
    created_by: Optional[UUID] = None

    class Config:
        from_attributes = True


class CashTransactionList(BaseModel):
    transactions: List[CashTransactionOut]
    total: int
    limit: int
    offset: int


class CashflowTotals(BaseModel):
    total_in: Amount
    total_out: Amount
    balance: Amount


class CashflowOut(BaseModel):
    transactions: List[CashTransactionOut]
    summary: CashflowTotals


# ===== SUMMARY =====

class PayablesSummary(BaseModel):
    total_open: Amount
    count_open: int
    total_paid: Amount
    overdue: Amount
    upcoming: Amount


class ReceivablesSummary(BaseModel):
    total_open: Amount
    count_open: int
    total_received: Amount
    overdue: Amount
    upcoming: Amount


class FinanceSummaryOut(BaseModel):
    accounts_payable: PayablesSummary
    accounts_receivable: ReceivablesSummary
    cash: CashflowTotals



# ===== VALIDATION =====

class CashJournalCheck(CashflowTotals):
    transactions: int


class CashIssue(BaseModel):
    transaction_id: UUID
    origin: CashOrigin
    origin_id: Optional[UUID] = None
    amount: Amount
    kind: str
    message: str


class OverReceivedOrder(BaseModel):
    sales_order_id: UUID
    order_total: Amount
    received_total: Amount


class ReceivableOnUndeliveredOrder(BaseModel):
    account_id: UUID
    sales_order_id: UUID
    order_status: str
    status: ReceivableStatus
    amount: Amount


class DeliveredOrderWithoutReceivable(BaseModel):
    sales_order_id: UUID
    total: Amount
    sale_date: date


class CanceledSaleMovement(BaseModel):
    movement_id: UUID
    sales_order_id: UUID
    product_id: UUID
    quantity: Quantity


class DuplicateSaleMovement(BaseModel):
    sales_order_id: UUID
    product_id: UUID
    movements: int
    expected: int


class FinanceValidationOut(BaseModel):
    cash: CashJournalCheck
    cash_issues: List[CashIssue]
    over_received_orders: List[OverReceivedOrder]
    receivables_on_undelivered_orders: List[ReceivableOnUndeliveredOrder]
    delivered_orders_without_receivable: List[DeliveredOrderWithoutReceivable]
    canceled_sale_movements: List[CanceledSaleMovement]
    duplicate_sale_movements: List[DuplicateSaleMovement]
    issue_count: int
    is_consistent: bool
