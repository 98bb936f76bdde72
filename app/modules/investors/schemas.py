from pydantic import BaseModel, Field, EmailStr
from typing import Optional, List
from uuid import UUID
from datetime import datetime, date

from app.common.money import Amount


class InvestorCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    document: Optional[str] = Field(None, max_length=50)
    phone: Optional[str] = Field(None, max_length=50)
    email: Optional[EmailStr] = None
    notes: Optional[str] = None


class InvestorUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=200)
    document: Optional[str] = Field(None, max_length=50)
    phone: Optional[str] = Field(None, max_length=50)
    email: Optional[EmailStr] = None
    notes: Optional[str] = None
    is_active: Optional[bool] = None


class InvestorOut(BaseModel):
    id: UUID
    name: str
    document: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    notes: Optional[str] = None
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True


class InvestorDeleteResult(BaseModel):
    deleted: bool
    deactivated: bool
    message: str


class FundedAccount(BaseModel):
    id: UUID
    description: str
    due_date: date
    total_amount: Amount
    supplier_name: Optional[str] = None


class InvestorPayment(BaseModel):
    id: UUID
    amount: Amount
    paid_at: Optional[datetime] = None
    created_at: datetime
    account: FundedAccount


class MonthlyTotal(BaseModel):
    month: str
    total: Amount
    count: int


class InvestorPaymentSummary(BaseModel):
    total_invested: Amount
    total_accounts: int
    by_month: List[MonthlyTotal]


class InvestorPaymentHistory(BaseModel):
    investor: InvestorOut
    payments: List[InvestorPayment]
    summary: InvestorPaymentSummary
