"""
SQLAlchemy models for the finance module

- PaymentMethod: lookup of accepted payment methods
- AccountsPayable / PaymentSource: obligations to suppliers and the
  investors that funded each payment
- AccountsReceivable: amounts to collect from customers
- CashTransaction: the cash journal (IN/OUT) written by AP/AR events

Invariants kept by the services:
- AP: paid_at is set iff status is PAID; is_delivery_cost only on PAID rows
- AR: received_at / payment_method_id are set iff status is RECEIVED
- Cash journal rows are never updated, only removed by (origin, origin_id)
"""

from app.database.database import Base
from sqlalchemy import (
    Column, String, Boolean, DateTime, Date, ForeignKey, Numeric, Enum, Integer, Text, Uuid, Index
)
from sqlalchemy.orm import relationship
from uuid import uuid4
from app.common.mixins import TimestampMixin, ActiveMixin
import enum


# ===== ENUMS =====

class PayableStatus(str, enum.Enum):
    OPEN = "OPEN"
    PAID = "PAID"


class ReceivableStatus(str, enum.Enum):
    OPEN = "OPEN"
    RECEIVED = "RECEIVED"
    CANCELED = "CANCELED"


class CashTransactionType(str, enum.Enum):
    IN = "IN"
    OUT = "OUT"


class CashOrigin(str, enum.Enum):
    AP = "AP"          # payable payment
    AR = "AR"          # receivable receipt
    MANUAL = "MANUAL"  # entry typed in by a user


# ===== MODELS =====

class PaymentMethod(Base, TimestampMixin, ActiveMixin):
    __tablename__ = "payment_methods"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    name = Column(String(100), nullable=False, unique=True)


class AccountsPayable(Base, TimestampMixin):
    """
    Payable obligation (OPEN -> PAID -> OPEN via reversal).

    Created manually or as an installment of a purchase order.
    """
    __tablename__ = "accounts_payable"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    supplier_id = Column(Uuid(as_uuid=True), ForeignKey("contacts.id"), nullable=True, index=True)
    purchase_order_id = Column(Uuid(as_uuid=True), ForeignKey("purchase_orders.id"), nullable=True, index=True)
    category_id = Column(Uuid(as_uuid=True), ForeignKey("categories.id"), nullable=True)

    description = Column(String(255), nullable=False)
    due_date = Column(Date, nullable=False, index=True)
    amount = Column(Numeric(15, 2), nullable=False)
    status = Column(Enum(PayableStatus), nullable=False, default=PayableStatus.OPEN, index=True)

    paid_at = Column(DateTime(timezone=True), nullable=True)
    payment_method_id = Column(Uuid(as_uuid=True), ForeignKey("payment_methods.id"), nullable=True)
    is_delivery_cost = Column(Boolean, nullable=False, default=False)

    created_by = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=True)

    # Relationships
    supplier = relationship("Contact")
    category = relationship("Category")
    payment_method = relationship("PaymentMethod")
    purchase_order = relationship("PurchaseOrder", back_populates="accounts_payable")
    payment_sources = relationship(
        "PaymentSource",
        back_populates="account_payable",
        cascade="all, delete-orphan",
        order_by="PaymentSource.position"
    )

    @property
    def supplier_name(self):
        return self.supplier.name if self.supplier else None


class PaymentSource(Base, TimestampMixin):
    """Investor share of a payable payment; exists only while the payable is PAID"""
    __tablename__ = "payment_sources"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    account_payable_id = Column(
        Uuid(as_uuid=True), ForeignKey("accounts_payable.id", ondelete="CASCADE"), nullable=False, index=True
    )
    investor_id = Column(Uuid(as_uuid=True), ForeignKey("investors.id"), nullable=False, index=True)
    amount = Column(Numeric(15, 2), nullable=False)
    position = Column(Integer, nullable=False, default=0)

    # Relationships
    account_payable = relationship("AccountsPayable", back_populates="payment_sources")
    investor = relationship("Investor", back_populates="payment_sources")

    @property
    def investor_name(self):
        return self.investor.name if self.investor else None


class AccountsReceivable(Base, TimestampMixin):
    """
    Receivable (OPEN -> RECEIVED -> OPEN via reversal, OPEN -> CANCELED).

    ``amount`` is the outstanding value: partial receipts reduce it and
    journal only the received part.
    """
    __tablename__ = "accounts_receivable"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    customer_id = Column(Uuid(as_uuid=True), ForeignKey("contacts.id"), nullable=True, index=True)
    sales_order_id = Column(Uuid(as_uuid=True), ForeignKey("sales_orders.id"), nullable=True, index=True)
    category_id = Column(Uuid(as_uuid=True), ForeignKey("categories.id"), nullable=True)

    description = Column(String(255), nullable=False)
    due_date = Column(Date, nullable=False, index=True)
    amount = Column(Numeric(15, 2), nullable=False)
    status = Column(Enum(ReceivableStatus), nullable=False, default=ReceivableStatus.OPEN, index=True)

    received_at = Column(DateTime(timezone=True), nullable=True)
    payment_method_id = Column(Uuid(as_uuid=True), ForeignKey("payment_methods.id"), nullable=True)
    planned_payment_method_id = Column(Uuid(as_uuid=True), ForeignKey("payment_methods.id"), nullable=True)
    payment_days = Column(Integer, nullable=True)

    created_by = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=True)

    # Relationships
    customer = relationship("Contact")
    category = relationship("Category")
    payment_method = relationship("PaymentMethod", foreign_keys=[payment_method_id])
    planned_payment_method = relationship("PaymentMethod", foreign_keys=[planned_payment_method_id])
    sales_order = relationship("SalesOrder", back_populates="accounts_receivable")

    @property
    def customer_name(self):
        return self.customer.name if self.customer else None


class CashTransaction(Base, TimestampMixin):
    """Cash journal entry"""
    __tablename__ = "cash_transactions"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    type = Column(Enum(CashTransactionType), nullable=False, index=True)
    origin = Column(Enum(CashOrigin), nullable=False)
    origin_id = Column(Uuid(as_uuid=True), nullable=True)
    date = Column(DateTime(timezone=True), nullable=False, index=True)
    amount = Column(Numeric(15, 2), nullable=False)
    description = Column(Text, nullable=True)
    category_id = Column(Uuid(as_uuid=True), ForeignKey("categories.id"), nullable=True)
    created_by = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=True)

    # Relationships
    category = relationship("Category")

    __table_args__ = (
        Index("ix_cash_transactions_origin", "origin", "origin_id"),
    )
