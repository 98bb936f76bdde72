"""
SQLAlchemy models for sales orders

Installments of an order live in finance.AccountsReceivable; delivery
drives stock OUT through the stock ledger. Returns bring stock back IN and
refund the customer as credit or as a deduction from open receivables.
"""

from app.database.database import Base
from sqlalchemy import Column, Date, ForeignKey, Numeric, Enum, Text, Uuid
from sqlalchemy.orm import relationship
from datetime import date
from uuid import uuid4
from app.common.mixins import TimestampMixin
import enum


class SalesOrderStatus(str, enum.Enum):
    DRAFT = "DRAFT"
    CONFIRMED = "CONFIRMED"
    DELIVERED = "DELIVERED"   # terminal
    CANCELED = "CANCELED"     # terminal


class SalesOrder(Base, TimestampMixin):
    __tablename__ = "sales_orders"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    customer_id = Column(Uuid(as_uuid=True), ForeignKey("contacts.id"), nullable=False, index=True)
    sale_date = Column(Date, nullable=False, default=date.today)
    status = Column(Enum(SalesOrderStatus), nullable=False, default=SalesOrderStatus.DRAFT, index=True)
    total = Column(Numeric(15, 2), nullable=False, default=0)
    notes = Column(Text, nullable=True)

    created_by = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=True)

    # Relationships
    customer = relationship("Contact")
    items = relationship("SalesOrderItem", back_populates="sales_order", cascade="all, delete-orphan")
    accounts_receivable = relationship("AccountsReceivable", back_populates="sales_order")

    @property
    def customer_name(self):
        return self.customer.name if self.customer else None


class SalesOrderItem(Base, TimestampMixin):
    __tablename__ = "sales_order_items"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    sales_order_id = Column(Uuid(as_uuid=True), ForeignKey("sales_orders.id"), nullable=False, index=True)
    product_id = Column(Uuid(as_uuid=True), ForeignKey("products.id"), nullable=False)
    quantity = Column(Numeric(15, 3), nullable=False)
    unit_price = Column(Numeric(15, 2), nullable=False)
    total = Column(Numeric(15, 2), nullable=False)

    # Relationships
    sales_order = relationship("SalesOrder", back_populates="items")
    product = relationship("Product")

    @property
    def product_name(self):
        return self.product.name if self.product else None

    @property
    def product_sku(self):
        return self.product.sku if self.product else None


class RefundType(str, enum.Enum):
    CREDIT = "CREDIT"                           # customer credit for the full value
    ACCOUNT_RECEIVABLE = "ACCOUNT_RECEIVABLE"   # deducted from the order's open receivables


class SalesReturnStatus(str, enum.Enum):
    PROCESSED = "PROCESSED"


class CustomerCreditStatus(str, enum.Enum):
    ACTIVE = "ACTIVE"
    USED = "USED"


class SalesReturn(Base, TimestampMixin):
    """Goods returned from a delivered order; physical items go back into stock."""
    __tablename__ = "sales_returns"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    sales_order_id = Column(Uuid(as_uuid=True), ForeignKey("sales_orders.id"), nullable=False, index=True)
    return_date = Column(Date, nullable=False, default=date.today)
    reason = Column(Text, nullable=False)
    total = Column(Numeric(15, 2), nullable=False, default=0)
    refund_type = Column(Enum(RefundType), nullable=False, default=RefundType.CREDIT)
    status = Column(Enum(SalesReturnStatus), nullable=False, default=SalesReturnStatus.PROCESSED)

    created_by = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=True)

    # Relationships
    sales_order = relationship("SalesOrder")
    items = relationship("SalesReturnItem", back_populates="sales_return", cascade="all, delete-orphan")
    credits = relationship("CustomerCredit", back_populates="sales_return")


class SalesReturnItem(Base, TimestampMixin):
    __tablename__ = "sales_return_items"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    sales_return_id = Column(Uuid(as_uuid=True), ForeignKey("sales_returns.id"), nullable=False, index=True)
    sales_item_id = Column(Uuid(as_uuid=True), ForeignKey("sales_order_items.id"), nullable=False, index=True)
    product_id = Column(Uuid(as_uuid=True), ForeignKey("products.id"), nullable=False)
    quantity = Column(Numeric(15, 3), nullable=False)
    unit_price = Column(Numeric(15, 2), nullable=False)
    total = Column(Numeric(15, 2), nullable=False)

    # Relationships
    sales_return = relationship("SalesReturn", back_populates="items")
    product = relationship("Product")

    @property
    def product_name(self):
        return self.product.name if self.product else None


class CustomerCredit(Base, TimestampMixin):
    __tablename__ = "customer_credits"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    customer_id = Column(Uuid(as_uuid=True), ForeignKey("contacts.id"), nullable=False, index=True)
    sales_return_id = Column(Uuid(as_uuid=True), ForeignKey("sales_returns.id"), nullable=True)
    amount = Column(Numeric(15, 2), nullable=False)
    used_amount = Column(Numeric(15, 2), nullable=False, default=0)
    description = Column(Text, nullable=True)
    status = Column(Enum(CustomerCreditStatus), nullable=False, default=CustomerCreditStatus.ACTIVE)

    # Relationships
    sales_return = relationship("SalesReturn", back_populates="credits")
