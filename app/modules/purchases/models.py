"""
SQLAlchemy models for purchasing

- PurchaseOrder / PurchaseOrderItem: what is bought from a supplier
- PurchaseReceipt: record of the goods arriving (drives stock IN)

Installments of an order live in finance.AccountsPayable.
"""

from app.database.database import Base
from sqlalchemy import Column, String, Date, ForeignKey, Numeric, Enum, Text, Uuid
from sqlalchemy.orm import relationship
from datetime import date
from uuid import uuid4
from app.common.mixins import TimestampMixin
import enum


class PurchaseOrderStatus(str, enum.Enum):
    DRAFT = "DRAFT"
    SENT = "SENT"
    RECEIVED = "RECEIVED"   # goods in stock, terminal
    CANCELED = "CANCELED"   # terminal


class PurchaseOrder(Base, TimestampMixin):
    __tablename__ = "purchase_orders"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    supplier_id = Column(Uuid(as_uuid=True), ForeignKey("contacts.id"), nullable=False, index=True)
    issue_date = Column(Date, nullable=False, default=date.today)
    status = Column(Enum(PurchaseOrderStatus), nullable=False, default=PurchaseOrderStatus.DRAFT, index=True)
    total = Column(Numeric(15, 2), nullable=False, default=0)
    notes = Column(Text, nullable=True)

    created_by = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=True)

    # Relationships
    supplier = relationship("Contact")
    items = relationship("PurchaseOrderItem", back_populates="purchase_order", cascade="all, delete-orphan")
    receipts = relationship("PurchaseReceipt", back_populates="purchase_order", cascade="all, delete-orphan")
    accounts_payable = relationship("AccountsPayable", back_populates="purchase_order")

    @property
    def supplier_name(self):
        return self.supplier.name if self.supplier else None


class PurchaseOrderItem(Base, TimestampMixin):
    __tablename__ = "purchase_order_items"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    purchase_order_id = Column(Uuid(as_uuid=True), ForeignKey("purchase_orders.id"), nullable=False, index=True)
    product_id = Column(Uuid(as_uuid=True), ForeignKey("products.id"), nullable=False)
    quantity = Column(Numeric(15, 3), nullable=False)
    unit_price = Column(Numeric(15, 2), nullable=False)
    total = Column(Numeric(15, 2), nullable=False)

    # Relationships
    purchase_order = relationship("PurchaseOrder", back_populates="items")
    product = relationship("Product")

    @property
    def product_name(self):
        return self.product.name if self.product else None

    @property
    def product_sku(self):
        return self.product.sku if self.product else None


class PurchaseReceipt(Base, TimestampMixin):
    __tablename__ = "purchase_receipts"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    purchase_order_id = Column(Uuid(as_uuid=True), ForeignKey("purchase_orders.id"), nullable=False, index=True)
    receipt_date = Column(Date, nullable=False, default=date.today)
    invoice_number = Column(String(50), nullable=True)
    total = Column(Numeric(15, 2), nullable=False)

    created_by = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=True)

    # Relationships
    purchase_order = relationship("PurchaseOrder", back_populates="receipts")
