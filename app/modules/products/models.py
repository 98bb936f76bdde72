from app.database.database import Base
from sqlalchemy import Column, String, Boolean, ForeignKey, Numeric, Enum, Text, Uuid, UniqueConstraint
from sqlalchemy.orm import relationship
from uuid import uuid4
from app.common.mixins import TimestampMixin
import enum


class ProductType(str, enum.Enum):
    MP = "MP"            # raw material
    PA = "PA"            # finished good
    SERVICO = "SERVICO"  # service, never moves stock


class MovementType(str, enum.Enum):
    IN = "IN"
    OUT = "OUT"
    ADJUST = "ADJUST"  # signed quantity


class MovementReference(str, enum.Enum):
    PURCHASE = "PURCHASE"
    SALE = "SALE"
    MANUAL = "MANUAL"
    RETURN = "RETURN"


class AdjustmentType(str, enum.Enum):
    AVARIA = "AVARIA"          # damage, photo required
    INVENTARIO = "INVENTARIO"  # physical count correction


class Product(Base, TimestampMixin):
    __tablename__ = "products"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    name = Column(String(150), nullable=False)
    sku = Column(String(50), nullable=False)
    description = Column(String(255), nullable=True)
    type = Column(Enum(ProductType), nullable=False, default=ProductType.PA)
    unit = Column(String(10), nullable=False, default="UN")
    cost_price = Column(Numeric(15, 2), nullable=False, default=0)  # last purchase price
    sale_price = Column(Numeric(15, 2), nullable=False, default=0)
    min_stock = Column(Numeric(15, 3), nullable=False, default=0)
    is_active = Column(Boolean, default=True, nullable=False)

    # Relationships
    balance = relationship("StockBalance", back_populates="product", uselist=False)
    movements = relationship("StockMovement", back_populates="product")
    adjustments = relationship("StockAdjustment", back_populates="product")

    __table_args__ = (
        UniqueConstraint("sku", name="uq_product_sku"),
    )

    def moves_stock(self) -> bool:
        return self.type != ProductType.SERVICO


class StockBalance(Base, TimestampMixin):
    """Current quantity cache per product, derived from StockMovement"""
    __tablename__ = "stock_balances"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    product_id = Column(Uuid(as_uuid=True), ForeignKey("products.id"), nullable=False)
    quantity = Column(Numeric(15, 3), nullable=False, default=0)

    # Relationships
    product = relationship("Product", back_populates="balance")

    __table_args__ = (
        UniqueConstraint("product_id", name="uq_stock_balance_product"),
    )


class StockMovement(Base, TimestampMixin):
    __tablename__ = "stock_movements"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    product_id = Column(Uuid(as_uuid=True), ForeignKey("products.id"), nullable=False, index=True)

    type = Column(Enum(MovementType), nullable=False)
    quantity = Column(Numeric(15, 3), nullable=False)  # unsigned for IN/OUT, signed for ADJUST
    reference_type = Column(Enum(MovementReference), nullable=False)
    reference_id = Column(Uuid(as_uuid=True), nullable=True, index=True)
    unit_cost = Column(Numeric(15, 2), nullable=True)
    note = Column(String(255), nullable=True)

    created_by = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=True)

    # Relationships
    product = relationship("Product", back_populates="movements")
    created_by_user = relationship("User")


class StockAdjustment(Base, TimestampMixin):
    """Manual adjustment; always paired with one ADJUST movement (reference_id = adjustment id)"""
    __tablename__ = "stock_adjustments"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    product_id = Column(Uuid(as_uuid=True), ForeignKey("products.id"), nullable=False, index=True)
    type = Column(Enum(AdjustmentType), nullable=False)
    quantity = Column(Numeric(15, 3), nullable=False)
    reason = Column(Text, nullable=False)
    photo_base64 = Column(Text, nullable=True)

    created_by = Column(Uuid(as_uuid=True), ForeignKey("users.id"), nullable=True)

    # Relationships
    product = relationship("Product", back_populates="adjustments")
    created_by_user = relationship("User")
