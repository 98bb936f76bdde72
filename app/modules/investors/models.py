from sqlalchemy import Column, String, Boolean, Text, Uuid
from sqlalchemy.orm import relationship
from uuid import uuid4

from app.database.database import Base
from app.common.mixins import TimestampMixin, ActiveMixin


class Investor(Base, TimestampMixin, ActiveMixin):
    """
    Funding party that can cover all or part of a payable.

    Once referenced by a PaymentSource an investor is only ever deactivated,
    never deleted.
    """
    __tablename__ = "investors"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    name = Column(String(200), nullable=False, index=True)
    document = Column(String(50), nullable=True)
    phone = Column(String(50), nullable=True)
    email = Column(String(100), nullable=True)
    notes = Column(Text, nullable=True)

    # Relationships
    payment_sources = relationship("PaymentSource", back_populates="investor")
