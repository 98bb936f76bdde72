"""
SQLAlchemy models for contacts (customers and suppliers)
"""

from app.database.database import Base
from sqlalchemy import Column, String, Boolean, Text, JSON, Uuid
from uuid import uuid4
from app.common.mixins import TimestampMixin
import enum


class ContactType(str, enum.Enum):
    CLIENT = "client"      # customer on sales orders / receivables
    PROVIDER = "provider"  # supplier on purchase orders / payables


class Contact(Base, TimestampMixin):
    """
    Unified contact.

    - Customers: type contains 'client'
    - Suppliers: type contains 'provider'
    - Both: ['client', 'provider']
    """
    __tablename__ = "contacts"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    name = Column(String(200), nullable=False, index=True)
    type = Column(JSON, nullable=False)
    email = Column(String(100), nullable=True)
    phone = Column(String(50), nullable=True)
    document = Column(String(50), nullable=True, index=True)
    notes = Column(Text, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)

    def is_client(self) -> bool:
        return ContactType.CLIENT.value in (self.type or [])

    def is_provider(self) -> bool:
        return ContactType.PROVIDER.value in (self.type or [])
