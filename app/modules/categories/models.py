from sqlalchemy import Column, String, Boolean, Enum, Uuid
from uuid import uuid4
import enum

from app.database.database import Base
from app.common.mixins import TimestampMixin


class CategoryType(str, enum.Enum):
    INCOME = "INCOME"
    EXPENSE = "EXPENSE"


class Category(Base, TimestampMixin):
    """Financial category used to classify payables, receivables and cash entries"""
    __tablename__ = "categories"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    name = Column(String(100), nullable=False, unique=True)
    type = Column(Enum(CategoryType), nullable=False)
    description = Column(String(255), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
