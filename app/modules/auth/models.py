from sqlalchemy import Column, String, Boolean, DateTime, Enum, Uuid
from uuid import uuid4
import enum

from app.database.database import Base
from app.common.mixins import TimestampMixin


class UserRole(str, enum.Enum):
    """Business roles; each ledger operation requires one of a subset."""
    ADMIN = "ADMIN"
    FINANCEIRO = "FINANCEIRO"
    COMPRAS = "COMPRAS"
    VENDAS = "VENDAS"
    ESTOQUE = "ESTOQUE"


class User(Base, TimestampMixin):
    __tablename__ = "users"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid4)
    email = Column(String(150), unique=True, nullable=False)
    name = Column(String(150), nullable=False)
    password = Column(String, nullable=False)
    role = Column(Enum(UserRole), nullable=False, default=UserRole.VENDAS)
    is_active = Column(Boolean, default=True, nullable=False)
    last_login = Column(DateTime(timezone=True), nullable=True)
