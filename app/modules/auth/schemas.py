from pydantic import BaseModel, EmailStr, Field
from typing import Optional
from uuid import UUID
from datetime import datetime
from enum import Enum


class UserRole(str, Enum):
    ADMIN = "ADMIN"
    FINANCEIRO = "FINANCEIRO"
    COMPRAS = "COMPRAS"
    VENDAS = "VENDAS"
    ESTOQUE = "ESTOQUE"


ALL_ROLES = [role.value for role in UserRole]


class UserLogin(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=1)


class UserCreate(BaseModel):
    email: EmailStr
    name: str = Field(..., min_length=2, max_length=150)
    password: str = Field(..., min_length=6, max_length=72)
    role: UserRole = UserRole.VENDAS


class UserOut(BaseModel):
    id: UUID
    email: str
    name: str
    role: UserRole
    is_active: bool
    last_login: Optional[datetime] = None

    class Config:
        from_attributes = True


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserOut


class AuthContext(BaseModel):
    user_id: UUID
    user_role: Optional[str] = None
