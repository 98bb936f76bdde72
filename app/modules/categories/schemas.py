from pydantic import BaseModel, Field
from typing import Optional, List
from uuid import UUID
from datetime import datetime
from enum import Enum


class CategoryType(str, Enum):
    INCOME = "INCOME"
    EXPENSE = "EXPENSE"


class CategoryCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    type: CategoryType
    description: Optional[str] = Field(None, max_length=255)


class CategoryOut(BaseModel):
    id: UUID
    name: str
    type: CategoryType
    description: Optional[str] = None
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True


class CategoryList(BaseModel):
    categories: List[CategoryOut]
    total: int
    limit: int
    offset: int
