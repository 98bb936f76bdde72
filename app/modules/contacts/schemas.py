from pydantic import BaseModel, Field, EmailStr, field_validator
from typing import Optional, List
from uuid import UUID
from datetime import datetime
from enum import Enum


class ContactType(str, Enum):
    CLIENT = "client"
    PROVIDER = "provider"


class ContactCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    type: List[ContactType] = Field(..., min_length=1)
    email: Optional[EmailStr] = None
    phone: Optional[str] = Field(None, max_length=50)
    document: Optional[str] = Field(None, max_length=50)
    notes: Optional[str] = None

    @field_validator("type")
    @classmethod
    def dedupe_types(cls, v):
        # keep first occurrence order
        seen = []
        for item in v:
            if item not in seen:
                seen.append(item)
        return seen


class ContactOut(BaseModel):
    id: UUID
    name: str
    type: List[str]
    email: Optional[str] = None
    phone: Optional[str] = None
    document: Optional[str] = None
    notes: Optional[str] = None
    is_active: bool
    created_at: datetime

    class Config:
        from_attributes = True


class ContactList(BaseModel):
    contacts: List[ContactOut]
    total: int
    limit: int
    offset: int
