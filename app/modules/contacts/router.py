"""
REST endpoints for contacts
"""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Optional
from uuid import UUID

from app.core.config import settings
from app.dependencies.dbDependecies import get_db
from app.modules.auth.dependencies import AuthDependencies
from app.modules.auth.schemas import ALL_ROLES
from app.modules.contacts.service import ContactService
from app.modules.contacts.schemas import ContactCreate, ContactOut, ContactList, ContactType

contacts_router = APIRouter(tags=["Contacts"])


@contacts_router.post("/", response_model=ContactOut, status_code=status.HTTP_201_CREATED)
def create_contact(
    contact_data: ContactCreate,
    db: Session = Depends(get_db),
    auth_context = Depends(AuthDependencies.require_role(["ADMIN", "COMPRAS", "VENDAS", "FINANCEIRO"]))
):
    """Create a customer and/or supplier."""
    return ContactService(db).create_contact(contact_data)


@contacts_router.get("/", response_model=ContactList)
def list_contacts(
    type: Optional[ContactType] = Query(None, description="client or provider"),
    search: Optional[str] = Query(None, max_length=100),
    limit: int = Query(settings.DEFAULT_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    auth_context = Depends(AuthDependencies.require_role(ALL_ROLES))
):
    return ContactService(db).get_contacts(type.value if type else None, search, limit, offset)


@contacts_router.get("/{contact_id}", response_model=ContactOut)
def get_contact(
    contact_id: UUID,
    db: Session = Depends(get_db),
    auth_context = Depends(AuthDependencies.require_role(ALL_ROLES))
):
    return ContactService(db).get_contact_by_id(contact_id)
