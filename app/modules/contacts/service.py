"""
Business services for contacts.

Besides the CRUD used by the router, ContactService exposes the
``require_provider`` / ``require_client`` checks that the purchasing,
sales and finance modules run before referencing a contact.
"""

from fastapi import HTTPException
from sqlalchemy.orm import Session
from sqlalchemy import func
from typing import Optional, Dict, Any
from uuid import UUID
import logging

from app.modules.contacts.models import Contact, ContactType
from app.modules.contacts.schemas import ContactCreate
from app.common.exceptions import BadRequestError, NotFoundError, InternalError

logger = logging.getLogger(__name__)


class ContactService:
    """Contact management"""

    def __init__(self, db: Session):
        self.db = db

    def create_contact(self, contact_data: ContactCreate) -> Contact:
        try:
            if contact_data.document:
                existing = self.db.query(Contact).filter(
                    Contact.document == contact_data.document
                ).first()
                if existing:
                    raise BadRequestError(
                        f"A contact with document {contact_data.document} already exists",
                        field="document"
                    )

            contact = Contact(
                name=contact_data.name,
                type=[t.value for t in contact_data.type],
                email=contact_data.email,
                phone=contact_data.phone,
                document=contact_data.document,
                notes=contact_data.notes,
            )
            self.db.add(contact)
            self.db.commit()
            self.db.refresh(contact)
            return contact

        except HTTPException:
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(f"Error creating contact: {e}")
            raise InternalError(f"Error creating contact: {str(e)}")

    def get_contacts(
        self,
        type: Optional[str] = None,
        search: Optional[str] = None,
        limit: int = 100,
        offset: int = 0
    ) -> Dict[str, Any]:
        """List active contacts; type filtering happens in Python since type is a JSON list."""
        query = self.db.query(Contact).filter(Contact.is_active == True)
        if search:
            query = query.filter(func.lower(Contact.name).contains(search.lower()))
        contacts = query.order_by(Contact.name).all()

        if type:
            contacts = [c for c in contacts if type in (c.type or [])]

        return {
            "contacts": contacts[offset:offset + limit],
            "total": len(contacts),
            "limit": limit,
            "offset": offset
        }

    def get_contact_by_id(self, contact_id: UUID) -> Contact:
        contact = self.db.query(Contact).filter(Contact.id == contact_id).first()
        if not contact:
            raise NotFoundError("Contact not found")
        return contact

    def require_provider(self, contact_id: UUID) -> Contact:
        """Contact must exist, be active and be a supplier."""
        contact = self.db.query(Contact).filter(Contact.id == contact_id).first()
        if not contact or not contact.is_active:
            raise NotFoundError("Supplier not found", field="supplier_id")
        if not contact.is_provider():
            raise BadRequestError(
                f"Contact '{contact.name}' is not registered as a supplier",
                field="supplier_id"
            )
        return contact

    def require_client(self, contact_id: UUID) -> Contact:
        """Contact must exist, be active and be a customer."""
        contact = self.db.query(Contact).filter(Contact.id == contact_id).first()
        if not contact or not contact.is_active:
            raise NotFoundError("Customer not found", field="customer_id")
        if not contact.is_client():
            raise BadRequestError(
                f"Contact '{contact.name}' is not registered as a customer",
                field="customer_id"
            )
        return contact
