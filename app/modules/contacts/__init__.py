"""
Contacts module

Single Contact entity for customers and suppliers:
- type is a list containing 'client', 'provider' or both
- suppliers are referenced by payables and purchase orders
- customers are referenced by receivables and sales orders
"""

from .models import Contact, ContactType
from .service import ContactService

__all__ = [
    "Contact",
    "ContactType",
    "ContactService",
]
