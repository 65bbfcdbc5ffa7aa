"""Database models."""

from contact_reconciliation.db.models.contact import Base, Contact

__all__ = [
    "Base",
    "Contact",
]
