"""Contact table model.

One row per observed (email, phone) record. Rows form two-level stars: a
primary row (``linked_id`` NULL) with secondary rows pointing straight at it.
"""

from __future__ import annotations

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, Text
from sqlalchemy.orm import declarative_base

from contact_reconciliation.kernel.time import utc_now

Base = declarative_base()


class Contact(Base):
    __tablename__ = "contact"
    __table_args__ = (
        CheckConstraint(
            "link_precedence IN ('primary', 'secondary')",
            name="contact_link_precedence_check",
        ),
    )

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(Text, nullable=True, index=True)
    phone_number = Column(Text, nullable=True, index=True)
    linked_id = Column(Integer, ForeignKey("contact.id"), nullable=True, index=True)
    link_precedence = Column(Text, nullable=False, default="primary")  # primary, secondary

    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    deleted_at = Column(DateTime(timezone=True), nullable=True)
