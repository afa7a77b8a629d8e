"""
Quotation Draft Model
"""

import uuid

from sqlalchemy import JSON, Column, DateTime, String, Text

from benzochem_admin.db.session import Base
from benzochem_admin.utils.clock import utcnow


class QuotationDraft(Base):
    __tablename__ = "quotation_drafts"

    id = Column(String, primary_key=True, default=lambda: f"draft_{uuid.uuid4().hex}")
    user_id = Column(String, unique=True, nullable=False, index=True)
    items = Column(JSON, nullable=False, default=list)
    notes = Column(Text, nullable=True)
    status = Column(String, nullable=False, default="draft")
    expires_at = Column(DateTime(timezone=True), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)
