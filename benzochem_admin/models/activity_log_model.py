"""
Activity Log Model
"""

import enum
import uuid

from sqlalchemy import JSON, Column, DateTime, String
from sqlalchemy import Enum as SQLEnum

from benzochem_admin.db.session import Base
from benzochem_admin.utils.clock import utcnow


class ActivityAction(str, enum.Enum):
    API_KEY_CREATED = "api_key_created"
    API_KEY_UPDATED = "api_key_updated"
    API_KEY_REVOKED = "api_key_revoked"
    API_KEY_ROTATED = "api_key_rotated"
    API_KEY_DELETED = "api_key_deleted"


class PerformerType(str, enum.Enum):
    ADMIN = "admin"
    USER = "user"
    SYSTEM = "system"


class ActivityLog(Base):
    __tablename__ = "activity_logs"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    action = Column(SQLEnum(ActivityAction), nullable=False, index=True)
    entity_type = Column(String, nullable=False, default="api_key")
    # Not a foreign key: entries outlive deleted entities
    entity_id = Column(String, nullable=False, index=True)
    old_values = Column(JSON, nullable=True)
    new_values = Column(JSON, nullable=True)
    performed_by = Column(String, nullable=False, index=True)
    performed_by_type = Column(
        SQLEnum(PerformerType), default=PerformerType.ADMIN, nullable=False
    )
    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)
