"""
API Key Model
"""

import enum
import uuid

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
)
from sqlalchemy import Enum as SQLEnum
from sqlalchemy.orm import relationship

from benzochem_admin.db.session import Base
from benzochem_admin.utils.clock import utcnow


class APIKeyEnvironment(str, enum.Enum):
    LIVE = "live"


class APIKey(Base):
    __tablename__ = "api_keys"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String, nullable=False)
    key_hash = Column(String, unique=True, nullable=False, index=True)
    key_id = Column(String(8), unique=True, nullable=False, index=True)
    environment = Column(
        SQLEnum(APIKeyEnvironment), default=APIKeyEnvironment.LIVE, nullable=False
    )
    permissions = Column(JSON, nullable=False, default=list)
    is_active = Column(Boolean, default=True, nullable=False, index=True)

    # {"requests_per_minute", "requests_per_hour", "requests_per_day", "burst_limit"}
    rate_limit = Column(JSON, nullable=False)
    # Window counters and window starts (epoch seconds), keyed by window name
    rate_limit_counts = Column(JSON, nullable=True)
    rate_limit_resets = Column(JSON, nullable=True)

    usage_count = Column(Integer, default=0, nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=True, index=True)
    last_used_at = Column(DateTime(timezone=True), nullable=True)

    # Revocation tracking
    revoked_at = Column(DateTime(timezone=True), nullable=True)
    revoked_by = Column(String, ForeignKey("admins.id"), nullable=True)
    revocation_reason = Column(String, nullable=True)

    # Rotation tracking
    rotated_at = Column(DateTime(timezone=True), nullable=True)
    rotated_by = Column(String, ForeignKey("admins.id"), nullable=True)
    rotation_reason = Column(String, nullable=True)

    created_by = Column(String, ForeignKey("admins.id"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    creator = relationship(
        "Admin", foreign_keys=[created_by], back_populates="api_keys"
    )
