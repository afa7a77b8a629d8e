"""
Pydantic Schemas for Activity Log Responses
"""

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict

from benzochem_admin.models.activity_log_model import ActivityAction, PerformerType


class ActivityLogInfo(BaseModel):
    id: str
    action: ActivityAction
    entity_type: str
    entity_id: str
    old_values: Optional[Dict[str, Any]] = None
    new_values: Optional[Dict[str, Any]] = None
    performed_by: str
    performed_by_type: PerformerType
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ActivityLogStats(BaseModel):
    total: int
    by_action: Dict[str, int]
    by_entity_type: Dict[str, int]
    by_performer_type: Dict[str, int]
    recent_activity: int
