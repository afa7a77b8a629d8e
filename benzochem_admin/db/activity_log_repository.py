"""
Repository Pattern for Database Operations
Provides clean data access layer
"""

from datetime import datetime
from typing import Dict, List, Optional

from fastapi.encoders import jsonable_encoder
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from benzochem_admin.db.base_repository import BaseRepository
from benzochem_admin.models.activity_log_model import (
    ActivityAction,
    ActivityLog,
    PerformerType,
)


class ActivityLogRepository(BaseRepository[ActivityLog]):
    """Repository for Activity Log operations"""

    def record(
        self,
        action: ActivityAction,
        entity_id: str,
        performed_by: str,
        old_values: Optional[dict] = None,
        new_values: Optional[dict] = None,
        entity_type: str = "api_key",
        performed_by_type: PerformerType = PerformerType.ADMIN,
    ) -> ActivityLog:
        """Append an audit entry"""
        return self.create(
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            old_values=jsonable_encoder(old_values),
            new_values=jsonable_encoder(new_values),
            performed_by=performed_by,
            performed_by_type=performed_by_type,
        )

    def get_for_entity(self, entity_id: str, limit: int = 100) -> List[ActivityLog]:
        """Get audit entries for one entity, newest first"""
        result = self.db.execute(
            select(ActivityLog)
            .where(ActivityLog.entity_id == entity_id)
            .order_by(ActivityLog.created_at.desc())
            .limit(limit)
        )
        return result.scalars().all()

    def _filtered(
        self,
        query,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ):
        if start_date:
            query = query.where(ActivityLog.created_at >= start_date)
        if end_date:
            query = query.where(ActivityLog.created_at <= end_date)
        return query

    def search(
        self,
        entity_type: Optional[str] = None,
        entity_id: Optional[str] = None,
        performed_by: Optional[str] = None,
        action: Optional[ActivityAction] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> List[ActivityLog]:
        """List audit entries newest first, filtered by entity, performer, action and date"""
        query = self._filtered(select(ActivityLog), start_date, end_date)

        if entity_type:
            query = query.where(ActivityLog.entity_type == entity_type)
        if entity_id:
            query = query.where(ActivityLog.entity_id == entity_id)
        if performed_by:
            query = query.where(ActivityLog.performed_by == performed_by)
        if action:
            query = query.where(ActivityLog.action == action)

        result = self.db.execute(
            query.order_by(ActivityLog.created_at.desc()).limit(limit).offset(offset)
        )
        return result.scalars().all()

    def count_by(
        self,
        column,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> Dict[str, int]:
        """Count entries grouped by one column"""
        query = self._filtered(
            select(column, func.count(ActivityLog.id)).group_by(column),
            start_date,
            end_date,
        )
        return {
            getattr(key, "value", key): count for key, count in self.db.execute(query).all()
        }

    def count_since(
        self,
        since: datetime,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> int:
        query = self._filtered(
            select(func.count(ActivityLog.id)).where(ActivityLog.created_at > since),
            start_date,
            end_date,
        )
        return self.db.execute(query).scalar()


def get_activity_log_repository(db: Session) -> ActivityLogRepository:
    """Get ActivityLogRepository instance"""
    return ActivityLogRepository(ActivityLog, db)
