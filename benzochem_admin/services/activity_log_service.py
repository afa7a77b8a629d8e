"""
Activity Log Service

Read side of the audit trail written by the API key lifecycle operations.
"""

from datetime import datetime, timedelta
from typing import Callable, Dict, List, Optional

from sqlalchemy.orm import Session

from benzochem_admin.db.activity_log_repository import get_activity_log_repository
from benzochem_admin.models.activity_log_model import ActivityAction, ActivityLog
from benzochem_admin.utils.clock import utcnow


class ActivityLogService:
    """Service for browsing and summarizing audit entries"""

    RECENT_ACTIVITY_WINDOW = timedelta(hours=24)

    def __init__(self, clock: Callable[[], datetime] = utcnow):
        self.clock = clock

    def list_activity_logs(
        self,
        db: Session,
        entity_type: Optional[str] = None,
        entity_id: Optional[str] = None,
        performed_by: Optional[str] = None,
        action: Optional[ActivityAction] = None,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
        limit: int = 100,
        offset: int = 0,
    ) -> List[ActivityLog]:
        return get_activity_log_repository(db).search(
            entity_type=entity_type,
            entity_id=entity_id,
            performed_by=performed_by,
            action=action,
            start_date=start_date,
            end_date=end_date,
            limit=limit,
            offset=offset,
        )

    def get_activity_log_stats(
        self,
        db: Session,
        start_date: Optional[datetime] = None,
        end_date: Optional[datetime] = None,
    ) -> Dict:
        """Totals by action, entity type and performer, plus the last 24 hours"""
        repo = get_activity_log_repository(db)
        by_action = repo.count_by(ActivityLog.action, start_date, end_date)

        return {
            "total": sum(by_action.values()),
            "by_action": by_action,
            "by_entity_type": repo.count_by(ActivityLog.entity_type, start_date, end_date),
            "by_performer_type": repo.count_by(
                ActivityLog.performed_by_type, start_date, end_date
            ),
            "recent_activity": repo.count_since(
                self.clock() - self.RECENT_ACTIVITY_WINDOW, start_date, end_date
            ),
        }


activity_log_service = ActivityLogService()
