"""
Activity Log Routes (admin only)
"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from benzochem_admin.db.session import get_db
from benzochem_admin.models.activity_log_model import ActivityAction
from benzochem_admin.models.admin_model import Admin
from benzochem_admin.schemas.activity_log_schemas import ActivityLogInfo, ActivityLogStats
from benzochem_admin.services.activity_log_service import activity_log_service
from benzochem_admin.utils.auth import get_current_admin
from benzochem_admin.utils.clock import as_utc
from benzochem_admin.utils.responses import error_response, success_response

logger = logging.getLogger(__name__)
router = APIRouter()


def _invalid_range():
    return error_response(
        status_code=status.HTTP_400_BAD_REQUEST,
        message="start_date must not be after end_date",
        error="VALIDATION_ERROR",
    )


@router.get("")
def list_activity_logs(
    entity_type: Optional[str] = Query(None, description="For example api_key"),
    entity_id: Optional[str] = Query(None),
    performed_by: Optional[str] = Query(None, description="Admin id"),
    action: Optional[ActivityAction] = Query(None),
    start_date: Optional[datetime] = Query(None),
    end_date: Optional[datetime] = Query(None),
    limit: int = Query(100, ge=1, le=500),
    offset: int = Query(0, ge=0),
    admin: Admin = Depends(get_current_admin),
    db: Session = Depends(get_db),
):
    """
    List audit entries, newest first

    Every create, update, revoke, rotate and delete of an API key leaves
    one entry with the old and new values.
    """
    if start_date and end_date and as_utc(start_date) > as_utc(end_date):
        return _invalid_range()

    try:
        entries = activity_log_service.list_activity_logs(
            db=db,
            entity_type=entity_type,
            entity_id=entity_id,
            performed_by=performed_by,
            action=action,
            start_date=start_date,
            end_date=end_date,
            limit=limit,
            offset=offset,
        )
        logs = [ActivityLogInfo.model_validate(entry) for entry in entries]
        return success_response(
            status_code=status.HTTP_200_OK,
            message="Activity logs retrieved successfully",
            data={"logs": logs, "count": len(logs)},
        )
    except Exception as e:
        logger.error(f"Failed to list activity logs: {str(e)}", exc_info=True)
        return error_response(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            message="Failed to retrieve activity logs",
            error="INTERNAL_ERROR",
        )


@router.get("/stats")
def get_activity_log_stats(
    start_date: Optional[datetime] = Query(None),
    end_date: Optional[datetime] = Query(None),
    admin: Admin = Depends(get_current_admin),
    db: Session = Depends(get_db),
):
    """Entry counts by action, entity type and performer, plus the last 24 hours"""
    if start_date and end_date and as_utc(start_date) > as_utc(end_date):
        return _invalid_range()

    try:
        stats = activity_log_service.get_activity_log_stats(
            db, start_date=start_date, end_date=end_date
        )
        return success_response(
            status_code=status.HTTP_200_OK,
            message="Activity log statistics retrieved successfully",
            data=ActivityLogStats(**stats),
        )
    except Exception as e:
        logger.error(f"Failed to compute activity log stats: {str(e)}", exc_info=True)
        return error_response(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            message="Failed to retrieve activity log statistics",
            error="INTERNAL_ERROR",
        )
