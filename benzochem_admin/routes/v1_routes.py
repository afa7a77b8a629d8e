"""
Public v1 Routes (API key authenticated)
"""

import logging

from fastapi import APIRouter, Depends, Header, status
from sqlalchemy.orm import Session

from benzochem_admin.db.session import get_db
from benzochem_admin.models.api_key_model import APIKey
from benzochem_admin.routes.docs.api_key_routes_docs import api_key_auth_responses
from benzochem_admin.schemas.quotation_schemas import (
    DraftNotesUpdate,
    DraftQuotation,
    QuotationItem,
    QuotationItemCreate,
)
from benzochem_admin.services.draft_service import draft_service
from benzochem_admin.utils.auth import require_api_key
from benzochem_admin.utils.clock import utcnow
from benzochem_admin.utils.exceptions import DraftItemNotFoundError
from benzochem_admin.utils.responses import error_response, success_response

logger = logging.getLogger(__name__)
router = APIRouter(responses=api_key_auth_responses)


def get_user_id(
    x_user_id: str = Header(..., min_length=1, description="Owner of the draft quotation"),
) -> str:
    return x_user_id


@router.get("/status")
def api_status(api_key: APIKey = Depends(require_api_key())):
    """Check that an API key works and see what it may do"""
    return success_response(
        status_code=status.HTTP_200_OK,
        message="API is operational",
        data={
            "key_id": api_key.key_id,
            "environment": api_key.environment,
            "permissions": api_key.permissions,
            "rate_limit": api_key.rate_limit,
            "timestamp": utcnow(),
        },
    )


@router.get("/quotations/draft")
def get_draft(
    api_key: APIKey = Depends(require_api_key("quotations:read")),
    user_id: str = Depends(get_user_id),
    db: Session = Depends(get_db),
):
    """Get the caller's draft quotation, starting an empty one if needed"""
    try:
        draft = draft_service.get_draft(db, user_id, create_if_missing=True)
        return success_response(
            status_code=status.HTTP_200_OK,
            message="Draft quotation retrieved successfully",
            data=DraftQuotation.model_validate(draft),
        )
    except Exception as e:
        logger.error(f"Failed to load draft for user {user_id}: {str(e)}", exc_info=True)
        return error_response(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            message="Failed to load draft quotation",
            error="INTERNAL_ERROR",
        )


@router.post("/quotations/draft/items")
def add_draft_item(
    request: QuotationItemCreate,
    api_key: APIKey = Depends(require_api_key("quotations:write")),
    user_id: str = Depends(get_user_id),
    db: Session = Depends(get_db),
):
    """Add a product to the caller's draft quotation"""
    try:
        item = draft_service.add_item(db, user_id, request.model_dump())
        return success_response(
            status_code=status.HTTP_201_CREATED,
            message="Item added to draft quotation",
            data=QuotationItem(**item),
        )
    except Exception as e:
        logger.error(f"Failed to add draft item for {user_id}: {str(e)}", exc_info=True)
        return error_response(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            message="Failed to add item to draft quotation",
            error="INTERNAL_ERROR",
        )


@router.delete("/quotations/draft/items/{item_id}")
def remove_draft_item(
    item_id: str,
    api_key: APIKey = Depends(require_api_key("quotations:write")),
    user_id: str = Depends(get_user_id),
    db: Session = Depends(get_db),
):
    try:
        draft = draft_service.remove_item(db, user_id, item_id)
        return success_response(
            status_code=status.HTTP_200_OK,
            message="Item removed from draft quotation",
            data=DraftQuotation.model_validate(draft),
        )
    except DraftItemNotFoundError as e:
        return error_response(
            status_code=status.HTTP_404_NOT_FOUND,
            message=str(e),
            error="NOT_FOUND",
        )
    except Exception as e:
        logger.error(f"Failed to remove draft item {item_id}: {str(e)}", exc_info=True)
        return error_response(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            message="Failed to remove item from draft quotation",
            error="INTERNAL_ERROR",
        )


@router.put("/quotations/draft/notes")
def update_draft_notes(
    request: DraftNotesUpdate,
    api_key: APIKey = Depends(require_api_key("quotations:write")),
    user_id: str = Depends(get_user_id),
    db: Session = Depends(get_db),
):
    try:
        draft = draft_service.update_notes(db, user_id, request.notes)
        return success_response(
            status_code=status.HTTP_200_OK,
            message="Draft notes updated",
            data=DraftQuotation.model_validate(draft),
        )
    except Exception as e:
        logger.error(f"Failed to update draft notes: {str(e)}", exc_info=True)
        return error_response(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            message="Failed to update draft notes",
            error="INTERNAL_ERROR",
        )


@router.delete("/quotations/draft")
def clear_draft(
    api_key: APIKey = Depends(require_api_key("quotations:write")),
    user_id: str = Depends(get_user_id),
    db: Session = Depends(get_db),
):
    """Discard the caller's draft quotation"""
    if not draft_service.clear_draft(db, user_id):
        return error_response(
            status_code=status.HTTP_404_NOT_FOUND,
            message="No draft quotation found",
            error="NOT_FOUND",
        )

    return success_response(
        status_code=status.HTTP_200_OK,
        message="Draft quotation cleared",
        data={"user_id": user_id, "cleared": True},
    )
