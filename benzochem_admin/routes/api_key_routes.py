"""
API Key Management Routes (admin only)
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from benzochem_admin.db.session import get_db
from benzochem_admin.models.admin_model import Admin
from benzochem_admin.routes.docs.api_key_routes_docs import (
    create_api_key_responses,
    delete_api_key_responses,
    revoke_api_key_responses,
    rotate_api_key_responses,
)
from benzochem_admin.schemas.api_keys_schemas import (
    APIKeyCreate,
    APIKeyInfo,
    APIKeyLifecycleRequest,
    APIKeyResponse,
    APIKeyStats,
    APIKeyUpdate,
)
from benzochem_admin.services.api_keys_service import api_key_service
from benzochem_admin.utils.auth import get_current_admin
from benzochem_admin.utils.exceptions import APIKeyNotFoundError, APIKeyValidationError
from benzochem_admin.utils.permissions import KNOWN_PERMISSIONS, WILDCARD
from benzochem_admin.utils.responses import error_response, success_response

logger = logging.getLogger(__name__)
router = APIRouter()


def _key_not_found():
    return error_response(
        status_code=status.HTTP_404_NOT_FOUND,
        message="API key not found",
        error="NOT_FOUND",
    )


def _validation_failed(message: str, e: Exception):
    return error_response(
        status_code=status.HTTP_400_BAD_REQUEST,
        message=message,
        error="VALIDATION_ERROR",
        errors={"details": [str(e)]},
    )


def _reason(request: Optional[APIKeyLifecycleRequest]) -> Optional[str]:
    return request.reason if request else None


def _server_error(message: str):
    return error_response(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        message=message,
        error="INTERNAL_ERROR",
    )


@router.post("", responses=create_api_key_responses)
def create_api_key(
    request: APIKeyCreate,
    admin: Admin = Depends(get_current_admin),
    db: Session = Depends(get_db),
):
    """
    Create a new API key

    The plaintext key is returned once in `data.api_key` and is never
    retrievable again.

    **Permissions** are `<resource>:<action>` pairs, for example
    `products:read`, `quotations:write`, `notifications:register`.
    `<resource>:*` grants every action on a resource and `*` grants all.

    **Rate limit** defaults: 100/minute, 5000/hour, 50000/day, burst 150.
    """
    try:
        api_key, secret = api_key_service.create_api_key(
            db=db,
            name=request.name,
            permissions=request.permissions,
            admin_id=admin.id,
            environment=request.environment,
            rate_limit=request.rate_limit.model_dump() if request.rate_limit else None,
            expires_at=request.expires_at,
        )
        return success_response(
            status_code=status.HTTP_201_CREATED,
            message="API key created successfully. Copy it now, it will not be shown again.",
            data=APIKeyResponse(api_key=secret, key=APIKeyInfo.model_validate(api_key)),
        )
    except APIKeyValidationError as e:
        logger.warning(
            f"API key creation validation failed for admin {admin.id}: {str(e)}"
        )
        return _validation_failed("Invalid API key request", e)
    except Exception as e:
        logger.error(
            f"Failed to create API key for admin {admin.id}: {str(e)}", exc_info=True
        )
        return _server_error("Failed to create API key. Please try again")


@router.get("")
def list_api_keys(
    search: Optional[str] = Query(None, description="Match on name or key id"),
    is_active: Optional[bool] = Query(None),
    created_by: Optional[str] = Query(None),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    admin: Admin = Depends(get_current_admin),
    db: Session = Depends(get_db),
):
    """
    List API keys, newest first
    Returns key metadata with a masked key (NOT the actual keys)
    """
    try:
        api_keys = api_key_service.list_api_keys(
            db=db,
            search=search,
            is_active=is_active,
            created_by=created_by,
            limit=limit,
            offset=offset,
        )
        keys = [APIKeyInfo.model_validate(api_key) for api_key in api_keys]
        return success_response(
            status_code=status.HTTP_200_OK,
            message="API keys retrieved successfully",
            data={"keys": keys, "count": len(keys)},
        )
    except Exception as e:
        logger.error(f"Failed to list API keys: {str(e)}", exc_info=True)
        return _server_error("Failed to retrieve API keys")


@router.get("/stats")
def get_api_key_stats(
    admin: Admin = Depends(get_current_admin),
    db: Session = Depends(get_db),
):
    """Counts of total, active, inactive, expired and recently used keys"""
    try:
        stats = api_key_service.get_api_key_stats(db)
        return success_response(
            status_code=status.HTTP_200_OK,
            message="API key statistics retrieved successfully",
            data=APIKeyStats(**stats),
        )
    except Exception as e:
        logger.error(f"Failed to compute API key stats: {str(e)}", exc_info=True)
        return _server_error("Failed to retrieve API key statistics")


@router.get("/permissions")
def list_known_permissions(admin: Admin = Depends(get_current_admin)):
    """Scopes the dashboard offers when creating a key"""
    return success_response(
        status_code=status.HTTP_200_OK,
        message="Permissions retrieved successfully",
        data={"permissions": list(KNOWN_PERMISSIONS), "wildcard": WILDCARD},
    )


@router.get("/{api_key_id}")
def get_api_key(
    api_key_id: str,
    admin: Admin = Depends(get_current_admin),
    db: Session = Depends(get_db),
):
    try:
        api_key = api_key_service.get_api_key(db, api_key_id)
        return success_response(
            status_code=status.HTTP_200_OK,
            message="API key retrieved successfully",
            data=APIKeyInfo.model_validate(api_key),
        )
    except APIKeyNotFoundError:
        return _key_not_found()
    except Exception as e:
        logger.error(f"Failed to get API key {api_key_id}: {str(e)}", exc_info=True)
        return _server_error("Failed to retrieve API key")


@router.patch("/{api_key_id}")
def update_api_key(
    api_key_id: str,
    request: APIKeyUpdate,
    admin: Admin = Depends(get_current_admin),
    db: Session = Depends(get_db),
):
    """
    Update name, permissions, active flag, expiry or rate limit
    Only the fields present in the body are changed
    """
    changes = request.model_dump(exclude_unset=True)
    if changes.get("rate_limit") is None:
        changes.pop("rate_limit", None)

    try:
        api_key = api_key_service.update_api_key(
            db=db, api_key_id=api_key_id, updated_by=admin.id, changes=changes
        )
        return success_response(
            status_code=status.HTTP_200_OK,
            message="API key updated successfully",
            data=APIKeyInfo.model_validate(api_key),
        )
    except APIKeyNotFoundError:
        logger.warning(f"API key not found for update: {api_key_id}")
        return _key_not_found()
    except APIKeyValidationError as e:
        logger.warning(f"API key update validation failed: {str(e)}")
        return _validation_failed("Invalid update request", e)
    except Exception as e:
        logger.error(
            f"Failed to update API key {api_key_id}: {str(e)}", exc_info=True
        )
        return _server_error("Failed to update API key. Please try again")


@router.post("/{api_key_id}/revoke", responses=revoke_api_key_responses)
def revoke_api_key(
    api_key_id: str,
    request: Optional[APIKeyLifecycleRequest] = None,
    admin: Admin = Depends(get_current_admin),
    db: Session = Depends(get_db),
):
    """
    Revoke an API key
    Once revoked, the key cannot be used until it is reactivated
    """
    try:
        api_key = api_key_service.revoke_api_key(
            db=db,
            api_key_id=api_key_id,
            revoked_by=admin.id,
            reason=_reason(request),
        )
        return success_response(
            status_code=status.HTTP_200_OK,
            message="API key revoked successfully",
            data=APIKeyInfo.model_validate(api_key),
        )
    except APIKeyNotFoundError:
        logger.warning(f"API key not found for revocation: {api_key_id}")
        return _key_not_found()
    except Exception as e:
        logger.error(
            f"Failed to revoke API key {api_key_id}: {str(e)}", exc_info=True
        )
        return _server_error("Failed to revoke API key. Please try again")


@router.post("/{api_key_id}/rotate", responses=rotate_api_key_responses)
def rotate_api_key(
    api_key_id: str,
    request: Optional[APIKeyLifecycleRequest] = None,
    admin: Admin = Depends(get_current_admin),
    db: Session = Depends(get_db),
):
    """
    Rotate an API key
    Issues a new secret with the same settings; the old secret stops working
    """
    try:
        api_key, secret = api_key_service.rotate_api_key(
            db=db,
            api_key_id=api_key_id,
            rotated_by=admin.id,
            reason=_reason(request) or "Manual rotation via admin panel",
        )
        return success_response(
            status_code=status.HTTP_200_OK,
            message="API key rotated successfully. Update your applications with the new key.",
            data=APIKeyResponse(api_key=secret, key=APIKeyInfo.model_validate(api_key)),
        )
    except APIKeyNotFoundError:
        logger.warning(f"API key not found for rotation: {api_key_id}")
        return _key_not_found()
    except APIKeyValidationError as e:
        logger.warning(f"API key rotation rejected: {str(e)}")
        return _validation_failed("Invalid rotation request", e)
    except Exception as e:
        logger.error(
            f"Failed to rotate API key {api_key_id}: {str(e)}", exc_info=True
        )
        return _server_error("Failed to rotate API key. Please try again")


@router.delete("/{api_key_id}", responses=delete_api_key_responses)
def delete_api_key(
    api_key_id: str,
    reason: Optional[str] = Query(None, max_length=500),
    admin: Admin = Depends(get_current_admin),
    db: Session = Depends(get_db),
):
    """Permanently delete an API key"""
    try:
        deleted = api_key_service.delete_api_key(
            db=db, api_key_id=api_key_id, deleted_by=admin.id, reason=reason
        )
    except Exception as e:
        logger.error(
            f"Failed to delete API key {api_key_id}: {str(e)}", exc_info=True
        )
        return _server_error("Failed to delete API key. Please try again")

    if not deleted:
        return _key_not_found()

    return success_response(
        status_code=status.HTTP_200_OK,
        message="API key permanently deleted",
        data={"id": api_key_id, "deleted": True},
    )
