"""
Authentication Routes - Admin Login and Session
"""

import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from benzochem_admin.db.session import get_db
from benzochem_admin.models.admin_model import Admin
from benzochem_admin.schemas.auth_schemas import (
    AdminCreate,
    AdminInfo,
    AdminLogin,
    TokenResponse,
)
from benzochem_admin.services.auth_service import auth_service
from benzochem_admin.utils.auth import get_current_admin, require_super_admin
from benzochem_admin.utils.exceptions import AdminValidationError, AuthenticationError
from benzochem_admin.utils.responses import error_response, success_response

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/login", response_model=TokenResponse)
def login(request: AdminLogin, db: Session = Depends(get_db)):
    """
    Exchange admin email and password for a session token

    **Response:**
    ```json
    {
        "access_token": "eyJhbGciOiJIUzI1NiIs...",
        "token_type": "bearer",
        "expires_in": 86400,
        "admin": {"id": "...", "email": "admin@example.com", "role": "admin"}
    }
    ```
    """
    try:
        return auth_service.login(db, request.email, request.password)
    except AuthenticationError as e:
        return error_response(
            status_code=status.HTTP_401_UNAUTHORIZED,
            message=str(e),
            error="UNAUTHORIZED",
        )
    except Exception as e:
        logger.error(f"Admin login failed: {str(e)}", exc_info=True)
        return error_response(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            message="Authentication failed. Please try again",
            error="INTERNAL_ERROR",
        )


@router.get("/session")
def get_session(admin: Admin = Depends(get_current_admin)):
    """Verify the session token and return the signed-in admin"""
    return success_response(
        status_code=status.HTTP_200_OK,
        message="Session is valid",
        data={"admin": AdminInfo.model_validate(admin)},
    )


@router.post("/admins")
def create_admin(
    request: AdminCreate,
    current_admin: Admin = Depends(require_super_admin),
    db: Session = Depends(get_db),
):
    """Create another admin account (super admins only)"""
    try:
        admin = auth_service.create_admin(
            db,
            email=request.email,
            password=request.password,
            first_name=request.first_name,
            last_name=request.last_name,
            role=request.role,
        )
        logger.info(f"Admin {current_admin.id} created admin {admin.id}")
        return success_response(
            status_code=status.HTTP_201_CREATED,
            message="Admin created successfully",
            data={"admin": AdminInfo.model_validate(admin)},
        )
    except AdminValidationError as e:
        return error_response(
            status_code=status.HTTP_400_BAD_REQUEST,
            message="Invalid admin request",
            error="VALIDATION_ERROR",
            errors={"details": [str(e)]},
        )
    except Exception as e:
        logger.error(f"Failed to create admin: {str(e)}", exc_info=True)
        return error_response(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            message="Failed to create admin. Please try again",
            error="INTERNAL_ERROR",
        )
