"""
Authentication Dependencies for FastAPI
Admin routes take a JWT session token; public v1 routes take an API key
"""

import logging
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import (
    APIKeyHeader,
    APIKeyQuery,
    HTTPAuthorizationCredentials,
    HTTPBearer,
)
from sqlalchemy.orm import Session

from benzochem_admin.db.session import get_db
from benzochem_admin.models.admin_model import Admin, AdminRole
from benzochem_admin.models.api_key_model import APIKey
from benzochem_admin.services.api_keys_service import DenyReason, api_key_service
from benzochem_admin.services.auth_service import auth_service
from benzochem_admin.utils.exceptions import AuthenticationError

logger = logging.getLogger(__name__)


bearer_scheme = HTTPBearer(
    auto_error=False,
    scheme_name="Bearer Token",
    description="Admin session token, or an API key on /v1 routes",
)

api_key_scheme = APIKeyHeader(
    name="x-api-key",
    auto_error=False,
    scheme_name="API Key",
    description="Enter your API key (format: bzk_live_...)",
)

api_key_query_scheme = APIKeyQuery(
    name="api_key",
    auto_error=False,
    scheme_name="API Key Query",
    description="API key as a query parameter (discouraged)",
)

DENY_STATUS = {
    DenyReason.NOT_FOUND: (status.HTTP_401_UNAUTHORIZED, "UNAUTHORIZED"),
    DenyReason.INACTIVE: (status.HTTP_401_UNAUTHORIZED, "UNAUTHORIZED"),
    DenyReason.EXPIRED: (status.HTTP_401_UNAUTHORIZED, "UNAUTHORIZED"),
    DenyReason.PERMISSION_DENIED: (status.HTTP_403_FORBIDDEN, "FORBIDDEN"),
    DenyReason.RATE_LIMITED: (status.HTTP_429_TOO_MANY_REQUESTS, "RATE_LIMITED"),
}


def auth_error(
    status_code: int,
    error: str,
    message: str,
    errors: Optional[dict] = None,
    headers: Optional[dict] = None,
) -> HTTPException:
    """HTTPException whose detail the app handler renders in the uniform shape"""
    return HTTPException(
        status_code=status_code,
        detail={"error": error, "message": message, "errors": errors or {}},
        headers=headers,
    )


def get_current_admin(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: Session = Depends(get_db),
) -> Admin:
    """Get current admin from the session token"""
    if not credentials:
        raise auth_error(
            status.HTTP_401_UNAUTHORIZED,
            "UNAUTHORIZED",
            "Authentication required. Provide 'Authorization: Bearer <session_token>'.",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        admin = auth_service.get_admin_from_token(db, credentials.credentials)
    except AuthenticationError as e:
        raise auth_error(
            status.HTTP_401_UNAUTHORIZED,
            "UNAUTHORIZED",
            str(e),
            headers={"WWW-Authenticate": "Bearer"},
        )

    logger.debug(f"Authenticated admin {admin.id} via session token")
    return admin


def require_super_admin(admin: Admin = Depends(get_current_admin)) -> Admin:
    if AdminRole(admin.role) != AdminRole.SUPER_ADMIN:
        raise auth_error(
            status.HTTP_403_FORBIDDEN,
            "FORBIDDEN",
            "This action requires a super admin",
        )
    return admin


def extract_api_key(
    credentials: Optional[HTTPAuthorizationCredentials],
    header_key: Optional[str],
    query_key: Optional[str],
) -> Optional[str]:
    """Bearer token first, then X-API-Key, then the api_key query parameter"""
    if credentials and credentials.credentials:
        return credentials.credentials
    if header_key:
        return header_key
    if query_key:
        return query_key
    return None


def require_api_key(permission: Optional[str] = None):
    """
    Dependency that authorizes the presented API key

    Counts the request against the key's rate limits. With `permission`
    set, the key must also hold that scope (or a wildcard covering it).

    Denials map to:
    - 401 UNAUTHORIZED: missing, unknown, revoked or expired key
    - 403 FORBIDDEN: scope missing
    - 429 RATE_LIMITED: a threshold is exhausted (with Retry-After)
    """

    def check_api_key(
        request: Request,
        credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
        header_key: Optional[str] = Depends(api_key_scheme),
        query_key: Optional[str] = Depends(api_key_query_scheme),
        db: Session = Depends(get_db),
    ) -> APIKey:
        key = extract_api_key(credentials, header_key, query_key)

        if not key:
            logger.warning(f"No API key provided for {request.method} {request.url.path}")
            raise auth_error(
                status.HTTP_401_UNAUTHORIZED,
                "UNAUTHORIZED",
                "API key is required. Provide 'Authorization: Bearer <api_key>' "
                "or 'X-API-Key: <api_key>'.",
            )

        if query_key and not credentials and not header_key:
            logger.warning(f"API key passed as query parameter on {request.url.path}")

        result = api_key_service.authorize(db, key, permission)

        if not result.allowed:
            status_code, error = DENY_STATUS[result.reason]
            headers = None
            if result.retry_after:
                headers = {"Retry-After": str(result.retry_after)}
            raise auth_error(
                status_code,
                error,
                result.message,
                errors={"reason": result.reason.value, **result.details},
                headers=headers,
            )

        logger.info(
            f"API key {result.api_key.key_id} used for "
            f"{request.method} {request.url.path}"
        )
        return result.api_key

    return check_api_key
