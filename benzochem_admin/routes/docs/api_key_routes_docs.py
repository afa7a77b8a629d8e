"""
OpenAPI response examples for the API key and v1 routes
"""

DESCRIPTIONS = {
    400: "Bad Request",
    401: "Unauthorized",
    403: "Forbidden",
    404: "Not Found",
    422: "Validation Error",
    429: "Too Many Requests",
    500: "Internal Server Error",
}


def _error(status_code: int, error: str, message: str, **errors) -> dict:
    return {
        "error": error,
        "message": message,
        "status_code": status_code,
        "errors": errors,
    }


def _responses(success_summary: str, success_value: dict, **errors) -> dict:
    """
    Build a `responses=` mapping

    Keyword arguments are named examples: `name=(status_code, body)`.
    """
    responses = {
        200: {
            "description": success_summary,
            "content": {
                "application/json": {
                    "examples": {
                        "success": {"summary": success_summary, "value": success_value}
                    }
                }
            },
        }
    }

    for name, (status_code, body) in errors.items():
        entry = responses.setdefault(
            status_code,
            {
                "description": DESCRIPTIONS[status_code],
                "content": {"application/json": {"examples": {}}},
            },
        )
        entry["content"]["application/json"]["examples"][name] = {
            "summary": body["message"],
            "value": body,
        }

    return responses


NOT_AUTHENTICATED = (
    401,
    _error(401, "UNAUTHORIZED", "Authentication required"),
)
SERVER_ERROR = (
    500,
    _error(500, "INTERNAL_ERROR", "An internal error occurred. Please try again later."),
)
KEY_NOT_FOUND = (404, _error(404, "NOT_FOUND", "API key not found"))

API_KEY_INFO_EXAMPLE = {
    "id": "<ID>",
    "name": "Mobile app",
    "key_id": "Ab12Cd34",
    "masked_key": "bzk_live_Ab12Cd34...****",
    "environment": "live",
    "permissions": ["products:read", "quotations:write"],
    "is_active": True,
    "rate_limit": {
        "requests_per_minute": 100,
        "requests_per_hour": 5000,
        "requests_per_day": 50000,
        "burst_limit": 150,
    },
    "usage_count": 0,
    "expires_at": None,
    "created_by": "<ADMIN_ID>",
    "created_at": "2026-01-10T10:30:00Z",
}

create_api_key_responses = _responses(
    "API key created",
    {
        "status_code": 201,
        "message": "API key created successfully. Copy it now, it will not be shown again.",
        "data": {"api_key": "<API_KEY>", "key": API_KEY_INFO_EXAMPLE},
    },
    invalid_permissions=(
        422,
        _error(
            422,
            "VALIDATION_ERROR",
            "Request validation failed",
            details=["body.permissions: Value error, Invalid permission: admin"],
        ),
    ),
    expiry_in_past=(
        400,
        _error(
            400,
            "VALIDATION_ERROR",
            "Invalid API key request",
            details=["Expiry must be in the future"],
        ),
    ),
    not_authenticated=NOT_AUTHENTICATED,
    server_error=SERVER_ERROR,
)

rotate_api_key_responses = _responses(
    "API key rotated",
    {
        "status_code": 200,
        "message": "API key rotated successfully. Update your applications with the new key.",
        "data": {"api_key": "<NEW_API_KEY>", "key": API_KEY_INFO_EXAMPLE},
    },
    key_inactive=(
        400,
        _error(
            400,
            "VALIDATION_ERROR",
            "Invalid rotation request",
            details=["Cannot rotate inactive API key"],
        ),
    ),
    not_authenticated=NOT_AUTHENTICATED,
    key_not_found=KEY_NOT_FOUND,
    server_error=SERVER_ERROR,
)

revoke_api_key_responses = _responses(
    "API key revoked",
    {
        "status_code": 200,
        "message": "API key revoked successfully",
        "data": {**API_KEY_INFO_EXAMPLE, "is_active": False},
    },
    not_authenticated=NOT_AUTHENTICATED,
    key_not_found=KEY_NOT_FOUND,
    server_error=SERVER_ERROR,
)

delete_api_key_responses = _responses(
    "API key deleted",
    {
        "status_code": 200,
        "message": "API key permanently deleted",
        "data": {"id": "<ID>", "deleted": True},
    },
    not_authenticated=NOT_AUTHENTICATED,
    key_not_found=KEY_NOT_FOUND,
    server_error=SERVER_ERROR,
)

api_key_auth_responses = {
    status_code: entry
    for status_code, entry in _responses(
        "OK",
        {},
        missing_key=(401, _error(401, "UNAUTHORIZED", "API key is required")),
        invalid_key=(401, _error(401, "UNAUTHORIZED", "Invalid or expired API key")),
        missing_scope=(
            403,
            _error(
                403,
                "FORBIDDEN",
                "Access denied: Your API key lacks permission to create or modify "
                "quotations. Required permission: 'quotations:write'",
                reason="PERMISSION_DENIED",
                missing_permission="quotations:write",
                available_permissions=["quotations:read"],
            ),
        ),
        rate_limited=(
            429,
            _error(
                429,
                "RATE_LIMITED",
                "Per-minute rate limit exceeded",
                reason="RATE_LIMITED",
                window="minute",
                limit=100,
            ),
        ),
    ).items()
    if status_code != 200
}
