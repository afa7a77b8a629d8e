"""
Uniform JSON response builders
"""

from typing import Any, Dict, Optional

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse


def success_response(
    status_code: int,
    message: str,
    data: Any = None,
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(
            {"status_code": status_code, "message": message, "data": data}
        ),
    )


def error_response(
    status_code: int,
    message: str,
    error: str,
    errors: Optional[Dict[str, Any]] = None,
    headers: Optional[Dict[str, str]] = None,
) -> JSONResponse:
    """
    Error body shared by every route:
    {"status_code", "error", "message", "errors"}

    `error` is the machine-readable code (UNAUTHORIZED, FORBIDDEN,
    RATE_LIMITED, NOT_FOUND, VALIDATION_ERROR, INTERNAL_ERROR).
    """
    return JSONResponse(
        status_code=status_code,
        content=jsonable_encoder(
            {
                "status_code": status_code,
                "error": error,
                "message": message,
                "errors": errors or {},
            }
        ),
        headers=headers,
    )
