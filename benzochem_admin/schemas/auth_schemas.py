"""
Authentication Schemas
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from benzochem_admin.models.admin_model import AdminRole


class AdminLogin(BaseModel):
    email: str = Field(..., min_length=3, max_length=255)
    password: str = Field(..., min_length=1)


class AdminInfo(BaseModel):
    """Admin profile (never includes the password hash)"""

    id: str
    email: str
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role: AdminRole
    is_active: bool
    last_login_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)


class TokenResponse(BaseModel):
    """JWT Token Response"""

    access_token: str = Field(..., description="JWT session token")
    token_type: str = Field(
        default="bearer", description="Token type (always 'bearer')"
    )
    expires_in: int = Field(..., description="Token lifetime in seconds")
    admin: AdminInfo


class AdminCreate(BaseModel):
    email: str = Field(..., min_length=3, max_length=255)
    password: str = Field(..., min_length=8)
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role: AdminRole = AdminRole.ADMIN
