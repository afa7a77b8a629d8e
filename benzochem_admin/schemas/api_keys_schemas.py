"""
Pydantic Schemas for Request/Response Validation
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

from benzochem_admin.models.api_key_model import APIKeyEnvironment
from benzochem_admin.utils.permissions import is_valid_permission
from benzochem_admin.utils.security import mask_api_key


def _check_permissions(v: Optional[List[str]]) -> Optional[List[str]]:
    if v is None:
        return v
    for perm in v:
        if not is_valid_permission(perm.strip()):
            raise ValueError(
                f"Invalid permission: {perm}. "
                "Must look like '<resource>:<action>', '<resource>:*' or '*'"
            )
    return v


class RateLimitConfig(BaseModel):
    requests_per_minute: int = Field(100, gt=0)
    requests_per_hour: int = Field(5000, gt=0)
    requests_per_day: int = Field(50000, gt=0)
    burst_limit: int = Field(150, gt=0)


class APIKeyCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    permissions: List[str] = Field(..., min_length=1)
    environment: APIKeyEnvironment = APIKeyEnvironment.LIVE
    rate_limit: Optional[RateLimitConfig] = None
    expires_at: Optional[datetime] = None

    @field_validator("permissions")
    def validate_permissions(cls, v):
        return _check_permissions(v)


class APIKeyUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    permissions: Optional[List[str]] = Field(None, min_length=1)
    is_active: Optional[bool] = None
    expires_at: Optional[datetime] = None
    rate_limit: Optional[RateLimitConfig] = None

    @field_validator("permissions")
    def validate_permissions(cls, v):
        return _check_permissions(v)


class APIKeyLifecycleRequest(BaseModel):
    """Body for revoke, rotate and delete"""

    reason: Optional[str] = Field(None, max_length=500)


class APIKeyInfo(BaseModel):
    """Information about an API key (without the actual key value)"""

    id: str
    name: str
    key_id: str = Field(..., description="Public identifier, first 8 characters")
    environment: APIKeyEnvironment
    permissions: List[str]
    is_active: bool
    rate_limit: RateLimitConfig
    usage_count: int
    expires_at: Optional[datetime] = None
    last_used_at: Optional[datetime] = None
    revoked_at: Optional[datetime] = None
    revoked_by: Optional[str] = None
    revocation_reason: Optional[str] = None
    rotated_at: Optional[datetime] = None
    rotated_by: Optional[str] = None
    rotation_reason: Optional[str] = None
    created_by: str
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)

    @computed_field
    @property
    def masked_key(self) -> str:
        return mask_api_key(self.environment.value, self.key_id)


class APIKeyResponse(BaseModel):
    """Returned on create and rotate: the only time the secret is shown"""

    api_key: str
    key: APIKeyInfo


class APIKeyStats(BaseModel):
    total: int
    active: int
    inactive: int
    expired: int
    recently_used: int
    total_usage: int
