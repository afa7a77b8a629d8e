"""
API Key Service - Business Logic for API Key Management and Authorization
"""

import enum
import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from sqlalchemy.orm import Session

from benzochem_admin.db.activity_log_repository import get_activity_log_repository
from benzochem_admin.db.api_keys_repository import get_api_key_repository
from benzochem_admin.models.activity_log_model import ActivityAction
from benzochem_admin.models.api_key_model import APIKey, APIKeyEnvironment
from benzochem_admin.services.rate_limiter import (
    FixedWindowRateLimiter,
    resolve_rate_limit,
)
from benzochem_admin.utils.clock import as_utc, utcnow
from benzochem_admin.utils.exceptions import (
    APIKeyNotFoundError,
    APIKeyValidationError,
)
from benzochem_admin.utils.permissions import (
    has_permission,
    normalize_permissions,
    permission_denied_message,
)
from benzochem_admin.utils.security import (
    derive_key_id,
    generate_api_key,
    hash_api_key,
    is_api_key_format,
)

logger = logging.getLogger(__name__)


class DenyReason(str, enum.Enum):
    NOT_FOUND = "NOT_FOUND"
    INACTIVE = "INACTIVE"
    EXPIRED = "EXPIRED"
    PERMISSION_DENIED = "PERMISSION_DENIED"
    RATE_LIMITED = "RATE_LIMITED"


@dataclass
class AuthorizationResult:
    """Allow, or deny with a reason the HTTP layer can map to a status code"""

    allowed: bool
    api_key: Optional[APIKey] = None
    reason: Optional[DenyReason] = None
    message: Optional[str] = None
    retry_after: Optional[int] = None
    details: Dict = field(default_factory=dict)

    @classmethod
    def allow(cls, api_key: APIKey) -> "AuthorizationResult":
        return cls(allowed=True, api_key=api_key)

    @classmethod
    def deny(
        cls,
        reason: DenyReason,
        message: str,
        api_key: Optional[APIKey] = None,
        retry_after: Optional[int] = None,
        **details,
    ) -> "AuthorizationResult":
        return cls(
            allowed=False,
            api_key=api_key,
            reason=reason,
            message=message,
            retry_after=retry_after,
            details=details,
        )


class APIKeyService:
    """Service for API key lifecycle and request authorization"""

    MAX_RETRY_ATTEMPTS = 5
    UPDATABLE_FIELDS = ("name", "permissions", "is_active", "expires_at", "rate_limit")
    RECENT_USAGE_WINDOW = timedelta(hours=24)

    def __init__(
        self,
        clock: Callable[[], datetime] = utcnow,
        rate_limiter: Optional[FixedWindowRateLimiter] = None,
    ):
        self.clock = clock
        self.rate_limiter = rate_limiter or FixedWindowRateLimiter()

    # Authorization

    def validate_api_key(self, db: Session, key: str) -> Optional[APIKey]:
        """
        Look up a presented key

        Returns the record only when it exists, is active and has not
        expired. Never raises for a bad key so callers can answer with a
        uniform "unauthorized".
        """
        if not key or not is_api_key_format(key):
            return None

        api_key = get_api_key_repository(db).get_by_key_hash(hash_api_key(key))
        if api_key is None or self._unusable_reason(api_key, self.clock()):
            return None

        return api_key

    def authorize(
        self, db: Session, key: str, required_permission: Optional[str] = None
    ) -> AuthorizationResult:
        """
        Authorize one request made with `key`

        Checks, in order: existence, active flag, expiry, permission, rate
        limits. On success the usage counter, last-used time and window
        counters are advanced. The row is locked for the duration so
        concurrent requests on the same key are counted exactly.
        """
        now = self.clock()
        api_key = None

        if key and is_api_key_format(key):
            api_key = get_api_key_repository(db).get_by_key_hash(
                hash_api_key(key), for_update=True
            )

        try:
            result = self._evaluate(api_key, required_permission, now)
            if result.allowed:
                self._record_usage(api_key, now)
            db.commit()
        except Exception:
            db.rollback()
            raise

        if result.allowed:
            logger.debug(f"API key {api_key.key_id} authorized for {required_permission}")
        else:
            key_ref = api_key.key_id if api_key else "unknown"
            logger.warning(
                f"API key {key_ref} denied ({result.reason.value}): {result.message}"
            )

        return result

    def _unusable_reason(
        self, api_key: APIKey, now: datetime
    ) -> Optional[Tuple[DenyReason, str]]:
        if not api_key.is_active:
            return DenyReason.INACTIVE, "API key is inactive or has been revoked"

        expires_at = as_utc(api_key.expires_at)
        if expires_at is not None and expires_at <= now:
            return (
                DenyReason.EXPIRED,
                f"API key expired on {expires_at.strftime('%Y-%m-%d %H:%M:%S UTC')}",
            )

        return None

    def _evaluate(
        self,
        api_key: Optional[APIKey],
        required_permission: Optional[str],
        now: datetime,
    ) -> AuthorizationResult:
        if api_key is None:
            return AuthorizationResult.deny(
                DenyReason.NOT_FOUND, "Invalid or expired API key"
            )

        unusable = self._unusable_reason(api_key, now)
        if unusable:
            reason, message = unusable
            return AuthorizationResult.deny(reason, message, api_key=api_key)

        # Permission is checked before rate limits: a missing scope is a
        # caller misconfiguration, not transient load
        if required_permission and not has_permission(
            api_key.permissions, required_permission
        ):
            return AuthorizationResult.deny(
                DenyReason.PERMISSION_DENIED,
                permission_denied_message(required_permission),
                api_key=api_key,
                missing_permission=required_permission,
                available_permissions=list(api_key.permissions),
            )

        decision = self.rate_limiter.check(
            api_key.rate_limit, api_key.rate_limit_counts, api_key.rate_limit_resets, now
        )
        if not decision.allowed:
            return AuthorizationResult.deny(
                DenyReason.RATE_LIMITED,
                decision.message,
                api_key=api_key,
                retry_after=decision.retry_after,
                window=decision.window,
                limit=decision.limit,
            )

        return AuthorizationResult.allow(api_key)

    def _record_usage(self, api_key: APIKey, now: datetime) -> None:
        counts, resets = self.rate_limiter.record(
            api_key.rate_limit_counts, api_key.rate_limit_resets, now
        )
        api_key.rate_limit_counts = counts
        api_key.rate_limit_resets = resets
        api_key.usage_count = (api_key.usage_count or 0) + 1
        api_key.last_used_at = now
        api_key.updated_at = now

    # Lifecycle

    def create_api_key(
        self,
        db: Session,
        name: str,
        permissions: Iterable[str],
        admin_id: str,
        environment: APIKeyEnvironment = APIKeyEnvironment.LIVE,
        rate_limit: Optional[Dict] = None,
        expires_at: Optional[datetime] = None,
    ) -> Tuple[APIKey, str]:
        """
        Create a new API key

        Args:
            db: Database session
            name: Key name
            permissions: Scope strings, duplicates collapsed
            admin_id: Creating admin
            environment: Key environment
            rate_limit: Thresholds; defaults applied if omitted
            expires_at: Optional expiry

        Returns:
            (record, plaintext key). The plaintext is not stored and is
            only available here.

        Raises:
            APIKeyValidationError: If validation fails
        """
        name = self._clean_name(name)
        permissions = self._clean_permissions(permissions)
        rate_limit = self._clean_rate_limit(rate_limit)
        environment = APIKeyEnvironment(environment)
        now = self.clock()
        expires_at = self._clean_expiry(expires_at, now)

        repo = get_api_key_repository(db)
        secret, key_hash, key_id = self._unique_secret(repo, environment)
        counts, resets = self.rate_limiter.reset(now)

        try:
            api_key = repo.create(
                name=name,
                key_hash=key_hash,
                key_id=key_id,
                environment=environment,
                permissions=permissions,
                is_active=True,
                rate_limit=rate_limit,
                rate_limit_counts=counts,
                rate_limit_resets=resets,
                usage_count=0,
                expires_at=expires_at,
                created_by=admin_id,
                created_at=now,
                updated_at=now,
            )
            get_activity_log_repository(db).record(
                ActivityAction.API_KEY_CREATED,
                entity_id=api_key.id,
                performed_by=admin_id,
                new_values={
                    "name": name,
                    "key_id": key_id,
                    "environment": environment,
                    "permissions": permissions,
                    "expires_at": expires_at,
                },
            )
            db.commit()
        except Exception:
            db.rollback()
            raise

        logger.info(f"API key {key_id} created by admin {admin_id}: {name}")
        return api_key, secret

    def update_api_key(
        self, db: Session, api_key_id: str, updated_by: str, changes: Dict
    ) -> APIKey:
        """
        Merge provided fields into a stored key

        Raises:
            APIKeyNotFoundError: If the key does not exist
            APIKeyValidationError: If a field is invalid
        """
        unknown = set(changes) - set(self.UPDATABLE_FIELDS)
        if unknown:
            raise APIKeyValidationError(
                f"Cannot update field(s): {', '.join(sorted(unknown))}"
            )

        now = self.clock()
        updates = {}
        if "name" in changes:
            updates["name"] = self._clean_name(changes["name"])
        if "permissions" in changes:
            updates["permissions"] = self._clean_permissions(changes["permissions"])
        if "is_active" in changes:
            if not isinstance(changes["is_active"], bool):
                raise APIKeyValidationError("is_active must be a boolean")
            updates["is_active"] = changes["is_active"]
        if "expires_at" in changes:
            updates["expires_at"] = self._clean_expiry(changes["expires_at"], now)
        if "rate_limit" in changes:
            updates["rate_limit"] = self._clean_rate_limit(changes["rate_limit"])

        repo = get_api_key_repository(db)
        try:
            api_key = repo.get_by_id(api_key_id, for_update=True)
            if not api_key:
                raise APIKeyNotFoundError("API key not found")

            old_values = {name: getattr(api_key, name) for name in updates}
            repo.update(api_key, updated_at=now, **updates)
            get_activity_log_repository(db).record(
                ActivityAction.API_KEY_UPDATED,
                entity_id=api_key.id,
                performed_by=updated_by,
                old_values=old_values,
                new_values=updates,
            )
            db.commit()
        except Exception:
            db.rollback()
            raise

        logger.info(
            f"API key {api_key.key_id} updated by admin {updated_by}: "
            f"{', '.join(updates) or 'no changes'}"
        )
        return api_key

    def revoke_api_key(
        self,
        db: Session,
        api_key_id: str,
        revoked_by: str,
        reason: Optional[str] = None,
    ) -> APIKey:
        """
        Revoke an API key

        Revoking an already revoked key succeeds and records the latest
        caller.

        Raises:
            APIKeyNotFoundError: If the key does not exist
        """
        now = self.clock()
        repo = get_api_key_repository(db)

        try:
            api_key = repo.get_by_id(api_key_id, for_update=True)
            if not api_key:
                raise APIKeyNotFoundError("API key not found")

            was_active = api_key.is_active
            repo.update(
                api_key,
                is_active=False,
                revoked_at=now,
                revoked_by=revoked_by,
                revocation_reason=reason,
                updated_at=now,
            )
            get_activity_log_repository(db).record(
                ActivityAction.API_KEY_REVOKED,
                entity_id=api_key.id,
                performed_by=revoked_by,
                old_values={"is_active": was_active},
                new_values={
                    "is_active": False,
                    "revoked_at": now,
                    "revocation_reason": reason,
                },
            )
            db.commit()
        except Exception:
            db.rollback()
            raise

        logger.info(f"API key {api_key.key_id} revoked by admin {revoked_by}")
        return api_key

    def rotate_api_key(
        self,
        db: Session,
        api_key_id: str,
        rotated_by: str,
        reason: Optional[str] = None,
    ) -> Tuple[APIKey, str]:
        """
        Replace the secret of an active key, keeping its settings

        Returns:
            (record, new plaintext key)

        Raises:
            APIKeyNotFoundError: If the key does not exist
            APIKeyValidationError: If the key is inactive
        """
        now = self.clock()
        repo = get_api_key_repository(db)

        try:
            api_key = repo.get_by_id(api_key_id, for_update=True)
            if not api_key:
                raise APIKeyNotFoundError("API key not found")

            if not api_key.is_active:
                raise APIKeyValidationError("Cannot rotate inactive API key")

            old_key_id = api_key.key_id
            secret, key_hash, key_id = self._unique_secret(repo, api_key.environment)
            counts, resets = self.rate_limiter.reset(now)

            repo.update(
                api_key,
                key_hash=key_hash,
                key_id=key_id,
                rate_limit_counts=counts,
                rate_limit_resets=resets,
                rotated_at=now,
                rotated_by=rotated_by,
                rotation_reason=reason,
                updated_at=now,
            )
            get_activity_log_repository(db).record(
                ActivityAction.API_KEY_ROTATED,
                entity_id=api_key.id,
                performed_by=rotated_by,
                old_values={"key_id": old_key_id, "usage_count": api_key.usage_count},
                new_values={
                    "key_id": key_id,
                    "rotated_at": now,
                    "rotation_reason": reason,
                },
            )
            db.commit()
        except Exception:
            db.rollback()
            raise

        logger.info(f"API key {old_key_id} rotated to {key_id} by admin {rotated_by}")
        return api_key, secret

    def delete_api_key(
        self,
        db: Session,
        api_key_id: str,
        deleted_by: str,
        reason: Optional[str] = None,
    ) -> bool:
        """
        Permanently delete an API key

        Returns:
            True if a record existed and was deleted, False otherwise
        """
        repo = get_api_key_repository(db)

        try:
            api_key = repo.get_by_id(api_key_id, for_update=True)
            if not api_key:
                db.rollback()
                return False

            get_activity_log_repository(db).record(
                ActivityAction.API_KEY_DELETED,
                entity_id=api_key.id,
                performed_by=deleted_by,
                old_values={
                    "name": api_key.name,
                    "key_id": api_key.key_id,
                    "environment": api_key.environment,
                    "permissions": api_key.permissions,
                    "is_active": api_key.is_active,
                    "usage_count": api_key.usage_count,
                },
                new_values={"deleted": True, "deletion_reason": reason},
            )
            repo.delete(api_key)
            db.commit()
        except Exception:
            db.rollback()
            raise

        logger.info(f"API key {api_key.key_id} deleted by admin {deleted_by}")
        return True

    # Dashboard reads

    def get_api_key(self, db: Session, api_key_id: str) -> APIKey:
        api_key = get_api_key_repository(db).get_by_id(api_key_id)
        if not api_key:
            raise APIKeyNotFoundError("API key not found")
        return api_key

    def list_api_keys(
        self,
        db: Session,
        search: Optional[str] = None,
        is_active: Optional[bool] = None,
        created_by: Optional[str] = None,
        limit: int = 50,
        offset: int = 0,
    ) -> List[APIKey]:
        return get_api_key_repository(db).search(
            search=search,
            is_active=is_active,
            created_by=created_by,
            limit=limit,
            offset=offset,
        )

    def get_api_key_stats(self, db: Session) -> Dict[str, int]:
        repo = get_api_key_repository(db)
        now = self.clock()

        total = repo.count_all()
        active = repo.count_active()
        return {
            "total": total,
            "active": active,
            "inactive": total - active,
            "expired": repo.count_expired(now),
            "recently_used": repo.count_used_since(now - self.RECENT_USAGE_WINDOW),
            "total_usage": repo.total_usage(),
        }

    # Helpers

    def _unique_secret(self, repo, environment: APIKeyEnvironment) -> Tuple[str, str, str]:
        for _ in range(self.MAX_RETRY_ATTEMPTS):
            secret = generate_api_key(APIKeyEnvironment(environment).value)
            key_hash = hash_api_key(secret)
            key_id = derive_key_id(secret)
            if not repo.key_exists(key_hash, key_id):
                return secret, key_hash, key_id

        raise APIKeyValidationError(
            "Failed to generate unique API key after multiple attempts"
        )

    @staticmethod
    def _clean_name(name: Optional[str]) -> str:
        name = (name or "").strip()
        if not name:
            raise APIKeyValidationError("API key name is required")
        if len(name) > 100:
            raise APIKeyValidationError("API key name must be at most 100 characters")
        return name

    @staticmethod
    def _clean_permissions(permissions: Optional[Iterable[str]]) -> List[str]:
        if permissions is None or isinstance(permissions, str):
            raise APIKeyValidationError("Permissions must be a list of strings")
        try:
            cleaned = normalize_permissions(permissions)
        except ValueError as e:
            raise APIKeyValidationError(str(e))
        if not cleaned:
            raise APIKeyValidationError("At least one permission is required")
        return cleaned

    @staticmethod
    def _clean_rate_limit(rate_limit: Optional[Dict]) -> Dict:
        try:
            return resolve_rate_limit(rate_limit)
        except ValueError as e:
            raise APIKeyValidationError(str(e))

    @staticmethod
    def _clean_expiry(expires_at: Optional[datetime], now: datetime) -> Optional[datetime]:
        if expires_at is None:
            return None
        expires_at = as_utc(expires_at)
        if expires_at <= now:
            raise APIKeyValidationError("Expiry must be in the future")
        return expires_at


api_key_service = APIKeyService()
