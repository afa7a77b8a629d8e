"""
Test Suite for API Key Management and Authorization
"""

from datetime import timedelta

import pytest

from benzochem_admin.db.activity_log_repository import get_activity_log_repository
from benzochem_admin.models.activity_log_model import ActivityAction
from benzochem_admin.services.api_keys_service import APIKeyService, DenyReason
from benzochem_admin.services.auth_service import auth_service
from benzochem_admin.services.rate_limiter import DEFAULT_RATE_LIMIT
from benzochem_admin.utils.exceptions import APIKeyNotFoundError, APIKeyValidationError
from benzochem_admin.utils.security import derive_key_id, hash_api_key


class TestAPIKeyCreation:
    """Test issuing keys: format, storage, validation"""

    @pytest.fixture
    def service(self, clock):
        return APIKeyService(clock=clock)

    def test_create_api_key_success(self, service, db, admin):
        """Plaintext is returned once and only its hash is stored"""
        api_key, secret = service.create_api_key(
            db, name="Storefront", permissions=["products:read"], admin_id=admin.id
        )

        assert secret.startswith("bzk_live_")
        assert len(secret) == len("bzk_live_") + 32
        assert api_key.key_hash == hash_api_key(secret)
        assert api_key.key_hash != secret
        assert api_key.key_id == derive_key_id(secret)
        assert api_key.key_id == secret[len("bzk_live_"):][:8]
        assert api_key.is_active is True
        assert api_key.usage_count == 0
        assert api_key.rate_limit == DEFAULT_RATE_LIMIT
        assert api_key.created_by == admin.id

    def test_created_keys_are_unique(self, service, db, admin):
        secrets = set()
        key_ids = set()
        for i in range(5):
            api_key, secret = service.create_api_key(
                db, name=f"key-{i}", permissions=["products:read"], admin_id=admin.id
            )
            secrets.add(secret)
            key_ids.add(api_key.key_id)

        assert len(secrets) == 5
        assert len(key_ids) == 5

    def test_permissions_are_deduplicated(self, service, db, admin):
        api_key, _ = service.create_api_key(
            db,
            name="Dupes",
            permissions=["products:read", "quotations:write", "products:read"],
            admin_id=admin.id,
        )

        assert api_key.permissions == ["products:read", "quotations:write"]

    def test_dotted_and_colon_scopes_collapse(self, service, db, admin):
        api_key, _ = service.create_api_key(
            db,
            name="Mixed",
            permissions=["products:read", "products.read", "quotations.*"],
            admin_id=admin.id,
        )

        assert api_key.permissions == ["products:read", "quotations:*"]

    def test_null_burst_limit_rejected(self, service, db, admin):
        with pytest.raises(APIKeyValidationError, match="burst_limit"):
            service.create_api_key(
                db,
                name="No burst",
                permissions=["products:read"],
                admin_id=admin.id,
                rate_limit={"burst_limit": None},
            )

    def test_invalid_permission_rejected(self, service, db, admin):
        with pytest.raises(APIKeyValidationError, match="Invalid permission"):
            service.create_api_key(
                db, name="Bad", permissions=["products read"], admin_id=admin.id
            )

    def test_empty_permissions_rejected(self, service, db, admin):
        with pytest.raises(APIKeyValidationError, match="At least one permission"):
            service.create_api_key(db, name="Empty", permissions=[], admin_id=admin.id)

    def test_blank_name_rejected(self, service, db, admin):
        with pytest.raises(APIKeyValidationError, match="name is required"):
            service.create_api_key(
                db, name="   ", permissions=["products:read"], admin_id=admin.id
            )

    def test_past_expiry_rejected(self, service, db, admin, clock):
        with pytest.raises(APIKeyValidationError, match="future"):
            service.create_api_key(
                db,
                name="Stale",
                permissions=["products:read"],
                admin_id=admin.id,
                expires_at=clock.now - timedelta(days=1),
            )

    def test_partial_rate_limit_merged_with_defaults(self, service, db, admin):
        api_key, _ = service.create_api_key(
            db,
            name="Limited",
            permissions=["products:read"],
            admin_id=admin.id,
            rate_limit={"requests_per_minute": 5},
        )

        assert api_key.rate_limit["requests_per_minute"] == 5
        assert api_key.rate_limit["requests_per_hour"] == 5000

    def test_creation_is_audited(self, service, db, admin):
        api_key, _ = service.create_api_key(
            db, name="Audited", permissions=["products:read"], admin_id=admin.id
        )

        entries = get_activity_log_repository(db).get_for_entity(api_key.id)
        assert [entry.action for entry in entries] == [ActivityAction.API_KEY_CREATED]
        assert entries[0].performed_by == admin.id
        assert entries[0].new_values["key_id"] == api_key.key_id


class TestAPIKeyAuthorization:
    """Test the request path: existence, status, expiry, scope, rate limits"""

    @pytest.fixture
    def service(self, clock):
        return APIKeyService(clock=clock)

    @pytest.fixture
    def issued(self, service, db, admin):
        return service.create_api_key(
            db,
            name="Mobile app",
            permissions=["products:read", "quotations:*"],
            admin_id=admin.id,
        )

    def test_validate_returns_active_key(self, service, db, issued):
        api_key, secret = issued
        assert service.validate_api_key(db, secret).id == api_key.id

    def test_validate_unknown_and_malformed_keys(self, service, db, issued):
        assert service.validate_api_key(db, "bzk_live_" + "x" * 32) is None
        assert service.validate_api_key(db, "not-a-key") is None
        assert service.validate_api_key(db, "") is None

    def test_authorize_records_usage(self, service, db, issued, clock):
        api_key, secret = issued

        result = service.authorize(db, secret, "products:read")

        assert result.allowed is True
        assert result.api_key.usage_count == 1
        assert result.api_key.last_used_at == clock.now

    def test_unknown_key_not_found(self, service, db, issued):
        result = service.authorize(db, "bzk_live_" + "A" * 32)

        assert result.allowed is False
        assert result.reason == DenyReason.NOT_FOUND

    def test_missing_permission_denied(self, service, db, admin):
        api_key, secret = service.create_api_key(
            db, name="Read only", permissions=["products:read"], admin_id=admin.id
        )

        result = service.authorize(db, secret, "products:write")

        assert result.allowed is False
        assert result.reason == DenyReason.PERMISSION_DENIED
        assert result.details["missing_permission"] == "products:write"
        assert result.details["available_permissions"] == ["products:read"]
        assert "create or modify products" in result.message
        assert api_key.usage_count == 0

    def test_resource_wildcard_grants_actions(self, service, db, issued):
        _, secret = issued
        assert service.authorize(db, secret, "quotations:write").allowed is True
        assert service.authorize(db, secret, "quotations.read").allowed is True

    def test_revoked_key_inactive(self, service, db, admin, issued):
        api_key, secret = issued
        service.revoke_api_key(db, api_key.id, revoked_by=admin.id)

        result = service.authorize(db, secret, "products:read")

        assert result.reason == DenyReason.INACTIVE
        assert service.validate_api_key(db, secret) is None

    def test_expired_key(self, service, db, admin, clock):
        api_key, secret = service.create_api_key(
            db,
            name="Short lived",
            permissions=["products:read"],
            admin_id=admin.id,
            expires_at=clock.now + timedelta(hours=1),
        )
        assert service.authorize(db, secret).allowed is True

        clock.advance(hours=1)
        result = service.authorize(db, secret)

        assert result.reason == DenyReason.EXPIRED
        assert service.validate_api_key(db, secret) is None

    def test_per_minute_limit_and_window_rollover(self, service, db, admin, clock):
        _, secret = service.create_api_key(
            db,
            name="Throttled",
            permissions=["products:read"],
            admin_id=admin.id,
            rate_limit={"requests_per_minute": 1},
        )

        assert service.authorize(db, secret).allowed is True

        denied = service.authorize(db, secret)
        assert denied.allowed is False
        assert denied.reason == DenyReason.RATE_LIMITED
        assert denied.details["window"] == "minute"
        assert denied.retry_after == 30
        assert denied.api_key.usage_count == 1

        clock.advance(seconds=60)
        assert service.authorize(db, secret).allowed is True

    def test_permission_checked_before_rate_limit(self, service, db, admin):
        _, secret = service.create_api_key(
            db,
            name="Tight",
            permissions=["products:read"],
            admin_id=admin.id,
            rate_limit={"requests_per_minute": 1},
        )
        service.authorize(db, secret, "products:read")

        result = service.authorize(db, secret, "products:write")

        assert result.reason == DenyReason.PERMISSION_DENIED

    def test_burst_limit(self, service, db, admin, clock):
        _, secret = service.create_api_key(
            db,
            name="Bursty",
            permissions=["products:read"],
            admin_id=admin.id,
            rate_limit={"burst_limit": 2},
        )

        assert service.authorize(db, secret).allowed is True
        assert service.authorize(db, secret).allowed is True
        result = service.authorize(db, secret)

        assert result.reason == DenyReason.RATE_LIMITED
        assert result.details["window"] == "burst"
        assert result.message == "Burst rate limit exceeded"

        clock.advance(seconds=10)
        assert service.authorize(db, secret).allowed is True


class TestAPIKeyLifecycle:
    """Test update, revoke, rotate, delete and the dashboard reads"""

    @pytest.fixture
    def service(self, clock):
        return APIKeyService(clock=clock)

    @pytest.fixture
    def issued(self, service, db, admin):
        return service.create_api_key(
            db, name="Partner", permissions=["products:read"], admin_id=admin.id
        )

    def test_update_fields(self, service, db, admin, issued):
        api_key, _ = issued

        updated = service.update_api_key(
            db,
            api_key.id,
            updated_by=admin.id,
            changes={"name": "Partner v2", "permissions": ["products:*"]},
        )

        assert updated.name == "Partner v2"
        assert updated.permissions == ["products:*"]

    def test_update_unknown_key(self, service, db, admin):
        with pytest.raises(APIKeyNotFoundError):
            service.update_api_key(
                db, "missing", updated_by=admin.id, changes={"name": "x"}
            )

    def test_update_rejects_unknown_field(self, service, db, admin, issued):
        api_key, _ = issued
        with pytest.raises(APIKeyValidationError, match="key_hash"):
            service.update_api_key(
                db, api_key.id, updated_by=admin.id, changes={"key_hash": "abc"}
            )

    def test_reactivate_after_revoke(self, service, db, admin, issued):
        api_key, secret = issued
        service.revoke_api_key(db, api_key.id, revoked_by=admin.id)

        service.update_api_key(
            db, api_key.id, updated_by=admin.id, changes={"is_active": True}
        )

        assert service.authorize(db, secret).allowed is True

    def test_revoke_is_idempotent(self, service, db, admin, issued, clock):
        api_key, _ = issued
        other_admin = auth_service.create_admin(
            db, email="security@benzochem.com", password="security-pass"
        )

        first = service.revoke_api_key(db, api_key.id, admin.id, reason="Leaked")
        first_revoked_at = first.revoked_at
        clock.advance(minutes=5)
        second = service.revoke_api_key(
            db, api_key.id, other_admin.id, reason="Confirmed leak"
        )

        assert first.is_active is False
        assert second.is_active is False
        assert second.revoked_by == other_admin.id
        assert second.revocation_reason == "Confirmed leak"
        assert second.revoked_at == first_revoked_at + timedelta(minutes=5)

        actions = [
            entry.action
            for entry in get_activity_log_repository(db).get_for_entity(api_key.id)
        ]
        assert actions.count(ActivityAction.API_KEY_REVOKED) == 2

    def test_audit_values_are_json_ready(self, service, db, admin, issued, clock):
        api_key, _ = issued
        service.revoke_api_key(db, api_key.id, admin.id, reason="Leaked")

        (entry,) = get_activity_log_repository(db).search(
            entity_id=api_key.id, action=ActivityAction.API_KEY_REVOKED
        )

        assert entry.new_values["revoked_at"] == clock.now.isoformat()
        assert entry.old_values == {"is_active": True}

    def test_revoke_unknown_key(self, service, db, admin):
        with pytest.raises(APIKeyNotFoundError):
            service.revoke_api_key(db, "missing", admin.id)

    def test_rotate_replaces_secret(self, service, db, admin, issued, clock):
        api_key, old_secret = issued
        service.authorize(db, old_secret)

        rotated, new_secret = service.rotate_api_key(
            db, api_key.id, rotated_by=admin.id, reason="Scheduled"
        )

        assert new_secret != old_secret
        assert rotated.id == api_key.id
        assert rotated.key_id == derive_key_id(new_secret)
        assert rotated.rotated_at == clock.now
        assert rotated.rotation_reason == "Scheduled"
        assert rotated.usage_count == 1
        assert service.authorize(db, old_secret).reason == DenyReason.NOT_FOUND
        assert service.authorize(db, new_secret).allowed is True

    def test_rotate_inactive_key_rejected(self, service, db, admin, issued):
        api_key, _ = issued
        service.revoke_api_key(db, api_key.id, admin.id)

        with pytest.raises(APIKeyValidationError, match="inactive"):
            service.rotate_api_key(db, api_key.id, rotated_by=admin.id)

    def test_delete(self, service, db, admin, issued):
        api_key, secret = issued

        assert service.delete_api_key(db, api_key.id, deleted_by=admin.id) is True
        assert service.authorize(db, secret).reason == DenyReason.NOT_FOUND
        with pytest.raises(APIKeyNotFoundError):
            service.get_api_key(db, api_key.id)

    def test_delete_missing_key_returns_false(self, service, db, admin):
        assert service.delete_api_key(db, "missing", deleted_by=admin.id) is False

    def test_list_and_search(self, service, db, admin, issued, clock):
        clock.advance(seconds=1)
        newer, _ = service.create_api_key(
            db, name="Internal tools", permissions=["*"], admin_id=admin.id
        )

        keys = service.list_api_keys(db)
        assert [k.id for k in keys] == [newer.id, issued[0].id]

        found = service.list_api_keys(db, search="internal")
        assert [k.id for k in found] == [newer.id]

    def test_stats(self, service, db, admin, issued, clock):
        api_key, secret = issued
        service.authorize(db, secret)
        service.create_api_key(
            db,
            name="Soon expired",
            permissions=["products:read"],
            admin_id=admin.id,
            expires_at=clock.now + timedelta(minutes=5),
        )
        revoked, _ = service.create_api_key(
            db, name="Revoked", permissions=["products:read"], admin_id=admin.id
        )
        service.revoke_api_key(db, revoked.id, admin.id)
        clock.advance(minutes=10)

        stats = service.get_api_key_stats(db)

        assert stats == {
            "total": 3,
            "active": 2,
            "inactive": 1,
            "expired": 1,
            "recently_used": 1,
            "total_usage": 1,
        }
