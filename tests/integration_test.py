"""
Integration Tests for Complete API Key Flows
Admin creates keys over HTTP, clients then use them against the public API
"""

import pytest

ADMIN_EMAIL = "admin@benzochem.com"
ADMIN_PASSWORD = "correct-horse-battery"

DRAFT_ITEM = {
    "product_id": "prod_42",
    "name": "Sodium Chloride",
    "quantity": 25,
    "unit": "kg",
}


def create_key(client, headers, **overrides):
    body = {"name": "Storefront", "permissions": ["products:read"]}
    body.update(overrides)
    response = client.post("/admin/api-keys", json=body, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["data"]


class TestAdminAuthentication:
    """Test admin login and session verification"""

    def test_login_and_session(self, client, admin):
        response = client.post(
            "/auth/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD}
        )
        assert response.status_code == 200
        token = response.json()["access_token"]

        session = client.get("/auth/session", headers={"Authorization": f"Bearer {token}"})

        assert session.status_code == 200
        assert session.json()["data"]["admin"]["email"] == ADMIN_EMAIL

    def test_login_wrong_password(self, client, admin):
        response = client.post(
            "/auth/login", json={"email": ADMIN_EMAIL, "password": "not-it"}
        )

        assert response.status_code == 401
        assert response.json()["error"] == "UNAUTHORIZED"
        assert response.json()["message"] == "Invalid email or password"

    def test_admin_routes_require_session(self, client, admin):
        response = client.get("/admin/api-keys")

        assert response.status_code == 401
        body = response.json()
        assert body["status_code"] == 401
        assert body["error"] == "UNAUTHORIZED"

    def test_api_key_is_not_a_session_token(self, client, admin_headers):
        secret = create_key(client, admin_headers)["api_key"]

        response = client.get(
            "/admin/api-keys", headers={"Authorization": f"Bearer {secret}"}
        )

        assert response.status_code == 401

    def test_super_admin_creates_admin(self, client, admin_headers):
        response = client.post(
            "/auth/admins",
            json={"email": "ops@benzochem.com", "password": "ops-password"},
            headers=admin_headers,
        )

        assert response.status_code == 201
        assert response.json()["data"]["admin"]["role"] == "admin"
        assert "password_hash" not in response.json()["data"]["admin"]


class TestAPIKeyManagementFlow:
    """Test the admin dashboard endpoints"""

    def test_create_returns_secret_once(self, client, admin_headers):
        data = create_key(client, admin_headers)

        assert data["api_key"].startswith("bzk_live_")
        assert data["key"]["key_id"] == data["api_key"][9:17]
        assert data["key"]["masked_key"] == f"bzk_live_{data['key']['key_id']}...****"

        fetched = client.get(f"/admin/api-keys/{data['key']['id']}", headers=admin_headers)
        assert fetched.status_code == 200
        assert data["api_key"] not in fetched.text

    def test_create_invalid_permission(self, client, admin_headers):
        response = client.post(
            "/admin/api-keys",
            json={"name": "Bad", "permissions": ["drop tables"]},
            headers=admin_headers,
        )

        assert response.status_code == 422
        assert response.json()["error"] == "VALIDATION_ERROR"

    def test_list_update_and_stats(self, client, admin_headers):
        key = create_key(client, admin_headers)["key"]

        listed = client.get("/admin/api-keys?search=store", headers=admin_headers)
        assert [k["id"] for k in listed.json()["data"]["keys"]] == [key["id"]]

        updated = client.patch(
            f"/admin/api-keys/{key['id']}",
            json={"name": "Storefront v2", "permissions": ["products:*"]},
            headers=admin_headers,
        )
        assert updated.status_code == 200
        assert updated.json()["data"]["name"] == "Storefront v2"
        assert updated.json()["data"]["permissions"] == ["products:*"]

        stats = client.get("/admin/api-keys/stats", headers=admin_headers)
        assert stats.json()["data"]["total"] == 1
        assert stats.json()["data"]["active"] == 1

    def test_known_permissions(self, client, admin_headers):
        response = client.get("/admin/api-keys/permissions", headers=admin_headers)

        assert response.status_code == 200
        assert "quotations:write" in response.json()["data"]["permissions"]
        assert response.json()["data"]["wildcard"] == "*"

    def test_unknown_key_is_404(self, client, admin_headers):
        for response in (
            client.get("/admin/api-keys/missing", headers=admin_headers),
            client.patch(
                "/admin/api-keys/missing", json={"name": "x"}, headers=admin_headers
            ),
            client.post("/admin/api-keys/missing/revoke", headers=admin_headers),
            client.post("/admin/api-keys/missing/rotate", headers=admin_headers),
            client.delete("/admin/api-keys/missing", headers=admin_headers),
        ):
            assert response.status_code == 404
            assert response.json()["error"] == "NOT_FOUND"

    def test_revoke_then_rotate_rejected(self, client, admin_headers):
        key = create_key(client, admin_headers)["key"]

        revoked = client.post(
            f"/admin/api-keys/{key['id']}/revoke",
            json={"reason": "Leaked in a screenshot"},
            headers=admin_headers,
        )
        assert revoked.status_code == 200
        assert revoked.json()["data"]["is_active"] is False
        assert revoked.json()["data"]["revocation_reason"] == "Leaked in a screenshot"

        rotated = client.post(f"/admin/api-keys/{key['id']}/rotate", headers=admin_headers)
        assert rotated.status_code == 400
        assert rotated.json()["error"] == "VALIDATION_ERROR"


class TestPublicAPIFlow:
    """Test API key authentication on the public v1 routes"""

    @pytest.fixture
    def quotation_key(self, client, admin_headers):
        return create_key(
            client,
            admin_headers,
            name="Mobile app",
            permissions=["products:read", "quotations:read"],
        )

    def test_key_accepted_from_every_location(self, client, quotation_key):
        secret = quotation_key["api_key"]

        for response in (
            client.get("/v1/status", headers={"Authorization": f"Bearer {secret}"}),
            client.get("/v1/status", headers={"X-API-Key": secret}),
            client.get(f"/v1/status?api_key={secret}"),
        ):
            assert response.status_code == 200
            assert response.json()["data"]["key_id"] == quotation_key["key"]["key_id"]

    def test_missing_key(self, client, admin):
        response = client.get("/v1/status")

        assert response.status_code == 401
        assert response.json()["error"] == "UNAUTHORIZED"

    def test_unknown_key(self, client, admin):
        response = client.get("/v1/status", headers={"X-API-Key": "bzk_live_" + "Z" * 32})

        assert response.status_code == 401
        assert response.json()["errors"]["reason"] == "NOT_FOUND"

    def test_missing_permission_is_403(self, client, quotation_key):
        response = client.post(
            "/v1/quotations/draft/items",
            json=DRAFT_ITEM,
            headers={"X-API-Key": quotation_key["api_key"], "X-User-Id": "user_1"},
        )

        assert response.status_code == 403
        body = response.json()
        assert body["error"] == "FORBIDDEN"
        assert body["errors"]["missing_permission"] == "quotations:write"
        assert body["errors"]["available_permissions"] == [
            "products:read",
            "quotations:read",
        ]

    def test_rate_limit_is_429_with_retry_after(self, client, admin_headers):
        secret = create_key(
            client, admin_headers, rate_limit={"requests_per_day": 1}
        )["api_key"]
        headers = {"X-API-Key": secret}

        assert client.get("/v1/status", headers=headers).status_code == 200
        response = client.get("/v1/status", headers=headers)

        assert response.status_code == 429
        assert response.json()["error"] == "RATE_LIMITED"
        assert response.json()["errors"]["window"] == "day"
        assert int(response.headers["Retry-After"]) >= 1

    def test_revoked_then_deleted_key(self, client, admin_headers, quotation_key):
        key_id = quotation_key["key"]["id"]
        headers = {"X-API-Key": quotation_key["api_key"]}

        client.post(f"/admin/api-keys/{key_id}/revoke", headers=admin_headers)
        revoked = client.get("/v1/status", headers=headers)
        assert revoked.status_code == 401
        assert revoked.json()["errors"]["reason"] == "INACTIVE"

        deleted = client.delete(
            f"/admin/api-keys/{key_id}?reason=cleanup", headers=admin_headers
        )
        assert deleted.status_code == 200
        assert client.get("/v1/status", headers=headers).json()["errors"]["reason"] == (
            "NOT_FOUND"
        )

    def test_rotation_invalidates_old_secret(self, client, admin_headers, quotation_key):
        key_id = quotation_key["key"]["id"]
        old_secret = quotation_key["api_key"]

        rotated = client.post(f"/admin/api-keys/{key_id}/rotate", headers=admin_headers)
        new_secret = rotated.json()["data"]["api_key"]

        assert rotated.status_code == 200
        assert rotated.json()["data"]["key"]["rotation_reason"] == (
            "Manual rotation via admin panel"
        )
        assert client.get("/v1/status", headers={"X-API-Key": old_secret}).status_code == 401
        assert client.get("/v1/status", headers={"X-API-Key": new_secret}).status_code == 200


class TestDraftQuotationFlow:
    """Test draft quotations through the public API"""

    @pytest.fixture
    def headers(self, client, admin_headers):
        secret = create_key(
            client, admin_headers, name="Web", permissions=["quotations:*"]
        )["api_key"]
        return {"Authorization": f"Bearer {secret}", "X-User-Id": "user_1"}

    def test_draft_lifecycle(self, client, headers):
        added = client.post("/v1/quotations/draft/items", json=DRAFT_ITEM, headers=headers)
        assert added.status_code == 201
        item_id = added.json()["data"]["id"]
        assert item_id.startswith("prod_42_")

        draft = client.get("/v1/quotations/draft", headers=headers).json()["data"]
        assert [item["id"] for item in draft["items"]] == [item_id]

        removed = client.delete(f"/v1/quotations/draft/items/{item_id}", headers=headers)
        assert removed.status_code == 200
        assert removed.json()["data"]["items"] == []

        assert client.delete("/v1/quotations/draft", headers=headers).status_code == 200
        assert client.delete("/v1/quotations/draft", headers=headers).status_code == 404

    def test_remove_unknown_item(self, client, headers):
        client.post("/v1/quotations/draft/items", json=DRAFT_ITEM, headers=headers)

        response = client.delete("/v1/quotations/draft/items/nope", headers=headers)

        assert response.status_code == 404
        assert response.json()["error"] == "NOT_FOUND"

    def test_update_notes(self, client, headers):
        response = client.put(
            "/v1/quotations/draft/notes",
            json={"notes": "Deliver to Lagos warehouse"},
            headers=headers,
        )

        assert response.status_code == 200
        assert response.json()["data"]["notes"] == "Deliver to Lagos warehouse"

    def test_user_header_required(self, client, headers):
        response = client.get(
            "/v1/quotations/draft",
            headers={"Authorization": headers["Authorization"]},
        )

        assert response.status_code == 422


class TestActivityLogFlow:
    """Test reading the audit trail through the admin API"""

    def test_lifecycle_is_listed_and_filtered(self, client, admin, admin_headers):
        key = create_key(client, admin_headers)["key"]
        create_key(client, admin_headers, name="Other")
        client.post(
            f"/admin/api-keys/{key['id']}/revoke",
            json={"reason": "Leaked"},
            headers=admin_headers,
        )

        response = client.get(
            f"/admin/activity-logs?entity_id={key['id']}", headers=admin_headers
        )
        assert response.status_code == 200
        logs = response.json()["data"]["logs"]
        assert {log["action"] for log in logs} == {"api_key_created", "api_key_revoked"}
        assert all(log["performed_by"] == admin.id for log in logs)

        revoked = client.get(
            "/admin/activity-logs?action=api_key_revoked", headers=admin_headers
        ).json()["data"]
        assert revoked["count"] == 1
        assert revoked["logs"][0]["new_values"]["revocation_reason"] == "Leaked"

    def test_stats(self, client, admin_headers):
        key = create_key(client, admin_headers)["key"]
        client.delete(f"/admin/api-keys/{key['id']}", headers=admin_headers)

        response = client.get("/admin/activity-logs/stats", headers=admin_headers)

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["total"] == 2
        assert data["by_action"] == {"api_key_created": 1, "api_key_deleted": 1}
        assert data["recent_activity"] == 2

    def test_inverted_date_range_rejected(self, client, admin_headers):
        response = client.get(
            "/admin/activity-logs"
            "?start_date=2026-03-02T00:00:00Z&end_date=2026-03-01T00:00:00Z",
            headers=admin_headers,
        )

        assert response.status_code == 400
        assert response.json()["error"] == "VALIDATION_ERROR"

    def test_requires_admin_session(self, client, admin):
        for path in ("/admin/activity-logs", "/admin/activity-logs/stats"):
            assert client.get(path).status_code == 401

    def test_unknown_action_is_422(self, client, admin_headers):
        response = client.get("/admin/activity-logs?action=nope", headers=admin_headers)

        assert response.status_code == 422
