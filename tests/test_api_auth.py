"""
API tests for trader and operator authentication.

Runs against the real application with an in-memory database.
"""

from fastapi.testclient import TestClient

from cryptosim.core.config import settings
from cryptosim.main import create_app
from helpers import OPERATOR_PASSWORD, bearer, login_admin, login_user

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64
OPERATOR_LOGIN = {"username": "ops", "password": OPERATOR_PASSWORD}


def _whitelist_office(client, headers: dict) -> None:
    created = client.post(
        "/api/admin/settings/ip-whitelist",
        json={"ipAddress": "10.0.0.0/8", "description": "office"},
        headers=headers,
    )
    assert created.status_code == 201
    client.put(
        "/api/admin/settings/ip-whitelist/config", json={"enabled": True}, headers=headers
    )


class TestTraderAuthApi:
    def test_register_then_me(self, client) -> None:
        resp = client.post(
            "/api/auth/register",
            json={"email": "New@Mail.com", "password": "Password123", "displayName": "Newbie"},
        )
        assert resp.status_code == 201
        data = resp.json()["data"]
        assert data["user"]["email"] == "new@mail.com"
        assert data["user"]["roles"] == ["trader"]
        assert "passwordHash" not in data["user"]

        me = client.get("/api/auth/me", headers=bearer(data["tokens"]["accessToken"]))
        assert me.status_code == 200
        assert me.json()["data"]["displayName"] == "Newbie"

    def test_register_duplicate_email(self, client, create_user) -> None:
        create_user("taken@mail.com")
        resp = client.post(
            "/api/auth/register",
            json={"email": "taken@mail.com", "password": "Password123", "displayName": "Dup"},
        )
        assert resp.status_code == 409
        assert resp.json()["error"] == "Conflict"

    def test_register_validates_input(self, client) -> None:
        resp = client.post(
            "/api/auth/register",
            json={"email": "not-an-email", "password": "x", "displayName": ""},
        )
        assert resp.status_code == 422

    def test_login_records_peer_ip_not_forwarded_header(self, client, create_user) -> None:
        create_user("ip@mail.com")
        resp = client.post(
            "/api/auth/login",
            json={"email": "ip@mail.com", "password": "Password123"},
            headers={"X-Forwarded-For": "203.0.113.7"},
        )
        assert resp.status_code == 200
        assert resp.json()["data"]["user"]["lastLoginIp"] == "testclient"

    def test_bad_password_is_401(self, client, create_user) -> None:
        create_user("bad@mail.com")
        resp = client.post(
            "/api/auth/login", json={"email": "bad@mail.com", "password": "wrong-pass"}
        )
        assert resp.status_code == 401
        assert resp.headers["WWW-Authenticate"] == "Bearer"
        assert resp.json() == {"error": "Unauthorized", "detail": "Invalid credentials"}

    def test_deactivated_user_cannot_login(self, client, create_user) -> None:
        create_user("off@mail.com", is_active=False)
        resp = client.post(
            "/api/auth/login", json={"email": "off@mail.com", "password": "Password123"}
        )
        assert resp.status_code == 401

    def test_me_requires_token(self, client) -> None:
        resp = client.get("/api/auth/me")
        assert resp.status_code == 401
        assert resp.json()["detail"] == "Missing bearer token"

    def test_garbage_token(self, client) -> None:
        assert client.get("/api/auth/me", headers=bearer("nope")).status_code == 401

    def test_refresh_rotates_tokens(self, client, trader) -> None:
        old = trader["tokens"]["refreshToken"]
        resp = client.post("/api/auth/refresh", json={"refreshToken": old})
        assert resp.status_code == 200
        fresh = resp.json()["data"]
        assert fresh["refreshToken"] != old
        assert fresh["expiresIn"] > 0

        reused = client.post("/api/auth/refresh", json={"refreshToken": old})
        assert reused.status_code == 401

    def test_logout_revokes_refresh_token(self, client, trader) -> None:
        resp = client.post("/api/auth/logout", headers=trader["headers"])
        assert resp.status_code == 200
        assert resp.json()["data"]["message"] == "Logged out"

        refreshed = client.post(
            "/api/auth/refresh", json={"refreshToken": trader["tokens"]["refreshToken"]}
        )
        assert refreshed.status_code == 401


class TestUploadsApi:
    def test_upload_own_avatar(self, client, trader) -> None:
        resp = client.post(
            "/api/auth/upload-avatar",
            files={"file": ("me.png", PNG_BYTES, "image/png")},
            headers=trader["headers"],
        )
        assert resp.status_code == 200
        avatar = resp.json()["data"]["avatar"]
        assert "/uploads/avatars/" in avatar
        assert avatar.endswith(".png")

    def test_upload_rejects_non_image(self, client, trader) -> None:
        resp = client.post(
            "/api/auth/upload-avatar",
            files={"file": ("notes.txt", b"hello", "text/plain")},
            headers=trader["headers"],
        )
        assert resp.status_code == 400
        assert resp.json()["error"] == "Invalid upload"

    def test_upload_too_large(self, client, trader, monkeypatch) -> None:
        monkeypatch.setattr(settings, "upload_max_bytes", 16)
        resp = client.post(
            "/api/auth/upload-avatar",
            files={"file": ("big.png", PNG_BYTES, "image/png")},
            headers=trader["headers"],
        )
        assert resp.status_code == 413
        assert resp.json()["error"] == "Invalid upload"

    def test_both_id_card_sides_start_review(self, client, trader) -> None:
        for side in ("front", "back"):
            resp = client.post(
                f"/api/auth/upload-id-card?type={side}",
                files={"file": (f"{side}.jpg", PNG_BYTES, "image/jpeg")},
                headers=trader["headers"],
            )
            assert resp.status_code == 200
        user = resp.json()["data"]
        assert user["idCardFront"] and user["idCardBack"]
        assert user["verificationStatus"] == "IN_REVIEW"

    def test_operator_uploads_for_trader(self, client, trader, operator) -> None:
        resp = client.post(
            f"/api/auth/upload-avatar/{trader['user'].id}",
            files={"file": ("a.gif", PNG_BYTES, "image/gif")},
            headers=operator["headers"],
        )
        assert resp.status_code == 200
        assert resp.json()["data"]["avatar"].endswith(".gif")

    def test_trader_cannot_upload_for_others(self, client, trader) -> None:
        resp = client.post(
            f"/api/auth/upload-avatar/{trader['user'].id}",
            files={"file": ("a.png", PNG_BYTES, "image/png")},
            headers=trader["headers"],
        )
        assert resp.status_code == 403


class TestOperatorAuthApi:
    def test_admin_login_and_me(self, client, operator) -> None:
        resp = client.get("/api/admin/auth/me", headers=operator["headers"])
        assert resp.status_code == 200
        assert resp.json()["data"]["username"] == "ops"
        assert resp.json()["data"]["displayName"] == "Operations"

    def test_trader_token_is_not_an_operator(self, client, trader) -> None:
        resp = client.get("/api/admin/auth/me", headers=trader["headers"])
        assert resp.status_code == 403
        assert resp.json()["detail"] == "Operator account required"

    def test_operator_has_no_trader_profile(self, client, operator) -> None:
        resp = client.get("/api/auth/me", headers=operator["headers"])
        assert resp.status_code == 403

    def test_operator_refresh_via_shared_endpoint(self, client, operator) -> None:
        resp = client.post(
            "/api/auth/refresh", json={"refreshToken": operator["tokens"]["refreshToken"]}
        )
        assert resp.status_code == 200

    def test_whitelist_ignores_forwarded_header_from_untrusted_peer(
        self, client, operator
    ) -> None:
        _whitelist_office(client, operator["headers"])

        direct = client.post("/api/admin/auth/login", json=OPERATOR_LOGIN)
        assert direct.status_code == 403

        spoofed = client.post(
            "/api/admin/auth/login",
            json=OPERATOR_LOGIN,
            headers={"X-Forwarded-For": "10.9.9.9"},
        )
        assert spoofed.status_code == 403
        assert "testclient" in spoofed.json()["detail"]

    def test_whitelist_behind_trusted_proxy(self, client, operator, monkeypatch) -> None:
        _whitelist_office(client, operator["headers"])
        monkeypatch.setattr(settings, "trusted_proxies", ["testclient"])
        proxied = TestClient(create_app())

        allowed = proxied.post(
            "/api/admin/auth/login",
            json=OPERATOR_LOGIN,
            headers={"X-Forwarded-For": "10.4.5.6"},
        )
        assert allowed.status_code == 200

        blocked = proxied.post(
            "/api/admin/auth/login",
            json=OPERATOR_LOGIN,
            headers={"X-Forwarded-For": "8.8.8.8"},
        )
        assert blocked.status_code == 403
        assert "8.8.8.8" in blocked.json()["detail"]

        # The proxy appends the real peer; a client-supplied first hop is not trusted.
        chained = proxied.post(
            "/api/admin/auth/login",
            json=OPERATOR_LOGIN,
            headers={"X-Forwarded-For": "10.4.5.6, 8.8.8.8"},
        )
        assert chained.status_code == 403

    def test_admin_logout(self, client, operator) -> None:
        resp = client.post("/api/admin/auth/logout", headers=operator["headers"])
        assert resp.status_code == 200


class TestAdminAccountsApi:
    def test_crud(self, client, operator) -> None:
        headers = operator["headers"]
        created = client.post(
            "/api/admin/auth/admins",
            json={"username": "support", "password": "support123", "permissions": ["users"]},
            headers=headers,
        )
        assert created.status_code == 201
        admin_id = created.json()["data"]["id"]

        listed = client.get("/api/admin/auth/admins?search=supp", headers=headers)
        assert listed.json()["data"]["total"] == 1

        updated = client.put(
            f"/api/admin/auth/admins/{admin_id}",
            json={"displayName": "Support Desk", "isActive": False},
            headers=headers,
        )
        assert updated.status_code == 200
        assert updated.json()["data"]["isActive"] is False

        deleted = client.delete(f"/api/admin/auth/admins/{admin_id}", headers=headers)
        assert deleted.json()["data"]["message"] == "Admin deleted"
        missing = client.get(f"/api/admin/auth/admins/{admin_id}", headers=headers)
        assert missing.status_code == 404

    def test_duplicate_username(self, client, operator) -> None:
        resp = client.post(
            "/api/admin/auth/admins",
            json={"username": "ops", "password": "secret123"},
            headers=operator["headers"],
        )
        assert resp.status_code == 409

    def test_cannot_delete_self(self, client, operator) -> None:
        resp = client.delete(
            f"/api/admin/auth/admins/{operator['admin'].id}", headers=operator["headers"]
        )
        assert resp.status_code == 400

    def test_new_admin_can_sign_in(self, client, operator) -> None:
        client.post(
            "/api/admin/auth/admins",
            json={"username": "night", "password": "night-shift"},
            headers=operator["headers"],
        )
        assert login_admin(client, "night", "night-shift")["admin"]["username"] == "night"

    def test_trader_with_admin_role_manages_admins(self, client, create_user) -> None:
        create_user("boss@mail.com", roles=["trader", "admin"])
        tokens = login_user(client, "boss@mail.com")["tokens"]
        resp = client.get("/api/admin/auth/admins", headers=bearer(tokens["accessToken"]))
        assert resp.status_code == 200
