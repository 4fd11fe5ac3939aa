"""
Tests for the Python API client.

The API is simulated with ``httpx.MockTransport``.
"""

import threading
import time
from concurrent.futures import ThreadPoolExecutor

import httpx
import pytest

from cryptosim.client import ApiClient, ApiError, ForbiddenError, SessionExpiredError, Tokens
from cryptosim.client.services import TransactionService, UserService


class FakeApi:
    """Tiny stand-in for the server: valid access tokens live in ``self.valid``."""

    def __init__(self) -> None:
        self.valid = {"access-1"}
        self.refresh_ok = True
        self.refresh_grants = True
        self.refresh_delay = 0.0
        self.requests: list[httpx.Request] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path
        if path == "/api/admin/auth/login":
            return httpx.Response(
                200,
                json={"data": {"admin": {"username": "ops"}, "tokens": _tokens("access-1", "r-1")}},
            )
        if path == "/api/auth/refresh":
            if not self.refresh_ok:
                return httpx.Response(
                    401, json={"error": "Unauthorized", "detail": "Refresh token revoked"}
                )
            time.sleep(self.refresh_delay)
            if self.refresh_grants:
                self.valid = {"access-2"}
            return httpx.Response(200, json={"data": _tokens("access-2", "r-2")})

        token = request.headers.get("Authorization", "").removeprefix("Bearer ")
        if token not in self.valid:
            return httpx.Response(401, json={"error": "Unauthorized", "detail": "Expired"})
        if path == "/api/admin/settings":
            return httpx.Response(403, json={"error": "Forbidden", "detail": "Admin role required"})
        if path == "/api/admin/users":
            return httpx.Response(200, json={"data": {"data": [], "total": 0}})
        if path == "/api/transactions/TXN1":
            return httpx.Response(404, json={"error": "Transaction not found", "detail": "TXN1"})
        return httpx.Response(200, json={"data": {"path": path}})


def _tokens(access: str, refresh: str) -> dict:
    return {"accessToken": access, "refreshToken": refresh, "expiresIn": 900}


@pytest.fixture
def api() -> FakeApi:
    return FakeApi()


@pytest.fixture
def events() -> dict:
    return {"refreshed": [], "logout": 0, "forbidden": []}


@pytest.fixture
def client(api, events) -> ApiClient:
    def on_logout() -> None:
        events["logout"] += 1

    return ApiClient(
        "http://cryptosim.test/api/",
        on_refresh=events["refreshed"].append,
        on_logout=on_logout,
        on_forbidden=events["forbidden"].append,
        transport=httpx.MockTransport(api.handler),
    )


class TestApiClient:
    def test_login_stores_tokens(self, client, events) -> None:
        payload = client.login_admin("ops", "secret123")

        assert payload["admin"]["username"] == "ops"
        assert client.tokens == Tokens("access-1", "r-1")
        assert events["refreshed"] == [Tokens("access-1", "r-1")]

    def test_bearer_header_and_unwrap(self, client, api) -> None:
        client.login_admin("ops", "secret123")

        assert client.get("/admin/users", params={"page": 1, "search": None}) == {
            "data": [],
            "total": 0,
        }
        sent = api.requests[-1]
        assert sent.headers["Authorization"] == "Bearer access-1"
        assert dict(sent.url.params) == {"page": "1"}

    def test_refreshes_once_and_retries(self, client, api, events) -> None:
        client.set_tokens(Tokens("stale", "r-1"))
        api.valid = {"access-2"}

        assert client.get("/admin/market-sessions") == {"path": "/api/admin/market-sessions"}
        assert client.tokens.access_token == "access-2"
        assert events["refreshed"] == [Tokens("access-2", "r-2")]
        paths = [r.url.path for r in api.requests]
        assert paths == [
            "/api/admin/market-sessions",
            "/api/auth/refresh",
            "/api/admin/market-sessions",
        ]

    def test_failed_refresh_logs_out(self, client, api, events) -> None:
        client.set_tokens(Tokens("stale", "r-1"))
        api.valid = set()
        api.refresh_ok = False

        with pytest.raises(SessionExpiredError) as exc_info:
            client.get("/admin/users")

        assert exc_info.value.status_code == 401
        assert exc_info.value.detail == "Refresh token revoked"
        assert client.tokens is None
        assert events["logout"] == 1

    def test_rejected_retry_keeps_session(self, client, api, events) -> None:
        client.set_tokens(Tokens("stale", "r-1"))
        api.valid = set()
        api.refresh_grants = False

        with pytest.raises(ApiError) as exc_info:
            client.get("/admin/users")

        assert not isinstance(exc_info.value, SessionExpiredError)
        assert exc_info.value.status_code == 401
        assert client.tokens == Tokens("access-2", "r-2")
        assert events["logout"] == 0

    def test_concurrent_401s_share_one_refresh(self, client, api, events) -> None:
        client.set_tokens(Tokens("stale", "r-1"))
        api.valid = {"access-2"}
        api.refresh_delay = 0.05
        workers = 8
        start = threading.Barrier(workers)

        def fetch(_: int):
            start.wait()
            return client.get("/admin/market-sessions")

        with ThreadPoolExecutor(max_workers=workers) as pool:
            results = list(pool.map(fetch, range(workers)))

        assert results == [{"path": "/api/admin/market-sessions"}] * workers
        refreshes = [r for r in api.requests if r.url.path == "/api/auth/refresh"]
        assert len(refreshes) == 1
        assert events["refreshed"] == [Tokens("access-2", "r-2")]
        assert events["logout"] == 0

    def test_missing_refresh_token_logs_out(self, client, events) -> None:
        client.set_tokens(Tokens("stale"))
        with pytest.raises(SessionExpiredError):
            client.get("/admin/users")
        assert events["logout"] == 1

    def test_forbidden(self, client, events) -> None:
        client.login_admin("ops", "secret123")

        with pytest.raises(ForbiddenError) as exc_info:
            client.get("/admin/settings")

        assert exc_info.value.detail == "Admin role required"
        assert events["forbidden"] == [exc_info.value]

    def test_unauthenticated_401_is_plain_error(self, client, api) -> None:
        with pytest.raises(ApiError) as exc_info:
            client.get("/admin/users")

        assert not isinstance(exc_info.value, SessionExpiredError)
        assert exc_info.value.status_code == 401
        assert [r.url.path for r in api.requests] == ["/api/admin/users"]

    def test_other_errors(self, client) -> None:
        client.login_admin("ops", "secret123")
        with pytest.raises(ApiError) as exc_info:
            client.get("/transactions/TXN1")
        assert exc_info.value.status_code == 404
        assert exc_info.value.message == "Transaction not found"


class TestServices:
    def test_user_service_paths(self, client, api) -> None:
        client.login_admin("ops", "secret123")
        users = UserService(client)

        users.activate("u1")
        users.update_roles("u1", ["trader"])

        assert [(r.method, r.url.path) for r in api.requests[-2:]] == [
            ("PATCH", "/api/admin/users/u1/activate"),
            ("PATCH", "/api/admin/users/u1/roles"),
        ]

    def test_transaction_statistics_drops_unset_params(self, client, api) -> None:
        client.login_admin("ops", "secret123")
        TransactionService(client).auto_settle()
        TransactionService(client).statistics()

        assert api.requests[-2].url.path == "/api/transactions/auto-settle"
        assert api.requests[-1].url.path == "/api/transactions/statistics"
        assert api.requests[-1].url.params.get("accountType") is None
