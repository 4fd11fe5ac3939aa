"""
REST client for the CryptoSim API.

Wraps ``httpx.Client`` the way the admin console talks to the API:

- attaches ``Authorization: Bearer <access token>`` when tokens are set;
- on a 401 refreshes once through ``POST /auth/refresh`` and retries the
  request; concurrent callers share one in-flight refresh;
- on a 403 calls ``on_forbidden`` and raises;
- unwraps the ``{"data": ...}`` envelope of successful responses.

Usage:
    client = ApiClient("http://localhost:8000/api", on_refresh=store.save)
    client.login_admin("admin", "secret123")
    users = UserService(client).search(page=1, pageSize=20)
"""

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any, Optional

import httpx

logger = logging.getLogger(__name__)

REFRESH_PATH = "/auth/refresh"
DEFAULT_TIMEOUT = 10.0


@dataclass(frozen=True)
class Tokens:
    access_token: str
    refresh_token: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> "Tokens":
        return cls(
            access_token=payload["accessToken"],
            refresh_token=payload.get("refreshToken"),
        )


class ApiError(Exception):
    """Non-2xx response from the API."""

    def __init__(self, status_code: int, message: str, detail: Optional[str] = None) -> None:
        super().__init__(f"HTTP {status_code}: {message}")
        self.status_code = status_code
        self.message = message
        self.detail = detail

    @classmethod
    def from_response(cls, response: httpx.Response) -> "ApiError":
        try:
            body = response.json()
        except ValueError:
            body = None
        if isinstance(body, dict):
            message = body.get("error") or body.get("detail") or response.reason_phrase
            detail = body.get("detail") if body.get("error") else None
            if not isinstance(detail, str):
                detail = None
            return cls(response.status_code, str(message), detail)
        return cls(response.status_code, response.reason_phrase)


class SessionExpiredError(ApiError):
    """The access token was rejected and could not be refreshed."""


class ForbiddenError(ApiError):
    """The caller lacks the role required by the endpoint."""


class ApiClient:
    """Synchronous API client with bearer auth and single-flight token refresh.

    Args:
        base_url: API root including the prefix, e.g. ``http://host/api``.
        tokens: Tokens restored from a previous session.
        on_refresh: Called with the new tokens after every refresh or login.
        on_logout: Called when the session cannot be recovered.
        on_forbidden: Called with the error on every 403.
        transport: Optional httpx transport, used by tests.
    """

    def __init__(
        self,
        base_url: str,
        tokens: Optional[Tokens] = None,
        on_refresh: Optional[Callable[[Tokens], None]] = None,
        on_logout: Optional[Callable[[], None]] = None,
        on_forbidden: Optional[Callable[[ApiError], None]] = None,
        timeout: float = DEFAULT_TIMEOUT,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._http = httpx.Client(
            base_url=base_url.rstrip("/"), timeout=timeout, transport=transport
        )
        self._tokens = tokens
        self._on_refresh = on_refresh
        self._on_logout = on_logout
        self._on_forbidden = on_forbidden
        self._refresh_lock = threading.Lock()

    # ── Lifecycle ────────────────────────────────────────────────

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "ApiClient":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    @property
    def tokens(self) -> Optional[Tokens]:
        return self._tokens

    def set_tokens(self, tokens: Optional[Tokens]) -> None:
        self._tokens = tokens

    # ── Authentication ───────────────────────────────────────────

    def _store_login(self, payload: dict[str, Any]) -> dict[str, Any]:
        tokens = Tokens.from_payload(payload["tokens"])
        self._tokens = tokens
        if self._on_refresh is not None:
            self._on_refresh(tokens)
        return payload

    def login(self, email: str, password: str) -> dict[str, Any]:
        """Trader login; stores the returned tokens."""
        return self._store_login(
            self.post("/auth/login", json={"email": email, "password": password})
        )

    def login_admin(self, username: str, password: str) -> dict[str, Any]:
        """Operator login; stores the returned tokens."""
        return self._store_login(
            self.post("/admin/auth/login", json={"username": username, "password": password})
        )

    def logout(self, admin: bool = False) -> None:
        """Revoke the server-side refresh token and forget local tokens."""
        try:
            self.post("/admin/auth/logout" if admin else "/auth/logout")
        finally:
            self._tokens = None

    def _refresh(self, stale_access_token: Optional[str]) -> Tokens:
        """Refresh the token pair; callers queued behind an in-flight refresh reuse it."""
        with self._refresh_lock:
            current = self._tokens
            if current is not None and current.access_token != stale_access_token:
                return current
            if current is None:
                raise SessionExpiredError(401, "Not signed in")
            if not current.refresh_token:
                self._expire()
                raise SessionExpiredError(401, "No refresh token")

            response = self._http.post(REFRESH_PATH, json={"refreshToken": current.refresh_token})
            if response.is_error:
                logger.warning("Token refresh failed with HTTP %d", response.status_code)
                self._expire()
                error = ApiError.from_response(response)
                raise SessionExpiredError(error.status_code, error.message, error.detail)

            tokens = Tokens.from_payload(response.json()["data"])
            if tokens.refresh_token is None:
                tokens = Tokens(tokens.access_token, current.refresh_token)
            self._tokens = tokens
            if self._on_refresh is not None:
                self._on_refresh(tokens)
            logger.info("Access token refreshed")
            return tokens

    def _expire(self) -> None:
        self._tokens = None
        if self._on_logout is not None:
            self._on_logout()

    # ── Requests ─────────────────────────────────────────────────

    def _send(self, method: str, path: str, **kwargs: Any) -> tuple[httpx.Response, Optional[str]]:
        headers = dict(kwargs.pop("headers", None) or {})
        tokens = self._tokens
        access = tokens.access_token if tokens else None
        if access:
            headers["Authorization"] = f"Bearer {access}"
        return self._http.request(method, path, headers=headers, **kwargs), access

    def request(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        """Send a request, refreshing and retrying once on 401.

        Raises:
            SessionExpiredError: the refresh itself failed (tokens are dropped).
            ForbiddenError: 403.
            ApiError: any other non-2xx response.
        """
        response, used_access = self._send(method, path, **kwargs)
        if response.status_code == 401 and used_access and path != REFRESH_PATH:
            self._refresh(used_access)
            # A second 401 is rejected as is; the fresh tokens are kept.
            response, _ = self._send(method, path, **kwargs)

        if response.status_code == 403:
            forbidden = ForbiddenError.from_response(response)
            if self._on_forbidden is not None:
                self._on_forbidden(forbidden)
            raise forbidden
        if response.is_error:
            raise ApiError.from_response(response)
        return response

    def call(self, method: str, path: str, **kwargs: Any) -> Any:
        """Send a request and return the unwrapped ``data`` payload."""
        response = self.request(method, path, **kwargs)
        if not response.content:
            return None
        body = response.json()
        if isinstance(body, dict) and "data" in body:
            return body["data"]
        return body

    def get(self, path: str, params: Optional[dict[str, Any]] = None) -> Any:
        return self.call("GET", path, params=_clean(params))

    def post(self, path: str, json: Any = None, **kwargs: Any) -> Any:
        return self.call("POST", path, json=json, **kwargs)

    def put(self, path: str, json: Any = None) -> Any:
        return self.call("PUT", path, json=json)

    def patch(self, path: str, json: Any = None) -> Any:
        return self.call("PATCH", path, json=json)

    def delete(self, path: str) -> Any:
        return self.call("DELETE", path)


def _clean(params: Optional[dict[str, Any]]) -> Optional[dict[str, Any]]:
    """Drop unset query parameters."""
    if params is None:
        return None
    return {key: value for key, value in params.items() if value is not None}
