"""
Adapter: JWT token service.

Implements the TokenService port with PyJWT (HS256). Access and
refresh tokens are signed with different secrets so one can never
be replayed as the other. Only a SHA-256 fingerprint of the refresh
token is stored server-side.
"""

import hashlib
import uuid
from datetime import timedelta
from typing import Any

import jwt

from cryptosim.domain.accounts.errors import InvalidTokenError
from cryptosim.domain.accounts.ports import TokenService
from cryptosim.domain.clock import utc_now


class JwtTokenService(TokenService):
    """Issues and verifies HMAC-signed JWTs."""

    def __init__(
        self,
        access_secret: str,
        refresh_secret: str,
        access_ttl_seconds: int,
        refresh_ttl_seconds: int,
        algorithm: str = "HS256",
    ) -> None:
        self._access_secret = access_secret
        self._refresh_secret = refresh_secret
        self._access_ttl = access_ttl_seconds
        self._refresh_ttl = refresh_ttl_seconds
        self._algorithm = algorithm

    @property
    def access_ttl_seconds(self) -> int:
        return self._access_ttl

    def _encode(self, claims: dict[str, Any], secret: str, ttl: int) -> str:
        now = utc_now()
        payload = {
            **claims,
            "iat": now,
            "exp": now + timedelta(seconds=ttl),
            # unique per token so two refreshes in the same second differ
            "jti": uuid.uuid4().hex,
        }
        return jwt.encode(payload, secret, algorithm=self._algorithm)

    def _decode(self, token: str, secret: str) -> dict[str, Any]:
        try:
            claims = jwt.decode(
                token,
                secret,
                algorithms=[self._algorithm],
                options={"require": ["exp", "sub"]},
            )
        except jwt.ExpiredSignatureError as exc:
            raise InvalidTokenError("Token expired") from exc
        except jwt.InvalidTokenError as exc:
            raise InvalidTokenError() from exc
        return claims

    def issue_access(self, claims: dict[str, Any]) -> str:
        return self._encode(claims, self._access_secret, self._access_ttl)

    def issue_refresh(self, claims: dict[str, Any]) -> str:
        return self._encode(claims, self._refresh_secret, self._refresh_ttl)

    def decode_access(self, token: str) -> dict[str, Any]:
        return self._decode(token, self._access_secret)

    def decode_refresh(self, token: str) -> dict[str, Any]:
        return self._decode(token, self._refresh_secret)

    def fingerprint(self, token: str) -> str:
        return hashlib.sha256(token.encode("utf-8")).hexdigest()
