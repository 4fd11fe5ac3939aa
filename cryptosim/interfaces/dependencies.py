"""
Shared dependency injection for every bounded context.

Provides the request-scoped database session, process-wide adapters
(password hasher, token service, storage, exchange client) and the
authentication dependencies. Context routers build their use cases
from these in their own ``dependencies`` modules.
"""

from functools import lru_cache
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from cryptosim.application.accounts.authentication import AuthService
from cryptosim.application.settings.settings_service import SettingsService
from cryptosim.core.config import settings
from cryptosim.core.database import get_db_session
from cryptosim.domain.accounts.entities import Principal, PrincipalKind
from cryptosim.domain.accounts.errors import InvalidTokenError
from cryptosim.domain.accounts.ports import PasswordHasher, TokenService
from cryptosim.domain.errors import AccessDeniedError
from cryptosim.domain.storage import ImageStorage
from cryptosim.infrastructure.accounts.admin_repository import AdminRepositoryAdapter
from cryptosim.infrastructure.accounts.user_repository import UserRepositoryAdapter
from cryptosim.infrastructure.markets.binance_client import BinanceMarketDataAdapter
from cryptosim.infrastructure.realtime.stream import RealtimeStreamManager
from cryptosim.infrastructure.security.passwords import BcryptPasswordHasher
from cryptosim.infrastructure.security.tokens import JwtTokenService
from cryptosim.infrastructure.settings.repositories import (
    IpWhitelistRepositoryAdapter,
    SettingRepositoryAdapter,
)
from cryptosim.infrastructure.storage.local_storage import LocalImageStorage

bearer_scheme = HTTPBearer(auto_error=False)


# ── Process-wide adapters ────────────────────────────────────────


@lru_cache(maxsize=1)
def get_password_hasher() -> PasswordHasher:
    return BcryptPasswordHasher(rounds=settings.bcrypt_rounds)


@lru_cache(maxsize=1)
def get_token_service() -> TokenService:
    return JwtTokenService(
        access_secret=settings.jwt_access_secret,
        refresh_secret=settings.jwt_refresh_secret,
        access_ttl_seconds=settings.access_token_ttl_seconds,
        refresh_ttl_seconds=settings.refresh_token_ttl_seconds,
        algorithm=settings.jwt_algorithm,
    )


@lru_cache(maxsize=1)
def get_image_storage() -> ImageStorage:
    return LocalImageStorage(
        root=settings.upload_dir,
        public_base_url=settings.public_base_url,
        max_bytes=settings.upload_max_bytes,
    )


@lru_cache(maxsize=1)
def get_exchange_client() -> BinanceMarketDataAdapter:
    return BinanceMarketDataAdapter(
        base_url=settings.binance_rest_url,
        timeout=settings.binance_timeout_seconds,
    )


@lru_cache(maxsize=1)
def get_realtime_stream() -> RealtimeStreamManager:
    return RealtimeStreamManager()


# ── Request-scoped services ──────────────────────────────────────


def get_settings_service(session: Session = Depends(get_db_session)) -> SettingsService:
    return SettingsService(SettingRepositoryAdapter(session))


def build_auth_service(session: Session) -> AuthService:
    """Build AuthService on a plain session (requests, websocket handshakes)."""
    return AuthService(
        users=UserRepositoryAdapter(session),
        admins=AdminRepositoryAdapter(session),
        hasher=get_password_hasher(),
        tokens=get_token_service(),
        settings=SettingRepositoryAdapter(session),
        ip_whitelist=IpWhitelistRepositoryAdapter(session),
    )


def get_auth_service(session: Session = Depends(get_db_session)) -> AuthService:
    return build_auth_service(session)


# ── Authentication ───────────────────────────────────────────────


def client_ip(request: Request) -> Optional[str]:
    """Return the caller address.

    Forwarded headers are resolved by ``ProxyHeadersMiddleware`` and only
    for peers listed in ``settings.trusted_proxies``; a header sent by any
    other peer is ignored.
    """
    return request.client.host if request.client else None


def get_current_principal(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    auth: AuthService = Depends(get_auth_service),
) -> Principal:
    """Resolve the bearer token of the request; 401 when missing or invalid."""
    if credentials is None or credentials.scheme.lower() != "bearer":
        raise InvalidTokenError("Missing bearer token")
    return auth.authenticate(credentials.credentials)


def require_admin(principal: Principal = Depends(get_current_principal)) -> Principal:
    """Allow operators and traders holding the admin role; 403 otherwise."""
    if not principal.is_admin:
        raise AccessDeniedError("Admin role required")
    return principal


def require_operator(principal: Principal = Depends(get_current_principal)) -> Principal:
    """Allow operator (admin table) accounts only."""
    if principal.kind is not PrincipalKind.ADMIN:
        raise AccessDeniedError("Operator account required")
    return principal


def require_user(principal: Principal = Depends(get_current_principal)) -> Principal:
    """Allow trader accounts only; operators have no balances or orders."""
    if principal.kind is not PrincipalKind.USER:
        raise AccessDeniedError("Trader account required")
    return principal
