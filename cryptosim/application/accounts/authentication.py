"""
Use cases: Trader and operator authentication.

Input: RegisterCommand, LoginCommand, AdminLoginCommand, refresh token, bearer token
Output: AuthResult (account + token pair) or Principal
Side effects: Creates users; records last login time/IP; stores and
    clears refresh token fingerprints.
Failure cases: ConflictError, InvalidCredentialsError, InactiveAccountError,
    InvalidTokenError, IpNotWhitelistedError.
"""

import logging
import uuid
from typing import Any, Optional, Union

from cryptosim.application.accounts.dtos import (
    AdminLoginCommand,
    AuthResult,
    LoginCommand,
    RegisterCommand,
)
from cryptosim.domain.accounts.entities import (
    Admin,
    Principal,
    PrincipalKind,
    Role,
    TokenPair,
    User,
)
from cryptosim.domain.accounts.errors import (
    InactiveAccountError,
    InvalidCredentialsError,
    InvalidTokenError,
    IpNotWhitelistedError,
)
from cryptosim.domain.accounts.ports import (
    AdminRepository,
    PasswordHasher,
    TokenService,
    UserRepository,
)
from cryptosim.domain.clock import utc_now
from cryptosim.domain.errors import ConflictError
from cryptosim.domain.settings.entities import IP_WHITELIST_ENABLED_KEY, ip_allowed
from cryptosim.domain.settings.ports import IpWhitelistRepository, SettingRepository

logger = logging.getLogger(__name__)


class AuthService:
    """Issues, rotates and verifies tokens for traders and operators.

    Both account kinds share the refresh endpoint; the ``type`` claim
    tells them apart.
    """

    def __init__(
        self,
        users: UserRepository,
        admins: AdminRepository,
        hasher: PasswordHasher,
        tokens: TokenService,
        settings: SettingRepository,
        ip_whitelist: IpWhitelistRepository,
    ) -> None:
        self._users = users
        self._admins = admins
        self._hasher = hasher
        self._tokens = tokens
        self._settings = settings
        self._ip_whitelist = ip_whitelist

    # ── Token helpers ────────────────────────────────────────────

    def _claims(self, account: Union[User, Admin]) -> dict[str, Any]:
        if isinstance(account, Admin):
            return {
                "sub": account.id,
                "username": account.username,
                "email": account.email,
                "roles": [Role.ADMIN.value],
                "permissions": list(account.permissions),
                "type": PrincipalKind.ADMIN.value,
            }
        return {
            "sub": account.id,
            "email": account.email,
            "roles": list(account.roles),
            "type": PrincipalKind.USER.value,
        }

    def _issue(self, account: Union[User, Admin]) -> TokenPair:
        claims = self._claims(account)
        refresh_claims = {"sub": claims["sub"], "type": claims["type"]}
        access = self._tokens.issue_access(claims)
        refresh = self._tokens.issue_refresh(refresh_claims)
        account.refresh_token_hash = self._tokens.fingerprint(refresh)
        return TokenPair(
            access_token=access,
            refresh_token=refresh,
            expires_in=self._tokens.access_ttl_seconds,
        )

    # ── Traders ──────────────────────────────────────────────────

    def register(self, command: RegisterCommand) -> AuthResult:
        """Create a trader account and sign it in.

        Raises:
            ConflictError: If the email or phone number is taken.
        """
        if self._users.get_by_email(command.email) is not None:
            raise ConflictError("email", command.email)
        if command.phone_number and self._users.get_by_phone(command.phone_number) is not None:
            raise ConflictError("phone_number", command.phone_number)

        user = User(
            id=str(uuid.uuid4()),
            email=command.email.lower(),
            display_name=command.display_name,
            phone_number=command.phone_number or None,
            password_hash=self._hasher.hash(command.password),
        )
        tokens = self._issue(user)
        user = self._users.add(user)
        logger.info("Registered user id=%s", user.id)
        return AuthResult(account=user, tokens=tokens)

    def login(self, command: LoginCommand) -> AuthResult:
        """Authenticate a trader by email and password.

        Raises:
            InvalidCredentialsError: Unknown email or wrong password.
            InactiveAccountError: The account was deactivated.
        """
        user = self._users.get_by_email(command.email)
        if user is None or not self._hasher.verify(command.password, user.password_hash):
            logger.warning("Failed login attempt for a trader account")
            raise InvalidCredentialsError()
        if not user.is_active:
            raise InactiveAccountError(user.id)

        user.last_login_at = utc_now()
        user.last_login_ip = command.client_ip
        tokens = self._issue(user)
        user = self._users.save(user)
        logger.info("User logged in id=%s", user.id)
        return AuthResult(account=user, tokens=tokens)

    # ── Operators ────────────────────────────────────────────────

    def _check_ip_whitelist(self, client_ip: Optional[str]) -> None:
        setting = self._settings.get(IP_WHITELIST_ENABLED_KEY)
        if setting is None or not setting.value:
            return
        rules = self._ip_whitelist.active_rules()
        if not rules:
            logger.warning("IP whitelist enabled without active entries; allowing login")
            return
        if client_ip is None or not ip_allowed(client_ip, rules):
            logger.warning("Admin login rejected for non-whitelisted IP %s", client_ip)
            raise IpNotWhitelistedError(client_ip or "unknown")

    def admin_login(self, command: AdminLoginCommand) -> AuthResult:
        """Authenticate an operator by username and password.

        Raises:
            IpNotWhitelistedError: The whitelist is on and the IP is not in it.
            InvalidCredentialsError: Unknown username or wrong password.
            InactiveAccountError: The operator was deactivated.
        """
        self._check_ip_whitelist(command.client_ip)
        admin = self._admins.get_by_username(command.username)
        if admin is None or not self._hasher.verify(command.password, admin.password_hash):
            logger.warning("Failed admin login for username=%s", command.username)
            raise InvalidCredentialsError()
        if not admin.is_active:
            raise InactiveAccountError(admin.id)

        admin.last_login_at = utc_now()
        admin.last_login_ip = command.client_ip
        tokens = self._issue(admin)
        admin = self._admins.save(admin)
        logger.info("Admin logged in id=%s", admin.id)
        return AuthResult(account=admin, tokens=tokens)

    # ── Shared ───────────────────────────────────────────────────

    def _load(self, claims: dict[str, Any]) -> Union[User, Admin]:
        subject = str(claims.get("sub", ""))
        if claims.get("type") == PrincipalKind.ADMIN.value:
            account: Optional[Union[User, Admin]] = self._admins.get(subject)
        else:
            account = self._users.get(subject)
        if account is None:
            raise InvalidTokenError("Account no longer exists")
        if not account.is_active:
            raise InactiveAccountError(account.id)
        return account

    def refresh(self, refresh_token: str) -> AuthResult:
        """Rotate a refresh token into a new token pair.

        The presented token must match the fingerprint stored at the
        last login or refresh; a reused or revoked token is rejected.
        """
        claims = self._tokens.decode_refresh(refresh_token)
        account = self._load(claims)
        if account.refresh_token_hash != self._tokens.fingerprint(refresh_token):
            logger.warning("Refresh token reuse or revocation for id=%s", account.id)
            raise InvalidTokenError("Refresh token revoked")

        tokens = self._issue(account)
        if isinstance(account, Admin):
            account = self._admins.save(account)
        else:
            account = self._users.save(account)
        return AuthResult(account=account, tokens=tokens)

    def logout(self, principal: Principal) -> None:
        """Revoke the stored refresh token of the caller."""
        if principal.kind is PrincipalKind.ADMIN:
            admin = self._admins.get(principal.id)
            if admin is not None:
                admin.refresh_token_hash = None
                self._admins.save(admin)
        else:
            user = self._users.get(principal.id)
            if user is not None:
                user.refresh_token_hash = None
                self._users.save(user)
        logger.info("Logged out %s id=%s", principal.kind.value, principal.id)

    def authenticate(self, access_token: str) -> Principal:
        """Resolve a bearer access token to the calling principal."""
        claims = self._tokens.decode_access(access_token)
        account = self._load(claims)
        if isinstance(account, Admin):
            return Principal(
                id=account.id,
                kind=PrincipalKind.ADMIN,
                roles=(Role.ADMIN.value,),
                display_name=account.display_name or account.username,
            )
        return Principal(
            id=account.id,
            kind=PrincipalKind.USER,
            roles=tuple(account.roles),
            display_name=account.display_name,
        )

    def account_of(self, principal: Principal) -> Union[User, Admin]:
        """Return the stored account behind a principal."""
        return self._load({"sub": principal.id, "type": principal.kind.value})
