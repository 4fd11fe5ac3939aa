"""
Domain-specific errors for the accounts bounded context.

No framework imports allowed.
"""

from cryptosim.domain.errors import (
    AccessDeniedError,
    AuthenticationError,
    BusinessRuleError,
)


class InvalidCredentialsError(AuthenticationError):
    """Raised when a login identifier or password does not match."""

    def __init__(self) -> None:
        super().__init__("Invalid credentials")


class InactiveAccountError(AuthenticationError):
    """Raised when a deactivated account tries to sign in or refresh."""

    def __init__(self, account_id: str) -> None:
        super().__init__(f"Account is deactivated: {account_id}")
        self.account_id = account_id


class InvalidTokenError(AuthenticationError):
    """Raised when a bearer or refresh token cannot be verified."""

    def __init__(self, reason: str = "Invalid or expired token") -> None:
        super().__init__(reason)


class IpNotWhitelistedError(AccessDeniedError):
    """Raised when the admin IP whitelist rejects the client address."""

    def __init__(self, ip_address: str) -> None:
        super().__init__(f"IP address not whitelisted: {ip_address}")
        self.ip_address = ip_address


class NegativeBalanceError(BusinessRuleError):
    """Raised when an adjustment would leave a balance below zero."""

    def __init__(self, balance_type: str, result: str) -> None:
        super().__init__(f"{balance_type} balance cannot be negative (result {result})")
        self.balance_type = balance_type
        self.result = result


class LastAdminError(BusinessRuleError):
    """Raised when an operation would leave no active admin."""

    def __init__(self) -> None:
        super().__init__("At least one active admin must remain")


class SelfDeletionError(BusinessRuleError):
    """Raised when an admin tries to delete its own account."""

    def __init__(self) -> None:
        super().__init__("Admins cannot delete their own account")
