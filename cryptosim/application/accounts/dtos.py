"""
Data Transfer Objects for the accounts application layer.

DTOs carry data between the interface and application layers.
They are plain dataclasses with no behavior. ``None`` on an update
command means "leave unchanged".
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Union

from cryptosim.domain.accounts.entities import (
    AdjustmentType,
    Admin,
    BalanceType,
    TokenPair,
    User,
)


@dataclass(frozen=True)
class RegisterCommand:
    email: str
    password: str
    display_name: str
    phone_number: Optional[str] = None


@dataclass(frozen=True)
class LoginCommand:
    """Input DTO for trader login.

    Attributes:
        email: Login email, matched case-insensitively.
        password: Plain password, never logged.
        client_ip: Address recorded as the last login IP.
    """

    email: str
    password: str
    client_ip: Optional[str] = None


@dataclass(frozen=True)
class AdminLoginCommand:
    username: str
    password: str
    client_ip: Optional[str] = None


@dataclass(frozen=True)
class AuthResult:
    """Output DTO of a successful login, registration or refresh."""

    account: Union[User, Admin]
    tokens: TokenPair


@dataclass(frozen=True)
class UpdateUserCommand:
    user_id: str
    email: Optional[str] = None
    display_name: Optional[str] = None
    phone_number: Optional[str] = None
    avatar: Optional[str] = None
    verification_status: Optional[str] = None
    is_active: Optional[bool] = None


@dataclass(frozen=True)
class AdjustBalanceCommand:
    """Input DTO for an operator balance adjustment.

    Attributes:
        amount: Strictly positive amount; ``set`` replaces the balance.
    """

    user_id: str
    balance_type: BalanceType
    adjustment_type: AdjustmentType
    amount: Decimal
    reason: Optional[str] = None


@dataclass(frozen=True)
class CreateAdminCommand:
    username: str
    password: str
    email: Optional[str] = None
    display_name: Optional[str] = None
    permissions: tuple[str, ...] = ()
    is_active: bool = True


@dataclass(frozen=True)
class UpdateAdminCommand:
    admin_id: str
    username: Optional[str] = None
    password: Optional[str] = None
    email: Optional[str] = None
    display_name: Optional[str] = None
    permissions: Optional[tuple[str, ...]] = None
    is_active: Optional[bool] = None


@dataclass(frozen=True)
class UploadCommand:
    """An uploaded image as received from the HTTP layer."""

    filename: str
    content_type: str
    data: bytes
