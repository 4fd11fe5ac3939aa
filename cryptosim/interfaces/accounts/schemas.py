"""
Pydantic schemas for authentication, user and admin administration.

These schemas enforce input validation and define the API contract.
No business logic belongs here.
"""

from datetime import datetime
from decimal import Decimal
from typing import Literal, Optional

from pydantic import EmailStr, Field

from cryptosim.domain.accounts.entities import (
    AdjustmentType,
    BalanceType,
    Role,
    VerificationStatus,
)
from cryptosim.interfaces.schemas import CamelModel, Money

PASSWORD_MIN_LEN = 6
PASSWORD_MAX_LEN = 128

UserSortField = Literal["createdAt", "updatedAt", "email", "displayName", "lastLoginAt"]
AdminSortField = Literal["createdAt", "updatedAt", "username", "lastLoginAt"]


# ── Auth ─────────────────────────────────────────────────────────


class RegisterRequest(CamelModel):
    email: EmailStr
    password: str = Field(..., min_length=PASSWORD_MIN_LEN, max_length=PASSWORD_MAX_LEN)
    display_name: str = Field(..., min_length=1, max_length=100)
    phone_number: Optional[str] = Field(default=None, max_length=32)


class LoginRequest(CamelModel):
    email: EmailStr
    password: str = Field(..., min_length=1, max_length=PASSWORD_MAX_LEN)


class AdminLoginRequest(CamelModel):
    username: str = Field(..., min_length=1, max_length=64)
    password: str = Field(..., min_length=PASSWORD_MIN_LEN, max_length=PASSWORD_MAX_LEN)


class RefreshRequest(CamelModel):
    refresh_token: str = Field(..., min_length=1)


class TokensOut(CamelModel):
    access_token: str
    refresh_token: str
    expires_in: int


class UserOut(CamelModel):
    """Public view of a trader; never carries password or token hashes."""

    id: str
    email: str
    display_name: str
    phone_number: Optional[str] = None
    avatar: Optional[str] = None
    id_card_front: Optional[str] = None
    id_card_back: Optional[str] = None
    roles: list[str]
    is_active: bool
    verification_status: str
    last_login_at: Optional[datetime] = None
    last_login_ip: Optional[str] = None
    demo_balance: Money
    real_balance: Money
    total_profit_loss: Money
    total_trades: int
    win_rate: Money
    created_at: datetime
    updated_at: datetime


class AdminOut(CamelModel):
    id: str
    username: str
    email: Optional[str] = None
    display_name: Optional[str] = None
    permissions: list[str]
    is_active: bool
    last_login_at: Optional[datetime] = None
    last_login_ip: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class UserAuthOut(CamelModel):
    user: UserOut
    tokens: TokensOut


class AdminAuthOut(CamelModel):
    admin: AdminOut
    tokens: TokensOut


# ── User administration ──────────────────────────────────────────


class UpdateUserRequest(CamelModel):
    email: Optional[EmailStr] = None
    display_name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    phone_number: Optional[str] = Field(default=None, max_length=32)
    avatar: Optional[str] = None
    verification_status: Optional[VerificationStatus] = None
    is_active: Optional[bool] = None


class SetRolesRequest(CamelModel):
    roles: list[Role] = Field(..., min_length=1)


class AdjustBalanceRequest(CamelModel):
    """Balance adjustment; ``set`` overwrites, the others add or subtract."""

    balance_type: BalanceType
    adjustment_type: AdjustmentType
    amount: Decimal = Field(..., gt=0, max_digits=20, decimal_places=8)
    reason: Optional[str] = Field(default=None, max_length=255)


class ResetPasswordRequest(CamelModel):
    new_password: str = Field(..., min_length=PASSWORD_MIN_LEN, max_length=PASSWORD_MAX_LEN)


# ── Admin accounts ───────────────────────────────────────────────


class CreateAdminRequest(CamelModel):
    username: str = Field(..., min_length=3, max_length=64)
    password: str = Field(..., min_length=PASSWORD_MIN_LEN, max_length=PASSWORD_MAX_LEN)
    email: Optional[EmailStr] = None
    display_name: Optional[str] = Field(default=None, max_length=100)
    permissions: list[str] = Field(default_factory=list)
    is_active: bool = True


class UpdateAdminRequest(CamelModel):
    username: Optional[str] = Field(default=None, min_length=3, max_length=64)
    password: Optional[str] = Field(
        default=None, min_length=PASSWORD_MIN_LEN, max_length=PASSWORD_MAX_LEN
    )
    email: Optional[EmailStr] = None
    display_name: Optional[str] = Field(default=None, max_length=100)
    permissions: Optional[list[str]] = None
    is_active: Optional[bool] = None
