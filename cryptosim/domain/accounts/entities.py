"""
Domain entities for the accounts bounded context.

Traders (``User``) hold the simulated balances; operators (``Admin``)
run the back office. Pure data objects with small invariant-keeping
methods. No framework dependencies.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from cryptosim.domain.accounts.errors import NegativeBalanceError
from cryptosim.domain.clock import utc_now


class Role(str, Enum):
    ADMIN = "admin"
    TRADER = "trader"
    VIEWER = "viewer"
    VIP = "vip"


class VerificationStatus(str, Enum):
    """Identity verification state of a trader."""

    PENDING = "PENDING"
    IN_REVIEW = "IN_REVIEW"
    VERIFIED = "VERIFIED"
    REJECTED = "REJECTED"


# Older rows were written with this value before IN_REVIEW existed.
LEGACY_UNVERIFIED = "UNVERIFIED"


class BalanceType(str, Enum):
    DEMO = "demo"
    REAL = "real"


class AdjustmentType(str, Enum):
    ADD = "add"
    SUBTRACT = "subtract"
    SET = "set"


class PrincipalKind(str, Enum):
    USER = "user"
    ADMIN = "admin"


@dataclass
class User:
    """A trader account.

    Attributes:
        id: UUID string.
        email: Unique login email.
        display_name: Name shown in the console and on orders.
        phone_number: Optional unique phone number.
        password_hash: bcrypt hash, never exposed.
        refresh_token_hash: Digest of the last issued refresh token.
        roles: Role names; "admin" grants back-office access.
        demo_balance: Balance used by DEMO orders.
        real_balance: Balance used by REAL orders.
        total_profit_loss: Sum of settled actual returns.
        total_trades: Number of settled orders.
        win_rate: Winning settled orders as a percentage.
    """

    id: str
    email: str
    display_name: str
    password_hash: str
    phone_number: Optional[str] = None
    refresh_token_hash: Optional[str] = None
    avatar: Optional[str] = None
    id_card_front: Optional[str] = None
    id_card_back: Optional[str] = None
    roles: list[str] = field(default_factory=lambda: [Role.TRADER.value])
    is_active: bool = True
    verification_status: str = VerificationStatus.PENDING.value
    last_login_at: Optional[datetime] = None
    last_login_ip: Optional[str] = None
    demo_balance: Decimal = Decimal("0")
    real_balance: Decimal = Decimal("0")
    total_profit_loss: Decimal = Decimal("0")
    total_trades: int = 0
    win_rate: Decimal = Decimal("0")
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)

    def balance(self, balance_type: BalanceType) -> Decimal:
        if balance_type is BalanceType.REAL:
            return self.real_balance
        return self.demo_balance

    def set_balance(self, balance_type: BalanceType, amount: Decimal) -> None:
        if amount < 0:
            raise NegativeBalanceError(balance_type.value, str(amount))
        if balance_type is BalanceType.REAL:
            self.real_balance = amount
        else:
            self.demo_balance = amount

    def adjust_balance(
        self, balance_type: BalanceType, adjustment: AdjustmentType, amount: Decimal
    ) -> Decimal:
        """Apply an operator balance adjustment and return the new balance.

        Raises:
            NegativeBalanceError: If the result would drop below zero.
        """
        current = self.balance(balance_type)
        if adjustment is AdjustmentType.ADD:
            new_balance = current + amount
        elif adjustment is AdjustmentType.SUBTRACT:
            new_balance = current - amount
        else:
            new_balance = amount
        self.set_balance(balance_type, new_balance)
        return new_balance

    def has_role(self, role: Role) -> bool:
        return role.value in self.roles

    def has_both_id_card_sides(self) -> bool:
        return bool(self.id_card_front and self.id_card_back)


@dataclass
class Admin:
    """A back-office operator account."""

    id: str
    username: str
    password_hash: str
    email: Optional[str] = None
    display_name: Optional[str] = None
    refresh_token_hash: Optional[str] = None
    permissions: list[str] = field(default_factory=list)
    is_active: bool = True
    last_login_at: Optional[datetime] = None
    last_login_ip: Optional[str] = None
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)


@dataclass(frozen=True)
class Principal:
    """The authenticated caller of a request."""

    id: str
    kind: PrincipalKind
    roles: tuple[str, ...] = ()
    display_name: str = ""

    @property
    def is_admin(self) -> bool:
        return self.kind is PrincipalKind.ADMIN or Role.ADMIN.value in self.roles


@dataclass(frozen=True)
class TokenPair:
    access_token: str
    refresh_token: str
    expires_in: int
