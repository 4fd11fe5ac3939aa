"""
Data Transfer Objects for the trading application layer.

DTOs carry data between the interface and application layers.
They are plain dataclasses with no behavior.
"""

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional

from cryptosim.domain.trading.entities import (
    AccountType,
    TradeDirection,
    TradeResult,
    TransactionStatus,
)


@dataclass(frozen=True)
class OpenTradeCommand:
    """Input DTO for opening an order.

    Attributes:
        user_id: Owner of the order.
        asset_type: Traded asset, e.g. ``BTC``.
        direction: CALL (price goes up) or PUT (price goes down).
        duration: Seconds until expiry, > 0.
        entry_price: Price at entry, > 0.
        invest_amount: Stake debited from the balance, > 0.
        return_rate: Payout multiplier on a win, 0..10.
        entry_time: Defaults to now.
    """

    user_id: str
    asset_type: str
    direction: TradeDirection
    duration: int
    entry_price: Decimal
    invest_amount: Decimal
    return_rate: Decimal
    account_type: AccountType = AccountType.DEMO
    market_session_id: Optional[str] = None
    entry_time: Optional[datetime] = None


@dataclass(frozen=True)
class SettleTradeCommand:
    """Input DTO for settling an order.

    Attributes:
        owner_id: When set, the order must belong to this user.
        exit_price: Closing price; operators may omit it.
        forced_result: Operator override of the outcome.
        reason: Free text written to the audit log.
    """

    order_number: str
    exit_price: Optional[Decimal] = None
    owner_id: Optional[str] = None
    forced_result: Optional[TradeResult] = None
    reason: Optional[str] = None


@dataclass(frozen=True)
class AdminCreateTradeCommand:
    open: OpenTradeCommand
    exit_price: Optional[Decimal] = None
    auto_settle: bool = True
    status: Optional[TransactionStatus] = None
    reason: Optional[str] = None


@dataclass(frozen=True)
class AdminUpdateTradeCommand:
    order_number: str
    asset_type: Optional[str] = None
    direction: Optional[TradeDirection] = None
    entry_time: Optional[datetime] = None
    duration: Optional[int] = None
    entry_price: Optional[Decimal] = None
    current_price: Optional[Decimal] = None
    exit_price: Optional[Decimal] = None
    invest_amount: Optional[Decimal] = None
    return_rate: Optional[Decimal] = None
    actual_return: Optional[Decimal] = None
    status: Optional[TransactionStatus] = None
    market_session_id: Optional[str] = None
    reason: Optional[str] = None


@dataclass(frozen=True)
class AutoSettleResult:
    settled: int
    failed: int
