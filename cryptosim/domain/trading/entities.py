"""
Domain entities for the trading bounded context.

A ``Transaction`` is one simulated binary-option order: the trader
bets that the price of an asset will be above (CALL) or below (PUT)
the entry price when the order expires.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from cryptosim.domain.accounts.entities import BalanceType
from cryptosim.domain.clock import utc_now


class TradeDirection(str, Enum):
    CALL = "CALL"
    PUT = "PUT"


class TransactionStatus(str, Enum):
    PENDING = "PENDING"
    SETTLED = "SETTLED"
    CANCELED = "CANCELED"


class AccountType(str, Enum):
    DEMO = "DEMO"
    REAL = "REAL"

    @property
    def balance_type(self) -> BalanceType:
        return BalanceType.REAL if self is AccountType.REAL else BalanceType.DEMO


class TradeResult(str, Enum):
    WIN = "WIN"
    LOSE = "LOSE"


@dataclass
class Transaction:
    """A simulated order.

    Attributes:
        order_number: Public identifier, ``TXN`` + ms timestamp + suffix.
        entry_time: When the order was opened.
        expiry_time: entry_time + duration seconds.
        spread: Simulated spread, 0.01% of the entry price.
        return_rate: Payout multiplier applied to the stake on a win.
        actual_return: Realised profit (positive) or loss (negative).
        is_managed: Whether the order was opened while managed mode was on.
    """

    id: str
    user_id: str
    order_number: str
    asset_type: str
    direction: TradeDirection
    entry_time: datetime
    expiry_time: datetime
    duration: int
    entry_price: Decimal
    invest_amount: Decimal
    return_rate: Decimal
    spread: Decimal = Decimal("0")
    user_name: Optional[str] = None
    market_session_id: Optional[str] = None
    account_type: AccountType = AccountType.DEMO
    current_price: Optional[Decimal] = None
    exit_price: Optional[Decimal] = None
    actual_return: Decimal = Decimal("0")
    status: TransactionStatus = TransactionStatus.PENDING
    is_managed: bool = False
    settled_at: Optional[datetime] = None
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)

    @property
    def is_pending(self) -> bool:
        return self.status is TransactionStatus.PENDING


@dataclass(frozen=True)
class TradingStatistics:
    """Aggregate trading figures for one trader."""

    account_balance: Decimal
    total_profit_loss: Decimal
    win_rate: Decimal
    total_trades: int
    settled_trades: int
    winning_trades: int
    losing_trades: int
