"""
Domain entities for market sessions.

A ``MarketSession`` is a time window in which operators pre-decide
whether orders win or lose. Starting it splits it into one
``SubMarket`` per (asset, duration) pair; each sub-market is a
sequence of fixed-length ``SubMarketCycle`` rounds.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from cryptosim.domain.clock import utc_now


class MarketSessionStatus(str, Enum):
    PENDING = "PENDING"
    ACTIVE = "ACTIVE"
    COMPLETED = "COMPLETED"
    CANCELED = "CANCELED"


class MarketResult(str, Enum):
    """Outcome of a session from the trader's point of view."""

    PENDING = "PENDING"
    WIN = "WIN"
    LOSE = "LOSE"


class SubMarketStatus(str, Enum):
    PENDING = "PENDING"
    ACTIVE = "ACTIVE"
    COMPLETED = "COMPLETED"
    STOPPED = "STOPPED"


class CycleStatus(str, Enum):
    PENDING = "PENDING"
    RUNNING = "RUNNING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"


@dataclass(frozen=True)
class TradeTypeRule:
    """An asset tradeable in a session and its allowed durations."""

    asset_type: str
    durations: tuple[int, ...]
    profit_rate: Optional[Decimal] = None


@dataclass
class MarketSession:
    id: str
    name: str
    start_time: datetime
    end_time: datetime
    description: Optional[str] = None
    status: MarketSessionStatus = MarketSessionStatus.PENDING
    initial_result: MarketResult = MarketResult.PENDING
    actual_result: MarketResult = MarketResult.PENDING
    trade_types: list[TradeTypeRule] = field(default_factory=list)
    asset_type: Optional[str] = None
    created_by_id: Optional[str] = None
    created_by_name: Optional[str] = None
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)

    @property
    def effective_result(self) -> MarketResult:
        """Result orders in this session settle with, PENDING if undecided."""
        if self.actual_result is not MarketResult.PENDING:
            return self.actual_result
        return self.initial_result


@dataclass
class SubMarket:
    id: str
    market_session_id: str
    name: str
    asset_type: str
    trade_duration: int
    profit_rate: Decimal
    start_time: datetime
    end_time: datetime
    status: SubMarketStatus = SubMarketStatus.PENDING
    total_cycles: int = 0
    completed_cycles: int = 0
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)


@dataclass
class SubMarketCycle:
    id: str
    sub_market_id: str
    cycle_number: int
    start_time: datetime
    end_time: datetime
    status: CycleStatus = CycleStatus.PENDING
    start_price: Optional[Decimal] = None
    end_price: Optional[Decimal] = None
    order_count: int = 0
    total_amount: Decimal = Decimal("0")
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)


@dataclass(frozen=True)
class Ticker:
    """24-hour rolling statistics for one trading pair."""

    symbol: str
    last_price: Decimal
    price_change: Decimal
    price_change_percent: Decimal
    high_price: Decimal
    low_price: Decimal
    volume: Decimal
    quote_volume: Decimal
