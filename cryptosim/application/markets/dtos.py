"""
Data Transfer Objects for market sessions.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from cryptosim.domain.markets.entities import (
    MarketResult,
    MarketSession,
    SubMarket,
    TradeTypeRule,
)


@dataclass(frozen=True)
class CreateMarketSessionCommand:
    name: str
    start_time: datetime
    end_time: datetime
    description: Optional[str] = None
    initial_result: MarketResult = MarketResult.PENDING
    trade_types: tuple[TradeTypeRule, ...] = ()
    asset_type: Optional[str] = None
    created_by_id: Optional[str] = None
    created_by_name: Optional[str] = None


@dataclass(frozen=True)
class UpdateMarketSessionCommand:
    session_id: str
    name: Optional[str] = None
    description: Optional[str] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    initial_result: Optional[MarketResult] = None
    actual_result: Optional[MarketResult] = None
    trade_types: Optional[tuple[TradeTypeRule, ...]] = None
    asset_type: Optional[str] = None


@dataclass(frozen=True)
class MarketSessionDetail:
    session: MarketSession
    sub_markets: list[SubMarket] = field(default_factory=list)


@dataclass(frozen=True)
class StartSessionResult:
    session: MarketSession
    sub_markets_created: int
