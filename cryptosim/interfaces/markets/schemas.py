"""
Pydantic schemas for market sessions and live market data.

These schemas enforce input validation and define the API contract.
No business logic belongs here.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import Field, model_validator

from cryptosim.domain.markets.entities import (
    CycleStatus,
    MarketResult,
    MarketSessionStatus,
    SubMarketStatus,
    TradeTypeRule,
)
from cryptosim.interfaces.schemas import CamelModel, Money

ASSET_PATTERN = r"^[A-Za-z0-9]{2,20}$"


class TradeTypeIn(CamelModel):
    """An asset and the order durations (seconds) offered for it."""

    asset_type: str = Field(..., pattern=ASSET_PATTERN)
    durations: list[int] = Field(..., min_length=1)
    profit_rate: Optional[Decimal] = Field(default=None, ge=0, le=10)

    @model_validator(mode="after")
    def _positive_durations(self) -> "TradeTypeIn":
        if any(duration <= 0 for duration in self.durations):
            raise ValueError("durations must be positive")
        return self

    def to_rule(self) -> TradeTypeRule:
        return TradeTypeRule(
            asset_type=self.asset_type.upper(),
            durations=tuple(self.durations),
            profit_rate=self.profit_rate,
        )


class CreateMarketSessionRequest(CamelModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    start_time: datetime
    end_time: datetime
    initial_result: MarketResult = MarketResult.PENDING
    trade_types: list[TradeTypeIn] = Field(default_factory=list)
    asset_type: Optional[str] = Field(default=None, pattern=ASSET_PATTERN)

    @model_validator(mode="after")
    def _window(self) -> "CreateMarketSessionRequest":
        if self.end_time <= self.start_time:
            raise ValueError("endTime must be after startTime")
        return self


class UpdateMarketSessionRequest(CamelModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    initial_result: Optional[MarketResult] = None
    actual_result: Optional[MarketResult] = None
    trade_types: Optional[list[TradeTypeIn]] = None
    asset_type: Optional[str] = Field(default=None, pattern=ASSET_PATTERN)


class TradeTypeOut(CamelModel):
    asset_type: str
    durations: list[int]
    profit_rate: Optional[Money] = None


class MarketSessionOut(CamelModel):
    id: str
    name: str
    description: Optional[str] = None
    start_time: datetime
    end_time: datetime
    status: MarketSessionStatus
    initial_result: MarketResult
    actual_result: MarketResult
    trade_types: list[TradeTypeOut]
    asset_type: Optional[str] = None
    created_by_id: Optional[str] = None
    created_by_name: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class SubMarketOut(CamelModel):
    id: str
    market_session_id: str
    name: str
    asset_type: str
    trade_duration: int
    profit_rate: Money
    start_time: datetime
    end_time: datetime
    status: SubMarketStatus
    total_cycles: int
    completed_cycles: int


class CycleOut(CamelModel):
    id: str
    sub_market_id: str
    cycle_number: int
    start_time: datetime
    end_time: datetime
    status: CycleStatus
    start_price: Optional[Money] = None
    end_price: Optional[Money] = None
    order_count: int
    total_amount: Money


class MarketSessionDetailOut(CamelModel):
    session: MarketSessionOut
    sub_markets: list[SubMarketOut]


class StartSessionOut(CamelModel):
    session: MarketSessionOut
    sub_markets_created: int


class SessionOrderStatsOut(CamelModel):
    session_id: str
    pending_count: int
    settled_count: int


class TickerOut(CamelModel):
    symbol: str
    last_price: Money
    price_change: Money
    price_change_percent: Money
    high_price: Money
    low_price: Money
    volume: Money
    quote_volume: Money
