"""
Domain entities for site content managed from the back office.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from cryptosim.domain.clock import utc_now


class LeaderboardType(str, Enum):
    DAILY = "DAILY"
    WEEKLY = "WEEKLY"
    MONTHLY = "MONTHLY"


@dataclass
class Testimonial:
    id: str
    name: str
    title: str
    rating: int
    content: str
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)


@dataclass
class CarouselItem:
    id: str
    sort_order: int
    content: str
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)


@dataclass
class LeaderboardEntry:
    """One ranked trader shown on the public leaderboard."""

    id: str
    type: LeaderboardType
    country: str
    name: str
    trade_count: int
    win_rate: Decimal
    volume: Decimal
    total_volume: Decimal
    highest_trade: Decimal
    lowest_trade: Decimal
    avatar: Optional[str] = None
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)


@dataclass
class TradingPerformance:
    """Advertised win rate for an order duration."""

    id: str
    trade_duration: int
    win_rate: Decimal
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)
