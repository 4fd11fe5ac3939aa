"""
Pydantic schemas for site content (CMS) endpoints.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import Field

from cryptosim.domain.cms.entities import LeaderboardType
from cryptosim.interfaces.schemas import CamelModel, Money

# ── Testimonials ─────────────────────────────────────────────────


class TestimonialIn(CamelModel):
    name: str = Field(..., min_length=1, max_length=100)
    title: str = Field(..., min_length=1, max_length=100)
    rating: int = Field(..., ge=1, le=5)
    content: str = Field(..., min_length=1, max_length=2000)


class TestimonialUpdate(CamelModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    title: Optional[str] = Field(default=None, min_length=1, max_length=100)
    rating: Optional[int] = Field(default=None, ge=1, le=5)
    content: Optional[str] = Field(default=None, min_length=1, max_length=2000)


class TestimonialOut(CamelModel):
    id: str
    name: str
    title: str
    rating: int
    content: str
    created_at: datetime
    updated_at: datetime


# ── Carousels ────────────────────────────────────────────────────


class CarouselIn(CamelModel):
    sort_order: int = Field(..., ge=0)
    content: str = Field(..., min_length=1, max_length=2000)


class CarouselUpdate(CamelModel):
    sort_order: Optional[int] = Field(default=None, ge=0)
    content: Optional[str] = Field(default=None, min_length=1, max_length=2000)


class CarouselOut(CamelModel):
    id: str
    sort_order: int
    content: str
    created_at: datetime
    updated_at: datetime


# ── Leaderboard ──────────────────────────────────────────────────


class LeaderboardIn(CamelModel):
    type: LeaderboardType
    avatar: Optional[str] = Field(default=None, max_length=500)
    country: str = Field(..., min_length=1, max_length=64)
    name: str = Field(..., min_length=1, max_length=100)
    trade_count: int = Field(..., ge=0)
    win_rate: Decimal = Field(..., ge=0, le=100, decimal_places=2)
    volume: Decimal = Field(..., ge=0)
    total_volume: Decimal = Field(..., ge=0)
    highest_trade: Decimal = Field(..., ge=0)
    lowest_trade: Decimal = Field(..., ge=0)


class LeaderboardUpdate(CamelModel):
    type: Optional[LeaderboardType] = None
    avatar: Optional[str] = Field(default=None, max_length=500)
    country: Optional[str] = Field(default=None, min_length=1, max_length=64)
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    trade_count: Optional[int] = Field(default=None, ge=0)
    win_rate: Optional[Decimal] = Field(default=None, ge=0, le=100, decimal_places=2)
    volume: Optional[Decimal] = Field(default=None, ge=0)
    total_volume: Optional[Decimal] = Field(default=None, ge=0)
    highest_trade: Optional[Decimal] = Field(default=None, ge=0)
    lowest_trade: Optional[Decimal] = Field(default=None, ge=0)


class LeaderboardOut(CamelModel):
    id: str
    type: LeaderboardType
    avatar: Optional[str] = None
    country: str
    name: str
    trade_count: int
    win_rate: Money
    volume: Money
    total_volume: Money
    highest_trade: Money
    lowest_trade: Money
    created_at: datetime
    updated_at: datetime


# ── Trading performance ──────────────────────────────────────────


class TradingPerformanceIn(CamelModel):
    trade_duration: int = Field(..., gt=0, description="Order duration in seconds")
    win_rate: Decimal = Field(..., ge=0, le=100)


class TradingPerformanceUpdate(CamelModel):
    trade_duration: Optional[int] = Field(default=None, gt=0)
    win_rate: Optional[Decimal] = Field(default=None, ge=0, le=100)


class TradingPerformanceOut(CamelModel):
    id: str
    trade_duration: int
    win_rate: Money
    created_at: datetime
    updated_at: datetime


# ── Single-value content ─────────────────────────────────────────


class ShareCopy(CamelModel):
    title: str = Field(default="", max_length=200)
    content: str = Field(default="", max_length=5000)


class DepositAddress(CamelModel):
    network: str = Field(default="", max_length=64)
    address: str = Field(default="", max_length=255)
    qr_code: Optional[str] = Field(default=None, max_length=500)
