"""
SQLAlchemy ORM models.

Column names mirror the domain entity attribute names so repositories
can copy values across field by field. Enum values are stored as
plain strings; timestamps always come back timezone-aware (UTC).
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    TypeDecorator,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from cryptosim.domain.clock import ensure_utc, utc_now

MONEY = Numeric(20, 8)
RATE = Numeric(10, 4)


class UTCDateTime(TypeDecorator):
    """DateTime that stores naive UTC and returns aware UTC on every backend."""

    impl = DateTime
    cache_ok = True

    def process_bind_param(self, value: Optional[datetime], dialect) -> Optional[datetime]:
        if value is None:
            return None
        return ensure_utc(value).replace(tzinfo=None)

    def process_result_value(self, value: Optional[datetime], dialect) -> Optional[datetime]:
        if value is None:
            return None
        return ensure_utc(value)


class Base(DeclarativeBase):
    pass


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime(), default=utc_now, onupdate=utc_now)


class UserModel(TimestampMixin, Base):
    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True)
    display_name: Mapped[str] = mapped_column(String(100))
    phone_number: Mapped[Optional[str]] = mapped_column(String(32), unique=True, nullable=True)
    password_hash: Mapped[str] = mapped_column(String(255))
    refresh_token_hash: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    avatar: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)
    id_card_front: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)
    id_card_back: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)
    roles: Mapped[list[str]] = mapped_column(JSON, default=list)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    verification_status: Mapped[str] = mapped_column(String(20), default="PENDING", index=True)
    last_login_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime(), nullable=True)
    last_login_ip: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    demo_balance: Mapped[Decimal] = mapped_column(MONEY, default=Decimal("0"))
    real_balance: Mapped[Decimal] = mapped_column(MONEY, default=Decimal("0"))
    total_profit_loss: Mapped[Decimal] = mapped_column(MONEY, default=Decimal("0"))
    total_trades: Mapped[int] = mapped_column(Integer, default=0)
    win_rate: Mapped[Decimal] = mapped_column(RATE, default=Decimal("0"))


class AdminModel(TimestampMixin, Base):
    __tablename__ = "admins"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    username: Mapped[str] = mapped_column(String(50), unique=True, index=True)
    email: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    display_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    password_hash: Mapped[str] = mapped_column(String(255))
    refresh_token_hash: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    permissions: Mapped[list[str]] = mapped_column(JSON, default=list)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    last_login_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime(), nullable=True)
    last_login_ip: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)


class MarketSessionModel(TimestampMixin, Base):
    __tablename__ = "market_sessions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    name: Mapped[str] = mapped_column(String(100))
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    start_time: Mapped[datetime] = mapped_column(UTCDateTime())
    end_time: Mapped[datetime] = mapped_column(UTCDateTime())
    status: Mapped[str] = mapped_column(String(20), default="PENDING", index=True)
    initial_result: Mapped[str] = mapped_column(String(10), default="PENDING")
    actual_result: Mapped[str] = mapped_column(String(10), default="PENDING")
    trade_types: Mapped[list[dict[str, Any]]] = mapped_column(JSON, default=list)
    asset_type: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    created_by_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    created_by_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)


class SubMarketModel(TimestampMixin, Base):
    __tablename__ = "sub_markets"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    market_session_id: Mapped[str] = mapped_column(
        ForeignKey("market_sessions.id", ondelete="CASCADE"), index=True
    )
    name: Mapped[str] = mapped_column(String(100))
    asset_type: Mapped[str] = mapped_column(String(20))
    trade_duration: Mapped[int] = mapped_column(Integer)
    profit_rate: Mapped[Decimal] = mapped_column(RATE)
    status: Mapped[str] = mapped_column(String(20), default="PENDING")
    start_time: Mapped[datetime] = mapped_column(UTCDateTime())
    end_time: Mapped[datetime] = mapped_column(UTCDateTime())
    total_cycles: Mapped[int] = mapped_column(Integer, default=0)
    completed_cycles: Mapped[int] = mapped_column(Integer, default=0)


class SubMarketCycleModel(TimestampMixin, Base):
    __tablename__ = "sub_market_cycles"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    sub_market_id: Mapped[str] = mapped_column(
        ForeignKey("sub_markets.id", ondelete="CASCADE"), index=True
    )
    cycle_number: Mapped[int] = mapped_column(Integer)
    start_time: Mapped[datetime] = mapped_column(UTCDateTime())
    end_time: Mapped[datetime] = mapped_column(UTCDateTime())
    status: Mapped[str] = mapped_column(String(20), default="PENDING")
    start_price: Mapped[Optional[Decimal]] = mapped_column(MONEY, nullable=True)
    end_price: Mapped[Optional[Decimal]] = mapped_column(MONEY, nullable=True)
    order_count: Mapped[int] = mapped_column(Integer, default=0)
    total_amount: Mapped[Decimal] = mapped_column(MONEY, default=Decimal("0"))


class TransactionModel(TimestampMixin, Base):
    __tablename__ = "transactions"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    user_id: Mapped[str] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), index=True)
    user_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True, index=True)
    order_number: Mapped[str] = mapped_column(String(32), unique=True, index=True)
    market_session_id: Mapped[Optional[str]] = mapped_column(
        ForeignKey("market_sessions.id", ondelete="SET NULL"), nullable=True, index=True
    )
    account_type: Mapped[str] = mapped_column(String(10), default="DEMO")
    asset_type: Mapped[str] = mapped_column(String(20))
    direction: Mapped[str] = mapped_column(String(4))
    entry_time: Mapped[datetime] = mapped_column(UTCDateTime(), index=True)
    expiry_time: Mapped[datetime] = mapped_column(UTCDateTime(), index=True)
    duration: Mapped[int] = mapped_column(Integer)
    entry_price: Mapped[Decimal] = mapped_column(MONEY)
    current_price: Mapped[Optional[Decimal]] = mapped_column(MONEY, nullable=True)
    exit_price: Mapped[Optional[Decimal]] = mapped_column(MONEY, nullable=True)
    spread: Mapped[Decimal] = mapped_column(MONEY, default=Decimal("0"))
    invest_amount: Mapped[Decimal] = mapped_column(MONEY)
    return_rate: Mapped[Decimal] = mapped_column(RATE)
    actual_return: Mapped[Decimal] = mapped_column(MONEY, default=Decimal("0"))
    status: Mapped[str] = mapped_column(String(10), default="PENDING", index=True)
    is_managed: Mapped[bool] = mapped_column(Boolean, default=False)
    settled_at: Mapped[Optional[datetime]] = mapped_column(UTCDateTime(), nullable=True)


class TestimonialModel(TimestampMixin, Base):
    __tablename__ = "testimonials"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    name: Mapped[str] = mapped_column(String(100))
    title: Mapped[str] = mapped_column(String(200))
    rating: Mapped[int] = mapped_column(Integer)
    content: Mapped[str] = mapped_column(Text)


class CarouselItemModel(TimestampMixin, Base):
    __tablename__ = "carousel_items"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    sort_order: Mapped[int] = mapped_column(Integer, default=0)
    content: Mapped[str] = mapped_column(Text)


class LeaderboardEntryModel(TimestampMixin, Base):
    __tablename__ = "leaderboard_entries"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    type: Mapped[str] = mapped_column(String(10), index=True)
    avatar: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)
    country: Mapped[str] = mapped_column(String(64))
    name: Mapped[str] = mapped_column(String(100))
    trade_count: Mapped[int] = mapped_column(Integer, default=0)
    win_rate: Mapped[Decimal] = mapped_column(RATE)
    volume: Mapped[Decimal] = mapped_column(MONEY)
    total_volume: Mapped[Decimal] = mapped_column(MONEY)
    highest_trade: Mapped[Decimal] = mapped_column(MONEY)
    lowest_trade: Mapped[Decimal] = mapped_column(MONEY)


class TradingPerformanceModel(TimestampMixin, Base):
    __tablename__ = "trading_performance"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    trade_duration: Mapped[int] = mapped_column(Integer)
    win_rate: Mapped[Decimal] = mapped_column(RATE)


class SettingModel(TimestampMixin, Base):
    __tablename__ = "settings"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    key: Mapped[str] = mapped_column(String(100), unique=True, index=True)
    value: Mapped[Any] = mapped_column(JSON)
    category: Mapped[str] = mapped_column(String(50), default="general", index=True)
    description: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)


class IpWhitelistModel(TimestampMixin, Base):
    __tablename__ = "ip_whitelist"

    id: Mapped[str] = mapped_column(String(36), primary_key=True)
    ip_address: Mapped[str] = mapped_column(String(64), unique=True)
    description: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
