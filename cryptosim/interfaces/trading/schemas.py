"""
Pydantic schemas for trading API request/response validation.

These schemas enforce input validation and define the API contract.
Cross-field rules (which fields a unified request needs) live in
model validators. No business logic belongs here.
"""

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import Field, model_validator

from cryptosim.domain.pagination import Page
from cryptosim.domain.trading.entities import (
    AccountType,
    TradeDirection,
    TradeResult,
    TransactionStatus,
)
from cryptosim.interfaces.schemas import CamelModel, Money

ASSET_PATTERN = r"^[A-Za-z0-9]{2,20}$"
MAX_RETURN_RATE = 10
PRICE_DIGITS = 20
PRICE_PLACES = 8


class TransactionType(str, Enum):
    ENTRY = "entryPrice"
    EXIT = "exitPrice"


class OpenTradeFields(CamelModel):
    """Fields describing a new order, shared by trader and operator requests."""

    asset_type: str = Field(..., pattern=ASSET_PATTERN, description="Asset symbol, e.g. BTC")
    direction: TradeDirection
    duration: int = Field(..., gt=0, description="Seconds until expiry")
    invest_amount: Decimal = Field(..., gt=0, max_digits=PRICE_DIGITS, decimal_places=PRICE_PLACES)
    return_rate: Decimal = Field(..., ge=0, le=MAX_RETURN_RATE)
    account_type: AccountType = AccountType.DEMO
    market_session_id: Optional[str] = None


class UnifiedTransactionRequest(CamelModel):
    """Open (``entryPrice``) or settle (``exitPrice``) an order in one endpoint.

    ``price`` is the entry price when opening and the exit price when
    settling.
    """

    type: TransactionType
    price: Decimal = Field(..., gt=0, max_digits=PRICE_DIGITS, decimal_places=PRICE_PLACES)
    order_number: Optional[str] = None
    asset_type: Optional[str] = Field(default=None, pattern=ASSET_PATTERN)
    direction: Optional[TradeDirection] = None
    duration: Optional[int] = Field(default=None, gt=0)
    invest_amount: Optional[Decimal] = Field(
        default=None, gt=0, max_digits=PRICE_DIGITS, decimal_places=PRICE_PLACES
    )
    return_rate: Optional[Decimal] = Field(default=None, ge=0, le=MAX_RETURN_RATE)
    account_type: AccountType = AccountType.DEMO
    market_session_id: Optional[str] = None

    @model_validator(mode="after")
    def _required_for_type(self) -> "UnifiedTransactionRequest":
        if self.type is TransactionType.EXIT:
            if not self.order_number:
                raise ValueError("orderNumber is required when type is exitPrice")
            return self
        missing = [
            name
            for name, value in (
                ("assetType", self.asset_type),
                ("direction", self.direction),
                ("duration", self.duration),
                ("investAmount", self.invest_amount),
                ("returnRate", self.return_rate),
            )
            if value is None
        ]
        if missing:
            raise ValueError(f"{', '.join(missing)} required when type is entryPrice")
        return self


class SettleRequest(CamelModel):
    exit_price: Decimal = Field(..., gt=0, max_digits=PRICE_DIGITS, decimal_places=PRICE_PLACES)


class AdminCreateTransactionRequest(OpenTradeFields):
    """Manual order for a trader; settled at once when ``exitPrice`` is given."""

    user_id: str = Field(..., min_length=1)
    entry_price: Decimal = Field(..., gt=0, max_digits=PRICE_DIGITS, decimal_places=PRICE_PLACES)
    entry_time: Optional[datetime] = None
    exit_price: Optional[Decimal] = Field(
        default=None, gt=0, max_digits=PRICE_DIGITS, decimal_places=PRICE_PLACES
    )
    auto_settle: bool = True
    status: Optional[TransactionStatus] = None
    reason: Optional[str] = Field(default=None, max_length=255)


class AdminUpdateTransactionRequest(CamelModel):
    asset_type: Optional[str] = Field(default=None, pattern=ASSET_PATTERN)
    direction: Optional[TradeDirection] = None
    entry_time: Optional[datetime] = None
    duration: Optional[int] = Field(default=None, gt=0)
    entry_price: Optional[Decimal] = Field(default=None, gt=0)
    current_price: Optional[Decimal] = Field(default=None, gt=0)
    exit_price: Optional[Decimal] = Field(default=None, gt=0)
    invest_amount: Optional[Decimal] = Field(default=None, gt=0)
    return_rate: Optional[Decimal] = Field(default=None, ge=0, le=MAX_RETURN_RATE)
    actual_return: Optional[Decimal] = None
    status: Optional[TransactionStatus] = None
    market_session_id: Optional[str] = None
    reason: Optional[str] = Field(default=None, max_length=255)


class ForceSettleRequest(CamelModel):
    """Operator settlement; without ``exitPrice`` the last known price is used."""

    exit_price: Optional[Decimal] = Field(default=None, gt=0)
    result: Optional[TradeResult] = None
    reason: Optional[str] = Field(default=None, max_length=255)


class TransactionOut(CamelModel):
    id: str
    user_id: str
    user_name: Optional[str] = None
    order_number: str
    asset_type: str
    direction: TradeDirection
    account_type: AccountType
    market_session_id: Optional[str] = None
    entry_time: datetime
    expiry_time: datetime
    duration: int
    entry_price: Money
    current_price: Optional[Money] = None
    exit_price: Optional[Money] = None
    spread: Money
    invest_amount: Money
    return_rate: Money
    actual_return: Money
    status: TransactionStatus
    is_managed: bool
    created_at: datetime
    updated_at: datetime
    settled_at: Optional[datetime] = None


class TransactionPage(CamelModel):
    """Order list page; ``limit`` is the page size."""

    data: list[TransactionOut]
    total: int
    page: int
    limit: int
    total_pages: int

    @classmethod
    def of(cls, page: Page) -> "TransactionPage":
        return cls(
            data=[TransactionOut.model_validate(item) for item in page.items],
            total=page.total,
            page=page.page,
            limit=page.page_size,
            total_pages=page.total_pages,
        )


class StatisticsOut(CamelModel):
    account_balance: Money
    total_profit_loss: Money
    win_rate: Money
    total_trades: int
    settled_trades: int
    winning_trades: int
    losing_trades: int


class AutoSettleOut(CamelModel):
    settled: int
    failed: int
