"""
Port interfaces (ABCs) for the trading bounded context.

Infrastructure adapters implement these interfaces.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from typing import Optional

from cryptosim.domain.pagination import Page, PageRequest
from cryptosim.domain.trading.entities import Transaction


@dataclass(frozen=True)
class TransactionFilter:
    """Criteria shared by the trader and back-office order lists.

    ``username`` is a case-insensitive substring match on the
    denormalised user name. ``entry_from``/``entry_to`` bound the
    entry time, both inclusive.
    """

    user_id: Optional[str] = None
    username: Optional[str] = None
    account_type: Optional[str] = None
    asset_type: Optional[str] = None
    direction: Optional[str] = None
    status: Optional[str] = None
    market_session_id: Optional[str] = None
    order_number: Optional[str] = None
    is_managed: Optional[bool] = None
    entry_from: Optional[datetime] = None
    entry_to: Optional[datetime] = None


@dataclass(frozen=True)
class OutcomeCounts:
    total: int
    settled: int
    winning: int
    losing: int


@dataclass(frozen=True)
class SessionOrderCounts:
    session_id: str
    pending_count: int
    settled_count: int


class TransactionRepository(ABC):
    """Port for order persistence."""

    @abstractmethod
    def get_by_order_number(self, order_number: str) -> Optional[Transaction]:
        raise NotImplementedError

    @abstractmethod
    def search(self, criteria: TransactionFilter, page: PageRequest) -> Page[Transaction]:
        """Return orders newest first."""
        raise NotImplementedError

    @abstractmethod
    def list_due(self, now: datetime) -> list[Transaction]:
        """Return PENDING orders whose expiry time is at or before ``now``."""
        raise NotImplementedError

    @abstractmethod
    def list_missing_user_name(self) -> list[Transaction]:
        raise NotImplementedError

    @abstractmethod
    def outcome_counts(self, user_id: str) -> OutcomeCounts:
        raise NotImplementedError

    @abstractmethod
    def session_counts(self, session_ids: list[str]) -> list[SessionOrderCounts]:
        raise NotImplementedError

    @abstractmethod
    def add(self, transaction: Transaction) -> Transaction:
        raise NotImplementedError

    @abstractmethod
    def save(self, transaction: Transaction) -> Transaction:
        raise NotImplementedError


class PriceQuotePort(ABC):
    """Port for the latest traded price of an asset."""

    @abstractmethod
    def latest_price(self, asset_type: str) -> Decimal:
        """Return the last price of ``asset_type`` quoted in USDT.

        Raises:
            UpstreamServiceError: If the provider cannot be reached.
        """
        raise NotImplementedError
