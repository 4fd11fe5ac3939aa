"""
Realtime push events and the port that delivers them.

Use cases publish; the websocket gateway fans events out to the
subscribed clients. Publishing never fails the calling use case.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from decimal import Decimal
from typing import Optional


@dataclass(frozen=True)
class OrderUpdate:
    """State change of one order, pushed to its owner's order channel."""

    user_id: str
    order_number: str
    asset_type: str
    status: str
    exit_price: Optional[Decimal]
    actual_return: Decimal


@dataclass(frozen=True)
class PriceUpdate:
    """Latest price of a trading pair, pushed to the pair's channel."""

    symbol: str
    price: Decimal
    change_24h: Decimal


class RealtimePublisher(ABC):
    @abstractmethod
    def publish_order(self, update: OrderUpdate) -> None:
        ...

    @abstractmethod
    def publish_price(self, update: PriceUpdate) -> None:
        ...

    @abstractmethod
    def subscribed_symbols(self) -> list[str]:
        """Pairs at least one connected client listens to."""


class NullPublisher(RealtimePublisher):
    """Publisher for contexts without a gateway (CLI, unit tests)."""

    def publish_order(self, update: OrderUpdate) -> None:
        pass

    def publish_price(self, update: PriceUpdate) -> None:
        pass

    def subscribed_symbols(self) -> list[str]:
        return []
