"""
Port interfaces (ABCs) for market sessions and market data.
"""

from abc import ABC, abstractmethod
from typing import Optional

from cryptosim.domain.markets.entities import (
    MarketSession,
    SubMarket,
    SubMarketCycle,
    Ticker,
)
from cryptosim.domain.pagination import Page, PageRequest


class MarketSessionRepository(ABC):
    """Port for sessions, their sub-markets and cycles."""

    @abstractmethod
    def get(self, session_id: str) -> Optional[MarketSession]:
        raise NotImplementedError

    @abstractmethod
    def search(self, status: Optional[str], page: PageRequest) -> Page[MarketSession]:
        """Return sessions, most recent start time first."""
        raise NotImplementedError

    @abstractmethod
    def list_by_status(self, status: str) -> list[MarketSession]:
        raise NotImplementedError

    @abstractmethod
    def add(self, session: MarketSession) -> MarketSession:
        raise NotImplementedError

    @abstractmethod
    def save(self, session: MarketSession) -> MarketSession:
        raise NotImplementedError

    @abstractmethod
    def delete(self, session_id: str) -> None:
        """Delete a session together with its sub-markets and cycles."""
        raise NotImplementedError

    @abstractmethod
    def get_sub_market(self, sub_market_id: str) -> Optional[SubMarket]:
        raise NotImplementedError

    @abstractmethod
    def list_sub_markets(self, session_id: str) -> list[SubMarket]:
        raise NotImplementedError

    @abstractmethod
    def add_sub_market(self, sub_market: SubMarket) -> SubMarket:
        raise NotImplementedError

    @abstractmethod
    def save_sub_market(self, sub_market: SubMarket) -> SubMarket:
        raise NotImplementedError

    @abstractmethod
    def get_cycle(self, sub_market_id: str, cycle_number: int) -> Optional[SubMarketCycle]:
        raise NotImplementedError

    @abstractmethod
    def list_cycles(self, sub_market_id: str, page: PageRequest) -> Page[SubMarketCycle]:
        """Return cycles, latest cycle number first."""
        raise NotImplementedError

    @abstractmethod
    def list_running_cycles(self, sub_market_id: str) -> list[SubMarketCycle]:
        raise NotImplementedError

    @abstractmethod
    def add_cycle(self, cycle: SubMarketCycle) -> SubMarketCycle:
        raise NotImplementedError

    @abstractmethod
    def save_cycle(self, cycle: SubMarketCycle) -> SubMarketCycle:
        raise NotImplementedError


class MarketDataPort(ABC):
    """Port for live exchange ticker data."""

    @abstractmethod
    def ticker(self, symbol: str) -> Ticker:
        raise NotImplementedError

    @abstractmethod
    def tickers(self, symbols: list[str]) -> list[Ticker]:
        raise NotImplementedError
