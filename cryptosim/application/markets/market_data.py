"""
Use cases: Live 24h ticker data and the realtime price feed.

Input: one symbol or a comma-separated list of symbols
Output: Ticker or list[Ticker]
Side effects: ``broadcast_prices`` pushes price updates for every pair a
    realtime client follows.
Failure cases: UpstreamServiceError.
"""

import logging
from typing import Optional

from cryptosim.domain.markets.entities import Ticker
from cryptosim.domain.markets.ports import MarketDataPort
from cryptosim.domain.realtime import NullPublisher, PriceUpdate, RealtimePublisher

logger = logging.getLogger(__name__)


class MarketDataService:
    def __init__(
        self, market_data: MarketDataPort, events: Optional[RealtimePublisher] = None
    ) -> None:
        self._market_data = market_data
        self._events = events or NullPublisher()

    def ticker(self, symbol: str) -> Ticker:
        return self._market_data.ticker(symbol.upper())

    def tickers(self, symbols: str) -> list[Ticker]:
        requested = [s.strip().upper() for s in symbols.split(",") if s.strip()]
        return self._market_data.tickers(requested)

    def broadcast_prices(self) -> int:
        """Fetch tickers for the followed pairs and push them; return how many."""
        symbols = self._events.subscribed_symbols()
        if not symbols:
            return 0
        tickers = self._market_data.tickers(symbols)
        for ticker in tickers:
            self._events.publish_price(
                PriceUpdate(
                    symbol=ticker.symbol,
                    price=ticker.last_price,
                    change_24h=ticker.price_change_percent,
                )
            )
        logger.debug("Broadcast %d price updates", len(tickers))
        return len(tickers)
