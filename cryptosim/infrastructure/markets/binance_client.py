"""
Adapter: Binance REST market data.

Implements MarketDataPort and PriceQuotePort against the public
``/api/v3/ticker/24hr`` and ``/api/v3/ticker/price`` endpoints.
Connection failures become UpstreamServiceError without a status;
HTTP errors keep the upstream status code.
"""

import json
import logging
from decimal import Decimal
from typing import Any

import httpx

from cryptosim.domain.errors import UpstreamServiceError
from cryptosim.domain.markets.entities import Ticker
from cryptosim.domain.markets.ports import MarketDataPort
from cryptosim.domain.trading.ports import PriceQuotePort

logger = logging.getLogger(__name__)

SERVICE_NAME = "Binance"
QUOTE_ASSET = "USDT"


def to_pair(asset_or_symbol: str) -> str:
    """``btc`` -> ``BTCUSDT``; full pairs are only upper-cased."""
    symbol = asset_or_symbol.strip().upper()
    if symbol.endswith(QUOTE_ASSET):
        return symbol
    return f"{symbol}{QUOTE_ASSET}"


def _ticker_from_json(data: dict[str, Any]) -> Ticker:
    return Ticker(
        symbol=data["symbol"],
        last_price=Decimal(data["lastPrice"]),
        price_change=Decimal(data["priceChange"]),
        price_change_percent=Decimal(data["priceChangePercent"]),
        high_price=Decimal(data["highPrice"]),
        low_price=Decimal(data["lowPrice"]),
        volume=Decimal(data["volume"]),
        quote_volume=Decimal(data["quoteVolume"]),
    )


class BinanceMarketDataAdapter(MarketDataPort, PriceQuotePort):
    """Synchronous httpx client for Binance spot tickers."""

    def __init__(self, base_url: str, timeout: float = 10.0) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout

    def _get(self, path: str, params: dict[str, str]) -> Any:
        try:
            with httpx.Client(base_url=self._base_url, timeout=self._timeout) as client:
                resp = client.get(path, params=params)
                resp.raise_for_status()
                return resp.json()
        except httpx.HTTPStatusError as exc:
            status = exc.response.status_code
            logger.error("Binance returned HTTP %d for %s", status, path)
            raise UpstreamServiceError(
                SERVICE_NAME, f"HTTP {status}: {exc.response.reason_phrase}", status
            ) from exc
        except httpx.HTTPError as exc:
            logger.error("Binance request to %s failed: %s", path, exc)
            raise UpstreamServiceError(SERVICE_NAME, str(exc) or type(exc).__name__) from exc

    def ticker(self, symbol: str) -> Ticker:
        pair = symbol.strip().upper()
        logger.info("Fetching 24h ticker for %s", pair)
        return _ticker_from_json(self._get("/api/v3/ticker/24hr", {"symbol": pair}))

    def tickers(self, symbols: list[str]) -> list[Ticker]:
        pairs = [s.strip().upper() for s in symbols if s.strip()]
        if not pairs:
            return []
        logger.info("Fetching 24h tickers for %s", ",".join(pairs))
        data = self._get(
            "/api/v3/ticker/24hr", {"symbols": json.dumps(pairs, separators=(",", ":"))}
        )
        return [_ticker_from_json(item) for item in data]

    def latest_price(self, asset_type: str) -> Decimal:
        data = self._get("/api/v3/ticker/price", {"symbol": to_pair(asset_type)})
        return Decimal(data["price"])
