"""
Tests for the Binance market data adapter.

HTTP is served by ``httpx.MockTransport``; no network access.
"""

import json
from decimal import Decimal

import httpx
import pytest

from cryptosim.domain.errors import UpstreamServiceError
from cryptosim.infrastructure.markets import binance_client
from cryptosim.infrastructure.markets.binance_client import BinanceMarketDataAdapter, to_pair

TICKER = {
    "symbol": "BTCUSDT",
    "lastPrice": "50000.10",
    "priceChange": "-120.5",
    "priceChangePercent": "-0.24",
    "highPrice": "51000",
    "lowPrice": "49000",
    "volume": "1234.5",
    "quoteVolume": "61725000",
}


@pytest.fixture
def serve(monkeypatch):
    """Route the adapter's httpx clients through a handler; return seen requests."""
    seen: list[httpx.Request] = []
    real_client = httpx.Client

    def install(handler):
        def recording(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return handler(request)

        transport = httpx.MockTransport(recording)
        monkeypatch.setattr(
            binance_client.httpx,
            "Client",
            lambda **kwargs: real_client(transport=transport, **kwargs),
        )
        return seen

    return install


@pytest.fixture
def adapter() -> BinanceMarketDataAdapter:
    return BinanceMarketDataAdapter(base_url="https://binance.test/", timeout=1)


class TestToPair:
    def test_adds_quote_asset(self) -> None:
        assert to_pair("btc") == "BTCUSDT"

    def test_keeps_full_pair(self) -> None:
        assert to_pair(" ethusdt ") == "ETHUSDT"


class TestBinanceAdapter:
    def test_ticker(self, serve, adapter) -> None:
        seen = serve(lambda request: httpx.Response(200, json=TICKER))

        ticker = adapter.ticker("btcusdt")

        assert ticker.last_price == Decimal("50000.10")
        assert ticker.price_change_percent == Decimal("-0.24")
        assert seen[0].url.path == "/api/v3/ticker/24hr"
        assert seen[0].url.params["symbol"] == "BTCUSDT"

    def test_tickers_sends_json_symbol_list(self, serve, adapter) -> None:
        eth = {**TICKER, "symbol": "ETHUSDT"}
        seen = serve(lambda request: httpx.Response(200, json=[TICKER, eth]))

        tickers = adapter.tickers(["btcusdt", " ", "ETHUSDT"])

        assert [t.symbol for t in tickers] == ["BTCUSDT", "ETHUSDT"]
        assert json.loads(seen[0].url.params["symbols"]) == ["BTCUSDT", "ETHUSDT"]

    def test_no_symbols_no_request(self, serve, adapter) -> None:
        seen = serve(lambda request: httpx.Response(500))
        assert adapter.tickers([]) == []
        assert seen == []

    def test_latest_price(self, serve, adapter) -> None:
        seen = serve(
            lambda request: httpx.Response(200, json={"symbol": "SOLUSDT", "price": "142.31"})
        )
        assert adapter.latest_price("sol") == Decimal("142.31")
        assert seen[0].url.path == "/api/v3/ticker/price"
        assert seen[0].url.params["symbol"] == "SOLUSDT"

    def test_http_error_keeps_status(self, serve, adapter) -> None:
        serve(lambda request: httpx.Response(400, json={"code": -1121, "msg": "Invalid symbol."}))

        with pytest.raises(UpstreamServiceError) as exc_info:
            adapter.ticker("NOPE")

        assert exc_info.value.status_code == 400
        assert exc_info.value.service == "Binance"

    def test_connection_error_has_no_status(self, serve, adapter) -> None:
        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        serve(refuse)

        with pytest.raises(UpstreamServiceError) as exc_info:
            adapter.latest_price("BTC")

        assert exc_info.value.status_code is None
        assert "connection refused" in exc_info.value.reason
