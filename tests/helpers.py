"""
Helpers shared by the API tests.
"""

from decimal import Decimal

from fastapi.testclient import TestClient

from cryptosim.domain.errors import UpstreamServiceError
from cryptosim.domain.markets.entities import Ticker

TRADER_PASSWORD = "Password123"
OPERATOR_PASSWORD = "secret123"


class FakeExchange:
    """Stands in for BinanceMarketDataAdapter."""

    def __init__(self) -> None:
        self.prices: dict[str, Decimal] = {"BTC": Decimal("50000"), "ETH": Decimal("3000")}
        self.error: UpstreamServiceError | None = None
        self.price_calls: list[str] = []

    def _ticker(self, symbol: str) -> Ticker:
        return Ticker(
            symbol=symbol,
            last_price=Decimal("50000.5"),
            price_change=Decimal("120.25"),
            price_change_percent=Decimal("0.24"),
            high_price=Decimal("51000"),
            low_price=Decimal("49000"),
            volume=Decimal("1234.5"),
            quote_volume=Decimal("61725000"),
        )

    def ticker(self, symbol: str) -> Ticker:
        if self.error:
            raise self.error
        return self._ticker(symbol)

    def tickers(self, symbols: list[str]) -> list[Ticker]:
        if self.error:
            raise self.error
        return [self._ticker(symbol) for symbol in symbols]

    def latest_price(self, asset_type: str) -> Decimal:
        self.price_calls.append(asset_type)
        if self.error:
            raise self.error
        return self.prices.get(asset_type.upper(), Decimal("100"))


def bearer(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def login_user(client: TestClient, email: str, password: str = TRADER_PASSWORD) -> dict:
    resp = client.post("/api/auth/login", json={"email": email, "password": password})
    assert resp.status_code == 200, resp.text
    return resp.json()["data"]


def login_admin(client: TestClient, username: str, password: str = OPERATOR_PASSWORD) -> dict:
    resp = client.post("/api/admin/auth/login", json={"username": username, "password": password})
    assert resp.status_code == 200, resp.text
    return resp.json()["data"]


def open_order(client: TestClient, headers: dict, **overrides) -> dict:
    """Open a 60s DEMO CALL on BTC at 50000 with a 100 stake."""
    body = {
        "type": "entryPrice",
        "price": 50000,
        "assetType": "BTC",
        "direction": "CALL",
        "duration": 60,
        "investAmount": 100,
        "returnRate": 0.85,
        "accountType": "DEMO",
    }
    body.update(overrides)
    resp = client.post("/api/transactions", json=body, headers=headers)
    assert resp.status_code == 201, resp.text
    return resp.json()["data"]
