"""
Dependency injection for market sessions and market data.
"""

from fastapi import Depends
from sqlalchemy.orm import Session

from cryptosim.application.markets.market_data import MarketDataService
from cryptosim.application.markets.sessions import MarketSessionService
from cryptosim.core.config import settings
from cryptosim.core.database import get_db_session
from cryptosim.infrastructure.markets.binance_client import BinanceMarketDataAdapter
from cryptosim.infrastructure.markets.market_session_repository import (
    MarketSessionRepositoryAdapter,
)
from cryptosim.domain.markets.ports import MarketDataPort
from cryptosim.interfaces.dependencies import get_exchange_client, get_realtime_stream


def get_market_session_service(
    session: Session = Depends(get_db_session),
    exchange: BinanceMarketDataAdapter = Depends(get_exchange_client),
) -> MarketSessionService:
    """Build MarketSessionService; cycle boundaries are priced from the exchange."""
    return MarketSessionService(
        sessions=MarketSessionRepositoryAdapter(session),
        default_profit_rate=settings.default_profit_rate,
        prices=exchange,
    )


def build_market_data(exchange: MarketDataPort) -> MarketDataService:
    """Build MarketDataService publishing to the process-wide realtime stream."""
    return MarketDataService(market_data=exchange, events=get_realtime_stream())


def get_market_data_service(
    exchange: BinanceMarketDataAdapter = Depends(get_exchange_client),
) -> MarketDataService:
    return build_market_data(exchange)
