"""
Dependency injection for the trading bounded context.

Provides FastAPI dependency functions that wire infrastructure
adapters into use cases via constructor injection. ``build_*``
helpers take a plain session so the CLI and the scheduler share the
same wiring.
"""

from fastapi import Depends
from sqlalchemy.orm import Session

from cryptosim.application.settings.settings_service import SettingsService
from cryptosim.application.trading.admin_transactions import AdminTransactionUseCase
from cryptosim.application.trading.auto_settle import AutoSettleUseCase
from cryptosim.application.trading.open_trade import OpenTradeUseCase
from cryptosim.application.trading.query_transactions import TransactionQueryService
from cryptosim.application.trading.settle_trade import SettleTradeUseCase
from cryptosim.core.database import get_db_session
from cryptosim.domain.trading.ports import PriceQuotePort
from cryptosim.infrastructure.accounts.user_repository import UserRepositoryAdapter
from cryptosim.infrastructure.markets.market_session_repository import (
    MarketSessionRepositoryAdapter,
)
from cryptosim.infrastructure.settings.repositories import SettingRepositoryAdapter
from cryptosim.infrastructure.trading.transaction_repository import (
    TransactionRepositoryAdapter,
)
from cryptosim.interfaces.dependencies import get_exchange_client, get_realtime_stream


def build_open_trade(session: Session) -> OpenTradeUseCase:
    return OpenTradeUseCase(
        transactions=TransactionRepositoryAdapter(session),
        users=UserRepositoryAdapter(session),
        sessions=MarketSessionRepositoryAdapter(session),
        settings=SettingsService(SettingRepositoryAdapter(session)),
    )


def build_settle_trade(session: Session) -> SettleTradeUseCase:
    return SettleTradeUseCase(
        transactions=TransactionRepositoryAdapter(session),
        users=UserRepositoryAdapter(session),
        sessions=MarketSessionRepositoryAdapter(session),
        events=get_realtime_stream(),
    )


def build_auto_settle(session: Session, prices: PriceQuotePort) -> AutoSettleUseCase:
    """Build AutoSettleUseCase for a request, a CLI run or a scheduled job."""
    return AutoSettleUseCase(
        transactions=TransactionRepositoryAdapter(session),
        settle_trade=build_settle_trade(session),
        prices=prices,
    )


def get_open_trade_use_case(session: Session = Depends(get_db_session)) -> OpenTradeUseCase:
    return build_open_trade(session)


def get_settle_trade_use_case(
    session: Session = Depends(get_db_session),
) -> SettleTradeUseCase:
    return build_settle_trade(session)


def get_auto_settle_use_case(
    session: Session = Depends(get_db_session),
    prices: PriceQuotePort = Depends(get_exchange_client),
) -> AutoSettleUseCase:
    return build_auto_settle(session, prices)


def get_transaction_query_service(
    session: Session = Depends(get_db_session),
) -> TransactionQueryService:
    return TransactionQueryService(
        transactions=TransactionRepositoryAdapter(session),
        users=UserRepositoryAdapter(session),
    )


def get_admin_transaction_use_case(
    session: Session = Depends(get_db_session),
) -> AdminTransactionUseCase:
    """Build AdminTransactionUseCase with its infrastructure dependencies."""
    return AdminTransactionUseCase(
        transactions=TransactionRepositoryAdapter(session),
        open_trade=build_open_trade(session),
        settle_trade=build_settle_trade(session),
    )
