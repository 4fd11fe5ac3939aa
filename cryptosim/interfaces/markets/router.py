"""
FastAPI routers for market sessions and live market data.

``/admin/market-sessions`` runs the session lifecycle, ``/market-sessions``
lets signed-in traders see what is open, ``/market`` proxies exchange
tickers without authentication.

All routes delegate to services. No business logic here.
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from cryptosim.application.markets.dtos import (
    CreateMarketSessionCommand,
    UpdateMarketSessionCommand,
)
from cryptosim.application.markets.market_data import MarketDataService
from cryptosim.application.markets.sessions import MarketSessionService
from cryptosim.application.trading.query_transactions import TransactionQueryService
from cryptosim.domain.accounts.entities import Principal
from cryptosim.domain.markets.entities import MarketSessionStatus
from cryptosim.domain.pagination import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, PageRequest
from cryptosim.interfaces.dependencies import get_current_principal, require_admin
from cryptosim.interfaces.markets.dependencies import (
    get_market_data_service,
    get_market_session_service,
)
from cryptosim.interfaces.markets.schemas import (
    CreateMarketSessionRequest,
    CycleOut,
    MarketSessionDetailOut,
    MarketSessionOut,
    SessionOrderStatsOut,
    StartSessionOut,
    SubMarketOut,
    TickerOut,
    UpdateMarketSessionRequest,
)
from cryptosim.interfaces.schemas import (
    DataResponse,
    ErrorResponse,
    MessageResponse,
    PageData,
    page_of,
    wrap,
)
from cryptosim.interfaces.trading.dependencies import get_transaction_query_service

NOT_FOUND = {404: {"model": ErrorResponse}}

admin_router = APIRouter(
    prefix="/admin/market-sessions",
    tags=["admin-market-sessions"],
    dependencies=[Depends(require_admin)],
    responses={401: {"model": ErrorResponse}, 403: {"model": ErrorResponse}},
)
sessions_router = APIRouter(
    prefix="/market-sessions",
    tags=["market-sessions"],
    dependencies=[Depends(get_current_principal)],
    responses={401: {"model": ErrorResponse}},
)
market_router = APIRouter(
    prefix="/market",
    tags=["market"],
    responses={502: {"model": ErrorResponse}},
)


def _detail_out(service: MarketSessionService, session_id: str) -> MarketSessionDetailOut:
    detail = service.detail(session_id)
    return MarketSessionDetailOut(
        session=MarketSessionOut.model_validate(detail.session),
        sub_markets=[SubMarketOut.model_validate(sub) for sub in detail.sub_markets],
    )


# ── Back office ──────────────────────────────────────────────────


@admin_router.post(
    "",
    response_model=DataResponse[MarketSessionOut],
    status_code=201,
    responses={400: {"model": ErrorResponse}},
)
def create_session(
    body: CreateMarketSessionRequest,
    principal: Principal = Depends(require_admin),
    service: MarketSessionService = Depends(get_market_session_service),
) -> DataResponse[MarketSessionOut]:
    session = service.create(
        CreateMarketSessionCommand(
            name=body.name,
            description=body.description,
            start_time=body.start_time,
            end_time=body.end_time,
            initial_result=body.initial_result,
            trade_types=tuple(rule.to_rule() for rule in body.trade_types),
            asset_type=body.asset_type.upper() if body.asset_type else None,
            created_by_id=principal.id,
            created_by_name=principal.display_name,
        )
    )
    return wrap(MarketSessionOut.model_validate(session))


@admin_router.get("", response_model=DataResponse[PageData[MarketSessionOut]])
def list_sessions(
    status: Optional[MarketSessionStatus] = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    service: MarketSessionService = Depends(get_market_session_service),
) -> DataResponse[PageData[MarketSessionOut]]:
    result = service.list_sessions(
        status.value if status else None, PageRequest(page=page, page_size=limit)
    )
    return wrap(page_of(result, MarketSessionOut))


@admin_router.get("/order-stats", response_model=DataResponse[list[SessionOrderStatsOut]])
def session_order_stats(
    ids: str = Query(..., min_length=1, description="Comma-separated session ids"),
    service: TransactionQueryService = Depends(get_transaction_query_service),
) -> DataResponse[list[SessionOrderStatsOut]]:
    """Pending and settled order counts per session."""
    session_ids = [value.strip() for value in ids.split(",") if value.strip()]
    counts = service.session_order_counts(session_ids)
    return wrap([SessionOrderStatsOut.model_validate(item) for item in counts])


@admin_router.get(
    "/sub-markets/{sub_market_id}/cycles",
    response_model=DataResponse[PageData[CycleOut]],
    responses=NOT_FOUND,
)
def list_cycles_admin(
    sub_market_id: str,
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    service: MarketSessionService = Depends(get_market_session_service),
) -> DataResponse[PageData[CycleOut]]:
    result = service.list_cycles(sub_market_id, PageRequest(page=page, page_size=limit))
    return wrap(page_of(result, CycleOut))


@admin_router.get(
    "/{session_id}", response_model=DataResponse[MarketSessionDetailOut], responses=NOT_FOUND
)
def get_session_admin(
    session_id: str,
    service: MarketSessionService = Depends(get_market_session_service),
) -> DataResponse[MarketSessionDetailOut]:
    return wrap(_detail_out(service, session_id))


@admin_router.put(
    "/{session_id}",
    response_model=DataResponse[MarketSessionOut],
    responses={**NOT_FOUND, 400: {"model": ErrorResponse}},
)
def update_session(
    session_id: str,
    body: UpdateMarketSessionRequest,
    service: MarketSessionService = Depends(get_market_session_service),
) -> DataResponse[MarketSessionOut]:
    """Edit a session; times and trade types only change while it is PENDING."""
    session = service.update(
        UpdateMarketSessionCommand(
            session_id=session_id,
            name=body.name,
            description=body.description,
            start_time=body.start_time,
            end_time=body.end_time,
            initial_result=body.initial_result,
            actual_result=body.actual_result,
            trade_types=(
                tuple(rule.to_rule() for rule in body.trade_types)
                if body.trade_types is not None
                else None
            ),
            asset_type=body.asset_type.upper() if body.asset_type else None,
        )
    )
    return wrap(MarketSessionOut.model_validate(session))


@admin_router.delete(
    "/{session_id}",
    response_model=DataResponse[MessageResponse],
    responses={**NOT_FOUND, 400: {"model": ErrorResponse}},
)
def delete_session(
    session_id: str,
    service: MarketSessionService = Depends(get_market_session_service),
) -> DataResponse[MessageResponse]:
    service.delete(session_id)
    return wrap(MessageResponse(message="Market session deleted"))


@admin_router.post(
    "/{session_id}/start",
    response_model=DataResponse[StartSessionOut],
    responses={**NOT_FOUND, 400: {"model": ErrorResponse}},
)
def start_session(
    session_id: str,
    service: MarketSessionService = Depends(get_market_session_service),
) -> DataResponse[StartSessionOut]:
    result = service.start(session_id)
    return wrap(
        StartSessionOut(
            session=MarketSessionOut.model_validate(result.session),
            sub_markets_created=result.sub_markets_created,
        )
    )


@admin_router.post(
    "/{session_id}/stop",
    response_model=DataResponse[MarketSessionOut],
    responses={**NOT_FOUND, 400: {"model": ErrorResponse}},
)
def stop_session(
    session_id: str,
    service: MarketSessionService = Depends(get_market_session_service),
) -> DataResponse[MarketSessionOut]:
    return wrap(MarketSessionOut.model_validate(service.stop(session_id)))


# ── Traders ──────────────────────────────────────────────────────


@sessions_router.get("/active", response_model=DataResponse[list[MarketSessionOut]])
def active_sessions(
    service: MarketSessionService = Depends(get_market_session_service),
) -> DataResponse[list[MarketSessionOut]]:
    return wrap([MarketSessionOut.model_validate(s) for s in service.active_sessions()])


@sessions_router.get(
    "/sub-markets/{sub_market_id}/current-cycle",
    response_model=DataResponse[CycleOut],
    responses=NOT_FOUND,
)
def current_cycle(
    sub_market_id: str,
    service: MarketSessionService = Depends(get_market_session_service),
) -> DataResponse[CycleOut]:
    return wrap(CycleOut.model_validate(service.current_cycle(sub_market_id)))


@sessions_router.get(
    "/sub-markets/{sub_market_id}/cycles",
    response_model=DataResponse[PageData[CycleOut]],
    responses=NOT_FOUND,
)
def list_cycles(
    sub_market_id: str,
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    service: MarketSessionService = Depends(get_market_session_service),
) -> DataResponse[PageData[CycleOut]]:
    result = service.list_cycles(sub_market_id, PageRequest(page=page, page_size=limit))
    return wrap(page_of(result, CycleOut))


@sessions_router.get(
    "/{session_id}", response_model=DataResponse[MarketSessionDetailOut], responses=NOT_FOUND
)
def get_session(
    session_id: str,
    service: MarketSessionService = Depends(get_market_session_service),
) -> DataResponse[MarketSessionDetailOut]:
    return wrap(_detail_out(service, session_id))


# ── Market data ──────────────────────────────────────────────────


@market_router.get(
    "/ticker/{symbol}",
    response_model=DataResponse[TickerOut],
    summary="24h ticker",
    description="24-hour rolling statistics for one symbol, e.g. BTC or BTCUSDT.",
)
def get_ticker(
    symbol: str,
    service: MarketDataService = Depends(get_market_data_service),
) -> DataResponse[TickerOut]:
    return wrap(TickerOut.model_validate(service.ticker(symbol)))


@market_router.get("/tickers/{symbols}", response_model=DataResponse[list[TickerOut]])
def get_tickers(
    symbols: str,
    service: MarketDataService = Depends(get_market_data_service),
) -> DataResponse[list[TickerOut]]:
    """Tickers for a comma-separated symbol list."""
    return wrap([TickerOut.model_validate(t) for t in service.tickers(symbols)])
