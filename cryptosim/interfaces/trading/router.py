"""
FastAPI routers for the trading bounded context.

``/transactions`` serves traders (their own orders only);
``/admin/transactions`` serves the back office.

All routes delegate to use cases. No business logic here.
Input validation is handled by Pydantic schemas.
Error mapping is handled by centralized error handlers.
"""

from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query

from cryptosim.application.trading.admin_transactions import AdminTransactionUseCase
from cryptosim.application.trading.auto_settle import AutoSettleUseCase
from cryptosim.application.trading.dtos import (
    AdminCreateTradeCommand,
    AdminUpdateTradeCommand,
    OpenTradeCommand,
    SettleTradeCommand,
)
from cryptosim.application.trading.open_trade import OpenTradeUseCase
from cryptosim.application.trading.query_transactions import TransactionQueryService
from cryptosim.application.trading.settle_trade import SettleTradeUseCase
from cryptosim.domain.accounts.entities import Principal
from cryptosim.domain.pagination import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, PageRequest
from cryptosim.domain.trading.entities import AccountType, TradeDirection, TransactionStatus
from cryptosim.domain.trading.ports import TransactionFilter
from cryptosim.interfaces.dependencies import require_admin, require_user
from cryptosim.interfaces.schemas import DataResponse, ErrorResponse, wrap
from cryptosim.interfaces.trading.dependencies import (
    get_admin_transaction_use_case,
    get_auto_settle_use_case,
    get_open_trade_use_case,
    get_settle_trade_use_case,
    get_transaction_query_service,
)
from cryptosim.interfaces.trading.schemas import (
    AdminCreateTransactionRequest,
    AdminUpdateTransactionRequest,
    AutoSettleOut,
    ForceSettleRequest,
    SettleRequest,
    StatisticsOut,
    TransactionOut,
    TransactionPage,
    TransactionType,
    UnifiedTransactionRequest,
)

TRADE_ERRORS = {
    400: {"model": ErrorResponse},
    401: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
}

router = APIRouter(prefix="/transactions", tags=["transactions"], responses=TRADE_ERRORS)
admin_router = APIRouter(
    prefix="/admin/transactions",
    tags=["admin-transactions"],
    dependencies=[Depends(require_admin)],
    responses={**TRADE_ERRORS, 403: {"model": ErrorResponse}},
)


def _upper(value: Optional[str]) -> Optional[str]:
    return value.upper() if value else None


# ── Trader routes ────────────────────────────────────────────────


@router.post(
    "",
    response_model=DataResponse[TransactionOut],
    status_code=201,
    summary="Open or settle an order",
    description="type=entryPrice opens an order at `price`; "
    "type=exitPrice settles `orderNumber` at `price`.",
)
def submit_transaction(
    body: UnifiedTransactionRequest,
    principal: Principal = Depends(require_user),
    open_trade: OpenTradeUseCase = Depends(get_open_trade_use_case),
    settle_trade: SettleTradeUseCase = Depends(get_settle_trade_use_case),
) -> DataResponse[TransactionOut]:
    if body.type is TransactionType.EXIT:
        transaction = settle_trade.execute(
            SettleTradeCommand(
                order_number=body.order_number,
                exit_price=body.price,
                owner_id=principal.id,
            )
        )
    else:
        transaction = open_trade.execute(
            OpenTradeCommand(
                user_id=principal.id,
                asset_type=body.asset_type,
                direction=body.direction,
                duration=body.duration,
                entry_price=body.price,
                invest_amount=body.invest_amount,
                return_rate=body.return_rate,
                account_type=body.account_type,
                market_session_id=body.market_session_id,
            )
        )
    return wrap(TransactionOut.model_validate(transaction))


@router.get("", response_model=DataResponse[TransactionPage])
def list_own_transactions(
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    asset_type: Optional[str] = Query(None, alias="assetType"),
    direction: Optional[TradeDirection] = Query(None),
    status: Optional[TransactionStatus] = Query(None),
    account_type: Optional[AccountType] = Query(None, alias="accountType"),
    principal: Principal = Depends(require_user),
    service: TransactionQueryService = Depends(get_transaction_query_service),
) -> DataResponse[TransactionPage]:
    """List the caller's orders, newest first."""
    criteria = TransactionFilter(
        user_id=principal.id,
        asset_type=_upper(asset_type),
        direction=direction.value if direction else None,
        status=status.value if status else None,
        account_type=account_type.value if account_type else None,
    )
    result = service.list_transactions(criteria, PageRequest(page=page, page_size=limit))
    return wrap(TransactionPage.of(result))


@router.get("/statistics", response_model=DataResponse[StatisticsOut])
def trading_statistics(
    account_type: AccountType = Query(AccountType.DEMO, alias="accountType"),
    principal: Principal = Depends(require_user),
    service: TransactionQueryService = Depends(get_transaction_query_service),
) -> DataResponse[StatisticsOut]:
    stats = service.statistics(principal.id, account_type)
    return wrap(StatisticsOut.model_validate(stats))


@router.post(
    "/auto-settle",
    response_model=DataResponse[AutoSettleOut],
    responses={403: {"model": ErrorResponse}, 502: {"model": ErrorResponse}},
    summary="Settle every expired order",
    dependencies=[Depends(require_admin)],
)
def auto_settle(
    use_case: AutoSettleUseCase = Depends(get_auto_settle_use_case),
) -> DataResponse[AutoSettleOut]:
    result = use_case.execute()
    return wrap(AutoSettleOut.model_validate(result))


@router.get("/{order_number}", response_model=DataResponse[TransactionOut])
def get_own_transaction(
    order_number: str,
    principal: Principal = Depends(require_user),
    service: TransactionQueryService = Depends(get_transaction_query_service),
) -> DataResponse[TransactionOut]:
    transaction = service.get_transaction(order_number, owner_id=principal.id)
    return wrap(TransactionOut.model_validate(transaction))


@router.post("/{order_number}/settle", response_model=DataResponse[TransactionOut])
def settle_own_transaction(
    order_number: str,
    body: SettleRequest,
    principal: Principal = Depends(require_user),
    use_case: SettleTradeUseCase = Depends(get_settle_trade_use_case),
) -> DataResponse[TransactionOut]:
    transaction = use_case.execute(
        SettleTradeCommand(
            order_number=order_number, exit_price=body.exit_price, owner_id=principal.id
        )
    )
    return wrap(TransactionOut.model_validate(transaction))


@router.post("/{order_number}/cancel", response_model=DataResponse[TransactionOut])
def cancel_own_transaction(
    order_number: str,
    principal: Principal = Depends(require_user),
    use_case: SettleTradeUseCase = Depends(get_settle_trade_use_case),
) -> DataResponse[TransactionOut]:
    """Cancel a pending order and refund the stake."""
    transaction = use_case.cancel(order_number, owner_id=principal.id)
    return wrap(TransactionOut.model_validate(transaction))


# ── Back-office routes ───────────────────────────────────────────


@admin_router.get("", response_model=DataResponse[TransactionPage])
def list_transactions(
    page: int = Query(1, ge=1),
    limit: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    user_id: Optional[str] = Query(None, alias="userId"),
    username: Optional[str] = Query(None, max_length=100),
    account_type: Optional[AccountType] = Query(None, alias="accountType"),
    asset_type: Optional[str] = Query(None, alias="assetType"),
    direction: Optional[TradeDirection] = Query(None),
    status: Optional[TransactionStatus] = Query(None),
    market_session_id: Optional[str] = Query(None, alias="marketSessionId"),
    order_number: Optional[str] = Query(None, alias="orderNumber"),
    managed_mode: Optional[bool] = Query(None, alias="managedMode"),
    entry_from: Optional[datetime] = Query(None, alias="from"),
    entry_to: Optional[datetime] = Query(None, alias="to"),
    service: TransactionQueryService = Depends(get_transaction_query_service),
) -> DataResponse[TransactionPage]:
    """Search every order; ``from``/``to`` bound the entry time."""
    criteria = TransactionFilter(
        user_id=user_id,
        username=username,
        account_type=account_type.value if account_type else None,
        asset_type=_upper(asset_type),
        direction=direction.value if direction else None,
        status=status.value if status else None,
        market_session_id=market_session_id,
        order_number=order_number,
        is_managed=managed_mode,
        entry_from=entry_from,
        entry_to=entry_to,
    )
    result = service.list_transactions(criteria, PageRequest(page=page, page_size=limit))
    return wrap(TransactionPage.of(result))


@admin_router.post("/create", response_model=DataResponse[TransactionOut], status_code=201)
def create_transaction(
    body: AdminCreateTransactionRequest,
    use_case: AdminTransactionUseCase = Depends(get_admin_transaction_use_case),
) -> DataResponse[TransactionOut]:
    transaction = use_case.create(
        AdminCreateTradeCommand(
            open=OpenTradeCommand(
                user_id=body.user_id,
                asset_type=body.asset_type,
                direction=body.direction,
                duration=body.duration,
                entry_price=body.entry_price,
                invest_amount=body.invest_amount,
                return_rate=body.return_rate,
                account_type=body.account_type,
                market_session_id=body.market_session_id,
                entry_time=body.entry_time,
            ),
            exit_price=body.exit_price,
            auto_settle=body.auto_settle,
            status=body.status,
            reason=body.reason,
        )
    )
    return wrap(TransactionOut.model_validate(transaction))


@admin_router.put("/{order_number}", response_model=DataResponse[TransactionOut])
def update_transaction(
    order_number: str,
    body: AdminUpdateTransactionRequest,
    use_case: AdminTransactionUseCase = Depends(get_admin_transaction_use_case),
) -> DataResponse[TransactionOut]:
    """Patch stored fields; balances are left as they are."""
    transaction = use_case.update(
        AdminUpdateTradeCommand(order_number=order_number, **body.model_dump(exclude_none=True))
    )
    return wrap(TransactionOut.model_validate(transaction))


@admin_router.post("/{order_number}/force-settle", response_model=DataResponse[TransactionOut])
def force_settle_transaction(
    order_number: str,
    body: Optional[ForceSettleRequest] = None,
    use_case: SettleTradeUseCase = Depends(get_settle_trade_use_case),
) -> DataResponse[TransactionOut]:
    body = body or ForceSettleRequest()
    transaction = use_case.execute(
        SettleTradeCommand(
            order_number=order_number,
            exit_price=body.exit_price,
            forced_result=body.result,
            reason=body.reason,
        )
    )
    return wrap(TransactionOut.model_validate(transaction))


@admin_router.post("/{order_number}/cancel", response_model=DataResponse[TransactionOut])
def cancel_transaction(
    order_number: str,
    use_case: SettleTradeUseCase = Depends(get_settle_trade_use_case),
) -> DataResponse[TransactionOut]:
    return wrap(TransactionOut.model_validate(use_case.cancel(order_number)))
