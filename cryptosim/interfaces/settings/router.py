"""
FastAPI router for platform settings and the admin IP whitelist.

Fixed paths are declared before ``/{key}`` so they are not captured
by the generic setting lookup.
"""

from typing import Any, Optional

from fastapi import APIRouter, Depends, Query

from cryptosim.application.accounts.admin_accounts import AdminAccountService
from cryptosim.application.settings.ip_whitelist import IpWhitelistService
from cryptosim.application.settings.settings_service import SettingsService
from cryptosim.domain.pagination import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE, PageRequest
from cryptosim.interfaces.accounts.dependencies import get_admin_account_service
from cryptosim.interfaces.accounts.schemas import AdminOut
from cryptosim.interfaces.dependencies import get_settings_service, require_admin
from cryptosim.interfaces.schemas import (
    DataResponse,
    ErrorResponse,
    MessageResponse,
    PageData,
    page_of,
    wrap,
)
from cryptosim.interfaces.settings.dependencies import get_ip_whitelist_service
from cryptosim.interfaces.settings.schemas import (
    AdminAccountRequest,
    CustomerServiceConfig,
    EnabledFlag,
    IpWhitelistIn,
    IpWhitelistOut,
    IpWhitelistUpdate,
    LatencyConfig,
    SettingOut,
    SettingsBatchRequest,
    SettingUpsertRequest,
    TradingChannels,
)

NOT_FOUND = {404: {"model": ErrorResponse}}

router = APIRouter(
    prefix="/admin/settings",
    tags=["admin-settings"],
    dependencies=[Depends(require_admin)],
    responses={401: {"model": ErrorResponse}, 403: {"model": ErrorResponse}},
)


# ── Generic key/value settings ───────────────────────────────────


@router.get("", response_model=DataResponse[dict[str, list[SettingOut]]])
def list_settings(
    category: Optional[str] = Query(None, max_length=50),
    service: SettingsService = Depends(get_settings_service),
) -> DataResponse[dict[str, list[SettingOut]]]:
    """All settings grouped by category, optionally limited to one category."""
    groups = service.grouped(category)
    return wrap(
        {name: [SettingOut.model_validate(s) for s in items] for name, items in groups.items()}
    )


@router.put("", response_model=DataResponse[SettingOut])
def upsert_setting(
    body: SettingUpsertRequest,
    service: SettingsService = Depends(get_settings_service),
) -> DataResponse[SettingOut]:
    return wrap(SettingOut.model_validate(service.put(body.key, body.value, body.description)))


@router.put("/batch", response_model=DataResponse[list[SettingOut]])
def upsert_settings(
    body: SettingsBatchRequest,
    service: SettingsService = Depends(get_settings_service),
) -> DataResponse[list[SettingOut]]:
    return wrap([SettingOut.model_validate(s) for s in service.put_many(body.settings)])


@router.put(
    "/admin-account",
    response_model=DataResponse[AdminOut],
    responses={**NOT_FOUND, 409: {"model": ErrorResponse}},
    summary="Change the primary admin credentials",
)
def update_admin_account(
    body: AdminAccountRequest,
    accounts: AdminAccountService = Depends(get_admin_account_service),
) -> DataResponse[AdminOut]:
    """Rename or re-password the earliest created operator."""
    admin = accounts.update_primary_account(body.username, body.password)
    return wrap(AdminOut.model_validate(admin))


# ── Well-known settings ──────────────────────────────────────────


@router.get("/trading/channels", response_model=DataResponse[list[Any]])
def get_trading_channels(
    service: SettingsService = Depends(get_settings_service),
) -> DataResponse[list[Any]]:
    return wrap(service.trading_channels())


@router.put("/trading/channels", response_model=DataResponse[list[Any]])
def put_trading_channels(
    body: TradingChannels,
    service: SettingsService = Depends(get_settings_service),
) -> DataResponse[list[Any]]:
    return wrap(service.set_trading_channels(body.channels))


@router.get("/trading/managed-mode", response_model=DataResponse[EnabledFlag])
def get_managed_mode(
    service: SettingsService = Depends(get_settings_service),
) -> DataResponse[EnabledFlag]:
    return wrap(EnabledFlag(enabled=service.managed_mode()))


@router.put("/trading/managed-mode", response_model=DataResponse[EnabledFlag])
def put_managed_mode(
    body: EnabledFlag,
    service: SettingsService = Depends(get_settings_service),
) -> DataResponse[EnabledFlag]:
    """New orders are flagged as managed while this is on."""
    return wrap(EnabledFlag(enabled=service.set_managed_mode(body.enabled)))


@router.get("/customer-service", response_model=DataResponse[dict[str, Any]])
def get_customer_service(
    service: SettingsService = Depends(get_settings_service),
) -> DataResponse[dict[str, Any]]:
    return wrap(service.customer_service())


@router.put("/customer-service", response_model=DataResponse[dict[str, Any]])
def put_customer_service(
    body: CustomerServiceConfig,
    service: SettingsService = Depends(get_settings_service),
) -> DataResponse[dict[str, Any]]:
    return wrap(service.set_customer_service(body.model_dump(by_alias=True, exclude_none=True)))


@router.get("/latency", response_model=DataResponse[dict[str, Any]])
def get_latency(
    service: SettingsService = Depends(get_settings_service),
) -> DataResponse[dict[str, Any]]:
    return wrap(service.latency())


@router.put("/latency", response_model=DataResponse[dict[str, Any]])
def put_latency(
    body: LatencyConfig,
    service: SettingsService = Depends(get_settings_service),
) -> DataResponse[dict[str, Any]]:
    return wrap(service.set_latency(body.model_dump(by_alias=True, exclude_none=True)))


# ── IP whitelist ─────────────────────────────────────────────────


@router.get("/ip-whitelist/config", response_model=DataResponse[EnabledFlag])
def get_ip_whitelist_config(
    service: SettingsService = Depends(get_settings_service),
) -> DataResponse[EnabledFlag]:
    return wrap(EnabledFlag(enabled=service.ip_whitelist_enabled()))


@router.put("/ip-whitelist/config", response_model=DataResponse[EnabledFlag])
def put_ip_whitelist_config(
    body: EnabledFlag,
    service: SettingsService = Depends(get_settings_service),
) -> DataResponse[EnabledFlag]:
    """Turn admin login IP filtering on or off."""
    return wrap(EnabledFlag(enabled=service.set_ip_whitelist_enabled(body.enabled)))


@router.get("/ip-whitelist", response_model=DataResponse[PageData[IpWhitelistOut]])
def list_ip_whitelist(
    page: int = Query(1, ge=1),
    page_size: int = Query(DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE, alias="pageSize"),
    search: Optional[str] = Query(None, max_length=64),
    is_active: Optional[bool] = Query(None, alias="isActive"),
    service: IpWhitelistService = Depends(get_ip_whitelist_service),
) -> DataResponse[PageData[IpWhitelistOut]]:
    result = service.list_entries(search, is_active, PageRequest(page=page, page_size=page_size))
    return wrap(page_of(result, IpWhitelistOut))


@router.post(
    "/ip-whitelist",
    response_model=DataResponse[IpWhitelistOut],
    status_code=201,
    responses={400: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
def create_ip_whitelist_entry(
    body: IpWhitelistIn,
    service: IpWhitelistService = Depends(get_ip_whitelist_service),
) -> DataResponse[IpWhitelistOut]:
    entry = service.create_entry(body.ip_address, body.description, body.is_active)
    return wrap(IpWhitelistOut.model_validate(entry))


@router.get(
    "/ip-whitelist/{entry_id}", response_model=DataResponse[IpWhitelistOut], responses=NOT_FOUND
)
def get_ip_whitelist_entry(
    entry_id: str,
    service: IpWhitelistService = Depends(get_ip_whitelist_service),
) -> DataResponse[IpWhitelistOut]:
    return wrap(IpWhitelistOut.model_validate(service.get_entry(entry_id)))


@router.put(
    "/ip-whitelist/{entry_id}",
    response_model=DataResponse[IpWhitelistOut],
    responses={**NOT_FOUND, 400: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
def update_ip_whitelist_entry(
    entry_id: str,
    body: IpWhitelistUpdate,
    service: IpWhitelistService = Depends(get_ip_whitelist_service),
) -> DataResponse[IpWhitelistOut]:
    entry = service.update_entry(entry_id, body.ip_address, body.description, body.is_active)
    return wrap(IpWhitelistOut.model_validate(entry))


@router.delete(
    "/ip-whitelist/{entry_id}",
    response_model=DataResponse[MessageResponse],
    responses=NOT_FOUND,
)
def delete_ip_whitelist_entry(
    entry_id: str,
    service: IpWhitelistService = Depends(get_ip_whitelist_service),
) -> DataResponse[MessageResponse]:
    service.delete_entry(entry_id)
    return wrap(MessageResponse(message="Whitelist entry deleted"))


# ── Lookup by key (keep last) ────────────────────────────────────


@router.get("/{key}", response_model=DataResponse[SettingOut], responses=NOT_FOUND)
def get_setting(
    key: str,
    service: SettingsService = Depends(get_settings_service),
) -> DataResponse[SettingOut]:
    return wrap(SettingOut.model_validate(service.get(key)))
