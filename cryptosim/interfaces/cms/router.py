"""
FastAPI routers for site content.

``/admin/cms/*`` exposes full CRUD to the back office; ``/public/cms/*``
serves the same collections read-only to the public site. The four
collections share one route layout, registered by
``_register_collection``.
"""

from collections.abc import Callable
from typing import Any, Optional

from fastapi import APIRouter, Depends, Query

from cryptosim.application.cms.content import ContentService
from cryptosim.application.settings.settings_service import SettingsService
from cryptosim.domain.cms.entities import LeaderboardType
from cryptosim.interfaces.cms.dependencies import (
    get_carousel_service,
    get_leaderboard_service,
    get_testimonial_service,
    get_trading_performance_service,
)
from cryptosim.interfaces.cms.schemas import (
    CarouselIn,
    CarouselOut,
    CarouselUpdate,
    DepositAddress,
    LeaderboardIn,
    LeaderboardOut,
    LeaderboardUpdate,
    ShareCopy,
    TestimonialIn,
    TestimonialOut,
    TestimonialUpdate,
    TradingPerformanceIn,
    TradingPerformanceOut,
    TradingPerformanceUpdate,
)
from cryptosim.interfaces.dependencies import get_settings_service, require_admin
from cryptosim.interfaces.schemas import (
    CamelModel,
    DataResponse,
    ErrorResponse,
    MessageResponse,
    wrap,
)

admin_router = APIRouter(
    prefix="/admin/cms",
    tags=["admin-cms"],
    dependencies=[Depends(require_admin)],
    responses={401: {"model": ErrorResponse}, 403: {"model": ErrorResponse}},
)
public_router = APIRouter(prefix="/public/cms", tags=["public-cms"])


def _register_collection(
    path: str,
    get_service: Callable[..., ContentService],
    create_schema: type[CamelModel],
    update_schema: type[CamelModel],
    out_schema: type[CamelModel],
    with_list: bool = True,
) -> None:
    """Add list/get/create/update/delete admin routes and a public list route."""
    not_found = {404: {"model": ErrorResponse}}

    if with_list:

        @admin_router.get(path, response_model=DataResponse[list[out_schema]], name=f"list{path}")
        def list_records(
            service: ContentService = Depends(get_service),
        ) -> DataResponse[list[Any]]:
            return wrap([out_schema.model_validate(r) for r in service.find()])

        @public_router.get(
            path, response_model=DataResponse[list[out_schema]], name=f"public-list{path}"
        )
        def list_public_records(
            service: ContentService = Depends(get_service),
        ) -> DataResponse[list[Any]]:
            return wrap([out_schema.model_validate(r) for r in service.find()])

    @admin_router.get(
        f"{path}/{{record_id}}",
        response_model=DataResponse[out_schema],
        responses=not_found,
        name=f"get{path}",
    )
    def get_record(
        record_id: str,
        service: ContentService = Depends(get_service),
    ) -> DataResponse[Any]:
        return wrap(out_schema.model_validate(service.get(record_id)))

    @admin_router.post(
        path, response_model=DataResponse[out_schema], status_code=201, name=f"create{path}"
    )
    def create_record(
        body: create_schema,
        service: ContentService = Depends(get_service),
    ) -> DataResponse[Any]:
        record = service.create(**body.model_dump())
        return wrap(out_schema.model_validate(record))

    @admin_router.put(
        f"{path}/{{record_id}}",
        response_model=DataResponse[out_schema],
        responses=not_found,
        name=f"update{path}",
    )
    def update_record(
        record_id: str,
        body: update_schema,
        service: ContentService = Depends(get_service),
    ) -> DataResponse[Any]:
        record = service.update(record_id, **body.model_dump(exclude_unset=True))
        return wrap(out_schema.model_validate(record))

    @admin_router.delete(
        f"{path}/{{record_id}}",
        response_model=DataResponse[MessageResponse],
        responses=not_found,
        name=f"delete{path}",
    )
    def delete_record(
        record_id: str,
        service: ContentService = Depends(get_service),
    ) -> DataResponse[MessageResponse]:
        service.delete(record_id)
        return wrap(MessageResponse(message="Deleted"))


# ── Leaderboard lists take an optional type filter ───────────────


@admin_router.get("/leaderboard", response_model=DataResponse[list[LeaderboardOut]])
def list_leaderboard(
    board_type: Optional[LeaderboardType] = Query(None, alias="type"),
    service: ContentService = Depends(get_leaderboard_service),
) -> DataResponse[list[LeaderboardOut]]:
    return wrap([LeaderboardOut.model_validate(e) for e in service.find(type=board_type)])


@public_router.get("/leaderboard", response_model=DataResponse[list[LeaderboardOut]])
def list_public_leaderboard(
    board_type: Optional[LeaderboardType] = Query(None, alias="type"),
    service: ContentService = Depends(get_leaderboard_service),
) -> DataResponse[list[LeaderboardOut]]:
    return wrap([LeaderboardOut.model_validate(e) for e in service.find(type=board_type)])


_register_collection(
    "/testimonials", get_testimonial_service, TestimonialIn, TestimonialUpdate, TestimonialOut
)
_register_collection("/carousels", get_carousel_service, CarouselIn, CarouselUpdate, CarouselOut)
_register_collection(
    "/leaderboard",
    get_leaderboard_service,
    LeaderboardIn,
    LeaderboardUpdate,
    LeaderboardOut,
    with_list=False,
)
_register_collection(
    "/trading-performance",
    get_trading_performance_service,
    TradingPerformanceIn,
    TradingPerformanceUpdate,
    TradingPerformanceOut,
)


# ── Share copy and deposit address (stored as settings) ──────────


@admin_router.get("/share-copy", response_model=DataResponse[ShareCopy])
def get_share_copy(
    settings: SettingsService = Depends(get_settings_service),
) -> DataResponse[ShareCopy]:
    return wrap(ShareCopy.model_validate(settings.share_copy()))


@admin_router.put("/share-copy", response_model=DataResponse[ShareCopy])
def put_share_copy(
    body: ShareCopy,
    settings: SettingsService = Depends(get_settings_service),
) -> DataResponse[ShareCopy]:
    stored = settings.set_share_copy(body.model_dump(by_alias=True))
    return wrap(ShareCopy.model_validate(stored))


@public_router.get("/share-copy", response_model=DataResponse[ShareCopy])
def get_public_share_copy(
    settings: SettingsService = Depends(get_settings_service),
) -> DataResponse[ShareCopy]:
    return wrap(ShareCopy.model_validate(settings.share_copy()))


@admin_router.get("/deposit-address", response_model=DataResponse[DepositAddress])
def get_deposit_address(
    settings: SettingsService = Depends(get_settings_service),
) -> DataResponse[DepositAddress]:
    return wrap(DepositAddress.model_validate(settings.deposit_address()))


@admin_router.put("/deposit-address", response_model=DataResponse[DepositAddress])
def put_deposit_address(
    body: DepositAddress,
    settings: SettingsService = Depends(get_settings_service),
) -> DataResponse[DepositAddress]:
    stored = settings.set_deposit_address(body.model_dump(by_alias=True))
    return wrap(DepositAddress.model_validate(stored))


@public_router.get("/deposit-address", response_model=DataResponse[DepositAddress])
def get_public_deposit_address(
    settings: SettingsService = Depends(get_settings_service),
) -> DataResponse[DepositAddress]:
    return wrap(DepositAddress.model_validate(settings.deposit_address()))
