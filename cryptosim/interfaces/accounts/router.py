"""
FastAPI routers for the accounts bounded context.

Three routers: trader authentication (``/auth``), operator
authentication and admin account management (``/admin/auth``) and
back-office user administration (``/admin/users``).

All routes delegate to services. No business logic here.
Error mapping is handled by centralized error handlers.
"""

from typing import Literal, Optional

from fastapi import APIRouter, Depends, File, Query, Request, UploadFile
from pydantic.alias_generators import to_snake

from cryptosim.application.accounts.admin_accounts import AdminAccountService
from cryptosim.application.accounts.authentication import AuthService
from cryptosim.application.accounts.dtos import (
    AdjustBalanceCommand,
    AdminLoginCommand,
    AuthResult,
    CreateAdminCommand,
    LoginCommand,
    RegisterCommand,
    UpdateAdminCommand,
    UpdateUserCommand,
    UploadCommand,
)
from cryptosim.application.accounts.user_administration import UserAdministrationService
from cryptosim.core.config import settings
from cryptosim.domain.accounts.entities import Principal, Role, VerificationStatus
from cryptosim.domain.accounts.ports import AdminFilter, UserFilter
from cryptosim.domain.errors import InvalidUploadError
from cryptosim.domain.pagination import MAX_PAGE_SIZE, PageRequest, SortOrder
from cryptosim.interfaces.accounts.dependencies import (
    get_admin_account_service,
    get_user_administration_service,
)
from cryptosim.interfaces.accounts.schemas import (
    AdjustBalanceRequest,
    AdminAuthOut,
    AdminLoginRequest,
    AdminOut,
    AdminSortField,
    CreateAdminRequest,
    LoginRequest,
    RefreshRequest,
    RegisterRequest,
    ResetPasswordRequest,
    SetRolesRequest,
    TokensOut,
    UpdateAdminRequest,
    UpdateUserRequest,
    UserAuthOut,
    UserOut,
    UserSortField,
)
from cryptosim.interfaces.dependencies import (
    client_ip,
    get_auth_service,
    get_current_principal,
    require_admin,
    require_operator,
    require_user,
)
from cryptosim.interfaces.schemas import (
    DataResponse,
    ErrorResponse,
    MessageResponse,
    PageData,
    page_of,
    wrap,
)
from cryptosim.shared.security.rate_limiting import limiter

AUTH_ERRORS = {401: {"model": ErrorResponse}}
ADMIN_ERRORS = {401: {"model": ErrorResponse}, 403: {"model": ErrorResponse}}
UPLOAD_ERRORS = {400: {"model": ErrorResponse}, 413: {"model": ErrorResponse}}

auth_router = APIRouter(prefix="/auth", tags=["auth"])
admin_auth_router = APIRouter(prefix="/admin/auth", tags=["admin-auth"])
users_router = APIRouter(
    prefix="/admin/users",
    tags=["admin-users"],
    dependencies=[Depends(require_admin)],
    responses=ADMIN_ERRORS,
)


def _upload(file: UploadFile) -> UploadCommand:
    """Read the upload, never more than one byte past the size limit."""
    limit = settings.upload_max_bytes
    data = file.file.read(limit + 1)
    if len(data) > limit:
        raise InvalidUploadError(f"File too large: exceeds {limit} bytes", too_large=True)
    return UploadCommand(
        filename=file.filename or "",
        content_type=file.content_type or "",
        data=data,
    )


def _user_auth(result: AuthResult) -> UserAuthOut:
    return UserAuthOut(
        user=UserOut.model_validate(result.account),
        tokens=TokensOut.model_validate(result.tokens),
    )


def _admin_auth(result: AuthResult) -> AdminAuthOut:
    return AdminAuthOut(
        admin=AdminOut.model_validate(result.account),
        tokens=TokensOut.model_validate(result.tokens),
    )


# ── Trader authentication ────────────────────────────────────────


@auth_router.post(
    "/register",
    response_model=DataResponse[UserAuthOut],
    status_code=201,
    responses={409: {"model": ErrorResponse}},
    summary="Register a trader",
)
@limiter.limit(settings.rate_limit_auth)
def register(
    request: Request,
    body: RegisterRequest,
    auth: AuthService = Depends(get_auth_service),
) -> DataResponse[UserAuthOut]:
    """Create a trader account and return it with a fresh token pair."""
    result = auth.register(
        RegisterCommand(
            email=body.email,
            password=body.password,
            display_name=body.display_name,
            phone_number=body.phone_number,
        )
    )
    return wrap(_user_auth(result))


@auth_router.post(
    "/login",
    response_model=DataResponse[UserAuthOut],
    responses=AUTH_ERRORS,
    summary="Trader login",
)
@limiter.limit(settings.rate_limit_auth)
def login(
    request: Request,
    body: LoginRequest,
    auth: AuthService = Depends(get_auth_service),
) -> DataResponse[UserAuthOut]:
    result = auth.login(
        LoginCommand(email=body.email, password=body.password, client_ip=client_ip(request))
    )
    return wrap(_user_auth(result))


@auth_router.post(
    "/refresh",
    response_model=DataResponse[TokensOut],
    responses=AUTH_ERRORS,
    summary="Rotate tokens",
    description="Exchange a refresh token for a new token pair. Accepts trader and operator tokens.",
)
@limiter.limit(settings.rate_limit_auth)
def refresh(
    request: Request,
    body: RefreshRequest,
    auth: AuthService = Depends(get_auth_service),
) -> DataResponse[TokensOut]:
    result = auth.refresh(body.refresh_token)
    return wrap(TokensOut.model_validate(result.tokens))


@auth_router.get("/me", response_model=DataResponse[UserOut], responses=AUTH_ERRORS)
def me(
    principal: Principal = Depends(require_user),
    auth: AuthService = Depends(get_auth_service),
) -> DataResponse[UserOut]:
    return wrap(UserOut.model_validate(auth.account_of(principal)))


@auth_router.post("/logout", response_model=DataResponse[MessageResponse], responses=AUTH_ERRORS)
def logout(
    principal: Principal = Depends(get_current_principal),
    auth: AuthService = Depends(get_auth_service),
) -> DataResponse[MessageResponse]:
    auth.logout(principal)
    return wrap(MessageResponse(message="Logged out"))


@auth_router.post(
    "/upload-avatar",
    response_model=DataResponse[UserOut],
    responses={**AUTH_ERRORS, **UPLOAD_ERRORS},
    summary="Upload own avatar",
)
def upload_own_avatar(
    file: UploadFile = File(...),
    principal: Principal = Depends(require_user),
    service: UserAdministrationService = Depends(get_user_administration_service),
) -> DataResponse[UserOut]:
    return wrap(UserOut.model_validate(service.upload_avatar(principal.id, _upload(file))))


@auth_router.post(
    "/upload-avatar/{user_id}",
    response_model=DataResponse[UserOut],
    responses={**ADMIN_ERRORS, **UPLOAD_ERRORS, 404: {"model": ErrorResponse}},
    summary="Upload a trader's avatar",
    dependencies=[Depends(require_admin)],
)
def upload_user_avatar(
    user_id: str,
    file: UploadFile = File(...),
    service: UserAdministrationService = Depends(get_user_administration_service),
) -> DataResponse[UserOut]:
    return wrap(UserOut.model_validate(service.upload_avatar(user_id, _upload(file))))


@auth_router.post(
    "/upload-id-card",
    response_model=DataResponse[UserOut],
    responses={**AUTH_ERRORS, **UPLOAD_ERRORS},
    summary="Upload one side of an ID card",
    description="Once both sides are stored a pending or rejected trader moves to IN_REVIEW.",
)
def upload_id_card(
    side: Literal["front", "back"] = Query(..., alias="type"),
    file: UploadFile = File(...),
    principal: Principal = Depends(require_user),
    service: UserAdministrationService = Depends(get_user_administration_service),
) -> DataResponse[UserOut]:
    user = service.upload_id_card(principal.id, side, _upload(file))
    return wrap(UserOut.model_validate(user))


# ── Operator authentication ──────────────────────────────────────


@admin_auth_router.post(
    "/login",
    response_model=DataResponse[AdminAuthOut],
    responses=ADMIN_ERRORS,
    summary="Operator login",
    description="Rejected with 403 when the IP whitelist is enabled and the caller is not on it.",
)
@limiter.limit(settings.rate_limit_auth)
def admin_login(
    request: Request,
    body: AdminLoginRequest,
    auth: AuthService = Depends(get_auth_service),
) -> DataResponse[AdminAuthOut]:
    result = auth.admin_login(
        AdminLoginCommand(
            username=body.username, password=body.password, client_ip=client_ip(request)
        )
    )
    return wrap(_admin_auth(result))


@admin_auth_router.post(
    "/logout", response_model=DataResponse[MessageResponse], responses=ADMIN_ERRORS
)
def admin_logout(
    principal: Principal = Depends(require_operator),
    auth: AuthService = Depends(get_auth_service),
) -> DataResponse[MessageResponse]:
    auth.logout(principal)
    return wrap(MessageResponse(message="Logged out"))


@admin_auth_router.get("/me", response_model=DataResponse[AdminOut], responses=ADMIN_ERRORS)
def admin_me(
    principal: Principal = Depends(require_operator),
    auth: AuthService = Depends(get_auth_service),
) -> DataResponse[AdminOut]:
    return wrap(AdminOut.model_validate(auth.account_of(principal)))


@admin_auth_router.get(
    "/admins",
    response_model=DataResponse[PageData[AdminOut]],
    responses=ADMIN_ERRORS,
    dependencies=[Depends(require_admin)],
)
def list_admins(
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=MAX_PAGE_SIZE, alias="pageSize"),
    search: Optional[str] = Query(None, max_length=100),
    is_active: Optional[bool] = Query(None, alias="isActive"),
    sort_by: AdminSortField = Query("createdAt", alias="sortBy"),
    sort_order: SortOrder = Query(SortOrder.DESC, alias="sortOrder"),
    service: AdminAccountService = Depends(get_admin_account_service),
) -> DataResponse[PageData[AdminOut]]:
    criteria = AdminFilter(
        search=search,
        is_active=is_active,
        sort_by=to_snake(sort_by),
        sort_order=sort_order,
    )
    result = service.list_admins(criteria, PageRequest(page=page, page_size=page_size))
    return wrap(page_of(result, AdminOut))


@admin_auth_router.post(
    "/admins",
    response_model=DataResponse[AdminOut],
    status_code=201,
    responses={**ADMIN_ERRORS, 409: {"model": ErrorResponse}},
    dependencies=[Depends(require_admin)],
)
def create_admin(
    body: CreateAdminRequest,
    service: AdminAccountService = Depends(get_admin_account_service),
) -> DataResponse[AdminOut]:
    admin = service.create_admin(
        CreateAdminCommand(
            username=body.username,
            password=body.password,
            email=body.email,
            display_name=body.display_name,
            permissions=tuple(body.permissions),
            is_active=body.is_active,
        )
    )
    return wrap(AdminOut.model_validate(admin))


@admin_auth_router.get(
    "/admins/{admin_id}",
    response_model=DataResponse[AdminOut],
    responses={**ADMIN_ERRORS, 404: {"model": ErrorResponse}},
    dependencies=[Depends(require_admin)],
)
def get_admin(
    admin_id: str,
    service: AdminAccountService = Depends(get_admin_account_service),
) -> DataResponse[AdminOut]:
    return wrap(AdminOut.model_validate(service.get_admin(admin_id)))


@admin_auth_router.put(
    "/admins/{admin_id}",
    response_model=DataResponse[AdminOut],
    responses={**ADMIN_ERRORS, 400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    dependencies=[Depends(require_admin)],
)
def update_admin(
    admin_id: str,
    body: UpdateAdminRequest,
    service: AdminAccountService = Depends(get_admin_account_service),
) -> DataResponse[AdminOut]:
    admin = service.update_admin(
        UpdateAdminCommand(
            admin_id=admin_id,
            username=body.username,
            password=body.password,
            email=body.email,
            display_name=body.display_name,
            permissions=tuple(body.permissions) if body.permissions is not None else None,
            is_active=body.is_active,
        )
    )
    return wrap(AdminOut.model_validate(admin))


@admin_auth_router.delete(
    "/admins/{admin_id}",
    response_model=DataResponse[MessageResponse],
    responses={**ADMIN_ERRORS, 400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
def delete_admin(
    admin_id: str,
    principal: Principal = Depends(require_admin),
    service: AdminAccountService = Depends(get_admin_account_service),
) -> DataResponse[MessageResponse]:
    """Delete an operator; callers cannot delete themselves or the last active admin."""
    service.delete_admin(admin_id, acting_admin_id=principal.id)
    return wrap(MessageResponse(message="Admin deleted"))


# ── User administration ──────────────────────────────────────────


@users_router.get("", response_model=DataResponse[PageData[UserOut]])
def list_users(
    page: int = Query(1, ge=1),
    page_size: int = Query(10, ge=1, le=MAX_PAGE_SIZE, alias="pageSize"),
    search: Optional[str] = Query(None, max_length=100),
    role: Optional[Role] = Query(None),
    verification_status: Optional[VerificationStatus] = Query(None, alias="verificationStatus"),
    is_active: Optional[bool] = Query(None, alias="isActive"),
    sort_by: UserSortField = Query("createdAt", alias="sortBy"),
    sort_order: SortOrder = Query(SortOrder.DESC, alias="sortOrder"),
    service: UserAdministrationService = Depends(get_user_administration_service),
) -> DataResponse[PageData[UserOut]]:
    """Search traders by email, display name or phone with optional filters."""
    criteria = UserFilter(
        search=search,
        role=role.value if role else None,
        verification_status=verification_status.value if verification_status else None,
        is_active=is_active,
        sort_by=to_snake(sort_by),
        sort_order=sort_order,
    )
    result = service.list_users(criteria, PageRequest(page=page, page_size=page_size))
    return wrap(page_of(result, UserOut))


@users_router.get(
    "/{user_id}", response_model=DataResponse[UserOut], responses={404: {"model": ErrorResponse}}
)
def get_user(
    user_id: str,
    service: UserAdministrationService = Depends(get_user_administration_service),
) -> DataResponse[UserOut]:
    return wrap(UserOut.model_validate(service.get_user(user_id)))


@users_router.put(
    "/{user_id}",
    response_model=DataResponse[UserOut],
    responses={404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
def update_user(
    user_id: str,
    body: UpdateUserRequest,
    service: UserAdministrationService = Depends(get_user_administration_service),
) -> DataResponse[UserOut]:
    user = service.update_user(
        UpdateUserCommand(
            user_id=user_id,
            email=body.email,
            display_name=body.display_name,
            phone_number=body.phone_number,
            avatar=body.avatar,
            verification_status=(
                body.verification_status.value if body.verification_status else None
            ),
            is_active=body.is_active,
        )
    )
    return wrap(UserOut.model_validate(user))


@users_router.patch("/{user_id}/activate", response_model=DataResponse[UserOut])
def activate_user(
    user_id: str,
    service: UserAdministrationService = Depends(get_user_administration_service),
) -> DataResponse[UserOut]:
    return wrap(UserOut.model_validate(service.set_active(user_id, True)))


@users_router.patch("/{user_id}/deactivate", response_model=DataResponse[UserOut])
def deactivate_user(
    user_id: str,
    service: UserAdministrationService = Depends(get_user_administration_service),
) -> DataResponse[UserOut]:
    return wrap(UserOut.model_validate(service.set_active(user_id, False)))


@users_router.patch("/{user_id}/roles", response_model=DataResponse[UserOut])
def set_user_roles(
    user_id: str,
    body: SetRolesRequest,
    service: UserAdministrationService = Depends(get_user_administration_service),
) -> DataResponse[UserOut]:
    user = service.set_roles(user_id, [role.value for role in body.roles])
    return wrap(UserOut.model_validate(user))


@users_router.patch(
    "/{user_id}/balance",
    response_model=DataResponse[UserOut],
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
    summary="Adjust a balance",
    description="Add to, subtract from or overwrite the demo or real balance. "
    "A negative result is rejected with 400.",
)
def adjust_balance(
    user_id: str,
    body: AdjustBalanceRequest,
    service: UserAdministrationService = Depends(get_user_administration_service),
) -> DataResponse[UserOut]:
    user = service.adjust_balance(
        AdjustBalanceCommand(
            user_id=user_id,
            balance_type=body.balance_type,
            adjustment_type=body.adjustment_type,
            amount=body.amount,
            reason=body.reason,
        )
    )
    return wrap(UserOut.model_validate(user))


@users_router.post("/{user_id}/reset-password", response_model=DataResponse[MessageResponse])
def reset_password(
    user_id: str,
    body: ResetPasswordRequest,
    service: UserAdministrationService = Depends(get_user_administration_service),
) -> DataResponse[MessageResponse]:
    service.reset_password(user_id, body.new_password)
    return wrap(MessageResponse(message="Password reset"))


@users_router.delete(
    "/{user_id}",
    response_model=DataResponse[MessageResponse],
    responses={404: {"model": ErrorResponse}},
)
def delete_user(
    user_id: str,
    service: UserAdministrationService = Depends(get_user_administration_service),
) -> DataResponse[MessageResponse]:
    service.delete_user(user_id)
    return wrap(MessageResponse(message="User deleted"))
