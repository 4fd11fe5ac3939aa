"""
Application entry point.

Creates the FastAPI application and wires together:
- Routers (one per bounded context)
- Error handlers (centralized domain-to-HTTP mapping)
- Security middleware (headers, CORS, rate limiting)
- Logging configuration
- Schema creation and the scheduled jobs (auto-settle, realtime prices)

No business logic belongs here.
"""

import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

from asgiref.sync import sync_to_async
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from slowapi.errors import RateLimitExceeded
from uvicorn.middleware.proxy_headers import ProxyHeadersMiddleware

from cryptosim.application.trading.dtos import AutoSettleResult
from cryptosim.core.config import settings
from cryptosim.core.database import init_db, session_scope
from cryptosim.infrastructure.scheduling.scheduler import MaintenanceScheduler
from cryptosim.interfaces.accounts.router import admin_auth_router, auth_router, users_router
from cryptosim.interfaces.cms.router import admin_router as cms_admin_router
from cryptosim.interfaces.cms.router import public_router as cms_public_router
from cryptosim.interfaces.dependencies import get_exchange_client
from cryptosim.interfaces.health import router as health_router
from cryptosim.interfaces.markets.dependencies import build_market_data
from cryptosim.interfaces.markets.router import admin_router as sessions_admin_router
from cryptosim.interfaces.markets.router import market_router, sessions_router
from cryptosim.interfaces.realtime.router import router as realtime_router
from cryptosim.interfaces.settings.router import router as settings_router
from cryptosim.interfaces.trading.dependencies import build_auto_settle
from cryptosim.interfaces.trading.router import admin_router as transactions_admin_router
from cryptosim.interfaces.trading.router import router as transactions_router
from cryptosim.shared.errors.handlers import register_error_handlers
from cryptosim.shared.logging import configure_logging
from cryptosim.shared.security.headers import SecurityHeadersMiddleware
from cryptosim.shared.security.rate_limiting import limiter, rate_limit_exceeded_handler

logger = logging.getLogger(__name__)

AUTO_SETTLE_JOB = "auto_settle"
PRICE_BROADCAST_JOB = "price_broadcast"


def run_auto_settle() -> AutoSettleResult:
    """Settle every expired order in its own unit of work."""
    with session_scope() as session:
        return build_auto_settle(session, get_exchange_client()).execute()


def run_price_broadcast() -> int:
    """Push the latest tickers to realtime clients following a pair."""
    return build_market_data(get_exchange_client()).broadcast_prices()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Ensure the schema exists, then run the scheduler while serving."""
    await sync_to_async(init_db)()

    jobs = [
        (AUTO_SETTLE_JOB, run_auto_settle, settings.auto_settle_interval_seconds),
        (PRICE_BROADCAST_JOB, run_price_broadcast, settings.price_broadcast_interval_seconds),
    ]
    scheduler: Optional[MaintenanceScheduler] = None
    if any(seconds > 0 for _, _, seconds in jobs):
        scheduler = MaintenanceScheduler()
        for name, func, seconds in jobs:
            if seconds > 0:
                scheduler.add_interval_job(name, func, seconds=seconds)
        scheduler.start()
    app.state.scheduler = scheduler

    yield

    if scheduler is not None:
        scheduler.stop()


ROUTERS = (
    health_router,
    auth_router,
    admin_auth_router,
    users_router,
    transactions_router,
    transactions_admin_router,
    sessions_admin_router,
    sessions_router,
    market_router,
    realtime_router,
    cms_admin_router,
    cms_public_router,
    settings_router,
)


def create_app() -> FastAPI:
    """Create and configure the FastAPI application.

    This is the composition root of the application.

    Returns:
        A fully configured FastAPI application instance.
    """
    configure_logging(level=settings.log_level)

    app = FastAPI(
        title=settings.project_name,
        version=settings.version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )

    # --- Rate Limiting ---
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)

    # --- Security Middleware ---
    app.add_middleware(SecurityHeadersMiddleware)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    # Outermost: resolves the client address before anything reads it.
    app.add_middleware(ProxyHeadersMiddleware, trusted_hosts=settings.trusted_proxies)

    # --- Error Handlers ---
    register_error_handlers(app)

    # --- Routers ---
    for router in ROUTERS:
        app.include_router(router, prefix=settings.api_prefix)

    # --- Uploaded images ---
    os.makedirs(settings.upload_dir, exist_ok=True)
    app.mount("/uploads", StaticFiles(directory=settings.upload_dir), name="uploads")

    logger.info("Application created with %d routers", len(ROUTERS))
    return app


app = create_app()
