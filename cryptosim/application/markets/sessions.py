"""
Use cases: Market session lifecycle and cycle tracking.

Input: Create/UpdateMarketSessionCommand, session and sub-market ids
Output: MarketSession, MarketSessionDetail, StartSessionResult,
    SubMarketCycle or pages of them
Side effects: Creates sub-markets on start; stops them on stop;
    materialises cycles as they come due.
Failure cases: EntityNotFoundError, InvalidSessionWindowError,
    InvalidSessionTransitionError.
"""

import logging
import uuid
from decimal import Decimal
from typing import Optional

from cryptosim.application.markets.dtos import (
    CreateMarketSessionCommand,
    MarketSessionDetail,
    StartSessionResult,
    UpdateMarketSessionCommand,
)
from cryptosim.domain.clock import ensure_utc, utc_now
from cryptosim.domain.errors import EntityNotFoundError, UpstreamServiceError
from cryptosim.domain.markets.entities import (
    CycleStatus,
    MarketResult,
    MarketSession,
    MarketSessionStatus,
    SubMarket,
    SubMarketCycle,
    SubMarketStatus,
)
from cryptosim.domain.markets.lifecycle import (
    current_cycle_number,
    cycle_window,
    ensure_can_delete,
    ensure_can_start,
    ensure_can_stop,
    plan_sub_markets,
    validate_window,
)
from cryptosim.domain.markets.errors import InvalidSessionTransitionError
from cryptosim.domain.markets.ports import MarketSessionRepository
from cryptosim.domain.pagination import Page, PageRequest
from cryptosim.domain.trading.ports import PriceQuotePort

logger = logging.getLogger(__name__)


def _new_id() -> str:
    return str(uuid.uuid4())


class MarketSessionService:
    """Runs market sessions through PENDING -> ACTIVE -> COMPLETED."""

    def __init__(
        self,
        sessions: MarketSessionRepository,
        default_profit_rate: Decimal,
        prices: Optional[PriceQuotePort] = None,
    ) -> None:
        self._sessions = sessions
        self._default_profit_rate = default_profit_rate
        self._prices = prices

    def _require(self, session_id: str) -> MarketSession:
        session = self._sessions.get(session_id)
        if session is None:
            raise EntityNotFoundError("MarketSession", session_id)
        return session

    def _require_sub_market(self, sub_market_id: str) -> SubMarket:
        sub_market = self._sessions.get_sub_market(sub_market_id)
        if sub_market is None:
            raise EntityNotFoundError("SubMarket", sub_market_id)
        return sub_market

    # ── Sessions ─────────────────────────────────────────────────

    def create(self, command: CreateMarketSessionCommand) -> MarketSession:
        start, end = ensure_utc(command.start_time), ensure_utc(command.end_time)
        validate_window(start, end)
        session = self._sessions.add(
            MarketSession(
                id=_new_id(),
                name=command.name,
                description=command.description,
                start_time=start,
                end_time=end,
                initial_result=command.initial_result,
                trade_types=list(command.trade_types),
                asset_type=command.asset_type,
                created_by_id=command.created_by_id,
                created_by_name=command.created_by_name,
            )
        )
        logger.info("Created market session id=%s name=%s", session.id, session.name)
        return session

    def list_sessions(self, status: Optional[str], page: PageRequest) -> Page[MarketSession]:
        return self._sessions.search(status, page)

    def active_sessions(self) -> list[MarketSession]:
        return self._sessions.list_by_status(MarketSessionStatus.ACTIVE.value)

    def detail(self, session_id: str) -> MarketSessionDetail:
        session = self._require(session_id)
        return MarketSessionDetail(session, self._sessions.list_sub_markets(session_id))

    def update(self, command: UpdateMarketSessionCommand) -> MarketSession:
        """Edit a session; its schedule and trade types are frozen once started."""
        session = self._require(command.session_id)
        reschedules = any(
            value is not None
            for value in (command.start_time, command.end_time, command.trade_types, command.asset_type)
        )
        if reschedules and session.status is not MarketSessionStatus.PENDING:
            raise InvalidSessionTransitionError(session.id, session.status.value, "reschedule")

        if command.name is not None:
            session.name = command.name
        if command.description is not None:
            session.description = command.description
        if command.start_time is not None:
            session.start_time = ensure_utc(command.start_time)
        if command.end_time is not None:
            session.end_time = ensure_utc(command.end_time)
        if command.trade_types is not None:
            session.trade_types = list(command.trade_types)
        if command.asset_type is not None:
            session.asset_type = command.asset_type
        if command.initial_result is not None:
            session.initial_result = command.initial_result
        if command.actual_result is not None:
            session.actual_result = command.actual_result
        validate_window(session.start_time, session.end_time)

        logger.info("Updated market session id=%s", session.id)
        return self._sessions.save(session)

    def delete(self, session_id: str) -> None:
        session = self._require(session_id)
        ensure_can_delete(session)
        self._sessions.delete(session_id)
        logger.info("Deleted market session id=%s", session_id)

    def start(self, session_id: str) -> StartSessionResult:
        """Activate a PENDING session and create its sub-markets."""
        session = self._require(session_id)
        ensure_can_start(session)

        now = utc_now()
        planned = plan_sub_markets(session, now, self._default_profit_rate, _new_id)
        for sub_market in planned:
            self._sessions.add_sub_market(sub_market)
        session.status = MarketSessionStatus.ACTIVE
        session = self._sessions.save(session)

        logger.info("Started market session id=%s sub_markets=%d", session.id, len(planned))
        return StartSessionResult(session=session, sub_markets_created=len(planned))

    def stop(self, session_id: str) -> MarketSession:
        """Complete an ACTIVE session and stop everything running under it."""
        session = self._require(session_id)
        ensure_can_stop(session)

        for sub_market in self._sessions.list_sub_markets(session_id):
            for cycle in self._sessions.list_running_cycles(sub_market.id):
                cycle.status = CycleStatus.COMPLETED
                self._sessions.save_cycle(cycle)
                sub_market.completed_cycles += 1
            sub_market.status = SubMarketStatus.STOPPED
            self._sessions.save_sub_market(sub_market)

        session.status = MarketSessionStatus.COMPLETED
        if session.actual_result is MarketResult.PENDING:
            session.actual_result = session.initial_result
        session = self._sessions.save(session)
        logger.info("Stopped market session id=%s result=%s", session.id, session.actual_result.value)
        return session

    # ── Cycles ───────────────────────────────────────────────────

    def list_cycles(self, sub_market_id: str, page: PageRequest) -> Page[SubMarketCycle]:
        self._require_sub_market(sub_market_id)
        return self._sessions.list_cycles(sub_market_id, page)

    def _quote(self, asset_type: str) -> Optional[Decimal]:
        if self._prices is None:
            return None
        try:
            return self._prices.latest_price(asset_type)
        except UpstreamServiceError as exc:
            logger.warning("No price for %s cycle boundary: %s", asset_type, exc.message)
            return None

    def current_cycle(self, sub_market_id: str) -> SubMarketCycle:
        """Return the cycle running now, creating it and closing earlier ones."""
        sub_market = self._require_sub_market(sub_market_id)
        now = utc_now()
        number = current_cycle_number(sub_market, now)
        if number < 1:
            raise EntityNotFoundError("SubMarketCycle", f"{sub_market_id}#current")

        if sub_market.status is not SubMarketStatus.ACTIVE:
            cycle = self._sessions.get_cycle(sub_market_id, number)
            if cycle is None:
                raise EntityNotFoundError("SubMarketCycle", f"{sub_market_id}#{number}")
            return cycle

        for running in self._sessions.list_running_cycles(sub_market_id):
            if running.cycle_number < number:
                running.status = CycleStatus.COMPLETED
                running.end_price = self._quote(sub_market.asset_type)
                self._sessions.save_cycle(running)
                sub_market.completed_cycles += 1

        cycle = self._sessions.get_cycle(sub_market_id, number)
        if cycle is None:
            start, end = cycle_window(sub_market, number)
            cycle = self._sessions.add_cycle(
                SubMarketCycle(
                    id=_new_id(),
                    sub_market_id=sub_market_id,
                    cycle_number=number,
                    start_time=start,
                    end_time=end,
                    status=CycleStatus.RUNNING,
                    start_price=self._quote(sub_market.asset_type),
                )
            )

        if now >= cycle.end_time and number == sub_market.total_cycles:
            # the last cycle has elapsed: the sub-market is done
            if cycle.status is CycleStatus.RUNNING:
                cycle.status = CycleStatus.COMPLETED
                cycle.end_price = self._quote(sub_market.asset_type)
                cycle = self._sessions.save_cycle(cycle)
                sub_market.completed_cycles += 1
            sub_market.status = SubMarketStatus.COMPLETED

        self._sessions.save_sub_market(sub_market)
        return cycle
