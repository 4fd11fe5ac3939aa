"""
Market session lifecycle rules.

    PENDING --start--> ACTIVE --stop--> COMPLETED
    PENDING --cancel--> CANCELED

Sub-market cycles are laid end to end from the sub-market start:
cycle ``n`` (1-based) covers ``[start + (n-1)*d, start + n*d)``.
"""

from collections.abc import Callable
from datetime import datetime, timedelta
from decimal import Decimal

from cryptosim.domain.markets.entities import (
    MarketSession,
    MarketSessionStatus,
    SubMarket,
    SubMarketStatus,
    TradeTypeRule,
)
from cryptosim.domain.markets.errors import (
    InvalidSessionTransitionError,
    InvalidSessionWindowError,
)

DEFAULT_DURATIONS = (60,)


def validate_window(start_time: datetime, end_time: datetime) -> None:
    if end_time <= start_time:
        raise InvalidSessionWindowError()


def ensure_can_start(session: MarketSession) -> None:
    if session.status is not MarketSessionStatus.PENDING:
        raise InvalidSessionTransitionError(session.id, session.status.value, "start")


def ensure_can_stop(session: MarketSession) -> None:
    if session.status is not MarketSessionStatus.ACTIVE:
        raise InvalidSessionTransitionError(session.id, session.status.value, "stop")


def ensure_can_delete(session: MarketSession) -> None:
    if session.status is MarketSessionStatus.ACTIVE:
        raise InvalidSessionTransitionError(session.id, session.status.value, "delete")


def _rules(session: MarketSession) -> list[TradeTypeRule]:
    if session.trade_types:
        return session.trade_types
    if session.asset_type:
        return [TradeTypeRule(asset_type=session.asset_type, durations=DEFAULT_DURATIONS)]
    return []


def plan_sub_markets(
    session: MarketSession,
    now: datetime,
    default_profit_rate: Decimal,
    new_id: Callable[[], str],
) -> list[SubMarket]:
    """Build one ACTIVE sub-market per (asset, duration) pair of a session.

    Sub-markets run from the later of ``now`` and the session start up to
    the session end. Durations that do not fit a single cycle are skipped.
    """
    start = max(now, session.start_time)
    window = (session.end_time - start).total_seconds()
    planned: list[SubMarket] = []
    for rule in _rules(session):
        for duration in rule.durations:
            if duration <= 0:
                continue
            total_cycles = int(window // duration)
            if total_cycles < 1:
                continue
            planned.append(
                SubMarket(
                    id=new_id(),
                    market_session_id=session.id,
                    name=f"{rule.asset_type}-{duration}s",
                    asset_type=rule.asset_type,
                    trade_duration=duration,
                    profit_rate=rule.profit_rate or default_profit_rate,
                    start_time=start,
                    end_time=session.end_time,
                    status=SubMarketStatus.ACTIVE,
                    total_cycles=total_cycles,
                    created_at=now,
                    updated_at=now,
                )
            )
    return planned


def current_cycle_number(sub_market: SubMarket, now: datetime) -> int:
    """Return the 1-based cycle running at ``now``, clamped to the sub-market range."""
    if sub_market.total_cycles < 1:
        return 0
    elapsed = (now - sub_market.start_time).total_seconds()
    number = int(elapsed // sub_market.trade_duration) + 1
    return max(1, min(number, sub_market.total_cycles))


def cycle_window(sub_market: SubMarket, cycle_number: int) -> tuple[datetime, datetime]:
    step = timedelta(seconds=sub_market.trade_duration)
    start = sub_market.start_time + step * (cycle_number - 1)
    return start, start + step
