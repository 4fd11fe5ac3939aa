"""
Tests for market session lifecycle rules, settings rules and account
balance invariants.

Pure domain logic. No database or infrastructure dependencies.
"""

import itertools
from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from cryptosim.domain.accounts.entities import (
    AdjustmentType,
    BalanceType,
    Principal,
    PrincipalKind,
    User,
)
from cryptosim.domain.accounts.errors import NegativeBalanceError
from cryptosim.domain.markets.entities import (
    MarketResult,
    MarketSession,
    MarketSessionStatus,
    SubMarketStatus,
    TradeTypeRule,
)
from cryptosim.domain.markets.errors import (
    InvalidSessionTransitionError,
    InvalidSessionWindowError,
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
from cryptosim.domain.settings.entities import category_of, ip_allowed, is_valid_ip_rule

START = datetime(2024, 5, 1, 9, 0, tzinfo=timezone.utc)


def _session(**overrides) -> MarketSession:
    values = {
        "id": "s1",
        "name": "Morning",
        "start_time": START,
        "end_time": START + timedelta(hours=1),
    }
    values.update(overrides)
    return MarketSession(**values)


def _ids():
    counter = itertools.count(1)
    return lambda: f"sm{next(counter)}"


# ============================================================
# Market sessions
# ============================================================


class TestSessionTransitions:
    """PENDING -> ACTIVE -> COMPLETED; ACTIVE sessions cannot be deleted."""

    def test_window_must_be_positive(self) -> None:
        with pytest.raises(InvalidSessionWindowError):
            validate_window(START, START)

    def test_start_requires_pending(self) -> None:
        ensure_can_start(_session())
        with pytest.raises(InvalidSessionTransitionError):
            ensure_can_start(_session(status=MarketSessionStatus.ACTIVE))

    def test_stop_requires_active(self) -> None:
        ensure_can_stop(_session(status=MarketSessionStatus.ACTIVE))
        with pytest.raises(InvalidSessionTransitionError):
            ensure_can_stop(_session())

    def test_active_session_cannot_be_deleted(self) -> None:
        ensure_can_delete(_session(status=MarketSessionStatus.COMPLETED))
        with pytest.raises(InvalidSessionTransitionError) as exc_info:
            ensure_can_delete(_session(status=MarketSessionStatus.ACTIVE))
        assert exc_info.value.action == "delete"

    def test_effective_result_prefers_actual(self) -> None:
        session = _session(initial_result=MarketResult.WIN)
        assert session.effective_result is MarketResult.WIN
        session.actual_result = MarketResult.LOSE
        assert session.effective_result is MarketResult.LOSE


class TestPlanSubMarkets:
    """One sub-market per (asset, duration) pair."""

    def test_one_per_asset_and_duration(self) -> None:
        session = _session(
            trade_types=[
                TradeTypeRule("BTC", (60, 300), profit_rate=Decimal("0.9")),
                TradeTypeRule("ETH", (60,)),
            ]
        )
        planned = plan_sub_markets(session, START, Decimal("0.85"), _ids())

        assert [(s.asset_type, s.trade_duration) for s in planned] == [
            ("BTC", 60),
            ("BTC", 300),
            ("ETH", 60),
        ]
        assert planned[0].total_cycles == 60
        assert planned[1].total_cycles == 12
        assert planned[0].profit_rate == Decimal("0.9")
        assert planned[2].profit_rate == Decimal("0.85")
        assert all(s.status is SubMarketStatus.ACTIVE for s in planned)
        assert planned[0].name == "BTC-60s"

    def test_legacy_asset_type_uses_default_duration(self) -> None:
        planned = plan_sub_markets(_session(asset_type="SOL"), START, Decimal("0.85"), _ids())
        assert len(planned) == 1
        assert planned[0].trade_duration == 60

    def test_late_start_shrinks_window(self) -> None:
        """Starting halfway through leaves half the cycles."""
        session = _session(trade_types=[TradeTypeRule("BTC", (60,))])
        planned = plan_sub_markets(
            session, START + timedelta(minutes=30), Decimal("0.85"), _ids()
        )
        assert planned[0].total_cycles == 30
        assert planned[0].start_time == START + timedelta(minutes=30)

    def test_durations_longer_than_window_are_skipped(self) -> None:
        session = _session(trade_types=[TradeTypeRule("BTC", (60, 7200))])
        planned = plan_sub_markets(session, START, Decimal("0.85"), _ids())
        assert [s.trade_duration for s in planned] == [60]

    def test_no_rules_no_sub_markets(self) -> None:
        assert plan_sub_markets(_session(), START, Decimal("0.85"), _ids()) == []


class TestCycles:
    def _sub_market(self):
        session = _session(trade_types=[TradeTypeRule("BTC", (60,))])
        return plan_sub_markets(session, START, Decimal("0.85"), _ids())[0]

    def test_cycle_number_advances_with_time(self) -> None:
        sub_market = self._sub_market()
        assert current_cycle_number(sub_market, START) == 1
        assert current_cycle_number(sub_market, START + timedelta(seconds=59)) == 1
        assert current_cycle_number(sub_market, START + timedelta(seconds=61)) == 2

    def test_cycle_number_is_clamped(self) -> None:
        sub_market = self._sub_market()
        assert current_cycle_number(sub_market, START - timedelta(minutes=5)) == 1
        assert current_cycle_number(sub_market, START + timedelta(hours=3)) == 60

    def test_cycle_window(self) -> None:
        start, end = cycle_window(self._sub_market(), 3)
        assert start == START + timedelta(seconds=120)
        assert end == START + timedelta(seconds=180)


# ============================================================
# Settings
# ============================================================


class TestSettingsRules:
    def test_category_is_key_prefix(self) -> None:
        assert category_of("trading.managed_mode") == "trading"
        assert category_of("site_name") == "general"
        assert category_of(".hidden") == "general"

    def test_ip_rule_validation(self) -> None:
        assert is_valid_ip_rule("10.0.0.1")
        assert is_valid_ip_rule("10.0.0.0/24")
        assert is_valid_ip_rule("::1")
        assert not is_valid_ip_rule("10.0.0.300")
        assert not is_valid_ip_rule("localhost")

    def test_ip_allowed_matches_address_or_network(self) -> None:
        rules = ["192.168.1.10", "10.0.0.0/8"]
        assert ip_allowed("192.168.1.10", rules)
        assert ip_allowed("10.20.30.40", rules)
        assert not ip_allowed("192.168.1.11", rules)

    def test_ip_allowed_rejects_garbage_address(self) -> None:
        assert not ip_allowed("not-an-ip", ["0.0.0.0/0"])

    def test_ip_allowed_skips_bad_rules(self) -> None:
        assert ip_allowed("1.2.3.4", ["bogus", "1.2.3.4"])


# ============================================================
# Accounts
# ============================================================


class TestUserBalances:
    def _user(self) -> User:
        return User(
            id="u1",
            email="user001@mail.com",
            display_name="Trader",
            password_hash="x",
            demo_balance=Decimal("100"),
            real_balance=Decimal("10"),
        )

    def test_add_subtract_set(self) -> None:
        user = self._user()
        assert user.adjust_balance(BalanceType.DEMO, AdjustmentType.ADD, Decimal("50")) == 150
        assert user.adjust_balance(BalanceType.REAL, AdjustmentType.SUBTRACT, Decimal("4")) == 6
        assert user.adjust_balance(BalanceType.REAL, AdjustmentType.SET, Decimal("0")) == 0
        assert user.demo_balance == Decimal("150")
        assert user.real_balance == Decimal("0")

    def test_negative_result_rejected(self) -> None:
        user = self._user()
        with pytest.raises(NegativeBalanceError):
            user.adjust_balance(BalanceType.REAL, AdjustmentType.SUBTRACT, Decimal("11"))
        assert user.real_balance == Decimal("10")

    def test_admin_principal(self) -> None:
        assert Principal("a", PrincipalKind.ADMIN).is_admin
        assert Principal("u", PrincipalKind.USER, roles=("trader", "admin")).is_admin
        assert not Principal("u", PrincipalKind.USER, roles=("trader",)).is_admin
