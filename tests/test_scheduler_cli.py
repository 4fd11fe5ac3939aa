"""
Tests for the maintenance scheduler and the operator CLI.

CLI commands run against the per-test in-memory database.
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from cryptosim import cli
from cryptosim.application.maintenance import MOCK_USERS
from cryptosim.core.database import session_scope
from cryptosim.domain.trading.entities import AccountType, TradeDirection, Transaction
from cryptosim.infrastructure.accounts.admin_repository import AdminRepositoryAdapter
from cryptosim.infrastructure.accounts.user_repository import UserRepositoryAdapter
from cryptosim.infrastructure.scheduling.scheduler import MaintenanceScheduler
from cryptosim.infrastructure.trading.transaction_repository import (
    TransactionRepositoryAdapter,
)
from helpers import FakeExchange

# ============================================================
# Scheduler
# ============================================================


class TestMaintenanceScheduler:
    def test_records_successful_run(self) -> None:
        scheduler = MaintenanceScheduler()
        scheduler._wrap("job", lambda: {"settled": 2})()

        run = scheduler.last_run("job")
        assert run.succeeded
        assert run.finished_at is not None
        assert "settled" in run.details["result"]

    def test_records_failure_without_raising(self) -> None:
        def boom() -> None:
            raise RuntimeError("database down")

        scheduler = MaintenanceScheduler()
        scheduler._wrap("job", boom)()

        run = scheduler.last_run("job")
        assert not run.succeeded
        assert run.error == "database down"

    def test_never_run(self) -> None:
        assert MaintenanceScheduler().last_run("auto_settle") is None

    def test_start_and_stop(self) -> None:
        scheduler = MaintenanceScheduler()
        scheduler.add_interval_job("auto_settle", lambda: None, seconds=3600)
        scheduler.start()
        try:
            assert scheduler.running
            assert scheduler._scheduler.get_job("auto_settle") is not None
        finally:
            scheduler.stop()
        assert not scheduler.running


# ============================================================
# CLI
# ============================================================


class TestParser:
    def test_commands(self) -> None:
        parser = cli.build_parser()
        args = parser.parse_args(["create-mock-transactions", "--min", "1", "--max", "3"])
        assert (args.min, args.max) == (1, 3)
        assert args.func is cli.cmd_create_mock_transactions

        args = parser.parse_args(["create-admin", "--username", "ops", "--password", "x" * 8])
        assert args.display_name is None

    def test_command_required(self) -> None:
        with pytest.raises(SystemExit):
            cli.build_parser().parse_args([])


class TestCommands:
    def test_seed_is_idempotent(self, engine) -> None:
        cli.main(["seed"])
        cli.main(["seed"])
        with session_scope(engine) as session:
            users = UserRepositoryAdapter(session).list_all()
        assert [u.email for u in users] == ["admin@mail.com"]
        assert "admin" in users[0].roles

    def test_create_admin(self, engine) -> None:
        cli.main(["create-admin", "--username", "night", "--password", "night-shift"])
        with session_scope(engine) as session:
            admin = AdminRepositoryAdapter(session).get_by_username("night")
        assert admin is not None
        assert admin.display_name == "night"

    def test_mock_data(self, engine) -> None:
        cli.main(["create-mock-users"])
        cli.main(["create-mock-users"])
        cli.main(["create-mock-transactions", "--min", "2", "--max", "2"])

        with session_scope(engine) as session:
            users = UserRepositoryAdapter(session).list_all()
            orders = TransactionRepositoryAdapter(session).outcome_counts(users[0].id)
        assert len(users) == len(MOCK_USERS)
        assert orders.total == 2

    def test_mock_transactions_bounds(self, engine) -> None:
        with pytest.raises(SystemExit) as exc_info:
            cli.main(["create-mock-transactions", "--min", "5", "--max", "1"])
        assert exc_info.value.code == 2

    def test_reset_password_unknown_email(self, engine) -> None:
        with pytest.raises(SystemExit) as exc_info:
            cli.main(["reset-password", "ghost@mail.com", "Whatever1"])
        assert exc_info.value.code == 1

    def test_reset_password(self, engine, create_user) -> None:
        create_user("user001@mail.com")
        cli.main(["reset-password", "user001@mail.com", "Changed456"])
        with session_scope(engine) as session:
            user = UserRepositoryAdapter(session).get_by_email("user001@mail.com")
        assert cli.get_password_hasher().verify("Changed456", user.password_hash)

    def test_migrate_and_backfill(self, engine, create_user) -> None:
        user = create_user("legacy@mail.com", verification_status="UNVERIFIED")
        now = datetime.now(timezone.utc)
        with session_scope(engine) as session:
            TransactionRepositoryAdapter(session).add(
                Transaction(
                    id="t1",
                    user_id=user.id,
                    order_number="TXN1700000000000ABCDEF",
                    asset_type="BTC",
                    direction=TradeDirection.CALL,
                    entry_time=now,
                    expiry_time=now + timedelta(seconds=60),
                    duration=60,
                    entry_price=Decimal("50000"),
                    invest_amount=Decimal("10"),
                    return_rate=Decimal("0.8"),
                    account_type=AccountType.DEMO,
                )
            )

        cli.main(["migrate-verification-status"])
        cli.main(["backfill-transaction-usernames"])

        with session_scope(engine) as session:
            migrated = UserRepositoryAdapter(session).get(user.id)
            order = TransactionRepositoryAdapter(session).get_by_order_number(
                "TXN1700000000000ABCDEF"
            )
        assert migrated.verification_status == "PENDING"
        assert order.user_name == "legacy"

    def test_auto_settle_uses_exchange_price(self, engine, create_user, monkeypatch) -> None:
        exchange = FakeExchange()
        monkeypatch.setattr(cli, "get_exchange_client", lambda: exchange)
        user = create_user("due@mail.com", demo_balance=Decimal("0"))
        past = datetime.now(timezone.utc) - timedelta(minutes=10)
        with session_scope(engine) as session:
            TransactionRepositoryAdapter(session).add(
                Transaction(
                    id="t2",
                    user_id=user.id,
                    user_name="due",
                    order_number="TXN1700000000000ZZZZZZ",
                    asset_type="ETH",
                    direction=TradeDirection.PUT,
                    entry_time=past,
                    expiry_time=past + timedelta(seconds=60),
                    duration=60,
                    entry_price=Decimal("3100"),
                    invest_amount=Decimal("10"),
                    return_rate=Decimal("0.8"),
                    account_type=AccountType.DEMO,
                )
            )

        cli.main(["auto-settle"])

        assert exchange.price_calls == ["ETH"]
        with session_scope(engine) as session:
            settled = TransactionRepositoryAdapter(session).get_by_order_number(
                "TXN1700000000000ZZZZZZ"
            )
            owner = UserRepositoryAdapter(session).get(user.id)
        assert settled.exit_price == Decimal("3000")
        assert owner.demo_balance == Decimal("18")
