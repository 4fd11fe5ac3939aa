"""
Tests for the trading application layer.

Use cases are exercised with mocked repositories and ports.
No database or network.
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from cryptosim.application.settings.settings_service import SettingsService
from cryptosim.application.trading.admin_transactions import AdminTransactionUseCase
from cryptosim.application.trading.auto_settle import AutoSettleUseCase
from cryptosim.application.trading.dtos import (
    AdminCreateTradeCommand,
    AdminUpdateTradeCommand,
    OpenTradeCommand,
    SettleTradeCommand,
)
from cryptosim.application.trading.open_trade import OpenTradeUseCase
from cryptosim.application.trading.settle_trade import SettleTradeUseCase
from cryptosim.domain.accounts.entities import User
from cryptosim.domain.accounts.errors import InactiveAccountError
from cryptosim.domain.errors import EntityNotFoundError, UpstreamServiceError
from cryptosim.domain.markets.entities import MarketResult, MarketSession, MarketSessionStatus
from cryptosim.domain.markets.errors import SessionNotTradableError
from cryptosim.domain.realtime import OrderUpdate
from cryptosim.domain.trading.entities import (
    AccountType,
    TradeDirection,
    TradeResult,
    Transaction,
    TransactionStatus,
)
from cryptosim.domain.trading.errors import (
    InsufficientBalanceError,
    TransactionNotFoundError,
    TransactionNotPendingError,
)
from cryptosim.domain.trading.ports import OutcomeCounts
from cryptosim.domain.trading.settlement import is_valid_order_number

NOW = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)


def _user(**overrides) -> User:
    values = {
        "id": "u1",
        "email": "user001@mail.com",
        "display_name": "Trader 001",
        "password_hash": "x",
        "demo_balance": Decimal("1000"),
        "real_balance": Decimal("50"),
    }
    values.update(overrides)
    return User(**values)


def _order(**overrides) -> Transaction:
    values = {
        "id": "t1",
        "user_id": "u1",
        "order_number": "TXN1714564800000ABCDEF",
        "asset_type": "BTC",
        "direction": TradeDirection.CALL,
        "entry_time": NOW,
        "expiry_time": NOW + timedelta(seconds=60),
        "duration": 60,
        "entry_price": Decimal("100"),
        "current_price": Decimal("100"),
        "invest_amount": Decimal("100"),
        "return_rate": Decimal("0.85"),
    }
    values.update(overrides)
    return Transaction(**values)


def _open_command(**overrides) -> OpenTradeCommand:
    values = {
        "user_id": "u1",
        "asset_type": "btc",
        "direction": TradeDirection.CALL,
        "duration": 60,
        "entry_price": Decimal("50000"),
        "invest_amount": Decimal("100"),
        "return_rate": Decimal("0.85"),
    }
    values.update(overrides)
    return OpenTradeCommand(**values)


def _identity(entity):
    return entity


@pytest.fixture
def users():
    repo = MagicMock()
    repo.save.side_effect = _identity
    return repo


@pytest.fixture
def transactions():
    repo = MagicMock()
    repo.add.side_effect = _identity
    repo.save.side_effect = _identity
    repo.outcome_counts.return_value = OutcomeCounts(total=1, settled=1, winning=1, losing=0)
    return repo


@pytest.fixture
def sessions():
    repo = MagicMock()
    repo.get.return_value = None
    return repo


@pytest.fixture
def settings_service():
    service = MagicMock(spec=SettingsService)
    service.managed_mode.return_value = False
    return service


# ============================================================
# Opening orders
# ============================================================


class TestOpenTrade:
    """Tests for OpenTradeUseCase."""

    def test_debits_stake_and_records_order(
        self, users, transactions, sessions, settings_service
    ) -> None:
        user = _user()
        users.get.return_value = user
        use_case = OpenTradeUseCase(transactions, users, sessions, settings_service)

        order = use_case.execute(_open_command())

        assert user.demo_balance == Decimal("900")
        assert order.status is TransactionStatus.PENDING
        assert order.asset_type == "BTC"
        assert order.user_name == "Trader 001"
        assert order.spread == Decimal("5.0000")
        assert order.expiry_time - order.entry_time == timedelta(seconds=60)
        assert is_valid_order_number(order.order_number)
        users.save.assert_called_once_with(user)
        transactions.add.assert_called_once()

    def test_real_account_uses_real_balance(
        self, users, transactions, sessions, settings_service
    ) -> None:
        user = _user()
        users.get.return_value = user
        use_case = OpenTradeUseCase(transactions, users, sessions, settings_service)

        use_case.execute(_open_command(account_type=AccountType.REAL, invest_amount=Decimal("50")))

        assert user.real_balance == Decimal("0")
        assert user.demo_balance == Decimal("1000")

    def test_insufficient_balance(self, users, transactions, sessions, settings_service) -> None:
        users.get.return_value = _user(real_balance=Decimal("10"))
        use_case = OpenTradeUseCase(transactions, users, sessions, settings_service)

        with pytest.raises(InsufficientBalanceError):
            use_case.execute(_open_command(account_type=AccountType.REAL))
        transactions.add.assert_not_called()

    def test_managed_mode_flags_order(
        self, users, transactions, sessions, settings_service
    ) -> None:
        users.get.return_value = _user()
        settings_service.managed_mode.return_value = True
        use_case = OpenTradeUseCase(transactions, users, sessions, settings_service)

        assert use_case.execute(_open_command()).is_managed is True

    def test_unknown_user(self, users, transactions, sessions, settings_service) -> None:
        users.get.return_value = None
        use_case = OpenTradeUseCase(transactions, users, sessions, settings_service)

        with pytest.raises(EntityNotFoundError):
            use_case.execute(_open_command())

    def test_inactive_user(self, users, transactions, sessions, settings_service) -> None:
        users.get.return_value = _user(is_active=False)
        use_case = OpenTradeUseCase(transactions, users, sessions, settings_service)

        with pytest.raises(InactiveAccountError):
            use_case.execute(_open_command())

    def test_session_must_be_active(self, users, transactions, sessions, settings_service) -> None:
        users.get.return_value = _user()
        sessions.get.return_value = MarketSession(
            id="s1", name="S", start_time=NOW, end_time=NOW + timedelta(hours=1)
        )
        use_case = OpenTradeUseCase(transactions, users, sessions, settings_service)

        with pytest.raises(SessionNotTradableError):
            use_case.execute(_open_command(market_session_id="s1"))

        order = use_case.execute(_open_command(market_session_id="s1"), require_active_session=False)
        assert order.market_session_id == "s1"


# ============================================================
# Settling and cancelling
# ============================================================


class TestSettleTrade:
    """Tests for SettleTradeUseCase."""

    def test_win_credits_payout_and_statistics(self, users, transactions, sessions) -> None:
        user = _user(demo_balance=Decimal("900"))
        users.get.return_value = user
        transactions.get_by_order_number.return_value = _order()
        use_case = SettleTradeUseCase(transactions, users, sessions)

        order = use_case.execute(
            SettleTradeCommand(order_number="TXN1714564800000ABCDEF", exit_price=Decimal("110"))
        )

        assert order.status is TransactionStatus.SETTLED
        assert order.exit_price == Decimal("110")
        assert order.actual_return == Decimal("85.00")
        assert order.settled_at is not None
        assert user.demo_balance == Decimal("1085.00")
        assert user.total_profit_loss == Decimal("85.00")
        assert user.total_trades == 1
        assert user.win_rate == Decimal("100.00")

    def test_loss_keeps_stake(self, users, transactions, sessions) -> None:
        user = _user(demo_balance=Decimal("900"))
        users.get.return_value = user
        transactions.get_by_order_number.return_value = _order()
        transactions.outcome_counts.return_value = OutcomeCounts(1, 1, 0, 1)
        use_case = SettleTradeUseCase(transactions, users, sessions)

        order = use_case.execute(SettleTradeCommand("TXN1714564800000ABCDEF", Decimal("90")))

        assert order.actual_return == Decimal("-100")
        assert user.demo_balance == Decimal("900")
        assert user.total_profit_loss == Decimal("-100")
        assert user.win_rate == Decimal("0.00")

    def test_session_result_decides(self, users, transactions, sessions) -> None:
        users.get.return_value = _user()
        transactions.get_by_order_number.return_value = _order(market_session_id="s1")
        sessions.get.return_value = MarketSession(
            id="s1",
            name="S",
            start_time=NOW,
            end_time=NOW + timedelta(hours=1),
            status=MarketSessionStatus.ACTIVE,
            initial_result=MarketResult.LOSE,
        )
        use_case = SettleTradeUseCase(transactions, users, sessions)

        order = use_case.execute(SettleTradeCommand("TXN1714564800000ABCDEF", Decimal("150")))

        assert order.actual_return == Decimal("-100")

    def test_forced_result_beats_session(self, users, transactions, sessions) -> None:
        users.get.return_value = _user()
        transactions.get_by_order_number.return_value = _order(market_session_id="s1")
        sessions.get.return_value = MarketSession(
            id="s1",
            name="S",
            start_time=NOW,
            end_time=NOW + timedelta(hours=1),
            initial_result=MarketResult.LOSE,
        )
        use_case = SettleTradeUseCase(transactions, users, sessions)

        order = use_case.execute(
            SettleTradeCommand("TXN1714564800000ABCDEF", forced_result=TradeResult.WIN)
        )

        assert order.actual_return == Decimal("85.00")
        assert order.exit_price == Decimal("100")

    def test_other_owner_reads_as_missing(self, users, transactions, sessions) -> None:
        transactions.get_by_order_number.return_value = _order(user_id="someone-else")
        use_case = SettleTradeUseCase(transactions, users, sessions)

        with pytest.raises(TransactionNotFoundError):
            use_case.execute(
                SettleTradeCommand("TXN1714564800000ABCDEF", Decimal("110"), owner_id="u1")
            )

    def test_settled_order_cannot_settle_again(self, users, transactions, sessions) -> None:
        transactions.get_by_order_number.return_value = _order(status=TransactionStatus.SETTLED)
        use_case = SettleTradeUseCase(transactions, users, sessions)

        with pytest.raises(TransactionNotPendingError):
            use_case.execute(SettleTradeCommand("TXN1714564800000ABCDEF", Decimal("110")))
        users.save.assert_not_called()

    def test_cancel_refunds_stake(self, users, transactions, sessions) -> None:
        user = _user(demo_balance=Decimal("900"))
        users.get.return_value = user
        transactions.get_by_order_number.return_value = _order()
        use_case = SettleTradeUseCase(transactions, users, sessions)

        order = use_case.cancel("TXN1714564800000ABCDEF")

        assert order.status is TransactionStatus.CANCELED
        assert order.actual_return == Decimal("0")
        assert user.demo_balance == Decimal("1000")

    def test_cancel_requires_pending(self, users, transactions, sessions) -> None:
        transactions.get_by_order_number.return_value = _order(status=TransactionStatus.CANCELED)
        use_case = SettleTradeUseCase(transactions, users, sessions)

        with pytest.raises(TransactionNotPendingError):
            use_case.cancel("TXN1714564800000ABCDEF")

    def test_settlement_is_published(self, users, transactions, sessions) -> None:
        users.get.return_value = _user()
        transactions.get_by_order_number.return_value = _order()
        events = MagicMock()
        use_case = SettleTradeUseCase(transactions, users, sessions, events=events)

        use_case.execute(SettleTradeCommand("TXN1714564800000ABCDEF", Decimal("110")))

        events.publish_order.assert_called_once_with(
            OrderUpdate(
                user_id="u1",
                order_number="TXN1714564800000ABCDEF",
                asset_type="BTC",
                status="SETTLED",
                exit_price=Decimal("110"),
                actual_return=Decimal("85.00"),
            )
        )

    def test_rejected_settlement_publishes_nothing(self, users, transactions, sessions) -> None:
        transactions.get_by_order_number.return_value = _order(status=TransactionStatus.SETTLED)
        events = MagicMock()
        use_case = SettleTradeUseCase(transactions, users, sessions, events=events)

        with pytest.raises(TransactionNotPendingError):
            use_case.execute(SettleTradeCommand("TXN1714564800000ABCDEF", Decimal("110")))
        events.publish_order.assert_not_called()


# ============================================================
# Auto-settlement
# ============================================================


class TestAutoSettle:
    """Tests for AutoSettleUseCase."""

    def test_nothing_due(self, transactions) -> None:
        transactions.list_due.return_value = []
        prices = MagicMock()
        result = AutoSettleUseCase(transactions, MagicMock(), prices).execute()

        assert (result.settled, result.failed) == (0, 0)
        prices.latest_price.assert_not_called()

    def test_one_quote_per_asset(self, transactions) -> None:
        transactions.list_due.return_value = [
            _order(order_number="A", asset_type="BTC"),
            _order(order_number="B", asset_type="BTC"),
            _order(order_number="C", asset_type="ETH"),
        ]
        prices = MagicMock()
        prices.latest_price.side_effect = lambda asset: {"BTC": Decimal("1"), "ETH": Decimal("2")}[
            asset
        ]
        settle_trade = MagicMock()

        result = AutoSettleUseCase(transactions, settle_trade, prices).execute()

        assert (result.settled, result.failed) == (3, 0)
        assert prices.latest_price.call_count == 2
        commands = [call.args[0] for call in settle_trade.execute.call_args_list]
        assert [c.exit_price for c in commands] == [Decimal("1"), Decimal("1"), Decimal("2")]

    def test_failures_do_not_stop_the_batch(self, transactions) -> None:
        transactions.list_due.return_value = [
            _order(order_number="A", asset_type="BAD"),
            _order(order_number="B", asset_type="BTC"),
        ]
        prices = MagicMock()

        def quote(asset):
            if asset == "BAD":
                raise UpstreamServiceError("Binance", "HTTP 400: Bad Request", 400)
            return Decimal("10")

        prices.latest_price.side_effect = quote
        settle_trade = MagicMock()

        result = AutoSettleUseCase(transactions, settle_trade, prices).execute()

        assert (result.settled, result.failed) == (1, 1)
        settle_trade.execute.assert_called_once()


# ============================================================
# Operator order management
# ============================================================


class TestAdminTransactions:
    """Tests for AdminTransactionUseCase."""

    def _use_case(self, transactions):
        open_trade = MagicMock()
        open_trade.execute.return_value = _order()
        settle_trade = MagicMock()
        return AdminTransactionUseCase(transactions, open_trade, settle_trade), open_trade, settle_trade

    def test_create_without_exit_price_stays_pending(self, transactions) -> None:
        use_case, open_trade, settle_trade = self._use_case(transactions)

        order = use_case.create(AdminCreateTradeCommand(open=_open_command()))

        assert order.status is TransactionStatus.PENDING
        open_trade.execute.assert_called_once_with(_open_command(), require_active_session=False)
        settle_trade.execute.assert_not_called()

    def test_create_with_exit_price_settles(self, transactions) -> None:
        use_case, _, settle_trade = self._use_case(transactions)

        use_case.create(AdminCreateTradeCommand(open=_open_command(), exit_price=Decimal("51000")))

        command = settle_trade.execute.call_args.args[0]
        assert command.exit_price == Decimal("51000")

    def test_auto_settle_off_keeps_pending(self, transactions) -> None:
        use_case, _, settle_trade = self._use_case(transactions)

        use_case.create(
            AdminCreateTradeCommand(
                open=_open_command(), exit_price=Decimal("51000"), auto_settle=False
            )
        )

        settle_trade.execute.assert_not_called()

    def test_create_canceled(self, transactions) -> None:
        use_case, _, settle_trade = self._use_case(transactions)

        use_case.create(
            AdminCreateTradeCommand(open=_open_command(), status=TransactionStatus.CANCELED)
        )

        settle_trade.cancel.assert_called_once_with("TXN1714564800000ABCDEF")

    def test_update_patches_fields_without_balances(self, transactions) -> None:
        transactions.get_by_order_number.return_value = _order()
        use_case, _, settle_trade = self._use_case(transactions)

        order = use_case.update(
            AdminUpdateTradeCommand(
                order_number="TXN1714564800000ABCDEF",
                asset_type="eth",
                entry_price=Decimal("2000"),
                duration=300,
            )
        )

        assert order.asset_type == "ETH"
        assert order.spread == Decimal("0.2000")
        assert order.expiry_time == NOW + timedelta(seconds=300)
        settle_trade.execute.assert_not_called()

    def test_update_unknown_order(self, transactions) -> None:
        transactions.get_by_order_number.return_value = None
        use_case, _, _ = self._use_case(transactions)

        with pytest.raises(TransactionNotFoundError):
            use_case.update(AdminUpdateTradeCommand(order_number="TXN0"))
