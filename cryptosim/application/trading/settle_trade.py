"""
Use cases: Settle or cancel a PENDING order.

Input: SettleTradeCommand, or an order number for cancellation
Output: Transaction (SETTLED or CANCELED)
Side effects: Credits the payout (or refunds the stake) to the user's
    balance; updates the user's profit/loss, trade count and win rate;
    pushes an order update to realtime subscribers.
Failure cases: TransactionNotFoundError, TransactionNotPendingError,
    EntityNotFoundError (user).
"""

import logging
from decimal import Decimal
from typing import Optional

from cryptosim.application.trading.dtos import SettleTradeCommand
from cryptosim.domain.accounts.entities import User
from cryptosim.domain.accounts.ports import UserRepository
from cryptosim.domain.clock import utc_now
from cryptosim.domain.errors import EntityNotFoundError
from cryptosim.domain.markets.entities import MarketResult
from cryptosim.domain.markets.ports import MarketSessionRepository
from cryptosim.domain.realtime import NullPublisher, OrderUpdate, RealtimePublisher
from cryptosim.domain.trading.entities import Transaction, TradeResult, TransactionStatus
from cryptosim.domain.trading.errors import (
    TransactionNotFoundError,
    TransactionNotPendingError,
)
from cryptosim.domain.trading.ports import TransactionRepository
from cryptosim.domain.trading.settlement import settle, win_rate

logger = logging.getLogger(__name__)


class SettleTradeUseCase:
    """Closes orders and books the money movement on the owner's account."""

    def __init__(
        self,
        transactions: TransactionRepository,
        users: UserRepository,
        sessions: MarketSessionRepository,
        events: Optional[RealtimePublisher] = None,
    ) -> None:
        self._transactions = transactions
        self._users = users
        self._sessions = sessions
        self._events = events or NullPublisher()

    def _load_pending(self, order_number: str, owner_id: Optional[str]) -> Transaction:
        transaction = self._transactions.get_by_order_number(order_number)
        if transaction is None or (owner_id is not None and transaction.user_id != owner_id):
            raise TransactionNotFoundError(order_number)
        if not transaction.is_pending:
            raise TransactionNotPendingError(order_number, transaction.status.value)
        return transaction

    def _load_owner(self, transaction: Transaction) -> User:
        user = self._users.get(transaction.user_id)
        if user is None:
            raise EntityNotFoundError("User", transaction.user_id)
        return user

    def _session_result(self, transaction: Transaction) -> Optional[TradeResult]:
        if not transaction.market_session_id:
            return None
        session = self._sessions.get(transaction.market_session_id)
        if session is None or session.effective_result is MarketResult.PENDING:
            return None
        return TradeResult(session.effective_result.value)

    def _notify(self, transaction: Transaction) -> None:
        self._events.publish_order(
            OrderUpdate(
                user_id=transaction.user_id,
                order_number=transaction.order_number,
                asset_type=transaction.asset_type,
                status=transaction.status.value,
                exit_price=transaction.exit_price,
                actual_return=transaction.actual_return,
            )
        )

    def execute(self, command: SettleTradeCommand) -> Transaction:
        """Settle an order at ``command.exit_price``.

        The outcome comes from, in order of precedence: the operator's
        forced result, the market session result, the price comparison.
        Without an exit price the last known price is used.
        """
        transaction = self._load_pending(command.order_number, command.owner_id)
        user = self._load_owner(transaction)

        exit_price = (
            command.exit_price
            or transaction.current_price
            or transaction.entry_price
        )
        forced = command.forced_result or self._session_result(transaction)
        outcome = settle(
            direction=transaction.direction,
            entry_price=transaction.entry_price,
            exit_price=exit_price,
            invest_amount=transaction.invest_amount,
            return_rate=transaction.return_rate,
            forced_result=forced,
        )

        now = utc_now()
        transaction.exit_price = exit_price
        transaction.current_price = exit_price
        transaction.actual_return = outcome.actual_return
        transaction.status = TransactionStatus.SETTLED
        transaction.settled_at = now
        transaction = self._transactions.save(transaction)

        balance_type = transaction.account_type.balance_type
        user.set_balance(balance_type, user.balance(balance_type) + outcome.payout)
        user.total_profit_loss = user.total_profit_loss + outcome.actual_return
        counts = self._transactions.outcome_counts(user.id)
        user.total_trades = counts.settled
        user.win_rate = win_rate(counts.winning, counts.settled)
        self._users.save(user)

        logger.info(
            "Settled order=%s result=%s return=%s forced=%s reason=%s",
            transaction.order_number,
            outcome.result.value,
            outcome.actual_return,
            forced.value if forced else "-",
            command.reason or "-",
        )
        self._notify(transaction)
        return transaction

    def cancel(self, order_number: str, owner_id: Optional[str] = None) -> Transaction:
        """Cancel a PENDING order and refund its stake."""
        transaction = self._load_pending(order_number, owner_id)
        user = self._load_owner(transaction)

        transaction.status = TransactionStatus.CANCELED
        transaction.actual_return = Decimal("0")
        transaction.settled_at = utc_now()
        transaction = self._transactions.save(transaction)

        balance_type = transaction.account_type.balance_type
        user.set_balance(balance_type, user.balance(balance_type) + transaction.invest_amount)
        self._users.save(user)

        logger.info("Canceled order=%s refund=%s", order_number, transaction.invest_amount)
        self._notify(transaction)
        return transaction
