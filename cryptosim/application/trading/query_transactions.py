"""
Use cases: Read orders and trading statistics.

Input: TransactionFilter/PageRequest, order number, user id
Output: Page[Transaction], Transaction, TradingStatistics
Side effects: None.
Failure cases: TransactionNotFoundError, EntityNotFoundError (user).
"""

from typing import Optional

from cryptosim.domain.accounts.ports import UserRepository
from cryptosim.domain.errors import EntityNotFoundError
from cryptosim.domain.pagination import Page, PageRequest
from cryptosim.domain.trading.entities import AccountType, TradingStatistics, Transaction
from cryptosim.domain.trading.errors import TransactionNotFoundError
from cryptosim.domain.trading.ports import (
    SessionOrderCounts,
    TransactionFilter,
    TransactionRepository,
)
from cryptosim.domain.trading.settlement import win_rate


class TransactionQueryService:
    def __init__(self, transactions: TransactionRepository, users: UserRepository) -> None:
        self._transactions = transactions
        self._users = users

    def list_transactions(
        self, criteria: TransactionFilter, page: PageRequest
    ) -> Page[Transaction]:
        return self._transactions.search(criteria, page)

    def get_transaction(self, order_number: str, owner_id: Optional[str] = None) -> Transaction:
        """Return an order; with ``owner_id`` other users' orders read as missing."""
        transaction = self._transactions.get_by_order_number(order_number)
        if transaction is None or (owner_id is not None and transaction.user_id != owner_id):
            raise TransactionNotFoundError(order_number)
        return transaction

    def statistics(
        self, user_id: str, account_type: AccountType = AccountType.DEMO
    ) -> TradingStatistics:
        user = self._users.get(user_id)
        if user is None:
            raise EntityNotFoundError("User", user_id)
        counts = self._transactions.outcome_counts(user_id)
        return TradingStatistics(
            account_balance=user.balance(account_type.balance_type),
            total_profit_loss=user.total_profit_loss,
            win_rate=win_rate(counts.winning, counts.settled),
            total_trades=counts.total,
            settled_trades=counts.settled,
            winning_trades=counts.winning,
            losing_trades=counts.losing,
        )

    def session_order_counts(self, session_ids: list[str]) -> list[SessionOrderCounts]:
        return self._transactions.session_counts(session_ids)
