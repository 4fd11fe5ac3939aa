"""
Use cases: Operator-side order management.

Input: AdminCreateTradeCommand, AdminUpdateTradeCommand
Output: Transaction
Side effects: Creates orders on behalf of users (with the same balance
    rules as a trader-opened order) and optionally settles or cancels
    them at once; patches stored orders without touching balances.
Failure cases: everything OpenTradeUseCase and SettleTradeUseCase raise,
    TransactionNotFoundError.
"""

import logging

from cryptosim.application.trading.dtos import (
    AdminCreateTradeCommand,
    AdminUpdateTradeCommand,
    SettleTradeCommand,
)
from cryptosim.application.trading.open_trade import OpenTradeUseCase
from cryptosim.application.trading.settle_trade import SettleTradeUseCase
from cryptosim.domain.clock import ensure_utc
from cryptosim.domain.trading.entities import Transaction, TransactionStatus
from cryptosim.domain.trading.errors import TransactionNotFoundError
from cryptosim.domain.trading.ports import TransactionRepository
from cryptosim.domain.trading.settlement import compute_expiry, compute_spread

logger = logging.getLogger(__name__)

_PATCHABLE = (
    "asset_type",
    "direction",
    "current_price",
    "exit_price",
    "invest_amount",
    "return_rate",
    "actual_return",
    "status",
    "market_session_id",
)


class AdminTransactionUseCase:
    def __init__(
        self,
        transactions: TransactionRepository,
        open_trade: OpenTradeUseCase,
        settle_trade: SettleTradeUseCase,
    ) -> None:
        self._transactions = transactions
        self._open_trade = open_trade
        self._settle_trade = settle_trade

    def create(self, command: AdminCreateTradeCommand) -> Transaction:
        """Open an order for a user and close it right away when asked to."""
        transaction = self._open_trade.execute(command.open, require_active_session=False)
        logger.info(
            "Operator created order=%s for user=%s reason=%s",
            transaction.order_number,
            transaction.user_id,
            command.reason or "-",
        )

        if command.status is TransactionStatus.CANCELED:
            return self._settle_trade.cancel(transaction.order_number)
        wants_settlement = command.status is TransactionStatus.SETTLED or (
            command.exit_price is not None and command.auto_settle
        )
        if wants_settlement:
            return self._settle_trade.execute(
                SettleTradeCommand(
                    order_number=transaction.order_number,
                    exit_price=command.exit_price,
                    reason=command.reason,
                )
            )
        return transaction

    def update(self, command: AdminUpdateTradeCommand) -> Transaction:
        """Overwrite stored order fields. Balances are not re-booked."""
        transaction = self._transactions.get_by_order_number(command.order_number)
        if transaction is None:
            raise TransactionNotFoundError(command.order_number)

        for name in _PATCHABLE:
            value = getattr(command, name)
            if value is not None:
                setattr(transaction, name, value)
        if command.entry_price is not None:
            transaction.entry_price = command.entry_price
            transaction.spread = compute_spread(command.entry_price)
        if command.entry_time is not None:
            transaction.entry_time = ensure_utc(command.entry_time)
        if command.duration is not None:
            transaction.duration = command.duration
        if command.entry_time is not None or command.duration is not None:
            transaction.expiry_time = compute_expiry(transaction.entry_time, transaction.duration)
        if transaction.asset_type:
            transaction.asset_type = transaction.asset_type.upper()

        logger.info(
            "Operator edited order=%s reason=%s", command.order_number, command.reason or "-"
        )
        return self._transactions.save(transaction)
