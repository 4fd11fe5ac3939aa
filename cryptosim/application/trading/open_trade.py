"""
Use case: Open a simulated order.

Input: OpenTradeCommand
Output: Transaction (PENDING)
Side effects: Debits the stake from the user's DEMO or REAL balance;
    persists the order.
Failure cases: EntityNotFoundError (user or session), InactiveAccountError,
    InsufficientBalanceError, SessionNotTradableError.
"""

import logging
import uuid

from cryptosim.application.settings.settings_service import SettingsService
from cryptosim.application.trading.dtos import OpenTradeCommand
from cryptosim.domain.accounts.errors import InactiveAccountError
from cryptosim.domain.accounts.ports import UserRepository
from cryptosim.domain.clock import ensure_utc, utc_now
from cryptosim.domain.errors import EntityNotFoundError
from cryptosim.domain.markets.entities import MarketSessionStatus
from cryptosim.domain.markets.errors import SessionNotTradableError
from cryptosim.domain.markets.ports import MarketSessionRepository
from cryptosim.domain.trading.entities import Transaction
from cryptosim.domain.trading.errors import InsufficientBalanceError
from cryptosim.domain.trading.ports import TransactionRepository
from cryptosim.domain.trading.settlement import (
    compute_expiry,
    compute_spread,
    generate_order_number,
)

logger = logging.getLogger(__name__)


class OpenTradeUseCase:
    """Validates the stake against the balance and records a new order."""

    def __init__(
        self,
        transactions: TransactionRepository,
        users: UserRepository,
        sessions: MarketSessionRepository,
        settings: SettingsService,
    ) -> None:
        self._transactions = transactions
        self._users = users
        self._sessions = sessions
        self._settings = settings

    def execute(self, command: OpenTradeCommand, require_active_session: bool = True) -> Transaction:
        """Open an order for ``command.user_id``.

        Args:
            command: The order parameters.
            require_active_session: Operators back-filling orders may attach
                them to sessions that are no longer running.

        Raises:
            InsufficientBalanceError: If the stake exceeds the account balance.
        """
        user = self._users.get(command.user_id)
        if user is None:
            raise EntityNotFoundError("User", command.user_id)
        if not user.is_active:
            raise InactiveAccountError(user.id)

        if command.market_session_id:
            session = self._sessions.get(command.market_session_id)
            if session is None:
                raise EntityNotFoundError("MarketSession", command.market_session_id)
            if require_active_session and session.status is not MarketSessionStatus.ACTIVE:
                raise SessionNotTradableError(session.id)

        balance_type = command.account_type.balance_type
        available = user.balance(balance_type)
        if available < command.invest_amount:
            raise InsufficientBalanceError(str(command.invest_amount), str(available))

        now = utc_now()
        entry_time = ensure_utc(command.entry_time) if command.entry_time else now
        transaction = Transaction(
            id=str(uuid.uuid4()),
            user_id=user.id,
            user_name=user.display_name,
            order_number=generate_order_number(now),
            market_session_id=command.market_session_id,
            account_type=command.account_type,
            asset_type=command.asset_type.upper(),
            direction=command.direction,
            entry_time=entry_time,
            expiry_time=compute_expiry(entry_time, command.duration),
            duration=command.duration,
            entry_price=command.entry_price,
            current_price=command.entry_price,
            spread=compute_spread(command.entry_price),
            invest_amount=command.invest_amount,
            return_rate=command.return_rate,
            is_managed=self._settings.managed_mode(),
            created_at=now,
            updated_at=now,
        )

        user.set_balance(balance_type, available - command.invest_amount)
        self._users.save(user)
        transaction = self._transactions.add(transaction)

        logger.info(
            "Opened order=%s user=%s asset=%s direction=%s stake=%s account=%s",
            transaction.order_number,
            user.id,
            transaction.asset_type,
            transaction.direction.value,
            transaction.invest_amount,
            transaction.account_type.value,
        )
        return transaction
