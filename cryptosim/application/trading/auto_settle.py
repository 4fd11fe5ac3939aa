"""
Use case: Settle every expired PENDING order.

Input: none (reads the clock)
Output: AutoSettleResult (settled and failed counts)
Side effects: Settles orders through SettleTradeUseCase; fetches the
    latest price once per asset.
Failure cases: None raised. A failing order is logged and skipped so
    one bad order never blocks the rest of the batch.
"""

import logging
from decimal import Decimal

from cryptosim.application.trading.dtos import AutoSettleResult, SettleTradeCommand
from cryptosim.application.trading.settle_trade import SettleTradeUseCase
from cryptosim.domain.clock import utc_now
from cryptosim.domain.errors import DomainError
from cryptosim.domain.trading.ports import PriceQuotePort, TransactionRepository

logger = logging.getLogger(__name__)


class AutoSettleUseCase:
    def __init__(
        self,
        transactions: TransactionRepository,
        settle_trade: SettleTradeUseCase,
        prices: PriceQuotePort,
    ) -> None:
        self._transactions = transactions
        self._settle_trade = settle_trade
        self._prices = prices

    def execute(self) -> AutoSettleResult:
        due = self._transactions.list_due(utc_now())
        if not due:
            return AutoSettleResult(settled=0, failed=0)

        logger.info("Auto-settling %d expired orders", len(due))
        quotes: dict[str, Decimal] = {}
        settled = failed = 0
        for transaction in due:
            try:
                if transaction.asset_type not in quotes:
                    quotes[transaction.asset_type] = self._prices.latest_price(
                        transaction.asset_type
                    )
                self._settle_trade.execute(
                    SettleTradeCommand(
                        order_number=transaction.order_number,
                        exit_price=quotes[transaction.asset_type],
                        reason="auto-settle",
                    )
                )
                settled += 1
            except DomainError as exc:
                failed += 1
                logger.error(
                    "Auto-settle failed for order=%s: %s", transaction.order_number, exc.message
                )

        logger.info("Auto-settle finished settled=%d failed=%d", settled, failed)
        return AutoSettleResult(settled=settled, failed=failed)
