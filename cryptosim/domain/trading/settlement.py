"""
Settlement rules for simulated orders.

Pure functions: no IO, no clock reads except through arguments.

Outcome of a settled order with stake ``S`` and return rate ``r``:

    win  -> actual_return = S * r,  payout credited = S + S * r
    loss -> actual_return = -S,     payout credited = 0

The stake itself is debited when the order is opened, so the balance
change over the whole life of a winning order is ``+S * r`` and of a
losing order ``-S``.
"""

import re
import secrets
import string
from dataclasses import dataclass
from datetime import datetime, timedelta
from decimal import ROUND_HALF_UP, Decimal
from typing import Optional

from cryptosim.domain.trading.entities import TradeDirection, TradeResult

SPREAD_RATE = Decimal("0.0001")
ORDER_PREFIX = "TXN"
ORDER_SUFFIX_LENGTH = 6
ORDER_ALPHABET = string.ascii_uppercase + string.digits
ORDER_NUMBER_PATTERN = re.compile(r"^TXN\d{13}[A-Z0-9]{6}$")
PERCENT = Decimal("100")
TWO_PLACES = Decimal("0.01")


@dataclass(frozen=True)
class SettlementOutcome:
    """Money movement produced by settling one order."""

    result: TradeResult
    actual_return: Decimal
    payout: Decimal

    @property
    def is_win(self) -> bool:
        return self.result is TradeResult.WIN


def generate_order_number(now: datetime) -> str:
    """Return ``TXN`` + 13-digit millisecond timestamp + 6 random characters."""
    millis = int(now.timestamp() * 1000)
    suffix = "".join(secrets.choice(ORDER_ALPHABET) for _ in range(ORDER_SUFFIX_LENGTH))
    return f"{ORDER_PREFIX}{millis:013d}{suffix}"


def is_valid_order_number(order_number: str) -> bool:
    return bool(ORDER_NUMBER_PATTERN.match(order_number))


def compute_spread(entry_price: Decimal) -> Decimal:
    return entry_price * SPREAD_RATE


def compute_expiry(entry_time: datetime, duration_seconds: int) -> datetime:
    return entry_time + timedelta(seconds=duration_seconds)


def price_result(
    direction: TradeDirection, entry_price: Decimal, exit_price: Decimal
) -> TradeResult:
    """Decide an order from prices alone. Equal prices lose."""
    if direction is TradeDirection.CALL:
        won = exit_price > entry_price
    else:
        won = exit_price < entry_price
    return TradeResult.WIN if won else TradeResult.LOSE


def settle(
    direction: TradeDirection,
    entry_price: Decimal,
    exit_price: Decimal,
    invest_amount: Decimal,
    return_rate: Decimal,
    forced_result: Optional[TradeResult] = None,
) -> SettlementOutcome:
    """Compute the outcome of an order.

    Args:
        forced_result: When given (market-session result or an operator
            override) it decides the order instead of the prices.
    """
    result = forced_result or price_result(direction, entry_price, exit_price)
    if result is TradeResult.WIN:
        actual_return = invest_amount * return_rate
        return SettlementOutcome(result, actual_return, invest_amount + actual_return)
    return SettlementOutcome(result, -invest_amount, Decimal("0"))


def win_rate(winning: int, settled: int) -> Decimal:
    """Winning orders as a percentage of settled ones, two decimals."""
    if settled <= 0:
        return Decimal("0.00")
    rate = Decimal(winning) / Decimal(settled) * PERCENT
    return rate.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)
