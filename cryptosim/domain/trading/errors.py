"""
Domain-specific errors for the trading bounded context.

No framework imports allowed.
"""

from cryptosim.domain.errors import BusinessRuleError, EntityNotFoundError


class TransactionNotFoundError(EntityNotFoundError):
    """Raised when an order number does not match any visible order."""

    def __init__(self, order_number: str) -> None:
        super().__init__("Transaction", order_number)
        self.order_number = order_number


class InsufficientBalanceError(BusinessRuleError):
    """Raised when the stake exceeds the account balance."""

    def __init__(self, required: str, available: str) -> None:
        super().__init__(
            f"Insufficient balance: required {required}, available {available}"
        )
        self.required = required
        self.available = available


class TransactionNotPendingError(BusinessRuleError):
    """Raised when settling or cancelling an order that is already closed."""

    def __init__(self, order_number: str, status: str) -> None:
        super().__init__(f"Transaction {order_number} is {status}, expected PENDING")
        self.order_number = order_number
        self.status = status


class InvalidTradeError(BusinessRuleError):
    """Raised when an order request is missing fields it needs."""
