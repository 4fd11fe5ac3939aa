"""
Domain-specific errors for market sessions.

No framework imports allowed.
"""

from cryptosim.domain.errors import BusinessRuleError


class InvalidSessionTransitionError(BusinessRuleError):
    """Raised when a session is started, stopped or removed from the wrong state."""

    def __init__(self, session_id: str, status: str, action: str) -> None:
        super().__init__(f"Cannot {action} market session {session_id} in status {status}")
        self.session_id = session_id
        self.status = status
        self.action = action


class InvalidSessionWindowError(BusinessRuleError):
    """Raised when a session ends before it starts."""

    def __init__(self) -> None:
        super().__init__("Market session end time must be after start time")


class SessionNotTradableError(BusinessRuleError):
    """Raised when an order references a session that is not ACTIVE."""

    def __init__(self, session_id: str) -> None:
        super().__init__(f"Market session is not active: {session_id}")
        self.session_id = session_id
