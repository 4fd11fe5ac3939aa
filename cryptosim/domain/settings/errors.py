"""
Domain-specific errors for settings.

No framework imports allowed.
"""

from cryptosim.domain.errors import BusinessRuleError


class InvalidIpRuleError(BusinessRuleError):
    """Raised when a whitelist entry is neither an IP address nor a CIDR network."""

    def __init__(self, rule: str) -> None:
        super().__init__(f"Invalid IP address or CIDR: {rule}")
        self.rule = rule
