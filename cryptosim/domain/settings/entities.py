"""
Domain entities and rules for platform settings.

Settings are JSON values addressed by dotted keys; the part before
the first dot is the category. Well-known keys and their defaults
are declared here.
"""

import ipaddress
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Optional

from cryptosim.domain.clock import utc_now

GENERAL_CATEGORY = "general"

ADMIN_USERNAME_KEY = "admin.username"
TRADING_CHANNELS_KEY = "trading.channels"
MANAGED_MODE_KEY = "trading.managed_mode"
CUSTOMER_SERVICE_KEY = "customer_service.config"
LATENCY_KEY = "system.latency"
IP_WHITELIST_ENABLED_KEY = "security.ip_whitelist_enabled"
SHARE_COPY_KEY = "cms.share_copy"
DEPOSIT_ADDRESS_KEY = "cms.deposit_address"

DEFAULT_CUSTOMER_SERVICE: dict[str, Any] = {
    "enabled": False,
    "position": "bottom-right",
    "theme": "light",
}
DEFAULT_LATENCY: dict[str, Any] = {
    "tradingDelay": 0,
    "apiDelay": 0,
    "priceUpdateDelay": 1000,
    "settlementDelay": 0,
}
DEFAULT_SHARE_COPY: dict[str, Any] = {"title": "", "content": ""}
DEFAULT_DEPOSIT_ADDRESS: dict[str, Any] = {"network": "", "address": "", "qrCode": None}


@dataclass
class Setting:
    id: str
    key: str
    value: Any
    category: str = GENERAL_CATEGORY
    description: Optional[str] = None
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)


@dataclass
class IpWhitelistEntry:
    id: str
    ip_address: str
    description: Optional[str] = None
    is_active: bool = True
    created_at: datetime = field(default_factory=utc_now)
    updated_at: datetime = field(default_factory=utc_now)


def category_of(key: str) -> str:
    """Return the category of a dotted key, ``general`` when it has none."""
    prefix, dot, _ = key.partition(".")
    if not dot or not prefix:
        return GENERAL_CATEGORY
    return prefix


def is_valid_ip_rule(rule: str) -> bool:
    """Accept a single IPv4/IPv6 address or a CIDR network."""
    try:
        ipaddress.ip_network(rule.strip(), strict=False)
    except ValueError:
        return False
    return True


def ip_allowed(client_ip: str, rules: list[str]) -> bool:
    """Return True when ``client_ip`` matches any address or network in ``rules``."""
    try:
        address = ipaddress.ip_address(client_ip)
    except ValueError:
        return False
    for rule in rules:
        try:
            if address in ipaddress.ip_network(rule.strip(), strict=False):
                return True
        except ValueError:
            continue
    return False
