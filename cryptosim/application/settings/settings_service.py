"""
Use cases: Platform settings.

Input: setting keys, JSON values, optional category filter
Output: Setting, grouped settings, or typed values with defaults
Side effects: Upserts setting rows.
Failure cases: EntityNotFoundError for an unknown key on read.
"""

import copy
import logging
import uuid
from collections import defaultdict
from typing import Any, Optional

from cryptosim.domain.errors import EntityNotFoundError
from cryptosim.domain.settings.entities import (
    CUSTOMER_SERVICE_KEY,
    DEFAULT_CUSTOMER_SERVICE,
    DEFAULT_DEPOSIT_ADDRESS,
    DEFAULT_LATENCY,
    DEFAULT_SHARE_COPY,
    DEPOSIT_ADDRESS_KEY,
    IP_WHITELIST_ENABLED_KEY,
    LATENCY_KEY,
    MANAGED_MODE_KEY,
    SHARE_COPY_KEY,
    TRADING_CHANNELS_KEY,
    Setting,
    category_of,
)
from cryptosim.domain.settings.ports import SettingRepository

logger = logging.getLogger(__name__)


class SettingsService:
    """Reads and writes key/value settings.

    The typed accessors return a default when a well-known key has
    never been written; dict-valued settings are merged over their
    default so new fields appear for old rows.
    """

    def __init__(self, settings: SettingRepository) -> None:
        self._settings = settings

    def grouped(self, category: Optional[str] = None) -> dict[str, list[Setting]]:
        groups: dict[str, list[Setting]] = defaultdict(list)
        for setting in self._settings.find(category):
            groups[setting.category].append(setting)
        return dict(groups)

    def get(self, key: str) -> Setting:
        setting = self._settings.get(key)
        if setting is None:
            raise EntityNotFoundError("Setting", key)
        return setting

    def put(self, key: str, value: Any, description: Optional[str] = None) -> Setting:
        setting = self._settings.upsert(
            Setting(
                id=str(uuid.uuid4()),
                key=key,
                value=value,
                category=category_of(key),
                description=description,
            )
        )
        logger.info("Setting updated key=%s", key)
        return setting

    def put_many(self, values: dict[str, Any]) -> list[Setting]:
        return [self.put(key, value) for key, value in values.items()]

    def value(self, key: str, default: Any = None) -> Any:
        setting = self._settings.get(key)
        if setting is None:
            return copy.deepcopy(default)
        if isinstance(default, dict) and isinstance(setting.value, dict):
            return {**default, **setting.value}
        return setting.value

    # ── Well-known settings ──────────────────────────────────────

    def trading_channels(self) -> list[Any]:
        return self.value(TRADING_CHANNELS_KEY, [])

    def set_trading_channels(self, channels: list[Any]) -> list[Any]:
        return self.put(TRADING_CHANNELS_KEY, channels).value

    def customer_service(self) -> dict[str, Any]:
        return self.value(CUSTOMER_SERVICE_KEY, DEFAULT_CUSTOMER_SERVICE)

    def set_customer_service(self, config: dict[str, Any]) -> dict[str, Any]:
        self.put(CUSTOMER_SERVICE_KEY, {**self.customer_service(), **config})
        return self.customer_service()

    def latency(self) -> dict[str, Any]:
        return self.value(LATENCY_KEY, DEFAULT_LATENCY)

    def set_latency(self, config: dict[str, Any]) -> dict[str, Any]:
        self.put(LATENCY_KEY, {**self.latency(), **config})
        return self.latency()

    def managed_mode(self) -> bool:
        return bool(self.value(MANAGED_MODE_KEY, False))

    def set_managed_mode(self, enabled: bool) -> bool:
        self.put(MANAGED_MODE_KEY, enabled)
        return enabled

    def ip_whitelist_enabled(self) -> bool:
        return bool(self.value(IP_WHITELIST_ENABLED_KEY, False))

    def set_ip_whitelist_enabled(self, enabled: bool) -> bool:
        self.put(IP_WHITELIST_ENABLED_KEY, enabled)
        return enabled

    def share_copy(self) -> dict[str, Any]:
        return self.value(SHARE_COPY_KEY, DEFAULT_SHARE_COPY)

    def set_share_copy(self, content: dict[str, Any]) -> dict[str, Any]:
        self.put(SHARE_COPY_KEY, content)
        return self.share_copy()

    def deposit_address(self) -> dict[str, Any]:
        return self.value(DEPOSIT_ADDRESS_KEY, DEFAULT_DEPOSIT_ADDRESS)

    def set_deposit_address(self, content: dict[str, Any]) -> dict[str, Any]:
        self.put(DEPOSIT_ADDRESS_KEY, content)
        return self.deposit_address()
