"""
Port interfaces (ABCs) for settings and the IP whitelist.
"""

from abc import ABC, abstractmethod
from typing import Optional

from cryptosim.domain.pagination import Page, PageRequest
from cryptosim.domain.settings.entities import IpWhitelistEntry, Setting


class SettingRepository(ABC):
    """Port for key/value settings."""

    @abstractmethod
    def get(self, key: str) -> Optional[Setting]:
        raise NotImplementedError

    @abstractmethod
    def find(self, category: Optional[str] = None) -> list[Setting]:
        """Return settings ordered by category then key."""
        raise NotImplementedError

    @abstractmethod
    def upsert(self, setting: Setting) -> Setting:
        """Insert the setting or overwrite the value of the same key."""
        raise NotImplementedError


class IpWhitelistRepository(ABC):
    """Port for admin IP whitelist entries."""

    @abstractmethod
    def get(self, entry_id: str) -> Optional[IpWhitelistEntry]:
        raise NotImplementedError

    @abstractmethod
    def search(
        self, search: Optional[str], is_active: Optional[bool], page: PageRequest
    ) -> Page[IpWhitelistEntry]:
        raise NotImplementedError

    @abstractmethod
    def get_by_address(self, ip_address: str) -> Optional[IpWhitelistEntry]:
        """Exact match on the stored address or network."""
        raise NotImplementedError

    @abstractmethod
    def active_rules(self) -> list[str]:
        raise NotImplementedError

    @abstractmethod
    def add(self, entry: IpWhitelistEntry) -> IpWhitelistEntry:
        raise NotImplementedError

    @abstractmethod
    def save(self, entry: IpWhitelistEntry) -> IpWhitelistEntry:
        raise NotImplementedError

    @abstractmethod
    def delete(self, entry_id: str) -> None:
        raise NotImplementedError
