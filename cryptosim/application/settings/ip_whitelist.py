"""
Use cases: Admin IP whitelist entries.

Input: address/CIDR, description, active flag, list filters
Output: IpWhitelistEntry or Page[IpWhitelistEntry]
Side effects: Creates, updates and deletes whitelist entries.
Failure cases: InvalidIpRuleError, ConflictError, EntityNotFoundError.
"""

import logging
import uuid
from typing import Optional

from cryptosim.domain.errors import ConflictError, EntityNotFoundError
from cryptosim.domain.pagination import Page, PageRequest
from cryptosim.domain.settings.entities import IpWhitelistEntry, is_valid_ip_rule
from cryptosim.domain.settings.errors import InvalidIpRuleError
from cryptosim.domain.settings.ports import IpWhitelistRepository

logger = logging.getLogger(__name__)


class IpWhitelistService:
    def __init__(self, entries: IpWhitelistRepository) -> None:
        self._entries = entries

    def _require(self, entry_id: str) -> IpWhitelistEntry:
        entry = self._entries.get(entry_id)
        if entry is None:
            raise EntityNotFoundError("IpWhitelistEntry", entry_id)
        return entry

    def _validated(self, ip_address: str) -> str:
        rule = ip_address.strip()
        if not is_valid_ip_rule(rule):
            raise InvalidIpRuleError(ip_address)
        return rule

    def _ensure_unique(self, rule: str, exclude_id: Optional[str] = None) -> None:
        existing = self._entries.get_by_address(rule)
        if existing is not None and existing.id != exclude_id:
            raise ConflictError("ip_address", rule)

    def list_entries(
        self, search: Optional[str], is_active: Optional[bool], page: PageRequest
    ) -> Page[IpWhitelistEntry]:
        return self._entries.search(search, is_active, page)

    def get_entry(self, entry_id: str) -> IpWhitelistEntry:
        return self._require(entry_id)

    def create_entry(
        self, ip_address: str, description: Optional[str] = None, is_active: bool = True
    ) -> IpWhitelistEntry:
        rule = self._validated(ip_address)
        self._ensure_unique(rule)
        entry = self._entries.add(
            IpWhitelistEntry(
                id=str(uuid.uuid4()),
                ip_address=rule,
                description=description,
                is_active=is_active,
            )
        )
        logger.info("Whitelisted %s", rule)
        return entry

    def update_entry(
        self,
        entry_id: str,
        ip_address: Optional[str] = None,
        description: Optional[str] = None,
        is_active: Optional[bool] = None,
    ) -> IpWhitelistEntry:
        entry = self._require(entry_id)
        if ip_address is not None:
            rule = self._validated(ip_address)
            self._ensure_unique(rule, exclude_id=entry.id)
            entry.ip_address = rule
        if description is not None:
            entry.description = description
        if is_active is not None:
            entry.is_active = is_active
        return self._entries.save(entry)

    def delete_entry(self, entry_id: str) -> None:
        self._require(entry_id)
        self._entries.delete(entry_id)
        logger.info("Removed whitelist entry id=%s", entry_id)
