"""
Port interface for CMS records.

Every CMS collection has the same shape of operations; each adapter
fixes its own display order.
"""

from abc import ABC, abstractmethod
from typing import Any, Generic, Optional, TypeVar

T = TypeVar("T")


class ContentRepository(ABC, Generic[T]):
    """Port for one CMS collection."""

    @abstractmethod
    def find(self, **filters: Any) -> list[T]:
        """Return records in display order, filtered by exact field values."""
        raise NotImplementedError

    @abstractmethod
    def get(self, record_id: str) -> Optional[T]:
        raise NotImplementedError

    @abstractmethod
    def add(self, record: T) -> T:
        raise NotImplementedError

    @abstractmethod
    def save(self, record: T) -> T:
        raise NotImplementedError

    @abstractmethod
    def delete(self, record_id: str) -> None:
        raise NotImplementedError
