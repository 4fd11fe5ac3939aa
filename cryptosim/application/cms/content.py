"""
Use cases: CRUD over one CMS collection.

Input: field values for create/update, record ids, exact-match filters
Output: CMS entities in display order
Side effects: Writes CMS rows.
Failure cases: EntityNotFoundError.
"""

import dataclasses
import logging
import uuid
from typing import Any, Generic, TypeVar

from cryptosim.domain.cms.ports import ContentRepository
from cryptosim.domain.errors import EntityNotFoundError

logger = logging.getLogger(__name__)

T = TypeVar("T")

_READ_ONLY = frozenset({"id", "created_at", "updated_at"})


class ContentService(Generic[T]):
    """The same five operations for testimonials, carousels, leaderboard and performance."""

    def __init__(self, repository: ContentRepository[T], entity: type[T], name: str) -> None:
        self._repository = repository
        self._entity = entity
        self._name = name

    def find(self, **filters: Any) -> list[T]:
        return self._repository.find(**filters)

    def get(self, record_id: str) -> T:
        record = self._repository.get(record_id)
        if record is None:
            raise EntityNotFoundError(self._name, record_id)
        return record

    def create(self, **values: Any) -> T:
        record = self._repository.add(self._entity(id=str(uuid.uuid4()), **values))
        logger.info("Created %s id=%s", self._name, record.id)
        return record

    def update(self, record_id: str, **changes: Any) -> T:
        """Apply non-None changes to writable fields."""
        record = self.get(record_id)
        writable = {f.name for f in dataclasses.fields(record)} - _READ_ONLY
        for name, value in changes.items():
            if value is not None and name in writable:
                setattr(record, name, value)
        return self._repository.save(record)

    def delete(self, record_id: str) -> None:
        self.get(record_id)
        self._repository.delete(record_id)
        logger.info("Deleted %s id=%s", self._name, record_id)
