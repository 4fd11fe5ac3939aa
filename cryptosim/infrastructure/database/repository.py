"""
Shared plumbing for SQLAlchemy repository adapters.

Domain entities are dataclasses whose field names match the ORM
columns; this base copies values across and converts enum members
to and from their stored string values.
"""

import copy
import dataclasses
from enum import Enum, EnumMeta
from typing import Any, Generic, Optional, TypeVar

from sqlalchemy import Select, func, select
from sqlalchemy.orm import Session

from cryptosim.domain.clock import utc_now
from cryptosim.domain.errors import EntityNotFoundError
from cryptosim.domain.pagination import Page, PageRequest

E = TypeVar("E")
M = TypeVar("M")


def to_column_value(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    return value


class SqlAlchemyRepository(Generic[E, M]):
    """Row <-> entity mapping and the common CRUD operations.

    Subclasses set ``entity``, ``model`` and ``entity_name`` and may
    override ``_to_entity`` / ``_to_values`` for fields that need more
    than an enum conversion.
    """

    entity: type[E]
    model: type[M]
    entity_name: str = "Record"

    def __init__(self, session: Session) -> None:
        self._session = session

    def _to_entity(self, row: M) -> E:
        values = {}
        for f in dataclasses.fields(self.entity):
            value = getattr(row, f.name)
            if isinstance(f.type, EnumMeta) and value is not None:
                value = f.type(value)
            elif isinstance(value, (list, dict)):
                value = copy.deepcopy(value)
            values[f.name] = value
        return self.entity(**values)

    def _to_values(self, entity: E) -> dict[str, Any]:
        return {
            f.name: to_column_value(getattr(entity, f.name))
            for f in dataclasses.fields(entity)
        }

    def _row(self, record_id: str) -> Optional[M]:
        return self._session.get(self.model, record_id)

    def _require_row(self, record_id: str) -> M:
        row = self._row(record_id)
        if row is None:
            raise EntityNotFoundError(self.entity_name, record_id)
        return row

    def _paginate(self, stmt: Select, page: PageRequest) -> Page[E]:
        total = self._session.scalar(
            select(func.count()).select_from(stmt.order_by(None).subquery())
        ) or 0
        rows = self._session.scalars(stmt.offset(page.offset).limit(page.page_size)).all()
        return Page(
            items=[self._to_entity(row) for row in rows],
            total=total,
            page=page.page,
            page_size=page.page_size,
        )

    def get(self, record_id: str) -> Optional[E]:
        row = self._row(record_id)
        return self._to_entity(row) if row is not None else None

    def add(self, entity: E) -> E:
        row = self.model(**self._to_values(entity))
        self._session.add(row)
        self._session.flush()
        return self._to_entity(row)

    def save(self, entity: E) -> E:
        values = self._to_values(entity)
        row = self._require_row(values["id"])
        values["updated_at"] = utc_now()
        for name, value in values.items():
            setattr(row, name, value)
        self._session.flush()
        return self._to_entity(row)

    def delete(self, record_id: str) -> None:
        row = self._require_row(record_id)
        self._session.delete(row)
        self._session.flush()
