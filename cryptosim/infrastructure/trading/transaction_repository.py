"""
Adapter: Transaction repository.

Implements TransactionRepository port on top of the SQLAlchemy ORM.
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import case, func, or_, select

from cryptosim.domain.pagination import Page, PageRequest
from cryptosim.domain.trading.entities import Transaction, TransactionStatus
from cryptosim.domain.trading.ports import (
    OutcomeCounts,
    SessionOrderCounts,
    TransactionFilter,
    TransactionRepository,
)
from cryptosim.infrastructure.database.models import TransactionModel
from cryptosim.infrastructure.database.repository import SqlAlchemyRepository

SETTLED = TransactionStatus.SETTLED.value
PENDING = TransactionStatus.PENDING.value


class TransactionRepositoryAdapter(
    SqlAlchemyRepository[Transaction, TransactionModel], TransactionRepository
):
    """ORM-backed order repository."""

    entity = Transaction
    model = TransactionModel
    entity_name = "Transaction"

    def get_by_order_number(self, order_number: str) -> Optional[Transaction]:
        row = self._session.scalars(
            select(TransactionModel).where(TransactionModel.order_number == order_number)
        ).first()
        return self._to_entity(row) if row is not None else None

    def search(self, criteria: TransactionFilter, page: PageRequest) -> Page[Transaction]:
        stmt = select(TransactionModel)
        exact = {
            TransactionModel.user_id: criteria.user_id,
            TransactionModel.account_type: criteria.account_type,
            TransactionModel.asset_type: criteria.asset_type,
            TransactionModel.direction: criteria.direction,
            TransactionModel.status: criteria.status,
            TransactionModel.market_session_id: criteria.market_session_id,
            TransactionModel.is_managed: criteria.is_managed,
        }
        for column, value in exact.items():
            if value is not None:
                stmt = stmt.where(column == value)
        if criteria.username:
            stmt = stmt.where(
                func.lower(TransactionModel.user_name).like(f"%{criteria.username.lower()}%")
            )
        if criteria.order_number:
            stmt = stmt.where(
                or_(
                    TransactionModel.order_number == criteria.order_number,
                    TransactionModel.order_number.like(f"%{criteria.order_number}%"),
                )
            )
        if criteria.entry_from is not None:
            stmt = stmt.where(TransactionModel.entry_time >= criteria.entry_from)
        if criteria.entry_to is not None:
            stmt = stmt.where(TransactionModel.entry_time <= criteria.entry_to)

        stmt = stmt.order_by(TransactionModel.entry_time.desc(), TransactionModel.id)
        return self._paginate(stmt, page)

    def list_due(self, now: datetime) -> list[Transaction]:
        rows = self._session.scalars(
            select(TransactionModel)
            .where(TransactionModel.status == PENDING)
            .where(TransactionModel.expiry_time <= now)
            .order_by(TransactionModel.expiry_time)
        ).all()
        return [self._to_entity(row) for row in rows]

    def list_missing_user_name(self) -> list[Transaction]:
        rows = self._session.scalars(
            select(TransactionModel).where(
                or_(TransactionModel.user_name.is_(None), TransactionModel.user_name == "")
            )
        ).all()
        return [self._to_entity(row) for row in rows]

    def outcome_counts(self, user_id: str) -> OutcomeCounts:
        settled = TransactionModel.status == SETTLED
        row = self._session.execute(
            select(
                func.count(TransactionModel.id),
                func.sum(case((settled, 1), else_=0)),
                func.sum(case((settled & (TransactionModel.actual_return > 0), 1), else_=0)),
                func.sum(case((settled & (TransactionModel.actual_return <= 0), 1), else_=0)),
            ).where(TransactionModel.user_id == user_id)
        ).one()
        total, settled_count, winning, losing = row
        return OutcomeCounts(
            total=total or 0,
            settled=int(settled_count or 0),
            winning=int(winning or 0),
            losing=int(losing or 0),
        )

    def session_counts(self, session_ids: list[str]) -> list[SessionOrderCounts]:
        if not session_ids:
            return []
        rows = self._session.execute(
            select(
                TransactionModel.market_session_id,
                func.sum(case((TransactionModel.status == PENDING, 1), else_=0)),
                func.sum(case((TransactionModel.status == SETTLED, 1), else_=0)),
            )
            .where(TransactionModel.market_session_id.in_(session_ids))
            .group_by(TransactionModel.market_session_id)
        ).all()
        found = {
            session_id: SessionOrderCounts(session_id, int(pending or 0), int(settled or 0))
            for session_id, pending, settled in rows
        }
        return [found.get(sid, SessionOrderCounts(sid, 0, 0)) for sid in session_ids]
