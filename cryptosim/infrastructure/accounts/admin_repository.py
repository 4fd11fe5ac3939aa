"""
Adapter: Admin repository.

Implements AdminRepository port on top of the SQLAlchemy ORM.
"""

from typing import Optional

from sqlalchemy import func, or_, select

from cryptosim.domain.accounts.entities import Admin
from cryptosim.domain.accounts.ports import AdminFilter, AdminRepository
from cryptosim.domain.pagination import Page, PageRequest, SortOrder
from cryptosim.infrastructure.database.models import AdminModel
from cryptosim.infrastructure.database.repository import SqlAlchemyRepository

SORTABLE_COLUMNS = {
    "created_at": AdminModel.created_at,
    "updated_at": AdminModel.updated_at,
    "username": AdminModel.username,
    "last_login_at": AdminModel.last_login_at,
}


class AdminRepositoryAdapter(SqlAlchemyRepository[Admin, AdminModel], AdminRepository):
    """ORM-backed operator repository."""

    entity = Admin
    model = AdminModel
    entity_name = "Admin"

    def get_by_username(self, username: str) -> Optional[Admin]:
        row = self._session.scalars(
            select(AdminModel).where(AdminModel.username == username)
        ).first()
        return self._to_entity(row) if row is not None else None

    def get_first(self) -> Optional[Admin]:
        row = self._session.scalars(
            select(AdminModel).order_by(AdminModel.created_at.asc(), AdminModel.id)
        ).first()
        return self._to_entity(row) if row is not None else None

    def search(self, criteria: AdminFilter, page: PageRequest) -> Page[Admin]:
        stmt = select(AdminModel)
        if criteria.search:
            pattern = f"%{criteria.search.lower()}%"
            stmt = stmt.where(
                or_(
                    func.lower(AdminModel.username).like(pattern),
                    func.lower(func.coalesce(AdminModel.display_name, "")).like(pattern),
                    func.lower(func.coalesce(AdminModel.email, "")).like(pattern),
                )
            )
        if criteria.is_active is not None:
            stmt = stmt.where(AdminModel.is_active == criteria.is_active)

        column = SORTABLE_COLUMNS.get(criteria.sort_by, AdminModel.created_at)
        order = column.asc() if criteria.sort_order is SortOrder.ASC else column.desc()
        return self._paginate(stmt.order_by(order, AdminModel.id), page)

    def count_active(self) -> int:
        return self._session.scalar(
            select(func.count()).select_from(AdminModel).where(AdminModel.is_active.is_(True))
        ) or 0
