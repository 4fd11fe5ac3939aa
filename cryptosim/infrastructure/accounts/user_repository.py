"""
Adapter: User repository.

Implements UserRepository port on top of the SQLAlchemy ORM.
"""

from typing import Optional

from sqlalchemy import String, cast, func, or_, select, update

from cryptosim.domain.accounts.entities import User
from cryptosim.domain.accounts.ports import UserFilter, UserRepository
from cryptosim.domain.pagination import Page, PageRequest, SortOrder
from cryptosim.infrastructure.database.models import UserModel
from cryptosim.infrastructure.database.repository import SqlAlchemyRepository

SORTABLE_COLUMNS = {
    "created_at": UserModel.created_at,
    "updated_at": UserModel.updated_at,
    "email": UserModel.email,
    "display_name": UserModel.display_name,
    "last_login_at": UserModel.last_login_at,
}


class UserRepositoryAdapter(SqlAlchemyRepository[User, UserModel], UserRepository):
    """ORM-backed trader repository."""

    entity = User
    model = UserModel
    entity_name = "User"

    def get_by_email(self, email: str) -> Optional[User]:
        row = self._session.scalars(
            select(UserModel).where(func.lower(UserModel.email) == email.lower())
        ).first()
        return self._to_entity(row) if row is not None else None

    def get_by_phone(self, phone_number: str) -> Optional[User]:
        row = self._session.scalars(
            select(UserModel).where(UserModel.phone_number == phone_number)
        ).first()
        return self._to_entity(row) if row is not None else None

    def search(self, criteria: UserFilter, page: PageRequest) -> Page[User]:
        stmt = select(UserModel)
        if criteria.search:
            pattern = f"%{criteria.search.lower()}%"
            stmt = stmt.where(
                or_(
                    func.lower(UserModel.email).like(pattern),
                    func.lower(UserModel.display_name).like(pattern),
                    func.lower(func.coalesce(UserModel.phone_number, "")).like(pattern),
                )
            )
        if criteria.role:
            # roles is a JSON array; match the quoted element in its text form
            stmt = stmt.where(
                cast(UserModel.roles, String).like(f'%"{criteria.role}"%')
            )
        if criteria.verification_status:
            stmt = stmt.where(UserModel.verification_status == criteria.verification_status)
        if criteria.is_active is not None:
            stmt = stmt.where(UserModel.is_active == criteria.is_active)

        column = SORTABLE_COLUMNS.get(criteria.sort_by, UserModel.created_at)
        order = column.asc() if criteria.sort_order is SortOrder.ASC else column.desc()
        stmt = stmt.order_by(order, UserModel.id)
        return self._paginate(stmt, page)

    def list_all(self) -> list[User]:
        rows = self._session.scalars(select(UserModel).order_by(UserModel.created_at)).all()
        return [self._to_entity(row) for row in rows]

    def replace_verification_status(self, old: str, new: str) -> int:
        result = self._session.execute(
            update(UserModel)
            .where(UserModel.verification_status == old)
            .values(verification_status=new)
        )
        self._session.flush()
        return result.rowcount or 0
