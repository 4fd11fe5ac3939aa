"""
Adapters: Setting and IP whitelist repositories.
"""

from typing import Optional

from sqlalchemy import func, or_, select

from cryptosim.domain.pagination import Page, PageRequest
from cryptosim.domain.settings.entities import IpWhitelistEntry, Setting
from cryptosim.domain.settings.ports import IpWhitelistRepository, SettingRepository
from cryptosim.infrastructure.database.models import IpWhitelistModel, SettingModel
from cryptosim.infrastructure.database.repository import SqlAlchemyRepository


class SettingRepositoryAdapter(SqlAlchemyRepository[Setting, SettingModel], SettingRepository):
    """ORM-backed settings store keyed by setting key."""

    entity = Setting
    model = SettingModel
    entity_name = "Setting"

    def _row_by_key(self, key: str) -> Optional[SettingModel]:
        return self._session.scalars(select(SettingModel).where(SettingModel.key == key)).first()

    def get(self, key: str) -> Optional[Setting]:
        row = self._row_by_key(key)
        return self._to_entity(row) if row is not None else None

    def find(self, category: Optional[str] = None) -> list[Setting]:
        stmt = select(SettingModel)
        if category:
            stmt = stmt.where(SettingModel.category == category)
        rows = self._session.scalars(stmt.order_by(SettingModel.category, SettingModel.key)).all()
        return [self._to_entity(row) for row in rows]

    def upsert(self, setting: Setting) -> Setting:
        row = self._row_by_key(setting.key)
        if row is None:
            return self.add(setting)
        row.value = setting.value
        row.category = setting.category
        if setting.description is not None:
            row.description = setting.description
        self._session.flush()
        return self._to_entity(row)


class IpWhitelistRepositoryAdapter(
    SqlAlchemyRepository[IpWhitelistEntry, IpWhitelistModel], IpWhitelistRepository
):
    entity = IpWhitelistEntry
    model = IpWhitelistModel
    entity_name = "IpWhitelistEntry"

    def search(
        self, search: Optional[str], is_active: Optional[bool], page: PageRequest
    ) -> Page[IpWhitelistEntry]:
        stmt = select(IpWhitelistModel)
        if search:
            pattern = f"%{search.lower()}%"
            stmt = stmt.where(
                or_(
                    func.lower(IpWhitelistModel.ip_address).like(pattern),
                    func.lower(func.coalesce(IpWhitelistModel.description, "")).like(pattern),
                )
            )
        if is_active is not None:
            stmt = stmt.where(IpWhitelistModel.is_active == is_active)
        stmt = stmt.order_by(IpWhitelistModel.created_at.desc(), IpWhitelistModel.id)
        return self._paginate(stmt, page)

    def get_by_address(self, ip_address: str) -> Optional[IpWhitelistEntry]:
        row = self._session.scalars(
            select(IpWhitelistModel).where(IpWhitelistModel.ip_address == ip_address)
        ).first()
        return self._to_entity(row) if row is not None else None

    def active_rules(self) -> list[str]:
        return list(
            self._session.scalars(
                select(IpWhitelistModel.ip_address).where(IpWhitelistModel.is_active.is_(True))
            ).all()
        )
