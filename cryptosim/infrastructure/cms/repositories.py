"""
Adapters: CMS content repositories.

One small adapter per collection; each only fixes its display order.
"""

from typing import Any

from sqlalchemy import select

from cryptosim.domain.cms.entities import (
    CarouselItem,
    LeaderboardEntry,
    Testimonial,
    TradingPerformance,
)
from cryptosim.domain.cms.ports import ContentRepository
from cryptosim.infrastructure.database.models import (
    CarouselItemModel,
    LeaderboardEntryModel,
    TestimonialModel,
    TradingPerformanceModel,
)
from cryptosim.infrastructure.database.repository import SqlAlchemyRepository, to_column_value


class _ContentRepositoryAdapter(SqlAlchemyRepository, ContentRepository):
    order_by: tuple = ()

    def find(self, **filters: Any) -> list:
        stmt = select(self.model)
        for name, value in filters.items():
            if value is not None:
                stmt = stmt.where(getattr(self.model, name) == to_column_value(value))
        rows = self._session.scalars(stmt.order_by(*self.order_by)).all()
        return [self._to_entity(row) for row in rows]


class TestimonialRepositoryAdapter(_ContentRepositoryAdapter):
    entity = Testimonial
    model = TestimonialModel
    entity_name = "Testimonial"
    order_by = (TestimonialModel.created_at.desc(), TestimonialModel.id)


class CarouselRepositoryAdapter(_ContentRepositoryAdapter):
    entity = CarouselItem
    model = CarouselItemModel
    entity_name = "CarouselItem"
    order_by = (CarouselItemModel.sort_order.asc(), CarouselItemModel.created_at)


class LeaderboardRepositoryAdapter(_ContentRepositoryAdapter):
    entity = LeaderboardEntry
    model = LeaderboardEntryModel
    entity_name = "LeaderboardEntry"
    order_by = (LeaderboardEntryModel.type.asc(), LeaderboardEntryModel.trade_count.desc())


class TradingPerformanceRepositoryAdapter(_ContentRepositoryAdapter):
    entity = TradingPerformance
    model = TradingPerformanceModel
    entity_name = "TradingPerformance"
    order_by = (TradingPerformanceModel.trade_duration.asc(),)
