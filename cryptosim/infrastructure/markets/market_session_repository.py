"""
Adapter: Market session repository.

Implements MarketSessionRepository port. Sessions, sub-markets and
cycles share one adapter because they are always loaded together.
"""

from decimal import Decimal
from typing import Any, Optional

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from cryptosim.domain.markets.entities import (
    CycleStatus,
    MarketSession,
    SubMarket,
    SubMarketCycle,
    TradeTypeRule,
)
from cryptosim.domain.markets.ports import MarketSessionRepository
from cryptosim.domain.pagination import Page, PageRequest
from cryptosim.infrastructure.database.models import (
    MarketSessionModel,
    SubMarketCycleModel,
    SubMarketModel,
)
from cryptosim.infrastructure.database.repository import SqlAlchemyRepository


def _rule_to_json(rule: TradeTypeRule) -> dict[str, Any]:
    data: dict[str, Any] = {"assetType": rule.asset_type, "durations": list(rule.durations)}
    if rule.profit_rate is not None:
        data["profitRate"] = str(rule.profit_rate)
    return data


def _rule_from_json(data: dict[str, Any]) -> TradeTypeRule:
    profit_rate = data.get("profitRate")
    return TradeTypeRule(
        asset_type=data["assetType"],
        durations=tuple(int(d) for d in data.get("durations", [])),
        profit_rate=Decimal(str(profit_rate)) if profit_rate is not None else None,
    )


class _SubMarketRows(SqlAlchemyRepository[SubMarket, SubMarketModel]):
    entity = SubMarket
    model = SubMarketModel
    entity_name = "SubMarket"


class _CycleRows(SqlAlchemyRepository[SubMarketCycle, SubMarketCycleModel]):
    entity = SubMarketCycle
    model = SubMarketCycleModel
    entity_name = "SubMarketCycle"


class MarketSessionRepositoryAdapter(
    SqlAlchemyRepository[MarketSession, MarketSessionModel], MarketSessionRepository
):
    """ORM-backed market session repository."""

    entity = MarketSession
    model = MarketSessionModel
    entity_name = "MarketSession"

    def __init__(self, session: Session) -> None:
        super().__init__(session)
        self._sub_markets = _SubMarketRows(session)
        self._cycles = _CycleRows(session)

    def _to_entity(self, row: MarketSessionModel) -> MarketSession:
        entity = super()._to_entity(row)
        entity.trade_types = [_rule_from_json(item) for item in row.trade_types or []]
        return entity

    def _to_values(self, entity: MarketSession) -> dict[str, Any]:
        values = super()._to_values(entity)
        values["trade_types"] = [_rule_to_json(rule) for rule in entity.trade_types]
        return values

    def search(self, status: Optional[str], page: PageRequest) -> Page[MarketSession]:
        stmt = select(MarketSessionModel)
        if status:
            stmt = stmt.where(MarketSessionModel.status == status)
        stmt = stmt.order_by(MarketSessionModel.start_time.desc(), MarketSessionModel.id)
        return self._paginate(stmt, page)

    def list_by_status(self, status: str) -> list[MarketSession]:
        rows = self._session.scalars(
            select(MarketSessionModel)
            .where(MarketSessionModel.status == status)
            .order_by(MarketSessionModel.start_time)
        ).all()
        return [self._to_entity(row) for row in rows]

    def delete(self, session_id: str) -> None:
        sub_ids = select(SubMarketModel.id).where(SubMarketModel.market_session_id == session_id)
        self._session.execute(
            delete(SubMarketCycleModel).where(SubMarketCycleModel.sub_market_id.in_(sub_ids))
        )
        self._session.execute(
            delete(SubMarketModel).where(SubMarketModel.market_session_id == session_id)
        )
        super().delete(session_id)

    # ── Sub-markets ──────────────────────────────────────────────

    def get_sub_market(self, sub_market_id: str) -> Optional[SubMarket]:
        return self._sub_markets.get(sub_market_id)

    def list_sub_markets(self, session_id: str) -> list[SubMarket]:
        rows = self._session.scalars(
            select(SubMarketModel)
            .where(SubMarketModel.market_session_id == session_id)
            .order_by(SubMarketModel.asset_type, SubMarketModel.trade_duration)
        ).all()
        return [self._sub_markets._to_entity(row) for row in rows]

    def add_sub_market(self, sub_market: SubMarket) -> SubMarket:
        return self._sub_markets.add(sub_market)

    def save_sub_market(self, sub_market: SubMarket) -> SubMarket:
        return self._sub_markets.save(sub_market)

    # ── Cycles ───────────────────────────────────────────────────

    def get_cycle(self, sub_market_id: str, cycle_number: int) -> Optional[SubMarketCycle]:
        row = self._session.scalars(
            select(SubMarketCycleModel)
            .where(SubMarketCycleModel.sub_market_id == sub_market_id)
            .where(SubMarketCycleModel.cycle_number == cycle_number)
        ).first()
        return self._cycles._to_entity(row) if row is not None else None

    def list_cycles(self, sub_market_id: str, page: PageRequest) -> Page[SubMarketCycle]:
        stmt = (
            select(SubMarketCycleModel)
            .where(SubMarketCycleModel.sub_market_id == sub_market_id)
            .order_by(SubMarketCycleModel.cycle_number.desc())
        )
        return self._cycles._paginate(stmt, page)

    def list_running_cycles(self, sub_market_id: str) -> list[SubMarketCycle]:
        rows = self._session.scalars(
            select(SubMarketCycleModel)
            .where(SubMarketCycleModel.sub_market_id == sub_market_id)
            .where(SubMarketCycleModel.status == CycleStatus.RUNNING.value)
            .order_by(SubMarketCycleModel.cycle_number)
        ).all()
        return [self._cycles._to_entity(row) for row in rows]

    def add_cycle(self, cycle: SubMarketCycle) -> SubMarketCycle:
        return self._cycles.add(cycle)

    def save_cycle(self, cycle: SubMarketCycle) -> SubMarketCycle:
        return self._cycles.save(cycle)
