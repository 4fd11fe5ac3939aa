"""
Dependency injection for the CMS bounded context.
"""

from fastapi import Depends
from sqlalchemy.orm import Session

from cryptosim.application.cms.content import ContentService
from cryptosim.core.database import get_db_session
from cryptosim.domain.cms.entities import (
    CarouselItem,
    LeaderboardEntry,
    Testimonial,
    TradingPerformance,
)
from cryptosim.infrastructure.cms.repositories import (
    CarouselRepositoryAdapter,
    LeaderboardRepositoryAdapter,
    TestimonialRepositoryAdapter,
    TradingPerformanceRepositoryAdapter,
)


def get_testimonial_service(
    session: Session = Depends(get_db_session),
) -> ContentService[Testimonial]:
    return ContentService(TestimonialRepositoryAdapter(session), Testimonial, "Testimonial")


def get_carousel_service(
    session: Session = Depends(get_db_session),
) -> ContentService[CarouselItem]:
    return ContentService(CarouselRepositoryAdapter(session), CarouselItem, "CarouselItem")


def get_leaderboard_service(
    session: Session = Depends(get_db_session),
) -> ContentService[LeaderboardEntry]:
    return ContentService(
        LeaderboardRepositoryAdapter(session), LeaderboardEntry, "LeaderboardEntry"
    )


def get_trading_performance_service(
    session: Session = Depends(get_db_session),
) -> ContentService[TradingPerformance]:
    return ContentService(
        TradingPerformanceRepositoryAdapter(session), TradingPerformance, "TradingPerformance"
    )
