"""
Shared Pydantic schemas for the HTTP API.

Every schema serializes with camelCase keys and accepts either
camelCase or snake_case on input. Successful responses are wrapped
in ``{"data": ...}``.
"""

from decimal import Decimal
from typing import Annotated, Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, PlainSerializer
from pydantic.alias_generators import to_camel

from cryptosim.domain.pagination import Page

T = TypeVar("T")

# Decimal in Python, JSON number on the wire
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class DataResponse(BaseModel, Generic[T]):
    """Envelope of every successful response."""

    data: T


class PageData(CamelModel, Generic[T]):
    data: list[T]
    total: int
    page: int
    page_size: int
    total_pages: int


class MessageResponse(CamelModel):
    message: str


class ErrorResponse(BaseModel):
    """Error body produced by the centralized error handlers."""

    error: str
    detail: Optional[str] = None


def wrap(payload: T) -> DataResponse[T]:
    return DataResponse(data=payload)


def page_of(page: Page, schema: type[CamelModel]) -> PageData:
    """Convert a domain page into its response schema."""
    return PageData(
        data=[schema.model_validate(item) for item in page.items],
        total=page.total,
        page=page.page,
        page_size=page.page_size,
        total_pages=page.total_pages,
    )


class HealthResponse(BaseModel):
    status: str
    version: str
