"""Common types used across all models."""

from datetime import datetime
from typing import Generic, TypeVar

from pydantic import Field, model_validator

from .base import TourismBaseModel

T = TypeVar("T")


class PaginationParams(TourismBaseModel):
    """Pagination parameters for list endpoints."""

    page: int = Field(default=1, ge=1, description="Page number (1-indexed)")
    page_size: int = Field(default=20, ge=1, le=100, description="Items per page (max 100)")


class PaginatedResponse(TourismBaseModel, Generic[T]):
    """Paginated response wrapper."""

    items: list[T]
    total: int = Field(description="Total number of items")
    page: int
    page_size: int
    total_pages: int


class DateWindow(TourismBaseModel):
    """Concrete start/end instants resolved from a date-range specifier."""

    start: datetime
    end: datetime

    @model_validator(mode="after")
    def check_order(self) -> "DateWindow":
        if self.start > self.end:
            raise ValueError("start must not be after end")
        return self
