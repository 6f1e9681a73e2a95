"""
Pagination helpers for list endpoints.
"""

from math import ceil
from typing import Generic, List, Optional, TypeVar
from fastapi import Query
from pydantic import BaseModel, Field
from sqlalchemy import Select, func, select
from sqlalchemy.ext.asyncio import AsyncSession


T = TypeVar("T")


class PaginationParams(BaseModel):
    """Pagination parameters for API requests."""

    page: int = Field(default=1, ge=1, description="Page number (starts at 1)")
    page_size: int = Field(default=20, ge=1, le=100, description="Items per page")

    @property
    def skip(self) -> int:
        return (self.page - 1) * self.page_size

    @property
    def limit(self) -> int:
        return self.page_size


class PageInfo(BaseModel):
    """Pagination metadata."""

    total_items: int
    total_pages: int
    current_page: int
    page_size: int
    has_next: bool
    has_previous: bool


class PaginatedResponse(BaseModel, Generic[T]):
    """Generic paginated response wrapper."""

    items: List[T]
    page_info: PageInfo


class Paginator:
    """Apply offset/limit to a select and count the full result."""

    @staticmethod
    def page_info(total_items: int, params: PaginationParams) -> PageInfo:
        total_pages = ceil(total_items / params.page_size) if total_items > 0 else 0
        return PageInfo(
            total_items=total_items,
            total_pages=total_pages,
            current_page=params.page,
            page_size=params.page_size,
            has_next=params.page < total_pages,
            has_previous=params.page > 1,
        )

    @staticmethod
    async def paginate(
        db: AsyncSession,
        query: Select,
        params: PaginationParams,
        schema: Optional[type[BaseModel]] = None,
    ) -> PaginatedResponse:
        """
        Paginate a SQLAlchemy select (without limit/offset).

        Example:
            >>> query = select(Patient).order_by(Patient.created_at.desc())
            >>> page = await Paginator.paginate(db, query, PaginationParams(page=2))
        """
        count_query = select(func.count()).select_from(query.order_by(None).subquery())
        total_items = (await db.execute(count_query)).scalar() or 0

        result = await db.execute(query.offset(params.skip).limit(params.limit))
        items = list(result.scalars().all())

        if schema:
            items = [schema.model_validate(item, from_attributes=True) for item in items]

        return PaginatedResponse(items=items, page_info=Paginator.page_info(total_items, params))


def get_pagination_params(
    page: int = Query(1, ge=1, description="Page number"),
    page_size: int = Query(20, ge=1, le=100, description="Items per page"),
) -> PaginationParams:
    """Dependency for pagination parameters."""
    return PaginationParams(page=page, page_size=page_size)
