from typing import Any, Generic, TypeVar
from pydantic import BaseModel, ConfigDict, Field, computed_field
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.utils.serialization import CamelModel


T = TypeVar("T")

MAX_PAGE_SIZE = 200


class PageQueryDTO(BaseModel):
    """Query-string paging; list endpoints extend it with their own filters."""
    model_config = ConfigDict(extra='forbid')

    page: int = Field(default=1, ge=1)
    page_size: int = Field(default=20, ge=1, le=MAX_PAGE_SIZE)


class PageDTO(CamelModel, Generic[T]):
    items: list[T]
    total: int
    page: int
    page_size: int

    @computed_field
    @property
    def pages(self) -> int:
        if self.page_size <= 0:
            return 1
        return max(1, (self.total + self.page_size - 1) // self.page_size)

    @computed_field
    @property
    def has_next(self) -> bool:
        return self.page < self.pages

    @classmethod
    def of(cls, items: list[T], total: int, query: PageQueryDTO) -> "PageDTO[T]":
        return cls(items=items, total=total, page=query.page, page_size=query.page_size)


async def paginate(
        db: AsyncSession,
        base_stmt,
        *,
        page: int = 1,
        page_size: int = 20,
        where: list[Any] | None = None,
        order_by: list[Any] | None = None,
        scalars: bool = True,
        count_by: Any | None = None
) -> tuple[list[Any], int]:
    """
    Applies filters/order to ``base_stmt`` and returns one page plus the unpaged total.
    ``count_by`` counts distinct values of a column instead of rows (use it for joined selects).
    """
    page = max(1, int(page))
    page_size = max(1, min(MAX_PAGE_SIZE, int(page_size)))

    stmt = base_stmt
    if where:
        stmt = stmt.where(*where)
    if order_by:
        stmt = stmt.order_by(*order_by)

    if count_by is not None:
        count_stmt = stmt.with_only_columns(count_by).order_by(None).distinct()
        total = await db.scalar(select(func.count()).select_from(count_stmt.subquery()))
    else:
        total_subquery = stmt.order_by(None).limit(None).offset(None)
        total = await db.scalar(select(func.count()).select_from(total_subquery.subquery()))

    stmt = stmt.limit(page_size).offset((page - 1) * page_size)

    if scalars:
        result = await db.scalars(stmt)
    else:
        result = await db.execute(stmt)

    items = result.all()
    return items, int(total or 0)
