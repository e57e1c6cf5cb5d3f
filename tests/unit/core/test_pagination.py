import pytest
from pydantic import ValidationError
from sqlalchemy import select
from app.core.pagination import PageDTO, PageQueryDTO, paginate
from app.domain.events.models import Event
from app.domain.ticketing.schemas import EventBuyersQueryDTO


@pytest.mark.parametrize(
    "total, page_size, expected_pages",
    [
        (0, 20, 1),
        (20, 20, 1),
        (21, 20, 2),
        (600, 50, 12),
        (3, 0, 1),
    ]
)
def test_pages_calculation(total, page_size, expected_pages):
    dto = PageDTO(items=[], total=total, page=1, page_size=page_size)
    assert dto.pages == expected_pages


@pytest.mark.parametrize(
    "total, page, expected_has_next",
    [
        (0, 1, False),
        (21, 1, True),
        (21, 2, False),
        (21, 7, False),
    ]
)
def test_has_next(total, page, expected_has_next):
    dto = PageDTO(items=[], total=total, page=page, page_size=20)
    assert dto.has_next == expected_has_next


def test_page_of_copies_paging_from_query():
    dto = PageDTO.of(["a", "b"], 42, PageQueryDTO(page=3, page_size=2))

    assert dto.model_dump(by_alias=True) == {
        "items": ["a", "b"],
        "total": 42,
        "page": 3,
        "pageSize": 2,
        "pages": 21,
        "hasNext": True,
    }


@pytest.mark.parametrize("override", [{"page": 0}, {"page_size": 0}, {"page_size": 201}, {"sort": "name"}])
def test_page_query_rejects_bad_values(override):
    with pytest.raises(ValidationError):
        PageQueryDTO(**override)


def test_buyers_query_defaults_to_larger_pages():
    assert EventBuyersQueryDTO().page_size == 50


@pytest.mark.asyncio
async def test_paginate_clamps_page_size_and_offsets(mocker):
    result = mocker.Mock()
    result.all.return_value = ["row"]
    db = mocker.Mock()
    db.scalar = mocker.AsyncMock(return_value=7)
    db.scalars = mocker.AsyncMock(return_value=result)

    items, total = await paginate(db, select(Event), page=3, page_size=500)

    assert (items, total) == (["row"], 7)
    stmt = db.scalars.await_args.args[0]
    sql = str(stmt.compile(compile_kwargs={"literal_binds": True}))
    assert "LIMIT 200" in sql
    assert "OFFSET 400" in sql
