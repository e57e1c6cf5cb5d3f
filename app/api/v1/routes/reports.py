from fastapi import APIRouter, Depends, status
from fastapi.responses import Response
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Annotated
from app.core.database import get_db
from app.core.dependencies.events import require_event_viewer
from app.core.pagination import PageDTO
from app.domain.events.models import Event
from app.domain.reports.schemas import EventSummaryDTO
from app.domain.ticketing.schemas import EventBuyerDTO, EventBuyersQueryDTO
from app.services import report_service


router = APIRouter(prefix="/events/{event_id}", tags=["reports"])
db_dependency = Annotated[AsyncSession, Depends(get_db)]
event_viewer_dependency = Annotated[Event, Depends(require_event_viewer)]


@router.get(
    "/summary",
    status_code=status.HTTP_200_OK,
    response_model=EventSummaryDTO
)
async def get_event_summary(event: event_viewer_dependency, db: db_dependency):
    return await report_service.event_summary(db, event)


@router.get(
    "/checkin-summary",
    status_code=status.HTTP_200_OK,
    response_class=Response
)
async def download_checkin_summary(event: event_viewer_dependency, db: db_dependency):
    filename, body = await report_service.checkin_summary_csv(db, event)
    return Response(
        content=body,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'}
    )


@router.get(
    "/purchased-tickets",
    status_code=status.HTTP_200_OK,
    response_model=PageDTO[EventBuyerDTO]
)
async def list_purchased_tickets(
        event: event_viewer_dependency,
        db: db_dependency,
        query: Annotated[EventBuyersQueryDTO, Depends()]
):
    return await report_service.list_event_buyers(db, event, query)
