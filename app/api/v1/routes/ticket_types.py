from fastapi import APIRouter, Depends, status, Response
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.database import get_db
from typing import Annotated
from app.core.dependencies.auth import ANY_USER
from app.core.dependencies.events import require_event_owner, require_ticket_type_owner, require_ticket_type_viewer
from app.domain.events.models import Event
from app.domain.ticketing.models import TicketType
from app.domain.ticketing.schemas import TicketTypeReadDTO, TicketTypeCreateDTO, TicketTypeUpdateDTO, \
    TicketTypeDetailDTO, TicketTypeAvailabilityDTO
from app.services import ticket_type_service


router = APIRouter(tags=["ticket-types"])
db_dependency = Annotated[AsyncSession, Depends(get_db)]


@router.get(
    "/events/{event_id}/ticket-types",
    status_code=status.HTTP_200_OK,
    response_model=list[TicketTypeAvailabilityDTO],
    dependencies=[Depends(ANY_USER)]
)
async def list_event_ticket_types(event_id: int, db: db_dependency):
    return await ticket_type_service.list_ticket_types(db, event_id)


@router.post(
    "/events/{event_id}/ticket-types",
    status_code=status.HTTP_201_CREATED,
    response_model=TicketTypeReadDTO
)
async def create_ticket_type(
        event: Annotated[Event, Depends(require_event_owner)],
        schema: TicketTypeCreateDTO,
        db: db_dependency,
        response: Response
):
    ticket_type = await ticket_type_service.create_ticket_type(db, event, schema)
    response.headers["Location"] = f"/ticket-types/{ticket_type.id}"
    return ticket_type


@router.get(
    "/ticket-types/{ticket_type_id}",
    status_code=status.HTTP_200_OK,
    response_model=TicketTypeDetailDTO
)
async def get_ticket_type(
        ticket_type: Annotated[TicketType, Depends(require_ticket_type_viewer)],
        db: db_dependency
):
    return await ticket_type_service.get_ticket_type_with_pool(db, ticket_type.id)


@router.patch(
    "/ticket-types/{ticket_type_id}",
    status_code=status.HTTP_200_OK,
    response_model=TicketTypeReadDTO
)
async def patch_ticket_type(
        ticket_type: Annotated[TicketType, Depends(require_ticket_type_owner)],
        schema: TicketTypeUpdateDTO,
        db: db_dependency
):
    return await ticket_type_service.update_ticket_type(db, ticket_type.id, schema)


@router.delete(
    "/ticket-types/{ticket_type_id}",
    status_code=status.HTTP_204_NO_CONTENT
)
async def delete_ticket_type(
        ticket_type: Annotated[TicketType, Depends(require_ticket_type_owner)],
        db: db_dependency
):
    await ticket_type_service.delete_ticket_type(db, ticket_type.id)
