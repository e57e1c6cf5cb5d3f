from fastapi import APIRouter, status, Depends, Response
from typing import Annotated
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.database import get_db
from app.core.dependencies.events import require_event_owner
from app.core.dependencies.auth import ANY_USER, ATTENDEE, ORGANIZER, STAFF
from app.core.pagination import PageDTO
from app.domain.events.schemas import EventCreateDTO, EventReadDTO, EventUpdateDTO, AttendeeEventDTO, \
    EventTotalsDTO, PublicEventsQueryDTO, OrganizerEventsQueryDTO, StaffEventsQueryDTO
from app.domain.users.models import User
from app.domain.events.models import Event
from app.services import event_service


router = APIRouter(tags=["events"])
db_dependency = Annotated[AsyncSession, Depends(get_db)]


@router.get(
    "/events",
    status_code=status.HTTP_200_OK,
    response_model=PageDTO[AttendeeEventDTO]
)
async def list_events(
        db: db_dependency,
        user: Annotated[User, Depends(ATTENDEE)],
        query: Annotated[PublicEventsQueryDTO, Depends()]
):
    return await event_service.list_attendee_events(db, user, query)


@router.get(
    "/events/{event_id}",
    status_code=status.HTTP_200_OK,
    response_model=EventReadDTO,
    dependencies=[Depends(ANY_USER)]
)
async def get_event(event_id: int, db: db_dependency):
    return await event_service.get_event(db, event_id)


@router.get(
    "/organizers/me/events",
    status_code=status.HTTP_200_OK,
    response_model=PageDTO[EventTotalsDTO],
    response_model_exclude_none=True
)
async def list_organizer_events(
        db: db_dependency,
        user: Annotated[User, Depends(ORGANIZER)],
        query: Annotated[OrganizerEventsQueryDTO, Depends()]
):
    return await event_service.list_organizer_events(db, user, query)


@router.get(
    "/staff/events",
    status_code=status.HTTP_200_OK,
    response_model=PageDTO[EventTotalsDTO],
    dependencies=[Depends(STAFF)]
)
async def list_staff_events(db: db_dependency, query: Annotated[StaffEventsQueryDTO, Depends()]):
    return await event_service.list_staff_events(db, query)


@router.post(
    "/events",
    status_code=status.HTTP_201_CREATED,
    response_model=EventReadDTO
)
async def create_event(
        schema: EventCreateDTO,
        db: db_dependency,
        user: Annotated[User, Depends(ORGANIZER)],
        response: Response
):
    event = await event_service.create_event(db, user.id, schema)
    response.headers["Location"] = f"/events/{event.id}"
    return event


@router.patch(
    "/events/{event_id}",
    status_code=status.HTTP_200_OK,
    response_model=EventReadDTO
)
async def patch_event(
        event: Annotated[Event, Depends(require_event_owner)],
        schema: EventUpdateDTO,
        db: db_dependency
):
    return await event_service.update_event(db, schema, event)


@router.delete(
    "/events/{event_id}",
    status_code=status.HTTP_204_NO_CONTENT
)
async def delete_event(event: Annotated[Event, Depends(require_event_owner)], db: db_dependency):
    await event_service.delete_event(db, event)
