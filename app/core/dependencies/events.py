from fastapi import Depends
from typing import Annotated
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.database import get_db
from app.core.dependencies.auth import ORGANIZER, STAFF_OR_ORGANIZER
from app.domain.users.models import User, RoleName
from app.domain.events.models import Event
from app.domain.events import crud as events_crud
from app.domain.ticketing import crud as ticketing_crud
from app.domain.ticketing.models import TicketType
from app.domain.exceptions import NotFound, Forbidden


def _ensure_event_access(event: Event, user: User, *, allow_staff: bool) -> Event:
    if allow_staff and user.role == RoleName.STAFF.value:
        return event
    if event.organizer_id != user.id:
        raise Forbidden("Not allowed", ctx={"event_id": event.id, "reason": "organizer_mismatch"})
    return event


async def _load_event(event_id: int, db: AsyncSession) -> Event:
    event = await events_crud.get_event_by_id(db, event_id)
    if not event:
        raise NotFound("Event not found", ctx={"event_id": event_id})
    return event


async def _load_ticket_type(ticket_type_id: int, db: AsyncSession) -> TicketType:
    ticket_type = await ticketing_crud.get_ticket_type(db, ticket_type_id)
    if not ticket_type:
        raise NotFound("Ticket type not found", ctx={"ticket_type_id": ticket_type_id})
    return ticket_type


async def require_event_owner(
        event_id: int,
        db: Annotated[AsyncSession, Depends(get_db)],
        user: Annotated[User, Depends(ORGANIZER)]
) -> Event:
    event = await _load_event(event_id, db)
    return _ensure_event_access(event, user, allow_staff=False)


async def require_event_viewer(
        event_id: int,
        db: Annotated[AsyncSession, Depends(get_db)],
        user: Annotated[User, Depends(STAFF_OR_ORGANIZER)]
) -> Event:
    event = await _load_event(event_id, db)
    return _ensure_event_access(event, user, allow_staff=True)


async def require_ticket_type_owner(
        ticket_type_id: int,
        db: Annotated[AsyncSession, Depends(get_db)],
        user: Annotated[User, Depends(ORGANIZER)]
) -> TicketType:
    ticket_type = await _load_ticket_type(ticket_type_id, db)
    _ensure_event_access(ticket_type.event, user, allow_staff=False)
    return ticket_type


async def require_ticket_type_viewer(
        ticket_type_id: int,
        db: Annotated[AsyncSession, Depends(get_db)],
        user: Annotated[User, Depends(STAFF_OR_ORGANIZER)]
) -> TicketType:
    ticket_type = await _load_ticket_type(ticket_type_id, db)
    _ensure_event_access(ticket_type.event, user, allow_staff=True)
    return ticket_type
