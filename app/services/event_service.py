from datetime import datetime, timezone
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from app.domain.events.models import Event, EventStatus
from app.domain.events.schemas import EventCreateDTO, EventUpdateDTO, AttendeeEventDTO, EventTotalsDTO, \
    EventScope, PublicEventsQueryDTO, OrganizerEventsQueryDTO, StaffEventsQueryDTO
from app.domain.users.models import User
from app.core.pagination import PageDTO
from app.core.auditing import AuditSpan
from app.domain.events import crud
from app.domain.exceptions import NotFound, InvalidInput, Conflict

HIDDEN_FROM_ATTENDEES = {EventStatus.CANCELLED}


def _validate_dates_on_update(data: dict, event: Event) -> None:
    start = data.get("start_date", event.start_date)
    end = data.get("end_date", event.end_date)
    if end <= start:
        raise InvalidInput(
            "endDate must be after startDate",
            ctx={"start_date": start, "end_date": end}
        )


def _totals_item(row, *, with_organizer: bool = False) -> EventTotalsDTO:
    event, total_tickets, sold_tickets, checked_in, _, _ = row
    return EventTotalsDTO(
        id=event.id,
        name=event.name,
        start_date=event.start_date,
        end_date=event.end_date,
        location=event.location,
        cover_image=event.cover_image,
        status=event.status,
        organizer_name=event.organizer.name if with_organizer and event.organizer else None,
        total_tickets=total_tickets,
        sold_tickets=sold_tickets,
        checked_in=checked_in
    )


async def get_event(db: AsyncSession, event_id: int) -> Event:
    event = await crud.get_event_by_id(db, event_id)
    if not event:
        raise NotFound("Event not found", ctx={"event_id": event_id})
    return event


async def list_attendee_events(
        db: AsyncSession,
        user: User,
        query: PublicEventsQueryDTO
) -> PageDTO[AttendeeEventDTO]:
    rows, total = await crud.list_events_with_totals(
        db,
        page=query.page,
        page_size=query.page_size,
        exclude_statuses=HIDDEN_FROM_ATTENDEES,
        name=query.name
    )
    registered = await crud.registered_event_ids(db, user.id, (row[0].id for row in rows))

    items = [
        AttendeeEventDTO(
            id=event.id,
            name=event.name,
            start_date=event.start_date,
            end_date=event.end_date,
            location=event.location or "",
            cover_image=event.cover_image,
            status=event.status,
            is_registered=event.id in registered,
            has_available_tickets=available > 0,
            min_ticket_price=min_price
        )
        for event, _, _, _, available, min_price in rows
    ]

    return PageDTO.of(items, total, query)


async def list_organizer_events(
        db: AsyncSession,
        user: User,
        query: OrganizerEventsQueryDTO
) -> PageDTO[EventTotalsDTO]:
    now = datetime.now(timezone.utc)
    rows, total = await crud.list_events_with_totals(
        db,
        page=query.page,
        page_size=query.page_size,
        organizer_id=user.id,
        ending_after=now if query.scope == EventScope.UPCOMING else None,
        ended_before=now if query.scope == EventScope.ENDED else None,
        name=query.name
    )
    items = [_totals_item(row) for row in rows]
    return PageDTO.of(items, total, query)


async def list_staff_events(db: AsyncSession, query: StaffEventsQueryDTO) -> PageDTO[EventTotalsDTO]:
    rows, total = await crud.list_events_with_totals(
        db,
        page=query.page,
        page_size=query.page_size,
        statuses=[query.status] if query.status is not None else None
    )
    items = [_totals_item(row, with_organizer=True) for row in rows]
    return PageDTO.of(items, total, query)


async def create_event(db: AsyncSession, organizer_id: int, schema: EventCreateDTO) -> Event:
    async with AuditSpan(
        scope="EVENTS",
        action="CREATE",
        object_type="event",
        meta={"name": schema.name}
    ) as span:
        data = schema.model_dump(exclude_none=True)
        data["organizer_id"] = organizer_id

        event = await crud.create_event(db, data)
        try:
            await db.flush()
            await db.refresh(event)
        except IntegrityError as e:
            raise Conflict("Event conflict", ctx={"organizer_id": organizer_id}) from e

        span.object_id = event.id
        span.event_id = event.id
        return event


async def update_event(db: AsyncSession, schema: EventUpdateDTO, event: Event) -> Event:
    data = schema.model_dump(exclude_none=True)
    async with AuditSpan(
        scope="EVENTS",
        action="UPDATE",
        object_type="event",
        object_id=event.id,
        event_id=event.id,
        meta={"fields": list(data.keys())}
    ):
        _validate_dates_on_update(data, event)

        event = await crud.update_event(event, data)
        try:
            await db.flush()
            await db.refresh(event)
        except IntegrityError as e:
            raise Conflict("Event conflict", ctx={"event_id": event.id}) from e
        return event


async def delete_event(db: AsyncSession, event: Event) -> None:
    async with AuditSpan(
        scope="EVENTS",
        action="DELETE",
        object_type="event",
        object_id=event.id,
        event_id=event.id
    ):
        await crud.delete_event(db, event)
        await db.flush()
