from datetime import datetime
from typing import Iterable
from sqlalchemy import select, func, case
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.pagination import paginate
from app.domain.ticketing.models import TicketType, Ticket, PurchasedTicket
from .models import Event, EventStatus


async def get_event_by_id(db: AsyncSession, event_id: int) -> Event | None:
    stmt = select(Event).where(Event.id == event_id)
    result = await db.execute(stmt)
    return result.scalars().first()


def ticket_totals_subquery():
    """Per event: all tickets, purchased tickets, purchased and checked-in tickets."""
    return (
        select(
            TicketType.event_id.label("event_id"),
            func.count(Ticket.id).label("total_tickets"),
            func.count(case((Ticket.purchased.is_(True), Ticket.id))).label("sold_tickets"),
            func.count(
                case((Ticket.purchased.is_(True) & Ticket.checked_in.is_(True), Ticket.id))
            ).label("checked_in"),
            func.count(
                case((Ticket.purchased.is_(False) & Ticket.waitlisted.is_(False), Ticket.id))
            ).label("available"),
            func.min(TicketType.price).label("min_price"),
        )
        .select_from(TicketType)
        .outerjoin(Ticket, Ticket.ticket_type_id == TicketType.id)
        .group_by(TicketType.event_id)
        .subquery()
    )


async def list_events_with_totals(
        db: AsyncSession,
        page: int,
        page_size: int,
        *,
        organizer_id: int | None = None,
        statuses: Iterable[EventStatus] | None = None,
        exclude_statuses: Iterable[EventStatus] | None = None,
        ended_before: datetime | None = None,
        ending_after: datetime | None = None,
        name: str | None = None,
        order_by: list | None = None
) -> tuple[list, int]:
    totals = ticket_totals_subquery()
    stmt = (
        select(
            Event,
            func.coalesce(totals.c.total_tickets, 0).label("total_tickets"),
            func.coalesce(totals.c.sold_tickets, 0).label("sold_tickets"),
            func.coalesce(totals.c.checked_in, 0).label("checked_in"),
            func.coalesce(totals.c.available, 0).label("available"),
            func.coalesce(totals.c.min_price, 0).label("min_price"),
        )
        .outerjoin(totals, totals.c.event_id == Event.id)
    )
    where = []

    if organizer_id is not None:
        where.append(Event.organizer_id == organizer_id)
    if statuses is not None:
        where.append(Event.status.in_(statuses))
    if exclude_statuses is not None:
        where.append(Event.status.not_in(exclude_statuses))
    if ended_before is not None:
        where.append(Event.end_date < ended_before)
    if ending_after is not None:
        where.append(Event.end_date >= ending_after)
    if name:
        where.append(Event.name.ilike(f"%{name}%"))

    rows, total = await paginate(
        db,
        base_stmt=stmt,
        page=page,
        page_size=page_size,
        where=where,
        order_by=order_by or [Event.start_date.asc(), Event.id],
        scalars=False,
        count_by=Event.id
    )
    return rows, total


async def create_event(db: AsyncSession, data: dict) -> Event:
    event = Event(**data)
    db.add(event)
    return event


async def update_event(event: Event, data: dict) -> Event:
    for k, v in data.items():
        setattr(event, k, v)
    return event


async def delete_event(db: AsyncSession, event: Event) -> None:
    await db.delete(event)


async def registered_event_ids(db: AsyncSession, user_id: int, event_ids: Iterable[int]) -> set[int]:
    """Subset of ``event_ids`` in which the user holds at least one purchased ticket."""
    event_ids = list(event_ids)
    if not event_ids:
        return set()
    stmt = (
        select(TicketType.event_id)
        .join(Ticket, Ticket.ticket_type_id == TicketType.id)
        .join(PurchasedTicket, PurchasedTicket.ticket_id == Ticket.id)
        .where(PurchasedTicket.user_id == user_id, TicketType.event_id.in_(event_ids))
        .distinct()
    )
    result = await db.execute(stmt)
    return set(result.scalars().all())
