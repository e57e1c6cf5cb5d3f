from sqlalchemy import select, func, update, delete, insert, case
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from app.core.pagination import paginate
from app.domain.events.models import Event
from app.domain.users.models import User
from .models import TicketType, Ticket, PurchasedTicket, WaitlistedTicket, CheckIn, generate_ticket_code


def _free_pool_filter(ticket_type_id: int) -> list:
    return [
        Ticket.ticket_type_id == ticket_type_id,
        Ticket.purchased.is_(False),
        Ticket.waitlisted.is_(False),
    ]


async def get_ticket_type(db: AsyncSession, ticket_type_id: int, *, for_update: bool = False) -> TicketType | None:
    stmt = select(TicketType).where(TicketType.id == ticket_type_id)
    if for_update:
        stmt = stmt.with_for_update()
    result = await db.execute(stmt)
    return result.scalars().first()


async def get_ticket_type_with_tickets(db: AsyncSession, ticket_type_id: int) -> TicketType | None:
    stmt = select(TicketType).options(selectinload(TicketType.tickets)).where(TicketType.id == ticket_type_id)
    result = await db.execute(stmt)
    return result.scalars().first()


async def get_ticket_type_by_name(
        db: AsyncSession,
        event_id: int,
        name: str,
        *,
        case_insensitive: bool = True
) -> TicketType | None:
    name_match = func.lower(TicketType.name) == name.lower() if case_insensitive else TicketType.name == name
    stmt = select(TicketType).where(TicketType.event_id == event_id, name_match)
    result = await db.execute(stmt)
    return result.scalars().first()


async def list_ticket_types_with_counts(db: AsyncSession, event_id: int) -> list:
    stmt = (
        select(
            TicketType,
            func.count(Ticket.id).filter(Ticket.waitlisted.is_(False)).label("total"),
            func.count(Ticket.id).filter(Ticket.purchased.is_(False), Ticket.waitlisted.is_(False)).label("available"),
        )
        .outerjoin(Ticket, Ticket.ticket_type_id == TicketType.id)
        .where(TicketType.event_id == event_id)
        .group_by(TicketType.id)
        .order_by(TicketType.price, TicketType.id)
    )
    result = await db.execute(stmt)
    return result.all()


async def create_ticket_type(db: AsyncSession, data: dict) -> TicketType:
    ticket_type = TicketType(**data)
    db.add(ticket_type)
    return ticket_type


async def update_ticket_type(ticket_type: TicketType, data: dict) -> TicketType:
    for key, value in data.items():
        setattr(ticket_type, key, value)
    return ticket_type


async def delete_ticket_type(db: AsyncSession, ticket_type: TicketType) -> None:
    await db.delete(ticket_type)


async def add_pool_tickets(db: AsyncSession, ticket_type_id: int, count: int) -> None:
    if count <= 0:
        return
    rows = [{"ticket_type_id": ticket_type_id, "code": generate_ticket_code()} for _ in range(count)]
    await db.execute(insert(Ticket), rows)


async def remove_free_pool_tickets(db: AsyncSession, ticket_type_id: int, count: int) -> int:
    """Deletes up to ``count`` unsold pool tickets, newest first; returns how many were removed."""
    if count <= 0:
        return 0
    victims = (
        select(Ticket.id)
        .where(*_free_pool_filter(ticket_type_id))
        .order_by(Ticket.id.desc())
        .limit(count)
        .with_for_update(skip_locked=True)
        .scalar_subquery()
    )
    result = await db.execute(delete(Ticket).where(Ticket.id.in_(victims)).returning(Ticket.id))
    return len(result.scalars().all())


async def count_free_pool(db: AsyncSession, ticket_type_id: int) -> int:
    total = await db.scalar(select(func.count(Ticket.id)).where(*_free_pool_filter(ticket_type_id)))
    return int(total or 0)


async def count_pool(db: AsyncSession, ticket_type_id: int) -> int:
    total = await db.scalar(
        select(func.count(Ticket.id)).where(Ticket.ticket_type_id == ticket_type_id, Ticket.waitlisted.is_(False))
    )
    return int(total or 0)


async def count_waitlisted(db: AsyncSession, ticket_type_id: int) -> int:
    total = await db.scalar(
        select(func.count(Ticket.id)).where(Ticket.ticket_type_id == ticket_type_id, Ticket.waitlisted.is_(True))
    )
    return int(total or 0)


async def has_sold_tickets(db: AsyncSession, ticket_type_id: int) -> bool:
    return bool(await db.scalar(
        select(
            select(1)
            .select_from(Ticket)
            .where(Ticket.ticket_type_id == ticket_type_id, Ticket.purchased.is_(True))
            .exists()
        )
    ))


async def claim_pool_ticket(db: AsyncSession, ticket_type_id: int):
    """
    Marks one free pool ticket as purchased in a single statement and returns its (id, code) row.
    SKIP LOCKED lets concurrent buyers pick different rows instead of queueing on the same one.
    """
    candidate = (
        select(Ticket.id)
        .where(*_free_pool_filter(ticket_type_id))
        .order_by(Ticket.id)
        .limit(1)
        .with_for_update(skip_locked=True)
        .scalar_subquery()
    )
    result = await db.execute(
        update(Ticket)
        .where(Ticket.id == candidate, Ticket.purchased.is_(False))
        .values(purchased=True)
        .returning(Ticket.id, Ticket.code)
    )
    return result.first()


async def create_purchase(db: AsyncSession, data: dict) -> PurchasedTicket:
    purchase = PurchasedTicket(**data)
    db.add(purchase)
    return purchase


async def create_waitlisted_ticket(
        db: AsyncSession,
        ticket_type_id: int,
        user_id: int,
        promo_code_id: int | None
) -> WaitlistedTicket:
    ticket = Ticket(ticket_type_id=ticket_type_id, code=generate_ticket_code(), waitlisted=True)
    entry = WaitlistedTicket(ticket=ticket, user_id=user_id, promo_code_id=promo_code_id)
    db.add(ticket)
    db.add(entry)
    return entry


async def get_ticket(db: AsyncSession, ticket_id: int) -> Ticket | None:
    stmt = select(Ticket).where(Ticket.id == ticket_id)
    result = await db.execute(stmt)
    return result.scalars().first()


async def get_ticket_by_code(db: AsyncSession, code: str) -> Ticket | None:
    stmt = select(Ticket).where(Ticket.code == code)
    result = await db.execute(stmt)
    return result.scalars().first()


async def mark_checked_in(db: AsyncSession, ticket_id: int) -> int | None:
    return await db.scalar(
        update(Ticket)
        .where(Ticket.id == ticket_id, Ticket.purchased.is_(True), Ticket.checked_in.is_(False))
        .values(checked_in=True)
        .returning(Ticket.id)
    )


async def create_check_in(db: AsyncSession, ticket_id: int, staff_user_id: int | None) -> CheckIn:
    check_in = CheckIn(ticket_id=ticket_id, staff_user_id=staff_user_id)
    db.add(check_in)
    return check_in


async def ticket_type_stats(db: AsyncSession, event_id: int) -> list:
    sold = Ticket.purchased.is_(True)
    stmt = (
        select(
            TicketType.id.label("ticket_type_id"),
            TicketType.name,
            TicketType.quantity,
            func.count(Ticket.id).filter(Ticket.waitlisted.is_(False)).label("pool"),
            func.count(Ticket.id).filter(sold).label("sold"),
            func.count(Ticket.id).filter(sold, Ticket.checked_in.is_(True)).label("checked_in"),
            func.count(Ticket.id).filter(Ticket.waitlisted.is_(True)).label("waitlisted"),
            func.coalesce(
                func.sum(case((sold, func.coalesce(PurchasedTicket.final_price, TicketType.price)))), 0
            ).label("revenue"),
        )
        .select_from(TicketType)
        .outerjoin(Ticket, Ticket.ticket_type_id == TicketType.id)
        .outerjoin(PurchasedTicket, PurchasedTicket.ticket_id == Ticket.id)
        .where(TicketType.event_id == event_id)
        .group_by(TicketType.id)
        .order_by(TicketType.id)
    )
    result = await db.execute(stmt)
    return result.all()


async def list_user_purchases(db: AsyncSession, user_id: int) -> list:
    stmt = (
        select(PurchasedTicket, Ticket, TicketType, Event)
        .join(Ticket, Ticket.id == PurchasedTicket.ticket_id)
        .join(TicketType, TicketType.id == Ticket.ticket_type_id)
        .join(Event, Event.id == TicketType.event_id)
        .where(PurchasedTicket.user_id == user_id)
        .order_by(PurchasedTicket.created_at.desc(), PurchasedTicket.id.desc())
    )
    result = await db.execute(stmt)
    return result.all()


async def list_user_waitlist(db: AsyncSession, user_id: int) -> list:
    """Rows of (entry, ticket, ticket type, event, rank); rank is 0 once the ticket was purchased."""
    ranks = (
        select(
            Ticket.id.label("ticket_id"),
            func.row_number().over(partition_by=Ticket.ticket_type_id, order_by=Ticket.id).label("rank")
        )
        .where(Ticket.waitlisted.is_(True), Ticket.purchased.is_(False))
        .subquery()
    )
    stmt = (
        select(WaitlistedTicket, Ticket, TicketType, Event, func.coalesce(ranks.c.rank, 0).label("rank"))
        .join(Ticket, Ticket.id == WaitlistedTicket.ticket_id)
        .join(TicketType, TicketType.id == Ticket.ticket_type_id)
        .join(Event, Event.id == TicketType.event_id)
        .outerjoin(ranks, ranks.c.ticket_id == Ticket.id)
        .where(WaitlistedTicket.user_id == user_id)
        .order_by(WaitlistedTicket.created_at.desc(), WaitlistedTicket.id.desc())
    )
    result = await db.execute(stmt)
    return result.all()


async def list_event_buyers(
        db: AsyncSession,
        event_id: int,
        page: int,
        page_size: int,
        *,
        ticket_type_id: int | None = None,
        checked_in: bool | None = None,
        code: str | None = None
) -> tuple[list, int]:
    stmt = (
        select(PurchasedTicket, Ticket, TicketType, User)
        .join(Ticket, Ticket.id == PurchasedTicket.ticket_id)
        .join(TicketType, TicketType.id == Ticket.ticket_type_id)
        .join(User, User.id == PurchasedTicket.user_id)
    )
    where = [TicketType.event_id == event_id]

    if ticket_type_id is not None:
        where.append(TicketType.id == ticket_type_id)
    if checked_in is not None:
        where.append(Ticket.checked_in.is_(checked_in))
    if code:
        where.append(Ticket.code.ilike(f"%{code}%"))

    return await paginate(
        db,
        base_stmt=stmt,
        page=page,
        page_size=page_size,
        where=where,
        order_by=[PurchasedTicket.created_at.desc(), PurchasedTicket.id.desc()],
        scalars=False,
        count_by=PurchasedTicket.id
    )
