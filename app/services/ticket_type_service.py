from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from app.domain.events.models import Event
from app.domain.ticketing.models import TicketType
from app.domain.ticketing import crud
from app.domain.ticketing.schemas import TicketTypeCreateDTO, TicketTypeUpdateDTO, TicketTypeAvailabilityDTO
from app.core.auditing import AuditSpan
from app.domain.exceptions import NotFound, Conflict


async def get_ticket_type(db: AsyncSession, ticket_type_id: int) -> TicketType:
    ticket_type = await crud.get_ticket_type(db, ticket_type_id)
    if not ticket_type:
        raise NotFound("Ticket type not found", ctx={"ticket_type_id": ticket_type_id})
    return ticket_type


async def get_ticket_type_with_pool(db: AsyncSession, ticket_type_id: int) -> TicketType:
    ticket_type = await crud.get_ticket_type_with_tickets(db, ticket_type_id)
    if not ticket_type:
        raise NotFound("Ticket type not found", ctx={"ticket_type_id": ticket_type_id})
    return ticket_type


async def list_ticket_types(db: AsyncSession, event_id: int) -> list[TicketTypeAvailabilityDTO]:
    rows = await crud.list_ticket_types_with_counts(db, event_id)
    return [
        TicketTypeAvailabilityDTO(
            id=ticket_type.id,
            name=ticket_type.name,
            price=ticket_type.price,
            total=total,
            available=available
        )
        for ticket_type, total, available in rows
    ]


async def create_ticket_type(
        db: AsyncSession,
        event: Event,
        schema: TicketTypeCreateDTO,
        *,
        case_insensitive: bool = True
) -> TicketType:
    """Creates the ticket type together with its pool of ``quantity`` unsold tickets."""
    async with AuditSpan(
        scope="TICKET_TYPES",
        action="CREATE",
        object_type="ticket_type",
        event_id=event.id,
        meta={"name": schema.name, "quantity": schema.quantity}
    ) as span:
        if await crud.get_ticket_type_by_name(db, event.id, schema.name, case_insensitive=case_insensitive):
            raise Conflict("Ticket type already exists", ctx={"event_id": event.id, "name": schema.name})

        data = schema.model_dump(exclude_none=True)
        data["event_id"] = event.id
        ticket_type = await crud.create_ticket_type(db, data)
        try:
            await db.flush()
        except IntegrityError as e:
            raise Conflict("Ticket type already exists", ctx={"event_id": event.id, "name": schema.name}) from e

        await crud.add_pool_tickets(db, ticket_type.id, schema.quantity)
        await db.flush()

        span.object_id = ticket_type.id
        span.ticket_type_id = ticket_type.id
        return ticket_type


async def _resize_pool(db: AsyncSession, ticket_type: TicketType, quantity: int) -> None:
    pool = await crud.count_pool(db, ticket_type.id)
    if quantity > pool:
        await crud.add_pool_tickets(db, ticket_type.id, quantity - pool)
        return

    surplus = pool - quantity
    if surplus == 0:
        return

    free = await crud.count_free_pool(db, ticket_type.id)
    if free < surplus:
        raise Conflict(
            "Cannot reduce quantity below sold tickets",
            ctx={"ticket_type_id": ticket_type.id, "quantity": quantity, "sold": pool - free}
        )
    removed = await crud.remove_free_pool_tickets(db, ticket_type.id, surplus)
    if removed < surplus:
        raise Conflict(
            "Cannot reduce quantity below sold tickets",
            ctx={"ticket_type_id": ticket_type.id, "quantity": quantity, "removed": removed}
        )


async def update_ticket_type(db: AsyncSession, ticket_type_id: int, schema: TicketTypeUpdateDTO) -> TicketType:
    data = schema.model_dump(exclude_none=True)
    async with AuditSpan(
        scope="TICKET_TYPES",
        action="UPDATE",
        object_type="ticket_type",
        object_id=ticket_type_id,
        ticket_type_id=ticket_type_id,
        meta={"fields": list(data.keys())}
    ) as span:
        ticket_type = await get_ticket_type(db, ticket_type_id)
        span.event_id = ticket_type.event_id

        if "name" in data and data["name"].lower() != ticket_type.name.lower():
            if await crud.get_ticket_type_by_name(db, ticket_type.event_id, data["name"]):
                raise Conflict(
                    "Ticket type already exists",
                    ctx={"event_id": ticket_type.event_id, "name": data["name"]}
                )

        if "quantity" in data:
            await _resize_pool(db, ticket_type, data["quantity"])

        ticket_type = await crud.update_ticket_type(ticket_type, data)
        try:
            await db.flush()
        except IntegrityError as e:
            raise Conflict("Ticket type already exists", ctx={"ticket_type_id": ticket_type_id}) from e
        return ticket_type


async def delete_ticket_type(db: AsyncSession, ticket_type_id: int) -> None:
    async with AuditSpan(
        scope="TICKET_TYPES",
        action="DELETE",
        object_type="ticket_type",
        object_id=ticket_type_id,
        ticket_type_id=ticket_type_id
    ) as span:
        ticket_type = await get_ticket_type(db, ticket_type_id)
        span.event_id = ticket_type.event_id

        if await crud.has_sold_tickets(db, ticket_type_id):
            raise Conflict("Ticket type has sold tickets", ctx={"ticket_type_id": ticket_type_id})

        await crud.delete_ticket_type(db, ticket_type)
        try:
            await db.flush()
        except IntegrityError as e:
            raise Conflict("Ticket type in use", ctx={"ticket_type_id": ticket_type_id}) from e
