import logging
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.auditing import AuditSpan
from app.core.notifier import EventPublisher, notify, TICKET_WAITLISTED
from app.domain.exceptions import InvalidInput, NotFound, InternalError
from app.domain.ticketing import crud
from app.domain.ticketing.schemas import WaitlistResultDTO, WaitlistItemDTO, WaitlistDTO
from app.domain.users.models import User
from app.services.email_service import EmailService
from app.services.promo_service import redeem_promo

logger = logging.getLogger(__name__)


async def join_waitlist(
        db: AsyncSession,
        publisher: EventPublisher | None,
        user: User,
        ticket_type_id: int | None,
        promo_code: str | None = None
) -> WaitlistResultDTO:
    """
    Adds a new waitlisted ticket of ``ticket_type_id`` for ``user`` and reports its rank.

    The ticket type row stays locked until the commit below, so concurrent joins of the
    same type get distinct consecutive ranks.
    """
    if ticket_type_id is None:
        raise InvalidInput("Missing ticketTypeId", ctx={"field": "ticketTypeId"})

    async with AuditSpan(
        scope="WAITLIST",
        action="CREATE",
        object_type="waitlisted_ticket",
        ticket_type_id=ticket_type_id,
        meta={"promo_code": promo_code}
    ) as span:
        ticket_type = await crud.get_ticket_type(db, ticket_type_id, for_update=True)
        if not ticket_type:
            raise NotFound("Ticket type not found", ctx={"ticket_type_id": ticket_type_id})
        event = ticket_type.event
        span.event_id = ticket_type.event_id

        promo = None
        if promo_code:
            promo = await redeem_promo(db, promo_code, ticket_type)
            span.promo_code_id = promo.id

        try:
            entry = await crud.create_waitlisted_ticket(
                db,
                ticket_type.id,
                user.id,
                promo.id if promo else None
            )
            await db.flush()
        except SQLAlchemyError as e:
            raise InternalError(
                "Failed to create waitlisted ticket",
                ctx={"ticket_type_id": ticket_type.id}
            ) from e

        rank = await crud.count_waitlisted(db, ticket_type.id)

        span.object_id = entry.id
        span.ticket_id = entry.ticket_id
        span.meta["rank"] = rank
        logger.info("User %s joined waitlist of ticket type %s at rank %d", user.id, ticket_type.id, rank)
        # releases the ticket type lock; listeners and the mail only see committed rows
        await db.commit()

    await notify(publisher, TICKET_WAITLISTED, {"ticketTypeId": ticket_type.id, "ticketId": entry.ticket_id})

    await EmailService.send_waitlist_confirmation(
        to_email=user.email,
        user_name=user.name,
        event_name=event.name,
        event_start=event.start_date,
        event_end=event.end_date,
        ticket_type_name=ticket_type.name,
        waitlist_rank=rank
    )

    return WaitlistResultDTO(waitlist_rank=rank, waitlist_id=entry.id)


async def list_user_waitlist(db: AsyncSession, user: User) -> WaitlistDTO:
    rows = await crud.list_user_waitlist(db, user.id)
    items = [
        WaitlistItemDTO(
            waitlist_id=entry.id,
            waitlist_at=entry.created_at,
            event_id=event.id,
            event_name=event.name,
            ticket_type_id=ticket_type.id,
            ticket_type_name=ticket_type.name,
            price=ticket_type.price,
            purchased=ticket.purchased,
            ticket_id=ticket.id,
            waitlist_rank=rank
        )
        for entry, ticket, ticket_type, event, rank in rows
    ]
    return WaitlistDTO(data=items)
