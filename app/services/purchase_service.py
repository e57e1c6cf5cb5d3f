import logging
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.auditing import AuditSpan
from app.core.notifier import EventPublisher, notify, TICKET_PURCHASED
from app.domain.exceptions import InvalidInput, NoTicketAvailable
from app.domain.promos.schemas import AppliedPromoDTO
from app.domain.ticketing import crud
from app.domain.ticketing.schemas import PurchaseResultDTO, PurchasedTicketItemDTO, PurchasedTicketsDTO
from app.domain.users.models import User
from app.services.email_service import EmailService
from app.services.promo_service import redeem_promo, apply_discount

logger = logging.getLogger(__name__)


async def purchase_ticket(
        db: AsyncSession,
        publisher: EventPublisher | None,
        user: User,
        ticket_type_id: int | None,
        promo_code: str | None = None
) -> PurchaseResultDTO:
    """
    Claims one free pool ticket of ``ticket_type_id`` for ``user``.

    The claim is a single conditional UPDATE, so two buyers racing for the last ticket
    cannot both win. Promo redemption and the purchase row share one transaction, committed
    here before any notification or mail goes out; if no ticket is left the promo use is
    rolled back with everything else.
    """
    if ticket_type_id is None:
        raise InvalidInput("Missing ticketTypeId", ctx={"field": "ticketTypeId"})

    async with AuditSpan(
        scope="PURCHASES",
        action="CREATE",
        object_type="purchased_ticket",
        ticket_type_id=ticket_type_id,
        meta={"promo_code": promo_code}
    ) as span:
        ticket_type = await crud.get_ticket_type(db, ticket_type_id)
        if not ticket_type:
            raise InvalidInput("Invalid ticket type", ctx={"ticket_type_id": ticket_type_id})
        event = ticket_type.event
        span.event_id = ticket_type.event_id

        promo = None
        if promo_code:
            promo = await redeem_promo(db, promo_code, ticket_type)
            span.promo_code_id = promo.id

        claimed = await crud.claim_pool_ticket(db, ticket_type.id)
        if claimed is None:
            raise NoTicketAvailable(ticket_type.id)
        ticket_id, ticket_code = claimed

        final_price = apply_discount(ticket_type.price, promo)
        purchase = await crud.create_purchase(db, {
            "ticket_id": ticket_id,
            "user_id": user.id,
            "promo_code_id": promo.id if promo else None,
            "final_price": final_price
        })
        await db.flush()

        remaining = await crud.count_free_pool(db, ticket_type.id)

        span.object_id = purchase.id
        span.ticket_id = ticket_id
        span.meta["final_price"] = str(final_price)
        logger.info(
            "Ticket %s of type %s purchased by user %s (remaining=%d)",
            ticket_id, ticket_type.id, user.id, remaining
        )
        # listeners and the confirmation mail must only ever see committed state
        await db.commit()

    await notify(publisher, TICKET_PURCHASED, {"ticketTypeId": ticket_type.id, "ticketId": ticket_id})

    await EmailService.send_purchase_confirmation(
        to_email=user.email,
        user_name=user.name,
        event_name=event.name,
        event_start=event.start_date,
        event_end=event.end_date,
        ticket_type_name=ticket_type.name,
        ticket_code=ticket_code,
        final_price=final_price
    )

    return PurchaseResultDTO(
        remaining=remaining,
        promo=AppliedPromoDTO.model_validate(promo) if promo else None,
        purchase_id=purchase.id,
        ticket_id=ticket_id,
        code=ticket_code,
        final_price=final_price
    )


async def list_user_purchases(db: AsyncSession, user: User) -> PurchasedTicketsDTO:
    rows = await crud.list_user_purchases(db, user.id)
    items = [
        PurchasedTicketItemDTO(
            purchase_id=purchase.id,
            purchased_at=purchase.created_at,
            event_id=event.id,
            event_name=event.name,
            event_start=event.start_date,
            event_end=event.end_date,
            ticket_type_id=ticket_type.id,
            ticket_type_name=ticket_type.name,
            price=ticket_type.price,
            final_price=purchase.final_price,
            checked_in=ticket.checked_in,
            ticket_id=ticket.id,
            code=ticket.code
        )
        for purchase, ticket, ticket_type, event in rows
    ]
    return PurchasedTicketsDTO(data=items)
