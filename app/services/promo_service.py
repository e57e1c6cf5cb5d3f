from datetime import datetime, timezone
from decimal import Decimal, ROUND_HALF_UP
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.auditing import AuditSpan
from app.domain.events.models import Event
from app.domain.promos import crud
from app.domain.promos.models import PromoCode, DiscountType
from app.domain.promos.schemas import PromoCreateDTO, PromoUpdateDTO
from app.domain.ticketing import crud as ticketing_crud
from app.domain.ticketing.models import TicketType
from app.domain.exceptions import NotFound, Conflict, InvalidInput, InvalidPromo, PromoRejection

CENT = Decimal("0.01")


def _in_scope(promo: PromoCode, ticket_type: TicketType) -> bool:
    if promo.ticket_type_id is not None:
        return promo.ticket_type_id == ticket_type.id
    return promo.event_id == ticket_type.event_id


def check_promo(promo: PromoCode | None, ticket_type: TicketType, now: datetime) -> PromoRejection | None:
    """Returns why ``promo`` cannot be applied to ``ticket_type`` at ``now``, or None when it can."""
    if promo is None:
        return PromoRejection.NOT_FOUND
    if not _in_scope(promo, ticket_type):
        return PromoRejection.WRONG_SCOPE
    if not (promo.start_date <= now <= promo.end_date):
        return PromoRejection.OUT_OF_WINDOW
    if promo.max_usage - promo.usage_count <= 0:
        return PromoRejection.EXHAUSTED
    return None


def apply_discount(price: Decimal, promo: PromoCode | None) -> Decimal:
    if promo is None:
        return price.quantize(CENT, rounding=ROUND_HALF_UP)
    if promo.discount_type == DiscountType.PERCENTAGE:
        discounted = price * (Decimal("100") - promo.amount) / Decimal("100")
    else:
        discounted = price - promo.amount
    return max(discounted, Decimal("0")).quantize(CENT, rounding=ROUND_HALF_UP)


async def validate_promo(
        db: AsyncSession,
        code: str,
        ticket_type: TicketType,
        now: datetime | None = None
) -> PromoCode:
    now = now or datetime.now(timezone.utc)
    candidates = await crud.find_promos_by_code(db, code)
    if not candidates:
        raise InvalidPromo(PromoRejection.NOT_FOUND, code=code, ticket_type_id=ticket_type.id)

    in_scope = [p for p in candidates if _in_scope(p, ticket_type)]
    if not in_scope:
        raise InvalidPromo(PromoRejection.WRONG_SCOPE, code=code, ticket_type_id=ticket_type.id)

    # a code bound to the ticket type wins over an event-wide one
    promo = min(in_scope, key=lambda p: (p.ticket_type_id is None, p.id))
    rejection = check_promo(promo, ticket_type, now)
    if rejection is not None:
        raise InvalidPromo(rejection, code=code, ticket_type_id=ticket_type.id)
    return promo


async def redeem_promo(
        db: AsyncSession,
        code: str,
        ticket_type: TicketType,
        now: datetime | None = None
) -> PromoCode:
    """
    Validates ``code`` and consumes one use in the caller's transaction.
    The increment is conditional (usage_count < max_usage), so concurrent redemptions
    can never push usage past the budget; losing the race surfaces as EXHAUSTED.
    """
    promo = await validate_promo(db, code, ticket_type, now)
    usage_count = await crud.increment_usage(db, promo.id)
    if usage_count is None:
        raise InvalidPromo(PromoRejection.EXHAUSTED, code=code, ticket_type_id=ticket_type.id)
    return promo


async def _require_ticket_type_in_event(db: AsyncSession, ticket_type_id: int, event_id: int) -> None:
    ticket_type = await ticketing_crud.get_ticket_type(db, ticket_type_id)
    if not ticket_type or ticket_type.event_id != event_id:
        raise InvalidInput(
            "Ticket type does not belong to event",
            ctx={"ticket_type_id": ticket_type_id, "event_id": event_id}
        )


async def get_promo(db: AsyncSession, event_id: int, promo_id: int) -> PromoCode:
    promo = await crud.get_promo(db, event_id, promo_id)
    if not promo:
        raise NotFound("Promo code not found", ctx={"event_id": event_id, "promo_id": promo_id})
    return promo


async def list_promos(db: AsyncSession, event_id: int) -> list[PromoCode]:
    return await crud.list_event_promos(db, event_id)


async def create_promo(db: AsyncSession, event: Event, schema: PromoCreateDTO) -> PromoCode:
    async with AuditSpan(
        scope="PROMOS",
        action="CREATE",
        object_type="promo_code",
        event_id=event.id,
        ticket_type_id=schema.ticket_type_id,
        meta={"code": schema.code, "type": schema.discount_type.value}
    ) as span:
        if schema.ticket_type_id is not None:
            await _require_ticket_type_in_event(db, schema.ticket_type_id, event.id)

        data = schema.model_dump(exclude_none=True)
        data["event_id"] = event.id
        promo = await crud.create_promo(db, data)
        try:
            await db.flush()
        except IntegrityError as e:
            raise Conflict("Promo code already exists", ctx={"event_id": event.id, "code": schema.code}) from e
        span.object_id = promo.id
        span.promo_code_id = promo.id
        return promo


async def update_promo(db: AsyncSession, event: Event, promo_id: int, schema: PromoUpdateDTO) -> PromoCode:
    data = schema.model_dump(exclude_none=True)
    async with AuditSpan(
        scope="PROMOS",
        action="UPDATE",
        object_type="promo_code",
        object_id=promo_id,
        event_id=event.id,
        promo_code_id=promo_id,
        meta={"fields": list(data.keys())}
    ):
        promo = await get_promo(db, event.id, promo_id)

        if "ticket_type_id" in data:
            await _require_ticket_type_in_event(db, data["ticket_type_id"], event.id)

        start = data.get("start_date", promo.start_date)
        end = data.get("end_date", promo.end_date)
        if end < start:
            raise InvalidInput(
                "endDate must be after startDate",
                ctx={"start_date": start, "end_date": end}
            )

        discount_type = data.get("discount_type", promo.discount_type)
        amount = data.get("amount", promo.amount)
        if discount_type == DiscountType.PERCENTAGE and amount > 100:
            raise InvalidInput("Percentage discount cannot exceed 100", ctx={"amount": amount})

        max_usage = data.get("max_usage", promo.max_usage)
        if max_usage < promo.usage_count:
            raise InvalidInput(
                "maxUsage cannot be lower than current usage",
                ctx={"max_usage": max_usage, "usage_count": promo.usage_count}
            )

        promo = await crud.update_promo(promo, data)
        try:
            await db.flush()
            await db.refresh(promo)
        except IntegrityError as e:
            raise Conflict("Promo code already exists", ctx={"event_id": event.id, "promo_id": promo_id}) from e
        return promo


async def delete_promo(db: AsyncSession, event: Event, promo_id: int) -> None:
    async with AuditSpan(
        scope="PROMOS",
        action="DELETE",
        object_type="promo_code",
        object_id=promo_id,
        event_id=event.id,
        promo_code_id=promo_id
    ):
        promo = await get_promo(db, event.id, promo_id)
        await crud.delete_promo(db, promo)
        await db.flush()
