import logging
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.auditing import AuditSpan
from app.domain.exceptions import NotFound, InvalidInput, Forbidden
from app.domain.ticketing import crud
from app.domain.ticketing.models import Ticket
from app.domain.ticketing.schemas import CheckInResultDTO, TicketResolveDTO
from app.domain.users.models import User, RoleName

logger = logging.getLogger(__name__)


def _ensure_can_check_in(ticket: Ticket, user: User) -> None:
    if user.role == RoleName.STAFF.value:
        return
    if ticket.ticket_type.event.organizer_id != user.id:
        raise Forbidden("Not allowed", ctx={"ticket_id": ticket.id, "reason": "organizer_mismatch"})


async def _check_in(db: AsyncSession, ticket: Ticket, user: User, span: AuditSpan) -> CheckInResultDTO:
    _ensure_can_check_in(ticket, user)
    span.object_id = ticket.id
    span.ticket_id = ticket.id
    span.ticket_type_id = ticket.ticket_type_id
    span.event_id = ticket.ticket_type.event_id

    if not ticket.purchased:
        raise InvalidInput("Ticket not purchased", ctx={"ticket_id": ticket.id})
    if ticket.checked_in:
        raise InvalidInput("Ticket already checked in", ctx={"ticket_id": ticket.id})

    # the conditional update decides between two scanners racing on one ticket
    if await crud.mark_checked_in(db, ticket.id) is None:
        raise InvalidInput("Ticket already checked in", ctx={"ticket_id": ticket.id})

    check_in = await crud.create_check_in(db, ticket.id, user.id)
    try:
        await db.flush()
        await db.refresh(check_in)
    except IntegrityError as e:
        raise InvalidInput("Ticket already checked in", ctx={"ticket_id": ticket.id}) from e

    logger.info("Ticket %s checked in by user %s", ticket.id, user.id)
    return CheckInResultDTO(ticket_id=ticket.id, checked_in_at=check_in.created_at)


async def check_in_by_code(db: AsyncSession, code: str, user: User) -> CheckInResultDTO:
    async with AuditSpan(scope="CHECKIN", action="CREATE", object_type="ticket", meta={"code": code}) as span:
        ticket = await crud.get_ticket_by_code(db, code)
        if not ticket:
            raise NotFound("Ticket not found", ctx={"code": code})
        return await _check_in(db, ticket, user, span)


async def check_in_by_id(db: AsyncSession, ticket_id: int, user: User) -> CheckInResultDTO:
    async with AuditSpan(scope="CHECKIN", action="CREATE", object_type="ticket", object_id=ticket_id) as span:
        ticket = await crud.get_ticket(db, ticket_id)
        if not ticket:
            raise NotFound("Ticket not found", ctx={"ticket_id": ticket_id})
        return await _check_in(db, ticket, user, span)


async def resolve_code(db: AsyncSession, code: str, user: User) -> TicketResolveDTO:
    ticket = await crud.get_ticket_by_code(db, code)
    if not ticket:
        raise NotFound("Ticket not found", ctx={"code": code})
    _ensure_can_check_in(ticket, user)
    return TicketResolveDTO(ticket_id=ticket.id, code=ticket.code)
