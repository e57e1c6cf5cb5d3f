import csv
import io
from decimal import Decimal
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.pagination import PageDTO
from app.domain.events.models import Event
from app.domain.reports.schemas import EventSummaryDTO, TicketTypeStatsDTO
from app.domain.ticketing import crud
from app.domain.ticketing.schemas import EventBuyerDTO, EventBuyersQueryDTO

CHECKIN_CSV_HEADER = ["TicketType Name", "Total", "Sold", "Checked-In"]


async def event_summary(db: AsyncSession, event: Event) -> EventSummaryDTO:
    rows = await crud.ticket_type_stats(db, event.id)
    stats = [
        TicketTypeStatsDTO(
            ticket_type_id=row.ticket_type_id,
            name=row.name,
            total=row.pool,
            sold=row.sold,
            checked_in=row.checked_in,
            waitlisted=row.waitlisted,
            revenue=Decimal(row.revenue)
        )
        for row in rows
    ]
    return EventSummaryDTO(
        event_id=event.id,
        total_tickets=sum(s.total for s in stats),
        sold_tickets=sum(s.sold for s in stats),
        checked_in=sum(s.checked_in for s in stats),
        waitlisted=sum(s.waitlisted for s in stats),
        total_revenue=sum((s.revenue for s in stats), Decimal("0")),
        ticket_type_stats=stats
    )


def render_checkin_csv(summary: EventSummaryDTO) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(CHECKIN_CSV_HEADER)
    for s in summary.ticket_type_stats:
        writer.writerow([s.name, s.total, s.sold, s.checked_in])
    return buffer.getvalue()


async def checkin_summary_csv(db: AsyncSession, event: Event) -> tuple[str, str]:
    """Returns (filename, csv body) for the per-ticket-type attendance report."""
    summary = await event_summary(db, event)
    return f"event_{event.id}_checkin_summary.csv", render_checkin_csv(summary)


async def list_event_buyers(db: AsyncSession, event: Event, query: EventBuyersQueryDTO) -> PageDTO[EventBuyerDTO]:
    rows, total = await crud.list_event_buyers(
        db,
        event.id,
        page=query.page,
        page_size=query.page_size,
        ticket_type_id=query.ticket_type_id,
        checked_in=query.checked_in,
        code=query.code
    )
    items = [
        EventBuyerDTO(
            purchase_id=purchase.id,
            purchased_at=purchase.created_at,
            ticket_id=ticket.id,
            code=ticket.code,
            ticket_type_id=ticket_type.id,
            ticket_type_name=ticket_type.name,
            final_price=purchase.final_price,
            checked_in=ticket.checked_in,
            user_id=user.id,
            user_name=user.name,
            user_email=user.email
        )
        for purchase, ticket, ticket_type, user in rows
    ]
    return PageDTO.of(items, total, query)
