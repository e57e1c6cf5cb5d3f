from decimal import Decimal
from app.core.utils.serialization import CamelModel


class TicketTypeStatsDTO(CamelModel):
    ticket_type_id: int
    name: str
    total: int
    sold: int
    checked_in: int
    waitlisted: int
    revenue: Decimal


class EventSummaryDTO(CamelModel):
    event_id: int
    total_tickets: int
    sold_tickets: int
    checked_in: int
    waitlisted: int
    total_revenue: Decimal
    ticket_type_stats: list[TicketTypeStatsDTO]
