from .users.models import User, Role, UserRole
from .events.models import Event
from .ticketing.models import TicketType, Ticket, PurchasedTicket, WaitlistedTicket, CheckIn
from .promos.models import PromoCode

__all__ = (
    "User", "Role", "UserRole", "Event", "TicketType", "Ticket", "PurchasedTicket", "WaitlistedTicket", "CheckIn",
    "PromoCode"
)
