from datetime import datetime
from decimal import Decimal
from pydantic import Field, ConfigDict, field_validator
from app.core.pagination import PageQueryDTO, MAX_PAGE_SIZE
from app.core.text_utils import strip_text
from app.core.utils.serialization import CamelModel
from app.domain.promos.schemas import AppliedPromoDTO


class TicketTypeCreateDTO(CamelModel):
    model_config = ConfigDict(extra='forbid')

    name: str = Field(min_length=1, max_length=100)
    price: Decimal = Field(ge=0, max_digits=10, decimal_places=2)
    quantity: int = Field(ge=0, le=100_000)

    _strip_name = field_validator("name", mode="before")(strip_text)


class TicketTypeUpdateDTO(CamelModel):
    model_config = ConfigDict(extra='forbid')

    name: str | None = Field(default=None, min_length=1, max_length=100)
    price: Decimal | None = Field(default=None, ge=0, max_digits=10, decimal_places=2)
    quantity: int | None = Field(default=None, ge=0, le=100_000)

    _strip_name = field_validator("name", mode="before")(strip_text)


class TicketReadDTO(CamelModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    code: str
    purchased: bool
    checked_in: bool
    waitlisted: bool
    created_at: datetime


class TicketTypeReadDTO(CamelModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    event_id: int
    name: str
    price: Decimal
    quantity: int


class TicketTypeDetailDTO(TicketTypeReadDTO):
    tickets: list[TicketReadDTO]


class TicketTypeAvailabilityDTO(CamelModel):
    id: int
    name: str
    price: Decimal
    total: int
    available: int


class PurchaseRequestDTO(CamelModel):
    model_config = ConfigDict(extra='forbid')

    ticket_type_id: int = Field(gt=0)
    promo_code: str | None = Field(default=None, max_length=50)

    _strip_code = field_validator("promo_code", mode="before")(strip_text)


class PurchaseResultDTO(CamelModel):
    message: str = "Purchase successful"
    remaining: int
    promo: AppliedPromoDTO | None = None
    purchase_id: int
    ticket_id: int
    code: str
    final_price: Decimal | None = None


class WaitlistRequestDTO(CamelModel):
    model_config = ConfigDict(extra='forbid')

    ticket_type_id: int = Field(gt=0)
    promo_code: str | None = Field(default=None, max_length=50)

    _strip_code = field_validator("promo_code", mode="before")(strip_text)


class WaitlistResultDTO(CamelModel):
    message: str = "Waitlist successful"
    waitlist_rank: int
    waitlist_id: int


class PurchasedTicketItemDTO(CamelModel):
    purchase_id: int
    purchased_at: datetime
    event_id: int
    event_name: str
    event_start: datetime
    event_end: datetime
    ticket_type_id: int
    ticket_type_name: str
    price: Decimal
    final_price: Decimal | None
    checked_in: bool
    ticket_id: int
    code: str


class WaitlistItemDTO(CamelModel):
    waitlist_id: int
    waitlist_at: datetime
    event_id: int
    event_name: str
    ticket_type_id: int
    ticket_type_name: str
    price: Decimal
    purchased: bool
    ticket_id: int
    waitlist_rank: int


class PurchasedTicketsDTO(CamelModel):
    data: list[PurchasedTicketItemDTO]


class WaitlistDTO(CamelModel):
    data: list[WaitlistItemDTO]


class CheckInByCodeDTO(CamelModel):
    model_config = ConfigDict(extra='forbid')

    ticket_code: str = Field(min_length=1, max_length=64)

    _strip_code = field_validator("ticket_code", mode="before")(strip_text)


class CheckInResultDTO(CamelModel):
    message: str = "Check-in successful"
    ticket_id: int
    checked_in_at: datetime | None = None


class TicketResolveDTO(CamelModel):
    ticket_id: int
    code: str


class EventBuyerDTO(CamelModel):
    purchase_id: int
    purchased_at: datetime
    ticket_id: int
    code: str
    ticket_type_id: int
    ticket_type_name: str
    final_price: Decimal | None
    checked_in: bool
    user_id: int
    user_name: str
    user_email: str


class EventBuyersQueryDTO(PageQueryDTO):
    page_size: int = Field(default=50, ge=1, le=MAX_PAGE_SIZE)
    ticket_type_id: int | None = None
    checked_in: bool | None = None
    code: str | None = None
