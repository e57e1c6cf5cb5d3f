from pydantic import Field, ConfigDict, field_validator, model_validator
from datetime import datetime
from decimal import Decimal
import enum
from app.domain.events.models import EventStatus
from app.core.pagination import PageQueryDTO
from app.core.text_utils import strip_text
from app.core.utils.serialization import CamelModel
from app.core.utils.validators import ensure_date_range


class EventScope(str, enum.Enum):
    UPCOMING = "UPCOMING"
    ENDED = "ENDED"


class EventCreateDTO(CamelModel):
    model_config = ConfigDict(extra='forbid')

    name: str = Field(min_length=3, max_length=100)
    description: str | None = Field(default=None, max_length=2000)
    location: str | None = Field(default=None, max_length=200)
    cover_image: str | None = Field(default=None, max_length=2000)
    start_date: datetime
    end_date: datetime
    status: EventStatus = EventStatus.UPCOMING

    _strip_name = field_validator("name", mode="before")(strip_text)
    _strip_desc = field_validator("description", mode="before")(strip_text)
    _strip_location = field_validator("location", mode="before")(strip_text)

    @model_validator(mode="after")
    def _check_dates(self):
        ensure_date_range(self.start_date, self.end_date, start_name="startDate", end_name="endDate")
        return self


class EventUpdateDTO(CamelModel):
    model_config = ConfigDict(extra="forbid")

    name: str | None = Field(default=None, min_length=3, max_length=100)
    description: str | None = Field(default=None, max_length=2000)
    location: str | None = Field(default=None, max_length=200)
    cover_image: str | None = Field(default=None, max_length=2000)
    start_date: datetime | None = None
    end_date: datetime | None = None
    status: EventStatus | None = None

    _strip_name = field_validator("name", mode="before")(strip_text)
    _strip_desc = field_validator("description", mode="before")(strip_text)
    _strip_location = field_validator("location", mode="before")(strip_text)


class EventReadDTO(CamelModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    organizer_id: int
    description: str | None
    location: str | None
    cover_image: str | None
    start_date: datetime
    end_date: datetime
    status: EventStatus
    created_at: datetime
    updated_at: datetime


class AttendeeEventDTO(CamelModel):
    id: int
    name: str
    start_date: datetime
    end_date: datetime
    location: str
    cover_image: str | None
    status: EventStatus
    is_registered: bool
    has_available_tickets: bool
    min_ticket_price: Decimal


class EventTotalsDTO(CamelModel):
    id: int
    name: str
    start_date: datetime
    end_date: datetime
    location: str | None
    cover_image: str | None
    status: EventStatus
    organizer_name: str | None = None
    total_tickets: int
    sold_tickets: int
    checked_in: int


class PublicEventsQueryDTO(PageQueryDTO):
    name: str | None = None


class OrganizerEventsQueryDTO(PageQueryDTO):
    scope: EventScope | None = None
    name: str | None = None


class StaffEventsQueryDTO(PageQueryDTO):
    status: EventStatus | None = None
