from sqlalchemy.orm import mapped_column, Mapped, relationship
from sqlalchemy import Identity, Text, ForeignKey, CheckConstraint, TIMESTAMP, func, Enum
from app.core.database import Base
from datetime import datetime
import enum


class EventStatus(str, enum.Enum):
    UPCOMING = "UPCOMING"
    ENDED = "ENDED"
    ARCHIVED = "ARCHIVED"
    CANCELLED = "CANCELLED"


class Event(Base):
    __tablename__ = "events"

    id: Mapped[int] = mapped_column(Identity(always=True), primary_key=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    organizer_id: Mapped[int] = mapped_column(
        ForeignKey("users.id", ondelete='RESTRICT'),
        nullable=False,
        index=True
    )
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    location: Mapped[str | None] = mapped_column(Text, nullable=True)
    cover_image: Mapped[str | None] = mapped_column(Text, nullable=True)
    start_date: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)
    end_date: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)
    status: Mapped[EventStatus] = mapped_column(
        Enum(EventStatus, name="event_status"),
        nullable=False,
        default=EventStatus.UPCOMING
    )
    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False
    )

    organizer: Mapped['User'] = relationship(lazy='selectin')
    ticket_types: Mapped[list['TicketType']] = relationship(
        back_populates='event',
        cascade='all, delete-orphan',
        passive_deletes=True
    )
    promo_codes: Mapped[list['PromoCode']] = relationship(
        back_populates='event',
        cascade='all, delete-orphan',
        passive_deletes=True
    )

    __table_args__ = (
        CheckConstraint("end_date > start_date", name="chk_event_time_range"),
    )
