import secrets
from datetime import datetime
from decimal import Decimal
from sqlalchemy import Identity, Text, Integer, ForeignKey, Numeric, TIMESTAMP, Boolean, func, text, \
    CheckConstraint, UniqueConstraint, Index
from sqlalchemy.orm import Mapped, mapped_column, relationship
from app.core.database import Base

TICKET_CODE_PREFIX = "TICKET-"


def generate_ticket_code() -> str:
    # 6 random bytes -> 8 url-safe characters
    return f"{TICKET_CODE_PREFIX}{secrets.token_urlsafe(6)}"


class TicketType(Base):
    __tablename__ = "ticket_types"

    id: Mapped[int] = mapped_column(Identity(always=True), primary_key=True)
    event_id: Mapped[int] = mapped_column(ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), server_default=func.now(), nullable=False)

    event: Mapped["Event"] = relationship(back_populates="ticket_types", lazy="selectin")
    tickets: Mapped[list["Ticket"]] = relationship(
        back_populates="ticket_type",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Ticket.id"
    )

    __table_args__ = (
        UniqueConstraint("event_id", "name", name="uq_ticket_type_event_name"),
        CheckConstraint("price >= 0", name="chk_ticket_type_price"),
        CheckConstraint("quantity >= 0", name="chk_ticket_type_quantity"),
    )


class Ticket(Base):
    __tablename__ = "tickets"

    id: Mapped[int] = mapped_column(Identity(always=True), primary_key=True)
    ticket_type_id: Mapped[int] = mapped_column(
        ForeignKey("ticket_types.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    code: Mapped[str] = mapped_column(Text, nullable=False, unique=True, default=generate_ticket_code)
    purchased: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default=text("false"))
    checked_in: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default=text("false"))
    waitlisted: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False, server_default=text("false"))
    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), server_default=func.now(), nullable=False)

    ticket_type: Mapped["TicketType"] = relationship(back_populates="tickets", lazy="selectin")
    purchase: Mapped["PurchasedTicket | None"] = relationship(back_populates="ticket", uselist=False)
    waitlist_entry: Mapped["WaitlistedTicket | None"] = relationship(back_populates="ticket", uselist=False)

    __table_args__ = (
        CheckConstraint("NOT checked_in OR purchased", name="chk_ticket_checkin_requires_purchase"),
        Index(
            "ix_tickets_free_pool",
            "ticket_type_id", "id",
            postgresql_where=text("NOT purchased AND NOT waitlisted")
        ),
    )


class PurchasedTicket(Base):
    __tablename__ = "purchased_tickets"

    id: Mapped[int] = mapped_column(Identity(always=True), primary_key=True)
    ticket_id: Mapped[int] = mapped_column(
        ForeignKey("tickets.id", ondelete="CASCADE"),
        nullable=False,
        unique=True
    )
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    promo_code_id: Mapped[int | None] = mapped_column(
        ForeignKey("promo_codes.id", ondelete="SET NULL"),
        nullable=True
    )
    final_price: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), server_default=func.now(), nullable=False)

    ticket: Mapped["Ticket"] = relationship(back_populates="purchase", lazy="selectin")

    __table_args__ = (
        CheckConstraint("final_price IS NULL OR final_price >= 0", name="chk_purchase_final_price"),
    )


class WaitlistedTicket(Base):
    __tablename__ = "waitlisted_tickets"

    id: Mapped[int] = mapped_column(Identity(always=True), primary_key=True)
    ticket_id: Mapped[int] = mapped_column(
        ForeignKey("tickets.id", ondelete="CASCADE"),
        nullable=False,
        unique=True
    )
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    promo_code_id: Mapped[int | None] = mapped_column(
        ForeignKey("promo_codes.id", ondelete="SET NULL"),
        nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), server_default=func.now(), nullable=False)

    ticket: Mapped["Ticket"] = relationship(back_populates="waitlist_entry", lazy="selectin")


class CheckIn(Base):
    __tablename__ = "check_ins"

    id: Mapped[int] = mapped_column(Identity(always=True), primary_key=True)
    ticket_id: Mapped[int] = mapped_column(
        ForeignKey("tickets.id", ondelete="CASCADE"),
        nullable=False,
        unique=True
    )
    staff_user_id: Mapped[int | None] = mapped_column(ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), server_default=func.now(), nullable=False)
