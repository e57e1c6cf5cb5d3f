from datetime import datetime
from decimal import Decimal
from sqlalchemy import Identity, Text, Integer, ForeignKey, Numeric, TIMESTAMP, Enum, func, text, \
    CheckConstraint, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from app.core.database import Base
import enum


class DiscountType(str, enum.Enum):
    PERCENTAGE = "percentage"
    FIXED = "fixed"


class PromoCode(Base):
    __tablename__ = "promo_codes"

    id: Mapped[int] = mapped_column(Identity(always=True), primary_key=True)
    event_id: Mapped[int] = mapped_column(ForeignKey("events.id", ondelete="CASCADE"), nullable=False, index=True)
    ticket_type_id: Mapped[int | None] = mapped_column(
        ForeignKey("ticket_types.id", ondelete="CASCADE"),
        nullable=True,
        index=True
    )
    code: Mapped[str] = mapped_column(Text, nullable=False, index=True)
    discount_type: Mapped[DiscountType] = mapped_column(
        Enum(DiscountType, name="discount_type", values_callable=lambda e: [m.value for m in e]),
        nullable=False
    )
    amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    max_usage: Mapped[int] = mapped_column(Integer, nullable=False)
    usage_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0, server_default=text("0"))
    start_date: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)
    end_date: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)
    created_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), server_default=func.now(), nullable=False)

    event: Mapped["Event"] = relationship(back_populates="promo_codes")

    __table_args__ = (
        UniqueConstraint("event_id", "code", name="uq_promo_event_code"),
        CheckConstraint("amount > 0", name="chk_promo_amount"),
        CheckConstraint("discount_type <> 'percentage' OR amount <= 100", name="chk_promo_percentage"),
        CheckConstraint("max_usage >= 1", name="chk_promo_max_usage"),
        CheckConstraint("usage_count >= 0 AND usage_count <= max_usage", name="chk_promo_usage_budget"),
        CheckConstraint("end_date >= start_date", name="chk_promo_window"),
    )
