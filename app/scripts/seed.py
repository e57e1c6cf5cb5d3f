import asyncio
import logging
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from anyio import to_thread
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.config import SEED_PASSWORD, LOG_LEVEL, LOG_FORMAT
from app.core.database import session_scope
from app.core.security import hash_password
from app.domain.events.models import Event, EventStatus
from app.domain.promos.models import PromoCode, DiscountType
from app.domain.ticketing.schemas import TicketTypeCreateDTO
from app.domain.users.crud import get_role_by_name, get_user_by_email, create_user
from app.domain.users.models import User, RoleName
from app.services.ticket_type_service import create_ticket_type

logger = logging.getLogger("app.seed")

DEMO_USERS = [
    ("Organizer User", "organizer@example.com", RoleName.ORGANIZER),
    ("Staff User", "staff@example.com", RoleName.STAFF),
    ("Attendee User", "attendee@example.com", RoleName.ATTENDEE),
]
DEMO_EVENT_NAME = "Sample Conference"


async def seed_user(db: AsyncSession, name: str, email: str, role_name: RoleName, password_hash: str) -> User:
    user = await get_user_by_email(db, email)
    if user:
        return user

    role = await get_role_by_name(db, role_name.value)
    if not role:
        raise RuntimeError(f"Role {role_name.value} missing - run migrations first")

    user = await create_user(db, {"name": name, "email": email, "password_hash": password_hash}, role)
    await db.flush()
    return user


async def seed_event(db: AsyncSession, organizer: User) -> Event | None:
    existing = await db.scalar(
        select(Event).where(Event.organizer_id == organizer.id, Event.name == DEMO_EVENT_NAME)
    )
    if existing:
        logger.info("Demo event already present (id=%s) - skipping", existing.id)
        return None

    now = datetime.now(timezone.utc)
    event = Event(
        name=DEMO_EVENT_NAME,
        description="A fantastic tech conference with amazing speakers",
        location="Convention Center, New York",
        cover_image="https://placehold.co/600x400",
        start_date=now + timedelta(days=60),
        end_date=now + timedelta(days=62),
        status=EventStatus.UPCOMING,
        organizer_id=organizer.id
    )
    db.add(event)
    await db.flush()

    await create_ticket_type(db, event, TicketTypeCreateDTO(name="VIP", price=Decimal("499.99"), quantity=100))
    regular = await create_ticket_type(
        db, event, TicketTypeCreateDTO(name="Regular", price=Decimal("199.99"), quantity=500)
    )

    db.add(PromoCode(
        event_id=event.id,
        ticket_type_id=regular.id,
        code="SUMMER25",
        discount_type=DiscountType.PERCENTAGE,
        amount=Decimal("25"),
        max_usage=100,
        start_date=now,
        end_date=now + timedelta(days=30)
    ))
    await db.flush()
    return event


async def main():
    logging.basicConfig(level=LOG_LEVEL, format=LOG_FORMAT)
    if not SEED_PASSWORD:
        logger.warning("Missing seed_password - skipping seed...")
        return

    password_hash = await to_thread.run_sync(hash_password, SEED_PASSWORD)
    async with session_scope() as db:
        users = {}
        for name, email, role in DEMO_USERS:
            users[role] = await seed_user(db, name, email, role, password_hash)
        event = await seed_event(db, users[RoleName.ORGANIZER])

    for role, user in users.items():
        logger.info("Seeded %s: %s", role.value, user.email)
    if event:
        logger.info("Seeded event %s (id=%s) with VIP/Regular ticket types and SUMMER25", event.name, event.id)


if __name__ == "__main__":
    asyncio.run(main())
