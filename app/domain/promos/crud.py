from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession
from .models import PromoCode


async def get_promo(db: AsyncSession, event_id: int, promo_id: int) -> PromoCode | None:
    stmt = select(PromoCode).where(PromoCode.id == promo_id, PromoCode.event_id == event_id)
    result = await db.execute(stmt)
    return result.scalars().first()


async def list_event_promos(db: AsyncSession, event_id: int) -> list[PromoCode]:
    stmt = select(PromoCode).where(PromoCode.event_id == event_id).order_by(PromoCode.start_date, PromoCode.id)
    result = await db.execute(stmt)
    return result.scalars().all()


async def find_promos_by_code(db: AsyncSession, code: str) -> list[PromoCode]:
    stmt = select(PromoCode).where(PromoCode.code == code).order_by(PromoCode.id)
    result = await db.execute(stmt)
    return result.scalars().all()


async def increment_usage(db: AsyncSession, promo_id: int) -> int | None:
    """Consumes one use if budget remains; returns the new usage_count or None when exhausted."""
    return await db.scalar(
        update(PromoCode)
        .where(PromoCode.id == promo_id, PromoCode.usage_count < PromoCode.max_usage)
        .values(usage_count=PromoCode.usage_count + 1)
        .returning(PromoCode.usage_count)
    )


async def create_promo(db: AsyncSession, data: dict) -> PromoCode:
    promo = PromoCode(**data)
    db.add(promo)
    return promo


async def update_promo(promo: PromoCode, data: dict) -> PromoCode:
    for key, value in data.items():
        setattr(promo, key, value)
    return promo


async def delete_promo(db: AsyncSession, promo: PromoCode) -> None:
    await db.delete(promo)
