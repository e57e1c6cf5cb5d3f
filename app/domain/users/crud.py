from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload
from sqlalchemy import select, Select
from .models import Role, User


def _users() -> Select:
    return select(User).options(selectinload(User.roles))


async def get_role_by_name(db: AsyncSession, name: str) -> Role | None:
    result = await db.execute(select(Role).where(Role.name == name))
    return result.scalars().first()


async def get_user_by_email(db: AsyncSession, email: str) -> User | None:
    """``email`` must already be normalized; stored emails are lowercase."""
    result = await db.execute(_users().where(User.email == email))
    return result.scalars().first()


async def get_user_by_id(db: AsyncSession, user_id: int) -> User | None:
    result = await db.execute(_users().where(User.id == user_id))
    return result.scalars().first()


async def create_user(db: AsyncSession, data: dict, role: Role) -> User:
    user = User(**data)
    user.roles.append(role)
    db.add(user)
    return user
