from typing import Annotated
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.database import get_db
from app.core.dependencies.auth import ANY_USER, ATTENDEE
from app.domain.users.models import User
from app.domain.users.schemas import UserReadDTO
from app.domain.ticketing.schemas import PurchasedTicketsDTO, WaitlistDTO
from app.services import purchase_service, waitlist_service

router = APIRouter(prefix="/users/me", tags=["users"])
db_dependency = Annotated[AsyncSession, Depends(get_db)]


@router.get(
    "",
    status_code=status.HTTP_200_OK,
    response_model=UserReadDTO,
    response_model_exclude_none=True
)
async def get_me(user: Annotated[User, Depends(ANY_USER)]):
    return user


@router.get(
    "/purchases",
    status_code=status.HTTP_200_OK,
    response_model=PurchasedTicketsDTO
)
async def list_my_purchases(db: db_dependency, user: Annotated[User, Depends(ATTENDEE)]):
    return await purchase_service.list_user_purchases(db, user)


@router.get(
    "/waitlist",
    status_code=status.HTTP_200_OK,
    response_model=WaitlistDTO
)
async def list_my_waitlist(db: db_dependency, user: Annotated[User, Depends(ATTENDEE)]):
    return await waitlist_service.list_user_waitlist(db, user)
