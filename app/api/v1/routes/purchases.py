from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Annotated
from app.core.database import get_db
from app.core.dependencies.auth import ATTENDEE
from app.core.notifier import EventPublisher, get_publisher
from app.domain.ticketing.schemas import PurchaseRequestDTO, PurchaseResultDTO
from app.domain.users.models import User
from app.services import purchase_service


router = APIRouter(prefix="/purchases", tags=["purchases"])
db_dependency = Annotated[AsyncSession, Depends(get_db)]


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=PurchaseResultDTO,
    response_model_exclude_none=True
)
async def purchase_ticket(
        schema: PurchaseRequestDTO,
        db: db_dependency,
        user: Annotated[User, Depends(ATTENDEE)],
        publisher: Annotated[EventPublisher, Depends(get_publisher)]
):
    return await purchase_service.purchase_ticket(db, publisher, user, schema.ticket_type_id, schema.promo_code)
