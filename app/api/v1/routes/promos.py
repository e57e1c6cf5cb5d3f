from fastapi import APIRouter, Depends, status, Response
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Annotated
from app.core.database import get_db
from app.core.dependencies.events import require_event_owner
from app.domain.events.models import Event
from app.domain.promos.schemas import PromoCreateDTO, PromoUpdateDTO, PromoReadDTO
from app.services import promo_service


router = APIRouter(prefix="/events/{event_id}/promos", tags=["promos"])
db_dependency = Annotated[AsyncSession, Depends(get_db)]
event_owner_dependency = Annotated[Event, Depends(require_event_owner)]


@router.get(
    "",
    status_code=status.HTTP_200_OK,
    response_model=list[PromoReadDTO]
)
async def list_promos(event: event_owner_dependency, db: db_dependency):
    return await promo_service.list_promos(db, event.id)


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=PromoReadDTO
)
async def create_promo(event: event_owner_dependency, schema: PromoCreateDTO, db: db_dependency, response: Response):
    promo = await promo_service.create_promo(db, event, schema)
    response.headers["Location"] = f"/events/{event.id}/promos/{promo.id}"
    return promo


@router.patch(
    "/{promo_id}",
    status_code=status.HTTP_200_OK,
    response_model=PromoReadDTO
)
async def patch_promo(event: event_owner_dependency, promo_id: int, schema: PromoUpdateDTO, db: db_dependency):
    return await promo_service.update_promo(db, event, promo_id, schema)


@router.delete(
    "/{promo_id}",
    status_code=status.HTTP_204_NO_CONTENT
)
async def delete_promo(event: event_owner_dependency, promo_id: int, db: db_dependency):
    await promo_service.delete_promo(db, event, promo_id)
