from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Annotated
from app.core.database import get_db
from app.core.dependencies.auth import STAFF_OR_ORGANIZER
from app.domain.ticketing.schemas import CheckInByCodeDTO, CheckInResultDTO, TicketResolveDTO
from app.domain.users.models import User
from app.services import checkin_service


router = APIRouter(prefix="/tickets", tags=["check-in"])
db_dependency = Annotated[AsyncSession, Depends(get_db)]
scanner_dependency = Annotated[User, Depends(STAFF_OR_ORGANIZER)]


@router.post(
    "/checkin",
    status_code=status.HTTP_200_OK,
    response_model=CheckInResultDTO,
    response_model_exclude_none=True
)
async def check_in_by_code(schema: CheckInByCodeDTO, db: db_dependency, user: scanner_dependency):
    return await checkin_service.check_in_by_code(db, schema.ticket_code, user)


@router.get(
    "/resolve",
    status_code=status.HTTP_200_OK,
    response_model=TicketResolveDTO
)
async def resolve_ticket(
        code: Annotated[str, Query(min_length=1, max_length=64)],
        db: db_dependency,
        user: scanner_dependency
):
    return await checkin_service.resolve_code(db, code.strip(), user)


@router.post(
    "/{ticket_id}/checkin",
    status_code=status.HTTP_200_OK,
    response_model=CheckInResultDTO,
    response_model_exclude_none=True
)
async def check_in_by_id(ticket_id: int, db: db_dependency, user: scanner_dependency):
    return await checkin_service.check_in_by_id(db, ticket_id, user)
