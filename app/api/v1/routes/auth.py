from typing import Annotated
from fastapi import APIRouter, Depends, status, Response
from fastapi.security import OAuth2PasswordRequestForm
from app.core.database import get_db
from app.domain.users.schemas import UserCreateDTO, UserReadDTO
from app.domain.auth.schemas import Token
from app.services import auth_service
from sqlalchemy.ext.asyncio import AsyncSession

router = APIRouter(prefix="/auth", tags=["auth"])
db_dependency = Annotated[AsyncSession, Depends(get_db)]


@router.post("/register", status_code=status.HTTP_201_CREATED, response_model=UserReadDTO)
async def register(model: UserCreateDTO, db: db_dependency, response: Response):
    """Creates an account with a fixed role (ORGANIZER, STAFF or ATTENDEE)."""
    user = await auth_service.create_user(model, db)
    response.headers["Location"] = "/users/me"
    return UserReadDTO.model_validate(user)


@router.post("/login", response_model=Token)
async def login(form: Annotated[OAuth2PasswordRequestForm, Depends()], db: db_dependency):
    """OAuth2 password form: ``username`` carries the email."""
    return await auth_service.login_user(form.username, form.password, db)
