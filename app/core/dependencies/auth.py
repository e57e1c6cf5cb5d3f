from fastapi import Depends
from fastapi.security import OAuth2PasswordBearer
from typing import Annotated
from jose import JWTError
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.database import get_db
from app.core.security import decode_token
from app.domain.users.crud import get_user_by_id
from app.domain.users.models import User
from app.domain.auth.schemas import TokenPayload
from app.domain.exceptions import Unauthorized, Forbidden
from app.core.ctx import bind_actor


oauth2_bearer = OAuth2PasswordBearer(tokenUrl="/auth/login")


def decode_access_token(token: str) -> TokenPayload:
    try:
        raw_payload = decode_token(token)
    except JWTError:
        raise Unauthorized("Invalid authentication credentials", ctx={"reason": "invalid_token"})

    if raw_payload.get("typ") != "access":
        raise Unauthorized("Invalid token type", ctx={"reason": "invalid_type"})
    try:
        return TokenPayload.model_validate(raw_payload)
    except ValidationError:
        raise Unauthorized("Invalid authentication credentials", ctx={"reason": "invalid_token"})


async def get_token_payload(token: Annotated[str, Depends(oauth2_bearer)]) -> TokenPayload:
    return decode_access_token(token)


def get_current_user_with_roles(*allowed_roles: str):
    allowed = set(allowed_roles)

    async def _inner(payload: Annotated[TokenPayload, Depends(get_token_payload)],
                     db: Annotated[AsyncSession, Depends(get_db)]) -> User:
        user = await get_user_by_id(db, int(payload.sub))
        if not user or not user.is_active:
            raise Unauthorized("User not found", ctx={"user_id": payload.sub})

        role = user.role
        bind_actor(user.id, role)

        if allowed and role not in allowed:
            raise Forbidden("Permission denied", ctx={"required": list(allowed_roles), "user_role": role})
        return user
    return _inner


ANY_USER = get_current_user_with_roles()
ORGANIZER = get_current_user_with_roles("ORGANIZER")
ATTENDEE = get_current_user_with_roles("ATTENDEE")
STAFF_OR_ORGANIZER = get_current_user_with_roles("STAFF", "ORGANIZER")
STAFF = get_current_user_with_roles("STAFF")
