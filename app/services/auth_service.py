import logging
from anyio import to_thread
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession
from app.core.auditing import AuditSpan
from app.core.config import ACCESS_TOKEN_EXPIRE_MINUTES
from app.core.security import hash_password, verify_password, password_needs_rehash, create_access_token
from app.core.text_utils import normalize_email
from app.domain.auth.schemas import Token
from app.domain.users import crud
from app.domain.users.schemas import UserCreateDTO
from app.domain.users.models import User
from app.domain.exceptions import InternalError, Conflict, Unauthorized, Forbidden

logger = logging.getLogger(__name__)


async def create_user(model: UserCreateDTO, db: AsyncSession) -> User:
    """Registers a user with the single role chosen at sign-up; the role never changes afterwards."""
    email = normalize_email(model.email)

    async with AuditSpan(
        scope="AUTH",
        action="REGISTER",
        object_type="user",
        meta={"role": model.role.value}
    ) as span:
        if await crud.get_user_by_email(db, email):
            raise Conflict("Email already registered", ctx={"email": email})

        role = await crud.get_role_by_name(db, model.role.value)
        if not role:
            raise InternalError(f"Role {model.role.value} not found", ctx={"role": model.role.value})

        password_hash = await to_thread.run_sync(hash_password, model.password.get_secret_value())
        user = await crud.create_user(db, {"name": model.name, "email": email, "password_hash": password_hash}, role)
        try:
            await db.flush()
            await db.refresh(user)
        except IntegrityError as e:
            raise Conflict("Email already registered", ctx={"email": email}) from e

        span.object_id = user.id
        return user


async def authenticate_user(email: str, password: str, db: AsyncSession) -> User:
    user = await crud.get_user_by_email(db, normalize_email(email))
    ok = False
    if user:
        ok = await to_thread.run_sync(verify_password, password, user.password_hash)
    if not user or not ok:
        raise Unauthorized("Incorrect email or password", ctx={"reason": "bad_credentials"})
    if not user.is_active:
        raise Forbidden("Account is inactive", ctx={"reason": "inactive"})

    if password_needs_rehash(user.password_hash):
        user.password_hash = await to_thread.run_sync(hash_password, password)
        logger.info("Upgraded password hash for user %s", user.id)
    return user


async def login_user(email: str, password: str, db: AsyncSession) -> Token:
    async with AuditSpan(scope="AUTH", action="LOGIN", object_type="user") as span:
        user = await authenticate_user(email, password, db)
        span.object_id = user.id
        return Token(
            access_token=create_access_token(subject=user.id, role=user.role),
            expires_in=ACCESS_TOKEN_EXPIRE_MINUTES * 60
        )
