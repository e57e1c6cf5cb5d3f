import pytest
from sqlalchemy.exc import IntegrityError
from app.services import auth_service
from app.core.dependencies.auth import decode_access_token
from app.domain.exceptions import Conflict, Unauthorized, Forbidden, InternalError
from app.domain.users.models import Role
from app.domain.users.schemas import UserCreateDTO
from tests.helper import create_user, session_mock


def _schema(**override):
    data = {
        "email": "Alice@Example.com",
        "name": "Alice",
        "password": "Str0ng!Password",
        "passwordConfirm": "Str0ng!Password",
    }
    data.update(override)
    return UserCreateDTO(**data)


@pytest.fixture
def fast_hash(mocker):
    return mocker.patch("app.services.auth_service.hash_password", return_value="hashed")


@pytest.mark.asyncio
async def test_create_user_existing_email_raises_conflict(mocker, fast_hash):
    mocker.patch(
        "app.services.auth_service.crud.get_user_by_email",
        new=mocker.AsyncMock(return_value=create_user(mocker))
    )

    with pytest.raises(Conflict) as e:
        await auth_service.create_user(_schema(), session_mock(mocker))

    assert str(e.value) == "Email already registered"
    fast_hash.assert_not_called()


@pytest.mark.asyncio
async def test_create_user_assigns_role_and_normalizes_email(mocker, fast_hash, auditspan_stub):
    mocker.patch("app.services.auth_service.crud.get_user_by_email", new=mocker.AsyncMock(return_value=None))
    role_spy = mocker.patch(
        "app.services.auth_service.crud.get_role_by_name",
        new=mocker.AsyncMock(return_value=Role(name="ORGANIZER"))
    )
    db = session_mock(mocker)

    user = await auth_service.create_user(_schema(role="ORGANIZER"), db)

    assert user.email == "alice@example.com"
    assert user.password_hash == "hashed"
    assert user.role == "ORGANIZER"
    role_spy.assert_awaited_once_with(db, "ORGANIZER")
    db.add.assert_called_once_with(user)
    assert auditspan_stub[0].meta == {"role": "ORGANIZER"}


@pytest.mark.asyncio
async def test_create_user_missing_role_row_raises_internal_error(mocker, fast_hash):
    mocker.patch("app.services.auth_service.crud.get_user_by_email", new=mocker.AsyncMock(return_value=None))
    mocker.patch("app.services.auth_service.crud.get_role_by_name", new=mocker.AsyncMock(return_value=None))

    with pytest.raises(InternalError):
        await auth_service.create_user(_schema(), session_mock(mocker))


@pytest.mark.asyncio
async def test_create_user_unique_violation_raises_conflict(mocker, fast_hash):
    mocker.patch("app.services.auth_service.crud.get_user_by_email", new=mocker.AsyncMock(return_value=None))
    mocker.patch(
        "app.services.auth_service.crud.get_role_by_name",
        new=mocker.AsyncMock(return_value=Role(name="ATTENDEE"))
    )
    db = session_mock(mocker)
    db.flush = mocker.AsyncMock(side_effect=IntegrityError("stmt", {}, Exception("dup")))

    with pytest.raises(Conflict):
        await auth_service.create_user(_schema(), db)


@pytest.mark.asyncio
async def test_login_user_returns_token_with_role(mocker):
    user = create_user(mocker, user_id=5, role="STAFF")
    user.password_hash = "hashed"
    mocker.patch("app.services.auth_service.crud.get_user_by_email", new=mocker.AsyncMock(return_value=user))
    mocker.patch("app.services.auth_service.verify_password", return_value=True)
    mocker.patch("app.services.auth_service.password_needs_rehash", return_value=False)

    token = await auth_service.login_user("staff@example.com", "secret", mocker.Mock())

    payload = decode_access_token(token.access_token)
    assert payload.sub == "5"
    assert payload.role == "STAFF"
    assert token.token_type == "bearer"
    assert token.expires_in > 0


@pytest.mark.asyncio
async def test_login_user_wrong_password_raises_unauthorized(mocker):
    mocker.patch(
        "app.services.auth_service.crud.get_user_by_email",
        new=mocker.AsyncMock(return_value=create_user(mocker))
    )
    mocker.patch("app.services.auth_service.verify_password", return_value=False)

    with pytest.raises(Unauthorized) as e:
        await auth_service.login_user("a@example.com", "bad", mocker.Mock())

    assert str(e.value) == "Incorrect email or password"


@pytest.mark.asyncio
async def test_login_user_unknown_email_raises_unauthorized(mocker):
    mocker.patch("app.services.auth_service.crud.get_user_by_email", new=mocker.AsyncMock(return_value=None))
    verify_spy = mocker.patch("app.services.auth_service.verify_password")

    with pytest.raises(Unauthorized):
        await auth_service.login_user("nobody@example.com", "x", mocker.Mock())

    verify_spy.assert_not_called()


@pytest.mark.asyncio
async def test_login_user_inactive_account_raises_forbidden(mocker):
    mocker.patch(
        "app.services.auth_service.crud.get_user_by_email",
        new=mocker.AsyncMock(return_value=create_user(mocker, is_active=False))
    )
    mocker.patch("app.services.auth_service.verify_password", return_value=True)

    with pytest.raises(Forbidden):
        await auth_service.login_user("a@example.com", "x", mocker.Mock())


@pytest.mark.asyncio
async def test_login_user_upgrades_outdated_hash(mocker, fast_hash):
    user = create_user(mocker, user_id=5)
    user.password_hash = "old-hash"
    mocker.patch("app.services.auth_service.crud.get_user_by_email", new=mocker.AsyncMock(return_value=user))
    mocker.patch("app.services.auth_service.verify_password", return_value=True)
    mocker.patch("app.services.auth_service.password_needs_rehash", return_value=True)

    await auth_service.login_user("a@example.com", "secret", mocker.Mock())

    fast_hash.assert_called_once_with("secret")
    assert user.password_hash == "hashed"
