import pytest
from pydantic import ValidationError
from app.domain.users.models import RoleName
from app.domain.users.schemas import UserCreateDTO


test_user_payload = {
    "email": "john@gmail.com",
    "name": "  John Derek ",
}


def create_payload(**override):
    data = dict(test_user_payload)
    data.setdefault("password", "Str0ng!Password")
    data.setdefault("passwordConfirm", "Str0ng!Password")
    data.update(override)
    return data


def test_check_password_pass_validation():
    dto = UserCreateDTO(**create_payload())
    assert dto.password.get_secret_value() == "Str0ng!Password"
    assert dto.name == "John Derek"


def test_role_defaults_to_attendee():
    dto = UserCreateDTO(**create_payload())
    assert dto.role == RoleName.ATTENDEE


def test_role_accepts_staff():
    dto = UserCreateDTO(**create_payload(role="STAFF"))
    assert dto.role == RoleName.STAFF


def test_unknown_role_raises_validation_error():
    with pytest.raises(ValidationError):
        UserCreateDTO(**create_payload(role="ADMIN"))


@pytest.mark.parametrize(
    "password, expected_parts",
    [
        ("ABCDEFGH1!", {"a lowercase letter"}),
        ("abcdefgh1!", {"an uppercase letter"}),
        ("Abcdefgh!!", {"a digit"}),
        ("Abcdefgh1", {"a special character"}),
        ("abcdefgh", {"an uppercase letter", "a digit", "a special character"})
    ]
)
def test_check_password_weak_passwords_raise_validation_error(password, expected_parts):
    with pytest.raises(ValidationError) as e:
        UserCreateDTO(**create_payload(**{"password": password, "passwordConfirm": password}))
    msg = str(e.value)
    for part in expected_parts:
        assert part in msg


def test_passwords_do_not_match_raises_validation_error():
    with pytest.raises(ValidationError) as e:
        UserCreateDTO(**create_payload(**{"passwordConfirm": "Tokyo123@!"}))
    assert "Passwords do not match" in str(e.value)


def test_extra_fields_are_rejected():
    with pytest.raises(ValidationError):
        UserCreateDTO(**create_payload(phoneNumber="+48123456789"))
