from pydantic import EmailStr, Field, field_validator, ConfigDict, SecretStr, model_validator
from datetime import datetime
from app.core.text_utils import strip_text, normalize_email
from app.core.utils.serialization import CamelModel
from app.core.utils.validators import check_password_strength, ensure_passwords_match
from app.domain.users.models import RoleName


class UserCreateDTO(CamelModel):
    model_config = ConfigDict(extra='forbid')

    email: EmailStr
    name: str = Field(min_length=2, max_length=256)
    password: SecretStr = Field(
        min_length=8,
        max_length=64,
        description='Password must be between 8 and 64 characters long'
    )
    password_confirm: SecretStr = Field(min_length=8, max_length=64)
    role: RoleName = RoleName.ATTENDEE

    _strip_name = field_validator("name", mode="before")(strip_text)
    _email = field_validator("email")(normalize_email)

    @field_validator('password')
    def _check_password(cls, v: SecretStr) -> SecretStr:
        check_password_strength(v)
        return v

    @model_validator(mode="after")
    def _passwords_match(self):
        return ensure_passwords_match(self, self.password, self.password_confirm)


class UserReadDTO(CamelModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    email: EmailStr
    name: str
    role: RoleName | None
    created_at: datetime
