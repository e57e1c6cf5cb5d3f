from typing import Literal
from pydantic import BaseModel, Field
from app.core.utils.serialization import CamelModel


class Token(CamelModel):
    """Login response: ``{accessToken, tokenType, expiresIn}``."""

    access_token: str
    token_type: Literal["bearer"] = "bearer"
    expires_in: int = Field(description="Expiration time in seconds")


class TokenPayload(BaseModel):
    """Verified access-token claims; ``role`` is the single role the user registered with."""

    sub: str
    iat: int
    nbf: int
    exp: int
    jti: str | None = None
    typ: Literal["access"]
    iss: str | None = None
    aud: str | list[str] | None = None
    role: str | None = None
