import uuid
from datetime import timedelta, datetime, timezone
from argon2 import PasswordHasher
from argon2.exceptions import VerifyMismatchError, InvalidHashError
from jose import jwt
from .config import SECRET_KEY, ACCESS_TOKEN_EXPIRE_MINUTES, ALGORITHM, JWT_ISSUER, JWT_AUDIENCE

ph = PasswordHasher()

TOKEN_LEEWAY_S = 5


def hash_password(password: str) -> str:
    return ph.hash(password)


def verify_password(password: str, hashed_password: str) -> bool:
    try:
        return ph.verify(hashed_password, password)
    except (VerifyMismatchError, InvalidHashError):
        return False


def password_needs_rehash(hashed_password: str) -> bool:
    """True when the stored hash was made with weaker argon2 parameters than the current ones."""
    return ph.check_needs_rehash(hashed_password)


def create_access_token(subject: str | int, *, role: str | None = None) -> str:
    now = datetime.now(timezone.utc)
    issued_at = int(now.timestamp())
    claims = {
        "sub": str(subject),
        "iat": issued_at,
        "nbf": issued_at,
        "exp": int((now + timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)).timestamp()),
        "jti": uuid.uuid4().hex,
        "typ": "access",
        "iss": JWT_ISSUER,
        "aud": JWT_AUDIENCE,
    }
    if role:
        claims["role"] = role
    return jwt.encode(claims, SECRET_KEY, algorithm=ALGORITHM)


def decode_token(token: str) -> dict:
    """Verifies signature, issuer, audience and time claims; raises ``jose.JWTError`` on any failure."""
    return jwt.decode(
        token,
        SECRET_KEY,
        algorithms=[ALGORITHM],
        issuer=JWT_ISSUER,
        audience=JWT_AUDIENCE,
        options={"verify_aud": True, "leeway": TOKEN_LEEWAY_S}
    )
