import re
from datetime import datetime
from pydantic import SecretStr

PASSWORD_RULES: tuple[tuple[str, re.Pattern], ...] = (
    ("a lowercase letter", re.compile(r"[a-z]")),
    ("an uppercase letter", re.compile(r"[A-Z]")),
    ("a digit", re.compile(r"\d")),
    ("a special character", re.compile(r"[^\w\s]")),
)


def check_password_strength(password: SecretStr) -> None:
    value = password.get_secret_value()
    missing = [label for label, pattern in PASSWORD_RULES if not pattern.search(value)]
    if missing:
        raise ValueError(f"Password must contain: {', '.join(missing)}")


def ensure_passwords_match(model, password: SecretStr, password_confirm: SecretStr):
    if password.get_secret_value() != password_confirm.get_secret_value():
        raise ValueError("Passwords do not match")
    return model


def ensure_date_range(
        start: datetime | None,
        end: datetime | None,
        *,
        start_name: str,
        end_name: str,
        allow_equal: bool = False
) -> None:
    """Events need ``end > start``; promo windows may be a single instant (``allow_equal``)."""
    if start is None or end is None:
        return
    if end < start or (end == start and not allow_equal):
        raise ValueError(f"{end_name} must be after {start_name}")
