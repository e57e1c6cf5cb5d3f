from datetime import datetime, timezone, timedelta
from decimal import Decimal


def db_with_scalars_first(mocker, value):
    res = mocker.Mock()
    res.scalars.return_value.first.return_value = value
    db = mocker.Mock()
    db.execute = mocker.AsyncMock(return_value=res)
    return db, res


def db_with_scalar(mocker, value):
    db = mocker.Mock()
    db.scalar = mocker.AsyncMock(return_value=value)
    return db


def session_mock(mocker):
    db = mocker.Mock()
    db.commit = mocker.AsyncMock()
    db.flush = mocker.AsyncMock()
    db.refresh = mocker.AsyncMock()
    db.execute = mocker.AsyncMock()
    db.scalar = mocker.AsyncMock()
    return db


def create_role(mocker, name: str):
    role = mocker.Mock()
    role.name = name
    return role


def create_user(mocker, *, user_id: int = 1, role: str = "ATTENDEE", is_active: bool = True):
    user = mocker.Mock(
        id=user_id,
        role=role,
        roles=[create_role(mocker, role)],
        is_active=is_active,
        email=f"user{user_id}@example.com"
    )
    user.name = f"User {user_id}"
    return user


def create_promo(
        mocker,
        *,
        promo_id: int = 1,
        event_id: int = 10,
        ticket_type_id: int | None = None,
        code: str = "SUMMER25",
        discount_type: str = "percentage",
        amount: Decimal = Decimal("25"),
        max_usage: int = 10,
        usage_count: int = 0,
        start_date: datetime | None = None,
        end_date: datetime | None = None
):
    from app.domain.promos.models import DiscountType, PromoCode

    now = datetime.now(timezone.utc)
    return mocker.Mock(
        spec=PromoCode,
        id=promo_id,
        event_id=event_id,
        ticket_type_id=ticket_type_id,
        code=code,
        discount_type=DiscountType(discount_type),
        amount=amount,
        max_usage=max_usage,
        usage_count=usage_count,
        start_date=start_date or now - timedelta(days=1),
        end_date=end_date or now + timedelta(days=1)
    )
