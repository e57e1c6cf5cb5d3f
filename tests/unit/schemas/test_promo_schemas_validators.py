import pytest
from datetime import datetime, timezone, timedelta
from decimal import Decimal
from pydantic import ValidationError
from app.domain.promos.models import DiscountType, PromoCode
from app.domain.promos.schemas import PromoCreateDTO, PromoReadDTO

START = datetime(2025, 5, 1, tzinfo=timezone.utc)


def create_payload(**override):
    data = {
        "code": " SUMMER25 ",
        "type": "percentage",
        "amount": "25",
        "maxUsage": 100,
        "startDate": START.isoformat(),
        "endDate": (START + timedelta(days=30)).isoformat(),
    }
    data.update(override)
    return data


def test_promo_create_passes_validation_and_trims_code():
    dto = PromoCreateDTO(**create_payload())

    assert dto.code == "SUMMER25"
    assert dto.discount_type == DiscountType.PERCENTAGE
    assert dto.amount == Decimal("25")
    assert dto.ticket_type_id is None


def test_promo_create_percentage_above_100_raises():
    with pytest.raises(ValidationError) as e:
        PromoCreateDTO(**create_payload(amount="150"))
    assert "Percentage discount cannot exceed 100" in str(e.value)


def test_promo_create_fixed_above_100_passes():
    dto = PromoCreateDTO(**create_payload(type="fixed", amount="150"))
    assert dto.discount_type == DiscountType.FIXED


@pytest.mark.parametrize("field, value", [("amount", "0"), ("maxUsage", 0), ("type", "bogus")])
def test_promo_create_rejects_bad_values(field, value):
    with pytest.raises(ValidationError):
        PromoCreateDTO(**create_payload(**{field: value}))


def test_promo_create_end_before_start_raises():
    with pytest.raises(ValidationError) as e:
        PromoCreateDTO(**create_payload(endDate=(START - timedelta(days=1)).isoformat()))
    assert "endDate must be after startDate" in str(e.value)


def test_promo_create_single_instant_window_is_allowed():
    dto = PromoCreateDTO(**create_payload(endDate=START.isoformat()))
    assert dto.start_date == dto.end_date


def test_promo_read_remaining_never_negative(mocker):
    promo = mocker.Mock(
        spec=PromoCode, id=1, event_id=2, ticket_type_id=None, code="X", discount_type=DiscountType.FIXED,
        amount=Decimal("5"), max_usage=3, usage_count=3, start_date=START, end_date=START
    )

    dto = PromoReadDTO.model_validate(promo)

    assert dto.remaining == 0
    assert dto.model_dump(by_alias=True)["type"] == DiscountType.FIXED
