from datetime import datetime
from decimal import Decimal
from pydantic import Field, ConfigDict, field_validator, model_validator, computed_field
from app.core.utils.serialization import CamelModel
from app.core.utils.validators import ensure_date_range
from app.domain.promos.models import DiscountType


def _normalize_code(value):
    if isinstance(value, str):
        value = value.strip()
    return value


def _check_amount(discount_type: DiscountType | None, amount: Decimal | None) -> None:
    if discount_type == DiscountType.PERCENTAGE and amount is not None and amount > 100:
        raise ValueError("Percentage discount cannot exceed 100")


class PromoCreateDTO(CamelModel):
    model_config = ConfigDict(extra='forbid')

    code: str = Field(min_length=3, max_length=50)
    discount_type: DiscountType = Field(alias="type")
    amount: Decimal = Field(gt=0, max_digits=10, decimal_places=2)
    max_usage: int = Field(ge=1)
    start_date: datetime
    end_date: datetime
    ticket_type_id: int | None = Field(default=None, gt=0)

    _code = field_validator("code", mode="before")(_normalize_code)

    @model_validator(mode="after")
    def _check(self):
        _check_amount(self.discount_type, self.amount)
        ensure_date_range(self.start_date, self.end_date, start_name="startDate", end_name="endDate", allow_equal=True)
        return self


class PromoUpdateDTO(CamelModel):
    model_config = ConfigDict(extra='forbid')

    code: str | None = Field(default=None, min_length=3, max_length=50)
    discount_type: DiscountType | None = Field(default=None, alias="type")
    amount: Decimal | None = Field(default=None, gt=0, max_digits=10, decimal_places=2)
    max_usage: int | None = Field(default=None, ge=1)
    start_date: datetime | None = None
    end_date: datetime | None = None
    ticket_type_id: int | None = Field(default=None, gt=0)

    _code = field_validator("code", mode="before")(_normalize_code)


class PromoReadDTO(CamelModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    event_id: int
    ticket_type_id: int | None
    code: str
    discount_type: DiscountType = Field(alias="type")
    amount: Decimal
    max_usage: int
    usage_count: int
    start_date: datetime
    end_date: datetime

    @computed_field
    @property
    def remaining(self) -> int:
        return max(0, self.max_usage - self.usage_count)


class AppliedPromoDTO(CamelModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    code: str
    discount_type: DiscountType = Field(alias="type")
    amount: Decimal
