import enum
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Mapping
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

_JSON_SCALARS = (str, int, float, bool, type(None))


def normalize(value: Any) -> Any:
    """Flattens one error-context value into something a problem+json body can carry."""
    if isinstance(value, enum.Enum):
        return value.value
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return str(value)
    if isinstance(value, _JSON_SCALARS):
        return value
    return str(value)


def normalize_ctx(ctx: Mapping[str, Any]) -> dict[str, Any]:
    return {k: normalize(v) for k, v in ctx.items()}


class CamelModel(BaseModel):
    """Wire DTO base: camelCase on the wire, snake_case in Python."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)
