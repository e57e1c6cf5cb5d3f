import enum
from app.core.utils.serialization import normalize_ctx


class AppError(Exception):
    def __init__(self, message: str = "", *, ctx: dict | None = None) -> None:
        super().__init__(message or self.__class__.__name__)
        self.ctx = normalize_ctx(ctx or {})


class NotFound(AppError):
    pass
class Unauthorized(AppError):
    pass
class Forbidden(AppError):
    pass
class Conflict(AppError):
    pass
class InvalidInput(AppError):
    pass
class InternalError(AppError):
    pass


class NoTicketAvailable(InvalidInput):
    def __init__(self, ticket_type_id: int) -> None:
        super().__init__("No available ticket", ctx={"ticket_type_id": ticket_type_id})
        self.ticket_type_id = ticket_type_id


class PromoRejection(str, enum.Enum):
    NOT_FOUND = "NOT_FOUND"
    WRONG_SCOPE = "WRONG_SCOPE"
    OUT_OF_WINDOW = "OUT_OF_WINDOW"
    EXHAUSTED = "EXHAUSTED"


class InvalidPromo(InvalidInput):
    """Every cause renders the same message; the cause travels in ``ctx["cause"]``."""

    MESSAGE = "Invalid or expired promo code"

    def __init__(self, cause: PromoRejection, *, code: str, ticket_type_id: int | None = None) -> None:
        super().__init__(
            self.MESSAGE,
            ctx={"cause": cause.value, "code": code, "ticket_type_id": ticket_type_id}
        )
        self.cause = cause
        self.code = code
