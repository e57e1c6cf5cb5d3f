import logging
from http import HTTPStatus
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from app.domain.exceptions import AppError, NotFound, Conflict, Unauthorized, InvalidInput, \
    Forbidden, InternalError
from app.core.ctx import get_request_id

logger = logging.getLogger(__name__)

MEDIA_TYPE = "application/problem+json"

_STATUS_BY_CLASS: dict[type[AppError], HTTPStatus] = {
    NotFound: HTTPStatus.NOT_FOUND,
    Unauthorized: HTTPStatus.UNAUTHORIZED,
    Forbidden: HTTPStatus.FORBIDDEN,
    Conflict: HTTPStatus.CONFLICT,
    InvalidInput: HTTPStatus.BAD_REQUEST,
    InternalError: HTTPStatus.INTERNAL_SERVER_ERROR,
}


def _status_for(exc: AppError) -> HTTPStatus:
    # most specific registered ancestor wins; InvalidPromo and NoTicketAvailable resolve to InvalidInput
    for cls in type(exc).__mro__:
        if cls in _STATUS_BY_CLASS:
            return _STATUS_BY_CLASS[cls]
    return HTTPStatus.BAD_REQUEST


def _bearer_challenge(exc: Unauthorized) -> str:
    return f'Bearer realm="api", error="invalid_token", error_description="{exc}"'


def _field_name(loc) -> str | None:
    # drop the "body"/"query" prefix, keep the client-facing alias
    parts = [str(p) for p in loc if p not in ("body", "query", "path", "header")]
    return ".".join(parts) or None


def _error_entry(error: dict) -> dict:
    return {"field": _field_name(error.get("loc", ())), "type": error.get("type"), "message": error.get("msg")}


def _problem(
    request: Request,
    *,
    http_status: HTTPStatus,
    detail: str | None = None,
    extra: dict | None = None,
    headers: dict[str, str] | None = None,
) -> JSONResponse:
    body = {
        "status": int(http_status),
        "title": http_status.phrase,
        "detail": detail,
        "error": detail,
        "instance": str(request.url),
    }
    req_id = get_request_id()
    if req_id:
        body["trace_id"] = req_id
    if extra:
        body.update({k: v for k, v in extra.items() if v is not None})
    return JSONResponse(status_code=int(http_status), content=body, media_type=MEDIA_TYPE, headers=headers or {})


def register_error_handler(app: FastAPI) -> None:
    @app.exception_handler(AppError)
    async def _app_error_handler(request: Request, exc: AppError):
        http_status = _status_for(exc)
        headers = {"WWW-Authenticate": _bearer_challenge(exc)} if isinstance(exc, Unauthorized) else None
        return _problem(
            request,
            http_status=http_status,
            detail=str(exc),
            extra={"context": exc.ctx} if exc.ctx else None,
            headers=headers
        )

    @app.exception_handler(RequestValidationError)
    async def _validation_error_handler(request: Request, exc: RequestValidationError):
        errors = exc.errors()
        first = errors[0] if errors else {}
        field = _field_name(first.get("loc", ()))
        if first.get("type") == "missing" and field:
            detail = f"Missing {field}"
        else:
            detail = first.get("msg") or "Invalid request"
        return _problem(
            request,
            http_status=HTTPStatus.BAD_REQUEST,
            detail=detail,
            extra={"context": {"errors": [_error_entry(e) for e in errors]}}
        )

    @app.exception_handler(Exception)
    async def _unhandled_error_handler(request: Request, exc: Exception):
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return _problem(
            request,
            http_status=HTTPStatus.INTERNAL_SERVER_ERROR,
            detail="Internal server error"
        )
