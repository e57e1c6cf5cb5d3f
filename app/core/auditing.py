import json
import time
import logging
from datetime import timezone, datetime
from typing import Any, Mapping
from fastapi import HTTPException
from sqlalchemy.exc import IntegrityError
from app.core.config import AUDIT_STREAM
from app.core.ctx import get_redis, get_request_id, get_route, get_actor_id, get_actor_role, get_client_ip
from app.domain.exceptions import AppError

logger = logging.getLogger("app.audit")

TARGET_FIELDS = ("object_type", "object_id", "event_id", "ticket_type_id", "ticket_id", "promo_code_id")


class AuditStatus:
    SUCCESS = "SUCCESS"
    FAIL = "FAIL"


def _reason_from_exception(exception: BaseException | None) -> str | None:
    if exception is None:
        return None
    if isinstance(exception, HTTPException):
        return str(exception.detail)
    if isinstance(exception, IntegrityError):
        return "Integrity error"
    return str(exception)


def build_audit_payload(
        *,
        scope: str,
        action: str,
        status: str,
        target: Mapping[str, Any],
        reason: str | None = None,
        meta: Mapping[str, Any] | None = None
) -> dict:
    """One audit stream entry; actor and request fields come from the request context."""
    payload = {
        "request_id": get_request_id(),
        "scope": scope,
        "action": action,
        "status": status,
        "actor_user_id": get_actor_id(),
        "actor_role": get_actor_role(),
        "actor_ip": get_client_ip(),
        "route": get_route(),
        "reason": reason,
        "meta": dict(meta or {}),
    }
    payload.update({field: target.get(field) for field in TARGET_FIELDS})
    return payload


async def audit_emit(payload: Mapping[str, Any]) -> str | None:
    r = get_redis()
    if not r:
        return None
    try:
        return await r.xadd(AUDIT_STREAM, {"json": json.dumps(payload, default=str)})
    except Exception:
        logger.warning(
            "Audit emit failed scope=%s action=%s", payload.get("scope"), payload.get("action"), exc_info=True
        )
        return None


class AuditSpan:
    """
    Audits one service operation: SUCCESS when the block exits cleanly, FAIL with the
    exception text otherwise. Never suppresses the exception and never fails the caller.

    Target ids may be filled in on the span inside the block once they are known.
    """

    def __init__(self, *, scope: str, action: str,
                 object_type: str | None = None, object_id: int | None = None,
                 event_id: int | None = None, ticket_type_id: int | None = None,
                 ticket_id: int | None = None, promo_code_id: int | None = None,
                 meta: Mapping[str, Any] | None = None):
        self.scope = scope
        self.action = action
        self.object_type = object_type
        self.object_id = object_id
        self.event_id = event_id
        self.ticket_type_id = ticket_type_id
        self.ticket_id = ticket_id
        self.promo_code_id = promo_code_id
        self.meta = dict(meta or {})
        self._t0 = 0.0

    async def __aenter__(self):
        self._t0 = time.perf_counter()
        started = datetime.now(timezone.utc)
        self.meta.setdefault("occurred_at", started.isoformat(timespec="milliseconds").replace("+00:00", "Z"))
        return self

    async def __aexit__(self, exc_type, exc, tb):
        self.meta["duration_ms"] = int((time.perf_counter() - self._t0) * 1000)
        if exc is not None:
            self.meta["error"] = type(exc).__name__
            if isinstance(exc, AppError) and exc.ctx:
                self.meta["error_ctx"] = exc.ctx

        await audit_emit(build_audit_payload(
            scope=self.scope,
            action=self.action,
            status=AuditStatus.FAIL if exc else AuditStatus.SUCCESS,
            target={field: getattr(self, field) for field in TARGET_FIELDS},
            reason=_reason_from_exception(exc),
            meta=self.meta
        ))
        return False
