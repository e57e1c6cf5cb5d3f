import os
import json
import asyncio
import signal
import socket
import logging
import redis.asyncio as redis
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker
from sqlalchemy import text, bindparam
from sqlalchemy.dialects.postgresql import JSONB, INET
from sqlalchemy.exc import SQLAlchemyError
from app.core.config import DATABASE_URL, AUDIT_STREAM, AUDIT_GROUP, AUDIT_BATCH, AUDIT_BLOCK_MS, LOG_LEVEL, \
    LOG_FORMAT
from app.core.redis import create_redis


logger = logging.getLogger("audit.worker")

RETRY_EVERY_S = 30
RETRY_MIN_IDLE_MS = 60_000

INSERT_AUDIT = text("""
    INSERT INTO audit.audit_logs
    (request_id, scope, action, actor_user_id, actor_role, actor_ip, route,
     object_type, object_id, event_id, ticket_type_id, ticket_id, promo_code_id,
     status, reason, meta)
    VALUES
    (:request_id, :scope, :action, :actor_user_id, :actor_role, :actor_ip, :route,
     :object_type, :object_id, :event_id, :ticket_type_id, :ticket_id, :promo_code_id,
     :status, :reason, :meta)
""").bindparams(
    bindparam("actor_ip", type_=INET),
    bindparam("meta", type_=JSONB),
)


def parse_entry(raw_json: str | None) -> dict:
    payload = json.loads(raw_json) if raw_json else {}
    if not isinstance(payload, dict):
        raise ValueError("payload is not a JSON object")
    if not payload.get("scope") or not payload.get("action"):
        raise ValueError("missing required fields: scope/action")
    return payload


def params_from_payload(payload: dict) -> dict:
    status = (payload.get("status") or "SUCCESS").upper()
    return {
        "request_id": payload.get("request_id"),
        "scope": payload["scope"],
        "action": payload["action"],
        "actor_user_id": payload.get("actor_user_id"),
        "actor_role": payload.get("actor_role"),
        "actor_ip": payload.get("actor_ip"),
        "route": payload.get("route"),
        "object_type": payload.get("object_type"),
        "object_id": payload.get("object_id"),
        "event_id": payload.get("event_id"),
        "ticket_type_id": payload.get("ticket_type_id"),
        "ticket_id": payload.get("ticket_id"),
        "promo_code_id": payload.get("promo_code_id"),
        "status": "SUCCESS" if status == "SUCCESS" else "FAIL",
        "reason": payload.get("reason"),
        "meta": dict(payload.get("meta") or {}),
    }


async def _ensure_group(r: redis.Redis) -> None:
    try:
        await r.xgroup_create(
            name=AUDIT_STREAM,
            groupname=AUDIT_GROUP,
            id="$",
            mkstream=True,
        )
        logger.info("XGROUP created stream=%s group=%s", AUDIT_STREAM, AUDIT_GROUP)
    except redis.ResponseError as e:
        if "BUSYGROUP" in str(e):
            logger.info("XGROUP already exists stream=%s group=%s", AUDIT_STREAM, AUDIT_GROUP)
        else:
            raise


async def process_entries(r: redis.Redis, session, entries, *, source: str) -> int:
    """
    Inserts one batch of stream entries in a single transaction and returns how many were written.
    Rows that fail to insert stay in the PEL for a later XAUTOCLAIM; malformed ones are acked and dropped.
    """
    written = 0
    async with session() as db:
        async with db.begin():
            for msg_id, fields in entries:
                try:
                    payload = parse_entry(fields.get("json"))
                    async with db.begin_nested():
                        await db.execute(INSERT_AUDIT, params_from_payload(payload))
                    await r.xack(AUDIT_STREAM, AUDIT_GROUP, msg_id)
                    written += 1
                except SQLAlchemyError:
                    logger.exception("DB insert failed (%s); keeping id=%s in PEL", source, msg_id)
                except ValueError as e:
                    logger.warning("Invalid payload (%s); dropping id=%s err=%s", source, msg_id, e)
                    try:
                        await r.xack(AUDIT_STREAM, AUDIT_GROUP, msg_id)
                    except redis.RedisError:
                        logger.exception("XACK failed id=%s", msg_id)
    return written


async def run() -> None:
    logging.basicConfig(level=LOG_LEVEL, format=LOG_FORMAT)

    r = await create_redis()
    if r is None:
        raise SystemExit("REDIS_URL is required for the audit worker")
    await _ensure_group(r)

    engine = create_async_engine(DATABASE_URL, pool_pre_ping=True)
    session = async_sessionmaker(bind=engine, expire_on_commit=False)

    stop = asyncio.Event()

    def _graceful(*_):
        stop.set()

    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, _graceful)
        except NotImplementedError:
            logger.debug("Signal handlers not supported on this platform")

    consumer = f"{socket.gethostname()}-{os.getpid()}"
    logger.info(
        "Audit worker started | stream=%s group=%s consumer=%s batch=%d block_ms=%d",
        AUDIT_STREAM, AUDIT_GROUP, consumer, AUDIT_BATCH, AUDIT_BLOCK_MS,
    )

    last_retry = loop.time()

    try:
        while not stop.is_set():
            resp = await r.xreadgroup(
                groupname=AUDIT_GROUP,
                consumername=consumer,
                streams={AUDIT_STREAM: ">"},
                count=AUDIT_BATCH,
                block=AUDIT_BLOCK_MS,
            )
            if resp:
                await process_entries(r, session, resp[0][1], source="XREADGROUP")

            now = loop.time()
            if now - last_retry > RETRY_EVERY_S:
                last_retry = now
                try:
                    _, msgs, _ = await r.xautoclaim(
                        name=AUDIT_STREAM,
                        groupname=AUDIT_GROUP,
                        consumername=consumer,
                        min_idle_time=RETRY_MIN_IDLE_MS,
                        start_id="0",
                        count=100,
                    )
                    if msgs:
                        logger.info("XAUTOCLAIM: retrying %d pending messages", len(msgs))
                        await process_entries(r, session, msgs, source="XAUTOCLAIM")
                except (redis.RedisError, SQLAlchemyError):
                    logger.exception("XAUTOCLAIM failed")
    finally:
        logger.info("Shutting down audit worker...")
        await r.aclose()
        await engine.dispose()
        logger.info("Audit worker stopped.")


if __name__ == "__main__":
    asyncio.run(run())
