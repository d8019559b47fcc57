"""
Domain events over Redis Pub/Sub.

Events are best-effort: Redis Pub/Sub keeps nothing for absent subscribers,
and a publication failure never rolls back the state change it describes.

Usage:
    from app.core.events import publish_event

    await publish_event("directory.professional.approved", {"professional_id": "..."})
"""

import asyncio
import json
import logging
import uuid
from contextlib import asynccontextmanager
from datetime import UTC, datetime

import redis.asyncio as redis
from fastapi import FastAPI
from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode
from pydantic import BaseModel

from app.core.config import settings

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

PROFESSIONAL_REGISTERED = "directory.professional.registered"
PROFESSIONAL_APPROVED = "directory.professional.approved"
PROFESSIONAL_REJECTED = "directory.professional.rejected"
PROFESSIONAL_BLOCKED = "directory.professional.blocked"
PROFESSIONAL_UNBLOCKED = "directory.professional.unblocked"

# Created at startup, reused for every publication
redis_client: redis.Redis | None = None


async def init_redis():
    """Create the Redis client and check the connection."""
    global redis_client
    redis_client = redis.from_url(
        settings.REDIS_URL,
        db=settings.REDIS_DB,
        decode_responses=True,
        socket_timeout=5.0,
        socket_connect_timeout=5.0,
    )
    await redis_client.ping()
    logger.info(f"Redis client initialized: {settings.REDIS_URL}")


async def close_redis():
    global redis_client
    if redis_client:
        await redis_client.aclose()
        redis_client = None
        logger.info("Redis client closed")


async def publish(subject: str, payload: dict | BaseModel, max_retries: int = 3):
    """
    Publish an event with exponential backoff between attempts.

    Args:
        subject: Event subject (e.g. "directory.professional.approved")
        payload: Event data (dict or Pydantic model)
        max_retries: Maximum number of attempts

    Raises:
        RuntimeError: If Redis was never initialized
        Exception: The last error once every attempt failed
    """
    if redis_client is None:
        raise RuntimeError("Redis client not initialized")

    if isinstance(payload, BaseModel):
        payload_dict = payload.model_dump(mode="json")
    else:
        payload_dict = payload

    message_id = str(uuid.uuid4())
    event_data = {
        "id": message_id,
        "subject": subject,
        "timestamp": datetime.now(UTC).isoformat(),
        "data": payload_dict,
    }

    span_attributes = {
        "messaging.system": "redis",
        "messaging.destination": subject,
        "messaging.message.id": message_id,
    }

    with tracer.start_as_current_span(
        f"publish.{subject}", kind=trace.SpanKind.PRODUCER, attributes=span_attributes
    ) as span:
        for attempt in range(max_retries):
            try:
                await redis_client.publish(subject, json.dumps(event_data, default=str))
                logger.debug(f"Event '{subject}' published with id {message_id}")
                span.add_event("event_published", {"attempt": attempt + 1})
                return
            except Exception as e:
                wait_time = 2**attempt
                if attempt < max_retries - 1:
                    logger.warning(
                        f"Publishing '{subject}' failed (attempt {attempt + 1}/{max_retries}): {e}. "
                        f"Retrying in {wait_time}s"
                    )
                    span.add_event(
                        "publish_retry",
                        {"attempt": attempt + 1, "error": str(e), "wait_time": wait_time},
                    )
                    await asyncio.sleep(wait_time)
                else:
                    error_msg = f"Publishing '{subject}' failed after {max_retries} attempts: {e}"
                    logger.error(error_msg, exc_info=True)
                    span.set_status(Status(StatusCode.ERROR, error_msg))
                    span.record_exception(e)
                    raise


async def publish_event(subject: str, payload: dict | BaseModel) -> bool:
    """
    Publish without letting a failure escape.

    Returns:
        True if the event was published
    """
    if redis_client is None:
        logger.debug(f"Redis not initialized, event '{subject}' dropped")
        return False
    try:
        await publish(subject, payload)
        return True
    except Exception as e:
        logger.warning(f"Event '{subject}' not published: {e}")
        return False


@asynccontextmanager
async def lifespan(app: FastAPI):
    """FastAPI lifespan for the Redis client. Startup continues without Redis."""
    try:
        await init_redis()
    except Exception as e:
        logger.warning(f"Redis unavailable, domain events disabled: {e}")
        await close_redis()

    yield

    await close_redis()


__all__ = [
    "PROFESSIONAL_APPROVED",
    "PROFESSIONAL_BLOCKED",
    "PROFESSIONAL_REGISTERED",
    "PROFESSIONAL_REJECTED",
    "PROFESSIONAL_UNBLOCKED",
    "lifespan",
    "publish",
    "publish_event",
]
