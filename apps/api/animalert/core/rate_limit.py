"""Per-client request limits (slowapi), shared across workers through Redis."""

import logging

import redis
from slowapi import Limiter
from slowapi.util import get_remote_address

from animalert.core.config import settings

logger = logging.getLogger(__name__)

MEMORY_STORAGE = "memory://"

COMPLAINT_SUBMIT_LIMIT = f"{settings.RATE_LIMIT_COMPLAINTS}/minute"
API_LIMIT = f"{settings.RATE_LIMIT_API}/minute"


def _storage_uri() -> str:
    try:
        redis.from_url(settings.REDIS_URL, socket_connect_timeout=1).ping()
    except (redis.RedisError, ValueError) as exc:
        logger.warning("Redis unavailable for rate limiting, using in-memory: %s", exc)
        return MEMORY_STORAGE
    return settings.REDIS_URL


def build_limiter() -> Limiter:
    """Limiter backed by Redis when reachable; disabled entirely under TESTING."""
    if settings.TESTING:
        return Limiter(key_func=get_remote_address, storage_uri=MEMORY_STORAGE, enabled=False)

    default_limits = [API_LIMIT] if settings.RATE_LIMIT_API > 0 else []
    return Limiter(
        key_func=get_remote_address,
        storage_uri=_storage_uri(),
        default_limits=default_limits,
    )


limiter = build_limiter()
