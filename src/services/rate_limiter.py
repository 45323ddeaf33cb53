# src/services/rate_limiter.py

"""Sliding-window rate limiter backed by a shared Redis sorted set."""

import hashlib
import logging
import math
import secrets
import time
from collections.abc import Callable, Mapping

from redis.asyncio import Redis
from redis.exceptions import RedisError

from src.config.settings import Settings
from src.models.errors import StoreUnavailable

logger = logging.getLogger("canmade_search.ratelimit")

UNKNOWN_CLIENT = "unknown"


def client_key(
    headers: Mapping[str, str],
    peer_host: str | None = None,
    credential: str | None = None,
) -> str:
    """Derive the rate-limit identity for one request.

    The address is the first hop of ``X-Forwarded-For``, then
    ``X-Real-IP``, then the direct peer, then ``"unknown"``. A presented
    credential is appended as a short digest so authenticated and
    anonymous traffic from one address get separate windows.
    """
    address = ""
    forwarded = headers.get("x-forwarded-for", "")
    if forwarded:
        address = forwarded.split(",")[0].strip()
    if not address:
        address = headers.get("x-real-ip", "").strip()
    if not address:
        address = (peer_host or "").strip()
    if not address:
        address = UNKNOWN_CLIENT

    if credential:
        digest = hashlib.sha256(credential.encode("utf-8")).hexdigest()
        return f"{address}:{digest[:16]}"
    return address


def request_credential(headers: Mapping[str, str]) -> str | None:
    """Return the API key or bearer token a request presents, if any."""
    api_key = headers.get("x-api-key", "").strip()
    if api_key:
        return api_key
    auth = headers.get("authorization", "")
    if auth.startswith("Bearer "):
        token = auth[len("Bearer "):].strip()
        return token or None
    return None


class RateLimiter:
    """Sliding-window admission control shared by every service instance.

    Each client owns a sorted set of request timestamps. A check prunes
    entries older than the window, records the current request, counts
    the set, and refreshes its TTL, all in one MULTI/EXEC transaction,
    so concurrent checks from any number of processes stay consistent.
    """

    def __init__(
        self,
        redis: Redis,
        key_prefix: str | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.settings = Settings()
        self.redis = redis
        self.key_prefix: str = (
            key_prefix
            if key_prefix is not None
            else self.settings.RATE_LIMIT_KEY_PREFIX
        )
        self._clock = clock

    async def is_rate_limited(
        self,
        client: str,
        window_ms: int | None = None,
        max_requests: int | None = None,
    ) -> bool:
        """Record a request for *client*; return True if it must be denied.

        The count includes the current request, so ``max_requests``
        requests pass per window and the next one is limited.

        Raises:
            StoreUnavailable: if the shared store cannot be reached.
        """
        window = (
            self.settings.RATE_LIMIT_WINDOW_MS
            if window_ms is None
            else window_ms
        )
        limit = (
            self.settings.RATE_LIMIT_MAX_REQUESTS
            if max_requests is None
            else max_requests
        )
        now_ms = int(self._clock() * 1000)
        key = f"{self.key_prefix}{client}"
        # Unique member so same-millisecond requests are all counted
        member = f"{now_ms}-{secrets.token_hex(4)}"

        try:
            async with self.redis.pipeline(transaction=True) as pipe:
                pipe.zremrangebyscore(key, 0, now_ms - window)
                pipe.zadd(key, {member: now_ms})
                pipe.zcard(key)
                pipe.expire(key, math.ceil(window / 1000))
                _, _, count, _ = await pipe.execute()
        except (RedisError, OSError) as exc:
            logger.error(
                "Rate-limit store unavailable for %s: %s",
                client,
                exc,
                exc_info=True,
            )
            raise StoreUnavailable(
                f"Rate-limit store unavailable: {exc}"
            ) from exc

        limited = int(count) > limit
        if limited:
            logger.warning(
                "Rate limit exceeded for %s (%d requests in %dms, max %d)",
                client,
                count,
                window,
                limit,
            )
        else:
            logger.debug(
                "Admitted %s (%d/%d in window)", client, count, limit
            )
        return limited

    async def ping(self) -> bool:
        """Return True if the shared store answers PING.

        Raises:
            StoreUnavailable: if the shared store cannot be reached.
        """
        try:
            return bool(await self.redis.ping())
        except (RedisError, OSError) as exc:
            raise StoreUnavailable(
                f"Rate-limit store unavailable: {exc}"
            ) from exc


def create_redis(url: str | None = None) -> Redis:
    """Build the process-wide Redis client (connection pool) once."""
    settings = Settings()
    return Redis.from_url(
        url or settings.REDIS_URL,
        socket_timeout=settings.STORE_SOCKET_TIMEOUT,
        socket_connect_timeout=settings.STORE_SOCKET_TIMEOUT,
        decode_responses=True,
    )
