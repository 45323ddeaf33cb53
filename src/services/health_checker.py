# src/services/health_checker.py

"""Connectivity health checks for the service's dependencies."""

import asyncio
import logging
import time
from dataclasses import asdict, dataclass
from typing import Any

from src.config.settings import Settings
from src.services.rate_limiter import RateLimiter

logger = logging.getLogger("canmade_search.health")


@dataclass
class HealthResult:
    """Result of a single dependency health check."""

    source_id: str
    status: str  # "ok", "slow", "down"
    latency_ms: float
    message: str

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


async def probe_store(limiter: RateLimiter) -> HealthResult:
    """Ping the shared rate-limit store and time the round trip."""
    start = time.monotonic()
    try:
        await limiter.ping()
    except Exception as exc:
        elapsed_ms = (time.monotonic() - start) * 1000
        return HealthResult(
            source_id="store",
            status="down",
            latency_ms=elapsed_ms,
            message=str(exc)[:80],
        )
    elapsed_ms = (time.monotonic() - start) * 1000

    if elapsed_ms > Settings.HEALTH_SLOW_MS:
        return HealthResult(
            source_id="store",
            status="slow",
            latency_ms=elapsed_ms,
            message="High latency",
        )
    return HealthResult(
        source_id="store",
        status="ok",
        latency_ms=elapsed_ms,
        message="",
    )


async def probe_provider() -> HealthResult:
    """Check that the search provider is configured.

    No request is sent: a real call costs tokens and tens of seconds.
    """
    if not Settings.OPENAI_API_KEY:
        return HealthResult(
            source_id="provider",
            status="down",
            latency_ms=0.0,
            message="OPENAI_API_KEY is not set",
        )
    return HealthResult(
        source_id="provider",
        status="ok",
        latency_ms=0.0,
        message=Settings.OPENAI_MODEL,
    )


class HealthChecker:
    """Runs concurrent health probes against all dependencies."""

    def __init__(self, limiter: RateLimiter) -> None:
        self.limiter = limiter

    async def check_all(self) -> list[HealthResult]:
        """Probe every dependency concurrently."""
        results: list[HealthResult] = list(
            await asyncio.gather(
                probe_store(self.limiter),
                probe_provider(),
            )
        )
        for r in results:
            logger.info(
                "Health check %s: %s (%.0fms) %s",
                r.source_id,
                r.status,
                r.latency_ms,
                r.message,
            )
        return results
