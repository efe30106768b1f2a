# =============================================================================
# Rate Limiter — Fixed-Window Counter per (user, endpoint class)
# =============================================================================
#
# Each key ("{user_id}:{endpoint}") owns one counter and one window end
# (`reset_time`, epoch seconds). A request inside the window increments the
# counter; once the counter reaches `max_requests` further requests are
# denied until the window ends. The first request after the window ends
# opens a fresh window.
#
# Three policies are configured (requests per window, defaults per minute):
#   transcription  5    — each call costs a speech-to-text request
#   notes          30
#   general        100
#
# STORES:
#   InMemoryRateLimitStore — dict owned by the app instance. Mutated only
#       from the event loop thread, so increments are atomic with respect
#       to other requests on the SAME process. Every process keeps its own
#       counts: N instances allow N x quota. Single-instance only.
#   RedisRateLimitStore    — shared counters (INCR + PEXPIRE) for
#       multi-instance deployments. Redis errors are logged and the request
#       is allowed through.
#
# Expired in-memory entries are removed by `RateLimiter.run_sweeper()`, a
# background task started by the application lifespan, so memory grows
# with the number of active users rather than with historical traffic.
# =============================================================================

from __future__ import annotations

import asyncio
import enum
import logging
import math
import time
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from typing import Protocol

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Data Structures
# ---------------------------------------------------------------------------


class EndpointClass(str, enum.Enum):
    TRANSCRIPTION = "transcription"
    NOTES = "notes"
    GENERAL = "general"


@dataclass(frozen=True)
class RateLimitPolicy:
    window_seconds: float
    max_requests: int


@dataclass(frozen=True)
class RateLimitResult:
    """Outcome of one rate-limit check."""

    allowed: bool
    remaining: int
    reset_time: float  # epoch seconds at which the current window ends
    limit: int

    def headers(self) -> dict[str, str]:
        return {
            "X-RateLimit-Limit": str(self.limit),
            "X-RateLimit-Remaining": str(self.remaining),
            "X-RateLimit-Reset": str(math.ceil(self.reset_time)),
        }


@dataclass
class RateLimitEntry:
    count: int
    reset_time: float


def create_rate_limit_key(user_id: str, endpoint: str | EndpointClass) -> str:
    if isinstance(endpoint, EndpointClass):
        endpoint = endpoint.value
    return f"{user_id}:{endpoint}"


def build_policies(settings) -> dict[EndpointClass, RateLimitPolicy]:
    """Policies for every endpoint class, from the rate-limit settings."""
    window = settings.rate_limit_window_seconds
    return {
        EndpointClass.TRANSCRIPTION: RateLimitPolicy(
            window, settings.rate_limit_transcription,
        ),
        EndpointClass.NOTES: RateLimitPolicy(window, settings.rate_limit_notes),
        EndpointClass.GENERAL: RateLimitPolicy(
            window, settings.rate_limit_general,
        ),
    }


# ---------------------------------------------------------------------------
# Store Protocol
# ---------------------------------------------------------------------------


class RateLimitStore(Protocol):
    async def hit(
        self, key: str, policy: RateLimitPolicy, now: float,
    ) -> RateLimitResult:
        """Count one request for `key` and report whether it is allowed."""
        ...

    async def sweep(self, now: float) -> int:
        """Drop expired entries. Returns how many were removed."""
        ...


# ---------------------------------------------------------------------------
# Implementation 1: In-process dictionary
# ---------------------------------------------------------------------------


class InMemoryRateLimitStore:
    def __init__(self) -> None:
        self._entries: dict[str, RateLimitEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    async def hit(
        self, key: str, policy: RateLimitPolicy, now: float,
    ) -> RateLimitResult:
        # No await in here: the read-modify-write cannot interleave with
        # another request on the same event loop.
        entry = self._entries.get(key)
        if entry is None or now > entry.reset_time:
            entry = RateLimitEntry(count=0, reset_time=now + policy.window_seconds)
            self._entries[key] = entry

        if entry.count >= policy.max_requests:
            return RateLimitResult(
                allowed=False,
                remaining=0,
                reset_time=entry.reset_time,
                limit=policy.max_requests,
            )

        entry.count += 1
        return RateLimitResult(
            allowed=True,
            remaining=policy.max_requests - entry.count,
            reset_time=entry.reset_time,
            limit=policy.max_requests,
        )

    async def sweep(self, now: float) -> int:
        expired = [
            key for key, entry in self._entries.items() if now > entry.reset_time
        ]
        for key in expired:
            del self._entries[key]
        return len(expired)


# ---------------------------------------------------------------------------
# Implementation 2: Redis (shared across instances)
# ---------------------------------------------------------------------------


class RedisRateLimitStore:
    """
    Fixed window on Redis: INCR the key, start its TTL on the first hit of
    a window (PEXPIRE NX) and read the remaining TTL to report the reset
    time. Denied requests still increment the counter; the outcome is the
    same because the window end does not move.
    """

    def __init__(self, redis_url: str, prefix: str = "ratelimit") -> None:
        self._redis_url = redis_url
        self._prefix = prefix
        self._client = None

    def _get_client(self):
        """Lazily create and cache the async Redis client."""
        if self._client is None:
            import redis.asyncio as aioredis
            self._client = aioredis.from_url(
                self._redis_url, decode_responses=True,
            )
        return self._client

    async def hit(
        self, key: str, policy: RateLimitPolicy, now: float,
    ) -> RateLimitResult:
        window_ms = int(policy.window_seconds * 1000)
        redis_key = f"{self._prefix}:{key}"

        try:
            pipe = self._get_client().pipeline()
            pipe.incr(redis_key)
            pipe.pexpire(redis_key, window_ms, nx=True)
            pipe.pttl(redis_key)
            count, _, ttl_ms = await pipe.execute()
        except Exception as e:
            logger.warning(
                "Rate limiter unavailable (Redis error): %s. "
                "Allowing request through.",
                e,
            )
            return RateLimitResult(
                allowed=True,
                remaining=policy.max_requests,
                reset_time=now + policy.window_seconds,
                limit=policy.max_requests,
            )

        if ttl_ms is None or ttl_ms < 0:
            ttl_ms = window_ms
        reset_time = now + ttl_ms / 1000

        if count > policy.max_requests:
            return RateLimitResult(
                allowed=False,
                remaining=0,
                reset_time=reset_time,
                limit=policy.max_requests,
            )
        return RateLimitResult(
            allowed=True,
            remaining=policy.max_requests - count,
            reset_time=reset_time,
            limit=policy.max_requests,
        )

    async def sweep(self, now: float) -> int:
        # Keys carry their own TTL
        return 0

    async def close(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None


# ---------------------------------------------------------------------------
# Limiter
# ---------------------------------------------------------------------------


class RateLimiter:
    """
    Applies per-endpoint policies on top of a RateLimitStore.

    One instance is created per application and kept on `app.state`;
    tests build their own with a fake clock.
    """

    def __init__(
        self,
        store: RateLimitStore,
        policies: Mapping[EndpointClass, RateLimitPolicy],
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.store = store
        self.policies = dict(policies)
        self._clock = clock

    async def check(self, key: str, policy: RateLimitPolicy) -> RateLimitResult:
        return await self.store.hit(key, policy, self._clock())

    async def check_endpoint(
        self, user_id: str, endpoint: EndpointClass,
    ) -> RateLimitResult:
        result = await self.check(
            create_rate_limit_key(user_id, endpoint), self.policies[endpoint],
        )
        if not result.allowed:
            logger.info(
                "Rate limit exceeded: user=%s endpoint=%s limit=%d",
                user_id, endpoint.value, result.limit,
            )
        return result

    async def sweep(self) -> int:
        removed = await self.store.sweep(self._clock())
        if removed:
            logger.debug("Rate limiter sweep removed %d expired entries", removed)
        return removed

    async def run_sweeper(self, interval_seconds: float) -> None:
        """Sweep forever; the lifespan cancels this task on shutdown."""
        while True:
            await asyncio.sleep(interval_seconds)
            try:
                await self.sweep()
            except Exception:
                logger.exception("Rate limiter sweep failed")


def create_rate_limiter(settings) -> RateLimiter:
    """Limiter for the configured backend."""
    if settings.rate_limit_backend == "redis":
        store: RateLimitStore = RedisRateLimitStore(settings.redis_url)
    else:
        store = InMemoryRateLimitStore()
    return RateLimiter(store, build_policies(settings))
