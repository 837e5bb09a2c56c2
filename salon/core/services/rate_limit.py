"""
Rate limiting service with configurable backends.

This module provides fixed-window rate limiting with support for both
in-memory and Redis backends, plus the FastAPI dependency that guards the
public booking endpoints per client IP.

The memory backend is process-local: counters reset on restart and are not
shared between instances. Select the Redis backend
(``RATE_LIMIT_BACKEND=redis``) when quotas must be global.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
import math
from typing import Callable, Literal

from fastapi import Request

from salon.core.config import rate_limit_logger, settings
from salon.core.exceptions.types import RateLimitExceededException
from salon.core.services.redis_service import RedisService
from salon.core.utils import get_client_ip


def _retry_after_seconds(window: float) -> int:
    return max(1, math.ceil(window))


@dataclass
class RateLimitResult:
    """
    Result of a rate limit check.

    Attributes:
        allowed: Whether the request is allowed.
        remaining: Number of remaining requests in the current window.
        limit: The maximum number of requests allowed.
        reset_at: When the rate limit window resets.
        retry_after: Seconds until the client can retry (only if not allowed).
    """

    allowed: bool
    remaining: int
    limit: int
    reset_at: datetime
    retry_after: int | None = None


class RateLimitBackend(ABC):
    """
    Abstract base class for rate limit backends.

    Implementations decide whether one more request fits in the window.
    """

    @abstractmethod
    async def check(self, key: str, limit: int, window: float) -> RateLimitResult:
        """
        Check if a request is allowed under the rate limit.

        Args:
            key: The rate limit key (e.g., "rate_limit:otp:192.168.1.1").
            limit: Maximum number of requests allowed in the window.
            window: Time window in seconds.

        Returns:
            RateLimitResult with the check outcome.
        """
        pass


class MemoryBackend(RateLimitBackend):
    """
    In-memory rate limit backend using a dictionary.

    Each key maps to ``(count, reset_at)``. A key whose window has passed is
    started fresh on its next request; once the store holds more than
    ``max_keys`` entries, expired ones are pruned to bound memory.

    Note:
        Data is lost on application restart.
        Not suitable for multi-process or multi-instance deployments.
    """

    def __init__(self, max_keys: int | None = None):
        """
        Initialize the memory backend with an empty store.

        Args:
            max_keys: Store size above which expired entries are pruned.
                Defaults to settings.RATE_LIMIT_MAX_KEYS.
        """
        self._store: dict[str, tuple[int, datetime]] = {}
        self._max_keys = max_keys if max_keys is not None else settings.RATE_LIMIT_MAX_KEYS

    def _prune_expired(self, now: datetime) -> None:
        expired = [key for key, (_, reset_at) in self._store.items() if now >= reset_at]
        for key in expired:
            del self._store[key]
        if expired:
            rate_limit_logger.debug(f"Pruned {len(expired)} expired rate limit entries")

    async def check(self, key: str, limit: int, window: float) -> RateLimitResult:
        """
        Check if a request is allowed under the rate limit.

        Args:
            key: The rate limit key.
            limit: Maximum requests allowed.
            window: Time window in seconds.

        Returns:
            RateLimitResult with the check outcome.
        """
        now = datetime.now(timezone.utc)

        if len(self._store) > self._max_keys:
            self._prune_expired(now)

        entry = self._store.get(key)

        # New key or window expired, start fresh
        if entry is None or now >= entry[1]:
            reset_at = now + timedelta(seconds=window)
            self._store[key] = (1, reset_at)
            rate_limit_logger.debug(f"Rate limit window started for key: {key}")
            return RateLimitResult(
                allowed=True,
                remaining=limit - 1,
                limit=limit,
                reset_at=reset_at,
            )

        count, reset_at = entry

        if count >= limit:
            retry_after = _retry_after_seconds(window)
            rate_limit_logger.warning(
                f"Rate limit exceeded for key: {key}, retry after: {retry_after}s"
            )
            return RateLimitResult(
                allowed=False,
                remaining=0,
                limit=limit,
                reset_at=reset_at,
                retry_after=retry_after,
            )

        count += 1
        self._store[key] = (count, reset_at)
        remaining = limit - count
        rate_limit_logger.debug(
            f"Rate limit check passed for key: {key}, remaining: {remaining}"
        )
        return RateLimitResult(
            allowed=True,
            remaining=remaining,
            limit=limit,
            reset_at=reset_at,
        )


class RedisBackend(RateLimitBackend):
    """
    Redis-based rate limit backend.

    This backend is suitable for deployments where multiple instances need
    to share rate limit state. Uses Redis INCR with expiration for atomic
    counter operations.
    """

    async def check(self, key: str, limit: int, window: float) -> RateLimitResult:
        """
        Check if a request is allowed under the rate limit.

        Uses Redis INCR for atomic increment and sets expiration on first request.
        If Redis is unreachable the request is allowed and a warning is logged.

        Args:
            key: The rate limit key.
            limit: Maximum requests allowed.
            window: Time window in seconds.

        Returns:
            RateLimitResult with the check outcome.
        """
        now = datetime.now(timezone.utc)
        window_seconds = _retry_after_seconds(window)

        count = await RedisService.incr(key)

        if count is None:
            rate_limit_logger.warning(
                f"Redis error during rate limit check for key: {key}, allowing request"
            )
            return RateLimitResult(
                allowed=True,
                remaining=limit - 1,
                limit=limit,
                reset_at=now + timedelta(seconds=window_seconds),
            )

        # Set expiration on first request
        if count == 1:
            await RedisService.expire(key, window_seconds)

        ttl = await RedisService.ttl(key)
        if ttl is None or ttl < 0:
            ttl = window_seconds

        reset_at = now + timedelta(seconds=ttl)

        if count > limit:
            rate_limit_logger.warning(
                f"Rate limit exceeded for key: {key}, count: {count}, retry after: {window_seconds}s"
            )
            return RateLimitResult(
                allowed=False,
                remaining=0,
                limit=limit,
                reset_at=reset_at,
                retry_after=window_seconds,
            )

        remaining = limit - count
        rate_limit_logger.debug(
            f"Rate limit check passed for key: {key}, remaining: {remaining}"
        )
        return RateLimitResult(
            allowed=True,
            remaining=remaining,
            limit=limit,
            reset_at=reset_at,
        )


class RateLimiter:
    """
    Rate limiter with configurable backend.

    Args:
        backend: The backend to use ("memory" or "redis").
                 If None, uses settings.RATE_LIMIT_BACKEND.

    Example:
        >>> limiter = RateLimiter(backend="memory")
        >>> result = await limiter.check("my_key", limit=10, window=60)
        >>> if not result.allowed:
        ...     raise RateLimitExceededException(retry_after=result.retry_after)
    """

    def __init__(self, backend: Literal["memory", "redis"] | None = None):
        """
        Initialize the rate limiter.

        Args:
            backend: The backend type. Defaults to settings.RATE_LIMIT_BACKEND.
        """
        if backend is None:
            backend = settings.RATE_LIMIT_BACKEND  # type: ignore[assignment]

        if backend == "redis":
            self._backend: RateLimitBackend = RedisBackend()
        else:
            self._backend = MemoryBackend()

        self.backend_name = backend
        rate_limit_logger.debug(f"RateLimiter initialized with {backend} backend")

    async def check(self, key: str, limit: int, window: float) -> RateLimitResult:
        """
        Check if a request is allowed under the rate limit.

        Args:
            key: The rate limit key.
            limit: Maximum requests allowed.
            window: Time window in seconds.

        Returns:
            RateLimitResult with the check outcome.
        """
        return await self._backend.check(key, limit, window)


# Process-wide limiter shared by every request
_rate_limiter: RateLimiter | None = None


def get_rate_limiter() -> RateLimiter:
    """Return the shared RateLimiter, creating it on first use."""
    global _rate_limiter
    if _rate_limiter is None:
        _rate_limiter = RateLimiter()
    return _rate_limiter


def reset_rate_limiter(limiter: RateLimiter | None = None) -> None:
    """Replace the shared limiter (a fresh one when ``limiter`` is None)."""
    global _rate_limiter
    _rate_limiter = limiter


def format_rate_limit_key(scope: str, identifier: str) -> str:
    """
    Format a rate limit key with consistent structure.

    Args:
        scope: The budget the request counts against (e.g. "otp").
        identifier: The client identifier, usually an IP address.

    Returns:
        Formatted rate limit key string.

    Example:
        >>> format_rate_limit_key("otp", "192.168.1.1")
        'rate_limit:otp:192.168.1.1'
    """
    return f"rate_limit:{scope}:{identifier}"


def rate_limit_by_ip(scope: str, limit: int, window: float) -> Callable:
    """
    Create a FastAPI dependency for IP-based rate limiting.

    All routes declaring the same ``scope`` draw from one budget per client.

    Args:
        scope: Name of the shared budget.
        limit: Maximum requests allowed per window.
        window: Time window in seconds.

    Returns:
        An async dependency that raises RateLimitExceededException on denial.
    """

    async def dependency(request: Request) -> RateLimitResult:
        client_ip = get_client_ip(request)
        key = format_rate_limit_key(scope, client_ip)

        result = await get_rate_limiter().check(key, limit, window)

        if not result.allowed:
            raise RateLimitExceededException(retry_after=result.retry_after)

        return result

    return dependency


__all__ = [
    "RateLimitResult",
    "RateLimitBackend",
    "MemoryBackend",
    "RedisBackend",
    "RateLimiter",
    "get_rate_limiter",
    "reset_rate_limiter",
    "format_rate_limit_key",
    "rate_limit_by_ip",
]
