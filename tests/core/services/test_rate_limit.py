"""
Unit tests for rate limiting service.

Covers the memory and Redis backends, the shared limiter, and the per-IP
FastAPI dependency used by the booking endpoints.
"""

import asyncio
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, patch

import pytest
from fastapi import Request


def _request(headers: dict[str, str] | None = None) -> Request:
    raw = [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()]
    return Request({"type": "http", "method": "POST", "path": "/", "headers": raw})


# ============================================================================
# Tests for RateLimitResult
# ============================================================================


class TestRateLimitResult:

    def test_rate_limit_result_denied(self):
        from salon.core.services.rate_limit import RateLimitResult

        result = RateLimitResult(
            allowed=False,
            remaining=0,
            limit=5,
            reset_at=datetime.now(timezone.utc),
            retry_after=3600,
        )

        assert result.allowed is False
        assert result.remaining == 0
        assert result.retry_after == 3600


# ============================================================================
# Tests for MemoryBackend
# ============================================================================


class TestMemoryBackend:

    @pytest.mark.asyncio
    async def test_first_request_allowed(self):
        from salon.core.services.rate_limit import MemoryBackend

        backend = MemoryBackend()
        result = await backend.check("key", limit=5, window=60)

        assert result.allowed is True
        assert result.remaining == 4
        assert result.limit == 5

    @pytest.mark.asyncio
    async def test_exactly_limit_requests_allowed(self):
        from salon.core.services.rate_limit import MemoryBackend

        backend = MemoryBackend()
        results = [await backend.check("key", limit=5, window=60) for _ in range(6)]

        assert [r.allowed for r in results] == [True] * 5 + [False]
        assert [r.remaining for r in results[:5]] == [4, 3, 2, 1, 0]

    @pytest.mark.asyncio
    async def test_denied_request_carries_retry_after_window(self):
        from salon.core.services.rate_limit import MemoryBackend

        backend = MemoryBackend()
        for _ in range(5):
            await backend.check("key", limit=5, window=3600)

        result = await backend.check("key", limit=5, window=3600)

        assert result.allowed is False
        assert result.remaining == 0
        assert result.retry_after == 3600

    @pytest.mark.asyncio
    async def test_retry_after_is_at_least_one_second(self):
        from salon.core.services.rate_limit import MemoryBackend

        backend = MemoryBackend()
        await backend.check("key", limit=1, window=0.2)
        result = await backend.check("key", limit=1, window=0.2)

        assert result.allowed is False
        assert result.retry_after == 1

    @pytest.mark.asyncio
    async def test_denied_requests_do_not_extend_window(self):
        from salon.core.services.rate_limit import MemoryBackend

        backend = MemoryBackend()
        first = await backend.check("key", limit=1, window=60)
        denied = await backend.check("key", limit=1, window=60)

        assert denied.reset_at == first.reset_at

    @pytest.mark.asyncio
    async def test_window_expiry_starts_fresh(self):
        from salon.core.services.rate_limit import MemoryBackend

        backend = MemoryBackend()
        await backend.check("key", limit=1, window=0.1)
        assert (await backend.check("key", limit=1, window=0.1)).allowed is False

        await asyncio.sleep(0.15)

        result = await backend.check("key", limit=1, window=0.1)
        assert result.allowed is True
        assert result.remaining == 0

    @pytest.mark.asyncio
    async def test_keys_are_independent(self):
        from salon.core.services.rate_limit import MemoryBackend

        backend = MemoryBackend()
        await backend.check("a", limit=1, window=60)

        assert (await backend.check("a", limit=1, window=60)).allowed is False
        assert (await backend.check("b", limit=1, window=60)).allowed is True

    @pytest.mark.asyncio
    async def test_prunes_expired_entries_above_threshold(self):
        from salon.core.services.rate_limit import MemoryBackend

        backend = MemoryBackend(max_keys=2)
        past = datetime.now(timezone.utc) - timedelta(seconds=1)
        backend._store = {
            "old-1": (1, past),
            "old-2": (1, past),
            "live": (1, datetime.now(timezone.utc) + timedelta(minutes=5)),
        }

        await backend.check("new", limit=5, window=60)

        assert set(backend._store) == {"live", "new"}

    @pytest.mark.asyncio
    async def test_does_not_prune_below_threshold(self):
        from salon.core.services.rate_limit import MemoryBackend

        backend = MemoryBackend(max_keys=10)
        past = datetime.now(timezone.utc) - timedelta(seconds=1)
        backend._store = {"old": (1, past)}

        await backend.check("new", limit=5, window=60)

        assert "old" in backend._store


# ============================================================================
# Tests for RedisBackend
# ============================================================================


class TestRedisBackend:

    @pytest.mark.asyncio
    async def test_first_request_sets_expiry(self):
        from salon.core.services.rate_limit import RedisBackend

        with patch("salon.core.services.rate_limit.RedisService") as mock_redis:
            mock_redis.incr = AsyncMock(return_value=1)
            mock_redis.expire = AsyncMock(return_value=True)
            mock_redis.ttl = AsyncMock(return_value=3600)

            result = await RedisBackend().check("key", limit=5, window=3600)

            assert result.allowed is True
            assert result.remaining == 4
            mock_redis.expire.assert_awaited_once_with("key", 3600)

    @pytest.mark.asyncio
    async def test_over_limit_denied(self):
        from salon.core.services.rate_limit import RedisBackend

        with patch("salon.core.services.rate_limit.RedisService") as mock_redis:
            mock_redis.incr = AsyncMock(return_value=6)
            mock_redis.ttl = AsyncMock(return_value=1200)

            result = await RedisBackend().check("key", limit=5, window=3600)

            assert result.allowed is False
            assert result.remaining == 0
            assert result.retry_after == 3600

    @pytest.mark.asyncio
    async def test_redis_unavailable_allows_request(self):
        from salon.core.services.rate_limit import RedisBackend

        with patch("salon.core.services.rate_limit.RedisService") as mock_redis:
            mock_redis.incr = AsyncMock(return_value=None)

            result = await RedisBackend().check("key", limit=5, window=60)

            assert result.allowed is True


# ============================================================================
# Tests for RateLimiter and the shared instance
# ============================================================================


class TestRateLimiter:

    def test_memory_backend(self):
        from salon.core.services.rate_limit import MemoryBackend, RateLimiter

        limiter = RateLimiter(backend="memory")

        assert limiter.backend_name == "memory"
        assert isinstance(limiter._backend, MemoryBackend)

    def test_redis_backend(self):
        from salon.core.services.rate_limit import RateLimiter, RedisBackend

        limiter = RateLimiter(backend="redis")

        assert isinstance(limiter._backend, RedisBackend)

    def test_shared_limiter_is_reused(self):
        from salon.core.services.rate_limit import get_rate_limiter, reset_rate_limiter

        reset_rate_limiter()

        assert get_rate_limiter() is get_rate_limiter()


# ============================================================================
# Tests for rate_limit_by_ip
# ============================================================================


class TestRateLimitByIP:

    def test_key_format(self):
        from salon.core.services.rate_limit import format_rate_limit_key

        assert format_rate_limit_key("otp", "10.0.0.1") == "rate_limit:otp:10.0.0.1"

    @pytest.mark.asyncio
    async def test_allows_within_limit(self):
        from salon.core.services.rate_limit import rate_limit_by_ip

        dependency = rate_limit_by_ip("otp", limit=2, window=60)
        result = await dependency(_request({"X-Forwarded-For": "10.0.0.1"}))

        assert result.allowed is True
        assert result.remaining == 1

    @pytest.mark.asyncio
    async def test_raises_when_exceeded(self):
        from salon.core.exceptions.types import RateLimitExceededException
        from salon.core.services.rate_limit import rate_limit_by_ip

        dependency = rate_limit_by_ip("otp", limit=1, window=3600)
        request = _request({"X-Forwarded-For": "10.0.0.1"})
        await dependency(request)

        with pytest.raises(RateLimitExceededException) as exc_info:
            await dependency(request)

        assert exc_info.value.status_code == 429
        assert exc_info.value.retry_after == 3600

    @pytest.mark.asyncio
    async def test_clients_have_separate_budgets(self):
        from salon.core.services.rate_limit import rate_limit_by_ip

        dependency = rate_limit_by_ip("otp", limit=1, window=60)
        await dependency(_request({"X-Forwarded-For": "10.0.0.1"}))

        result = await dependency(_request({"X-Forwarded-For": "10.0.0.2"}))

        assert result.allowed is True

    @pytest.mark.asyncio
    async def test_same_scope_shares_budget_across_dependencies(self):
        from salon.core.exceptions.types import RateLimitExceededException
        from salon.core.services.rate_limit import rate_limit_by_ip

        first = rate_limit_by_ip("otp", limit=1, window=60)
        second = rate_limit_by_ip("otp", limit=1, window=60)
        request = _request({"X-Real-IP": "10.0.0.9"})
        await first(request)

        with pytest.raises(RateLimitExceededException):
            await second(request)

    @pytest.mark.asyncio
    async def test_scopes_are_independent(self):
        from salon.core.services.rate_limit import rate_limit_by_ip

        request = _request({"X-Forwarded-For": "10.0.0.1"})
        await rate_limit_by_ip("otp", limit=1, window=60)(request)

        result = await rate_limit_by_ip("manage-booking", limit=1, window=60)(request)

        assert result.allowed is True
