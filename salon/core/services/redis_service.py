"""
Redis client used by the shared rate-limit backend.

Only the handful of commands the limiter needs are wrapped. Every wrapper
returns a neutral value (None/False) instead of raising when Redis is down,
so a Redis outage degrades rate limiting rather than failing requests.
"""

from __future__ import annotations

from redis.asyncio import Redis

from salon.core.config import redis_logger, settings


class RedisService:
    """
    Class-level Redis client shared across the application.

    Example:
        >>> await RedisService.init("redis://localhost:6379/0")
        >>> await RedisService.incr("rate_limit:otp:10.0.0.1")
        >>> await RedisService.aclose()
    """

    _client: Redis | None = None
    _url: str = settings.REDIS_URL

    @classmethod
    async def init(cls, url: str | None = None) -> None:
        """
        Create the client, closing any previous one first.

        Args:
            url: The Redis connection URL. If None, uses settings.REDIS_URL.
        """
        if url is not None:
            cls._url = url

        await cls.aclose()

        cls._client = Redis.from_url(
            cls._url,
            encoding="utf-8",
            decode_responses=False,
        )
        redis_logger.info("Redis client initialized")

    @classmethod
    async def aclose(cls) -> None:
        """Close the client. Safe to call when it was never initialized."""
        if cls._client is not None:
            try:
                await cls._client.aclose()
                redis_logger.info("Redis client closed successfully")
            except Exception as e:
                redis_logger.warning(f"Error closing Redis client: {str(e)}")
            finally:
                cls._client = None

    @classmethod
    def is_connected(cls) -> bool:
        return cls._client is not None

    @classmethod
    async def ping(cls) -> bool:
        """
        Ping the Redis server to check connectivity.

        Returns:
            bool: True if ping succeeds, False otherwise.
        """
        if cls._client is None:
            return False

        try:
            return bool(await cls._client.ping())  # type: ignore[misc]
        except Exception as e:
            redis_logger.error(f"Redis ping failed: {str(e)}")
            return False

    @classmethod
    async def incr(cls, key: str) -> int | None:
        """
        Increment a counter, creating it at 1 if missing.

        Returns:
            The new value after increment, or None on failure.
        """
        if cls._client is None:
            redis_logger.warning(f"Redis incr({key}) attempted but client not initialized")
            return None

        try:
            return await cls._client.incr(key)
        except Exception as e:
            redis_logger.error(f"Redis incr({key}) failed: {str(e)}")
            return None

    @classmethod
    async def expire(cls, key: str, ttl: int) -> bool:
        if cls._client is None:
            return False

        try:
            return bool(await cls._client.expire(key, ttl))
        except Exception as e:
            redis_logger.error(f"Redis expire({key}) failed: {str(e)}")
            return False

    @classmethod
    async def ttl(cls, key: str) -> int | None:
        """
        Remaining time-to-live of a key in seconds.

        Returns:
            The TTL, a negative value for keys without expiry, or None on failure.
        """
        if cls._client is None:
            return None

        try:
            return await cls._client.ttl(key)
        except Exception as e:
            redis_logger.error(f"Redis ttl({key}) failed: {str(e)}")
            return None
