from salon.core.services.brevo import BrevoService, Contact, ListContact
from salon.core.services.email_manager import EmailManagerService
from salon.core.services.rate_limit import (
    MemoryBackend,
    RateLimitBackend,
    RateLimiter,
    RateLimitResult,
    RedisBackend,
    get_rate_limiter,
    rate_limit_by_ip,
    reset_rate_limiter,
)
from salon.core.services.redis_service import RedisService
from salon.core.services.template import Renderer
from salon.core.services.twilio import TwilioService

__all__ = [
    "BrevoService",
    "Contact",
    "ListContact",
    "EmailManagerService",
    "MemoryBackend",
    "RateLimitBackend",
    "RateLimiter",
    "RateLimitResult",
    "RedisBackend",
    "get_rate_limiter",
    "rate_limit_by_ip",
    "reset_rate_limiter",
    "RedisService",
    "Renderer",
    "TwilioService",
]
