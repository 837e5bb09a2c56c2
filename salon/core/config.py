from functools import lru_cache
import logging

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from salon.core.logger import init_sentry, setup_logger


class Settings(BaseSettings):
    # Application settings
    ENVIRONMENT: str = "development"  # Options: development, production, test
    APP_NAME: str = "Sham Salong"
    APP_VERSION: str = "1.0.0"
    APP_DESCRIPTION: str = """
Booking API for Sham Salong.

## Endpoints

| Endpoint | Description |
|----------|-------------|
| **/create-booking** | Public booking form submission. |
| **/send-otp** | Request (`send`) or redeem (`verify`) a one-time code proving control of an email address. |
| **/manage-booking** | Search, update or cancel your own bookings using the session token issued by `/send-otp`. |

All endpoints accept and return JSON. Errors are returned as `{"error": "..."}`.
"""
    DEBUG: bool = False

    # CORS settings
    CORS_ALLOW_ORIGINS: list[str] = ["*"]

    # Database settings
    DATABASE_URL: str = "sqlite+aiosqlite:///./salon.db"

    # Redis settings
    REDIS_URL: str = "redis://localhost:6379/0"

    # Rate limiting settings
    RATE_LIMIT_BACKEND: str = "memory"  # Options: memory, redis
    RATE_LIMIT_MAX_KEYS: int = 10_000  # Prune expired entries above this size
    OTP_RATE_LIMIT_REQUESTS: int = 5
    OTP_RATE_LIMIT_WINDOW: int = 3600  # seconds
    MANAGE_BOOKING_RATE_LIMIT_REQUESTS: int = 10
    MANAGE_BOOKING_RATE_LIMIT_WINDOW: int = 3600  # seconds
    CREATE_BOOKING_RATE_LIMIT_REQUESTS: int = 10
    CREATE_BOOKING_RATE_LIMIT_WINDOW: int = 3600  # seconds

    # OTP settings
    OTP_LENGTH: int = 6
    OTP_EXPIRY_MINUTES: int = 10
    OTP_MAX_ATTEMPTS: int = 5
    OTP_HMAC_SECRET: str = "otp_hmac_secret_key_change_in_production"

    # Booking session settings
    BOOKING_SESSION_EXPIRY_MINUTES: int = 30

    # Brevo settings
    BREVO_API_KEY: str = ""
    BREVO_BASE_URL: str = "https://api.brevo.com/v3"
    BREVO_SENDER_EMAIL: str = "noreply@shamsalong.se"
    BREVO_SENDER_NAME: str = "Sham Salong"
    ADMIN_NOTIFICATION_EMAIL: str | None = None

    # Twilio settings
    TWILIO_ACCOUNT_SID: str = ""
    TWILIO_AUTH_TOKEN: str = ""
    TWILIO_FROM_NUMBER: str = ""
    TWILIO_BASE_URL: str = "https://api.twilio.com/2010-04-01"

    # Salon contact details used in customer messages
    SALON_ADDRESS: str = "Esplanaden 1B, Oxelösund"
    SALON_PHONE: str = "0793488688"

    # Sentry settings
    SENTRY_DSN: str = ""
    SENTRY_ENVIRONMENT: str = "development"
    SENTRY_TRACES_SAMPLE_RATE: float = 0.1

    model_config: SettingsConfigDict = SettingsConfigDict(  # type: ignore
        env_file=".env",
        extra="ignore",
    )

    @model_validator(mode="after")
    def _validate_production_secrets(self) -> "Settings":
        """Ensure insecure default secrets are overridden in production."""
        if self.ENVIRONMENT != "production":
            return self

        insecure_defaults: dict[str, str] = {
            "OTP_HMAC_SECRET": "otp_hmac_secret_key_change_in_production",
        }

        still_default = [
            name
            for name, default_val in insecure_defaults.items()
            if getattr(self, name) == default_val
        ]

        if still_default:
            raise ValueError(
                f"ENVIRONMENT is 'production' but the following secrets still "
                f"have their insecure default values: {', '.join(still_default)}. "
                f"Set them via environment variables or .env file."
            )

        return self


@lru_cache()
def get_settings() -> Settings:
    return Settings()


settings = get_settings()

if not settings.DEBUG:
    init_sentry(
        dsn=settings.SENTRY_DSN,
        environment=settings.SENTRY_ENVIRONMENT,
        traces_sample_rate=settings.SENTRY_TRACES_SAMPLE_RATE,
    )

# One logger per component, each with its own log file and Sentry tag
app_logger = setup_logger(
    name="app_logger",
    log_file="logs/app.log",
    level=logging.INFO,
    sentry_tag="app",
)
database_logger = setup_logger(
    name="database_logger",
    log_file="logs/database.log",
    level=logging.INFO,
    sentry_tag="database",
)
request_logger = setup_logger(
    name="request_logger",
    log_file="logs/requests.log",
    level=logging.INFO,
    sentry_tag="request",
)
brevo_logger = setup_logger(
    name="brevo_logger",
    log_file="logs/brevo.log",
    level=logging.INFO,
    sentry_tag="email",
)
twilio_logger = setup_logger(
    name="twilio_logger",
    log_file="logs/twilio.log",
    level=logging.INFO,
    sentry_tag="sms",
)
redis_logger = setup_logger(
    name="redis_logger",
    log_file="logs/redis.log",
    level=logging.INFO,
    sentry_tag="redis",
)
rate_limit_logger = setup_logger(
    name="rate_limit_logger",
    log_file="logs/rate_limit.log",
    level=logging.INFO,
    sentry_tag="rate_limit",
)
email_manager_logger = setup_logger(
    name="email_manager_logger",
    log_file="logs/email_manager.log",
    level=logging.INFO,
    sentry_tag="email_manager",
)
otp_logger = setup_logger(
    name="otp_logger",
    log_file="logs/otp.log",
    level=logging.INFO,
    sentry_tag="otp",
)
booking_logger = setup_logger(
    name="booking_logger",
    log_file="logs/booking.log",
    level=logging.INFO,
    sentry_tag="booking",
)
utils_logger = setup_logger(
    name="utils_logger",
    log_file="logs/utils.log",
    level=logging.INFO,
    sentry_tag="utils",
)

__all__ = [
    "settings",
    "app_logger",
    "database_logger",
    "request_logger",
    "brevo_logger",
    "twilio_logger",
    "redis_logger",
    "rate_limit_logger",
    "email_manager_logger",
    "otp_logger",
    "booking_logger",
    "utils_logger",
]
