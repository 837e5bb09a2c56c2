"""
Pytest configuration and core fixtures.

Every test gets its own SQLite database file with the full schema, so tests
are isolated without any cleanup. Outbound email and SMS are never sent:
Brevo, Twilio and the admin address are left unconfigured, and the OTP email
is replaced by a mock that records the codes it would have delivered.
"""

import os

# Settings are read at import time; pin them before anything imports salon.*
os.environ["ENVIRONMENT"] = "test"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["RATE_LIMIT_BACKEND"] = "memory"
os.environ["BREVO_API_KEY"] = ""
os.environ["TWILIO_ACCOUNT_SID"] = ""
os.environ["TWILIO_AUTH_TOKEN"] = ""
os.environ["TWILIO_FROM_NUMBER"] = ""
os.environ.pop("ADMIN_NOTIFICATION_EMAIL", None)
os.environ["SENTRY_DSN"] = ""

from datetime import date, datetime, timedelta, timezone  # noqa: E402
from typing import AsyncGenerator  # noqa: E402
from unittest.mock import AsyncMock, patch  # noqa: E402

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)


@pytest.fixture
async def db_engine(tmp_path):
    """Fresh SQLite database file with all tables created."""
    from salon.core.db import Base
    import salon.apps.bookings.db.models  # noqa: F401

    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'test.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    try:
        yield engine
    finally:
        await engine.dispose()


@pytest.fixture
def session_factory(db_engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=db_engine,
        autoflush=False,
        expire_on_commit=False,
        autobegin=True,
    )


@pytest.fixture
async def db_session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Session for setting up and inspecting data directly."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def app():
    """Create FastAPI application for testing."""
    from salon.main import app as fastapi_app

    return fastapi_app


@pytest.fixture
async def client(app, session_factory) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client whose requests each get a session on the test database."""
    from salon.core.dependencies import get_async_session

    async def override_get_session():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_async_session] = override_get_session

    try:
        async with AsyncClient(
            transport=ASGITransport(app=app),
            base_url="http://test",
        ) as ac:
            yield ac
    finally:
        app.dependency_overrides.pop(get_async_session, None)


@pytest.fixture(autouse=True)
def fresh_rate_limiter():
    """Give every test an empty in-memory limiter."""
    from salon.core.services.rate_limit import RateLimiter, reset_rate_limiter

    reset_rate_limiter(RateLimiter(backend="memory"))
    yield
    reset_rate_limiter()


@pytest.fixture
def otp_outbox():
    """
    Capture OTP emails instead of sending them.

    Yields the mock; ``otp_outbox.await_args.kwargs["otp_code"]`` is the last
    code delivered.
    """
    from salon.core.services.email_manager import EmailManagerService

    with patch.object(
        EmailManagerService, "send_otp_email", new_callable=AsyncMock
    ) as mock_send:
        yield mock_send


@pytest.fixture
def make_booking(session_factory):
    """Factory that stores a booking and returns it."""
    from salon.apps.bookings.db.crud import booking_db
    from salon.core.enums import BookingStatus

    async def _make_booking(
        email: str = "anna@example.com",
        booking_date: date | None = None,
        booking_time: str = "14:00",
        status: BookingStatus = BookingStatus.PENDING,
        **overrides,
    ):
        data = {
            "name": "Anna Svensson",
            "email": email,
            "phone": "0701234567",
            "service": "Klippning",
            "date": booking_date or date(2030, 3, 14),
            "time": booking_time,
            "message": None,
            "status": status,
        }
        data.update(overrides)
        async with session_factory() as session:
            return await booking_db.create(session, data=data)

    return _make_booking


@pytest.fixture
def issue_challenge(session_factory):
    """Store a challenge for a known code, bypassing email delivery."""
    from salon.apps.bookings.db.crud import otp_challenge_db
    from salon.apps.bookings.services.otp import OTPService

    async def _issue(
        email: str = "anna@example.com",
        code: str = "123456",
        expires_in: timedelta = timedelta(minutes=10),
        attempts: int = 0,
    ):
        async with session_factory() as session:
            challenge = await otp_challenge_db.issue_challenge(
                session,
                email=email,
                code_hash=OTPService.hash_otp(code),
                expires_at=datetime.now(timezone.utc) + expires_in,
            )
            if attempts:
                challenge = await otp_challenge_db.update(
                    session, challenge.id, {"attempts": attempts}
                )
            return challenge

    return _issue


@pytest.fixture
def make_session_token(session_factory):
    """Issue a booking-management session directly and return its token."""
    from salon.apps.bookings.services.session import BookingSessionService

    async def _make(email: str = "anna@example.com") -> str:
        async with session_factory() as session:
            return await BookingSessionService.create_session(session, email)

    return _make
