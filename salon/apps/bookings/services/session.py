"""
Booking-management sessions and the authorization gate.

A session is issued once an email address has been proven with a one-time
code. Every search/update/delete passes through ``BookingSessionService.authorize``
before any booking row is touched.
"""

from datetime import datetime, timedelta, timezone

from sqlalchemy.ext.asyncio import AsyncSession

from salon.apps.bookings.db.crud import booking_session_db
from salon.core.config import otp_logger, settings
from salon.core.exceptions.types import AuthenticationException
from salon.core.utils import generate_session_token, hash_token, normalize_email


class BookingSessionService:

    @classmethod
    async def create_session(
        cls,
        session: AsyncSession,
        email: str,
        commit_self: bool = True,
    ) -> str:
        """
        Issue a new session for ``email``, replacing any previous one.

        Args:
            session: The database session.
            email: Normalized email address.
            commit_self: If True, commits the transaction.

        Returns:
            str: The plaintext session token. It is not stored anywhere and
                cannot be recovered later.
        """
        token = generate_session_token()
        expires_at = datetime.now(timezone.utc) + timedelta(
            minutes=settings.BOOKING_SESSION_EXPIRY_MINUTES
        )

        await booking_session_db.create_session(
            session,
            email=email,
            token_hash=hash_token(token),
            expires_at=expires_at,
            commit_self=commit_self,
        )

        otp_logger.info(f"Booking session issued: email={email}")
        return token

    @classmethod
    async def authorize(
        cls, session: AsyncSession, email: str, token: str | None
    ) -> bool:
        """
        Whether ``token`` is a live session for ``email``.

        Args:
            session: The database session.
            email: Email the caller claims to act for.
            token: Session token presented by the caller.

        Returns:
            bool: True only for an unexpired session matching both values.
        """
        if not token:
            return False

        found = await booking_session_db.get_valid_session(
            session,
            email=normalize_email(email),
            token_hash=hash_token(token),
            now=datetime.now(timezone.utc),
        )
        return found is not None

    @classmethod
    async def require_session(
        cls, session: AsyncSession, email: str, token: str | None
    ) -> None:
        """
        Raise unless ``authorize`` succeeds.

        Raises:
            AuthenticationException: If the session is missing, invalid or expired.
        """
        if not await cls.authorize(session, email, token):
            otp_logger.warning(f"Booking session rejected: email={email}")
            raise AuthenticationException()
