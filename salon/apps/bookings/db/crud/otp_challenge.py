"""
CRUD operations for OTPChallenge and BookingSession models.

Together these form the challenge store behind booking self-service: one
pending code and at most one session per normalized email. Every mutation is
a single statement so concurrent requests cannot leave two live rows for an
email or redeem one code twice.
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import update as sa_update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from salon.apps.bookings.db.models import BookingSession, OTPChallenge
from salon.core.db.crud.base import BaseDB
from salon.core.exceptions.types import DatabaseException


class OTPChallengeDB(BaseDB[OTPChallenge]):
    """
    CRUD operations for OTPChallenge model.

    Provides the challenge lifecycle: issue (replacing any previous code),
    lookup, attempt counting, and compare-and-delete redemption.
    """

    def __init__(self):
        """Initialize OTPChallengeDB with the OTPChallenge model."""
        super().__init__(model=OTPChallenge)

    async def issue_challenge(
        self,
        session: AsyncSession,
        email: str,
        code_hash: str,
        expires_at: datetime,
        commit_self: bool = True,
    ) -> OTPChallenge:
        """
        Store a new challenge for ``email``, replacing any existing one.

        Implemented as one INSERT ... ON CONFLICT (email) DO UPDATE, so two
        concurrent sends still leave exactly one row, with attempts reset.

        Args:
            session: The async database session.
            email: Normalized email address.
            code_hash: HMAC-SHA256 digest of the code.
            expires_at: Expiry timestamp (UTC).
            commit_self: Whether to commit the session after the upsert.

        Returns:
            The stored OTPChallenge.

        Raises:
            DatabaseException: If a database error occurs.
        """
        return await self.upsert(
            session,
            data={
                "email": email,
                "code_hash": code_hash,
                "expires_at": expires_at,
                "attempts": 0,
            },
            unique_fields=["email"],
            commit_self=commit_self,
        )

    async def get_latest_challenge(
        self, session: AsyncSession, email: str
    ) -> OTPChallenge | None:
        """
        Retrieve the challenge for an email, expired or not.

        Args:
            session: The async database session.
            email: Normalized email address.

        Returns:
            The OTPChallenge if one exists, None otherwise.

        Raises:
            DatabaseException: If a database error occurs.
        """
        return await self.get_one_by_conditions(
            session, [self.model.email == email]
        )

    async def increment_attempts(
        self,
        session: AsyncSession,
        challenge_id: UUID,
        commit_self: bool = True,
    ) -> int | None:
        """
        Atomically add one failed attempt to a challenge.

        Uses ``SET attempts = attempts + 1`` so concurrent wrong guesses are
        all counted.

        Args:
            session: The async database session.
            challenge_id: ID of the challenge.
            commit_self: Whether to commit the session after updating.

        Returns:
            The new attempt count, or None if the challenge no longer exists.

        Raises:
            DatabaseException: If a database error occurs.
        """
        try:
            stmt = (
                sa_update(self.model)
                .where(self.model.id == challenge_id)
                .values(attempts=self.model.attempts + 1)
                .returning(self.model.attempts)
                .execution_options(synchronize_session=False)
            )
            result = await session.execute(stmt)
            attempts = result.scalar_one_or_none()

            if commit_self:
                await session.commit()
            else:
                await session.flush()

            return attempts
        except SQLAlchemyError as e:
            raise DatabaseException(f"Error incrementing OTP attempts: {str(e)}") from e

    async def delete_challenge(
        self,
        session: AsyncSession,
        challenge_id: UUID,
        commit_self: bool = True,
    ) -> bool:
        """Delete a challenge by ID. Returns True if a row was removed."""
        return await self.delete(session, challenge_id, commit_self=commit_self)

    async def consume_challenge(
        self,
        session: AsyncSession,
        challenge_id: UUID,
        code_hash: str,
        commit_self: bool = True,
    ) -> bool:
        """
        Redeem a challenge by deleting it, if it still holds ``code_hash``.

        This is the single commit point for a correct code: of several
        concurrent redemptions only one deletes the row and gets True back.

        Args:
            session: The async database session.
            challenge_id: ID of the challenge that was matched.
            code_hash: The digest that matched.
            commit_self: Whether to commit the session after deleting.

        Returns:
            bool: True if this call removed the challenge.

        Raises:
            DatabaseException: If a database error occurs.
        """
        deleted = await self.delete_by_conditions(
            session,
            [
                self.model.id == challenge_id,
                self.model.code_hash == code_hash,
            ],
            commit_self=commit_self,
        )
        return deleted == 1

    async def purge_expired(
        self, session: AsyncSession, now: datetime, commit_self: bool = True
    ) -> int:
        """Delete every challenge that expired before ``now``."""
        return await self.delete_by_conditions(
            session, [self.model.expires_at <= now], commit_self=commit_self
        )


class BookingSessionDB(BaseDB[BookingSession]):
    """
    CRUD operations for BookingSession model.
    """

    def __init__(self):
        """Initialize BookingSessionDB with the BookingSession model."""
        super().__init__(model=BookingSession)

    async def create_session(
        self,
        session: AsyncSession,
        email: str,
        token_hash: str,
        expires_at: datetime,
        commit_self: bool = True,
    ) -> BookingSession:
        """
        Store a session for ``email``, replacing any existing one.

        Args:
            session: The async database session.
            email: Normalized email address.
            token_hash: SHA-256 digest of the session token.
            expires_at: Expiry timestamp (UTC).
            commit_self: Whether to commit the session after the upsert.

        Returns:
            The stored BookingSession.

        Raises:
            DatabaseException: If a database error occurs.
        """
        return await self.upsert(
            session,
            data={
                "email": email,
                "token_hash": token_hash,
                "expires_at": expires_at,
            },
            unique_fields=["email"],
            commit_self=commit_self,
        )

    async def get_valid_session(
        self,
        session: AsyncSession,
        email: str,
        token_hash: str,
        now: datetime,
    ) -> BookingSession | None:
        """
        Find a live session matching both the email and the token digest.

        Args:
            session: The async database session.
            email: Normalized email address.
            token_hash: SHA-256 digest of the presented token.
            now: Current time (UTC); sessions expiring at or before it are ignored.

        Returns:
            The BookingSession if valid, None otherwise.

        Raises:
            DatabaseException: If a database error occurs.
        """
        return await self.get_one_by_conditions(
            session,
            [
                self.model.email == email,
                self.model.token_hash == token_hash,
                self.model.expires_at > now,
            ],
        )

    async def purge_expired(
        self, session: AsyncSession, now: datetime, commit_self: bool = True
    ) -> int:
        """Delete every session that expired before ``now``."""
        return await self.delete_by_conditions(
            session, [self.model.expires_at <= now], commit_self=commit_self
        )


# Global CRUD instances
otp_challenge_db = OTPChallengeDB()
booking_session_db = BookingSessionDB()


__all__ = [
    "OTPChallengeDB",
    "BookingSessionDB",
    "otp_challenge_db",
    "booking_session_db",
]
