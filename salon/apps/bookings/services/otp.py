"""
OTP flow for booking self-service.

A customer proves control of an email address in two steps:

1. ``send``: if the email owns at least one booking, a 6-digit code is issued
   (replacing any previous one) and emailed. The caller always receives the
   same response, so the endpoint cannot be used to discover which emails
   have bookings.
2. ``verify``: the presented code is checked against the stored challenge.
   A correct code is redeemed exactly once and exchanged for a session token.

Example usage:
    await OTPService.send_otp(session=db_session, email="user@example.com")

    token = await OTPService.verify_otp(
        session=db_session,
        email="user@example.com",
        otp_code="123456",
    )
"""

from datetime import datetime, timedelta, timezone
import hmac

from sqlalchemy.ext.asyncio import AsyncSession

from salon.apps.bookings.db.crud import booking_db, otp_challenge_db
from salon.apps.bookings.db.models import OTPChallenge
from salon.apps.bookings.services.session import BookingSessionService
from salon.core.config import otp_logger, settings
from salon.core.enums import ChallengeState
from salon.core.exceptions.types import (
    OTPExpiredException,
    OTPInvalidException,
    OTPNotFoundException,
    TooManyAttemptsException,
)
from salon.core.services.email_manager import EmailManagerService
from salon.core.utils import generate_otp_code, hmac_hash_otp, mask_otp


def classify_challenge(
    challenge: OTPChallenge | None,
    code_hash: str,
    now: datetime,
    max_attempts: int,
) -> ChallengeState:
    """
    Decide the outcome of a verification attempt.

    Checks run in a fixed order so that an expired code is reported as
    expired even when its attempts are also used up, and an exhausted code
    is refused even when the presented code is correct.

    Args:
        challenge: The stored challenge, if any.
        code_hash: Digest of the presented code.
        now: Current time (UTC).
        max_attempts: Failed attempts after which the challenge is dead.

    Returns:
        ChallengeState: The single state the attempt falls into.
    """
    if challenge is None:
        return ChallengeState.NO_CHALLENGE
    if now > challenge.expires_at:
        return ChallengeState.EXPIRED
    if challenge.attempts >= max_attempts:
        return ChallengeState.EXHAUSTED
    if not hmac.compare_digest(challenge.code_hash, code_hash):
        return ChallengeState.MISMATCH
    return ChallengeState.VERIFIED


class OTPService:

    @classmethod
    def generate_otp(cls) -> str:
        return generate_otp_code(settings.OTP_LENGTH)

    @classmethod
    def hash_otp(cls, otp_code: str) -> str:
        return hmac_hash_otp(otp_code, settings.OTP_HMAC_SECRET)

    # =========================================================================
    # Send
    # =========================================================================

    @classmethod
    async def send_otp(cls, session: AsyncSession, email: str) -> bool:
        """
        Issue and email a code if ``email`` owns any bookings.

        The challenge is committed before delivery is attempted, so a code
        that reaches the customer can always be verified.

        Args:
            session: The database session.
            email: Normalized email address.

        Returns:
            bool: True if a code was issued. Callers must not expose this value.

        Raises:
            EmailDeliveryException: If the email provider rejected the message.
        """
        if not await booking_db.has_bookings(session, email):
            otp_logger.info(f"OTP not issued, no bookings: email={email}")
            return False

        otp_code = cls.generate_otp()
        expires_at = datetime.now(timezone.utc) + timedelta(
            minutes=settings.OTP_EXPIRY_MINUTES
        )

        await otp_challenge_db.issue_challenge(
            session,
            email=email,
            code_hash=cls.hash_otp(otp_code),
            expires_at=expires_at,
            commit_self=True,
        )

        await EmailManagerService.send_otp_email(email=email, otp_code=otp_code)

        otp_logger.info(f"OTP issued: email={email}, code={mask_otp(otp_code)}")
        return True

    # =========================================================================
    # Verify
    # =========================================================================

    @classmethod
    async def verify_otp(
        cls, session: AsyncSession, email: str, otp_code: str
    ) -> str:
        """
        Redeem a code for a booking-management session token.

        Every failure path commits its own side effect (deleting a dead
        challenge, counting a wrong guess) before raising.

        Args:
            session: The database session.
            email: Normalized email address.
            otp_code: The 6-digit code presented by the caller.

        Returns:
            str: A fresh session token.

        Raises:
            OTPNotFoundException: No challenge exists, or a concurrent request
                redeemed it first.
            OTPExpiredException: The challenge has expired; it is deleted.
            TooManyAttemptsException: Attempts are used up; it is deleted.
            OTPInvalidException: Wrong code; one attempt is counted.
        """
        code_hash = cls.hash_otp(otp_code)
        challenge = await otp_challenge_db.get_latest_challenge(session, email)
        state = classify_challenge(
            challenge,
            code_hash,
            now=datetime.now(timezone.utc),
            max_attempts=settings.OTP_MAX_ATTEMPTS,
        )

        if state is ChallengeState.NO_CHALLENGE:
            otp_logger.warning(f"OTP verification failed, no challenge: email={email}")
            raise OTPNotFoundException()

        assert challenge is not None

        if state is ChallengeState.EXPIRED:
            await otp_challenge_db.delete_challenge(session, challenge.id)
            otp_logger.warning(f"OTP verification failed, expired: email={email}")
            raise OTPExpiredException()

        if state is ChallengeState.EXHAUSTED:
            await otp_challenge_db.delete_challenge(session, challenge.id)
            otp_logger.warning(
                f"OTP verification failed, too many attempts: email={email}"
            )
            raise TooManyAttemptsException()

        if state is ChallengeState.MISMATCH:
            attempts = await otp_challenge_db.increment_attempts(
                session, challenge.id
            )
            otp_logger.warning(
                f"OTP verification failed, mismatch: email={email}, attempts={attempts}"
            )
            raise OTPInvalidException()

        # Only the request that actually deletes the challenge gets a session
        consumed = await otp_challenge_db.consume_challenge(
            session, challenge.id, code_hash, commit_self=False
        )
        if not consumed:
            await session.rollback()
            otp_logger.warning(
                f"OTP verification lost redemption race: email={email}"
            )
            raise OTPNotFoundException()

        token = await BookingSessionService.create_session(
            session, email, commit_self=False
        )
        await session.commit()

        otp_logger.info(f"OTP verified: email={email}")
        return token
