from enum import Enum


class BookingStatus(str, Enum):
    """Lifecycle status of a booking."""

    PENDING = "pending"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class ChallengeState(str, Enum):
    """
    Outcome of checking a verification code against the stored challenge.

    Classification is done once, in this priority order: a missing challenge,
    then expiry, then attempt exhaustion, then a code mismatch. Only a
    challenge that passes all four checks is VERIFIED.
    """

    NO_CHALLENGE = "no_challenge"
    EXPIRED = "expired"
    EXHAUSTED = "exhausted"
    MISMATCH = "mismatch"
    VERIFIED = "verified"
