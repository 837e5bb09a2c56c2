"""
Pending verification codes for booking self-service.

"""

from datetime import datetime

from sqlalchemy import Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from salon.core.db.models.base import BaseModel, UTCDateTime


class OTPChallenge(BaseModel):
    """
    An outstanding one-time code for an email address.

    The UNIQUE constraint on ``email`` keeps at most one live challenge per
    address; issuing a new code replaces the row in place. Only the
    HMAC-SHA256 digest of the code is stored.

    Attributes:
        email: Normalized email address the code was sent to.
        code_hash: HMAC-SHA256 hex digest of the code.
        expires_at: When the code stops being accepted.
        attempts: Number of failed verification attempts.
    """

    __tablename__ = "booking_otp_challenges"

    email: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        unique=True,
    )

    code_hash: Mapped[str] = mapped_column(
        String(64),  # SHA256 hex digest is 64 characters
        nullable=False,
    )

    expires_at: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        nullable=False,
        index=True,
    )

    attempts: Mapped[int] = mapped_column(
        Integer,
        default=0,
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<OTPChallenge(id={self.id}, attempts={self.attempts}, expires_at={self.expires_at})>"
