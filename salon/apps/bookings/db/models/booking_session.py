from datetime import datetime

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from salon.core.db.models.base import BaseModel, UTCDateTime


class BookingSession(BaseModel):
    """
    Short-lived credential granting booking management for one email.

    One row per email (UNIQUE); the plaintext token is returned to the client
    once and only its SHA-256 digest is stored.
    """

    __tablename__ = "booking_sessions"

    email: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        unique=True,
    )

    token_hash: Mapped[str] = mapped_column(
        String(64),
        nullable=False,
        index=True,
    )

    expires_at: Mapped[datetime] = mapped_column(
        UTCDateTime(),
        nullable=False,
        index=True,
    )

    def __repr__(self) -> str:
        return f"<BookingSession(id={self.id}, expires_at={self.expires_at})>"
