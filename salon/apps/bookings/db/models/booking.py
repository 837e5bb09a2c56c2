"""
Booking model for salon appointments.

"""

import datetime

from sqlalchemy import Date, Enum, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from salon.core.db.models.base import BaseModel
from salon.core.enums import BookingStatus


class Booking(BaseModel):
    """
    A customer's appointment request.

    The stored ``email`` is normalized (trimmed, lower-cased) and is the owner
    identity used to authorize self-service management.

    Attributes:
        name: Customer name.
        email: Normalized customer email, the booking's owner.
        phone: Customer phone number.
        service: Requested service(s), comma separated when several were chosen.
        date: Appointment date.
        time: Appointment time as ``HH:MM``.
        message: Optional free-text note from the customer.
        status: Booking lifecycle status.
    """

    __tablename__ = "bookings"

    name: Mapped[str] = mapped_column(String(100), nullable=False)

    email: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        index=True,
    )

    phone: Mapped[str] = mapped_column(String(20), nullable=False)

    service: Mapped[str] = mapped_column(String(500), nullable=False)

    date: Mapped[datetime.date] = mapped_column(Date, nullable=False)

    time: Mapped[str] = mapped_column(String(5), nullable=False)

    message: Mapped[str | None] = mapped_column(Text, nullable=True)

    status: Mapped[BookingStatus] = mapped_column(
        Enum(
            BookingStatus,
            native_enum=False,
            name="booking_status",
            length=20,
            values_callable=lambda enum: [member.value for member in enum],
        ),
        default=BookingStatus.PENDING,
        nullable=False,
    )

    __table_args__ = (Index("ix_bookings_slot", "date", "time"),)

    def __repr__(self) -> str:
        return f"<Booking(id={self.id}, date={self.date}, time={self.time}, status={self.status})>"
