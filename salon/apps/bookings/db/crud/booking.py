"""
CRUD operations for Booking model.
"""

import datetime
from typing import Sequence
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from salon.apps.bookings.db.models import Booking
from salon.core.db.crud.base import BaseDB
from salon.core.enums import BookingStatus


class BookingDB(BaseDB[Booking]):
    """
    CRUD operations for Booking model.

    Lookups used by self-service management always filter on the owner email
    as well as the ID, so a booking owned by someone else is indistinguishable
    from one that does not exist.
    """

    def __init__(self):
        """Initialize BookingDB with the Booking model."""
        super().__init__(model=Booking)

    async def get_by_email(
        self, session: AsyncSession, email: str
    ) -> Sequence[Booking]:
        """
        List all bookings owned by an email, newest first.

        Args:
            session: The async database session.
            email: Normalized owner email.

        Returns:
            The owner's bookings, possibly empty.

        Raises:
            DatabaseException: If a database error occurs.
        """
        return await self.get_all(
            session,
            filters=[self.model.email == email],
            order_by=[self.model.created_at.desc(), self.model.id],
        )

    async def has_bookings(self, session: AsyncSession, email: str) -> bool:
        """Whether at least one booking is owned by ``email``."""
        return await self.exists(session, [self.model.email == email])

    async def get_owned_booking(
        self, session: AsyncSession, booking_id: UUID, email: str
    ) -> Booking | None:
        """
        Retrieve a booking only if it is owned by ``email``.

        Args:
            session: The async database session.
            booking_id: The booking ID.
            email: Normalized owner email.

        Returns:
            The Booking, or None when it does not exist or belongs to another email.

        Raises:
            DatabaseException: If a database error occurs.
        """
        return await self.get_one_by_conditions(
            session,
            [self.model.id == booking_id, self.model.email == email],
        )

    async def is_slot_taken(
        self, session: AsyncSession, date: datetime.date, time: str
    ) -> bool:
        """
        Whether a non-cancelled booking already holds this date and time.

        Args:
            session: The async database session.
            date: Appointment date.
            time: Appointment time (``HH:MM``).

        Returns:
            bool: True if the slot is taken.
        """
        return await self.exists(
            session,
            [
                self.model.date == date,
                self.model.time == time,
                self.model.status != BookingStatus.CANCELLED,
            ],
        )


# Global CRUD instance
booking_db = BookingDB()


__all__ = ["BookingDB", "booking_db"]
