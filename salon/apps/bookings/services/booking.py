"""
Booking operations: public creation and owner self-service.

Self-service operations assume the caller already passed
``BookingSessionService.require_session`` for ``email``; they additionally
scope every row lookup to that email.
"""

from typing import Sequence
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from salon.apps.bookings.db.crud import booking_db
from salon.apps.bookings.db.models import Booking
from salon.apps.bookings.schemas.booking import BookingUpdate, CreateBookingRequest
from salon.core.config import booking_logger
from salon.core.enums import BookingStatus
from salon.core.exceptions.types import BookingNotFoundException, ConflictException


def _parse_booking_id(booking_id: str) -> UUID:
    try:
        return UUID(booking_id)
    except ValueError:
        raise BookingNotFoundException() from None


class BookingService:

    @classmethod
    async def create_booking(
        cls, session: AsyncSession, data: CreateBookingRequest
    ) -> Booking:
        """
        Create a pending booking after a single slot-equality check.

        Args:
            session: The database session.
            data: Validated booking form.

        Returns:
            Booking: The created booking.

        Raises:
            ConflictException: If a non-cancelled booking holds the same date and time.
        """
        if await booking_db.is_slot_taken(session, data.date, data.time):
            booking_logger.info(f"Slot already booked: {data.date} {data.time}")
            raise ConflictException("This time slot is already booked")

        booking = await booking_db.create(
            session,
            data={
                "name": data.name,
                "email": data.email,
                "phone": data.phone,
                "service": data.service_text,
                "date": data.date,
                "time": data.time,
                "message": data.message or None,
                "status": BookingStatus.PENDING,
            },
        )
        booking_logger.info(f"Booking created: id={booking.id}")
        return booking

    @classmethod
    async def search_bookings(
        cls, session: AsyncSession, email: str
    ) -> Sequence[Booking]:
        """All bookings owned by ``email``, newest first. May be empty."""
        return await booking_db.get_by_email(session, email)

    @classmethod
    async def update_booking(
        cls,
        session: AsyncSession,
        email: str,
        booking_id: str,
        updates: BookingUpdate,
    ) -> Booking:
        """
        Apply allowed changes to a booking owned by ``email``.

        Args:
            session: The database session.
            email: Authenticated owner email.
            booking_id: ID of the booking, as sent by the client.
            updates: Validated changes.

        Returns:
            Booking: The updated booking.

        Raises:
            BookingNotFoundException: If the booking does not exist, the ID is
                malformed, or the booking belongs to another email.
        """
        booking = await booking_db.get_owned_booking(
            session, _parse_booking_id(booking_id), email
        )
        if booking is None:
            booking_logger.warning(f"Update refused for booking {booking_id}")
            raise BookingNotFoundException()

        updated = await booking_db.update(session, booking.id, updates.to_updates())
        if updated is None:
            raise BookingNotFoundException()

        booking_logger.info(
            f"Booking updated: id={booking.id}, fields={sorted(updates.model_fields_set)}"
        )
        return updated

    @classmethod
    async def delete_booking(
        cls, session: AsyncSession, email: str, booking_id: str
    ) -> None:
        """
        Delete a booking owned by ``email``.

        Raises:
            BookingNotFoundException: Same conditions as ``update_booking``.
        """
        booking = await booking_db.get_owned_booking(
            session, _parse_booking_id(booking_id), email
        )
        if booking is None:
            booking_logger.warning(f"Delete refused for booking {booking_id}")
            raise BookingNotFoundException()

        if not await booking_db.delete(session, booking.id):
            raise BookingNotFoundException()

        booking_logger.info(f"Booking deleted: id={booking.id}")
