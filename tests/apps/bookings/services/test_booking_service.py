"""
Tests for booking creation and owner-scoped self-service operations.
"""

from datetime import date
from uuid import uuid4

import pytest


def _form(**overrides):
    from salon.apps.bookings.schemas.booking import CreateBookingRequest

    data = {
        "name": "Anna Svensson",
        "email": "anna@example.com",
        "phone": "0701234567",
        "services": ["Klippning", "Färgning"],
        "date": "2030-03-14",
        "time": "14:00",
    }
    data.update(overrides)
    return CreateBookingRequest.model_validate(data)


class TestCreateBooking:

    @pytest.mark.asyncio
    async def test_creates_pending_booking(self, db_session):
        from salon.apps.bookings.services.booking import BookingService
        from salon.core.enums import BookingStatus

        booking = await BookingService.create_booking(db_session, _form())

        assert booking.status is BookingStatus.PENDING
        assert booking.service == "Klippning, Färgning"
        assert booking.date == date(2030, 3, 14)

    @pytest.mark.asyncio
    async def test_taken_slot_conflicts(self, db_session, make_booking):
        from salon.apps.bookings.services.booking import BookingService
        from salon.core.exceptions.types import ConflictException

        await make_booking(booking_date=date(2030, 3, 14), booking_time="14:00")

        with pytest.raises(ConflictException) as exc_info:
            await BookingService.create_booking(db_session, _form())

        assert exc_info.value.message == "This time slot is already booked"

    @pytest.mark.asyncio
    async def test_cancelled_booking_frees_slot(self, db_session, make_booking):
        from salon.apps.bookings.services.booking import BookingService
        from salon.core.enums import BookingStatus

        await make_booking(
            booking_date=date(2030, 3, 14),
            booking_time="14:00",
            status=BookingStatus.CANCELLED,
        )

        booking = await BookingService.create_booking(db_session, _form())

        assert booking.id is not None


class TestOwnerOperations:

    @pytest.mark.asyncio
    async def test_search_returns_only_owned(self, db_session, make_booking):
        from salon.apps.bookings.services.booking import BookingService

        await make_booking(email="anna@example.com")
        await make_booking(email="bo@example.com", booking_time="15:00")

        bookings = await BookingService.search_bookings(db_session, "anna@example.com")

        assert [b.email for b in bookings] == ["anna@example.com"]

    @pytest.mark.asyncio
    async def test_search_empty(self, db_session):
        from salon.apps.bookings.services.booking import BookingService

        assert list(await BookingService.search_bookings(db_session, "x@example.com")) == []

    @pytest.mark.asyncio
    async def test_update_owned(self, db_session, make_booking):
        from salon.apps.bookings.schemas.booking import BookingUpdate
        from salon.apps.bookings.services.booking import BookingService

        booking = await make_booking(email="anna@example.com")

        updated = await BookingService.update_booking(
            db_session,
            "anna@example.com",
            str(booking.id),
            BookingUpdate.model_validate({"time": "16:00", "notes": "Sen ankomst"}),
        )

        assert updated.time == "16:00"
        assert updated.message == "Sen ankomst"
        assert updated.name == booking.name

    @pytest.mark.asyncio
    async def test_update_clears_message_with_null(self, db_session, make_booking):
        from salon.apps.bookings.schemas.booking import BookingUpdate
        from salon.apps.bookings.services.booking import BookingService

        booking = await make_booking(message="Hej")

        updated = await BookingService.update_booking(
            db_session,
            "anna@example.com",
            str(booking.id),
            BookingUpdate.model_validate({"message": None}),
        )

        assert updated.message is None

    @pytest.mark.asyncio
    @pytest.mark.parametrize("booking_id", ["not-a-uuid", str(uuid4())])
    async def test_update_missing_booking(self, db_session, booking_id):
        from salon.apps.bookings.schemas.booking import BookingUpdate
        from salon.apps.bookings.services.booking import BookingService
        from salon.core.exceptions.types import BookingNotFoundException

        with pytest.raises(BookingNotFoundException):
            await BookingService.update_booking(
                db_session,
                "anna@example.com",
                booking_id,
                BookingUpdate.model_validate({"time": "16:00"}),
            )

    @pytest.mark.asyncio
    async def test_cross_account_update_looks_like_missing(
        self, db_session, make_booking
    ):
        from salon.apps.bookings.db.models import Booking
        from salon.apps.bookings.schemas.booking import BookingUpdate
        from salon.apps.bookings.services.booking import BookingService
        from salon.core.exceptions.types import BookingNotFoundException

        booking = await make_booking(email="bo@example.com")

        with pytest.raises(BookingNotFoundException) as owned_elsewhere:
            await BookingService.update_booking(
                db_session,
                "anna@example.com",
                str(booking.id),
                BookingUpdate.model_validate({"time": "16:00"}),
            )
        with pytest.raises(BookingNotFoundException) as missing:
            await BookingService.update_booking(
                db_session,
                "anna@example.com",
                str(uuid4()),
                BookingUpdate.model_validate({"time": "16:00"}),
            )

        assert owned_elsewhere.value.message == missing.value.message
        unchanged = await db_session.get(Booking, booking.id, populate_existing=True)
        assert unchanged.time == "14:00"

    @pytest.mark.asyncio
    async def test_delete_owned(self, db_session, make_booking):
        from salon.apps.bookings.db.models import Booking
        from salon.apps.bookings.services.booking import BookingService

        booking = await make_booking(email="anna@example.com")

        await BookingService.delete_booking(db_session, "anna@example.com", str(booking.id))

        assert await db_session.get(Booking, booking.id, populate_existing=True) is None

    @pytest.mark.asyncio
    async def test_cross_account_delete_refused(self, db_session, make_booking):
        from salon.apps.bookings.db.models import Booking
        from salon.apps.bookings.services.booking import BookingService
        from salon.core.exceptions.types import BookingNotFoundException

        booking = await make_booking(email="bo@example.com")

        with pytest.raises(BookingNotFoundException):
            await BookingService.delete_booking(
                db_session, "anna@example.com", str(booking.id)
            )

        assert await db_session.get(Booking, booking.id, populate_existing=True) is not None
