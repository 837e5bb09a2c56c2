"""
Tests for the best-effort notifications sent after a booking is created.
"""

from datetime import date
from unittest.mock import AsyncMock, patch

import pytest


def _booking(**overrides):
    from salon.apps.bookings.db.models import Booking
    from salon.core.enums import BookingStatus

    data = {
        "name": "Anna Svensson",
        "email": "anna@example.com",
        "phone": "0701234567",
        "service": "Klippning",
        "date": date(2025, 3, 14),
        "time": "14:00",
        "message": None,
        "status": BookingStatus.PENDING,
    }
    data.update(overrides)
    return Booking(**data)


class TestFormatSwedishDate:

    def test_long_date(self):
        from salon.apps.bookings.services.notifications import format_swedish_date

        assert format_swedish_date(date(2025, 3, 14)) == "fredag 14 mars 2025"

    def test_sunday_in_december(self):
        from salon.apps.bookings.services.notifications import format_swedish_date

        assert format_swedish_date(date(2024, 12, 1)) == "söndag 1 december 2024"


class TestBuildConfirmationSMS:

    def test_contains_booking_and_salon_details(self):
        from salon.apps.bookings.services.notifications import build_confirmation_sms
        from salon.core.config import settings

        body = build_confirmation_sms(_booking())

        assert body.startswith("Hej Anna Svensson!")
        assert "Datum: fredag 14 mars 2025" in body
        assert "Tid: 14:00" in body
        assert "Tjänst: Klippning" in body
        assert settings.SALON_ADDRESS in body
        assert settings.SALON_PHONE in body


class TestBookingNotificationService:

    @pytest.mark.asyncio
    async def test_sends_email_and_sms(self):
        from salon.apps.bookings.services.notifications import (
            BookingNotificationService,
        )

        with patch(
            "salon.apps.bookings.services.notifications.EmailManagerService.send_booking_notification",
            new=AsyncMock(return_value=True),
        ) as mock_email, patch(
            "salon.apps.bookings.services.notifications.TwilioService.send_sms",
            new=AsyncMock(return_value=True),
        ) as mock_sms:
            outcome = await BookingNotificationService.notify_new_booking(_booking())

        assert outcome == {"email": True, "sms": True}
        assert mock_email.await_args.kwargs["status"] == "pending"
        assert mock_sms.await_args.kwargs["to_phone"] == "0701234567"

    @pytest.mark.asyncio
    async def test_failures_are_swallowed(self):
        from salon.apps.bookings.services.notifications import (
            BookingNotificationService,
        )

        with patch(
            "salon.apps.bookings.services.notifications.EmailManagerService.send_booking_notification",
            new=AsyncMock(side_effect=RuntimeError("smtp down")),
        ), patch(
            "salon.apps.bookings.services.notifications.TwilioService.send_sms",
            new=AsyncMock(side_effect=RuntimeError("twilio down")),
        ):
            outcome = await BookingNotificationService.notify_new_booking(_booking())

        assert outcome == {"email": False, "sms": False}

    @pytest.mark.asyncio
    async def test_unconfigured_channels_are_skipped(self):
        from salon.apps.bookings.services.notifications import (
            BookingNotificationService,
        )

        outcome = await BookingNotificationService.notify_new_booking(_booking())

        assert outcome == {"email": False, "sms": False}
