"""
Best-effort notifications sent after a booking is created.

Nothing in here may raise: a failed email or SMS is logged and reported as
False, and the booking it belongs to stands regardless.
"""

import datetime

from salon.apps.bookings.db.models import Booking
from salon.core.config import booking_logger, settings
from salon.core.services.email_manager import EmailManagerService
from salon.core.services.twilio import TwilioService

_SV_WEEKDAYS = ("måndag", "tisdag", "onsdag", "torsdag", "fredag", "lördag", "söndag")
_SV_MONTHS = (
    "januari",
    "februari",
    "mars",
    "april",
    "maj",
    "juni",
    "juli",
    "augusti",
    "september",
    "oktober",
    "november",
    "december",
)


def format_swedish_date(value: datetime.date) -> str:
    """
    Long Swedish date, e.g. ``fredag 14 mars 2025``.

    Built from fixed name tables so output does not depend on the host locale.
    """
    return (
        f"{_SV_WEEKDAYS[value.weekday()]} {value.day} "
        f"{_SV_MONTHS[value.month - 1]} {value.year}"
    )


def build_confirmation_sms(booking: Booking) -> str:
    """Text of the SMS sent to the customer after booking."""
    return (
        f"Hej {booking.name}!\n\n"
        f"Din bokning hos {settings.APP_NAME} är bekräftad:\n\n"
        f"Datum: {format_swedish_date(booking.date)}\n"
        f"Tid: {booking.time}\n"
        f"Tjänst: {booking.service}\n\n"
        f"Adress: {settings.SALON_ADDRESS}\n"
        f"Telefon: {settings.SALON_PHONE}\n\n"
        f"Vi ser fram emot ditt besök!\n\n"
        f"Mvh,\n{settings.APP_NAME}"
    )


class BookingNotificationService:

    @classmethod
    async def notify_admin(cls, booking: Booking) -> bool:
        try:
            return await EmailManagerService.send_booking_notification(
                name=booking.name,
                email=booking.email,
                phone=booking.phone,
                service=booking.service,
                booking_date=booking.date,
                booking_time=booking.time,
                status=booking.status.value,
                message=booking.message,
            )
        except Exception as e:
            booking_logger.error(
                f"Admin notification failed for booking {booking.id}: {e}"
            )
            return False

    @classmethod
    async def send_confirmation_sms(cls, booking: Booking) -> bool:
        try:
            return await TwilioService.send_sms(
                to_phone=booking.phone, body=build_confirmation_sms(booking)
            )
        except Exception as e:
            booking_logger.error(
                f"Confirmation SMS failed for booking {booking.id}: {e}"
            )
            return False

    @classmethod
    async def notify_new_booking(cls, booking: Booking) -> dict[str, bool]:
        """
        Send the admin email and the customer SMS for a new booking.

        Args:
            booking: The committed booking.

        Returns:
            dict[str, bool]: Delivery outcome per channel (``email``, ``sms``).
        """
        outcome = {
            "email": await cls.notify_admin(booking),
            "sms": await cls.send_confirmation_sms(booking),
        }
        booking_logger.info(f"Notifications for booking {booking.id}: {outcome}")
        return outcome
