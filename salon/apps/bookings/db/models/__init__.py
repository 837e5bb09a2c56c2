"""
Database models for the bookings app.
"""

from salon.apps.bookings.db.models.booking import Booking
from salon.apps.bookings.db.models.booking_session import BookingSession
from salon.apps.bookings.db.models.otp_challenge import OTPChallenge

__all__ = [
    "Booking",
    "BookingSession",
    "OTPChallenge",
]
