"""
CRUD operations for the bookings app.
"""

from salon.apps.bookings.db.crud.booking import BookingDB, booking_db
from salon.apps.bookings.db.crud.otp_challenge import (
    BookingSessionDB,
    OTPChallengeDB,
    booking_session_db,
    otp_challenge_db,
)

__all__ = [
    "BookingDB",
    "BookingSessionDB",
    "OTPChallengeDB",
    "booking_db",
    "booking_session_db",
    "otp_challenge_db",
]
