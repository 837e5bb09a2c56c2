from salon.apps.bookings.services.booking import BookingService
from salon.apps.bookings.services.notifications import BookingNotificationService
from salon.apps.bookings.services.otp import OTPService, classify_challenge
from salon.apps.bookings.services.session import BookingSessionService

__all__ = [
    "BookingService",
    "BookingNotificationService",
    "BookingSessionService",
    "OTPService",
    "classify_challenge",
]
