"""
Routers for the bookings app.

All endpoints are mounted at the application root.
"""

from salon.apps.bookings.routers.create import router as create_booking_router
from salon.apps.bookings.routers.manage import router as manage_booking_router
from salon.apps.bookings.routers.otp import router as otp_router

__all__ = [
    "create_booking_router",
    "manage_booking_router",
    "otp_router",
]
