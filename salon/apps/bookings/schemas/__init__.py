from salon.apps.bookings.schemas.booking import (
    BookingDetailResponse,
    BookingListResponse,
    BookingResponse,
    BookingUpdate,
    CreateBookingRequest,
    CreateBookingResponse,
    DeleteBookingRequest,
    ManageBookingRequest,
    SearchBookingsRequest,
    SuccessResponse,
    UpdateBookingRequest,
)
from salon.apps.bookings.schemas.otp import (
    NormalizedEmail,
    OTPCodeStr,
    OTPRequest,
    SendOTPRequest,
    SendOTPResponse,
    VerifyOTPRequest,
    VerifyOTPResponse,
)

__all__ = [
    "BookingDetailResponse",
    "BookingListResponse",
    "BookingResponse",
    "BookingUpdate",
    "CreateBookingRequest",
    "CreateBookingResponse",
    "DeleteBookingRequest",
    "ManageBookingRequest",
    "SearchBookingsRequest",
    "SuccessResponse",
    "UpdateBookingRequest",
    "NormalizedEmail",
    "OTPCodeStr",
    "OTPRequest",
    "SendOTPRequest",
    "SendOTPResponse",
    "VerifyOTPRequest",
    "VerifyOTPResponse",
]
