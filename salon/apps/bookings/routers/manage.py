"""
Self-service booking management router.

A single endpoint, dispatched on the ``action`` field:
- ``search``: list the caller's bookings
- ``update``: change allowed fields of one booking
- ``delete``: remove one booking

Every action requires the session token issued by ``/send-otp``. A booking
that does not exist and a booking owned by someone else produce the same
404, so IDs cannot be probed.
"""

from typing import Annotated

from fastapi import APIRouter, Body, Depends

from salon.apps.bookings.schemas.booking import (
    BookingDetailResponse,
    BookingListResponse,
    BookingResponse,
    DeleteBookingRequest,
    SearchBookingsRequest,
    SuccessResponse,
    UpdateBookingRequest,
)
from salon.apps.bookings.services.booking import BookingService
from salon.apps.bookings.services.session import BookingSessionService
from salon.core.config import settings
from salon.core.dependencies import SessionDep
from salon.core.services.rate_limit import rate_limit_by_ip


router = APIRouter()

manage_booking_rate_limit = rate_limit_by_ip(
    "manage-booking",
    limit=settings.MANAGE_BOOKING_RATE_LIMIT_REQUESTS,
    window=settings.MANAGE_BOOKING_RATE_LIMIT_WINDOW,
)


@router.post(
    "/manage-booking",
    response_model=BookingListResponse | BookingDetailResponse | SuccessResponse,
    summary="Search, update or delete your bookings",
    dependencies=[Depends(manage_booking_rate_limit)],
    description="""
## Manage Your Bookings

Requires a `sessionToken` obtained from `/send-otp` (`action: "verify"`)
for the same email.

### Request Body

| Field | Type | Required | Description |
|-------|------|----------|-------------|
| `action` | string | ✅ | `search`, `update` or `delete` |
| `email` | string | ✅ | Email the session was issued for |
| `sessionToken` | string | ✅ | Session token from `/send-otp` |
| `bookingId` | string | `update`, `delete` | ID of the booking |
| `updates` | object | `update` | Fields to change |

### Allowed `updates` Fields

`service`, `date` (`YYYY-MM-DD`), `time` (`HH:MM`), `message` (alias `notes`),
`status`, `name`, `phone`. Any other key is rejected.

### Success Responses (200)

| Action | Body |
|--------|------|
| `search` | `{"bookings": [...]}` (possibly empty) |
| `update` | `{"booking": {...}}` |
| `delete` | `{"success": true}` |

### Error Responses

| Status | Reason |
|--------|--------|
| `400 Bad Request` | Invalid action, email, booking ID or update data |
| `401 Unauthorized` | Missing, invalid or expired session |
| `404 Not Found` | Booking not found or not yours |
| `429 Too Many Requests` | More than 10 requests per hour from this client |
""",
    responses={
        401: {
            "description": "Missing, invalid or expired session",
            "content": {"application/json": {"example": {"error": "Unauthorized"}}},
        },
        404: {
            "description": "Booking not found or not owned by this email",
            "content": {
                "application/json": {
                    "example": {"error": "Unable to find or access this booking"}
                }
            },
        },
    },
)
async def manage_booking(
    payload: Annotated[
        SearchBookingsRequest | UpdateBookingRequest | DeleteBookingRequest,
        Body(discriminator="action"),
    ],
    session: SessionDep,
) -> BookingListResponse | BookingDetailResponse | SuccessResponse:
    """
    Run one booking-management action for an authenticated email.

    Args:
        payload: The search, update or delete request.
        session: The async database session.

    Returns:
        The booking list, the updated booking, or a bare success flag.

    Raises:
        AuthenticationException: If the session does not authorize the email.
        BookingNotFoundException: If the booking is missing or not owned by
            the email.
    """
    await BookingSessionService.require_session(
        session, email=payload.email, token=payload.session_token
    )

    if isinstance(payload, SearchBookingsRequest):
        bookings = await BookingService.search_bookings(session, payload.email)
        return BookingListResponse(
            bookings=[BookingResponse.model_validate(b) for b in bookings]
        )

    if isinstance(payload, UpdateBookingRequest):
        booking = await BookingService.update_booking(
            session,
            email=payload.email,
            booking_id=payload.booking_id,
            updates=payload.updates,
        )
        return BookingDetailResponse(booking=BookingResponse.model_validate(booking))

    await BookingService.delete_booking(
        session, email=payload.email, booking_id=payload.booking_id
    )
    return SuccessResponse()
