"""
Public booking form router.

The booking is committed first; the admin email and the customer SMS are
sent afterwards in the background and never affect the response.
"""

from fastapi import APIRouter, BackgroundTasks, Depends

from salon.apps.bookings.schemas.booking import (
    CreateBookingRequest,
    CreateBookingResponse,
)
from salon.apps.bookings.services.booking import BookingService
from salon.apps.bookings.services.notifications import BookingNotificationService
from salon.core.config import settings
from salon.core.dependencies import SessionDep
from salon.core.services.rate_limit import rate_limit_by_ip


router = APIRouter()

create_booking_rate_limit = rate_limit_by_ip(
    "create-booking",
    limit=settings.CREATE_BOOKING_RATE_LIMIT_REQUESTS,
    window=settings.CREATE_BOOKING_RATE_LIMIT_WINDOW,
)


@router.post(
    "/create-booking",
    response_model=CreateBookingResponse,
    summary="Book an appointment",
    dependencies=[Depends(create_booking_rate_limit)],
    description="""
## Book an Appointment

### Request Body

| Field | Type | Required | Description |
|-------|------|----------|-------------|
| `name` | string | ✅ | Customer name (1-100 chars) |
| `email` | string | ✅ | Customer email |
| `phone` | string | ✅ | Customer phone (3-20 chars) |
| `services` | string[] | one of | Selected services (1-10) |
| `service` | string | one of | Single service description |
| `date` | string | ✅ | `YYYY-MM-DD` |
| `time` | string | ✅ | `HH:MM` |
| `message` | string | ❌ | Notes for the salon |

### Success Response (200)

```json
{"success": true, "bookingId": "0b6f6d1e-7b1a-4f4e-9d7c-1f0e2a3b4c5d"}
```

### Error Responses

| Status | Reason |
|--------|--------|
| `400 Bad Request` | Invalid or unknown fields |
| `409 Conflict` | The time slot is already booked |
| `429 Too Many Requests` | More than 10 bookings per hour from this client |

### Notes

- New bookings start as `pending`
- A cancelled booking does not block its slot
- The salon is notified by email and the customer receives an SMS confirmation
""",
    responses={
        409: {
            "description": "Time slot already booked",
            "content": {
                "application/json": {
                    "example": {"error": "This time slot is already booked"}
                }
            },
        },
    },
)
async def create_booking(
    payload: CreateBookingRequest,
    session: SessionDep,
    background_tasks: BackgroundTasks,
) -> CreateBookingResponse:
    """
    Store a new booking and schedule its notifications.

    Raises:
        ConflictException: If the slot is held by a non-cancelled booking.
    """
    booking = await BookingService.create_booking(session, payload)

    background_tasks.add_task(BookingNotificationService.notify_new_booking, booking)

    return CreateBookingResponse(bookingId=booking.id)
