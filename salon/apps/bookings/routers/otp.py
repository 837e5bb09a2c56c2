"""
One-time code router for booking self-service.

A single endpoint, dispatched on the ``action`` field:
- ``send``: email a verification code to the address (if it owns bookings)
- ``verify``: exchange a valid code for a booking-management session token

Both actions draw from the same per-IP rate limit budget.
"""

from typing import Annotated

from fastapi import APIRouter, Body, Depends

from salon.apps.bookings.schemas.otp import (
    SendOTPRequest,
    SendOTPResponse,
    VerifyOTPRequest,
    VerifyOTPResponse,
)
from salon.apps.bookings.services.otp import OTPService
from salon.core.config import settings
from salon.core.dependencies import SessionDep
from salon.core.services.rate_limit import rate_limit_by_ip


router = APIRouter()

otp_rate_limit = rate_limit_by_ip(
    "otp",
    limit=settings.OTP_RATE_LIMIT_REQUESTS,
    window=settings.OTP_RATE_LIMIT_WINDOW,
)


@router.post(
    "/send-otp",
    response_model=SendOTPResponse | VerifyOTPResponse,
    summary="Request or redeem a verification code",
    dependencies=[Depends(otp_rate_limit)],
    description="""
## Booking Verification Code

Prove control of an email address before managing its bookings.

### Request Body

| Field | Type | Required | Description |
|-------|------|----------|-------------|
| `action` | string | ✅ | `send` or `verify` |
| `email` | string | ✅ | Email address the bookings were made with |
| `otp` | string | `verify` only | 6-digit code from the email |

### `send` Response (200)

Always the same, whether or not the email has bookings:

```json
{
  "success": true,
  "message": "If bookings exist for this email, you will receive a verification code."
}
```

### `verify` Response (200)

```json
{
  "success": true,
  "sessionToken": "q0kX3n...",
  "message": "Verified!"
}
```

Pass `sessionToken` with every `/manage-booking` request.

### Error Responses

| Status | Reason |
|--------|--------|
| `400 Bad Request` | Invalid input, no code found, code expired, too many attempts, or wrong code |
| `429 Too Many Requests` | More than 5 requests per hour from this client |
| `500 Internal Server Error` | The code could not be delivered |

### Notes

- Codes expire after **10 minutes** and can be redeemed **once**
- After **5** wrong guesses the code is discarded; request a new one
- Requesting a new code replaces the previous one
- Sessions are valid for **30 minutes**
""",
    responses={
        400: {
            "description": "Invalid input or verification failed",
            "content": {
                "application/json": {
                    "example": {"error": "Invalid verification code"}
                }
            },
        },
        429: {
            "description": "Rate limit exceeded",
            "content": {
                "application/json": {
                    "example": {"error": "Too many requests. Please try again later."}
                }
            },
        },
    },
)
async def send_otp(
    payload: Annotated[
        SendOTPRequest | VerifyOTPRequest, Body(discriminator="action")
    ],
    session: SessionDep,
) -> SendOTPResponse | VerifyOTPResponse:
    """
    Issue or redeem a booking verification code.

    Args:
        payload: Either a ``send`` or a ``verify`` request.
        session: The async database session.

    Returns:
        SendOTPResponse | VerifyOTPResponse: The generic send acknowledgement,
            or the new session token.

    Raises:
        OTPNotFoundException: No code is pending for this email.
        OTPExpiredException: The pending code has expired.
        TooManyAttemptsException: The pending code was guessed wrong too often.
        OTPInvalidException: The code does not match.
        EmailDeliveryException: The code could not be delivered.
    """
    if isinstance(payload, SendOTPRequest):
        # Whether a code was issued stays server-side
        await OTPService.send_otp(session=session, email=payload.email)
        return SendOTPResponse()

    token = await OTPService.verify_otp(
        session=session, email=payload.email, otp_code=payload.otp
    )
    return VerifyOTPResponse(sessionToken=token)
