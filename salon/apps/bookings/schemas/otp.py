"""
Schemas for the send-otp endpoint.

- Requesting a verification code (``action: "send"``)
- Redeeming a code for a session token (``action: "verify"``)
"""

from typing import Annotated, Literal

from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    EmailStr,
    Field,
    StringConstraints,
)

from salon.core.utils import normalize_email


def _normalize_email_input(value):
    if isinstance(value, str):
        return normalize_email(value)
    return value


# Email trimmed and lower-cased before syntax validation
NormalizedEmail = Annotated[
    EmailStr,
    BeforeValidator(_normalize_email_input),
    Field(description="Customer email address"),
]

# OTP code with pattern validation
OTPCodeStr = Annotated[
    str,
    StringConstraints(min_length=6, max_length=6, pattern=r"^[0-9]{6}$"),
    Field(description="6-digit verification code"),
]

# Same body for every send, whether or not the email has bookings
SEND_OTP_MESSAGE = "If bookings exist for this email, you will receive a verification code."
VERIFY_OTP_MESSAGE = "Verified!"


class SendOTPRequest(BaseModel):
    """Request a verification code for an email."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {"action": "send", "email": "user@example.com"}
        }
    )

    action: Literal["send"]
    email: NormalizedEmail


class VerifyOTPRequest(BaseModel):
    """Redeem a verification code for a booking-management session."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {"action": "verify", "email": "user@example.com", "otp": "123456"}
        }
    )

    action: Literal["verify"]
    email: NormalizedEmail
    otp: OTPCodeStr


OTPRequest = SendOTPRequest | VerifyOTPRequest


class SendOTPResponse(BaseModel):
    """Generic send response, identical whether or not a code was issued."""

    model_config = ConfigDict(
        extra="forbid",
        json_schema_extra={
            "example": {"success": True, "message": SEND_OTP_MESSAGE}
        }
    )

    success: bool = True
    message: str = SEND_OTP_MESSAGE


class VerifyOTPResponse(BaseModel):
    """Successful verification carrying the one-time-visible session token."""

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "success": True,
                "sessionToken": "q0kX3n...",
                "message": VERIFY_OTP_MESSAGE,
            }
        }
    )

    success: bool = True
    sessionToken: str
    message: str = VERIFY_OTP_MESSAGE
