"""
Booking schemas for request validation and response serialization.

- Public booking creation
- Self-service search, update and delete of an owner's bookings
"""

from datetime import date, datetime
import re
from typing import Annotated, Literal, Self
from uuid import UUID

from pydantic import (
    AliasChoices,
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    StringConstraints,
    model_validator,
)

from salon.apps.bookings.schemas.otp import NormalizedEmail
from salon.core.enums import BookingStatus

NameStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=100)]
PhoneStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=3, max_length=20)]
ServiceStr = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=500)]
ServiceItemStr = Annotated[
    str, StringConstraints(strip_whitespace=True, min_length=1, max_length=120)
]
MessageStr = Annotated[str, StringConstraints(strip_whitespace=True, max_length=1000)]

_ISO_DATE = re.compile(r"^[0-9]{4}-[0-9]{2}-[0-9]{2}$")


def _require_iso_date(value):
    if isinstance(value, date):
        return value
    if isinstance(value, str) and _ISO_DATE.match(value):
        return value
    raise ValueError("Date must be YYYY-MM-DD")


# ISO date string only, e.g. "2025-03-14"
BookingDate = Annotated[date, BeforeValidator(_require_iso_date)]

# 24-hour "HH:MM"
TimeStr = Annotated[
    str,
    StringConstraints(pattern=r"^([01][0-9]|2[0-3]):[0-5][0-9]$"),
    Field(description="Appointment time as HH:MM"),
]


class CreateBookingRequest(BaseModel):
    """Public booking form submission."""

    model_config = ConfigDict(
        extra="forbid",
        json_schema_extra={
            "example": {
                "name": "Anna Svensson",
                "email": "anna@example.com",
                "phone": "0701234567",
                "services": ["Klippning", "Färgning"],
                "date": "2025-03-14",
                "time": "14:00",
                "message": "Första besöket",
            }
        },
    )

    name: NameStr
    email: NormalizedEmail
    phone: PhoneStr
    services: Annotated[list[ServiceItemStr], Field(min_length=1, max_length=10)] | None = None
    service: ServiceStr | None = None
    date: BookingDate
    time: TimeStr
    message: MessageStr | None = None

    @model_validator(mode="after")
    def _require_service(self) -> Self:
        if not self.services and not self.service:
            raise ValueError("Service is required")
        return self

    @property
    def service_text(self) -> str:
        """The stored service string: selected services joined, else ``service``."""
        if self.services:
            return ", ".join(self.services)
        return self.service or ""


class CreateBookingResponse(BaseModel):
    success: bool = True
    bookingId: UUID


class BookingUpdate(BaseModel):
    """
    Fields a customer may change on their own booking.

    Any other key is rejected. ``notes`` is accepted as a synonym for
    ``message``.
    """

    model_config = ConfigDict(
        extra="forbid",
        json_schema_extra={"example": {"time": "14:00"}},
    )

    service: ServiceStr | None = None
    date: BookingDate | None = None
    time: TimeStr | None = None
    message: MessageStr | None = Field(
        default=None, validation_alias=AliasChoices("message", "notes")
    )
    status: BookingStatus | None = None
    name: NameStr | None = None
    phone: PhoneStr | None = None

    @model_validator(mode="after")
    def _require_changes(self) -> Self:
        if not self.model_fields_set:
            raise ValueError("No fields to update")
        for field in self.model_fields_set - {"message"}:
            if getattr(self, field) is None:
                raise ValueError(f"{field} cannot be null")
        return self

    def to_updates(self) -> dict:
        """Only the fields the client actually sent."""
        return self.model_dump(exclude_unset=True)


class _ManageBookingBase(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    email: NormalizedEmail
    session_token: str | None = Field(default=None, alias="sessionToken")


class SearchBookingsRequest(_ManageBookingBase):
    """List every booking owned by the authenticated email."""

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "action": "search",
                "email": "user@example.com",
                "sessionToken": "q0kX3n...",
            }
        },
    )

    action: Literal["search"]


class UpdateBookingRequest(_ManageBookingBase):
    """Change selected fields of one owned booking."""

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "action": "update",
                "email": "user@example.com",
                "sessionToken": "q0kX3n...",
                "bookingId": "0b6f6d1e-7b1a-4f4e-9d7c-1f0e2a3b4c5d",
                "updates": {"time": "14:00"},
            }
        },
    )

    action: Literal["update"]
    booking_id: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)] = Field(
        alias="bookingId"
    )
    updates: BookingUpdate


class DeleteBookingRequest(_ManageBookingBase):
    """Delete one owned booking."""

    model_config = ConfigDict(
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "action": "delete",
                "email": "user@example.com",
                "sessionToken": "q0kX3n...",
                "bookingId": "0b6f6d1e-7b1a-4f4e-9d7c-1f0e2a3b4c5d",
            }
        },
    )

    action: Literal["delete"]
    booking_id: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1)] = Field(
        alias="bookingId"
    )


ManageBookingRequest = SearchBookingsRequest | UpdateBookingRequest | DeleteBookingRequest


class BookingResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    email: str
    phone: str
    service: str
    date: date
    time: str
    message: str | None = None
    status: BookingStatus
    created_at: datetime
    updated_at: datetime


class BookingListResponse(BaseModel):
    bookings: list[BookingResponse]


class BookingDetailResponse(BaseModel):
    booking: BookingResponse


class SuccessResponse(BaseModel):
    # Closed so it never absorbs the other manage-booking response shapes
    model_config = ConfigDict(extra="forbid")

    success: bool = True
