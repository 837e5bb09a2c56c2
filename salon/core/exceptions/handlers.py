"""
Exception handlers that turn application errors into JSON error responses.

Every error body has the shape ``{"error": "<message>"}``. Client errors carry
their own (deliberately terse) message; server-side failures always return the
same generic message and keep the details in the logs.
"""

from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from salon.core.config import request_logger
from salon.core.exceptions.types import (
    AppException,
    AuthenticationException,
    DatabaseException,
    EmailDeliveryException,
    RateLimitExceededException,
)

GENERIC_ERROR_MESSAGE = "Unable to process request"


def _error_response(
    status_code: int, message: str, headers: dict[str, str] | None = None
) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": message},
        headers=headers,
    )


async def general_exception_handler(request: Request, exc: AppException):
    """
    Handles application exceptions.

    4xx exceptions are expected, user-recoverable outcomes and keep their
    message. Anything else is logged and answered with the generic message.

    Args:
        request: The request object.
        exc (AppException): The exception instance.

    Returns:
        JSONResponse: A response containing the error message.
    """
    if exc.status_code < status.HTTP_500_INTERNAL_SERVER_ERROR:
        request_logger.warning(
            f"{type(exc).__name__} on {request.url.path}: {exc.message}"
        )
        return _error_response(exc.status_code, exc.message)

    request_logger.error(
        f"{type(exc).__name__} on {request.url.path}: {exc.message} "
        f"details={exc.details}"
    )
    return _error_response(exc.status_code, GENERIC_ERROR_MESSAGE)


async def database_exception_handler(request: Request, exc: DatabaseException):
    """
    Handles database exceptions without leaking driver errors to the client.

    Args:
        request: The request object.
        exc (DatabaseException): The database exception instance.

    Returns:
        JSONResponse: A generic 500 response.
    """
    request_logger.error(f"DatabaseException on {request.url.path}: {exc}")
    return _error_response(exc.status_code, GENERIC_ERROR_MESSAGE)


async def email_delivery_exception_handler(
    request: Request, exc: EmailDeliveryException
):
    """
    Handles email provider failures with a generic 500 response.

    Args:
        request: The request object.
        exc (EmailDeliveryException): The delivery exception instance.

    Returns:
        JSONResponse: A generic 500 response.
    """
    request_logger.error(f"EmailDeliveryException on {request.url.path}: {exc}")
    return _error_response(exc.status_code, GENERIC_ERROR_MESSAGE)


async def authentication_exception_handler(
    request: Request, exc: AuthenticationException
):
    """
    Handles authentication exceptions by returning a JSON response.

    Args:
        request: The request object.
        exc (AuthenticationException): The authentication exception instance.

    Returns:
        JSONResponse: A response containing the error message and status code 401.
    """
    request_logger.warning(f"AuthenticationException on {request.url.path}: {exc}")
    return _error_response(
        exc.status_code,
        exc.message,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def rate_limit_exception_handler(
    request: Request, exc: RateLimitExceededException
):
    """
    Handles rate limit exceeded exceptions by returning a JSON response.

    Args:
        request: The request object.
        exc (RateLimitExceededException): The rate limit exception instance.

    Returns:
        JSONResponse: A response with status code 429 and optional Retry-After header.
    """
    request_logger.warning(f"RateLimitExceededException on {request.url.path}: {exc}")
    headers = {}
    if exc.retry_after:
        headers["Retry-After"] = str(exc.retry_after)
    return _error_response(exc.status_code, exc.message, headers=headers)


def _validation_message(request: Request, exc: RequestValidationError) -> str:
    """Pick a short, field-level message for the first validation error."""
    if request.url.path.rstrip("/").endswith("/create-booking"):
        return "Invalid booking data"

    errors = exc.errors()
    if not errors:
        return "Invalid request data"

    error = errors[0]
    loc = [str(part) for part in error.get("loc", ())]
    error_type = str(error.get("type", ""))

    if error_type.startswith("union_tag") or "action" in loc:
        return "Invalid action"
    if "bookingId" in loc:
        return "Booking ID is required"
    if "updates" in loc:
        return "Invalid update data"
    if "otp" in loc:
        return "Invalid verification code"
    if "email" in loc:
        return "Invalid email address"
    return "Invalid request data"


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
):
    """
    Maps request validation failures to 400 with a generic, field-level message.

    Args:
        request: The request object.
        exc (RequestValidationError): The validation error raised by FastAPI.

    Returns:
        JSONResponse: A 400 response.
    """
    message = _validation_message(request, exc)
    request_logger.info(f"Validation failed on {request.url.path}: {message}")
    return _error_response(status.HTTP_400_BAD_REQUEST, message)


async def unhandled_exception_handler(request: Request, exc: Exception):
    """
    Last-resort handler: logs the exception and returns the generic message.

    Args:
        request: The request object.
        exc (Exception): The unexpected exception.

    Returns:
        JSONResponse: A generic 500 response.
    """
    request_logger.exception(
        f"Unhandled {type(exc).__name__} on {request.url.path}: {exc}"
    )
    return _error_response(
        status.HTTP_500_INTERNAL_SERVER_ERROR, GENERIC_ERROR_MESSAGE
    )


exception_schema = {
    status.HTTP_400_BAD_REQUEST: {
        "description": "Validation Error",
        "content": {
            "application/json": {
                "example": {"error": "Invalid email address"},
            }
        },
    },
    status.HTTP_429_TOO_MANY_REQUESTS: {
        "description": "Rate Limit Exceeded",
        "content": {
            "application/json": {
                "example": {"error": "Too many requests. Please try again later."},
            }
        },
    },
    status.HTTP_500_INTERNAL_SERVER_ERROR: {
        "description": "Internal Server Error",
        "content": {
            "application/json": {
                "example": {"error": GENERIC_ERROR_MESSAGE},
            }
        },
    },
}


__all__ = [
    "GENERIC_ERROR_MESSAGE",
    "general_exception_handler",
    "database_exception_handler",
    "email_delivery_exception_handler",
    "authentication_exception_handler",
    "rate_limit_exception_handler",
    "validation_exception_handler",
    "unhandled_exception_handler",
    "exception_schema",
]
