from fastapi import status


class AppException(Exception):
    """Base application exception."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        details: dict | None = None,
    ):
        self.message = message
        self.status_code = status_code or status.HTTP_500_INTERNAL_SERVER_ERROR
        self.details = details
        super().__init__(message)


class DatabaseException(AppException):
    """Exception raised for database-related errors."""

    def __init__(self, message: str = "A database error occurred."):
        super().__init__(message, status.HTTP_500_INTERNAL_SERVER_ERROR)


class EmailDeliveryException(AppException):
    """Exception raised when the email provider fails to accept a message."""

    def __init__(self, message: str = "Email delivery failed."):
        super().__init__(message, status.HTTP_500_INTERNAL_SERVER_ERROR)


class AuthenticationException(AppException):
    """Exception raised for authentication-related errors."""

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message, status.HTTP_401_UNAUTHORIZED)


class OTPNotFoundException(AppException):
    """Exception raised when there is no outstanding OTP for an email."""

    def __init__(
        self, message: str = "No verification code found. Please request a new one."
    ):
        super().__init__(message, status.HTTP_400_BAD_REQUEST)


class OTPExpiredException(AppException):
    """Exception raised when OTP has expired."""

    def __init__(
        self, message: str = "The verification code has expired. Please request a new one."
    ):
        super().__init__(message, status.HTTP_400_BAD_REQUEST)


class TooManyAttemptsException(AppException):
    """Exception raised when too many OTP verification attempts."""

    def __init__(
        self,
        message: str = "Too many incorrect attempts. Please request a new code.",
    ):
        super().__init__(message, status.HTTP_400_BAD_REQUEST)


class OTPInvalidException(AppException):
    """Exception raised when OTP is invalid."""

    def __init__(self, message: str = "Incorrect verification code. Please try again."):
        super().__init__(message, status.HTTP_400_BAD_REQUEST)


class RateLimitExceededException(AppException):
    """Exception raised when rate limit is exceeded."""

    def __init__(
        self,
        message: str = "Too many requests. Please try again later.",
        retry_after: int | None = None,
    ):
        super().__init__(message, status.HTTP_429_TOO_MANY_REQUESTS)
        self.retry_after = retry_after


class NotFoundException(AppException):
    """Exception raised when a resource is not found."""

    def __init__(self, message: str = "Resource not found."):
        super().__init__(message, status.HTTP_404_NOT_FOUND)


class BookingNotFoundException(NotFoundException):
    """
    Raised when a booking does not exist or is not owned by the caller.

    Both cases share one message so callers cannot probe for booking IDs.
    """

    def __init__(self, message: str = "Unable to find or access this booking"):
        super().__init__(message)


class ConflictException(AppException):
    """Exception raised when there's a conflict with existing resources."""

    def __init__(self, message: str = "Resource conflict."):
        super().__init__(message, status.HTTP_409_CONFLICT)


__all__ = [
    "AppException",
    "DatabaseException",
    "EmailDeliveryException",
    "AuthenticationException",
    "OTPNotFoundException",
    "OTPExpiredException",
    "TooManyAttemptsException",
    "OTPInvalidException",
    "RateLimitExceededException",
    "NotFoundException",
    "BookingNotFoundException",
    "ConflictException",
]
