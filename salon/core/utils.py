"""
Utility functions for the application.

- One-time code generation and masking for logs
- HMAC-based OTP hashing for queryable secure storage
- Session token generation and SHA-256 digests
- Email normalization and client IP extraction
"""

import hashlib
import hmac
import secrets

from fastapi import Request

from salon.core.config import utils_logger

UNKNOWN_CLIENT = "unknown"


def generate_otp_code(length: int = 6) -> str:
    """
    Generate a numeric One-Time Password (OTP) code of specified length.

    Every digit is drawn independently, so all codes from ``000000`` to
    ``999999`` are equally likely and leading zeros are kept.

    Args:
        length: Length of the OTP code to generate. Default is 6.

    Returns:
        A string representing the numeric OTP code.
    """
    # Use secrets module for security-sensitive random numbers
    otp = "".join(secrets.choice("0123456789") for _ in range(length))

    utils_logger.info(f"OTP code of length {length} generated successfully")
    return otp


def mask_otp(otp: str) -> str:
    """
    Mask an OTP code for logging purposes, showing only first and last digit.

    Args:
        otp: The OTP code to mask.

    Returns:
        A masked version of the OTP (e.g., "123456" -> "1****6").

    Examples:
        >>> mask_otp("123456")
        '1****6'
        >>> mask_otp("12")
        '12'
    """
    if len(otp) <= 2:
        return otp

    return f"{otp[0]}{'*' * (len(otp) - 2)}{otp[-1]}"


def hmac_hash_otp(otp: str | None, secret: str | None) -> str:
    """
    Hash an OTP using HMAC-SHA256 for secure, queryable storage.

    HMAC produces deterministic hashes, so the stored digest can be compared
    directly while the secret key keeps a leaked table from being brute-forced
    over the small 6-digit space.

    Args:
        otp: The OTP code to hash. Cannot be None or empty.
        secret: The secret key for HMAC. Cannot be None or empty.

    Returns:
        str: The HMAC-SHA256 hash as a 64-character hexadecimal string.

    Raises:
        ValueError: If otp or secret is None or empty.

    Examples:
        >>> hashed = hmac_hash_otp("123456", "my_secret_key")
        >>> len(hashed)
        64
    """
    if not otp:
        utils_logger.error("Attempted to hash None or empty OTP")
        raise ValueError("OTP cannot be None or empty")

    if not secret:
        utils_logger.error("Attempted to hash OTP with None or empty secret")
        raise ValueError("Secret cannot be None or empty")

    hash_obj = hmac.new(secret.encode("utf-8"), otp.encode("utf-8"), hashlib.sha256)
    hashed = hash_obj.hexdigest()

    utils_logger.debug(f"OTP {mask_otp(otp)} hashed successfully with HMAC-SHA256")
    return hashed


def generate_session_token() -> str:
    """Generate a URL-safe random session token (256 bits of entropy)."""
    return secrets.token_urlsafe(32)


def hash_token(token: str) -> str:
    """
    Hash a token using SHA256.

    Session tokens are high-entropy and single-purpose, so an unsalted digest
    is enough to avoid storing them in plain text.

    Args:
        token: The plain token to hash.

    Returns:
        str: The SHA256 hash of the token (64 hex characters).
    """
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def normalize_email(email: str) -> str:
    """Trim surrounding whitespace and lower-case an email address."""
    return email.strip().lower()


def get_client_ip(request: Request) -> str:
    """
    Best-effort client IP for rate limiting.

    Prefers the first entry of ``X-Forwarded-For``, then ``X-Real-IP``, then
    falls back to ``"unknown"``. Clients behind an unrecognized proxy all share
    the fallback key, and therefore a quota.

    Args:
        request: The incoming request.

    Returns:
        str: The client identifier.
    """
    forwarded_for = request.headers.get("x-forwarded-for")
    if forwarded_for:
        first = forwarded_for.split(",")[0].strip()
        if first:
            return first

    real_ip = request.headers.get("x-real-ip")
    if real_ip and real_ip.strip():
        return real_ip.strip()

    return UNKNOWN_CLIENT
