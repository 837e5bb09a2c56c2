"""
Tests for code generation, hashing and request helpers.
"""

from fastapi import Request
import pytest


def _request(headers: dict[str, str]) -> Request:
    raw = [(k.lower().encode(), v.encode()) for k, v in headers.items()]
    return Request({"type": "http", "method": "POST", "path": "/", "headers": raw})


class TestGenerateOTPCode:

    def test_six_digits(self):
        from salon.core.utils import generate_otp_code

        code = generate_otp_code()

        assert len(code) == 6
        assert code.isdigit()

    def test_custom_length(self):
        from salon.core.utils import generate_otp_code

        assert len(generate_otp_code(8)) == 8

    def test_leading_zeros_are_possible(self):
        from salon.core.utils import generate_otp_code

        codes = {generate_otp_code() for _ in range(2000)}

        assert any(code.startswith("0") for code in codes)


class TestMaskOTP:

    def test_masks_middle_digits(self):
        from salon.core.utils import mask_otp

        assert mask_otp("123456") == "1****6"

    def test_short_values_unchanged(self):
        from salon.core.utils import mask_otp

        assert mask_otp("12") == "12"


class TestHMACHashOTP:

    def test_deterministic(self):
        from salon.core.utils import hmac_hash_otp

        assert hmac_hash_otp("123456", "secret") == hmac_hash_otp("123456", "secret")

    def test_depends_on_secret(self):
        from salon.core.utils import hmac_hash_otp

        assert hmac_hash_otp("123456", "a") != hmac_hash_otp("123456", "b")

    def test_digest_does_not_contain_code(self):
        from salon.core.utils import hmac_hash_otp

        digest = hmac_hash_otp("123456", "secret")

        assert len(digest) == 64
        assert "123456" not in digest

    @pytest.mark.parametrize("otp, secret", [("", "secret"), ("123456", ""), (None, "s")])
    def test_rejects_empty_input(self, otp, secret):
        from salon.core.utils import hmac_hash_otp

        with pytest.raises(ValueError):
            hmac_hash_otp(otp, secret)


class TestSessionTokens:

    def test_tokens_are_unique_and_long(self):
        from salon.core.utils import generate_session_token

        tokens = {generate_session_token() for _ in range(50)}

        assert len(tokens) == 50
        assert all(len(token) >= 43 for token in tokens)

    def test_hash_token_is_sha256_hex(self):
        from salon.core.utils import hash_token

        digest = hash_token("token")

        assert len(digest) == 64
        assert digest != "token"


class TestNormalizeEmail:

    def test_trims_and_lowercases(self):
        from salon.core.utils import normalize_email

        assert normalize_email("  Anna@Example.COM ") == "anna@example.com"


class TestGetClientIP:

    def test_first_forwarded_for_entry(self):
        from salon.core.utils import get_client_ip

        request = _request({"X-Forwarded-For": "203.0.113.5, 10.0.0.1"})

        assert get_client_ip(request) == "203.0.113.5"

    def test_real_ip_fallback(self):
        from salon.core.utils import get_client_ip

        assert get_client_ip(_request({"X-Real-IP": " 198.51.100.7 "})) == "198.51.100.7"

    def test_forwarded_for_wins_over_real_ip(self):
        from salon.core.utils import get_client_ip

        request = _request({"X-Forwarded-For": "203.0.113.5", "X-Real-IP": "198.51.100.7"})

        assert get_client_ip(request) == "203.0.113.5"

    def test_unknown_without_headers(self):
        from salon.core.utils import UNKNOWN_CLIENT, get_client_ip

        assert get_client_ip(_request({})) == UNKNOWN_CLIENT
