"""Tests for HS256 token creation and verification."""

import hashlib
import hmac
import json
from datetime import datetime, timezone

import pytest
from jose import jwt as jose_jwt

from tollgate.app.auth.tokens import (
    ERROR_ALGORITHM,
    ERROR_EXPIRED,
    ERROR_FORMAT,
    ERROR_SIGNATURE,
    ERROR_TAMPERED,
    InvalidToken,
    ValidToken,
    base64url_decode,
    base64url_encode,
    create_jwt,
    verify_jwt,
)

SECRET = "test-secret-key"
NOW = 1_700_000_000


def _signed(header: dict, payload_segment: str, secret: str = SECRET) -> str:
    """Build a correctly signed token from raw parts."""
    header_segment = base64url_encode(json.dumps(header).encode())
    signing_input = f"{header_segment}.{payload_segment}"
    signature = hmac.new(secret.encode(), signing_input.encode(), hashlib.sha256).digest()
    return f"{signing_input}.{base64url_encode(signature)}"


class TestBase64Url:
    def test_encoding_is_unpadded_and_url_safe(self):
        encoded = base64url_encode(b"\xfb\xff\xfe")
        assert encoded == "-__-"
        assert "=" not in base64url_encode(b"a")

    def test_decode_restores_padding(self):
        assert base64url_decode("YQ") == b"a"


class TestCreateJwt:
    def test_header_and_payload_segments(self):
        token = create_jwt({"sub": "user-123", "exp": NOW + 60}, SECRET)
        header_segment, payload_segment, _ = token.split(".")

        assert json.loads(base64url_decode(header_segment)) == {"alg": "HS256", "typ": "JWT"}
        assert json.loads(base64url_decode(payload_segment)) == {"sub": "user-123", "exp": NOW + 60}

    def test_signature_is_deterministic(self):
        payload = {"sub": "user-123"}
        assert create_jwt(payload, SECRET) == create_jwt(payload, SECRET)

    def test_readable_by_standard_jwt_libraries(self):
        token = create_jwt({"sub": "user-123", "role": "admin"}, SECRET)
        assert jose_jwt.decode(token, SECRET, algorithms=["HS256"]) == {"sub": "user-123", "role": "admin"}

    def test_bytes_secret_matches_str_secret(self):
        payload = {"sub": "user-123"}
        assert create_jwt(payload, SECRET.encode()) == create_jwt(payload, SECRET)


class TestVerifyJwt:
    def test_valid_token(self):
        payload = {"sub": "user-123", "role": "admin", "exp": NOW + 3600}
        result = verify_jwt(create_jwt(payload, SECRET), SECRET, now=NOW)

        assert isinstance(result, ValidToken)
        assert result.valid is True
        assert result.payload == payload

    def test_token_without_exp_never_expires(self):
        result = verify_jwt(create_jwt({"sub": "u"}, SECRET), SECRET, now=NOW)
        assert result.valid is True

    def test_tampered_payload(self):
        token = create_jwt({"sub": "user-123", "role": "viewer"}, SECRET)
        header_segment, payload_segment, signature = token.split(".")
        replacement = "B" if payload_segment[5] != "B" else "C"
        tampered_payload = payload_segment[:5] + replacement + payload_segment[6:]

        result = verify_jwt(f"{header_segment}.{tampered_payload}.{signature}", SECRET, now=NOW)

        assert isinstance(result, InvalidToken)
        assert result.error == ERROR_TAMPERED

    def test_escalated_role_is_rejected(self):
        token = create_jwt({"sub": "user-123", "role": "viewer"}, SECRET)
        header_segment, _, signature = token.split(".")
        forged = base64url_encode(json.dumps({"sub": "user-123", "role": "admin"}).encode())

        result = verify_jwt(f"{header_segment}.{forged}.{signature}", SECRET, now=NOW)
        assert result.error == ERROR_TAMPERED

    def test_wrong_secret(self):
        token = create_jwt({"sub": "user-123"}, "other-secret")
        result = verify_jwt(token, SECRET, now=NOW)
        assert result.valid is False
        assert result.error == ERROR_TAMPERED

    def test_expired_token(self):
        token = create_jwt({"sub": "user-123", "exp": NOW - 1}, SECRET)
        result = verify_jwt(token, SECRET, now=NOW)

        assert isinstance(result, InvalidToken)
        assert result.error == ERROR_EXPIRED
        assert result.expired_at == datetime.fromtimestamp(NOW - 1, tz=timezone.utc)
        assert result.expired_at.tzinfo is not None

    def test_exp_equal_to_now_is_still_valid(self):
        token = create_jwt({"sub": "user-123", "exp": NOW}, SECRET)
        assert verify_jwt(token, SECRET, now=NOW).valid is True

    @pytest.mark.parametrize("token", ["", "abc", "a.b", "a.b.c.d"])
    def test_wrong_number_of_segments(self, token):
        result = verify_jwt(token, SECRET, now=NOW)
        assert result.error == ERROR_FORMAT

    def test_signature_length_mismatch(self):
        token = create_jwt({"sub": "user-123"}, SECRET)
        result = verify_jwt(token[:-4], SECRET, now=NOW)
        assert result.error == ERROR_SIGNATURE

    def test_signed_garbage_payload(self):
        token = _signed({"alg": "HS256", "typ": "JWT"}, base64url_encode(b"not json"))
        result = verify_jwt(token, SECRET, now=NOW)
        assert result.error == ERROR_FORMAT

    def test_payload_must_be_an_object(self):
        token = _signed({"alg": "HS256", "typ": "JWT"}, base64url_encode(b"[1, 2]"))
        assert verify_jwt(token, SECRET, now=NOW).error == ERROR_FORMAT

    def test_non_numeric_exp(self):
        token = create_jwt({"sub": "user-123", "exp": "tomorrow"}, SECRET)
        assert verify_jwt(token, SECRET, now=NOW).error == ERROR_FORMAT

    def test_far_past_exp_is_expired(self):
        token = create_jwt({"sub": "user-123", "exp": -1e20}, SECRET)
        result = verify_jwt(token, SECRET, now=NOW)

        assert result.error == ERROR_EXPIRED
        assert result.expired_at is None

    @pytest.mark.parametrize("exp", [float("-inf"), float("inf"), float("nan")])
    def test_non_finite_exp(self, exp):
        token = create_jwt({"sub": "user-123", "exp": exp}, SECRET)
        result = verify_jwt(token, SECRET, now=NOW)

        assert isinstance(result, InvalidToken)
        assert result.error == ERROR_FORMAT

    @pytest.mark.parametrize("alg", ["none", "HS512", "RS256"])
    def test_other_algorithms_rejected(self, alg):
        payload = base64url_encode(json.dumps({"sub": "user-123"}).encode())
        token = _signed({"alg": alg, "typ": "JWT"}, payload)

        result = verify_jwt(token, SECRET, now=NOW)
        assert result.error == ERROR_ALGORITHM
