"""
Tests for access / refresh token issuing and verification.
"""

from datetime import timedelta

import jwt
import pytest

from auth.tokens import (
    DEFAULT_ACCESS_TTL,
    DEFAULT_REFRESH_TTL,
    ExpiredError,
    InvalidSignatureError,
    TokenService,
    parse_duration,
)
from config.settings import Settings

PAYLOAD = {"id": 7, "email": "a@x.com"}


class TestIssueAndVerify:
    def test_access_token_round_trip(self, tokens):
        token = tokens.issue_access_token(PAYLOAD)
        assert tokens.verify_access_token(token) == PAYLOAD

    def test_refresh_token_round_trip(self, tokens):
        token = tokens.issue_refresh_token(PAYLOAD)
        assert tokens.verify_refresh_token(token) == PAYLOAD

    def test_access_token_is_not_a_refresh_token(self, tokens):
        token = tokens.issue_access_token(PAYLOAD)
        with pytest.raises(InvalidSignatureError):
            tokens.verify_refresh_token(token)

    def test_refresh_token_is_not_an_access_token(self, tokens):
        token = tokens.issue_refresh_token(PAYLOAD)
        with pytest.raises(InvalidSignatureError):
            tokens.verify_access_token(token)

    def test_token_is_a_standard_hs256_jwt(self, tokens):
        token = tokens.issue_access_token(PAYLOAD)
        assert jwt.get_unverified_header(token)["alg"] == "HS256"
        claims = jwt.decode(token, options={"verify_signature": False})
        assert claims["id"] == 7
        assert claims["exp"] - claims["iat"] == 15 * 60

    def test_refresh_lifetime(self, tokens):
        token = tokens.issue_refresh_token(PAYLOAD)
        claims = jwt.decode(token, options={"verify_signature": False})
        assert claims["exp"] - claims["iat"] == 7 * 86400


class TestVerificationFailures:
    def test_expired_access_token(self):
        service = TokenService("a" * 32, "r" * 32, access_ttl=timedelta(seconds=-30))
        token = service.issue_access_token(PAYLOAD)
        with pytest.raises(ExpiredError):
            service.verify_access_token(token)

    def test_expired_refresh_token(self):
        service = TokenService("a" * 32, "r" * 32, refresh_ttl=timedelta(seconds=-30))
        token = service.issue_refresh_token(PAYLOAD)
        with pytest.raises(ExpiredError):
            service.verify_refresh_token(token)

    def test_wrong_secret(self, tokens):
        other = TokenService("x" * 32, "y" * 32)
        token = other.issue_access_token(PAYLOAD)
        with pytest.raises(InvalidSignatureError):
            tokens.verify_access_token(token)

    def test_tampered_payload(self, tokens):
        header, _, signature = tokens.issue_access_token(PAYLOAD).split(".")
        forged = jwt.encode({"id": 1, "email": "root@x.com", "exp": 9999999999}, "guess" * 8)
        forged_payload = forged.split(".")[1]
        with pytest.raises(InvalidSignatureError):
            tokens.verify_access_token(f"{header}.{forged_payload}.{signature}")

    @pytest.mark.parametrize("garbage", ["", "not-a-token", "a.b.c", "Bearer x"])
    def test_malformed(self, tokens, garbage):
        with pytest.raises(InvalidSignatureError):
            tokens.verify_access_token(garbage)

    def test_payload_without_id(self, tokens):
        token = jwt.encode(
            {"id": None, "email": "a@x.com", "exp": 9999999999},
            tokens._access_secret,
            algorithm="HS256",
        )
        with pytest.raises(InvalidSignatureError):
            tokens.verify_access_token(token)

    def test_token_without_expiry_is_rejected(self, tokens):
        token = jwt.encode({"id": 1, "email": "a@x.com"}, tokens._access_secret, algorithm="HS256")
        with pytest.raises(InvalidSignatureError):
            tokens.verify_access_token(token)


class TestParseDuration:
    @pytest.mark.parametrize(
        "value, expected",
        [
            ("15m", timedelta(minutes=15)),
            ("7d", timedelta(days=7)),
            ("12h", timedelta(hours=12)),
            ("30s", timedelta(seconds=30)),
            ("2w", timedelta(weeks=2)),
            ("500ms", timedelta(milliseconds=500)),
            ("900", timedelta(seconds=900)),
            (60, timedelta(seconds=60)),
            (" 1D ", timedelta(days=1)),
        ],
    )
    def test_valid(self, value, expected):
        assert parse_duration(value, DEFAULT_ACCESS_TTL) == expected

    @pytest.mark.parametrize("value", [None, ""])
    def test_empty_uses_default(self, value):
        assert parse_duration(value, DEFAULT_REFRESH_TTL) == DEFAULT_REFRESH_TTL

    @pytest.mark.parametrize("value", ["soon", "15 minutes", "-5m", "1.5h"])
    def test_invalid(self, value):
        with pytest.raises(ValueError):
            parse_duration(value, DEFAULT_ACCESS_TTL)

    def test_from_settings_defaults(self):
        service = TokenService.from_settings(Settings(jwt_secret="a" * 32, refresh_secret="b" * 32))
        assert service.access_ttl == timedelta(minutes=15)
        assert service.refresh_ttl == timedelta(days=7)

    def test_from_settings_overrides(self):
        service = TokenService.from_settings(
            Settings(
                jwt_secret="a" * 32,
                refresh_secret="b" * 32,
                access_token_expires_in="5m",
                refresh_token_expires_in="30d",
            )
        )
        assert service.access_ttl == timedelta(minutes=5)
        assert service.refresh_ttl == timedelta(days=30)
