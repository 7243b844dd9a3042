"""
JWT access / refresh token issuing and verification.

Access and refresh tokens are signed with two different secrets
(``JWT_SECRET`` / ``REFRESH_SECRET``) so neither kind can be passed off
as the other.  Expiries come from ``ACCESS_TOKEN_EXPIRES_IN`` and
``REFRESH_TOKEN_EXPIRES_IN`` (``"15m"``, ``"7d"``, ...).
"""

from __future__ import annotations

import re
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Union

import jwt

from config.settings import Settings

DEFAULT_ACCESS_TTL = timedelta(minutes=15)
DEFAULT_REFRESH_TTL = timedelta(days=7)

_DURATION_RE = re.compile(r"^\s*(\d+)\s*(ms|s|m|h|d|w|y)?\s*$", re.IGNORECASE)
_UNIT_SECONDS = {
    "ms": 0.001,
    "s": 1,
    "m": 60,
    "h": 3600,
    "d": 86400,
    "w": 7 * 86400,
    "y": 365.25 * 86400,
}


class TokenError(Exception):
    """Base class for token verification failures."""


class ExpiredError(TokenError):
    """The token was well-formed and correctly signed but is past ``exp``."""


class InvalidSignatureError(TokenError):
    """Any other verification failure: malformed, wrong secret, tampered."""


def parse_duration(value: Union[str, int, timedelta, None], default: timedelta) -> timedelta:
    """
    Parse ``"15m"`` / ``"7d"`` / ``"900"`` style durations.

    Integers and unit-less strings are seconds.  Empty values fall back to
    ``default``; anything unparseable raises ``ValueError``.
    """
    if value is None or value == "":
        return default
    if isinstance(value, timedelta):
        return value
    if isinstance(value, int):
        return timedelta(seconds=value)
    match = _DURATION_RE.match(value)
    if match is None:
        raise ValueError(f"Invalid duration: {value!r}")
    amount, unit = match.groups()
    return timedelta(seconds=int(amount) * _UNIT_SECONDS[(unit or "s").lower()])


class TokenService:
    """Issue and verify the two kinds of signed, time-limited tokens."""

    def __init__(
        self,
        access_secret: str,
        refresh_secret: str,
        *,
        access_ttl: timedelta = DEFAULT_ACCESS_TTL,
        refresh_ttl: timedelta = DEFAULT_REFRESH_TTL,
        algorithm: str = "HS256",
    ) -> None:
        self._access_secret = access_secret
        self._refresh_secret = refresh_secret
        self.access_ttl = access_ttl
        self.refresh_ttl = refresh_ttl
        self._algorithm = algorithm

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenService":
        return cls(
            settings.jwt_secret,
            settings.refresh_secret,
            access_ttl=parse_duration(settings.access_token_expires_in, DEFAULT_ACCESS_TTL),
            refresh_ttl=parse_duration(settings.refresh_token_expires_in, DEFAULT_REFRESH_TTL),
            algorithm=settings.jwt_algorithm,
        )

    # ── Issuing ─────────────────────────────────────────────────────────

    def issue_access_token(self, payload: Dict[str, Any]) -> str:
        return self._sign(payload, self._access_secret, self.access_ttl)

    def issue_refresh_token(self, payload: Dict[str, Any]) -> str:
        return self._sign(payload, self._refresh_secret, self.refresh_ttl)

    # ── Verification ────────────────────────────────────────────────────

    def verify_access_token(self, token: str) -> Dict[str, Any]:
        return self._verify(token, self._access_secret)

    def verify_refresh_token(self, token: str) -> Dict[str, Any]:
        return self._verify(token, self._refresh_secret)

    def _sign(self, payload: Dict[str, Any], secret: str, ttl: timedelta) -> str:
        now = datetime.now(timezone.utc)
        claims = {
            "id": payload["id"],
            "email": payload["email"],
            "iat": int(now.timestamp()),
            "exp": int((now + ttl).timestamp()),
        }
        return jwt.encode(claims, secret, algorithm=self._algorithm)

    def _verify(self, token: str, secret: str) -> Dict[str, Any]:
        try:
            claims = jwt.decode(
                token,
                secret,
                algorithms=[self._algorithm],
                options={"require": ["exp"]},
            )
        except jwt.ExpiredSignatureError as exc:
            raise ExpiredError("token expired") from exc
        except jwt.InvalidTokenError as exc:
            raise InvalidSignatureError(str(exc)) from exc

        if claims.get("id") is None:
            raise InvalidSignatureError("token payload has no id")
        return {"id": claims["id"], "email": claims.get("email")}
