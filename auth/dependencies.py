"""
FastAPI dependencies for authentication.

Provides ``get_token_service`` and ``get_current_identity``, the latter
used across all protected routes.  The authenticated caller is returned
as an explicit ``Identity`` value rather than stored on the request.
"""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import Depends, Request
from fastapi.security import APIKeyHeader
from pydantic import ValidationError as PydanticValidationError

from auth.models import Identity
from auth.tokens import ExpiredError, TokenError, TokenService
from utils.errors import ExpiredTokenError, InvalidTokenError, MissingTokenError

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "

# Reads the raw header so the "Bearer " prefix check stays case-sensitive.
_authorization_header = APIKeyHeader(
    name="Authorization",
    scheme_name="bearerAuth",
    description="Access token as `Bearer <token>`",
    auto_error=False,
)


def get_token_service(request: Request) -> TokenService:
    """Return the process-wide token service built by the app factory."""
    return request.app.state.token_service


def authenticate(authorization: Optional[str], tokens: TokenService) -> Identity:
    """
    Resolve an ``Authorization`` header value to an ``Identity``.

    Raises ``MissingTokenError`` when there is no ``Bearer`` credential,
    ``ExpiredTokenError`` when the access token is past its expiry and
    ``InvalidTokenError`` for every other verification failure.
    """
    if not authorization or not authorization.startswith(BEARER_PREFIX):
        raise MissingTokenError()
    token = authorization[len(BEARER_PREFIX):].strip()
    if not token:
        raise MissingTokenError()

    try:
        payload = tokens.verify_access_token(token)
    except ExpiredError:
        raise ExpiredTokenError()
    except TokenError as exc:
        logger.debug("Rejected access token: %s", exc)
        raise InvalidTokenError()

    try:
        return Identity(**payload)
    except PydanticValidationError:
        raise InvalidTokenError()


async def get_current_identity(
    authorization: Optional[str] = Depends(_authorization_header),
    tokens: TokenService = Depends(get_token_service),
) -> Identity:
    """Extract and verify the Bearer token, returning the caller's identity."""
    return authenticate(authorization, tokens)
