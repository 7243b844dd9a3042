"""
Auth flow — register, login, refresh.

Each function is one stateless round: validate input, touch the user
table at most once for reading and once for writing, issue tokens.
Failures are raised as ``utils.errors`` types; routes stay thin.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from api.schemas import LoginRequest, RefreshRequest, RegisterRequest
from auth.password import hash_password, verify_password
from auth.tokens import TokenError, TokenService
from database.errors import store_errors
from database.helpers import create_user, get_user_by_email
from database.models import User
from utils.errors import (
    ConflictError,
    InvalidCredentialsError,
    InvalidRefreshTokenError,
    ValidationError,
)

logger = logging.getLogger(__name__)

EMAIL_IN_USE = "Email already in use"


def normalize_email(email: Optional[str]) -> str:
    return (email or "").strip().lower()


def normalize_registration(req: RegisterRequest) -> Tuple[str, str, str]:
    """
    Return ``(name, email, password)`` trimmed and lowercased as stored.

    Raises ``ValidationError`` if any of them ends up empty.
    """
    name = (req.name or "").strip()
    email = normalize_email(req.email)
    password = req.password or ""
    if not name or not email or not password:
        raise ValidationError("Name, email and password are required")
    return name, email, password


def _issue_pair(tokens: TokenService, user: User) -> Dict[str, str]:
    payload = {"id": user.id, "email": user.email}
    return {
        "access_token": tokens.issue_access_token(payload),
        "refresh_token": tokens.issue_refresh_token(payload),
    }


async def register_user(
    session: AsyncSession,
    tokens: TokenService,
    req: RegisterRequest,
) -> Dict[str, Any]:
    """Create an account and return its public fields plus both tokens."""
    name, email, password = normalize_registration(req)

    # The lookup only avoids a wasted insert; the unique index decides races.
    async with store_errors(session, on_integrity=ConflictError(EMAIL_IN_USE)):
        if await get_user_by_email(session, email) is not None:
            raise ConflictError(EMAIL_IN_USE)
        user = await create_user(
            session,
            name=name,
            email=email,
            password_hash=await asyncio.to_thread(hash_password, password),
        )
        await session.commit()

    logger.info("Registered user %s (%s)", user.id, user.email)
    return {
        "user": {"id": user.id, "name": user.name, "email": user.email},
        **_issue_pair(tokens, user),
    }


async def login_user(
    session: AsyncSession,
    tokens: TokenService,
    req: LoginRequest,
) -> Dict[str, str]:
    """Check credentials and return a fresh access / refresh token pair."""
    email = normalize_email(req.email)
    if not email or not req.password:
        raise ValidationError("Email and password are required")

    async with store_errors(session):
        user = await get_user_by_email(session, email)

    # Same error for unknown email and wrong password.
    valid = user is not None and await asyncio.to_thread(
        verify_password, req.password, user.password,
    )
    if not valid:
        logger.warning("Failed login for %s", email)
        raise InvalidCredentialsError()

    logger.info("Login: %s (%s)", user.email, user.id)
    return _issue_pair(tokens, user)


def refresh_access_token(tokens: TokenService, req: RefreshRequest) -> Dict[str, str]:
    """
    Mint a new access token from a refresh token.

    Expired and invalid refresh tokens are reported identically: either
    way the client has to log in again.  The refresh token is not rotated.
    """
    if not req.refresh_token:
        raise ValidationError("Missing refresh token")

    try:
        payload = tokens.verify_refresh_token(req.refresh_token)
    except TokenError as exc:
        logger.info("Refresh rejected: %s", exc)
        raise InvalidRefreshTokenError()

    return {"access_token": tokens.issue_access_token(payload)}
