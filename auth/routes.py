"""
Auth API routes — register, login, refresh.

Route prefix: {API_PREFIX}/auth
"""

from __future__ import annotations

import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.schemas import (
    AccessTokenResponse,
    ErrorResponse,
    LoginRequest,
    RefreshRequest,
    RegisterRequest,
    RegisterResponse,
    TokenPair,
)
from auth.dependencies import get_token_service
from auth.service import login_user, refresh_access_token, register_user
from auth.tokens import TokenService
from database.session import get_db_session

logger = logging.getLogger(__name__)

router = APIRouter(tags=["auth"])


@router.post(
    "/register",
    response_model=RegisterResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 409: {"model": ErrorResponse}, 503: {"model": ErrorResponse}},
)
async def register(
    req: RegisterRequest,
    session: AsyncSession = Depends(get_db_session),
    tokens: TokenService = Depends(get_token_service),
) -> Dict[str, Any]:
    """Register a new user."""
    return await register_user(session, tokens, req)


@router.post(
    "/login",
    response_model=TokenPair,
    responses={400: {"model": ErrorResponse}, 401: {"model": ErrorResponse}, 503: {"model": ErrorResponse}},
)
async def login(
    req: LoginRequest,
    session: AsyncSession = Depends(get_db_session),
    tokens: TokenService = Depends(get_token_service),
) -> Dict[str, Any]:
    """Login with email + password."""
    return await login_user(session, tokens, req)


@router.post(
    "/refresh",
    response_model=AccessTokenResponse,
    responses={400: {"model": ErrorResponse}, 401: {"model": ErrorResponse}},
)
async def refresh(
    req: RefreshRequest,
    tokens: TokenService = Depends(get_token_service),
) -> Dict[str, Any]:
    """Exchange a refresh token for a new access token."""
    return refresh_access_token(tokens, req)
