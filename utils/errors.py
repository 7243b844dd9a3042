"""
Application error taxonomy.

Every error the API deliberately returns is an ``AppError`` subclass
carrying its HTTP status and a message that is safe to show clients.
Anything that is not an ``AppError`` is treated as an internal fault.
"""

from __future__ import annotations

from typing import Dict, Optional


class AppError(Exception):
    status_code: int = 500
    message: str = "Internal server error"
    headers: Optional[Dict[str, str]] = None

    def __init__(self, message: Optional[str] = None) -> None:
        if message is not None:
            self.message = message
        super().__init__(self.message)


class ValidationError(AppError):
    status_code = 400
    message = "Invalid request"


class ConflictError(AppError):
    status_code = 409
    message = "Resource already exists"


class NotFoundError(AppError):
    status_code = 404
    message = "Not found"


class ServiceUnavailableError(AppError):
    status_code = 503
    message = "Database is unavailable. Please try again later."


class InternalError(AppError):
    status_code = 500
    message = "Internal server error"


# ── 401 family ─────────────────────────────────────────────────────────


class AuthenticationError(AppError):
    status_code = 401
    message = "Unauthorized"
    headers = {"WWW-Authenticate": "Bearer"}


class MissingTokenError(AuthenticationError):
    message = "Missing token"


class InvalidTokenError(AuthenticationError):
    message = "Invalid token"


class ExpiredTokenError(AuthenticationError):
    message = "Access token expired"


class InvalidCredentialsError(AuthenticationError):
    message = "Invalid credentials"


class InvalidRefreshTokenError(AuthenticationError):
    message = "Invalid or expired refresh token"
