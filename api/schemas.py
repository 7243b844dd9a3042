"""
Pydantic request / response schemas for the HTTP API.

JSON field names are camelCase (``accessToken``, ``createdAt``); Python
attributes stay snake_case.  Request models are deliberately lenient
(every field optional) so that missing or empty values surface as a 400
from the service layer rather than FastAPI's 422.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

# Integer primary keys are 32-bit in PostgreSQL.
MAX_ID = 2**31 - 1


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


def _coerce_text(value: Any) -> Any:
    """Coerce scalar JSON values (numbers, booleans) to ``str``."""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    return value


# ═══════════════════════════════════════════════════════════════════════════════
# Auth
# ═══════════════════════════════════════════════════════════════════════════════


class RegisterRequest(_CamelModel):
    name: Optional[str] = None
    email: Optional[str] = None
    password: Optional[str] = None

    @field_validator("name", "email", "password", mode="before")
    @classmethod
    def _coerce(cls, value: Any) -> Any:
        return _coerce_text(value)


class LoginRequest(_CamelModel):
    email: Optional[str] = None
    password: Optional[str] = None

    @field_validator("email", "password", mode="before")
    @classmethod
    def _coerce(cls, value: Any) -> Any:
        return _coerce_text(value)


class RefreshRequest(_CamelModel):
    refresh_token: Optional[str] = None


class PublicUser(_CamelModel):
    id: int
    name: str
    email: str


class RegisterResponse(_CamelModel):
    user: PublicUser
    access_token: str
    refresh_token: str


class TokenPair(_CamelModel):
    access_token: str
    refresh_token: str


class AccessTokenResponse(_CamelModel):
    access_token: str


# ═══════════════════════════════════════════════════════════════════════════════
# Users
# ═══════════════════════════════════════════════════════════════════════════════


class UserCreate(RegisterRequest):
    pass


class UserUpdate(RegisterRequest):
    """Partial update; fields left out of the body are not touched."""


class UserOut(_CamelModel):
    id: int
    name: str
    email: str
    created_at: datetime
    updated_at: datetime


# ═══════════════════════════════════════════════════════════════════════════════
# Tasks
# ═══════════════════════════════════════════════════════════════════════════════


class TaskCreate(_CamelModel):
    title: Optional[str] = None
    description: Optional[str] = None


class TaskUpdate(_CamelModel):
    title: Optional[str] = None
    description: Optional[str] = None
    completed: Optional[bool] = None


class TaskOut(_CamelModel):
    id: int
    title: str
    description: Optional[str] = None
    completed: bool
    created_at: datetime
    updated_at: datetime
    user_id: int


# ═══════════════════════════════════════════════════════════════════════════════
# Misc
# ═══════════════════════════════════════════════════════════════════════════════


class ErrorResponse(BaseModel):
    error: str = Field(..., description="Client-safe error message")


class HealthResponse(BaseModel):
    status: str
    database: str
    timestamp: str

