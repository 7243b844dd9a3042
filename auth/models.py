"""Authenticated identity passed to protected route handlers."""

from __future__ import annotations

from pydantic import BaseModel


class Identity(BaseModel):
    """The caller behind a verified access token."""

    id: int
    email: str
