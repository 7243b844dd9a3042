"""
Translate store exceptions into the application error taxonomy.

The driver exposes no structured "server unreachable" signal across
backends, so unavailability is detected by exception type plus a
substring match on the message.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

from sqlalchemy.exc import (
    DBAPIError,
    IntegrityError,
    InterfaceError,
    OperationalError,
    ProgrammingError,
    SQLAlchemyError,
)
from sqlalchemy.ext.asyncio import AsyncSession

from utils.errors import AppError, ServiceUnavailableError

logger = logging.getLogger(__name__)

SCHEMA_NOT_READY = "Database schema is not ready. Please try again in a moment."

_UNAVAILABLE_MARKERS = (
    "can't reach database server",
    "connection refused",
    "could not connect",
    "connection is closed",
    "connection was closed",
    "server closed the connection",
    "unable to open database",
    "name or service not known",
    "timeout expired",
    "too many connections",
)

_SCHEMA_MARKERS = (
    "no such table",
    "no such column",
    "undefinedtable",
    "undefinedcolumn",
    "does not exist",
)


def _text(exc: BaseException) -> str:
    parts = [str(exc)]
    orig = getattr(exc, "orig", None)
    if orig is not None:
        parts.append(type(orig).__name__)
        parts.append(str(orig))
    return " ".join(parts).lower()


def is_schema_missing(exc: BaseException) -> bool:
    """True when the error says a table or column has not been created yet."""
    if not isinstance(exc, (ProgrammingError, OperationalError)):
        return False
    message = _text(exc)
    return any(marker in message for marker in _SCHEMA_MARKERS)


def is_store_unavailable(exc: BaseException) -> bool:
    """True when the error means the database could not be reached."""
    if isinstance(exc, OSError):
        return True
    if isinstance(exc, DBAPIError) and exc.connection_invalidated:
        return True
    if isinstance(exc, (OperationalError, InterfaceError)):
        return True
    message = _text(exc)
    return any(marker in message for marker in _UNAVAILABLE_MARKERS)


@asynccontextmanager
async def store_errors(
    session: AsyncSession,
    *,
    on_integrity: Optional[AppError] = None,
) -> AsyncIterator[None]:
    """
    Run store work and map failures onto ``AppError`` subclasses.

    ``on_integrity`` is raised for constraint violations (e.g. a
    ``ConflictError`` for a duplicate email); without it the
    ``IntegrityError`` propagates unchanged.
    """
    try:
        yield
    except IntegrityError as exc:
        await session.rollback()
        if on_integrity is None:
            raise
        logger.info("Integrity violation mapped to %s: %s", type(on_integrity).__name__, exc.orig)
        raise on_integrity from exc
    except (SQLAlchemyError, OSError) as exc:
        if is_schema_missing(exc):
            logger.warning("Database schema not ready: %s", exc)
            raise ServiceUnavailableError(SCHEMA_NOT_READY) from exc
        if is_store_unavailable(exc):
            logger.warning("Database unavailable: %s", exc)
            raise ServiceUnavailableError() from exc
        raise
