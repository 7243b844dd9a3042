"""
User management routes (bearer-protected).

Route prefix: {API_PREFIX}/users
"""

from __future__ import annotations

import asyncio
import logging
from typing import Annotated, Any, Dict, List

from fastapi import APIRouter, Depends, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.schemas import MAX_ID, ErrorResponse, PublicUser, UserCreate, UserOut, UserUpdate
from auth.dependencies import get_current_identity
from auth.models import Identity
from auth.password import hash_password
from auth.service import EMAIL_IN_USE, normalize_email, normalize_registration
from database import helpers
from database.errors import store_errors
from database.models import User
from database.session import get_db_session
from utils.errors import ConflictError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)

router = APIRouter(
    tags=["users"],
    responses={401: {"model": ErrorResponse}, 503: {"model": ErrorResponse}},
)

USER_NOT_FOUND = "User not found"


@router.get("", response_model=List[UserOut])
async def list_users(
    session: AsyncSession = Depends(get_db_session),
    identity: Identity = Depends(get_current_identity),
) -> List[User]:
    async with store_errors(session):
        return list(await helpers.list_users(session))


@router.get("/{user_id}", response_model=UserOut, responses={404: {"model": ErrorResponse}})
async def get_user(
    user_id: Annotated[int, Path(le=MAX_ID)],
    session: AsyncSession = Depends(get_db_session),
    identity: Identity = Depends(get_current_identity),
) -> User:
    async with store_errors(session):
        user = await helpers.get_user(session, user_id)
    if user is None:
        raise NotFoundError(USER_NOT_FOUND)
    return user


@router.post(
    "",
    response_model=UserOut,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def create_user(
    req: UserCreate,
    session: AsyncSession = Depends(get_db_session),
    identity: Identity = Depends(get_current_identity),
) -> User:
    """Create a user on behalf of an authenticated caller."""
    name, email, password = normalize_registration(req)

    async with store_errors(session, on_integrity=ConflictError(EMAIL_IN_USE)):
        if await helpers.get_user_by_email(session, email) is not None:
            raise ConflictError(EMAIL_IN_USE)
        user = await helpers.create_user(
            session,
            name=name,
            email=email,
            password_hash=await asyncio.to_thread(hash_password, password),
        )
        await session.commit()
        await session.refresh(user)

    logger.info("User %s created user %s", identity.id, user.id)
    return user


def _user_changes(req: UserUpdate) -> Dict[str, Any]:
    """Normalize the fields present in an update body; reject empty values."""
    provided = req.model_dump(exclude_unset=True)
    changes: Dict[str, Any] = {}
    if "name" in provided:
        name = (provided["name"] or "").strip()
        if not name:
            raise ValidationError("Name cannot be empty")
        changes["name"] = name
    if "email" in provided:
        email = normalize_email(provided["email"])
        if not email:
            raise ValidationError("Email cannot be empty")
        changes["email"] = email
    if "password" in provided:
        if not provided["password"]:
            raise ValidationError("Password cannot be empty")
        changes["password"] = provided["password"]
    return changes


@router.put(
    "/{user_id}",
    response_model=UserOut,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def update_user(
    user_id: Annotated[int, Path(le=MAX_ID)],
    req: UserUpdate,
    session: AsyncSession = Depends(get_db_session),
    identity: Identity = Depends(get_current_identity),
) -> User:
    changes = _user_changes(req)
    if "password" in changes:
        changes["password"] = await asyncio.to_thread(hash_password, changes["password"])

    async with store_errors(session, on_integrity=ConflictError(EMAIL_IN_USE)):
        if "email" in changes:
            owner = await helpers.get_user_by_email(session, changes["email"])
            if owner is not None and owner.id != user_id:
                raise ConflictError(EMAIL_IN_USE)
        user = await helpers.update_user(session, user_id, changes)
        if user is None:
            raise NotFoundError(USER_NOT_FOUND)
        await session.commit()
        await session.refresh(user)

    logger.info("User %s updated user %s (%s)", identity.id, user_id, ", ".join(sorted(changes)) or "no changes")
    return user


@router.delete("/{user_id}", response_model=PublicUser, responses={404: {"model": ErrorResponse}})
async def delete_user(
    user_id: Annotated[int, Path(le=MAX_ID)],
    session: AsyncSession = Depends(get_db_session),
    identity: Identity = Depends(get_current_identity),
) -> Dict[str, Any]:
    """Delete a user and every task they own."""
    async with store_errors(session):
        user = await helpers.delete_user(session, user_id)
        if user is None:
            raise NotFoundError(USER_NOT_FOUND)
        await session.commit()

    logger.info("User %s deleted user %s", identity.id, user_id)
    return {"id": user.id, "name": user.name, "email": user.email}
