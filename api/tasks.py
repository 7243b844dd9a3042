"""
Task routes. Every operation is scoped to the authenticated caller.

Route prefix: {API_PREFIX}/tasks
"""

from __future__ import annotations

import logging
from typing import Annotated, Any, Dict, List

from fastapi import APIRouter, Depends, Path, status
from sqlalchemy.ext.asyncio import AsyncSession

from api.schemas import MAX_ID, ErrorResponse, TaskCreate, TaskOut, TaskUpdate
from auth.dependencies import get_current_identity
from auth.models import Identity
from database import helpers
from database.errors import store_errors
from database.models import Task
from database.session import get_db_session
from utils.errors import NotFoundError, ValidationError

logger = logging.getLogger(__name__)

router = APIRouter(
    tags=["tasks"],
    responses={401: {"model": ErrorResponse}, 503: {"model": ErrorResponse}},
)

TASK_NOT_FOUND = "Task not found"


@router.get("", response_model=List[TaskOut])
async def list_tasks(
    session: AsyncSession = Depends(get_db_session),
    identity: Identity = Depends(get_current_identity),
) -> List[Task]:
    """All tasks of the logged-in user, newest first."""
    async with store_errors(session):
        return await helpers.list_tasks(session, identity.id)


@router.post(
    "",
    response_model=TaskOut,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def create_task(
    req: TaskCreate,
    session: AsyncSession = Depends(get_db_session),
    identity: Identity = Depends(get_current_identity),
) -> Task:
    title = (req.title or "").strip()
    if not title:
        raise ValidationError("Title is required")

    # A foreign-key failure means the token outlived its user.
    async with store_errors(session, on_integrity=NotFoundError("User not found")):
        task = await helpers.create_task(
            session,
            user_id=identity.id,
            title=title,
            description=req.description,
        )
        await session.commit()
        await session.refresh(task)

    logger.info("User %s created task %s", identity.id, task.id)
    return task


def _task_changes(req: TaskUpdate) -> Dict[str, Any]:
    changes = req.model_dump(exclude_unset=True)
    if "title" in changes:
        title = (changes["title"] or "").strip()
        if not title:
            raise ValidationError("Title cannot be empty")
        changes["title"] = title
    if "completed" in changes and changes["completed"] is None:
        raise ValidationError("Completed must be true or false")
    return changes


@router.put(
    "/{task_id}",
    response_model=TaskOut,
    responses={400: {"model": ErrorResponse}, 404: {"model": ErrorResponse}},
)
async def update_task(
    task_id: Annotated[int, Path(le=MAX_ID)],
    req: TaskUpdate,
    session: AsyncSession = Depends(get_db_session),
    identity: Identity = Depends(get_current_identity),
) -> Task:
    changes = _task_changes(req)

    async with store_errors(session):
        task = await helpers.update_task(session, task_id, identity.id, changes)
        if task is None:
            raise NotFoundError(TASK_NOT_FOUND)
        await session.commit()
        await session.refresh(task)

    return task


@router.delete("/{task_id}", response_model=TaskOut, responses={404: {"model": ErrorResponse}})
async def delete_task(
    task_id: Annotated[int, Path(le=MAX_ID)],
    session: AsyncSession = Depends(get_db_session),
    identity: Identity = Depends(get_current_identity),
) -> Task:
    async with store_errors(session):
        task = await helpers.delete_task(session, task_id, identity.id)
        if task is None:
            raise NotFoundError(TASK_NOT_FOUND)
        await session.commit()

    logger.info("User %s deleted task %s", identity.id, task_id)
    return task
