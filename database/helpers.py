"""
Database helper functions — single-table lookups and mutations for
users and tasks.

Helpers flush but never commit; the caller owns the transaction.
Lookups return ``None`` when nothing matches.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from database.models import Task, User

logger = logging.getLogger(__name__)


# ── Users ───────────────────────────────────────────────────────────


async def get_user_by_email(session: AsyncSession, email: str) -> Optional[User]:
    result = await session.execute(select(User).where(User.email == email))
    return result.scalar_one_or_none()


async def get_user(session: AsyncSession, user_id: int) -> Optional[User]:
    return await session.get(User, user_id)


async def list_users(session: AsyncSession) -> Sequence[User]:
    result = await session.execute(select(User).order_by(User.id.asc()))
    return result.scalars().all()


async def create_user(
    session: AsyncSession,
    *,
    name: str,
    email: str,
    password_hash: str,
) -> User:
    """Insert a ``User`` row; a duplicate email raises ``IntegrityError`` on flush."""
    user = User(name=name, email=email, password=password_hash)
    session.add(user)
    await session.flush()
    return user


async def update_user(
    session: AsyncSession,
    user_id: int,
    changes: Dict[str, Any],
) -> Optional[User]:
    """Apply ``changes`` (column name → value) to a user; ``None`` if absent."""
    user = await session.get(User, user_id)
    if user is None:
        return None
    for field, value in changes.items():
        setattr(user, field, value)
    await session.flush()
    return user


async def delete_user(session: AsyncSession, user_id: int) -> Optional[User]:
    """Delete a user together with all of their tasks."""
    user = await session.get(User, user_id)
    if user is None:
        return None
    # Not every backend enforces ON DELETE CASCADE (SQLite needs a pragma).
    result = await session.execute(delete(Task).where(Task.user_id == user_id))
    logger.debug("Deleting user %s with %s task(s)", user_id, result.rowcount)
    await session.delete(user)
    await session.flush()
    return user


# ── Tasks ───────────────────────────────────────────────────────────


async def list_tasks(session: AsyncSession, user_id: int) -> List[Task]:
    """Return a user's tasks, newest first."""
    result = await session.execute(
        select(Task)
        .where(Task.user_id == user_id)
        .order_by(Task.created_at.desc(), Task.id.desc())
    )
    return list(result.scalars().all())


async def get_task_for_user(
    session: AsyncSession,
    task_id: int,
    user_id: int,
) -> Optional[Task]:
    """
    Look up a task by id *and* owner.

    A task owned by someone else is indistinguishable from a missing one.
    """
    result = await session.execute(
        select(Task).where(Task.id == task_id, Task.user_id == user_id)
    )
    return result.scalar_one_or_none()


async def create_task(
    session: AsyncSession,
    *,
    user_id: int,
    title: str,
    description: Optional[str] = None,
) -> Task:
    task = Task(user_id=user_id, title=title, description=description, completed=False)
    session.add(task)
    await session.flush()
    return task


async def update_task(
    session: AsyncSession,
    task_id: int,
    user_id: int,
    changes: Dict[str, Any],
) -> Optional[Task]:
    task = await get_task_for_user(session, task_id, user_id)
    if task is None:
        return None
    for field, value in changes.items():
        setattr(task, field, value)
    await session.flush()
    return task


async def delete_task(session: AsyncSession, task_id: int, user_id: int) -> Optional[Task]:
    task = await get_task_for_user(session, task_id, user_id)
    if task is None:
        return None
    await session.delete(task)
    await session.flush()
    return task
