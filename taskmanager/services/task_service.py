"""
Task service — business logic for task CRUD and search.

Ownership enforcement:
  Every function that touches a single task receives the request's
  Identity and compares it with task.user_id. List and search queries are
  scoped to the caller's own user id, so there is no way to enumerate
  someone else's tasks through this service.

  The one cross-user operation is deletion: a caller holding the "delete"
  permission (moderator and above) may soft-delete any task, which is how
  moderators clean up.

Soft deletion:
  Deleted tasks keep their row with deleted_at set. Every query here
  filters them out, so a deleted task is reported as not found.
"""

import logging
import uuid
from datetime import datetime, timezone

from sqlalchemy import select, or_, func
from sqlalchemy.ext.asyncio import AsyncSession

from taskmanager.auth.identity import Identity
from taskmanager.auth.rbac import Permission, has_permission
from taskmanager.exceptions import Forbidden, TaskNotFoundError
from taskmanager.models.task import Task
from taskmanager.schemas.task import DEFAULT_SEARCH_LIMIT, MAX_SEARCH_LIMIT

logger = logging.getLogger(__name__)

ACCESS_DENIED = "access denied"


def _live_tasks():
    return select(Task).where(Task.deleted_at.is_(None))


async def _load_task(db: AsyncSession, task_id: uuid.UUID) -> Task:
    result = await db.execute(_live_tasks().where(Task.id == task_id))
    task = result.scalar_one_or_none()
    if task is None:
        raise TaskNotFoundError(task_id)
    return task


async def create_task(
    db: AsyncSession,
    owner_id: uuid.UUID,
    title: str,
    description: str = "",
) -> Task:
    task = Task(title=title, description=description, user_id=owner_id)
    db.add(task)
    await db.flush()
    return task


async def list_tasks(db: AsyncSession, owner_id: uuid.UUID) -> list[Task]:
    """List the owner's live tasks, newest first."""
    result = await db.execute(
        _live_tasks()
        .where(Task.user_id == owner_id)
        .order_by(Task.created_at.desc())
    )
    return list(result.scalars().all())


def clamp_limit(limit: int | None) -> int:
    """Missing or non-positive limits fall back to the default; large ones are capped."""
    if limit is None or limit <= 0:
        return DEFAULT_SEARCH_LIMIT
    return min(limit, MAX_SEARCH_LIMIT)


async def search_tasks(
    db: AsyncSession,
    owner_id: uuid.UUID,
    query: str = "",
    limit: int | None = None,
) -> list[Task]:
    """
    Case-insensitive substring search over the owner's task titles and
    descriptions. An empty query matches every task.
    """
    statement = _live_tasks().where(Task.user_id == owner_id)

    query = query.strip()
    if query:
        pattern = f"%{query.lower()}%"
        statement = statement.where(
            or_(
                func.lower(Task.title).like(pattern),
                func.lower(Task.description).like(pattern),
            )
        )

    result = await db.execute(
        statement.order_by(Task.created_at.desc()).limit(clamp_limit(limit))
    )
    return list(result.scalars().all())


async def get_task(db: AsyncSession, task_id: uuid.UUID, identity: Identity) -> Task:
    """
    Get a single task, verifying ownership.

    Raises:
        TaskNotFoundError: If the task doesn't exist or was deleted.
        Forbidden: If the task belongs to someone else.
    """
    task = await _load_task(db, task_id)
    if task.user_id != identity.id:
        raise Forbidden(ACCESS_DENIED)
    return task


def _apply_completion(task: Task, is_completed: bool) -> None:
    # No-op when the task is already in the requested state
    if task.is_completed != is_completed:
        task.is_completed = is_completed


async def update_task(
    db: AsyncSession,
    task_id: uuid.UUID,
    identity: Identity,
    title: str,
    description: str,
    is_completed: bool | None = None,
) -> Task:
    task = await get_task(db, task_id, identity)
    task.title = title
    task.description = description
    if is_completed is not None:
        _apply_completion(task, is_completed)
    await db.flush()
    return task


async def set_completion(
    db: AsyncSession,
    task_id: uuid.UUID,
    identity: Identity,
    is_completed: bool,
) -> Task:
    task = await get_task(db, task_id, identity)
    _apply_completion(task, is_completed)
    await db.flush()
    return task


async def delete_task(db: AsyncSession, task_id: uuid.UUID, identity: Identity) -> None:
    """
    Soft-delete a task.

    Owners may delete their own tasks. Anyone else needs the "delete"
    permission.

    Raises:
        TaskNotFoundError: If the task doesn't exist or was already deleted.
        Forbidden: If the caller neither owns the task nor holds "delete".
    """
    task = await _load_task(db, task_id)
    if task.user_id != identity.id:
        if not has_permission(identity.role, Permission.DELETE):
            raise Forbidden(ACCESS_DENIED)
        logger.info("user %s (%s) deleting task %s owned by %s",
                    identity.id, identity.role, task.id, task.user_id)

    task.deleted_at = datetime.now(timezone.utc)
    await db.flush()
