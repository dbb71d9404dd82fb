"""
Tasks router — CRUD and search over the caller's own tasks.

Every endpoint requires an API key. Reads need the "read" permission and
writes the "write" permission; ownership is enforced by the task service
using the request identity.

Endpoints:
  POST   /tasks                       — Create a task
  GET    /tasks                       — List my tasks
  GET    /tasks/search?query=&limit=  — Search my tasks
  GET    /tasks/{task_id}             — Get one task
  PUT    /tasks/{task_id}             — Replace title/description (optionally completion)
  PATCH  /tasks/{task_id}/completion  — Mark complete / incomplete
  DELETE /tasks/{task_id}             — Soft-delete (owner, or "delete" permission)
"""

import uuid

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from taskmanager.auth.identity import Identity
from taskmanager.database import get_db
from taskmanager.dependencies import get_current_identity, require_read, require_write
from taskmanager.schemas.task import (
    TaskCompletionRequest,
    TaskCreateRequest,
    TaskResponse,
    TaskUpdateRequest,
)
from taskmanager.services import task_service

router = APIRouter()


@router.post(
    "",
    response_model=TaskResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a task",
)
async def create_task(
    request: TaskCreateRequest,
    identity: Identity = Depends(require_write),
    db: AsyncSession = Depends(get_db),
):
    return await task_service.create_task(
        db, owner_id=identity.id, title=request.title, description=request.description
    )


@router.get(
    "",
    response_model=list[TaskResponse],
    summary="List my tasks",
)
async def list_tasks(
    identity: Identity = Depends(require_read),
    db: AsyncSession = Depends(get_db),
):
    return await task_service.list_tasks(db, identity.id)


@router.get(
    "/search",
    response_model=list[TaskResponse],
    summary="Search my tasks",
)
async def search_tasks(
    query: str = Query(default="", max_length=255),
    limit: int | None = Query(default=None),
    identity: Identity = Depends(require_read),
    db: AsyncSession = Depends(get_db),
):
    """
    Case-insensitive substring match on title and description.

    `limit` defaults to 10 and is capped at 100.
    """
    return await task_service.search_tasks(db, identity.id, query=query, limit=limit)


@router.get(
    "/{task_id}",
    response_model=TaskResponse,
    summary="Get a task",
)
async def get_task(
    task_id: uuid.UUID,
    identity: Identity = Depends(require_read),
    db: AsyncSession = Depends(get_db),
):
    return await task_service.get_task(db, task_id, identity)


@router.put(
    "/{task_id}",
    response_model=TaskResponse,
    summary="Update a task",
)
async def update_task(
    task_id: uuid.UUID,
    request: TaskUpdateRequest,
    identity: Identity = Depends(require_write),
    db: AsyncSession = Depends(get_db),
):
    return await task_service.update_task(
        db,
        task_id,
        identity,
        title=request.title,
        description=request.description,
        is_completed=request.is_completed,
    )


@router.patch(
    "/{task_id}/completion",
    response_model=TaskResponse,
    summary="Mark a task complete or incomplete",
)
async def set_completion(
    task_id: uuid.UUID,
    request: TaskCompletionRequest,
    identity: Identity = Depends(require_write),
    db: AsyncSession = Depends(get_db),
):
    return await task_service.set_completion(db, task_id, identity, request.is_completed)


@router.delete(
    "/{task_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a task",
)
async def delete_task(
    task_id: uuid.UUID,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
):
    await task_service.delete_task(db, task_id, identity)
