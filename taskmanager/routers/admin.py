"""
Admin router — user administration.

All endpoints require the "admin" permission (held by the admin and owner
roles). A role change takes effect on the target user's next request, and
no caller can grant, or take away, a role ranked above their own.

Endpoints:
  GET /admin/users                  — List all users
  PUT /admin/users/{user_id}/role   — Change a user's role
"""

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from taskmanager.auth.identity import Identity
from taskmanager.database import get_db
from taskmanager.dependencies import require_admin
from taskmanager.schemas.user import RoleUpdateRequest, UserResponse
from taskmanager.services import user_service

router = APIRouter()


@router.get(
    "/users",
    response_model=list[UserResponse],
    summary="[Admin] List all users",
)
async def admin_list_users(
    admin: Identity = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await user_service.list_users(db)


@router.put(
    "/users/{user_id}/role",
    response_model=UserResponse,
    summary="[Admin] Change a user's role",
)
async def admin_set_role(
    user_id: uuid.UUID,
    request: RoleUpdateRequest,
    admin: Identity = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
):
    return await user_service.set_role(db, admin, user_id, request.role)
