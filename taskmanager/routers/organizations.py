"""
Organizations router.

Endpoints:
  POST   /organizations                          — Create (caller owns it and joins)
  GET    /organizations/{organization_id}        — Details (admin+, or member)
  GET    /organizations/{organization_id}/users  — Members (admin+, or member)
  PUT    /organizations/{organization_id}        — Update (org owner, or admin+)
  DELETE /organizations/{organization_id}        — Soft-delete (org owner, or owner role)
"""

import uuid

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from taskmanager.auth.identity import Identity
from taskmanager.database import get_db
from taskmanager.dependencies import get_current_identity
from taskmanager.schemas.organization import (
    OrganizationCreateRequest,
    OrganizationResponse,
    OrganizationUpdateRequest,
)
from taskmanager.schemas.user import UserResponse
from taskmanager.services import organization_service

router = APIRouter()


@router.post(
    "",
    response_model=OrganizationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create an organization",
)
async def create_organization(
    request: OrganizationCreateRequest,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
):
    """
    Create an organization. The caller joins it and is recorded as its
    owner; the caller's role does not change.
    """
    return await organization_service.create_organization(
        db, identity, name=request.name, description=request.description
    )


@router.get(
    "/{organization_id}",
    response_model=OrganizationResponse,
    summary="Get organization details",
)
async def get_organization(
    organization_id: uuid.UUID,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
):
    return await organization_service.get_organization(db, organization_id, identity)


@router.get(
    "/{organization_id}/users",
    response_model=list[UserResponse],
    summary="List organization members",
)
async def list_members(
    organization_id: uuid.UUID,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
):
    return await organization_service.list_members(db, organization_id, identity)


@router.put(
    "/{organization_id}",
    response_model=OrganizationResponse,
    summary="Update an organization",
)
async def update_organization(
    organization_id: uuid.UUID,
    updates: OrganizationUpdateRequest,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
):
    return await organization_service.update_organization(
        db, organization_id, identity, updates.model_dump(exclude_unset=True)
    )


@router.delete(
    "/{organization_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete an organization",
)
async def delete_organization(
    organization_id: uuid.UUID,
    identity: Identity = Depends(get_current_identity),
    db: AsyncSession = Depends(get_db),
):
    await organization_service.delete_organization(db, organization_id, identity)
