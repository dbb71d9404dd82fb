"""
Organization service — creation, membership-scoped reads, and management.

Access rules:
  - Anyone authenticated may create an organization. The creator joins it
    and is recorded as its owner (organizations.owner_id); their role is
    left untouched.
  - Reading an organization (details or member list) requires admin rank
    or above, or membership of that organization.
  - Updating requires being the organization's owner, or admin rank.
  - Deleting requires being the organization's owner, or the owner role.
"""

import logging
import uuid
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from taskmanager.auth.identity import Identity
from taskmanager.auth.rbac import Role, require_any_role, role_satisfies
from taskmanager.exceptions import Forbidden, OrganizationNotFoundError, UserNotFoundError
from taskmanager.models.organization import Organization
from taskmanager.models.user import User
from taskmanager.repositories import UserRepository

logger = logging.getLogger(__name__)


async def _load_organization(db: AsyncSession, organization_id: uuid.UUID) -> Organization:
    result = await db.execute(
        select(Organization).where(
            Organization.id == organization_id,
            Organization.deleted_at.is_(None),
        )
    )
    organization = result.scalar_one_or_none()
    if organization is None:
        raise OrganizationNotFoundError(organization_id)
    return organization


def _is_member(identity: Identity, organization_id: uuid.UUID) -> bool:
    return identity.organization_id == organization_id


def _is_owner(identity: Identity, organization: Organization) -> bool:
    return organization.owner_id is not None and organization.owner_id == identity.id


def _ensure_can_view(identity: Identity, organization_id: uuid.UUID) -> None:
    if role_satisfies(identity.role, [Role.ADMIN, Role.OWNER]):
        return
    if not _is_member(identity, organization_id):
        raise Forbidden("access denied to this organization")


async def create_organization(
    db: AsyncSession,
    identity: Identity,
    name: str,
    description: str | None = None,
) -> Organization:
    """Create an organization owned by the caller and add the caller to it."""
    users = UserRepository(db)
    creator = await users.get_by_id(identity.id)
    if creator is None:
        raise UserNotFoundError(identity.id)

    organization = Organization(name=name, description=description, owner_id=identity.id)
    db.add(organization)
    await db.flush()

    creator.organization_id = organization.id
    await users.save(creator)

    logger.info("user %s created organization %s", identity.id, organization.id)
    return organization


async def get_organization(
    db: AsyncSession,
    organization_id: uuid.UUID,
    identity: Identity,
) -> Organization:
    _ensure_can_view(identity, organization_id)
    return await _load_organization(db, organization_id)


async def list_members(
    db: AsyncSession,
    organization_id: uuid.UUID,
    identity: Identity,
) -> list[User]:
    _ensure_can_view(identity, organization_id)
    await _load_organization(db, organization_id)
    return await UserRepository(db).list_by_organization(organization_id)


async def update_organization(
    db: AsyncSession,
    organization_id: uuid.UUID,
    identity: Identity,
    updates: dict,
) -> Organization:
    """
    Apply a partial update. Allowed for the organization's owner and for
    admin rank or above.
    """
    organization = await _load_organization(db, organization_id)
    if not _is_owner(identity, organization):
        require_any_role(identity, [Role.ADMIN])

    for field, value in updates.items():
        if field == "name" and value is None:
            continue
        setattr(organization, field, value)
    await db.flush()
    return organization


async def delete_organization(
    db: AsyncSession,
    organization_id: uuid.UUID,
    identity: Identity,
) -> None:
    """
    Soft-delete an organization. Allowed for the organization's owner and
    for the owner role; admins cannot delete organizations they do not own.
    """
    organization = await _load_organization(db, organization_id)
    if not _is_owner(identity, organization):
        require_any_role(identity, [Role.OWNER])

    organization.deleted_at = datetime.now(timezone.utc)
    await db.flush()
    logger.info("user %s deleted organization %s", identity.id, organization.id)
