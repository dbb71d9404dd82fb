"""
FastAPI dependencies for authentication and authorization.

Dependencies are reusable functions that FastAPI injects into route
handlers. Together they form the request pipeline:

  get_request_scope                       (fresh, identity-free RequestScope)
      └── get_authenticated_scope         (extract key -> resolve -> attach)
              └── get_current_identity    (retrieve the attached Identity)
                      └── PermissionChecker(perm)      [grant-based]

Each stage can end the request early by raising a domain error; the
handlers in taskmanager.exceptions turn that into the JSON response:

  - no/blank Authorization header      -> 401 missing authorization header
  - malformed header or unknown key    -> 401 invalid API key
  - permission check fails             -> 403 forbidden

The persistence collaborator (UserRepository) is built per request from the
request's database session, so the auth pipeline never reaches for global
state and tests can override get_user_repository or get_db.
"""

import logging

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from taskmanager.auth.context import (
    RequestScope,
    attach_identity,
    get_identity,
    new_request_scope,
)
from taskmanager.auth.credentials import extract_api_key
from taskmanager.auth.identity import Identity, resolve_by_api_key
from taskmanager.auth.rbac import Permission, require_permission
from taskmanager.database import get_db
from taskmanager.exceptions import MalformedCredential, MissingCredential
from taskmanager.repositories import UserRepository

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


async def get_user_repository(db: AsyncSession = Depends(get_db)) -> UserRepository:
    return UserRepository(db)


async def get_request_scope(request: Request) -> RequestScope:
    """Create the base scope for this request, reusing an inbound X-Request-ID."""
    return new_request_scope(request.headers.get(REQUEST_ID_HEADER))


async def get_authenticated_scope(
    request: Request,
    scope: RequestScope = Depends(get_request_scope),
    users: UserRepository = Depends(get_user_repository),
) -> RequestScope:
    """
    Authenticate the request and return a scope carrying the caller's Identity.

    Raises:
        MissingCredential / MalformedCredential / InvalidCredential (401).
    """
    try:
        raw_key = extract_api_key(request.headers)
    except MissingCredential:
        logger.info("[%s] rejected: no credential", scope.request_id)
        raise
    except MalformedCredential as exc:
        logger.info("[%s] rejected: malformed credential (%s)", scope.request_id, exc.reason)
        raise

    identity = await resolve_by_api_key(users, raw_key)
    return attach_identity(scope, identity)


async def get_current_identity(
    scope: RequestScope = Depends(get_authenticated_scope),
) -> Identity:
    return get_identity(scope)


class PermissionChecker:
    """Dependency that admits callers whose role is granted `permission`."""

    def __init__(self, permission: Permission):
        self.permission = permission

    async def __call__(self, identity: Identity = Depends(get_current_identity)) -> Identity:
        require_permission(identity, self.permission)
        return identity


require_read = PermissionChecker(Permission.READ)
require_write = PermissionChecker(Permission.WRITE)
require_admin = PermissionChecker(Permission.ADMIN)
