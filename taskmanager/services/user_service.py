"""
User service — registration, profile, credentials, and role management.

Registration flow:
  1. Check the username is free
  2. Enforce the password strength policy
  3. Check the optional organization exists
  4. Hash the password with Argon2id (in a worker thread)
  5. Create the User with role "user" and a freshly issued API key

Passwords are never changed in place: a password change verifies the
current password and stores a brand-new hash (new salt) in its place.
"""

import logging
import uuid

from fastapi.concurrency import run_in_threadpool
from sqlalchemy.ext.asyncio import AsyncSession

from taskmanager.auth.credentials import generate_api_key
from taskmanager.auth.identity import Identity, authenticate_password
from taskmanager.auth.passwords import (
    PasswordConfig,
    hash_password,
    validate_password_strength,
)
from taskmanager.auth.rbac import ROLE_HIERARCHY, Role
from taskmanager.exceptions import (
    DuplicateUsernameError,
    Forbidden,
    OrganizationNotFoundError,
    UserNotFoundError,
)
from taskmanager.models.organization import Organization
from taskmanager.models.user import User
from taskmanager.repositories import UserRepository

logger = logging.getLogger(__name__)


async def _hash(password: str) -> str:
    return await run_in_threadpool(hash_password, password, PasswordConfig.from_settings())


async def _ensure_username_free(users: UserRepository, username: str) -> None:
    if await users.get_by_username(username) is not None:
        raise DuplicateUsernameError(username)


async def register_user(
    db: AsyncSession,
    username: str,
    password: str,
    age: int | None = None,
    gender: str | None = None,
    organization_id: uuid.UUID | None = None,
) -> User:
    """
    Register a new user.

    Raises:
        DuplicateUsernameError: If the username is already taken.
        WeakPasswordError: If the password fails the strength policy.
        OrganizationNotFoundError: If organization_id does not exist.
        CryptoFailure: If no secure randomness is available for the salt.
    """
    users = UserRepository(db)
    await _ensure_username_free(users, username)
    validate_password_strength(password)

    if organization_id is not None:
        organization = await db.get(Organization, organization_id)
        if organization is None or organization.deleted_at is not None:
            raise OrganizationNotFoundError(organization_id)

    user = User(
        username=username,
        password_hash=await _hash(password),
        role=Role.USER.value,
        age=age,
        gender=gender,
        organization_id=organization_id,
        api_key=generate_api_key(),
    )
    await users.add(user)
    logger.info("registered user %s", user.id)
    return user


async def get_user(db: AsyncSession, user_id: uuid.UUID) -> User:
    user = await UserRepository(db).get_by_id(user_id)
    if user is None:
        raise UserNotFoundError(user_id)
    return user


async def update_profile(db: AsyncSession, user_id: uuid.UUID, updates: dict) -> User:
    """
    Apply a partial profile update (username, age, gender).

    Only keys present in `updates` are written; the caller passes
    model_dump(exclude_unset=True) so omitted fields stay unchanged.
    """
    users = UserRepository(db)
    user = await get_user(db, user_id)

    new_username = updates.get("username")
    if new_username is not None and new_username != user.username:
        await _ensure_username_free(users, new_username)

    for field, value in updates.items():
        if field == "username" and value is None:
            continue
        setattr(user, field, value)

    return await users.save(user)


async def change_password(
    db: AsyncSession,
    identity: Identity,
    current_password: str,
    new_password: str,
) -> User:
    """
    Replace the caller's password hash.

    Raises:
        InvalidCredential: If current_password is wrong.
        WeakPasswordError: If new_password fails the strength policy.
    """
    users = UserRepository(db)
    user = await authenticate_password(users, identity.username, current_password)
    validate_password_strength(new_password)

    user.password_hash = await _hash(new_password)
    await users.save(user)
    logger.info("password changed for user %s", user.id)
    return user


async def rotate_api_key(db: AsyncSession, user_id: uuid.UUID) -> User:
    """Issue a new API key; the previous key stops resolving immediately."""
    users = UserRepository(db)
    user = await get_user(db, user_id)
    user.api_key = generate_api_key()
    await users.save(user)
    logger.info("rotated API key for user %s", user.id)
    return user


async def list_users(db: AsyncSession) -> list[User]:
    return await UserRepository(db).list_all()


async def set_role(
    db: AsyncSession,
    actor: Identity,
    user_id: uuid.UUID,
    role: Role,
) -> User:
    """
    Change a user's role on behalf of `actor`.

    The actor can neither grant a role ranked above their own nor change the
    role of someone who outranks them. A stored role with no rank counts as
    the lowest. Takes effect on the user's next request, because every
    request resolves the role fresh from the database.

    Raises:
        UserNotFoundError: No such user.
        Forbidden: The change reaches above the actor's rank.
    """
    users = UserRepository(db)
    user = await get_user(db, user_id)
    new_role = Role(role).value

    actor_rank = ROLE_HIERARCHY.get(actor.role, 0)
    if ROLE_HIERARCHY[new_role] > actor_rank or ROLE_HIERARCHY.get(user.role, 0) > actor_rank:
        logger.info(
            "user %s (%s) refused role change of %s from %s to %s",
            actor.id, actor.role, user.id, user.role, new_role,
        )
        raise Forbidden("cannot change roles above your own")

    previous = user.role
    user.role = new_role
    await users.save(user)
    logger.info("role of user %s changed from %s to %s", user.id, previous, user.role)
    return user

