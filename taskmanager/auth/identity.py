"""
Identity resolution: API key or username/password -> Identity.

Resolution always goes through the persistence collaborator (a
UserRepository), so a user's current role is read fresh on every request;
a role change takes effect on the next request without any cache to
invalidate.

Failure messages are deliberately uniform:
  - An unknown API key gets the same public message as a malformed one.
  - An unknown username, a wrong password, and an unreadable stored hash
    all produce the same InvalidCredential ("invalid username or
    password"), and an unknown username still pays for one Argon2
    verification so response timing does not reveal which usernames
    exist.
The real reason is logged (without the key, password, or hash).
"""

import logging
import uuid
from functools import lru_cache
from typing import Protocol

from fastapi.concurrency import run_in_threadpool
from pydantic import BaseModel, ConfigDict

from taskmanager.auth.passwords import PasswordConfig, hash_password, verify_password
from taskmanager.exceptions import InvalidCredential, PasswordHashError

logger = logging.getLogger(__name__)


class Identity(BaseModel):
    """
    The authenticated principal for one request.

    `role` is a plain string rather than the Role enum: a row may carry a
    role the permission table does not know, and authorization must be
    able to see (and reject) it.
    """

    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: uuid.UUID
    username: str
    role: str
    organization_id: uuid.UUID | None = None

    @classmethod
    def from_user(cls, user) -> "Identity":
        return cls.model_validate(user)


class UserRecord(Protocol):
    id: uuid.UUID
    username: str
    role: str
    password_hash: str
    organization_id: uuid.UUID | None


class UserRepository(Protocol):
    """Lookups the auth layer needs from persistence."""

    async def get_by_api_key(self, api_key: str) -> UserRecord | None: ...

    async def get_by_username(self, username: str) -> UserRecord | None: ...

    async def get_by_id(self, user_id: uuid.UUID) -> UserRecord | None: ...


@lru_cache(maxsize=4)
def _dummy_hash(config: PasswordConfig) -> str:
    return hash_password("Dummy-Password-1", config)


def _verify_against_dummy(password: str, config: PasswordConfig) -> bool:
    verify_password(password, _dummy_hash(config))
    return False


async def resolve_by_api_key(users: UserRepository, raw_key: str) -> Identity:
    """
    Map a raw API key to the Identity of its owner.

    Raises:
        InvalidCredential: No user holds this key.
    """
    user = await users.get_by_api_key(raw_key)
    if user is None:
        logger.info("authentication failed: unknown API key")
        raise InvalidCredential(reason="unknown API key")
    return Identity.from_user(user)


async def authenticate_password(
    users: UserRepository,
    username: str,
    password: str,
    config: PasswordConfig | None = None,
) -> UserRecord:
    """
    Check a username/password pair and return the matching user record.

    The Argon2 work runs in a worker thread so the event loop keeps serving
    other requests while a login is being verified.

    Raises:
        InvalidCredential: Unknown username, wrong password, or unusable
            stored hash (indistinguishable to the caller).
    """
    config = config or PasswordConfig.from_settings()
    user = await users.get_by_username(username)

    if user is None:
        await run_in_threadpool(_verify_against_dummy, password, config)
        logger.info("login failed: unknown username")
        raise InvalidCredential.for_login("unknown username")

    try:
        matches = await run_in_threadpool(verify_password, password, user.password_hash)
    except PasswordHashError as exc:
        logger.warning("login failed: stored hash for user %s is unusable (%s)",
                       user.id, exc)
        raise InvalidCredential.for_login("unusable stored hash") from exc

    if not matches:
        logger.info("login failed: wrong password for user %s", user.id)
        raise InvalidCredential.for_login("wrong password")

    return user


async def resolve_by_password(
    users: UserRepository,
    username: str,
    password: str,
    config: PasswordConfig | None = None,
) -> Identity:
    """Map a username/password pair to an Identity (see authenticate_password)."""
    user = await authenticate_password(users, username, password, config)
    return Identity.from_user(user)
