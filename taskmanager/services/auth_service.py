"""
Authentication service — password login.

Login flow:
  1. Look up the user by username
  2. Verify the password against the stored Argon2id hash
  3. If the hash was made with outdated cost parameters, supersede it with
     a fresh hash at the current settings
  4. Return the user; its API key is the credential for later requests

Security notes:
  - Login returns the same error for "wrong password" and "username not
    found" to prevent user enumeration (see taskmanager.auth.identity)
  - Plaintext passwords exist only in memory during request processing
    and are never logged
"""

import logging

from fastapi.concurrency import run_in_threadpool
from sqlalchemy.ext.asyncio import AsyncSession

from taskmanager.auth.identity import authenticate_password
from taskmanager.auth.passwords import PasswordConfig, hash_password, needs_rehash
from taskmanager.models.user import User
from taskmanager.repositories import UserRepository

logger = logging.getLogger(__name__)


async def login(db: AsyncSession, username: str, password: str) -> User:
    """
    Authenticate a user by username and password.

    Args:
        db: Database session.
        username: The login name.
        password: Plaintext password to verify.

    Returns:
        The authenticated User (with its API key).

    Raises:
        InvalidCredential: If the username doesn't exist or the password is wrong.
    """
    users = UserRepository(db)
    config = PasswordConfig.from_settings()
    user = await authenticate_password(users, username, password, config)

    if needs_rehash(user.password_hash, config):
        user.password_hash = await run_in_threadpool(hash_password, password, config)
        await users.save(user)
        logger.info("superseded outdated password hash for user %s", user.id)

    return user
