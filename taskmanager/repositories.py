"""
User persistence for the auth layer.

UserRepository wraps one AsyncSession and exposes exactly the lookups
identity resolution needs (by API key, by username, by id) plus the few
writes the user service performs. It is built per request from the
request's session by the get_user_repository() dependency, so the auth
code never touches a global database handle and tests can swap in any
object with the same async methods.
"""

import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from taskmanager.models.user import User


class UserRepository:
    def __init__(self, session: AsyncSession):
        self.session = session

    async def _one(self, *criteria) -> User | None:
        result = await self.session.execute(select(User).where(*criteria))
        return result.scalar_one_or_none()

    async def get_by_api_key(self, api_key: str) -> User | None:
        return await self._one(User.api_key == api_key)

    async def get_by_username(self, username: str) -> User | None:
        return await self._one(User.username == username)

    async def get_by_id(self, user_id: uuid.UUID) -> User | None:
        return await self._one(User.id == user_id)

    async def list_all(self) -> list[User]:
        result = await self.session.execute(select(User).order_by(User.created_at))
        return list(result.scalars().all())

    async def list_by_organization(self, organization_id: uuid.UUID) -> list[User]:
        result = await self.session.execute(
            select(User)
            .where(User.organization_id == organization_id)
            .order_by(User.username)
        )
        return list(result.scalars().all())

    async def add(self, user: User) -> User:
        self.session.add(user)
        await self.session.flush()
        await self.refresh(user)
        return user

    async def save(self, user: User) -> User:
        await self.session.flush()
        await self.refresh(user)
        return user

    async def refresh(self, user: User) -> None:
        # Reload the eager organization relationship after FK changes
        await self.session.refresh(user, attribute_names=["organization"])
