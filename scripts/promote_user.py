#!/usr/bin/env python3
"""
Change a user's role directly in the database. Run on the server.

Bootstraps the first admin: the admin endpoints themselves require the
"admin" permission, so somebody has to be promoted out of band.

Usage:
    python scripts/promote_user.py alice admin
    DATABASE_URL=sqlite+aiosqlite:///./data/tasks.db python scripts/promote_user.py bob moderator
"""

import argparse
import asyncio
import sys

from sqlalchemy import update
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker

from taskmanager.auth.rbac import Role
from taskmanager.config import settings
from taskmanager.models import User


async def promote(username: str, role: Role, database_url: str) -> int:
    engine = create_async_engine(database_url)
    sf = async_sessionmaker(engine, class_=AsyncSession)
    async with sf() as s:
        r = await s.execute(
            update(User)
            .where(User.username == username)
            .values(role=role.value)
        )
        await s.commit()
    await engine.dispose()
    return r.rowcount


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Change a user's role")
    parser.add_argument("username")
    parser.add_argument("role", choices=[role.value for role in Role])
    parser.add_argument("--database-url", default=settings.DATABASE_URL)
    args = parser.parse_args(argv)

    rows = asyncio.run(promote(args.username, Role(args.role), args.database_url))
    if rows == 0:
        print(f"No user named {args.username}", file=sys.stderr)
        return 1
    print(f"{args.username} is now {args.role}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
