#!/usr/bin/env python3
"""Create (or update) a user with the given roles and print an access token.

Usage:
    python scripts/create_user.py --email admin@beautybook.kr --role admin
    python scripts/create_user.py --email artist@beautybook.kr --role artist --role customer
"""

import argparse
import asyncio

from sqlalchemy import select

from beautybook.core.security import create_access_token
from beautybook.database import AsyncSessionLocal, close_db
from beautybook.models.user import User


async def create_user(email: str, roles: list[str], name: str | None = None) -> None:
    """Create a user if it doesn't exist, otherwise replace its roles."""
    async with AsyncSessionLocal() as session:
        result = await session.execute(select(User).where(User.email == email))
        user = result.scalar_one_or_none()

        if user:
            user.roles = roles
            user.is_active = True
            if name:
                user.name = name
            print(f"Updated existing user: {email}")
        else:
            user = User(email=email, name=name, roles=roles, is_active=True)
            session.add(user)
            print(f"Created user: {email}")

        await session.commit()
        await session.refresh(user)

        print(f"ID: {user.id}")
        print(f"Roles: {', '.join(user.roles)}")
        print(f"Token: {create_access_token({'sub': str(user.id)})}")

    await close_db()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create a user and issue a development access token")
    parser.add_argument("--email", required=True, help="User email")
    parser.add_argument("--name", default=None, help="Display name")
    parser.add_argument(
        "--role",
        dest="roles",
        action="append",
        choices=["customer", "artist", "admin"],
        help="Role to grant (repeatable, defaults to customer)",
    )

    args = parser.parse_args()

    asyncio.run(create_user(email=args.email, roles=args.roles or ["customer"], name=args.name))
