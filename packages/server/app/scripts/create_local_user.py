"""
Script to create a local user with a role and print a bearer token for it.
"""

import argparse
import asyncio
import os
import sys
from datetime import timedelta

from sqlmodel import select

# Add the project root to sys.path to allow importing from 'app'
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "../..")))

from app.core.auth import create_jwt
from app.core.config import get_settings
from app.core.database import get_session_context, init_db
from app.core.logging import configure_logging
from app.models.user import User
from trackhub_shared.schemas.common import Role

settings = get_settings()


async def create_user(name: str, email: str, role: Role, token_hours: int) -> None:
    await init_db()

    async with get_session_context() as session:
        result = await session.execute(select(User).where(User.email == email))
        user = result.scalar_one_or_none()

        if not user:
            user = User(name=name, email=email, role=role.value)
            session.add(user)
            await session.flush()
            print(f"Created {role.value}: {email}")
        else:
            print(f"User {email} already exists ({user.role}).")

        token, _ = create_jwt(user.id, user.role, expires_delta=timedelta(hours=token_hours))

    print(f"User id: {user.id}")
    print(f"Bearer token: {token}")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create a local user and print a token.")
    parser.add_argument("--name", required=True, help="Display name")
    parser.add_argument("--email", required=True, help="Email address for the user")
    parser.add_argument(
        "--role",
        choices=[r.value for r in Role],
        default=Role.ADMIN.value,
        help="Role for the user",
    )
    parser.add_argument("--token-hours", type=int, default=24, help="Token lifetime in hours")

    args = parser.parse_args()
    configure_logging(settings.log_level, settings.log_format)
    asyncio.run(create_user(args.name, args.email, Role(args.role), args.token_hours))
