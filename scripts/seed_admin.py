#!/usr/bin/env python3
"""Create an admin account, or promote an existing user to admin."""

import argparse
import asyncio
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from app.core.security import hash_password
from app.database import async_session_maker
from app.models.user import User
from app.services import user_service


async def create_admin_user(email: str, password: str, phone: str | None = None) -> None:
    async with async_session_maker() as db:
        existing_user = await user_service.get_user_by_email(db, email)

        if existing_user:
            if existing_user.is_admin:
                print(f"Admin user already exists: {email}")
            else:
                existing_user.is_admin = True
                await db.commit()
                print(f"Upgraded existing user to admin: {email}")
            return

        db.add(
            User(
                email=email.lower(),
                password_hash=hash_password(password),
                phone=phone,
                is_admin=True,
                email_verified=True,
            )
        )
        await db.commit()
        print(f"Created admin user: {email}")


async def make_user_admin(email: str) -> None:
    async with async_session_maker() as db:
        user = await user_service.get_user_by_email(db, email)

        if not user:
            print(f"User not found: {email}")
            return

        if user.is_admin:
            print(f"User is already an admin: {email}")
            return

        user.is_admin = True
        await db.commit()
        print(f"Made user admin: {email}")


def main():
    parser = argparse.ArgumentParser(description="Admin user seeder")
    parser.add_argument("--email", default="admin@matrimony.test")
    parser.add_argument("--password", required=False, default="admin12345")
    parser.add_argument("--phone", default=None)
    parser.add_argument(
        "--make-admin",
        metavar="EMAIL",
        help="Make an existing user an admin by email",
    )

    args = parser.parse_args()

    if args.make_admin:
        asyncio.run(make_user_admin(args.make_admin))
    else:
        asyncio.run(create_admin_user(args.email, args.password, args.phone))


if __name__ == "__main__":
    main()
