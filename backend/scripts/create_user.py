#!/usr/bin/env python3
"""
Create a local (password) user.
Run from backend/: python -m scripts.create_user <username> <email> <password>
"""
import argparse
import asyncio
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))


async def main(username: str, email: str, password: str):
    from brandsnap.database import async_session, init_db
    from brandsnap.exceptions import BrandsnapError
    from brandsnap.services.user_service import register

    await init_db()
    async with async_session() as db:
        try:
            user = await register(db, username, email, password)
        except BrandsnapError as e:
            print(f"Error: {e.message}")
            sys.exit(1)
        print(f"Created user {user.username} (id={user.id})")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Create a local BrandSnap user")
    parser.add_argument("username")
    parser.add_argument("email")
    parser.add_argument("password")
    args = parser.parse_args()
    asyncio.run(main(args.username, args.email, args.password))
