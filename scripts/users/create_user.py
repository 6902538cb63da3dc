"""Create a back-office user from the command line.

Usage:
    ENV_FILE=.env python scripts/users/create_user.py admin@example.com 's3cret-pass' \
        --first-name Ada --last-name Admin
"""

import argparse
import asyncio
import os
from pathlib import Path

from dotenv import load_dotenv

# Load env file before importing libs that use get_settings()
project_root = Path(__file__).resolve().parents[2]
env_file = os.environ.get("ENV_FILE", ".env")
load_dotenv(project_root / env_file, override=True)

from fastapi import HTTPException  # noqa: E402

from libs.db.config import AsyncSessionLocal  # noqa: E402
from services.market_service.services.user_ops import create_user  # noqa: E402


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Create a back-office user")
    parser.add_argument("email")
    parser.add_argument("password")
    parser.add_argument("--first-name", default=None)
    parser.add_argument("--last-name", default=None)
    return parser.parse_args()


async def main() -> int:
    args = parse_args()
    if len(args.password) < 8:
        print("❌ Password must be at least 8 characters")
        return 1

    async with AsyncSessionLocal() as db:
        try:
            user = await create_user(
                db,
                email=args.email,
                password=args.password,
                first_name=args.first_name,
                last_name=args.last_name,
            )
        except HTTPException as e:
            print(f"❌ {e.detail}")
            return 1

    print(f"✅ Created user {user.email} ({user.id})")
    return 0


if __name__ == "__main__":
    raise SystemExit(asyncio.run(main()))
