#!/usr/bin/env python3
"""CLI script to create site users.

Usage:
    uv run python scripts/create_user.py dude dude@example.com password123 --name "The Dude"
    uv run python scripts/create_user.py walter walter@example.com password123 --role admin
"""

import argparse
import asyncio
import sys
from pathlib import Path

# Add src to path so we can import modules
sys.path.insert(0, str(Path(__file__).parent.parent))

from pydantic import ValidationError

from src.config import Settings
from src.infrastructure.database.connection import init_database
from src.modules.auth.repository import UserRepository
from src.modules.auth.roles import Role
from src.modules.auth.schemas import UserCreate
from src.modules.auth.service import AuthService


async def create_user(
    username: str,
    email: str,
    password: str,
    *,
    name: str,
    role: Role = Role.READER,
) -> None:
    """Create a user in the database.

    Args:
        username: Login name (4 to 28 characters).
        email: User's email address.
        password: User's password (will be hashed).
        name: Display name (6 to 40 characters).
        role: Role to grant.
    """
    settings = Settings()

    # Check for JWT secret (required for auth service)
    if settings.jwt_secret_key is None:
        print("✗ Error: JWT_SECRET_KEY not set in .env", file=sys.stderr)
        print("  Please add JWT_SECRET_KEY to your .env file", file=sys.stderr)
        sys.exit(1)

    try:
        user_data = UserCreate(
            username=username,
            name=name,
            email=email,
            password=password,
            role=role,
        )
    except ValidationError as e:
        for error in e.errors():
            print(f"✗ Error: {error['loc'][0]} {error['msg']}", file=sys.stderr)
        sys.exit(1)

    db_path = Path(settings.database_path)
    db_path.parent.mkdir(parents=True, exist_ok=True)
    db = await init_database(db_path)

    try:
        auth_service = AuthService(
            repository=UserRepository(db),
            jwt_secret=settings.jwt_secret_key.get_secret_value(),
        )
        user = await auth_service.register(user_data)

        print(f"✓ Created {user.role.value}: {user.username} <{user.email}>")
        print(f"  User ID: {user.id}")
        print(f"  Created at: {user.created_at}")

    except ValueError as e:
        print(f"✗ Error: {e}", file=sys.stderr)
        sys.exit(1)
    finally:
        await db.disconnect()


def main() -> None:
    """Parse arguments and create user."""
    parser = argparse.ArgumentParser(
        description="Create a Dudefest user",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Create a reader who can comment
  uv run python scripts/create_user.py donny donny@example.com mypassword --name "Donny Kerabatsos"

  # Create the site admin
  uv run python scripts/create_user.py walter walter@example.com adminpass --role admin
        """,
    )

    parser.add_argument("username", help="Login name (4 to 28 characters)")
    parser.add_argument("email", help="User's email address")
    parser.add_argument("password", help="User's password (min 8 characters)")
    parser.add_argument(
        "--name",
        help="Display name (6 to 40 characters, defaults to the username)",
    )
    parser.add_argument(
        "--role",
        choices=[role.value for role in Role],
        default=Role.READER.value,
        help="Role to grant (default: reader)",
    )

    args = parser.parse_args()

    if len(args.password) < 8:
        print("✗ Error: Password must be at least 8 characters", file=sys.stderr)
        sys.exit(1)

    asyncio.run(
        create_user(
            args.username,
            args.email,
            args.password,
            name=args.name or args.username,
            role=Role(args.role),
        )
    )


if __name__ == "__main__":
    main()
