"""
Create a user (e.g. the first admin). Run from project root:
  python -m unity.scripts.create_user USERNAME PASSWORD [role] [--display-name NAME]
Example:
  python -m unity.scripts.create_user admin your-secure-password admin
"""
import argparse
import sys

from unity.core.config import get_settings
from unity.core.database import SessionLocal
from unity.core.errors import ConflictError, UnityError
from unity.core.security import hash_password
from unity.models.user import ROLE_USER, ROLES
from unity.repositories import users as users_repo
from unity.schemas.auth import (
    PASSWORD_MAX_LEN,
    PASSWORD_MIN_LEN,
    USERNAME_MAX_LEN,
    USERNAME_MIN_LEN,
)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Create a Unity user or administrator.")
    parser.add_argument("username", help=f"Username ({USERNAME_MIN_LEN}-{USERNAME_MAX_LEN} chars)")
    parser.add_argument("password", help=f"Password ({PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} chars)")
    parser.add_argument("role", nargs="?", default=ROLE_USER, choices=sorted(ROLES))
    parser.add_argument("--display-name", default=None, help="Name shown on posts")
    args = parser.parse_args(argv)

    username = args.username.strip()
    if not (USERNAME_MIN_LEN <= len(username) <= USERNAME_MAX_LEN):
        print("Invalid username length.", file=sys.stderr)
        return 1
    if not (PASSWORD_MIN_LEN <= len(args.password) <= PASSWORD_MAX_LEN):
        print(
            f"Password must be {PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} characters.",
            file=sys.stderr,
        )
        return 1

    settings = get_settings()
    db = SessionLocal()
    try:
        users_repo.create_user(
            db,
            username=username,
            password_hash=hash_password(args.password, rounds=settings.BCRYPT_ROUNDS),
            role=args.role,
            display_name=args.display_name,
        )
    except ConflictError:
        print(f"User '{username}' already exists.", file=sys.stderr)
        return 1
    except UnityError as e:
        print(e.message, file=sys.stderr)
        return 1
    finally:
        db.close()
    print(f"Created user '{username}' with role '{args.role}'.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
