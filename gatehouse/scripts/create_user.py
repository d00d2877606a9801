"""
Create a user (e.g. first admin) and make sure the default roles exist. Run from project root:
  python -m gatehouse.scripts.create_user EMAIL "FULL NAME" PASSWORD [--role ROLE ...]
Example:
  python -m gatehouse.scripts.create_user admin@example.com "System Administrator" 'Admin123!' --role Admin
"""
import argparse
import sys

from gatehouse.core.config import get_settings
from gatehouse.core.database import get_session_factory
from gatehouse.core.errors import ConflictFailure, NotFoundFailure
from gatehouse.core.security import (
    EMAIL_MAX_LEN,
    FULL_NAME_MAX_LEN,
    PASSWORD_MAX_LEN,
    PASSWORD_MIN_LEN,
    PasswordHasher,
)
from gatehouse.services.directory import DirectoryService
from gatehouse.services.seed import ensure_default_roles


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Create a Gatehouse user (no registration UI needed).")
    parser.add_argument("email", help=f"Email (max {EMAIL_MAX_LEN} chars, case-sensitive)")
    parser.add_argument("full_name", help=f"Display name (1-{FULL_NAME_MAX_LEN} chars)")
    parser.add_argument("password", help=f"Password ({PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} chars)")
    parser.add_argument(
        "--role",
        action="append",
        dest="roles",
        default=[],
        help="Role name to assign (repeatable), e.g. --role Admin",
    )
    parser.add_argument("--inactive", action="store_true", help="Create the account inactive")
    args = parser.parse_args(argv)

    email = args.email.strip()
    full_name = args.full_name.strip()
    if not email or len(email) > EMAIL_MAX_LEN or "@" not in email:
        print("Invalid email.", file=sys.stderr)
        return 1
    if not full_name or len(full_name) > FULL_NAME_MAX_LEN:
        print("Invalid full name length.", file=sys.stderr)
        return 1
    if len(args.password) < PASSWORD_MIN_LEN or len(args.password) > PASSWORD_MAX_LEN:
        print(f"Password must be {PASSWORD_MIN_LEN}-{PASSWORD_MAX_LEN} characters.", file=sys.stderr)
        return 1

    settings = get_settings()
    db = get_session_factory()()
    try:
        ensure_default_roles(db)
        directory = DirectoryService(db, PasswordHasher(rounds=settings.BCRYPT_ROUNDS))
        try:
            user = directory.create_user(
                full_name,
                email,
                args.password,
                is_active=not args.inactive,
                role_names=args.roles,
            )
        except (ConflictFailure, NotFoundFailure) as e:
            print(f"{e.message}.", file=sys.stderr)
            return 1
        roles = ", ".join(user.role_names) or "none"
        print(f"Created user '{email}' (id={user.id}) with roles: {roles}.")
        return 0
    finally:
        db.close()


if __name__ == "__main__":
    sys.exit(main())
