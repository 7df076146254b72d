from __future__ import annotations

import argparse
import sys
from pathlib import Path

# Allow running this file directly: `python courseware/scripts/create_admin.py`
if __package__ in (None, ""):
    repo_root = Path(__file__).resolve().parents[2]
    if str(repo_root) not in sys.path:
        sys.path.insert(0, str(repo_root))

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from courseware.core.roles import Role
from courseware.core.security import hash_password
from courseware.db.session import SessionLocal
from courseware.models import User


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Create or promote an admin account. Role changes through the API never grant SUPERADMIN."
    )
    parser.add_argument("--email", required=True, help="User email")
    parser.add_argument("--password", required=True, help="Plain password (will be hashed)")
    parser.add_argument("--username", default="", help="Username (defaults to the email local part)")
    parser.add_argument("--role", choices=[Role.ADMIN.value, Role.SUPERADMIN.value], default=Role.SUPERADMIN.value)
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    email = args.email.strip().lower()
    username = args.username.strip() or email.split("@")[0]

    if len(args.password) < 6:
        print("Error: password must be at least 6 characters", file=sys.stderr)
        return 2

    with SessionLocal() as db:
        user = db.execute(select(User).where(User.email == email)).scalars().first()
        created = False
        if not user:
            user = User(email=email, username=username, password_hash=hash_password(args.password))
            db.add(user)
            created = True
        else:
            user.password_hash = hash_password(args.password)
            user.deleted_at = None
        user.role = args.role
        try:
            db.commit()
        except IntegrityError:
            db.rollback()
            print(f"Error: username '{username}' is already taken", file=sys.stderr)
            return 2

    print({"ok": True, "created": created, "email": email, "username": username, "role": args.role})
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
