from __future__ import annotations

import sys

from accessmap.core.errors import NetworkError
from accessmap.db.session import SessionLocal
from accessmap.models.enums import UserRole
from accessmap.services.accounts import AccountError, set_user_role


def main(argv: list[str] | None = None) -> int:
    args = sys.argv[1:] if argv is None else argv
    roles = "|".join(r.value for r in UserRole)
    if len(args) != 2:
        print(f"Usage: python scripts/set_role.py <email> <role: {roles}>")
        return 2

    email, role = args
    db = SessionLocal()
    try:
        try:
            user, sessions = set_user_role(db, email=email, role=role)
        except AccountError as e:
            print(e)
            return 1
        except NetworkError as e:
            print(e.message)
            return 1

        print(f"Role updated: {user.email} -> {user.role}")
        print(f"Active sessions affected: {len(sessions)}")
        for s in sessions:
            print(f"  {s.id}  signed in {s.created_at:%Y-%m-%d %H:%M}")
        return 0
    finally:
        db.close()


if __name__ == "__main__":
    raise SystemExit(main())
