from __future__ import annotations

import sys

from sqlalchemy import delete

from medical_portal.auth_models import StaffUser
from medical_portal.db import db_session


def main(argv: list[str] | None = None) -> None:
    argv = sys.argv[1:] if argv is None else argv
    if not argv:
        print("Uso: python -m medical_portal.tools.reset_user <username>")
        raise SystemExit(2)

    username = argv[0].strip().lower()
    if not username:
        print("Username non valido.")
        raise SystemExit(2)

    with db_session() as s:
        res = s.execute(delete(StaffUser).where(StaffUser.username == username))

    if res.rowcount:
        print(f"OK: account staff '{username}' cancellato.")
    else:
        print(f"Nessun account staff '{username}'.")


if __name__ == "__main__":
    main()
