from __future__ import annotations

from medical_portal.db import engine
from medical_portal.settings import DATABASE_URL


def main() -> None:
    print("DATABASE_URL:", DATABASE_URL)
    print("ENGINE URL  :", engine.url)
    print("DB FILE     :", engine.url.database)


if __name__ == "__main__":
    main()
