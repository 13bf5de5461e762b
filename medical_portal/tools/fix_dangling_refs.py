"""
Appuntamenti che puntano a medici/servizi non più esistenti.

Su SQLite le FK non sono applicate (PRAGMA foreign_keys off), quindi righe
cancellate fuori dall'applicazione possono lasciare riferimenti orfani.
Senza --apply elenca soltanto; con --apply li azzera (stessa semantica di
set null on delete).
"""
from __future__ import annotations

import argparse

from sqlalchemy import select

from medical_portal.db import db_session
from medical_portal.models import Appointment, Doctor, Service
from medical_portal.services import next_timestamp

REFERENCES = (
    ("doctor_id", Appointment.doctor_id, Doctor),
    ("service_id", Appointment.service_id, Service),
)


def find_dangling(s) -> dict[str, list[str]]:
    """Per ogni colonna di riferimento: id degli appuntamenti orfani."""
    found: dict[str, list[str]] = {}
    for name, column, target in REFERENCES:
        q = (
            select(Appointment.id)
            .outerjoin(target, target.id == column)
            .where(column.is_not(None), target.id.is_(None))
            .order_by(Appointment.id)
        )
        found[name] = list(s.scalars(q))
    return found


def fix_dangling(s, found: dict[str, list[str]]) -> int:
    """Azzera i riferimenti orfani; updated_at avanza su ogni riga toccata."""
    fixed = 0
    for name, column, _ in REFERENCES:
        ids = found.get(name) or []
        if not ids:
            continue
        for app in s.scalars(select(Appointment).where(Appointment.id.in_(ids))):
            setattr(app, column.key, None)
            app.updated_at = next_timestamp(app.updated_at)
            fixed += 1
    s.flush()
    return fixed


def main(argv: list[str] | None = None) -> None:
    p = argparse.ArgumentParser(description="Riferimenti orfani negli appuntamenti")
    p.add_argument("--apply", action="store_true", help="Azzera i riferimenti orfani")
    args = p.parse_args(argv)

    with db_session() as s:
        found = find_dangling(s)
        for name, ids in found.items():
            print(f"{name}: {len(ids)} orfani")
            for app_id in ids:
                print(f"  - {app_id}")

        if args.apply:
            print(f"Riferimenti azzerati: {fix_dangling(s, found)}")


if __name__ == "__main__":
    main()
