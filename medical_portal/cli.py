from __future__ import annotations

import argparse
import logging
import sys

from . import portal
from .access import Actor
from .auth_service import create_staff_user
from .errors import PortalError
from .models import EntityKind
from .seed import seed_base
from .services import init_db
from .settings import configure_logging

logger = logging.getLogger(__name__)

KIND_BY_NAME = {
    "doctors": EntityKind.DOCTOR,
    "services": EntityKind.SERVICE,
    "appointments": EntityKind.APPOINTMENT,
    "blog-posts": EntityKind.BLOG_POST,
    "testimonials": EntityKind.TESTIMONIAL,
}

# colonne mostrate da `list`, oltre all'id
LIST_COLUMNS = {
    EntityKind.DOCTOR: ("name", "specialty", "available"),
    EntityKind.SERVICE: ("name", "category", "active"),
    EntityKind.APPOINTMENT: ("appointment_date", "appointment_time", "patient_name", "status"),
    EntityKind.BLOG_POST: ("title", "author", "published", "views"),
    EntityKind.TESTIMONIAL: ("patient_name", "rating", "active"),
}


def _parse_filters(items: list[str] | None) -> dict[str, str]:
    filters: dict[str, str] = {}
    for item in items or []:
        key, sep, value = item.partition("=")
        if not sep or not key.strip():
            raise SystemExit(f"Filtro non valido: '{item}' (formato campo=valore)")
        filters[key.strip()] = value.strip()
    return filters


def cmd_init(args: argparse.Namespace) -> None:
    init_db()
    added = seed_base()
    print(f"DB inizializzato, seed completato ({added} righe nuove).")


def cmd_add_staff(args: argparse.Namespace) -> None:
    uid = create_staff_user(args.username, args.password)
    print(f"Account staff creato: {uid}")


def cmd_list(args: argparse.Namespace) -> None:
    kind = KIND_BY_NAME[args.entity]
    actor = Actor.PUBLIC if args.public else Actor.STAFF
    rows = portal.list_entities(actor, kind, _parse_filters(args.filter))
    if not rows:
        print("Nessun risultato.")
        return
    for r in rows:
        print(" | ".join([r["id"]] + [str(r[c]) for c in LIST_COLUMNS[kind]]))


def cmd_book(args: argparse.Namespace) -> None:
    app = portal.book_appointment(
        Actor.PUBLIC,
        {
            "patient_name": args.name,
            "patient_email": args.email,
            "patient_phone": args.phone,
            "doctor_id": args.doctor_id,
            "service_id": args.service_id,
            "appointment_date": args.date,
            "appointment_time": args.time,
            "notes": args.notes,
        },
    )
    print(f"Prenotazione registrata ({app['status']}). Appuntamento ID: {app['id']}")


def cmd_status(args: argparse.Namespace) -> None:
    app = portal.set_appointment_status(Actor.STAFF, args.appointment_id, args.status)
    print(f"Appuntamento {app['id']}: stato {app['status']}")


def cmd_delete(args: argparse.Namespace) -> None:
    portal.delete_entity(Actor.STAFF, KIND_BY_NAME[args.entity], args.record_id)
    print("Eliminato.")


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="medical_portal_cli", description="CLI operatore del portale medico")
    sub = p.add_subparsers(required=True)

    p_init = sub.add_parser("init", help="Crea DB e carica seed")
    p_init.set_defaults(func=cmd_init)

    p_staff = sub.add_parser("add-staff", help="Crea account staff")
    p_staff.add_argument("--username", required=True)
    p_staff.add_argument("--password", required=True)
    p_staff.set_defaults(func=cmd_add_staff)

    p_list = sub.add_parser("list", help="Lista entità")
    p_list.add_argument("entity", choices=sorted(KIND_BY_NAME))
    p_list.add_argument("--filter", action="append", metavar="CAMPO=VALORE")
    p_list.add_argument("--public", action="store_true", help="Mostra solo ciò che vede un visitatore anonimo")
    p_list.set_defaults(func=cmd_list)

    p_book = sub.add_parser("book", help="Prenota appuntamento (come dal sito pubblico)")
    p_book.add_argument("--name", required=True)
    p_book.add_argument("--email", required=True)
    p_book.add_argument("--phone", default=None)
    p_book.add_argument("--doctor-id", default=None)
    p_book.add_argument("--service-id", default=None)
    p_book.add_argument("--date", required=True, help="ISO date es: 2026-01-14")
    p_book.add_argument("--time", required=True, help="slot es: 10:30")
    p_book.add_argument("--notes", default=None)
    p_book.set_defaults(func=cmd_book)

    p_status = sub.add_parser("status", help="Cambia stato di un appuntamento")
    p_status.add_argument("appointment_id")
    p_status.add_argument("status", help="confirmed | cancelled | completed")
    p_status.set_defaults(func=cmd_status)

    p_del = sub.add_parser("delete", help="Elimina un record")
    p_del.add_argument("entity", choices=sorted(KIND_BY_NAME))
    p_del.add_argument("record_id")
    p_del.set_defaults(func=cmd_delete)

    return p


def main(argv: list[str] | None = None) -> None:
    configure_logging()
    parser = build_parser()
    args = parser.parse_args(argv)
    init_db()  # garantisce tabelle
    try:
        args.func(args)
    except PortalError as e:
        logger.debug("Comando fallito", exc_info=True)
        print(f"Errore ({e.kind}): {e.message}", file=sys.stderr)
        raise SystemExit(1) from e


if __name__ == "__main__":
    main()
