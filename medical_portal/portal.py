"""
Punto di ingresso unico per API e CLI.

Ogni chiamata passa prima dal controllo accessi; poi:
- letture del pubblico -> public.py (predicato di visibilità sempre applicato)
- scritture sugli appuntamenti -> lifecycle.py
- tutto il resto -> services.py
"""
from __future__ import annotations

from typing import Any, Mapping

from . import lifecycle, public, services
from .access import Actor, Operation, require
from .errors import ValidationError
from .models import AppointmentStatus, EntityKind

BOOKING_FIELDS = frozenset(
    {
        "patient_name",
        "patient_email",
        "patient_phone",
        "doctor_id",
        "service_id",
        "appointment_date",
        "appointment_time",
        "notes",
    }
)


def list_entities(actor: Actor, kind: EntityKind, filters: Mapping[str, Any] | None = None) -> list[dict[str, Any]]:
    require(actor, kind, Operation.READ)
    if actor is Actor.PUBLIC:
        return public.list_visible(kind, filters)
    return services.list_records(kind, filters)


def get_entity(actor: Actor, kind: EntityKind, record_id: str) -> dict[str, Any]:
    require(actor, kind, Operation.READ)
    if actor is Actor.PUBLIC:
        return public.get_visible(kind, record_id)
    return services.get_record(kind, record_id)


def book_appointment(actor: Actor, data: Mapping[str, Any]) -> dict[str, Any]:
    require(actor, EntityKind.APPOINTMENT, Operation.CREATE)
    unknown = sorted(set(data) - BOOKING_FIELDS)
    if unknown:
        raise ValidationError(f"Campi non ammessi nella prenotazione: {', '.join(unknown)}")
    fields = {k: data.get(k) for k in BOOKING_FIELDS}
    return lifecycle.book_appointment(**fields)


def create_entity(actor: Actor, kind: EntityKind, data: Mapping[str, Any]) -> dict[str, Any]:
    if kind is EntityKind.APPOINTMENT:
        return book_appointment(actor, data)
    require(actor, kind, Operation.CREATE)
    return services.create_record(kind, data)


def update_entity(actor: Actor, kind: EntityKind, record_id: str, data: Mapping[str, Any]) -> dict[str, Any]:
    require(actor, kind, Operation.UPDATE)
    if kind is EntityKind.APPOINTMENT:
        return lifecycle.update_appointment(record_id, data)
    return services.update_record(kind, record_id, data)


def set_appointment_status(actor: Actor, appointment_id: str, status: str | AppointmentStatus) -> dict[str, Any]:
    require(actor, EntityKind.APPOINTMENT, Operation.UPDATE)
    return lifecycle.transition_appointment(appointment_id, status)


def delete_entity(actor: Actor, kind: EntityKind, record_id: str) -> None:
    require(actor, kind, Operation.DELETE)
    services.delete_record(kind, record_id)


def view_blog_post(actor: Actor, post_id: str) -> dict[str, Any]:
    """Lettura di un articolo con incremento del contatore visualizzazioni."""
    require(actor, EntityKind.BLOG_POST, Operation.READ)
    return public.view_blog_post(post_id)
