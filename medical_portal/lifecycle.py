from __future__ import annotations

import logging
from datetime import date
from typing import Any, Mapping

from . import services
from .errors import InvalidTransitionError, ValidationError
from .models import AppointmentStatus, EntityKind

logger = logging.getLogger(__name__)

TERMINAL_STATES = frozenset({AppointmentStatus.CANCELLED, AppointmentStatus.COMPLETED})

ALLOWED_TRANSITIONS: frozenset[tuple[AppointmentStatus, AppointmentStatus]] = frozenset(
    {
        (AppointmentStatus.PENDING, AppointmentStatus.CONFIRMED),
        (AppointmentStatus.PENDING, AppointmentStatus.CANCELLED),
        (AppointmentStatus.CONFIRMED, AppointmentStatus.CANCELLED),
        (AppointmentStatus.CONFIRMED, AppointmentStatus.COMPLETED),
    }
)


def can_transition(current: str | AppointmentStatus | None, target: str | AppointmentStatus | None) -> bool:
    """Testo non riconosciuto (su DB o in input) -> nessuna transizione possibile."""
    cur = AppointmentStatus.parse(current)
    tgt = AppointmentStatus.parse(target)
    if cur is None or tgt is None or cur in TERMINAL_STATES:
        return False
    return (cur, tgt) in ALLOWED_TRANSITIONS


# =========================
# Prenotazione (use case core)
# =========================
def book_appointment(
    patient_name: str,
    patient_email: str,
    appointment_date: date | str,
    appointment_time: str,
    doctor_id: str | None = None,
    service_id: str | None = None,
    notes: str | None = None,
    patient_phone: str | None = None,
) -> dict[str, Any]:
    """
    Use case: prenotazione dal sito pubblico.
    - campi paziente e data/slot obbligatori e non vuoti
    - medico/servizio, se indicati, devono esistere
    - stato iniziale sempre 'pending'
    Solleva ValidationError (dallo store) se i dati non sono validi.
    """
    appointment = services.create_record(
        EntityKind.APPOINTMENT,
        {
            "patient_name": patient_name,
            "patient_email": patient_email,
            "patient_phone": patient_phone,
            "doctor_id": doctor_id,
            "service_id": service_id,
            "appointment_date": appointment_date,
            "appointment_time": appointment_time,
            "notes": notes,
            "status": AppointmentStatus.PENDING.value,
        },
    )
    logger.info(
        "Prenotazione %s registrata per il %s %s",
        appointment["id"], appointment["appointment_date"], appointment["appointment_time"],
    )
    return appointment


# =========================
# Transizioni di stato
# =========================
def update_appointment(appointment_id: str, data: Mapping[str, Any]) -> dict[str, Any]:
    """
    Use case: lo staff modifica un appuntamento (campi e/o stato).
    - NotFoundError se l'id non esiste
    - ValidationError se lo stato è presente ma vuoto (null)
    - InvalidTransitionError se la coppia (attuale, nuovo) non è ammessa
    Campi e stato sono scritti nella stessa transazione; lo stato solo se è
    ancora quello letto qui (una richiesta concorrente non viene sovrascritta).
    """
    fields = dict(data)
    if "status" not in fields:
        return services.update_record(EntityKind.APPOINTMENT, appointment_id, fields)

    target = fields.pop("status")
    if target is None:
        raise ValidationError("Lo stato dell'appuntamento non può essere vuoto.")
    current = services.get_record(EntityKind.APPOINTMENT, appointment_id)["status"]
    tgt = AppointmentStatus.parse(target)

    if tgt is None or not can_transition(current, tgt):
        logger.warning("Transizione rifiutata per %s: %s -> %s", appointment_id, current, target)
        raise InvalidTransitionError(f"Transizione non ammessa: {current} -> {getattr(target, 'value', target)}")

    fields["status"] = tgt.value
    try:
        updated = services.update_record(EntityKind.APPOINTMENT, appointment_id, fields, expected_status=current)
    except InvalidTransitionError:
        logger.warning("Transizione concorrente su %s (%s -> %s)", appointment_id, current, tgt.value)
        raise

    logger.info("Appuntamento %s: %s -> %s", appointment_id, current, tgt.value)
    return updated


def transition_appointment(appointment_id: str, target: str | AppointmentStatus) -> dict[str, Any]:
    return update_appointment(appointment_id, {"status": target})
