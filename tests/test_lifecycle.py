from itertools import product

import pytest

from medical_portal import lifecycle, services
from medical_portal.errors import InvalidTransitionError, NotFoundError, ValidationError
from medical_portal.models import AppointmentStatus, EntityKind

LEGAL = {
    ("pending", "confirmed"),
    ("pending", "cancelled"),
    ("confirmed", "cancelled"),
    ("confirmed", "completed"),
}


def _book(**overrides):
    data = {
        "patient_name": "Jane Doe",
        "patient_email": "jane@example.com",
        "appointment_date": "2025-06-01",
        "appointment_time": "10:00",
    }
    data.update(overrides)
    return lifecycle.book_appointment(**data)


def _force_status(appointment_id, status):
    # scrive direttamente lo stato, bypassando la macchina a stati
    from medical_portal.db import db_session
    from medical_portal.models import Appointment

    with db_session() as s:
        s.get(Appointment, appointment_id).status = status


@pytest.mark.parametrize("current,target", list(product([s.value for s in AppointmentStatus], repeat=2)))
def test_can_transition_matches_table(current, target):
    assert lifecycle.can_transition(current, target) == ((current, target) in LEGAL)


def test_terminal_states_have_no_exit():
    for state in lifecycle.TERMINAL_STATES:
        assert not any(lifecycle.can_transition(state, t) for t in AppointmentStatus)


def test_unknown_values_never_transition():
    assert not lifecycle.can_transition("archived", "confirmed")
    assert not lifecycle.can_transition("pending", "archived")
    assert not lifecycle.can_transition(None, "confirmed")


def test_booking_starts_pending(doctor, service):
    app = _book(doctor_id=doctor["id"], service_id=service["id"], notes="prima visita")
    assert app["status"] == "pending"
    assert app["doctor_id"] == doctor["id"]
    assert app["service_id"] == service["id"]
    assert app["created_at"] is not None


def test_booking_strips_text_fields():
    app = _book(patient_name="  Jane Doe  ", appointment_time=" 10:00 ")
    assert app["patient_name"] == "Jane Doe"
    assert app["appointment_time"] == "10:00"


@pytest.mark.parametrize("field", ["patient_name", "patient_email", "appointment_time"])
def test_booking_rejects_empty_required_fields(field):
    with pytest.raises(ValidationError):
        _book(**{field: "   "})


def test_booking_rejects_missing_date():
    with pytest.raises(ValidationError):
        _book(appointment_date=None)


def test_booking_rejects_malformed_date():
    with pytest.raises(ValidationError):
        _book(appointment_date="01/06/2025")


def test_booking_rejects_unknown_doctor_or_service():
    with pytest.raises(ValidationError):
        _book(doctor_id="does-not-exist")
    with pytest.raises(ValidationError):
        _book(service_id="does-not-exist")
    assert services.list_records(EntityKind.APPOINTMENT) == []


def test_confirm_then_complete():
    app = _book()
    confirmed = lifecycle.transition_appointment(app["id"], "confirmed")
    assert confirmed["status"] == "confirmed"
    completed = lifecycle.transition_appointment(app["id"], AppointmentStatus.COMPLETED)
    assert completed["status"] == "completed"


def test_confirmed_back_to_pending_is_rejected():
    app = _book()
    lifecycle.transition_appointment(app["id"], "confirmed")
    with pytest.raises(InvalidTransitionError):
        lifecycle.transition_appointment(app["id"], "pending")
    assert services.get_record(EntityKind.APPOINTMENT, app["id"])["status"] == "confirmed"


def test_pending_cannot_complete():
    app = _book()
    with pytest.raises(InvalidTransitionError):
        lifecycle.transition_appointment(app["id"], "completed")


def test_cancelled_is_terminal():
    app = _book()
    lifecycle.transition_appointment(app["id"], "cancelled")
    for target in ("pending", "confirmed", "completed", "cancelled"):
        with pytest.raises(InvalidTransitionError):
            lifecycle.transition_appointment(app["id"], target)


def test_unknown_target_is_invalid_transition():
    app = _book()
    with pytest.raises(InvalidTransitionError):
        lifecycle.transition_appointment(app["id"], "archived")


def test_unrecognised_stored_status_blocks_transitions():
    app = _book()
    _force_status(app["id"], "on_hold")
    with pytest.raises(InvalidTransitionError):
        lifecycle.transition_appointment(app["id"], "confirmed")


def test_transition_on_missing_id():
    with pytest.raises(NotFoundError):
        lifecycle.transition_appointment("missing", "confirmed")


def test_transition_advances_updated_at():
    app = _book()
    confirmed = lifecycle.transition_appointment(app["id"], "confirmed")
    assert confirmed["updated_at"] > app["updated_at"]


def test_stale_status_is_not_overwritten(monkeypatch):
    """Una transizione concorrente arrivata prima vince: la seconda fallisce senza scrivere."""
    app = _book()
    real_get = services.get_record

    def get_then_race(kind, record_id, where=()):
        row = real_get(kind, record_id, where)
        # dopo la lettura dello stato, un'altra richiesta annulla l'appuntamento
        _force_status(record_id, "cancelled")
        return row

    monkeypatch.setattr(services, "get_record", get_then_race)
    with pytest.raises(InvalidTransitionError):
        lifecycle.update_appointment(app["id"], {"status": "confirmed", "notes": "ok"})
    monkeypatch.undo()

    row = services.get_record(EntityKind.APPOINTMENT, app["id"])
    assert row["status"] == "cancelled"
    assert row["notes"] is None


def test_update_fields_and_status_together(doctor):
    app = _book()
    updated = lifecycle.update_appointment(app["id"], {"status": "confirmed", "doctor_id": doctor["id"]})
    assert updated["status"] == "confirmed"
    assert updated["doctor_id"] == doctor["id"]


def test_invalid_field_update_leaves_status_untouched():
    app = _book()
    with pytest.raises(ValidationError):
        lifecycle.update_appointment(app["id"], {"status": "confirmed", "doctor_id": "nope"})
    assert services.get_record(EntityKind.APPOINTMENT, app["id"])["status"] == "pending"


def test_null_status_is_a_validation_error():
    app = _book()
    with pytest.raises(ValidationError):
        lifecycle.update_appointment(app["id"], {"status": None, "notes": "x"})
    row = services.get_record(EntityKind.APPOINTMENT, app["id"])
    assert row["status"] == "pending"
    assert row["notes"] is None
