from datetime import date, datetime, timezone

import pytest

from medical_portal import lifecycle, services
from medical_portal.db import db_session
from medical_portal.errors import InvalidTransitionError, NotFoundError, ValidationError
from medical_portal.models import Appointment, EntityKind


def _appointment(**overrides):
    data = {
        "patient_name": "Jane Doe",
        "patient_email": "jane@example.com",
        "appointment_date": "2025-06-01",
        "appointment_time": "10:00",
    }
    data.update(overrides)
    return lifecycle.book_appointment(**data)


def test_create_assigns_id_timestamps_and_defaults():
    svc = services.create_record(EntityKind.SERVICE, {"name": "Dental Care"})
    assert len(svc["id"]) == 36
    assert svc["category"] == "general"
    assert svc["active"] is True
    assert svc["created_at"] == svc["updated_at"]


def test_blog_post_defaults():
    post = services.create_record(EntityKind.BLOG_POST, {"title": "Heart Health"})
    assert post["author"] == "Admin"
    assert post["published"] is True
    assert post["views"] == 0


def test_create_rejects_unknown_and_system_fields():
    with pytest.raises(ValidationError):
        services.create_record(EntityKind.SERVICE, {"name": "X", "colour": "red"})
    with pytest.raises(ValidationError):
        services.create_record(EntityKind.SERVICE, {"name": "X", "id": "fixed"})


def test_create_rejects_missing_required():
    with pytest.raises(ValidationError):
        services.create_record(EntityKind.DOCTOR, {"name": "Dr. No"})


def test_negative_experience_rejected():
    with pytest.raises(ValidationError):
        services.create_record(EntityKind.DOCTOR, {"name": "Dr. A", "specialty": "B", "years_experience": -1})


@pytest.mark.parametrize("rating", [0, 6, -3])
def test_rating_out_of_range_rejected(rating):
    with pytest.raises(ValidationError):
        services.create_record(EntityKind.TESTIMONIAL, {"patient_name": "A", "content": "B", "rating": rating})


def test_update_is_partial_and_advances_updated_at(doctor):
    updated = services.update_record(EntityKind.DOCTOR, doctor["id"], {"available": False})
    assert updated["available"] is False
    assert updated["name"] == doctor["name"]
    assert updated["updated_at"] > doctor["updated_at"]

    again = services.update_record(EntityKind.DOCTOR, doctor["id"], {"bio": "Cardiologa"})
    assert again["updated_at"] > updated["updated_at"]
    assert again["available"] is False


def test_update_missing_record():
    with pytest.raises(NotFoundError):
        services.update_record(EntityKind.SERVICE, "missing", {"name": "X"})


def test_update_cannot_blank_required_or_null_non_nullable(doctor):
    with pytest.raises(ValidationError):
        services.update_record(EntityKind.DOCTOR, doctor["id"], {"name": ""})
    with pytest.raises(ValidationError):
        services.update_record(EntityKind.DOCTOR, doctor["id"], {"bio": None})


def test_views_never_decrease():
    post = services.create_record(EntityKind.BLOG_POST, {"title": "T", "views": 10})
    with pytest.raises(ValidationError):
        services.update_record(EntityKind.BLOG_POST, post["id"], {"views": 3})
    assert services.update_record(EntityKind.BLOG_POST, post["id"], {"views": 12})["views"] == 12


def test_appointment_status_needs_transition():
    app = _appointment()
    with pytest.raises(ValidationError):
        services.update_record(EntityKind.APPOINTMENT, app["id"], {"status": "confirmed"})


def test_appointment_update_checks_references():
    app = _appointment()
    with pytest.raises(ValidationError):
        services.update_record(EntityKind.APPOINTMENT, app["id"], {"service_id": "missing"})


def test_guarded_status_write_fails_on_mismatch():
    app = _appointment()
    with pytest.raises(InvalidTransitionError):
        services.update_record(EntityKind.APPOINTMENT, app["id"], {"status": "completed"}, expected_status="confirmed")
    assert services.get_record(EntityKind.APPOINTMENT, app["id"])["status"] == "pending"


def test_list_filters_by_foreign_key_status_and_date(doctor, service):
    a1 = _appointment(doctor_id=doctor["id"])
    a2 = _appointment(service_id=service["id"], appointment_date="2025-06-02")
    lifecycle.transition_appointment(a2["id"], "confirmed")

    by_doctor = services.list_records(EntityKind.APPOINTMENT, {"doctor_id": doctor["id"]})
    assert [r["id"] for r in by_doctor] == [a1["id"]]

    by_status = services.list_records(EntityKind.APPOINTMENT, {"status": "confirmed"})
    assert [r["id"] for r in by_status] == [a2["id"]]

    by_date = services.list_records(EntityKind.APPOINTMENT, {"appointment_date": "2025-06-01"})
    assert [r["id"] for r in by_date] == [a1["id"]]
    assert by_date[0]["appointment_date"] == date(2025, 6, 1)


def test_list_coerces_boolean_filters(doctor, hidden_doctor):
    rows = services.list_records(EntityKind.DOCTOR, {"available": "false"})
    assert [r["id"] for r in rows] == [hidden_doctor["id"]]


def test_list_rejects_unknown_filter():
    with pytest.raises(ValidationError):
        services.list_records(EntityKind.DOCTOR, {"bio": "x"})


def test_list_orders_appointments_by_date_and_time():
    late = _appointment(appointment_date="2025-06-02", appointment_time="09:00")
    early = _appointment(appointment_date="2025-06-01", appointment_time="11:00")
    earliest = _appointment(appointment_date="2025-06-01", appointment_time="10:00")
    rows = services.list_records(EntityKind.APPOINTMENT)
    assert [r["id"] for r in rows] == [earliest["id"], early["id"], late["id"]]


def test_deleting_doctor_clears_reference_without_deleting_appointment(doctor, service):
    app = _appointment(doctor_id=doctor["id"], service_id=service["id"])

    services.delete_record(EntityKind.DOCTOR, doctor["id"])

    row = services.get_record(EntityKind.APPOINTMENT, app["id"])
    assert row["doctor_id"] is None
    assert row["service_id"] == service["id"]
    assert row["updated_at"] > app["updated_at"]
    with pytest.raises(NotFoundError):
        services.get_record(EntityKind.DOCTOR, doctor["id"])


def test_clearing_reference_advances_updated_at_past_stored_value(doctor):
    app = _appointment(doctor_id=doctor["id"])
    # orologio indietro rispetto al valore salvato: updated_at deve comunque avanzare
    future = datetime(2100, 1, 1, tzinfo=timezone.utc)
    with db_session() as s:
        s.get(Appointment, app["id"]).updated_at = future

    services.delete_record(EntityKind.DOCTOR, doctor["id"])

    row = services.get_record(EntityKind.APPOINTMENT, app["id"])
    assert row["doctor_id"] is None
    assert row["updated_at"] > future


def test_deleting_service_clears_reference(service):
    app = _appointment(service_id=service["id"])
    services.delete_record(EntityKind.SERVICE, service["id"])
    assert services.get_record(EntityKind.APPOINTMENT, app["id"])["service_id"] is None


def test_delete_missing_record():
    with pytest.raises(NotFoundError):
        services.delete_record(EntityKind.TESTIMONIAL, "missing")


def test_record_blog_view_increments_published_only():
    post = services.create_record(EntityKind.BLOG_POST, {"title": "T"})
    assert services.record_blog_view(post["id"])["views"] == 1
    assert services.record_blog_view(post["id"])["views"] == 2

    draft = services.create_record(EntityKind.BLOG_POST, {"title": "Draft", "published": False})
    with pytest.raises(NotFoundError):
        services.record_blog_view(draft["id"])
    assert services.get_record(EntityKind.BLOG_POST, draft["id"])["views"] == 0
