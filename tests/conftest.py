"""
Configurazione pytest comune.

Il DB di test è un file SQLite temporaneo: DATABASE_URL va impostata prima di
importare medical_portal (l'engine nasce all'import di db.py).
"""
import os
import tempfile
from pathlib import Path

_TMP_DIR = Path(tempfile.mkdtemp(prefix="medical_portal_tests_"))
os.environ["DATABASE_URL"] = f"sqlite:///{_TMP_DIR / 'test.sqlite'}"
os.environ["SEED_ON_STARTUP"] = "0"
os.environ["JWT_SECRET"] = "test-secret"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402

from medical_portal import services  # noqa: E402
from medical_portal.api_main import app  # noqa: E402
from medical_portal.auth_security import create_access_token  # noqa: E402
from medical_portal.auth_service import create_staff_user  # noqa: E402
from medical_portal.db import Base, engine  # noqa: E402
from medical_portal.models import EntityKind  # noqa: E402


@pytest.fixture(autouse=True)
def clean_db():
    """Schema ricreato da zero per ogni test."""
    Base.metadata.drop_all(bind=engine)
    services.init_db()
    yield


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def staff_user_id():
    return create_staff_user("reception", "s3cret!")


@pytest.fixture
def staff_headers(staff_user_id):
    token = create_access_token(subject=staff_user_id)
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def doctor():
    return services.create_record(EntityKind.DOCTOR, {"name": "Dr. Sarah Johnson", "specialty": "Cardiology"})


@pytest.fixture
def hidden_doctor():
    return services.create_record(
        EntityKind.DOCTOR, {"name": "Dr. James Williams", "specialty": "Orthopedics", "available": False}
    )


@pytest.fixture
def service():
    return services.create_record(EntityKind.SERVICE, {"name": "Eye Treatment", "category": "specialty"})


@pytest.fixture
def booking_data(doctor, service):
    return {
        "patient_name": "Jane Doe",
        "patient_email": "jane@example.com",
        "doctor_id": doctor["id"],
        "service_id": service["id"],
        "appointment_date": "2025-06-01",
        "appointment_time": "10:00",
    }
