from __future__ import annotations

import logging
from datetime import date, datetime, timedelta, timezone
from typing import Any, Iterable, Mapping

from sqlalchemy import Boolean, Date, Integer, select, update
from sqlalchemy.orm import Session

from . import auth_models  # noqa: F401  (registra staff_users nel metadata)
from .db import Base, db_session, engine
from .errors import InvalidTransitionError, NotFoundError, ValidationError
from .models import (
    MODEL_BY_KIND,
    Appointment,
    BlogPost,
    Doctor,
    EntityKind,
    Service,
    Testimonial,
    utcnow,
)

logger = logging.getLogger(__name__)


# =========================
# Bootstrap DB
# =========================
def init_db() -> None:
    """Crea le tabelle se non esistono."""
    Base.metadata.create_all(bind=engine)


# =========================
# Metadati per kind
# =========================
SYSTEM_FIELDS = frozenset({"id", "created_at", "updated_at"})

REQUIRED_FIELDS: dict[EntityKind, tuple[str, ...]] = {
    EntityKind.DOCTOR: ("name", "specialty"),
    EntityKind.SERVICE: ("name",),
    EntityKind.APPOINTMENT: ("patient_name", "patient_email", "appointment_date", "appointment_time"),
    EntityKind.BLOG_POST: ("title",),
    EntityKind.TESTIMONIAL: ("patient_name", "content"),
}

FILTERABLE_FIELDS: dict[EntityKind, frozenset[str]] = {
    EntityKind.DOCTOR: frozenset({"specialty", "available"}),
    EntityKind.SERVICE: frozenset({"category", "active"}),
    EntityKind.APPOINTMENT: frozenset({"doctor_id", "service_id", "status", "appointment_date", "patient_email"}),
    EntityKind.BLOG_POST: frozenset({"category", "author", "published"}),
    EntityKind.TESTIMONIAL: frozenset({"rating", "active"}),
}

ORDERING = {
    EntityKind.DOCTOR: (Doctor.name.asc(),),
    EntityKind.SERVICE: (Service.name.asc(),),
    EntityKind.APPOINTMENT: (Appointment.appointment_date.asc(), Appointment.appointment_time.asc()),
    EntityKind.BLOG_POST: (BlogPost.created_at.desc(),),
    EntityKind.TESTIMONIAL: (Testimonial.created_at.desc(),),
}

# riferimenti "set null on delete": kind cancellato -> colonna di Appointment da azzerare
DEPENDENT_REFERENCES = {
    EntityKind.DOCTOR: Appointment.doctor_id,
    EntityKind.SERVICE: Appointment.service_id,
}

RATING_MIN, RATING_MAX = 1, 5

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


def _columns(kind: EntityKind) -> dict[str, Any]:
    return {c.key: c for c in MODEL_BY_KIND[kind].__table__.columns}


def writable_fields(kind: EntityKind) -> frozenset[str]:
    return frozenset(_columns(kind)) - SYSTEM_FIELDS


# =========================
# Helper
# =========================
def _as_utc(value: datetime) -> datetime:
    # SQLite restituisce datetime naive anche con DateTime(timezone=True)
    return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)


def next_timestamp(previous: datetime | None) -> datetime:
    """Nuovo updated_at, sempre strettamente successivo al precedente."""
    now = utcnow()
    if previous is None:
        return now
    previous = _as_utc(previous)
    return now if now > previous else previous + timedelta(microseconds=1)


def to_dict(obj: Base) -> dict[str, Any]:
    """Versione 'flat' del record: niente lazy-load fuori sessione."""
    out: dict[str, Any] = {}
    for c in obj.__table__.columns:
        value = getattr(obj, c.key)
        if isinstance(value, datetime):
            value = _as_utc(value)
        out[c.key] = value
    return out


def _coerce(kind: EntityKind, field: str, value: Any) -> Any:
    """Converte valori testuali (query string, CLI) nel tipo della colonna."""
    column = _columns(kind)[field]
    if value is None:
        return None

    if isinstance(column.type, Boolean):
        if isinstance(value, bool):
            return value
        text = str(value).strip().lower()
        if text in _TRUE:
            return True
        if text in _FALSE:
            return False
        raise ValidationError(f"'{field}' deve essere booleano.")

    if isinstance(column.type, Integer):
        if isinstance(value, bool):
            raise ValidationError(f"'{field}' deve essere un intero.")
        try:
            return int(value)
        except (TypeError, ValueError):
            raise ValidationError(f"'{field}' deve essere un intero.") from None

    if isinstance(column.type, Date):
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, date):
            return value
        try:
            return date.fromisoformat(str(value).strip())
        except ValueError:
            raise ValidationError(f"'{field}' deve essere una data ISO (YYYY-MM-DD).") from None

    if isinstance(value, str):
        return value.strip()
    return value


def _clean(kind: EntityKind, data: Mapping[str, Any], partial: bool) -> dict[str, Any]:
    """
    Validazione comune a create/update:
    - campi sconosciuti o di sistema -> errore
    - obbligatori presenti e non vuoti (su update solo se passati)
    - null solo dove la colonna è nullable
    - range: anni di esperienza, rating, visualizzazioni
    """
    allowed = writable_fields(kind)
    unknown = sorted(set(data) - allowed)
    if unknown:
        raise ValidationError(f"Campi non ammessi per '{kind.value}': {', '.join(unknown)}")

    columns = _columns(kind)
    clean = {k: _coerce(kind, k, v) for k, v in data.items()}

    # riferimenti vuoti dai form -> nessun riferimento
    for ref in ("doctor_id", "service_id"):
        if clean.get(ref) == "":
            clean[ref] = None

    for name in REQUIRED_FIELDS[kind]:
        if name not in clean:
            if partial:
                continue
            raise ValidationError(f"Campo obbligatorio mancante: '{name}'.")
        if clean[name] is None or clean[name] == "":
            raise ValidationError(f"Campo obbligatorio vuoto: '{name}'.")

    for name, value in clean.items():
        if value is None and not columns[name].nullable:
            raise ValidationError(f"'{name}' non può essere nullo.")

    if clean.get("years_experience") is not None and clean["years_experience"] < 0:
        raise ValidationError("'years_experience' non può essere negativo.")
    if clean.get("views") is not None and clean["views"] < 0:
        raise ValidationError("'views' non può essere negativo.")
    if kind is EntityKind.TESTIMONIAL and clean.get("rating") is not None:
        if not RATING_MIN <= clean["rating"] <= RATING_MAX:
            raise ValidationError(f"'rating' deve essere compreso tra {RATING_MIN} e {RATING_MAX}.")

    return clean


def _check_references(s: Session, data: Mapping[str, Any]) -> None:
    """doctor_id / service_id, se valorizzati, devono esistere al momento della scrittura."""
    if data.get("doctor_id") is not None and s.get(Doctor, data["doctor_id"]) is None:
        raise ValidationError(f"Medico non trovato: {data['doctor_id']}")
    if data.get("service_id") is not None and s.get(Service, data["service_id"]) is None:
        raise ValidationError(f"Servizio non trovato: {data['service_id']}")


def _load(s: Session, kind: EntityKind, record_id: str) -> Base:
    obj = s.get(MODEL_BY_KIND[kind], record_id)
    if obj is None:
        raise NotFoundError(f"{kind.value} non trovato: {record_id}")
    return obj


# =========================
# CRUD
# =========================
def create_record(kind: EntityKind, data: Mapping[str, Any]) -> dict[str, Any]:
    clean = _clean(kind, data, partial=False)

    with db_session() as s:
        if kind is EntityKind.APPOINTMENT:
            _check_references(s, clean)

        now = utcnow()
        obj = MODEL_BY_KIND[kind](**clean, created_at=now, updated_at=now)
        s.add(obj)
        s.flush()
        logger.info("Creato %s %s", kind.value, obj.id)
        return to_dict(obj)


def get_record(kind: EntityKind, record_id: str, where: Iterable[Any] = ()) -> dict[str, Any]:
    """
    Lettura per id. `where` aggiunge condizioni (es. visibilità): se la riga
    non le soddisfa è come se non esistesse.
    """
    model = MODEL_BY_KIND[kind]
    with db_session() as s:
        q = select(model).where(model.id == record_id, *where)
        obj = s.scalars(q).first()
        if obj is None:
            raise NotFoundError(f"{kind.value} non trovato: {record_id}")
        return to_dict(obj)


def list_records(
    kind: EntityKind,
    filters: Mapping[str, Any] | None = None,
    where: Iterable[Any] = (),
) -> list[dict[str, Any]]:
    """Filtri per uguaglianza sui campi ammessi (FILTERABLE_FIELDS), in AND con `where`."""
    model = MODEL_BY_KIND[kind]
    filters = dict(filters or {})

    unknown = sorted(set(filters) - FILTERABLE_FIELDS[kind])
    if unknown:
        raise ValidationError(f"Filtri non ammessi per '{kind.value}': {', '.join(unknown)}")

    conditions = list(where)
    for name, value in filters.items():
        value = _coerce(kind, name, value)
        column = getattr(model, name)
        conditions.append(column.is_(None) if value is None else column == value)

    with db_session() as s:
        q = select(model).where(*conditions).order_by(*ORDERING[kind])
        return [to_dict(obj) for obj in s.scalars(q)]


def update_record(
    kind: EntityKind,
    record_id: str,
    data: Mapping[str, Any],
    expected_status: str | None = None,
) -> dict[str, Any]:
    """
    Aggiornamento parziale: tocca solo i campi passati (last-writer-wins per campo).

    Lo stato degli appuntamenti si scrive solo insieme a `expected_status`
    (vedi lifecycle.py): UPDATE ... WHERE status = expected_status nella stessa
    transazione dei campi. Se lo stato è cambiato nel frattempo non si scrive nulla.
    """
    if kind is EntityKind.APPOINTMENT and "status" in data and expected_status is None:
        raise ValidationError("Lo stato dell'appuntamento si cambia solo tramite transizione.")

    clean = _clean(kind, data, partial=True)
    new_status = clean.pop("status", None) if kind is EntityKind.APPOINTMENT else None

    with db_session() as s:
        obj = _load(s, kind, record_id)

        if kind is EntityKind.APPOINTMENT:
            _check_references(s, clean)
        if kind is EntityKind.BLOG_POST and clean.get("views") is not None and clean["views"] < obj.views:
            raise ValidationError("Il contatore 'views' non può diminuire.")

        if new_status is not None:
            res = s.execute(
                update(Appointment)
                .where(Appointment.id == record_id, Appointment.status == expected_status)
                .values(status=new_status)
                .execution_options(synchronize_session=False)
            )
            if res.rowcount != 1:
                raise InvalidTransitionError(
                    f"Lo stato è cambiato nel frattempo: transizione {expected_status} -> {new_status} annullata."
                )
            obj.status = new_status

        for name, value in clean.items():
            setattr(obj, name, value)
        obj.updated_at = next_timestamp(obj.updated_at)
        s.flush()

        changed = sorted(clean) + (["status"] if new_status is not None else [])
        logger.info("Aggiornato %s %s (%s)", kind.value, record_id, ", ".join(changed) or "-")
        return to_dict(obj)


def delete_record(kind: EntityKind, record_id: str) -> None:
    """
    Cancellazione. Per medici e servizi i riferimenti negli appuntamenti
    vengono azzerati nella stessa transazione (set null, niente cascade).
    """
    with db_session() as s:
        obj = _load(s, kind, record_id)

        ref_column = DEPENDENT_REFERENCES.get(kind)
        if ref_column is not None:
            dependents = list(s.scalars(select(Appointment).where(ref_column == record_id)))
            for app in dependents:
                setattr(app, ref_column.key, None)
                app.updated_at = next_timestamp(app.updated_at)
            if dependents:
                logger.info("Azzerati %d riferimenti a %s %s", len(dependents), kind.value, record_id)

        s.delete(obj)
        logger.info("Eliminato %s %s", kind.value, record_id)


# =========================
# Blog
# =========================
def record_blog_view(post_id: str) -> dict[str, Any]:
    """Incremento atomico del contatore, solo su articoli pubblicati."""
    with db_session() as s:
        post = _load(s, EntityKind.BLOG_POST, post_id)
        res = s.execute(
            update(BlogPost)
            .where(BlogPost.id == post_id, BlogPost.published.is_(True))
            .values(views=BlogPost.views + 1, updated_at=next_timestamp(post.updated_at))
            .execution_options(synchronize_session=False)
        )
        if res.rowcount != 1:
            raise NotFoundError(f"blog_post non trovato: {post_id}")
        obj = s.get(BlogPost, post_id, populate_existing=True)
        return to_dict(obj)
