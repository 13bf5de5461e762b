from __future__ import annotations

import enum
import logging
from collections.abc import Mapping
from typing import Any

from sqlalchemy.sql.expression import ColumnElement

from .errors import AuthorizationError
from .models import MODEL_BY_KIND, EntityKind

logger = logging.getLogger(__name__)


class Actor(str, enum.Enum):
    PUBLIC = "public"
    STAFF = "staff"


class Operation(str, enum.Enum):
    CREATE = "create"
    READ = "read"
    UPDATE = "update"
    DELETE = "delete"


def actor_for(is_staff: bool) -> Actor:
    """L'autenticazione è esterna: qui arriva solo il segnale 'staff autenticato sì/no'."""
    return Actor.STAFF if is_staff else Actor.PUBLIC


ALL_OPERATIONS = frozenset(Operation)

# =========================
# Tabella delle regole
# =========================
# kind -> actor -> operazioni consentite.
# Le letture pubbliche sono poi soggette al flag di visibilità (VISIBILITY_FLAGS).
RULES: dict[EntityKind, dict[Actor, frozenset[Operation]]] = {
    EntityKind.DOCTOR: {Actor.STAFF: ALL_OPERATIONS, Actor.PUBLIC: frozenset({Operation.READ})},
    EntityKind.SERVICE: {Actor.STAFF: ALL_OPERATIONS, Actor.PUBLIC: frozenset({Operation.READ})},
    EntityKind.BLOG_POST: {Actor.STAFF: ALL_OPERATIONS, Actor.PUBLIC: frozenset({Operation.READ})},
    EntityKind.TESTIMONIAL: {Actor.STAFF: ALL_OPERATIONS, Actor.PUBLIC: frozenset({Operation.READ})},
    # prenotazione pubblica "fire-and-forget": nessuna rilettura per il pubblico
    EntityKind.APPOINTMENT: {Actor.STAFF: ALL_OPERATIONS, Actor.PUBLIC: frozenset({Operation.CREATE})},
}

VISIBILITY_FLAGS: dict[EntityKind, str] = {
    EntityKind.DOCTOR: "available",
    EntityKind.SERVICE: "active",
    EntityKind.BLOG_POST: "published",
    EntityKind.TESTIMONIAL: "active",
}


def _field(record: Any, name: str) -> Any:
    if isinstance(record, Mapping):
        return record.get(name)
    return getattr(record, name, None)


def is_visible(kind: EntityKind, record: Any) -> bool:
    """Predicato di visibilità per il pubblico. Gli appuntamenti non sono mai visibili."""
    flag = VISIBILITY_FLAGS.get(kind)
    if flag is None:
        return False
    return _field(record, flag) is True


def authorize(actor: Actor, kind: EntityKind, operation: Operation, record: Any = None) -> bool:
    """
    Valutatore puro (nessun effetto collaterale, nessuna cache).
    - record=None su una lettura pubblica: lettura di collezione, consentita ma
      da filtrare con visibility_clause()
    - record valorizzato: decisione sulla singola riga (dict o oggetto ORM)
    """
    allowed = RULES[kind].get(actor, frozenset())
    if operation not in allowed:
        return False

    if actor is Actor.PUBLIC and operation is Operation.READ and record is not None:
        return is_visible(kind, record)
    return True


def require(actor: Actor, kind: EntityKind, operation: Operation, record: Any = None) -> None:
    if not authorize(actor, kind, operation, record):
        logger.info("Accesso negato: actor=%s kind=%s op=%s", actor.value, kind.value, operation.value)
        raise AuthorizationError(f"Operazione '{operation.value}' su '{kind.value}' non consentita a '{actor.value}'.")


def visibility_clause(kind: EntityKind) -> ColumnElement[bool]:
    """Espressione SQL del predicato di visibilità (es. Doctor.available IS true)."""
    flag = VISIBILITY_FLAGS.get(kind)
    if flag is None:
        raise AuthorizationError(f"'{kind.value}' non ha una vista pubblica.")
    column = getattr(MODEL_BY_KIND[kind], flag)
    return column.is_(True)
