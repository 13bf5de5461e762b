from __future__ import annotations

from typing import Any, Mapping

from . import services
from .access import VISIBILITY_FLAGS, visibility_clause
from .errors import AuthorizationError
from .models import EntityKind


def _public_kind(kind: EntityKind) -> None:
    if kind not in VISIBILITY_FLAGS:
        raise AuthorizationError(f"'{kind.value}' non è consultabile dal pubblico.")


def list_visible(kind: EntityKind, filters: Mapping[str, Any] | None = None) -> list[dict[str, Any]]:
    """
    Letture per visitatori anonimi: il predicato di visibilità è sempre in AND
    con i filtri richiesti, quindi un filtro sul flag può solo restringere.
    """
    _public_kind(kind)
    return services.list_records(kind, filters, where=(visibility_clause(kind),))


def get_visible(kind: EntityKind, record_id: str) -> dict[str, Any]:
    """Una riga nascosta risulta NotFoundError, come una inesistente."""
    _public_kind(kind)
    return services.get_record(kind, record_id, where=(visibility_clause(kind),))


def view_blog_post(post_id: str) -> dict[str, Any]:
    return services.record_blog_view(post_id)
