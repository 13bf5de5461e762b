from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from .auth_models import StaffUser
from .auth_security import hash_password, verify_password
from .db import db_session
from .errors import ValidationError
from .models import utcnow

logger = logging.getLogger(__name__)


def normalize_username(username: str) -> str:
    return username.strip().lower()


def _by_username(s: Session, username: str) -> StaffUser | None:
    return s.scalars(select(StaffUser).where(StaffUser.username == username)).one_or_none()


def create_staff_user(username: str, password: str) -> str:
    """Nuovo account staff (CLI add-staff o /api/auth/register). Ritorna l'id."""
    username = normalize_username(username)
    if not username or not password:
        raise ValidationError("Username e password sono obbligatori.")

    with db_session() as s:
        if _by_username(s, username) is not None:
            raise ValidationError(f"Lo username '{username}' è già in uso.")

        user = StaffUser(username=username, password_hash=hash_password(password))
        s.add(user)
        s.flush()
        logger.info("Creato account staff %s", username)
        return user.id


def authenticate(username: str, password: str) -> StaffUser | None:
    """Login dello staff; su successo registra l'ora dell'accesso."""
    username = normalize_username(username)
    with db_session() as s:
        user = _by_username(s, username)
        if user is None or not user.is_active or not verify_password(password, user.password_hash):
            logger.info("Login staff fallito per '%s'", username)
            return None
        user.last_login_at = utcnow()
        return user


def get_staff_user_by_id(user_id: str) -> StaffUser | None:
    with db_session() as s:
        return s.get(StaffUser, user_id)
