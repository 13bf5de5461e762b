from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Any

from jose import JWTError, jwt
from passlib.context import CryptContext

from .settings import ACCESS_TOKEN_EXPIRE_MINUTES, JWT_ALG, JWT_SECRET

logger = logging.getLogger(__name__)

# claim "role" dei token emessi dal portale: oggi esiste solo lo staff
STAFF_ROLE = "staff"

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return pwd_context.verify(password, password_hash)


def create_access_token(subject: str, username: str | None = None, expires_minutes: int | None = None) -> str:
    """Token Bearer di un account staff: sub = id dell'account, role = staff."""
    issued = datetime.now(timezone.utc)
    ttl = ACCESS_TOKEN_EXPIRE_MINUTES if expires_minutes is None else expires_minutes

    claims: dict[str, Any] = {
        "sub": subject,
        "role": STAFF_ROLE,
        "iat": int(issued.timestamp()),
        "exp": int((issued + timedelta(minutes=ttl)).timestamp()),
    }
    if username:
        claims["username"] = username
    return jwt.encode(claims, JWT_SECRET, algorithm=JWT_ALG)


def staff_id_from_token(token: str) -> str | None:
    """
    Id dell'account staff portato dal token, oppure None se il token è
    scaduto, firmato con un'altra chiave o non è un token staff.
    """
    try:
        claims = jwt.decode(token, JWT_SECRET, algorithms=[JWT_ALG])
    except JWTError as e:
        logger.debug("Token rifiutato: %s", e)
        return None
    if claims.get("role") != STAFF_ROLE:
        logger.debug("Token senza ruolo staff (sub=%s)", claims.get("sub"))
        return None
    return claims.get("sub")
