from __future__ import annotations

import logging
import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


# DB SQLite su file nella root del progetto, salvo DATABASE_URL esplicita
DEFAULT_DB_PATH = Path(__file__).resolve().parents[1] / "medical_portal.sqlite"
DATABASE_URL = os.getenv("DATABASE_URL", f"sqlite:///{DEFAULT_DB_PATH}")
DB_ECHO = _env_bool("DB_ECHO", False)

# In produzione: mettila in variabile d'ambiente
JWT_SECRET = os.getenv("JWT_SECRET", "CHANGE_ME_DEV_SECRET")
JWT_ALG = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("JWT_EXPIRE_MINUTES", "60"))

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
SEED_ON_STARTUP = _env_bool("SEED_ON_STARTUP", True)

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: str | None = None) -> None:
    """Configura il root logger (idempotente: basicConfig non sovrascrive handler esistenti)."""
    logging.basicConfig(level=(level or LOG_LEVEL), format=LOG_FORMAT)
