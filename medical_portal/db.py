from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker

from .settings import DATABASE_URL, DB_ECHO

# FastAPI esegue gli endpoint sync nel threadpool: con SQLite la connessione
# deve poter passare da un thread all'altro
_connect_args = {"check_same_thread": False} if DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(DATABASE_URL, echo=DB_ECHO, connect_args=_connect_args)

# expire_on_commit=False: i record escono dalla sessione già letti (to_dict, StaffUser in api_main)
SessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


class Base(DeclarativeBase):
    """Metadata comune a contenuti, appuntamenti e account staff."""


@contextmanager
def db_session() -> Iterator[Session]:
    """
    Una transazione per operazione del portale: o vanno a buon fine tutte le
    scritture (campi + stato, cancellazione + azzeramento riferimenti) o nessuna.
    """
    session = SessionLocal()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()
