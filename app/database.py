# app/database.py
"""
Engine, sesiuni și metadata pentru resellerpro-api.

Producție: PostgreSQL, tabelele în schema DB_SCHEMA (implicit `app`).
Dev/teste: SQLite (fișier sau `sqlite://` în memorie), fără scheme.
"""
from __future__ import annotations

import os
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional

from dotenv import load_dotenv
from sqlalchemy import MetaData, create_engine
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import NullPool, StaticPool

# .env local; în container variabilele vin din environment
load_dotenv()

_TRUTHY = {"1", "true", "yes", "on"}


def _flag(key: str, default: bool = False) -> bool:
    raw = os.getenv(key)
    return default if raw is None else raw.strip().lower() in _TRUTHY


def _int(key: str, default: int) -> int:
    raw = (os.getenv(key) or "").strip()
    return int(raw) if raw.isdigit() else default


DATABASE_URL = (os.getenv("DATABASE_URL") or "sqlite:///./resellerpro.db").strip()
_url = make_url(DATABASE_URL)
IS_SQLITE = _url.get_backend_name() == "sqlite"

# SQLite nu are scheme
DEFAULT_SCHEMA: Optional[str] = None if IS_SQLITE else ((os.getenv("DB_SCHEMA") or "app").strip() or None)

# Numele constrângerilor trebuie să coincidă cu cele din migrations/versions
NAMING_CONVENTION = {
    "ix": "ix_%(table_name)s_%(column_0_label)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

metadata = MetaData(schema=DEFAULT_SCHEMA, naming_convention=NAMING_CONVENTION)
Base = declarative_base(metadata=metadata)


def _sqlite_kwargs() -> Dict[str, Any]:
    # refresh-ul periodic și background task-urile folosesc alte thread-uri
    kwargs: Dict[str, Any] = {"connect_args": {"check_same_thread": False}}
    in_memory = _url.database in (None, "", ":memory:")
    # în memorie: o singură conexiune partajată, altfel fiecare ar avea DB-ul ei
    kwargs["poolclass"] = StaticPool if in_memory else NullPool
    return kwargs


def _postgres_kwargs() -> Dict[str, Any]:
    kwargs: Dict[str, Any] = {}
    if _flag("DB_USE_NULLPOOL"):
        # pgbouncer în transaction pooling
        kwargs["poolclass"] = NullPool
    else:
        kwargs.update(
            pool_size=_int("DB_POOL_SIZE", 5),
            max_overflow=_int("DB_MAX_OVERFLOW", 10),
            pool_recycle=_int("DB_POOL_RECYCLE", 1800),
            pool_timeout=_int("DB_POOL_TIMEOUT", 30),
            pool_use_lifo=True,
        )

    options = []
    if DEFAULT_SCHEMA:
        options.append(f"-c search_path={DEFAULT_SCHEMA},public")
    timeout_ms = (os.getenv("DB_STATEMENT_TIMEOUT_MS") or "").strip()
    if timeout_ms.isdigit():
        options.append(f"-c statement_timeout={timeout_ms}")

    connect_args: Dict[str, Any] = {
        "application_name": (os.getenv("DB_APPLICATION_NAME") or "resellerpro-api").strip(),
    }
    if options:
        connect_args["options"] = " ".join(options)
    kwargs["connect_args"] = connect_args
    return kwargs


engine: Engine = create_engine(
    DATABASE_URL,
    echo=_flag("DB_ECHO"),
    pool_pre_ping=True,
    **(_sqlite_kwargs() if IS_SQLITE else _postgres_kwargs()),
)

# expire_on_commit=False: rezultatele rămân citibile după commit (răspunsuri API, rapoarte de sync)
SessionLocal = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)


def get_db() -> Iterator[Session]:
    """Dependency FastAPI: o sesiune per request; rollback dacă handler-ul aruncă."""
    db = SessionLocal()
    try:
        yield db
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


@contextmanager
def session_scope() -> Iterator[Session]:
    """
    Sesiune pentru lucru în afara unui request (sync în fundal, refresh periodic).
    Commit la ieșire normală, rollback la excepție.
    """
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def init_db_if_requested() -> None:
    """
    SQLALCHEMY_CREATE_ALL=1 → create_all pe modele (demo / SQLite).
    DB_CREATE_SCHEMA_IF_MISSING=1 → creează schema pe Postgres.
    În producție schema vine din Alembic.
    """
    if DEFAULT_SCHEMA and _flag("DB_CREATE_SCHEMA_IF_MISSING"):
        with engine.begin() as conn:
            quoted = conn.dialect.identifier_preparer.quote_identifier(DEFAULT_SCHEMA)
            conn.exec_driver_sql(f"CREATE SCHEMA IF NOT EXISTS {quoted}")
    if _flag("SQLALCHEMY_CREATE_ALL"):
        from app.models import activity, deal, listing, sheet_item  # noqa: F401

        Base.metadata.create_all(bind=engine)


__all__ = [
    "Base",
    "DATABASE_URL",
    "DEFAULT_SCHEMA",
    "IS_SQLITE",
    "SessionLocal",
    "engine",
    "get_db",
    "init_db_if_requested",
    "session_scope",
]
