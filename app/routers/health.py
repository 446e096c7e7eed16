# app/routers/health.py
from __future__ import annotations

import logging
import os
import re
import time
from typing import List, Optional, Tuple

from alembic.config import Config as AlembicConfig
from alembic.script import ScriptDirectory
from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.core.settings import settings
from app.database import DEFAULT_SCHEMA, engine, get_db

logger = logging.getLogger("resellerpro-api.health")

router = APIRouter(tags=["health"])

ALEMBIC_INI = os.getenv("ALEMBIC_CONFIG", "alembic.ini")

_IDENT_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def _version_table_name() -> str:
    name = os.getenv("ALEMBIC_VERSION_TABLE", "alembic_version")
    if not _IDENT_RE.fullmatch(name):
        logger.warning("Ignoring invalid ALEMBIC_VERSION_TABLE=%r", name)
        name = "alembic_version"
    if DEFAULT_SCHEMA and _IDENT_RE.fullmatch(DEFAULT_SCHEMA):
        return f'"{DEFAULT_SCHEMA}"."{name}"'
    return f'"{name}"'


def db_revision(db: Session) -> Tuple[Optional[str], bool]:
    """(revizia din DB, tabela de versiuni există)"""
    try:
        rev = db.execute(text(f"SELECT version_num FROM {_version_table_name()}")).scalar_one_or_none()
    except SQLAlchemyError:
        db.rollback()
        return None, False
    return rev, True


def code_heads() -> List[str]:
    return list(ScriptDirectory.from_config(AlembicConfig(ALEMBIC_INI)).get_heads())


@router.get("/")
def root(request: Request):
    payload = {"name": request.app.title, "version": request.app.version}
    if request.app.state.build_sha:
        payload["build_sha"] = request.app.state.build_sha
    return payload


@router.get("/__version__")
def version_meta(request: Request):
    payload = {"app_version": request.app.version, "started_at": request.app.state.started_at}
    if request.app.state.build_sha:
        payload["build_sha"] = request.app.state.build_sha
    return payload


@router.get("/health")
def health():
    return {"status": "ok"}


@router.get("/health/uptime")
def health_uptime(request: Request):
    state = request.app.state
    return {"uptime_seconds": round(time.monotonic() - state.started_mono, 3), "started_at": state.started_at}


@router.get("/health/db")
def health_db(db: Session = Depends(get_db)):
    try:
        db.execute(text("SELECT 1"))
    except SQLAlchemyError:
        logger.exception("DB health check failed")
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="DB not ready")
    return {"status": "ok", "db": "up", "dialect": engine.dialect.name, "schema": DEFAULT_SCHEMA}


@router.get("/health/sheets")
def health_sheets(request: Request):
    """Configurarea Google Sheets și starea refresh-ului periodic (fără apel la Google)."""
    refresher = getattr(request.app.state, "refresher", None)
    return {
        "configured": settings.sheets_configured,
        "refresh_interval_s": settings.SHEETS_REFRESH_INTERVAL_S,
        "refresher_running": bool(refresher and refresher.started),
        "refresh_runs": refresher.runs if refresher else 0,
        "refresh_skipped": refresher.skipped if refresher else 0,
        "refresh_failures": refresher.failures if refresher else 0,
    }


@router.get("/health/migrations")
def health_migrations(db: Session = Depends(get_db)):
    rev, present = db_revision(db)
    return {"alembic_version": rev, "present": present}


@router.get("/health/migrations/status")
def health_migrations_status(db: Session = Depends(get_db)):
    rev, present = db_revision(db)
    try:
        heads = code_heads()
    except Exception as e:  # alembic.ini lipsă / director de migrări invalid
        logger.warning("Cannot read Alembic heads from %s: %s", ALEMBIC_INI, e)
        return {"db_version": rev, "present": present, "pkg_heads_error": str(e), "in_sync": False}
    head = heads[0] if len(heads) == 1 else None
    return {
        "db_version": rev,
        "present": present,
        "pkg_heads": heads,
        "pkg_head": head,
        "in_sync": bool(rev and head and rev == head),
    }
