# app/main.py
from __future__ import annotations

import logging
import os
import time
from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from sqlalchemy import text
from starlette.middleware.trustedhost import TrustedHostMiddleware

from app.core.errors import register_exception_handlers
from app.core.logging import setup_logging
from app.core.middleware import build_request_context_mw
from app.core.settings import settings
from app.database import DEFAULT_SCHEMA, SessionLocal, engine, init_db_if_requested, session_scope
from app.integrations.google_sheets import SheetsUnavailableError
from app.routers.activity import router as activity_router
from app.routers.deals import router as deals_router
from app.routers.health import code_heads, router as health_router
from app.routers.integrations import router as integrations_router
from app.routers.listings import router as listings_router
from app.routers.sheets import purchasing_router, sourcing_router
from app.services.refresh import PeriodicRefresher


def _flag(name: str) -> bool:
    return os.getenv(name, "").strip().lower() in {"1", "true", "yes", "on"}


def _csv_env(name: str) -> List[str]:
    return [v.strip() for v in os.getenv(name, "").split(",") if v.strip()]


LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
APP_TITLE = os.getenv("APP_TITLE", "resellerpro-api")
APP_VERSION = os.getenv("APP_VERSION", "0.1.0")
BUILD_SHA = os.getenv("GIT_SHA") or os.getenv("BUILD_SHA") or ""
ROOT_PATH = os.getenv("ROOT_PATH", "").strip()
DISABLE_DOCS = _flag("DISABLE_DOCS")
ENABLE_HSTS = _flag("ENABLE_HSTS")
_max_body = os.getenv("MAX_BODY_SIZE_BYTES", "0").strip()
MAX_BODY_SIZE_BYTES = int(_max_body) if _max_body.isdigit() else 0  # 0 = fără limită

setup_logging(LOG_LEVEL)
for _name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
    logging.getLogger(_name).setLevel(LOG_LEVEL)
logger = logging.getLogger("resellerpro-api")

tags_metadata = [
    {"name": "health", "description": "Liveness/readiness și starea migrărilor"},
    {"name": "sourcing-sheets", "description": "Tab-ul Sourcing: foaia Google + override-uri locale"},
    {"name": "purchasing-sheets", "description": "Tab-ul Purchasing: foaia Google + override-uri locale"},
    {"name": "listings", "description": "Listări și generatorul de SKU"},
    {"name": "deals", "description": "Deal-uri propuse: profit, marjă, ROI, review și pipeline"},
    {"name": "activity", "description": "Jurnal de activitate"},
    {"name": "integrations", "description": "Verificarea accesului la Google Sheets"},
]


def refresh_all_tabs() -> None:
    """Citește ambele tab-uri și rescrie cache-ul local; un tab căzut nu oprește celălalt."""
    from app.routers.deps import _cached_client, build_reconciler, worksheet_titles

    client = _cached_client()
    failed = []
    for tab in worksheet_titles():
        try:
            with session_scope() as db:
                build_reconciler(client, tab).sync(db)
        except Exception:
            logger.exception("Periodic refresh failed for %s", tab)
            failed.append(tab)
    if failed:
        raise SheetsUnavailableError(f"Refresh failed for: {', '.join(failed)}")


def _startup_checks() -> None:
    # doar log: o DB indisponibilă la pornire nu oprește procesul
    try:
        with SessionLocal() as db:
            db.execute(text("SELECT 1"))
        logger.info("DB reachable (dialect=%s, schema=%s)", engine.dialect.name, DEFAULT_SCHEMA)
    except Exception:
        logger.exception("DB startup check failed")
        return
    try:
        logger.info("Alembic heads: %s", code_heads())
    except Exception as e:
        logger.warning("Cannot read Alembic heads: %s", e)


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db_if_requested()
    _startup_checks()

    refresher: Optional[PeriodicRefresher] = None
    if settings.sheets_configured and settings.SHEETS_REFRESH_INTERVAL_S > 0:
        refresher = PeriodicRefresher(settings.SHEETS_REFRESH_INTERVAL_S, refresh_all_tabs)
        refresher.start()
    else:
        logger.info(
            "Sheets refresh off (configured=%s, interval=%ss)",
            settings.sheets_configured, settings.SHEETS_REFRESH_INTERVAL_S,
        )
    app.state.refresher = refresher
    try:
        yield
    finally:
        if refresher is not None:
            await refresher.stop()


app = FastAPI(
    title=APP_TITLE,
    version=APP_VERSION,
    openapi_tags=tags_metadata,
    lifespan=lifespan,
    root_path=ROOT_PATH,
    docs_url=None if DISABLE_DOCS else "/docs",
    redoc_url=None if DISABLE_DOCS else "/redoc",
    openapi_url=None if DISABLE_DOCS else "/openapi.json",
)
app.state.build_sha = BUILD_SHA
app.state.started_at = int(time.time())
app.state.started_mono = time.monotonic()
app.state.refresher = None

app.middleware("http")(
    build_request_context_mw(app_version=APP_VERSION, max_body_bytes=MAX_BODY_SIZE_BYTES, hsts=ENABLE_HSTS)
)
app.add_middleware(GZipMiddleware, minimum_size=1024)

# TRUSTED_HOSTS="localhost,127.0.0.1,.example.com"
if _csv_env("TRUSTED_HOSTS"):
    app.add_middleware(TrustedHostMiddleware, allowed_hosts=_csv_env("TRUSTED_HOSTS"))

# CORS_ORIGINS="http://localhost:5173,https://example.com"
if _csv_env("CORS_ORIGINS"):
    app.add_middleware(
        CORSMiddleware,
        allow_origins=_csv_env("CORS_ORIGINS"),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        # X-Total-Count pentru paginare, Content-Disposition pentru export CSV
        expose_headers=["X-Total-Count", "X-Request-ID", "Content-Disposition", "Server-Timing", "X-App-Version"],
    )

register_exception_handlers(app)

app.include_router(health_router)
app.include_router(sourcing_router)
app.include_router(purchasing_router)
app.include_router(listings_router)
app.include_router(deals_router)
app.include_router(activity_router)
app.include_router(integrations_router)
