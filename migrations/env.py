# migrations/env.py
"""
Alembic env pentru resellerpro-api.

URL-ul și schema vin din app.database (DATABASE_URL / DB_SCHEMA), deci
migrările și aplicația văd mereu aceeași bază. `sqlalchemy.url` din
alembic.ini e folosit doar dacă DATABASE_URL lipsește din mediu.
"""
from __future__ import annotations

import logging
import os
from logging.config import fileConfig

import sqlalchemy as sa
from alembic import context
from sqlalchemy.engine import make_url
from sqlalchemy.pool import NullPool

config = context.config
if config.config_file_name:
    fileConfig(config.config_file_name)
log = logging.getLogger("alembic.env")

_ini_url = (config.get_main_option("sqlalchemy.url") or "").strip()
if _ini_url and not os.getenv("DATABASE_URL"):
    os.environ["DATABASE_URL"] = _ini_url

# importul după setarea env-ului: app.database citește DATABASE_URL la import
from app.database import DATABASE_URL, DEFAULT_SCHEMA, Base  # noqa: E402
from app.models import activity, deal, listing, sheet_item  # noqa: E402,F401

VERSION_TABLE = (os.getenv("ALEMBIC_VERSION_TABLE") or "alembic_version").strip()
CREATE_SCHEMA = os.getenv("AUTO_CREATE_SCHEMA", "1").strip().lower() in {"1", "true", "yes", "on"}
SQL_ECHO = os.getenv("ALEMBIC_SQL_ECHO", "").strip().lower() in {"1", "true", "yes", "on"}


def _redacted(url: str) -> str:
    return make_url(url).render_as_string(hide_password=True)


def include_object(object_, name, type_, reflected, compare_to) -> bool:
    # tabela de versiuni e a Alembic, nu a modelelor
    return not (type_ == "table" and name == VERSION_TABLE)


def process_revision_directives(context_, revision, directives):
    cmd_opts = getattr(config, "cmd_opts", None)
    if not getattr(cmd_opts, "autogenerate", False) or not directives:
        return
    if directives[0].upgrade_ops.is_empty():
        directives[:] = []
        log.info("Autogenerate: no changes against sheet_items/listings/activity_log, nothing written.")


def _configure(**kw) -> None:
    context.configure(
        target_metadata=Base.metadata,
        include_object=include_object,
        include_schemas=DEFAULT_SCHEMA is not None,
        compare_type=True,
        compare_server_default=True,
        version_table=VERSION_TABLE,
        version_table_schema=DEFAULT_SCHEMA,
        process_revision_directives=process_revision_directives,
        **kw,
    )


def run_migrations_offline() -> None:
    log.info("Offline migrations for %s (schema=%s)", _redacted(DATABASE_URL), DEFAULT_SCHEMA)
    _configure(url=DATABASE_URL, literal_binds=True, dialect_opts={"paramstyle": "named"})
    with context.begin_transaction():
        context.run_migrations()


def run_migrations_online() -> None:
    log.info("Online migrations for %s (schema=%s)", _redacted(DATABASE_URL), DEFAULT_SCHEMA)
    # engine separat, fără pool: Alembic rulează o singură conexiune
    engine = sa.create_engine(DATABASE_URL, poolclass=NullPool, echo=SQL_ECHO)
    try:
        with engine.connect() as conn:
            if DEFAULT_SCHEMA and conn.dialect.name == "postgresql":
                quoted = conn.dialect.identifier_preparer.quote_identifier(DEFAULT_SCHEMA)
                if CREATE_SCHEMA:
                    conn.exec_driver_sql(f"CREATE SCHEMA IF NOT EXISTS {quoted}")
                conn.exec_driver_sql(f"SET search_path = {quoted}, public")
                conn.commit()

            # SQLite nu suportă ALTER complet → batch mode
            _configure(connection=conn, render_as_batch=conn.dialect.name == "sqlite")
            with context.begin_transaction():
                context.run_migrations()
    finally:
        engine.dispose()


if context.is_offline_mode():
    run_migrations_offline()
else:
    run_migrations_online()
