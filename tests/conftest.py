# tests/conftest.py
from __future__ import annotations

import os

# Config pentru teste, setată ÎNAINTE de importul aplicației
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["GOOGLE_CREDENTIALS"] = ""
os.environ["GOOGLE_SERVICE_ACCOUNT_JSON"] = ""
os.environ["GOOGLE_SHEETS_SPREADSHEET_ID"] = ""
os.environ["SHEETS_REFRESH_INTERVAL_S"] = "0"
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest
from fastapi.testclient import TestClient

from app.database import Base, SessionLocal, engine
from app.main import app as fastapi_app
from app.models import activity, deal, listing, sheet_item  # noqa: F401
from app.routers.deps import get_sheets_client
from fakes import FakeSheetsClient, default_sheet


@pytest.fixture(autouse=True)
def _schema():
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def sheets() -> FakeSheetsClient:
    return default_sheet()


@pytest.fixture
def client(sheets: FakeSheetsClient):
    fastapi_app.dependency_overrides[get_sheets_client] = lambda: sheets
    try:
        with TestClient(fastapi_app) as c:
            yield c
    finally:
        fastapi_app.dependency_overrides.pop(get_sheets_client, None)


@pytest.fixture
def unconfigured_client():
    """Aplicația fără override: credențialele Google lipsesc."""
    with TestClient(fastapi_app) as c:
        yield c
