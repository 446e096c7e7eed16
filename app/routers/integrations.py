from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from app.integrations.google_sheets import SheetsUnavailableError, SpreadsheetClient
from app.routers.deps import get_sheets_client, worksheet_titles
from app.schemas.sheets import ConnectionTestRead

logger = logging.getLogger("resellerpro-api.integrations")

router = APIRouter(prefix="/integrations", tags=["integrations"])


@router.get("/google-sheets/test", response_model=ConnectionTestRead, summary="Check spreadsheet access and tab layout")
def google_sheets_test(client: SpreadsheetClient = Depends(get_sheets_client)):
    """
    Verifică accesul la spreadsheet și header-ele fiecărui tab configurat.
    Eșecul upstream nu e 5xx aici: răspunsul e `ok=false` cu mesajul erorii.
    """
    tabs = {}
    first = None
    try:
        for key, title in worksheet_titles().items():
            info = client.test_connection(title)
            first = first or info
            tabs[key] = {
                "worksheet": title,
                "exists": info.get("tab_exists", False),
                "headers": info.get("headers", []),
                "row_count": info.get("row_count", 0),
            }
    except SheetsUnavailableError as e:
        logger.warning("Google Sheets connection test failed: %s", e)
        return ConnectionTestRead(ok=False, tabs=tabs, error=str(e))

    return ConnectionTestRead(
        ok=all(t["exists"] for t in tabs.values()),
        spreadsheet_id=(first or {}).get("spreadsheet_id"),
        title=(first or {}).get("title"),
        worksheets=(first or {}).get("worksheets", []),
        tabs=tabs,
    )
