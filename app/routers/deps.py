# app/routers/deps.py
from __future__ import annotations

from functools import lru_cache
from typing import Callable, Dict

from fastapi import Depends, HTTPException, status

from app.core.settings import settings
from app.integrations.google_sheets import (
    GoogleSheetsClient,
    SheetsNotConfiguredError,
    SpreadsheetClient,
)
from app.services.sheet_reconciler import SheetColumns, SheetReconciler


def worksheet_titles() -> Dict[str, str]:
    """Cheie locală → titlul tab-ului din spreadsheet."""
    return {
        "sourcing": settings.SHEETS_SOURCING_TAB,
        "purchasing": settings.SHEETS_PURCHASING_TAB,
    }


@lru_cache(maxsize=1)
def _cached_client() -> GoogleSheetsClient:
    return GoogleSheetsClient.from_settings(settings)


def get_sheets_client() -> SpreadsheetClient:
    """
    Clientul Google Sheets partajat (autorizare o singură dată per proces).
    503 dacă lipsesc credențialele / ID-ul spreadsheet-ului.
    """
    try:
        return _cached_client()
    except SheetsNotConfiguredError as e:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"Google Sheets is not configured: {e}",
        )


def build_reconciler(client: SpreadsheetClient, tab: str) -> SheetReconciler:
    return SheetReconciler(
        client,
        tab=tab,
        worksheet=worksheet_titles()[tab],
        columns=SheetColumns.from_settings(settings),
    )


def reconciler_dependency(tab: str) -> Callable[..., SheetReconciler]:
    def _dep(client: SpreadsheetClient = Depends(get_sheets_client)) -> SheetReconciler:
        return build_reconciler(client, tab)

    _dep.__name__ = f"get_{tab}_reconciler"
    return _dep


__all__ = (
    "worksheet_titles",
    "get_sheets_client",
    "build_reconciler",
    "reconciler_dependency",
)
