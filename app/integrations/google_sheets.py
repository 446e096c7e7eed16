from __future__ import annotations

import json
import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Protocol

import gspread
from google.auth.exceptions import GoogleAuthError
from google.oauth2.service_account import Credentials
from gspread.exceptions import GSpreadException, WorksheetNotFound

# read-write: update_cell / delete_rows au nevoie de scope complet
SCOPES = ("https://www.googleapis.com/auth/spreadsheets",)

logger = logging.getLogger("resellerpro-api.google_sheets")

# =========================
# Erori specifice
# =========================

class SheetsError(Exception):
    """Bază pentru erorile colaboratorului de spreadsheet."""


class SheetsNotConfiguredError(SheetsError):
    """Lipsesc credențialele sau ID-ul spreadsheet-ului."""


class SheetsUnavailableError(SheetsError):
    """Google Sheets nu a răspuns / a răspuns cu eroare (fără retry)."""


class RowNotFoundError(SheetsError):
    def __init__(self, tab: str, position: "RowPosition", total_rows: int):
        super().__init__(
            f"Row position {position.index} not found in tab {tab!r} ({total_rows} data rows)"
        )
        self.tab = tab
        self.position = position
        self.total_rows = total_rows


class UnknownColumnError(SheetsError):
    def __init__(self, tab: str, column: str):
        super().__init__(f"Column {column!r} not found in header row of tab {tab!r}")
        self.tab = tab
        self.column = column

# =========================
# Tipuri valoare
# =========================

@dataclass(frozen=True, order=True)
class RowPosition:
    """
    Offset 0-based în rândurile de date ale foii (header-ul exclus).

    Poziția e stabilă doar cât timp nimeni nu inserează/șterge rânduri
    direct în foaie; orice astfel de modificare decalează toate referințele.
    """
    index: int

    def __post_init__(self) -> None:
        if isinstance(self.index, bool) or not isinstance(self.index, int):
            raise TypeError("RowPosition.index must be an int")
        if self.index < 0:
            raise ValueError("RowPosition.index must be >= 0")

    @property
    def a1_row(self) -> int:
        # rândul 1 = header, primul rând de date = 2
        return self.index + 2


@dataclass
class SheetTable:
    headers: List[str]
    rows: List[Dict[str, str]] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.rows)

    def row_at(self, tab: str, position: RowPosition) -> Dict[str, str]:
        if position.index >= len(self.rows):
            raise RowNotFoundError(tab, position, len(self.rows))
        return self.rows[position.index]

    def column_index(self, tab: str, column: str) -> int:
        """Index 1-based al coloanei (convenția gspread)."""
        try:
            return self.headers.index(column) + 1
        except ValueError:
            raise UnknownColumnError(tab, column) from None


def rows_from_values(values: List[List[Any]]) -> SheetTable:
    """Prima linie = header-e; liniile scurte se completează cu ''."""
    if not values:
        return SheetTable(headers=[])
    headers = [str(h).strip() for h in values[0]]
    rows: List[Dict[str, str]] = []
    for raw in values[1:]:
        cells = ["" if c is None else str(c) for c in raw]
        cells += [""] * (len(headers) - len(cells))
        rows.append({h: cells[i] for i, h in enumerate(headers) if h})
    return SheetTable(headers=headers, rows=rows)


class SpreadsheetClient(Protocol):
    def list_rows(self, tab: str) -> SheetTable: ...

    def update_cell(self, tab: str, position: RowPosition, column: str, value: str) -> None: ...

    def delete_row(self, tab: str, position: RowPosition) -> None: ...

    def test_connection(self, tab: str) -> Dict[str, Any]: ...

# =========================
# Credențiale
# =========================

def load_service_account_info(raw: Optional[str]) -> Dict[str, Any]:
    """
    Parsează JSON-ul contului de serviciu primit ca text (env/secret).
    Secretele copiate prin UI au adesea '\\n' literal în private_key.
    """
    if not raw or not raw.strip():
        raise SheetsNotConfiguredError("Google service account credentials are not set")
    try:
        info = json.loads(raw)
    except json.JSONDecodeError as e:
        raise SheetsNotConfiguredError(f"Google credentials are not valid JSON: {e.msg}") from e
    if not isinstance(info, dict):
        raise SheetsNotConfiguredError("Google credentials JSON must be an object")
    key = info.get("private_key")
    if isinstance(key, str):
        info["private_key"] = key.replace("\\n", "\n")
    return info

# =========================
# Client gspread
# =========================

@contextmanager
def _upstream(action: str, tab: str) -> Iterator[None]:
    try:
        yield
    except SheetsError:
        raise
    except WorksheetNotFound as e:
        raise SheetsUnavailableError(f"Worksheet {tab!r} not found") from e
    except (GSpreadException, GoogleAuthError, OSError) as e:
        logger.warning("Google Sheets %s failed for tab %r: %s", action, tab, e)
        raise SheetsUnavailableError(f"Google Sheets {action} failed: {e}") from e


class GoogleSheetsClient:
    """Implementare `SpreadsheetClient` peste gspread (un singur spreadsheet)."""

    def __init__(self, spreadsheet_id: str, credentials_info: Dict[str, Any]):
        if not (spreadsheet_id or "").strip():
            raise SheetsNotConfiguredError("GOOGLE_SHEETS_SPREADSHEET_ID is not set")
        self.spreadsheet_id = spreadsheet_id.strip()
        self._credentials_info = credentials_info
        self._spreadsheet: Optional[gspread.Spreadsheet] = None
        self._lock = threading.Lock()

    @classmethod
    def from_settings(cls, settings: Any) -> "GoogleSheetsClient":
        info = load_service_account_info(settings.google_credentials_json)
        return cls(settings.GOOGLE_SHEETS_SPREADSHEET_ID or "", info)

    def _open(self) -> gspread.Spreadsheet:
        with self._lock:
            if self._spreadsheet is None:
                creds = Credentials.from_service_account_info(self._credentials_info, scopes=SCOPES)
                gc = gspread.authorize(creds)
                self._spreadsheet = gc.open_by_key(self.spreadsheet_id)
            return self._spreadsheet

    def _worksheet(self, tab: str) -> gspread.Worksheet:
        return self._open().worksheet(tab)

    def list_rows(self, tab: str) -> SheetTable:
        with _upstream("read", tab):
            values = self._worksheet(tab).get_all_values()
        return rows_from_values(values)

    def update_cell(self, tab: str, position: RowPosition, column: str, value: str) -> None:
        with _upstream("update", tab):
            ws = self._worksheet(tab)
            table = rows_from_values(ws.get_all_values())
            col = table.column_index(tab, column)
            table.row_at(tab, position)
            ws.update_cell(position.a1_row, col, value)
        logger.info("Updated %s!R%dC%d (%s)", tab, position.a1_row, col, column)

    def delete_row(self, tab: str, position: RowPosition) -> None:
        with _upstream("delete", tab):
            ws = self._worksheet(tab)
            table = rows_from_values(ws.get_all_values())
            table.row_at(tab, position)
            ws.delete_rows(position.a1_row)
        logger.info("Deleted %s row %d (position %d)", tab, position.a1_row, position.index)

    def test_connection(self, tab: str) -> Dict[str, Any]:
        with _upstream("connection test", tab):
            sh = self._open()
            titles = [ws.title for ws in sh.worksheets()]
            out: Dict[str, Any] = {
                "spreadsheet_id": self.spreadsheet_id,
                "title": sh.title,
                "worksheets": titles,
                "tab": tab,
                "tab_exists": tab in titles,
                "headers": [],
                "row_count": 0,
            }
            if tab in titles:
                table = rows_from_values(sh.worksheet(tab).get_all_values())
                out["headers"] = table.headers
                out["row_count"] = len(table)
        return out


__all__ = [
    "SCOPES",
    "SheetsError",
    "SheetsNotConfiguredError",
    "SheetsUnavailableError",
    "RowNotFoundError",
    "UnknownColumnError",
    "RowPosition",
    "SheetTable",
    "rows_from_values",
    "SpreadsheetClient",
    "load_service_account_info",
    "GoogleSheetsClient",
]
