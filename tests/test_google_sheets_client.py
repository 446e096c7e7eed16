# tests/test_google_sheets_client.py
from __future__ import annotations

import json
from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest
from gspread.exceptions import GSpreadException, WorksheetNotFound

from app.integrations import google_sheets as gs
from app.integrations.google_sheets import (
    GoogleSheetsClient,
    RowNotFoundError,
    RowPosition,
    SheetsNotConfiguredError,
    SheetsUnavailableError,
    UnknownColumnError,
    load_service_account_info,
    rows_from_values,
)
from fakes import HEADERS, sheet_row


@pytest.fixture
def ws():
    return MagicMock(name="worksheet")


@pytest.fixture
def gclient(ws):
    c = GoogleSheetsClient("sheet-id", {"type": "service_account"})
    sh = MagicMock(name="spreadsheet")
    sh.title = "ResellerPro"
    sh.worksheet.return_value = ws
    c._spreadsheet = sh
    ws.get_all_values.return_value = [
        HEADERS,
        sheet_row("", "no asin"),
        sheet_row("B1", "first"),
    ]
    return c


def test_row_position_maps_to_a1_row():
    assert RowPosition(0).a1_row == 2
    assert RowPosition(7).a1_row == 9
    assert RowPosition(1) < RowPosition(2)


@pytest.mark.parametrize("bad, exc", [(-1, ValueError), (1.0, TypeError), ("1", TypeError), (True, TypeError)])
def test_row_position_validation(bad, exc):
    with pytest.raises(exc):
        RowPosition(bad)


def test_rows_from_values_pads_short_rows():
    table = rows_from_values([[" ASIN ", "Name", ""], ["B1"], ["B2", "n", "extra"]])
    assert table.headers == ["ASIN", "Name", ""]
    assert table.rows == [{"ASIN": "B1", "Name": ""}, {"ASIN": "B2", "Name": "n"}]
    assert len(rows_from_values([])) == 0


def test_list_rows(gclient, ws):
    table = gclient.list_rows("Sourcing")
    assert len(table) == 2
    assert table.rows[1]["ASIN"] == "B1"
    gclient._spreadsheet.worksheet.assert_called_with("Sourcing")


def test_update_cell_uses_a1_row_and_header_column(gclient, ws):
    gclient.update_cell("Sourcing", RowPosition(1), "Notes", "hello")
    ws.update_cell.assert_called_once_with(3, HEADERS.index("Notes") + 1, "hello")


def test_update_cell_unknown_column(gclient, ws):
    with pytest.raises(UnknownColumnError):
        gclient.update_cell("Sourcing", RowPosition(0), "Missing", "x")
    ws.update_cell.assert_not_called()


def test_update_cell_past_end(gclient, ws):
    with pytest.raises(RowNotFoundError):
        gclient.update_cell("Sourcing", RowPosition(2), "Notes", "x")
    ws.update_cell.assert_not_called()


def test_delete_row(gclient, ws):
    gclient.delete_row("Sourcing", RowPosition(0))
    ws.delete_rows.assert_called_once_with(2)


def test_delete_missing_row_does_not_touch_sheet(gclient, ws):
    with pytest.raises(RowNotFoundError) as ei:
        gclient.delete_row("Sourcing", RowPosition(5))
    assert ei.value.total_rows == 2
    ws.delete_rows.assert_not_called()


def test_gspread_errors_are_wrapped(gclient, ws):
    ws.get_all_values.side_effect = GSpreadException("quota exceeded")
    with pytest.raises(SheetsUnavailableError):
        gclient.list_rows("Sourcing")


def test_missing_worksheet_is_unavailable(gclient):
    gclient._spreadsheet.worksheet.side_effect = WorksheetNotFound("Nope")
    with pytest.raises(SheetsUnavailableError, match="Nope"):
        gclient.delete_row("Nope", RowPosition(0))


def test_connection_report(gclient, ws):
    other = MagicMock()
    other.title = "Purchasing"
    src = MagicMock()
    src.title = "Sourcing"
    gclient._spreadsheet.worksheets.return_value = [src, other]

    info = gclient.test_connection("Sourcing")
    assert info["tab_exists"] is True
    assert info["title"] == "ResellerPro"
    assert info["worksheets"] == ["Sourcing", "Purchasing"]
    assert info["headers"] == HEADERS
    assert info["row_count"] == 2

    info = gclient.test_connection("Archive")
    assert info["tab_exists"] is False
    assert info["row_count"] == 0


def test_open_authorizes_once(monkeypatch):
    creds = object()
    from_info = MagicMock(return_value=creds)
    gc = MagicMock()
    gc.open_by_key.return_value.worksheet.return_value.get_all_values.return_value = [HEADERS]
    authorize = MagicMock(return_value=gc)
    monkeypatch.setattr(gs.Credentials, "from_service_account_info", from_info)
    monkeypatch.setattr(gs.gspread, "authorize", authorize)

    c = GoogleSheetsClient("sheet-id", {"client_email": "x@y"})
    c.list_rows("Sourcing")
    c.list_rows("Sourcing")

    from_info.assert_called_once_with({"client_email": "x@y"}, scopes=gs.SCOPES)
    authorize.assert_called_once_with(creds)
    gc.open_by_key.assert_called_once_with("sheet-id")


def test_service_account_info_restores_newlines():
    raw = json.dumps({"client_email": "x@y", "private_key": "-----BEGIN-----\\nabc\\n-----END-----"})
    info = load_service_account_info(raw)
    assert info["private_key"] == "-----BEGIN-----\nabc\n-----END-----"


@pytest.mark.parametrize("raw", [None, "", "   ", "{not json", "[1, 2]"])
def test_service_account_info_rejects_bad_input(raw):
    with pytest.raises(SheetsNotConfiguredError):
        load_service_account_info(raw)


def test_client_requires_spreadsheet_id():
    with pytest.raises(SheetsNotConfiguredError):
        GoogleSheetsClient("  ", {})
    with pytest.raises(SheetsNotConfiguredError):
        GoogleSheetsClient.from_settings(
            SimpleNamespace(google_credentials_json=None, GOOGLE_SHEETS_SPREADSHEET_ID="sheet-id")
        )
