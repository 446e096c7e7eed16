# app/services/sheet_reconciler.py
"""
Reconcilierea dintre foaia Google (sursa de adevăr pentru rândurile active)
și tabela locală `sheet_items` (sursa de adevăr pentru override-urile arhivate).

Fiecare citire re-combină cele două surse:

1. se citesc toate rândurile foii, fiecare primind `RowPosition` = indexul în
   lista NEFILTRATĂ (înainte de orice filtrare);
2. se citesc identificatorii arhivați local pentru tab;
3. rămân doar rândurile cu identificator și nume nevide, nearhivate.

Mutațiile (arhivare, ștergere, actualizare de celulă) adresează rândul prin
acea poziție originală. Nu există retry automat nicăieri.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.crud import sheet_item as crud
from app.integrations.google_sheets import (
    RowNotFoundError,
    RowPosition,
    SheetTable,
    SpreadsheetClient,
)
from app.models.sheet_item import SheetItem
from app.services.parsing import parse_money, parse_numeric, parse_percent

logger = logging.getLogger("resellerpro-api.reconciler")

# câmpurile editabile direct în foaie → atributul din SheetColumns
EDITABLE_FIELDS = {
    "status": "status",
    "notes": "notes",
    "sourcing_method": "sourcing_method",
}


class InvalidRecordError(Exception):
    """Rândul nu are identificator sau nume de produs."""


@dataclass(frozen=True)
class SheetColumns:
    identifier: str = "ASIN"
    display_name: str = "Product Name"
    brand: str = "Brand"
    cost_price: str = "Cost Price"
    sale_price: str = "Sale Price"
    notes: str = "Notes"
    status: str = "Product Review"
    sourcing_method: str = "Sourcing Method"
    estimated_sales: str = "Estimated Sales"
    profit_margin: str = "Profit Margin"
    roi: str = "ROI"

    @classmethod
    def from_settings(cls, s: Any) -> "SheetColumns":
        return cls(
            identifier=s.SHEETS_COL_IDENTIFIER,
            display_name=s.SHEETS_COL_DISPLAY_NAME,
            brand=s.SHEETS_COL_BRAND,
            cost_price=s.SHEETS_COL_COST_PRICE,
            sale_price=s.SHEETS_COL_SALE_PRICE,
            notes=s.SHEETS_COL_NOTES,
            status=s.SHEETS_COL_STATUS,
            sourcing_method=s.SHEETS_COL_SOURCING_METHOD,
            estimated_sales=s.SHEETS_COL_ESTIMATED_SALES,
            profit_margin=s.SHEETS_COL_PROFIT_MARGIN,
            roi=s.SHEETS_COL_ROI,
        )

    def for_field(self, field_name: str) -> str:
        attr = EDITABLE_FIELDS.get(field_name)
        if attr is None:
            raise ValueError(
                f"Unknown field {field_name!r}. Allowed: {sorted(EDITABLE_FIELDS)}"
            )
        return getattr(self, attr)


@dataclass(frozen=True)
class SheetRecord:
    row_position: RowPosition
    values: Dict[str, str]
    columns: SheetColumns = field(default_factory=SheetColumns, repr=False, compare=False)

    def _get(self, header: str) -> str:
        return (self.values.get(header) or "").strip()

    @property
    def identifier(self) -> str:
        return self._get(self.columns.identifier)

    @property
    def display_name(self) -> str:
        return self._get(self.columns.display_name)

    @property
    def brand(self) -> Optional[str]:
        return self._get(self.columns.brand) or None

    @property
    def cost_price(self) -> Optional[Decimal]:
        return parse_money(self._get(self.columns.cost_price))

    @property
    def is_valid(self) -> bool:
        return bool(self.identifier and self.display_name)


@dataclass
class ActiveView:
    headers: List[str]
    items: List[SheetRecord]
    total_rows: int
    archived_count: int


@dataclass
class SyncResult:
    inserted: int = 0
    failed: int = 0
    cleared: int = 0
    failed_identifiers: List[str] = field(default_factory=list)


@dataclass
class DeleteResult:
    asin: str
    local_records_removed: int
    local_consistent: bool


class SheetReconciler:
    """
    Un reconciler per tab. `tab` = cheia locală (sourcing|purchasing),
    `worksheet` = titlul tab-ului în spreadsheet.
    Sesiunea DB se primește per apel (ca funcțiile din app.crud).
    """

    def __init__(
        self,
        client: SpreadsheetClient,
        tab: str,
        worksheet: str,
        columns: Optional[SheetColumns] = None,
    ):
        self.client = client
        self.tab = tab
        self.worksheet = worksheet
        self.columns = columns or SheetColumns()

    # -------------------------
    # citire
    # -------------------------
    def read_table(self) -> tuple[SheetTable, List[SheetRecord]]:
        table = self.client.list_rows(self.worksheet)
        # poziția se atribuie înainte de orice filtrare
        records = [
            SheetRecord(RowPosition(i), row, self.columns) for i, row in enumerate(table.rows)
        ]
        return table, records

    def record_at(self, pos: RowPosition, expected_identifier: Optional[str] = None) -> SheetRecord:
        table, records = self.read_table()
        if pos.index >= len(records):
            raise RowNotFoundError(self.worksheet, pos, len(records))
        rec = records[pos.index]
        if expected_identifier is not None and rec.identifier != expected_identifier.strip():
            # foaia s-a modificat între citire și mutație
            logger.warning(
                "Stale row position %d in %s: expected %r, found %r",
                pos.index, self.tab, expected_identifier, rec.identifier,
            )
            raise RowNotFoundError(self.worksheet, pos, len(records))
        return rec

    def list_active(self, db: Session) -> ActiveView:
        table, records = self.read_table()
        archived = crud.list_by_archived(db, self.tab, True)
        archived_ids = {a.asin.strip() for a in archived}
        items = [r for r in records if r.is_valid and r.identifier not in archived_ids]
        return ActiveView(
            headers=table.headers,
            items=items,
            total_rows=len(records),
            archived_count=len(archived),
        )

    def list_archived(self, db: Session) -> List[SheetItem]:
        return crud.list_by_archived(db, self.tab, True)

    # -------------------------
    # mutații
    # -------------------------
    def to_payload(self, rec: SheetRecord, *, archived: bool = False) -> Dict[str, Any]:
        cols = self.columns
        return {
            "tab": self.tab,
            "row_position": rec.row_position.index,
            "asin": rec.identifier,
            "product_name": rec.display_name,
            "brand": rec.brand,
            "cost_price": rec.cost_price,
            "sale_price": parse_money(rec.values.get(cols.sale_price)),
            "notes": rec.values.get(cols.notes) or None,
            "product_review": rec.values.get(cols.status) or None,
            "sourcing_method": rec.values.get(cols.sourcing_method) or None,
            # "> 29" → 29; procentele rămân în puncte procentuale
            "estimated_sales": parse_numeric(rec.values.get(cols.estimated_sales)),
            "profit_margin": parse_percent(rec.values.get(cols.profit_margin)),
            "roi": parse_percent(rec.values.get(cols.roi)),
            "raw": dict(rec.values),
            "archived": archived,
        }

    def archive(self, db: Session, pos: RowPosition, expected_identifier: Optional[str] = None) -> SheetItem:
        """Ascunde rândul din vizualizarea activă. Nu atinge foaia. Idempotent."""
        rec = self.record_at(pos, expected_identifier)
        if not rec.is_valid:
            raise InvalidRecordError(
                f"Row position {pos.index} in {self.tab} has no identifier or product name"
            )
        try:
            item = crud.upsert_by_identifier(db, self.to_payload(rec, archived=True))
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            raise
        logger.info("Archived %s position=%d asin=%s", self.tab, pos.index, rec.identifier)
        return item

    def unarchive(self, db: Session, pos: RowPosition) -> int:
        try:
            removed = crud.unarchive(db, self.tab, pos.index)
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            raise
        if not removed:
            raise RowNotFoundError(self.tab, pos, crud.count_archived(db, self.tab))
        logger.info("Unarchived %s position=%d", self.tab, pos.index)
        return removed

    def delete(self, db: Session, pos: RowPosition, expected_identifier: Optional[str] = None) -> DeleteResult:
        """
        Șterge rândul din foaie, apoi din tabela locală.
        Dacă ștergerea din foaie eșuează, tabela locală rămâne neatinsă.
        """
        rec = self.record_at(pos, expected_identifier)
        # foaia întâi; excepția urcă la apelant
        self.client.delete_row(self.worksheet, pos)

        try:
            if rec.identifier:
                removed = crud.delete_for_row(db, self.tab, pos.index, rec.identifier)
            else:
                removed = crud.delete_by_row_position(db, self.tab, pos.index)
            crud.shift_positions_after(db, self.tab, pos.index)
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            # foaia rămâne sursa de adevăr; cache-ul se reface la următorul sync
            logger.exception(
                "Sheet row deleted but local cleanup failed: %s position=%d asin=%s",
                self.tab, pos.index, rec.identifier,
            )
            return DeleteResult(asin=rec.identifier, local_records_removed=0, local_consistent=False)

        logger.info("Deleted %s position=%d asin=%s (local=%d)", self.tab, pos.index, rec.identifier, removed)
        return DeleteResult(asin=rec.identifier, local_records_removed=removed, local_consistent=True)

    def update_field(self, pos: RowPosition, field_name: str, value: str) -> None:
        """Scrie direct în celula din foaie; cache-ul local se reface la următorul sync."""
        header = self.columns.for_field(field_name)
        self.client.update_cell(self.worksheet, pos, header, value)
        logger.info("Updated %s position=%d %s", self.tab, pos.index, header)

    def save_items(self, db: Session, records: Iterable[SheetRecord]) -> SyncResult:
        """
        Rescrie partiția activă: șterge rândurile nearhivate ale tab-ului și
        inserează fiecare înregistrare în propria tranzacție. Un rând care eșuează
        se loghează și se numără; restul lotului continuă.
        """
        result = SyncResult()
        try:
            result.cleared = crud.clear_active(db, self.tab)
            db.commit()
        except SQLAlchemyError:
            db.rollback()
            raise

        for rec in records:
            if not rec.is_valid:
                continue
            try:
                crud.insert_active(db, self.to_payload(rec))
                db.commit()
                result.inserted += 1
            except SQLAlchemyError as e:
                db.rollback()
                result.failed += 1
                result.failed_identifiers.append(rec.identifier)
                logger.warning(
                    "Sync failed for %s asin=%s position=%d: %s",
                    self.tab, rec.identifier, rec.row_position.index, e,
                )

        logger.info(
            "Synced %s: inserted=%d failed=%d cleared=%d",
            self.tab, result.inserted, result.failed, result.cleared,
        )
        return result

    def sync(self, db: Session) -> tuple[ActiveView, SyncResult]:
        view = self.list_active(db)
        return view, self.save_items(db, view.items)


__all__ = [
    "EDITABLE_FIELDS",
    "InvalidRecordError",
    "SheetColumns",
    "SheetRecord",
    "ActiveView",
    "SyncResult",
    "DeleteResult",
    "SheetReconciler",
]
