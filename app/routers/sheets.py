# app/routers/sheets.py
from __future__ import annotations

import logging
from typing import Annotated, List, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Path, Query, status
from sqlalchemy.orm import Session

from app.crud import activity
from app.database import get_db, session_scope
from app.integrations.google_sheets import RowPosition
from app.routers.deps import reconciler_dependency
from app.schemas.sheets import (
    ActiveSheetView,
    DeleteResultRead,
    FieldUpdate,
    FieldUpdateResult,
    SheetItemRead,
    SheetRowRead,
    SyncResultRead,
)
from app.services.sheet_reconciler import SheetReconciler, SheetRecord

logger = logging.getLogger("resellerpro-api.sheets")

RowPositionParam = Annotated[int, Path(ge=0, description="Poziția 0-based în foaia nefiltrată (header exclus)")]
ExpectedAsin = Annotated[
    Optional[str],
    Query(
        description="Dacă e dat, mutația eșuează cu 404 când rândul de la poziție are alt ASIN",
        min_length=1,
        max_length=64,
    ),
]


def run_background_sync(reconciler: SheetReconciler, records: List[SheetRecord]) -> None:
    """Sync fire-and-forget după o citire reușită; erorile se loghează, nu se propagă."""
    try:
        with session_scope() as db:
            reconciler.save_items(db, records)
    except Exception:
        logger.exception("Background sync failed for %s", reconciler.tab)


def _row_out(rec: SheetRecord) -> SheetRowRead:
    return SheetRowRead(
        row_position=rec.row_position.index,
        identifier=rec.identifier,
        display_name=rec.display_name,
        values=rec.values,
    )


def build_sheet_router(tab: str) -> APIRouter:
    """Același set de rute pentru fiecare tab (sourcing / purchasing)."""
    router = APIRouter(prefix=f"/{tab}/sheets", tags=[f"{tab}-sheets"])
    get_reconciler = reconciler_dependency(tab)

    @router.get("", response_model=ActiveSheetView, summary=f"Active {tab} rows (sheet minus archived)")
    def list_active(
        background_tasks: BackgroundTasks,
        sync: bool = Query(default=True, description="Programează sync-ul local după citire"),
        reconciler: SheetReconciler = Depends(get_reconciler),
        db: Session = Depends(get_db),
    ):
        view = reconciler.list_active(db)
        if sync:
            background_tasks.add_task(run_background_sync, reconciler, list(view.items))
        return ActiveSheetView(
            tab=tab,
            headers=view.headers,
            items=[_row_out(r) for r in view.items],
            total_rows=view.total_rows,
            active_count=len(view.items),
            archived_count=view.archived_count,
        )

    @router.get("/archived", response_model=List[SheetItemRead], summary=f"Archived {tab} rows")
    def list_archived(
        reconciler: SheetReconciler = Depends(get_reconciler),
        db: Session = Depends(get_db),
    ):
        return reconciler.list_archived(db)

    @router.post("/sync", response_model=SyncResultRead, summary=f"Read {tab} sheet and refresh the local cache")
    def sync_now(
        reconciler: SheetReconciler = Depends(get_reconciler),
        db: Session = Depends(get_db),
    ):
        view, result = reconciler.sync(db)
        return SyncResultRead(
            tab=tab,
            total_rows=view.total_rows,
            active_count=len(view.items),
            archived_count=view.archived_count,
            inserted=result.inserted,
            failed=result.failed,
            cleared=result.cleared,
            failed_identifiers=result.failed_identifiers,
        )

    @router.post("/{row_position}/archive", response_model=SheetItemRead, summary="Archive a row (sheet untouched)")
    def archive_row(
        row_position: RowPositionParam,
        asin: ExpectedAsin = None,
        reconciler: SheetReconciler = Depends(get_reconciler),
        db: Session = Depends(get_db),
    ):
        item = reconciler.archive(db, RowPosition(row_position), expected_identifier=asin)
        activity.record(
            db, "archive", f"{tab}_item", f"Archived {item.asin} ({item.product_name})", entity_id=item.asin
        )
        return item

    @router.post("/{row_position}/unarchive", status_code=status.HTTP_204_NO_CONTENT, summary="Restore an archived row")
    def unarchive_row(
        row_position: RowPositionParam,
        reconciler: SheetReconciler = Depends(get_reconciler),
        db: Session = Depends(get_db),
    ):
        reconciler.unarchive(db, RowPosition(row_position))
        activity.record(db, "unarchive", f"{tab}_item", f"Unarchived row position {row_position}", entity_id=row_position)

    @router.delete("/{row_position}", response_model=DeleteResultRead, summary="Delete a row from the sheet and the local store")
    def delete_row(
        row_position: RowPositionParam,
        asin: ExpectedAsin = None,
        reconciler: SheetReconciler = Depends(get_reconciler),
        db: Session = Depends(get_db),
    ):
        res = reconciler.delete(db, RowPosition(row_position), expected_identifier=asin)
        activity.record(db, "delete", f"{tab}_item", f"Deleted {res.asin} from {tab} sheet", entity_id=res.asin)
        return DeleteResultRead(
            asin=res.asin,
            local_records_removed=res.local_records_removed,
            local_consistent=res.local_consistent,
        )

    def _update(reconciler: SheetReconciler, db: Session, row_position: int, field: str, value: str) -> FieldUpdateResult:
        column = reconciler.columns.for_field(field)
        reconciler.update_field(RowPosition(row_position), field, value)
        activity.record(
            db, f"update_{field}", f"{tab}_item", f"Set {column} at row position {row_position}", entity_id=row_position
        )
        return FieldUpdateResult(tab=tab, row_position=row_position, field=field, column=column, value=value)

    @router.patch("/{row_position}/status", response_model=FieldUpdateResult, summary="Update the review status cell")
    def update_status(
        payload: FieldUpdate,
        row_position: RowPositionParam,
        reconciler: SheetReconciler = Depends(get_reconciler),
        db: Session = Depends(get_db),
    ):
        return _update(reconciler, db, row_position, "status", payload.value)

    @router.patch("/{row_position}/notes", response_model=FieldUpdateResult, summary="Update the notes cell")
    def update_notes(
        payload: FieldUpdate,
        row_position: RowPositionParam,
        reconciler: SheetReconciler = Depends(get_reconciler),
        db: Session = Depends(get_db),
    ):
        return _update(reconciler, db, row_position, "notes", payload.value)

    @router.patch("/{row_position}/sourcing-method", response_model=FieldUpdateResult, summary="Update the sourcing method cell")
    def update_sourcing_method(
        payload: FieldUpdate,
        row_position: RowPositionParam,
        reconciler: SheetReconciler = Depends(get_reconciler),
        db: Session = Depends(get_db),
    ):
        return _update(reconciler, db, row_position, "sourcing_method", payload.value)

    return router


sourcing_router = build_sheet_router("sourcing")
purchasing_router = build_sheet_router("purchasing")

__all__ = ("build_sheet_router", "run_background_sync", "sourcing_router", "purchasing_router")
