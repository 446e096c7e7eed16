# tests/test_crud.py
from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal

import pytest

from app.crud import activity
from app.crud import listing as listing_crud
from app.crud import sheet_item as crud


def _payload(asin: str, pos: int, *, tab: str = "sourcing", archived: bool = False, name: str = "Item"):
    return {
        "tab": tab,
        "row_position": pos,
        "asin": asin,
        "product_name": name,
        "brand": None,
        "cost_price": Decimal("1.00"),
        "raw": {"ASIN": asin},
        "archived": archived,
        "not_a_column": "ignored",
    }


def test_upsert_updates_existing_row(db):
    first = crud.upsert_by_identifier(db, _payload("B1", 3))
    db.commit()
    again = crud.upsert_by_identifier(db, _payload("B1", 5, archived=True, name="Renamed"))
    db.commit()

    assert again.id == first.id
    assert again.row_position == 5
    assert again.archived is True
    assert crud.get_by_identifier(db, "sourcing", "B1").product_name == "Renamed"
    assert crud.count_archived(db, "sourcing") == 1
    assert crud.count_archived(db, "purchasing") == 0


def test_delete_helpers(db):
    crud.insert_active(db, _payload("B1", 0))
    crud.insert_active(db, _payload("B2", 1))
    crud.upsert_by_identifier(db, _payload("B3", 2, archived=True))
    db.commit()

    # B1 e cache activ la altă poziție (foaie mai veche); B3 e override la poziția 2
    assert crud.delete_for_row(db, "sourcing", 5, "B1") == 1
    assert crud.delete_for_row(db, "sourcing", 7, "B3") == 0
    assert crud.delete_for_row(db, "purchasing", 1, "B2") == 0
    assert crud.clear_active(db, "sourcing") == 1
    db.commit()

    assert [i.asin for i in crud.list_by_archived(db, "sourcing", True)] == ["B3"]
    assert crud.list_by_archived(db, "sourcing", False) == []


def test_shift_positions_is_per_tab(db):
    crud.insert_active(db, _payload("S1", 4))
    crud.insert_active(db, _payload("P1", 4, tab="purchasing"))
    db.commit()

    assert crud.shift_positions_after(db, "sourcing", 2) == 1
    db.commit()
    assert crud.get_by_identifier(db, "sourcing", "S1").row_position == 3
    assert crud.get_by_identifier(db, "purchasing", "P1").row_position == 4


def test_listing_lookup_by_sku(db):
    obj = listing_crud.create(
        db, brand="Acme", cost_price=Decimal("3"), asin="B0X", product_name="Thing", today=date(2025, 1, 2)
    )
    assert obj.sku_code == "ACME_3.00_250102_B0X"
    assert obj.generated_date == "250102"
    assert listing_crud.get_by_sku(db, "ACME_3.00_250102_B0X").id == obj.id
    assert listing_crud.get_by_sku(db, "") is None

    with pytest.raises(listing_crud.DuplicateSKUError):
        listing_crud.create(
            db, brand="acme", cost_price=3, asin="B0X", product_name="Other", today=date(2025, 1, 2)
        )


def test_activity_newest_first(db):
    activity.record(db, "archive", "sourcing_item", "first", entity_id="B1")
    activity.record(db, "delete", "sourcing_item", "second", entity_id=7)
    rows = activity.list_recent(db, limit=1)
    assert [r.description for r in rows] == ["second"]
    assert rows[0].entity_id == "7"


def test_listing_sku_too_long_for_column_is_rejected(db):
    with pytest.raises(ValueError):
        listing_crud.create(db, brand=None, cost_price=1, asin="A" * 60, product_name="Long")
    assert listing_crud.list_for_export(db) == []


class _LateEvening(datetime):
    @classmethod
    def now(cls, tz=None):
        return cls(2025, 1, 2, 23, 59, 59, 999000, tzinfo=tz)


class _NextMorning(datetime):
    @classmethod
    def now(cls, tz=None):
        return cls(2025, 1, 3, 0, 0, 0, tzinfo=tz)


def test_listing_date_read_once(db, monkeypatch):
    # ceasul trece de miezul nopții între cele două citiri posibile
    monkeypatch.setattr("app.crud.listing.datetime", _LateEvening)
    monkeypatch.setattr("app.services.sku.datetime", _NextMorning)
    obj = listing_crud.create(db, brand="Acme", cost_price=3, asin="B0Y", product_name="Thing")
    assert obj.generated_date == "250102"
    assert obj.sku_code.split("_")[2] == obj.generated_date
