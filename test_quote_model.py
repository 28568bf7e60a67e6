#!/usr/bin/env python3
"""Test quote models, factories, and quote assembly from a BOM."""

import os
import sys
from decimal import Decimal

import pytest
from pydantic import ValidationError

sys.path.insert(0, os.path.join(os.path.dirname(os.path.abspath(__file__)), 'src'))

from quoting import (
    BOMItem,
    InvalidMarginError,
    ItemStatus,
    LaborConfig,
    Quote,
    QuoteItem,
    QuoteStatus,
    QuoteTotals,
    TaxConfig,
    build_quote,
    calculate_quote_totals,
    create_default_quote,
    create_default_quote_item,
    create_default_quote_section,
    create_default_quote_totals,
    totals_from_pricing,
)


def make_item(equipment_id, manufacturer, model, category, quantity, unit_cost):
    return BOMItem(
        equipment_id=equipment_id,
        manufacturer=manufacturer,
        model=model,
        sku=model,
        category=category,
        subcategory="",
        description="",
        quantity=quantity,
        unit_cost=unit_cost,
        unit_msrp=0,
        total_cost=Decimal(unit_cost) * quantity,
        total_msrp=0,
    )


ROOM_ITEMS = [
    make_item("eq-1", "Sony", "BRC-X400", "video", 2, 3000),
    make_item("eq-2", "Shure", "MXA920", "audio", 1, 2000),
    make_item("eq-3", "Crestron", "CP4", "control", 1, 1500),
]

LABOR = LaborConfig(
    hourly_rate=150,
    hours_per_item={"video": 2, "audio": 1.5, "control": 3, "infrastructure": 1},
    setup_hours=4,
    programming_hours=8,
    testing_hours=2,
)

TAX = TaxConfig(rate=8.5, apply_to_equipment=True, apply_to_labor=False)


# ============================================================================
# Defaults
# ============================================================================

def test_default_totals_are_zero():
    totals = create_default_quote_totals()
    assert totals.total == 0
    assert totals.margin_percentage == 0


def test_default_quote():
    quote = create_default_quote("proj-1", "room-1")

    assert quote.id
    assert quote.project_id == "proj-1"
    assert quote.room_id == "room-1"
    assert quote.version == 1
    assert quote.status == QuoteStatus.DRAFT
    assert quote.sections == []
    assert quote.created_at == quote.updated_at


def test_default_quotes_get_distinct_ids():
    assert create_default_quote("p", "r").id != create_default_quote("p", "r").id


def test_default_item_and_section():
    item = create_default_quote_item("eq-1")
    assert item.quantity == 1
    assert item.status == ItemStatus.QUOTING
    assert item.notes is None

    section = create_default_quote_section("Video", "video")
    assert section.items == []
    assert section.subtotal == 0


# ============================================================================
# Validation
# ============================================================================

def test_item_quantity_must_be_positive():
    with pytest.raises(ValidationError):
        QuoteItem(id="i1", equipment_id="eq-1", quantity=0,
                  unit_cost=1, unit_price=1, margin=0, total=0)


def test_item_amounts_cannot_be_negative():
    with pytest.raises(ValidationError):
        QuoteItem(id="i1", equipment_id="eq-1", quantity=1,
                  unit_cost=-5, unit_price=1, margin=0, total=1)


def test_item_margin_can_be_negative():
    item = QuoteItem(id="i1", equipment_id="eq-1", quantity=1,
                     unit_cost=100, unit_price=80, margin=-20, total=80)
    assert item.margin == -20


def test_quote_rejects_unknown_status():
    with pytest.raises(ValidationError):
        Quote(id="q1", project_id="p1", room_id="r1", status="lost",
              created_at="2024-01-01T00:00:00", updated_at="2024-01-01T00:00:00")


def test_quote_requires_ids():
    with pytest.raises(ValidationError):
        Quote(id="", project_id="p1", room_id="r1",
              created_at="2024-01-01T00:00:00", updated_at="2024-01-01T00:00:00")


def test_totals_reject_negative_total():
    with pytest.raises(ValidationError):
        QuoteTotals(total=-1)


def test_totals_allow_negative_margin():
    totals = QuoteTotals(margin=-10, margin_percentage=-5)
    assert totals.margin == -10


# ============================================================================
# Quote assembly
# ============================================================================

def test_totals_from_pricing():
    pricing = calculate_quote_totals(ROOM_ITEMS, 25, LABOR, TAX)
    totals = totals_from_pricing(pricing)

    assert totals.equipment == pricing.equipment_price
    assert totals.labor == pricing.labor_cost
    assert totals.labor_hours == Decimal("22.5")
    assert totals.subtotal == pricing.subtotal
    assert totals.tax == pricing.tax
    assert totals.total == pricing.total
    assert totals.margin == pricing.margin
    assert totals.margin_percentage == 25


def test_build_quote_sections():
    quote = build_quote("proj-1", "room-1", ROOM_ITEMS, 25, LABOR, TAX)

    assert quote.status == QuoteStatus.DRAFT
    assert [section.category for section in quote.sections] == ["video", "audio", "control"]
    assert [section.name for section in quote.sections] == ["Video", "Audio", "Control"]

    video = quote.sections[0].items[0]
    assert video.name == "Sony BRC-X400"
    assert video.quantity == 2
    assert video.unit_price == Decimal("4000.00")
    assert video.total == Decimal("8000.00")
    assert video.margin == 2000

    audio = quote.sections[1].items[0]
    assert audio.unit_price == Decimal("2666.67")
    assert quote.sections[1].subtotal == Decimal("2666.67")


def test_build_quote_totals():
    quote = build_quote("proj-1", "room-1", ROOM_ITEMS, 25, LABOR, TAX)

    assert quote.totals.equipment == Decimal("12666.67")
    assert quote.totals.labor == 3375
    assert quote.totals.tax == Decimal("1076.67")
    assert quote.totals.total == Decimal("17118.34")
    assert sum(section.subtotal for section in quote.sections) == quote.totals.equipment


def test_build_quote_unknown_category_section():
    items = [make_item("eq-9", "Lutron", "HomeWorks", "lighting", 1, 800)]
    quote = build_quote("proj-1", "room-1", items, 20, LABOR, TAX)

    assert quote.sections[0].category == "lighting"
    assert quote.sections[0].name == "Lighting"


def test_build_quote_empty_bom():
    quote = build_quote("proj-1", "room-1", [], 25, LABOR, TAX)

    assert quote.sections == []
    assert quote.totals.total == 2100
    assert quote.totals.margin_percentage == 0


def test_build_quote_rejects_margin_of_100():
    with pytest.raises(InvalidMarginError):
        build_quote("proj-1", "room-1", ROOM_ITEMS, 100, LABOR, TAX)


def test_quote_json_uses_plain_numbers():
    quote = build_quote("proj-1", "room-1", ROOM_ITEMS, 25, LABOR, TAX)
    data = quote.model_dump(mode="json")

    assert data["status"] == "draft"
    assert data["totals"]["total"] == 17118.34
    assert data["sections"][0]["items"][0]["status"] == "quoting"

    restored = Quote.model_validate(data)
    assert float(restored.totals.total) == 17118.34
