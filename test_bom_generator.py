#!/usr/bin/env python3
"""Test BOM generation from placed room equipment."""

import logging
import os
import sys
from decimal import Decimal

sys.path.insert(0, os.path.join(os.path.dirname(os.path.abspath(__file__)), 'src'))

from quoting import (
    Equipment,
    EquipmentCategory,
    PlacedEquipment,
    aggregate_duplicates,
    create_bom_item,
    generate_bom,
    group_by_category,
)
from quoting.bom_generator import PlacedEquipmentWithDetails

CATALOG = [
    Equipment(id="eq-1", manufacturer="Sony", model="BRC-X400", sku="BRC-X400",
              category="video", subcategory="cameras", description="PTZ Camera",
              cost=3000, msrp=4500),
    Equipment(id="eq-2", manufacturer="Shure", model="MXA920", sku="MXA920-S",
              category="audio", subcategory="microphones", description="Ceiling Mic",
              cost=2000, msrp=2999),
    Equipment(id="eq-3", manufacturer="Crestron", model="CP4", sku="CP4",
              category="control", subcategory="processors", description="Control Processor",
              cost=1500, msrp=2200),
    Equipment(id="eq-4", manufacturer="LG", model="86UR640S", sku="86UR640S",
              category="video", subcategory="displays", description="86in Display",
              cost=1899.99, msrp=2499.99),
]


def place(placement_id, equipment_id):
    return PlacedEquipment(id=placement_id, equipment_id=equipment_id)


def test_create_bom_item_multiplies_totals():
    item = create_bom_item(CATALOG[3], 3)

    assert item.equipment_id == "eq-4"
    assert item.category == EquipmentCategory.VIDEO
    assert item.quantity == 3
    assert item.unit_cost == Decimal("1899.99")
    assert item.total_cost == Decimal("5699.97")
    assert item.total_msrp == Decimal("7499.97")


def test_aggregate_duplicates_counts_placements():
    placements = [
        PlacedEquipmentWithDetails(place("p1", "eq-2"), CATALOG[1]),
        PlacedEquipmentWithDetails(place("p2", "eq-1"), CATALOG[0]),
        PlacedEquipmentWithDetails(place("p3", "eq-2"), CATALOG[1]),
    ]

    items = aggregate_duplicates(placements)

    assert [item.equipment_id for item in items] == ["eq-2", "eq-1"]
    assert [item.quantity for item in items] == [2, 1]
    assert items[0].total_cost == 4000


def test_aggregate_duplicates_empty():
    assert aggregate_duplicates([]) == []


def test_group_by_category_preserves_order():
    items = [create_bom_item(CATALOG[0], 1), create_bom_item(CATALOG[1], 1), create_bom_item(CATALOG[3], 2)]

    grouped = group_by_category(items)

    assert list(grouped) == [EquipmentCategory.VIDEO, EquipmentCategory.AUDIO]
    assert [item.equipment_id for item in grouped[EquipmentCategory.VIDEO]] == ["eq-1", "eq-4"]
    assert EquipmentCategory.INFRASTRUCTURE not in grouped


def test_generate_bom_for_room():
    placements = [
        place("p1", "eq-1"),
        place("p2", "eq-3"),
        place("p3", "eq-1"),
        place("p4", "eq-2"),
        place("p5", "eq-4"),
    ]

    bom = generate_bom(placements, CATALOG)

    # Sorted by category, then manufacturer, then model
    assert [item.equipment_id for item in bom.items] == ["eq-2", "eq-3", "eq-4", "eq-1"]
    assert list(bom.by_category) == [
        EquipmentCategory.AUDIO, EquipmentCategory.CONTROL, EquipmentCategory.VIDEO
    ]
    assert bom.totals.total_cost == Decimal("11399.99")
    assert bom.totals.total_msrp == Decimal("16198.99")
    assert bom.totals.item_count == 5
    assert bom.totals.unique_item_count == 4


def test_generate_bom_skips_unknown_equipment(caplog):
    with caplog.at_level(logging.WARNING):
        bom = generate_bom([place("p1", "eq-1"), place("p2", "missing")], CATALOG)

    assert len(bom.items) == 1
    assert bom.totals.item_count == 1
    assert "missing" in caplog.text


def test_generate_bom_empty():
    bom = generate_bom([], CATALOG)

    assert bom.items == []
    assert bom.by_category == {}
    assert bom.totals.total_cost == 0
    assert bom.totals.total_msrp == 0
    assert bom.totals.item_count == 0
    assert bom.totals.unique_item_count == 0


def test_generate_bom_with_only_unknown_equipment():
    bom = generate_bom([place("p1", "nope")], CATALOG)

    assert bom.items == []
    assert bom.totals.unique_item_count == 0
