"""
AV Quote Engine - BOM Generator

Builds a Bill of Materials from the equipment placed in a room: placements
of the same catalog item are combined into one line, lines are sorted and
grouped by equipment category, and cost/MSRP totals are summed.
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Dict, List, Union

from .money import ZERO, to_decimal

logger = logging.getLogger(__name__)


class EquipmentCategory(str, Enum):
    """Equipment categories used for grouping and labor lookups."""
    VIDEO = "video"
    AUDIO = "audio"
    CONTROL = "control"
    INFRASTRUCTURE = "infrastructure"


EQUIPMENT_SUBCATEGORIES: Dict[EquipmentCategory, List[str]] = {
    EquipmentCategory.VIDEO: ["displays", "cameras", "codecs", "switchers", "extenders"],
    EquipmentCategory.AUDIO: ["microphones", "speakers", "dsp", "amplifiers", "mixers"],
    EquipmentCategory.CONTROL: ["processors", "touch-panels", "keypads", "interfaces"],
    EquipmentCategory.INFRASTRUCTURE: ["racks", "mounts", "cables", "connectors", "power"],
}


def parse_category(value: Union[str, EquipmentCategory]) -> Union[EquipmentCategory, str]:
    """Return the matching EquipmentCategory, or the raw string if unknown."""
    try:
        return EquipmentCategory(value)
    except ValueError:
        return value


@dataclass
class Equipment:
    """A catalog equipment entry."""
    id: str
    manufacturer: str
    model: str
    sku: str
    category: Union[EquipmentCategory, str]
    subcategory: str = ""
    description: str = ""
    cost: Decimal = ZERO
    msrp: Decimal = ZERO

    def __post_init__(self):
        self.category = parse_category(self.category)
        self.cost = to_decimal(self.cost)
        self.msrp = to_decimal(self.msrp)


@dataclass
class PlacedEquipment:
    """One placement of a catalog item in a room layout."""
    id: str
    equipment_id: str
    x: float = 0.0
    y: float = 0.0
    rotation: float = 0.0


@dataclass
class BOMItem:
    """
    A BOM line: one catalog item expanded by quantity.

    total_cost and total_msrp are kept by whoever builds the item
    (see create_bom_item); pricing only sums them.
    """
    equipment_id: str
    manufacturer: str
    model: str
    sku: str
    category: Union[EquipmentCategory, str]
    subcategory: str
    description: str
    quantity: int
    unit_cost: Decimal
    unit_msrp: Decimal
    total_cost: Decimal
    total_msrp: Decimal

    def __post_init__(self):
        self.category = parse_category(self.category)
        self.unit_cost = to_decimal(self.unit_cost)
        self.unit_msrp = to_decimal(self.unit_msrp)
        self.total_cost = to_decimal(self.total_cost)
        self.total_msrp = to_decimal(self.total_msrp)


@dataclass
class PlacedEquipmentWithDetails:
    """A placement joined with its catalog entry."""
    placed_equipment: PlacedEquipment
    equipment: Equipment


@dataclass
class BOMTotals:
    """Summary totals for a BOM."""
    total_cost: Decimal = ZERO
    total_msrp: Decimal = ZERO
    item_count: int = 0
    unique_item_count: int = 0


@dataclass
class BOMResult:
    """Complete BOM: sorted lines, lines by category, and totals."""
    items: List[BOMItem] = field(default_factory=list)
    by_category: Dict[Union[EquipmentCategory, str], List[BOMItem]] = field(default_factory=dict)
    totals: BOMTotals = field(default_factory=BOMTotals)


def create_bom_item(equipment: Equipment, quantity: int) -> BOMItem:
    """Create a BOM line for a catalog item at the given quantity."""
    return BOMItem(
        equipment_id=equipment.id,
        manufacturer=equipment.manufacturer,
        model=equipment.model,
        sku=equipment.sku,
        category=equipment.category,
        subcategory=equipment.subcategory,
        description=equipment.description,
        quantity=quantity,
        unit_cost=equipment.cost,
        unit_msrp=equipment.msrp,
        total_cost=equipment.cost * quantity,
        total_msrp=equipment.msrp * quantity,
    )


def aggregate_duplicates(items: List[PlacedEquipmentWithDetails]) -> List[BOMItem]:
    """
    Combine placements of the same equipment into single BOM lines.

    Args:
        items: Placements joined with their catalog entries

    Returns:
        One BOMItem per equipment id, in first-seen order
    """
    grouped: Dict[str, List] = {}

    for item in items:
        equipment_id = item.equipment.id
        if equipment_id in grouped:
            grouped[equipment_id][1] += 1
        else:
            grouped[equipment_id] = [item.equipment, 1]

    return [create_bom_item(equipment, count) for equipment, count in grouped.values()]


def group_by_category(items: List[BOMItem]) -> Dict[Union[EquipmentCategory, str], List[BOMItem]]:
    """Group BOM lines by equipment category, preserving their order."""
    grouped: Dict[Union[EquipmentCategory, str], List[BOMItem]] = {}

    for item in items:
        grouped.setdefault(item.category, []).append(item)

    return grouped


def _category_key(category: Union[EquipmentCategory, str]) -> str:
    return category.value if isinstance(category, EquipmentCategory) else str(category)


def generate_bom(
    placed_equipment: List[PlacedEquipment],
    equipment_catalog: List[Equipment]
) -> BOMResult:
    """
    Generate a complete BOM from the equipment placed in a room.

    Placements that reference equipment missing from the catalog are
    skipped.

    Args:
        placed_equipment: Equipment placements in the room
        equipment_catalog: Catalog entries with pricing details

    Returns:
        BOMResult with sorted items, grouping by category, and totals
    """
    if not placed_equipment:
        return BOMResult()

    equipment_map = {equipment.id: equipment for equipment in equipment_catalog}

    with_details = []
    for placed in placed_equipment:
        equipment = equipment_map.get(placed.equipment_id)
        if equipment is None:
            logger.warning(
                "Skipping placement %s: equipment %s not in catalog",
                placed.id, placed.equipment_id
            )
            continue
        with_details.append(PlacedEquipmentWithDetails(placed_equipment=placed, equipment=equipment))

    # Sort by category, then manufacturer, then model
    items = sorted(
        aggregate_duplicates(with_details),
        key=lambda item: (_category_key(item.category), item.manufacturer, item.model)
    )

    totals = BOMTotals(
        total_cost=sum((item.total_cost for item in items), ZERO),
        total_msrp=sum((item.total_msrp for item in items), ZERO),
        item_count=sum(item.quantity for item in items),
        unique_item_count=len(items),
    )

    return BOMResult(
        items=items,
        by_category=group_by_category(items),
        totals=totals,
    )
