"""
AV Quote Engine - Quote Model

Quotes, sections, and line items, validated with pydantic, plus the
factories that build them from a priced BOM.
"""

import uuid
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Annotated, List, Optional

from pydantic import BaseModel, Field, PlainSerializer

from .bom_generator import BOMItem, EquipmentCategory, group_by_category
from .money import ZERO, Number, round_currency
from .pricing_engine import (
    LaborConfig,
    PricingResult,
    TaxConfig,
    apply_margin_percentage,
    calculate_quote_totals,
)

# Decimal in Python, plain number in JSON
Money = Annotated[Decimal, PlainSerializer(float, return_type=float, when_used="json")]


class QuoteStatus(str, Enum):
    DRAFT = "draft"
    QUOTING = "quoting"
    CLIENT_REVIEW = "client_review"
    APPROVED = "approved"
    ORDERED = "ordered"


class ItemStatus(str, Enum):
    QUOTING = "quoting"
    CLIENT_REVIEW = "client_review"
    ORDERED = "ordered"
    DELIVERED = "delivered"
    INSTALLED = "installed"


class QuoteTotals(BaseModel):
    """Quote-level totals. margin and margin_percentage may be negative."""
    equipment: Money = Field(default=ZERO, ge=0)
    labor: Money = Field(default=ZERO, ge=0)
    labor_hours: Money = Field(default=ZERO, ge=0)
    subtotal: Money = Field(default=ZERO, ge=0)
    tax: Money = Field(default=ZERO, ge=0)
    total: Money = Field(default=ZERO, ge=0)
    margin: Money = ZERO
    margin_percentage: Money = ZERO


class QuoteItem(BaseModel):
    id: str = Field(min_length=1)
    equipment_id: str = Field(min_length=1)
    name: str = ""
    category: str = ""
    quantity: int = Field(gt=0)
    unit_cost: Money = Field(ge=0)
    unit_price: Money = Field(ge=0)
    margin: Money  # negative for loss leaders
    total: Money = Field(ge=0)
    status: ItemStatus = ItemStatus.QUOTING
    notes: Optional[str] = None


class QuoteSection(BaseModel):
    id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    category: str = Field(min_length=1)
    items: List[QuoteItem] = Field(default_factory=list)
    subtotal: Money = Field(default=ZERO, ge=0)


class Quote(BaseModel):
    id: str = Field(min_length=1)
    project_id: str = Field(min_length=1)
    room_id: str = Field(min_length=1)
    version: int = Field(default=1, gt=0)
    status: QuoteStatus = QuoteStatus.DRAFT
    sections: List[QuoteSection] = Field(default_factory=list)
    totals: QuoteTotals = Field(default_factory=QuoteTotals)
    created_at: str = Field(min_length=1)
    updated_at: str = Field(min_length=1)


SECTION_NAMES = {
    EquipmentCategory.VIDEO: "Video",
    EquipmentCategory.AUDIO: "Audio",
    EquipmentCategory.CONTROL: "Control",
    EquipmentCategory.INFRASTRUCTURE: "Infrastructure",
}


def generate_id() -> str:
    return uuid.uuid4().hex


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _category_value(category) -> str:
    return category.value if isinstance(category, EquipmentCategory) else str(category)


# ============================================================================
# Factories
# ============================================================================

def create_default_quote_totals() -> QuoteTotals:
    return QuoteTotals()


def create_default_quote_item(equipment_id: str) -> QuoteItem:
    return QuoteItem(
        id=generate_id(),
        equipment_id=equipment_id,
        quantity=1,
        unit_cost=ZERO,
        unit_price=ZERO,
        margin=ZERO,
        total=ZERO,
    )


def create_default_quote_section(name: str, category: str) -> QuoteSection:
    return QuoteSection(id=generate_id(), name=name, category=category)


def create_default_quote(project_id: str, room_id: str) -> Quote:
    now = _now()
    return Quote(
        id=generate_id(),
        project_id=project_id,
        room_id=room_id,
        created_at=now,
        updated_at=now,
    )


def totals_from_pricing(result: PricingResult) -> QuoteTotals:
    """Map a PricingResult onto the totals stored with a quote."""
    return QuoteTotals(
        equipment=result.equipment_price,
        labor=result.labor_cost,
        labor_hours=result.labor_hours,
        subtotal=result.subtotal,
        tax=result.tax,
        total=result.total,
        margin=result.margin,
        margin_percentage=result.margin_percentage,
    )


def quote_item_from_bom(item: BOMItem, margin_percentage: Number) -> QuoteItem:
    """Price a single BOM line at the given margin."""
    unit_price = round_currency(apply_margin_percentage(item.unit_cost, margin_percentage))
    total = unit_price * item.quantity
    return QuoteItem(
        id=generate_id(),
        equipment_id=item.equipment_id,
        name=f"{item.manufacturer} {item.model}".strip(),
        category=_category_value(item.category),
        quantity=item.quantity,
        unit_cost=item.unit_cost,
        unit_price=unit_price,
        margin=total - item.total_cost,
        total=total,
    )


def build_quote(
    project_id: str,
    room_id: str,
    items: List[BOMItem],
    margin_percentage: Number,
    labor_config: LaborConfig,
    tax_config: TaxConfig
) -> Quote:
    """
    Build a draft quote from BOM items.

    Each equipment category present in the BOM becomes a section. Line
    prices are rounded per unit, so section subtotals can differ by a few
    cents from the quote's equipment price, which is priced on the whole
    BOM.

    Args:
        project_id: Owning project
        room_id: Room the BOM was generated for
        items: BOM items to quote
        margin_percentage: Equipment margin (must be below 100)
        labor_config: Labor configuration
        tax_config: Tax configuration

    Returns:
        A validated Quote

    Raises:
        InvalidMarginError: If margin_percentage is 100 or more
    """
    pricing = calculate_quote_totals(items, margin_percentage, labor_config, tax_config)

    sections = []
    for category, category_items in group_by_category(items).items():
        quote_items = [quote_item_from_bom(item, margin_percentage) for item in category_items]
        category_value = _category_value(category)
        sections.append(QuoteSection(
            id=generate_id(),
            name=SECTION_NAMES.get(category, category_value.title()),
            category=category_value,
            items=quote_items,
            subtotal=sum((quote_item.total for quote_item in quote_items), ZERO),
        ))

    now = _now()
    return Quote(
        id=generate_id(),
        project_id=project_id,
        room_id=room_id,
        sections=sections,
        totals=totals_from_pricing(pricing),
        created_at=now,
        updated_at=now,
    )
