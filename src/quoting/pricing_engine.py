"""
AV Quote Engine - Pricing Engine

Margin, markup, labor estimation, and tax calculations used to turn a
bill of materials into quote totals.

Margin is profit as a percentage of the sale price; markup is profit as a
percentage of cost.
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Dict, List, Optional, Union

from .bom_generator import BOMItem, EquipmentCategory, parse_category
from .money import HUNDRED, ZERO, Number, round_currency, to_decimal

logger = logging.getLogger(__name__)


class InvalidMarginError(ValueError):
    """Raised when a margin percentage of 100 or more is requested."""

    def __init__(self, margin_percentage: Number):
        self.margin_percentage = margin_percentage
        super().__init__("Margin percentage must be less than 100%")


@dataclass
class LaborConfig:
    """Labor calculation configuration."""
    hourly_rate: Decimal
    hours_per_item: Dict[Union[EquipmentCategory, str], Decimal] = field(default_factory=dict)
    setup_hours: Decimal = ZERO
    programming_hours: Decimal = ZERO
    testing_hours: Decimal = ZERO
    default_hours_per_item: Optional[Decimal] = None  # hours for categories not in hours_per_item

    def __post_init__(self):
        self.hourly_rate = to_decimal(self.hourly_rate)
        self.hours_per_item = {
            parse_category(key): to_decimal(hours) for key, hours in self.hours_per_item.items()
        }
        self.setup_hours = to_decimal(self.setup_hours)
        self.programming_hours = to_decimal(self.programming_hours)
        self.testing_hours = to_decimal(self.testing_hours)
        if self.default_hours_per_item is not None:
            self.default_hours_per_item = to_decimal(self.default_hours_per_item)

    @property
    def fixed_hours(self) -> Decimal:
        """Hours charged once per quote regardless of the BOM."""
        return self.setup_hours + self.programming_hours + self.testing_hours

    def hours_for(self, category: Union[EquipmentCategory, str]) -> Decimal:
        """Hours per unit for a category, falling back to the default."""
        hours = self.hours_per_item.get(category)
        if hours is not None:
            return hours
        if self.default_hours_per_item is not None:
            return self.default_hours_per_item
        return ZERO


@dataclass
class TaxConfig:
    """Tax calculation configuration. rate is a percentage (8.5 = 8.5%)."""
    rate: Decimal
    apply_to_equipment: bool = True
    apply_to_labor: bool = False

    def __post_init__(self):
        self.rate = to_decimal(self.rate)


@dataclass(frozen=True)
class LaborResult:
    """Labor hours and cost for a BOM."""
    hours: Decimal
    cost: Decimal


@dataclass(frozen=True)
class PricingResult:
    """Complete pricing for a quote."""
    equipment_cost: Decimal
    equipment_price: Decimal
    labor_cost: Decimal
    labor_hours: Decimal
    subtotal: Decimal
    tax: Decimal
    total: Decimal
    margin: Decimal
    margin_percentage: Decimal


# ============================================================================
# Margin and Markup
# ============================================================================

def calculate_margin(cost: Number, price: Number) -> Decimal:
    """Margin (profit) in currency: price - cost."""
    return to_decimal(price) - to_decimal(cost)


def calculate_markup(cost: Number, price: Number) -> Decimal:
    """
    Markup percentage: (price - cost) / cost * 100.

    Returns 0 when cost is 0.
    """
    cost = to_decimal(cost)
    if cost == 0:
        return ZERO
    return (to_decimal(price) - cost) / cost * HUNDRED


def apply_margin_percentage(cost: Number, margin_percentage: Number) -> Decimal:
    """
    Price that yields the given margin: cost / (1 - margin/100).

    Args:
        cost: Equipment cost
        margin_percentage: Desired margin as a percentage of price

    Returns:
        Sale price

    Raises:
        InvalidMarginError: If margin_percentage is 100 or more
    """
    cost = to_decimal(cost)
    margin = to_decimal(margin_percentage)
    if margin >= HUNDRED:
        raise InvalidMarginError(margin_percentage)
    if margin == 0:
        return cost
    return cost / (1 - margin / HUNDRED)


def apply_markup_percentage(cost: Number, markup_percentage: Number) -> Decimal:
    """Price after markup: cost * (1 + markup/100). Negative markup is allowed."""
    return to_decimal(cost) * (1 + to_decimal(markup_percentage) / HUNDRED)


# ============================================================================
# Labor
# ============================================================================

def calculate_labor(items: List[BOMItem], config: LaborConfig) -> LaborResult:
    """
    Calculate labor hours and cost for a BOM.

    Hours are the fixed setup, programming and testing hours plus, for
    every item, the per-unit hours of its category times its quantity.
    Categories missing from hours_per_item use default_hours_per_item,
    or contribute nothing when no default is configured.

    Args:
        items: BOM items to install
        config: Labor configuration

    Returns:
        LaborResult with total hours and cost
    """
    hours = config.fixed_hours

    for item in items:
        hours += config.hours_for(item.category) * item.quantity

    return LaborResult(hours=hours, cost=hours * config.hourly_rate)


# ============================================================================
# Tax
# ============================================================================

def calculate_tax(equipment_price: Number, labor_cost: Number, config: TaxConfig) -> Decimal:
    """
    Calculate tax on the taxable parts of a quote.

    Args:
        equipment_price: Equipment price after margin
        labor_cost: Labor cost
        config: Tax configuration

    Returns:
        Tax amount rounded to cents
    """
    taxable = ZERO

    if config.apply_to_equipment:
        taxable += to_decimal(equipment_price)

    if config.apply_to_labor:
        taxable += to_decimal(labor_cost)

    return round_currency(taxable * config.rate / HUNDRED)


# ============================================================================
# Quote Totals
# ============================================================================

def calculate_quote_totals(
    items: List[BOMItem],
    margin_percentage: Number,
    labor_config: LaborConfig,
    tax_config: TaxConfig
) -> PricingResult:
    """
    Calculate complete quote totals from BOM items.

    Args:
        items: BOM items to price
        margin_percentage: Desired equipment margin (must be below 100)
        labor_config: Labor configuration
        tax_config: Tax configuration

    Returns:
        PricingResult with currency amounts rounded to cents

    Raises:
        InvalidMarginError: If margin_percentage is 100 or more
    """
    equipment_cost = sum((item.total_cost for item in items), ZERO)
    equipment_price = apply_margin_percentage(equipment_cost, margin_percentage)

    labor = calculate_labor(items, labor_config)

    subtotal = round_currency(equipment_price + labor.cost)
    tax = calculate_tax(equipment_price, labor.cost, tax_config)

    # No equipment means no equipment margin to report
    if equipment_cost == 0:
        margin = ZERO
        reported_percentage = ZERO
    else:
        margin = round_currency(equipment_price - equipment_cost)
        reported_percentage = to_decimal(margin_percentage)

    result = PricingResult(
        equipment_cost=equipment_cost,
        equipment_price=round_currency(equipment_price),
        labor_cost=labor.cost,
        labor_hours=labor.hours,
        subtotal=subtotal,
        tax=tax,
        total=subtotal + tax,
        margin=margin,
        margin_percentage=reported_percentage,
    )
    logger.debug(
        "Priced %d BOM items: cost=%s price=%s labor=%s total=%s",
        len(items), result.equipment_cost, result.equipment_price,
        result.labor_cost, result.total
    )
    return result
