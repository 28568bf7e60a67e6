from .bom_generator import EquipmentCategory, Equipment, PlacedEquipment, BOMItem, BOMTotals, BOMResult, create_bom_item, aggregate_duplicates, group_by_category, generate_bom
from .pricing_engine import InvalidMarginError, LaborConfig, TaxConfig, LaborResult, PricingResult, calculate_margin, calculate_markup, apply_margin_percentage, apply_markup_percentage, calculate_labor, calculate_tax, calculate_quote_totals
from .quote_model import Quote, QuoteSection, QuoteItem, QuoteTotals, QuoteStatus, ItemStatus, build_quote, totals_from_pricing, create_default_quote, create_default_quote_section, create_default_quote_item, create_default_quote_totals
