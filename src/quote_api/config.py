"""
Configuration for the AV Quote Engine API.

Values come from the environment (a local .env file is loaded if present).
"""

import os

from dotenv import load_dotenv

from quoting import EquipmentCategory, LaborConfig, TaxConfig

load_dotenv()


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
COMPANY_NAME = os.getenv("QUOTE_COMPANY_NAME", "AV Quote Engine")
CORS_ORIGINS = [origin.strip() for origin in os.getenv("QUOTE_CORS_ORIGINS", "*").split(",") if origin.strip()]

# Pricing defaults
DEFAULT_MARGIN_PERCENT = os.getenv("QUOTE_DEFAULT_MARGIN", "25")
LABOR_HOURLY_RATE = os.getenv("QUOTE_LABOR_RATE", "150")
SETUP_HOURS = os.getenv("QUOTE_SETUP_HOURS", "4")
PROGRAMMING_HOURS = os.getenv("QUOTE_PROGRAMMING_HOURS", "8")
TESTING_HOURS = os.getenv("QUOTE_TESTING_HOURS", "2")
TAX_RATE = os.getenv("QUOTE_TAX_RATE", "0")
TAX_EQUIPMENT = _env_bool("QUOTE_TAX_EQUIPMENT", True)
TAX_LABOR = _env_bool("QUOTE_TAX_LABOR", False)

# Installation hours per unit
HOURS_PER_ITEM = {
    EquipmentCategory.VIDEO: "2",
    EquipmentCategory.AUDIO: "1.5",
    EquipmentCategory.CONTROL: "3",
    EquipmentCategory.INFRASTRUCTURE: "1",
}


def default_labor_config() -> LaborConfig:
    """Labor configuration built from the environment."""
    return LaborConfig(
        hourly_rate=LABOR_HOURLY_RATE,
        hours_per_item=dict(HOURS_PER_ITEM),
        setup_hours=SETUP_HOURS,
        programming_hours=PROGRAMMING_HOURS,
        testing_hours=TESTING_HOURS,
    )


def default_tax_config() -> TaxConfig:
    """Tax configuration built from the environment."""
    return TaxConfig(
        rate=TAX_RATE,
        apply_to_equipment=TAX_EQUIPMENT,
        apply_to_labor=TAX_LABOR,
    )
