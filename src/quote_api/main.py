"""
AV Quote Engine - FastAPI Backend API

This API provides endpoints for BOM generation, pricing, quote assembly,
and quote PDF export.
"""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Optional, List, Dict

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import StreamingResponse
from pydantic import BaseModel, Field

from quoting import (
    BOMItem,
    Equipment,
    LaborConfig,
    PlacedEquipment,
    Quote,
    TaxConfig,
    build_quote,
    calculate_labor,
    calculate_quote_totals,
    calculate_tax,
    generate_bom,
)
from quoting.quote_model import Money
from quote_api import config
from quote_api.pdf_generator import QuotePDFGenerator

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s"
)
logger = logging.getLogger(__name__)

API_VERSION = "1.0.0"

# Initialize FastAPI app
app = FastAPI(
    title="AV Quote Engine API",
    description="BOM generation, pricing, and quoting for AV integration projects",
    version=API_VERSION,
    docs_url="/docs",
    redoc_url="/redoc"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=config.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

pdf_generator = QuotePDFGenerator()


# ============================================================================
# Pydantic Models
# ============================================================================

class EquipmentInput(BaseModel):
    id: str = Field(min_length=1)
    manufacturer: str
    model: str
    sku: str = ""
    category: str
    subcategory: str = ""
    description: str = ""
    cost: Money = Field(ge=0)
    msrp: Money = Field(default=Decimal("0"), ge=0)

    def to_equipment(self) -> Equipment:
        return Equipment(**self.model_dump())


class PlacedEquipmentInput(BaseModel):
    id: str = Field(min_length=1)
    equipment_id: str = Field(min_length=1)
    x: float = 0.0
    y: float = 0.0
    rotation: float = 0.0

    def to_placed_equipment(self) -> PlacedEquipment:
        return PlacedEquipment(**self.model_dump())


class BOMItemModel(BaseModel):
    equipment_id: str
    manufacturer: str = ""
    model: str = ""
    sku: str = ""
    category: str
    subcategory: str = ""
    description: str = ""
    quantity: int = Field(gt=0)
    unit_cost: Money = Field(ge=0)
    unit_msrp: Money = Field(default=Decimal("0"), ge=0)
    total_cost: Optional[Money] = None  # defaults to unit_cost * quantity
    total_msrp: Optional[Money] = None

    def to_bom_item(self) -> BOMItem:
        data = self.model_dump()
        if data["total_cost"] is None:
            data["total_cost"] = self.unit_cost * self.quantity
        if data["total_msrp"] is None:
            data["total_msrp"] = self.unit_msrp * self.quantity
        return BOMItem(**data)

    @classmethod
    def from_bom_item(cls, item: BOMItem) -> "BOMItemModel":
        return cls(
            equipment_id=item.equipment_id,
            manufacturer=item.manufacturer,
            model=item.model,
            sku=item.sku,
            category=getattr(item.category, "value", item.category),
            subcategory=item.subcategory,
            description=item.description,
            quantity=item.quantity,
            unit_cost=item.unit_cost,
            unit_msrp=item.unit_msrp,
            total_cost=item.total_cost,
            total_msrp=item.total_msrp
        )


class LaborConfigInput(BaseModel):
    hourly_rate: Money
    hours_per_item: Dict[str, Money] = {}
    default_hours_per_item: Optional[Money] = None
    setup_hours: Money
    programming_hours: Money
    testing_hours: Money

    def to_config(self) -> LaborConfig:
        return LaborConfig(**self.model_dump())

    @classmethod
    def from_config(cls, labor: LaborConfig) -> "LaborConfigInput":
        return cls(
            hourly_rate=labor.hourly_rate,
            hours_per_item={
                getattr(key, "value", key): hours for key, hours in labor.hours_per_item.items()
            },
            default_hours_per_item=labor.default_hours_per_item,
            setup_hours=labor.setup_hours,
            programming_hours=labor.programming_hours,
            testing_hours=labor.testing_hours
        )


class TaxConfigInput(BaseModel):
    rate: Money = Field(ge=0)
    apply_to_equipment: bool
    apply_to_labor: bool

    def to_config(self) -> TaxConfig:
        return TaxConfig(**self.model_dump())


class BOMRequest(BaseModel):
    placed_equipment: List[PlacedEquipmentInput]
    catalog: List[EquipmentInput]


class BOMTotalsResponse(BaseModel):
    total_cost: Money
    total_msrp: Money
    item_count: int
    unique_item_count: int


class BOMResponse(BaseModel):
    items: List[BOMItemModel]
    by_category: Dict[str, List[BOMItemModel]]
    totals: BOMTotalsResponse


class LaborRequest(BaseModel):
    items: List[BOMItemModel]
    labor_config: Optional[LaborConfigInput] = None


class LaborResponse(BaseModel):
    hours: Money
    cost: Money


class TaxRequest(BaseModel):
    equipment_price: Money
    labor_cost: Money
    tax_config: Optional[TaxConfigInput] = None


class TaxResponse(BaseModel):
    tax: Money


class PricingRequest(BaseModel):
    items: List[BOMItemModel]
    margin_percentage: Optional[Money] = None
    labor_config: Optional[LaborConfigInput] = None
    tax_config: Optional[TaxConfigInput] = None


class PricingResponse(BaseModel):
    equipment_cost: Money
    equipment_price: Money
    labor_cost: Money
    labor_hours: Money
    subtotal: Money
    tax: Money
    total: Money
    margin: Money
    margin_percentage: Money


class QuoteRequest(PricingRequest):
    project_id: str = Field(min_length=1)
    room_id: str = Field(min_length=1)


class QuotePDFRequest(BaseModel):
    quote: Quote
    project_name: Optional[str] = None
    labor_hours: Optional[Money] = Field(default=None, ge=0)  # defaults to the quote totals


class PricingDefaultsResponse(BaseModel):
    margin_percentage: Money
    labor_config: LaborConfigInput
    tax_config: TaxConfigInput


class HealthResponse(BaseModel):
    status: str
    timestamp: str
    version: str


def _labor_config(labor: Optional[LaborConfigInput]) -> LaborConfig:
    return labor.to_config() if labor else config.default_labor_config()


def _tax_config(tax: Optional[TaxConfigInput]) -> TaxConfig:
    return tax.to_config() if tax else config.default_tax_config()


def _margin(margin_percentage: Optional[Decimal]) -> Decimal:
    if margin_percentage is None:
        return Decimal(config.DEFAULT_MARGIN_PERCENT)
    return margin_percentage


# ============================================================================
# API Endpoints
# ============================================================================

@app.get("/", response_model=HealthResponse)
async def root():
    """Health check endpoint."""
    return HealthResponse(
        status="healthy",
        timestamp=datetime.now().isoformat(),
        version=API_VERSION
    )


@app.get("/health", response_model=HealthResponse)
async def health_check():
    """Health check endpoint."""
    return HealthResponse(
        status="healthy",
        timestamp=datetime.now().isoformat(),
        version=API_VERSION
    )


@app.get("/api/v1/pricing/defaults", response_model=PricingDefaultsResponse)
async def pricing_defaults():
    """Return the configured default margin, labor, and tax settings."""
    tax = config.default_tax_config()
    return PricingDefaultsResponse(
        margin_percentage=Decimal(config.DEFAULT_MARGIN_PERCENT),
        labor_config=LaborConfigInput.from_config(config.default_labor_config()),
        tax_config=TaxConfigInput(
            rate=tax.rate,
            apply_to_equipment=tax.apply_to_equipment,
            apply_to_labor=tax.apply_to_labor
        )
    )


@app.post("/api/v1/bom", response_model=BOMResponse)
async def create_bom(request: BOMRequest):
    """
    Generate a Bill of Materials from a room's placed equipment.

    Placements referencing equipment missing from the catalog are skipped.
    """
    try:
        bom = generate_bom(
            [placed.to_placed_equipment() for placed in request.placed_equipment],
            [equipment.to_equipment() for equipment in request.catalog]
        )

        return BOMResponse(
            items=[BOMItemModel.from_bom_item(item) for item in bom.items],
            by_category={
                getattr(category, "value", category): [BOMItemModel.from_bom_item(item) for item in items]
                for category, items in bom.by_category.items()
            },
            totals=BOMTotalsResponse(
                total_cost=bom.totals.total_cost,
                total_msrp=bom.totals.total_msrp,
                item_count=bom.totals.item_count,
                unique_item_count=bom.totals.unique_item_count
            )
        )

    except Exception as e:
        logger.exception("BOM generation failed")
        raise HTTPException(status_code=500, detail=str(e))


@app.post("/api/v1/pricing/labor", response_model=LaborResponse)
async def price_labor(request: LaborRequest):
    """Calculate labor hours and cost for BOM items."""
    try:
        labor = calculate_labor(
            [item.to_bom_item() for item in request.items],
            _labor_config(request.labor_config)
        )
        return LaborResponse(hours=labor.hours, cost=labor.cost)

    except Exception as e:
        logger.exception("Labor calculation failed")
        raise HTTPException(status_code=500, detail=str(e))


@app.post("/api/v1/pricing/tax", response_model=TaxResponse)
async def price_tax(request: TaxRequest):
    """Calculate tax on equipment price and labor cost."""
    try:
        tax = calculate_tax(
            request.equipment_price,
            request.labor_cost,
            _tax_config(request.tax_config)
        )
        return TaxResponse(tax=tax)

    except Exception as e:
        logger.exception("Tax calculation failed")
        raise HTTPException(status_code=500, detail=str(e))


@app.post("/api/v1/pricing/totals", response_model=PricingResponse)
async def price_quote(request: PricingRequest):
    """
    Calculate complete quote totals from BOM items.

    Labor and tax settings fall back to the configured defaults when omitted.

    Returns: Equipment cost and price, labor, subtotal, tax, total, and margin
    """
    try:
        result = calculate_quote_totals(
            [item.to_bom_item() for item in request.items],
            _margin(request.margin_percentage),
            _labor_config(request.labor_config),
            _tax_config(request.tax_config)
        )

        return PricingResponse(
            equipment_cost=result.equipment_cost,
            equipment_price=result.equipment_price,
            labor_cost=result.labor_cost,
            labor_hours=result.labor_hours,
            subtotal=result.subtotal,
            tax=result.tax,
            total=result.total,
            margin=result.margin,
            margin_percentage=result.margin_percentage
        )

    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.exception("Quote pricing failed")
        raise HTTPException(status_code=500, detail=str(e))


@app.post("/api/v1/quotes", response_model=Quote)
async def create_quote(request: QuoteRequest):
    """
    Build a draft quote with one section per equipment category.

    Returns: The quote with priced line items and totals
    """
    try:
        return build_quote(
            project_id=request.project_id,
            room_id=request.room_id,
            items=[item.to_bom_item() for item in request.items],
            margin_percentage=_margin(request.margin_percentage),
            labor_config=_labor_config(request.labor_config),
            tax_config=_tax_config(request.tax_config)
        )

    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.exception("Quote creation failed")
        raise HTTPException(status_code=500, detail=str(e))


@app.post("/api/v1/quotes/pdf")
async def generate_quote_pdf(request: QuotePDFRequest):
    """
    Generate a PDF document for a quote.

    Returns: PDF file as a downloadable stream
    """
    try:
        pdf_buffer = pdf_generator.generate_quote(
            quote=request.quote,
            company_name=config.COMPANY_NAME,
            project_name=request.project_name,
            labor_hours=request.labor_hours
        )

        # Create filename for download
        base_name = request.project_name or f"quote_{request.quote.id}"
        safe_name = "".join(c for c in base_name if c.isalnum() or c in (' ', '-', '_')).rstrip()
        download_filename = f"{safe_name or 'quote'}_v{request.quote.version}.pdf"

        return StreamingResponse(
            pdf_buffer,
            media_type="application/pdf",
            headers={
                "Content-Disposition": f'attachment; filename="{download_filename}"'
            }
        )

    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except Exception as e:
        logger.exception("Quote PDF generation failed")
        raise HTTPException(status_code=500, detail=str(e))


# ============================================================================
# Run server
# ============================================================================

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
