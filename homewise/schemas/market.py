"""Market snapshot gathered during the fetch phase.

Every field has a default so a snapshot can be assembled piecemeal when
individual sources fail.
"""
from datetime import date, datetime, timezone
from pydantic import BaseModel, Field
from typing import List, Optional

from homewise.schemas.profile import PropertyInfo


class MortgageRates(BaseModel):
    """Average mortgage rates, in percent."""
    thirty_year_fixed: float = 6.5
    fifteen_year_fixed: float = 5.8
    federal_funds_rate: float = 4.33
    data_date: str = Field(default_factory=lambda: date.today().isoformat())
    source: str = "fallback (API unavailable)"


class MedianHomePrices(BaseModel):
    """National median sale prices."""
    national: float = 420_400
    national_new: float = 400_500
    case_shiller_index: float = 328.0
    data_date: str = "2025-Q3"


class InflationData(BaseModel):
    """Shelter and headline CPI figures."""
    shelter_cpi_current: float = 340.0
    shelter_cpi_year_ago: float = 325.0
    shelter_inflation_rate: float = 4.6
    general_inflation_rate: float = 2.9


class AreaSnapshot(BaseModel):
    """Curated metro-area data for the buyer's target location."""
    location: str
    state: str
    property_tax_rate: float
    median_home_price: float
    school_rating: str
    cost_of_living_index: float
    notes: Optional[str] = None


class MarketSnapshot(BaseModel):
    """Everything fetched in phase one of an analysis run."""
    mortgage_rates: MortgageRates = Field(default_factory=MortgageRates)
    median_home_prices: MedianHomePrices = Field(default_factory=MedianHomePrices)
    inflation: InflationData = Field(default_factory=InflationData)
    area: Optional[AreaSnapshot] = None
    listing: Optional[PropertyInfo] = None
    fallbacks_used: List[str] = Field(default_factory=list, description="Sources replaced by defaults")
    fetched_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
