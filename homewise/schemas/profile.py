"""Buyer profile submitted to the analysis endpoint."""
from pydantic import BaseModel, ConfigDict, Field
from typing import List, Literal, Optional


class DebtItem(BaseModel):
    """One recurring debt obligation."""
    model_config = ConfigDict(frozen=True)

    type: Literal["student_loan", "car_loan", "credit_card", "personal_loan", "other"]
    monthly_payment: float = Field(..., ge=0)
    balance: Optional[float] = Field(None, ge=0)
    interest_rate: Optional[float] = Field(None, ge=0, le=1)


class PropertyInfo(BaseModel):
    """A specific listing the buyer is considering."""
    model_config = ConfigDict(frozen=True)

    source: str = Field("manual", description="manual or url_extracted")
    source_url: Optional[str] = None
    address: Optional[str] = None
    listing_price: float = Field(..., ge=0, description="Listing price in dollars")
    property_tax_annual: Optional[float] = Field(None, ge=0)
    hoa_monthly: Optional[float] = Field(None, ge=0)
    square_footage: Optional[float] = Field(None, ge=0)
    bedrooms: Optional[float] = Field(None, ge=0)
    bathrooms: Optional[float] = Field(None, ge=0)
    year_built: Optional[int] = Field(None, ge=1800, le=2030)
    property_type: Optional[str] = None


class InvestmentInputs(BaseModel):
    """Optional rental-investment assumptions."""
    model_config = ConfigDict(frozen=True)

    expected_rent: Optional[float] = Field(None, ge=0, description="Expected monthly rent")
    vacancy_rate: float = Field(0.05, ge=0, le=1)
    management_fee_rate: float = Field(0.08, ge=0, le=1)
    maintenance_rate: float = Field(0.01, ge=0, le=1, description="Annual maintenance as fraction of price")
    appreciation_rate: float = Field(0.035, ge=-0.5, le=0.5)
    holding_period_years: int = Field(10, ge=1, le=50)


class Profile(BaseModel):
    """
    User-submitted financial and location inputs.

    Immutable once validated; the analysis run owns it for its lifetime.
    """
    model_config = ConfigDict(frozen=True)

    annual_gross_income: float = Field(..., ge=1, le=10_000_000)
    additional_income: Optional[float] = Field(None, ge=0, le=10_000_000)
    monthly_debt_payments: float = Field(..., ge=0, le=500_000)
    debt_breakdown: Optional[List[DebtItem]] = None
    down_payment_savings: float = Field(..., ge=0, le=100_000_000)
    additional_savings: Optional[float] = Field(None, ge=0, le=100_000_000)
    credit_score: int = Field(..., ge=300, le=850)
    target_location: Optional[str] = Field(None, max_length=500)
    preferred_loan_term: Literal[15, 20, 30] = 30
    loan_type: Literal["fixed", "5/1_arm", "7/1_arm"] = "fixed"
    military_veteran: bool = False
    first_time_buyer: bool = False
    household_size: Optional[int] = Field(None, ge=1, le=20)
    monthly_expenses: Optional[float] = Field(None, ge=0, le=500_000)
    current_monthly_rent: Optional[float] = Field(None, ge=0, le=100_000)
    listing: Optional[PropertyInfo] = None
    investment_inputs: Optional[InvestmentInputs] = None

    @property
    def total_annual_income(self) -> float:
        return self.annual_gross_income + (self.additional_income or 0)

    @property
    def gross_monthly_income(self) -> float:
        return self.total_annual_income / 12

    @property
    def total_savings(self) -> float:
        return self.down_payment_savings + (self.additional_savings or 0)
