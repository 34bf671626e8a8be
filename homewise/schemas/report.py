"""Computed report models.

The deterministic sub-reports produced from a Profile and a MarketSnapshot.
The advisor chat treats a report as an opaque value and only reads the
handful of headline numbers it needs.
"""
from datetime import datetime
from pydantic import BaseModel, Field
from typing import Dict, List, Literal, Optional

from homewise.schemas.market import MarketSnapshot
from homewise.schemas.profile import PropertyInfo


RiskLevel = Literal["low", "moderate", "high", "very_high"]
Severity = Literal["manageable", "strained", "unsustainable"]


# ============================================================================
# AFFORDABILITY
# ============================================================================

class PaymentBreakdown(BaseModel):
    """First-month payment split (PITI + PMI)."""
    principal: float
    interest: float
    property_tax: float
    home_insurance: float
    pmi: float
    total_monthly: float


class DTIAnalysis(BaseModel):
    """Front-end and back-end debt-to-income ratios, in percent."""
    front_end_ratio: float
    back_end_ratio: float
    front_end_status: Literal["safe", "moderate", "risky"]
    back_end_status: Literal["safe", "moderate", "risky"]
    max_front_end: float = 28
    max_back_end: float = 36


class AmortizationYear(BaseModel):
    year: int
    principal_paid: float
    interest_paid: float
    remaining_balance: float
    equity_percent: float


class AffordabilityResult(BaseModel):
    """How much house the buyer can carry."""
    max_home_price: float = Field(..., description="Highest price that fits the 28/36 rule")
    recommended_home_price: float = Field(..., description="85% of the max price")
    down_payment_amount: float
    down_payment_percent: float
    loan_amount: float
    interest_rate: float = Field(..., description="Annual rate in percent")
    loan_term_years: int
    max_housing_payment: float = Field(..., description="Income-derived monthly housing ceiling")
    gross_monthly_income: float
    monthly_debt_payments: float
    monthly_payment: PaymentBreakdown = Field(..., description="Payment at the recommended price")
    dti_analysis: DTIAnalysis
    limiting_factor: str
    amortization_summary: List[AmortizationYear] = Field(default_factory=list)


# ============================================================================
# RISK
# ============================================================================

class StressTest(BaseModel):
    scenario: str
    description: str
    new_monthly_payment: float
    new_dti: float
    can_afford: bool
    severity: Severity
    months_of_runway: Optional[int] = None


class RiskFlag(BaseModel):
    category: Literal["debt", "savings", "credit", "market", "income"]
    severity: Literal["info", "warning", "critical"]
    message: str
    recommendation: str


class EmergencyFundAnalysis(BaseModel):
    current_emergency_fund: float
    post_purchase_emergency_fund: float
    monthly_expenses: float
    months_covered: int
    adequate: bool
    recommendation: str


class RiskReport(BaseModel):
    overall_risk_level: RiskLevel
    overall_score: int = Field(..., ge=0, le=100, description="Higher is safer")
    stress_tests: List[StressTest] = Field(default_factory=list)
    risk_flags: List[RiskFlag] = Field(default_factory=list)
    emergency_fund_analysis: EmergencyFundAnalysis


# ============================================================================
# RECOMMENDATIONS
# ============================================================================

class LoanOption(BaseModel):
    type: Literal["conventional", "fha", "va", "usda"]
    eligible: bool
    eligibility_reason: str
    min_down_payment_percent: float
    pmi_required: bool
    pros: List[str] = Field(default_factory=list)
    cons: List[str] = Field(default_factory=list)


class SavingsStrategy(BaseModel):
    title: str
    description: str
    potential_savings: float
    timeframe_months: int
    difficulty: Literal["easy", "moderate", "hard"]


class ClosingCostItem(BaseModel):
    item: str
    amount: float
    category: Literal["lender", "title_escrow", "government", "prepaid"]


class ClosingCostEstimate(BaseModel):
    low_estimate: float
    high_estimate: float
    breakdown: List[ClosingCostItem] = Field(default_factory=list)


class Recommendations(BaseModel):
    loan_options: List[LoanOption] = Field(default_factory=list)
    savings_strategies: List[SavingsStrategy] = Field(default_factory=list)
    closing_cost_estimate: ClosingCostEstimate
    general_advice: List[str] = Field(default_factory=list)


# ============================================================================
# RENT VS BUY / INVESTMENT / READINESS / PROPERTY
# ============================================================================

class RentVsBuyPeriod(BaseModel):
    buy_total_cost: float
    rent_total_cost: float
    buy_equity: float
    verdict: str


class RentVsBuyReport(BaseModel):
    current_rent: float
    monthly_buy_cost: float
    five_year: RentVsBuyPeriod
    ten_year: RentVsBuyPeriod
    break_even_year: Optional[int] = Field(None, description="First year buying beats renting")
    verdict: Literal["buy_clearly", "buy_slightly", "toss_up", "rent"]
    verdict_explanation: str


class InvestmentAnalysis(BaseModel):
    purchase_price: float
    monthly_gross_rent: float
    rent_source: Literal["auto_estimate", "user_override"]
    monthly_operating_expenses: Dict[str, float]
    monthly_noi: float
    monthly_cash_flow: float
    annual_noi: float
    annual_cash_flow: float
    cap_rate: float
    cash_on_cash_return: float
    total_cash_invested: float
    verdict: Literal["strong_investment", "moderate_investment", "marginal", "negative_cash_flow"]
    verdict_explanation: str


class ReadinessActionItem(BaseModel):
    category: Literal["dti", "credit", "down_payment", "debt_health", "emergency_fund"]
    priority: Literal["low", "medium", "high"]
    action: str
    impact: str


class PreApprovalReadiness(BaseModel):
    overall_score: int = Field(..., ge=0, le=100)
    level: Literal["ready", "almost_ready", "needs_work", "not_ready"]
    components: Dict[str, int] = Field(..., description="Four components worth up to 25 points each")
    action_items: List[ReadinessActionItem] = Field(default_factory=list)


class PropertyAnalysis(BaseModel):
    listing: PropertyInfo
    can_afford: bool
    monthly_payment: PaymentBreakdown
    hoa_monthly: float
    total_monthly_with_hoa: float
    dti_with_property: DTIAnalysis
    stretch_factor: float = Field(..., description="Listing price / max home price")
    price_difference_vs_recommended: float
    verdict: Literal["comfortable", "tight", "stretch", "over_budget"]
    verdict_explanation: str


# ============================================================================
# REPORTS
# ============================================================================

class ComputedReport(BaseModel):
    """Deterministic outputs of the compute phase."""
    affordability: AffordabilityResult
    risk_assessment: RiskReport
    recommendations: Recommendations
    rent_vs_buy: Optional[RentVsBuyReport] = None
    investment: Optional[InvestmentAnalysis] = None
    pre_approval_readiness: PreApprovalReadiness
    property_analysis: Optional[PropertyAnalysis] = None
    market_snapshot: MarketSnapshot


class FinalReport(ComputedReport):
    """A computed report plus the narrative and completion metadata."""
    summary: str = ""
    summary_source: Literal["model", "template"] = "template"
    disclaimers: List[str] = Field(default_factory=list)
    generated_at: Optional[datetime] = None
    trace_id: Optional[str] = None
