"""Shared pydantic models for profiles, market data and computed reports."""
from homewise.schemas.profile import (
    Profile,
    PropertyInfo,
    InvestmentInputs,
    DebtItem,
)
from homewise.schemas.market import (
    MarketSnapshot,
    MortgageRates,
    MedianHomePrices,
    InflationData,
    AreaSnapshot,
)
from homewise.schemas.report import (
    ComputedReport,
    FinalReport,
    AffordabilityResult,
    PaymentBreakdown,
    DTIAnalysis,
    RiskReport,
    Recommendations,
    LoanOption,
    RentVsBuyReport,
    InvestmentAnalysis,
    PreApprovalReadiness,
    PropertyAnalysis,
)

__all__ = [
    "Profile",
    "PropertyInfo",
    "InvestmentInputs",
    "DebtItem",
    "MarketSnapshot",
    "MortgageRates",
    "MedianHomePrices",
    "InflationData",
    "AreaSnapshot",
    "ComputedReport",
    "FinalReport",
    "AffordabilityResult",
    "PaymentBreakdown",
    "DTIAnalysis",
    "RiskReport",
    "Recommendations",
    "LoanOption",
    "RentVsBuyReport",
    "InvestmentAnalysis",
    "PreApprovalReadiness",
    "PropertyAnalysis",
]
