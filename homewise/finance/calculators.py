"""Deterministic mortgage math.

Pure functions with fixed signatures. Rates are annual decimals
(0.065 for 6.5%) unless a name says otherwise; DTI ratios come back
in percent.
"""
import math
from dataclasses import dataclass, asdict
from typing import Any, Dict, List

from homewise.schemas.report import AmortizationYear, DTIAnalysis, PaymentBreakdown


DEFAULT_PROPERTY_TAX_RATE = 0.011
DEFAULT_INSURANCE_ANNUAL = 1500.0
DEFAULT_PMI_RATE = 0.005
DEFAULT_MAINTENANCE_RATE = 0.01
DEFAULT_RENT_GROWTH_RATE = 0.03
DEFAULT_APPRECIATION_RATE = 0.035

MAX_FRONT_END_DTI = 0.28
MAX_BACK_END_DTI = 0.36
PMI_EQUITY_THRESHOLD = 0.20

# Binary search bounds for the max price solver
_PRICE_SEARCH_CEILING = 3_000_000
_PRICE_SEARCH_ITERATIONS = 60


def _round2(value: float) -> float:
    return round(value, 2)


def format_usd(value: float) -> str:
    """Format a dollar amount as $1,234."""
    return f"${round(value):,}"


def monthly_principal_and_interest(loan_amount: float, annual_rate: float, term_years: int) -> float:
    """Standard fixed-rate amortizing payment."""
    if loan_amount <= 0:
        return 0.0
    n = term_years * 12
    r = annual_rate / 12
    if r == 0:
        return loan_amount / n
    factor = (1 + r) ** n
    return loan_amount * (r * factor) / (factor - 1)


# ============================================================================
# RESULT TYPES
# ============================================================================

@dataclass
class MaxPriceResult:
    max_home_price: float
    max_loan_amount: float
    max_housing_payment: float
    limiting_factor: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class RateHikeResult:
    new_rate: float
    new_monthly_payment: float
    new_dti: float
    can_afford: bool
    severity: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class IncomeLossResult:
    reduced_income: float
    new_dti: float
    monthly_surplus_or_deficit: float
    months_of_runway: int
    can_afford: bool
    severity: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class EmergencyFundResult:
    post_purchase_savings: float
    monthly_need: float
    months_covered: int
    adequate: bool
    recommendation: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class RentVsBuyResult:
    buy_total_cost: float
    rent_total_cost: float
    buy_equity: float
    buy_net_cost: float
    verdict: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


# ============================================================================
# CALCULATORS
# ============================================================================

def calculate_max_home_price(
    annual_gross_income: float,
    monthly_debt_payments: float,
    down_payment_amount: float,
    interest_rate: float,
    loan_term_years: int,
    property_tax_rate: float = DEFAULT_PROPERTY_TAX_RATE,
    insurance_annual: float = DEFAULT_INSURANCE_ANNUAL,
    max_front_end_dti: float = MAX_FRONT_END_DTI,
    max_back_end_dti: float = MAX_BACK_END_DTI,
) -> MaxPriceResult:
    """
    Highest home price whose full monthly payment fits under both DTI caps.

    Solved by bisection over [0, 3M]: the payment is monotonic in price,
    but PMI switching off at 20% down makes a closed form awkward.
    """
    monthly_income = annual_gross_income / 12
    max_front = monthly_income * max_front_end_dti
    max_back = monthly_income * max_back_end_dti - monthly_debt_payments
    max_housing_payment = min(max_front, max_back)
    limiting_factor = "front-end DTI" if max_front < max_back else "back-end DTI"

    lo, hi = 0.0, float(_PRICE_SEARCH_CEILING)
    for _ in range(_PRICE_SEARCH_ITERATIONS):
        mid = (lo + hi) / 2
        loan_amount = mid - down_payment_amount
        if loan_amount <= 0:
            lo = mid
            continue
        pi = monthly_principal_and_interest(loan_amount, interest_rate, loan_term_years)
        tax = mid * property_tax_rate / 12
        insurance = insurance_annual / 12
        pmi = loan_amount * DEFAULT_PMI_RATE / 12 if down_payment_amount / mid < PMI_EQUITY_THRESHOLD else 0
        if pi + tax + insurance + pmi < max_housing_payment:
            lo = mid
        else:
            hi = mid

    max_home_price = math.floor(lo)
    return MaxPriceResult(
        max_home_price=max_home_price,
        max_loan_amount=max(0, max_home_price - down_payment_amount),
        max_housing_payment=_round2(max_housing_payment),
        limiting_factor=limiting_factor,
    )


def calculate_monthly_payment(
    home_price: float,
    down_payment_amount: float,
    interest_rate: float,
    loan_term_years: int,
    property_tax_rate: float = DEFAULT_PROPERTY_TAX_RATE,
    insurance_annual: float = DEFAULT_INSURANCE_ANNUAL,
    pmi_rate: float = DEFAULT_PMI_RATE,
) -> PaymentBreakdown:
    """PITI plus PMI when the down payment is under 20%."""
    loan_amount = max(0.0, home_price - down_payment_amount)
    pi = monthly_principal_and_interest(loan_amount, interest_rate, loan_term_years)
    first_interest = loan_amount * interest_rate / 12
    first_principal = pi - first_interest

    property_tax = home_price * property_tax_rate / 12
    insurance = insurance_annual / 12
    down_pct = down_payment_amount / home_price if home_price > 0 else 1
    pmi = loan_amount * pmi_rate / 12 if down_pct < PMI_EQUITY_THRESHOLD else 0

    return PaymentBreakdown(
        principal=_round2(first_principal),
        interest=_round2(first_interest),
        property_tax=_round2(property_tax),
        home_insurance=_round2(insurance),
        pmi=_round2(pmi),
        total_monthly=_round2(pi + property_tax + insurance + pmi),
    )


def calculate_dti(
    gross_monthly_income: float,
    proposed_housing_payment: float,
    existing_monthly_debts: float,
) -> DTIAnalysis:
    front = proposed_housing_payment / gross_monthly_income
    back = (proposed_housing_payment + existing_monthly_debts) / gross_monthly_income

    if front <= 0.28:
        front_status = "safe"
    elif front <= 0.32:
        front_status = "moderate"
    else:
        front_status = "risky"

    if back <= 0.36:
        back_status = "safe"
    elif back <= 0.43:
        back_status = "moderate"
    else:
        back_status = "risky"

    return DTIAnalysis(
        front_end_ratio=_round2(front * 100),
        back_end_ratio=_round2(back * 100),
        front_end_status=front_status,
        back_end_status=back_status,
    )


def generate_amortization_summary(
    loan_amount: float,
    interest_rate: float,
    loan_term_years: int,
    years: int = 5,
) -> List[AmortizationYear]:
    """Year-by-year principal/interest split for the first few years."""
    if loan_amount <= 0:
        return []
    r = interest_rate / 12
    payment = monthly_principal_and_interest(loan_amount, interest_rate, loan_term_years)
    balance = loan_amount
    summary = []

    for year in range(1, years + 1):
        year_principal = 0.0
        year_interest = 0.0
        for _ in range(12):
            interest = balance * r
            principal = payment - interest
            year_principal += principal
            year_interest += interest
            balance -= principal
        summary.append(AmortizationYear(
            year=year,
            principal_paid=round(year_principal),
            interest_paid=round(year_interest),
            remaining_balance=round(balance),
            equity_percent=_round2((loan_amount - balance) / loan_amount * 100),
        ))

    return summary


def stress_test_rate_hike(
    loan_amount: float,
    base_rate: float,
    rate_increase: float,
    loan_term_years: int,
    gross_monthly_income: float,
    existing_monthly_debts: float,
    property_tax_monthly: float = 0,
    insurance_monthly: float = DEFAULT_INSURANCE_ANNUAL / 12,
) -> RateHikeResult:
    new_rate = base_rate + rate_increase
    new_payment = (
        monthly_principal_and_interest(loan_amount, new_rate, loan_term_years)
        + property_tax_monthly
        + insurance_monthly
    )
    new_dti = (new_payment + existing_monthly_debts) / gross_monthly_income * 100

    if new_dti <= 36:
        severity = "manageable"
    elif new_dti <= 43:
        severity = "strained"
    else:
        severity = "unsustainable"

    return RateHikeResult(
        new_rate=_round2(new_rate * 100) / 100,
        new_monthly_payment=_round2(new_payment),
        new_dti=_round2(new_dti),
        can_afford=new_dti <= 43,
        severity=severity,
    )


def stress_test_income_loss(
    gross_monthly_income: float,
    income_reduction_percent: float,
    monthly_housing_payment: float,
    existing_monthly_debts: float,
    remaining_savings: float = 0,
    monthly_expenses: float = 3000,
) -> IncomeLossResult:
    reduced_income = gross_monthly_income * (1 - income_reduction_percent / 100)
    obligations = monthly_housing_payment + existing_monthly_debts + monthly_expenses
    surplus = reduced_income - obligations
    if reduced_income > 0:
        new_dti = (monthly_housing_payment + existing_monthly_debts) / reduced_income * 100
    else:
        new_dti = 999.0
    runway = math.floor(remaining_savings / abs(surplus)) if surplus < 0 else 999

    if new_dti <= 36:
        severity = "manageable"
    elif new_dti <= 50:
        severity = "strained"
    else:
        severity = "unsustainable"

    return IncomeLossResult(
        reduced_income=_round2(reduced_income),
        new_dti=_round2(new_dti),
        monthly_surplus_or_deficit=_round2(surplus),
        months_of_runway=min(runway, 999),
        can_afford=new_dti <= 50,
        severity=severity,
    )


def evaluate_emergency_fund(
    total_savings: float,
    down_payment_amount: float,
    estimated_closing_costs: float,
    monthly_expenses: float,
    monthly_housing_payment: float,
) -> EmergencyFundResult:
    post_purchase = total_savings - down_payment_amount - estimated_closing_costs
    monthly_need = monthly_expenses + monthly_housing_payment
    months = math.floor(post_purchase / monthly_need) if post_purchase > 0 and monthly_need > 0 else 0

    if months >= 6:
        recommendation = "Your emergency fund is adequate. You have a solid financial cushion."
    elif months >= 3:
        recommendation = (
            f"You have {months} months of reserves. Consider building to 6 months "
            "before buying, or ensure stable income."
        )
    else:
        recommendation = (
            f"Only {months} months of reserves after purchase. This is risky. "
            "Consider saving more or reducing your target home price."
        )

    return EmergencyFundResult(
        post_purchase_savings=_round2(post_purchase),
        monthly_need=_round2(monthly_need),
        months_covered=months,
        adequate=months >= 6,
        recommendation=recommendation,
    )


def calculate_rent_vs_buy(
    home_price: float,
    down_payment_amount: float,
    interest_rate: float,
    loan_term_years: int,
    monthly_rent: float,
    years: int,
    property_tax_rate: float = DEFAULT_PROPERTY_TAX_RATE,
    insurance_annual: float = DEFAULT_INSURANCE_ANNUAL,
    maintenance_rate: float = DEFAULT_MAINTENANCE_RATE,
    rent_growth_rate: float = DEFAULT_RENT_GROWTH_RATE,
    home_appreciation_rate: float = DEFAULT_APPRECIATION_RATE,
) -> RentVsBuyResult:
    """Total cost of owning (net of equity) against total rent paid."""
    years = int(years)
    loan_amount = max(0.0, home_price - down_payment_amount)
    r = interest_rate / 12
    pi = monthly_principal_and_interest(loan_amount, interest_rate, loan_term_years)

    buy_total = down_payment_amount
    balance = loan_amount
    for _ in range(years):
        buy_total += (
            pi * 12
            + home_price * property_tax_rate
            + insurance_annual
            + home_price * maintenance_rate
        )
        for _ in range(12):
            balance -= pi - balance * r

    rent_total = 0.0
    rent = monthly_rent
    for _ in range(years):
        rent_total += rent * 12
        rent *= 1 + rent_growth_rate

    future_value = home_price * (1 + home_appreciation_rate) ** years
    equity = future_value - max(0.0, balance)
    net_cost = buy_total - equity

    if net_cost < rent_total:
        verdict = f"Buying saves {format_usd(rent_total - net_cost)} over {years} years"
    else:
        verdict = f"Renting saves {format_usd(net_cost - rent_total)} over {years} years"

    return RentVsBuyResult(
        buy_total_cost=round(buy_total),
        rent_total_cost=round(rent_total),
        buy_equity=round(equity),
        buy_net_cost=round(net_cost),
        verdict=verdict,
    )


def estimate_closing_costs(
    home_price: float,
    loan_amount: float,
    property_tax_rate: float = DEFAULT_PROPERTY_TAX_RATE,
    insurance_annual: float = DEFAULT_INSURANCE_ANNUAL,
) -> Dict[str, Any]:
    """Itemised closing costs with a +/-15% range."""
    breakdown = [
        {"item": "Loan origination fee (1%)", "amount": round(loan_amount * 0.01), "category": "lender"},
        {"item": "Appraisal", "amount": 500, "category": "lender"},
        {"item": "Credit report", "amount": 50, "category": "lender"},
        {"item": "Underwriting fee", "amount": 750, "category": "lender"},
        {"item": "Title insurance", "amount": round(home_price * 0.005), "category": "title_escrow"},
        {"item": "Title search", "amount": 300, "category": "title_escrow"},
        {"item": "Escrow/settlement fee", "amount": 500, "category": "title_escrow"},
        {"item": "Recording fees", "amount": 200, "category": "government"},
        {"item": "Prepaid property taxes (3 months)", "amount": round(home_price * property_tax_rate / 4), "category": "prepaid"},
        {"item": "Prepaid homeowners insurance (1 year)", "amount": round(insurance_annual), "category": "prepaid"},
        {"item": "Prepaid interest (15 days est.)", "amount": round(loan_amount * 0.065 * 15 / 365), "category": "prepaid"},
        {"item": "Home inspection", "amount": 400, "category": "prepaid"},
    ]
    total = sum(item["amount"] for item in breakdown)
    return {
        "low_estimate": round(total * 0.85),
        "high_estimate": round(total * 1.15),
        "breakdown": breakdown,
    }
