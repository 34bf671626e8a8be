"""Report assembly from a profile and a market snapshot.

compute_report() is deterministic and never calls out to the network.
Every sub-report is built from the calculators module.
"""
import logging
from typing import List, Optional

from homewise.finance.calculators import (
    DEFAULT_INSURANCE_ANNUAL,
    DEFAULT_PMI_RATE,
    DEFAULT_PROPERTY_TAX_RATE,
    calculate_dti,
    calculate_max_home_price,
    calculate_monthly_payment,
    calculate_rent_vs_buy,
    estimate_closing_costs,
    evaluate_emergency_fund,
    format_usd,
    generate_amortization_summary,
    monthly_principal_and_interest,
    stress_test_income_loss,
    stress_test_rate_hike,
)
from homewise.schemas.market import MarketSnapshot
from homewise.schemas.profile import Profile, PropertyInfo
from homewise.schemas.report import (
    AffordabilityResult,
    ClosingCostEstimate,
    ComputedReport,
    EmergencyFundAnalysis,
    InvestmentAnalysis,
    LoanOption,
    PreApprovalReadiness,
    PropertyAnalysis,
    ReadinessActionItem,
    Recommendations,
    RentVsBuyPeriod,
    RentVsBuyReport,
    RiskFlag,
    RiskReport,
    SavingsStrategy,
    StressTest,
)

logger = logging.getLogger(__name__)


RECOMMENDED_PRICE_FACTOR = 0.85
RATE_HIKE_STRESS = 0.02
INCOME_LOSS_STRESS_PERCENT = 20
USDA_INCOME_LIMIT = 115_000

# Share of gross income assumed for living costs when the buyer gave none
_DEFAULT_EXPENSE_SHARE = 0.25


def select_interest_rate(profile: Profile, snapshot: MarketSnapshot) -> float:
    """Annual decimal rate for the buyer's preferred product."""
    rates = snapshot.mortgage_rates
    if profile.preferred_loan_term == 15:
        return rates.fifteen_year_fixed / 100
    if profile.preferred_loan_term == 20:
        return (rates.fifteen_year_fixed + rates.thirty_year_fixed) / 200
    if profile.loan_type in ("5/1_arm", "7/1_arm"):
        # ARMs usually start below the 30-year fixed
        return max(0.001, (rates.thirty_year_fixed - 0.5) / 100)
    return rates.thirty_year_fixed / 100


def _property_tax_rate(snapshot: MarketSnapshot) -> float:
    if snapshot.area is not None:
        return snapshot.area.property_tax_rate
    return DEFAULT_PROPERTY_TAX_RATE


def _monthly_expenses(profile: Profile) -> float:
    if profile.monthly_expenses is not None:
        return profile.monthly_expenses
    return round(profile.gross_monthly_income * _DEFAULT_EXPENSE_SHARE)


# ============================================================================
# AFFORDABILITY
# ============================================================================

def build_affordability(profile: Profile, snapshot: MarketSnapshot) -> AffordabilityResult:
    rate = select_interest_rate(profile, snapshot)
    tax_rate = _property_tax_rate(snapshot)
    term = profile.preferred_loan_term

    max_price = calculate_max_home_price(
        annual_gross_income=profile.total_annual_income,
        monthly_debt_payments=profile.monthly_debt_payments,
        down_payment_amount=profile.down_payment_savings,
        interest_rate=rate,
        loan_term_years=term,
        property_tax_rate=tax_rate,
    )
    recommended = round(max_price.max_home_price * RECOMMENDED_PRICE_FACTOR)
    down_payment = min(profile.down_payment_savings, recommended)
    down_pct = round(down_payment / recommended * 100, 1) if recommended > 0 else 100.0
    loan_amount = max(0, recommended - down_payment)

    payment = calculate_monthly_payment(
        home_price=recommended,
        down_payment_amount=down_payment,
        interest_rate=rate,
        loan_term_years=term,
        property_tax_rate=tax_rate,
    )
    dti = calculate_dti(
        gross_monthly_income=profile.gross_monthly_income,
        proposed_housing_payment=payment.total_monthly,
        existing_monthly_debts=profile.monthly_debt_payments,
    )

    return AffordabilityResult(
        max_home_price=max_price.max_home_price,
        recommended_home_price=recommended,
        down_payment_amount=down_payment,
        down_payment_percent=down_pct,
        loan_amount=loan_amount,
        interest_rate=round(rate * 100, 3),
        loan_term_years=term,
        max_housing_payment=max_price.max_housing_payment,
        gross_monthly_income=round(profile.gross_monthly_income, 2),
        monthly_debt_payments=profile.monthly_debt_payments,
        monthly_payment=payment,
        dti_analysis=dti,
        limiting_factor=max_price.limiting_factor,
        amortization_summary=generate_amortization_summary(loan_amount, rate, term),
    )


# ============================================================================
# RISK
# ============================================================================

def _risk_level(score: int) -> str:
    if score >= 75:
        return "low"
    if score >= 55:
        return "moderate"
    if score >= 35:
        return "high"
    return "very_high"


def build_risk_report(
    profile: Profile,
    affordability: AffordabilityResult,
    closing: ClosingCostEstimate,
    snapshot: MarketSnapshot,
) -> RiskReport:
    payment = affordability.monthly_payment
    expenses = _monthly_expenses(profile)
    rate = affordability.interest_rate / 100

    rate_hike = stress_test_rate_hike(
        loan_amount=affordability.loan_amount,
        base_rate=rate,
        rate_increase=RATE_HIKE_STRESS,
        loan_term_years=affordability.loan_term_years,
        gross_monthly_income=profile.gross_monthly_income,
        existing_monthly_debts=profile.monthly_debt_payments,
        property_tax_monthly=payment.property_tax,
        insurance_monthly=payment.home_insurance,
    )
    emergency = evaluate_emergency_fund(
        total_savings=profile.total_savings,
        down_payment_amount=affordability.down_payment_amount,
        estimated_closing_costs=(closing.low_estimate + closing.high_estimate) / 2,
        monthly_expenses=expenses,
        monthly_housing_payment=payment.total_monthly,
    )
    income_loss = stress_test_income_loss(
        gross_monthly_income=profile.gross_monthly_income,
        income_reduction_percent=INCOME_LOSS_STRESS_PERCENT,
        monthly_housing_payment=payment.total_monthly,
        existing_monthly_debts=profile.monthly_debt_payments,
        remaining_savings=max(0.0, emergency.post_purchase_savings),
        monthly_expenses=expenses,
    )

    stress_tests = [
        StressTest(
            scenario="Interest rate increases 2%",
            description=(
                f"If rates rose to {rate_hike.new_rate * 100:.2f}%, your payment would be "
                f"{format_usd(rate_hike.new_monthly_payment)}/month"
            ),
            new_monthly_payment=rate_hike.new_monthly_payment,
            new_dti=rate_hike.new_dti,
            can_afford=rate_hike.can_afford,
            severity=rate_hike.severity,
        ),
        StressTest(
            scenario=f"Income drops {INCOME_LOSS_STRESS_PERCENT}%",
            description=f"A {INCOME_LOSS_STRESS_PERCENT}% pay cut would put your DTI at {income_loss.new_dti}%",
            new_monthly_payment=payment.total_monthly,
            new_dti=income_loss.new_dti,
            can_afford=income_loss.can_afford,
            severity=income_loss.severity,
            months_of_runway=income_loss.months_of_runway,
        ),
    ]

    score = 100
    flags: List[RiskFlag] = []
    back_end = affordability.dti_analysis.back_end_ratio

    if back_end > 43:
        score -= 35
        flags.append(RiskFlag(
            category="debt", severity="critical",
            message=f"Back-end DTI of {back_end}% exceeds the 43% qualified-mortgage limit",
            recommendation="Pay down existing debts or target a lower price before applying.",
        ))
    elif back_end > 36:
        score -= 20
        flags.append(RiskFlag(
            category="debt", severity="warning",
            message=f"Back-end DTI of {back_end}% is above the recommended 36%",
            recommendation="Avoid new debt before closing and consider paying down balances.",
        ))
    elif back_end > 28:
        score -= 10
    else:
        flags.append(RiskFlag(
            category="debt", severity="info",
            message=f"Your debt-to-income ratio is within healthy limits at {back_end}%",
            recommendation="Maintain current debt levels and avoid new obligations before closing.",
        ))

    if emergency.months_covered < 3:
        score -= 25
        flags.append(RiskFlag(
            category="savings", severity="critical",
            message=f"Emergency fund covers only {emergency.months_covered} months after purchase",
            recommendation="Build reserves to at least 3 months before buying.",
        ))
    elif emergency.months_covered < 6:
        score -= 10
        flags.append(RiskFlag(
            category="savings", severity="warning",
            message=f"Emergency fund covers {emergency.months_covered} months of expenses after purchase",
            recommendation="Build up to 6 months of reserves before or shortly after closing.",
        ))

    if profile.credit_score < 620:
        score -= 25
        flags.append(RiskFlag(
            category="credit", severity="critical",
            message=f"Credit score {profile.credit_score} is below the conventional minimum of 620",
            recommendation="Consider FHA or work on credit before applying.",
        ))
    elif profile.credit_score < 680:
        score -= 15
        flags.append(RiskFlag(
            category="credit", severity="warning",
            message=f"Credit score {profile.credit_score} will likely carry a rate premium",
            recommendation="Reducing utilization below 30% can raise your score quickly.",
        ))
    elif profile.credit_score < 740:
        score -= 5

    if not rate_hike.can_afford:
        score -= 10
    if not income_loss.can_afford:
        score -= 10
        flags.append(RiskFlag(
            category="income", severity="warning",
            message=f"A {INCOME_LOSS_STRESS_PERCENT}% income drop would push your DTI to {income_loss.new_dti}%",
            recommendation="Keep extra reserves if your income is variable.",
        ))

    if "mortgage_rates" in snapshot.fallbacks_used:
        flags.append(RiskFlag(
            category="market", severity="info",
            message="Live mortgage rates were unavailable; estimates use typical recent rates",
            recommendation="Confirm current rates with a lender before deciding.",
        ))

    score = max(0, min(100, score))
    return RiskReport(
        overall_risk_level=_risk_level(score),
        overall_score=score,
        stress_tests=stress_tests,
        risk_flags=flags,
        emergency_fund_analysis=EmergencyFundAnalysis(
            current_emergency_fund=profile.total_savings,
            post_purchase_emergency_fund=emergency.post_purchase_savings,
            monthly_expenses=expenses,
            months_covered=emergency.months_covered,
            adequate=emergency.adequate,
            recommendation=emergency.recommendation,
        ),
    )


# ============================================================================
# RECOMMENDATIONS
# ============================================================================

def evaluate_loan_programs(
    credit_score: int,
    down_payment_percent: float,
    military_veteran: bool,
    annual_income: float,
) -> List[LoanOption]:
    """Eligibility for the four mainstream loan programs."""
    if credit_score < 620:
        conventional_reason = f"Credit score {credit_score} below 620 minimum"
    elif down_payment_percent < 3:
        conventional_reason = "Need at least 3% down payment"
    else:
        conventional_reason = "Meets all requirements"

    if credit_score < 500:
        fha_reason = f"Credit score {credit_score} below 500 minimum"
    elif credit_score < 580:
        fha_reason = "Eligible but requires 10% down payment"
    else:
        fha_reason = "Meets all requirements"

    usda_eligible = annual_income <= USDA_INCOME_LIMIT

    return [
        LoanOption(
            type="conventional",
            eligible=credit_score >= 620 and down_payment_percent >= 3,
            eligibility_reason=conventional_reason,
            min_down_payment_percent=3 if credit_score >= 740 else 5,
            pmi_required=down_payment_percent < 20,
            pros=[
                "No upfront mortgage insurance premium",
                "PMI removable at 80% LTV",
                "Best rates with excellent credit" if credit_score >= 740 else "Widely available",
            ],
            cons=[c for c in [
                "PMI required until 20% equity" if down_payment_percent < 20 else None,
                "Higher rates with lower credit" if credit_score < 700 else None,
                "Stricter DTI requirements",
            ] if c],
        ),
        LoanOption(
            type="fha",
            eligible=credit_score >= 500,
            eligibility_reason=fha_reason,
            min_down_payment_percent=3.5 if credit_score >= 580 else 10,
            pmi_required=True,
            pros=[
                "Lower credit score requirements (500+)",
                "Only 3.5% down payment" if credit_score >= 580 else "Available with 10% down",
                "Good for first-time buyers",
            ],
            cons=[
                "Mortgage insurance for life of loan (if < 10% down)",
                "Upfront MIP of 1.75% of loan amount",
            ],
        ),
        LoanOption(
            type="va",
            eligible=military_veteran,
            eligibility_reason=(
                "Eligible as military veteran/active duty" if military_veteran
                else "Not eligible - requires military service"
            ),
            min_down_payment_percent=0,
            pmi_required=False,
            pros=["No down payment required", "No PMI", "Competitive interest rates"],
            cons=["VA funding fee (1.25-3.3% of loan)", "Property must be primary residence"],
        ),
        LoanOption(
            type="usda",
            eligible=usda_eligible,
            eligibility_reason=(
                "May be eligible (income within limits, must verify rural area)" if usda_eligible
                else "Income exceeds USDA limits for most areas"
            ),
            min_down_payment_percent=0,
            pmi_required=True,
            pros=["No down payment required", "Below-market interest rates"],
            cons=["Property must be in USDA-eligible rural area", "Income limits apply"],
        ),
    ]


def build_recommendations(
    profile: Profile,
    affordability: AffordabilityResult,
    closing: ClosingCostEstimate,
) -> Recommendations:
    loan_options = evaluate_loan_programs(
        credit_score=profile.credit_score,
        down_payment_percent=affordability.down_payment_percent,
        military_veteran=profile.military_veteran,
        annual_income=profile.total_annual_income,
    )

    strategies: List[SavingsStrategy] = []
    target = affordability.recommended_home_price * 0.20
    gap = max(0.0, target - profile.down_payment_savings)
    surplus = (
        profile.gross_monthly_income
        - _monthly_expenses(profile)
        - profile.monthly_debt_payments
    )
    if gap > 0 and surplus > 0:
        strategies.append(SavingsStrategy(
            title="Aggressive Savings Plan",
            description=f"Save 70% of monthly surplus ({format_usd(surplus * 0.7)}/mo) to reach 20% down",
            potential_savings=round(gap),
            timeframe_months=-(-int(gap) // max(1, int(surplus * 0.7))),
            difficulty="hard",
        ))
        strategies.append(SavingsStrategy(
            title="Moderate Savings Plan",
            description=f"Save 40% of monthly surplus ({format_usd(surplus * 0.4)}/mo) to reach 20% down",
            potential_savings=round(gap),
            timeframe_months=-(-int(gap) // max(1, int(surplus * 0.4))),
            difficulty="moderate",
        ))
    if gap > 0:
        strategies.append(SavingsStrategy(
            title="Down Payment Assistance Programs",
            description="Research state and local DPA programs. Many offer grants or forgivable loans for first-time buyers.",
            potential_savings=min(round(gap), 25_000),
            timeframe_months=2,
            difficulty="moderate",
        ))

    advice = [
        "Get pre-approved with at least three lenders to compare rates and fees.",
        f"Budget {format_usd(closing.low_estimate)} to {format_usd(closing.high_estimate)} for closing costs.",
    ]
    if affordability.dti_analysis.back_end_status != "safe":
        advice.append("Pay down revolving balances before applying to improve your DTI.")
    if profile.first_time_buyer:
        advice.append("Ask lenders about first-time buyer programs such as HomeReady and Home Possible.")

    return Recommendations(
        loan_options=loan_options,
        savings_strategies=strategies,
        closing_cost_estimate=closing,
        general_advice=advice,
    )


# ============================================================================
# RENT VS BUY
# ============================================================================

def build_rent_vs_buy(
    profile: Profile,
    affordability: AffordabilityResult,
    snapshot: MarketSnapshot,
) -> Optional[RentVsBuyReport]:
    if not profile.current_monthly_rent:
        return None

    kwargs = dict(
        home_price=affordability.recommended_home_price,
        down_payment_amount=affordability.down_payment_amount,
        interest_rate=affordability.interest_rate / 100,
        loan_term_years=affordability.loan_term_years,
        monthly_rent=profile.current_monthly_rent,
        property_tax_rate=_property_tax_rate(snapshot),
    )
    five = calculate_rent_vs_buy(years=5, **kwargs)
    ten = calculate_rent_vs_buy(years=10, **kwargs)

    break_even = None
    for year in range(1, 31):
        result = calculate_rent_vs_buy(years=year, **kwargs)
        if result.buy_net_cost < result.rent_total_cost:
            break_even = year
            break

    ten_year_advantage = ten.rent_total_cost - ten.buy_net_cost
    if break_even is not None and break_even <= 5:
        verdict = "buy_clearly"
        explanation = f"Buying is clearly the better financial decision. You break even in about {break_even} years."
    elif break_even is not None and break_even <= 10:
        verdict = "buy_slightly"
        explanation = f"Buying comes out ahead if you stay at least {break_even} years."
    elif abs(ten_year_advantage) <= 0.05 * max(1, ten.rent_total_cost):
        verdict = "toss_up"
        explanation = "Over ten years renting and buying cost about the same."
    else:
        verdict = "rent"
        explanation = "Renting is cheaper over a ten-year horizon at these prices and rates."

    return RentVsBuyReport(
        current_rent=profile.current_monthly_rent,
        monthly_buy_cost=affordability.monthly_payment.total_monthly,
        five_year=RentVsBuyPeriod(
            buy_total_cost=five.buy_total_cost,
            rent_total_cost=five.rent_total_cost,
            buy_equity=five.buy_equity,
            verdict=five.verdict,
        ),
        ten_year=RentVsBuyPeriod(
            buy_total_cost=ten.buy_total_cost,
            rent_total_cost=ten.rent_total_cost,
            buy_equity=ten.buy_equity,
            verdict=ten.verdict,
        ),
        break_even_year=break_even,
        verdict=verdict,
        verdict_explanation=explanation,
    )


# ============================================================================
# INVESTMENT
# ============================================================================

# Rough gross rent as a share of price when the buyer gave no estimate
_AUTO_RENT_TO_PRICE = 0.007
_CAPEX_RESERVE_RATE = 0.05


def build_investment(
    profile: Profile,
    affordability: AffordabilityResult,
    closing: ClosingCostEstimate,
    snapshot: MarketSnapshot,
) -> Optional[InvestmentAnalysis]:
    inputs = profile.investment_inputs
    if inputs is None:
        return None

    listing = snapshot.listing or profile.listing
    price = listing.listing_price if listing and listing.listing_price else affordability.recommended_home_price
    if price <= 0:
        return None

    if inputs.expected_rent:
        rent, rent_source = inputs.expected_rent, "user_override"
    else:
        rent, rent_source = round(price * _AUTO_RENT_TO_PRICE), "auto_estimate"

    down_payment = min(affordability.down_payment_amount, price)
    rate = affordability.interest_rate / 100
    debt_service = monthly_principal_and_interest(price - down_payment, rate, affordability.loan_term_years)

    expenses = {
        "property_management": round(rent * inputs.management_fee_rate, 2),
        "vacancy": round(rent * inputs.vacancy_rate, 2),
        "capex_reserve": round(rent * _CAPEX_RESERVE_RATE, 2),
        "property_tax": round(price * _property_tax_rate(snapshot) / 12, 2),
        "insurance": round(DEFAULT_INSURANCE_ANNUAL / 12, 2),
        "hoa": (listing.hoa_monthly or 0) if listing else 0,
        "maintenance": round(price * inputs.maintenance_rate / 12, 2),
    }
    monthly_noi = rent - sum(expenses.values())
    monthly_cash_flow = monthly_noi - debt_service
    cash_invested = down_payment + (closing.low_estimate + closing.high_estimate) / 2
    cap_rate = monthly_noi * 12 / price * 100
    coc = monthly_cash_flow * 12 / cash_invested * 100 if cash_invested > 0 else 0.0

    if monthly_cash_flow < 0:
        verdict = "negative_cash_flow"
        explanation = f"Rent does not cover costs; expect about {format_usd(-monthly_cash_flow)}/month out of pocket."
    elif coc >= 8:
        verdict = "strong_investment"
        explanation = f"Cash-on-cash return of {coc:.1f}% is strong for residential rentals."
    elif coc >= 4:
        verdict = "moderate_investment"
        explanation = f"Cash-on-cash return of {coc:.1f}% is reasonable but not exceptional."
    else:
        verdict = "marginal"
        explanation = f"Positive cash flow but only {coc:.1f}% cash-on-cash return."

    return InvestmentAnalysis(
        purchase_price=price,
        monthly_gross_rent=rent,
        rent_source=rent_source,
        monthly_operating_expenses=expenses,
        monthly_noi=round(monthly_noi, 2),
        monthly_cash_flow=round(monthly_cash_flow, 2),
        annual_noi=round(monthly_noi * 12, 2),
        annual_cash_flow=round(monthly_cash_flow * 12, 2),
        cap_rate=round(cap_rate, 2),
        cash_on_cash_return=round(coc, 2),
        total_cash_invested=round(cash_invested, 2),
        verdict=verdict,
        verdict_explanation=explanation,
    )


# ============================================================================
# PRE-APPROVAL READINESS
# ============================================================================

def build_readiness(
    profile: Profile,
    affordability: AffordabilityResult,
    emergency_adequate: bool,
) -> PreApprovalReadiness:
    back_end = affordability.dti_analysis.back_end_ratio
    if back_end <= 28:
        dti_score = 25
    elif back_end <= 36:
        dti_score = 20
    elif back_end <= 43:
        dti_score = 12
    else:
        dti_score = 5

    credit = profile.credit_score
    if credit >= 760:
        credit_score = 25
    elif credit >= 720:
        credit_score = 21
    elif credit >= 680:
        credit_score = 16
    elif credit >= 620:
        credit_score = 10
    else:
        credit_score = 4

    dp_pct = affordability.down_payment_percent
    if dp_pct >= 20:
        down_score = 25
    elif dp_pct >= 10:
        down_score = 19
    elif dp_pct >= 5:
        down_score = 13
    elif dp_pct >= 3.5:
        down_score = 9
    else:
        down_score = 4

    debt_share = profile.monthly_debt_payments / profile.gross_monthly_income
    if debt_share <= 0.05:
        debt_score = 25
    elif debt_share <= 0.10:
        debt_score = 20
    elif debt_share <= 0.20:
        debt_score = 13
    else:
        debt_score = 6

    items: List[ReadinessActionItem] = []
    if dti_score < 20:
        items.append(ReadinessActionItem(
            category="dti", priority="high",
            action="Lower your back-end DTI below 36% by paying down debt or targeting a lower price",
            impact="Moves you into the range most lenders prefer",
        ))
    if credit_score < 21:
        items.append(ReadinessActionItem(
            category="credit", priority="high" if credit < 620 else "medium",
            action="Reduce credit utilization below 30% and avoid new accounts before applying",
            impact="A higher score can lower your rate by 0.25-1%",
        ))
    if down_score < 19:
        items.append(ReadinessActionItem(
            category="down_payment", priority="medium",
            action="Grow your down payment toward 10-20% or look into assistance programs",
            impact="Reduces or removes PMI and lowers the monthly payment",
        ))
    if debt_score < 20:
        items.append(ReadinessActionItem(
            category="debt_health", priority="medium",
            action="Pay off the smallest recurring debts first",
            impact="Frees monthly cash flow and improves DTI",
        ))
    if not emergency_adequate:
        items.append(ReadinessActionItem(
            category="emergency_fund", priority="high",
            action="Build emergency fund to 6 months of expenses",
            impact="Provides safety net for unexpected costs after purchase",
        ))

    total = dti_score + credit_score + down_score + debt_score
    if total >= 80:
        level = "ready"
    elif total >= 65:
        level = "almost_ready"
    elif total >= 45:
        level = "needs_work"
    else:
        level = "not_ready"

    return PreApprovalReadiness(
        overall_score=total,
        level=level,
        components={
            "dti_score": dti_score,
            "credit_score": credit_score,
            "down_payment_score": down_score,
            "debt_health_score": debt_score,
        },
        action_items=items,
    )


# ============================================================================
# SPECIFIC PROPERTY
# ============================================================================

def stretch_verdict(stretch_factor: float) -> str:
    if stretch_factor <= 0.85:
        return "comfortable"
    if stretch_factor <= 1.0:
        return "tight"
    if stretch_factor <= 1.15:
        return "stretch"
    return "over_budget"


_VERDICT_EXPLANATIONS = {
    "comfortable": "This home sits comfortably inside your budget.",
    "tight": "Affordable, but close to the top of your range.",
    "stretch": "Above your max price; expect a tight monthly budget.",
    "over_budget": "Significantly over budget for your current finances.",
}


def analyze_listing(
    listing: PropertyInfo,
    affordability: AffordabilityResult,
    fallback_tax_rate: float = DEFAULT_PROPERTY_TAX_RATE,
) -> PropertyAnalysis:
    """Affordability of one listing against an existing affordability result."""
    price = listing.listing_price
    hoa = listing.hoa_monthly or 0
    tax_rate = listing.property_tax_annual / price if listing.property_tax_annual and price > 0 else fallback_tax_rate
    down_payment = min(affordability.down_payment_amount, price)
    down_pct = down_payment / price * 100 if price > 0 else 100

    payment = calculate_monthly_payment(
        home_price=price,
        down_payment_amount=down_payment,
        interest_rate=affordability.interest_rate / 100,
        loan_term_years=affordability.loan_term_years,
        property_tax_rate=tax_rate,
        pmi_rate=0 if down_pct >= 20 else DEFAULT_PMI_RATE,
    )
    total = round(payment.total_monthly + hoa, 2)
    dti = calculate_dti(
        gross_monthly_income=affordability.gross_monthly_income,
        proposed_housing_payment=total,
        existing_monthly_debts=affordability.monthly_debt_payments,
    )
    if affordability.max_home_price > 0:
        stretch = round(price / affordability.max_home_price, 2)
    else:
        stretch = 99.0
    verdict = stretch_verdict(stretch)

    return PropertyAnalysis(
        listing=listing,
        can_afford=stretch <= 1.0,
        monthly_payment=payment,
        hoa_monthly=hoa,
        total_monthly_with_hoa=total,
        dti_with_property=dti,
        stretch_factor=stretch,
        price_difference_vs_recommended=round(price - affordability.recommended_home_price),
        verdict=verdict,
        verdict_explanation=_VERDICT_EXPLANATIONS[verdict],
    )


# ============================================================================
# ENTRY POINT
# ============================================================================

def compute_report(profile: Profile, snapshot: MarketSnapshot) -> ComputedReport:
    """Build every deterministic sub-report for one analysis run."""
    affordability = build_affordability(profile, snapshot)
    closing = ClosingCostEstimate(**estimate_closing_costs(
        home_price=affordability.recommended_home_price,
        loan_amount=affordability.loan_amount,
        property_tax_rate=_property_tax_rate(snapshot),
    ))
    risk = build_risk_report(profile, affordability, closing, snapshot)
    listing = snapshot.listing or profile.listing

    report = ComputedReport(
        affordability=affordability,
        risk_assessment=risk,
        recommendations=build_recommendations(profile, affordability, closing),
        rent_vs_buy=build_rent_vs_buy(profile, affordability, snapshot),
        investment=build_investment(profile, affordability, closing, snapshot),
        pre_approval_readiness=build_readiness(
            profile, affordability, risk.emergency_fund_analysis.adequate
        ),
        property_analysis=(
            analyze_listing(listing, affordability, _property_tax_rate(snapshot))
            if listing is not None and listing.listing_price > 0 else None
        ),
        market_snapshot=snapshot,
    )
    logger.info(
        f"Computed report: max price {affordability.max_home_price}, "
        f"risk {risk.overall_risk_level} ({risk.overall_score})"
    )
    return report
