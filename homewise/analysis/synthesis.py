"""Phase 3: narrative summary of the computed report.

One model call, raced against a hard timeout. If the model is slow,
fails or returns nothing, a template summary built only from the computed
numbers is used instead, so the run always completes.
"""
import asyncio
import logging
from typing import List, Optional, Tuple

from homewise.advisor.guardrails import correct_synthesis_numbers
from homewise.config import settings
from homewise.finance.calculators import format_usd
from homewise.schemas.report import ComputedReport

logger = logging.getLogger(__name__)


SYNTHESIS_SYSTEM_PROMPT = """You are the lead analyst of a home affordability analysis service.
Your job is to turn computed affordability, market, risk and recommendation data into a clear, actionable report.
Be honest and direct. If the numbers show the buyer cannot afford a home yet, say so clearly.
Structure your output with clear sections: Summary, Affordability, Market Context, Risks, Recommendations.
Use the exact figures from the data; never round or estimate them differently.
Always end with a disclaimer that this is informational only, not financial advice."""


def build_synthesis_prompt(report: ComputedReport) -> str:
    return (
        "Synthesize this data into a clear, actionable narrative report for the home buyer.\n"
        "Focus on the key takeaways, what they can afford, major risks, and top recommendations.\n"
        "Be specific with numbers and direct with advice.\n\n"
        f"{report.model_dump_json(indent=2)}"
    )


_RISK_WORDS = {
    "low": "low",
    "moderate": "moderate",
    "high": "high",
    "very_high": "very high",
}

_LOAN_NAMES = {"conventional": "Conventional", "fha": "FHA", "va": "VA", "usda": "USDA"}


def build_template_summary(report: ComputedReport) -> str:
    """Deterministic summary using only computed numbers. Never empty."""
    a = report.affordability
    dti = a.dti_analysis
    rates = report.market_snapshot.mortgage_rates
    risk = report.risk_assessment

    lines: List[str] = [
        "## Summary",
        (
            f"Based on your income and debts, you can afford a home up to {format_usd(a.max_home_price)}. "
            f"We recommend targeting around {format_usd(a.recommended_home_price)} to leave room in your budget."
        ),
        "",
        "## Affordability",
        (
            f"With {format_usd(a.down_payment_amount)} down ({a.down_payment_percent:g}%) on a "
            f"{a.loan_term_years}-year loan at {a.interest_rate:g}%, the estimated monthly payment is "
            f"{format_usd(a.monthly_payment.total_monthly)}."
        ),
        (
            f"Your front-end DTI would be {dti.front_end_ratio:g}% ({dti.front_end_status}) and your "
            f"back-end DTI {dti.back_end_ratio:g}% ({dti.back_end_status})."
        ),
        "",
        "## Market Context",
        (
            f"The 30-year fixed rate is {rates.thirty_year_fixed:g}% and the 15-year fixed rate is "
            f"{rates.fifteen_year_fixed:g}%. The national median home price is "
            f"{format_usd(report.market_snapshot.median_home_prices.national)}."
        ),
    ]

    area = report.market_snapshot.area
    if area is not None:
        lines.append(
            f"In {area.location.title()}, the median home price is {format_usd(area.median_home_price)} "
            f"with a property tax rate of {area.property_tax_rate * 100:.2f}%."
        )

    lines += [
        "",
        "## Risks",
        f"Overall risk is {_RISK_WORDS.get(risk.overall_risk_level, risk.overall_risk_level)} (score {risk.overall_score}/100).",
        risk.emergency_fund_analysis.recommendation,
    ]
    for flag in risk.risk_flags:
        if flag.severity == "critical":
            lines.append(f"- {flag.message}")

    pa = report.property_analysis
    if pa is not None:
        lines += [
            "",
            "## Property",
            (
                f"{pa.listing.address or 'The property you entered'} at {format_usd(pa.listing.listing_price)} "
                f"would cost about {format_usd(pa.total_monthly_with_hoa)} per month. {pa.verdict_explanation}"
            ),
        ]

    eligible = [_LOAN_NAMES[o.type] for o in report.recommendations.loan_options if o.eligible]
    lines += ["", "## Recommendations"]
    if eligible:
        lines.append(f"You appear eligible for: {', '.join(eligible)} loans.")
    lines += [f"- {advice}" for advice in report.recommendations.general_advice]

    lines += [
        "",
        "This summary is informational only and is not financial advice.",
    ]
    return "\n".join(lines)


async def synthesize_summary(
    report: ComputedReport,
    llm,
    timeout: Optional[float] = None,
) -> Tuple[str, str]:
    """
    Narrative summary for the report.

    Returns:
        (text, source) where source is "model" or "template"
    """
    timeout = timeout if timeout is not None else settings.SYNTHESIS_TIMEOUT_SECONDS

    try:
        text = await asyncio.wait_for(
            llm.synthesize(SYNTHESIS_SYSTEM_PROMPT, build_synthesis_prompt(report)),
            timeout=timeout,
        )
    except asyncio.TimeoutError:
        logger.warning(f"Synthesis timed out after {timeout}s, using template summary")
        return build_template_summary(report), "template"
    except Exception as e:
        logger.warning(f"Synthesis failed, using template summary: {e}")
        return build_template_summary(report), "template"

    if not text or not text.strip():
        logger.warning("Synthesis returned no text, using template summary")
        return build_template_summary(report), "template"

    corrected, _ = correct_synthesis_numbers(text, report)
    return corrected, "model"
