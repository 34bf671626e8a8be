"""Advisor Prompt Builder - compiles the report and context into the system prompt.

The prompt is built once per turn and has a fixed layout:
- Known facts block (exact headline numbers, always first)
- Role and report digest
- Rolling summary, persona hints, session memory
- Tool guidance
- Guardrail rules (always last)
"""
from typing import Optional

from homewise.advisor.context import build_persona_hints, format_memory_for_prompt
from homewise.advisor.guardrails import GUARDRAIL_SYSTEM_PROMPT_SUFFIX
from homewise.advisor.schemas import SessionMemory
from homewise.finance.calculators import format_usd
from homewise.schemas.report import ComputedReport


ROLE = "You are a helpful home research advisor following up on a home buying analysis."

TOOL_GUIDANCE = """Use the tools to run calculations when the user asks "what if" questions. Use the analyze_property tool when a user asks about a specific property or home price. Use the lookup_mortgage_info tool when the user asks general questions about mortgage types (FHA, VA, conventional, ARM), PMI, DTI, closing costs, credit scores, first-time buyer programs, or other homebuying topics. It searches a curated knowledge base and returns relevant documents.

You also have live data tools:
- get_current_rates: Fetch today's actual mortgage rates from the Federal Reserve. Use when users ask about current/today's rates.
- search_properties: Search for real homes for sale in any US city. Use when users want to see actual listings.
- get_area_info: Get property tax rates, school ratings, median prices, and cost of living for a metro area. Use when discussing a specific area's housing market."""

CLOSING = "Be specific with numbers. Keep responses concise. Do not provide legal or binding financial advice."


def _num(value: float) -> str:
    """1234.5 -> 1,234.5; 425000.0 -> 425,000."""
    if float(value).is_integer():
        return f"{int(value):,}"
    return f"{value:,}"


def build_known_facts_block(report: ComputedReport) -> str:
    """Headline numbers the model must quote verbatim."""
    a = report.affordability
    rates = report.market_snapshot.mortgage_rates
    risk = report.risk_assessment
    dti = a.dti_analysis
    return f"""=== KNOWN FACTS (use these exact numbers, never approximate) ===
MAX_HOME_PRICE: {format_usd(a.max_home_price)}
RECOMMENDED_PRICE: {format_usd(a.recommended_home_price)}
DOWN_PAYMENT: {format_usd(a.down_payment_amount)} ({_num(a.down_payment_percent)}%)
LOAN_AMOUNT: {format_usd(a.loan_amount)}
MONTHLY_PAYMENT: {format_usd(a.monthly_payment.total_monthly)}
FRONT_END_DTI: {_num(dti.front_end_ratio)}% ({dti.front_end_status})
BACK_END_DTI: {_num(dti.back_end_ratio)}% ({dti.back_end_status})
RATE_30YR: {_num(rates.thirty_year_fixed)}%
RATE_15YR: {_num(rates.fifteen_year_fixed)}%
RISK_LEVEL: {risk.overall_risk_level} (score: {risk.overall_score}/100)
=== END KNOWN FACTS ==="""


def build_report_digest(report: ComputedReport) -> str:
    a = report.affordability
    snapshot = report.market_snapshot
    risk = report.risk_assessment

    sections = [
        "BUYING POWER:\n"
        f"- Max Home Price: ${_num(a.max_home_price)}\n"
        f"- Recommended Price: ${_num(a.recommended_home_price)}\n"
        f"- Down Payment: ${_num(a.down_payment_amount)} ({_num(a.down_payment_percent)}%)\n"
        f"- Loan Amount: ${_num(a.loan_amount)}\n"
        f"- Monthly Payment: ${_num(a.monthly_payment.total_monthly)}/mo\n"
        f"- Front-End DTI: {_num(a.dti_analysis.front_end_ratio)}% ({a.dti_analysis.front_end_status})\n"
        f"- Back-End DTI: {_num(a.dti_analysis.back_end_ratio)}% ({a.dti_analysis.back_end_status})",

        "MARKET DATA:\n"
        f"- 30yr Rate: {_num(snapshot.mortgage_rates.thirty_year_fixed)}%\n"
        f"- 15yr Rate: {_num(snapshot.mortgage_rates.fifteen_year_fixed)}%\n"
        f"- National Median: ${_num(snapshot.median_home_prices.national)}",

        f"RISK: {risk.overall_risk_level} (score: {risk.overall_score}/100)",

        "LOAN OPTIONS: " + ", ".join(
            f"{o.type}({'eligible' if o.eligible else 'not eligible'})"
            for o in report.recommendations.loan_options
        ),
    ]

    pa = report.property_analysis
    if pa is not None:
        sections.append(
            f"PROPERTY ANALYZED: {pa.listing.address or 'Specific property'}\n"
            f"- Listing Price: ${_num(pa.listing.listing_price)}\n"
            f"- Monthly Payment: ${_num(pa.total_monthly_with_hoa)}/mo\n"
            f"- Stretch Factor: {round(pa.stretch_factor * 100)}% of max\n"
            f"- Verdict: {pa.verdict}"
        )

    return "\n\n".join(sections)


def build_system_prompt(
    report: ComputedReport,
    conversation_summary: Optional[str] = None,
    persona_hints: Optional[str] = None,
    memory: Optional[SessionMemory] = None,
) -> str:
    """
    Assemble the full system prompt for one chat turn.

    Args:
        report: The analysis report under discussion
        conversation_summary: Rolling summary of older messages, if any
        persona_hints: Pre-built hints; derived from the report when omitted
        memory: Facts carried over from earlier tool calls

    Returns:
        System prompt text, guardrail rules last
    """
    if persona_hints is None:
        persona_hints = build_persona_hints(report)

    summary_block = ""
    if conversation_summary:
        summary_block = f"\n\nCONVERSATION SUMMARY (older messages compressed):\n{conversation_summary}"

    return (
        f"{build_known_facts_block(report)}\n\n"
        f"{ROLE}\n\n"
        "Here is the buyer's complete analysis report:\n\n"
        f"{build_report_digest(report)}"
        f"{summary_block}"
        f"{persona_hints}"
        f"{format_memory_for_prompt(memory)}\n\n"
        f"{TOOL_GUIDANCE}\n\n"
        f"{CLOSING}"
        f"{GUARDRAIL_SYSTEM_PROMPT_SUFFIX}"
    )
