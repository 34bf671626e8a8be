"""Advisor Context Engineering - keeps each model call within budget and on point.

1. Token-aware truncation of the message list
2. Rolling summarization of older history
3. Persona hints derived from the report
4. Session memory extracted from tool results
5. Tool result cache keys and TTLs
"""
import json
import logging
import math
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from homewise.advisor.schemas import SessionMemory
from homewise.schemas.report import ComputedReport

logger = logging.getLogger(__name__)


# ============================================================================
# TOKEN BUDGET
# ============================================================================

CHARS_PER_TOKEN = 4
MESSAGE_OVERHEAD_TOKENS = 4
MAX_CONTEXT_TOKENS = 200_000
TOKEN_BUDGET = int(MAX_CONTEXT_TOKENS * 0.8)
RESERVED_FOR_OUTPUT = 4096
RESERVED_FOR_TOOLS = 6000
MIN_KEEP_MESSAGES = 6  # last 3 exchanges


def estimate_tokens(text: str) -> int:
    return math.ceil(len(text) / CHARS_PER_TOKEN)


def estimate_messages_tokens(messages: List[Dict[str, Any]]) -> int:
    return sum(estimate_tokens(m.get("content") or "") + MESSAGE_OVERHEAD_TOKENS for m in messages)


@dataclass
class TruncationResult:
    messages: List[Dict[str, Any]]
    was_truncated: bool
    dropped_count: int


def truncate_to_fit_budget(system_tokens: int, messages: List[Dict[str, Any]]) -> TruncationResult:
    """
    Drop the oldest user/assistant pairs until the messages fit.

    Never drops below MIN_KEEP_MESSAGES, even if still over budget.
    """
    available = TOKEN_BUDGET - system_tokens - RESERVED_FOR_OUTPUT - RESERVED_FOR_TOOLS

    if estimate_messages_tokens(messages) <= available:
        return TruncationResult(messages=list(messages), was_truncated=False, dropped_count=0)

    trimmed = list(messages)
    dropped = 0
    while estimate_messages_tokens(trimmed) > available and len(trimmed) - 2 >= MIN_KEEP_MESSAGES:
        trimmed = trimmed[2:]
        dropped += 2

    logger.info(f"Truncated history: dropped {dropped} messages to fit {available} tokens")
    return TruncationResult(messages=trimmed, was_truncated=True, dropped_count=dropped)


# ============================================================================
# SUMMARIZATION
# ============================================================================

SUMMARIZE_THRESHOLD = 8  # 4 exchanges
_SUMMARY_MESSAGE_CHARS = 500


def split_for_summarization(
    history: List[Dict[str, Any]],
    threshold: int = SUMMARIZE_THRESHOLD,
) -> Tuple[List[Dict[str, Any]], Optional[List[Dict[str, Any]]]]:
    """Return (recent, older); older is None while history is short."""
    if len(history) < threshold:
        return list(history), None
    return list(history[-threshold:]), list(history[:-threshold])


def build_summary_prompt(older: List[Dict[str, Any]], existing_summary: Optional[str]) -> str:
    conversation_text = "\n\n".join(
        f"{m['role']}: {(m.get('content') or '')[:_SUMMARY_MESSAGE_CHARS]}" for m in older
    )
    if existing_summary:
        return (
            f"Previous summary:\n{existing_summary}\n\n"
            f"New messages to incorporate:\n{conversation_text}\n\n"
            "Update the summary. Include key facts, specific numbers from calculations, "
            "and user preferences. Under 200 words, bullet points."
        )
    return (
        "Summarize this mortgage advisor conversation. Extract: key financial facts "
        "(income, prices, rates), calculation results (specific numbers), and user preferences."
        f"\n\n{conversation_text}\n\nUnder 200 words, bullet points."
    )


async def summarize_older_messages(
    older: List[Dict[str, Any]],
    existing_summary: Optional[str],
    llm,
) -> str:
    """One cheap model call; the existing summary survives any failure."""
    prompt = build_summary_prompt(older, existing_summary)
    try:
        summary = await llm.summarize(prompt)
    except Exception as e:
        logger.warning(f"History summarization failed, keeping previous summary: {e}")
        return existing_summary or ""
    return summary or existing_summary or ""


# ============================================================================
# PERSONA HINTS
# ============================================================================

def build_persona_hints(report: ComputedReport) -> str:
    """Additive tone and focus hints for the system prompt."""
    hints: List[str] = []

    loan_options = report.recommendations.loan_options
    fha_eligible = any(o.type == "fha" and o.eligible for o in loan_options)
    va_eligible = any(o.type == "va" and o.eligible for o in loan_options)

    if va_eligible:
        hints.append(
            "Buyer is eligible for VA loans. Highlight VA benefits: no down payment, no PMI, "
            "competitive rates. Compare VA vs conventional when relevant."
        )
    if fha_eligible and not va_eligible:
        hints.append(
            "Buyer may be a first-time buyer (FHA eligible). Emphasize FHA benefits, lower down "
            "payment options, and down payment assistance programs. Explain mortgage jargon simply."
        )

    back_end = report.affordability.dti_analysis.back_end_ratio
    if back_end > 36:
        hints.append(
            f"Back-end DTI is {back_end:.1f}% (above 36%). Suggest debt reduction strategies and "
            "note which debts to pay down first for maximum buying power."
        )
    elif back_end <= 28:
        hints.append(
            "Excellent DTI ratios. Room for a more expensive home. Focus on optimizing rate and loan terms."
        )

    if report.risk_assessment.overall_risk_level in ("high", "very_high"):
        hints.append(
            "Risk assessment is HIGH. Be cautious with recommendations. Emphasize emergency fund "
            "adequacy and stress test results."
        )

    if report.property_analysis is not None:
        hints.append(
            "A specific property has been analyzed. Reference it in comparisons and suggest using "
            "compare_scenarios for alternatives."
        )

    if not hints:
        return ""
    return "\n\nPERSONA HINTS (tailor responses accordingly):\n" + "\n".join(f"- {h}" for h in hints)


# ============================================================================
# SESSION MEMORY
# ============================================================================

def _number_key(value: Any) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def extract_facts_from_tool_result(
    tool_name: str,
    tool_input: Dict[str, Any],
    result: str,
) -> Optional[Dict[str, Any]]:
    """Pull the facts worth remembering out of a tool's JSON result."""
    try:
        parsed = json.loads(result)
    except (json.JSONDecodeError, TypeError):
        return None
    if not isinstance(parsed, dict) or "error" in parsed:
        return None

    if tool_name == "recalculate_affordability":
        return {
            "recalculated": {
                "max_price": parsed.get("max_home_price"),
                "payment": (parsed.get("payment") or {}).get("total_monthly"),
                "income": tool_input.get("annual_gross_income"),
                "rate": tool_input.get("interest_rate"),
            }
        }
    if tool_name == "calculate_payment_for_price":
        return {f"payment_{_number_key(tool_input.get('home_price'))}": parsed.get("total_monthly")}
    if tool_name == "get_current_rates":
        return {
            "live_rates": {
                "thirty_year": parsed.get("thirty_year_fixed"),
                "fifteen_year": parsed.get("fifteen_year_fixed"),
                "as_of": parsed.get("as_of"),
            }
        }
    if tool_name == "compare_scenarios":
        return {
            "last_comparison": {
                "monthly_difference": parsed.get("difference"),
                "scenario_a": (parsed.get("scenario_a") or {}).get("label"),
                "scenario_b": (parsed.get("scenario_b") or {}).get("label"),
            }
        }
    if tool_name == "rent_vs_buy":
        return {"rent_vs_buy_verdict": parsed.get("verdict")}
    if tool_name == "search_properties":
        return {
            "property_search": {
                "location": tool_input.get("location"),
                "count": parsed.get("result_count", 0),
            }
        }
    if tool_name == "stress_test":
        facts = {
            "test_type": tool_input.get("test_type"),
            "can_afford": parsed.get("can_afford"),
            "new_dti": parsed.get("new_dti"),
        }
        if "months_of_runway" in parsed:
            facts["months_of_runway"] = parsed["months_of_runway"]
        return {"stress_test": facts}

    return None


def format_memory_for_prompt(memory: Optional[SessionMemory]) -> str:
    if memory is None or not memory.facts:
        return ""
    lines = "\n".join(f"- {key}: {json.dumps(value)}" for key, value in memory.facts.items())
    return (
        "\n\nSESSION MEMORY (facts from previous tool calls; avoid re-calling tools for known values):\n"
        f"{lines}"
    )


# ============================================================================
# TOOL RESULT CACHING
# ============================================================================

HOUR = 3600

TOOL_CACHE_TTL_SECONDS: Dict[str, int] = {
    "recalculate_affordability": HOUR,
    "calculate_payment_for_price": HOUR,
    "compare_scenarios": HOUR,
    "stress_test": HOUR,
    "rent_vs_buy": HOUR,
    "analyze_property": HOUR,
    "lookup_mortgage_info": HOUR,
    "get_current_rates": 300,
    "search_properties": 300,
    "get_area_info": 1800,
}
DEFAULT_TOOL_TTL_SECONDS = 300


def build_tool_cache_key(tool_name: str, tool_input: Dict[str, Any], scope: Optional[str] = None) -> str:
    """
    Stable key: nested keys are sorted too, so argument order never matters.

    ``scope`` separates results that also depend on the report, such as
    analyze_property.
    """
    payload = json.dumps(tool_input, sort_keys=True)
    if scope:
        return f"tool:{tool_name}:{scope}:{payload}"
    return f"tool:{tool_name}:{payload}"


def get_tool_ttl(tool_name: str) -> int:
    return TOOL_CACHE_TTL_SECONDS.get(tool_name, DEFAULT_TOOL_TTL_SECONDS)


__all__ = [
    "SessionMemory",
    "TruncationResult",
    "estimate_tokens",
    "truncate_to_fit_budget",
    "split_for_summarization",
    "summarize_older_messages",
    "build_persona_hints",
    "extract_facts_from_tool_result",
    "format_memory_for_prompt",
    "build_tool_cache_key",
    "get_tool_ttl",
]
