"""Unit tests for advisor context engineering."""
import json

import pytest

from conftest import FakeLLM
from homewise.advisor.context import (
    DEFAULT_TOOL_TTL_SECONDS,
    MIN_KEEP_MESSAGES,
    TOKEN_BUDGET,
    build_persona_hints,
    build_summary_prompt,
    build_tool_cache_key,
    estimate_tokens,
    extract_facts_from_tool_result,
    format_memory_for_prompt,
    get_tool_ttl,
    split_for_summarization,
    summarize_older_messages,
    truncate_to_fit_budget,
)
from homewise.advisor.schemas import SessionMemory


def history(n: int):
    return [
        {"role": "user" if i % 2 == 0 else "assistant", "content": f"message {i}"}
        for i in range(n)
    ]


# ============================================================================
# TOKEN BUDGET
# ============================================================================

class TestTruncation:

    def test_estimate_tokens(self):
        assert estimate_tokens("") == 0
        assert estimate_tokens("abcd") == 1
        assert estimate_tokens("abcde") == 2

    def test_fits_untouched(self):
        result = truncate_to_fit_budget(1_000, history(10))

        assert not result.was_truncated
        assert len(result.messages) == 10

    def test_drops_oldest_pairs_but_keeps_minimum(self):
        messages = history(10)

        result = truncate_to_fit_budget(TOKEN_BUDGET, messages)

        assert result.was_truncated
        assert result.dropped_count == 4
        assert len(result.messages) == MIN_KEEP_MESSAGES
        assert result.messages == messages[4:]

    def test_odd_length_keeps_at_least_minimum(self):
        for n in (7, 9):
            result = truncate_to_fit_budget(TOKEN_BUDGET, history(n))

            assert len(result.messages) >= MIN_KEEP_MESSAGES
            assert result.messages[-1] == history(n)[-1]

    def test_seven_messages_are_not_trimmed_to_five(self):
        result = truncate_to_fit_budget(TOKEN_BUDGET, history(7))

        assert result.was_truncated
        assert result.dropped_count == 0
        assert len(result.messages) == 7

    def test_nine_messages_drop_one_pair(self):
        messages = history(9)

        result = truncate_to_fit_budget(TOKEN_BUDGET, messages)

        assert result.dropped_count == 2
        assert result.messages == messages[2:]


# ============================================================================
# SUMMARIZATION
# ============================================================================

class TestSummarization:

    def test_short_history_not_split(self):
        recent, older = split_for_summarization(history(7))

        assert len(recent) == 7
        assert older is None

    def test_long_history_split(self):
        messages = history(11)

        recent, older = split_for_summarization(messages)

        assert recent == messages[-8:]
        assert older == messages[:3]

    def test_summary_prompt_builds_on_existing(self):
        prompt = build_summary_prompt(history(2), "- Income $120k")

        assert prompt.startswith("Previous summary:\n- Income $120k")
        assert "user: message 0" in prompt

    @pytest.mark.asyncio
    async def test_summarize(self):
        llm = FakeLLM(summary="- Wants a 3-bed in Austin")

        summary = await summarize_older_messages(history(4), None, llm)

        assert summary == "- Wants a 3-bed in Austin"
        assert llm.summarize_prompts[0].startswith("Summarize this mortgage advisor conversation")

    @pytest.mark.asyncio
    async def test_summarize_failure_keeps_previous(self):
        class BrokenLLM:
            async def summarize(self, prompt):
                raise RuntimeError("rate limited")

        summary = await summarize_older_messages(history(4), "- Old summary", BrokenLLM())

        assert summary == "- Old summary"


# ============================================================================
# PERSONA HINTS
# ============================================================================

class TestPersonaHints:

    def test_fha_and_low_dti(self, report):
        hints = build_persona_hints(report)

        assert hints.startswith("\n\nPERSONA HINTS")
        assert "FHA eligible" in hints
        assert "eligible for VA loans" not in hints

    def test_va_replaces_fha_hint(self, report):
        options = [
            o.model_copy(update={"eligible": True}) if o.type == "va" else o
            for o in report.recommendations.loan_options
        ]
        veteran = report.model_copy(update={
            "recommendations": report.recommendations.model_copy(update={"loan_options": options}),
        })

        hints = build_persona_hints(veteran)

        assert "eligible for VA loans" in hints
        assert "FHA eligible" not in hints

    def test_high_dti_hint(self, report):
        dti = report.affordability.dti_analysis.model_copy(update={"back_end_ratio": 44.2})
        affordability = report.affordability.model_copy(update={"dti_analysis": dti})

        hints = build_persona_hints(report.model_copy(update={"affordability": affordability}))

        assert "Back-end DTI is 44.2% (above 36%)" in hints


# ============================================================================
# SESSION MEMORY
# ============================================================================

class TestSessionMemory:

    def test_payment_fact(self):
        facts = extract_facts_from_tool_result(
            "calculate_payment_for_price",
            {"home_price": 400000.0},
            json.dumps({"total_monthly": 2750.12}),
        )

        assert facts == {"payment_400000": 2750.12}

    def test_stress_test_fact(self):
        facts = extract_facts_from_tool_result(
            "stress_test",
            {"test_type": "income_loss"},
            json.dumps({"can_afford": False, "new_dti": 61.2, "months_of_runway": 4}),
        )

        assert facts == {
            "stress_test": {"test_type": "income_loss", "can_afford": False, "new_dti": 61.2, "months_of_runway": 4}
        }

    def test_comparison_fact(self):
        result = {"scenario_a": {"label": "A"}, "scenario_b": {"label": "B"}, "difference": 310}

        facts = extract_facts_from_tool_result("compare_scenarios", {}, json.dumps(result))

        assert facts == {"last_comparison": {"monthly_difference": 310, "scenario_a": "A", "scenario_b": "B"}}

    def test_errors_and_other_tools_yield_nothing(self):
        assert extract_facts_from_tool_result("rent_vs_buy", {}, json.dumps({"error": "x"})) is None
        assert extract_facts_from_tool_result("get_area_info", {}, json.dumps({"state": "TX"})) is None
        assert extract_facts_from_tool_result("rent_vs_buy", {}, "not json") is None

    def test_memory_only_grows(self):
        memory = SessionMemory()
        memory.remember({"a": 1})
        memory.remember({"a": 2, "b": 3})
        memory.record_tool("stress_test")
        memory.record_tool("stress_test")

        assert memory.facts == {"a": 2, "b": 3}
        assert memory.tools_used == ["stress_test"]

    def test_format_memory(self):
        assert format_memory_for_prompt(None) == ""
        assert format_memory_for_prompt(SessionMemory()) == ""

        text = format_memory_for_prompt(SessionMemory(facts={"payment_400000": 2750.12}))
        assert "SESSION MEMORY" in text
        assert "- payment_400000: 2750.12" in text


# ============================================================================
# TOOL CACHE KEYS
# ============================================================================

class TestToolCacheKeys:

    def test_argument_order_does_not_matter(self):
        a = build_tool_cache_key("compare_scenarios", {"scenario_a": {"x": 1, "y": 2}, "scenario_b": {}})
        b = build_tool_cache_key("compare_scenarios", {"scenario_b": {}, "scenario_a": {"y": 2, "x": 1}})

        assert a == b
        assert a.startswith("tool:compare_scenarios:")

    def test_scope_separates_reports(self):
        args = {"listing_price": 400000}

        assert build_tool_cache_key("analyze_property", args, "r1") != build_tool_cache_key("analyze_property", args, "r2")

    def test_ttls(self):
        assert get_tool_ttl("get_current_rates") == 300
        assert get_tool_ttl("get_area_info") == 1800
        assert get_tool_ttl("compare_scenarios") == 3600
        assert get_tool_ttl("not_a_tool") == DEFAULT_TOOL_TTL_SECONDS
