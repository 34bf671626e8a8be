"""Unit tests for the advisor tools and dispatcher."""
import json

import httpx
import pytest

from conftest import FakeFred
from homewise.advisor.tools import (
    SEARCH_HINT,
    TOOL_HANDLERS,
    TOOL_SCHEMAS,
    ToolContext,
    get_tool_schemas,
    run_tool,
    verify_tool_registry,
)
from homewise.exceptions import UpstreamFailure
from homewise.services.cache import TTLCache
from homewise.services.fred import FredClient


async def call(tool_name, tool_input, ctx=None):
    return json.loads(await run_tool(tool_name, tool_input, ctx or ToolContext()))


PAYMENT_ARGS = {
    "home_price": 400_000,
    "down_payment_amount": 80_000,
    "interest_rate": 0.065,
    "loan_term_years": 30,
}


class FakeSearch:
    def __init__(self, listings=None, error=None):
        self.listings = listings or []
        self.error = error
        self.calls = []

    async def search_properties(self, location, max_price=None, min_beds=None):
        self.calls.append((location, max_price, min_beds))
        if self.error:
            raise self.error
        return self.listings


# ============================================================================
# REGISTRY
# ============================================================================

class TestRegistry:

    def test_ten_tools(self):
        names = [s["function"]["name"] for s in get_tool_schemas()]

        assert len(names) == 10
        assert set(names) == set(TOOL_HANDLERS)

    def test_mismatch_raises(self):
        with pytest.raises(RuntimeError, match="schemas without handlers=\\['stress_test'\\]"):
            verify_tool_registry(
                TOOL_SCHEMAS,
                {k: v for k, v in TOOL_HANDLERS.items() if k != "stress_test"},
            )

    def test_schemas_are_openai_functions(self):
        for schema in TOOL_SCHEMAS:
            assert schema["type"] == "function"
            assert schema["function"]["parameters"]["type"] == "object"


# ============================================================================
# DISPATCH
# ============================================================================

class TestDispatch:

    @pytest.mark.asyncio
    async def test_unknown_tool(self):
        assert await call("book_flight", {}) == {"error": "Unknown tool: book_flight"}

    @pytest.mark.asyncio
    async def test_validation_failure(self):
        result = await call("calculate_payment_for_price", {**PAYMENT_ARGS, "interest_rate": 7})

        assert result["error"] == "Parameter validation failed"
        assert result["details"] == ["Interest rate must be between 0.001 and 0.3, got 7"]

    @pytest.mark.asyncio
    async def test_missing_parameter(self):
        result = await call("calculate_payment_for_price", {"home_price": 400_000})

        assert result == {"error": "Missing required parameter: down_payment_amount"}

    @pytest.mark.asyncio
    async def test_wrong_type(self):
        result = await call("stress_test", {
            "test_type": "rate_hike",
            "loan_amount": "a lot",
            "current_rate": 0.065,
            "rate_increase": 0.02,
            "gross_monthly_income": 10_000,
            "existing_monthly_debts": 500,
        })

        assert result == {"error": "Invalid parameters for stress_test"}


# ============================================================================
# FINANCIAL MATH
# ============================================================================

class TestMathTools:

    @pytest.mark.asyncio
    async def test_payment_for_price(self):
        result = await call("calculate_payment_for_price", PAYMENT_ARGS)

        assert result["pmi"] == 0
        assert result["home_insurance"] == 125.0
        assert result["total_monthly"] > result["principal"] + result["interest"]

    @pytest.mark.asyncio
    async def test_recalculate_affordability(self):
        result = await call("recalculate_affordability", {
            "annual_gross_income": 150_000,
            "monthly_debt_payments": 400,
            "down_payment_amount": 100_000,
            "interest_rate": 0.06,
            "loan_term_years": 30,
        })

        assert result["limiting_factor"] == "front-end DTI"
        assert result["max_housing_payment"] == 3500
        assert result["payment"]["total_monthly"] <= 3500.01
        assert result["dti"]["front_end_status"] == "safe"

    @pytest.mark.asyncio
    async def test_compare_scenarios(self):
        result = await call("compare_scenarios", {
            "scenario_a": {**PAYMENT_ARGS, "label": "30-year"},
            "scenario_b": {**PAYMENT_ARGS, "label": "15-year", "loan_term_years": 15},
        })

        a, b = result["scenario_a"], result["scenario_b"]
        assert (a["label"], b["label"]) == ("30-year", "15-year")
        assert b["payment"]["total_monthly"] > a["payment"]["total_monthly"]
        assert result["difference"] == round(b["payment"]["total_monthly"] - a["payment"]["total_monthly"])
        assert a["total_cost"] == round(a["payment"]["total_monthly"] * 360)

    @pytest.mark.asyncio
    async def test_stress_test_income_loss(self):
        result = await call("stress_test", {
            "test_type": "income_loss",
            "gross_monthly_income": 10_000,
            "income_reduction_percent": 50,
            "monthly_housing_payment": 2_500,
            "existing_monthly_debts": 500,
            "remaining_savings": 12_000,
        })

        assert result["months_of_runway"] == 12
        assert result["severity"] == "unsustainable"

    @pytest.mark.asyncio
    async def test_rent_vs_buy(self):
        result = await call("rent_vs_buy", {
            "home_price": 300_000,
            "down_payment_amount": 60_000,
            "interest_rate": 0.06,
            "loan_term_years": 30,
            "monthly_rent": 3_000,
            "years": 5,
        })

        assert result["verdict"].startswith("Buying saves")
        assert set(result) == {"buy_total_cost", "rent_total_cost", "buy_equity", "buy_net_cost", "verdict"}


class TestAnalyzeProperty:

    @pytest.mark.asyncio
    async def test_needs_a_report(self):
        result = await call("analyze_property", {"listing_price": 400_000})

        assert "error" in result

    @pytest.mark.asyncio
    async def test_over_budget_listing(self, report):
        price = report.affordability.max_home_price * 2

        result = await call("analyze_property", {"listing_price": price, "hoa_monthly": 250}, ToolContext(report=report))

        assert result["verdict"] == "significantly over budget"
        assert result["stretch_factor"] == 2.0
        assert result["percent_of_max"] == "200%"
        assert result["payment_breakdown"]["hoa"] == "$250"
        assert result["address"] == "Specified property"

    @pytest.mark.asyncio
    async def test_comfortable_listing(self, report):
        a = report.affordability
        ctx = ToolContext(report=report)

        result = await call("analyze_property", {"listing_price": a.recommended_home_price, "address": "12 Elm St"}, ctx)

        assert result["verdict"] == "comfortable"
        assert result["address"] == "12 Elm St"
        assert result["max_home_price"].startswith("$")
        assert result["payment_breakdown"]["hoa"] == "N/A"


# ============================================================================
# KNOWLEDGE AND LIVE DATA
# ============================================================================

class TestDataTools:

    @pytest.mark.asyncio
    async def test_lookup_mortgage_info(self):
        result = await call("lookup_mortgage_info", {"query": "FHA loan down payment credit score"})

        assert 1 <= len(result["documents"]) <= 3
        assert any("FHA" in doc["title"] for doc in result["documents"])
        assert set(result["documents"][0]) == {"title", "content", "source", "relevance"}

    @pytest.mark.asyncio
    async def test_current_rates(self):
        result = await call("get_current_rates", {}, ToolContext(fred=FakeFred()))

        assert result["thirty_year_fixed"] == 6.85
        assert result["five_one_arm"] == 6.2

    @pytest.mark.asyncio
    async def test_current_rates_fallback(self):
        failing = ToolContext(fred=FakeFred(error=UpstreamFailure("fred", "HTTP 500")))

        for ctx in (ToolContext(), failing):
            result = await call("get_current_rates", {}, ctx)
            assert result["fallback"] is True
            assert "Unable to fetch current rates" in result["error"]

    @pytest.mark.asyncio
    async def test_current_rates_fallback_on_garbled_response(self):
        http_client = httpx.AsyncClient(
            transport=httpx.MockTransport(lambda request: httpx.Response(200, text="<html>maintenance</html>"))
        )
        fred = FredClient("test-key", TTLCache(), http_client=http_client, timeout=1.0)

        result = await call("get_current_rates", {}, ToolContext(fred=fred))

        assert result["fallback"] is True
        assert "Invalid parameters" not in result["error"]

    @pytest.mark.asyncio
    async def test_search_properties(self):
        search = FakeSearch(listings=[{"address": "1 Main St", "price": 350_000}])

        result = await call(
            "search_properties",
            {"location": "Austin, TX", "max_price": 400_000, "min_beds": 3},
            ToolContext(property_search=search),
        )

        assert result["result_count"] == 1
        assert result["location"] == "Austin, TX"
        assert search.calls == [("Austin, TX", 400_000, 3)]

    @pytest.mark.asyncio
    async def test_search_without_results(self):
        result = await call("search_properties", {"location": "Austin, TX"}, ToolContext(property_search=FakeSearch()))

        assert result == {"message": "No listings found matching your criteria.", "results": []}

    @pytest.mark.asyncio
    async def test_search_failure_carries_hint(self):
        search = FakeSearch(error=UpstreamFailure("zillow", "RAPIDAPI_KEY environment variable is not set"))

        result = await call("search_properties", {"location": "Austin, TX"}, ToolContext(property_search=search))

        assert "RAPIDAPI_KEY" in result["error"]
        assert result["hint"] == SEARCH_HINT

    @pytest.mark.asyncio
    async def test_area_info(self):
        result = await call("get_area_info", {"location": "Austin, TX"})

        assert result["location"] == "austin, tx"
        assert result["property_tax_rate"] == "1.67%"
        assert result["estimated_annual_tax_on_400k"] == "$6,680"
        assert result["cost_of_living_note"] == "3% above national average"

    @pytest.mark.asyncio
    async def test_area_info_unknown(self):
        result = await call("get_area_info", {"location": "Zzyzx, CA"})

        assert "No data available" in result["error"]
        assert "available_example" in result
