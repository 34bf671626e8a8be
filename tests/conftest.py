"""Shared test fixtures and fakes for Homewise backend tests."""
import asyncio
from typing import Any, Dict, List, Optional

import pytest

from homewise.advisor.llm import ModelTurn
from homewise.finance import compute_report
from homewise.schemas.market import MarketSnapshot, MortgageRates
from homewise.schemas.profile import Profile
from homewise.schemas.report import FinalReport
from homewise.services.cache import TTLCache


# ============================================================================
# FAKES
# ============================================================================

class FakeLLM:
    """
    Scripted stand-in for AdvisorLLM.

    complete() hands out ``turns`` in order and keeps repeating the last
    one, so a single tool-call turn can drive the loop until it exhausts.
    """

    def __init__(
        self,
        turns: Optional[List[ModelTurn]] = None,
        on_topic: bool = True,
        summary: str = "- Buyer earns $120,000",
        synthesis: str = "",
        synthesis_delay: float = 0,
        text: str = "",
        error: Optional[Exception] = None,
    ):
        self.turns = list(turns or [ModelTurn(text="Happy to help.")])
        self.on_topic = on_topic
        self.summary = summary
        self.synthesis = synthesis
        self.synthesis_delay = synthesis_delay
        self.text = text
        self.error = error
        self.calls: List[List[Dict[str, Any]]] = []
        self.summarize_prompts: List[str] = []

    async def complete(self, messages, tools=None) -> ModelTurn:
        if self.error is not None:
            raise self.error
        self.calls.append([dict(m) for m in messages])
        if len(self.turns) > 1:
            return self.turns.pop(0)
        return self.turns[0]

    async def complete_text(self, prompt, **kwargs) -> str:
        return self.text

    async def classify_topic(self, message: str) -> bool:
        return self.on_topic

    async def summarize(self, prompt: str) -> str:
        self.summarize_prompts.append(prompt)
        return self.summary

    async def synthesize(self, system: str, prompt: str) -> str:
        if self.synthesis_delay:
            await asyncio.sleep(self.synthesis_delay)
        if self.error is not None:
            raise self.error
        return self.synthesis


class FakeFred:
    """FRED client returning fixed observations, or raising ``error``."""

    def __init__(self, error: Optional[Exception] = None, rates_error: Optional[Exception] = None):
        self.error = error
        self.rates_error = rates_error

    async def get_mortgage_rates(self) -> Dict[str, Any]:
        if self.error or self.rates_error:
            raise self.error or self.rates_error
        return {
            "thirty_year_fixed": 6.85,
            "fifteen_year_fixed": 6.1,
            "federal_funds_rate": 4.33,
            "data_date": "2025-06-05",
            "source": "Federal Reserve Economic Data (FRED)",
        }

    async def get_median_prices(self) -> Dict[str, Any]:
        if self.error:
            raise self.error
        return {
            "national": 410_800,
            "national_new": 395_000,
            "case_shiller_index": 330.1,
            "data_date": "2025-01-01",
        }

    async def get_current_rates(self) -> Dict[str, Any]:
        if self.error:
            raise self.error
        return {
            "as_of": "2025-06-05",
            "thirty_year_fixed": 6.85,
            "fifteen_year_fixed": 6.1,
            "five_one_arm": 6.2,
            "source": "Federal Reserve Economic Data (FRED)",
        }


class FakeBls:
    def __init__(self, error: Optional[Exception] = None):
        self.error = error

    async def get_inflation(self) -> Dict[str, float]:
        if self.error:
            raise self.error
        return {
            "shelter_cpi_current": 345.2,
            "shelter_cpi_year_ago": 330.0,
            "shelter_inflation_rate": 4.61,
            "general_inflation_rate": 2.7,
        }


# ============================================================================
# FIXTURES
# ============================================================================

@pytest.fixture
def profile_payload() -> Dict[str, Any]:
    """A typical first-time buyer, as the client would submit it."""
    return {
        "annual_gross_income": 120000,
        "monthly_debt_payments": 500,
        "down_payment_savings": 60000,
        "additional_savings": 20000,
        "credit_score": 740,
        "target_location": "Austin, TX",
        "preferred_loan_term": 30,
        "loan_type": "fixed",
        "first_time_buyer": True,
        "current_monthly_rent": 2200,
    }


@pytest.fixture
def profile(profile_payload) -> Profile:
    return Profile.model_validate(profile_payload)


@pytest.fixture
def snapshot() -> MarketSnapshot:
    return MarketSnapshot(
        mortgage_rates=MortgageRates(
            thirty_year_fixed=6.5,
            fifteen_year_fixed=5.8,
            data_date="2025-06-05",
            source="test",
        ),
    )


@pytest.fixture
def computed_report(profile, snapshot):
    return compute_report(profile, snapshot)


@pytest.fixture
def report(computed_report) -> FinalReport:
    """A finished report, as the client sends it back to the advisor."""
    return FinalReport.model_validate({
        **computed_report.model_dump(),
        "summary": "You can afford a home in Austin.",
        "summary_source": "template",
        "trace_id": "trace-test-123",
    })


@pytest.fixture
def cache() -> TTLCache:
    return TTLCache()


@pytest.fixture
def fake_llm() -> FakeLLM:
    return FakeLLM()
