"""Analysis stream event schemas.

One run emits, in order: market_data, analysis, summary, complete. A run
that fails profile validation emits a single error event instead. Each
event is one NDJSON line; fold_events rebuilds the report from them.
"""
from datetime import datetime
from enum import Enum
from pydantic import BaseModel, Field, TypeAdapter
from typing import Annotated, Any, Dict, Iterable, List, Literal, Optional, Union

from homewise.schemas.market import MarketSnapshot
from homewise.schemas.report import (
    AffordabilityResult,
    FinalReport,
    InvestmentAnalysis,
    PreApprovalReadiness,
    PropertyAnalysis,
    Recommendations,
    RentVsBuyReport,
    RiskReport,
)


class RunState(str, Enum):
    """Analysis run state. Transitions only move forward."""
    FETCHING = "fetching"
    COMPUTING = "computing"
    SYNTHESIZING = "synthesizing"
    COMPLETE = "complete"
    ERROR = "error"


DISCLAIMERS = [
    "This analysis is for informational purposes only and does not constitute financial advice.",
    "Consult a licensed mortgage professional before making any home purchase decisions.",
    "Market data is based on the most recent available figures and may not reflect real-time conditions.",
]


# ============================================================================
# STREAM EVENTS
# ============================================================================

class MarketDataEvent(BaseModel):
    phase: Literal["market_data"] = "market_data"
    market_snapshot: MarketSnapshot


class AnalysisEvent(BaseModel):
    phase: Literal["analysis"] = "analysis"
    affordability: AffordabilityResult
    risk_assessment: RiskReport
    recommendations: Recommendations
    rent_vs_buy: Optional[RentVsBuyReport] = None
    investment: Optional[InvestmentAnalysis] = None
    pre_approval_readiness: PreApprovalReadiness
    property_analysis: Optional[PropertyAnalysis] = None


class SummaryEvent(BaseModel):
    phase: Literal["summary"] = "summary"
    summary: str
    summary_source: Literal["model", "template"]


class CompleteEvent(BaseModel):
    phase: Literal["complete"] = "complete"
    disclaimers: List[str] = Field(default_factory=lambda: list(DISCLAIMERS))
    generated_at: datetime
    trace_id: str


class ErrorEvent(BaseModel):
    phase: Literal["error"] = "error"
    error: str
    details: List[str] = Field(default_factory=list)


StreamEvent = Annotated[
    Union[MarketDataEvent, AnalysisEvent, SummaryEvent, CompleteEvent, ErrorEvent],
    Field(discriminator="phase"),
]

_stream_event_adapter = TypeAdapter(StreamEvent)


def to_ndjson(event: BaseModel) -> str:
    """Serialize one event as a newline-terminated JSON line."""
    return event.model_dump_json() + "\n"


def parse_event(data: Union[str, bytes, Dict[str, Any]]):
    """Parse one NDJSON line (or decoded dict) into its event model."""
    if isinstance(data, dict):
        return _stream_event_adapter.validate_python(data)
    return _stream_event_adapter.validate_json(data)


def fold_events(events: Iterable[Any]) -> FinalReport:
    """
    Rebuild the final report from a stream of events.

    Accepts event models, dicts or raw NDJSON lines. Raises ValueError if
    the stream ended in an error or never reached complete.
    """
    fields: Dict[str, Any] = {}
    completed = False

    for raw in events:
        event = raw if isinstance(raw, BaseModel) else parse_event(raw)
        if isinstance(event, ErrorEvent):
            raise ValueError(f"Analysis failed: {event.error}")
        if isinstance(event, CompleteEvent):
            completed = True
        fields.update(event.model_dump(exclude={"phase"}))

    if not completed:
        raise ValueError("Analysis stream ended before the complete event")
    return FinalReport.model_validate(fields)
