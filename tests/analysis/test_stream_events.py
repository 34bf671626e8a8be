"""Tests for analysis stream events and report folding."""
import json
from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from homewise.analysis.schemas import (
    DISCLAIMERS,
    AnalysisEvent,
    CompleteEvent,
    ErrorEvent,
    MarketDataEvent,
    SummaryEvent,
    fold_events,
    parse_event,
    to_ndjson,
)


@pytest.fixture
def events(computed_report):
    return [
        MarketDataEvent(market_snapshot=computed_report.market_snapshot),
        AnalysisEvent(**computed_report.model_dump(exclude={"market_snapshot"})),
        SummaryEvent(summary="## Summary\nYou can buy.", summary_source="template"),
        CompleteEvent(
            disclaimers=list(DISCLAIMERS),
            generated_at=datetime(2025, 6, 5, 12, 0, tzinfo=timezone.utc),
            trace_id="abc123",
        ),
    ]


def test_ndjson_lines_carry_the_phase(events):
    lines = [to_ndjson(e) for e in events]

    assert all(line.endswith("\n") and line.count("\n") == 1 for line in lines)
    assert [json.loads(line)["phase"] for line in lines] == ["market_data", "analysis", "summary", "complete"]


def test_parse_event_dispatches_on_phase(events):
    parsed = parse_event(to_ndjson(events[2]))

    assert isinstance(parsed, SummaryEvent)
    assert parsed.summary_source == "template"
    assert isinstance(parse_event({"phase": "error", "error": "Invalid profile"}), ErrorEvent)


def test_parse_event_rejects_unknown_phase():
    with pytest.raises(ValidationError):
        parse_event({"phase": "bogus"})


def test_fold_rebuilds_the_report(events, computed_report):
    report = fold_events(to_ndjson(e) for e in events)

    assert report.affordability == computed_report.affordability
    assert report.market_snapshot == computed_report.market_snapshot
    assert report.summary.startswith("## Summary")
    assert report.trace_id == "abc123"
    assert report.disclaimers == DISCLAIMERS


def test_fold_accepts_models_and_dicts(events):
    mixed = [events[0], events[1].model_dump(mode="json"), events[2], json.loads(to_ndjson(events[3]))]

    assert fold_events(mixed).summary_source == "template"


def test_fold_raises_on_error_event():
    with pytest.raises(ValueError, match="Invalid profile"):
        fold_events([ErrorEvent(error="Invalid profile", details=["credit_score: too low"])])


def test_fold_raises_without_complete(events):
    with pytest.raises(ValueError, match="complete"):
        fold_events(events[:3])
