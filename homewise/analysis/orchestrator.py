"""Analysis Orchestrator - drives one analysis run through its three phases.

The orchestrator:
1. Validates the submitted profile (the only hard failure)
2. Fetches market data concurrently, with per-source fallbacks
3. Computes every deterministic sub-report
4. Synthesizes a narrative summary, falling back to a template
5. Completes the run with disclaimers, timestamp and trace id

Events are yielded strictly in phase order. Closing the generator stops
the run; nothing needs to be rolled back.
"""
import logging
import time
import uuid
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Dict, Optional

from pydantic import BaseModel, ValidationError

from homewise.analysis.market_data import PropertyImportFn, fetch_market_snapshot
from homewise.analysis.schemas import (
    DISCLAIMERS,
    AnalysisEvent,
    CompleteEvent,
    ErrorEvent,
    MarketDataEvent,
    RunState,
    SummaryEvent,
)
from homewise.analysis.synthesis import synthesize_summary
from homewise.config import settings
from homewise.exceptions import FatalRequestError
from homewise.finance import compute_report
from homewise.schemas.profile import Profile
from homewise.services import BlsClient, FredClient, TTLCache

logger = logging.getLogger(__name__)


def validate_profile(payload: Dict[str, Any]) -> Profile:
    """Parse the raw request body, raising FatalRequestError on bad input."""
    try:
        return Profile.model_validate(payload)
    except ValidationError as e:
        errors = [
            f"{'.'.join(str(p) for p in err['loc']) or 'body'}: {err['msg']}"
            for err in e.errors()
        ]
        raise FatalRequestError(errors) from e


class AnalysisOrchestrator:
    """
    Runs the fetch -> compute -> synthesize pipeline for one request.

    Data clients default to FRED and BLS clients sharing the given cache.
    """

    def __init__(
        self,
        cache: TTLCache,
        llm,
        fred=None,
        bls=None,
        property_importer: Optional[PropertyImportFn] = None,
        synthesis_timeout: Optional[float] = None,
    ):
        self.cache = cache
        self.llm = llm
        self.fred = fred if fred is not None else FredClient(settings.FRED_API_KEY, cache)
        self.bls = bls if bls is not None else BlsClient(settings.BLS_API_KEY, cache)
        self.property_importer = property_importer
        self.synthesis_timeout = synthesis_timeout
        self.state: Optional[RunState] = None

    async def run(self, payload: Dict[str, Any]) -> AsyncIterator[BaseModel]:
        """Yield market_data, analysis, summary and complete, or one error."""
        trace_id = uuid.uuid4().hex
        started = time.monotonic()

        try:
            profile = validate_profile(payload)
        except FatalRequestError as e:
            logger.warning(f"[{trace_id}] Rejected profile: {e}")
            self.state = RunState.ERROR
            yield ErrorEvent(error="Invalid profile", details=e.errors)
            return

        # Phase 1: market data
        self.state = RunState.FETCHING
        snapshot = await fetch_market_snapshot(
            profile, self.fred, self.bls, self.property_importer
        )
        yield MarketDataEvent(market_snapshot=snapshot)

        # Phase 2: deterministic compute
        self.state = RunState.COMPUTING
        try:
            report = compute_report(profile, snapshot)
        except Exception as e:
            logger.error(f"[{trace_id}] Report computation failed: {e}")
            self.state = RunState.ERROR
            yield ErrorEvent(error="Analysis failed. Please try again.")
            return
        yield AnalysisEvent(**report.model_dump(exclude={"market_snapshot"}))

        # Phase 3: narrative summary
        self.state = RunState.SYNTHESIZING
        summary, source = await synthesize_summary(report, self.llm, self.synthesis_timeout)
        yield SummaryEvent(summary=summary, summary_source=source)

        self.state = RunState.COMPLETE
        logger.info(
            f"[{trace_id}] Analysis complete in {time.monotonic() - started:.1f}s "
            f"(max price {report.affordability.max_home_price:,.0f}, summary from {source})"
        )
        yield CompleteEvent(
            disclaimers=list(DISCLAIMERS),
            generated_at=datetime.now(timezone.utc),
            trace_id=trace_id,
        )
