"""Analysis API Routes.

Endpoints:
- POST /analysis/analyze - Run an analysis, streamed as NDJSON events
"""
import logging
from typing import Any, AsyncIterator, Dict

from fastapi import APIRouter, Body, Depends
from fastapi.responses import StreamingResponse

from homewise.advisor.llm import AdvisorLLM
from homewise.analysis.orchestrator import AnalysisOrchestrator
from homewise.analysis.schemas import ErrorEvent, to_ndjson
from homewise.dependencies import (
    get_bls_client,
    get_cache,
    get_fred_client,
    get_llm,
    get_property_importer,
)
from homewise.services import BlsClient, FredClient, PropertyImporter, TTLCache

logger = logging.getLogger(__name__)

router = APIRouter()


def get_analysis_orchestrator(
    cache: TTLCache = Depends(get_cache),
    llm: AdvisorLLM = Depends(get_llm),
    fred: FredClient = Depends(get_fred_client),
    bls: BlsClient = Depends(get_bls_client),
    importer: PropertyImporter = Depends(get_property_importer),
) -> AnalysisOrchestrator:
    return AnalysisOrchestrator(cache=cache, llm=llm, fred=fred, bls=bls, property_importer=importer)


async def _ndjson_events(orchestrator: AnalysisOrchestrator, payload: Dict[str, Any]) -> AsyncIterator[str]:
    try:
        async for event in orchestrator.run(payload):
            yield to_ndjson(event)
    except Exception as e:
        # Headers are already sent; terminate the stream with an error event
        logger.error(f"Analysis stream failed: {e}")
        yield to_ndjson(ErrorEvent(error="Analysis failed. Please try again."))


@router.post("/analyze")
async def analyze(
    payload: Dict[str, Any] = Body(...),
    orchestrator: AnalysisOrchestrator = Depends(get_analysis_orchestrator),
):
    """
    Run a full home affordability analysis.

    Streams newline-delimited JSON, one event per line, in phase order:
    - market_data: rates, prices, inflation, area and listing
    - analysis: affordability, risk, recommendations and optional reports
    - summary: narrative summary (model-written or template)
    - complete: disclaimers, generation time and trace id

    An invalid profile yields a single error event instead.
    """
    return StreamingResponse(
        _ndjson_events(orchestrator, payload),
        media_type="application/x-ndjson",
        headers={"Cache-Control": "no-cache"},
    )
