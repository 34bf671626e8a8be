"""Advisor API Routes.

Endpoints:
- POST /advisor/chat - One chat turn, whole reply as JSON
- POST /advisor/chat/stream - The same turn as server-sent events
- GET /advisor/tools - Tool schemas
- POST /advisor/tools/{tool_name} - Run a single tool directly
"""
import json
import logging
from typing import Any, AsyncIterator, Dict

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import StreamingResponse

from homewise.advisor import schemas
from homewise.advisor.llm import AdvisorLLM
from homewise.advisor.orchestrator import ChatLoop
from homewise.advisor.tools import TOOL_HANDLERS, ToolContext, get_tool_schemas, run_tool
from homewise.config import settings
from homewise.dependencies import (
    get_cache,
    get_fred_client,
    get_llm,
    get_property_search_client,
)
from homewise.middleware.rate_limit import limiter
from homewise.services import FredClient, PropertySearchClient, TTLCache

logger = logging.getLogger(__name__)

router = APIRouter()


def get_chat_loop(
    llm: AdvisorLLM = Depends(get_llm),
    cache: TTLCache = Depends(get_cache),
    fred: FredClient = Depends(get_fred_client),
    property_search: PropertySearchClient = Depends(get_property_search_client),
) -> ChatLoop:
    return ChatLoop(llm=llm, cache=cache, fred=fred, property_search=property_search)


# ============================================================================
# CHAT ENDPOINTS
# ============================================================================

@router.post("/chat", response_model=schemas.ChatResponse)
@limiter.limit(settings.RATE_LIMIT_CHAT)
async def chat_with_advisor(
    request: Request,
    payload: schemas.ChatRequest,
    loop: ChatLoop = Depends(get_chat_loop),
):
    """
    Main advisor chat endpoint.

    Send a message about an analysis report and receive a reply. The
    advisor will:
    - Refuse off-topic or manipulative input with a canned reply
    - Run what-if calculations and live lookups through its tools
    - Flag any figure in its reply that strays from the report

    The response carries the updated conversation summary and session
    memory; send both back with the next turn.
    """
    try:
        return await loop.chat(payload)
    except Exception as e:
        logger.error(f"Chat turn failed: {e}")
        raise HTTPException(
            status_code=500,
            detail="Error processing chat request",
        )


def _sse(data: Any) -> str:
    return f"data: {json.dumps(data)}\n\n"


async def _sse_events(loop: ChatLoop, payload: schemas.ChatRequest) -> AsyncIterator[str]:
    try:
        async for event in loop.iterate_turn(payload):
            if event.type in ("text", "correction"):
                yield _sse({"text": event.text})
            elif event.type == "thinking":
                yield _sse({"thinking": True, "tools": event.tools})
            elif event.type == "meta":
                yield _sse({"meta": event.meta})
    except Exception as e:
        # Headers are already sent; report in-band
        logger.error(f"Chat stream failed: {e}")
        yield _sse({"error": "Chat failed"})
    yield "data: [DONE]\n\n"


@router.post("/chat/stream")
@limiter.limit(settings.RATE_LIMIT_CHAT)
async def stream_chat_with_advisor(
    request: Request,
    payload: schemas.ChatRequest,
    loop: ChatLoop = Depends(get_chat_loop),
):
    """
    Streaming variant of /chat.

    Emits `data: {...}` lines: {"thinking": true, "tools": [...]} while
    tools run, {"text": ...} for reply text and fact-check notes,
    {"meta": {...}} with the session state, then `data: [DONE]`.
    """
    return StreamingResponse(
        _sse_events(loop, payload),
        media_type="text/event-stream",
        headers={"Cache-Control": "no-cache", "Connection": "keep-alive"},
    )


# ============================================================================
# TOOL ENDPOINTS
# ============================================================================

@router.get("/tools")
async def list_tools() -> Dict[str, Any]:
    """Tool schemas in OpenAI function-calling format."""
    return {"tools": get_tool_schemas()}


@router.post("/tools/{tool_name}", response_model=schemas.ToolExecuteResponse)
async def execute_tool(
    tool_name: str,
    payload: schemas.ToolExecuteRequest,
    fred: FredClient = Depends(get_fred_client),
    property_search: PropertySearchClient = Depends(get_property_search_client),
):
    """
    Run one tool outside the chat loop.

    Uses the same validation and handlers as the chat loop. Validation
    failures come back as a structured error result, not an HTTP error.
    """
    if tool_name not in TOOL_HANDLERS:
        raise HTTPException(status_code=404, detail=f"Unknown tool: {tool_name}")

    try:
        ctx = ToolContext(report=payload.report, fred=fred, property_search=property_search)
        result = await run_tool(tool_name, payload.input, ctx)
        return schemas.ToolExecuteResponse(tool=tool_name, result=json.loads(result))
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Tool {tool_name} failed: {e}")
        raise HTTPException(
            status_code=500,
            detail=f"Error running tool {tool_name}",
        )
