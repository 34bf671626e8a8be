"""Advisor Orchestrator - runs one chat turn through guardrails, context and tools.

The orchestrator:
1. Checks the message with the input guardrail
2. Summarizes older history and builds the system prompt
3. Truncates history to the token budget
4. Calls the model; runs any requested tools (cached, validated) and loops
5. Fact-checks the final reply and reports the updated session state

iterate_turn yields TurnEvents as the turn progresses; chat folds them
into a single ChatResponse.
"""
import asyncio
import json
import logging
from dataclasses import dataclass, field
from typing import Any, AsyncIterator, Dict, List, Optional

from homewise.advisor.context import (
    build_persona_hints,
    build_tool_cache_key,
    estimate_tokens,
    extract_facts_from_tool_result,
    get_tool_ttl,
    split_for_summarization,
    summarize_older_messages,
    truncate_to_fit_budget,
)
from homewise.advisor.guardrails import (
    check_output_numbers,
    tool_validation_error_result,
    validate_input,
    validate_tool_params,
)
from homewise.advisor.llm import AdvisorLLM, ModelTurn, ToolCall
from homewise.advisor.prompt_builder import build_system_prompt
from homewise.advisor.schemas import (
    ChatRequest,
    ChatResponse,
    Discrepancy,
    SessionMemory,
    TurnEvent,
)
from homewise.advisor.tools import ToolContext, get_tool_schemas, run_tool
from homewise.config import settings
from homewise.exceptions import LoopExhausted
from homewise.schemas.report import FinalReport
from homewise.services.cache import TTLCache

logger = logging.getLogger(__name__)


EXHAUSTED_RESPONSE = "I ran into an issue processing that request. Could you try rephrasing?"


@dataclass
class ConversationState:
    """Everything one turn reads and mutates."""
    report: FinalReport
    messages: List[Dict[str, Any]]
    summary: Optional[str]
    memory: SessionMemory
    iterations: int = 0
    tools_called: List[str] = field(default_factory=list)
    sources: List[Dict[str, Any]] = field(default_factory=list)
    discrepancies: List[Discrepancy] = field(default_factory=list)


def _report_scope(report: FinalReport) -> str:
    """Cache scope for tools whose results depend on the report."""
    if report.trace_id:
        return report.trace_id
    a = report.affordability
    return (
        f"{a.max_home_price:g}:{a.down_payment_amount:g}:{a.gross_monthly_income:g}:"
        f"{a.monthly_debt_payments:g}:{report.market_snapshot.mortgage_rates.thirty_year_fixed:g}"
    )


REPORT_SCOPED_TOOLS = {"analyze_property"}


class ChatLoop:
    """The advisor's tool-use loop for one conversation turn."""

    def __init__(
        self,
        llm: AdvisorLLM,
        cache: TTLCache,
        fred: Any = None,
        property_search: Any = None,
        max_iterations: Optional[int] = None,
    ):
        self.llm = llm
        self.cache = cache
        self.fred = fred
        self.property_search = property_search
        self.max_iterations = max_iterations or settings.CHAT_MAX_TOOL_ITERATIONS

    # ------------------------------------------------------------------
    # Turn setup
    # ------------------------------------------------------------------

    async def _prepare(self, request: ChatRequest) -> ConversationState:
        history = [turn.model_dump() for turn in request.history]
        summary = request.conversation_summary

        recent, older = split_for_summarization(history)
        if older:
            summary = await summarize_older_messages(older, summary, self.llm)

        memory = (
            request.session_memory.model_copy(deep=True)
            if request.session_memory is not None
            else SessionMemory()
        )

        system_prompt = build_system_prompt(
            request.report,
            conversation_summary=summary,
            persona_hints=build_persona_hints(request.report),
            memory=memory,
        )
        fitted = truncate_to_fit_budget(
            estimate_tokens(system_prompt),
            recent + [{"role": "user", "content": request.message}],
        )
        if fitted.was_truncated:
            logger.info(f"Dropped {fitted.dropped_count} history messages for the token budget")

        return ConversationState(
            report=request.report,
            messages=[{"role": "system", "content": system_prompt}] + fitted.messages,
            summary=summary,
            memory=memory,
        )

    # ------------------------------------------------------------------
    # Tool execution
    # ------------------------------------------------------------------

    async def _execute_tool_call(self, call: ToolCall, state: ConversationState) -> str:
        """Serve from cache, else validate, run and cache."""
        scope = _report_scope(state.report) if call.name in REPORT_SCOPED_TOOLS else None
        cache_key = build_tool_cache_key(call.name, call.arguments, scope)
        cached = self.cache.get(cache_key)
        if cached is not None:
            logger.info(f"Tool cache hit: {call.name}")
            return cached

        validation = validate_tool_params(call.name, call.arguments)
        if not validation.valid:
            logger.warning(f"Tool validation failed for {call.name}: {validation.errors}")
            return tool_validation_error_result(validation.errors)

        ctx = ToolContext(report=state.report, fred=self.fred, property_search=self.property_search)
        result = await run_tool(call.name, call.arguments, ctx)
        if "error" not in _parse_result(result):
            self.cache.set(cache_key, result, get_tool_ttl(call.name))
        return result

    async def _run_tools(self, turn: ModelTurn, state: ConversationState) -> None:
        results = await asyncio.gather(
            *(self._execute_tool_call(call, state) for call in turn.tool_calls)
        )

        for call, result in zip(turn.tool_calls, results):
            facts = extract_facts_from_tool_result(call.name, call.arguments, result)
            if facts:
                state.memory.remember(facts)
            state.memory.record_tool(call.name)
            if call.name not in state.tools_called:
                state.tools_called.append(call.name)
            if call.name == "lookup_mortgage_info":
                state.sources = _sources_from_result(result) or state.sources

            state.messages.append({"role": "tool", "tool_call_id": call.id, "content": result})

    async def _next_model_turn(self, state: ConversationState) -> ModelTurn:
        if state.iterations >= self.max_iterations:
            raise LoopExhausted(state.iterations)
        state.iterations += 1
        return await self.llm.complete(state.messages, tools=get_tool_schemas())

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    async def iterate_turn(self, request: ChatRequest) -> AsyncIterator[TurnEvent]:
        """
        Run one chat turn, yielding events as it goes.

        Model errors propagate to the caller; every other failure is
        turned into degraded output.
        """
        verdict = await validate_input(request.message, classifier=self.llm.classify_topic)
        if not verdict.allowed:
            yield TurnEvent(type="text", text=verdict.canned_response)
            yield TurnEvent(type="meta", meta={
                "conversation_summary": request.conversation_summary,
                "session_memory": (request.session_memory or SessionMemory()).model_dump(),
                "tools_called": [],
                "iterations": 0,
                "guardrail": verdict.reason,
            })
            return

        state = await self._prepare(request)

        while True:
            try:
                turn = await self._next_model_turn(state)
            except LoopExhausted as e:
                logger.warning(f"{e}")
                yield TurnEvent(type="text", text=EXHAUSTED_RESPONSE)
                break

            if turn.text:
                yield TurnEvent(type="text", text=turn.text)

            if not turn.tool_calls:
                check = check_output_numbers(turn.text or "", state.report)
                if check.flagged:
                    state.discrepancies = check.discrepancies
                    yield TurnEvent(type="correction", text=check.correction_note)
                break

            yield TurnEvent(type="thinking", tools=[call.name for call in turn.tool_calls])
            state.messages.append(turn.to_assistant_message())
            await self._run_tools(turn, state)

        yield TurnEvent(type="meta", meta=_meta(state))

    async def chat(self, request: ChatRequest) -> ChatResponse:
        """Run one chat turn and return the whole reply at once."""
        parts: List[str] = []
        meta: Dict[str, Any] = {}

        async for event in self.iterate_turn(request):
            if event.type == "text" and event.text:
                parts.append(event.text if not parts else f"\n\n{event.text}")
            elif event.type == "correction" and event.text:
                parts.append(event.text)
            elif event.type == "meta":
                meta = event.meta or {}

        return ChatResponse(
            response="".join(parts),
            conversation_summary=meta.get("conversation_summary"),
            session_memory=SessionMemory(**meta.get("session_memory", {})),
            tools_called=meta.get("tools_called", []),
            iterations=meta.get("iterations", 0),
            discrepancies=meta.get("discrepancies", []),
            sources=meta.get("sources", []),
            guardrail=meta.get("guardrail"),
        )


def _parse_result(result: str) -> Dict[str, Any]:
    try:
        parsed = json.loads(result)
    except json.JSONDecodeError:
        return {}
    return parsed if isinstance(parsed, dict) else {}


def _sources_from_result(result: str) -> List[Dict[str, Any]]:
    parsed = _parse_result(result)
    return [
        {"title": d.get("title"), "source": d.get("source"), "relevance": d.get("relevance")}
        for d in parsed.get("documents", [])
    ]


def _meta(state: ConversationState) -> Dict[str, Any]:
    meta: Dict[str, Any] = {
        "conversation_summary": state.summary,
        "session_memory": state.memory.model_dump(),
        "tools_called": list(state.tools_called),
        "iterations": state.iterations,
        "discrepancies": [d.model_dump() for d in state.discrepancies],
    }
    if state.sources:
        meta["sources"] = state.sources
    return meta
