"""Advisor chat Pydantic schemas for request/response validation."""
from pydantic import BaseModel, Field
from typing import List, Dict, Any, Optional, Literal

from homewise.schemas.report import FinalReport


# ============================================================================
# CHAT REQUEST/RESPONSE
# ============================================================================

class ChatTurn(BaseModel):
    """A single prior chat message."""
    role: Literal["user", "assistant"] = Field(..., description="Message role")
    content: str = Field(..., description="Message content")


class SessionMemory(BaseModel):
    """
    Facts learned from tool calls during one conversation.

    Round-tripped through the client on every turn. Only grows: new facts
    overwrite same-named ones, tool names are recorded once.
    """
    facts: Dict[str, Any] = Field(default_factory=dict, description="Named facts from tool results")
    tools_used: List[str] = Field(default_factory=list, description="Tools called so far, first-use order")

    def remember(self, facts: Dict[str, Any]) -> None:
        self.facts.update(facts)

    def record_tool(self, tool_name: str) -> None:
        if tool_name not in self.tools_used:
            self.tools_used.append(tool_name)


class ChatRequest(BaseModel):
    """One advisor chat turn."""
    message: str = Field(..., description="User's message")
    report: FinalReport = Field(..., description="The analysis report the conversation is about")
    history: List[ChatTurn] = Field(default_factory=list, description="Previous messages in this conversation")
    conversation_summary: Optional[str] = Field(None, description="Rolling summary of older messages")
    session_memory: Optional[SessionMemory] = Field(None, description="Facts carried from earlier turns")


class Discrepancy(BaseModel):
    """A number in the reply that strays from the report."""
    field: str
    cited_value: float
    expected_value: float
    deviation_percent: int


class ChatResponse(BaseModel):
    """Response from the advisor chat endpoint."""
    response: str = Field(..., description="Markdown reply shown to the user")
    conversation_summary: Optional[str] = Field(None, description="Updated rolling summary")
    session_memory: SessionMemory = Field(default_factory=SessionMemory)
    tools_called: List[str] = Field(default_factory=list, description="Tools called during this turn")
    iterations: int = Field(0, description="Model calls made in the tool loop")
    discrepancies: List[Discrepancy] = Field(default_factory=list)
    sources: List[Dict[str, Any]] = Field(default_factory=list, description="Knowledge documents cited")
    guardrail: Optional[str] = Field(None, description="Denial reason when the input guardrail blocked the turn")


# ============================================================================
# TURN EVENTS (streaming)
# ============================================================================

class TurnEvent(BaseModel):
    """
    One step of a chat turn, as streamed to the client.

    thinking: the model asked for tools (names in ``tools``)
    text: reply text
    correction: fact-check footnote appended to the reply
    meta: end-of-turn state (summary, memory, tools, discrepancies)
    """
    type: Literal["thinking", "text", "correction", "meta"]
    text: Optional[str] = None
    tools: List[str] = Field(default_factory=list)
    meta: Optional[Dict[str, Any]] = None


# ============================================================================
# TOOL EXECUTION (REST)
# ============================================================================

class ToolExecuteRequest(BaseModel):
    """Direct tool execution outside the chat loop."""
    input: Dict[str, Any] = Field(default_factory=dict, description="Tool arguments")
    report: Optional[FinalReport] = Field(None, description="Required by analyze_property")


class ToolExecuteResponse(BaseModel):
    tool: str
    result: Any
