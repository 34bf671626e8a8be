"""Model access for the advisor and the analysis summary.

A thin wrapper over AsyncOpenAI chat completions. Callers decide what to
do with failures: the tool loop lets them propagate, the cheap helpers
(classifier, summarizer, synthesis) are wrapped by their callers'
fallbacks.
"""
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from openai import AsyncOpenAI

from homewise.advisor.guardrails import build_topic_prompt
from homewise.config import settings

logger = logging.getLogger(__name__)


def get_openai_client() -> AsyncOpenAI:
    """Get the OpenAI client."""
    return AsyncOpenAI(api_key=settings.OPENAI_API_KEY)


@dataclass
class ToolCall:
    id: str
    name: str
    arguments: Dict[str, Any]

    def to_message_dict(self) -> Dict[str, Any]:
        """The tool_calls entry for an assistant message."""
        return {
            "id": self.id,
            "type": "function",
            "function": {"name": self.name, "arguments": json.dumps(self.arguments)},
        }


@dataclass
class ModelTurn:
    """One model response: final text, or a batch of tool calls."""
    text: Optional[str] = None
    tool_calls: List[ToolCall] = field(default_factory=list)

    def to_assistant_message(self) -> Dict[str, Any]:
        message: Dict[str, Any] = {"role": "assistant", "content": self.text}
        if self.tool_calls:
            message["tool_calls"] = [call.to_message_dict() for call in self.tool_calls]
        return message


def _parse_arguments(raw: Optional[str]) -> Dict[str, Any]:
    if not raw:
        return {}
    try:
        parsed = json.loads(raw)
    except json.JSONDecodeError:
        logger.warning(f"Model sent unparsable tool arguments: {raw[:200]}")
        return {}
    return parsed if isinstance(parsed, dict) else {}


class AdvisorLLM:
    """Chat-completions calls used across the service."""

    def __init__(self, client: Optional[AsyncOpenAI] = None):
        self._client = client

    @property
    def client(self) -> AsyncOpenAI:
        if self._client is None:
            self._client = get_openai_client()
        return self._client

    async def complete(
        self,
        messages: List[Dict[str, Any]],
        tools: Optional[List[Dict[str, Any]]] = None,
    ) -> ModelTurn:
        """Call the main model with function calling enabled."""
        kwargs: Dict[str, Any] = {
            "model": settings.OPENAI_MODEL,
            "messages": messages,
            "max_tokens": settings.OPENAI_MAX_TOKENS,
        }
        if tools:
            kwargs["tools"] = tools
            kwargs["tool_choice"] = "auto"

        response = await self.client.chat.completions.create(**kwargs)
        message = response.choices[0].message

        if message.tool_calls:
            return ModelTurn(
                text=message.content,
                tool_calls=[
                    ToolCall(
                        id=call.id,
                        name=call.function.name,
                        arguments=_parse_arguments(call.function.arguments),
                    )
                    for call in message.tool_calls
                ],
            )
        return ModelTurn(text=message.content or "")

    async def complete_text(
        self,
        prompt: str,
        *,
        system: Optional[str] = None,
        model: Optional[str] = None,
        max_tokens: int = 1024,
    ) -> str:
        """Single-prompt completion with no tools."""
        messages: List[Dict[str, Any]] = []
        if system:
            messages.append({"role": "system", "content": system})
        messages.append({"role": "user", "content": prompt})

        response = await self.client.chat.completions.create(
            model=model or settings.OPENAI_MODEL,
            messages=messages,
            max_tokens=max_tokens,
        )
        return response.choices[0].message.content or ""

    async def classify_topic(self, message: str) -> bool:
        """Y/N on-topic check. Raises on API errors; the guardrail fails open."""
        answer = await self.complete_text(
            build_topic_prompt(message),
            model=settings.OPENAI_FAST_MODEL,
            max_tokens=1,
        )
        return answer.strip().upper().startswith("Y")

    async def summarize(self, prompt: str) -> str:
        return await self.complete_text(prompt, model=settings.OPENAI_FAST_MODEL, max_tokens=400)

    async def synthesize(self, system: str, prompt: str) -> str:
        return await self.complete_text(
            prompt,
            system=system,
            model=settings.OPENAI_SUMMARY_MODEL,
            max_tokens=settings.OPENAI_MAX_TOKENS,
        )
