"""
Anthropic LLM Client.
Implements LLMProvider for Claude models, translating tool use to and from
the OpenAI function-calling shape the rest of the package expects.
"""

import json
from typing import Any

from anthropic import AsyncAnthropic

from .provider import LLMProvider, LLMMessage, LLMResponse
from ..core.config import settings


# OpenAI-style tool_choice values mapped to Anthropic's
TOOL_CHOICE_MAP = {
    "required": {"type": "any"},
    "auto": {"type": "auto"},
}


class AnthropicClient(LLMProvider):
    """
    Anthropic Claude client implementing LLMProvider interface.
    """

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        client: AsyncAnthropic | None = None,
    ):
        """
        Initialize Anthropic client.

        Args:
            api_key: Anthropic API key (defaults to config)
            model: Model name (defaults to config)
            client: Pre-built AsyncAnthropic client
        """
        self.api_key = api_key or settings.anthropic_api_key
        self._model = model or settings.anthropic_model

        if client is None and not self.api_key:
            raise ValueError("Anthropic API key not configured")

        self.client = client or AsyncAnthropic(api_key=self.api_key)

    @property
    def model_name(self) -> str:
        return self._model

    async def invoke(
        self,
        messages: list[LLMMessage] | str,
        system_prompt: str | None = None,
        temperature: float = 0.1,
        max_tokens: int = 4000,
        tools: list[dict[str, Any]] | None = None,
        tool_choice: str | None = None,
    ) -> LLMResponse:
        """
        Invoke Anthropic messages API.

        System messages in ``messages`` are folded into the system prompt.

        Args:
            messages: Messages or single user message
            system_prompt: Optional system prompt
            temperature: Sampling temperature
            max_tokens: Maximum tokens
            tools: Optional tool definitions
            tool_choice: "required" or "auto" (anything else is left to the API default)

        Returns:
            LLM response with tool calls in OpenAI shape
        """
        if isinstance(messages, str):
            messages = [LLMMessage(role="user", content=messages)]

        system_parts = [system_prompt] if system_prompt else []
        system_parts += [m.content for m in messages if m.role == "system"]

        kwargs: dict[str, Any] = {
            "model": self._model,
            "messages": self._merge_turns([m for m in messages if m.role != "system"]),
            "max_tokens": max_tokens,
            "temperature": temperature,
        }

        if system_parts:
            kwargs["system"] = "\n\n".join(system_parts)

        if tools:
            kwargs["tools"] = [
                {
                    "name": tool["name"],
                    "description": tool.get("description", ""),
                    "input_schema": tool.get("parameters", {"type": "object", "properties": {}}),
                }
                for tool in tools
            ]
            if tool_choice in TOOL_CHOICE_MAP:
                kwargs["tool_choice"] = TOOL_CHOICE_MAP[tool_choice]

        response = await self.client.messages.create(**kwargs)

        text_parts: list[str] = []
        tool_calls: list[dict[str, Any]] = []

        for block in response.content:
            if block.type == "text":
                text_parts.append(block.text)
            elif block.type == "tool_use":
                tool_calls.append({
                    "id": block.id,
                    "type": "function",
                    "function": {
                        "name": block.name,
                        "arguments": json.dumps(block.input),
                    },
                })

        usage = response.usage
        return LLMResponse(
            content="".join(text_parts),
            model=response.model,
            usage={
                "prompt_tokens": usage.input_tokens,
                "completion_tokens": usage.output_tokens,
                "total_tokens": usage.input_tokens + usage.output_tokens,
            },
            tool_calls=tool_calls or None,
        )

    @staticmethod
    def _merge_turns(messages: list[LLMMessage]) -> list[dict[str, str]]:
        """Join consecutive same-role messages so turns alternate."""
        merged: list[dict[str, str]] = []
        for msg in messages:
            if merged and merged[-1]["role"] == msg.role:
                merged[-1]["content"] += "\n\n" + msg.content
            else:
                merged.append({"role": msg.role, "content": msg.content})
        return merged
