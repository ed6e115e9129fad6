"""
OpenAI LLM Client.
Implements LLMProvider for OpenAI chat models with function calling.
"""

from typing import Any

from openai import AsyncOpenAI

from .provider import LLMProvider, LLMMessage, LLMResponse
from ..core.config import settings


class OpenAIClient(LLMProvider):
    """
    OpenAI GPT client implementing LLMProvider interface.
    """

    def __init__(
        self,
        api_key: str | None = None,
        model: str | None = None,
        client: AsyncOpenAI | None = None,
    ):
        """
        Initialize OpenAI client.

        Args:
            api_key: OpenAI API key (defaults to config)
            model: Model name (defaults to config)
            client: Pre-built AsyncOpenAI client
        """
        self.api_key = api_key or settings.openai_api_key
        self._model = model or settings.openai_model

        if client is None and not self.api_key:
            raise ValueError("OpenAI API key not configured")

        self.client = client or AsyncOpenAI(api_key=self.api_key)

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
        Invoke OpenAI chat completions.

        Args:
            messages: Messages or single user message
            system_prompt: Optional system prompt
            temperature: Sampling temperature
            max_tokens: Maximum tokens
            tools: Optional tool definitions
            tool_choice: Passed through ("required" forces one call)

        Returns:
            LLM response
        """
        kwargs: dict[str, Any] = {
            "model": self._model,
            "messages": self._to_api_messages(messages, system_prompt),
            "temperature": temperature,
            "max_tokens": max_tokens,
        }

        if tools:
            kwargs["tools"] = [self._function_tool(tool) for tool in tools]
            if tool_choice:
                kwargs["tool_choice"] = tool_choice

        response = await self.client.chat.completions.create(**kwargs)
        message = response.choices[0].message

        tool_calls = [
            {
                "id": tc.id,
                "type": "function",
                "function": {"name": tc.function.name, "arguments": tc.function.arguments},
            }
            for tc in message.tool_calls or []
        ]

        return LLMResponse(
            content=message.content or "",
            model=response.model,
            usage=self._usage(response.usage),
            tool_calls=tool_calls or None,
        )

    @staticmethod
    def _to_api_messages(
        messages: list[LLMMessage] | str,
        system_prompt: str | None,
    ) -> list[dict[str, Any]]:
        if isinstance(messages, str):
            messages = [LLMMessage(role="user", content=messages)]

        api_messages: list[dict[str, Any]] = []
        if system_prompt:
            api_messages.append({"role": "system", "content": system_prompt})

        for msg in messages:
            entry: dict[str, Any] = {"role": msg.role, "content": msg.content}
            if msg.name:
                entry["name"] = msg.name
            api_messages.append(entry)
        return api_messages

    @staticmethod
    def _function_tool(tool: dict[str, Any]) -> dict[str, Any]:
        """Wrap a tool definition in OpenAI's function-tool envelope."""
        return {
            "type": "function",
            "function": {
                "name": tool["name"],
                "description": tool.get("description", ""),
                "parameters": tool.get("parameters", {"type": "object", "properties": {}}),
            },
        }

    @staticmethod
    def _usage(usage: Any) -> dict[str, int]:
        if usage is None:
            return {"prompt_tokens": 0, "completion_tokens": 0, "total_tokens": 0}
        return {
            "prompt_tokens": usage.prompt_tokens,
            "completion_tokens": usage.completion_tokens,
            "total_tokens": usage.total_tokens,
        }
