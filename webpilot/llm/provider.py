"""
Unified LLM Provider Interface.
Abstracts OpenAI and Anthropic behind a common tool-calling interface.
"""

from abc import ABC, abstractmethod
from typing import Any, Literal
from pydantic import BaseModel

from ..core.config import settings


class LLMMessage(BaseModel):
    """Message in LLM conversation."""
    role: Literal["system", "user", "assistant"]
    content: str
    name: str | None = None


class LLMResponse(BaseModel):
    """
    Response from LLM.

    ``tool_calls`` entries always use the OpenAI function-calling shape
    ``{"id", "type", "function": {"name", "arguments"}}`` with arguments
    JSON-encoded, whichever provider produced them.
    """
    content: str
    model: str
    usage: dict[str, int] | None = None
    tool_calls: list[dict[str, Any]] | None = None

    def first_tool_call(self) -> tuple[str, Any] | None:
        """(name, raw arguments) of the first tool call, if any."""
        if not self.tool_calls:
            return None
        function = self.tool_calls[0].get("function") or {}
        return function.get("name", ""), function.get("arguments")


class LLMProvider(ABC):
    """
    Abstract base class for LLM providers.
    Implemented by OpenAI and Anthropic clients.
    """

    @abstractmethod
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
        Invoke the LLM with messages.

        Args:
            messages: List of messages or a single user message string
            system_prompt: Optional system prompt
            temperature: Sampling temperature
            max_tokens: Maximum tokens in response
            tools: Tool definitions as ``{name, description, parameters}``
            tool_choice: "auto", or "required" to force exactly one tool call
        """

    @property
    @abstractmethod
    def model_name(self) -> str:
        """Get the model name being used."""


def get_llm_provider(provider: str | None = None) -> LLMProvider:
    """
    Build the configured LLM provider.

    Args:
        provider: "openai" or "anthropic" (defaults to config)

    Raises:
        ValueError: Unknown provider, or its API key is not configured
    """
    provider = provider or settings.llm_provider

    if provider == "openai":
        from .openai_client import OpenAIClient
        return OpenAIClient()
    if provider == "anthropic":
        from .anthropic_client import AnthropicClient
        return AnthropicClient()

    raise ValueError(f"Unknown LLM provider: {provider}")
