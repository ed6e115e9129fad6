"""Tests for the LLM provider adapters, using stand-in SDK clients."""

import json
from types import SimpleNamespace

import pytest

from webpilot.core.config import settings
from webpilot.core.tools import TOOL_DEFINITIONS
from webpilot.llm.anthropic_client import AnthropicClient
from webpilot.llm.openai_client import OpenAIClient
from webpilot.llm.provider import LLMMessage, get_llm_provider


class Recorder:
    def __init__(self, response):
        self.response = response
        self.kwargs: dict = {}

    async def create(self, **kwargs):
        self.kwargs = kwargs
        return self.response


MESSAGES = [
    LLMMessage(role="system", content="You are a browser agent."),
    LLMMessage(role="user", content="**Goal:** find the title"),
    LLMMessage(role="user", content="**Current State (Step 0):**"),
]


# =============================================================================
# OpenAI
# =============================================================================

def openai_response(tool_calls=None, content=None):
    message = SimpleNamespace(content=content, tool_calls=tool_calls)
    return SimpleNamespace(
        choices=[SimpleNamespace(message=message)],
        model="gpt-test",
        usage=SimpleNamespace(prompt_tokens=10, completion_tokens=5, total_tokens=15),
    )


async def test_openai_forces_tool_choice_and_maps_tool_calls():
    call = SimpleNamespace(
        id="call_1",
        type="function",
        function=SimpleNamespace(name="navigate", arguments='{"url": "https://example.com"}'),
    )
    completions = Recorder(openai_response([call], content="Opening"))
    sdk = SimpleNamespace(chat=SimpleNamespace(completions=completions))
    client = OpenAIClient(model="gpt-test", client=sdk)

    response = await client.invoke(MESSAGES, tools=TOOL_DEFINITIONS, tool_choice="required")

    assert completions.kwargs["tool_choice"] == "required"
    assert completions.kwargs["tools"][0]["type"] == "function"
    assert completions.kwargs["tools"][0]["function"]["name"] == "navigate"
    assert [m["role"] for m in completions.kwargs["messages"]] == ["system", "user", "user"]
    assert response.content == "Opening"
    assert response.tool_calls == [{
        "id": "call_1",
        "type": "function",
        "function": {"name": "navigate", "arguments": '{"url": "https://example.com"}'},
    }]
    assert response.usage["total_tokens"] == 15


async def test_openai_without_tool_calls():
    completions = Recorder(openai_response(None, content="done"))
    client = OpenAIClient(model="gpt-test", client=SimpleNamespace(chat=SimpleNamespace(completions=completions)))

    response = await client.invoke("hello", system_prompt="be brief")

    assert response.tool_calls is None
    assert "tools" not in completions.kwargs
    assert completions.kwargs["messages"] == [
        {"role": "system", "content": "be brief"},
        {"role": "user", "content": "hello"},
    ]


def test_openai_requires_a_key(monkeypatch):
    monkeypatch.setattr(settings, "openai_api_key", "")
    with pytest.raises(ValueError, match="OpenAI API key not configured"):
        OpenAIClient()


# =============================================================================
# Anthropic
# =============================================================================

def anthropic_response(blocks):
    return SimpleNamespace(
        content=blocks,
        model="claude-test",
        usage=SimpleNamespace(input_tokens=20, output_tokens=8),
    )


async def test_anthropic_maps_required_to_any_and_merges_turns():
    blocks = [
        SimpleNamespace(type="text", text="Extracting."),
        SimpleNamespace(type="tool_use", id="tu_1", name="extract", input={"mode": "raw"}),
    ]
    messages_api = Recorder(anthropic_response(blocks))
    client = AnthropicClient(model="claude-test", client=SimpleNamespace(messages=messages_api))

    response = await client.invoke(MESSAGES, tools=TOOL_DEFINITIONS, tool_choice="required")

    kwargs = messages_api.kwargs
    assert kwargs["tool_choice"] == {"type": "any"}
    assert kwargs["system"] == "You are a browser agent."
    assert kwargs["messages"] == [{
        "role": "user",
        "content": "**Goal:** find the title\n\n**Current State (Step 0):**",
    }]
    assert kwargs["tools"][0]["input_schema"] == TOOL_DEFINITIONS[0]["parameters"]

    assert response.content == "Extracting."
    assert response.tool_calls[0]["function"]["name"] == "extract"
    assert json.loads(response.tool_calls[0]["function"]["arguments"]) == {"mode": "raw"}
    assert response.usage == {"prompt_tokens": 20, "completion_tokens": 8, "total_tokens": 28}


async def test_anthropic_text_only_response():
    messages_api = Recorder(anthropic_response([SimpleNamespace(type="text", text="no tool")]))
    client = AnthropicClient(model="claude-test", client=SimpleNamespace(messages=messages_api))

    response = await client.invoke("hi")

    assert response.tool_calls is None
    assert "tool_choice" not in messages_api.kwargs
    assert "system" not in messages_api.kwargs


def test_unknown_provider():
    with pytest.raises(ValueError, match="Unknown LLM provider"):
        get_llm_provider("mystery")
