"""Shared fakes for the browser, the page observer and the LLM."""

import json
from typing import Any, Callable

import pytest

from webpilot.core.models import SelectorDescriptor, WorldState
from webpilot.llm.provider import LLMMessage, LLMProvider, LLMResponse
from webpilot.memory.recorder import RunRecorder


# =============================================================================
# LLM
# =============================================================================

def tool_response(name: str, args: dict[str, Any] | None = None, content: str = "") -> LLMResponse:
    """LLM response carrying a single OpenAI-shaped tool call."""
    return LLMResponse(
        content=content,
        model="fake-model",
        tool_calls=[{
            "id": "call_1",
            "type": "function",
            "function": {"name": name, "arguments": json.dumps(args or {})},
        }],
    )


class FakeLLM(LLMProvider):
    """Replays scripted responses; the last one repeats once the script runs out."""

    def __init__(self, responses: list[LLMResponse]):
        self.responses = list(responses)
        self.calls: list[dict[str, Any]] = []

    @property
    def model_name(self) -> str:
        return "fake-model"

    async def invoke(
        self,
        messages: list[LLMMessage] | str,
        system_prompt: str | None = None,
        temperature: float = 0.1,
        max_tokens: int = 4000,
        tools: list[dict[str, Any]] | None = None,
        tool_choice: str | None = None,
    ) -> LLMResponse:
        self.calls.append({
            "messages": messages,
            "tools": tools,
            "tool_choice": tool_choice,
            "temperature": temperature,
        })
        if len(self.responses) > 1:
            return self.responses.pop(0)
        return self.responses[0]


# =============================================================================
# Page
# =============================================================================

class FakeElement:
    def __init__(self, text: str = "", visible: bool = True):
        self.text = text
        self.visible = visible

    async def inner_text(self) -> str:
        return self.text

    async def is_visible(self) -> bool:
        return self.visible


class FakeKeyboard:
    def __init__(self, page: "FakePage"):
        self.page = page

    async def press(self, key: str) -> None:
        self.page.record("press", key)


class FakeLocator:
    def __init__(self, page: "FakePage", selector: str):
        self.page = page
        self.selector = selector

    async def press_sequentially(self, text: str, delay: float | None = None) -> None:
        self.page.record("type", self.selector, text)


class FakePage:
    """
    Records every operation. Navigation to a URL listed in ``goto_errors``
    raises that message; selectors in ``missing`` time out.
    """

    def __init__(
        self,
        url: str = "about:blank",
        title: str = "Example Domain",
        elements: dict[str, FakeElement] | None = None,
        missing: set[str] | None = None,
        goto_errors: dict[str, str] | None = None,
        evaluate: Callable[[str, Any], Any] | None = None,
        html: str = "<html><head><title>Example Domain</title></head><body><p>Example Domain.</p></body></html>",
    ):
        self.url = url
        self._title = title
        self.elements = elements or {}
        self.missing = missing or set()
        self.goto_errors = goto_errors or {}
        self._evaluate = evaluate
        self.html = html
        self.keyboard = FakeKeyboard(self)
        self.operations: list[tuple] = []

    def record(self, *op: Any) -> None:
        self.operations.append(op)

    def ops(self, kind: str) -> list[tuple]:
        return [op for op in self.operations if op[0] == kind]

    async def goto(self, url: str, wait_until: str | None = None, timeout: float | None = None) -> None:
        self.record("goto", url, wait_until)
        if url in self.goto_errors:
            raise Exception(self.goto_errors[url])
        self.url = url

    async def title(self) -> str:
        return self._title

    async def content(self) -> str:
        return self.html

    async def go_back(self, wait_until: str | None = None) -> None:
        self.record("go_back", wait_until)

    async def wait_for_selector(self, selector: str, state: str | None = None, timeout: float | None = None) -> None:
        self.record("wait_for_selector", selector, state, timeout)
        if selector in self.missing:
            raise TimeoutError(f"Timeout {timeout}ms exceeded waiting for selector {selector!r}")

    async def wait_for_load_state(self, state: str, timeout: float | None = None) -> None:
        self.record("wait_for_load_state", state, timeout)

    async def wait_for_timeout(self, ms: float) -> None:
        self.record("wait_for_timeout", ms)

    async def click(self, selector: str, timeout: float | None = None) -> None:
        self.record("click", selector, timeout)

    async def fill(self, selector: str, value: str) -> None:
        self.record("fill", selector, value)

    def locator(self, selector: str) -> FakeLocator:
        return FakeLocator(self, selector)

    async def query_selector(self, selector: str) -> FakeElement | None:
        return self.elements.get(selector)

    async def evaluate(self, script: str, arg: Any = None) -> Any:
        self.record("evaluate", arg)
        if self._evaluate is not None:
            return self._evaluate(script, arg)
        return "Example Domain. This domain is for use in illustrative examples."

    async def screenshot(self, path: str | None = None, full_page: bool = False) -> bytes:
        self.record("screenshot", path, full_page)
        if path:
            with open(path, "wb") as f:
                f.write(b"\x89PNG")
        return b"\x89PNG"


# =============================================================================
# Browser session and observer
# =============================================================================

class FakeBrowser:
    def __init__(self, page: FakePage, stop_error: Exception | None = None):
        self.page = page
        self.stop_error = stop_error
        self.started = False
        self.stopped = False

    async def start(self) -> FakePage:
        self.started = True
        return self.page

    async def stop(self) -> None:
        self.stopped = True
        if self.stop_error:
            raise self.stop_error


class FakeObserver:
    """Builds WorldState straight from the fake page."""

    def __init__(self, selectors: list[SelectorDescriptor] | None = None):
        self.selectors = selectors or []
        self.last_errors: list[str | None] = []

    async def observe(self, page: FakePage, step: int, last_error: str | None = None) -> WorldState:
        self.last_errors.append(last_error)
        return WorldState(
            url=page.url,
            title=await page.title(),
            dom_summary=f"URL: {page.url}\nTitle: {await page.title()}\n",
            visible_selectors=self.selectors,
            step=step,
            last_error=last_error,
        )


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def page() -> FakePage:
    return FakePage()


@pytest.fixture
def recorder(tmp_path) -> RunRecorder:
    return RunRecorder(logs_dir=str(tmp_path / "logs"))
