"""Tests for the action executor against a recorded fake page."""

from pathlib import Path

import pytest

from webpilot.agents.executor import ActionExecutor
from webpilot.core.config import settings
from webpilot.core.tools import parse_tool_call

from conftest import FakeElement, FakePage


@pytest.fixture
def executor(page, tmp_path) -> ActionExecutor:
    return ActionExecutor(page, screenshots_dir=str(tmp_path / "shots"))


async def test_navigate_defaults_to_domcontentloaded(executor, page):
    result = await executor.execute(parse_tool_call("navigate", {"url": "https://example.com"}))

    assert result.success
    assert result.data == {"url": "https://example.com", "title": "Example Domain"}
    assert page.ops("goto") == [("goto", "https://example.com", "domcontentloaded")]


async def test_navigate_honors_wait_until(executor, page):
    await executor.execute(parse_tool_call("navigate", {"url": "https://example.com", "waitUntil": "load"}))
    assert page.ops("goto")[0][2] == "load"


async def test_click_waits_for_visibility_then_settles(executor, page):
    result = await executor.execute(parse_tool_call("click", {"selector": "#go"}))

    assert result.success
    assert result.selector == "#go"
    assert page.ops("wait_for_selector") == [("wait_for_selector", "#go", "visible", settings.action_timeout_ms)]
    assert page.ops("click") == [("click", "#go", settings.action_timeout_ms)]
    assert page.ops("wait_for_timeout") == [("wait_for_timeout", settings.click_settle_ms)]


async def test_click_missing_element_is_a_failed_result(page, tmp_path):
    page.missing.add("#gone")
    executor = ActionExecutor(page, screenshots_dir=str(tmp_path))

    result = await executor.execute(parse_tool_call("click", {"selector": "#gone", "timeout": 10}))

    assert not result.success
    assert "#gone" in result.error
    assert page.ops("click") == []


async def test_type_clears_by_default(executor, page):
    result = await executor.execute(parse_tool_call("type", {"selector": "#q", "text": "weather"}))

    assert result.success
    assert result.data == {"selector": "#q", "text": "weather", "submitted": False}
    assert page.ops("fill") == [("fill", "#q", "")]
    assert page.ops("type") == [("type", "#q", "weather")]
    assert page.ops("press") == []


async def test_type_can_keep_existing_text_and_submit(executor, page):
    await executor.execute(parse_tool_call(
        "type", {"selector": "#q", "text": "nyc", "clear": False, "submit": True}
    ))

    assert page.ops("fill") == []
    assert page.ops("press") == [("press", "Enter")]
    assert ("wait_for_timeout", settings.submit_settle_ms) in page.operations


async def test_wait_for_selector(executor, page):
    result = await executor.execute(parse_tool_call("waitFor", {"selector": "#list", "timeout": 500}))

    assert result.data == {"selector": "#list", "appeared": True}
    assert page.ops("wait_for_selector") == [("wait_for_selector", "#list", None, 500)]


async def test_wait_for_load_state(executor, page):
    result = await executor.execute(parse_tool_call("waitFor", {"state": "networkidle"}))

    assert result.data == {"state": "networkidle", "ready": True}
    assert page.ops("wait_for_load_state") == [
        ("wait_for_load_state", "networkidle", settings.wait_timeout_ms)
    ]


async def test_wait_for_requires_a_condition(executor):
    result = await executor.execute(parse_tool_call("waitFor", {}))

    assert not result.success
    assert result.error == "Must specify selector or state"


async def test_wait_for_rejects_both_conditions(executor, page):
    result = await executor.execute(parse_tool_call("waitFor", {"selector": "#a", "state": "load"}))

    assert not result.success
    assert page.ops("wait_for_selector") == []


async def test_query_reports_text_and_visibility(page, tmp_path):
    page.elements["h1"] = FakeElement("Example Domain", visible=True)
    executor = ActionExecutor(page, screenshots_dir=str(tmp_path))

    result = await executor.execute(parse_tool_call("query", {"selector": "h1"}))

    assert result.data == {"selector": "h1", "text": "Example Domain", "visible": True}


async def test_query_missing_element(executor):
    result = await executor.execute(parse_tool_call("query", {"selector": "#nope"}))

    assert not result.success
    assert result.error == "Element not found: #nope"


async def test_screenshots_get_sequential_names(executor, tmp_path):
    first = await executor.execute(parse_tool_call("screenshot", {"purpose": "before"}))
    second = await executor.execute(parse_tool_call("screenshot", {"fullPage": True}))

    assert Path(first.screenshot).name.startswith("step-0-")
    assert Path(second.screenshot).name.startswith("step-1-")
    assert first.data["path"] == first.screenshot
    assert first.data["purpose"] == "before"
    assert Path(first.screenshot).parent == tmp_path / "shots"
    assert Path(second.screenshot).exists()
    assert executor.screenshot_counter == 2


async def test_scroll_passes_direction_and_amount(executor, page):
    result = await executor.execute(parse_tool_call("scroll", {"direction": "up", "amount": 300}))

    assert result.success
    assert page.ops("evaluate") == [("evaluate", {"direction": "up", "amount": 300})]


async def test_extract_raw_text(executor):
    result = await executor.execute(parse_tool_call("extract", {"mode": "raw"}))

    assert result.success
    assert result.data.startswith("Example Domain")


async def test_go_back_returns_current_url(page, tmp_path):
    page.url = "https://example.com/a"
    executor = ActionExecutor(page, screenshots_dir=str(tmp_path))

    result = await executor.execute(parse_tool_call("goBack", {}))

    assert result.data == {"url": "https://example.com/a"}
    assert page.ops("go_back") == [("go_back", "domcontentloaded")]


async def test_complete_echoes_arguments(executor, page):
    result = await executor.execute(parse_tool_call("complete", {"success": True, "result": "42"}))

    assert result.success
    assert result.data == {"success": True, "result": "42"}
    assert page.operations == []


async def test_page_exceptions_become_failed_results(tmp_path):
    page = FakePage(goto_errors={"https://down.example": "net::ERR_CONNECTION_RESET at https://down.example"})
    executor = ActionExecutor(page, screenshots_dir=str(tmp_path))

    result = await executor.execute(parse_tool_call("navigate", {"url": "https://down.example"}))

    assert not result.success
    assert result.error.startswith("net::ERR_CONNECTION_RESET")
