"""Tests for the run recorder and its Markdown report."""

import json

import pytest

from webpilot.core.models import AgentRun, AgentStep, Goal, RunStatus, ToolResult, WorldState
from webpilot.core.tools import parse_tool_call
from webpilot.memory.recorder import RunRecorder
from webpilot.memory.report_generator import RunReportGenerator


GOAL = Goal(user_prompt="find the title", constraints=["read only"])


def make_step(index: int, name: str = "navigate", args: dict | None = None, result: ToolResult | None = None) -> AgentStep:
    return AgentStep(
        step=index,
        world_state=WorldState(url="https://example.com", step=index),
        reasoning="Go to the site",
        tool_call=parse_tool_call(name, args if args is not None else {"url": "https://example.com"}),
        result=result or ToolResult.ok({"url": "https://example.com"}),
        duration_ms=12,
    )


async def test_start_run_writes_snapshot(recorder):
    run = await recorder.start_run("run-1", GOAL)

    assert recorder.current_run is run
    data = json.loads(recorder.run_path("run-1").read_text())
    assert data["id"] == "run-1"
    assert data["status"] == "running"
    assert data["steps"] == []


async def test_log_step_writes_step_record(recorder):
    await recorder.start_run("run-1", GOAL)

    await recorder.log_step(make_step(0))

    record = json.loads(recorder.step_path("run-1", 0).read_text())
    assert record["runId"] == "run-1"
    assert record["action"] == {"name": "navigate", "args": {"url": "https://example.com"}}
    assert record["result"] == {"success": True, "error": None, "screenshot": None}
    assert record["duration"] == 12
    assert record["reasoning"] == "Go to the site"

    snapshot = json.loads(recorder.run_path("run-1").read_text())
    assert snapshot["steps"][0]["tool_call"] == record["action"]


async def test_complete_run_finalizes_and_reports(recorder):
    await recorder.start_run("run-1", GOAL)
    await recorder.log_step(make_step(0))
    await recorder.log_step(make_step(1, "complete", {"success": True, "result": "Example Domain"}))

    run = await recorder.complete_run(RunStatus.COMPLETED, final_result="Example Domain")

    assert run.status == RunStatus.COMPLETED
    assert run.end_time is not None
    snapshot = json.loads(recorder.run_path("run-1").read_text())
    assert snapshot["status"] == "completed"
    assert snapshot["final_result"] == "Example Domain"
    assert len(snapshot["steps"]) == 2

    report = recorder.report_path("run-1").read_text()
    assert "# Agent Run Report" in report
    assert "### Step 1: complete" in report
    assert report.rstrip().endswith("Example Domain")


async def test_log_step_without_run_is_ignored(recorder):
    await recorder.log_step(make_step(0))
    assert not recorder.logs_dir.exists()


async def test_complete_without_run_returns_none(recorder):
    assert await recorder.complete_run(RunStatus.FAILED, error="boom") is None


async def test_write_failures_are_logged_not_raised(tmp_path, caplog):
    blocker = tmp_path / "not-a-dir"
    blocker.write_text("")
    recorder = RunRecorder(logs_dir=str(blocker))

    await recorder.start_run("run-1", GOAL)
    await recorder.log_step(make_step(0))
    run = await recorder.complete_run(RunStatus.FAILED, error="boom")

    assert run.status == RunStatus.FAILED
    assert "Failed to write" in caplog.text


async def test_unserializable_data_is_stringified(recorder):
    await recorder.start_run("run-1", GOAL)
    step = make_step(0, "extract", {"mode": "raw"}, ToolResult.ok({"blob": object()}))

    await recorder.log_step(step)

    assert recorder.step_path("run-1", 0).exists()


def test_report_lists_errors_and_screenshots():
    run = AgentRun(id="run-2", goal=GOAL)
    run.append_step(make_step(0, "click", {"selector": "#a"}, ToolResult.fail("Element not found: #a")))
    run.append_step(make_step(1, "screenshot", {}, ToolResult.ok({}, screenshot="shots/step-0-1.png")))
    run.finalize(RunStatus.TIMEOUT, error="Maximum steps reached without completion")

    report = RunReportGenerator(run).generate_markdown_report()

    assert "⏱️ timeout" in report
    assert "**Error:** Element not found: #a" in report
    assert "**Screenshot:** [View](shots/step-0-1.png)" in report
    assert "**Error:** Maximum steps reached without completion" in report
    assert "- read only" in report


# =============================================================================
# AgentRun lifecycle
# =============================================================================

def test_run_finalizes_exactly_once():
    run = AgentRun(id="run-3", goal=GOAL)
    run.finalize(RunStatus.COMPLETED, final_result="done")

    with pytest.raises(RuntimeError):
        run.finalize(RunStatus.FAILED, error="again")
    assert run.status == RunStatus.COMPLETED


def test_running_is_not_a_terminal_status():
    run = AgentRun(id="run-4", goal=GOAL)
    with pytest.raises(ValueError):
        run.finalize(RunStatus.RUNNING)


def test_steps_cannot_be_appended_after_finalize():
    run = AgentRun(id="run-5", goal=GOAL)
    run.finalize(RunStatus.FAILED, error="x")
    with pytest.raises(RuntimeError):
        run.append_step(make_step(0))
