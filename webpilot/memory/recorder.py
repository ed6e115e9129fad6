"""
Run Recorder - durable record of an agent run.
Writes a JSON run snapshot, one JSON file per step, and a Markdown report.
A pure observer: persistence failures are logged, never raised.
"""

import asyncio
import json
import logging
from pathlib import Path
from typing import Any

from ..core.config import settings
from ..core.models import AgentRun, AgentStep, Goal, RunStatus
from .report_generator import RunReportGenerator


logger = logging.getLogger(__name__)


class RunRecorder:
    """
    Persists runs under ``logs_dir``, keyed by run id:

    - ``{run_id}.json``: full run snapshot, rewritten on every change
    - ``{run_id}-step-{n}.json``: one record per step
    - ``{run_id}-report.md``: report rendered when the run completes
    """

    def __init__(self, logs_dir: str | None = None):
        """
        Initialize recorder.

        Args:
            logs_dir: Output directory (defaults to config)
        """
        self.logs_dir = Path(logs_dir or settings.logs_dir)
        self._current_run: AgentRun | None = None

    @property
    def current_run(self) -> AgentRun | None:
        return self._current_run

    def run_path(self, run_id: str) -> Path:
        return self.logs_dir / f"{run_id}.json"

    def step_path(self, run_id: str, step: int) -> Path:
        return self.logs_dir / f"{run_id}-step-{step}.json"

    def report_path(self, run_id: str) -> Path:
        return self.logs_dir / f"{run_id}-report.md"

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def start_run(self, run_id: str, goal: Goal) -> AgentRun:
        """
        Start a new run and persist its empty record.

        Args:
            run_id: Run identifier
            goal: Goal of the run

        Returns:
            The live AgentRun
        """
        self._current_run = AgentRun(id=run_id, goal=goal)
        await self._write_run()
        return self._current_run

    async def log_step(self, step: AgentStep) -> None:
        """Append a step to the live run and persist it."""
        run = self._current_run
        if run is None:
            logger.error("No active run to log step to")
            return

        run.append_step(step)

        call = step.tool_call
        logger.info(
            "[Step %d] %s → %s (%dms)",
            step.step,
            call.describe(limit=100),
            "✓" if step.result.success else "✗",
            step.duration_ms,
        )

        await self._write_json(self.step_path(run.id, step.step), self.step_record(run.id, step))
        await self._write_run()

    async def complete_run(
        self,
        status: RunStatus,
        final_result: str | None = None,
        error: str | None = None,
    ) -> AgentRun | None:
        """
        Finalize the live run, persist it, and render the report.

        Args:
            status: Terminal status
            final_result: Answer produced by the run
            error: Failure description

        Returns:
            The finalized run
        """
        run = self._current_run
        if run is None:
            return None

        run.finalize(status, final_result, error)

        await self._write_run()
        await self._write_text(
            self.report_path(run.id),
            RunReportGenerator(run).generate_markdown_report(),
        )

        logger.info(
            "[Run %s] %s in %.2fs (%d steps)",
            run.id,
            status.value.upper(),
            run.duration_seconds,
            len(run.steps),
        )
        return run

    # =========================================================================
    # Serialization
    # =========================================================================

    @staticmethod
    def step_record(run_id: str, step: AgentStep) -> dict[str, Any]:
        """Compact per-step record."""
        return {
            "runId": run_id,
            "step": step.step,
            "timestamp": step.timestamp,
            "url": step.world_state.url,
            "action": step.tool_call.to_wire(),
            "result": {
                "success": step.result.success,
                "error": step.result.error,
                "screenshot": step.result.screenshot,
            },
            "duration": step.duration_ms,
            "reasoning": step.reasoning,
        }

    @staticmethod
    def run_record(run: AgentRun) -> dict[str, Any]:
        """Full run snapshot with tool calls in wire form."""
        record = run.model_dump(mode="json", exclude={"steps"})
        record["steps"] = []
        for step in run.steps:
            step_data = step.model_dump(mode="json", exclude={"tool_call"})
            step_data["tool_call"] = step.tool_call.to_wire()
            record["steps"].append(step_data)
        return record

    # =========================================================================
    # Persistence
    # =========================================================================

    async def _write_run(self) -> None:
        if self._current_run is None:
            return
        try:
            record = self.run_record(self._current_run)
        except ValueError as e:
            logger.error("Could not serialize run %s: %s", self._current_run.id, e)
            return
        await self._write_json(self.run_path(self._current_run.id), record)

    async def _write_json(self, path: Path, data: dict[str, Any]) -> None:
        try:
            content = json.dumps(data, indent=2, default=str)
        except (TypeError, ValueError) as e:
            logger.error("Could not serialize %s: %s", path.name, e)
            return
        await self._write_text(path, content)

    async def _write_text(self, path: Path, content: str) -> None:
        try:
            await asyncio.to_thread(self._write_file, path, content)
        except (OSError, ValueError) as e:
            # ValueError covers text the codec cannot encode
            logger.error("Failed to write %s: %s", path, e)

    @staticmethod
    def _write_file(path: Path, content: str) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
