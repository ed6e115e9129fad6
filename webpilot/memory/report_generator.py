"""
Report Generator Module.
Renders a finished agent run as a human-readable Markdown report.
"""

import json
from datetime import datetime

from ..core.models import AgentRun, RunStatus


STATUS_EMOJI = {
    RunStatus.COMPLETED: "✅",
    RunStatus.FAILED: "❌",
    RunStatus.TIMEOUT: "⏱️",
    RunStatus.RUNNING: "🔄",
}


class RunReportGenerator:
    """
    Generate run reports in Markdown.
    """

    def __init__(self, run: AgentRun):
        self.run = run
        self.generated_at = datetime.now()

    def generate_markdown_report(self) -> str:
        """Generate the full report: summary, goal, every step, final result."""
        run = self.run
        goal = run.goal
        started = datetime.fromtimestamp(run.start_time / 1000)

        report = f"""# Agent Run Report

**Run ID:** {run.id}
**Status:** {STATUS_EMOJI.get(run.status, '')} {run.status.value}
**Started:** {started.strftime('%Y-%m-%d %H:%M:%S')}
**Duration:** {run.duration_seconds:.2f}s
**Steps:** {len(run.steps)}
**Generated:** {self.generated_at.strftime('%Y-%m-%d %H:%M:%S')}

---

## Goal

{goal.user_prompt}

"""
        if goal.constraints:
            report += "**Constraints:**\n"
            for constraint in goal.constraints:
                report += f"- {constraint}\n"
            report += "\n"

        if goal.success_criteria:
            report += "**Success criteria:**\n"
            for criterion in goal.success_criteria:
                report += f"- {criterion}\n"
            report += "\n"

        report += """---

## Execution Steps

"""
        if not run.steps:
            report += "_No steps executed_\n\n"

        for step in run.steps:
            call = step.tool_call
            result = step.result

            report += f"### Step {step.step}: {call.name}\n\n"

            if step.reasoning:
                report += f"**Reasoning:** {step.reasoning}\n\n"

            report += f"**Action:** `{call.name}({json.dumps(call.wire_args())})`\n\n"
            report += f"**Result:** {'✓ Success' if result.success else '✗ Failed'}\n\n"

            if result.error:
                report += f"**Error:** {result.error}\n\n"

            if result.screenshot:
                report += f"**Screenshot:** [View]({result.screenshot})\n\n"

            report += f"**Duration:** {step.duration_ms}ms  \n"
            report += f"**URL:** {step.world_state.url}\n\n"
            report += "---\n\n"

        report += "## Final Result\n\n"
        if run.final_result:
            report += f"{run.final_result}\n\n"
        elif run.error:
            report += f"**Error:** {run.error}\n\n"
        else:
            report += "_No result_\n\n"

        return report
