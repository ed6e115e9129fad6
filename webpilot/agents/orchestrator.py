"""
Browser Agent - The Orchestrator.
Runs one goal through the loop: Observe → Plan → Guard → Act → Record → Repeat
"""

import logging
import time
import uuid
from typing import Any, Callable

from .base import BaseComponent
from .executor import ActionExecutor
from .planner import ReasoningClient
from ..browser.manager import BrowserManager
from ..browser.observer import PageObserver
from ..core.config import settings
from ..core.guardrails import PolicyGuard, extract_host
from ..core.models import (
    AgentRun,
    AgentStep,
    Goal,
    RunOutcome,
    RunStatus,
    SafetyPolicy,
    ToolResult,
    WorldState,
    now_ms,
)
from ..core.tools import BaseToolCall, CompleteCall
from ..llm.provider import LLMProvider
from ..memory.history_store import HistoryStore
from ..memory.recorder import RunRecorder


# Failure texts after which the session is unusable
CRITICAL_ERROR_PATTERNS = [
    "net::ERR_",
    "Navigation timeout",
    "Browser closed",
    "Context closed",
    "Target page, context or browser has been closed",
]

TIMEOUT_ERROR = "Maximum steps reached without completion"


def is_critical_error(error: str | None) -> bool:
    """True when a failed action's error means the run cannot go on."""
    if not error:
        return False
    return any(pattern in error for pattern in CRITICAL_ERROR_PATTERNS)


class BrowserAgent(BaseComponent):
    """
    Drives one browser session toward a goal, one action per step.

    One run at a time per instance: the guard, recorder and browser
    session all belong to the run in progress. Serve concurrent goals
    with separate instances.
    """

    def __init__(
        self,
        llm_provider: LLMProvider | None = None,
        policy: SafetyPolicy | None = None,
        recorder: RunRecorder | None = None,
        observer: PageObserver | None = None,
        browser_factory: Callable[[], Any] | None = None,
        history_store: HistoryStore | None = None,
        screenshots_dir: str | None = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize the agent.

        Args:
            llm_provider: Reasoning engine (uses the configured default if not provided)
            policy: Safety policy (built from config if not provided)
            recorder: Run recorder
            observer: Page observer producing world state
            browser_factory: Zero-argument callable returning an object with
                async ``start() -> page`` and ``stop()``
            history_store: Optional initialized history sink
            screenshots_dir: Where the executor writes screenshots
            clock: Time source for the policy guard, in seconds
        """
        super().__init__(name="orchestrator")
        self.reasoning = ReasoningClient(llm_provider)
        self.policy = policy or settings.safety_policy()
        self.recorder = recorder or RunRecorder()
        self.observer = observer or PageObserver()
        self.browser_factory = browser_factory or BrowserManager
        self.history_store = history_store
        self.screenshots_dir = screenshots_dir
        self.clock = clock
        self.guard: PolicyGuard | None = None

    def build_guard(self, goal: Goal) -> PolicyGuard:
        """Fresh guard for a run; a goal's allowlist replaces the configured one."""
        policy = self.policy
        if goal.allowed_domains:
            policy = policy.model_copy(update={"allowed_domains": goal.allowed_domains})
        return PolicyGuard(policy, clock=self.clock)

    # =========================================================================
    # Main Loop
    # =========================================================================

    async def run(
        self,
        goal: Goal,
        start_url: str | None = None,
        run_id: str | None = None,
    ) -> RunOutcome:
        """
        Run a goal to completion, failure, or step exhaustion.

        Args:
            goal: What to accomplish
            start_url: Page to load before the first observation
            run_id: Identifier to record the run under (generated if not provided)

        Returns:
            Outcome of the run; runtime failures are reported, not raised
        """
        run_id = run_id or str(uuid.uuid4())
        self.guard = self.build_guard(goal)
        run = await self.recorder.start_run(run_id, goal)
        await self._save_run(run)

        self.log(f"Run {run_id} started: {goal.user_prompt}")

        browser = self.browser_factory()
        try:
            page = await browser.start()
            executor = ActionExecutor(page, screenshots_dir=self.screenshots_dir)

            if start_url:
                await page.goto(
                    start_url,
                    wait_until="domcontentloaded",
                    timeout=settings.navigation_timeout_ms,
                )

            return await self._loop(run, goal, page, executor)

        except Exception as e:
            error = str(e) or type(e).__name__
            self.log(f"Run {run_id} aborted: {error}", logging.ERROR)
            return await self._finish(run, RunStatus.FAILED, error=error, steps=len(run.steps))

        finally:
            try:
                await browser.stop()
            except Exception as e:
                self.log(f"Ignoring browser teardown failure: {e}", logging.DEBUG)

    async def _loop(
        self,
        run: AgentRun,
        goal: Goal,
        page,
        executor: ActionExecutor,
    ) -> RunOutcome:
        last_error: str | None = None

        for step in range(goal.max_steps):
            step_start = now_ms()

            # 1. Observe
            world = await self.observer.observe(page, step, last_error=last_error)

            # 2. Plan
            history = [(s.tool_call, s.result) for s in run.steps]
            planned = await self.reasoning.next_action(goal, world, history)
            tool_call = planned.tool_call

            # 3. Guard
            decision = self.guard.check_action(world.url, tool_call)
            if not decision.allowed:
                error = f"Safety check failed: {decision.reason}"
                self.log(f"[Step {step}] {error}", logging.WARNING)
                return await self._finish(run, RunStatus.FAILED, error=error, steps=step)

            if decision.needs_confirmation:
                # Advisory only: the action still runs
                self.log(
                    f"[Step {step}] Action requires human confirmation: {tool_call.describe(limit=100)}",
                    logging.WARNING,
                )

            # 4. Act
            result = await executor.execute(tool_call)

            # 5. Record
            agent_step = AgentStep(
                step=step,
                world_state=world,
                reasoning=planned.reasoning,
                tool_call=tool_call,
                result=result,
                duration_ms=now_ms() - step_start,
            )
            await self.recorder.log_step(agent_step)
            await self._record_history(run.id, world, tool_call, result)

            # 6. Terminate?
            if isinstance(tool_call, CompleteCall):
                args = tool_call.args
                final_result = args.result or args.reason
                status = RunStatus.COMPLETED if args.success else RunStatus.FAILED
                return await self._finish(run, status, final_result=final_result, steps=step + 1)

            if not result.success and is_critical_error(result.error):
                self.log(f"[Step {step}] Critical failure: {result.error}", logging.ERROR)
                return await self._finish(run, RunStatus.FAILED, error=result.error, steps=step + 1)

            last_error = None if result.success else result.error

            # Politeness pause between actions
            await page.wait_for_timeout(settings.step_delay_ms)

        return await self._finish(run, RunStatus.TIMEOUT, error=TIMEOUT_ERROR, steps=goal.max_steps)

    async def _finish(
        self,
        run: AgentRun,
        status: RunStatus,
        final_result: str | None = None,
        error: str | None = None,
        steps: int = 0,
    ) -> RunOutcome:
        """Finalize the run once and build the caller-facing outcome."""
        if not run.is_finalized:
            await self.recorder.complete_run(status, final_result=final_result, error=error)
            await self._save_run(run)

        return RunOutcome(
            success=status == RunStatus.COMPLETED,
            result=final_result,
            error=error,
            steps=steps,
            run_id=run.id,
        )

    # =========================================================================
    # History Sink
    # =========================================================================

    async def _save_run(self, run: AgentRun) -> None:
        if self.history_store is None:
            return
        try:
            await self.history_store.save_run(run)
        except Exception as e:
            self.log(f"History store failed to save run {run.id}: {e}", logging.ERROR)

    async def _record_history(
        self,
        run_id: str,
        world: WorldState,
        tool_call: BaseToolCall,
        result: ToolResult,
    ) -> None:
        if self.history_store is None:
            return
        try:
            await self.history_store.save_page_visit(run_id, world, tool_call.describe(limit=200))

            selector = getattr(tool_call.args, "selector", None)
            domain = extract_host(world.url)
            if selector and domain:
                descriptor = next(
                    (d for d in world.visible_selectors if d.selector == selector),
                    None,
                )
                await self.history_store.record_selector_use(
                    domain,
                    selector,
                    descriptor.type if descriptor else "other",
                    (descriptor.text or "") if descriptor else "",
                    result.success,
                )
        except Exception as e:
            self.log(f"History store failed for run {run_id}: {e}", logging.ERROR)
