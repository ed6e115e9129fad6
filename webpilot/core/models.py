"""
Pydantic models for the webpilot agent loop.
Defines goals, observed world state, action results, and run records.
"""

import time
from enum import Enum
from typing import Any, Literal
from pydantic import BaseModel, ConfigDict, Field

from .tools import ToolCall


def now_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return int(time.time() * 1000)


# ==============================================================================
# Enumerations
# ==============================================================================

class RunStatus(str, Enum):
    """Lifecycle status of an agent run."""
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"
    TIMEOUT = "timeout"


SelectorType = Literal["button", "link", "input", "form", "other"]


# ==============================================================================
# Goal and Observation Models
# ==============================================================================

class Goal(BaseModel):
    """What the user wants done. Immutable for the duration of a run."""
    model_config = ConfigDict(frozen=True)

    user_prompt: str
    constraints: list[str] = Field(default_factory=list)
    success_criteria: list[str] = Field(default_factory=list)
    allowed_domains: list[str] | None = None
    max_steps: int = Field(default=30, ge=1)


class SelectorDescriptor(BaseModel):
    """An interactive element the reasoning engine may target."""
    model_config = ConfigDict(frozen=True)

    selector: str
    type: SelectorType = "other"
    text: str | None = None
    role: str | None = None
    test_id: str | None = None


class WorldState(BaseModel):
    """One observed snapshot of the page, produced once per loop iteration."""
    model_config = ConfigDict(frozen=True)

    url: str
    title: str | None = None
    dom_summary: str = ""
    visible_selectors: list[SelectorDescriptor] = Field(default_factory=list)
    step: int
    timestamp: int = Field(default_factory=now_ms)
    last_error: str | None = None


# ==============================================================================
# Action Result Models
# ==============================================================================

class ToolResult(BaseModel):
    """Normalized outcome of executing one tool call."""
    model_config = ConfigDict(frozen=True)

    success: bool
    data: Any = None
    error: str | None = None
    screenshot: str | None = None  # artifact path
    selector: str | None = None

    @classmethod
    def ok(cls, data: Any = None, **kwargs: Any) -> "ToolResult":
        return cls(success=True, data=data, **kwargs)

    @classmethod
    def fail(cls, error: str, **kwargs: Any) -> "ToolResult":
        return cls(success=False, error=error, **kwargs)


class AgentStep(BaseModel):
    """Record of one loop iteration. Immutable once appended to a run."""
    model_config = ConfigDict(frozen=True)

    step: int
    timestamp: int = Field(default_factory=now_ms)
    world_state: WorldState
    reasoning: str | None = None
    tool_call: ToolCall
    result: ToolResult
    duration_ms: int = 0


class AgentRun(BaseModel):
    """
    The append-only record of one goal-to-completion attempt.
    Finalized exactly once when a terminal status is assigned.
    """
    id: str
    goal: Goal
    status: RunStatus = RunStatus.RUNNING
    steps: list[AgentStep] = Field(default_factory=list)
    start_time: int = Field(default_factory=now_ms)
    end_time: int | None = None
    final_result: str | None = None
    error: str | None = None

    @property
    def is_finalized(self) -> bool:
        return self.status != RunStatus.RUNNING

    @property
    def duration_seconds(self) -> float:
        end = self.end_time or now_ms()
        return (end - self.start_time) / 1000

    def append_step(self, step: AgentStep) -> None:
        """Append a step to a live run."""
        if self.is_finalized:
            raise RuntimeError(f"Run {self.id} is already {self.status.value}")
        self.steps.append(step)

    def finalize(
        self,
        status: RunStatus,
        final_result: str | None = None,
        error: str | None = None,
    ) -> None:
        """
        Assign the terminal status.

        Args:
            status: One of completed, failed, timeout
            final_result: Answer produced by the run, if any
            error: Failure description, if any

        Raises:
            ValueError: If status is not terminal
            RuntimeError: If the run was already finalized
        """
        if status == RunStatus.RUNNING:
            raise ValueError("Cannot finalize a run as running")
        if self.is_finalized:
            raise RuntimeError(f"Run {self.id} is already {self.status.value}")

        self.status = status
        self.end_time = now_ms()
        self.final_result = final_result
        self.error = error


# ==============================================================================
# Policy and Outcome Models
# ==============================================================================

class SafetyPolicy(BaseModel):
    """Safety configuration enforced by the policy guard."""
    allowed_domains: list[str] | None = None
    blocked_domains: list[str] | None = None
    require_confirmation: list[str] = Field(default_factory=list)
    max_steps_per_domain: int | None = None
    rate_limit_ms: int | None = None
    respect_robots_txt: bool = True  # advisory; enforced by the observer, not the guard
    user_agent: str | None = None


class RunOutcome(BaseModel):
    """What a run returns to its caller."""
    success: bool
    result: str | None = None
    error: str | None = None
    steps: int
    run_id: str | None = None
