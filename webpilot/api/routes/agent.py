"""
Agent API - Run goals and inspect runs.
"""

import logging
import uuid
from typing import Any

from fastapi import APIRouter, HTTPException, Query, Request
from pydantic import BaseModel, ConfigDict, Field

from ...core.config import settings
from ...core.guardrails import PolicyGuard
from ...core.models import Goal, now_ms


logger = logging.getLogger(__name__)

router = APIRouter()


class RunRequest(BaseModel):
    """Request to run a goal."""
    model_config = ConfigDict(populate_by_name=True)

    goal: str
    start_url: str | None = Field(default=None, alias="startUrl")
    constraints: list[str] = Field(default_factory=list)
    success_criteria: list[str] = Field(default_factory=list, alias="successCriteria")
    allowed_domains: list[str] | None = Field(default=None, alias="allowedDomains")
    max_steps: int | None = Field(default=None, ge=1, alias="maxSteps")

    def to_goal(self) -> Goal:
        return Goal(
            user_prompt=self.goal,
            constraints=self.constraints,
            success_criteria=self.success_criteria,
            allowed_domains=self.allowed_domains,
            max_steps=self.max_steps or settings.default_max_steps,
        )


@router.post("/run")
async def run_agent(request: RunRequest, req: Request) -> dict[str, Any]:
    """
    Run a goal to completion and return its outcome.

    The request blocks until the run finishes.

    Args:
        request: Goal and run options
        req: FastAPI request

    Returns:
        runId, success, result, error, steps, duration (ms)
    """
    if not request.goal.strip():
        raise HTTPException(status_code=400, detail="Goal is required")

    active_runs: dict[str, dict[str, Any]] = req.app.state.active_runs
    run_id = str(uuid.uuid4())
    started = now_ms()

    active_runs[run_id] = {"status": "running", "startTime": started, "goal": request.goal}
    try:
        agent = req.app.state.agent_factory(req.app.state.history_store)
        outcome = await agent.run(request.to_goal(), request.start_url, run_id=run_id)
    except Exception as e:
        logger.exception("Run %s failed to execute", run_id)
        raise HTTPException(status_code=500, detail=str(e) or type(e).__name__)
    finally:
        active_runs.pop(run_id, None)

    return {
        "runId": run_id,
        "success": outcome.success,
        "result": outcome.result,
        "error": outcome.error,
        "steps": outcome.steps,
        "duration": now_ms() - started,
    }


@router.get("/runs")
async def list_active_runs(req: Request) -> dict[str, Any]:
    """List runs currently in progress."""
    now = now_ms()
    return {
        "active": [
            {"id": run_id, **info, "duration": now - info["startTime"]}
            for run_id, info in req.app.state.active_runs.items()
        ]
    }


@router.get("/stats")
async def get_run_stats(req: Request) -> dict[str, Any]:
    """
    Aggregate statistics over recorded runs.

    Returns:
        ``{"enabled": False}`` when the history store is off
    """
    history_store = req.app.state.history_store
    if history_store is None:
        return {"enabled": False}

    return {"enabled": True, **await history_store.get_stats()}


@router.get("/policy")
async def get_policy() -> dict[str, Any]:
    """Safety policy applied to runs (before per-goal allowlists)."""
    return PolicyGuard(settings.safety_policy()).scope_declaration()


@router.get("/selectors/{domain}")
async def get_selectors(
    domain: str,
    req: Request,
    limit: int = Query(default=20, ge=1, le=100),
) -> dict[str, Any]:
    """Most reliable selectors recorded for a domain."""
    history_store = req.app.state.history_store
    if history_store is None:
        return {"enabled": False}

    selectors = await history_store.get_best_selectors(domain.lower(), limit=limit)
    return {"enabled": True, "domain": domain.lower(), "selectors": selectors}


@router.get("/visits")
async def get_visits(
    req: Request,
    url: str,
    limit: int = Query(default=5, ge=1, le=50),
) -> dict[str, Any]:
    """Recent visits to a URL, newest first."""
    history_store = req.app.state.history_store
    if history_store is None:
        return {"enabled": False}

    visits = await history_store.get_previous_visits(url, limit=limit)
    return {"enabled": True, "url": url, "visits": visits}
