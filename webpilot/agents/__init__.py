"""
Agent Module - The components of the plan → guard → act → observe loop.

Components:
    - BrowserAgent: Orchestrator that owns one run end to end
    - ReasoningClient: Asks the LLM for the next action
    - ActionExecutor: Performs one action on the page
"""

from .base import BaseComponent
from .executor import ActionExecutor
from .planner import PlannedAction, ReasoningClient
from .orchestrator import BrowserAgent, is_critical_error

__all__ = [
    "BaseComponent",
    "ActionExecutor",
    "PlannedAction",
    "ReasoningClient",
    "BrowserAgent",
    "is_critical_error",
]
