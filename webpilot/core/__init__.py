"""Core module - configuration, tool vocabulary, models, errors, and guardrails."""

from .config import settings, Settings
from .errors import AgentError, PolicyViolation, InvalidToolCall, ReasoningFailure
from .tools import (
    ToolCall,
    BaseToolCall,
    NavigateCall,
    ClickCall,
    TypeCall,
    ExtractCall,
    WaitForCall,
    ScreenshotCall,
    ScrollCall,
    QueryCall,
    GoBackCall,
    CompleteCall,
    TOOL_DEFINITIONS,
    parse_tool_call,
    tool_call_from_wire,
)
from .models import (
    Goal,
    WorldState,
    SelectorDescriptor,
    ToolResult,
    AgentStep,
    AgentRun,
    RunStatus,
    SafetyPolicy,
    RunOutcome,
)
from .guardrails import PolicyGuard, PolicyDecision

__all__ = [
    "settings",
    "Settings",
    "AgentError",
    "PolicyViolation",
    "InvalidToolCall",
    "ReasoningFailure",
    "ToolCall",
    "BaseToolCall",
    "NavigateCall",
    "ClickCall",
    "TypeCall",
    "ExtractCall",
    "WaitForCall",
    "ScreenshotCall",
    "ScrollCall",
    "QueryCall",
    "GoBackCall",
    "CompleteCall",
    "TOOL_DEFINITIONS",
    "parse_tool_call",
    "tool_call_from_wire",
    "Goal",
    "WorldState",
    "SelectorDescriptor",
    "ToolResult",
    "AgentStep",
    "AgentRun",
    "RunStatus",
    "SafetyPolicy",
    "RunOutcome",
    "PolicyGuard",
    "PolicyDecision",
]
