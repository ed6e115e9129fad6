"""
Error taxonomy for the agent loop.

Action failures are not exceptions: the executor turns them into a failed
ToolResult. Everything here is terminal for a run.
"""


class AgentError(Exception):
    """Base class for agent errors."""
    pass


class PolicyViolation(AgentError):
    """Raised when the policy guard rejects an action."""
    pass


class InvalidToolCall(AgentError, ValueError):
    """Raised when a tool name or its arguments do not fit the vocabulary."""
    pass


class ReasoningFailure(AgentError):
    """Raised when the reasoning engine returns no usable action."""
    pass
