"""
Reasoning Client - The Planner.
Asks the LLM for exactly one next action given the goal, recent history,
and the current page state.
"""

import json
from typing import Any, Sequence

from pydantic import BaseModel, ConfigDict

from .base import BaseComponent
from ..core.config import settings
from ..core.errors import InvalidToolCall, ReasoningFailure
from ..core.models import Goal, SelectorDescriptor, ToolResult, WorldState
from ..core.tools import TOOL_DEFINITIONS, BaseToolCall, ToolCall, parse_tool_call
from ..llm.provider import LLMMessage, LLMProvider, get_llm_provider


SYSTEM_PROMPT = """You are a production-grade browser automation agent. Your job is to accomplish user goals by intelligently navigating websites, extracting information, and interacting with web pages.

**Your capabilities:**
- Navigate to URLs
- Click buttons and links (use stable selectors: data-testid, role, or specific text)
- Type into input fields and forms
- Extract content (articles, tables, links)
- Wait for elements or network to stabilize
- Scroll to reveal content
- Query an element's text and visibility
- Take screenshots for verification

**Guidelines:**
1. **Plan before acting**: Think through the steps needed to accomplish the goal
2. **Use stable selectors**: Prefer data-testid, role attributes, or unique text over fragile CSS classes
3. **Wait appropriately**: Use waitFor when pages load slowly or elements appear dynamically
4. **Extract when needed**: Use extract to get clean data before analyzing
5. **Be resilient**: If an action fails, try alternative selectors or approaches
6. **Respect the web**: Follow site structure, don't hammer endpoints, respect robots.txt
7. **Safety first**: Never attempt to bypass CAPTCHAs, auth walls, or payment flows without explicit user consent
8. **Summarize smartly**: When observing pages, focus on relevant content only. You see a summarized DOM, not raw HTML

**When to complete:**
- Call `complete(success=true, result=...)` when you've achieved the goal and have the answer/data
- Call `complete(success=false, reason=...)` if the goal is impossible or blocked (CAPTCHA, auth required, etc.)

**Output format:**
- You will see: current URL, page title, key headings, visible interactive elements with selectors
- You respond with: ONE tool call per step
- After each tool, you'll see the result and updated page state

Think step-by-step. Be precise. Be efficient."""


class PlannedAction(BaseModel):
    """The single action chosen by the reasoning engine."""
    model_config = ConfigDict(frozen=True)

    tool_call: ToolCall
    reasoning: str | None = None


class ReasoningClient(BaseComponent):
    """
    Formats bounded context for the LLM and parses its single tool call.
    No retries and no fallback action: anything but one valid call fails.
    """

    MAX_SUMMARY_CHARS = 3000
    MAX_LINKS = 10
    MAX_RESULT_CHARS = 4000

    def __init__(
        self,
        llm_provider: LLMProvider | None = None,
        history_window: int | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ):
        """
        Initialize the reasoning client.

        Args:
            llm_provider: LLM provider (uses the configured default if not provided)
            history_window: Number of recent steps included in the prompt
            temperature: Sampling temperature
            max_tokens: Completion token limit
        """
        super().__init__(name="planner")
        self.llm = llm_provider or get_llm_provider()
        self.history_window = history_window or settings.history_window
        self.temperature = settings.llm_temperature if temperature is None else temperature
        self.max_tokens = max_tokens or settings.llm_max_tokens

    async def next_action(
        self,
        goal: Goal,
        world: WorldState,
        history: Sequence[tuple[BaseToolCall, ToolResult]] = (),
    ) -> PlannedAction:
        """
        Ask the LLM for the next action.

        Args:
            goal: Goal of the run
            world: Current page snapshot
            history: (action, result) pairs recorded so far, oldest first

        Returns:
            The chosen action and the model's rationale, if any

        Raises:
            ReasoningFailure: No tool call, or one that does not parse
        """
        messages = self.build_messages(goal, world, history)

        response = await self.llm.invoke(
            messages=messages,
            tools=TOOL_DEFINITIONS,
            tool_choice="required",
            temperature=self.temperature,
            max_tokens=self.max_tokens,
        )

        selected = response.first_tool_call()
        if selected is None:
            raise ReasoningFailure("LLM did not return a tool call")

        name, arguments = selected
        try:
            tool_call = parse_tool_call(name, arguments)
        except InvalidToolCall as e:
            raise ReasoningFailure(str(e)) from e

        return PlannedAction(
            tool_call=tool_call,
            reasoning=response.content or None,
        )

    # =========================================================================
    # Prompt Assembly
    # =========================================================================

    def build_messages(
        self,
        goal: Goal,
        world: WorldState,
        history: Sequence[tuple[BaseToolCall, ToolResult]] = (),
    ) -> list[LLMMessage]:
        """
        Build the message list: system prompt, goal, recent turns, page state.

        Recent steps are rendered as alternating assistant (action) and
        user (result) turns.
        """
        messages = [
            LLMMessage(role="system", content=SYSTEM_PROMPT),
            LLMMessage(role="user", content=self.format_goal(goal)),
        ]

        for tool_call, result in list(history)[-self.history_window:]:
            messages.append(LLMMessage(
                role="assistant",
                content=f"Action: {tool_call.describe()}",
            ))
            messages.append(LLMMessage(
                role="user",
                content=self.format_result(result),
            ))

        messages.append(LLMMessage(role="user", content=self.format_world_state(world)))
        return messages

    def format_goal(self, goal: Goal) -> str:
        message = f"**Goal:** {goal.user_prompt}\n\n"

        if goal.constraints:
            message += "**Constraints:**\n" + "\n".join(f"- {c}" for c in goal.constraints) + "\n\n"

        if goal.success_criteria:
            message += "**Success criteria:**\n" + "\n".join(f"- {s}" for s in goal.success_criteria) + "\n\n"

        message += f"**Maximum steps:** {goal.max_steps}\n"
        return message

    def format_result(self, result: ToolResult) -> str:
        payload: Any = result.data if result.data else result.error
        rendered = json.dumps(payload, indent=2, default=str)
        if len(rendered) > self.MAX_RESULT_CHARS:
            rendered = rendered[:self.MAX_RESULT_CHARS] + "\n... (truncated)"
        status = "Success" if result.success else "Failed"
        return f"Result: {status}\n{rendered}"

    def format_world_state(self, world: WorldState) -> str:
        """Render the page snapshot in a token-efficient way."""
        state = f"**Current State (Step {world.step}):**\n\n"
        state += world.dom_summary[:self.MAX_SUMMARY_CHARS]
        state += "\n\n**Available Actions:**\n"

        grouped = self.group_selectors(world.visible_selectors)

        if grouped["button"]:
            state += "\nButtons:\n" + self._list(grouped["button"])

        if grouped["link"]:
            state += f"\n\nLinks (first {self.MAX_LINKS}):\n" + self._list(grouped["link"][:self.MAX_LINKS])

        if grouped["input"]:
            state += "\n\nInput Fields:\n" + self._list(grouped["input"])

        if grouped["form"]:
            state += "\n\nForms:\n" + "\n".join(f"  - {s.selector}" for s in grouped["form"])

        if world.last_error:
            state += f"\n\n**Last Error:** {world.last_error}"

        return state

    @staticmethod
    def group_selectors(selectors: list[SelectorDescriptor]) -> dict[str, list[SelectorDescriptor]]:
        grouped: dict[str, list[SelectorDescriptor]] = {
            "button": [], "link": [], "input": [], "form": [], "other": []
        }
        for descriptor in selectors:
            grouped[descriptor.type].append(descriptor)
        return grouped

    @staticmethod
    def _list(selectors: list[SelectorDescriptor]) -> str:
        return "\n".join(f"  - {s.text or ''} -> {s.selector}" for s in selectors)
