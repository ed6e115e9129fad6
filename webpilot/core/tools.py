"""
Tool Vocabulary - the closed set of actions the reasoning engine may request.

Each action is its own pydantic model tagged by ``name``; ``ToolCall`` is the
discriminated union over all of them. Argument models forbid extra fields so a
call can only carry the arguments of its own tag. Wire field names are
camelCase to match the function schemas sent to the LLM.
"""

import json
from typing import Annotated, Any, Literal, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    StrictBool,
    StrictFloat,
    StrictInt,
    StrictStr,
    TypeAdapter,
    ValidationError,
)

from .errors import InvalidToolCall


LoadState = Literal["load", "domcontentloaded", "networkidle"]
ExtractMode = Literal["article", "table", "raw", "links"]
ScrollDirection = Literal["down", "up", "top", "bottom"]

# JSON integers are accepted for numbers; strings and booleans are not
Number = Union[StrictInt, StrictFloat]


# ==============================================================================
# Argument Models
# ==============================================================================

class ToolArgs(BaseModel):
    """Base for tool argument models."""
    model_config = ConfigDict(extra="forbid", populate_by_name=True, frozen=True)


class NavigateArgs(ToolArgs):
    url: StrictStr
    wait_until: LoadState | None = Field(default=None, alias="waitUntil")


class ClickArgs(ToolArgs):
    selector: StrictStr
    timeout: Number | None = None


class TypeArgs(ToolArgs):
    selector: StrictStr
    text: StrictStr
    submit: StrictBool | None = None
    clear: StrictBool | None = None


class ExtractArgs(ToolArgs):
    mode: ExtractMode


class WaitForArgs(ToolArgs):
    selector: StrictStr | None = None
    state: LoadState | None = None
    timeout: Number | None = None


class ScreenshotArgs(ToolArgs):
    purpose: StrictStr | None = None
    full_page: StrictBool | None = Field(default=None, alias="fullPage")


class ScrollArgs(ToolArgs):
    direction: ScrollDirection
    amount: Number | None = None


class QueryArgs(ToolArgs):
    selector: StrictStr


class GoBackArgs(ToolArgs):
    pass


class CompleteArgs(ToolArgs):
    success: StrictBool
    result: StrictStr | None = None
    reason: StrictStr | None = None


# ==============================================================================
# Tool Calls
# ==============================================================================

class BaseToolCall(BaseModel):
    """Common behavior of every tool call variant."""
    model_config = ConfigDict(frozen=True)

    name: str
    args: ToolArgs

    def wire_args(self) -> dict[str, Any]:
        """Arguments as sent over the wire (camelCase, unset fields omitted)."""
        return self.args.model_dump(by_alias=True, exclude_none=True)

    def to_wire(self) -> dict[str, Any]:
        """Serialize to the ``{name, args}`` wire form."""
        return {"name": self.name, "args": self.wire_args()}

    def describe(self, limit: int | None = None) -> str:
        """Render as ``name({...})`` for logs and prompts."""
        args = json.dumps(self.wire_args())
        if limit is not None:
            args = args[:limit]
        return f"{self.name}({args})"


class NavigateCall(BaseToolCall):
    name: Literal["navigate"] = "navigate"
    args: NavigateArgs


class ClickCall(BaseToolCall):
    name: Literal["click"] = "click"
    args: ClickArgs


class TypeCall(BaseToolCall):
    name: Literal["type"] = "type"
    args: TypeArgs


class ExtractCall(BaseToolCall):
    name: Literal["extract"] = "extract"
    args: ExtractArgs


class WaitForCall(BaseToolCall):
    name: Literal["waitFor"] = "waitFor"
    args: WaitForArgs


class ScreenshotCall(BaseToolCall):
    name: Literal["screenshot"] = "screenshot"
    args: ScreenshotArgs


class ScrollCall(BaseToolCall):
    name: Literal["scroll"] = "scroll"
    args: ScrollArgs


class QueryCall(BaseToolCall):
    name: Literal["query"] = "query"
    args: QueryArgs


class GoBackCall(BaseToolCall):
    name: Literal["goBack"] = "goBack"
    args: GoBackArgs = Field(default_factory=GoBackArgs)


class CompleteCall(BaseToolCall):
    name: Literal["complete"] = "complete"
    args: CompleteArgs


ToolCall = Annotated[
    Union[
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
    ],
    Field(discriminator="name"),
]

TOOL_CALL_TYPES: dict[str, type[BaseToolCall]] = {
    "navigate": NavigateCall,
    "click": ClickCall,
    "type": TypeCall,
    "extract": ExtractCall,
    "waitFor": WaitForCall,
    "screenshot": ScreenshotCall,
    "scroll": ScrollCall,
    "query": QueryCall,
    "goBack": GoBackCall,
    "complete": CompleteCall,
}

_tool_call_adapter: TypeAdapter[ToolCall] = TypeAdapter(ToolCall)


def parse_tool_call(name: str, arguments: dict[str, Any] | str | None) -> BaseToolCall:
    """
    Build a typed tool call from a tool name and its raw arguments.

    Args:
        name: Tool name as chosen by the reasoning engine
        arguments: Argument object, or its JSON encoding

    Returns:
        The matching ToolCall variant

    Raises:
        InvalidToolCall: Unknown name, malformed JSON, or arguments that do
            not conform to the variant's schema
    """
    if name not in TOOL_CALL_TYPES:
        raise InvalidToolCall(f"Unknown tool: {name}")

    if arguments is None or (isinstance(arguments, str) and not arguments.strip()):
        arguments = {}
    elif isinstance(arguments, str):
        try:
            arguments = json.loads(arguments)
        except json.JSONDecodeError as e:
            raise InvalidToolCall(f"Malformed arguments for {name}: {e}") from e

    if not isinstance(arguments, dict):
        raise InvalidToolCall(f"Arguments for {name} must be an object")

    try:
        return _tool_call_adapter.validate_python({"name": name, "args": arguments})
    except ValidationError as e:
        raise InvalidToolCall(f"Invalid arguments for {name}: {e}") from e


def tool_call_from_wire(payload: dict[str, Any]) -> BaseToolCall:
    """Parse the ``{name, args}`` form produced by ``BaseToolCall.to_wire``."""
    return parse_tool_call(payload.get("name", ""), payload.get("args"))


# ==============================================================================
# Function Schemas (sent to the reasoning engine)
# ==============================================================================

TOOL_DEFINITIONS: list[dict[str, Any]] = [
    {
        "name": "navigate",
        "description": "Navigate to a URL. Use this to go to a new page or website.",
        "parameters": {
            "type": "object",
            "properties": {
                "url": {
                    "type": "string",
                    "description": "The URL to navigate to (must be absolute, starting with http:// or https://)"
                },
                "waitUntil": {
                    "type": "string",
                    "enum": ["load", "domcontentloaded", "networkidle"],
                    "description": "When to consider navigation complete (default: domcontentloaded)"
                }
            },
            "required": ["url"]
        }
    },
    {
        "name": "click",
        "description": "Click an element on the page. Use stable selectors like data-testid, role, or unique text.",
        "parameters": {
            "type": "object",
            "properties": {
                "selector": {
                    "type": "string",
                    "description": "CSS selector, text selector (text=...), or role selector (role=button) to click"
                },
                "timeout": {
                    "type": "number",
                    "description": "Maximum time to wait for element in milliseconds (default: 15000)"
                }
            },
            "required": ["selector"]
        }
    },
    {
        "name": "type",
        "description": "Type text into an input field. Can optionally submit after typing.",
        "parameters": {
            "type": "object",
            "properties": {
                "selector": {
                    "type": "string",
                    "description": "CSS selector for the input field"
                },
                "text": {
                    "type": "string",
                    "description": "Text to type into the field"
                },
                "submit": {
                    "type": "boolean",
                    "description": "Whether to press Enter after typing (default: false)"
                },
                "clear": {
                    "type": "boolean",
                    "description": "Whether to clear the field before typing (default: true)"
                }
            },
            "required": ["selector", "text"]
        }
    },
    {
        "name": "extract",
        "description": "Extract content from the page in various formats.",
        "parameters": {
            "type": "object",
            "properties": {
                "mode": {
                    "type": "string",
                    "enum": ["article", "table", "raw", "links"],
                    "description": "article: clean article text | table: structured tables | raw: all text | links: all links with text"
                }
            },
            "required": ["mode"]
        }
    },
    {
        "name": "waitFor",
        "description": "Wait for a condition before proceeding. Use to wait for elements to appear or page to stabilize.",
        "parameters": {
            "type": "object",
            "properties": {
                "selector": {
                    "type": "string",
                    "description": "CSS selector to wait for (optional if using state)"
                },
                "state": {
                    "type": "string",
                    "enum": ["networkidle", "load", "domcontentloaded"],
                    "description": "Page load state to wait for (optional if using selector)"
                },
                "timeout": {
                    "type": "number",
                    "description": "Maximum time to wait in milliseconds (default: 30000)"
                }
            }
        }
    },
    {
        "name": "screenshot",
        "description": "Take a screenshot of the current page for debugging or verification.",
        "parameters": {
            "type": "object",
            "properties": {
                "purpose": {
                    "type": "string",
                    "description": "Why this screenshot is being taken"
                },
                "fullPage": {
                    "type": "boolean",
                    "description": "Capture full scrollable page (default: false)"
                }
            }
        }
    },
    {
        "name": "scroll",
        "description": "Scroll the page to reveal more content.",
        "parameters": {
            "type": "object",
            "properties": {
                "direction": {
                    "type": "string",
                    "enum": ["down", "up", "top", "bottom"],
                    "description": "Direction to scroll"
                },
                "amount": {
                    "type": "number",
                    "description": "Pixels to scroll (default: viewport height)"
                }
            },
            "required": ["direction"]
        }
    },
    {
        "name": "query",
        "description": "Check an element's text and visibility without interacting with it.",
        "parameters": {
            "type": "object",
            "properties": {
                "selector": {
                    "type": "string",
                    "description": "CSS selector of the element to inspect"
                }
            },
            "required": ["selector"]
        }
    },
    {
        "name": "goBack",
        "description": "Navigate back to the previous page in history.",
        "parameters": {
            "type": "object",
            "properties": {}
        }
    },
    {
        "name": "complete",
        "description": "Signal that the goal has been achieved (or cannot be achieved). Use this when done.",
        "parameters": {
            "type": "object",
            "properties": {
                "success": {
                    "type": "boolean",
                    "description": "Whether the goal was successfully completed"
                },
                "result": {
                    "type": "string",
                    "description": "The final result or answer to return to the user"
                },
                "reason": {
                    "type": "string",
                    "description": "Explanation of why stopping (success or failure reason)"
                }
            },
            "required": ["success"]
        }
    },
]
