"""
Action Executor - performs one validated tool call on the page.
Every outcome, including unexpected exceptions, comes back as a ToolResult.
"""

import logging
import time
from pathlib import Path
from typing import Any

from .base import BaseComponent
from ..browser.behavior import HumanBehavior
from ..browser.extraction import ContentExtractor
from ..core.config import settings
from ..core.models import ToolResult
from ..core.tools import (
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
    NavigateArgs,
    ClickArgs,
    TypeArgs,
    WaitForArgs,
    ScreenshotArgs,
    ScrollArgs,
    QueryArgs,
)


SCROLL_JS = """
(opts) => {
    const amount = opts.amount || window.innerHeight;
    switch (opts.direction) {
        case 'down': window.scrollBy(0, amount); break;
        case 'up': window.scrollBy(0, -amount); break;
        case 'top': window.scrollTo(0, 0); break;
        case 'bottom': window.scrollTo(0, document.body.scrollHeight); break;
    }
}
"""


class ActionExecutor(BaseComponent):
    """
    Dispatches tool calls to Playwright page operations.

    Stateless apart from the screenshot counter used to name artifacts.
    Arguments are trusted: they were validated when the call was parsed.
    """

    def __init__(
        self,
        page,
        screenshots_dir: str | None = None,
        extractor: ContentExtractor | None = None,
    ):
        """
        Initialize executor.

        Args:
            page: Playwright page owned by the current run
            screenshots_dir: Where screenshots are written (defaults to config)
            extractor: Content extractor (defaults to one bound to ``page``)
        """
        super().__init__(name="executor")
        self.page = page
        self.screenshots_dir = Path(screenshots_dir or settings.screenshots_dir)
        self.extractor = extractor or ContentExtractor(page)
        self.screenshot_counter = 0

    async def execute(self, tool_call: BaseToolCall) -> ToolResult:
        """
        Execute one tool call.

        Args:
            tool_call: Parsed tool call

        Returns:
            Normalized result; never raises
        """
        try:
            match tool_call:
                case NavigateCall(args=args):
                    return await self.navigate(args)
                case ClickCall(args=args):
                    return await self.click(args)
                case TypeCall(args=args):
                    return await self.type(args)
                case ExtractCall(args=args):
                    return ToolResult.ok(await self.extractor.extract(args.mode))
                case WaitForCall(args=args):
                    return await self.wait_for(args)
                case ScreenshotCall(args=args):
                    return await self.screenshot(args)
                case ScrollCall(args=args):
                    return await self.scroll(args)
                case QueryCall(args=args):
                    return await self.query(args)
                case GoBackCall():
                    return await self.go_back()
                case CompleteCall(args=args):
                    return ToolResult.ok(args.model_dump(exclude_none=True))
                case _:
                    return ToolResult.fail(f"Unknown tool: {tool_call.name}")
        except Exception as e:
            self.log(f"{tool_call.name} failed: {e}", logging.DEBUG)
            return ToolResult.fail(str(e) or type(e).__name__)

    # =========================================================================
    # Navigation
    # =========================================================================

    async def navigate(self, args: NavigateArgs) -> ToolResult:
        await self.page.goto(
            args.url,
            wait_until=args.wait_until or "domcontentloaded",
            timeout=settings.navigation_timeout_ms,
        )
        return ToolResult.ok({"url": self.page.url, "title": await self.page.title()})

    async def go_back(self) -> ToolResult:
        await self.page.go_back(wait_until="domcontentloaded")
        return ToolResult.ok({"url": self.page.url})

    # =========================================================================
    # Interaction
    # =========================================================================

    async def click(self, args: ClickArgs) -> ToolResult:
        timeout = args.timeout or settings.action_timeout_ms
        selector = args.selector

        await self.page.wait_for_selector(selector, state="visible", timeout=timeout)
        await self.page.click(selector, timeout=timeout)
        await HumanBehavior.settle(self.page, settings.click_settle_ms)

        return ToolResult.ok({"selector": selector, "clicked": True}, selector=selector)

    async def type(self, args: TypeArgs) -> ToolResult:
        selector = args.selector
        submit = bool(args.submit)
        clear = True if args.clear is None else args.clear

        await self.page.wait_for_selector(
            selector, state="visible", timeout=settings.action_timeout_ms
        )

        if clear:
            await self.page.fill(selector, "")

        await HumanBehavior.human_type(self.page, selector, args.text, settings.typing_delay_ms)

        if submit:
            await self.page.keyboard.press("Enter")
            await HumanBehavior.settle(self.page, settings.submit_settle_ms)

        return ToolResult.ok(
            {"selector": selector, "text": args.text, "submitted": submit},
            selector=selector,
        )

    async def scroll(self, args: ScrollArgs) -> ToolResult:
        await self.page.evaluate(SCROLL_JS, {"direction": args.direction, "amount": args.amount})
        await HumanBehavior.settle(self.page, settings.scroll_settle_ms)
        return ToolResult.ok({"direction": args.direction})

    # =========================================================================
    # Waiting and Inspection
    # =========================================================================

    async def wait_for(self, args: WaitForArgs) -> ToolResult:
        timeout = args.timeout or settings.wait_timeout_ms

        if args.selector and args.state:
            return ToolResult.fail("Specify either selector or state, not both")

        if args.selector:
            await self.page.wait_for_selector(args.selector, timeout=timeout)
            return ToolResult.ok({"selector": args.selector, "appeared": True})

        if args.state:
            await self.page.wait_for_load_state(args.state, timeout=timeout)
            return ToolResult.ok({"state": args.state, "ready": True})

        return ToolResult.fail("Must specify selector or state")

    async def query(self, args: QueryArgs) -> ToolResult:
        element = await self.page.query_selector(args.selector)

        if element is None:
            return ToolResult.fail(f"Element not found: {args.selector}")

        try:
            text = await element.inner_text()
        except Exception:
            text = ""
        try:
            visible = await element.is_visible()
        except Exception:
            visible = False

        return ToolResult.ok({"selector": args.selector, "text": text, "visible": visible})

    async def screenshot(self, args: ScreenshotArgs) -> ToolResult:
        self.screenshots_dir.mkdir(parents=True, exist_ok=True)

        filename = f"step-{self.screenshot_counter}-{int(time.time() * 1000)}.png"
        self.screenshot_counter += 1
        filepath = str(self.screenshots_dir / filename)

        await self.page.screenshot(path=filepath, full_page=bool(args.full_page))

        data: dict[str, Any] = {"purpose": args.purpose, "path": filepath}
        return ToolResult.ok(data, screenshot=filepath)
