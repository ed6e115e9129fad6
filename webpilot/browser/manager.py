"""
Playwright Browser Manager.
Owns the browser session (playwright, browser, context, page) for one run.
"""

import logging

from playwright.async_api import (
    async_playwright,
    Browser,
    BrowserContext,
    Page,
    Playwright,
)

from ..core.config import settings
from .behavior import get_launch_config, get_context_config


logger = logging.getLogger(__name__)


class BrowserManager:
    """
    Manages the Playwright session used by a single agent run.
    Teardown never raises: close failures are logged and swallowed.
    """

    def __init__(
        self,
        headless: bool | None = None,
        user_agent: str | None = None,
        viewport: dict[str, int] | None = None,
    ):
        """
        Initialize browser manager.

        Args:
            headless: Run in headless mode (defaults to config)
            user_agent: User agent override (defaults to config)
            viewport: Viewport override (defaults to config)
        """
        self.headless = headless if headless is not None else settings.headless
        self.user_agent = user_agent or settings.user_agent
        self.viewport = viewport or {
            "width": settings.viewport_width,
            "height": settings.viewport_height,
        }

        self.playwright: Playwright | None = None
        self.browser: Browser | None = None
        self.context: BrowserContext | None = None
        self.page: Page | None = None

    async def start(self) -> Page:
        """
        Start browser and return page.

        Returns:
            Playwright Page object
        """
        self.playwright = await async_playwright().start()
        self.browser = await self.playwright.chromium.launch(**get_launch_config(self.headless))
        self.context = await self.browser.new_context(
            **get_context_config(self.user_agent, self.viewport)
        )
        self.page = await self.context.new_page()
        return self.page

    async def stop(self) -> None:
        """Stop browser and cleanup, in page → context → browser → driver order."""
        for name in ("page", "context", "browser"):
            resource = getattr(self, name)
            if resource is None:
                continue
            try:
                await resource.close()
            except Exception as e:
                logger.debug("Ignoring %s close failure: %s", name, e)
            setattr(self, name, None)

        if self.playwright:
            try:
                await self.playwright.stop()
            except Exception as e:
                logger.debug("Ignoring playwright stop failure: %s", e)
            self.playwright = None

