"""
Browser launch/context configuration and human-like pacing helpers.
"""

import random
from typing import Any


def get_launch_config(headless: bool = True) -> dict[str, Any]:
    """Chromium launch options."""
    return {
        "headless": headless,
        "args": [
            "--no-first-run",
            "--no-default-browser-check",
        ],
    }


def get_context_config(
    user_agent: str | None = None,
    viewport: dict[str, int] | None = None,
) -> dict[str, Any]:
    """
    Browser context options.

    Args:
        user_agent: User agent string (Playwright default when None)
        viewport: ``{"width", "height"}`` in pixels

    Returns:
        Keyword arguments for ``browser.new_context``
    """
    config: dict[str, Any] = {
        "viewport": viewport or {"width": 1280, "height": 720},
        "locale": "en-US",
        "java_script_enabled": True,
        "is_mobile": False,
        "has_touch": False,
    }
    if user_agent:
        config["user_agent"] = user_agent
    return config


class HumanBehavior:
    """
    Paces interactions the way a person would.
    """

    @staticmethod
    async def settle(page, ms: int) -> None:
        """Give the page time to react to the last interaction."""
        if ms > 0:
            await page.wait_for_timeout(ms)

    @staticmethod
    async def human_type(page, selector: str, text: str, delay_ms: int = 50) -> None:
        """Type text one key at a time with jitter around ``delay_ms``."""
        jitter = max(delay_ms // 4, 0)
        delay = delay_ms + random.randint(-jitter, jitter) if jitter else delay_ms
        await page.locator(selector).press_sequentially(text, delay=delay)
