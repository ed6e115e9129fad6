"""Browser module - Playwright session management, page observation, and extraction."""

from .manager import BrowserManager
from .observer import PageObserver
from .extraction import ContentExtractor
from .behavior import HumanBehavior

__all__ = [
    "BrowserManager",
    "PageObserver",
    "ContentExtractor",
    "HumanBehavior",
]
