"""
Page Observer.
Turns a live page into a compact WorldState for the reasoning engine: a
bounded text summary plus a list of stable, actionable selectors.
"""

import logging
from typing import Any

from ..core.models import SelectorDescriptor, WorldState


logger = logging.getLogger(__name__)


HEADINGS_JS = """
() => {
    const text = (els) => Array.from(els).map(h => h.textContent?.trim()).filter(Boolean);
    return {
        h1s: text(document.querySelectorAll('h1')).slice(0, 3),
        h2s: text(document.querySelectorAll('h2')).slice(0, 5),
    };
}
"""

VISIBLE_TEXT_JS = """
(limit) => {
    const body = document.body;
    if (!body) return '';
    const clone = body.cloneNode(true);
    clone.querySelectorAll('script, style, [hidden], [style*="display: none"]').forEach(el => el.remove());
    return (clone.innerText || clone.textContent || '').slice(0, limit);
}
"""

SELECTORS_JS = """
(maxSelectors) => {
    const selectors = [];

    function stableSelector(el) {
        const testId = el.getAttribute('data-testid') || el.getAttribute('data-test-id');
        if (testId) return { selector: `[data-testid="${testId}"]`, testId };

        const ariaLabel = el.getAttribute('aria-label');
        if (ariaLabel) return { selector: `[aria-label="${ariaLabel}"]` };

        const id = el.id;
        if (id && !/^[a-z0-9-]{20,}$/i.test(id) && !id.includes('random')) {
            return { selector: `#${id}` };
        }

        const name = el.getAttribute('name');
        if (name && document.querySelectorAll(`[name="${name}"]`).length === 1) {
            return { selector: `[name="${name}"]` };
        }
        return null;
    }

    document.querySelectorAll('button, [role="button"], input[type="submit"]').forEach(el => {
        const stable = stableSelector(el);
        const text = (el.textContent || el.value || '').trim();
        const role = el.getAttribute('role') || 'button';
        if (stable && text) {
            selectors.push({ selector: stable.selector, type: 'button', text: text.slice(0, 50), role, testId: stable.testId });
        } else if (text.length > 0 && text.length < 50) {
            selectors.push({ selector: `text="${text}"`, type: 'button', text, role });
        }
    });

    document.querySelectorAll('a[href]').forEach(el => {
        const stable = stableSelector(el);
        const text = el.textContent?.trim() || '';
        if (text.length > 0 && text.length < 100) {
            selectors.push({
                selector: stable ? stable.selector : `text="${text}"`,
                type: 'link',
                text: text.slice(0, 50),
                testId: stable?.testId,
            });
        }
    });

    document.querySelectorAll('input:not([type="hidden"]), textarea').forEach(el => {
        const stable = stableSelector(el);
        if (!stable) return;
        const placeholder = el.getAttribute('placeholder');
        const label = el.id ? document.querySelector(`label[for="${el.id}"]`)?.textContent?.trim() : null;
        const type = el.type || 'text';
        selectors.push({ selector: stable.selector, type: 'input', text: label || placeholder || type, role: type, testId: stable.testId });
    });

    document.querySelectorAll('form').forEach((el, idx) => {
        const stable = stableSelector(el);
        const action = el.action;
        selectors.push({
            selector: stable ? stable.selector : `form:nth-of-type(${idx + 1})`,
            type: 'form',
            text: action ? `Form -> ${action}` : 'Form',
        });
    });

    const seen = new Set();
    return selectors.filter(s => {
        if (seen.has(s.selector)) return false;
        seen.add(s.selector);
        return true;
    }).slice(0, maxSelectors);
}
"""


class PageObserver:
    """
    Produces WorldState snapshots from a Playwright page.
    Token-efficient: the summary is capped and selectors are de-duplicated.
    """

    MAX_SUMMARY_CHARS = 3000
    CONTENT_PREVIEW_CHARS = 1000
    MAX_SELECTORS = 30

    async def observe(self, page, step: int, last_error: str | None = None) -> WorldState:
        """
        Snapshot the page for one loop iteration.

        Args:
            page: Playwright page
            step: Index of the step this snapshot is planned for
            last_error: Error text of the previous action, if it failed

        Returns:
            Immutable WorldState
        """
        url = page.url
        try:
            title = await page.title()
        except Exception:
            title = None

        return WorldState(
            url=url,
            title=title,
            dom_summary=await self.summarize(page, url, title),
            visible_selectors=await self.extract_selectors(page),
            step=step,
            last_error=last_error,
        )

    async def summarize(self, page, url: str, title: str | None) -> str:
        """Build the bounded text summary of the page."""
        try:
            headings = await page.evaluate(HEADINGS_JS)
            main_text = await page.evaluate(VISIBLE_TEXT_JS, 2000)
        except Exception as e:
            logger.debug("Page summary unavailable: %s", e)
            headings, main_text = {"h1s": [], "h2s": []}, ""

        return self.format_summary(url, title, headings, main_text)

    def format_summary(
        self,
        url: str,
        title: str | None,
        headings: dict[str, list[str]],
        main_text: str,
    ) -> str:
        summary = f"URL: {url}\nTitle: {title or 'Untitled'}\n\n"

        if headings.get("h1s"):
            summary += "Main Headings:\n" + "\n".join(f"  - {h}" for h in headings["h1s"]) + "\n\n"

        if headings.get("h2s"):
            summary += "Subheadings:\n" + "\n".join(f"  - {h}" for h in headings["h2s"]) + "\n\n"

        summary += f"Content Preview:\n{main_text[:self.CONTENT_PREVIEW_CHARS]}...\n"

        return summary[:self.MAX_SUMMARY_CHARS]

    async def extract_selectors(self, page) -> list[SelectorDescriptor]:
        """Collect stable selectors for buttons, links, inputs and forms."""
        try:
            raw: list[dict[str, Any]] = await page.evaluate(SELECTORS_JS, self.MAX_SELECTORS)
        except Exception as e:
            logger.debug("Selector extraction failed: %s", e)
            return []

        return [
            SelectorDescriptor(
                selector=item["selector"],
                type=item.get("type", "other"),
                text=item.get("text"),
                role=item.get("role"),
                test_id=item.get("testId"),
            )
            for item in raw
            if item.get("selector")
        ]
