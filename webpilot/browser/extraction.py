"""
Content Extraction.
Pulls articles, tables, raw text and links out of the current page.
"""

import re
from typing import Any

from bs4 import BeautifulSoup, Tag


# Boilerplate stripped before an article root is chosen
NOISE_TAGS = [
    "script", "style", "noscript", "template", "svg", "iframe",
    "nav", "header", "footer", "aside", "form", "button", "select",
]

NOISE_HINTS = re.compile(
    r"comment|sidebar|footer|header|menu|nav|banner|promo|related|share|social|cookie|advert|\bads?\b",
    re.IGNORECASE,
)

CANDIDATE_TAGS = ["article", "main", "section", "div", "td"]

MIN_PARAGRAPH_CHARS = 25


def _meta(soup: BeautifulSoup, name: str) -> str | None:
    tag = soup.find("meta", attrs={"name": name}) or soup.find("meta", attrs={"property": name})
    if tag is None:
        return None
    content = (tag.get("content") or "").strip()
    return content or None


def _is_noise(tag: Tag) -> bool:
    if tag.name in ("html", "body", "article", "main"):
        return False
    hints = " ".join(tag.get("class") or []) + " " + (tag.get("id") or "")
    return bool(NOISE_HINTS.search(hints))


def _link_density(node: Tag) -> float:
    text_length = len(node.get_text(" ", strip=True))
    if not text_length:
        return 1.0
    link_length = sum(len(a.get_text(" ", strip=True)) for a in node.find_all("a"))
    return link_length / text_length


def _clean_text(text: str) -> str:
    text = re.sub(r"[ \t\r\f\v]+", " ", text)
    text = re.sub(r" ?\n[ \n]*\n", "\n\n", text)
    return text.strip()


TABLES_JS = """
() => {
    const tables = [];
    document.querySelectorAll('table').forEach(table => {
        const headers = [];
        table.querySelectorAll('thead th, thead td').forEach(th => headers.push(th.textContent?.trim() || ''));

        let skipFirst = false;
        if (headers.length === 0) {
            const firstRow = table.querySelector('tr');
            firstRow?.querySelectorAll('th, td').forEach(cell => headers.push(cell.textContent?.trim() || ''));
            skipFirst = headers.length > 0;
        }

        const rows = [];
        table.querySelectorAll('tbody tr, tr').forEach((tr, idx) => {
            if (idx === 0 && skipFirst) return;
            if (tr.parentElement?.tagName === 'THEAD') return;
            const row = {};
            tr.querySelectorAll('td, th').forEach((cell, cellIdx) => {
                row[headers[cellIdx] || `col_${cellIdx}`] = cell.textContent?.trim() || '';
            });
            if (Object.keys(row).length > 0) rows.push(row);
        });

        if (rows.length > 0) tables.push(rows);
    });
    return tables;
}
"""

RAW_TEXT_JS = "() => document.body?.innerText || ''"

LINKS_JS = """
(limit) => {
    const links = [];
    document.querySelectorAll('a[href]').forEach(a => {
        const text = a.textContent?.trim() || '';
        const href = a.href;
        if (text && href && !href.startsWith('javascript:')) {
            links.push({ text: text.slice(0, 100), href });
        }
    });
    return links.slice(0, limit);
}
"""


class ContentExtractor:
    """
    Extracts structured content from a Playwright page.
    One method per ``extract`` mode.
    """

    MAX_ARTICLE_CHARS = 10000
    MAX_LINKS = 100

    def __init__(self, page):
        """
        Initialize extractor.

        Args:
            page: Playwright page object
        """
        self.page = page

    async def extract(self, mode: str) -> Any:
        """Dispatch on extract mode (article, table, raw, links)."""
        if mode == "article":
            return await self.article()
        if mode == "table":
            return await self.tables()
        if mode == "links":
            return await self.links()
        if mode == "raw":
            return await self.raw_text()
        raise ValueError(f"Unknown extract mode: {mode}")

    async def article(self) -> dict[str, Any]:
        return self.parse_article(await self.page.content(), limit=self.MAX_ARTICLE_CHARS)

    @classmethod
    def parse_article(cls, html: str, limit: int | None = None) -> dict[str, Any]:
        """
        Readability-style article extraction from page HTML.

        Boilerplate elements are dropped first. Each substantial paragraph
        then scores its parent in full and its grandparent by half, and the
        best container, discounted by its link density, becomes the body.

        Args:
            html: Full page HTML
            limit: Maximum characters of ``textContent``

        Returns:
            title, byline, siteName, excerpt, textContent and length
            (unset metadata omitted)
        """
        soup = BeautifulSoup(html, "html.parser")
        limit = limit or cls.MAX_ARTICLE_CHARS

        title = _meta(soup, "og:title") or (soup.title.get_text(strip=True) if soup.title else "")
        article: dict[str, Any] = {
            "title": title,
            "byline": _meta(soup, "author") or _meta(soup, "article:author"),
            "siteName": _meta(soup, "og:site_name"),
            "excerpt": _meta(soup, "description") or _meta(soup, "og:description"),
        }

        for tag in soup.find_all(NOISE_TAGS) + soup.find_all(_is_noise):
            if not tag.decomposed:
                tag.decompose()

        scores: dict[int, float] = {}
        nodes: dict[int, Tag] = {}
        for paragraph in soup.find_all(["p", "pre", "blockquote"]):
            text = paragraph.get_text(" ", strip=True)
            if len(text) < MIN_PARAGRAPH_CHARS:
                continue
            points = 1 + text.count(",") + min(len(text) // 100, 3)

            parent = paragraph.parent
            grandparent = parent.parent if parent is not None else None
            for ancestor, weight in ((parent, 1.0), (grandparent, 0.5)):
                if isinstance(ancestor, Tag) and ancestor.name in CANDIDATE_TAGS + ["body"]:
                    nodes[id(ancestor)] = ancestor
                    scores[id(ancestor)] = scores.get(id(ancestor), 0.0) + points * weight

        root: Tag | None = None
        if scores:
            best = max(scores, key=lambda key: scores[key] * (1 - _link_density(nodes[key])))
            root = nodes[best]
        root = root or soup.body or soup

        text = _clean_text(root.get_text())
        article["textContent"] = text[:limit]
        article["length"] = len(text)
        return {key: value for key, value in article.items() if value is not None}

    async def tables(self) -> list[list[dict[str, str]]]:
        return await self.page.evaluate(TABLES_JS)

    async def raw_text(self) -> str:
        return await self.page.evaluate(RAW_TEXT_JS)

    async def links(self) -> list[dict[str, str]]:
        return await self.page.evaluate(LINKS_JS, self.MAX_LINKS)
