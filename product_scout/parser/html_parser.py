# === FILE: product_scout/parser/html_parser.py ===
"""HTML parsing utilities for ProductScout.

Scoring, model matching and field extraction all look at the same fetched
page, so the markup is parsed once into a :class:`ParsedPage` and that object
is handed from stage to stage.  It keeps both views a stage may need:

* html  — the raw markup (keyword signals and model matching run on it);
* soup  — the BeautifulSoup tree (element signals and field extraction).

Visible text is derived lazily because stripping ``<script>``/``<style>``
mutates a tree; :meth:`ParsedPage.visible_text` works on a private copy.
"""
from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

from bs4 import BeautifulSoup
from bs4.element import Tag

from product_scout.utils import is_navigable_href

__all__: Sequence[str] = ("ParsedPage", "parse_html", "extract_hrefs")

_PARSER = "html.parser"
_INVISIBLE_TAGS = ["script", "style", "noscript", "template"]


@dataclass(slots=True)
class ParsedPage:
    """Raw markup plus the parsed, queryable tree of a fetched page."""

    url: str
    html: str
    soup: BeautifulSoup = field(repr=False)

    # Convenience helpers ---------------------------------------------------
    @property
    def title(self) -> str:
        """Document <title> text or ``""`` if absent."""
        tag = self.soup.find("title")
        return tag.get_text(strip=True) if tag else ""

    @property
    def h1(self) -> str:
        tag = self.soup.find("h1")
        return tag.get_text(" ", strip=True) if tag else ""

    def visible_text(self, limit: int | None = None) -> str:
        """Return page text without scripts, styles and markup, whitespace-joined."""
        soup = BeautifulSoup(self.html, _PARSER)
        for element in soup(_INVISIBLE_TAGS):
            element.decompose()
        text = " ".join(t.strip() for t in soup.stripped_strings)
        return text[:limit] if limit is not None else text


# ---------------------------------------------------------------------------
# Public functions
# ---------------------------------------------------------------------------


def parse_html(page: Any) -> ParsedPage:
    """Parse raw HTML (string) or :class:`~product_scout.crawler.models.PageData`.

    Parameters
    ----------
    page
        Either a *str* (HTML markup) **or** a ``PageData`` object with
        ``url`` and ``content`` attributes.
    """
    if hasattr(page, "content") and hasattr(page, "url"):
        html = page.content
        base_url = str(page.url)
    else:
        html = str(page)
        base_url = ""

    if isinstance(html, bytes):
        html = html.decode("utf-8", errors="replace")

    return ParsedPage(url=base_url, html=html, soup=BeautifulSoup(html, _PARSER))


def extract_hrefs(soup: BeautifulSoup) -> list[str]:
    """Return raw ``href`` values of all ``<a>`` tags, skipping mailto:/javascript:/anchors."""
    hrefs: list[str] = []
    for tag in soup.find_all("a", href=True):
        if not isinstance(tag, Tag):
            continue
        href_val = tag.get("href")
        if not isinstance(href_val, str) or not is_navigable_href(href_val):
            continue
        hrefs.append(href_val.strip())
    return hrefs
