# File: product_scout/extractor.py
"""
Field extraction from qualified product pages.

Each field is taken from the first source that yields something non-empty:

* description — JSON-LD ``description``, then ``<meta name="description">``,
  then the first element whose class or id mentions "description";
* short description — first non-empty of ``<h1>`` and ``<title>``;
* images — ``<picture>`` sources, ``<img srcset>``, ``<img data-src>``,
  ``<img src>``, filtered, resolved, deduplicated and capped.
"""
from __future__ import annotations

import json
import re
from typing import Any, Iterator, List, Optional

from bs4 import BeautifulSoup
from bs4.element import Tag

from product_scout.crawler.models import ExtractedFields
from product_scout.logger import logger
from product_scout.parser.html_parser import ParsedPage
from product_scout.utils import clean_text, make_absolute, remove_duplicates

__all__ = ("FieldExtractor", "is_icon_or_placeholder", "first_srcset_candidate")

DESCRIPTION_FALLBACK_CHARS = 500
MAX_IMAGES = 10

_ICON_TOKEN_RE = re.compile(
    r"(?:^|[/_.\-])(?:icon|logo|placeholder|avatar|sprite)s?(?:$|[/_.\-])", re.IGNORECASE
)
_ICON_SIZE_RE = re.compile(r"(?<![0-9])(16|24|32|48|64)x\1(?![0-9])")


def first_srcset_candidate(srcset: str) -> str:
    """Return the URL of the first ``srcset`` candidate."""
    parts = srcset.strip().split()
    return parts[0].rstrip(",") if parts else ""


def is_icon_or_placeholder(url: str) -> bool:
    """Heuristic for images that are not product photos."""
    lowered = url.lower()
    if lowered.startswith("data:"):
        return True
    path = lowered.split("?", 1)[0].split("#", 1)[0]
    if ".svg" in path:
        return True
    if _ICON_TOKEN_RE.search(path):
        return True
    return bool(_ICON_SIZE_RE.search(url))


def _iter_jsonld(value: Any) -> Iterator[dict]:
    """Walk JSON-LD payloads: plain objects, arrays and ``@graph`` containers."""
    if isinstance(value, list):
        for item in value:
            yield from _iter_jsonld(item)
    elif isinstance(value, dict):
        yield value
        graph = value.get("@graph")
        if isinstance(graph, list):
            yield from _iter_jsonld(graph)


class FieldExtractor:
    """Pulls description, short description and images out of a parsed page."""

    def __init__(self, max_images: int = MAX_IMAGES) -> None:
        self.max_images = max_images

    def extract(self, page: ParsedPage, page_url: Optional[str] = None) -> ExtractedFields:
        url = page_url or page.url
        return ExtractedFields(
            description=self.description(page.soup),
            short_description=self.short_description(page),
            images=tuple(self.images(page.soup, url)),
        )

    # ------------------------------------------------------------------ #
    # description
    # ------------------------------------------------------------------ #
    def description(self, soup: BeautifulSoup) -> str:
        for source in (self._jsonld_description, self._meta_description, self._element_description):
            text = source(soup)
            if text:
                return text
        return ""

    @staticmethod
    def _jsonld_description(soup: BeautifulSoup) -> str:
        for script in soup.find_all("script", attrs={"type": "application/ld+json"}):
            raw = script.string or script.get_text()
            try:
                payload = json.loads(raw)
            except (TypeError, ValueError):
                logger.debug("Skipping malformed JSON-LD block")
                continue
            for item in _iter_jsonld(payload):
                value = item.get("description")
                if isinstance(value, str):
                    text = clean_text(value)
                    if text:
                        return text
        return ""

    @staticmethod
    def _meta_description(soup: BeautifulSoup) -> str:
        meta = soup.find("meta", attrs={"name": "description"})
        if isinstance(meta, Tag):
            content = meta.get("content")
            if isinstance(content, str):
                return clean_text(content)
        return ""

    @staticmethod
    def _element_description(soup: BeautifulSoup) -> str:
        def mentions_description(tag: Tag) -> bool:
            classes = tag.get("class") or []
            if isinstance(classes, str):
                classes = [classes]
            return "description" in " ".join(classes) or "description" in (tag.get("id") or "")

        element = soup.find(mentions_description)
        if element is None:
            return ""
        return clean_text(element.get_text()[:DESCRIPTION_FALLBACK_CHARS])

    # ------------------------------------------------------------------ #
    # short description
    # ------------------------------------------------------------------ #
    @staticmethod
    def short_description(page: ParsedPage) -> str:
        # an <h1> holding only a logo image does not count
        for text in (page.h1, page.title):
            cleaned = clean_text(text)
            if cleaned:
                return cleaned
        return ""

    # ------------------------------------------------------------------ #
    # images
    # ------------------------------------------------------------------ #
    @staticmethod
    def _image_candidates(soup: BeautifulSoup) -> List[str]:
        candidates: List[str] = []
        for tag in soup.select("picture > source[srcset], picture > img[src]"):
            if tag.name == "source":
                candidates.append(first_srcset_candidate(tag["srcset"]))
            else:
                candidates.append(tag["src"])
        candidates.extend(first_srcset_candidate(tag["srcset"]) for tag in soup.select("img[srcset]"))
        candidates.extend(tag["data-src"] for tag in soup.select("img[data-src]"))
        candidates.extend(tag["src"] for tag in soup.select("img[src]"))
        return candidates

    def images(self, soup: BeautifulSoup, page_url: str) -> List[str]:
        kept = [
            make_absolute(candidate, page_url)
            for candidate in (c.strip() for c in self._image_candidates(soup))
            if candidate and not is_icon_or_placeholder(candidate)
        ]
        return remove_duplicates(kept)[: self.max_images]
