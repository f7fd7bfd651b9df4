# File: product_scout/scoring.py
"""
Page scoring strategies.

Every strategy exposes one coroutine, ``score(page) -> int``, returning a value
on the 0–30 scale; pages at or above the configured threshold (20 by default)
are treated as product pages.

* :class:`RuleBasedScorer` adds up fixed points for structural signals.
* :class:`AssistedScorer` asks an OpenAI model for a 0–100 "is this a product
  page" score and rescales it.  Any failure of the external call falls back
  to the rule-based result for that page.
"""
from __future__ import annotations

import abc
import inspect
import re
from typing import Any, Optional, Sequence

from openai import AsyncOpenAI, OpenAIError

from product_scout.config import CrawlerConfig
from product_scout.errors import ConfigurationError, ExternalScoringError
from product_scout.logger import logger
from product_scout.parser.html_parser import ParsedPage

__all__ = (
    "MAX_SCORE",
    "ScoringStrategy",
    "RuleBasedScorer",
    "AssistedScorer",
    "build_scorer",
)

MAX_SCORE = 30
EXTERNAL_MAX = 100

_SPEC_KEYWORDS = re.compile(r"\b(specification|specs|technical|features)\b", re.IGNORECASE)
_PHYSICAL_KEYWORDS = re.compile(r"\b(dimensions|weight|size|capacity)\b", re.IGNORECASE)
_DOC_KEYWORDS = re.compile(r"\b(manual|documentation|guide|instructions)\b", re.IGNORECASE)
_JSONLD_PRODUCT = re.compile(r'"@type"\s*:\s*"Product"', re.IGNORECASE)
_INTEGER_REPLY = re.compile(r"\s*(\d{1,3})\s*\.?\s*")


class ScoringStrategy(abc.ABC):
    """Common interface of the page scorers."""

    name: str = "abstract"

    @abc.abstractmethod
    async def score(self, page: ParsedPage) -> int:
        """Return the page score on the 0–30 scale."""

    async def aclose(self) -> None:
        """Release external resources, if any."""


class RuleBasedScorer(ScoringStrategy):
    """Deterministic additive point table over the parsed tree and raw markup."""

    name = "rules"

    TITLE = 5
    H1 = 3
    SPEC_KEYWORDS = 5
    IMAGES = 3
    PHYSICAL_KEYWORDS = 4
    DOC_KEYWORDS = 3
    JSONLD_PRODUCT = 5
    CANONICAL = 2
    MIN_IMAGES = 3

    def compute(self, page: ParsedPage) -> int:
        soup, html = page.soup, page.html
        total = 0
        if soup.find("title") is not None:
            total += self.TITLE
        if soup.find("h1") is not None:
            total += self.H1
        if _SPEC_KEYWORDS.search(html):
            total += self.SPEC_KEYWORDS
        images = [img for img in soup.find_all("img") if img.has_attr("src") or img.has_attr("data-src")]
        if len(images) >= self.MIN_IMAGES:
            total += self.IMAGES
        if _PHYSICAL_KEYWORDS.search(html):
            total += self.PHYSICAL_KEYWORDS
        if _DOC_KEYWORDS.search(html):
            total += self.DOC_KEYWORDS
        if _JSONLD_PRODUCT.search(html):
            total += self.JSONLD_PRODUCT
        if soup.find("link", rel="canonical") is not None:
            total += self.CANONICAL
        return total

    async def score(self, page: ParsedPage) -> int:
        return self.compute(page)


_SYSTEM_PROMPT = (
    "You classify web pages. Given a page title and a text sample, answer with a single "
    "integer from 0 to 100: the likelihood that the page is the detail page of one specific "
    "product (not a listing, category, blog or navigation page). Reply with the number only."
)


class AssistedScorer(ScoringStrategy):
    """Delegates to an OpenAI chat model, falling back to :class:`RuleBasedScorer`.

    ``client`` is anything with the ``chat.completions.create`` coroutine of
    :class:`openai.AsyncOpenAI`; tests pass a stub.
    """

    name = "assisted"

    def __init__(
        self,
        client: Any,
        model: str = "gpt-4o-mini",
        fallback: Optional[ScoringStrategy] = None,
        sample_chars: int = 2000,
    ) -> None:
        self.client = client
        self.model = model
        self.fallback = fallback or RuleBasedScorer()
        self.sample_chars = sample_chars

    def _messages(self, page: ParsedPage) -> Sequence[dict]:
        sample = page.visible_text(limit=self.sample_chars)
        return [
            {"role": "system", "content": _SYSTEM_PROMPT},
            {"role": "user", "content": f"Title: {page.title}\n\nText sample:\n{sample}"},
        ]

    @staticmethod
    def parse_reply(reply: Any) -> int:
        """Validate the model reply and return the 0–100 value it contains."""
        if not isinstance(reply, str):
            raise ExternalScoringError(f"non-text reply: {reply!r}")
        match = _INTEGER_REPLY.fullmatch(reply)
        if match is None:
            raise ExternalScoringError(f"malformed reply: {reply[:50]!r}")
        value = int(match.group(1))
        if not 0 <= value <= EXTERNAL_MAX:
            raise ExternalScoringError(f"reply out of range: {value}")
        return value

    @staticmethod
    def rescale(value: int) -> int:
        # floor(value * 0.3) in integer arithmetic
        return value * MAX_SCORE // EXTERNAL_MAX

    async def _external_score(self, page: ParsedPage) -> int:
        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=list(self._messages(page)),
                temperature=0,
                max_tokens=5,
            )
        except OpenAIError as exc:
            raise ExternalScoringError(f"classification request failed: {exc}") from exc
        except Exception as exc:
            raise ExternalScoringError(f"classifier client error: {exc!r}") from exc
        try:
            reply = response.choices[0].message.content
        except (AttributeError, IndexError, TypeError) as exc:
            raise ExternalScoringError("unexpected response shape") from exc
        return self.rescale(self.parse_reply(reply))

    async def score(self, page: ParsedPage) -> int:
        try:
            return await self._external_score(page)
        except ExternalScoringError as exc:
            logger.warning("Assisted scoring failed for %s (%s); using rules", page.url, exc)
        return await self.fallback.score(page)

    async def aclose(self) -> None:
        close = getattr(self.client, "close", None)
        if close is not None:
            result = close()
            if inspect.isawaitable(result):
                await result


def build_scorer(config: CrawlerConfig, client: Any = None) -> ScoringStrategy:
    """Choose the scoring strategy requested by the configuration."""
    if not config.use_assisted_scoring:
        return RuleBasedScorer()
    if client is None:
        if not config.openai_api_key:
            raise ConfigurationError("Assisted scoring requires an OpenAI API key")
        client = AsyncOpenAI(api_key=config.openai_api_key, timeout=config.timeout, max_retries=0)
    return AssistedScorer(client, model=config.openai_model)
