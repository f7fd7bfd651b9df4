# File: product_scout/discovery.py
"""product_scout.discovery: Поиск кандидатов в страницы товаров через sitemap и страницы категорий."""

from __future__ import annotations

from typing import Iterable, List, Protocol, Sequence, Set

from product_scout.crawler.models import PageData
from product_scout.errors import ParseError
from product_scout.logger import logger
from product_scout.parser.html_parser import extract_hrefs, parse_html
from product_scout.parser.sitemap_parser import Sitemap, parse_sitemap
from product_scout.utils import make_absolute, remove_duplicates

__all__ = [
    "SITEMAP_PATHS",
    "CATEGORY_PATHS",
    "PRODUCT_PATH_MARKERS",
    "SiteDiscoverer",
    "is_product_url",
]

SITEMAP_PATHS: Sequence[str] = ("/sitemap.xml", "/sitemap_index.xml", "/product-sitemap.xml")
CATEGORY_PATHS: Sequence[str] = ("/products", "/shop", "/catalog", "/categories")
PRODUCT_PATH_MARKERS: Sequence[str] = ("/product/", "/item/", "/p/", "/shop/", "/catalog/")


class PageSource(Protocol):
    async def fetch(self, url: str) -> PageData | None: ...


def is_product_url(url: str, markers: Iterable[str] = PRODUCT_PATH_MARKERS) -> bool:
    """Проверяет, содержит ли URL один из маркеров пути страницы товара."""
    return any(marker in url for marker in markers)


class SiteDiscoverer:
    """Собирает URL-кандидаты: sitemap-стратегия плюс стратегия категорий.

    Ошибка любого отдельного запроса или разбора лишь означает, что этот
    источник ничего не добавил; discovery в целом не падает.
    """

    def __init__(
        self,
        fetcher: PageSource,
        sitemap_paths: Sequence[str] = SITEMAP_PATHS,
        category_paths: Sequence[str] = CATEGORY_PATHS,
    ) -> None:
        self.fetcher = fetcher
        self.sitemap_paths = sitemap_paths
        self.category_paths = category_paths

    async def discover(self, base_url: str) -> List[str]:
        """Возвращает уникальные непустые URL в порядке обнаружения."""
        base = base_url.rstrip("/")
        logger.info("Старт discovery: %s", base)
        from_sitemaps = await self.from_sitemaps(base)
        from_categories = await self.from_categories(base)
        urls = remove_duplicates([*from_sitemaps, *from_categories])
        logger.info(
            "Discovery: %d из sitemap, %d из категорий, %d уникальных",
            len(from_sitemaps),
            len(from_categories),
            len(urls),
        )
        return urls

    # ------------------------------------------------------------------ #
    # sitemap strategy
    # ------------------------------------------------------------------ #
    async def from_sitemaps(self, base: str) -> List[str]:
        urls: List[str] = []
        fetched_children: Set[str] = set()
        for path in self.sitemap_paths:
            sitemap_url = base + path
            sitemap = await self._load_sitemap(sitemap_url)
            if sitemap is None:
                continue
            urls.extend(sitemap.urls)
            for child_url in sitemap.sitemaps:
                if child_url in fetched_children:
                    continue
                fetched_children.add(child_url)
                child = await self._load_sitemap(child_url)
                # one level only: a nested index is not followed further
                if child is not None:
                    urls.extend(child.urls)
        return urls

    async def _load_sitemap(self, url: str) -> Sitemap | None:
        page = await self.fetcher.fetch(url)
        if page is None:
            logger.debug("Sitemap unavailable: %s", url)
            return None
        try:
            sitemap = parse_sitemap(page.content)
        except ParseError as exc:
            logger.warning("Sitemap parse error %s: %s", url, exc)
            return None
        logger.debug(
            "Sitemap %s: %d pages, %d nested sitemaps", url, len(sitemap.urls), len(sitemap.sitemaps)
        )
        return sitemap

    # ------------------------------------------------------------------ #
    # category strategy
    # ------------------------------------------------------------------ #
    async def from_categories(self, base: str) -> List[str]:
        urls: List[str] = []
        for path in self.category_paths:
            page = await self.fetcher.fetch(base + path)
            if page is None:
                logger.debug("Category page unavailable: %s%s", base, path)
                continue
            parsed = parse_html(page)
            for href in extract_hrefs(parsed.soup):
                absolute = make_absolute(href, base)
                if is_product_url(absolute):
                    urls.append(absolute)
        return urls
