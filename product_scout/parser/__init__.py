# File: product_scout/parser/__init__.py
"""product_scout.parser: Разбор HTML-страниц и sitemap.xml."""

from .html_parser import ParsedPage, extract_hrefs, parse_html
from .sitemap_parser import Sitemap, parse_sitemap

__all__ = ["ParsedPage", "parse_html", "extract_hrefs", "Sitemap", "parse_sitemap"]
