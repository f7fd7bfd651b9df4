# File: product_scout/parser/sitemap_parser.py
"""product_scout.parser.sitemap_parser: Модуль для парсинга sitemap.xml и извлечения URL."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List

from lxml import etree

from product_scout.errors import ParseError

__all__ = ["Sitemap", "parse_sitemap"]


@dataclass(slots=True)
class Sitemap:
    """Содержимое одного sitemap-файла.

    ``sitemaps`` — ссылки на вложенные sitemap (если это индекс),
    ``urls`` — адреса страниц из ``<url><loc>``.
    """

    sitemaps: List[str] = field(default_factory=list)
    urls: List[str] = field(default_factory=list)

    @property
    def is_index(self) -> bool:
        return bool(self.sitemaps)


def _loc_text(element: etree._Element) -> str:
    loc = element.find("{*}loc")
    if loc is None:
        loc = element.find("loc")
    if loc is None or not loc.text:
        return ""
    return loc.text.strip()


def parse_sitemap(xml_content: str | bytes) -> Sitemap:
    """Разбирает XML content sitemap и раскладывает <loc> по типу родителя.

    Args:
        xml_content: строка или байты с содержимым sitemap.xml.

    Returns:
        Sitemap со списками вложенных sitemap и URL страниц.

    Raises:
        ParseError: если документ не удалось разобрать как XML.

    Пример:
    ```python
    from product_scout.parser.sitemap_parser import parse_sitemap

    with open('sitemap.xml', encoding='utf-8') as f:
        sitemap = parse_sitemap(f.read())
    print(sitemap.is_index, sitemap.urls)
    ```
    """
    data = xml_content.encode("utf-8") if isinstance(xml_content, str) else xml_content
    parser = etree.XMLParser(ns_clean=True, recover=True, resolve_entities=False, no_network=True)
    try:
        root = etree.fromstring(data.strip(), parser=parser)
    except etree.XMLSyntaxError as exc:
        raise ParseError(f"Malformed sitemap XML: {exc}") from exc
    if root is None:
        raise ParseError("Malformed sitemap XML: empty document")

    result = Sitemap()
    for child in root:
        if not isinstance(child.tag, str):
            continue  # comments / processing instructions
        name = etree.QName(child).localname
        if name == "sitemap":
            loc = _loc_text(child)
            if loc:
                result.sitemaps.append(loc)
        elif name == "url":
            loc = _loc_text(child)
            if loc:
                result.urls.append(loc)
    return result
