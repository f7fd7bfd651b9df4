# File: product_scout/utils.py
"""product_scout.utils: Утилитарные функции для обработки URL, чтения списков и очистки текста."""

from __future__ import annotations

import html
import re
from pathlib import Path
from typing import Collection, Iterable, List, Sequence, Union
from urllib.parse import urlparse

from product_scout.logger import logger

__all__: Sequence[str] = (
    "make_absolute",
    "site_origin",
    "is_navigable_href",
    "read_lines",
    "remove_duplicates",
    "clean_text",
)

_UNSAFE_CHARS_RE = re.compile(r"[^\w\s\-.,:;()/]", re.UNICODE)
_WHITESPACE_RE = re.compile(r"\s+")
_SKIPPED_SCHEMES = ("mailto:", "javascript:", "tel:", "#")


def site_origin(url: str) -> str:
    """Возвращает scheme://host[:port] для URL."""
    parsed = urlparse(url)
    return f"{parsed.scheme}://{parsed.netloc}"


def make_absolute(href: str, base: str) -> str:
    """Превращает ссылку в абсолютный URL относительно base.

    * ``http…`` — без изменений;
    * ``//host/…`` — получает префикс ``https:``;
    * ``/path`` — от origin базового URL;
    * иначе — относительно пути base (``base/href``).
    """
    href = href.strip()
    if href.startswith("http"):
        return href
    if href.startswith("//"):
        return "https:" + href
    if href.startswith("/"):
        return site_origin(base) + href
    return base.rstrip("/") + "/" + href


def is_navigable_href(href: str) -> bool:
    """False для mailto:, javascript:, tel: и якорей на той же странице."""
    href = href.strip()
    return bool(href) and not href.lower().startswith(_SKIPPED_SCHEMES)


def read_lines(path: Union[str, Path]) -> List[str]:
    """Читает файл, возвращает непустые строки без пробелов по краям."""
    p = Path(path)
    if not p.exists():
        logger.error("File not found: %s", p)
        raise FileNotFoundError(f"File not found: {p}")
    lines = [line.strip() for line in p.read_text(encoding="utf-8").splitlines() if line.strip()]
    logger.debug("Loaded %d entries from %s", len(lines), p)
    return lines


def remove_duplicates(urls: Iterable[str]) -> List[str]:
    """Удаляет дубликаты и пустые строки из списка URL, сохраняя порядок."""
    items = list(urls) if not isinstance(urls, Collection) else urls
    unique = list(dict.fromkeys(u for u in items if u))
    removed = len(items) - len(unique)
    if removed:
        logger.debug("Removed %d duplicate or empty URLs", removed)
    return unique


def clean_text(text: str) -> str:
    """Декодирует HTML-сущности, убирает небезопасные символы и схлопывает пробелы."""
    text = html.unescape(text)
    text = _UNSAFE_CHARS_RE.sub("", text)
    text = _WHITESPACE_RE.sub(" ", text)
    return text.strip()
