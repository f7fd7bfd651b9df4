# File: product_scout/aggregator.py
"""product_scout.aggregator: Итоговый отчёт запуска — найденные товары и счётчики."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Dict, List, TypedDict

from product_scout.crawler.models import ProductRecord

__all__ = ["CrawlStats", "CrawlReport"]


class CrawlStats(TypedDict):
    """Счётчики одного запуска."""

    discovered: int
    processed: int
    fetch_failed: int
    below_threshold: int
    unmatched: int
    qualified: int
    cache_hit: bool


@dataclass(slots=True)
class CrawlReport:
    """Результаты запуска: записи о товарах в порядке обнаружения плюс статистика."""

    base_url: str = ""
    records: List[ProductRecord] = field(default_factory=list)
    discovered: int = 0
    fetch_failed: int = 0
    below_threshold: int = 0
    unmatched: int = 0
    cache_hit: bool = False
    scores: Dict[str, int] = field(default_factory=dict)

    @property
    def stats(self) -> CrawlStats:
        return {
            "discovered": self.discovered,
            "processed": len(self.scores) + self.fetch_failed,
            "fetch_failed": self.fetch_failed,
            "below_threshold": self.below_threshold,
            "unmatched": self.unmatched,
            "qualified": len(self.records),
            "cache_hit": self.cache_hit,
        }

    def as_dict(self) -> Dict[str, Any]:
        return {
            "base_url": self.base_url,
            "stats": dict(self.stats),
            "records": [record.as_dict() for record in self.records],
        }

    def json(self, *, pretty: bool = False) -> str:
        """Возвращает JSON-представление отчёта."""
        return json.dumps(self.as_dict(), ensure_ascii=False, indent=2 if pretty else None)
