# File: product_scout/cache.py
"""product_scout.cache: Долговременный кэш результатов discovery на SQLite.

Каждая запись — URL, время обнаружения (epoch seconds) и последний балл
страницы. Запись свежая, пока ``now - discovered_at < ttl``. Любая мутация
фиксируется (commit) до возврата из метода.
"""
from __future__ import annotations

import sqlite3
import threading
import time
from pathlib import Path
from typing import Callable, Optional, Set, Union

from product_scout.crawler.models import CandidateURL
from product_scout.logger import logger

__all__ = ["DiscoveryCache"]

_SCHEMA = """
CREATE TABLE IF NOT EXISTS urls (
    url TEXT PRIMARY KEY,
    discovered_at INTEGER NOT NULL,
    score INTEGER DEFAULT 0
)
"""


class DiscoveryCache:
    """Хранилище обнаруженных URL с проверкой свежести по TTL."""

    def __init__(
        self,
        path: Union[str, Path] = "discovery_cache.db",
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.path = str(path)
        self._clock = clock
        self._write_lock = threading.Lock()
        if self.path != ":memory:":
            Path(self.path).parent.mkdir(parents=True, exist_ok=True)
        self.conn = sqlite3.connect(self.path)
        with self.conn:
            self.conn.execute(_SCHEMA)
        logger.debug("Discovery cache opened: %s", self.path)

    # ------------------------------------------------------------------ #
    # lifecycle
    # ------------------------------------------------------------------ #
    def close(self) -> None:
        self.conn.close()

    def __enter__(self) -> DiscoveryCache:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # ------------------------------------------------------------------ #
    # queries
    # ------------------------------------------------------------------ #
    def _cutoff(self, ttl_hours: float) -> float:
        return self._clock() - ttl_hours * 3600

    def is_fresh(self, url: str, ttl_hours: float) -> bool:
        """True, если запись есть и её возраст меньше TTL."""
        row = self.conn.execute(
            "SELECT 1 FROM urls WHERE url = ? AND discovered_at > ?",
            (url, self._cutoff(ttl_hours)),
        ).fetchone()
        return row is not None

    def fresh_urls(self, ttl_hours: float) -> Set[str]:
        """Все URL моложе TTL; порядок не определён."""
        rows = self.conn.execute(
            "SELECT url FROM urls WHERE discovered_at > ?", (self._cutoff(ttl_hours),)
        ).fetchall()
        return {row[0] for row in rows}

    def get(self, url: str) -> Optional[CandidateURL]:
        row = self.conn.execute(
            "SELECT url, discovered_at, score FROM urls WHERE url = ?", (url,)
        ).fetchone()
        if row is None:
            return None
        return CandidateURL(url=row[0], discovered_at=row[1], last_score=row[2])

    def __len__(self) -> int:
        return self.conn.execute("SELECT COUNT(*) FROM urls").fetchone()[0]

    # ------------------------------------------------------------------ #
    # mutations
    # ------------------------------------------------------------------ #
    def record_discovery(self, url: str, score: int = 0) -> None:
        """Вставляет или перезаписывает запись текущим временем (last write wins)."""
        with self._write_lock, self.conn:
            self.conn.execute(
                "INSERT OR REPLACE INTO urls (url, discovered_at, score) VALUES (?, ?, ?)",
                (url, int(self._clock()), score),
            )

    def update_score(self, url: str, score: int) -> None:
        """Сохраняет последний балл страницы, не трогая время обнаружения."""
        with self._write_lock, self.conn:
            self.conn.execute("UPDATE urls SET score = ? WHERE url = ?", (score, url))

    def clear(self) -> None:
        """Полностью очищает кэш (принудительное повторное discovery)."""
        with self._write_lock, self.conn:
            self.conn.execute("DELETE FROM urls")
        logger.info("Discovery cache cleared")
