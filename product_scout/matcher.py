# File: product_scout/matcher.py
"""product_scout.matcher: Каталог известных моделей и поиск модели в тексте страницы."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Tuple, Union

from product_scout.logger import logger
from product_scout.utils import read_lines

__all__ = ["ModelCatalog", "ModelMatcher"]


class ModelCatalog:
    """Неизменяемый упорядоченный список идентификаторов моделей."""

    def __init__(self, models: Iterable[str]) -> None:
        self._models: Tuple[str, ...] = tuple(m.strip() for m in models if m and m.strip())

    @classmethod
    def from_lines(cls, lines: Iterable[str]) -> ModelCatalog:
        return cls(lines)

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> ModelCatalog:
        catalog = cls(read_lines(path))
        logger.info("Loaded %d models from %s", len(catalog), path)
        return catalog

    @property
    def models(self) -> Tuple[str, ...]:
        return self._models

    def __iter__(self) -> Iterator[str]:
        return iter(self._models)

    def __len__(self) -> int:
        return len(self._models)


class ModelMatcher:
    """Ищет первую модель каталога, встречающуюся в тексте как целое слово.

    Каталог просматривается строго по порядку: побеждает первое совпадение,
    а не самое длинное. Если одна модель является подстрокой другой
    (``X100`` и ``X100 PRO``), результат зависит от порядка строк в файле.
    """

    def __init__(self, catalog: ModelCatalog) -> None:
        self.catalog = catalog
        self._patterns: List[Tuple[str, re.Pattern[str]]] = [
            (model, re.compile(rf"\b{re.escape(model.upper())}\b")) for model in catalog
        ]

    def find_model(self, text: str) -> Optional[str]:
        """Возвращает модель в написании каталога или None."""
        upper = text.upper()
        for model, pattern in self._patterns:
            if pattern.search(upper):
                return model
        return None
