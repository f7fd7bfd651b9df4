# File: product_scout/errors.py
"""product_scout.errors: Иерархия исключений ProductScout.

Только ``ConfigurationError`` доходит до пользователя и прерывает запуск;
остальные классы используются внутри конвейера и переводятся в "пропустить
страницу" или "использовать запасной вариант".
"""
from __future__ import annotations

__all__ = [
    "ProductScoutError",
    "ConfigurationError",
    "FetchError",
    "ParseError",
    "ExternalScoringError",
]


class ProductScoutError(Exception):
    """Базовое исключение проекта."""


class ConfigurationError(ProductScoutError):
    """Не хватает обязательных входных данных или учётных данных."""


class FetchError(ProductScoutError):
    """Сетевая ошибка, таймаут или ответ с кодом вне 2xx."""

    def __init__(self, url: str, reason: str, status: int | None = None) -> None:
        super().__init__(f"{url}: {reason}")
        self.url = url
        self.reason = reason
        self.status = status


class ParseError(ProductScoutError):
    """Некорректная разметка, XML или JSON."""


class ExternalScoringError(ProductScoutError):
    """Внешний сервис классификации вернул ошибку или мусор."""
