# File: product_scout/crawler/__init__.py
"""product_scout.crawler: HTTP-загрузка страниц и модели данных конвейера."""

from .fetcher import Fetcher, HostRateLimiter
from .models import CandidateURL, ExtractedFields, PageData, ProductRecord

__all__ = ["Fetcher", "HostRateLimiter", "PageData", "CandidateURL", "ExtractedFields", "ProductRecord"]
