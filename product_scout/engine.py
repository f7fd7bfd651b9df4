# File: product_scout/engine.py
"""product_scout.engine: Orchestration layer — discovery, оценка, сопоставление и извлечение."""

from __future__ import annotations

import asyncio
from typing import Any, Awaitable, Callable, List, Optional

from product_scout.aggregator import CrawlReport
from product_scout.cache import DiscoveryCache
from product_scout.config import CrawlerConfig
from product_scout.crawler.fetcher import Fetcher, HostRateLimiter
from product_scout.crawler.models import ProductRecord
from product_scout.discovery import PageSource, SiteDiscoverer
from product_scout.extractor import FieldExtractor
from product_scout.logger import logger
from product_scout.matcher import ModelCatalog, ModelMatcher
from product_scout.parser.html_parser import parse_html
from product_scout.scoring import ScoringStrategy, build_scorer

__all__ = ["CrawlOrchestrator", "start_scan"]

SleepFn = Callable[[float], Awaitable[Any]]


class CrawlOrchestrator:
    """Связывает кэш, discovery, оценку страниц, поиск модели и извлечение полей.

    Состояния запуска: Init → (CacheHit | Discover) → ProcessEach → Export.
    Экспорт выполняет вызывающая сторона по возвращённому :class:`CrawlReport`.
    """

    def __init__(
        self,
        config: CrawlerConfig,
        cache: DiscoveryCache,
        fetcher: PageSource,
        scorer: ScoringStrategy,
        matcher: ModelMatcher,
        extractor: Optional[FieldExtractor] = None,
        discoverer: Optional[SiteDiscoverer] = None,
        sleep: SleepFn = asyncio.sleep,
    ) -> None:
        self.config = config
        self.cache = cache
        self.fetcher = fetcher
        self.scorer = scorer
        self.matcher = matcher
        self.extractor = extractor or FieldExtractor(max_images=config.max_images)
        self.discoverer = discoverer or SiteDiscoverer(fetcher)
        self._sleep = sleep

    async def run(self) -> CrawlReport:
        """Полный запуск; возвращает записи в порядке обнаружения."""
        report = CrawlReport(base_url=self.config.base)
        urls = await self.candidate_urls(report)
        report.discovered = len(urls)
        logger.info("Discovered %d URLs", len(urls))

        if self.config.concurrency > 1:
            records = await self._process_concurrently(urls, report)
        else:
            records = await self._process_sequentially(urls, report)
        report.records = [r for r in records if r is not None]

        logger.info(
            "Done: %d qualified / %d processed (score<%d: %d, no model: %d, fetch failed: %d)",
            len(report.records),
            report.stats["processed"],
            self.config.score_threshold,
            report.below_threshold,
            report.unmatched,
            report.fetch_failed,
        )
        return report

    async def candidate_urls(self, report: CrawlReport) -> List[str]:
        """Берёт свежие URL из кэша или запускает discovery и сохраняет результат."""
        if self.config.force:
            logger.info("Force mode: clearing cache")
            self.cache.clear()
        else:
            cached = self.cache.fresh_urls(self.config.cache_ttl_hours)
            if cached:
                logger.info("Using cached URLs (count: %d)", len(cached))
                report.cache_hit = True
                return sorted(cached)

        urls = await self.discoverer.discover(self.config.base)
        for url in urls:
            self.cache.record_discovery(url)
        return urls

    async def _process_sequentially(
        self, urls: List[str], report: CrawlReport
    ) -> List[Optional[ProductRecord]]:
        records: List[Optional[ProductRecord]] = []
        total = len(urls)
        for idx, url in enumerate(urls):
            logger.info("Processing [%d/%d]: %s", idx + 1, total, url)
            records.append(await self.process_url(url, report))
            if idx < total - 1 and self.config.delay_seconds > 0:
                await self._sleep(self.config.delay_seconds)
        return records

    async def _process_concurrently(
        self, urls: List[str], report: CrawlReport
    ) -> List[Optional[ProductRecord]]:
        semaphore = asyncio.Semaphore(self.config.concurrency)
        limiter = HostRateLimiter(self.config.delay_seconds)
        total = len(urls)

        async def _one(idx: int, url: str) -> Optional[ProductRecord]:
            async with semaphore:
                await limiter.wait(url)
                logger.info("Processing [%d/%d]: %s", idx + 1, total, url)
                return await self.process_url(url, report)

        return list(await asyncio.gather(*(_one(i, u) for i, u in enumerate(urls))))

    async def process_url(self, url: str, report: CrawlReport) -> Optional[ProductRecord]:
        """Загрузка, оценка, порог, модель, извлечение. None — страница пропущена."""
        page = await self.fetcher.fetch(url)
        if page is None:
            logger.warning("Fetch failed: %s", url)
            report.fetch_failed += 1
            return None

        parsed = parse_html(page)
        score = await self.scorer.score(parsed)
        report.scores[url] = score
        self.cache.update_score(url, score)
        if score < self.config.score_threshold:
            logger.warning("Score too low (%d): %s", score, url)
            report.below_threshold += 1
            return None

        model = self.matcher.find_model(parsed.html)
        if model is None:
            logger.warning("No model match: %s", url)
            report.unmatched += 1
            return None

        fields = self.extractor.extract(parsed, url)
        logger.info("Matched %s (score %d): %s", model, score, url)
        return ProductRecord(
            model=model,
            url=url,
            description=fields.description,
            short_description=fields.short_description,
            images=fields.images,
        )


async def start_scan(config: CrawlerConfig, *, scoring_client: Any = None) -> CrawlReport:
    """
    Открывает кэш, HTTP-сессию и стратегию оценки, выполняет запуск и закрывает ресурсы.

    Parameters
    ----------
    config : CrawlerConfig
        Проверенная конфигурация запуска.
    scoring_client
        Необязательный клиент классификатора (в тестах — заглушка).
    """
    catalog = ModelCatalog.from_file(config.models_file)
    scorer = build_scorer(config, client=scoring_client)
    logger.info("Scoring strategy: %s, threshold %d", scorer.name, config.score_threshold)
    try:
        with DiscoveryCache(config.cache_path) as cache:
            async with Fetcher(config) as fetcher:
                orchestrator = CrawlOrchestrator(
                    config, cache, fetcher, scorer, ModelMatcher(catalog)
                )
                return await orchestrator.run()
    finally:
        await scorer.aclose()
