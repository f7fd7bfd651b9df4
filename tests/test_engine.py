# File: tests/test_engine.py
from __future__ import annotations

import pytest
from aiohttp import web
from openai import OpenAIError

from helpers import BASE_URL, FakeFetcher, StubOpenAI, page, serve
from product_scout.cache import DiscoveryCache
from product_scout.engine import CrawlOrchestrator, start_scan
from product_scout.matcher import ModelCatalog, ModelMatcher
from product_scout.report.csv_report import read_csv, render_csv
from product_scout.scoring import AssistedScorer, RuleBasedScorer

X100 = f"{BASE_URL}/product/x100"
ZR = f"{BASE_URL}/product/zr550"
THIN = f"{BASE_URL}/product/thin"
UNKNOWN = f"{BASE_URL}/product/z9"
MISSING = f"{BASE_URL}/product/missing"


def urlset(*locs: str) -> str:
    items = "".join(f"<url><loc>{loc}</loc></url>" for loc in locs)
    return f'<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">{items}</urlset>'


@pytest.fixture()
def site(product_html):
    """A small shop: two catalog products, a thin page, an unknown model and a dead link."""
    return {
        f"{BASE_URL}/sitemap.xml": urlset(X100, ZR, THIN, UNKNOWN, MISSING),
        X100: product_html(),
        ZR: product_html(model="ZR-550", title="Acme ZR-550 Mixer").replace("x100", "zr550"),
        THIN: "<html><body><p>Looking for the X100?</p></body></html>",
        UNKNOWN: product_html(model="Z9", title="Acme Z9 Toaster").replace("x100", "z9"),
    }


@pytest.fixture()
def cache(tmp_path):
    with DiscoveryCache(tmp_path / "engine.db") as c:
        yield c


@pytest.fixture()
def matcher(models_file):
    return ModelMatcher(ModelCatalog.from_file(models_file))


def orchestrator(config, cache, fetcher, matcher, scorer=None, **kwargs):
    return CrawlOrchestrator(config, cache, fetcher, scorer or RuleBasedScorer(), matcher, **kwargs)


@pytest.mark.asyncio()
async def test_full_run(make_config, cache, matcher, site):
    fetcher = FakeFetcher(site)
    report = await orchestrator(make_config(), cache, fetcher, matcher).run()

    assert [(r.model, r.url) for r in report.records] == [("X100", X100), ("ZR-550", ZR)]
    zr = report.records[1]
    assert zr.short_description == "Acme ZR-550 Mixer jug"
    assert zr.description == "The ZR-550 blends anything; even ice."
    assert zr.images[0] == f"{BASE_URL}/img/zr550-back.jpg"

    assert report.stats == {
        "discovered": 5,
        "processed": 5,
        "fetch_failed": 1,
        "below_threshold": 1,
        "unmatched": 1,
        "qualified": 2,
        "cache_hit": False,
    }
    assert len(cache) == 5
    assert cache.get(X100).last_score == 30
    assert cache.get(THIN).last_score == 0
    assert cache.get(MISSING).last_score == 0


@pytest.mark.asyncio()
async def test_fresh_cache_skips_discovery(make_config, cache, matcher, site):
    cache.record_discovery(ZR)
    cache.record_discovery(X100)
    fetcher = FakeFetcher(site)
    report = await orchestrator(make_config(), cache, fetcher, matcher).run()

    assert report.cache_hit
    assert f"{BASE_URL}/sitemap.xml" not in fetcher.requested
    # cached entries are processed in sorted order
    assert fetcher.requested == [X100, ZR]
    assert [r.model for r in report.records] == ["X100", "ZR-550"]


@pytest.mark.asyncio()
async def test_stale_cache_triggers_discovery(make_config, tmp_path, matcher, site):
    now = [1_700_000_000.0]
    with DiscoveryCache(tmp_path / "stale.db", clock=lambda: now[0]) as cache:
        cache.record_discovery(f"{BASE_URL}/product/old")
        now[0] += 2 * 3600
        fetcher = FakeFetcher(site)
        report = await orchestrator(make_config(cache_ttl_hours=1), cache, fetcher, matcher).run()
        assert not report.cache_hit
        assert fetcher.requested[0] == f"{BASE_URL}/sitemap.xml"
        assert cache.is_fresh(X100, 1)


@pytest.mark.asyncio()
async def test_force_clears_cache(make_config, cache, matcher, site):
    old = f"{BASE_URL}/product/old"
    cache.record_discovery(old)
    fetcher = FakeFetcher(site)
    report = await orchestrator(make_config(force=True), cache, fetcher, matcher).run()

    assert not report.cache_hit
    assert report.discovered == 5
    assert cache.get(old) is None
    assert old not in fetcher.requested


@pytest.mark.asyncio()
async def test_delay_between_pages_not_after_last(make_config, cache, matcher, site):
    slept = []

    async def fake_sleep(seconds):
        slept.append(seconds)

    config = make_config(delay_seconds=0.5)
    await orchestrator(config, cache, FakeFetcher(site), matcher, sleep=fake_sleep).run()
    assert slept == [0.5] * 4


@pytest.mark.asyncio()
async def test_concurrent_processing_keeps_discovery_order(make_config, cache, matcher, site):
    report = await orchestrator(make_config(concurrency=4), cache, FakeFetcher(site), matcher).run()
    assert [r.url for r in report.records] == [X100, ZR]
    assert report.stats["processed"] == 5


@pytest.mark.asyncio()
async def test_empty_discovery(make_config, cache, matcher):
    report = await orchestrator(make_config(), cache, FakeFetcher(), matcher).run()
    assert report.records == []
    assert report.discovered == 0
    assert len(cache) == 0


@pytest.mark.asyncio()
async def test_assisted_failure_falls_back_per_page(make_config, cache, matcher, site):
    scorer = AssistedScorer(StubOpenAI(exc=OpenAIError("quota exceeded")))
    report = await orchestrator(make_config(), cache, FakeFetcher(site), matcher, scorer=scorer).run()
    assert [r.model for r in report.records] == ["X100", "ZR-550"]


@pytest.mark.asyncio()
async def test_assisted_client_bug_does_not_abort_run(make_config, cache, matcher, site):
    scorer = AssistedScorer(StubOpenAI(exc=ValueError("bad JSON body from classifier")))
    report = await orchestrator(make_config(), cache, FakeFetcher(site), matcher, scorer=scorer).run()
    assert [r.model for r in report.records] == ["X100", "ZR-550"]
    assert cache.get(X100).last_score == 30


@pytest.mark.asyncio()
async def test_score_equal_to_threshold_qualifies(make_config, cache, matcher, site):
    # 67 rescales to exactly 20
    scorer = AssistedScorer(StubOpenAI(reply="67"))
    report = await orchestrator(make_config(), cache, FakeFetcher(site), matcher, scorer=scorer).run()
    # the thin page mentions X100 and now passes the gate too
    assert [r.url for r in report.records] == [X100, ZR, THIN]
    assert report.below_threshold == 0
    assert report.unmatched == 1
    assert cache.get(X100).last_score == 20


@pytest.mark.asyncio()
async def test_assisted_score_gates_threshold(make_config, cache, matcher, site):
    # 60 rescales to 18, below the default threshold of 20
    scorer = AssistedScorer(StubOpenAI(reply="60"))
    report = await orchestrator(make_config(), cache, FakeFetcher(site), matcher, scorer=scorer).run()
    assert report.records == []
    assert report.below_threshold == 4
    assert cache.get(X100).last_score == 18


# --------------------------------------------------------------------------- #
#                         start_scan over real HTTP                           #
# --------------------------------------------------------------------------- #


@pytest.mark.asyncio()
async def test_start_scan_end_to_end(make_config, product_html, tmp_path):
    async def sitemap(request):
        origin = f"http://{request.host}"
        body = urlset(f"{origin}/product/x100", f"{origin}/product/gone")
        return web.Response(text=body, content_type="application/xml")

    routes = {"/sitemap.xml": sitemap, "/product/x100": page(product_html())}
    client = StubOpenAI(reply="95")
    async with serve(routes) as base:
        config = make_config(base_url=base, use_assisted_scoring=True, openai_api_key="sk-test")
        report = await start_scan(config, scoring_client=client)

    assert client.closed
    assert report.stats["fetch_failed"] == 1
    [record] = report.records
    assert record.url == f"{base}/product/x100"
    assert record.images[0] == f"{base}/img/x100-back.jpg"

    csv_path = render_csv(report.records, tmp_path / "out" / "products.csv")
    assert read_csv(csv_path) == report.records

    with DiscoveryCache(config.cache_path) as cache:
        assert cache.get(record.url).last_score == 28
        assert len(cache) == 2
