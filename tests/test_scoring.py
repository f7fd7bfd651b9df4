# File: tests/test_scoring.py
from __future__ import annotations

import pytest
from openai import OpenAIError

from helpers import StubOpenAI
from product_scout.crawler.models import PageData
from product_scout.errors import ConfigurationError, ExternalScoringError
from product_scout.parser.html_parser import parse_html
from product_scout.scoring import AssistedScorer, RuleBasedScorer, build_scorer

MINIMAL_STRUCTURED_PAGE = """<html><head><title>Widget</title>
<link rel="canonical" href="https://shop.example.com/product/widget">
<script type="application/ld+json">{"@type": "Product", "name": "Widget"}</script>
</head><body><h1>Widget</h1></body></html>"""


def parsed(html: str, url: str = "https://shop.example.com/product/x100"):
    return parse_html(PageData(url, html))


@pytest.mark.asyncio()
async def test_full_product_page_reaches_maximum(product_html):
    assert await RuleBasedScorer().score(parsed(product_html())) == 30


@pytest.mark.asyncio()
async def test_title_h1_jsonld_canonical_only_is_rejected():
    score = await RuleBasedScorer().score(parsed(MINIMAL_STRUCTURED_PAGE))
    assert score == 5 + 3 + 5 + 2
    assert score < 20


@pytest.mark.parametrize(
    "body,expected",
    [
        ("", 0),
        ("<p>Full specs inside</p>", 5),
        ("<p>Capacity: 2 l</p>", 4),
        ("<p>Installation guide</p>", 3),
        ("<p>oversized sizeable specsheet</p>", 0),  # whole words only
        ('<img src="a.jpg"><img data-src="b.jpg"><img src="c.jpg">', 3),
        ('<img src="a.jpg"><img data-src="b.jpg"><img alt="no source">', 0),
    ],
)
def test_individual_signals(body, expected):
    page = parsed(f"<html><body>{body}</body></html>")
    assert RuleBasedScorer().compute(page) == expected


def test_rule_score_is_deterministic_and_bounded(product_html):
    page = parsed(product_html(extra="<p>specs features size guide</p>" * 5))
    scorer = RuleBasedScorer()
    scores = {scorer.compute(page) for _ in range(3)}
    assert scores == {30}


# --------------------------------------------------------------------------- #
#                              Assisted scoring                               #
# --------------------------------------------------------------------------- #


@pytest.mark.asyncio()
@pytest.mark.parametrize("reply,expected", [("67", 20), ("100", 30), ("0", 0), (" 66\n", 19)])
async def test_assisted_rescales_external_value(reply, expected):
    client = StubOpenAI(reply=reply)
    scorer = AssistedScorer(client)
    assert await scorer.score(parsed(MINIMAL_STRUCTURED_PAGE)) == expected


@pytest.mark.asyncio()
async def test_assisted_sends_title_and_visible_text_sample(product_html):
    client = StubOpenAI(reply="90")
    scorer = AssistedScorer(client, model="test-model", sample_chars=50)
    html = product_html(extra="<script>var secret = 1;</script><style>.x{}</style>")
    await scorer.score(parsed(html))

    call = client.completions.calls[0]
    assert call["model"] == "test-model"
    user_message = call["messages"][-1]["content"]
    assert "Title: Acme X100 Blender" in user_message
    assert "secret" not in user_message
    sample = user_message.split("Text sample:\n", 1)[1]
    assert len(sample) <= 50


@pytest.mark.asyncio()
@pytest.mark.parametrize(
    "client",
    [
        StubOpenAI(reply="probably 80"),
        StubOpenAI(reply="150"),
        StubOpenAI(reply="-5"),
        StubOpenAI(reply=""),
        StubOpenAI(reply=None),
        StubOpenAI(exc=OpenAIError("service unavailable")),
        StubOpenAI(exc=TimeoutError()),
        StubOpenAI(exc=ValueError("bad JSON body")),
        StubOpenAI(exc=RuntimeError("event loop is closed")),
        StubOpenAI(response=object()),
    ],
)
async def test_assisted_falls_back_to_rules_on_any_failure(client, product_html):
    page = parsed(product_html())
    expected = RuleBasedScorer().compute(page)
    assert await AssistedScorer(client).score(page) == expected


@pytest.mark.parametrize("reply", ["abc", "101", "1.5", None, 42])
def test_parse_reply_rejects_malformed(reply):
    with pytest.raises(ExternalScoringError):
        AssistedScorer.parse_reply(reply)


def test_build_scorer_selects_variant(make_config):
    assert isinstance(build_scorer(make_config()), RuleBasedScorer)
    cfg = make_config(use_assisted_scoring=True, openai_api_key="sk-test")
    scorer = build_scorer(cfg, client=StubOpenAI(reply="1"))
    assert isinstance(scorer, AssistedScorer)


def test_assisted_without_key_is_configuration_error(make_config):
    with pytest.raises(ConfigurationError):
        make_config(use_assisted_scoring=True)


@pytest.mark.asyncio()
async def test_aclose_closes_client():
    client = StubOpenAI(reply="1")
    await AssistedScorer(client).aclose()
    assert client.closed
