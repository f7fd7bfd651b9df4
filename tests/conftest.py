# File: tests/conftest.py
from __future__ import annotations

from pathlib import Path
from typing import Callable

import pytest

from helpers import BASE_URL
from product_scout.config import CrawlerConfig


@pytest.fixture()
def models_file(tmp_path: Path) -> Path:
    """Model catalog file with a blank line and padding to exercise trimming."""
    path = tmp_path / "models.txt"
    path.write_text("X100\n\n  ZR-550  \nQ7\n", encoding="utf-8")
    return path


@pytest.fixture()
def make_config(tmp_path: Path, models_file: Path) -> Callable[..., CrawlerConfig]:
    """Factory for a valid CrawlerConfig pointing at temporary files."""

    def _make(**overrides) -> CrawlerConfig:
        data = {
            "base_url": BASE_URL,
            "models_file": models_file,
            "cache_path": tmp_path / "cache.db",
            "delay_seconds": 0,
        }
        data.update(overrides)
        return CrawlerConfig(**data)

    return _make


@pytest.fixture()
def product_html() -> Callable[..., str]:
    """Builder for a product page that reaches the full rule-based score (30)."""

    def _build(model: str = "X100", title: str = "Acme X100 Blender", extra: str = "") -> str:
        return f"""<html><head>
<title>{title}</title>
<meta name="description" content="Meta description of the {model}">
<link rel="canonical" href="{BASE_URL}/product/x100">
<script type="application/ld+json">{{"@context": "https://schema.org", "@type": "Product",
 "name": "{title}", "description": "The {model} blends anything; even ice."}}</script>
</head><body>
<h1>{title} &amp; jug</h1>
<p>Model {model}. Technical specification sheet. Dimensions and weight below.</p>
<p>Download the user manual.</p>
<img src="/img/x100-front.jpg"><img src="/img/x100-side.jpg"><img data-src="/img/x100-back.jpg">
{extra}
</body></html>"""

    return _build
