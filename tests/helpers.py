# File: tests/helpers.py
"""Shared test doubles: an in-memory fetcher and a throwaway aiohttp server."""
from __future__ import annotations

from contextlib import asynccontextmanager
from types import SimpleNamespace
from typing import Any, AsyncIterator, Callable, Dict, List, Optional

from aiohttp import web

from product_scout.crawler.models import PageData

BASE_URL = "https://shop.example.com"


class FakeFetcher:
    """In-memory replacement for Fetcher: URL -> body, anything else is a failed fetch."""

    def __init__(self, pages: Optional[Dict[str, str]] = None) -> None:
        self.pages = dict(pages or {})
        self.requested: List[str] = []

    async def fetch(self, url: str) -> PageData | None:
        self.requested.append(url)
        body = self.pages.get(url)
        if body is None:
            return None
        return PageData(url, body)


class StubCompletions:
    def __init__(self, reply: Any = None, exc: Optional[BaseException] = None, response: Any = None):
        self.reply = reply
        self.exc = exc
        self.response = response
        self.calls: List[dict] = []

    async def create(self, **kwargs):
        self.calls.append(kwargs)
        if self.exc is not None:
            raise self.exc
        if self.response is not None:
            return self.response
        message = SimpleNamespace(content=self.reply)
        return SimpleNamespace(choices=[SimpleNamespace(message=message)])


class StubOpenAI:
    """Mimics the ``chat.completions.create`` surface of openai.AsyncOpenAI."""

    def __init__(self, **kwargs) -> None:
        self.completions = StubCompletions(**kwargs)
        self.chat = SimpleNamespace(completions=self.completions)
        self.closed = False

    async def close(self) -> None:
        self.closed = True


def page(text: str, content_type: str = "text/html", status: int = 200):
    """aiohttp handler returning a fixed body."""

    async def handler(_request):
        return web.Response(text=text, content_type=content_type, status=status)

    return handler


@asynccontextmanager
async def serve(routes: Dict[str, Callable]) -> AsyncIterator[str]:
    """Start an aiohttp app on a free local port, yield its base URL, ensure cleanup."""
    app = web.Application()
    for path, handler in routes.items():
        app.router.add_get(path, handler)
    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, "127.0.0.1", 0)
    await site.start()
    try:
        port = runner.addresses[0][1]
        yield f"http://127.0.0.1:{port}"
    finally:
        await runner.cleanup()
