# File: tests/conftest.py
from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from pathlib import Path
from typing import Callable, Dict, List, Optional
from urllib.parse import urlsplit
from urllib.request import url2pathname

import pytest
from aiohttp import web

from fedlex_mirror.config import MirrorConfig
from fedlex_mirror.crawler.link_extractor import extract_hrefs
from fedlex_mirror.crawler.renderer import RenderError


async def serve_app(app: web.Application, port: int) -> AsyncIterator[str]:
    """Start *app* on *port*, yield base URL, ensure cleanup."""
    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, "localhost", port)
    await site.start()
    try:
        yield f"http://localhost:{port}"
    finally:
        await runner.cleanup()


@pytest.fixture()
def make_config(tmp_path: Path) -> Callable[..., MirrorConfig]:
    """
    Factory for a MirrorConfig rooted in *tmp_path*, tuned for quick tests:
    no request delay, short cooldown, progress line after every page.
    """
    def _make(**overrides) -> MirrorConfig:
        values = dict(
            work_dir=tmp_path,
            allowed_domains=["localhost"],
            sitemaps=["http://localhost:1/sitemap.xml"],
            fetch_concurrency=4,
            request_delay=0.0,
            request_timeout=5.0,
            sitemap_timeout=5.0,
            rate_limit_cooldown=0.05,
            extract_concurrency=4,
            render_timeout=2.0,
            progress_every=1,
        )
        values.update(overrides)
        return MirrorConfig(**values)

    return _make


class FakeRenderer:
    """
    Stand-in for the Playwright renderer.

    Reads the mirror file and returns its anchors as a browser would for a
    page without scripts. Pages containing ``data-hang`` never finish,
    ``data-broken`` raises RenderError and ``data-slow`` takes *slow* seconds.
    """

    def __init__(self, slow: float = 0.2, links: Optional[Dict[str, List[str]]] = None) -> None:
        self.slow = slow
        self.links = links or {}
        self.opened: List[str] = []
        self.closed: List[str] = []
        self.events: List[tuple] = []
        self.in_flight = 0
        self.max_in_flight = 0
        self.entered = False

    async def __aenter__(self) -> "FakeRenderer":
        self.entered = True
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        self.entered = False

    async def collect_hrefs(self, file_url: str) -> List[str]:
        self.opened.append(file_url)
        self.events.append(("start", file_url))
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if file_url in self.links:
                return list(self.links[file_url])
            html = Path(url2pathname(urlsplit(file_url).path)).read_text(encoding="utf-8")
            if "data-hang" in html:
                await asyncio.sleep(60)
            if "data-broken" in html:
                raise RenderError("Page crashed")
            if "data-slow" in html:
                await asyncio.sleep(self.slow)
            return extract_hrefs(html)
        finally:
            self.in_flight -= 1
            self.closed.append(file_url)
            self.events.append(("end", file_url))


@pytest.fixture()
def fake_renderer() -> FakeRenderer:
    return FakeRenderer()


def write_mirror_page(config: MirrorConfig, url: str, html: str) -> Path:
    path = config.mirror_path(url)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(html, encoding="utf-8")
    return path
