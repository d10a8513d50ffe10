# File: tests/test_sitemap.py
from __future__ import annotations

from collections.abc import AsyncIterator

import pytest
import pytest_asyncio
from aiohttp import ClientSession, web

from conftest import serve_app
from fedlex_mirror.parser.sitemap_parser import SitemapIndex, Unparseable, UrlSet, parse_sitemap
from fedlex_mirror.sitemap import SitemapError, SitemapResolver, load_page_urls

NS = 'xmlns="http://www.sitemaps.org/schemas/sitemap/0.9"'


def index_xml(*locs: str) -> str:
    entries = "".join(f"<sitemap><loc>{loc}</loc></sitemap>" for loc in locs)
    return f'<?xml version="1.0" encoding="UTF-8"?><sitemapindex {NS}>{entries}</sitemapindex>'


def urlset_xml(*locs: str) -> str:
    entries = "".join(f"<url><loc>{loc}</loc><lastmod>2024-01-01</lastmod></url>" for loc in locs)
    return f'<?xml version="1.0" encoding="UTF-8"?><urlset {NS}>{entries}</urlset>'


# --------------------------------------------------------------------------- #
#                                   Parser                                    #
# --------------------------------------------------------------------------- #


def test_parse_index():
    node = parse_sitemap(index_xml("https://x/a.xml", "https://x/b.xml"))
    assert node == SitemapIndex(["https://x/a.xml", "https://x/b.xml"])


def test_parse_urlset_strips_whitespace():
    xml = f"<urlset {NS}><url><loc>\n  https://x/page \n</loc></url></urlset>"
    assert parse_sitemap(xml.encode()) == UrlSet(["https://x/page"])


def test_parse_urlset_without_namespace():
    assert parse_sitemap("<urlset><url><loc>https://x/1</loc></url></urlset>") == UrlSet(["https://x/1"])


def test_shape_is_detected_by_structure_not_name():
    # a document called "index" that is really a leaf
    assert isinstance(parse_sitemap(urlset_xml("https://x/sitemap-index.xml")), UrlSet)


@pytest.mark.parametrize(
    "content",
    [
        b"",
        b"<urlset><url><loc>broken",
        b"<html><body>Not found</body></html>",
        f"<sitemapindex {NS}></sitemapindex>".encode(),
    ],
)
def test_parse_unparseable(content):
    assert isinstance(parse_sitemap(content), Unparseable)


def test_empty_urlset_is_a_leaf():
    assert parse_sitemap(urlset_xml()) == UrlSet([])


# --------------------------------------------------------------------------- #
#                                  Resolver                                   #
# --------------------------------------------------------------------------- #


@pytest_asyncio.fixture
async def sitemap_server(unused_tcp_port: int) -> AsyncIterator[str]:
    base = f"http://localhost:{unused_tcp_port}"
    docs = {
        "/root.xml": index_xml(f"{base}/a.xml", f"{base}/b.xml"),
        "/a.xml": urlset_xml(f"{base}/p1", f"{base}/p2", f"{base}/p3"),
        "/b.xml": urlset_xml(f"{base}/p3", f"{base}/p4"),
        "/with-broken.xml": index_xml(f"{base}/missing.xml", f"{base}/garbage.xml", f"{base}/b.xml"),
        "/garbage.xml": "<urlset><url>",
        "/loop.xml": index_xml(f"{base}/loop.xml", f"{base}/a.xml"),
    }
    app = web.Application()

    def handler(text: str):
        async def handle(_):
            return web.Response(text=text, content_type="application/xml")
        return handle

    for path, text in docs.items():
        app.router.add_get(path, handler(text))

    async for url in serve_app(app, unused_tcp_port):
        yield url


@pytest.mark.asyncio()
async def test_flatten_two_level_index(sitemap_server: str):
    async with ClientSession() as session:
        urls = await SitemapResolver(session).resolve([f"{sitemap_server}/root.xml"])
    assert urls == [f"{sitemap_server}/p{i}" for i in range(1, 5)]


@pytest.mark.asyncio()
async def test_failed_subtrees_contribute_nothing(sitemap_server: str):
    async with ClientSession() as session:
        urls = await SitemapResolver(session).resolve([f"{sitemap_server}/with-broken.xml"])
    assert urls == [f"{sitemap_server}/p3", f"{sitemap_server}/p4"]


@pytest.mark.asyncio()
async def test_roots_are_deduplicated_across(sitemap_server: str):
    roots = [f"{sitemap_server}/b.xml", f"{sitemap_server}/root.xml", f"{sitemap_server}/a.xml"]
    async with ClientSession() as session:
        urls = await SitemapResolver(session).resolve(roots)
    assert urls == [f"{sitemap_server}/p3", f"{sitemap_server}/p4", f"{sitemap_server}/p1", f"{sitemap_server}/p2"]


@pytest.mark.asyncio()
async def test_cyclic_index_terminates(sitemap_server: str):
    async with ClientSession() as session:
        urls = await SitemapResolver(session).resolve([f"{sitemap_server}/loop.xml"])
    assert urls == [f"{sitemap_server}/p1", f"{sitemap_server}/p2", f"{sitemap_server}/p3"]


@pytest.mark.asyncio()
async def test_unreachable_root_is_not_fatal(sitemap_server: str, unused_tcp_port_factory):
    dead = f"http://localhost:{unused_tcp_port_factory()}/sitemap.xml"
    async with ClientSession() as session:
        urls = await SitemapResolver(session, timeout=2.0).resolve([dead, f"{sitemap_server}/b.xml"])
    assert urls == [f"{sitemap_server}/p3", f"{sitemap_server}/p4"]


# --------------------------------------------------------------------------- #
#                                    Cache                                    #
# --------------------------------------------------------------------------- #


@pytest.mark.asyncio()
async def test_load_page_urls_writes_cache(sitemap_server: str, make_config):
    config = make_config(sitemaps=[f"{sitemap_server}/root.xml"])
    async with ClientSession() as session:
        urls = await load_page_urls(session, config)
    assert len(urls) == 4
    assert config.urls_path.read_text(encoding="utf-8").splitlines() == urls


@pytest.mark.asyncio()
async def test_cache_is_preferred_over_sitemaps(sitemap_server: str, make_config):
    config = make_config(sitemaps=[f"{sitemap_server}/root.xml"])
    config.urls_path.write_text("https://cached/1\nhttps://cached/2\n", encoding="utf-8")
    async with ClientSession() as session:
        urls = await load_page_urls(session, config)
    assert urls == ["https://cached/1", "https://cached/2"]


@pytest.mark.asyncio()
async def test_no_urls_at_all_is_fatal(sitemap_server: str, make_config):
    config = make_config(sitemaps=[f"{sitemap_server}/garbage.xml"])
    async with ClientSession() as session:
        with pytest.raises(SitemapError):
            await load_page_urls(session, config)
    assert not config.urls_path.exists()
