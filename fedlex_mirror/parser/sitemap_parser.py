# File: fedlex_mirror/parser/sitemap_parser.py
"""fedlex_mirror.parser.sitemap_parser: parsing of sitemap indexes and URL sets."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Union

from lxml import etree


@dataclass(slots=True)
class SitemapIndex:
    """``<sitemapindex>``: locations of further sitemaps."""
    children: List[str] = field(default_factory=list)


@dataclass(slots=True)
class UrlSet:
    """``<urlset>``: page locations."""
    urls: List[str] = field(default_factory=list)


@dataclass(slots=True)
class Unparseable:
    reason: str


SitemapNode = Union[SitemapIndex, UrlSet, Unparseable]


def _locs(root: etree._Element, entry: str) -> List[str]:
    locs = root.findall(f"./{{*}}{entry}/{{*}}loc")
    return [loc.text.strip() for loc in locs if loc.text and loc.text.strip()]


def parse_sitemap(xml_content: Union[str, bytes]) -> SitemapNode:
    """Classify a sitemap document by its structure.

    Args:
        xml_content: raw body of the sitemap response.

    Returns:
        :class:`SitemapIndex` when the root is ``<sitemapindex>`` with at
        least one ``<sitemap><loc>``, :class:`UrlSet` for ``<urlset>`` and
        :class:`Unparseable` for anything else, including malformed XML.
        The file name of the sitemap plays no role.

    Example:
    ```python
    node = parse_sitemap(Path("sitemap-index.xml").read_bytes())
    if isinstance(node, SitemapIndex):
        print(node.children)
    ```
    """
    if isinstance(xml_content, str):
        xml_content = xml_content.encode("utf-8")
    parser = etree.XMLParser(ns_clean=True, resolve_entities=False, no_network=True)
    try:
        root = etree.fromstring(xml_content, parser=parser)
    except etree.XMLSyntaxError as exc:
        return Unparseable(f"invalid XML: {exc}")
    if root is None:
        return Unparseable("empty document")

    tag = etree.QName(root).localname
    if tag == "sitemapindex":
        children = _locs(root, "sitemap")
        if children:
            return SitemapIndex(children)
        return Unparseable("sitemap index without <sitemap> entries")
    if tag == "urlset":
        return UrlSet(_locs(root, "url"))
    return Unparseable(f"unexpected root element <{tag}>")


__all__ = ["SitemapIndex", "UrlSet", "Unparseable", "SitemapNode", "parse_sitemap"]
