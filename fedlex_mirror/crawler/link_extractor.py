# fedlex_mirror/crawler/link_extractor.py
"""
Link extraction and edge filtering utilities.
"""
from __future__ import annotations

from typing import Collection, Iterable, List, Union
from urllib.parse import urljoin, urlsplit

from bs4 import BeautifulSoup
from bs4.element import Tag

from fedlex_mirror.utils import is_in_domain, remove_duplicates

_SKIPPED_SCHEMES = ("javascript:", "mailto:", "tel:", "data:")


def extract_hrefs(content: Union[str, bytes]) -> List[str]:
    """Raw ``href`` values of all ``<a>`` elements, in document order."""
    soup = BeautifulSoup(content, "html.parser")
    hrefs: List[str] = []
    for tag in soup.find_all("a", href=True):
        if not isinstance(tag, Tag):
            continue
        href_val = tag.get("href")
        if isinstance(href_val, str):
            hrefs.append(href_val)
    return hrefs


def resolve_links(base_url: str, hrefs: Iterable[str]) -> List[str]:
    """
    Resolve *hrefs* against *base_url*.

    ``javascript:`` and similar pseudo links as well as values that do not
    form a valid URL are dropped.
    """
    links: List[str] = []
    for href in hrefs:
        raw = href.strip()
        if not raw or raw.lower().startswith(_SKIPPED_SCHEMES):
            continue
        try:
            absolute = urljoin(base_url, raw)
        except ValueError:
            continue
        if any(ch in absolute for ch in "\t\r\n"):
            continue
        links.append(absolute)
    return links


def edge_targets(source: str, links: Iterable[str], domains: Collection[str], *, unique: bool = False) -> List[str]:
    """
    Targets that become edges of *source*: in-domain and not *source* itself.

    With *unique* the result holds every target once, in first-seen order.
    """
    targets = [link for link in links if link != source and is_in_domain(link, domains)]
    return remove_duplicates(targets) if unique else targets


def is_document_link(url: str, suffixes: Collection[str]) -> bool:
    """True when the path of *url* ends with one of *suffixes* (``.pdf``, ``.xml``)."""
    try:
        path = urlsplit(url).path.lower()
    except ValueError:
        return False
    return path.endswith(tuple(suffixes))


__all__ = ["extract_hrefs", "resolve_links", "edge_targets", "is_document_link"]
