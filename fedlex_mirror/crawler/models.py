# fedlex_mirror/crawler/models.py
"""
Data models for the fetch and extract pools.
"""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(slots=True)
class FetchResult:
    """Successful response: requested URL, URL after redirects, status and raw body."""

    url: str
    final_url: str
    status: int
    content_type: str
    body: bytes

    @property
    def is_html(self) -> bool:
        return "html" in self.content_type.lower()


@dataclass(slots=True)
class PendingPage:
    """A fetched page waiting for link extraction."""

    url: str
    path: Path

    @property
    def file_url(self) -> str:
        return self.path.resolve().as_uri()
