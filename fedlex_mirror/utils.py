# File: fedlex_mirror/utils.py
"""fedlex_mirror.utils: helpers for URL lists and domain checks."""

from __future__ import annotations

from pathlib import Path
from typing import Collection, Iterable, List, Sequence, Union
from urllib.parse import urlsplit

from fedlex_mirror.logger import logger

__all__: Sequence[str] = (
    "read_lines",
    "write_lines",
    "remove_duplicates",
    "extract_host",
    "is_allowed_host",
    "is_in_domain",
)


def read_lines(path: Union[str, Path]) -> List[str]:
    """Read a line-oriented ledger; a missing file yields an empty list."""
    p = Path(path)
    if not p.exists():
        logger.debug("Ledger not found, starting empty: %s", p)
        return []
    with p.open("r", encoding="utf-8") as handle:
        return [line.strip() for line in handle if line.strip()]


def write_lines(path: Union[str, Path], lines: Iterable[str]) -> int:
    """Overwrite *path* with one entry per line and return the count."""
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    count = 0
    with p.open("w", encoding="utf-8", newline="\n") as handle:
        for line in lines:
            handle.write(line + "\n")
            count += 1
    return count


def remove_duplicates(urls: Collection[str]) -> List[str]:
    """Remove duplicate URLs, keeping the first occurrence."""
    unique = list(dict.fromkeys(urls))
    removed = len(urls) - len(unique)
    if removed:
        logger.debug("Removed %d duplicate URLs", removed)
    return unique


def extract_host(url: str) -> str:
    """Lower-cased host of *url* without port, ``""`` when there is none."""
    try:
        return (urlsplit(url).hostname or "").rstrip(".")
    except ValueError:
        return ""


def is_allowed_host(url: str, domains: Collection[str]) -> bool:
    """True when the host of *url* is exactly one of *domains* (fetch allow-list)."""
    return extract_host(url) in domains


def is_in_domain(url: str, domains: Collection[str]) -> bool:
    """True for http(s) URLs on one of *domains* or one of their subdomains."""
    try:
        scheme = urlsplit(url).scheme
    except ValueError:
        return False
    if scheme not in ("http", "https"):
        return False
    host = extract_host(url)
    if not host:
        return False
    return any(host == d or host.endswith("." + d) for d in domains)
