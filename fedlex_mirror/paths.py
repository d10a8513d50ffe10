# fedlex_mirror/paths.py
"""
Mapping of page URLs to files of the local mirror.

Fetcher and extractor both locate a page through :func:`url_to_path`; the
function has no I/O and must stay the single implementation of the mapping.
"""
from __future__ import annotations

import posixpath
from pathlib import PurePosixPath

INDEX_FILE = "index.html"


def url_to_path(url: str, mirror_root: str = "mirror") -> PurePosixPath:
    """
    Return the mirror-relative path of *url*.

    The scheme is stripped, ``?`` and ``&`` become ``_`` and URLs that look
    like directories (trailing slash, or no ``.`` in the last segment) get an
    ``index.html`` segment. The mapping is lossy: URLs that differ only in
    those characters share a file.

    >>> str(url_to_path("https://www.fedlex.admin.ch/de/home"))
    'mirror/www.fedlex.admin.ch/de/home/index.html'
    """
    path = url.removeprefix("https://").removeprefix("http://")
    path = path.replace("?", "_").replace("&", "_")

    if path.endswith("/") or "." not in posixpath.basename(path):
        path = posixpath.join(path, INDEX_FILE)
    return PurePosixPath(posixpath.normpath(posixpath.join(mirror_root, path)))


__all__ = ["url_to_path", "INDEX_FILE"]
