# fedlex_mirror/ledger.py
"""
Append-only, line-oriented ledgers.

:class:`ProgressLedger` records completed URLs (``progress.txt`` for the
fetcher, ``links-progress.txt`` for the extractor) and mirrors them in a set
for membership checks. :class:`EdgeLedger` records ``source<TAB>target``
pairs in ``edges.tsv``.

Every record is written with a single ``write`` call and flushed before the
call returns, so an interrupted run leaves only complete lines behind.
"""
from __future__ import annotations

import logging
import os
import threading
from pathlib import Path
from typing import IO, Iterable, Optional, Set, Union

from fedlex_mirror.logger import LOGGER_NAME

__all__ = ("ProgressLedger", "EdgeLedger")


class _AppendLog:
    """Shared plumbing: lazily opened append handle guarded by a lock."""

    def __init__(self, path: Union[str, Path], *, fsync: bool = False) -> None:
        self.path = Path(path)
        self.fsync = fsync
        self._lock = threading.Lock()
        self._handle: Optional[IO[str]] = None
        self.logger = logging.getLogger(LOGGER_NAME)

    def open(self):
        with self._lock:
            self._open_locked()
        return self

    def close(self) -> None:
        with self._lock:
            if self._handle is not None:
                self._handle.close()
                self._handle = None

    def __enter__(self):
        return self.open()

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _open_locked(self) -> IO[str]:
        if self._handle is None:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self._handle = self.path.open("a", encoding="utf-8", newline="\n")
        return self._handle

    def _write_locked(self, line: str) -> None:
        handle = self._open_locked()
        handle.write(line)
        handle.flush()
        if self.fsync:
            os.fsync(handle.fileno())


class ProgressLedger(_AppendLog):
    """Completed URLs of one subsystem, on disk and in memory."""

    def __init__(self, path: Union[str, Path], *, fsync: bool = False) -> None:
        super().__init__(path, fsync=fsync)
        self.completed: Set[str] = set()

    def load(self) -> Set[str]:
        """Read the ledger into the in-memory set; a missing file means nothing is done."""
        if self.path.exists():
            with self.path.open("r", encoding="utf-8") as handle:
                for line in handle:
                    url = line.strip()
                    if url:
                        self.completed.add(url)
            self.logger.info("Loaded %d completed URLs from %s", len(self.completed), self.path)
        return self.completed

    def append(self, url: str) -> bool:
        """Record *url* as done. Returns False if it already was."""
        if not url or "\n" in url:
            raise ValueError(f"not a single-line URL: {url!r}")
        with self._lock:
            if url in self.completed:
                return False
            self._write_locked(url + "\n")
            self.completed.add(url)
        return True

    def pending(self, urls: Iterable[str]) -> list[str]:
        """Filter *urls* down to the ones not recorded yet, keeping order."""
        return [u for u in urls if u not in self.completed]

    def __contains__(self, url: object) -> bool:
        return url in self.completed

    def __len__(self) -> int:
        return len(self.completed)


class EdgeLedger(_AppendLog):
    """``source<TAB>target`` lines, neither sorted nor deduplicated."""

    def __init__(self, path: Union[str, Path], *, fsync: bool = False) -> None:
        super().__init__(path, fsync=fsync)
        self.count = 0

    def append(self, source: str, target: str) -> None:
        for url in (source, target):
            if not url or "\t" in url or "\n" in url:
                raise ValueError(f"URL cannot be stored in an edge line: {url!r}")
        with self._lock:
            self._write_locked(f"{source}\t{target}\n")
            self.count += 1

    def extend(self, source: str, targets: Iterable[str]) -> int:
        written = 0
        for target in targets:
            self.append(source, target)
            written += 1
        return written
