# fedlex_mirror/stats.py
"""
Run counters and periodic progress lines for the worker pools.
"""
from __future__ import annotations

import logging
import time
from dataclasses import asdict, dataclass, field
from typing import Any, Dict

from fedlex_mirror.logger import LOGGER_NAME


@dataclass(slots=True)
class RunStats:
    """Counters of one fetch or extract run."""

    total: int = 0
    done: int = 0
    failed: int = 0
    edges: int = 0
    documents: int = 0
    started: float = field(default_factory=time.monotonic)
    finished: float | None = None

    @property
    def elapsed(self) -> float:
        end = self.finished if self.finished is not None else time.monotonic()
        return max(end - self.started, 0.0)

    @property
    def rate(self) -> float:
        elapsed = self.elapsed
        return self.done / elapsed if elapsed else 0.0

    @property
    def percent(self) -> float:
        return self.done / self.total * 100 if self.total else 100.0

    @property
    def eta(self) -> float:
        """Seconds left at the current rate (0 when unknown)."""
        rate = self.rate
        return max(self.total - self.done, 0) / rate if rate else 0.0

    def finish(self) -> "RunStats":
        self.finished = time.monotonic()
        return self

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data.pop("started")
        data.pop("finished")
        data["elapsed_seconds"] = round(self.elapsed, 2)
        return data


class ProgressReporter:
    """Logs ``done/total`` every *every* completions."""

    def __init__(self, stats: RunStats, every: int = 100, label: str = "Progress") -> None:
        self.stats = stats
        self.every = max(1, every)
        self.label = label
        self.logger = logging.getLogger(LOGGER_NAME)

    def record_done(self, edges: int = 0) -> None:
        self.stats.done += 1
        self.stats.edges += edges
        if self.stats.done % self.every == 0:
            self.report()

    def record_failure(self) -> None:
        self.stats.failed += 1

    def report(self) -> None:
        s = self.stats
        self.logger.info(
            "%s: %d/%d (%.1f%%) | Edges: %d | %.1f/s | ETA: %.0fm",
            self.label, s.done, s.total, s.percent, s.edges, s.rate, s.eta / 60,
        )

    def summary(self, noun: str = "pages") -> None:
        s = self.stats
        self.logger.info(
            "Done! Processed %d %s (%d failed), recorded %d edges in %.1fs (%.1f %s/sec)",
            s.done, noun, s.failed, s.edges, s.elapsed, s.rate, noun,
        )


__all__ = ["RunStats", "ProgressReporter"]
