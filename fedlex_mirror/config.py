# === FILE: fedlex_mirror/config.py ===
"""
Loading and validation of the mirror configuration.
Pydantic describes the schema; YAML or JSON files override the defaults.
"""
from __future__ import annotations

import errno
import json
import os
from pathlib import Path
from typing import Any, List, Tuple, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, field_validator

from fedlex_mirror.paths import url_to_path

_SITE = "https://www.fedlex.admin.ch"

DEFAULT_SITEMAPS: Tuple[str, ...] = (
    f"{_SITE}/sitemap-index.xml",
    f"{_SITE}/sitemap-consultations-1.xml",
    *(f"{_SITE}/sitemap-treaty-{i}.xml" for i in range(1, 11)),
    *(f"{_SITE}/sitemap-act-{i}.xml" for i in range(1, 28)),
    *(f"{_SITE}/sitemap-cc1-{i}.xml" for i in range(1, 3)),
)

DEFAULT_DOMAINS: Tuple[str, ...] = ("www.fedlex.admin.ch", "fedlex.admin.ch")


class MirrorConfig(BaseModel):
    """Settings shared by the fetch and extract commands."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    allowed_domains: List[str] = Field(default_factory=lambda: list(DEFAULT_DOMAINS), min_length=1,
                                       description="Hosts that may be fetched and count as in-domain.")
    sitemaps: List[str] = Field(default_factory=lambda: list(DEFAULT_SITEMAPS),
                                description="Root sitemap (or sitemap index) URLs.")

    work_dir: Path = Field(Path("."), description="Directory holding ledgers and the mirror tree.")
    mirror_dir: str = Field("mirror", min_length=1, description="Mirror root, relative to work_dir.")
    urls_file: str = Field("urls.txt", min_length=1)
    progress_file: str = Field("progress.txt", min_length=1)
    links_progress_file: str = Field("links-progress.txt", min_length=1)
    edges_file: str = Field("edges.tsv", min_length=1)

    fetch_concurrency: int = Field(100, ge=1, description="Parallel in-flight requests.")
    request_delay: float = Field(0.02, ge=0, description="Pause after each request, per worker (seconds).")
    request_timeout: float = Field(30.0, gt=0, description="Timeout of one page request (seconds).")
    sitemap_timeout: float = Field(30.0, gt=0, description="Timeout of one sitemap request (seconds).")
    rate_limit_cooldown: float = Field(5.0, ge=0, description="Sleep before the single retry after HTTP 429.")
    user_agent: str = Field("FedlexMirror/1.0", min_length=1)

    extract_concurrency: int = Field(20, ge=1, description="Pages rendered together in one batch.")
    render_timeout: float = Field(5.0, gt=0, description="Per-page render timeout (seconds).")
    headless: bool = True

    progress_every: int = Field(100, ge=1, description="Log a progress line every N completions.")
    document_suffixes: List[str] = Field(default_factory=lambda: [".pdf", ".xml"],
                                         description="Linked documents followed during fetch.")
    fsync: bool = Field(False, description="fsync ledger files after every line.")

    @field_validator("allowed_domains")
    @classmethod
    def _normalize_domains(cls, v: List[str]) -> List[str]:
        domains = [d.strip().lower().rstrip(".") for d in v]
        if not all(domains):
            raise ValueError("allowed_domains must not contain empty entries")
        return domains

    @field_validator("sitemaps")
    @classmethod
    def _check_sitemaps(cls, v: List[str]) -> List[str]:
        for url in v:
            if not url.startswith(("http://", "https://")):
                raise ValueError(f"sitemap URL must be http(s): {url}")
        return v

    @field_validator("document_suffixes")
    @classmethod
    def _check_suffixes(cls, v: List[str]) -> List[str]:
        suffixes = [s.lower() for s in v]
        bad = [s for s in suffixes if not s.startswith(".")]
        if bad:
            raise ValueError(f"document suffixes must start with '.': {bad}")
        return suffixes

    # Derived paths ---------------------------------------------------------
    @property
    def mirror_root(self) -> Path:
        return self.work_dir / self.mirror_dir

    @property
    def urls_path(self) -> Path:
        return self.work_dir / self.urls_file

    @property
    def progress_path(self) -> Path:
        return self.work_dir / self.progress_file

    @property
    def links_progress_path(self) -> Path:
        return self.work_dir / self.links_progress_file

    @property
    def edges_path(self) -> Path:
        return self.work_dir / self.edges_file

    def mirror_path(self, url: str) -> Path:
        """Location of the mirror file of *url* on disk."""
        return self.work_dir / url_to_path(url, self.mirror_dir)


DEFAULT_CONFIG_PATH = Path("configs/default.yaml")


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid YAML in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Top level of YAML must be a mapping, got {type(data).__name__}")
    return data


def _read_json(path: Path) -> dict[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8")) or {}
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON in {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise TypeError(f"Top level of JSON must be a mapping, got {type(data).__name__}")
    return data


def load_config(path: Union[str, Path, None] = None) -> MirrorConfig:
    """
    Read YAML or JSON and return a validated MirrorConfig.

    Without *path* the file ``configs/default.yaml`` is used when present,
    otherwise the built-in defaults apply, so both commands run with no
    arguments at all. An explicit path that does not exist raises
    FileNotFoundError.
    """
    if path is None:
        if not DEFAULT_CONFIG_PATH.is_file():
            return MirrorConfig()
        path_obj = DEFAULT_CONFIG_PATH
    else:
        path_obj = Path(path).expanduser().resolve()
        if not path_obj.is_file():
            raise FileNotFoundError(errno.ENOENT, os.strerror(errno.ENOENT), str(path_obj))

    suffix = path_obj.suffix.lower()
    if suffix in (".yaml", ".yml"):
        data = _read_yaml(path_obj)
    elif suffix == ".json":
        data = _read_json(path_obj)
    else:
        raise ValueError(f"Unsupported config format: {suffix}")

    return MirrorConfig(**data)


__all__ = ["MirrorConfig", "load_config", "DEFAULT_SITEMAPS", "DEFAULT_DOMAINS"]
