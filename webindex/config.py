"""
Build configuration.

Everything the CLI accepts ends up in a BuildConfig. validate() raises
ValueError for configuration errors; those are fatal to a run and are
reported before any index is built or output written.
"""

from __future__ import annotations

import dataclasses
from pathlib import Path
from urllib.parse import urlsplit

DEFAULT_PAGE_BUDGET = 50
DEFAULT_MAX_REDIRECTS = 3
DEFAULT_TIMEOUT = 10.0  # seconds, per socket operation
DEFAULT_WORKERS = 1
CRAWL_ORDERS = ("depth", "breadth")


def is_url(seed: str) -> bool:
    """True when seed looks like a URL (has a scheme and a host) rather than a path."""
    try:
        parts = urlsplit(seed)
    except ValueError:
        return False
    return bool(parts.scheme) and len(parts.scheme) > 1 and bool(parts.netloc)


@dataclasses.dataclass(frozen=True)
class BuildConfig:
    seed: str
    page_budget: int = DEFAULT_PAGE_BUDGET
    max_redirects: int = DEFAULT_MAX_REDIRECTS
    timeout: float = DEFAULT_TIMEOUT
    workers: int = DEFAULT_WORKERS
    order: str = "depth"
    index_path: Path | None = None
    counts_path: Path | None = None
    query_path: Path | None = None
    results_path: Path | None = None
    partial: bool = False

    @property
    def is_crawl(self) -> bool:
        return is_url(self.seed)

    def validate(self) -> "BuildConfig":
        """Check the settings; returns self so calls can be chained."""
        if not self.seed:
            raise ValueError("A seed path or URL is required")
        if self.is_crawl:
            scheme = urlsplit(self.seed).scheme.lower()
            if scheme not in ("http", "https"):
                raise ValueError(f"Seed URL must use http or https: {self.seed}")
        elif not Path(self.seed).exists():
            raise ValueError(f"Seed path does not exist: {self.seed}")
        if self.page_budget < 1:
            raise ValueError(f"Page budget must be at least 1, got {self.page_budget}")
        if self.max_redirects < 0:
            raise ValueError(f"Redirects must not be negative, got {self.max_redirects}")
        if self.timeout <= 0:
            raise ValueError(f"Timeout must be positive, got {self.timeout}")
        if self.workers < 1:
            raise ValueError(f"Workers must be at least 1, got {self.workers}")
        if self.order not in CRAWL_ORDERS:
            raise ValueError(f"Crawl order must be one of {CRAWL_ORDERS}, got {self.order!r}")
        if self.query_path is not None and not Path(self.query_path).is_file():
            raise ValueError(f"Query file does not exist: {self.query_path}")
        return self
